"""
Tier 1 Verification: Bit Semantics
==================================
IEEE-754 field classification, LSB-first <-> MSB-first register numbering,
and the selector presets.

Contract Checked:
1. Bit 31 is sign, 23-30 exponent, 0-22 mantissa; anything else raises.
2. to_hardware_bit is an involution for every valid index of 8/16/32-bit widths.
3. Presets have the documented membership and are not IEEE-derived.
"""

import sys
import os
import pytest

# Setup path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

from cnnfi.bits import (
    BitField,
    bits_by_field,
    classify_ieee754_bit,
    preset_bits,
    significant_bits,
    less_significant_bits,
    all_bits,
    no_bits,
    to_hardware_bit,
    to_user_bit,
    EXPONENT_BITS,
)
from cnnfi.errors import RangeError, ValidationError


def test_ieee754_field_boundaries():
    assert classify_ieee754_bit(31) is BitField.SIGN
    assert classify_ieee754_bit(30) is BitField.EXPONENT
    assert classify_ieee754_bit(23) is BitField.EXPONENT
    assert classify_ieee754_bit(22) is BitField.MANTISSA
    assert classify_ieee754_bit(0) is BitField.MANTISSA


@pytest.mark.parametrize("index", [32, -1, 100])
def test_ieee754_out_of_range_raises(index):
    with pytest.raises(RangeError):
        classify_ieee754_bit(index)


def test_ieee754_rejects_non_integers():
    with pytest.raises(RangeError):
        classify_ieee754_bit(3.0)
    with pytest.raises(RangeError):
        classify_ieee754_bit(True)


@pytest.mark.parametrize("width", [8, 16, 32])
def test_hardware_bit_is_involution(width):
    for i in range(width):
        assert to_hardware_bit(to_hardware_bit(i, width), width) == i


def test_hardware_bit_values():
    # 8-bit filter register: LSB (user 0) is register bit 7
    assert to_hardware_bit(0, 8) == 7
    assert to_hardware_bit(7, 8) == 0
    # 16-bit bias register
    assert to_hardware_bit(3, 16) == 12
    assert to_user_bit(12, 16) == 3


@pytest.mark.parametrize("index,width", [(8, 8), (-1, 8), (16, 16), (32, 32)])
def test_hardware_bit_out_of_range(index, width):
    with pytest.raises(RangeError) as exc:
        to_hardware_bit(index, width)
    assert exc.value.field == "bit_position"


def test_hardware_bit_rejects_unknown_width():
    with pytest.raises(RangeError):
        to_hardware_bit(0, 12)


def test_presets():
    assert significant_bits() == frozenset(range(20, 31))
    assert len(significant_bits()) == 11
    assert less_significant_bits() == frozenset(range(0, 20))
    assert len(less_significant_bits()) == 20
    assert all_bits() == frozenset(range(32))
    assert no_bits() == frozenset()

    # Heuristic preset, not exponent + sign
    exponent_and_sign = frozenset(EXPONENT_BITS) | {31}
    assert significant_bits() != exponent_and_sign
    assert 22 in significant_bits() and 31 not in significant_bits()


def test_preset_lookup_by_name():
    assert preset_bits("less-significant") == less_significant_bits()
    assert preset_bits("ALL") == all_bits()
    with pytest.raises(ValidationError):
        preset_bits("exponent")


def test_bits_by_field_groups_msb_first():
    grouped = bits_by_field([0, 31, 23, 22, 30, 22])
    assert grouped[BitField.SIGN] == [31]
    assert grouped[BitField.EXPONENT] == [30, 23]
    assert grouped[BitField.MANTISSA] == [22, 0]


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
