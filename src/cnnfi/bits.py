"""
cnnfi Bit Semantics
===================
Translation between bit-index conventions.

Two numberings are in use:
- Software (IEEE-754 float32): LSB-first, bit 31 is the sign bit.
- Hardware (VHDL registers): MSB-first, bit 0 is the most significant bit
  of the register.

Everything facing a person uses LSB-first; `to_hardware_bit` is the only
place the two are reconciled.
"""

from __future__ import annotations
from enum import Enum

from .config import FLOAT32_WIDTH, VALID_WIDTHS
from .errors import RangeError, ValidationError
from .validation import is_index

# --- IEEE-754 float32 layout ---
SIGN_BIT = 31
EXPONENT_BITS = tuple(range(23, 31))   # 23..30
MANTISSA_BITS = tuple(range(0, 23))    # 0..22


class BitField(Enum):
    SIGN = "sign"
    EXPONENT = "exponent"
    MANTISSA = "mantissa"


def classify_ieee754_bit(index: int) -> BitField:
    """Role of bit `index` (LSB-first) inside a float32."""
    if not is_index(index) or not 0 <= index < FLOAT32_WIDTH:
        raise RangeError(f"Bit index {index} out of range for float32 (0-31)", field="bit_position")
    if index == SIGN_BIT:
        return BitField.SIGN
    if index >= EXPONENT_BITS[0]:
        return BitField.EXPONENT
    return BitField.MANTISSA


def to_hardware_bit(user_index: int, width: int) -> int:
    """
    LSB-first index -> MSB-first register index for a `width`-bit register.
    Applying it twice returns the original index.
    """
    if width not in VALID_WIDTHS:
        raise RangeError(f"Unsupported bit width {width} (expected one of {VALID_WIDTHS})", field="width")
    if not is_index(user_index) or not 0 <= user_index < width:
        raise RangeError(f"Bit index {user_index} out of range (0-{width - 1})", field="bit_position")
    return width - 1 - user_index


# Same mapping; named for readability at call sites going the other way
to_user_bit = to_hardware_bit


# --- Presets ---
# Selector shortcuts. "significant" straddles the mantissa/exponent boundary
# and is not the same as exponent + sign.
PRESETS = {
    "significant": frozenset(range(20, 31)),
    "less_significant": frozenset(range(0, 20)),
    "all": frozenset(range(0, FLOAT32_WIDTH)),
    "none": frozenset(),
}


def significant_bits() -> frozenset:
    return PRESETS["significant"]


def less_significant_bits() -> frozenset:
    return PRESETS["less_significant"]


def all_bits() -> frozenset:
    return PRESETS["all"]


def no_bits() -> frozenset:
    return PRESETS["none"]


def preset_bits(name: str) -> frozenset:
    """Look up a preset by name ("significant", "less-significant", ...)."""
    key = name.strip().lower().replace("-", "_").replace(" ", "_")
    if key not in PRESETS:
        raise ValidationError(f"Unknown bit preset '{name}' (expected one of {sorted(PRESETS)})", field="preset")
    return PRESETS[key]


def bits_by_field(bits) -> dict:
    """
    Group float32 bit indices by IEEE-754 field.
    Returns {BitField: sorted list}, highest bit first as in the selector grid.
    """
    grouped = {field: [] for field in BitField}
    for bit in set(bits):
        grouped[classify_ieee754_bit(bit)].append(bit)
    for field in grouped:
        grouped[field].sort(reverse=True)
    return grouped
