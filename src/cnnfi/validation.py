"""
cnnfi Validation
================
Bounds checks for tensor positions and bit indices, and required-field checks
for hardware fault entries.

The predicates return booleans; callers decide which error to raise.
"""

import math
import numbers

import numpy as np

from .errors import MissingFieldError


def is_index(value) -> bool:
    """True for Python/numpy integers (bool excluded)."""
    return isinstance(value, (numbers.Integral, np.integer)) and not isinstance(value, (bool, np.bool_))


def validate_position(position, shape) -> bool:
    """
    True iff `position` addresses an element of a tensor with `shape`.
    Rank must match and every axis must satisfy 0 <= position[i] < shape[i].
    """
    position = list(position)
    shape = list(shape)
    if len(position) != len(shape):
        return False
    for coord, dim in zip(position, shape):
        if not is_index(coord) or coord < 0 or coord >= dim:
            return False
    return True


def validate_bits(bit_indices, width) -> bool:
    """True iff every index is an integer in [0, width). Duplicates are fine."""
    return all(is_index(b) and 0 <= b < width for b in bit_indices)


def normalize_bits(bit_indices) -> tuple:
    """Collapse a bit collection to a sorted tuple of unique ints."""
    return tuple(sorted({int(b) for b in bit_indices}))


def is_missing(value) -> bool:
    """None, empty/blank string, or NaN."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        return math.isnan(value)
    return False


def required_fields_present(fault_entry, required_field_names):
    """
    Check a hardware fault entry (dict) for required fields.
    Returns a MissingFieldError naming the first offending field, or None.
    """
    for name in required_field_names:
        if name not in fault_entry:
            return MissingFieldError(f"Missing required field '{name}'", field=name)
        if is_missing(fault_entry[name]):
            return MissingFieldError(f"Field '{name}' must not be empty", field=name)
    return None
