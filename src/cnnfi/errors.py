"""
cnnfi Errors
============
Exception taxonomy shared by the fault-specification and analysis modules.

Validation failures are raised before any state is touched, so a caller that
catches them can keep using the object it was mutating.
"""


class FaultSpecError(Exception):
    """Base class for every error raised by cnnfi."""


class ValidationError(FaultSpecError, ValueError):
    """
    A caller-supplied value was rejected.
    `field` names the offending field (e.g. "bit_position") when known.
    """

    def __init__(self, message, field=None):
        super().__init__(message)
        self.field = field


class RangeError(ValidationError):
    """A numeric value (bit index, rate, std-dev) is outside its legal range."""


class InvalidPositionError(ValidationError):
    """A tensor coordinate does not address an element of the tensor shape."""


class InvalidBitError(ValidationError):
    """A bit index does not address a bit of the target's bit width."""


class MissingFieldError(ValidationError):
    """A required field is absent, null, empty or NaN."""


class DuplicateLayerError(FaultSpecError):
    def __init__(self, layer_id):
        super().__init__(f"Layer '{layer_id}' is already configured.")
        self.layer_id = layer_id


class UnknownLayerError(FaultSpecError, KeyError):
    def __init__(self, layer_id):
        super().__init__(f"Layer '{layer_id}' is not configured.")
        self.layer_id = layer_id

    def __str__(self):
        # KeyError would otherwise repr() the message
        return self.args[0]


class NumericOverflowError(FaultSpecError):
    """
    Relayed from the inference engine when injected faults pushed values out
    of the IEEE-754 representable range. The prediction that came back with
    it is unreliable and is kept only for reporting.
    """

    def __init__(self, overflow_count=0, underflow_count=0, nan_count=0,
                 attempted_prediction=None):
        super().__init__(
            f"Numeric issues during faulty inference: overflow={overflow_count}, "
            f"underflow={underflow_count}, nan={nan_count}"
        )
        self.overflow_count = overflow_count
        self.underflow_count = underflow_count
        self.nan_count = nan_count
        self.attempted_prediction = attempted_prediction
