from .bits import (
    BitField,
    classify_ieee754_bit,
    to_hardware_bit,
    to_user_bit,
    preset_bits,
)
from .validation import validate_position, validate_bits, required_fields_present
from .faults import FaultKind, FaultSpec, LayerFaultConfig, WeightFault
from .hardware import HardwareFaultCampaign, HardwareFaultEntry, HardwareRegister
from .campaign import (
    CampaignClassifier,
    CampaignClassification,
    CampaignRequest,
    CampaignResult,
    Outcome,
    classify,
)
from .metrics import MetricDelta, NumericIssueReport, compute_degradation, scan_numeric_health
from .errors import (
    FaultSpecError,
    ValidationError,
    RangeError,
    InvalidPositionError,
    InvalidBitError,
    MissingFieldError,
    DuplicateLayerError,
    UnknownLayerError,
    NumericOverflowError,
)

__version__ = "0.3.0"

__all__ = [
    'BitField',
    'classify_ieee754_bit',
    'to_hardware_bit',
    'to_user_bit',
    'preset_bits',
    'validate_position',
    'validate_bits',
    'required_fields_present',
    'FaultKind',
    'FaultSpec',
    'LayerFaultConfig',
    'WeightFault',
    'HardwareFaultCampaign',
    'HardwareFaultEntry',
    'HardwareRegister',
    'CampaignClassifier',
    'CampaignClassification',
    'CampaignRequest',
    'CampaignResult',
    'Outcome',
    'classify',
    'MetricDelta',
    'NumericIssueReport',
    'compute_degradation',
    'scan_numeric_health',
    'FaultSpecError',
    'ValidationError',
    'RangeError',
    'InvalidPositionError',
    'InvalidBitError',
    'MissingFieldError',
    'DuplicateLayerError',
    'UnknownLayerError',
    'NumericOverflowError',
]
