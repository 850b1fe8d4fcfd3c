"""
cnnfi Hardware Faults
=====================
Faults targeting named fixed-point registers of a VHDL convolution layer.

Filter registers are 8-bit coefficients addressed by (row, col) inside a
5x5 filter; bias registers are 16-bit scalars. Registers are numbered
MSB-first, so bit indices coming from a person (LSB-first) are converted with
`to_hardware_bit` before they are stored. Stored entries and the request
payload always carry hardware-numbered bits.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass

from . import config
from .bits import to_hardware_bit, to_user_bit
from .errors import RangeError, ValidationError
from .faults import FaultKind
from .validation import is_index, required_fields_present

logger = logging.getLogger(__name__)

FILTER_FIELDS = ("filter_name", "row", "col", "bit_position", "fault_type")
BIAS_FIELDS = ("bias_name", "bit_position", "fault_type")


@dataclass(frozen=True)
class HardwareRegister:
    """A named register synthesized into the VHDL design."""
    name: str
    width: int
    rows: int | None = None
    cols: int | None = None

    @property
    def is_filter(self) -> bool:
        return self.rows is not None


def default_filter_registers():
    return {
        name: HardwareRegister(name, config.FILTER_WIDTH, config.FILTER_ROWS, config.FILTER_COLS)
        for name in config.FILTER_REGISTERS
    }


def default_bias_registers():
    return {name: HardwareRegister(name, config.BIAS_WIDTH) for name in config.BIAS_REGISTERS}


@dataclass
class HardwareFaultEntry:
    """
    One register fault. `bit_position` is hardware-numbered (0 = MSB).
    `row`/`col` are set for filter registers only.
    """
    register: str
    bit_position: int
    kind: FaultKind
    width: int
    row: int | None = None
    col: int | None = None

    @property
    def is_filter(self) -> bool:
        return self.row is not None

    @property
    def user_bit(self) -> int:
        """Same bit, LSB-first."""
        return to_user_bit(self.bit_position, self.width)

    def to_payload(self) -> dict:
        if self.is_filter:
            return {
                "filter_name": self.register,
                "row": self.row,
                "col": self.col,
                "bit_position": self.bit_position,
                "fault_type": self.kind.hardware_name,
            }
        return {
            "bias_name": self.register,
            "bit_position": self.bit_position,
            "fault_type": self.kind.hardware_name,
        }


class HardwareFaultCampaign:
    """
    Flat list of filter and bias register faults for one simulation run.
    """

    def __init__(self, filter_registers=None, bias_registers=None):
        self.filter_registers = default_filter_registers() if filter_registers is None else filter_registers
        self.bias_registers = default_bias_registers() if bias_registers is None else bias_registers
        self.filter_faults = []
        self.bias_faults = []

    def __len__(self):
        return len(self.filter_faults) + len(self.bias_faults)

    # ---- builders ----

    def add_filter_fault(self, filter_name, row, col, bit, fault_type=FaultKind.BIT_FLIP,
                         hardware_numbered=False) -> HardwareFaultEntry:
        """
        Fault one coefficient of a filter register.
        bit: LSB-first unless hardware_numbered is set.
        """
        register = self._lookup(self.filter_registers, filter_name, "filter_name")
        for axis, value, limit in (("row", row, register.rows), ("col", col, register.cols)):
            if not is_index(value) or not 0 <= value < limit:
                raise RangeError(f"{axis} {value} out of range for {filter_name} (0-{limit - 1})", field=axis)

        entry = HardwareFaultEntry(
            register=filter_name,
            bit_position=self._hardware_bit(bit, register.width, hardware_numbered),
            kind=self._kind(fault_type),
            width=register.width,
            row=int(row),
            col=int(col),
        )
        self.filter_faults.append(entry)
        logger.debug("Filter fault %s[%d][%d] hw bit %d (%s)", filter_name, entry.row, entry.col,
                     entry.bit_position, entry.kind.hardware_name)
        return entry

    def add_bias_fault(self, bias_name, bit, fault_type=FaultKind.BIT_FLIP,
                       hardware_numbered=False) -> HardwareFaultEntry:
        register = self._lookup(self.bias_registers, bias_name, "bias_name")
        entry = HardwareFaultEntry(
            register=bias_name,
            bit_position=self._hardware_bit(bit, register.width, hardware_numbered),
            kind=self._kind(fault_type),
            width=register.width,
        )
        self.bias_faults.append(entry)
        logger.debug("Bias fault %s hw bit %d (%s)", bias_name, entry.bit_position, entry.kind.hardware_name)
        return entry

    def add_entry(self, raw: dict, target=None) -> HardwareFaultEntry:
        """
        Add a fault from a request-style dict (hardware-numbered bits).
        target: "filter" or "bias"; guessed from the register key when omitted.
        """
        if target is None:
            target = "filter" if "filter_name" in raw else "bias"
        fields = FILTER_FIELDS if target == "filter" else BIAS_FIELDS
        error = required_fields_present(raw, fields)
        if error is not None:
            raise error
        if fields is FILTER_FIELDS:
            return self.add_filter_fault(raw["filter_name"], raw["row"], raw["col"], raw["bit_position"],
                                         raw["fault_type"], hardware_numbered=True)
        return self.add_bias_fault(raw["bias_name"], raw["bit_position"], raw["fault_type"],
                                   hardware_numbered=True)

    def remove_filter_fault(self, index) -> None:
        self._remove(self.filter_faults, index, "filter_faults")

    def remove_bias_fault(self, index) -> None:
        self._remove(self.bias_faults, index, "bias_faults")

    # ---- serialisation ----

    def to_payload(self) -> dict:
        if not len(self):
            raise ValidationError("At least one filter or bias fault is required", field="faults")
        return {
            "filter_faults": [entry.to_payload() for entry in self.filter_faults],
            "bias_faults": [entry.to_payload() for entry in self.bias_faults],
        }

    @classmethod
    def from_payload(cls, payload, filter_registers=None, bias_registers=None) -> "HardwareFaultCampaign":
        campaign = cls(filter_registers, bias_registers)
        for raw in payload.get("filter_faults", []):
            campaign.add_entry(raw, target="filter")
        for raw in payload.get("bias_faults", []):
            campaign.add_entry(raw, target="bias")
        return campaign

    # ---- internals ----

    @staticmethod
    def _remove(faults, index, field):
        if not is_index(index) or not 0 <= index < len(faults):
            raise RangeError(f"Fault index {index} out of range ({len(faults)} recorded)", field=field)
        del faults[index]

    @staticmethod
    def _lookup(registers, name, field):
        if name not in registers:
            raise ValidationError(f"Unknown register '{name}' (known: {sorted(registers)})", field=field)
        return registers[name]

    @staticmethod
    def _kind(fault_type) -> FaultKind:
        kind = FaultKind.parse(fault_type)
        if kind is FaultKind.RANDOM_NOISE:
            raise ValidationError("random_noise cannot be applied to a hardware register", field="fault_type")
        return kind

    @staticmethod
    def _hardware_bit(bit, width, hardware_numbered) -> int:
        if hardware_numbered:
            if not is_index(bit) or not 0 <= bit < width:
                raise RangeError(f"Bit position {bit} out of range (0-{width - 1})", field="bit_position")
            return int(bit)
        return to_hardware_bit(bit, width)
