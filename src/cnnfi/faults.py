"""
cnnfi Fault Specification
=========================
Owned, validated description of the faults a campaign should inject into a
CNN's activations or weights.

A FaultSpec never injects anything itself. It holds intent, rejects invalid
edits before touching state, and serialises to the JSON payload the inference
service expects.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum

from . import config
from .errors import (
    DuplicateLayerError,
    InvalidBitError,
    InvalidPositionError,
    RangeError,
    UnknownLayerError,
    ValidationError,
)
from .validation import is_index, normalize_bits, validate_bits, validate_position

logger = logging.getLogger(__name__)

# --- Domains ---
ACTIVATION = "activation"
WEIGHT = "weight"
DOMAINS = (ACTIVATION, WEIGHT)

# --- Weight tensors ---
KERNEL = "kernel"
BIAS = "bias"
TARGET_TYPES = (KERNEL, BIAS)


class FaultKind(Enum):
    BIT_FLIP = "bit_flip"
    STUCK_AT_0 = "stuck_at_0"
    STUCK_AT_1 = "stuck_at_1"
    RANDOM_NOISE = "random_noise"

    @classmethod
    def parse(cls, value) -> "FaultKind":
        """Accepts a FaultKind, its wire value, or the hardware spelling ("bitflip")."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower().replace("-", "_")
            if key == "bitflip":
                return cls.BIT_FLIP
            for kind in cls:
                if kind.value == key:
                    return kind
        raise ValidationError(f"Unknown fault type '{value}'", field="fault_type")

    @property
    def has_std_dev(self) -> bool:
        return self is FaultKind.RANDOM_NOISE

    @property
    def hardware_name(self) -> str:
        """Name used by the VHDL fault injector. Noise has no fixed-point meaning."""
        if self is FaultKind.RANDOM_NOISE:
            raise ValidationError("random_noise cannot be applied to a hardware register", field="fault_type")
        if self is FaultKind.BIT_FLIP:
            return "bitflip"
        return self.value


@dataclass
class WeightFault:
    """One weight element and the bits to corrupt in it."""
    position: tuple
    bit_positions: tuple

    def to_dict(self):
        return {"position": list(self.position), "bit_positions": list(self.bit_positions)}


@dataclass
class LayerFaultConfig:
    """
    Fault parameters for one layer.

    Activation layers use `fault_rate` and an optional `bit_positions` mask
    (empty means any bit). Weight layers use `target_type` and an explicit
    list of `positions`. `std_dev` is set only for RANDOM_NOISE.
    """
    layer_id: str
    domain: str
    kind: FaultKind = FaultKind.BIT_FLIP
    fault_rate: float | None = None
    std_dev: float | None = None
    bit_positions: tuple = ()
    target_type: str = KERNEL
    shapes: dict = field(default_factory=dict)
    positions: list = field(default_factory=list)

    @property
    def shape(self):
        """Shape of the currently targeted weight tensor, or None if unknown."""
        return self.shapes.get(self.target_type)

    def to_payload(self) -> dict:
        if self.domain == ACTIVATION:
            payload = {"fault_type": self.kind.value, "fault_rate": self.fault_rate}
            if self.kind.has_std_dev:
                payload["parameters"] = {"std_dev": self.std_dev}
            if self.bit_positions:
                payload["bit_positions"] = list(self.bit_positions)
            return payload

        union = normalize_bits(b for wf in self.positions for b in wf.bit_positions)
        payload = {
            "fault_type": self.kind.value,
            "target_type": self.target_type,
            "positions": [list(wf.position) for wf in self.positions],
            "bit_positions": list(union),
            "faults": [wf.to_dict() for wf in self.positions],
        }
        if self.kind.has_std_dev:
            payload["parameters"] = {"std_dev": self.std_dev}
        return payload


class FaultSpec:
    """
    Per-layer fault configuration for one domain (activation or weight).

    `enabled` is an independent gate: a disabled spec contributes no faults
    whatever its layers contain.
    """

    def __init__(self, domain=ACTIVATION, enabled=False, catalog=None):
        if domain not in DOMAINS:
            raise ValidationError(f"Unknown fault domain '{domain}' (expected one of {DOMAINS})", field="domain")
        self.domain = domain
        self.enabled = enabled
        # Layer id -> {"kernel": shape, "bias": shape}
        self.catalog = config.LENET5_LAYERS if catalog is None else catalog
        self._layers = {}

    # ---- container helpers ----

    def __contains__(self, layer_id):
        return layer_id in self._layers

    def __len__(self):
        return len(self._layers)

    def __iter__(self):
        return iter(self._layers.values())

    @property
    def layers(self) -> dict:
        return dict(self._layers)

    def get_layer(self, layer_id) -> LayerFaultConfig:
        if layer_id not in self._layers:
            raise UnknownLayerError(layer_id)
        return self._layers[layer_id]

    # ---- layer lifecycle ----

    def add_layer(self, layer_id, default_kind=FaultKind.BIT_FLIP, shapes=None) -> LayerFaultConfig:
        """
        Start configuring `layer_id`.
        shapes: {"kernel": shape, "bias": shape}; falls back to the catalog.
        """
        if layer_id in self._layers:
            raise DuplicateLayerError(layer_id)
        kind = FaultKind.parse(default_kind)

        if shapes is None:
            shapes = self.catalog.get(layer_id, {})
        shapes = {target: tuple(shape) for target, shape in shapes.items()}

        layer = LayerFaultConfig(layer_id=layer_id, domain=self.domain, kind=kind, shapes=shapes)
        if self.domain == ACTIVATION:
            layer.fault_rate = config.DEFAULT_FAULT_RATE
        if kind.has_std_dev:
            layer.std_dev = config.DEFAULT_STD_DEV

        self._layers[layer_id] = layer
        logger.debug("Added %s layer '%s' (%s)", self.domain, layer_id, kind.value)
        return layer

    def remove_layer(self, layer_id) -> None:
        if self._layers.pop(layer_id, None) is not None:
            logger.debug("Removed %s layer '%s'", self.domain, layer_id)

    # ---- mutators ----

    def set_kind(self, layer_id, kind, std_dev=None) -> None:
        """
        Change the fault kind of a layer.
        Weight layers lose their recorded positions when the kind changes.
        """
        layer = self.get_layer(layer_id)
        kind = FaultKind.parse(kind)
        if kind.has_std_dev:
            std_dev = config.DEFAULT_STD_DEV if std_dev is None else _check_std_dev(std_dev)

        if self.domain == WEIGHT and kind is not layer.kind and layer.positions:
            logger.debug("Clearing %d positions of '%s' on kind change", len(layer.positions), layer_id)
            layer.positions = []
        layer.kind = kind
        layer.std_dev = std_dev if kind.has_std_dev else None

    def set_target(self, layer_id, target_type) -> None:
        """Switch a weight layer between kernel and bias. Positions are dropped."""
        layer = self._weight_layer(layer_id)
        if target_type not in TARGET_TYPES:
            raise ValidationError(f"Unknown target type '{target_type}' (expected one of {TARGET_TYPES})",
                                  field="target_type")
        if target_type != layer.target_type:
            layer.target_type = target_type
            layer.positions = []

    def set_rate(self, layer_id, rate) -> None:
        layer = self.get_layer(layer_id)
        if self.domain != ACTIVATION:
            raise ValidationError("fault_rate only applies to activation layers", field="fault_rate")
        if isinstance(rate, bool) or not isinstance(rate, (int, float)) or not 0.0 <= rate <= 1.0:
            raise RangeError(f"Fault rate {rate} must be within [0, 1]", field="fault_rate")
        layer.fault_rate = float(rate)

    def set_std_dev(self, layer_id, std_dev) -> None:
        layer = self.get_layer(layer_id)
        if not layer.kind.has_std_dev:
            raise ValidationError(f"std_dev does not apply to {layer.kind.value}", field="std_dev")
        layer.std_dev = _check_std_dev(std_dev)

    def set_bit_positions(self, layer_id, bit_indices) -> None:
        """Restrict activation faults to these float32 bits. Empty lifts the restriction."""
        layer = self.get_layer(layer_id)
        if self.domain != ACTIVATION:
            raise ValidationError("Weight layers carry bits per position; use add_position",
                                  field="bit_positions")
        bit_indices = list(bit_indices)
        if not validate_bits(bit_indices, config.FLOAT32_WIDTH):
            raise InvalidBitError(f"Bit positions {bit_indices} must be within 0-{config.FLOAT32_WIDTH - 1}",
                                  field="bit_positions")
        layer.bit_positions = normalize_bits(bit_indices)

    def add_position(self, layer_id, position, bit_indices=None) -> WeightFault:
        """
        Record a weight element to corrupt.
        bit_indices defaults to config.DEFAULT_WEIGHT_BIT.
        """
        layer = self._weight_layer(layer_id)
        if bit_indices is None:
            bit_indices = (config.DEFAULT_WEIGHT_BIT,)

        shape = layer.shape
        position = list(position)
        if shape is None:
            raise InvalidPositionError(f"No known {layer.target_type} shape for layer '{layer_id}'",
                                       field="position")
        if not validate_position(position, shape):
            raise InvalidPositionError(f"Position {position} is outside {layer.target_type} shape {list(shape)}",
                                       field="position")

        bit_indices = list(bit_indices)
        if not bit_indices:
            raise InvalidBitError("At least one bit position is required", field="bit_positions")
        if not validate_bits(bit_indices, config.FLOAT32_WIDTH):
            raise InvalidBitError(f"Bit positions {bit_indices} must be within 0-{config.FLOAT32_WIDTH - 1}",
                                  field="bit_positions")

        fault = WeightFault(position=tuple(int(p) for p in position), bit_positions=normalize_bits(bit_indices))
        layer.positions.append(fault)
        logger.debug("Layer '%s': %s%s bits %s", layer_id, layer.target_type, list(fault.position),
                     list(fault.bit_positions))
        return fault

    def remove_position(self, layer_id, index) -> None:
        layer = self._weight_layer(layer_id)
        if not is_index(index) or not 0 <= index < len(layer.positions):
            raise RangeError(f"Position index {index} out of range (layer has {len(layer.positions)})",
                             field="positions")
        del layer.positions[index]

    # ---- queries ----

    def active_layers(self) -> dict:
        """Layers that contribute faults: none at all when the spec is disabled."""
        if not self.enabled:
            return {}
        return dict(self._layers)

    @property
    def has_faults(self) -> bool:
        for layer in self.active_layers().values():
            if self.domain == ACTIVATION and layer.fault_rate:
                return True
            if self.domain == WEIGHT and layer.positions:
                return True
        return False

    # ---- serialisation ----

    def to_payload(self) -> dict:
        return {
            "enabled": self.enabled,
            "layers": {layer_id: layer.to_payload() for layer_id, layer in self._layers.items()},
        }

    @classmethod
    def from_payload(cls, payload, domain=ACTIVATION, catalog=None) -> "FaultSpec":
        """
        Rebuild a spec from a request payload, validating every field on the way.
        Weight positions may be [{position, bit_positions}, ...] or flat
        coordinate lists sharing the layer-level `bit_positions`.
        """
        spec = cls(domain=domain, enabled=bool(payload.get("enabled", False)), catalog=catalog)
        for layer_id, entry in payload.get("layers", {}).items():
            kind = FaultKind.parse(entry.get("fault_type", FaultKind.BIT_FLIP))
            spec.add_layer(layer_id, kind)
            params = entry.get("parameters") or {}
            if kind.has_std_dev and "std_dev" in params:
                spec.set_std_dev(layer_id, params["std_dev"])

            if domain == ACTIVATION:
                if "fault_rate" in entry:
                    spec.set_rate(layer_id, entry["fault_rate"])
                if entry.get("bit_positions"):
                    spec.set_bit_positions(layer_id, entry["bit_positions"])
                continue

            spec.set_target(layer_id, entry.get("target_type", KERNEL))
            shared_bits = entry.get("bit_positions")
            for item in entry.get("faults") or entry.get("positions", []):
                if isinstance(item, dict):
                    if "position" not in item:
                        raise InvalidPositionError(f"Fault entry {item} on layer '{layer_id}' has no position",
                                                   field="position")
                    spec.add_position(layer_id, item["position"], item.get("bit_positions", shared_bits))
                elif isinstance(item, (list, tuple)):
                    spec.add_position(layer_id, item, shared_bits)
                else:
                    raise InvalidPositionError(f"Position {item!r} on layer '{layer_id}' is not a coordinate list",
                                               field="position")
        return spec

    # ---- internals ----

    def _weight_layer(self, layer_id) -> LayerFaultConfig:
        layer = self.get_layer(layer_id)
        if self.domain != WEIGHT:
            raise ValidationError("Positions only apply to weight layers", field="positions")
        return layer

    def __repr__(self):
        state = "enabled" if self.enabled else "disabled"
        return f"FaultSpec(domain={self.domain}, {state}, layers={list(self._layers)})"


def _check_std_dev(std_dev) -> float:
    if isinstance(std_dev, bool) or not isinstance(std_dev, (int, float)) or not std_dev >= 0:
        raise RangeError(f"std_dev {std_dev} must be a non-negative number", field="std_dev")
    return float(std_dev)
