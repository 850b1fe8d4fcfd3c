"""
cnnfi Metrics
=============
Golden vs. faulty metric comparison, and numeric-health checks on value
arrays returned by the inference engine.
"""

from __future__ import annotations
import logging
import math
import numbers
from dataclasses import dataclass

import numpy as np

from .config import COUNT_METRIC_KEYS
from .errors import NumericOverflowError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricDelta:
    """
    Change of one metric. `degradation_pct` is relative to the golden value
    and is None when the golden value is 0 (undefined, not "no change").
    """
    golden: float
    faulty: float
    degradation: float
    degradation_pct: float | None

    def to_dict(self):
        return {
            "golden": self.golden,
            "faulty": self.faulty,
            "degradation": self.degradation,
            "degradation_pct": self.degradation_pct,
        }


def is_comparable(key, value, excluded_keys=COUNT_METRIC_KEYS) -> bool:
    """Finite real scalar that is not a sample count."""
    if key in excluded_keys:
        return False
    if isinstance(value, (bool, np.bool_)):
        return False
    if not isinstance(value, (numbers.Real, np.floating, np.integer)):
        return False
    return math.isfinite(float(value))


def compute_degradation(golden_metrics, faulty_metrics, excluded_keys=COUNT_METRIC_KEYS) -> dict:
    """
    Compare two metric dicts key by key.

    Only keys present in both, with comparable values on both sides, are
    reported. Nested values (confusion matrices, classification reports) are
    skipped. Result preserves the golden key order:
        {key: MetricDelta(golden, faulty, golden - faulty, pct)}
    """
    deltas = {}
    for key, golden in golden_metrics.items():
        if key not in faulty_metrics:
            continue
        faulty = faulty_metrics[key]
        if not (is_comparable(key, golden, excluded_keys) and is_comparable(key, faulty, excluded_keys)):
            continue

        golden = float(golden)
        faulty = float(faulty)
        degradation = golden - faulty
        pct = degradation / golden * 100 if golden != 0 else None
        deltas[key] = MetricDelta(golden, faulty, degradation, pct)

    skipped = (set(golden_metrics) | set(faulty_metrics)) - set(deltas)
    if skipped:
        logger.debug("Metrics not compared: %s", sorted(skipped))
    return deltas


def degradation_table(deltas) -> dict:
    """Plain-dict view of compute_degradation() output, for JSON."""
    return {key: delta.to_dict() for key, delta in deltas.items()}


# --- Numeric health ---

@dataclass(frozen=True)
class NumericIssueReport:
    """Counts of values that left the float32 normal range."""
    overflow_count: int = 0
    underflow_count: int = 0
    nan_count: int = 0
    attempted_prediction: int | None = None

    @property
    def has_issues(self) -> bool:
        return bool(self.overflow_count or self.underflow_count or self.nan_count)

    def to_error(self) -> NumericOverflowError:
        return NumericOverflowError(self.overflow_count, self.underflow_count, self.nan_count,
                                    self.attempted_prediction)

    def raise_if_issues(self) -> None:
        if self.has_issues:
            raise self.to_error()

    def to_dict(self):
        return {
            "overflow_count": self.overflow_count,
            "underflow_count": self.underflow_count,
            "nan_count": self.nan_count,
            "attempted_prediction": self.attempted_prediction,
        }

    @classmethod
    def from_dict(cls, raw) -> "NumericIssueReport":
        return cls(
            overflow_count=int(raw.get("overflow_count", 0)),
            underflow_count=int(raw.get("underflow_count", 0)),
            nan_count=int(raw.get("nan_count", 0)),
            attempted_prediction=raw.get("attempted_prediction"),
        )


def scan_numeric_health(values, attempted_prediction=None) -> NumericIssueReport:
    """
    Count float32 overflow (+/-inf), NaN and underflow (non-zero subnormal)
    in an activation/weight array.
    """
    src = np.asarray(values, dtype=np.float64)
    # float64 inputs beyond float32 range become inf here
    with np.errstate(over="ignore", invalid="ignore", under="ignore"):
        arr = src.astype(np.float32)
    tiny = np.finfo(np.float32).tiny
    finite = np.isfinite(arr)
    subnormal = finite & (arr != 0) & (np.abs(arr) < tiny)
    # below the smallest float32 subnormal: flushed to zero by the cast
    flushed = (src != 0) & (arr == 0)
    return NumericIssueReport(
        overflow_count=int(np.count_nonzero(np.isinf(arr))),
        underflow_count=int(np.count_nonzero(subnormal | flushed)),
        nan_count=int(np.count_nonzero(np.isnan(arr))),
        attempted_prediction=attempted_prediction,
    )
