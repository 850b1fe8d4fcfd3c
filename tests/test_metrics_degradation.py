"""
Tier 2 Verification: Metrics Degradation
========================================
Per-metric absolute and relative degradation, and float32 numeric health.
"""

import sys
import os
import pytest
import numpy as np

# Setup path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

from cnnfi.errors import NumericOverflowError
from cnnfi.metrics import (
    NumericIssueReport,
    compute_degradation,
    degradation_table,
    is_comparable,
    scan_numeric_health,
)


def test_accuracy_degradation_is_relative_to_golden():
    deltas = compute_degradation({"accuracy": 0.95}, {"accuracy": 0.80})
    acc = deltas["accuracy"]
    assert acc.degradation == pytest.approx(0.15)
    assert acc.degradation_pct == pytest.approx(15.789, abs=1e-3)


def test_zero_golden_is_undefined():
    deltas = compute_degradation({"recall": 0.0}, {"recall": 0.1})
    assert deltas["recall"].degradation == pytest.approx(-0.1)
    assert deltas["recall"].degradation_pct is None


def test_keys_in_one_set_are_omitted():
    deltas = compute_degradation({"accuracy": 0.9, "f1_score": 0.8}, {"accuracy": 0.9, "loss": 0.3})
    assert list(deltas) == ["accuracy"]
    assert deltas["accuracy"].degradation == 0


def test_non_rate_values_are_skipped():
    golden = {
        "accuracy": 0.9,
        "correct_predictions": 90,
        "confusion_matrix": [[9, 1], [0, 10]],
        "classification_report": {"0": {"precision": 1.0}},
        "converged": True,
        "loss": 0.25,
    }
    faulty = dict(golden, accuracy=0.6, correct_predictions=60, loss=1.75)
    deltas = compute_degradation(golden, faulty)
    assert list(deltas) == ["accuracy", "loss"]
    # loss is unbounded; the formula still applies
    assert deltas["loss"].degradation == pytest.approx(-1.5)
    assert deltas["loss"].degradation_pct == pytest.approx(-600.0)


def test_non_finite_values_skipped():
    deltas = compute_degradation({"accuracy": float("nan"), "precision": 0.5},
                                 {"accuracy": 0.5, "precision": float("inf")})
    assert deltas == {}


def test_numpy_scalars_are_comparable():
    assert is_comparable("accuracy", np.float32(0.5))
    assert not is_comparable("accuracy", np.bool_(True))
    deltas = compute_degradation({"precision": np.float64(0.8)}, {"precision": np.float32(0.4)})
    assert deltas["precision"].degradation_pct == pytest.approx(50.0, rel=1e-6)


def test_degradation_table():
    table = degradation_table(compute_degradation({"f1_score": 0.5}, {"f1_score": 0.25}))
    assert table == {"f1_score": {"golden": 0.5, "faulty": 0.25, "degradation": 0.25,
                                  "degradation_pct": 50.0}}


def test_scan_numeric_health():
    values = np.array([1.0, np.inf, -np.inf, np.nan, 1e-40, 0.0, 3.0e38, 1e39, 1e-50])
    report = scan_numeric_health(values, attempted_prediction=4)
    assert report.overflow_count == 3     # +inf, -inf, 1e39 beyond float32
    assert report.nan_count == 1
    assert report.underflow_count == 2    # 1e-40 subnormal, 1e-50 flushed to zero
    assert report.has_issues
    with pytest.raises(NumericOverflowError):
        report.raise_if_issues()


def test_clean_values_have_no_issues():
    report = scan_numeric_health([0.0, -1.0, 2.5])
    assert not report.has_issues
    report.raise_if_issues()


def test_issue_report_dict_round_trip():
    report = NumericIssueReport(overflow_count=1, nan_count=2, attempted_prediction=3)
    assert NumericIssueReport.from_dict(report.to_dict()) == report


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
