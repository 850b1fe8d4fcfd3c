"""
cnnfi Campaign Analysis
=======================
Classifies the outcome of a fault campaign sample by sample.

Index 0..N-1 of the golden and faulty prediction streams refer to the same
input image. For each pair:
- faulty prediction missing/invalid -> INVALID (crash or numeric failure,
  counted apart from SDC and masked)
- same label                        -> MASKED
- different label                   -> SDC
"""

from __future__ import annotations
import logging
import math
import numbers
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from . import config
from .errors import ValidationError
from .faults import ACTIVATION, WEIGHT, FaultSpec
from .metrics import NumericIssueReport, compute_degradation, degradation_table

logger = logging.getLogger(__name__)


class Outcome(Enum):
    SDC = "sdc"
    MASKED = "fault_masked"
    INVALID = "invalid"


def as_label(value, num_classes=config.NUM_CLASSES):
    """
    Normalise a prediction to an int label, or None if it is not a valid
    class index (None, NaN, -1 sentinel, non-integral, out of range).
    """
    if value is None or isinstance(value, (bool, np.bool_)):
        return None
    if isinstance(value, (numbers.Integral, np.integer)):
        label = int(value)
    elif isinstance(value, (numbers.Real, np.floating)):
        if not math.isfinite(value) or not float(value).is_integer():
            return None
        label = int(value)
    else:
        return None
    if 0 <= label < num_classes:
        return label
    return None


@dataclass
class CampaignClassification:
    """Aggregate and per-sample outcome of a campaign."""
    sdc: int = 0
    fault_masked: int = 0
    compared: int = 0
    outcomes: list = field(default_factory=list)
    pairs: list = field(default_factory=list)

    @property
    def total_valid(self) -> int:
        return self.sdc + self.fault_masked

    @property
    def invalid(self) -> int:
        """Pairs skipped because the faulty run crashed or returned garbage."""
        return self.compared - self.total_valid

    def rate(self, kind) -> float:
        """Share of valid samples with outcome `kind`; 0 when nothing was valid."""
        kind = Outcome(kind)
        if kind is Outcome.INVALID:
            raise ValidationError("Invalid samples are not part of the valid total", field="kind")
        if self.total_valid == 0:
            return 0.0
        count = self.sdc if kind is Outcome.SDC else self.fault_masked
        return count / self.total_valid

    @property
    def sdc_rate(self) -> float:
        return self.rate(Outcome.SDC)

    @property
    def masked_rate(self) -> float:
        return self.rate(Outcome.MASKED)

    def indices(self, kind) -> list:
        kind = Outcome(kind)
        return [i for i, outcome in enumerate(self.outcomes) if outcome is kind]

    def agreement_summary(self) -> dict:
        """
        Raw agreement over every compared index, invalid ones included
        (an invalid faulty prediction never agrees with golden).
        """
        same = sum(1 for golden, faulty in self.pairs if golden == faulty)
        different = self.compared - same
        pct = different / self.compared * 100 if self.compared else 0.0
        return {
            "samples_with_same_predictions": same,
            "samples_with_different_predictions": different,
            "percentage_different": pct,
        }

    def to_dict(self) -> dict:
        return {
            "sdc": self.sdc,
            "fault_masked": self.fault_masked,
            "total_valid": self.total_valid,
            "invalid": self.invalid,
            "compared": self.compared,
            "sdc_rate": self.sdc_rate,
            "fault_masked_rate": self.masked_rate,
            "sdc_indices": self.indices(Outcome.SDC),
            "invalid_indices": self.indices(Outcome.INVALID),
        }


def classify(golden, faulty, num_classes=config.NUM_CLASSES) -> CampaignClassification:
    """
    Pair golden and faulty predictions by index over their common length and
    classify each pair. Pure: same inputs, same result.
    """
    golden = list(golden)
    faulty = list(faulty)
    common = min(len(golden), len(faulty))
    if len(golden) != len(faulty):
        logger.debug("Prediction streams differ in length (%d vs %d); comparing %d",
                     len(golden), len(faulty), common)

    result = CampaignClassification(compared=common)
    for i in range(common):
        g, f = golden[i], faulty[i]
        result.pairs.append((g, f))
        label = as_label(f, num_classes)
        if label is None:
            result.outcomes.append(Outcome.INVALID)
        elif g == label:
            result.fault_masked += 1
            result.outcomes.append(Outcome.MASKED)
        else:
            result.sdc += 1
            result.outcomes.append(Outcome.SDC)
    return result


class CampaignClassifier:
    """Holds the class count so a caller can classify several runs alike."""

    def __init__(self, num_classes=config.NUM_CLASSES):
        if num_classes < 1:
            raise ValidationError("num_classes must be at least 1", field="num_classes")
        self.num_classes = num_classes

    def classify(self, golden, faulty) -> CampaignClassification:
        return classify(golden, faulty, self.num_classes)


@dataclass
class CampaignResult:
    """Everything derived from one campaign response."""
    classification: CampaignClassification
    golden_metrics: dict
    faulty_metrics: dict
    degradation: dict
    numeric_issues: NumericIssueReport | None = None
    comparison: dict | None = None

    @classmethod
    def from_response(cls, payload, num_classes=config.NUM_CLASSES) -> "CampaignResult":
        """
        Build from the service response:
        {golden_results: {predictions, metrics},
         fault_results: {predictions, metrics, numerical_issues?}, comparison?}
        """
        if "results" in payload and "golden_results" not in payload:
            payload = payload["results"]
        golden = payload.get("golden_results") or {}
        faulty = payload.get("fault_results") or {}

        classification = classify(golden.get("predictions") or [], faulty.get("predictions") or [], num_classes)
        golden_metrics = golden.get("metrics") or {}
        faulty_metrics = faulty.get("metrics") or {}

        issues = None
        if faulty.get("numerical_issues"):
            issues = NumericIssueReport.from_dict(faulty["numerical_issues"])

        result = cls(
            classification=classification,
            golden_metrics=golden_metrics,
            faulty_metrics=faulty_metrics,
            degradation=compute_degradation(golden_metrics, faulty_metrics),
            numeric_issues=issues,
            comparison=payload.get("comparison"),
        )
        logger.info("Campaign: %d compared, %d SDC, %d masked, %d invalid",
                    classification.compared, classification.sdc, classification.fault_masked,
                    classification.invalid)
        return result

    def to_dict(self) -> dict:
        return {
            "classification": self.classification.to_dict(),
            "agreement": self.classification.agreement_summary(),
            "degradation": degradation_table(self.degradation),
            "numerical_issues": self.numeric_issues.to_dict() if self.numeric_issues else None,
        }


@dataclass
class CampaignRequest:
    """
    Body of a campaign run request. Activation and weight specs are
    independent; either may be absent.
    """
    model_path: str
    num_samples: int = 100
    image_dir: str | None = None
    activation_spec: FaultSpec | None = None
    weight_spec: FaultSpec | None = None

    def __post_init__(self):
        if not self.model_path:
            raise ValidationError("A model must be selected", field="model_path")
        if isinstance(self.num_samples, bool) or not isinstance(self.num_samples, int) or self.num_samples < 1:
            raise ValidationError(f"num_samples must be a positive integer, got {self.num_samples}",
                                  field="num_samples")
        for spec, domain in ((self.activation_spec, ACTIVATION), (self.weight_spec, WEIGHT)):
            if spec is not None and spec.domain != domain:
                raise ValidationError(f"Expected a {domain} spec, got {spec.domain}", field=f"{domain}_spec")

    def to_payload(self) -> dict:
        payload = {"model_path": self.model_path, "num_samples": self.num_samples}
        if self.image_dir:
            payload["image_dir"] = self.image_dir
        if self.activation_spec is not None:
            payload["fault_config"] = self.activation_spec.to_payload()
        if self.weight_spec is not None:
            payload["weight_fault_config"] = self.weight_spec.to_payload()
        return payload
