"""Model-fit index checker.

Cut-offs follow Hu & Bentler (1999) and Kline (2023): incremental indices are
"good" at .95 and "acceptable" at .90; RMSEA and SRMR are "good" at .05 or lower
and "acceptable" below .08; chi-square/df is "good" at 3 or lower and "acceptable"
up to 5.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Mapping, Optional

STATUSES = ("good", "acceptable", "poor")


@dataclass(frozen=True)
class FitCriterion:
    name: str
    higher_is_better: bool
    good: float
    acceptable: float
    threshold: str
    advice: str
    # Upper cut-offs are strict for RMSEA/SRMR ("< .08") but inclusive for chi-square/df ("<= 5").
    strict_acceptable: bool = False


@dataclass(frozen=True)
class FitIndexResult:
    name: str
    value: float
    threshold: str
    status: str
    recommendation: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


FIT_CRITERIA: Dict[str, FitCriterion] = {
    "CHISQ_DF": FitCriterion(
        name="Chi-square/df",
        higher_is_better=False,
        good=3.0,
        acceptable=5.0,
        threshold="<= 3.00 (good), <= 5.00 (acceptable)",
        advice="Check sample size sensitivity and inspect modification indices for misspecified paths.",
    ),
    "CFI": FitCriterion(
        name="CFI",
        higher_is_better=True,
        good=0.95,
        acceptable=0.90,
        threshold=">= .95 (good), >= .90 (acceptable)",
        advice="Review low factor loadings (< .50) and consider theoretically justified residual covariances.",
    ),
    "TLI": FitCriterion(
        name="TLI",
        higher_is_better=True,
        good=0.95,
        acceptable=0.90,
        threshold=">= .95 (good), >= .90 (acceptable)",
        advice="TLI penalises complexity; remove weak indicators before adding parameters.",
    ),
    "RMSEA": FitCriterion(
        name="RMSEA",
        higher_is_better=False,
        good=0.05,
        acceptable=0.08,
        threshold="<= .05 (good), < .08 (acceptable)",
        advice="Inspect standardized residuals and the 90% CI; small df models inflate RMSEA.",
        strict_acceptable=True,
    ),
    "SRMR": FitCriterion(
        name="SRMR",
        higher_is_better=False,
        good=0.05,
        acceptable=0.08,
        threshold="<= .05 (good), < .08 (acceptable)",
        advice="Large residual correlations point to local misfit; check item wording and cross-loadings.",
        strict_acceptable=True,
    ),
    "GFI": FitCriterion(
        name="GFI",
        higher_is_better=True,
        good=0.95,
        acceptable=0.90,
        threshold=">= .95 (good), >= .90 (acceptable)",
        advice="GFI is sample-size sensitive; report it alongside CFI and RMSEA.",
    ),
    "NFI": FitCriterion(
        name="NFI",
        higher_is_better=True,
        good=0.95,
        acceptable=0.90,
        threshold=">= .95 (good), >= .90 (acceptable)",
        advice="NFI underestimates fit in small samples; prefer CFI/TLI for decisions.",
    ),
}

_ALIASES = {
    "CHISQ/DF": "CHISQ_DF",
    "CHI2/DF": "CHISQ_DF",
    "CMIN/DF": "CHISQ_DF",
    "X2/DF": "CHISQ_DF",
    "CHI-SQUARE/DF": "CHISQ_DF",
}


def normalize_index_name(name: str) -> Optional[str]:
    key = (name or "").strip().upper().replace(" ", "")
    key = _ALIASES.get(key, key)
    return key if key in FIT_CRITERIA else None


def classify_fit_index(name: str, value: float) -> FitIndexResult:
    key = normalize_index_name(name)
    if key is None:
        raise ValueError(f"Unknown fit index: {name}")
    criterion = FIT_CRITERIA[key]
    status = _classify(criterion, float(value))
    return FitIndexResult(
        name=criterion.name,
        value=float(value),
        threshold=criterion.threshold,
        status=status,
        recommendation=_recommendation(criterion, status),
    )


def evaluate_fit_indices(values: Mapping[str, Any]) -> List[FitIndexResult]:
    results: List[FitIndexResult] = []
    for name, raw_value in values.items():
        if normalize_index_name(name) is None or raw_value is None or raw_value == "":
            continue
        try:
            value = float(raw_value)
        except (TypeError, ValueError):
            continue
        results.append(classify_fit_index(name, value))
    return results


def summarize_fit(results: List[FitIndexResult]) -> Dict[str, Any]:
    counts = {status: 0 for status in STATUSES}
    for result in results:
        counts[result.status] += 1

    if not results:
        verdict = "none"
        message = "Enter at least one fit index to evaluate the model."
    elif counts["poor"] == 0 and counts["good"] >= counts["acceptable"]:
        verdict = "good"
        message = "The model shows good overall fit to the data."
    elif counts["poor"] == 0:
        verdict = "acceptable"
        message = "The model fit is acceptable; report the indices with their cut-offs."
    else:
        verdict = "poor"
        poor_names = ", ".join(result.name for result in results if result.status == "poor")
        message = f"Model re-specification is advised before interpretation ({poor_names})."

    return {"verdict": verdict, "message": message, "counts": counts}


def _classify(criterion: FitCriterion, value: float) -> str:
    if criterion.higher_is_better:
        if value >= criterion.good:
            return "good"
        if value >= criterion.acceptable:
            return "acceptable"
        return "poor"

    if value <= criterion.good:
        return "good"
    if value < criterion.acceptable or (not criterion.strict_acceptable and value == criterion.acceptable):
        return "acceptable"
    return "poor"


def _recommendation(criterion: FitCriterion, status: str) -> str:
    if status == "good":
        return f"{criterion.name} meets the recommended cut-off."
    if status == "acceptable":
        return f"{criterion.name} is within the acceptable range. {criterion.advice}"
    return f"{criterion.name} indicates poor fit. {criterion.advice}"
