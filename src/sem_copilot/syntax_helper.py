import re
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

SYNTAX_TEMPLATES: Dict[str, Dict[str, str]] = {
    "cfa": {
        "name": "Confirmatory Factor Analysis (CFA)",
        "description": "Measurement model with correlated latent factors.",
        "code": (
            "# Measurement model\n"
            "Leadership =~ L1 + L2 + L3 + L4\n"
            "Quality =~ Q1 + Q2 + Q3\n"
            "Success =~ S1 + S2 + S3\n"
        ),
    },
    "full_sem": {
        "name": "Full Structural Model (SEM)",
        "description": "Measurement model plus structural paths between latent variables.",
        "code": (
            "# Measurement model\n"
            "Leadership =~ L1 + L2 + L3 + L4\n"
            "Quality =~ Q1 + Q2 + Q3\n"
            "Success =~ S1 + S2 + S3\n"
            "\n"
            "# Structural model\n"
            "Success ~ Leadership + Quality\n"
        ),
    },
    "mediation": {
        "name": "Mediation Analysis",
        "description": "Indirect effect through a mediator with labelled paths.",
        "code": (
            "# Labelled paths\n"
            "Quality ~ a*Leadership\n"
            "Success ~ b*Quality + c*Leadership\n"
            "\n"
            "# Defined effects\n"
            "indirect := a*b\n"
            "total := c + (a*b)\n"
        ),
    },
    "multigroup": {
        "name": "Multi-group Invariance",
        "description": "Configural model; constrain loadings in SEMLj's multigroup options for metric invariance.",
        "code": (
            "Leadership =~ L1 + L2 + L3 + L4\n"
            "Success =~ S1 + S2 + S3\n"
            "Success ~ Leadership\n"
        ),
    },
}

JAMOVI_STEPS: Dict[str, List[str]] = {
    "cfa": [
        "Modules > jamovi library: install SEMLj (or use Factor > Confirmatory Factor Analysis).",
        "SEM > SEM (syntax): paste the measurement model.",
        "Output > enable standardized estimates, fit indices and modification indices.",
        "Report loadings (> .50), CR (> .70) and AVE (> .50).",
    ],
    "full_sem": [
        "SEM > SEM (syntax): paste the full model.",
        "Estimation > choose ML (or MLR for non-normal data).",
        "Output > enable R-squared and standardized estimates.",
        "Check CFI/TLI >= .90, RMSEA < .08, SRMR < .08 before interpreting paths.",
    ],
    "mediation": [
        "SEM > SEM (syntax): paste the labelled model.",
        "Options > Confidence intervals: bootstrap (5000 draws).",
        "Read the defined parameters table for indirect and total effects.",
    ],
    "multigroup": [
        "SEM > SEM (syntax): paste the model.",
        "Multigroup analysis > select the grouping variable.",
        "Compare configural, metric and scalar models with chi-square difference and delta CFI.",
    ],
}

_FACTOR_LINE = re.compile(r"^(?P<factor>[^:~=]+?)\s*(?::|=~)\s*(?P<items>.+)$")
_COVARIANCE_LINE = re.compile(r"^(?P<left>[^~]+?)\s*~~\s*(?P<right>.+)$")
_REGRESSION_LINE = re.compile(r"^(?P<outcome>[^~]+?)\s*(?:~|<-)\s*(?P<predictors>.+)$")
_ARROW_LINE = re.compile(r"^(?P<predictors>.+?)\s*->\s*(?P<outcome>.+)$")


@dataclass
class ModelOutline:
    factors: List[Tuple[str, List[str]]] = field(default_factory=list)
    regressions: List[Tuple[str, List[str]]] = field(default_factory=list)
    covariances: List[Tuple[str, str]] = field(default_factory=list)
    skipped_lines: List[str] = field(default_factory=list)


def list_syntax_templates() -> List[Dict[str, str]]:
    return [
        {"id": template_id, "name": template["name"], "description": template["description"]}
        for template_id, template in SYNTAX_TEMPLATES.items()
    ]


def get_syntax_template(template_id: str) -> str:
    if template_id not in SYNTAX_TEMPLATES:
        raise KeyError(f"Unknown syntax template: {template_id}")
    return SYNTAX_TEMPLATES[template_id]["code"]


def get_jamovi_steps(template_id: str) -> List[str]:
    return list(JAMOVI_STEPS.get(template_id, []))


def parse_model_outline(text: str) -> ModelOutline:
    """Read a loose outline such as ``Leadership: L1, L2`` or ``Success ~ Leadership``."""
    outline = ModelOutline()
    for raw_line in (text or "").splitlines():
        line = raw_line.split("#", 1)[0].strip()
        if not line:
            continue
        if ":=" in line:
            outline.skipped_lines.append(raw_line)
            continue

        match = _COVARIANCE_LINE.match(line)
        if match:
            outline.covariances.append((_token(match.group("left")), _token(match.group("right"))))
            continue

        match = _FACTOR_LINE.match(line)
        if match:
            items = _split_terms(match.group("items"))
            if items:
                outline.factors.append((_token(match.group("factor")), items))
                continue

        match = _ARROW_LINE.match(line)
        if match:
            outline.regressions.append((_token(match.group("outcome")), _split_terms(match.group("predictors"))))
            continue

        match = _REGRESSION_LINE.match(line)
        if match:
            predictors = _split_terms(match.group("predictors"))
            if predictors:
                outline.regressions.append((_token(match.group("outcome")), predictors))
                continue

        outline.skipped_lines.append(raw_line)
    return outline


def build_lavaan_syntax(outline: ModelOutline) -> str:
    sections: List[str] = []
    if outline.factors:
        lines = ["# Measurement model"]
        lines.extend(f"{factor} =~ {' + '.join(items)}" for factor, items in outline.factors)
        sections.append("\n".join(lines))
    if outline.regressions:
        lines = ["# Structural model"]
        lines.extend(
            f"{outcome} ~ {' + '.join(predictors)}"
            for outcome, predictors in _merge_regressions(outline.regressions)
        )
        sections.append("\n".join(lines))
    if outline.covariances:
        lines = ["# Covariances"]
        lines.extend(f"{left} ~~ {right}" for left, right in outline.covariances)
        sections.append("\n".join(lines))
    if not sections:
        return ""
    return "\n\n".join(sections) + "\n"


def _merge_regressions(regressions: List[Tuple[str, List[str]]]) -> List[Tuple[str, List[str]]]:
    merged: Dict[str, List[str]] = {}
    for outcome, predictors in regressions:
        bucket = merged.setdefault(outcome, [])
        for predictor in predictors:
            if predictor not in bucket:
                bucket.append(predictor)
    return list(merged.items())


def _split_terms(text: str) -> List[str]:
    return [_token(part) for part in re.split(r"[,+]", text) if part.strip()]


def _token(text: str) -> str:
    return re.sub(r"\s+", "_", text.strip())
