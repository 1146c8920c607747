from typing import Dict, Optional, Sequence, Tuple

TOOL_MODES = ("conceptual", "fit_checker", "apa_table", "jamovi")
DEFAULT_TOOL_MODE = "conceptual"

TOOL_LABEL_KEYS: Dict[str, str] = {
    "conceptual": "toolCanvas",
    "fit_checker": "toolFit",
    "apa_table": "toolApa",
    "jamovi": "toolJamovi",
}

# Checked in order; the first set with any hit wins.
DEFAULT_TOOL_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("fit_checker", ("cfi", "rmsea", "fit index")),
    ("apa_table", ("apa table", "ตาราง")),
    ("jamovi", ("jamovi", "syntax", "code")),
)

KeywordSets = Sequence[Tuple[str, Sequence[str]]]


def normalize_tool_mode(mode: str) -> str:
    if mode in TOOL_MODES:
        return mode
    return DEFAULT_TOOL_MODE


def suggest_tool(answer_text: str, keyword_sets: Optional[KeywordSets] = None) -> Optional[str]:
    lowered = (answer_text or "").lower()
    if not lowered:
        return None
    for mode, keywords in keyword_sets if keyword_sets is not None else DEFAULT_TOOL_KEYWORDS:
        if any(keyword.lower() in lowered for keyword in keywords):
            return mode
    return None


def should_show_suggestion(suggested: Optional[str], active_mode: str) -> bool:
    return bool(suggested) and suggested != active_mode


def format_tool_name(mode: str) -> str:
    return mode.replace("_", " ")


def get_export_filename(kind: str) -> str:
    filenames = {
        "mermaid": "sem_model.mmd",
        "markdown": "APA_Table_DrSEM.md",
        "pdf": "APA_Table_DrSEM.pdf",
        "lavaan": "sem_model_lavaan.txt",
    }
    if kind not in filenames:
        raise ValueError(f"Unknown export kind: {kind}")
    return filenames[kind]
