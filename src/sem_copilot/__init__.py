from importlib import import_module
from typing import Any

__all__ = [
    "GraphStore",
    "DiagramEditor",
    "generate_mermaid",
    "ConversationOrchestrator",
    "LocalStateStore",
]

_EXPORTS = {
    "GraphStore": ".graph_store",
    "DiagramEditor": ".diagram_editor",
    "generate_mermaid": ".mermaid_export",
    "ConversationOrchestrator": ".orchestrator",
    "LocalStateStore": ".persistence",
}


def __getattr__(name: str) -> Any:
    if name in _EXPORTS:
        module = import_module(_EXPORTS[name], __name__)
        return getattr(module, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
