import html
import re
from typing import Dict, Iterable

from .graph_store import Link, Node

LIGHT_CLASS_DEFS = (
    "classDef latent fill:#fff,stroke:#333,stroke-width:2px,rx:50,ry:50;",
    "classDef observed fill:#f0f9ff,stroke:#0891b2,stroke-width:1px,rx:0,ry:0;",
)
DARK_CLASS_DEFS = (
    "classDef latent fill:#1e293b,stroke:#e2e8f0,stroke-width:2px,rx:50,ry:50,color:#fff;",
    "classDef observed fill:#0f172a,stroke:#06b6d4,stroke-width:1px,rx:0,ry:0,color:#fff;",
)

SHAPE_WRAPPERS: Dict[str, str] = {
    "latent": "(({label}))",
    "observed": "[{label}]",
}
ARROWS: Dict[str, str] = {
    "directed": "-->",
    "covariance": "<-->",
}

MERMAID_CDN_URL = "https://cdn.jsdelivr.net/npm/mermaid@10/dist/mermaid.min.js"

_WHITESPACE = re.compile(r"\s")


def sanitize_label(label: str) -> str:
    return _WHITESPACE.sub("_", label or "")


def generate_mermaid(nodes: Iterable[Node], links: Iterable[Link], dark_mode: bool = False) -> str:
    lines = ["graph LR"]
    lines.extend(DARK_CLASS_DEFS if dark_mode else LIGHT_CLASS_DEFS)

    for node in nodes:
        shape = SHAPE_WRAPPERS.get(node.kind, SHAPE_WRAPPERS["latent"])
        lines.append(f"{node.id}{shape.format(label=sanitize_label(node.label))}:::{node.kind}")

    for link in links:
        arrow = ARROWS.get(link.kind, ARROWS["directed"])
        lines.append(f"{link.source} {arrow} {link.target}")

    return "\n".join(lines) + "\n"


def render_mermaid_preview_html(mermaid_code: str, dark_mode: bool = False) -> str:
    escaped = html.escape(mermaid_code or "")
    theme = "dark" if dark_mode else "default"
    background = "#0f172a" if dark_mode else "#ffffff"
    return f"""
<div style="padding: 8px; background: {background};">
  <pre class="mermaid">{escaped}</pre>
  <div id="render_error" style="color:#b91c1c;font-family:monospace;"></div>
</div>
<script>
  function formatMermaidError(err) {{
    if (!err) return "unknown error";
    if (typeof err === "string") return err;
    if (err.message) return err.message;
    try {{
      return JSON.stringify(err, null, 2);
    }} catch (_) {{
      return String(err);
    }}
  }}

  function renderMermaid() {{
    try {{
      mermaid.initialize({{ startOnLoad: false, theme: "{theme}", securityLevel: "loose" }});
      mermaid.run({{ nodes: document.querySelectorAll(".mermaid") }}).catch((err) => {{
        document.getElementById("render_error").textContent =
          "Mermaid render error: " + formatMermaidError(err);
      }});
    }} catch (err) {{
      document.getElementById("render_error").textContent =
        "Mermaid init error: " + formatMermaidError(err);
    }}
  }}

  if (window.mermaid) {{
    renderMermaid();
  }} else {{
    const script = document.createElement("script");
    script.src = "{MERMAID_CDN_URL}";
    script.onload = renderMermaid;
    script.onerror = function() {{
      document.getElementById("render_error").textContent = "Failed to load Mermaid runtime.";
    }};
    document.head.appendChild(script);
  }}
</script>
"""
