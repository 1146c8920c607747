from src.sem_copilot.graph_store import Link, Node, default_links, default_nodes
from src.sem_copilot.mermaid_export import generate_mermaid, render_mermaid_preview_html, sanitize_label


def test_default_graph_generates_expected_text():
    text = generate_mermaid(default_nodes(), default_links())
    assert text == (
        "graph LR\n"
        "classDef latent fill:#fff,stroke:#333,stroke-width:2px,rx:50,ry:50;\n"
        "classDef observed fill:#f0f9ff,stroke:#0891b2,stroke-width:1px,rx:0,ry:0;\n"
        "1((Leadership)):::latent\n"
        "2((Quality)):::latent\n"
        "3((Success)):::latent\n"
        "1 --> 3\n"
        "2 --> 3\n"
    )


def test_generation_is_deterministic():
    nodes = default_nodes()
    links = default_links()
    assert generate_mermaid(nodes, links, True) == generate_mermaid(nodes, links, True)


def test_observed_nodes_covariances_and_whitespace():
    nodes = [Node("a", "Job Satisfaction", "latent", 0, 0), Node("b", "item 1", "observed", 0, 0)]
    text = generate_mermaid(nodes, [Link("a", "b", "covariance")])
    assert "a((Job_Satisfaction)):::latent" in text
    assert "b[item_1]:::observed" in text
    assert "a <--> b" in text


def test_dark_theme_swaps_class_defs():
    text = generate_mermaid([], [], dark_mode=True)
    assert "fill:#1e293b" in text
    assert "fill:#fff," not in text


def test_sanitize_label_replaces_each_whitespace_character():
    assert sanitize_label("a b\tc") == "a_b_c"


def test_preview_html_escapes_code_and_sets_theme():
    preview = render_mermaid_preview_html("graph LR\nA-->B", dark_mode=True)
    assert "A--&gt;B" in preview
    assert 'theme: "dark"' in preview
