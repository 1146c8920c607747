from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .graph_store import Link, Node, PositionMap

LATENT_NODE_STYLE = {"borderRadius": "50%", "width": 100, "height": 50}
OBSERVED_NODE_STYLE = {"borderRadius": "4px", "width": 120, "height": 50}
PENDING_SOURCE_STYLE = {"border": "2px solid #f59e0b"}


def to_flow_node_specs(nodes: Sequence[Node], pending_source_id: Optional[str] = None) -> List[Dict[str, Any]]:
    specs: List[Dict[str, Any]] = []
    for node in nodes:
        style = dict(LATENT_NODE_STYLE if node.kind == "latent" else OBSERVED_NODE_STYLE)
        if node.id == pending_source_id:
            style.update(PENDING_SOURCE_STYLE)
        specs.append(
            {
                "id": node.id,
                "pos": (float(node.x), float(node.y)),
                "data": {"content": node.label},
                "node_type": "default",
                "source_position": "right",
                "target_position": "left",
                "draggable": True,
                "style": style,
            }
        )
    return specs


def to_flow_edge_specs(resolved_links: Sequence[Tuple[Link, Node, Node]]) -> List[Dict[str, Any]]:
    """Edge specs for links whose endpoints both exist, as given by ``GraphStore.resolved_links``."""
    specs: List[Dict[str, Any]] = []
    for index, (link, _, _) in enumerate(resolved_links):
        covariance = link.kind == "covariance"
        specs.append(
            {
                "id": f"e{index}_{link.source}_{link.target}",
                "source": link.source,
                "target": link.target,
                "edge_type": "default" if covariance else "straight",
                "animated": covariance,
                "marker_end": {"type": "arrowclosed"},
                "marker_start": {"type": "arrowclosed"} if covariance else {},
            }
        )
    return specs


def _get_item_value(item: Any, key: str, default: Any = None) -> Any:
    if isinstance(item, Mapping):
        return item.get(key, default)
    return getattr(item, key, default)


def flow_positions(flow_nodes: Sequence[Any]) -> PositionMap:
    """Positions reported back by the canvas, keyed by node id."""
    positions: PositionMap = {}
    for node in flow_nodes:
        node_id = str(_get_item_value(node, "id", "") or "")
        pos = _get_item_value(node, "pos", None)
        if pos is None:
            pos = _get_item_value(node, "position", None)
        if not node_id or pos is None:
            continue
        if isinstance(pos, Mapping):
            x, y = pos.get("x", 0.0), pos.get("y", 0.0)
        else:
            x, y = pos[0], pos[1]
        positions[node_id] = (float(x), float(y))
    return positions


def changed_positions(nodes: Sequence[Node], reported: PositionMap, tolerance: float = 0.5) -> PositionMap:
    """Reported positions that differ from the stored ones."""
    current = {node.id: (node.x, node.y) for node in nodes}
    changed: PositionMap = {}
    for node_id, (x, y) in reported.items():
        if node_id not in current:
            continue
        cx, cy = current[node_id]
        if abs(cx - x) > tolerance or abs(cy - y) > tolerance:
            changed[node_id] = (x, y)
    return changed
