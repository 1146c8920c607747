"""Interaction state machine for the research canvas.

The editor owns a :class:`GraphStore` and interprets pointer input according to
the current mode. ``move`` repositions nodes; ``link`` connects two nodes with
the currently selected link kind. Invalid edits are ignored without raising.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .graph_layout import calculate_sem_layout
from .graph_store import LINK_KINDS, GraphStore, Link, Node
from .mermaid_export import generate_mermaid

logger = logging.getLogger(__name__)

INTERACTION_MODES = ("move", "link")

# Half extents of the rendered node boxes; latent ovals are 100x50, observed boxes 120x50.
NODE_HALF_WIDTH: Dict[str, float] = {"latent": 50.0, "observed": 60.0}
NODE_HALF_HEIGHT = 25.0

Point = Tuple[float, float]
Confirmation = Union[bool, Callable[[], bool]]
ChangeListener = Callable[["DiagramEditor"], None]


def node_anchor(node: Node) -> Point:
    return (
        node.x + NODE_HALF_WIDTH.get(node.kind, NODE_HALF_WIDTH["latent"]),
        node.y + NODE_HALF_HEIGHT,
    )


class DiagramEditor:
    def __init__(
        self,
        store: Optional[GraphStore] = None,
        dark_mode: bool = False,
        on_change: Optional[ChangeListener] = None,
    ) -> None:
        self.store = store if store is not None else GraphStore()
        self.dark_mode = dark_mode
        self.on_change = on_change
        self.mode = "move"
        self.link_kind = "directed"
        self.pending_source_id: Optional[str] = None
        self.preview_end: Optional[Point] = None
        self.mermaid_text = generate_mermaid(self.store.nodes, self.store.links, dark_mode)

    def set_move_mode(self) -> None:
        self.mode = "move"
        self._clear_pending()

    def set_link_mode(self, kind: Optional[str] = None) -> None:
        self.mode = "link"
        self._clear_pending()
        if kind is not None:
            self.set_link_kind(kind)

    def set_link_kind(self, kind: str) -> None:
        if kind not in LINK_KINDS:
            raise ValueError(f"Unknown link kind: {kind}")
        self.link_kind = kind

    def set_dark_mode(self, dark_mode: bool) -> None:
        if self.dark_mode == dark_mode:
            return
        self.dark_mode = dark_mode
        self.mermaid_text = generate_mermaid(self.store.nodes, self.store.links, self.dark_mode)

    def add_node(self, label: str, kind: str = "latent") -> Optional[Node]:
        node = self.store.add_node(label, kind)
        if node is not None:
            self.refresh()
        return node

    def click_node(self, node_id: str) -> Optional[Link]:
        """Handle a click on a node and return the link it created, if any."""
        if self.mode != "link":
            return None
        if self.store.get_node(node_id) is None:
            return None

        if self.pending_source_id is None:
            self.pending_source_id = node_id
            return None

        if self.pending_source_id == node_id:
            self._clear_pending()
            return None

        source_id = self.pending_source_id
        self._clear_pending()
        link = self.store.add_link(source_id, node_id, self.link_kind)
        if link is None:
            logger.debug("Ignored duplicate link %s -> %s (%s)", source_id, node_id, self.link_kind)
            return None
        self.refresh()
        return link

    def pointer_move(self, x: float, y: float) -> None:
        if self.mode == "link" and self.pending_source_id is not None:
            self.preview_end = (float(x), float(y))

    def preview_line(self) -> Optional[Tuple[Point, Point]]:
        if self.pending_source_id is None or self.preview_end is None:
            return None
        source = self.store.get_node(self.pending_source_id)
        if source is None:
            return None
        return node_anchor(source), self.preview_end

    def drop_node(self, node_id: str, pointer_x: float, pointer_y: float) -> bool:
        if self.mode != "move":
            return False
        node = self.store.get_node(node_id)
        if node is None:
            return False
        half_width = NODE_HALF_WIDTH.get(node.kind, NODE_HALF_WIDTH["latent"])
        self.store.move_node(node_id, pointer_x - half_width, pointer_y - NODE_HALF_HEIGHT)
        self.refresh()
        return True

    def move_node(self, node_id: str, x: float, y: float) -> bool:
        if self.mode != "move":
            return False
        moved = self.store.move_node(node_id, x, y)
        if moved:
            self.refresh()
        return moved

    def auto_arrange(self) -> int:
        moved = self.store.apply_positions(calculate_sem_layout(self.store.nodes, self.store.links))
        if moved:
            self.refresh()
        return moved

    def undo_last_link(self) -> Optional[Link]:
        removed = self.store.remove_last_link()
        if removed is not None:
            self.refresh()
        return removed

    def clear_links(self, confirm: Confirmation) -> int:
        if not self.store.links:
            return 0
        confirmed = confirm() if callable(confirm) else confirm
        if not confirmed:
            return 0
        removed = self.store.clear_links()
        self.refresh()
        return removed

    def line_segments(self) -> List[Dict[str, Any]]:
        """Drawable segments for every link whose endpoints exist."""
        return [
            {
                "source": link.source,
                "target": link.target,
                "kind": link.kind,
                "start": node_anchor(source),
                "end": node_anchor(target),
            }
            for link, source, target in self.store.resolved_links()
        ]

    def refresh(self) -> str:
        self.mermaid_text = generate_mermaid(self.store.nodes, self.store.links, self.dark_mode)
        if self.on_change is not None:
            self.on_change(self)
        return self.mermaid_text

    def _clear_pending(self) -> None:
        self.pending_source_id = None
        self.preview_end = None
