import random
import uuid
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

NODE_KINDS = ("latent", "observed")
LINK_KINDS = ("directed", "covariance")

NodeData = Dict[str, Any]
LinkData = Dict[str, str]
PositionMap = Dict[str, Tuple[float, float]]

SPAWN_ORIGIN = 100.0
SPAWN_JITTER = 50.0


@dataclass
class Node:
    id: str
    label: str
    kind: str
    x: float
    y: float

    def to_dict(self) -> NodeData:
        data = asdict(self)
        data["type"] = data.pop("kind")
        return data

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Node":
        kind = str(raw.get("type", raw.get("kind", "latent")) or "latent")
        return cls(
            id=str(raw.get("id", "")),
            label=str(raw.get("label", "")),
            kind=kind if kind in NODE_KINDS else "latent",
            x=float(raw.get("x", 0.0) or 0.0),
            y=float(raw.get("y", 0.0) or 0.0),
        )


@dataclass(frozen=True)
class Link:
    source: str
    target: str
    kind: str = "directed"

    def to_dict(self) -> LinkData:
        return {"source": self.source, "target": self.target, "type": self.kind}

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Link":
        kind = str(raw.get("type", raw.get("kind", "directed")) or "directed")
        return cls(
            source=str(raw.get("source", "")),
            target=str(raw.get("target", "")),
            kind=kind if kind in LINK_KINDS else "directed",
        )

    def is_equivalent(self, other: "Link") -> bool:
        if self.source == other.source and self.target == other.target:
            return True
        # Covariance is symmetric; directed reversal is a different path.
        return other.kind == "covariance" and self.source == other.target and self.target == other.source


def default_nodes() -> List[Node]:
    return [
        Node(id="1", label="Leadership", kind="latent", x=50.0, y=50.0),
        Node(id="2", label="Quality", kind="latent", x=250.0, y=50.0),
        Node(id="3", label="Success", kind="latent", x=150.0, y=200.0),
    ]


def default_links() -> List[Link]:
    return [
        Link(source="1", target="3", kind="directed"),
        Link(source="2", target="3", kind="directed"),
    ]


class GraphStore:
    """Ordered nodes and links of the research canvas.

    All mutations go through this class. Rejected edits are silent and return
    a falsy value instead of raising.
    """

    def __init__(
        self,
        nodes: Optional[Iterable[Node]] = None,
        links: Optional[Iterable[Link]] = None,
        rng: Optional[random.Random] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self._nodes: List[Node] = list(nodes) if nodes is not None else default_nodes()
        self._links: List[Link] = list(links) if links is not None else default_links()
        self._rng = rng or random.Random()
        self._id_factory = id_factory or _new_node_id

    @property
    def nodes(self) -> List[Node]:
        return list(self._nodes)

    @property
    def links(self) -> List[Link]:
        return list(self._links)

    def nodes_as_dicts(self) -> List[NodeData]:
        return [node.to_dict() for node in self._nodes]

    def links_as_dicts(self) -> List[LinkData]:
        return [link.to_dict() for link in self._links]

    def get_node(self, node_id: str) -> Optional[Node]:
        for node in self._nodes:
            if node.id == node_id:
                return node
        return None

    def add_node(self, label: str, kind: str = "latent") -> Optional[Node]:
        if not (label or "").strip():
            return None
        if kind not in NODE_KINDS:
            raise ValueError(f"Unknown node kind: {kind}")

        node_id = self._id_factory()
        while self.get_node(node_id) is not None:
            node_id = self._id_factory()

        node = Node(
            id=node_id,
            label=label,
            kind=kind,
            x=SPAWN_ORIGIN + self._rng.random() * SPAWN_JITTER,
            y=SPAWN_ORIGIN + self._rng.random() * SPAWN_JITTER,
        )
        self._nodes.append(node)
        return node

    def move_node(self, node_id: str, x: float, y: float) -> bool:
        node = self.get_node(node_id)
        if node is None:
            return False
        node.x = float(x)
        node.y = float(y)
        return True

    def apply_positions(self, positions: PositionMap) -> int:
        moved = 0
        for node_id, (x, y) in positions.items():
            if self.move_node(node_id, x, y):
                moved += 1
        return moved

    def find_equivalent_link(self, candidate: Link) -> Optional[Link]:
        for link in self._links:
            if link.is_equivalent(candidate):
                return link
        return None

    def add_link(self, source: str, target: str, kind: str = "directed") -> Optional[Link]:
        if kind not in LINK_KINDS:
            raise ValueError(f"Unknown link kind: {kind}")
        if source == target:
            return None
        candidate = Link(source=source, target=target, kind=kind)
        if self.find_equivalent_link(candidate) is not None:
            return None
        self._links.append(candidate)
        return candidate

    def remove_last_link(self) -> Optional[Link]:
        if not self._links:
            return None
        return self._links.pop()

    def clear_links(self) -> int:
        removed = len(self._links)
        self._links = []
        return removed

    def reset(self) -> None:
        self._nodes = default_nodes()
        self._links = default_links()

    def resolved_links(self) -> List[Tuple[Link, Node, Node]]:
        """Links whose endpoints both exist, paired with their nodes."""
        lookup = {node.id: node for node in self._nodes}
        resolved = []
        for link in self._links:
            source = lookup.get(link.source)
            target = lookup.get(link.target)
            if source is None or target is None:
                continue
            resolved.append((link, source, target))
        return resolved


def _new_node_id() -> str:
    return f"n{uuid.uuid4().hex[:12]}"
