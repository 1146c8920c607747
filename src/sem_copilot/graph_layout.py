from typing import Callable, Dict, Iterable, List, Tuple

import networkx as nx

from .graph_store import Link, Node, PositionMap

LAYER_X_GAP = 220.0
LAYER_Y_GAP = 110.0
PADDING_X = 40.0
PADDING_Y = 40.0


def build_path_graph(nodes: Iterable[Node], links: Iterable[Link]) -> nx.DiGraph:
    """Directed path structure of the model; covariances do not order layers."""
    graph = nx.DiGraph()
    for node in nodes:
        graph.add_node(node.id)
    for link in links:
        if link.kind != "directed":
            continue
        if link.source in graph and link.target in graph:
            graph.add_edge(link.source, link.target)
    return graph


def calculate_sem_layout(nodes: List[Node], links: List[Link]) -> PositionMap:
    ordered_node_ids = [node.id for node in nodes]
    if not ordered_node_ids:
        return {}

    dag = _make_acyclic(build_path_graph(nodes, links), ordered_node_ids)
    levels = _assign_levels(dag, ordered_node_ids)
    layers = _reduce_crossings(dag, _build_layers(levels, ordered_node_ids), sweeps=4)

    positions: PositionMap = {}
    for level_idx, layer in enumerate(layers):
        # Left-to-right, matching the "graph LR" preview.
        x = level_idx * LAYER_X_GAP
        start_y = -((len(layer) - 1) * LAYER_Y_GAP) / 2.0
        for index, node_id in enumerate(layer):
            positions[node_id] = (x, start_y + index * LAYER_Y_GAP)

    return _shift_positions_to_positive(positions)


def _make_acyclic(graph: nx.DiGraph, ordered_node_ids: List[str]) -> nx.DiGraph:
    order = {node_id: idx for idx, node_id in enumerate(ordered_node_ids)}
    dag = graph.copy()

    while not nx.is_directed_acyclic_graph(dag):
        cycle = nx.find_cycle(dag)
        # Drop the most backward edge in node order to keep the forward flow.
        source, target = max(
            ((edge[0], edge[1]) for edge in cycle),
            key=lambda edge: (order.get(edge[0], 0) - order.get(edge[1], 0), order.get(edge[0], 0)),
        )
        dag.remove_edge(source, target)

    return dag


def _assign_levels(dag: nx.DiGraph, ordered_node_ids: List[str]) -> Dict[str, int]:
    levels: Dict[str, int] = {node_id: 0 for node_id in ordered_node_ids}
    for node_id in nx.topological_sort(dag):
        preds = list(dag.predecessors(node_id))
        if preds:
            levels[node_id] = max(levels[pred] + 1 for pred in preds)
    return levels


def _build_layers(levels: Dict[str, int], ordered_node_ids: List[str]) -> List[List[str]]:
    layer_map: Dict[int, List[str]] = {}
    for node_id in ordered_node_ids:
        layer_map.setdefault(levels.get(node_id, 0), []).append(node_id)
    return [layer_map[level] for level in sorted(layer_map.keys())]


def _reduce_crossings(dag: nx.DiGraph, layers: List[List[str]], sweeps: int = 4) -> List[List[str]]:
    if len(layers) <= 1:
        return layers

    arranged = [list(layer) for layer in layers]
    for _ in range(sweeps):
        for layer_idx in range(1, len(arranged)):
            arranged[layer_idx] = _order_layer_by_reference(
                arranged[layer_idx], arranged[layer_idx - 1], dag.predecessors
            )
        for layer_idx in range(len(arranged) - 2, -1, -1):
            arranged[layer_idx] = _order_layer_by_reference(
                arranged[layer_idx], arranged[layer_idx + 1], dag.successors
            )
    return arranged


def _order_layer_by_reference(
    target_layer: List[str],
    reference_layer: List[str],
    neighbor_getter: Callable[[str], Iterable[str]],
) -> List[str]:
    ref_index = {node_id: idx for idx, node_id in enumerate(reference_layer)}
    current_index = {node_id: idx for idx, node_id in enumerate(target_layer)}

    def key(node_id: str) -> Tuple[float, int]:
        neighbors = [n for n in neighbor_getter(node_id) if n in ref_index]
        if neighbors:
            barycenter = sum(ref_index[n] for n in neighbors) / float(len(neighbors))
        else:
            barycenter = float(current_index[node_id])
        return barycenter, current_index[node_id]

    return sorted(target_layer, key=key)


def _shift_positions_to_positive(positions: PositionMap) -> PositionMap:
    if not positions:
        return positions

    min_x = min(pos[0] for pos in positions.values())
    min_y = min(pos[1] for pos in positions.values())
    shift_x = PADDING_X - min_x
    shift_y = PADDING_Y - min_y

    return {node_id: (float(x + shift_x), float(y + shift_y)) for node_id, (x, y) in positions.items()}
