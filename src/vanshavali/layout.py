"""Layered top-to-bottom layout of the visible part of a family tree."""

from dataclasses import dataclass, field
import itertools

import networkx as nx

from vanshavali.config import LayoutConfig
from vanshavali.models import Person


@dataclass(frozen=True)
class LayoutNode:
    id: str
    depth: int  # Authoritative generation, root = 1
    x: float
    y: float


@dataclass(frozen=True)
class LayoutEdge:
    parent_id: str
    child_id: str


@dataclass
class Layout:
    nodes: list[LayoutNode] = field(default_factory=list)
    edges: list[LayoutEdge] = field(default_factory=list)

    def node(self, person_id: str) -> LayoutNode:
        for node in self.nodes:
            if node.id == person_id:
                return node
        raise KeyError(person_id)

    def depth_of(self, person_id: str) -> int:
        return self.node(person_id).depth

    def ranks(self) -> dict[int, list[LayoutNode]]:
        """Nodes grouped by depth, each rank ordered left to right."""
        ranks: dict[int, list[LayoutNode]] = {}
        for node in sorted(self.nodes, key=lambda n: (n.depth, n.x)):
            ranks.setdefault(node.depth, []).append(node)
        return ranks


def visible_graph(tree: Person) -> nx.DiGraph:
    """
    Build a directed parent -> child graph of the visible subtree.

    Children of a collapsed person are left out entirely; the collapsed person
    stays in the graph with no out-edges. Edges are added in display order, so
    successor order matches children order.
    """
    G = nx.DiGraph()
    stack = [(tree, 1)]
    while stack:
        person, depth = stack.pop()
        G.add_node(person.id, depth=depth, person=person)
        if person.is_collapsed:
            continue
        for child in person.children:
            G.add_edge(person.id, child.id)
        stack.extend((child, depth + 1) for child in reversed(person.children))
    G.graph["root"] = tree.id
    return G


def visible_persons(tree: Person) -> list[Person]:
    """The persons a viewer can currently see, in pre-order."""
    G = visible_graph(tree)
    return [G.nodes[n]["person"] for n in nx.dfs_preorder_nodes(G, G.graph["root"])]


def compute_layout(tree: Person, config: LayoutConfig | None = None) -> Layout:
    """
    Position the visible tree rank by rank, ancestors at the top.

    Nodes on a rank keep the pre-order of the tree, which gives a drawing
    without edge crossings. Leaves take consecutive slots of uniform width
    and every parent is centred over its first and last visible child. The
    result depends only on the shape of the visible tree.

    Args:
        tree: The tree snapshot; collapse flags are read from it
        config: Node footprint and spacing

    Returns:
        Layout with node centres and parent -> child edges
    """
    config = config or LayoutConfig()
    G = visible_graph(tree)
    root = G.graph["root"]

    # Horizontal slot of every node, leaves first
    slot: dict[str, float] = {}
    next_leaf = 0
    for node in nx.dfs_postorder_nodes(G, root):
        children = list(G.successors(node))
        if children:
            slot[node] = (slot[children[0]] + slot[children[-1]]) / 2
        else:
            slot[node] = next_leaf
            next_leaf += 1

    layout = Layout()
    for node in nx.dfs_preorder_nodes(G, root):
        depth = G.nodes[node]["depth"]
        layout.nodes.append(
            LayoutNode(
                id=node,
                depth=depth,
                x=slot[node] * config.slot_width,
                y=(depth - 1) * config.rank_height,
            )
        )
        layout.edges.extend(LayoutEdge(node, child) for child in G.successors(node))

    return layout


def count_crossings(layout: Layout) -> int:
    """Count pairs of edges between the same two ranks that cross."""
    by_id = {node.id: node for node in layout.nodes}

    # Group edges by the rank they leave from
    edges_by_rank: dict[int, list[tuple[float, float]]] = {}
    for edge in layout.edges:
        parent, child = by_id[edge.parent_id], by_id[edge.child_id]
        edges_by_rank.setdefault(parent.depth, []).append((parent.x, child.x))

    crossings = 0
    for edges in edges_by_rank.values():
        for (a_top, a_bottom), (b_top, b_bottom) in itertools.combinations(edges, 2):
            if (a_top - b_top) * (a_bottom - b_bottom) < 0:
                crossings += 1
    return crossings
