"""Tests for the layered tree layout."""

import pytest

from conftest import wide_tree
from vanshavali.config import LayoutConfig
from vanshavali.layout import (
    Layout,
    LayoutEdge,
    LayoutNode,
    compute_layout,
    count_crossings,
    visible_graph,
    visible_persons,
)
from vanshavali.models import Person, iter_persons
from vanshavali.mutations import toggle_collapse


def positions(layout):
    return {n.id: (n.depth, n.x, n.y) for n in layout.nodes}


class TestVisibleTraversal:
    def test_depth_starts_at_one(self, family):
        G = visible_graph(family)
        assert {n: G.nodes[n]["depth"] for n in G} == {"root": 1, "A": 2, "B": 2, "C": 3}

    def test_collapsed_children_are_excluded(self, family):
        G = visible_graph(toggle_collapse(family, "A"))
        assert "C" not in G
        assert "A" in G
        assert list(G.successors("A")) == []

    def test_visible_persons_preorder(self, family):
        assert [p.id for p in visible_persons(family)] == ["root", "A", "C", "B"]
        assert [p.id for p in visible_persons(toggle_collapse(family, "A"))] == ["root", "A", "B"]


class TestComputeLayout:
    def test_nodes_and_edges(self, family):
        layout = compute_layout(family)
        assert [n.id for n in layout.nodes] == ["root", "A", "C", "B"]
        assert layout.edges == [
            LayoutEdge("root", "A"),
            LayoutEdge("root", "B"),
            LayoutEdge("A", "C"),
        ]

    def test_coordinates(self, family):
        config = LayoutConfig(node_width=100, node_height=50, node_sep=20, rank_sep=30)
        layout = compute_layout(family, config)
        # Leaves C and B take slots 0 and 1; A sits over C; root over A and B
        assert positions(layout) == {
            "root": (1, 60.0, 0),
            "A": (2, 0, 80),
            "B": (2, 120, 80),
            "C": (3, 0, 160),
        }

    def test_parent_centred_over_children(self):
        layout = compute_layout(wide_tree())
        by_id = {n.id: n for n in layout.nodes}
        for parent in {e.parent_id for e in layout.edges}:
            xs = [by_id[e.child_id].x for e in layout.edges if e.parent_id == parent]
            assert by_id[parent].x == pytest.approx((xs[0] + xs[-1]) / 2)

    def test_uniform_spacing_without_overlap(self):
        config = LayoutConfig()
        layout = compute_layout(wide_tree(), config)
        for nodes in layout.ranks().values():
            for left, right in zip(nodes, nodes[1:]):
                assert right.x - left.x >= config.slot_width
        for node in layout.nodes:
            assert node.y == (node.depth - 1) * config.rank_height

    def test_no_edge_crossings(self):
        assert count_crossings(compute_layout(wide_tree())) == 0

    def test_rank_order_follows_children_order(self):
        ranks = compute_layout(wide_tree()).ranks()
        assert [n.id for n in ranks[2]] == ["a", "b", "c"]
        assert [n.id for n in ranks[3]] == ["a1", "a2", "a3", "c1"]

    def test_deterministic(self):
        first = compute_layout(wide_tree())
        second = compute_layout(wide_tree())
        assert positions(first) == positions(second)
        assert first.edges == second.edges

    def test_independent_of_call_history(self, family):
        expected = positions(compute_layout(family))
        compute_layout(wide_tree())
        compute_layout(toggle_collapse(family, "A"))
        assert positions(compute_layout(family)) == expected

    def test_same_shape_same_coordinates(self, family):
        renamed = Person(
            id="root",
            name="Someone else",
            generation=7,
            children=tuple(
                Person(id=c.id, name=c.name.upper(), generation=99, children=c.children)
                for c in family.children
            ),
        )
        assert positions(compute_layout(renamed)) == positions(compute_layout(family))

    def test_ignores_stale_generation(self):
        tree = Person(id="r", name="R", generation=5, children=(Person(id="k", name="K", generation=5),))
        layout = compute_layout(tree)
        assert layout.depth_of("r") == 1
        assert layout.depth_of("k") == 2

    def test_single_node(self):
        layout = compute_layout(Person(id="solo", name="Solo"))
        assert positions(layout) == {"solo": (1, 0, 0)}
        assert layout.edges == []


class TestCollapse:
    def test_collapsing_removes_descendants(self):
        tree = toggle_collapse(wide_tree(), "a")
        layout = compute_layout(tree)
        node_ids = {n.id for n in layout.nodes}

        descendants = {"a1", "a2", "a3", "a2x", "a2y"}
        assert node_ids.isdisjoint(descendants)
        assert "a" in node_ids
        assert not [e for e in layout.edges if e.parent_id == "a"]
        assert not [e for e in layout.edges if {e.parent_id, e.child_id} & descendants]

    def test_expanding_restores_layout(self):
        tree = wide_tree()
        toggled = toggle_collapse(toggle_collapse(tree, "a"), "a")
        assert positions(compute_layout(toggled)) == positions(compute_layout(tree))

    def test_collapsed_subtree_stays_in_memory(self):
        tree = toggle_collapse(wide_tree(), "a")
        assert {"a1", "a2x"} <= {p.id for p in iter_persons(tree)}


def test_count_crossings_detects_crossing():
    layout = Layout(
        nodes=[
            LayoutNode("p", 1, 0, 0),
            LayoutNode("q", 1, 10, 0),
            LayoutNode("x", 2, 0, 5),
            LayoutNode("y", 2, 10, 5),
        ],
        edges=[LayoutEdge("p", "y"), LayoutEdge("q", "x")],
    )
    assert count_crossings(layout) == 1
