"""DOT export of a computed family tree layout."""

from pathlib import Path

import pydot

from vanshavali.layout import Layout, visible_graph
from vanshavali.models import Gender, Person

# Graphviz positions are in points, layout coordinates in pixels
POINTS_PER_PIXEL = 0.75


def _label(person: Person) -> str:
    # Extract years from dates (assume format like "YYYY-MM-DD" or just "YYYY")
    birth_year = person.date_of_birth[:4] if person.date_of_birth else ""
    death_year = person.date_of_death[:4] if person.date_of_death else ""
    label = person.name
    if person.spouse and person.spouse.name:
        label = f"{label}\n& {person.spouse.name}"
    if birth_year or death_year:
        label = f"{label}\n{birth_year}-{death_year}"
    return label


def layout_to_dot(tree: Person, layout: Layout) -> pydot.Dot:
    """
    Build a pydot graph of the visible tree with node positions pinned.

    Creates a genealogical chart where:
    - Ancestors are at the top (rankdir TB)
    - Every person sits at the centre computed by the layout
    - Persons are coloured by gender

    Args:
        tree: The tree snapshot the layout was computed from
        layout: Output of compute_layout for `tree`

    Returns:
        A pydot.Dot that can be written as DOT source or rendered by Graphviz
        with `neato -n`
    """
    G = visible_graph(tree)

    P = pydot.Dot(graph_type="digraph")
    P.set("rankdir", "TB")  # Top-to-bottom (ancestors at top)
    P.set("splines", "ortho")  # Orthogonal edges for cleaner tree look

    for node in layout.nodes:
        person = G.nodes[node.id]["person"]

        # Color by gender
        if person.gender == Gender.MALE:
            fillcolor = "lightblue"
        elif person.gender == Gender.FEMALE:
            fillcolor = "lightpink"
        else:
            fillcolor = "lightgray"

        # Graphviz y grows upwards
        x = node.x * POINTS_PER_PIXEL
        y = -node.y * POINTS_PER_PIXEL
        P.add_node(
            pydot.Node(
                node.id,
                label=_label(person),
                shape="box",
                style="rounded,filled",
                fillcolor=fillcolor,
                fontsize="10",
                pos=f"{x:g},{y:g}!",
            )
        )

    for edge in layout.edges:
        P.add_edge(pydot.Edge(edge.parent_id, edge.child_id, color="darkgray"))

    return P


def write_dot(tree: Person, layout: Layout, output_path: Path):
    """Write the DOT source of the layout to a file."""
    output_path = Path(output_path)
    output_path.write_text(layout_to_dot(tree, layout).to_string(), encoding="utf-8")
    print(f"Graph saved to {output_path}")
