"""Conversion between the nested tree and flat parent-referenced rows."""

from collections.abc import Callable, Iterable
import logging
from typing import TYPE_CHECKING

import networkx as nx

from vanshavali.errors import IntegrityError
from vanshavali.models import Gender, Location, Person, Row, Spouse

if TYPE_CHECKING:
    from vanshavali.sync import RowStore

logger = logging.getLogger(__name__)


def person_to_row(person: Person, parent_id: str | None) -> Row:
    """Flatten one person (without children) into a row."""
    spouse = person.spouse or Spouse()
    location = person.location
    return Row(
        id=person.id,
        parent_id=parent_id,
        name=person.name,
        generation=person.generation,
        gender=person.gender.value if person.gender else None,
        relation=person.relation,
        dob=person.date_of_birth,
        dod=person.date_of_death,
        occupation=person.occupation,
        phone=person.phone,
        anniversary_date=person.anniversary_date,
        photo_url=person.photo_url,
        spouse_name=spouse.name,
        spouse_occupation=spouse.occupation,
        spouse_phone=spouse.phone,
        spouse_dob=spouse.date_of_birth,
        spouse_dod=spouse.date_of_death,
        spouse_photo_url=spouse.photo_url,
        bio=person.bio,
        gallery=tuple(person.gallery),
        location_name=location.name if location else None,
        location_lat=location.lat if location else None,
        location_lng=location.lng if location else None,
    )


def row_to_person(row: Row, children: Iterable[Person] = ()) -> Person:
    spouse = Spouse(
        name=row.spouse_name,
        occupation=row.spouse_occupation,
        phone=row.spouse_phone,
        date_of_birth=row.spouse_dob,
        date_of_death=row.spouse_dod,
        photo_url=row.spouse_photo_url,
    )
    location = None
    if row.location_name:
        location = Location(name=row.location_name, lat=row.location_lat, lng=row.location_lng)

    return Person(
        id=row.id,
        name=row.name,
        generation=row.generation,
        gender=Gender(row.gender) if row.gender else None,
        relation=row.relation,
        date_of_birth=row.dob,
        date_of_death=row.dod,
        occupation=row.occupation,
        phone=row.phone,
        anniversary_date=row.anniversary_date,
        photo_url=row.photo_url,
        spouse=spouse if spouse != Spouse() else None,
        bio=row.bio,
        gallery=tuple(row.gallery),
        location=location,
        children=tuple(children),
    )


def flatten(tree: Person, assign_key: Callable[[Row], str] | None = None) -> list[Row]:
    """
    Flatten the tree into rows in pre-order.

    A child row references the key its parent was given, not necessarily the
    parent's local id, so each row is passed to `assign_key` before its
    children are visited.

    Args:
        tree: The tree to flatten
        assign_key: Returns the key the store assigned to a row. Defaults to
            keeping the local id.

    Returns:
        Rows in the order they must be written
    """
    rows: list[Row] = []

    def visit(person: Person, parent_key: str | None):
        row = person_to_row(person, parent_key)
        key = assign_key(row) if assign_key else row.id
        row.id = key
        rows.append(row)
        for child in person.children:
            visit(child, key)

    visit(tree, None)
    return rows


async def write_tree(
    tree: Person, store: "RowStore", parent_id: str | None = None
) -> dict[str, str]:
    """
    Insert a tree into a row store, parents before children.

    Returns:
        Mapping of local person id to the key the store assigned
    """
    keys: dict[str, str] = {}

    async def visit(person: Person, parent_key: str | None):
        stored = await store.insert(person_to_row(person, parent_key))
        keys[person.id] = stored.id
        logger.debug("Inserted %s -> %s", person.name, stored.id)
        for child in person.children:
            await visit(child, stored.id)

    await visit(tree, parent_id)
    return keys


def unflatten(rows: Iterable[Row]) -> Person:
    """
    Rebuild the tree from flat rows.

    Children keep the relative order their rows arrived in. The store does
    not promise insertion order, so this may differ from the order the tree
    was edited in.

    Raises:
        IntegrityError: zero or several roots, duplicate ids, a parent_id that
            references no row, or rows that cannot be reached from the root
    """
    rows = list(rows)

    roots = [row for row in rows if row.parent_id is None]
    if len(roots) != 1:
        raise IntegrityError(f"Expected exactly one root row, found {len(roots)}")

    by_id: dict[str, Row] = {}
    for row in rows:
        if row.id in by_id:
            raise IntegrityError(f"Duplicate row id {row.id}")
        by_id[row.id] = row

    # Group rows by parent, preserving arrival order
    children_of: dict[str, list[Row]] = {}
    for row in rows:
        if row.parent_id is None:
            continue
        if row.parent_id not in by_id:
            raise IntegrityError(f"Row {row.id} references missing parent {row.parent_id}")
        children_of.setdefault(row.parent_id, []).append(row)

    # One root and no orphans still allows a detached parent cycle
    G = nx.DiGraph()
    G.add_nodes_from(by_id)
    G.add_edges_from((row.parent_id, row.id) for row in rows if row.parent_id is not None)
    if not nx.is_arborescence(G):
        unreachable = set(by_id) - nx.descendants(G, roots[0].id) - {roots[0].id}
        raise IntegrityError(f"Rows not reachable from root: {sorted(unreachable)}")

    def build(row: Row) -> Person:
        return row_to_person(row, [build(child) for child in children_of.get(row.id, [])])

    return build(roots[0])
