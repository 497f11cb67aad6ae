"""
Pure tree edits.

Every function takes a tree snapshot and returns a new one; the input is never
modified. The path from the root to the edited node is rebuilt and all other
subtrees are shared with the input. Edits that target a missing id are logged
and return the input snapshot itself.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields, replace
import logging

from vanshavali.errors import NotFoundError
from vanshavali.models import Gender, Person, find_person, get_person, new_person_id

logger = logging.getLogger(__name__)

# Fields that can never be set through update_attributes
PROTECTED_FIELDS = frozenset({"id", "children"})
PERSON_FIELDS = frozenset(f.name for f in fields(Person))

CHILD_TYPES = {
    "son": ("New Son", "Son", Gender.MALE),
    "daughter": ("New Daughter", "Daughter", Gender.FEMALE),
}


@dataclass(frozen=True)
class ChildSpec:
    type: str = "son"  # "son" or "daughter"
    name: str | None = None
    id: str | None = None

    def build(self, generation: int) -> Person:
        if self.type not in CHILD_TYPES:
            raise ValueError(f"Unknown child type: {self.type!r}")
        default_name, relation, gender = CHILD_TYPES[self.type]
        return Person(
            id=self.id or new_person_id(),
            name=self.name or default_name,
            generation=generation,
            relation=relation,
            gender=gender,
        )


def _rewrite(
    node: Person, person_id: str, edit: Callable[[Person], Person | None]
) -> Person | None:
    """
    Rebuild the path from `node` down to `person_id`, applying `edit` there.

    Returns `node` itself when nothing below it changed. A child for which
    `edit` returns None is dropped from its parent's children.
    """
    if node.id == person_id:
        return edit(node)

    new_children = []
    changed = False
    for child in node.children:
        new_child = _rewrite(child, person_id, edit)
        if new_child is not child:
            changed = True
        if new_child is not None:
            new_children.append(new_child)

    if not changed:
        return node
    return replace(node, children=tuple(new_children))


def _ensure_unused(tree: Person, person_id: str):
    if find_person(tree, person_id) is not None:
        raise ValueError(f"Person ID {person_id} already exists in tree")


def add_child(tree: Person, parent_id: str, spec: ChildSpec | None = None) -> Person:
    """Append a new child to the end of the parent's children."""
    spec = spec or ChildSpec()
    try:
        parent = get_person(tree, parent_id)
    except NotFoundError as e:
        logger.warning("add_child skipped: %s", e)
        return tree

    if spec.id is not None:
        _ensure_unused(tree, spec.id)
    child = spec.build(parent.generation + 1)

    return _rewrite(tree, parent_id, lambda p: replace(p, children=p.children + (child,)))


def add_parent_above_root(
    tree: Person,
    name: str = "New Ancestor",
    gender: Gender | None = Gender.MALE,
    person_id: str | None = None,
) -> Person:
    """
    Put a new root above the current one.

    Cached generations of the old tree are not renumbered; the layout depth is
    the authoritative generation.
    """
    if person_id is not None:
        _ensure_unused(tree, person_id)
    return Person(
        id=person_id or new_person_id(),
        name=name,
        generation=1,
        gender=gender,
        children=(tree,),
    )


def delete_subtree(tree: Person, person_id: str) -> Person:
    """Remove a person and all of their descendants. The root is never removed."""
    if tree.id == person_id:
        logger.warning("delete_subtree skipped: cannot delete the root node %s", person_id)
        return tree
    try:
        get_person(tree, person_id)
    except NotFoundError as e:
        logger.warning("delete_subtree skipped: %s", e)
        return tree

    return _rewrite(tree, person_id, lambda p: None)


def toggle_collapse(tree: Person, person_id: str) -> Person:
    try:
        get_person(tree, person_id)
    except NotFoundError as e:
        logger.warning("toggle_collapse skipped: %s", e)
        return tree

    return _rewrite(tree, person_id, lambda p: replace(p, is_collapsed=not p.is_collapsed))


def _patch_values(patch: Person | Mapping) -> dict:
    if isinstance(patch, Person):
        return {
            f.name: getattr(patch, f.name)
            for f in fields(Person)
            if f.name not in PROTECTED_FIELDS
        }

    values = dict(patch)
    protected = PROTECTED_FIELDS.intersection(values)
    if protected:
        raise ValueError(f"Cannot patch protected fields: {sorted(protected)}")
    unknown = set(values) - PERSON_FIELDS
    if unknown:
        raise ValueError(f"Unknown person fields: {sorted(unknown)}")
    if values.get("gender") is not None:
        # Raises ValueError for anything that is not a Gender name
        values["gender"] = Gender(values["gender"])
    return values


def update_attributes(tree: Person, person_id: str, patch: Person | Mapping) -> Person:
    """
    Replace a person's own fields, keeping their children.

    Args:
        tree: The current snapshot
        person_id: The person to edit
        patch: Either a mapping of field names to new values, or a whole
            Person whose fields (other than id and children) are copied over

    Returns:
        The new snapshot, or `tree` itself if `person_id` is not present
    """
    values = _patch_values(patch)
    try:
        get_person(tree, person_id)
    except NotFoundError as e:
        logger.warning("update_attributes skipped: %s", e)
        return tree

    return _rewrite(tree, person_id, lambda p: replace(p, **values))
