"""Data classes for family tree entities."""

from collections.abc import Iterator
from dataclasses import dataclass, fields
from enum import Enum
import uuid

from vanshavali.errors import NotFoundError


class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"


@dataclass(frozen=True)
class Location:
    name: str
    lat: float | None = None
    lng: float | None = None


@dataclass(frozen=True)
class Spouse:
    name: str | None = None
    occupation: str | None = None
    phone: str | None = None
    date_of_birth: str | None = None  # ISO format YYYY-MM-DD or None
    date_of_death: str | None = None
    photo_url: str | None = None


@dataclass(frozen=True)
class Person:
    """
    A node of the family tree.

    Instances are immutable; every edit builds a new snapshot and shares the
    subtrees it did not touch. `generation` is a cached hint only, the
    authoritative value is the depth computed by the layout.
    """

    id: str
    name: str
    generation: int = 1
    gender: Gender | None = None
    relation: str | None = None  # e.g. "Son", "Mukhya Purush"
    date_of_birth: str | None = None
    date_of_death: str | None = None
    occupation: str | None = None
    phone: str | None = None
    anniversary_date: str | None = None
    photo_url: str | None = None
    spouse: Spouse | None = None
    bio: str | None = None
    gallery: tuple[str, ...] = ()
    location: Location | None = None
    is_collapsed: bool = False
    children: tuple["Person", ...] = ()


@dataclass
class Row:
    """Flat form of a person as held by the row store."""

    id: str | None
    parent_id: str | None
    name: str
    generation: int = 1
    gender: str | None = None
    relation: str | None = None
    dob: str | None = None
    dod: str | None = None
    occupation: str | None = None
    phone: str | None = None
    anniversary_date: str | None = None
    photo_url: str | None = None
    spouse_name: str | None = None
    spouse_occupation: str | None = None
    spouse_phone: str | None = None
    spouse_dob: str | None = None
    spouse_dod: str | None = None
    spouse_photo_url: str | None = None
    bio: str | None = None
    gallery: tuple[str, ...] = ()
    location_name: str | None = None
    location_lat: float | None = None
    location_lng: float | None = None


# Column order used by the stores
ROW_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(Row))


def new_person_id() -> str:
    return str(uuid.uuid4())


def iter_persons(tree: Person) -> Iterator[Person]:
    """Yield every person of the tree in pre-order, ignoring collapse state."""
    stack = [tree]
    while stack:
        person = stack.pop()
        yield person
        stack.extend(reversed(person.children))


def find_person(tree: Person, person_id: str) -> Person | None:
    """Depth-first search for a person by id."""
    if tree.id == person_id:
        return tree
    for child in tree.children:
        found = find_person(child, person_id)
        if found is not None:
            return found
    return None


def get_person(tree: Person, person_id: str) -> Person:
    person = find_person(tree, person_id)
    if person is None:
        raise NotFoundError(person_id)
    return person
