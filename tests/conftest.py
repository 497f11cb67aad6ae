"""Shared fixtures: sample trees and an in-memory row store."""

import asyncio
from dataclasses import replace
import itertools

import pytest

from vanshavali.models import Gender, Location, Person, Row, Spouse
from vanshavali.mutations import ChildSpec, add_child
from vanshavali.projector import flatten


class MemoryStore:
    """
    In-memory row store with knobs for failures, delays and key assignment.

    Deletes cascade to descendant rows; inserts do not check that the parent
    exists, like a store without foreign keys.
    """

    def __init__(self, rows=(), assign_keys=False, fail_on=(), delays=None):
        self.rows: dict[str, Row] = {row.id: replace(row) for row in rows}
        self.assign_keys = assign_keys
        self.fail_on = set(fail_on)
        self.delays = dict(delays or {})
        self.calls: list[tuple] = []
        self._keys = itertools.count(1)

    async def _step(self, operation: str, *args):
        self.calls.append((operation, *args))
        await asyncio.sleep(self.delays.get(operation, 0))
        if operation in self.fail_on:
            raise ConnectionError(f"{operation} unavailable")

    async def list_rows(self) -> list[Row]:
        await self._step("list")
        return [replace(row) for row in self.rows.values()]

    async def insert(self, row: Row) -> Row:
        await self._step("insert", row.id)
        key = f"r{next(self._keys)}" if self.assign_keys or row.id is None else row.id
        stored = replace(row, id=key)
        self.rows[key] = stored
        return replace(stored)

    async def update(self, row_id: str, patch: dict):
        await self._step("update", row_id)
        if row_id not in self.rows:
            raise KeyError(row_id)
        self.rows[row_id] = replace(self.rows[row_id], **patch)

    async def delete(self, row_id: str):
        await self._step("delete", row_id)
        if row_id not in self.rows:
            raise KeyError(row_id)
        doomed = {row_id}
        changed = True
        while changed:
            changed = False
            for row in self.rows.values():
                if row.parent_id in doomed and row.id not in doomed:
                    doomed.add(row.id)
                    changed = True
        for key in doomed:
            del self.rows[key]


@pytest.fixture
def family() -> Person:
    """root -> {A, B}, A -> {C}"""
    c = Person(id="C", name="Chandra", generation=3, gender=Gender.MALE, date_of_birth="1950-02-01")
    a = Person(
        id="A",
        name="Arjun",
        generation=2,
        gender=Gender.MALE,
        relation="Son",
        occupation="Farmer",
        date_of_birth="1920-05-17",
        date_of_death="1990-01-01",
        spouse=Spouse(name="Sita", occupation="Teacher", date_of_birth="1925-03-03"),
        location=Location(name="Mundra", lat=22.8, lng=69.7),
        gallery=("a1.jpg", "a2.jpg"),
        children=(c,),
    )
    b = Person(id="B", name="Bhavna", generation=2, gender=Gender.FEMALE, relation="Daughter")
    return Person(
        id="root",
        name="Mukhya Purush",
        generation=1,
        gender=Gender.MALE,
        date_of_birth="1890",
        bio="Founder of the family",
        children=(a, b),
    )


def wide_tree() -> Person:
    """Three generations with uneven branching."""
    tree = Person(id="r", name="R")
    for parent, child in [
        ("r", "a"), ("r", "b"), ("r", "c"),
        ("a", "a1"), ("a", "a2"), ("a", "a3"),
        ("c", "c1"),
        ("a2", "a2x"), ("a2", "a2y"),
        ("c1", "c1x"),
    ]:
        tree = add_child(tree, parent, ChildSpec(id=child))
    return tree


@pytest.fixture
def memory_store():
    return MemoryStore()


def store_for(tree: Person, **kwargs) -> MemoryStore:
    return MemoryStore(flatten(tree), **kwargs)
