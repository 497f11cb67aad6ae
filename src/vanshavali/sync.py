"""
Optimistic local editing with background persistence to a row store.

Every edit is applied to the local snapshot and laid out immediately. The
matching remote write runs as a fire-and-forget asyncio task; its outcome is
recorded on the PendingMutation returned by the edit. Failed writes are
reported, never rolled back. `refresh()` replaces the local snapshot with
whatever the store holds.
"""

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import asdict, dataclass, replace
from enum import Enum
import logging
from typing import Protocol

from vanshavali import mutations
from vanshavali.config import LayoutConfig
from vanshavali.errors import IntegrityError, RemoteFetchError, RemoteWriteError
from vanshavali.layout import Layout, compute_layout
from vanshavali.models import Gender, Person, Row, find_person, new_person_id
from vanshavali.projector import person_to_row, unflatten, write_tree

logger = logging.getLogger(__name__)


class RowStore(Protocol):
    """The four operations the engine needs from the remote store."""

    async def list_rows(self) -> list[Row]: ...

    async def insert(self, row: Row) -> Row: ...

    async def update(self, row_id: str, patch: dict): ...

    async def delete(self, row_id: str): ...


class MutationState(Enum):
    IDLE = "idle"
    LOCAL_APPLIED = "local_applied"
    REMOTE_COMMITTED = "remote_committed"
    REMOTE_FAILED = "remote_failed"


@dataclass
class PendingMutation:
    kind: str
    person_id: str | None
    state: MutationState = MutationState.IDLE
    error: RemoteWriteError | None = None
    task: asyncio.Task | None = None

    @property
    def done(self) -> bool:
        return self.state in (MutationState.REMOTE_COMMITTED, MutationState.REMOTE_FAILED)


# Row columns an attribute edit sends to the store
def _row_patch(person: Person) -> dict:
    values = asdict(person_to_row(person, None))
    del values["id"]
    del values["parent_id"]
    return values


def _rekey(person: Person, keys: Mapping[str, str]) -> Person:
    return replace(
        person,
        id=keys.get(person.id, person.id),
        children=tuple(_rekey(child, keys) for child in person.children),
    )


class SyncCoordinator:
    """
    Owner of the authoritative in-memory tree.

    Edits schedule their remote writes on the running event loop, so they must
    be called from inside it. Overlapping writes are neither queued nor
    ordered.
    """

    def __init__(
        self,
        store: RowStore,
        tree: Person | None = None,
        layout_config: LayoutConfig | None = None,
        on_change: Callable[[Person, Layout], None] | None = None,
        on_error: Callable[[RemoteWriteError], None] | None = None,
    ):
        self.store = store
        self.layout_config = layout_config or LayoutConfig()
        self.on_change = on_change
        self.on_error = on_error
        self.pending: list[PendingMutation] = []
        self._tasks: set[asyncio.Task] = set()
        self._tree: Person | None = None
        self._layout = Layout()
        if tree is not None:
            self._replace(tree)

    @property
    def tree(self) -> Person | None:
        return self._tree

    @property
    def layout(self) -> Layout:
        return self._layout

    def _replace(self, tree: Person):
        # The snapshot is swapped whole; readers see the old or the new tree
        self._tree = tree
        self._layout = compute_layout(tree, self.layout_config)
        if self.on_change:
            self.on_change(self._tree, self._layout)

    def _require_tree(self) -> Person:
        if self._tree is None:
            raise IntegrityError("No tree loaded; call refresh() or load_tree() first")
        return self._tree

    def _apply(
        self,
        kind: str,
        person_id: str | None,
        new_tree: Person,
        remote: Callable[[], Awaitable[None]],
    ) -> PendingMutation:
        mutation = PendingMutation(kind=kind, person_id=person_id)
        if new_tree is self._tree:
            # Nothing changed locally, so nothing to persist
            return mutation

        self._replace(new_tree)
        mutation.state = MutationState.LOCAL_APPLIED
        mutation.task = asyncio.get_running_loop().create_task(self._persist(mutation, remote))
        self._tasks.add(mutation.task)
        mutation.task.add_done_callback(self._tasks.discard)
        self.pending.append(mutation)
        return mutation

    async def _persist(self, mutation: PendingMutation, remote: Callable[[], Awaitable[None]]):
        try:
            await remote()
        except Exception as e:
            mutation.state = MutationState.REMOTE_FAILED
            mutation.error = RemoteWriteError(mutation.kind, mutation.person_id, e)
            logger.error("%s; local tree is ahead of the store", mutation.error)
            if self.on_error:
                self.on_error(mutation.error)
        else:
            mutation.state = MutationState.REMOTE_COMMITTED
            logger.debug("Remote %s committed for %s", mutation.kind, mutation.person_id)
        finally:
            if mutation in self.pending:
                self.pending.remove(mutation)

    # ==================================================================
    # Edits
    # ==================================================================

    def add_child(
        self, parent_id: str, child_type: str = "son", name: str | None = None
    ) -> PendingMutation:
        tree = self._require_tree()
        spec = mutations.ChildSpec(type=child_type, name=name, id=new_person_id())
        new_tree = mutations.add_child(tree, parent_id, spec)

        async def remote():
            child = find_person(new_tree, spec.id)
            await self.store.insert(person_to_row(child, parent_id))

        return self._apply("insert", spec.id, new_tree, remote)

    def add_parent_above_root(
        self, name: str = "New Ancestor", gender: Gender | None = Gender.MALE
    ) -> PendingMutation:
        tree = self._require_tree()
        new_tree = mutations.add_parent_above_root(tree, name=name, gender=gender)
        old_root_id = tree.id

        async def remote():
            # Two separate writes; the store briefly holds two roots
            await self.store.insert(person_to_row(new_tree, None))
            await self.store.update(old_root_id, {"parent_id": new_tree.id})

        return self._apply("insert", new_tree.id, new_tree, remote)

    def delete_subtree(self, person_id: str) -> PendingMutation:
        tree = self._require_tree()
        new_tree = mutations.delete_subtree(tree, person_id)

        async def remote():
            # Descendant rows are the store's business
            await self.store.delete(person_id)

        return self._apply("delete", person_id, new_tree, remote)

    def update_attributes(self, person_id: str, patch: Person | Mapping) -> PendingMutation:
        tree = self._require_tree()
        new_tree = mutations.update_attributes(tree, person_id, patch)

        async def remote():
            await self.store.update(person_id, _row_patch(find_person(new_tree, person_id)))

        return self._apply("update", person_id, new_tree, remote)

    def toggle_collapse(self, person_id: str) -> Layout:
        """Collapse or expand a branch. View state only, never persisted."""
        new_tree = mutations.toggle_collapse(self._require_tree(), person_id)
        if new_tree is not self._tree:
            self._replace(new_tree)
        return self._layout

    def load_tree(self, tree: Person):
        """Replace the local tree, e.g. from an imported file, without writing remotely."""
        self._replace(tree)

    # ==================================================================
    # Whole-tree operations
    # ==================================================================

    async def refresh(self) -> Person:
        """
        Replace the local tree with the store's contents.

        Local edits that never reached the store are lost. On failure the
        previous snapshot is kept.

        Raises:
            RemoteFetchError: the store could not be read
            IntegrityError: the rows do not form a single tree
        """
        try:
            rows = await self.store.list_rows()
        except Exception as e:
            raise RemoteFetchError(e) from e

        tree = unflatten(rows)
        self._replace(tree)
        logger.info("Refreshed tree from store: %d rows", len(rows))
        return tree

    async def push_tree(self, force: bool = False) -> dict[str, str]:
        """
        Copy the whole local tree into the store.

        The local tree is re-keyed to the store's ids so later edits address
        the rows that were written.

        Args:
            force: Write even if the store already holds rows

        Returns:
            Mapping of local id to the key assigned by the store
        """
        tree = self._require_tree()
        try:
            existing = await self.store.list_rows()
        except Exception as e:
            raise RemoteFetchError(e) from e
        if existing and not force:
            raise IntegrityError(
                f"Store already contains {len(existing)} rows; pushing would create a second root"
            )

        try:
            keys = await write_tree(tree, self.store)
        except Exception as e:
            raise RemoteWriteError("insert", tree.id, e) from e
        if any(local != key for local, key in keys.items()):
            self._replace(_rekey(tree, keys))
        logger.info("Pushed %d persons to store", len(keys))
        return keys

    async def drain(self):
        """Wait for every in-flight remote write to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
