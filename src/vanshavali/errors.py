"""Error types raised by the tree engine."""


class TreeError(Exception):
    """Base class for all tree engine errors."""


class NotFoundError(TreeError):
    """A mutation targeted a person id that is not in the tree."""

    def __init__(self, person_id: str):
        super().__init__(f"Person ID {person_id} not found in tree")
        self.person_id = person_id


class IntegrityError(TreeError):
    """Flat rows (or a store) cannot be turned into a single proper tree."""


class ParseError(TreeError):
    """An imported payload is not a tree."""


class RemoteError(TreeError):
    """Base class for failures talking to the row store."""


class RemoteWriteError(RemoteError):
    """A remote insert, update or delete failed.

    The local optimistic change that caused the write is kept; the tree is
    ahead of the remote store until the next refresh.
    """

    def __init__(self, operation: str, row_id: str | None, cause: BaseException | None = None):
        message = f"Remote {operation} failed for row {row_id}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.operation = operation
        self.row_id = row_id
        self.cause = cause


class RemoteFetchError(RemoteError):
    """Fetching rows from the store failed."""

    def __init__(self, cause: BaseException):
        super().__init__(f"Remote fetch failed: {cause}")
        self.cause = cause
