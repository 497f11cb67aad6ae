"""Family tree editing, layout and synchronization with a flat row store."""

from vanshavali.errors import (
    IntegrityError,
    NotFoundError,
    ParseError,
    RemoteFetchError,
    RemoteWriteError,
    TreeError,
)
from vanshavali.layout import Layout, LayoutEdge, LayoutNode, compute_layout
from vanshavali.models import Gender, Location, Person, Row, Spouse
from vanshavali.projector import flatten, unflatten
from vanshavali.sync import MutationState, PendingMutation, SyncCoordinator

__version__ = "0.1.0"

__all__ = [
    "Gender",
    "IntegrityError",
    "Layout",
    "LayoutEdge",
    "LayoutNode",
    "Location",
    "MutationState",
    "NotFoundError",
    "ParseError",
    "PendingMutation",
    "Person",
    "RemoteFetchError",
    "RemoteWriteError",
    "Row",
    "Spouse",
    "SyncCoordinator",
    "TreeError",
    "compute_layout",
    "flatten",
    "unflatten",
]
