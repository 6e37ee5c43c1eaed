"""Service Operations Console - Policy Runtime Package."""

from .draft import DraftItem, DraftState
from .store import (
    PolicyStore,
    PolicyStoreError,
    RecordConflictError,
    RecordNotFoundError,
)

__version__ = "0.1.0"

__all__ = [
    "DraftItem",
    "DraftState",
    "PolicyStore",
    "PolicyStoreError",
    "RecordConflictError",
    "RecordNotFoundError",
]
