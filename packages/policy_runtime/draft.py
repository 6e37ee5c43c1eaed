"""Draft editor state for policy versions.

This module defines the in-memory draft an operator edits before it is
validated and persisted. Every edit returns a new DraftState; the previous
state is never changed, so a failed commit can always fall back to it.
"""

import copy
from typing import Any, Dict, List, Mapping, Optional, Tuple
from uuid import uuid4

from policy_config import PolicyKind, blank_item, empty_config, item_collection
from pydantic import BaseModel, ConfigDict, Field


class DraftItem(BaseModel):
    """One priority or rule in a draft, addressed by a stable id."""

    model_config = ConfigDict(frozen=True)

    item_id: str = Field(default_factory=lambda: str(uuid4()), description="Stable item ID")
    values: Dict[str, Any] = Field(default_factory=dict, description="Raw field values")


class DraftState(BaseModel):
    """Editable draft of one policy version's configuration."""

    model_config = ConfigDict(frozen=True)

    kind: PolicyKind = Field(..., description="Kind of policy being edited")
    version_id: Optional[str] = Field(
        default=None, description="ID of the version the draft was seeded from"
    )
    items: Tuple[DraftItem, ...] = Field(
        default_factory=tuple, description="Priorities (SLA) or rules (escalation)"
    )
    settings: Dict[str, Any] = Field(
        default_factory=dict, description="Top-level fields other than the item list"
    )
    dirty: bool = Field(default=False, description="Edited since the last successful commit")

    @classmethod
    def from_config(
        cls,
        kind: PolicyKind,
        config: Optional[Mapping[str, Any]] = None,
        version_id: Optional[str] = None,
    ) -> "DraftState":
        """Seed a draft from a stored config.

        Args:
            kind: Policy kind
            config: Config to copy; the empty config for the kind when None
            version_id: ID of the version being edited, if any

        Returns:
            A clean DraftState holding a deep copy of the config
        """
        kind = PolicyKind(kind)
        source = copy.deepcopy(dict(config)) if config else empty_config(kind)
        collection = item_collection(kind)

        raw_items = source.pop(collection, None)
        if not isinstance(raw_items, list):
            raw_items = []

        items = tuple(
            DraftItem(values=dict(raw) if isinstance(raw, Mapping) else {}) for raw in raw_items
        )
        return cls(kind=kind, version_id=version_id, items=items, settings=source)

    @property
    def item_ids(self) -> List[str]:
        """IDs of the draft's items in display order."""
        return [item.item_id for item in self.items]

    def get_item(self, item_id: str) -> DraftItem:
        """Look up an item by ID.

        Raises:
            KeyError: If no item has this ID
        """
        for item in self.items:
            if item.item_id == item_id:
                return item
        raise KeyError(f"Draft item {item_id} not found")

    def add_item(self, values: Optional[Mapping[str, Any]] = None) -> "DraftState":
        """Append an item, blank unless values are given."""
        seed = copy.deepcopy(dict(values)) if values is not None else blank_item(self.kind)
        return self.model_copy(
            update={"items": self.items + (DraftItem(values=seed),), "dirty": True}
        )

    def update_item(self, item_id: str, patch: Mapping[str, Any]) -> "DraftState":
        """Merge a patch into one item's values.

        Raises:
            KeyError: If no item has this ID
        """
        current = self.get_item(item_id)
        merged = {**current.values, **copy.deepcopy(dict(patch))}
        items = tuple(
            DraftItem(item_id=item.item_id, values=merged) if item.item_id == item_id else item
            for item in self.items
        )
        return self.model_copy(update={"items": items, "dirty": True})

    def remove_item(self, item_id: str) -> "DraftState":
        """Drop one item.

        Raises:
            KeyError: If no item has this ID
        """
        self.get_item(item_id)
        items = tuple(item for item in self.items if item.item_id != item_id)
        return self.model_copy(update={"items": items, "dirty": True})

    def set_setting(self, name: str, value: Any) -> "DraftState":
        """Replace a top-level field such as ``working_hours``.

        Raises:
            ValueError: If name is the item list itself
        """
        if name == item_collection(self.kind):
            raise ValueError(f"'{name}' is edited through add/update/remove item")
        settings = {**self.settings, name: copy.deepcopy(value)}
        return self.model_copy(update={"settings": settings, "dirty": True})

    def to_config(self) -> Dict[str, Any]:
        """Assemble the raw config handed to the validator."""
        config = copy.deepcopy(self.settings)
        config[item_collection(self.kind)] = [copy.deepcopy(item.values) for item in self.items]
        return config

    def with_normalized(
        self, config: Mapping[str, Any], version_id: Optional[str] = None
    ) -> "DraftState":
        """Replace the draft with a normalized config after a successful commit.

        Item IDs are kept by position; normalization never adds, drops or
        reorders items.

        Args:
            config: Normalized config returned by the validator
            version_id: Version the draft now belongs to

        Returns:
            A clean DraftState
        """
        fresh = DraftState.from_config(self.kind, config, version_id=version_id)
        items = tuple(
            DraftItem(item_id=old.item_id, values=new.values) if old is not None else new
            for old, new in zip(self._padded(len(fresh.items)), fresh.items)
        )
        return fresh.model_copy(update={"items": items})

    def _padded(self, length: int) -> List[Optional[DraftItem]]:
        old: List[Optional[DraftItem]] = list(self.items[:length])
        return old + [None] * (length - len(old))
