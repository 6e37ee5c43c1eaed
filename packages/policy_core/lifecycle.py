"""Policy version lifecycle controller.

This module sequences draft editing, validation and persistence for one
policy template: select a version, edit its draft, validate, save or create,
then publish or simulate.

Editor states::

    unselected --select/edit--> editing --commit--> validating
    validating --invalid--> editing
    validating --stored--> persisted --publish--> published_elsewhere
    published_elsewhere --select_version--> editing

A failed store call puts the editor back in the state it was in before the
call and leaves the draft untouched.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from policy_config import PolicyKind, PolicyTemplate, PolicyVersion, SimulationResult
from policy_runtime import DraftState

from .client import VersionStoreClient
from .errors import EditorStateError, StoreError, ValidationFailedError
from .metrics import LIFECYCLE_TRANSITIONS
from .validation import ValidationResult, validate_config

logger = logging.getLogger(__name__)


class EditorState(str, Enum):
    """Client-side state of the version being edited."""

    UNSELECTED = "unselected"
    EDITING = "editing"
    VALIDATING = "validating"
    PERSISTED = "persisted"
    PUBLISHED_ELSEWHERE = "published_elsewhere"


class PolicyLifecycleController:
    """Lifecycle controller for the versions of one policy template.

    Each instance owns exactly one draft. Callers must not overlap
    ``commit()``/``publish()`` calls on the same instance.
    """

    def __init__(
        self,
        kind: PolicyKind,
        template_id: str,
        client: VersionStoreClient,
        token: str,
    ):
        """Initialize the controller.

        Args:
            kind: Policy kind of the template
            template_id: Template whose versions are edited
            client: Version store client for the same kind
            token: Bearer credential passed on every store call

        Raises:
            ValueError: If the client manages a different policy kind
        """
        self.kind = PolicyKind(kind)
        if client.kind != self.kind:
            raise ValueError(
                f"Client manages {client.kind.value} policies, not {self.kind.value}"
            )
        self.template_id = template_id
        self.client = client
        self.token = token

        self.versions: List[PolicyVersion] = []
        self.selected_version: Optional[PolicyVersion] = None
        self.draft = DraftState.from_config(self.kind)
        self.state = EditorState.UNSELECTED
        self.last_errors: List[str] = []

    # Loading and selection

    async def load(self) -> List[PolicyVersion]:
        """Fetch the versions and select the newest one if nothing is selected.

        Returns:
            The template's versions, newest first
        """
        versions = await self.refresh()
        if self.selected_version is None and versions:
            self.select_version(versions[0])
        return versions

    async def refresh(self) -> List[PolicyVersion]:
        """Refetch the version list.

        The selected version's metadata is replaced with the fresh copy so a
        status change made elsewhere becomes visible; the draft is not touched.
        """
        self.versions = await self._store_call(
            "refresh", self.client.list_versions, self.template_id
        )

        if self.selected_version is not None:
            fresh = self._find_version(self.selected_version.id)
            if fresh is not None:
                self.selected_version = fresh

        return self.versions

    def select_version(self, version: Optional[PolicyVersion]) -> DraftState:
        """Seed the draft from a version's config, or the empty config when None.

        The version itself is never modified.

        Returns:
            The new draft
        """
        self.selected_version = version.model_copy(deep=True) if version is not None else None
        self.draft = DraftState.from_config(
            self.kind,
            version.config if version is not None else None,
            version_id=version.id if version is not None else None,
        )
        self.state = EditorState.EDITING if version is not None else EditorState.UNSELECTED
        self.last_errors = []
        logger.info(
            "Selected %s policy version %s",
            self.kind.value,
            version.id if version is not None else "<none>",
        )
        return self.draft

    def select_version_by_id(self, version_id: str) -> DraftState:
        """Select a version from the loaded list.

        Raises:
            KeyError: If the version is not in the loaded list
        """
        version = self._find_version(version_id)
        if version is None:
            raise KeyError(f"Version {version_id} is not loaded")
        return self.select_version(version)

    # Draft editing

    def add_rule(self, values: Optional[Mapping[str, Any]] = None) -> str:
        """Append a priority (SLA) or rule (escalation) to the draft.

        Returns:
            ID of the new item
        """
        self._require_editable()
        self._apply(self.draft.add_item(values))
        return self.draft.items[-1].item_id

    def edit_rule(self, item_id: str, patch: Mapping[str, Any]) -> DraftState:
        """Merge field values into one item of the draft.

        Raises:
            KeyError: If the item doesn't exist
        """
        self._require_editable()
        return self._apply(self.draft.update_item(item_id, patch))

    def remove_rule(self, item_id: str) -> DraftState:
        """Remove one item from the draft.

        Raises:
            KeyError: If the item doesn't exist
        """
        self._require_editable()
        return self._apply(self.draft.remove_item(item_id))

    def set_working_hours(self, working_hours: Mapping[str, Any]) -> DraftState:
        """Replace the SLA draft's working hours.

        Raises:
            EditorStateError: If this controller edits escalation policies
        """
        if self.kind != PolicyKind.SLA:
            raise EditorStateError("Working hours only apply to SLA policies")
        self._require_editable()
        return self._apply(self.draft.set_setting("working_hours", dict(working_hours)))

    def validate(self) -> ValidationResult:
        """Validate the current draft without touching the store."""
        result = validate_config(self.kind, self.draft.to_config())
        self.last_errors = list(result.errors)
        return result

    # Persistence

    async def commit(self) -> PolicyVersion:
        """Validate the draft and persist it.

        A selected version that is still a draft is saved in place. Without a
        selection, or when the selected version is known to be published or
        archived, a new draft version is created and becomes the selection.

        Returns:
            The stored version

        Raises:
            ValidationFailedError: If the draft is invalid; nothing is sent
            StoreError: If the store call fails; the draft is kept
        """
        if self.selected_version is not None and self.selected_version.is_draft:
            return await self._persist(create=False)
        return await self._persist(create=True)

    async def create_version(self) -> PolicyVersion:
        """Validate the draft and always store it as a new draft version."""
        return await self._persist(create=True)

    async def publish(self, version_id: Optional[str] = None) -> PolicyVersion:
        """Publish a version; defaults to the selected one.

        No local check is made beyond requiring a version ID; the store
        decides whether publishing is allowed.

        Raises:
            EditorStateError: If no version ID is given and none is selected
            StoreError: If the store rejects the publish; local state is kept
        """
        version_id = version_id or (self.selected_version.id if self.selected_version else None)
        if not version_id:
            raise EditorStateError("Publishing requires a version ID")

        published = await self._store_call("publish", self.client.publish, version_id)
        self._remember(published)

        if self.selected_version is not None and self.selected_version.id == published.id:
            self.selected_version = published
            self.state = EditorState.PUBLISHED_ELSEWHERE

        logger.info("Published %s policy version %s", self.kind.value, published.id)
        return published

    async def simulate(self, version_id: Optional[str] = None) -> SimulationResult:
        """Dry-run a version; defaults to the selected one. Nothing changes locally.

        Raises:
            EditorStateError: If no version ID is given and none is selected
        """
        version_id = version_id or (self.selected_version.id if self.selected_version else None)
        if not version_id:
            raise EditorStateError("Simulation requires a version ID")
        return await self._store_call("simulate", self.client.simulate, version_id)

    # Template

    async def get_template(self) -> PolicyTemplate:
        """Fetch the template whose versions are edited."""
        return await self._store_call("get_template", self.client.get_template, self.template_id)

    async def set_template_active(self, is_active: bool) -> PolicyTemplate:
        """Activate or deactivate the template."""
        return await self._store_call(
            "set_template_active",
            self.client.update_template,
            self.template_id,
            {"is_active": is_active},
        )

    # Helpers

    def _require_editable(self) -> None:
        if self.state in (EditorState.VALIDATING, EditorState.PUBLISHED_ELSEWHERE):
            raise EditorStateError(
                f"Cannot edit while {self.state.value}; select a version to continue"
            )

    def _apply(self, draft: DraftState) -> DraftState:
        self.draft = draft
        self.state = EditorState.EDITING
        return draft

    async def _persist(self, create: bool) -> PolicyVersion:
        self._require_editable()
        operation = "create_version" if create else "save_draft"
        previous_state = self.state

        self.state = EditorState.VALIDATING
        result = self.validate()
        if not result.is_valid:
            self.state = EditorState.EDITING
            LIFECYCLE_TRANSITIONS.labels(
                kind=self.kind.value, operation=operation, outcome="invalid"
            ).inc()
            raise ValidationFailedError(result.errors)

        config: Dict[str, Any] = result.config or {}
        try:
            if create:
                stored = await self._store_call(
                    operation, self.client.create_version, self.template_id, config
                )
            else:
                stored = await self._store_call(
                    operation, self.client.save_draft, self.draft.version_id, config
                )
        except StoreError:
            self.state = previous_state
            raise

        self.selected_version = stored
        self.draft = self.draft.with_normalized(config, version_id=stored.id)
        self.state = EditorState.PERSISTED
        self._remember(stored)

        logger.info(
            "Stored %s policy version %s (v%s, %s)",
            self.kind.value,
            stored.id,
            stored.version,
            operation,
        )
        return stored

    async def _store_call(self, operation: str, func: Any, *args: Any) -> Any:
        try:
            result = await func(self.token, *args)
        except StoreError as e:
            LIFECYCLE_TRANSITIONS.labels(
                kind=self.kind.value, operation=operation, outcome=type(e).__name__
            ).inc()
            logger.warning(
                "%s policy %s failed (status=%s): %s",
                self.kind.value,
                operation,
                e.status_code,
                e.message,
            )
            raise
        LIFECYCLE_TRANSITIONS.labels(
            kind=self.kind.value, operation=operation, outcome="success"
        ).inc()
        return result

    def _find_version(self, version_id: str) -> Optional[PolicyVersion]:
        for version in self.versions:
            if version.id == version_id:
                return version
        return None

    def _remember(self, version: PolicyVersion) -> None:
        """Insert or replace a version in the cached list, newest first."""
        others = [v for v in self.versions if v.id != version.id]
        self.versions = sorted(
            others + [version], key=lambda v: (v.created_at, v.version), reverse=True
        )
