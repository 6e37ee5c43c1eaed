"""In-memory policy store.

This module provides an in-memory implementation of the policy service's
persistence: templates, their versions and the draft -> published -> archived
lifecycle. It backs the local policy service and offline clients; the real
service replaces it in production.
"""

import copy
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Dict, List, Optional
from uuid import uuid4

from policy_config import (
    PolicyKind,
    PolicyTemplate,
    PolicyVersion,
    VersionStatus,
    item_collection,
)


class PolicyStoreError(Exception):
    """Base class for store failures."""

    pass


class RecordNotFoundError(PolicyStoreError):
    """Raised when a template or version does not exist."""

    pass


class RecordConflictError(PolicyStoreError):
    """Raised when a lifecycle transition is not allowed."""

    pass


def _now() -> datetime:
    return datetime.now(timezone.utc)


class PolicyStore:
    """In-memory store for policy templates and versions.

    All operations are guarded by a single lock. Returned models are copies,
    so callers cannot change stored records without going through the store.
    """

    def __init__(self) -> None:
        """Initialize the policy store."""
        self._templates: Dict[str, PolicyTemplate] = {}
        self._template_kinds: Dict[str, PolicyKind] = {}
        self._versions: Dict[str, PolicyVersion] = {}
        self._lock = Lock()

    # Templates

    def create_template(
        self,
        kind: PolicyKind,
        name: str,
        description: Optional[str] = None,
        scope_type: str = "global",
        scope_value: Optional[str] = None,
        is_active: bool = True,
    ) -> PolicyTemplate:
        """Create a new policy template.

        Raises:
            ValueError: If the name is empty
        """
        if not name or not name.strip():
            raise ValueError("Template name cannot be empty")

        now = _now()
        template = PolicyTemplate(
            id=str(uuid4()),
            name=name.strip(),
            description=description,
            scope_type=scope_type,
            scope_value=scope_value,
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._templates[template.id] = template
            self._template_kinds[template.id] = PolicyKind(kind)
            return template.model_copy(deep=True)

    def get_template(self, template_id: str, kind: Optional[PolicyKind] = None) -> PolicyTemplate:
        """Retrieve a template by ID.

        Args:
            template_id: Template ID to look up
            kind: When given, the template must be of this kind

        Raises:
            RecordNotFoundError: If the template doesn't exist
        """
        with self._lock:
            return self._get_template(template_id, kind).model_copy(deep=True)

    def list_templates(
        self,
        kind: PolicyKind,
        is_active: Optional[bool] = None,
    ) -> List[PolicyTemplate]:
        """List templates of one kind, most recently updated first."""
        with self._lock:
            templates = [
                t
                for t in self._templates.values()
                if self._template_kinds[t.id] == kind
                and (is_active is None or t.is_active == is_active)
            ]
            templates.sort(key=lambda t: t.updated_at, reverse=True)
            return [t.model_copy(deep=True) for t in templates]

    def update_template(
        self,
        template_id: str,
        kind: Optional[PolicyKind] = None,
        **changes: Any,
    ) -> PolicyTemplate:
        """Update mutable template fields (name, description, scope, is_active).

        Raises:
            RecordNotFoundError: If the template doesn't exist
            ValueError: If an unknown or immutable field is given, or a value is invalid
        """
        allowed = {"name", "description", "scope_type", "scope_value", "is_active"}
        unknown = set(changes) - allowed
        if unknown:
            raise ValueError(f"Cannot update template fields: {sorted(unknown)}")

        with self._lock:
            template = self._get_template(template_id, kind)
            updated = PolicyTemplate.model_validate(
                {**template.model_dump(), **changes, "updated_at": _now()}
            )
            self._templates[template_id] = updated
            return updated.model_copy(deep=True)

    def template_kind(self, template_id: str) -> PolicyKind:
        """Kind of the given template.

        Raises:
            RecordNotFoundError: If the template doesn't exist
        """
        with self._lock:
            self._get_template(template_id)
            return self._template_kinds[template_id]

    # Versions

    def create_version(
        self,
        template_id: str,
        config: Dict[str, Any],
        created_by: Optional[str] = None,
        kind: Optional[PolicyKind] = None,
    ) -> PolicyVersion:
        """Create a new draft version with the next version number.

        Raises:
            RecordNotFoundError: If the template doesn't exist
        """
        with self._lock:
            self._get_template(template_id, kind)
            numbers = [v.version for v in self._versions.values() if v.template == template_id]
            version = PolicyVersion(
                id=str(uuid4()),
                template=template_id,
                version=max(numbers, default=0) + 1,
                status=VersionStatus.DRAFT,
                config=copy.deepcopy(config),
                created_by_id=created_by,
                created_by_label=created_by,
                created_at=_now(),
            )
            self._versions[version.id] = version
            return version.model_copy(deep=True)

    def get_version(self, version_id: str, kind: Optional[PolicyKind] = None) -> PolicyVersion:
        """Retrieve a version by ID.

        Raises:
            RecordNotFoundError: If the version doesn't exist
        """
        with self._lock:
            return self._get_version(version_id, kind).model_copy(deep=True)

    def list_versions(
        self,
        template_id: Optional[str] = None,
        kind: Optional[PolicyKind] = None,
        newest_first: bool = True,
    ) -> List[PolicyVersion]:
        """List versions, optionally filtered by template and kind."""
        with self._lock:
            versions = [
                v
                for v in self._versions.values()
                if (template_id is None or v.template == template_id)
                and (kind is None or self._template_kinds.get(v.template) == kind)
            ]
            versions.sort(key=lambda v: (v.created_at, v.version), reverse=newest_first)
            return [v.model_copy(deep=True) for v in versions]

    def save_draft(
        self,
        version_id: str,
        config: Dict[str, Any],
        kind: Optional[PolicyKind] = None,
    ) -> PolicyVersion:
        """Replace a draft version's config.

        Raises:
            RecordNotFoundError: If the version doesn't exist
            RecordConflictError: If the version is no longer a draft
        """
        with self._lock:
            version = self._get_version(version_id, kind)
            if version.status != VersionStatus.DRAFT:
                raise RecordConflictError(
                    f"Version {version_id} is {version.status.value}; only drafts can be saved"
                )
            updated = version.model_copy(update={"config": copy.deepcopy(config)})
            self._versions[version_id] = updated
            return updated.model_copy(deep=True)

    def publish(
        self,
        version_id: str,
        published_by: Optional[str] = None,
        kind: Optional[PolicyKind] = None,
    ) -> PolicyVersion:
        """Publish a draft version, archiving the template's previous one.

        Raises:
            RecordNotFoundError: If the version doesn't exist
            RecordConflictError: If the version is not a draft or the template is inactive
        """
        with self._lock:
            version = self._get_version(version_id, kind)
            if version.status != VersionStatus.DRAFT:
                raise RecordConflictError(
                    f"Version {version_id} is {version.status.value}; only drafts can be published"
                )

            template = self._templates[version.template]
            if not template.is_active:
                raise RecordConflictError(
                    f"Template {template.id} is inactive; activate it before publishing"
                )

            for other in list(self._versions.values()):
                if other.template == version.template and other.status == VersionStatus.PUBLISHED:
                    self._versions[other.id] = other.model_copy(
                        update={"status": VersionStatus.ARCHIVED}
                    )

            published = version.model_copy(
                update={
                    "status": VersionStatus.PUBLISHED,
                    "published_at": _now(),
                    "published_by_id": published_by,
                    "published_by_label": published_by,
                }
            )
            self._versions[version_id] = published
            return published.model_copy(deep=True)

    def simulate(self, version_id: str, kind: Optional[PolicyKind] = None) -> Dict[str, Any]:
        """Preview a version's entries without changing anything.

        Returns one advisory entry per priority or rule.

        Raises:
            RecordNotFoundError: If the version doesn't exist
        """
        with self._lock:
            version = self._get_version(version_id, kind)
            template_kind = self._template_kinds[version.template]

        entries = version.config.get(item_collection(template_kind)) or []
        results = [
            {"index": index, "version": version.version, "status": version.status.value, **entry}
            for index, entry in enumerate(entries)
            if isinstance(entry, dict)
        ]
        return {"count": len(results), "results": results}

    def clear(self) -> int:
        """Clear all templates and versions.

        Returns:
            Number of templates cleared
        """
        with self._lock:
            count = len(self._templates)
            self._templates.clear()
            self._template_kinds.clear()
            self._versions.clear()
            return count

    def _get_template(self, template_id: str, kind: Optional[PolicyKind] = None) -> PolicyTemplate:
        template = self._templates.get(template_id)
        if template is None or (kind is not None and self._template_kinds[template_id] != kind):
            raise RecordNotFoundError(f"Template {template_id} not found")
        return template

    def _get_version(self, version_id: str, kind: Optional[PolicyKind] = None) -> PolicyVersion:
        version = self._versions.get(version_id)
        if version is None or (
            kind is not None and self._template_kinds.get(version.template) != kind
        ):
            raise RecordNotFoundError(f"Version {version_id} not found")
        return version

