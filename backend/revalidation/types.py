"""
Value types shared by the revalidation engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EntityKind(str, Enum):
    CONTENT = "content"
    CATEGORY = "category"
    TAG = "tag"

    @property
    def is_term(self) -> bool:
        return self in (EntityKind.CATEGORY, EntityKind.TAG)


class EventKind(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    STATUS_CHANGED = "status_changed"


class AttemptStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class ChangeEvent:
    """A single content lifecycle event raised by the CMS integration layer."""

    entity_kind: EntityKind
    entity_id: int
    event_kind: EventKind
    old_status: str | None = None
    new_status: str | None = None


@dataclass(frozen=True)
class ContentRecord:
    """Minimal view of a content item as exposed by the CMS."""

    id: int
    kind: str
    status: str


@dataclass(frozen=True)
class TermRef:
    """A taxonomy term attached to a content item."""

    kind: EntityKind
    id: int


@dataclass(frozen=True)
class DispatchAttempt:
    """
    One outbound revalidation request and its outcome.

    `response` holds either the HTTP response summary
    (`code`, `message`, `body`, `headers`) or a transport error
    (`error: True`, `message`, `code`).
    """

    timestamp: str
    path: str
    status: AttemptStatus
    request: dict[str, Any]
    response: dict[str, Any]
    status_code: int | None = None
    trigger: str = "auto"

    @property
    def success(self) -> bool:
        return self.status == AttemptStatus.SUCCESS

    @property
    def is_transport_error(self) -> bool:
        return bool(self.response.get("error"))

    def as_dict(self) -> dict[str, Any]:
        """Serialize to the persisted audit-log shape."""
        return {
            "timestamp": self.timestamp,
            "path": self.path,
            "trigger": self.trigger,
            "status": self.status.value,
            "status_code": self.status_code,
            "request": dict(self.request),
            "response": dict(self.response),
        }


@dataclass
class ManualRevalidationResult:
    """Result of an operator-initiated revalidation."""

    success: bool
    message: str
    paths: list[str] = field(default_factory=list)
    attempts: list[DispatchAttempt] = field(default_factory=list)

    @classmethod
    def ok(
        cls, message: str, paths: list[str], attempts: list[DispatchAttempt]
    ) -> "ManualRevalidationResult":
        return cls(success=True, message=message, paths=paths, attempts=attempts)

    @classmethod
    def error(
        cls,
        message: str,
        paths: list[str] | None = None,
        attempts: list[DispatchAttempt] | None = None,
    ) -> "ManualRevalidationResult":
        return cls(
            success=False,
            message=message,
            paths=paths or [],
            attempts=attempts or [],
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "paths": list(self.paths),
            "attempts": [attempt.as_dict() for attempt in self.attempts],
        }
