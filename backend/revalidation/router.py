"""
Routes CMS lifecycle events to the revalidation pipeline.

Each handler returns the attempts it made and never raises into the calling
CMS flow: a content save or delete must succeed whatever happens downstream.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .paths import unique_paths
from .types import ChangeEvent, DispatchAttempt, EntityKind, EventKind

if TYPE_CHECKING:
    from .engine import RevalidationEngine

logger = logging.getLogger(__name__)


class EventRouter:
    """Explicit event handlers, one per ChangeEvent kind."""

    def __init__(self, engine: RevalidationEngine):
        self._engine = engine

    @property
    def _published(self) -> str:
        return self._engine.options.published_status

    def handle(self, event: ChangeEvent) -> list[DispatchAttempt]:
        """Route an event to the matching handler."""
        if event.entity_kind.is_term:
            return self.on_term_changed(event)
        if event.event_kind == EventKind.DELETED:
            return self.on_content_deleted(event)
        if event.event_kind == EventKind.STATUS_CHANGED:
            return self.on_content_status_changed(event)
        return self.on_content_saved(event)

    def on_content_saved(self, event: ChangeEvent) -> list[DispatchAttempt]:
        """Content created or updated: revalidate only published, dispatchable content."""
        return self._guarded(event, self._content_saved)

    def on_content_status_changed(self, event: ChangeEvent) -> list[DispatchAttempt]:
        """Status transition: revalidate only when it crosses the published boundary."""
        return self._guarded(event, self._content_status_changed)

    def on_content_deleted(self, event: ChangeEvent) -> list[DispatchAttempt]:
        """Content about to be removed: revalidate its last-known paths."""
        return self._guarded(event, self._content_deleted)

    def on_term_changed(self, event: ChangeEvent) -> list[DispatchAttempt]:
        """Category or tag created, edited or deleted."""
        return self._guarded(event, self._term_changed)

    def _guarded(self, event: ChangeEvent, handler) -> list[DispatchAttempt]:
        try:
            return handler(event)
        except Exception:
            # Revalidation must never break the content lifecycle operation.
            logger.exception(
                "Revalidation failed for %s %s (%s)",
                event.entity_kind.value,
                event.entity_id,
                event.event_kind.value,
            )
            return []

    def _ignore(self, event: ChangeEvent, reason: str) -> list[DispatchAttempt]:
        self._engine.stats.record_event(ignored=True)
        logger.debug(
            "Ignoring %s %s %s: %s",
            event.event_kind.value,
            event.entity_kind.value,
            event.entity_id,
            reason,
        )
        return []

    def _is_dispatchable_kind(self, content_kind: str) -> bool:
        return content_kind in self._engine.options.content_kinds

    def _dispatch(self, paths: list[str]) -> list[DispatchAttempt]:
        paths = unique_paths(paths)
        self._engine.stats.record_paths(len(paths))
        return self._engine.revalidate_paths(paths)

    def _content_saved(self, event: ChangeEvent) -> list[DispatchAttempt]:
        record = self._engine.index.get_content(event.entity_id)
        if record is None:
            return self._ignore(event, "content not found")
        if record.status != self._published:
            return self._ignore(event, f"status is {record.status!r}")
        if not self._is_dispatchable_kind(record.kind):
            return self._ignore(event, f"kind {record.kind!r} not enabled")
        if not self._engine.deduplicator.claim_entity(EntityKind.CONTENT.value, event.entity_id):
            self._engine.stats.record_request_dedupe()
            return self._ignore(event, "already processed in this request")

        self._engine.stats.record_event()
        return self._dispatch(self._engine.resolver.paths_for_content(event.entity_id))

    def _content_status_changed(self, event: ChangeEvent) -> list[DispatchAttempt]:
        was_published = event.old_status == self._published
        is_published = event.new_status == self._published
        if was_published == is_published:
            return self._ignore(event, f"{event.old_status!r} -> {event.new_status!r} does not cross published")

        record = self._engine.index.get_content(event.entity_id)
        if record is None:
            return self._ignore(event, "content not found")
        if not self._is_dispatchable_kind(record.kind):
            return self._ignore(event, f"kind {record.kind!r} not enabled")
        if not self._engine.deduplicator.claim_entity(EntityKind.CONTENT.value, event.entity_id):
            self._engine.stats.record_request_dedupe()
            return self._ignore(event, "already processed in this request")

        self._engine.stats.record_event()
        return self._dispatch(self._engine.resolver.paths_for_content(event.entity_id))

    def _content_deleted(self, event: ChangeEvent) -> list[DispatchAttempt]:
        record = self._engine.index.get_content(event.entity_id)
        if record is not None and not self._is_dispatchable_kind(record.kind):
            return self._ignore(event, f"kind {record.kind!r} not enabled")

        self._engine.stats.record_event()
        return self._dispatch(self._engine.resolver.paths_for_content(event.entity_id))

    def _term_changed(self, event: ChangeEvent) -> list[DispatchAttempt]:
        self._engine.stats.record_event()
        return self._dispatch(self._engine.resolver.paths_for_term(event.entity_kind, event.entity_id))
