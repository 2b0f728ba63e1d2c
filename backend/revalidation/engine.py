"""
Revalidation engine.

Owns the resolver, filters, dispatcher, audit log and counters for one
process, and runs the dispatch pipeline for a list of paths.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

from django.utils import timezone
from django.utils.module_loading import import_string

from config.domain_exceptions import ConfigurationError

from .audit_log import AuditLog
from .config import (
    EndpointConfig,
    RevalidationOptions,
    get_revalidation_options,
    load_endpoint_config,
)
from .dedup import Deduplicator
from .dispatcher import RevalidationDispatcher
from .paths import ContentIndex, PathResolver, unique_paths
from .stats import RevalidationStats
from .types import DispatchAttempt, EntityKind, ManualRevalidationResult

if TYPE_CHECKING:
    from .router import EventRouter

logger = logging.getLogger(__name__)


class RevalidationEngine:
    """
    Explicit per-process state holder for revalidation.

    Constructed once and handed to the event-routing layer; tests build their
    own instances or call `reset()` between cases.
    """

    def __init__(
        self,
        index: ContentIndex,
        *,
        options: RevalidationOptions | None = None,
        config_loader: Callable[[], EndpointConfig] = load_endpoint_config,
        dispatcher: RevalidationDispatcher | None = None,
        audit_log: AuditLog | None = None,
    ):
        self._options = options or RevalidationOptions()
        self._config_loader = config_loader
        self.resolver = PathResolver(
            index,
            site_url=self._options.site_url,
            content_kinds=self._options.content_kinds,
        )
        self.deduplicator = Deduplicator(cooldown_seconds=self._options.cooldown_seconds)
        self.dispatcher = dispatcher or RevalidationDispatcher(timeout=self._options.request_timeout)
        self.audit_log = audit_log if audit_log is not None else AuditLog()
        self.stats = RevalidationStats()
        self._cooldown_disabled = False
        self._router: EventRouter | None = None
        self._router_lock = threading.Lock()

    @property
    def options(self) -> RevalidationOptions:
        return self._options

    @property
    def index(self) -> ContentIndex:
        return self.resolver.index

    @property
    def router(self) -> EventRouter:
        if self._router is None:
            with self._router_lock:
                if self._router is None:
                    from .router import EventRouter

                    self._router = EventRouter(self)
        return self._router

    @property
    def cooldown_disabled(self) -> bool:
        return self._cooldown_disabled

    def set_cooldown_disabled(self, disabled: bool) -> None:
        """Bypass the cooldown filter for every call (tests, operational override)."""
        self._cooldown_disabled = bool(disabled)

    def endpoint_config(self) -> EndpointConfig:
        return self._config_loader()

    def is_configured(self) -> bool:
        return self.endpoint_config().is_configured

    def revalidate_paths(
        self,
        paths: Iterable[str],
        *,
        force: bool = False,
        trigger: str = "auto",
    ) -> list[DispatchAttempt]:
        """
        Dispatch each unique path that passes the cooldown filter.

        Args:
            paths: Paths to revalidate (duplicates are dropped, order kept)
            force: Skip the cooldown filter for this call
            trigger: Recorded on each attempt ("auto" or "manual")

        Returns:
            Attempts made, in dispatch order
        """
        candidates = unique_paths(paths)
        if not candidates:
            return []

        config = self.endpoint_config()
        if not config.is_configured:
            self.stats.record_not_configured()
            logger.debug("Revalidation endpoint or token not configured; skipping %d path(s)", len(candidates))
            return []

        bypass_cooldown = force or self._cooldown_disabled
        attempts: list[DispatchAttempt] = []
        for path in candidates:
            if not bypass_cooldown and not self.deduplicator.claim_path(path):
                self.stats.record_cooldown_skip()
                logger.debug("Path %s revalidated recently; skipping", path)
                continue

            attempt = self.dispatcher.dispatch(path, config, trigger=trigger)
            self.audit_log.record(attempt)
            self.stats.record_attempt(
                success=attempt.success,
                transport_error=attempt.is_transport_error,
                now=timezone.now(),
            )
            attempts.append(attempt)

        return attempts

    def revalidate_content(self, content_id: int) -> ManualRevalidationResult:
        """Operator action: revalidate a content item now, ignoring cooldown."""
        record = self.index.get_content(content_id)
        if record is None:
            return ManualRevalidationResult.error(f"Content not found: {content_id}")
        if not self.index.permalink(content_id):
            return ManualRevalidationResult.error(f"Content has no permalink: {content_id}")

        return self._manual(self.resolver.paths_for_content(content_id))

    def revalidate_term(self, kind: EntityKind, term_id: int) -> ManualRevalidationResult:
        """Operator action: revalidate a category or tag now, ignoring cooldown."""
        if not kind.is_term:
            return ManualRevalidationResult.error(f"Not a taxonomy kind: {kind.value}")
        if not self.index.term_archive_url(kind, term_id):
            return ManualRevalidationResult.error(f"Term not found: {kind.value} {term_id}")

        return self._manual(self.resolver.paths_for_term(kind, term_id))

    def _manual(self, paths: list[str]) -> ManualRevalidationResult:
        paths = unique_paths(paths)
        if not self.is_configured():
            return ManualRevalidationResult.error("Revalidation endpoint or token not configured.", paths=paths)

        attempts = self.revalidate_paths(paths, force=True, trigger="manual")
        failed = [a for a in attempts if not a.success]
        if failed:
            return ManualRevalidationResult.error(
                f"{len(failed)} of {len(attempts)} path(s) failed to revalidate.",
                paths=paths,
                attempts=attempts,
            )
        return ManualRevalidationResult.ok(
            f"Revalidated {len(attempts)} path(s).",
            paths=paths,
            attempts=attempts,
        )

    def status(self) -> dict[str, Any]:
        return {
            "configured": self.is_configured(),
            "cooldown_seconds": self.deduplicator.cooldown_seconds,
            "cooldown_disabled": self._cooldown_disabled,
            "content_kinds": list(self._options.content_kinds),
            "log_entries": len(self.audit_log),
            "log_capacity": self.audit_log.capacity,
            "stats": self.stats.as_dict(),
        }

    def reset(self) -> None:
        """Clear dedup scope, open cooldowns, counters and the cooldown override."""
        self.deduplicator.reset()
        self.stats.reset()
        self._cooldown_disabled = False


def build_engine(options: RevalidationOptions | None = None) -> RevalidationEngine:
    """
    Build an engine from Django settings.

    Raises:
        ConfigurationError: If `REVALIDATION["CONTENT_INDEX"]` is missing or invalid
    """
    options = options or get_revalidation_options()
    if not options.content_index:
        raise ConfigurationError("REVALIDATION['CONTENT_INDEX'] is not configured.")

    try:
        index_factory = import_string(options.content_index)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import content index {options.content_index!r}: {e}") from e

    return RevalidationEngine(index_factory(), options=options)


# Process instance
_engine: RevalidationEngine | None = None
_engine_lock = threading.Lock()


def get_engine() -> RevalidationEngine:
    """Get the process engine, building it from settings on first use."""
    global _engine
    if _engine is None:
        with _engine_lock:
            if _engine is None:
                _engine = build_engine()
    return _engine


def set_engine(engine: RevalidationEngine | None) -> None:
    """Install an engine instance (tests, custom integrations)."""
    global _engine
    with _engine_lock:
        _engine = engine


def reset_engine() -> None:
    """Reset the state of the process engine, if one exists."""
    if _engine is not None:
        _engine.reset()


def current_engine() -> RevalidationEngine | None:
    """Return the process engine without building it."""
    return _engine
