"""Observability counters for the revalidation engine."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class RevalidationStats:
    """Process-wide revalidation counters."""

    events_received: int = 0
    events_ignored: int = 0
    paths_resolved: int = 0
    dispatched: int = 0
    succeeded: int = 0
    http_errors: int = 0
    transport_errors: int = 0
    cooldown_skipped: int = 0
    request_deduped: int = 0
    not_configured: int = 0
    last_dispatch_at: datetime | None = None

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def record_event(self, *, ignored: bool = False) -> None:
        with self._lock:
            self.events_received += 1
            if ignored:
                self.events_ignored += 1

    def record_paths(self, count: int) -> None:
        with self._lock:
            self.paths_resolved += count

    def record_attempt(self, *, success: bool, transport_error: bool, now: datetime) -> None:
        with self._lock:
            self.dispatched += 1
            self.last_dispatch_at = now
            if success:
                self.succeeded += 1
            elif transport_error:
                self.transport_errors += 1
            else:
                self.http_errors += 1

    def record_cooldown_skip(self, count: int = 1) -> None:
        with self._lock:
            self.cooldown_skipped += count

    def record_request_dedupe(self, count: int = 1) -> None:
        with self._lock:
            self.request_deduped += count

    def record_not_configured(self, count: int = 1) -> None:
        with self._lock:
            self.not_configured += count

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for API/monitoring."""
        with self._lock:
            return {
                "events_received": self.events_received,
                "events_ignored": self.events_ignored,
                "paths_resolved": self.paths_resolved,
                "dispatched": self.dispatched,
                "succeeded": self.succeeded,
                "http_errors": self.http_errors,
                "transport_errors": self.transport_errors,
                "cooldown_skipped": self.cooldown_skipped,
                "request_deduped": self.request_deduped,
                "not_configured": self.not_configured,
                "last_dispatch_at": (
                    self.last_dispatch_at.isoformat() if self.last_dispatch_at else None
                ),
            }

    def reset(self) -> None:
        """Reset all counters (for testing)."""
        with self._lock:
            self.events_received = 0
            self.events_ignored = 0
            self.paths_resolved = 0
            self.dispatched = 0
            self.succeeded = 0
            self.http_errors = 0
            self.transport_errors = 0
            self.cooldown_skipped = 0
            self.request_deduped = 0
            self.not_configured = 0
            self.last_dispatch_at = None
