"""Bounded, newest-first audit trail of revalidation attempts."""

from __future__ import annotations

import logging
import threading
from typing import Any

from django.db import DatabaseError, IntegrityError, transaction

from .models import RevalidationSetting
from .types import DispatchAttempt

logger = logging.getLogger(__name__)

LOGS_KEY = "revalidation_logs"
MAX_ENTRIES = 100


def _as_entries(value: Any) -> list[dict[str, Any]]:
    """Stored value as a list, or empty when the store holds anything else."""
    if not isinstance(value, list):
        return []
    return value


class AuditLog:
    """
    FIFO-bounded log persisted as one JSON array.

    Appends are serialized by a process lock and a row lock so concurrent
    dispatches cannot interleave and break the capacity bound.
    """

    def __init__(self, *, key: str = LOGS_KEY, capacity: int = MAX_ENTRIES):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._key = key
        self._capacity = capacity
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def record(self, attempt: DispatchAttempt) -> None:
        """Prepend an attempt and drop entries beyond capacity from the tail."""
        entry = attempt.as_dict()
        try:
            try:
                self._prepend(entry)
            except IntegrityError:
                # Another process created the row between lookup and insert
                self._prepend(entry)
        except DatabaseError:
            # Don't let logging failures break revalidation
            logger.exception("Failed to record revalidation attempt for %s", attempt.path)

    def _prepend(self, entry: dict[str, Any]) -> None:
        with self._lock, transaction.atomic():
            row, _created = RevalidationSetting.objects.select_for_update().get_or_create(
                key=self._key,
                defaults={"value": []},
            )
            entries = _as_entries(row.value)
            if entries is not row.value:
                logger.warning("Revalidation log store was corrupted; starting a new log")
            entries.insert(0, entry)
            row.value = entries[: self._capacity]
            row.save(update_fields=["value", "updated_at"])

    def list(self) -> list[dict[str, Any]]:
        """Return stored entries, newest first."""
        row = RevalidationSetting.objects.filter(key=self._key).first()
        if row is None:
            return []
        return _as_entries(row.value)

    def clear(self) -> bool:
        """Remove every entry. Returns False if the store could not be written."""
        try:
            with self._lock:
                RevalidationSetting.objects.update_or_create(key=self._key, defaults={"value": []})
        except DatabaseError:
            logger.exception("Failed to clear revalidation logs")
            return False
        logger.info("Revalidation logs cleared")
        return True

    def __len__(self) -> int:
        return len(self.list())
