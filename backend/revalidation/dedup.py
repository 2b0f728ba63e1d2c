"""Same-request and cooldown filters for outbound revalidation requests."""

from __future__ import annotations

import hashlib
import threading

from django.core.cache import cache

# Cache key prefix for per-path cooldown markers
_CACHE_COOLDOWN_KEY = "revalidation:cooldown:"

DEFAULT_COOLDOWN_SECONDS = 5


def cooldown_key(path: str) -> str:
    """Return the cache key guarding a path, derived from the path alone."""
    digest = hashlib.md5(path.encode("utf-8")).hexdigest()
    return f"{_CACHE_COOLDOWN_KEY}{digest}"


class Deduplicator:
    """
    Absorbs the overlapping change signals a CMS fires for one logical edit.

    Two independent filters:
        - same-request: an entity is processed once per trigger cycle. The
          cycle is scoped to the current thread and reset explicitly.
        - cooldown: a path is dispatched at most once per cooldown window.
          The check-and-set goes through `cache.add`, which is atomic, so
          racing threads cannot both win the same window.
    """

    def __init__(self, *, cooldown_seconds: int = DEFAULT_COOLDOWN_SECONDS):
        if cooldown_seconds < 0:
            raise ValueError("cooldown_seconds must not be negative")

        self._cooldown_seconds = cooldown_seconds
        self._scope = threading.local()
        self._issued_keys: set[str] = set()
        self._issued_lock = threading.Lock()

    @property
    def cooldown_seconds(self) -> int:
        return self._cooldown_seconds

    def _processed(self) -> set[tuple[str, int]]:
        processed = getattr(self._scope, "processed", None)
        if processed is None:
            processed = set()
            self._scope.processed = processed
        return processed

    def claim_entity(self, kind: str, entity_id: int) -> bool:
        """
        Mark an entity as processed for the current trigger cycle.

        Returns:
            True the first time the entity is seen, False afterwards
        """
        key = (str(kind), int(entity_id))
        processed = self._processed()
        if key in processed:
            return False
        processed.add(key)
        return True

    def is_entity_processed(self, kind: str, entity_id: int) -> bool:
        return (str(kind), int(entity_id)) in self._processed()

    def reset_processed(self) -> None:
        """Start a new trigger cycle for the calling thread."""
        self._processed().clear()

    def claim_path(self, path: str) -> bool:
        """
        Open a cooldown window for `path` if none is active.

        Returns:
            True if the caller may dispatch, False while a window is open
        """
        if self._cooldown_seconds == 0:
            return True

        key = cooldown_key(path)
        acquired = cache.add(key, True, timeout=self._cooldown_seconds)
        if acquired:
            with self._issued_lock:
                self._issued_keys.add(key)
        return acquired

    def is_cooling_down(self, path: str) -> bool:
        return cache.get(cooldown_key(path)) is not None

    def release_path(self, path: str) -> None:
        """Close the cooldown window for a path early."""
        key = cooldown_key(path)
        cache.delete(key)
        with self._issued_lock:
            self._issued_keys.discard(key)

    def reset(self) -> None:
        """Drop the current trigger cycle and every cooldown this instance opened."""
        self.reset_processed()
        with self._issued_lock:
            keys = list(self._issued_keys)
            self._issued_keys.clear()
        if keys:
            cache.delete_many(keys)
