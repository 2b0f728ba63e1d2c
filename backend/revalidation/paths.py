"""Resolve CMS entities into the relative URL paths that must be revalidated."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Protocol
from urllib.parse import urlsplit

from .types import ContentRecord, EntityKind, TermRef


class ContentIndex(Protocol):
    """
    Lookups the CMS exposes to the revalidation engine.

    Implementations live in the CMS integration layer; the engine only reads.
    """

    def get_content(self, content_id: int) -> ContentRecord | None: ...

    def permalink(self, content_id: int) -> str | None: ...

    def terms_for_content(self, content_id: int) -> Iterable[TermRef]: ...

    def term_archive_url(self, kind: EntityKind, term_id: int) -> str | None: ...

    def published_content_ids(
        self, kind: EntityKind, term_id: int, content_kinds: Sequence[str]
    ) -> Iterable[int]: ...


def normalize_path(url: str, site_url: str = "") -> str:
    """
    Convert an absolute URL into a relative path wrapped in slashes.

    `https://example.com/blog/my-post` with site `https://example.com`
    becomes `/blog/my-post/`. URLs outside the site keep only their path.
    """
    base = (site_url or "").rstrip("/")
    if base and url.startswith(base):
        remainder = url[len(base) :]
    elif "://" in url:
        remainder = urlsplit(url).path
    else:
        remainder = url

    remainder = remainder.strip("/")
    if not remainder:
        return "/"
    return f"/{remainder}/"


def unique_paths(paths: Iterable[str]) -> list[str]:
    """Drop repeated paths, keeping first-seen order."""
    return list(dict.fromkeys(paths))


class PathResolver:
    """Side-effect-free translation of entities into paths."""

    def __init__(
        self,
        index: ContentIndex,
        *,
        site_url: str = "",
        content_kinds: Sequence[str] = ("post",),
    ):
        self._index = index
        self._site_url = site_url
        self._content_kinds = tuple(content_kinds)

    @property
    def index(self) -> ContentIndex:
        return self._index

    def to_path(self, url: str) -> str:
        return normalize_path(url, self._site_url)

    def paths_for_content(self, content_id: int) -> list[str]:
        """Permalink plus the archive of every attached category and tag."""
        paths: list[str] = []

        permalink = self._index.permalink(content_id)
        if permalink:
            paths.append(self.to_path(permalink))

        for term in self._index.terms_for_content(content_id):
            archive_url = self._index.term_archive_url(term.kind, term.id)
            if archive_url:
                paths.append(self.to_path(archive_url))

        return paths

    def paths_for_term(self, kind: EntityKind, term_id: int) -> list[str]:
        """Term archive plus the permalink of every published member."""
        paths: list[str] = []

        archive_url = self._index.term_archive_url(kind, term_id)
        if archive_url:
            paths.append(self.to_path(archive_url))

        for content_id in self._index.published_content_ids(kind, term_id, self._content_kinds):
            permalink = self._index.permalink(content_id)
            if permalink:
                paths.append(self.to_path(permalink))

        return paths

    def paths_for(self, kind: EntityKind, entity_id: int) -> list[str]:
        if kind.is_term:
            return self.paths_for_term(kind, entity_id)
        return self.paths_for_content(entity_id)
