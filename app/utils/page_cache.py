"""Per-path cache for data rendered by dashboard pages.

Views load their data through :func:`remember` using the URL path they
render.  Mutating actions call :func:`revalidate_path` for every page whose
data they change.  Each path has a revision number in the ``page_revisions``
table; revalidating bumps it, and every worker process drops entries loaded
under an older revision on its next read.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Any, Callable, Dict, Hashable, Optional, Tuple, TypeVar

from flask import current_app
from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app import db
from app.models import PageRevision

T = TypeVar("T")


class PageCache:
    """Thread-safe mapping of ``(path, key)`` to loaded page data.

    Entries are grouped per path and tagged with the revision they were
    loaded under.  A path keeps at most ``maxsize`` entries; the least
    recently used one is evicted first.
    """

    def __init__(self, maxsize: int = 64) -> None:
        self.maxsize = max(1, maxsize)
        self._buckets: Dict[str, Tuple[int, "OrderedDict[Hashable, Any]"]] = {}
        self._generations: Dict[str, int] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def generation(self, path: str) -> int:
        """Return how many times ``path`` was invalidated in this process."""
        with self._lock:
            return self._generations.get(_normalize(path), 0)

    def get(self, path: str, key: Hashable, revision: int = 0) -> Tuple[bool, Any]:
        path = _normalize(path)
        with self._lock:
            bucket = self._buckets.get(path)
            if bucket is not None and bucket[0] < revision:
                del self._buckets[path]
                bucket = None
            if bucket is not None and bucket[0] == revision and key in bucket[1]:
                bucket[1].move_to_end(key)
                self.hits += 1
                return True, bucket[1][key]
            self.misses += 1
            return False, None

    def set(
        self,
        path: str,
        key: Hashable,
        value: Any,
        revision: int = 0,
        generation: Optional[int] = None,
    ) -> bool:
        """Store ``value`` unless ``path`` moved on while it was loading.

        ``generation`` is the value :meth:`generation` returned before the
        load started.  Returns ``False`` when the value was not stored.
        """
        path = _normalize(path)
        with self._lock:
            if generation is not None and generation != self._generations.get(path, 0):
                return False
            bucket = self._buckets.get(path)
            if bucket is None or bucket[0] < revision:
                bucket = self._buckets[path] = (revision, OrderedDict())
            elif bucket[0] > revision:
                return False
            entries = bucket[1]
            entries[key] = value
            entries.move_to_end(key)
            while len(entries) > self.maxsize:
                entries.popitem(last=False)
            return True

    def invalidate(self, path: str) -> int:
        """Drop every entry cached for ``path``; return how many were dropped."""
        path = _normalize(path)
        with self._lock:
            self._generations[path] = self._generations.get(path, 0) + 1
            bucket = self._buckets.pop(path, None)
        return len(bucket[1]) if bucket else 0

    def clear(self) -> None:
        with self._lock:
            self._buckets.clear()

    def __contains__(self, path: str) -> bool:
        with self._lock:
            bucket = self._buckets.get(_normalize(path))
            return bool(bucket and bucket[1])

    def __len__(self) -> int:
        with self._lock:
            return sum(len(entries) for _, entries in self._buckets.values())


def _normalize(path: str) -> str:
    return "/" + path.strip("/")


def get_page_cache() -> PageCache:
    app = current_app._get_current_object()
    cache = app.extensions.get("page_cache")
    if cache is None:
        cache = app.extensions["page_cache"] = PageCache(
            maxsize=app.config.get("PAGE_CACHE_MAX_ENTRIES", 64)
        )
    return cache


def current_revision(path: str) -> int:
    """Return the stored revision of ``path``, 0 if it was never revalidated."""
    revision = db.session.execute(
        select(PageRevision.revision).where(PageRevision.path == _normalize(path))
    ).scalar_one_or_none()
    return revision or 0


def _bump_revision(path: str) -> None:
    bump = (
        update(PageRevision)
        .where(PageRevision.path == path)
        .values(revision=PageRevision.revision + 1)
        .execution_options(synchronize_session=False)
    )
    try:
        if db.session.execute(bump).rowcount == 0:
            db.session.execute(insert(PageRevision).values(path=path, revision=1))
        db.session.commit()
    except IntegrityError:
        # Another worker inserted the row first.
        db.session.rollback()
        db.session.execute(bump)
        db.session.commit()


def remember(path: str, key: Hashable, loader: Callable[[], T]) -> T:
    """Return cached data for ``(path, key)``, loading it on a miss."""
    if current_app.config.get("PAGE_CACHE_DISABLED"):
        return loader()
    cache = get_page_cache()
    generation = cache.generation(path)
    revision = current_revision(path)
    found, value = cache.get(path, key, revision)
    if found:
        return value
    value = loader()
    cache.set(path, key, value, revision=revision, generation=generation)
    return value


def revalidate_path(path: str) -> None:
    """Discard cached data for ``path`` in every process."""
    path = _normalize(path)
    dropped = get_page_cache().invalidate(path)
    try:
        _bump_revision(path)
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Could not record revalidation of %s", path)
        return
    current_app.logger.debug("Revalidated %s (%d cached entries)", path, dropped)
