"""Parse cache for Bigote templates.

Maps (template text, delimiter key) -> Template so repeated renders of the
same literal template skip tokenization. Keys use exact string equality.

Thread Safety:
DictTemplateCache guards its dict with a lock. ``put`` keeps the first
stored tree for a key and returns it, so two threads racing to parse the
same text end up sharing a single Template. Templates are immutable and
safe to share.

Example:
    >>> from bigote import parse, DictTemplateCache
    >>> cache = DictTemplateCache()
    >>> t1 = parse("Hi {{name}}", cache=cache)
    >>> t2 = parse("Hi {{name}}", cache=cache)  # Cache hit, no re-parse
    >>> t1 is t2
    True
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Protocol

from bigote.utils.logger import get_logger

if TYPE_CHECKING:
    from bigote.tokens import Template

logger = get_logger(__name__)


class TemplateCache(Protocol):
    """Protocol for parse caches."""

    def get(self, source: str, delimiters: str) -> Template | None:
        """Return the cached Template if present, else None."""
        ...

    def put(self, source: str, delimiters: str, template: Template) -> Template:
        """Store ``template`` unless the key is taken; return the stored one."""
        ...

    def clear(self) -> None:
        ...


class DictTemplateCache:
    """In-memory, lock-protected parse cache.

    Unbounded by default. With ``max_size`` set, the oldest entry is dropped
    when a new key would exceed it.
    """

    __slots__ = ("_data", "_lock", "_max_size")

    def __init__(self, max_size: int | None = None) -> None:
        if max_size is not None and max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._data: dict[tuple[str, str], Template] = {}
        self._lock = threading.Lock()
        self._max_size = max_size

    @property
    def max_size(self) -> int | None:
        return self._max_size

    def get(self, source: str, delimiters: str) -> Template | None:
        with self._lock:
            template = self._data.get((source, delimiters))
        if template is not None:
            logger.debug("Template cache hit (%d chars)", len(source))
        return template

    def put(self, source: str, delimiters: str, template: Template) -> Template:
        key = (source, delimiters)
        with self._lock:
            existing = self._data.get(key)
            if existing is not None:
                return existing
            if self._max_size is not None:
                while len(self._data) >= self._max_size:
                    del self._data[next(iter(self._data))]
            self._data[key] = template
        logger.debug("Cached template (%d chars)", len(source))
        return template

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data


__all__ = [
    "DictTemplateCache",
    "TemplateCache",
]
