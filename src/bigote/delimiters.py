"""Delimiter sets and the shared tag-pattern table.

A DelimiterSet is the pair of markers that open and close a tag. Scanning a
template needs three compiled patterns per set (open tag, close tag, and the
close of a triple mustache). Compiling them is cheap but not free, so every
tokenizer in the process shares one bounded DelimiterTable.

Thread Safety:
DelimiterSet and TagPatterns are frozen. DelimiterTable guards its map with a
lock; concurrent compile() calls for the same key always converge on one
stored TagPatterns value.

Eviction:
When the table is full, the oldest non-default entry is dropped (FIFO). The
order is an implementation detail; only the size bound is guaranteed.

"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass

from bigote.errors import InvalidTagsError
from bigote.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CAPACITY = 4


@dataclass(frozen=True, slots=True)
class DelimiterSet:
    """Open/close tag markers, e.g. ``{{`` and ``}}``.

    Attributes:
        open: Marker that starts a tag
        close: Marker that ends a tag

    """

    open: str = "{{"
    close: str = "}}"

    def __post_init__(self) -> None:
        if not self.open or not self.close:
            raise InvalidTagsError()
        if any(char.isspace() for char in self.open + self.close):
            raise InvalidTagsError()

    @property
    def key(self) -> str:
        """Canonical ``"open close"`` form, used as a cache key."""
        return f"{self.open} {self.close}"

    def __str__(self) -> str:
        return self.key

    @classmethod
    def parse(cls, value: str) -> DelimiterSet:
        """Build a DelimiterSet from a whitespace separated pair.

        Raises:
            InvalidTagsError: If ``value`` does not split into exactly two parts
        """
        parts = value.split()
        if len(parts) != 2:
            raise InvalidTagsError()
        return cls(parts[0], parts[1])


DEFAULT_DELIMITERS = DelimiterSet()


@dataclass(frozen=True, slots=True)
class TagPatterns:
    """Compiled recognizers for one delimiter set.

    Attributes:
        open_tag: Opening marker plus any following whitespace
        close_tag: Optional whitespace plus the closing marker
        close_curly: Optional whitespace, ``}`` and the closing marker
            (end of a triple mustache)

    """

    open_tag: re.Pattern[str]
    close_tag: re.Pattern[str]
    close_curly: re.Pattern[str]

    @classmethod
    def build(cls, delimiters: DelimiterSet) -> TagPatterns:
        """Compile patterns, escaping the markers literally."""
        return cls(
            open_tag=re.compile(re.escape(delimiters.open) + r"\s*"),
            close_tag=re.compile(r"\s*" + re.escape(delimiters.close)),
            close_curly=re.compile(r"\s*" + re.escape("}" + delimiters.close)),
        )


class DelimiterTable:
    """Bounded, lock-protected map of delimiter key -> TagPatterns.

    Usage:
        >>> table = DelimiterTable(capacity=2)
        >>> patterns = table.compile(DelimiterSet("<%", "%>"))
        >>> bool(patterns.open_tag.match("<% name %>"))
        True

    """

    __slots__ = ("_capacity", "_entries", "_lock")

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("DelimiterTable capacity must be at least 1")
        self._capacity = capacity
        self._entries: dict[str, TagPatterns] = {}
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        """Maximum number of entries kept."""
        return self._capacity

    @capacity.setter
    def capacity(self, value: int) -> None:
        if value < 1:
            raise ValueError("DelimiterTable capacity must be at least 1")
        with self._lock:
            self._capacity = value
            self._evict_to(value)

    def compile(self, delimiters: DelimiterSet) -> TagPatterns:
        """Return the patterns for ``delimiters``, compiling on a miss."""
        key = delimiters.key
        with self._lock:
            patterns = self._entries.get(key)
            if patterns is not None:
                return patterns
            patterns = TagPatterns.build(delimiters)
            self._store(key, patterns)
            logger.debug("Compiled tag patterns for %r", key)
            return patterns

    def add(self, key: str, patterns: TagPatterns) -> None:
        """Store ``patterns`` under ``key``, replacing any existing value."""
        with self._lock:
            self._store(key, patterns)

    def get(self, key: str) -> TagPatterns | None:
        with self._lock:
            return self._entries.get(key)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    # Callers must hold self._lock.
    def _store(self, key: str, patterns: TagPatterns) -> None:
        if key not in self._entries:
            self._evict_to(self._capacity - 1)
        self._entries[key] = patterns

    def _evict_to(self, size: int) -> None:
        default_key = DEFAULT_DELIMITERS.key
        while len(self._entries) > size:
            victim = next((k for k in self._entries if k != default_key), default_key)
            del self._entries[victim]
            logger.debug("Evicted tag patterns for %r", victim)


# Process-wide table shared by every Tokenizer.
_TABLE = DelimiterTable()


def get_delimiter_table() -> DelimiterTable:
    """Return the process-wide DelimiterTable."""
    return _TABLE


__all__ = [
    "DEFAULT_DELIMITERS",
    "DelimiterSet",
    "DelimiterTable",
    "TagPatterns",
    "get_delimiter_table",
]
