"""Cursor over template source text.

The Scanner is the only component that moves through the template. It
exposes two primitive moves, both driven by compiled patterns:

- ``scan(pattern)``: consume a match anchored at the current position
- ``scan_until(pattern)``: consume everything before the next match

All positions are 0-based character offsets into the original string, the
same unit used by token ``start``/``end``.

Thread Safety:
Scanner instances are single-use. Create one per parse.

"""

from __future__ import annotations

import re


class Scanner:
    """Forward-only cursor over a template string.

    Usage:
        >>> import re
        >>> scanner = Scanner("Hello {{name}}")
        >>> scanner.scan_until(re.compile(r"\\{\\{"))
        'Hello '
        >>> scanner.scan(re.compile(r"\\{\\{"))
        '{{'
        >>> scanner.pos
        8

    """

    __slots__ = ("_source", "_source_len", "_pos")

    def __init__(self, source: str) -> None:
        self._source = source
        self._source_len = len(source)
        self._pos = 0

    @property
    def pos(self) -> int:
        """Current offset."""
        return self._pos

    @property
    def source(self) -> str:
        return self._source

    @property
    def tail(self) -> str:
        """Unconsumed remainder of the source."""
        return self._source[self._pos :]

    @property
    def eos(self) -> bool:
        """True once every character has been consumed."""
        return self._pos >= self._source_len

    def scan(self, pattern: re.Pattern[str]) -> str:
        """Consume ``pattern`` if it matches at the current position.

        Returns:
            The matched text, or "" when there is no match (nothing consumed)
        """
        match = pattern.match(self._source, self._pos)
        if match is None:
            return ""
        text = match.group(0)
        self._pos = match.end()
        return text

    def scan_until(self, pattern: re.Pattern[str]) -> str:
        """Consume text up to (not including) the next match of ``pattern``.

        With no further match, the rest of the source is consumed.

        Returns:
            The skipped text (possibly empty)
        """
        start = self._pos
        match = pattern.search(self._source, start)
        end = self._source_len if match is None else match.start()
        self._pos = end
        return self._source[start:end]
