"""Output accumulator for template rendering.

Rendering appends many short fragments (literal text, interpolated values,
section bodies). Collecting them in a list and joining once keeps the whole
render O(n) in the output size.

Thread Safety:
StringBuilder instances are local to one render call.

"""

from __future__ import annotations


class StringBuilder:
    """Append-only string accumulator.

    Usage:
            >>> sb = StringBuilder()
            >>> sb.append("Hello, ").append("world").append("")
            StringBuilder(parts=2)
            >>> sb.build()
            'Hello, world'

    """

    __slots__ = ("_parts",)

    def __init__(self) -> None:
        self._parts: list[str] = []

    def append(self, s: str) -> StringBuilder:
        """Append a fragment (empty strings are skipped).

        Returns:
            self for method chaining
        """
        if s:
            self._parts.append(s)
        return self

    def build(self) -> str:
        """Join all fragments into the final output."""
        return "".join(self._parts)

    def __len__(self) -> int:
        """Number of fragments (not characters)."""
        return len(self._parts)

    def __bool__(self) -> bool:
        return bool(self._parts)

    def __repr__(self) -> str:
        return f"StringBuilder(parts={len(self._parts)})"
