"""Source location tracking for error messages.

Tokens and errors only store 0-based character offsets. SourceLocation turns
an offset into a human-friendly line/column pair when one is actually needed.

Thread Safety:
SourceLocation is frozen (immutable) and safe to share across threads.

"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """Line/column view of a template offset.

    ``lineno`` and ``col_offset`` are 1-indexed; ``offset`` is the raw
    0-based character offset it was derived from.

    Examples:
        >>> SourceLocation.from_offset("a\\nbc{{x", 4)
        SourceLocation(lineno=2, col_offset=3, offset=4, template_name=None)

    """

    lineno: int
    col_offset: int
    offset: int = 0
    template_name: str | None = None

    def __str__(self) -> str:
        """Format location for error messages.

        Returns:
            Formatted string like "page.mustache:10:5" or "10:5"
        """
        if self.template_name:
            return f"{self.template_name}:{self.lineno}:{self.col_offset}"
        return f"{self.lineno}:{self.col_offset}"

    @classmethod
    def from_offset(
        cls, source: str, offset: int, template_name: str | None = None
    ) -> SourceLocation:
        """Compute the location of ``offset`` inside ``source``.

        Offsets past the end of the text are clamped to the end.
        """
        offset = max(0, min(offset, len(source)))
        lineno = source.count("\n", 0, offset) + 1
        line_start = source.rfind("\n", 0, offset) + 1
        return cls(
            lineno=lineno,
            col_offset=offset - line_start + 1,
            offset=offset,
            template_name=template_name,
        )
