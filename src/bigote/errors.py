"""Exception classes for Bigote.

Parse errors abort the whole parse and carry the 0-based character offset
where the problem was detected. Render errors abort the whole render.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bigote.location import SourceLocation


class BigoteError(Exception):
    """Base exception for all Bigote errors.

    Subclass this for specific error categories.
    """

    pass


class ParseError(BigoteError):
    """Error during template tokenization.

    Raised when the tokenizer encounters malformed tags or unbalanced
    sections. No partial token tree is ever returned alongside it.
    """

    def __init__(
        self,
        message: str,
        offset: int | None = None,
        source: str | None = None,
    ) -> None:
        """Initialize parse error.

        Args:
            message: Full error description (already includes the offset)
            offset: 0-based character offset into the template
            source: Template text, used to compute line/column on demand
        """
        self.message = message
        self.offset = offset
        self.source = source
        super().__init__(message)

    @property
    def location(self) -> SourceLocation | None:
        """Line/column of the error, when the template text is known."""
        if self.offset is None or self.source is None:
            return None
        from bigote.location import SourceLocation

        return SourceLocation.from_offset(self.source, self.offset)


class UnclosedTagError(ParseError):
    """An opening delimiter was never followed by a closing one."""

    def __init__(self, offset: int, source: str | None = None) -> None:
        super().__init__(f"Unclosed Tag at {offset}", offset, source)


class UnclosedSectionError(ParseError):
    """A section was closed with the wrong name, or never closed.

    ``name`` is always the name of the section that was opened.
    """

    def __init__(self, name: str, offset: int, source: str | None = None) -> None:
        self.name = name
        super().__init__(f"Unclosed Section '{name}' at {offset}", offset, source)


class UnopenedSectionError(ParseError):
    """A close tag appeared with no section open."""

    def __init__(self, name: str, offset: int, source: str | None = None) -> None:
        self.name = name
        super().__init__(f"Unopened Section '{name}' at {offset}", offset, source)


class InvalidTagsError(ParseError):
    """A delimiter set did not consist of exactly two non-empty markers."""

    def __init__(self, offset: int | None = None, source: str | None = None) -> None:
        super().__init__("Invalid Tags", offset, source)


class RenderError(BigoteError):
    """Error during template rendering."""

    pass


class UnknownTemplateError(RenderError):
    """A template or partial name could not be resolved by any loader."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"No template was found with the name '{name}'")


class DataMissError(RenderError):
    """A name did not resolve and misses are configured to be errors."""

    def __init__(self, name: str, skip_recursive_lookup: bool = False) -> None:
        self.name = name
        self.skip_recursive_lookup = skip_recursive_lookup
        super().__init__(f"'{name}' is undefined.")


class RecursionLimitError(RenderError):
    """Partial or lambda expansion nested deeper than the configured limit."""

    def __init__(self, depth: int) -> None:
        self.depth = depth
        super().__init__(f"Maximum template recursion depth of {depth} exceeded")
