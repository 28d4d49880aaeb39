"""Token definitions for the Bigote tokenizer.

The tokenizer produces a tree of typed tokens that the renderer walks.
Every token records the ``start``/``end`` offsets of its full source span
(delimiters included) so errors can point at the template and section
lambdas can receive their raw, unrendered body text.

Thread Safety:
Tokens are frozen (immutable) and safe to share across threads. A parsed
Template can be rendered concurrently by any number of callers.

"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union

from bigote.delimiters import DEFAULT_DELIMITERS, DelimiterSet


class TokenType(Enum):
    """Kinds of tokens that appear in a parsed template."""

    TEXT = "text"
    INTERPOLATION = "name"  # {{name}}, {{&name}}, {{{name}}}
    SECTION = "#"
    INVERTED_SECTION = "^"
    PARTIAL = ">"
    COMMENT = "!"
    DELIMITER_CHANGE = "="


@dataclass(frozen=True, slots=True)
class TextToken:
    """Literal template text, emitted verbatim."""

    value: str
    start: int
    end: int

    type: ClassVar[TokenType] = TokenType.TEXT


@dataclass(frozen=True, slots=True)
class InterpolationToken:
    """A ``{{name}}`` tag; ``escape`` is False for ``{{&name}}``/``{{{name}}}``."""

    name: str
    escape: bool
    start: int
    end: int

    type: ClassVar[TokenType] = TokenType.INTERPOLATION


@dataclass(frozen=True, slots=True)
class SectionToken:
    """A ``{{#name}}...{{/name}}`` block.

    Attributes:
        name: Dotted name the section resolves
        children: Tokens between the open and close tags
        start: Offset of the opening tag
        end: Offset just past the opening tag (start of the raw body)
        body_end: Offset where the matching close tag begins
        delimiters: Delimiters active when the section opened

    """

    name: str
    children: tuple[Token, ...]
    start: int
    end: int
    body_end: int
    delimiters: DelimiterSet = DEFAULT_DELIMITERS

    type: ClassVar[TokenType] = TokenType.SECTION

    def body(self, source: str) -> str:
        """Return the untouched template text between the open and close tags."""
        return source[self.end : self.body_end]


@dataclass(frozen=True, slots=True)
class InvertedSectionToken:
    """A ``{{^name}}...{{/name}}`` block, rendered when ``name`` is falsy."""

    name: str
    children: tuple[Token, ...]
    start: int
    end: int
    body_end: int
    delimiters: DelimiterSet = DEFAULT_DELIMITERS

    type: ClassVar[TokenType] = TokenType.INVERTED_SECTION

    def body(self, source: str) -> str:
        return source[self.end : self.body_end]


@dataclass(frozen=True, slots=True)
class PartialToken:
    """A ``{{>name}}`` tag.

    ``standalone`` is True when the tag sat alone on its line; ``indent`` is
    then the whitespace that preceded it, applied to every partial line.
    """

    name: str
    start: int
    end: int
    indent: str = ""
    standalone: bool = False

    type: ClassVar[TokenType] = TokenType.PARTIAL


@dataclass(frozen=True, slots=True)
class CommentToken:
    value: str
    start: int
    end: int

    type: ClassVar[TokenType] = TokenType.COMMENT


@dataclass(frozen=True, slots=True)
class DelimiterChangeToken:
    """A ``{{=<% %>=}}`` directive; ``delimiters`` is the new set."""

    delimiters: DelimiterSet
    start: int
    end: int

    type: ClassVar[TokenType] = TokenType.DELIMITER_CHANGE


Token = Union[
    TextToken,
    InterpolationToken,
    SectionToken,
    InvertedSectionToken,
    PartialToken,
    CommentToken,
    DelimiterChangeToken,
]

BlockToken = Union[SectionToken, InvertedSectionToken]


@dataclass(frozen=True, slots=True)
class Template:
    """A parsed template: its source text and top-level token tree.

    Attributes:
        source: The template text the offsets refer to
        tokens: Top-level tokens in source order
        delimiters: Delimiters the parse started with

    """

    source: str
    tokens: tuple[Token, ...]
    delimiters: DelimiterSet = DEFAULT_DELIMITERS

    def __iter__(self) -> Iterator[Token]:
        return iter(self.tokens)

    def __len__(self) -> int:
        return len(self.tokens)

    def walk(self) -> Iterator[Token]:
        """Yield every token in the tree, depth-first, in source order."""
        stack: list[Iterator[Token]] = [iter(self.tokens)]
        while stack:
            token = next(stack[-1], None)
            if token is None:
                stack.pop()
                continue
            yield token
            if isinstance(token, (SectionToken, InvertedSectionToken)):
                stack.append(iter(token.children))


__all__ = [
    "BlockToken",
    "CommentToken",
    "DelimiterChangeToken",
    "InterpolationToken",
    "InvertedSectionToken",
    "PartialToken",
    "SectionToken",
    "Template",
    "TextToken",
    "Token",
    "TokenType",
]
