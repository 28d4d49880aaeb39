"""Template tokenizer: scanner-driven tag recognition and tree building.

Tokenizing happens in two phases:

1. Scan: walk the template with a Scanner, emitting one text record per
   literal character and one pending record per tag. Whitespace on a line
   that holds only trimmable tags (sections, inverted sections, closes,
   partials, comments, delimiter changes) is dropped as soon as the line
   ends. Delimiter changes take effect immediately.
2. Build: merge adjacent text records, then materialize the immutable token
   tree bottom-up, closing each section when its ``/`` record is reached.

Thread Safety:
Tokenizer instances are single-use. Create one per template string. The
only shared state is the process-wide DelimiterTable, which is lock-safe.

"""

from __future__ import annotations

import re

from bigote.delimiters import (
    DEFAULT_DELIMITERS,
    DelimiterSet,
    DelimiterTable,
    get_delimiter_table,
)
from bigote.errors import (
    InvalidTagsError,
    UnclosedSectionError,
    UnclosedTagError,
    UnopenedSectionError,
)
from bigote.scanner import Scanner
from bigote.tokens import (
    CommentToken,
    DelimiterChangeToken,
    InterpolationToken,
    InvertedSectionToken,
    PartialToken,
    SectionToken,
    Template,
    TextToken,
    Token,
)

_SIGIL = re.compile(r"[#^/>{&=!]")
_WHITESPACE = re.compile(r"\s*")
_EQUALS = re.compile(r"\s*=")
_CURLY = re.compile(r"\s*\}")

# Tags whose presence on a line does not count as content.
_CONTENT_SIGILS = frozenset({"name", "&", "{"})


class _PendingTag:
    """Mutable tag record used while scanning; frozen into a Token later."""

    __slots__ = ("sigil", "value", "start", "end", "delimiters", "indent", "standalone")

    def __init__(
        self,
        sigil: str,
        value: str,
        start: int,
        end: int,
        delimiters: DelimiterSet,
    ) -> None:
        self.sigil = sigil
        self.value = value
        self.start = start
        self.end = end
        self.delimiters = delimiters
        self.indent = ""
        self.standalone = False


_Record = TextToken | _PendingTag


class Tokenizer:
    """Turn template text into a Template token tree.

    Usage:
        >>> template = Tokenizer("Hi {{name}}!").tokenize()
        >>> [token.type.name for token in template]
        ['TEXT', 'INTERPOLATION', 'TEXT']

    Thread Safety:
        Tokenizer instances are single-use. Create one per template string.

    """

    __slots__ = ("_source", "_delimiters", "_table", "_patterns")

    def __init__(
        self,
        source: str,
        delimiters: DelimiterSet | str | None = None,
        *,
        table: DelimiterTable | None = None,
    ) -> None:
        """Initialize tokenizer.

        Args:
            source: Template text
            delimiters: Starting delimiters, as a DelimiterSet or a
                space separated string such as ``"<% %>"``
            table: Pattern table (defaults to the process-wide one)

        Raises:
            InvalidTagsError: If ``delimiters`` is not a valid pair
        """
        if isinstance(delimiters, str):
            delimiters = DelimiterSet.parse(delimiters)
        self._source = source
        self._delimiters = delimiters or DEFAULT_DELIMITERS
        self._table = table if table is not None else get_delimiter_table()
        self._patterns = self._table.compile(self._delimiters)

    def tokenize(self) -> Template:
        """Tokenize the source into an immutable Template.

        Raises:
            UnclosedTagError: A tag opener without a matching closer
            UnopenedSectionError: A ``/`` tag with no open section
            UnclosedSectionError: A section closed by the wrong name or
                never closed
            InvalidTagsError: A malformed ``{{=...=}}`` directive
        """
        start_delimiters = self._delimiters
        if not self._source:
            return Template(self._source, (), start_delimiters)
        records = self._scan()
        tokens = self._nest(self._squash(records))
        return Template(self._source, tokens, start_delimiters)

    # =========================================================================
    # Phase 1: scanning
    # =========================================================================

    def _scan(self) -> list[_Record]:
        source = self._source
        scanner = Scanner(source)
        records: list[_Record] = []
        sections: list[_PendingTag] = []
        spaces: list[int] = []
        line_partials: list[_PendingTag] = []
        has_tag = False
        non_space = False

        def end_line() -> None:
            nonlocal has_tag, non_space
            if has_tag and not non_space:
                while spaces:
                    del records[spaces.pop()]
                for partial in line_partials:
                    partial.standalone = True
            else:
                spaces.clear()
                for partial in line_partials:
                    partial.indent = ""
            line_partials.clear()
            has_tag = False
            non_space = False

        while not scanner.eos:
            patterns = self._patterns
            start = scanner.pos
            value = scanner.scan_until(patterns.open_tag)

            for char in value:
                if char.isspace():
                    spaces.append(len(records))
                else:
                    non_space = True
                records.append(TextToken(char, start, start + 1))
                start += 1
                if char == "\n":
                    end_line()

            if not scanner.scan(patterns.open_tag):
                break

            has_tag = True
            sigil = scanner.scan(_SIGIL) or "name"
            scanner.scan(_WHITESPACE)

            if sigil == "=":
                value = scanner.scan_until(_EQUALS)
                scanner.scan(_EQUALS)
                scanner.scan_until(patterns.close_tag)
            elif sigil == "{":
                value = scanner.scan_until(patterns.close_curly)
                scanner.scan(_CURLY)
                scanner.scan_until(patterns.close_tag)
                sigil = "&"
            else:
                value = scanner.scan_until(patterns.close_tag)

            if not scanner.scan(patterns.close_tag):
                raise UnclosedTagError(scanner.pos, source)

            tag = _PendingTag(sigil, value, start, scanner.pos, self._delimiters)
            records.append(tag)

            if sigil in ("#", "^"):
                sections.append(tag)
            elif sigil == "/":
                if not sections:
                    raise UnopenedSectionError(value, start, source)
                opened = sections.pop()
                if opened.value != value:
                    raise UnclosedSectionError(opened.value, start, source)
            elif sigil in _CONTENT_SIGILS:
                non_space = True
            elif sigil == ">":
                if not non_space:
                    tag.indent = "".join(records[i].value for i in spaces)
                line_partials.append(tag)
            elif sigil == "=":
                self._switch_delimiters(tag, start)

        if sections:
            raise UnclosedSectionError(sections[-1].value, scanner.pos, source)

        # A standalone tag on the final line has no newline to trigger trimming.
        end_line()
        return records

    def _switch_delimiters(self, tag: _PendingTag, offset: int) -> None:
        parts = tag.value.split()
        if len(parts) != 2:
            raise InvalidTagsError(offset, self._source)
        self._delimiters = DelimiterSet(parts[0], parts[1])
        self._patterns = self._table.compile(self._delimiters)
        tag.delimiters = self._delimiters

    # =========================================================================
    # Phase 2: squash + nest
    # =========================================================================

    @staticmethod
    def _squash(records: list[_Record]) -> list[_Record]:
        """Merge runs of adjacent single-character text records."""
        squashed: list[_Record] = []
        run: list[TextToken] = []

        def flush() -> None:
            if run:
                squashed.append(
                    TextToken("".join(t.value for t in run), run[0].start, run[-1].end)
                )
                run.clear()

        for record in records:
            if isinstance(record, TextToken):
                run.append(record)
                continue
            flush()
            squashed.append(record)
        flush()
        return squashed

    @staticmethod
    def _nest(records: list[_Record]) -> tuple[Token, ...]:
        """Build the immutable tree; each section closes at its ``/`` record."""
        root: list[Token] = []
        collector = root
        stack: list[tuple[_PendingTag, list[Token], list[Token]]] = []

        for record in records:
            if isinstance(record, TextToken):
                collector.append(record)
                continue

            sigil = record.sigil
            if sigil in ("#", "^"):
                children: list[Token] = []
                stack.append((record, children, collector))
                collector = children
            elif sigil == "/":
                opened, children, parent = stack.pop()
                block_type = SectionToken if opened.sigil == "#" else InvertedSectionToken
                parent.append(
                    block_type(
                        name=opened.value,
                        children=tuple(children),
                        start=opened.start,
                        end=opened.end,
                        body_end=record.start,
                        delimiters=opened.delimiters,
                    )
                )
                collector = parent
            else:
                collector.append(_freeze(record))

        return tuple(root)


def _freeze(tag: _PendingTag) -> Token:
    sigil = tag.sigil
    if sigil == "name":
        return InterpolationToken(tag.value, True, tag.start, tag.end)
    if sigil == "&":
        return InterpolationToken(tag.value, False, tag.start, tag.end)
    if sigil == ">":
        return PartialToken(tag.value, tag.start, tag.end, tag.indent, tag.standalone)
    if sigil == "=":
        return DelimiterChangeToken(tag.delimiters, tag.start, tag.end)
    return CommentToken(tag.value, tag.start, tag.end)


def tokenize(
    source: str,
    delimiters: DelimiterSet | str | None = None,
) -> Template:
    """Tokenize ``source`` with the process-wide delimiter table."""
    return Tokenizer(source, delimiters).tokenize()


__all__ = ["Tokenizer", "tokenize"]
