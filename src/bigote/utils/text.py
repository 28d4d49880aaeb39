"""Text processing utilities for Bigote.

Example:
    >>> from bigote.utils.text import escape_html
    >>> escape_html('<a href="x">&</a>')
    '&lt;a href=&quot;x&quot;&gt;&amp;&lt;/a&gt;'
"""

from __future__ import annotations

import html as html_module
import re

_LINE_START = re.compile(r"^(.)", re.MULTILINE)


def escape_html(text: str) -> str:
    """Escape HTML special characters.

    Escapes ``&``, ``<``, ``>`` and ``"``. Single quotes are left alone, the
    same way the Mustache specification's HTML escaping examples do.
    Text without any of these characters comes back unchanged, so escaping
    is idempotent on safe strings.
    """
    return html_module.escape(text, quote=False).replace('"', "&quot;")


def indent_lines(text: str, indent: str) -> str:
    """Prefix every non-empty line of ``text`` with ``indent``.

    Used for standalone partials: a trailing newline does not start a new
    (empty) line, so nothing is appended after it.

    Examples:
        >>> indent_lines("a\\nb\\n", "  ")
        '  a\\n  b\\n'
        >>> indent_lines("a\\n\\nb", ">")
        '>a\\n\\n>b'
    """
    if not indent or not text:
        return text
    return _LINE_START.sub(lambda m: indent + m.group(1), text)
