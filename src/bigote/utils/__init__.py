"""Utility modules for Bigote.

Provides:
- text: escape_html, indent_lines for output processing
- logger: get_logger for logging
"""

from bigote.utils.logger import get_logger
from bigote.utils.text import escape_html, indent_lines

__all__ = [
    "escape_html",
    "get_logger",
    "indent_lines",
]
