"""Bigote renderers.

Renderers walk a Template's token tree against a data context.

Available Renderers:
- StringRenderer: Renders to a string using the StringBuilder pattern,
  synchronously or as a coroutine

Thread Safety:
All renderers keep per-call state local to each render() call.
Safe for concurrent use from multiple threads.

"""

from bigote.renderers.protocol import TemplateRenderer
from bigote.renderers.string import StringRenderer

__all__ = ["StringRenderer", "TemplateRenderer"]
