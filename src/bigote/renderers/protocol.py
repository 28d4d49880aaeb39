"""TemplateRenderer protocol: the stable interface for template renderers.

Any renderer that implements ``render(template, data) -> str`` conforms to
this protocol. The built-in ``StringRenderer`` is the reference
implementation.

Example:
    from bigote.renderers.protocol import TemplateRenderer

    def render_page(renderer: TemplateRenderer, template: Template) -> str:
        return renderer.render(template, {"title": "Home"})

"""

from typing import Any, Protocol

from bigote.tokens import Template


class TemplateRenderer(Protocol):
    """Protocol for template renderers."""

    def render(self, template: Template, data: Any) -> str:
        """Render a parsed Template against a data value.

        Args:
            template: The token tree to render.
            data: Root value of the data context.

        Returns:
            Rendered string output.

        """
        ...
