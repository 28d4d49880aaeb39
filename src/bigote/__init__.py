"""
Bigote: Mustache templates for Python

A Mustache-compliant template engine. Templates are tokenized into an
immutable token tree once and rendered against any host data many times.
Zero runtime dependencies.

Quick Start:
    >>> from bigote import parse, render
    >>> template = parse("Hello {{name}}!")
    >>> render(template, {"name": "World"})
    'Hello World!'

    >>> # Or use the configurable Bigote engine
    >>> from bigote import BigoteBuilder
    >>> stache = BigoteBuilder().set_ignore_case_on_key_lookup(True).build()
    >>> stache.render("{{NAME}}", {"name": "World"})
    'World'

Custom data access:
    >>> builder = BigoteBuilder()
    >>> builder.add_truthy_check(lambda v: v != 0 if isinstance(v, int) else None)
    BigoteBuilder(...)
    >>> builder.build().render("{{#n}}yes{{/n}}", {"n": 0})
    ''

Installation:
    pip install bigote
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from bigote.cache import DictTemplateCache, TemplateCache
from bigote.config import (
    RenderConfig,
    get_render_config,
    render_config_context,
    reset_render_config,
    set_render_config,
)
from bigote.context import Context
from bigote.delimiters import DEFAULT_DELIMITERS, DelimiterSet, get_delimiter_table
from bigote.errors import (
    BigoteError,
    DataMissError,
    InvalidTagsError,
    ParseError,
    RecursionLimitError,
    RenderError,
    UnclosedSectionError,
    UnclosedTagError,
    UnknownTemplateError,
    UnopenedSectionError,
)
from bigote.loaders import (
    CompositeLoader,
    DictionaryLoader,
    FileSystemLoader,
    StringLoader,
    TemplateLoader,
)
from bigote.location import SourceLocation
from bigote.registry import (
    MISSING,
    EnumerationConverter,
    Registry,
    RegistryBuilder,
    TruthyCheck,
    ValueGetter,
)
from bigote.renderers.protocol import TemplateRenderer
from bigote.renderers.string import Escaper, StringRenderer
from bigote.tokenizer import Tokenizer
from bigote.tokens import Template, Token, TokenType

__version__ = "0.1.0"

Partials = Mapping[str, str] | TemplateLoader


def parse(
    template: str,
    delimiters: DelimiterSet | str | None = None,
    cache: TemplateCache | None = None,
) -> Template:
    """Tokenize template text into an immutable Template.

    Args:
        template: Template text
        delimiters: Starting delimiters (defaults to ``{{ }}``)
        cache: Optional parse cache. On a hit the cached tree is returned
            without tokenizing; on a miss the new tree is stored.

    Returns:
        Template token tree

    Raises:
        ParseError: If the template is malformed

    Example:
        >>> parse("{{#items}}{{.}}{{/items}}").tokens[0].name
        'items'
    """
    if isinstance(delimiters, str):
        delimiters = DelimiterSet.parse(delimiters)
    delimiters = delimiters or DEFAULT_DELIMITERS

    if cache is None:
        return Tokenizer(template, delimiters).tokenize()

    cached = cache.get(template, delimiters.key)
    if cached is not None:
        return cached
    return cache.put(template, delimiters.key, Tokenizer(template, delimiters).tokenize())


def render(
    template: Template | str,
    data: Any,
    partials: Partials | None = None,
    *,
    config: RenderConfig | None = None,
    registry: Registry | None = None,
) -> str:
    """Render a template against ``data``.

    Args:
        template: Parsed Template, or template text
        data: Root value of the data context
        partials: Partial templates by name, or a loader
        config: Render settings (defaults to the active ContextVar config)
        registry: Capability registries (defaults to the built-ins)

    Returns:
        Rendered text

    Example:
        >>> render("{{>hi}}", {"who": "you"}, {"hi": "hi {{who}}"})
        'hi you'
    """
    if isinstance(template, str):
        template = parse(template)
    return StringRenderer(registry=registry).render(template, data, partials, config=config)


async def render_async(
    template: Template | str,
    data: Any,
    partials: Partials | None = None,
    *,
    config: RenderConfig | None = None,
    registry: Registry | None = None,
) -> str:
    """Coroutine mirror of render(); partials are fetched with ``load_async``."""
    if isinstance(template, str):
        template = parse(template)
    renderer = StringRenderer(registry=registry)
    return await renderer.render_async(template, data, partials, config=config)


class Bigote:
    """Configured template engine combining loaders, tokenizer and renderer.

    Instances are created by BigoteBuilder and are immutable afterwards.

    Usage:
        >>> stache = BigoteBuilder().build()
        >>> stache.render("{{#people}}{{name}} {{/people}}", {"people": [{"name": "A"}]})
        'A '

        >>> # Named templates from a loader
        >>> loader = DictionaryLoader({"page": "<h1>{{title}}</h1>"})
        >>> stache = BigoteBuilder().set_template_loader(loader).build()
        >>> stache.render("page", {"title": "Home"})
        '<h1>Home</h1>'

    Thread Safety:
        All state is immutable or lock-protected (the template cache).
        Safe to share one instance across threads and tasks.

    """

    __slots__ = ("_config", "_cache", "_renderer", "_template_loader")

    def __init__(
        self,
        *,
        registry: Registry | None = None,
        template_loader: TemplateLoader | None = None,
        partial_loader: TemplateLoader | None = None,
        escaper: Escaper | None = None,
        config: RenderConfig | None = None,
        cache: TemplateCache | None = None,
    ) -> None:
        self._config = config
        self._cache = cache if cache is not None else DictTemplateCache()
        self._template_loader = template_loader or StringLoader()
        self._renderer = StringRenderer(
            registry=registry,
            partial_loader=partial_loader,
            escaper=escaper,
            cache=self._cache,
        )

    @property
    def config(self) -> RenderConfig | None:
        return self._config

    @property
    def template_loader(self) -> TemplateLoader:
        return self._template_loader

    @property
    def cache(self) -> TemplateCache:
        return self._cache

    def parse(self, template: str, delimiters: DelimiterSet | str | None = None) -> Template:
        """Tokenize template text through this engine's cache."""
        return parse(template, delimiters, cache=self._cache)

    def cache_template(
        self, template: str, delimiters: DelimiterSet | str | None = None
    ) -> Template:
        """Tokenize ``template`` ahead of time so later renders hit the cache."""
        return self.parse(template, delimiters)

    def clear_cache(self) -> None:
        self._cache.clear()

    def render(
        self,
        template: Template | str,
        data: Any,
        partials: Partials | None = None,
        *,
        config: RenderConfig | None = None,
    ) -> str:
        """Render a template by name (resolved through the template loader).

        With the default loader the name is the template text itself.

        Raises:
            UnknownTemplateError: If the loader has no such template
        """
        if isinstance(template, str):
            text = self._template_loader.load(template)
            if text is None:
                raise UnknownTemplateError(template)
            template = self.parse(text)
        return self._renderer.render(template, data, partials, config=config or self._config)

    async def render_async(
        self,
        template: Template | str,
        data: Any,
        partials: Partials | None = None,
        *,
        config: RenderConfig | None = None,
    ) -> str:
        """Coroutine mirror of render()."""
        if isinstance(template, str):
            text = await self._template_loader.load_async(template)
            if text is None:
                raise UnknownTemplateError(template)
            template = self.parse(text)
        return await self._renderer.render_async(
            template, data, partials, config=config or self._config
        )


class BigoteBuilder:
    """Mutable builder for Bigote.

    Every setter returns the builder, so calls chain.

    Example:
        >>> stache = (
        ...     BigoteBuilder()
        ...     .set_partial_template_loader(DictionaryLoader({"p": "[{{.}}]"}))
        ...     .set_max_recursion_depth(16)
        ...     .build()
        ... )
        >>> stache.render("{{#xs}}{{>p}}{{/xs}}", {"xs": [1, 2]})
        '[1][2]'

    """

    __slots__ = (
        "_registry",
        "_template_loader",
        "_partial_loader",
        "_escaper",
        "_config",
        "_cache",
    )

    def __init__(self) -> None:
        self._registry = RegistryBuilder()
        self._template_loader: CompositeLoader | None = None
        self._partial_loader: TemplateLoader | None = None
        self._escaper: Escaper | None = None
        self._config: dict[str, Any] = {}
        self._cache: TemplateCache | None = None

    def __repr__(self) -> str:
        return "BigoteBuilder(...)"

    def add_value_getter(self, value_type: type, getter: ValueGetter) -> BigoteBuilder:
        self._registry.add_value_getter(value_type, getter)
        return self

    def add_enumeration_converter(
        self, value_type: type, converter: EnumerationConverter
    ) -> BigoteBuilder:
        self._registry.add_enumeration_converter(value_type, converter)
        return self

    def add_truthy_check(self, check: TruthyCheck) -> BigoteBuilder:
        self._registry.add_truthy_check(check)
        return self

    def set_template_loader(self, loader: TemplateLoader) -> BigoteBuilder:
        """Replace the template loader chain with ``loader``."""
        self._template_loader = CompositeLoader(loader)
        return self

    def add_to_template_loader(self, loader: TemplateLoader) -> BigoteBuilder:
        """Append ``loader`` to the template loader chain."""
        if self._template_loader is None:
            self._template_loader = CompositeLoader()
        self._template_loader.add(loader)
        return self

    def set_partial_template_loader(self, loader: TemplateLoader) -> BigoteBuilder:
        self._partial_loader = loader
        return self

    def set_escaper(self, escaper: Escaper) -> BigoteBuilder:
        self._escaper = escaper
        return self

    def set_ignore_case_on_key_lookup(self, ignore_case: bool) -> BigoteBuilder:
        self._config["ignore_case_on_lookup"] = ignore_case
        return self

    def set_max_recursion_depth(self, depth: int) -> BigoteBuilder:
        if depth < 1:
            raise ValueError("max recursion depth must be at least 1")
        self._config["max_recursion_depth"] = depth
        return self

    def set_template_cache(self, cache: TemplateCache) -> BigoteBuilder:
        self._cache = cache
        return self

    def build(self) -> Bigote:
        """Create an immutable Bigote engine.

        Partials resolve through the partial loader when one is set,
        otherwise through an explicitly configured template loader.
        """
        template_loader = self._template_loader
        if template_loader is not None:
            # Snapshot so later builder calls do not leak into the engine.
            template_loader = CompositeLoader(*template_loader.loaders)
        partial_loader = self._partial_loader or template_loader
        return Bigote(
            registry=self._registry.build(),
            template_loader=template_loader,
            partial_loader=partial_loader,
            escaper=self._escaper,
            config=RenderConfig.from_dict(self._config) if self._config else None,
            cache=self._cache,
        )


__all__ = [
    # Entry points
    "Bigote",
    "BigoteBuilder",
    "parse",
    "render",
    "render_async",
    # Tokens
    "DEFAULT_DELIMITERS",
    "DelimiterSet",
    "Template",
    "Token",
    "TokenType",
    "Tokenizer",
    "get_delimiter_table",
    # Data
    "MISSING",
    "Context",
    "EnumerationConverter",
    "Registry",
    "RegistryBuilder",
    "TruthyCheck",
    "ValueGetter",
    # Rendering
    "Escaper",
    "StringRenderer",
    "TemplateRenderer",
    # Loading and caching
    "CompositeLoader",
    "DictTemplateCache",
    "DictionaryLoader",
    "FileSystemLoader",
    "StringLoader",
    "TemplateCache",
    "TemplateLoader",
    # Configuration
    "RenderConfig",
    "get_render_config",
    "render_config_context",
    "reset_render_config",
    "set_render_config",
    # Errors
    "BigoteError",
    "DataMissError",
    "InvalidTagsError",
    "ParseError",
    "RecursionLimitError",
    "RenderError",
    "SourceLocation",
    "UnclosedSectionError",
    "UnclosedTagError",
    "UnknownTemplateError",
    "UnopenedSectionError",
    # Version
    "__version__",
]
