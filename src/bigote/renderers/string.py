"""Tree-walking string renderer.

Walks a Template's token tree against a Context and accumulates output in a
StringBuilder. Partials and lambda results re-enter the Tokenizer directly
and are rendered in the current frame.

Thread Safety:
All per-render state is encapsulated in RenderState, created fresh for each
render() call. Multiple threads can safely share a single StringRenderer
and call render() concurrently; templates are never mutated.

Async:
render_async() is a sequential mirror of render(). The only difference is
that partials are fetched with ``await loader.load_async(name)`` and that
awaitable lambda results are awaited.

"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from bigote.cache import TemplateCache
from bigote.config import RenderConfig, get_render_config
from bigote.context import Context
from bigote.delimiters import DEFAULT_DELIMITERS, DelimiterSet
from bigote.errors import RecursionLimitError, UnknownTemplateError
from bigote.loaders import CompositeLoader, DictionaryLoader, TemplateLoader
from bigote.registry import MISSING, Registry
from bigote.stringbuilder import StringBuilder
from bigote.tokenizer import Tokenizer
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
from bigote.utils.logger import get_logger
from bigote.utils.text import escape_html, indent_lines

logger = get_logger(__name__)

Escaper = Callable[[str], str]


@dataclass(slots=True)
class RenderState:
    """Per-render mutable state.

    Created fresh for each render() call, so renderers can be shared
    across threads.
    """

    config: RenderConfig
    partials: TemplateLoader | None
    depth: int = 0


class StringRenderer:
    """Render parsed templates to strings.

    Usage:
        >>> from bigote.tokenizer import tokenize
        >>> StringRenderer().render(tokenize("Hi {{name}}!"), {"name": "<Ana>"})
        'Hi &lt;Ana&gt;!'

    """

    __slots__ = ("_registry", "_partial_loader", "_escaper", "_cache")

    def __init__(
        self,
        *,
        registry: Registry | None = None,
        partial_loader: TemplateLoader | None = None,
        escaper: Escaper | None = None,
        cache: TemplateCache | None = None,
    ) -> None:
        """Initialize renderer.

        Args:
            registry: Capability registries used for data resolution
            partial_loader: Source of partial templates
            escaper: Function applied to escaped interpolations
            cache: Optional parse cache for partial templates
        """
        self._registry = registry
        self._partial_loader = partial_loader
        self._escaper = escaper or escape_html
        self._cache = cache

    # =========================================================================
    # Entry points
    # =========================================================================

    def render(
        self,
        template: Template,
        data: Any,
        partials: Mapping[str, str] | TemplateLoader | None = None,
        *,
        config: RenderConfig | None = None,
    ) -> str:
        """Render ``template`` against ``data``.

        Args:
            template: Parsed template
            data: Root value, or an existing Context to render in
            partials: Extra partials for this call, consulted before the
                renderer's partial loader
            config: Settings (defaults to the active ContextVar config)

        Raises:
            UnknownTemplateError: A partial could not be found
            DataMissError: A name did not resolve and misses are errors
            RecursionLimitError: Partials/lambdas nested too deeply
        """
        state, context = self._begin(data, partials, config)
        sb = StringBuilder()
        self._render_tokens(template.tokens, template.source, context, sb, state)
        return sb.build()

    async def render_async(
        self,
        template: Template,
        data: Any,
        partials: Mapping[str, str] | TemplateLoader | None = None,
        *,
        config: RenderConfig | None = None,
    ) -> str:
        """Awaitable mirror of render()."""
        state, context = self._begin(data, partials, config)
        sb = StringBuilder()
        await self._render_tokens_async(template.tokens, template.source, context, sb, state)
        return sb.build()

    def _begin(
        self,
        data: Any,
        partials: Mapping[str, str] | TemplateLoader | None,
        config: RenderConfig | None,
    ) -> tuple[RenderState, Context]:
        config = config or get_render_config()
        if isinstance(data, Context):
            context = data
        else:
            context = Context(data, registry=self._registry, config=config)
        return RenderState(config=config, partials=self._partials_for(partials)), context

    def _partials_for(
        self, partials: Mapping[str, str] | TemplateLoader | None
    ) -> TemplateLoader | None:
        if partials is None:
            return self._partial_loader
        loader = partials if isinstance(partials, TemplateLoader) else DictionaryLoader(partials)
        if self._partial_loader is None:
            return loader
        return CompositeLoader(loader, self._partial_loader)

    # =========================================================================
    # Synchronous walk
    # =========================================================================

    def _render_tokens(
        self,
        tokens: tuple[Token, ...],
        source: str,
        context: Context,
        sb: StringBuilder,
        state: RenderState,
    ) -> None:
        for token in tokens:
            match token:
                case TextToken():
                    sb.append(token.value)
                case InterpolationToken():
                    self._render_interpolation(token, context, sb, state)
                case SectionToken():
                    self._render_section(token, source, context, sb, state)
                case InvertedSectionToken():
                    if self._is_falsy(context.lookup(token.name), context):
                        self._render_tokens(token.children, source, context, sb, state)
                case PartialToken():
                    text = self._load_partial(token, state)
                    self._render_partial(token, text, context, sb, state)
                case CommentToken() | DelimiterChangeToken():
                    pass

    def _render_interpolation(
        self,
        token: InterpolationToken,
        context: Context,
        sb: StringBuilder,
        state: RenderState,
    ) -> None:
        value = context.lookup(token.name)
        if callable(value):
            value = value()
            if isinstance(value, str):
                value = self._expand(value, DEFAULT_DELIMITERS, context, state)
        self._append_value(token, value, sb, state)

    def _render_section(
        self,
        token: SectionToken,
        source: str,
        context: Context,
        sb: StringBuilder,
        state: RenderState,
    ) -> None:
        value = context.lookup(token.name)
        if callable(value):
            result = value(token.body(source))
            if result is not None:
                sb.append(self._expand(str(result), token.delimiters, context, state))
            return

        elements = context.iterate(value)
        if elements is not None:
            for element in elements:
                self._render_tokens(token.children, source, context.push(element), sb, state)
        elif context.is_truthy(value):
            self._render_tokens(token.children, source, context.push(value), sb, state)

    def _render_partial(
        self,
        token: PartialToken,
        text: str,
        context: Context,
        sb: StringBuilder,
        state: RenderState,
    ) -> None:
        template = self._parse(self._indent_partial(token, text), DEFAULT_DELIMITERS)
        self._enter(state)
        try:
            self._render_tokens(template.tokens, template.source, context, sb, state)
        finally:
            state.depth -= 1

    def _expand(
        self,
        text: str,
        delimiters: DelimiterSet,
        context: Context,
        state: RenderState,
    ) -> str:
        """Tokenize a lambda result and render it in the current frame."""
        template = Tokenizer(text, delimiters).tokenize()
        sb = StringBuilder()
        self._enter(state)
        try:
            self._render_tokens(template.tokens, template.source, context, sb, state)
        finally:
            state.depth -= 1
        return sb.build()

    def _load_partial(self, token: PartialToken, state: RenderState) -> str:
        loader = state.partials
        text = loader.load(token.name) if loader is not None else None
        if text is None:
            raise UnknownTemplateError(token.name)
        logger.debug("Loaded partial %r", token.name)
        return text

    # =========================================================================
    # Asynchronous walk
    # =========================================================================

    async def _render_tokens_async(
        self,
        tokens: tuple[Token, ...],
        source: str,
        context: Context,
        sb: StringBuilder,
        state: RenderState,
    ) -> None:
        for token in tokens:
            match token:
                case TextToken():
                    sb.append(token.value)
                case InterpolationToken():
                    value = context.lookup(token.name)
                    if callable(value):
                        value = await _resolved(value())
                        if isinstance(value, str):
                            value = await self._expand_async(
                                value, DEFAULT_DELIMITERS, context, state
                            )
                    self._append_value(token, value, sb, state)
                case SectionToken():
                    await self._render_section_async(token, source, context, sb, state)
                case InvertedSectionToken():
                    if self._is_falsy(context.lookup(token.name), context):
                        await self._render_tokens_async(
                            token.children, source, context, sb, state
                        )
                case PartialToken():
                    loader = state.partials
                    text = await loader.load_async(token.name) if loader is not None else None
                    if text is None:
                        raise UnknownTemplateError(token.name)
                    template = self._parse(self._indent_partial(token, text), DEFAULT_DELIMITERS)
                    self._enter(state)
                    try:
                        await self._render_tokens_async(
                            template.tokens, template.source, context, sb, state
                        )
                    finally:
                        state.depth -= 1
                case CommentToken() | DelimiterChangeToken():
                    pass

    async def _render_section_async(
        self,
        token: SectionToken,
        source: str,
        context: Context,
        sb: StringBuilder,
        state: RenderState,
    ) -> None:
        value = context.lookup(token.name)
        if callable(value):
            result = await _resolved(value(token.body(source)))
            if result is not None:
                sb.append(
                    await self._expand_async(str(result), token.delimiters, context, state)
                )
            return

        elements = context.iterate(value)
        if elements is not None:
            for element in elements:
                await self._render_tokens_async(
                    token.children, source, context.push(element), sb, state
                )
        elif context.is_truthy(value):
            await self._render_tokens_async(token.children, source, context.push(value), sb, state)

    async def _expand_async(
        self,
        text: str,
        delimiters: DelimiterSet,
        context: Context,
        state: RenderState,
    ) -> str:
        template = Tokenizer(text, delimiters).tokenize()
        sb = StringBuilder()
        self._enter(state)
        try:
            await self._render_tokens_async(template.tokens, template.source, context, sb, state)
        finally:
            state.depth -= 1
        return sb.build()

    # =========================================================================
    # Shared helpers
    # =========================================================================

    def _append_value(
        self,
        token: InterpolationToken,
        value: Any,
        sb: StringBuilder,
        state: RenderState,
    ) -> None:
        if value is MISSING or value is None:
            return
        text = value if isinstance(value, str) else str(value)
        if token.escape and not state.config.skip_html_encoding:
            text = self._escaper(text)
        sb.append(text)

    @staticmethod
    def _is_falsy(value: Any, context: Context) -> bool:
        # Lambdas count as truthy for inverted sections.
        if callable(value):
            return False
        elements = context.iterate(value)
        if elements is not None:
            return not elements
        return not context.is_truthy(value)

    @staticmethod
    def _indent_partial(token: PartialToken, text: str) -> str:
        if token.standalone and token.indent:
            return indent_lines(text, token.indent)
        return text

    def _parse(self, text: str, delimiters: DelimiterSet) -> Template:
        cache = self._cache
        if cache is None:
            return Tokenizer(text, delimiters).tokenize()
        cached = cache.get(text, delimiters.key)
        if cached is not None:
            return cached
        return cache.put(text, delimiters.key, Tokenizer(text, delimiters).tokenize())

    @staticmethod
    def _enter(state: RenderState) -> None:
        limit = state.config.max_recursion_depth
        if state.depth >= limit:
            logger.debug("Template recursion limit of %d reached", limit)
            raise RecursionLimitError(limit)
        state.depth += 1


async def _resolved(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


__all__ = ["Escaper", "RenderState", "StringRenderer"]
