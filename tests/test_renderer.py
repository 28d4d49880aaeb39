"""Tests for StringRenderer: sections, partials, escaping and recursion."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import pytest

from bigote import (
    Context,
    DataMissError,
    DictionaryLoader,
    DictTemplateCache,
    RecursionLimitError,
    RenderConfig,
    RegistryBuilder,
    StringRenderer,
    UnknownTemplateError,
    parse,
    render,
    render_async,
)


@dataclass
class Item:
    name: str
    price: float


@dataclass
class Order:
    customer: str
    items: list[Item] = field(default_factory=list)

    def total(self) -> float:
        return sum(item.price for item in self.items)


class TestInterpolation:
    def test_escaped_by_default(self) -> None:
        assert render("{{x}}", {"x": "<b>&"}) == "&lt;b&gt;&amp;"

    def test_skip_html_encoding(self) -> None:
        config = RenderConfig(skip_html_encoding=True)
        assert render("{{x}}", {"x": "<b>"}, config=config) == "<b>"

    def test_custom_escaper(self) -> None:
        renderer = StringRenderer(escaper=str.upper)
        assert renderer.render(parse("{{x}} {{{x}}}"), {"x": "ab"}) == "AB ab"

    def test_booleans_and_numbers(self) -> None:
        assert render("{{a}} {{b}} {{c}}", {"a": True, "b": 0, "c": 2.5}) == "True 0 2.5"

    def test_object_attributes(self) -> None:
        order = Order("Ana", [Item("pen", 1.5), Item("ink", 2.0)])
        assert render("{{customer}}: {{total}}", order) == "Ana: 3.5"

    def test_data_miss_raises_when_configured(self) -> None:
        config = RenderConfig(throw_on_data_miss=True)
        with pytest.raises(DataMissError, match="'nope' is undefined."):
            render("{{nope}}", {}, config=config)


class TestSections:
    def test_iterates_objects(self) -> None:
        order = Order("Ana", [Item("pen", 1.5), Item("ink", 2.0)])
        template = "{{#items}}{{name}}={{price}};{{/items}}"
        assert render(template, order) == "pen=1.5;ink=2.0;"

    def test_zero_is_truthy(self) -> None:
        assert render("{{#n}}[{{.}}]{{/n}}", {"n": 0}) == "[0]"

    def test_empty_string_is_falsy(self) -> None:
        assert render("{{#s}}yes{{/s}}{{^s}}no{{/s}}", {"s": ""}) == "no"

    def test_empty_mapping_is_falsy(self) -> None:
        assert render("{{#m}}yes{{/m}}{{^m}}no{{/m}}", {"m": {}}) == "no"

    def test_generator_is_iterated(self) -> None:
        assert render("{{#xs}}{{.}}{{/xs}}", {"xs": (i for i in range(3))}) == "012"

    def test_generator_reused_by_later_tags(self) -> None:
        template = "{{#g}}{{.}}{{/g}}|{{^g}}EMPTY{{/g}}|{{#g}}{{.}}{{/g}}"
        assert render(template, {"g": (i for i in [1, 2])}) == "12||12"

    def test_custom_truthy_check(self) -> None:
        registry = RegistryBuilder().add_truthy_check(
            lambda v: v != 0 if isinstance(v, int) and not isinstance(v, bool) else None
        ).build()
        assert render("{{#n}}yes{{/n}}", {"n": 0}, registry=registry) == ""

    def test_custom_enumeration(self) -> None:
        registry = (
            RegistryBuilder()
            .add_enumeration_converter(dict, lambda d: [{"k": k, "v": v} for k, v in d.items()])
            .build()
        )
        result = render("{{#m}}{{k}}={{v}} {{/m}}", {"m": {"a": 1, "b": 2}}, registry=registry)
        assert result == "a=1 b=2 "

    def test_skip_recursive_lookup(self) -> None:
        config = RenderConfig(skip_recursive_lookup=True)
        data = {"outer": "X", "sec": {"inner": "Y"}}
        assert render("{{#sec}}{{inner}}{{outer}}{{/sec}}", data, config=config) == "Y"

    def test_render_into_existing_context(self) -> None:
        context = Context({"a": "outer"}).push({"b": "inner"})
        assert StringRenderer().render(parse("{{a}} {{b}}"), context) == "outer inner"


class TestPartials:
    def test_mapping_partials(self) -> None:
        assert render("[{{>p}}]", {"x": 1}, {"p": "x={{x}}"}) == "[x=1]"

    def test_loader_partials(self) -> None:
        loader = DictionaryLoader({"p": "P"})
        assert render("{{>p}}", {}, loader) == "P"

    def test_unknown_partial_raises(self) -> None:
        with pytest.raises(UnknownTemplateError) as exc_info:
            render("{{>missing}}", {})
        assert str(exc_info.value) == "No template was found with the name 'missing'"

    def test_per_call_partials_before_renderer_loader(self) -> None:
        renderer = StringRenderer(partial_loader=DictionaryLoader({"p": "loader", "q": "Q"}))
        template = parse("{{>p}}{{>q}}")
        assert renderer.render(template, {}, {"p": "call"}) == "callQ"
        assert renderer.render(template, {}) == "loaderQ"

    def test_standalone_partial_indentation(self) -> None:
        partials = {"list": "- {{a}}\n- {{b}}\n"}
        result = render("items:\n  {{>list}}\nend", {"a": 1, "b": "x\ny"}, partials)
        assert result == "items:\n  - 1\n  - x\ny\nend"

    def test_partial_uses_default_delimiters(self) -> None:
        result = render("{{=<% %>=}}<%>p%>", {"x": 1}, {"p": "{{x}}"})
        assert result == "1"

    def test_partials_are_cached_when_cache_given(self) -> None:
        cache = DictTemplateCache()
        renderer = StringRenderer(cache=cache)
        renderer.render(parse("{{>p}}{{>p}}"), {}, {"p": "x"})
        assert len(cache) == 1

    def test_infinite_recursion_is_bounded(self) -> None:
        config = RenderConfig(max_recursion_depth=10)
        with pytest.raises(RecursionLimitError) as exc_info:
            render("{{>self}}", {}, {"self": "a{{>self}}"}, config=config)
        assert exc_info.value.depth == 10

    def test_recursion_within_limit(self) -> None:
        config = RenderConfig(max_recursion_depth=3)
        data = {"n": {"n": {"v": "deep", "n": False}}}
        partials = {"node": "{{#n}}{{>node}}{{/n}}{{v}}"}
        assert render("{{>node}}", data, partials, config=config) == "deep"


class TestAsync:
    def test_async_matches_sync(self) -> None:
        template = parse("{{#xs}}{{>p}}{{/xs}}")
        partials = {"p": "<{{.}}>"}
        sync = StringRenderer().render(template, {"xs": [1, 2]}, partials)
        result = asyncio.run(StringRenderer().render_async(template, {"xs": [1, 2]}, partials))
        assert result == sync == "<1><2>"

    def test_async_uses_load_async(self) -> None:
        class AsyncOnlyLoader:
            def load(self, name: str) -> str | None:
                raise AssertionError("sync load should not be called")

            async def load_async(self, name: str) -> str | None:
                await asyncio.sleep(0)
                return f"<{name}>"

        result = asyncio.run(render_async("{{>a}}{{>b}}", {}, AsyncOnlyLoader()))
        assert result == "<a><b>"

    def test_async_unknown_partial(self) -> None:
        renderer = StringRenderer()
        with pytest.raises(UnknownTemplateError):
            asyncio.run(renderer.render_async(parse("{{>x}}"), {}))

    def test_async_recursion_limit(self) -> None:
        renderer = StringRenderer()
        config = RenderConfig(max_recursion_depth=5)
        with pytest.raises(RecursionLimitError):
            asyncio.run(
                renderer.render_async(parse("{{>r}}"), {}, {"r": "{{>r}}"}, config=config)
            )

