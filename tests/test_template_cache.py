"""Tests for the template parse cache."""

from bigote import DictTemplateCache, parse
from bigote.tokenizer import tokenize


class TestDictTemplateCache:
    """Tests for DictTemplateCache."""

    def test_get_returns_none_when_empty(self) -> None:
        assert DictTemplateCache().get("{{foo}}", "{{ }}") is None

    def test_put_then_get(self) -> None:
        cache = DictTemplateCache()
        template = tokenize("{{foo}}")
        assert cache.put("{{foo}}", "{{ }}", template) is template
        assert cache.get("{{foo}}", "{{ }}") is template
        assert ("{{foo}}", "{{ }}") in cache

    def test_first_writer_wins(self) -> None:
        cache = DictTemplateCache()
        first = tokenize("{{foo}}")
        second = tokenize("{{foo}}")
        cache.put("{{foo}}", "{{ }}", first)
        assert cache.put("{{foo}}", "{{ }}", second) is first
        assert len(cache) == 1

    def test_delimiters_are_part_of_the_key(self) -> None:
        cache = DictTemplateCache()
        cache.put("x", "{{ }}", tokenize("x"))
        assert cache.get("x", "<% %>") is None

    def test_max_size_evicts_oldest(self) -> None:
        cache = DictTemplateCache(max_size=2)
        for source in ("a", "b", "c"):
            cache.put(source, "{{ }}", tokenize(source))
        assert len(cache) == 2
        assert cache.get("a", "{{ }}") is None
        assert cache.get("c", "{{ }}") is not None

    def test_clear(self) -> None:
        cache = DictTemplateCache()
        cache.put("a", "{{ }}", tokenize("a"))
        cache.clear()
        assert len(cache) == 0


class TestParseWithCache:
    """Tests for parse(..., cache=...)."""

    def test_cache_hit_returns_same_tree(self) -> None:
        cache = DictTemplateCache()
        first = parse("Hi {{name}}", cache=cache)
        assert parse("Hi {{name}}", cache=cache) is first
        assert len(cache) == 1

    def test_cache_keyed_by_text(self) -> None:
        cache = DictTemplateCache()
        output = parse("{{foo}}", cache=cache)
        assert cache.get("{{foo}}", "{{ }}") is output

    def test_delimiters_change_key(self) -> None:
        cache = DictTemplateCache()
        a = parse("<%x%>", cache=cache)
        b = parse("<%x%>", "<% %>", cache=cache)
        assert a is not b
        assert len(cache) == 2
