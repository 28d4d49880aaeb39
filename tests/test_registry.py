"""Tests for Registry and RegistryBuilder (value getters, converters, truthiness)."""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from typing import Any

import pytest

from bigote.registry import DEFAULT_REGISTRY, MISSING, Registry, RegistryBuilder


@dataclass
class Person:
    name: str
    _secret: str = "hidden"

    def greeting(self) -> str:
        return f"Hello, {self.name}"

    @property
    def upper(self) -> str:
        return self.name.upper()


class TestMissing:
    def test_falsy_and_repr(self) -> None:
        assert not MISSING
        assert repr(MISSING) == "MISSING"


class TestDefaultValueGetters:
    """Built-in data extraction."""

    def test_mapping_key(self) -> None:
        assert DEFAULT_REGISTRY.get_value({"a": 1}, "a") == 1

    def test_mapping_value_none_is_not_missing(self) -> None:
        assert DEFAULT_REGISTRY.get_value({"a": None}, "a") is None

    def test_mapping_miss(self) -> None:
        assert DEFAULT_REGISTRY.get_value({"a": 1}, "b") is MISSING

    def test_mapping_ignore_case(self) -> None:
        assert DEFAULT_REGISTRY.get_value({"Name": "x"}, "name") is MISSING
        assert DEFAULT_REGISTRY.get_value({"Name": "x"}, "name", ignore_case=True) == "x"

    def test_exact_match_preferred_over_case_fold(self) -> None:
        data = OrderedDict([("NAME", "upper"), ("name", "lower")])
        assert DEFAULT_REGISTRY.get_value(data, "name", ignore_case=True) == "lower"

    def test_sequence_index(self) -> None:
        assert DEFAULT_REGISTRY.get_value(["a", "b"], "1") == "b"
        assert DEFAULT_REGISTRY.get_value(["a", "b"], "5") is MISSING
        assert DEFAULT_REGISTRY.get_value(["a", "b"], "x") is MISSING

    def test_strings_are_not_indexed(self) -> None:
        assert DEFAULT_REGISTRY.get_value("abc", "0") is MISSING

    def test_attribute(self) -> None:
        assert DEFAULT_REGISTRY.get_value(Person("Ana"), "name") == "Ana"

    def test_property(self) -> None:
        assert DEFAULT_REGISTRY.get_value(Person("Ana"), "upper") == "ANA"

    def test_bound_method_is_called(self) -> None:
        assert DEFAULT_REGISTRY.get_value(Person("Ana"), "greeting") == "Hello, Ana"

    def test_property_evaluated_once(self) -> None:
        calls: list[str] = []

        class Counter:
            @property
            def total(self) -> int:
                calls.append("total")
                return 3

        assert DEFAULT_REGISTRY.get_value(Counter(), "total") == 3
        assert calls == ["total"]

    def test_method_with_parameters_is_not_called(self) -> None:
        class View:
            def bold(self, text: str) -> str:
                return f"<b>{text}</b>"

        view = View()
        value = DEFAULT_REGISTRY.get_value(view, "bold")
        assert callable(value)
        assert value("x") == "<b>x</b>"

    def test_method_with_only_defaults_is_called(self) -> None:
        class View:
            def label(self, suffix: str = "!") -> str:
                return "hi" + suffix

        assert DEFAULT_REGISTRY.get_value(View(), "label") == "hi!"

    def test_private_attribute_hidden(self) -> None:
        assert DEFAULT_REGISTRY.get_value(Person("Ana"), "_secret") is MISSING

    def test_attribute_ignore_case(self) -> None:
        assert DEFAULT_REGISTRY.get_value(Person("Ana"), "NAME") is MISSING
        assert DEFAULT_REGISTRY.get_value(Person("Ana"), "NAME", ignore_case=True) == "Ana"

    def test_builtin_instances_expose_nothing(self) -> None:
        assert DEFAULT_REGISTRY.get_value("abc", "upper") is MISSING
        assert DEFAULT_REGISTRY.get_value(5, "real") is MISSING

    def test_none_container(self) -> None:
        assert DEFAULT_REGISTRY.get_value(None, "anything") is MISSING


class TestEnumeration:
    """Built-in enumeration converters."""

    def test_list(self) -> None:
        assert DEFAULT_REGISTRY.to_iterable([1, 2]) == [1, 2]

    def test_generator(self) -> None:
        assert DEFAULT_REGISTRY.to_iterable(x * 2 for x in range(3)) == [0, 2, 4]

    def test_tuple_and_set(self) -> None:
        assert DEFAULT_REGISTRY.to_iterable((1, 2)) == [1, 2]
        assert DEFAULT_REGISTRY.to_iterable({7}) == [7]

    @pytest.mark.parametrize("value", ["abc", b"abc", {"a": 1}, 5, None, True, MISSING])
    def test_scalars(self, value: Any) -> None:
        assert DEFAULT_REGISTRY.to_iterable(value) is None


class TestTruthiness:
    @pytest.mark.parametrize("value", [None, False, MISSING, "", [], {}])
    def test_falsy(self, value: Any) -> None:
        assert DEFAULT_REGISTRY.is_truthy(value) is False

    @pytest.mark.parametrize("value", [True, 0, 0.0, "x", [0], {"a": 1}, object()])
    def test_truthy(self, value: Any) -> None:
        assert DEFAULT_REGISTRY.is_truthy(value) is True


class TestRegistryBuilder:
    """Custom entries take priority over the defaults."""

    def test_add_value_getter(self) -> None:
        builder = RegistryBuilder().add_value_getter(
            str, lambda s, key, _: len(s) if key == "length" else MISSING
        )
        assert [t for t, _ in builder.value_getters] == [str]
        registry = builder.build()
        assert registry.get_value("abcd", "length") == 4
        assert registry.get_value({"a": 1}, "a") == 1

    def test_custom_getter_runs_before_defaults(self) -> None:
        registry = (
            RegistryBuilder()
            .add_value_getter(dict, lambda d, key, _: f"custom-{key}")
            .build()
        )
        assert registry.get_value({"a": 1}, "a") == "custom-a"

    def test_getter_miss_falls_through(self) -> None:
        registry = RegistryBuilder().add_value_getter(dict, lambda d, key, _: MISSING).build()
        assert registry.get_value({"a": 1}, "a") == 1

    def test_add_enumeration_converter(self) -> None:
        registry = (
            RegistryBuilder()
            .add_enumeration_converter(dict, lambda d: list(d.items()))
            .build()
        )
        assert registry.to_iterable({"a": 1}) == [("a", 1)]

    def test_add_truthy_check(self) -> None:
        def check(value: Any) -> bool | None:
            if isinstance(value, str):
                return value == "Foo"
            return None

        builder = RegistryBuilder().add_truthy_check(check)
        assert len(builder.truthy_checks) == 1
        assert builder.truthy_checks[0]("Foo") is True
        assert builder.truthy_checks[0]("Bar") is False
        assert builder.truthy_checks[0](None) is None

        registry = builder.build()
        assert registry.is_truthy("Bar") is False
        assert registry.is_truthy([]) is False

    def test_build_is_immutable_snapshot(self) -> None:
        builder = RegistryBuilder()
        registry = builder.build()
        builder.add_truthy_check(lambda v: False)
        assert registry.truthy_checks == ()

    def test_default_registry(self) -> None:
        registry = Registry()
        assert len(registry.value_getters) == 3
        assert registry.truthy_checks == ()
