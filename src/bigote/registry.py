"""Capability registries consulted while resolving data.

Three independent, ordered registries describe how host values behave
inside a template:

- value getters: pull a named member out of a container
- enumeration converters: turn a value into the elements a section iterates
- truthy checks: decide whether a value opens a section

Each getter/converter is keyed by a type and applies to instances of that
type (``isinstance``); the first applicable entry answers. Entries added
through the builder take priority over the defaults.

Thread Safety:
Registry is immutable after creation. Safe to share.
Use RegistryBuilder for mutable construction.

Example:
    >>> builder = RegistryBuilder()
    >>> builder.add_truthy_check(lambda v: v != "no" if isinstance(v, str) else None)
    RegistryBuilder(...)
    >>> registry = builder.build()
    >>> registry.is_truthy("no")
    False

"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterable, Mapping, Sequence, Sized
from typing import Any

# (container, key, ignore_case) -> value, or MISSING
ValueGetter = Callable[[Any, str, bool], Any]
# value -> elements to iterate, or None when the value is a scalar
EnumerationConverter = Callable[[Any], "Iterable[Any] | None"]
# value -> True/False, or None for "no opinion"
TruthyCheck = Callable[[Any], "bool | None"]


class _Missing:
    """Sentinel for a name that did not resolve (distinct from ``None``)."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


# =========================================================================
# Default value getters
# =========================================================================


def get_mapping_value(container: Mapping[Any, Any], key: str, ignore_case: bool) -> Any:
    if key in container:
        return container[key]
    if ignore_case:
        folded = key.casefold()
        for candidate, value in container.items():
            if isinstance(candidate, str) and candidate.casefold() == folded:
                return value
    return MISSING


def get_sequence_value(container: Sequence[Any], key: str, ignore_case: bool) -> Any:
    if isinstance(container, (str, bytes)) or not key.isdigit():
        return MISSING
    index = int(key)
    if index < len(container):
        return container[index]
    return MISSING


def get_attribute_value(container: Any, key: str, ignore_case: bool) -> Any:
    """Read a public attribute.

    Bound methods that need no arguments are called and their result is
    returned. Methods with required parameters come back uncalled, so the
    renderer treats them as lambdas. Instances of builtin types (ints,
    strings, ...) never expose members.
    """
    if type(container).__module__ == "builtins" or not key or key.startswith("_"):
        return MISSING
    value = getattr(container, key, MISSING)
    if value is MISSING and ignore_case:
        folded = key.casefold()
        name = next(
            (n for n in dir(container) if not n.startswith("_") and n.casefold() == folded),
            "",
        )
        if name:
            value = getattr(container, name, MISSING)
    if inspect.ismethod(value) and _takes_no_arguments(value):
        return value()
    return value


def _takes_no_arguments(method: Callable[..., Any]) -> bool:
    try:
        signature = inspect.signature(method)
    except (TypeError, ValueError):
        return False
    return all(
        param.default is not param.empty
        or param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD)
        for param in signature.parameters.values()
    )


DEFAULT_VALUE_GETTERS: tuple[tuple[type, ValueGetter], ...] = (
    (Mapping, get_mapping_value),
    (Sequence, get_sequence_value),
    (object, get_attribute_value),
)


# =========================================================================
# Default enumeration converters
# =========================================================================


def _scalar(value: Any) -> None:
    return None


def _as_list(value: Iterable[Any]) -> list[Any]:
    return list(value)


DEFAULT_ENUMERATION_CONVERTERS: tuple[tuple[type, EnumerationConverter], ...] = (
    (str, _scalar),
    (bytes, _scalar),
    (bytearray, _scalar),
    (Mapping, _scalar),
    (Iterable, _as_list),
)


class Registry:
    """Immutable set of value getters, enumeration converters and truthy checks.

    Use RegistryBuilder to create customized instances; ``Registry()`` with
    no arguments holds only the defaults.

    Thread Safety:
        Immutable after creation. Safe to share across threads.

    """

    __slots__ = ("_value_getters", "_enumeration_converters", "_truthy_checks")

    def __init__(
        self,
        value_getters: tuple[tuple[type, ValueGetter], ...] = DEFAULT_VALUE_GETTERS,
        enumeration_converters: tuple[
            tuple[type, EnumerationConverter], ...
        ] = DEFAULT_ENUMERATION_CONVERTERS,
        truthy_checks: tuple[TruthyCheck, ...] = (),
    ) -> None:
        self._value_getters = value_getters
        self._enumeration_converters = enumeration_converters
        self._truthy_checks = truthy_checks

    @property
    def value_getters(self) -> tuple[tuple[type, ValueGetter], ...]:
        return self._value_getters

    @property
    def enumeration_converters(self) -> tuple[tuple[type, EnumerationConverter], ...]:
        return self._enumeration_converters

    @property
    def truthy_checks(self) -> tuple[TruthyCheck, ...]:
        return self._truthy_checks

    def get_value(self, container: Any, key: str, ignore_case: bool = False) -> Any:
        """Extract ``key`` from ``container``.

        Returns:
            The first non-MISSING answer of an applicable getter, else MISSING
        """
        if container is None:
            return MISSING
        for value_type, getter in self._value_getters:
            if not isinstance(container, value_type):
                continue
            value = getter(container, key, ignore_case)
            if value is not MISSING:
                return value
        return MISSING

    def to_iterable(self, value: Any) -> list[Any] | None:
        """Return the elements of ``value``, or None when it is a scalar."""
        for value_type, converter in self._enumeration_converters:
            if isinstance(value, value_type):
                converted = converter(value)
                return None if converted is None else list(converted)
        return None

    def is_truthy(self, value: Any) -> bool:
        """Decide whether ``value`` opens a section.

        Truthy checks get the first chance to answer; otherwise None, False
        and MISSING are falsy, collections are truthy iff non-empty, and
        everything else is truthy.
        """
        for check in self._truthy_checks:
            opinion = check(value)
            if opinion is not None:
                return bool(opinion)
        if value is None or value is False or value is MISSING:
            return False
        if isinstance(value, Sized):
            return len(value) > 0
        return True


class RegistryBuilder:
    """Mutable builder for Registry.

    Entries registered here are consulted before the defaults, in the order
    they were added.

    Example:
            >>> builder = RegistryBuilder()
            >>> builder.add_value_getter(str, lambda s, key, _: s.upper() if key == "up" else MISSING)
            RegistryBuilder(...)
            >>> builder.build().get_value("abc", "up")
            'ABC'

    """

    __slots__ = ("_value_getters", "_enumeration_converters", "_truthy_checks")

    def __init__(self) -> None:
        self._value_getters: list[tuple[type, ValueGetter]] = []
        self._enumeration_converters: list[tuple[type, EnumerationConverter]] = []
        self._truthy_checks: list[TruthyCheck] = []

    def __repr__(self) -> str:
        return "RegistryBuilder(...)"

    def add_value_getter(self, value_type: type, getter: ValueGetter) -> RegistryBuilder:
        """Register a getter for instances of ``value_type``.

        Returns:
            Self for chaining
        """
        self._value_getters.append((value_type, getter))
        return self

    def add_enumeration_converter(
        self, value_type: type, converter: EnumerationConverter
    ) -> RegistryBuilder:
        """Register how instances of ``value_type`` are iterated by sections."""
        self._enumeration_converters.append((value_type, converter))
        return self

    def add_truthy_check(self, check: TruthyCheck) -> RegistryBuilder:
        """Register a truthiness override returning True, False or None."""
        self._truthy_checks.append(check)
        return self

    @property
    def value_getters(self) -> list[tuple[type, ValueGetter]]:
        return list(self._value_getters)

    @property
    def enumeration_converters(self) -> list[tuple[type, EnumerationConverter]]:
        return list(self._enumeration_converters)

    @property
    def truthy_checks(self) -> list[TruthyCheck]:
        return list(self._truthy_checks)

    def build(self) -> Registry:
        """Create an immutable Registry from registered entries plus defaults."""
        return Registry(
            value_getters=(*self._value_getters, *DEFAULT_VALUE_GETTERS),
            enumeration_converters=(
                *self._enumeration_converters,
                *DEFAULT_ENUMERATION_CONVERTERS,
            ),
            truthy_checks=tuple(self._truthy_checks),
        )


DEFAULT_REGISTRY = Registry()


__all__ = [
    "DEFAULT_REGISTRY",
    "MISSING",
    "EnumerationConverter",
    "Registry",
    "RegistryBuilder",
    "TruthyCheck",
    "ValueGetter",
]
