"""Data-binding frames for name resolution.

A Context is one frame of a singly linked stack: the value bound by the
render call or by a section iteration, plus a reference to the enclosing
frame. Frames never outlive the render call that pushed them and children
only ever borrow their parent.

Resolution rules for ``lookup(name)``:

- ``"."`` is the frame's own value.
- The first dotted segment is probed against this frame, then each ancestor
  in turn (unless recursive lookup is disabled). The first frame that yields
  a value wins.
- Remaining segments resolve strictly against that value. A miss part-way
  through the path is a miss for the whole name; ancestors are not retried.

Each frame memoizes its lookups (hits and misses) by exact name, and reads
each member of its own value at most once. Iterators (generators included)
are collected into lists when first read so every tag sees all elements.

Thread Safety:
Frames are created per render and are never shared between renders.

"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from bigote.config import RenderConfig, get_render_config
from bigote.errors import DataMissError
from bigote.registry import DEFAULT_REGISTRY, MISSING, Registry


class Context:
    """One frame of the data stack.

    Usage:
        >>> root = Context({"a": {"b": 1}, "c": 2})
        >>> inner = root.push({"b": 3})
        >>> inner.lookup("c"), inner.lookup("b"), inner.lookup("a.b")
        (2, 3, 1)

    """

    __slots__ = ("_value", "_parent", "_registry", "_config", "_cache", "_members")

    def __init__(
        self,
        value: Any,
        parent: Context | None = None,
        *,
        registry: Registry | None = None,
        config: RenderConfig | None = None,
    ) -> None:
        """Initialize a frame.

        Args:
            value: The bound host value
            parent: Enclosing frame, if any
            registry: Capability registries (defaults to the parent's)
            config: Render settings (defaults to the parent's, then the
                active ContextVar config)
        """
        self._value = value
        self._parent = parent
        if parent is not None:
            self._registry = registry or parent._registry
            self._config = config or parent._config
        else:
            self._registry = registry or DEFAULT_REGISTRY
            self._config = config or get_render_config()
        self._cache: dict[str, Any] = {}
        self._members: dict[str, Any] = {}

    @property
    def value(self) -> Any:
        return self._value

    @property
    def parent(self) -> Context | None:
        return self._parent

    @property
    def registry(self) -> Registry:
        return self._registry

    @property
    def config(self) -> RenderConfig:
        return self._config

    def push(self, value: Any) -> Context:
        """Create a child frame bound to ``value``."""
        return Context(value, self, registry=self._registry, config=self._config)

    def lookup(self, name: str) -> Any:
        """Resolve a (possibly dotted) name.

        Returns:
            The resolved value, or MISSING

        Raises:
            DataMissError: If the name is missing and the config says misses
                are errors
        """
        if name == ".":
            return self._value

        cache = self._cache
        if name in cache:
            value = cache[name]
        else:
            value = self._resolve(name)
            cache[name] = value

        if value is MISSING and self._config.throw_on_data_miss:
            raise DataMissError(name, self._config.skip_recursive_lookup)
        return value

    def _resolve(self, name: str) -> Any:
        registry = self._registry
        ignore_case = self._config.ignore_case_on_lookup
        first, *rest = name.split(".")

        frame: Context | None = self
        while frame is not None:
            value = frame._member(first)
            if value is not MISSING:
                for part in rest:
                    value = _materialize(registry.get_value(value, part, ignore_case))
                    if value is MISSING:
                        return MISSING
                return value
            if self._config.skip_recursive_lookup:
                break
            frame = frame._parent
        return MISSING

    def _member(self, key: str) -> Any:
        """Read ``key`` from this frame's own value, once per frame."""
        members = self._members
        if key not in members:
            value = self._registry.get_value(
                self._value, key, self._config.ignore_case_on_lookup
            )
            members[key] = _materialize(value)
        return members[key]

    def is_truthy(self, value: Any) -> bool:
        return self._registry.is_truthy(value)

    def iterate(self, value: Any) -> list[Any] | None:
        """Elements a section over ``value`` renders, or None for scalars."""
        return self._registry.to_iterable(value)

    def __repr__(self) -> str:
        depth = 0
        frame = self._parent
        while frame is not None:
            depth += 1
            frame = frame._parent
        return f"Context({self._value!r}, depth={depth})"


def _materialize(value: Any) -> Any:
    # One-shot iterators would be exhausted by the first section over them.
    if isinstance(value, Iterator):
        return list(value)
    return value
