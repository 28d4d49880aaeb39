"""ContextVar-based render configuration for Bigote.

Provides thread-local configuration using Python's ContextVars (PEP 567).
The active RenderConfig is read once when a render starts and threaded
through every Context frame that render creates.

Thread Safety:
    ContextVars are thread-local, and each asyncio task runs in a
    copy of its creator's context. Concurrent renders never observe each
    other's settings.

Usage:
    # Through the high-level API
    stache = BigoteBuilder().build()
    stache.render("{{name}}", data, config=RenderConfig(throw_on_data_miss=True))

    # Direct renderer usage (advanced)
    with render_config_context(RenderConfig(skip_recursive_lookup=True)):
        output = StringRenderer().render(template, data)

"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, fields
from typing import Any

DEFAULT_MAX_RECURSION_DEPTH = 256


@dataclass(frozen=True, slots=True)
class RenderConfig:
    """Immutable render configuration.

    Attributes:
        ignore_case_on_lookup: Match mapping keys and attribute names
            case-insensitively when an exact match is missing
        skip_recursive_lookup: Resolve names only against the innermost
            frame, never its ancestors
        throw_on_data_miss: Raise DataMissError for names that do not resolve
            instead of rendering nothing
        skip_html_encoding: Never escape interpolated values
        max_recursion_depth: Maximum nesting of partial and lambda expansions

    """

    ignore_case_on_lookup: bool = False
    skip_recursive_lookup: bool = False
    throw_on_data_miss: bool = False
    skip_html_encoding: bool = False
    max_recursion_depth: int = DEFAULT_MAX_RECURSION_DEPTH

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> "RenderConfig":
        """Create RenderConfig from dictionary.

        Only includes keys that are valid RenderConfig fields; unknown keys
        are silently ignored.

        Example:
            >>> config = RenderConfig.from_dict({
            ...     "throw_on_data_miss": True,
            ...     "unknown_key": "ignored",
            ... })
            >>> config.throw_on_data_miss
            True

        """
        valid_fields = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in config_dict.items() if k in valid_fields}
        return cls(**filtered)


# Module-level default config (reused, never recreated)
_DEFAULT_CONFIG: RenderConfig = RenderConfig()

_render_config: ContextVar[RenderConfig] = ContextVar(
    "render_config",
    default=_DEFAULT_CONFIG,
)


def get_render_config() -> RenderConfig:
    """Get current render configuration (thread-local)."""
    return _render_config.get()


def set_render_config(config: RenderConfig) -> None:
    """Set render configuration for current context.

    Thread Safety:
        Only affects the current thread's context. Other threads are unaffected.

    """
    _render_config.set(config)


def reset_render_config() -> None:
    """Reset to default configuration.

    Reuses the module-level _DEFAULT_CONFIG singleton, avoiding allocation.
    """
    _render_config.set(_DEFAULT_CONFIG)


@contextmanager
def render_config_context(config: RenderConfig) -> Iterator[None]:
    """Context manager for temporary config changes.

    Properly restores the previous config even if an exception is raised.

    Example:
        >>> with render_config_context(RenderConfig(throw_on_data_miss=True)):
        ...     get_render_config().throw_on_data_miss
        True
        >>> get_render_config().throw_on_data_miss
        False

    """
    token = _render_config.set(config)
    try:
        yield
    finally:
        _render_config.reset(token)


__all__ = [
    "DEFAULT_MAX_RECURSION_DEPTH",
    "RenderConfig",
    "get_render_config",
    "render_config_context",
    "reset_render_config",
    "set_render_config",
]
