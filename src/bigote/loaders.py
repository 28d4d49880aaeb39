"""Template loaders: resolve a template name to template text.

The top-level render entry point and partial expansion share one lookup
path. ``StringLoader`` treats the name itself as the template, which lets
literal template strings and stored templates go through the same call.

Every loader offers a synchronous ``load`` and an awaitable ``load_async``.
``FileSystemLoader.load_async`` reads in a worker thread so the event loop
is never blocked on disk I/O. The in-memory loaders answer directly.

Thread Safety:
The built-in loaders only read their state after construction (except
``CompositeLoader.add``, meant for setup time).

"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol, runtime_checkable

from bigote.utils.logger import get_logger

logger = get_logger(__name__)


@runtime_checkable
class TemplateLoader(Protocol):
    """Protocol for template sources."""

    def load(self, name: str) -> str | None:
        """Return the template text for ``name``, or None when unknown."""
        ...

    async def load_async(self, name: str) -> str | None:
        """Awaitable mirror of ``load``."""
        ...


class StringLoader:
    """Loader that returns the requested name as the template text."""

    __slots__ = ()

    def load(self, name: str) -> str | None:
        return name

    async def load_async(self, name: str) -> str | None:
        return name


class DictionaryLoader:
    """Loader backed by a mapping of name -> template text.

    Example:
        >>> DictionaryLoader({"greeting": "Hi {{name}}"}).load("greeting")
        'Hi {{name}}'

    """

    __slots__ = ("_templates",)

    def __init__(self, templates: Mapping[str, str]) -> None:
        self._templates = dict(templates)

    def load(self, name: str) -> str | None:
        return self._templates.get(name)

    async def load_async(self, name: str) -> str | None:
        return self.load(name)


class FileSystemLoader:
    """Loader reading ``<root>/<name>.<extension>`` files as UTF-8.

    Names that escape the root directory are treated as unknown.
    """

    __slots__ = ("_root", "_extension")

    def __init__(self, root: str | Path, extension: str = "mustache") -> None:
        self._root = Path(root).resolve()
        self._extension = extension.lstrip(".")

    def _path_for(self, name: str) -> Path | None:
        filename = f"{name}.{self._extension}" if self._extension else name
        path = (self._root / filename).resolve()
        if not path.is_relative_to(self._root) or not path.is_file():
            return None
        return path

    def load(self, name: str) -> str | None:
        path = self._path_for(name)
        if path is None:
            return None
        logger.debug("Loading template %r from %s", name, path)
        return path.read_text(encoding="utf-8")

    async def load_async(self, name: str) -> str | None:
        return await asyncio.to_thread(self.load, name)


class CompositeLoader:
    """Loader that tries several loaders in order; the first hit wins.

    Example:
        >>> loader = CompositeLoader(DictionaryLoader({"a": "A"}))
        >>> loader.add(DictionaryLoader({"b": "B"})).load("b")
        'B'

    """

    __slots__ = ("_loaders",)

    def __init__(self, *loaders: TemplateLoader) -> None:
        self._loaders: list[TemplateLoader] = list(loaders)

    @property
    def loaders(self) -> tuple[TemplateLoader, ...]:
        return tuple(self._loaders)

    def add(self, loader: TemplateLoader) -> CompositeLoader:
        """Append a loader (consulted after the existing ones).

        Returns:
            Self for chaining
        """
        self._loaders.append(loader)
        return self

    def load(self, name: str) -> str | None:
        for loader in self._loaders:
            text = loader.load(name)
            if text is not None:
                return text
        return None

    async def load_async(self, name: str) -> str | None:
        for loader in self._loaders:
            text = await loader.load_async(name)
            if text is not None:
                return text
        return None


__all__ = [
    "CompositeLoader",
    "DictionaryLoader",
    "FileSystemLoader",
    "StringLoader",
    "TemplateLoader",
]
