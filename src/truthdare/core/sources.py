"""Prompt resource sources.

A source resolves the relative paths found in the catalog (``truth`` and
``dare`` entries, plus the catalog file itself) to their text content.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Mapping

import structlog

LOGGER = structlog.get_logger(__name__)


def parse_prompts(text: str) -> List[str]:
    """Split a prompt resource into trimmed, non-empty lines."""
    return [line.strip() for line in text.splitlines() if line.strip()]


class PromptSource(ABC):
    """Abstract access to catalog and prompt resources."""

    @abstractmethod
    def read_text(self, path: str) -> str:
        """Return the text behind ``path`` or raise :class:`OSError`."""


class DirectorySource(PromptSource):
    """Reads resources from a local assets directory."""

    def __init__(self, base_dir: Path | str, *, encoding: str = "utf-8") -> None:
        self.base_dir = Path(base_dir)
        self.encoding = encoding

    def _resolve(self, path: str) -> Path:
        resolved = (self.base_dir / path).resolve()
        root = self.base_dir.resolve()
        if root not in resolved.parents and resolved != root:
            raise FileNotFoundError(f"{path} escapes the assets directory")
        return resolved

    def read_text(self, path: str) -> str:
        resolved = self._resolve(path)
        LOGGER.debug("source.read", path=str(resolved))
        try:
            return resolved.read_text(encoding=self.encoding)
        except UnicodeDecodeError as exc:
            raise OSError(f"{path} is not valid {self.encoding} text") from exc

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"DirectorySource({str(self.base_dir)!r})"


class MemorySource(PromptSource):
    """Serves resources from an in-memory mapping of path to text."""

    def __init__(self, resources: Mapping[str, str] | None = None) -> None:
        self._resources: Dict[str, str] = dict(resources or {})

    def add(self, path: str, text: str) -> None:
        self._resources[path] = text

    def remove(self, path: str) -> None:
        self._resources.pop(path, None)

    def read_text(self, path: str) -> str:
        try:
            return self._resources[path]
        except KeyError:
            raise FileNotFoundError(path) from None
