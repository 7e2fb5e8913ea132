"""Resolver - maps `file@registry` references to template files.

Registries are named lists of root directories ordered by priority. Each root
is probed through the type-fallback subdirectories, always ending with
"default":

    <root>/<type>/<file><extension>

The first existing candidate wins.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional, Tuple

from tagplate.exceptions import TemplateNotFoundError

log = logging.getLogger(__name__)

DEFAULT_TYPE = "default"
DEFAULT_EXTENSION = ".html"


class FileSystem(ABC):
    """File system capability used by the resolver."""

    @abstractmethod
    def exists(self, path: Path) -> bool:
        pass

    @abstractmethod
    def read_bytes(self, path: Path) -> bytes:
        pass


class LocalFileSystem(FileSystem):
    """Reads templates from the local disk."""

    def exists(self, path: Path) -> bool:
        return path.is_file()

    def read_bytes(self, path: Path) -> bytes:
        return path.read_bytes()


@dataclass(frozen=True)
class PathEntry:
    """A candidate root directory within a registry."""

    root: Path
    priority: int = 0
    order: int = 0


class PathRegistry:
    """Named, priority-ordered lists of template roots.

    Writers swap in a new mapping under a lock; readers grab the current
    mapping without locking and only ever see complete, sorted tuples.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[PathEntry, ...]] = {}
        self._counter = 0

    def add(self, name: str, root: str | Path, priority: int = 0) -> None:
        """Add a root to a registry, creating the registry on first use."""
        with self._lock:
            entry = PathEntry(root=Path(root), priority=priority, order=self._counter)
            self._counter += 1

            current = self._entries.get(name, ())
            ordered = tuple(
                sorted(current + (entry,), key=lambda e: (-e.priority, e.order))
            )

            entries = dict(self._entries)
            entries[name] = ordered
            self._entries = entries
        log.debug(f"Added path {entry.root} to '{name}' (priority {priority})")

    def remove(self, name: str) -> bool:
        """Remove a registry. Unknown names are a no-op; always True."""
        with self._lock:
            if name in self._entries:
                entries = dict(self._entries)
                del entries[name]
                self._entries = entries
                log.debug(f"Removed path registry '{name}'")
        return True

    def entries(self, name: str) -> Tuple[PathEntry, ...]:
        """Entries of a registry, highest priority first."""
        return self._entries.get(name, ())

    def names(self) -> Tuple[str, ...]:
        return tuple(self._entries)

    def snapshot(self) -> Dict[str, Tuple[PathEntry, ...]]:
        return dict(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries


def split_reference(reference: str) -> Tuple[str, str]:
    """Split `file@registry` into its two parts (either may be empty).

    Anything after a second `@` is ignored.
    """
    parts = reference.split("@")
    return parts[0], parts[1] if len(parts) > 1 else ""


class Resolver:
    """Resolves template references against a PathRegistry."""

    def __init__(
        self,
        registry: Optional[PathRegistry] = None,
        fs: Optional[FileSystem] = None,
        extension: str = DEFAULT_EXTENSION,
        types: Iterable[str] = (),
    ):
        """Initialize resolver.

        Args:
            registry: Registry of template roots. A fresh one if omitted.
            fs: File system capability. Local disk if omitted.
            extension: Suffix appended to every referenced file name.
            types: Type-fallback subdirectories probed before "default".
        """
        self.registry = registry or PathRegistry()
        self.fs = fs or LocalFileSystem()
        self.extension = extension
        self._types: Tuple[str, ...] = ()
        self.set_types(types)

    @property
    def types(self) -> Tuple[str, ...]:
        return self._types

    def set_types(self, types: Iterable[str]) -> None:
        """Replace the type-fallback list. "default" must not be included."""
        self._types = tuple(t for t in types if t != DEFAULT_TYPE)

    def candidates(self, reference: str) -> Iterator[Path]:
        """Yield every path probed for a reference, in probing order."""
        file, name = split_reference(reference)
        if not file or not name:
            return

        types = self._types + (DEFAULT_TYPE,)
        for entry in self.registry.entries(name):
            for type_ in types:
                yield entry.root / type_ / f"{file}{self.extension}"

    def resolve(self, reference: str) -> Optional[Path]:
        """Resolve a reference to an existing file.

        Returns:
            The first existing candidate, or None when the reference is
            malformed, the registry is unknown, or no candidate exists.
        """
        for path in self.candidates(reference):
            if self.fs.exists(path):
                log.debug(f"Resolved {reference} -> {path}")
                return path

        log.debug(f"Could not resolve {reference}")
        return None

    def read(self, reference: str) -> str:
        """Resolve and read a template's raw source.

        Raises:
            TemplateNotFoundError: If the reference does not resolve.
        """
        path = self.resolve(reference)
        if path is None:
            raise TemplateNotFoundError(reference)
        return self.fs.read_bytes(path).decode("utf-8")
