"""Artifact cache - stores compiled templates through a cache capability."""

from __future__ import annotations

import logging
import re
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

from tagplate.compiler.compiler import TagCompiler
from tagplate.compiler.spec import CompiledArtifact

log = logging.getLogger(__name__)

KEY_NAMESPACE = "tpl_"

_UNSAFE_KEY_CHARS = re.compile(r"[{}()/\\@:]")


class Cache(ABC):
    """Base class for cache backends.

    Any object with compatible `get`/`set` methods can be used in its place.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass


class MemoryCache(Cache):
    """Process-local cache backed by a dict."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._data: Dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


class ArtifactCache:
    """Looks up compiled artifacts by identity, compiling on a miss.

    Cache failures never fail a render: they are logged and the template is
    compiled as if no cache were configured. In debug mode the cache is
    neither read nor written.
    """

    def __init__(
        self,
        compiler: TagCompiler,
        cache: Optional[Cache] = None,
        debug: bool = False,
    ):
        self.compiler = compiler
        self.cache = cache
        self.debug = debug

    @staticmethod
    def key_for(identity: str) -> str:
        """Derive a storage-safe cache key from a template identity.

        >>> ArtifactCache.key_for("layout/header@main")
        'tpl_layout_header_main'
        """
        return _UNSAFE_KEY_CHARS.sub("_", KEY_NAMESPACE + identity)

    @property
    def enabled(self) -> bool:
        return self.cache is not None and not self.debug

    def get_or_compile(
        self, identity: str, source_provider: Callable[[], str]
    ) -> CompiledArtifact:
        """Return the cached artifact for identity or compile a fresh one.

        Args:
            identity: Template reference or explicit cache key.
            source_provider: Returns the raw template source; only called
                on a miss.

        Returns:
            The compiled artifact.
        """
        key = self.key_for(identity)

        if self.enabled:
            cached = self._get(key)
            if cached is not None:
                log.debug(f"Cache hit for {key}")
                return CompiledArtifact(source=cached, identity=identity, cached=True)
            log.debug(f"Cache miss for {key}")

        source = self.compiler.compile(source_provider())

        if self.enabled:
            self._set(key, source)

        return CompiledArtifact(source=source, identity=identity)

    def _get(self, key: str) -> Optional[str]:
        try:
            return self.cache.get(key)  # type: ignore[union-attr]
        except Exception as exc:
            log.warning(f"Cache read failed for {key}: {exc}")
            return None

    def _set(self, key: str, source: str) -> None:
        try:
            self.cache.set(key, source)  # type: ignore[union-attr]
        except Exception as exc:
            log.warning(f"Cache write failed for {key}: {exc}")
