"""Engine - the public entry point tying resolver, compiler, cache and renderer.

Usage:
    engine = Engine(cache=MemoryCache())
    engine.add_path("main", "templates", priority=10)
    engine.assign("user", {"name": "Ann"})
    html = engine.render_file("profile@main")
"""

from __future__ import annotations

import hashlib
import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from tagplate.cache import ArtifactCache, Cache
from tagplate.compiler.compiler import ExtensionRule, TagCompiler
from tagplate.compiler.renderer import Renderer
from tagplate.compiler.resolver import FileSystem, PathEntry, PathRegistry, Resolver
from tagplate.config import EngineConfig
from tagplate.context import DataContext

log = logging.getLogger(__name__)


class Engine:
    """Compiles and renders tag templates."""

    def __init__(
        self,
        cache: Optional[Cache] = None,
        fs: Optional[FileSystem] = None,
        config: Optional[EngineConfig] = None,
    ):
        """Initialize engine.

        Args:
            cache: Cache capability for compiled artifacts. None disables caching.
            fs: File system capability. Local disk if omitted.
            config: Engine settings. Paths listed in it are registered.
        """
        config = config or EngineConfig()

        self.registry = PathRegistry()
        self.resolver = Resolver(
            self.registry, fs=fs, extension=config.extension, types=config.types
        )
        self.compiler = TagCompiler(
            self.resolver, max_include_depth=config.max_include_depth
        )
        self.artifacts = ArtifactCache(self.compiler, cache=cache, debug=config.debug)
        self.renderer = Renderer()
        self.data = DataContext()

        for name, entries in config.paths.items():
            for entry in entries:
                self.add_path(name, entry.path, entry.priority)

    @classmethod
    def from_config(
        cls,
        config: EngineConfig | Path,
        cache: Optional[Cache] = None,
        fs: Optional[FileSystem] = None,
    ) -> "Engine":
        """Create an engine from a config object or a YAML config file."""
        if isinstance(config, Path):
            config = EngineConfig.load(config)
        return cls(cache=cache, fs=fs, config=config)

    # Setup

    def add_path(self, name: str, root: str | Path, priority: int = 0) -> "Engine":
        self.registry.add(name, root, priority)
        return self

    def remove_path(self, name: str) -> bool:
        return self.registry.remove(name)

    def get_paths(self) -> Dict[str, Tuple[PathEntry, ...]]:
        return self.registry.snapshot()

    def set_types(self, types: Iterable[str]) -> "Engine":
        self.resolver.set_types(types)
        return self

    def set_debug(self, debug: bool) -> "Engine":
        self.artifacts.debug = debug
        return self

    def set_cache(self, cache: Optional[Cache]) -> "Engine":
        self.artifacts.cache = cache
        return self

    @property
    def extension(self) -> str:
        return self.resolver.extension

    def extend(self, pattern: str | re.Pattern, rule: ExtensionRule) -> "Engine":
        """Register a custom tag rule. See TagCompiler.extend."""
        self.compiler.extend(pattern, rule)
        return self

    def assign(self, name: str | Mapping[str, Any], value: Any = None) -> "Engine":
        """Bind data for every following render."""
        self.data.assign(name, value)
        return self

    # Resolution and compilation

    def resolve(self, reference: str) -> Optional[Path]:
        return self.resolver.resolve(reference)

    def compile_file(self, reference: str) -> str:
        """Compile a referenced template without touching the cache."""
        return self.compiler.compile(self.resolver.read(reference))

    def compile_string(self, source: str) -> str:
        return self.compiler.compile(source)

    # Rendering

    def render_file(
        self,
        reference: str,
        data: Optional[Mapping[str, Any]] = None,
        cache_key: str = "",
    ) -> str:
        """Render a template reference such as `page@main`.

        Args:
            reference: `file@registry` reference.
            data: Bindings for this call only, merged over assigned data.
            cache_key: Overrides the identity the cache key derives from.

        Raises:
            TemplateNotFoundError: If the template or one of its includes
                does not resolve.
        """
        log.debug(f"Rendering {reference}")
        artifact = self.artifacts.get_or_compile(
            cache_key or reference, lambda: self.resolver.read(reference)
        )
        return self.renderer.render(artifact, self.data.merged(data))

    def render_string(
        self,
        source: str,
        data: Optional[Mapping[str, Any]] = None,
        cache_key: str = "",
    ) -> str:
        """Render raw template source.

        Without an explicit cache_key the cache identity is the md5 of the
        source.
        """
        identity = cache_key or hashlib.md5(source.encode("utf-8")).hexdigest()
        artifact = self.artifacts.get_or_compile(identity, lambda: source)
        return self.renderer.render(artifact, self.data.merged(data))
