"""tagplate - tag template compiler.

Compiles brace-tag templates ({if}, {foreach}, {include}, {$var}, ...) into
sandboxed Jinja source, caches the result and renders it against bound data.
"""

from tagplate._version import __version__
from tagplate.cache import ArtifactCache, Cache, MemoryCache
from tagplate.compiler import (
    CompiledArtifact,
    LiteralVault,
    PathRegistry,
    Renderer,
    Resolver,
    TagCompiler,
)
from tagplate.config import EngineConfig
from tagplate.context import DataContext
from tagplate.engine import Engine
from tagplate.exceptions import (
    ConfigError,
    IncludeDepthError,
    TagplateError,
    TemplateNotFoundError,
)

__all__ = [
    "__version__",
    # Engine
    "Engine",
    "EngineConfig",
    "DataContext",
    # Cache
    "ArtifactCache",
    "Cache",
    "MemoryCache",
    # Compiler
    "CompiledArtifact",
    "LiteralVault",
    "PathRegistry",
    "Renderer",
    "Resolver",
    "TagCompiler",
    # Errors
    "TagplateError",
    "TemplateNotFoundError",
    "IncludeDepthError",
    "ConfigError",
]
