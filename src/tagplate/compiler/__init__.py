"""Tagplate compiler - tag templates to executable Jinja source."""

from tagplate.compiler.compiler import CompileUnit, TagCompiler
from tagplate.compiler.literals import LiteralVault
from tagplate.compiler.renderer import Renderer
from tagplate.compiler.resolver import (
    FileSystem,
    LocalFileSystem,
    PathEntry,
    PathRegistry,
    Resolver,
)
from tagplate.compiler.rules import TagRule, strip_sigils
from tagplate.compiler.spec import CompiledArtifact

__all__ = [
    "CompileUnit",
    "TagCompiler",
    "LiteralVault",
    "Renderer",
    "FileSystem",
    "LocalFileSystem",
    "PathEntry",
    "PathRegistry",
    "Resolver",
    "TagRule",
    "strip_sigils",
    "CompiledArtifact",
]
