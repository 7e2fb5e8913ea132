"""Compiler IR spec - the compiled artifact handed to the renderer."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CompiledArtifact:
    """Executable intermediate form of one template.

    Either freshly compiled for the current render call or read back from
    the cache. Renderers only read it.
    """

    source: str  # Jinja source produced by the tag compiler
    identity: Optional[str] = None  # reference or cache identity it was compiled for
    cached: bool = False  # True when read back from the cache

    def __bool__(self) -> bool:
        return bool(self.source)
