"""Renderer - executes compiled artifacts against a data context."""

from __future__ import annotations

import functools
import logging
from typing import Any, Mapping, Optional

from jinja2 import Environment, Template

from tagplate.compiler.extensions import get_tagplate_env
from tagplate.compiler.spec import CompiledArtifact

log = logging.getLogger(__name__)

DEFAULT_TEMPLATE_CACHE_SIZE = 256


class Renderer:
    """Renders CompiledArtifact objects to text."""

    def __init__(
        self,
        env: Optional[Environment] = None,
        cache_size: int = DEFAULT_TEMPLATE_CACHE_SIZE,
    ):
        """Initialize renderer.

        Args:
            env: Jinja environment to load artifacts into.
            cache_size: How many loaded templates to keep, keyed by source.
        """
        self.env = env or get_tagplate_env()
        self._load = functools.lru_cache(maxsize=cache_size)(self._load_template)

    def _load_template(self, source: str) -> Template:
        log.debug(f"Loading compiled template ({len(source)} chars)")
        return self.env.from_string(source)

    def load(self, artifact: CompiledArtifact) -> Template:
        """Load an artifact into an executable Jinja template."""
        return self._load(artifact.source)

    def render(
        self,
        artifact: Optional[CompiledArtifact],
        context: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Execute an artifact and return everything it emits.

        Args:
            artifact: The compiled template. None or empty renders "".
            context: Name -> value bindings visible to the template.

        Returns:
            The rendered text.
        """
        if not artifact:
            return ""

        template = self.load(artifact)
        return template.render(dict(context or {}))
