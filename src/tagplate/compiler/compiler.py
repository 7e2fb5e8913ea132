"""Compiler - rewrites tag syntax into executable Jinja source."""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from tagplate.compiler.literals import LiteralVault
from tagplate.compiler.resolver import Resolver
from tagplate.compiler.rules import BUILTIN_RULES, FLAGS, TagRule
from tagplate.exceptions import IncludeDepthError

log = logging.getLogger(__name__)

DEFAULT_MAX_INCLUDE_DEPTH = 32

ExtensionRule = Callable[[re.Match], str]


@dataclass
class CompileUnit:
    """State of a single compile call.

    Owns the literal vault, so concurrent compiles never share placeholders.
    Includes are compiled within the same unit one level deeper.
    """

    compiler: "TagCompiler"
    rules: Tuple[TagRule, ...]
    vault: LiteralVault = field(default_factory=LiteralVault)
    depth: int = 0

    def rewrite(self, text: str) -> str:
        """Protect literals and apply every rule, without restoring."""
        text = self.vault.protect(text)
        for rule in self.rules:
            text = rule.apply(text, self)
        return text

    def include(self, references: List[str]) -> str:
        """Read, concatenate and compile the referenced templates in place.

        Raises:
            TemplateNotFoundError: If any reference does not resolve.
            IncludeDepthError: If includes nest too deeply.
        """
        if self.depth >= self.compiler.max_include_depth:
            raise IncludeDepthError(
                ",".join(references), self.compiler.max_include_depth
            )

        source = "".join(self.compiler.resolver.read(ref) for ref in references)
        log.debug(f"Including {', '.join(references)} at depth {self.depth + 1}")

        nested = CompileUnit(
            compiler=self.compiler,
            rules=self.rules,
            vault=self.vault,
            depth=self.depth + 1,
        )
        return nested.rewrite(source)


class TagCompiler:
    """Compiles template source into Jinja source via ordered tag rules."""

    def __init__(
        self,
        resolver: Optional[Resolver] = None,
        max_include_depth: int = DEFAULT_MAX_INCLUDE_DEPTH,
    ):
        """Initialize compiler.

        Args:
            resolver: Resolver used by include tags.
            max_include_depth: Maximum nesting of include tags.
        """
        self.resolver = resolver or Resolver()
        self.max_include_depth = max_include_depth
        self._lock = threading.Lock()
        self._extensions: Tuple[TagRule, ...] = ()

    @property
    def rules(self) -> Tuple[TagRule, ...]:
        """Built-in rules followed by registered extensions."""
        return BUILTIN_RULES + self._extensions

    @property
    def extensions(self) -> Tuple[TagRule, ...]:
        return self._extensions

    def extend(self, pattern: str | re.Pattern, rule: ExtensionRule) -> None:
        """Register a custom tag rule, applied after every earlier rule.

        Args:
            pattern: Regex source (compiled case-insensitive, dot-all) or a
                compiled pattern used as-is.
            rule: Called with each match; returns the replacement text. It
                sees text already rewritten by the built-in rules.
        """
        if isinstance(pattern, str):
            pattern = re.compile(pattern, FLAGS)

        ext = TagRule(
            name=pattern.pattern,
            pattern=pattern,
            rewrite=lambda match, unit: rule(match),
        )
        with self._lock:
            self._extensions = self._extensions + (ext,)
        log.debug(f"Registered tag extension {pattern.pattern!r}")

    def compile(self, source: str) -> str:
        """Compile template source into executable Jinja source.

        Args:
            source: Raw template text.

        Returns:
            Jinja source for the renderer.
        """
        unit = CompileUnit(compiler=self, rules=self.rules)
        text = unit.rewrite(source)
        text = unit.vault.restore(text)
        log.debug(f"Compiled {len(source)} chars ({len(unit.vault)} literal blocks)")
        return text
