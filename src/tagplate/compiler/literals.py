"""Literal vault - keeps {literal} blocks away from the tag rules.

A vault lives for exactly one compile. Blocks are swapped for opaque
placeholders before any rule runs and swapped back, HTML-escaped, once the
outermost compile is done.
"""

from __future__ import annotations

import hashlib
import re
from types import MappingProxyType
from typing import Dict, Mapping

from markupsafe import escape

LITERAL_PATTERN = re.compile(r"\{literal\}(.*?)\{/literal\}", re.IGNORECASE | re.DOTALL)


def placeholder_for(content: str) -> str:
    """Build the placeholder standing in for a literal block's content."""
    digest = hashlib.md5(content.encode("utf-8")).hexdigest()
    return f"#literal:{digest}#"


class LiteralVault:
    """Extracts literal blocks and restores them after tag rewriting."""

    def __init__(self) -> None:
        self._literals: Dict[str, str] = {}

    @property
    def extracted(self) -> Mapping[str, str]:
        """Read-only view of placeholder -> escaped content."""
        return MappingProxyType(self._literals)

    def protect(self, text: str) -> str:
        """Replace every literal block in text with its placeholder.

        Args:
            text: Raw template source.

        Returns:
            Text with literal blocks swapped out.
        """

        def replace(match: re.Match[str]) -> str:
            content = match.group(1)
            key = placeholder_for(content)
            self._literals[key] = str(escape(content))
            return key

        return LITERAL_PATTERN.sub(replace, text)

    def restore(self, text: str) -> str:
        """Put the escaped literal content back in place of the placeholders."""
        for key, content in self._literals.items():
            text = text.replace(key, content)
        return text

    def __len__(self) -> int:
        return len(self._literals)
