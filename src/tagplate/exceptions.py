"""Tagplate Exceptions

Custom exceptions raised while resolving, compiling and rendering templates.
"""

from __future__ import annotations


class TagplateError(Exception):
    """Base exception for all tagplate errors."""

    pass


class TemplateNotFoundError(TagplateError, FileNotFoundError):
    """Raised when a template reference cannot be resolved to a file."""

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f'template file "{reference}" is not found')


class IncludeDepthError(TagplateError):
    """Raised when include tags nest deeper than the configured limit."""

    def __init__(self, reference: str, depth: int):
        self.reference = reference
        self.depth = depth
        super().__init__(
            f'include of "{reference}" exceeds the maximum depth of {depth}'
        )


class ConfigError(TagplateError):
    """Raised when an engine configuration file is invalid."""

    pass
