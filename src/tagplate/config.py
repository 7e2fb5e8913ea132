"""Configuration parsing for tagplate engine files.

Example:

    extension: .html
    debug: false
    types: [mobile]
    paths:
      main:
        - path: ./templates
          priority: 10
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from tagplate.compiler.compiler import DEFAULT_MAX_INCLUDE_DEPTH
from tagplate.compiler.resolver import DEFAULT_EXTENSION
from tagplate.exceptions import ConfigError


class PathConfig(BaseModel):
    """A template root within a named registry."""

    path: str = Field(description="Root directory of the templates")
    priority: int = Field(default=0, description="Higher is probed first")


class EngineConfig(BaseModel):
    """Full engine configuration"""

    extension: str = Field(
        default=DEFAULT_EXTENSION, description="Template file suffix"
    )
    debug: bool = Field(default=False, description="Bypass the artifact cache")
    types: list[str] = Field(
        default_factory=list, description="Type-fallback subdirectories"
    )
    max_include_depth: int = Field(default=DEFAULT_MAX_INCLUDE_DEPTH, ge=1)
    paths: dict[str, list[PathConfig]] = Field(
        default_factory=dict, description="Registry name -> template roots"
    )

    @classmethod
    def load(cls, path: Path) -> "EngineConfig":
        """Load config from yaml file.

        Relative template roots are taken relative to the file's directory.
        """
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        with open(path) as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(f"Failed to parse {path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigError(f"{path} must contain a mapping at the top level")

        try:
            config = cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(f"Invalid config {path}: {exc}") from exc

        base = path.parent
        for entries in config.paths.values():
            for entry in entries:
                if not Path(entry.path).is_absolute():
                    entry.path = str(base / entry.path)

        return config
