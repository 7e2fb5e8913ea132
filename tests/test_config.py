"""Tests for engine config loading."""

import pytest

from tagplate.config import EngineConfig
from tagplate.exceptions import ConfigError


def write_config(tmp_path, text):
    path = tmp_path / "tagplate.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults():
    config = EngineConfig()

    assert config.extension == ".html"
    assert config.debug is False
    assert config.types == []
    assert config.max_include_depth == 32
    assert config.paths == {}


def test_load_full_config(tmp_path):
    path = write_config(
        tmp_path,
        """
extension: .tpl
debug: true
types: [mobile]
max_include_depth: 8
paths:
  main:
    - path: ./templates
      priority: 10
    - path: /srv/shared
""",
    )

    config = EngineConfig.load(path)

    assert config.extension == ".tpl"
    assert config.debug is True
    assert config.types == ["mobile"]
    assert config.max_include_depth == 8
    main = config.paths["main"]
    assert main[0].path == str(tmp_path / "templates")
    assert main[0].priority == 10
    assert main[1].path == "/srv/shared"
    assert main[1].priority == 0


def test_empty_file_gives_defaults(tmp_path):
    assert EngineConfig.load(write_config(tmp_path, "")) == EngineConfig()


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        EngineConfig.load(tmp_path / "nope.yaml")


@pytest.mark.parametrize(
    "text",
    [
        "paths: [unclosed",
        "- just\n- a list\n",
        "paths:\n  main:\n    - priority: 1\n",
        "max_include_depth: 0\n",
        "debug: [1, 2]\n",
    ],
)
def test_invalid_config(tmp_path, text):
    with pytest.raises(ConfigError):
        EngineConfig.load(write_config(tmp_path, text))
