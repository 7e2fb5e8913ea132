"""Jinja2 environment and filters used to run compiled templates."""

from __future__ import annotations

from pprint import pformat
from typing import Any, Iterable, List, Mapping, Tuple

from jinja2 import StrictUndefined
from jinja2.sandbox import SandboxedEnvironment

from tagplate.compiler.rules import (
    BLOCK_END,
    BLOCK_START,
    COMMENT_END,
    COMMENT_START,
    VARIABLE_END,
    VARIABLE_START,
)


def dump_value(value: Any, indent: int = 0) -> str:
    """Structured, type-annotated dump of a value.

    Example:
        >>> print(dump_value({"a": [1, "x"]}))
        dict(1) {
          ['a'] => list(2) {
            [0] => int(1)
            [1] => str(1) "x"
          }
        }
    """
    pad = "  " * indent

    if value is None:
        return "None"
    if isinstance(value, bool):
        return f"bool({value})"
    if isinstance(value, int):
        return f"int({value})"
    if isinstance(value, float):
        return f"float({value!r})"
    if isinstance(value, str):
        return f'str({len(value)}) "{value}"'

    if isinstance(value, Mapping):
        items: Iterable[Tuple[Any, Any]] = value.items()
    elif isinstance(value, (list, tuple, set, frozenset)):
        items = enumerate(value)
    else:
        return f"object({type(value).__name__}) {value!r}"

    lines = [f"{type(value).__name__}({len(value)}) {{"]
    for key, item in items:
        lines.append(f"{pad}  [{key!r}] => {dump_value(item, indent + 1)}")
    lines.append(f"{pad}}}")
    return "\n".join(lines)


def pairs(value: Any) -> List[Tuple[Any, Any]]:
    """(key, value) pairs of a mapping, (index, value) pairs of a sequence."""
    if isinstance(value, Mapping):
        return list(value.items())
    return list(enumerate(value))


def values(value: Any) -> Any:
    """Values of a mapping; any other iterable is returned as is."""
    if isinstance(value, Mapping):
        return list(value.values())
    return value


def get_tagplate_env() -> SandboxedEnvironment:
    """Create the sandboxed Jinja2 environment compiled templates run in.

    Returns:
        Configured environment with tagplate delimiters and filters.
    """
    env = SandboxedEnvironment(
        block_start_string=BLOCK_START,
        block_end_string=BLOCK_END,
        variable_start_string=VARIABLE_START,
        variable_end_string=VARIABLE_END,
        comment_start_string=COMMENT_START,
        comment_end_string=COMMENT_END,
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        extensions=["jinja2.ext.do"],
    )

    env.filters["dump"] = dump_value
    env.filters["pformat"] = pformat
    env.filters["pairs"] = pairs
    env.filters["values"] = values

    return env
