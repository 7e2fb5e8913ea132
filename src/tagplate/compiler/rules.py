"""Built-in tag rules - template syntax to Jinja source.

Each rule is a (pattern, rewrite) pair. The compiler applies the rules in
order, every rule over the whole text before moving to the next one, so a
rule always sees the output of the rules before it.

The emitted host code uses PHP-like delimiters so that stray `{{` or `{%` in
plain template text stays inert:

    <?py for item in (items) ?>   statement
    <?= (item) | e =?>            output
    <?# note #?>                  comment
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, List, Tuple

from tagplate.compiler.resolver import split_reference

if TYPE_CHECKING:
    from tagplate.compiler.compiler import CompileUnit

BLOCK_START = "<?py"
BLOCK_END = "?>"
VARIABLE_START = "<?="
VARIABLE_END = "=?>"
COMMENT_START = "<?#"
COMMENT_END = "#?>"

FLAGS = re.IGNORECASE | re.DOTALL

# Namespace holding the state of the innermost {switch}
SWITCH_NAME = "_switch"

Rewrite = Callable[[re.Match, "CompileUnit"], str]

_SIGIL = re.compile(r"""('(?:\\.|[^'\\])*'|"(?:\\.|[^"\\])*")|\$(?=[A-Za-z_])""")
_FOREACH = re.compile(r"^(.*?)\s+as\s+(.*)$", FLAGS)
_PAIR = re.compile(r"^(.*?)\s*=>\s*(.*)$", re.DOTALL)
_ASSIGNMENT = re.compile(r"^[A-Za-z_][\w.]*\s*=(?!=)")
_COMPOUND_ASSIGNMENT = re.compile(
    r"^([A-Za-z_][\w.]*?)\s*(\*\*|//|[-+*/%.~])=(?!=)\s*(.*)$", re.DOTALL
)

# `.=` is string concatenation
_COMPOUND_OPERATORS = {".": "~"}

_CLOSERS = {
    "foreach": "endfor",
    "for": "endfor",
    "if": "endif",
    "function": "endmacro",
    "switch": "endwith",
}


def strip_sigils(expr: str) -> str:
    """Drop `$` variable sigils outside of string literals.

    >>> strip_sigils("$user.name ~ '$5'")
    "user.name ~ '$5'"
    """
    return _SIGIL.sub(lambda m: m.group(1) or "", expr)


def statement(body: str) -> str:
    return f"{BLOCK_START} {body} {BLOCK_END}"


def output(expr: str) -> str:
    return f"{VARIABLE_START} {expr} {VARIABLE_END}"


def escaped_output(expr: str) -> str:
    return output(f"({strip_sigils(expr.strip())}) | e")


@dataclass(frozen=True)
class TagRule:
    """A pattern and the rewrite applied to each of its matches."""

    name: str
    pattern: re.Pattern
    rewrite: Rewrite

    def apply(self, text: str, unit: "CompileUnit") -> str:
        return self.pattern.sub(lambda match: self.rewrite(match, unit), text)


def split_includes(spec: str) -> List[str]:
    """Expand an include list into full references.

    Parts without a registry share the registry of the last part, so
    `a,b@main` means `a@main,b@main`.
    """
    parts = [part.strip() for part in spec.split(",")]
    _, shared = split_reference(parts[-1])

    references = []
    for part in parts:
        if "@" not in part and shared:
            part = f"{part}@{shared}"
        references.append(part)
    return references


def _foreach_clause(subject: str) -> str:
    match = _FOREACH.match(subject)
    if match is None:
        # Already `target in iterable`
        return strip_sigils(subject)

    iterable, target = (strip_sigils(part.strip()) for part in match.groups())
    pair = _PAIR.match(target)
    if pair:
        key, value = (part.strip() for part in pair.groups())
        return f"{key}, {value} in ({iterable}) | pairs"
    return f"{target} in ({iterable}) | values"


def _open_block(match: re.Match, unit: "CompileUnit") -> str:
    construct = match.group(1).lower()
    subject = match.group(2).strip()

    if construct == "foreach":
        return statement(f"for {_foreach_clause(subject)}")
    if construct == "for":
        return statement(f"for {strip_sigils(subject)}")
    if construct == "if":
        return statement(f"if ({strip_sigils(subject)})")
    return statement(
        f"with {SWITCH_NAME} = namespace(subject=({strip_sigils(subject)}), done=false)"
    )


def _open_function(match: re.Match, unit: "CompileUnit") -> str:
    return statement(f"macro {strip_sigils(match.group(1).strip())}")


def _php_statement(match: re.Match, unit: "CompileUnit") -> str:
    """Assignments become `set`, compound ones `set x = x op (value)`; the
    rest becomes `do`."""
    body = strip_sigils(match.group(1).strip())
    compound = _COMPOUND_ASSIGNMENT.match(body)
    if compound:
        target, operator, value = compound.groups()
        operator = _COMPOUND_OPERATORS.get(operator, operator)
        return statement(f"set {target} = {target} {operator} ({value})")
    keyword = "set" if _ASSIGNMENT.match(body) else "do"
    return statement(f"{keyword} {body}")


def _dump(match: re.Match, unit: "CompileUnit") -> str:
    expr = strip_sigils(match.group(1).strip())
    return f"<pre>{output(f'({expr}) | dump | e')}</pre>"


def _print(match: re.Match, unit: "CompileUnit") -> str:
    expr = strip_sigils(match.group(1).strip())
    return f"<pre>{output(f'({expr}) | pformat | e')}</pre>"


def _echo(match: re.Match, unit: "CompileUnit") -> str:
    return output(strip_sigils(match.group(1).strip()))


def _case(match: re.Match, unit: "CompileUnit") -> str:
    expr = strip_sigils(match.group(1).strip())
    return statement(
        f"if not {SWITCH_NAME}.done and {SWITCH_NAME}.subject == ({expr})"
    ) + statement(f"set {SWITCH_NAME}.done = true")


def _default(match: re.Match, unit: "CompileUnit") -> str:
    return statement(f"if not {SWITCH_NAME}.done") + statement(
        f"set {SWITCH_NAME}.done = true"
    )


def _close_block(match: re.Match, unit: "CompileUnit") -> str:
    return statement(_CLOSERS[match.group(1).lower()])


def _close_branch(match: re.Match, unit: "CompileUnit") -> str:
    return statement("endif")


def _elseif(match: re.Match, unit: "CompileUnit") -> str:
    return statement(f"elif ({strip_sigils(match.group(1).strip())})")


def _include(match: re.Match, unit: "CompileUnit") -> str:
    return unit.include(split_includes(match.group(1)))


def _path_interpolation(match: re.Match, unit: "CompileUnit") -> str:
    subscripts = []
    for segment in match.group(2).split(".")[1:]:
        if segment.isdigit():
            subscripts.append(f"[{int(segment)}]")
        else:
            subscripts.append(f"[{segment!r}]")
    target = strip_sigils(match.group(1))
    return output(f"({target}){''.join(subscripts)} | e")


def _interpolation(match: re.Match, unit: "CompileUnit") -> str:
    return escaped_output(match.group(1))


def _merge_statements(match: re.Match, unit: "CompileUnit") -> str:
    return BLOCK_END + BLOCK_START


def _rule(name: str, pattern: str, rewrite: Rewrite) -> TagRule:
    return TagRule(name=name, pattern=re.compile(pattern, FLAGS), rewrite=rewrite)


BUILTIN_RULES: Tuple[TagRule, ...] = (
    _rule("open-block", r"\{(foreach|if|for|switch)\s+(.*?)\}", _open_block),
    _rule("function", r"\{function\s+(.*?)\}", _open_function),
    _rule("php", r"\{php\s+(.*?)\s*;?\s*\}", _php_statement),
    _rule("dump", r"\{dump\s+(.*?)\s*;?\s*\}", _dump),
    _rule("print", r"\{print\s+(.*?)\s*;?\s*\}", _print),
    _rule("echo", r"\{echo\s+(.*?)\s*;?\s*\}", _echo),
    _rule("case", r"\{case\s+(.*?)\}", _case),
    _rule("default", r"\{default\s*\}", _default),
    _rule("php-open", r"\{php\}", lambda match, unit: f"{BLOCK_START} "),
    _rule("php-close", r"\{/php\}", lambda match, unit: f" {BLOCK_END}"),
    _rule("close-block", r"\{/(foreach|if|for|function|switch)\}", _close_block),
    _rule("close-branch", r"\{/(case|default)\}", _close_branch),
    _rule("elseif", r"\{elseif\s+(.*?)\}", _elseif),
    _rule("else", r"\{else/?\}", lambda match, unit: statement("else")),
    _rule("include", r"\{include\s*([\w\-.,@/]*)\}", _include),
    _rule(
        "path-interpolation",
        r"\{(\$[^{}'\"\s.]+)((?:\.[^{}'\"\s.]+)+)\}",
        _path_interpolation,
    ),
    _rule("interpolation", r"\{(\$[^{}]*?)\}", _interpolation),
    _rule("short-echo", r"\{:([^{}]*?)\s*;?\s*\}", _interpolation),
    _rule("merge-statements", r"(?<!=)\?>\s+<\?py", _merge_statements),
)
