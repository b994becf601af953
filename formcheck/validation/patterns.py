"""Regular expression rules over field names.

Profiles use patterns in four places: ``required_regexp``,
``optional_regexp`` and the keys of ``field_filter_regexp_map`` and
``constraint_regexp_map``. Inline pattern constraints use the same syntax.

A pattern may be given as:
    - a compiled ``re.Pattern`` (preferred)
    - a delimited string in the legacy form ``/source/flags`` or
      ``m<d>source<d>flags``, where flags are drawn from ``imsx`` (``g``,
      ``c`` and ``o`` are accepted and ignored)
    - a bare regular expression string (patterns over field names only; a
      bare string used as a constraint is a constraint name)

Any compilation failure raises PatternError carrying the pattern text.
"""

import re
from collections.abc import Iterable

from formcheck.core.exceptions import PatternError

PatternLike = str | re.Pattern[str]

_DELIMITED_RE = re.compile(
    r"^\s*(?:/(?P<slash>.+)/|m(?P<delim>.)(?P<body>.+)(?P=delim))(?P<flags>[cgimosx]*)\s*$",
    re.DOTALL,
)

_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}


def is_pattern_literal(spec: object) -> bool:
    """True if ``spec`` is a compiled pattern or a delimited pattern string."""
    if isinstance(spec, re.Pattern):
        return True
    return isinstance(spec, str) and _DELIMITED_RE.match(spec) is not None


def pattern_text(spec: PatternLike) -> str:
    """Human readable text of a pattern, used as its default constraint name."""
    if isinstance(spec, re.Pattern):
        return spec.pattern
    return spec


def compile_pattern(spec: PatternLike) -> re.Pattern[str]:
    """Compile a pattern given in any accepted form.

    Args:
        spec: Compiled pattern, delimited pattern string or bare regex string

    Returns:
        Compiled regular expression

    Raises:
        PatternError: If ``spec`` is not a string or pattern, or fails to compile

    Example:
        >>> compile_pattern("/_name$/i").flags & re.IGNORECASE
        2
    """
    if isinstance(spec, re.Pattern):
        return spec
    if not isinstance(spec, str):
        raise PatternError(
            f"Regular expression must be a string or compiled pattern, got: {type(spec).__name__}",
            reason="Invalid pattern type",
        )

    source = spec
    flags = 0
    match = _DELIMITED_RE.match(spec)
    if match:
        source = match.group("slash") if match.group("slash") is not None else match.group("body")
        for flag in match.group("flags"):
            flags |= _FLAGS.get(flag, 0)

    try:
        return re.compile(source, flags)
    except re.error as e:
        raise PatternError(
            f"Error compiling regular expression {spec}: {e}",
            pattern=spec,
            reason=str(e),
        ) from e


def resolve(spec: PatternLike, keys: Iterable[str]) -> set[str]:
    """Return the subset of ``keys`` that ``spec`` matches (searched anywhere).

    The result is a set; callers apply their action to each key independently.

    Example:
        >>> sorted(resolve("_name$", ["first_name", "last_name", "email"]))
        ['first_name', 'last_name']
    """
    pattern = compile_pattern(spec)
    return {key for key in keys if pattern.search(key)}
