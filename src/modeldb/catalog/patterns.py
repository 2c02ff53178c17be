"""Model id pattern compilation shared by exclude tables and filters.

A pattern is either an exact id, a glob where ``*`` matches any run of
characters, or an already compiled regular expression. Globs are compiled
once into anchored expressions with every other character escaped.

Examples:
    >>> bool(compile_pattern("gpt-3.5*").match("gpt-3.5-turbo"))
    True
    >>> bool(compile_pattern("gpt-3.5*").match("gpt-4"))
    False
"""

from __future__ import annotations

import re
from typing import Any, Iterable, List

from modeldb._internal.exceptions import InvalidArgumentError


def compile_pattern(pattern: Any) -> re.Pattern[str]:
    """Compile an exact id, glob, or regex into an anchored matcher."""

    if isinstance(pattern, re.Pattern):
        return pattern
    if not isinstance(pattern, str) or not pattern:
        raise InvalidArgumentError(
            "Model patterns must be non-empty strings or compiled regexes",
            context={"value": pattern, "value_type": type(pattern).__name__},
        )
    parts = (re.escape(part) for part in pattern.split("*"))
    return re.compile("^" + ".*".join(parts) + "$")


def compile_patterns(patterns: Iterable[Any]) -> List[re.Pattern[str]]:
    return [compile_pattern(p) for p in patterns]


def matches_any(model_id: str, patterns: Iterable[re.Pattern[str]]) -> bool:
    """Return True when any pattern matches; raw regexes use search semantics."""

    return any(p.search(model_id) for p in patterns)


__all__ = ["compile_pattern", "compile_patterns", "matches_any"]
