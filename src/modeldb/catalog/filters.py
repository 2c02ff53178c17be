"""Allow/deny policy compilation and application.

``allow`` is either :data:`ALL` or a mapping of provider id to patterns;
``deny`` is always a mapping. Patterns are exact ids, ``*`` globs, or compiled
regexes (see :mod:`modeldb.catalog.patterns`). Deny always wins. A non-empty
allow mapping admits only the providers it names; naming a provider with an
empty pattern list admits none of its models. Filters see canonical ids only,
never aliases.

Shorthands accepted by :func:`compile_filters`:

* a list of provider ids means every model of those providers;
* a per-provider value of ``"all"`` means the same;
* a single pattern string is treated as a one-element list.

Examples:
    >>> filters = compile_filters(deny={"openai": ["gpt-3.5*"]})
    >>> allowed(filters, "openai", "gpt-3.5-turbo"), allowed(filters, "openai", "gpt-4")
    (False, True)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Collection, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from modeldb._internal.exceptions import InvalidArgumentError
from modeldb.catalog.canonical import normalize_provider_id
from modeldb.catalog.patterns import compile_pattern, matches_any

logger = logging.getLogger(__name__)

ALL = "all"

PatternTable = Dict[str, Tuple[re.Pattern[str], ...]]
FilterSpec = Union[str, Mapping[str, Any], Iterable[str], None]


@dataclass(frozen=True)
class CompiledFilters:
    """Compiled allow/deny tables plus the raw specs they came from."""

    allow: Union[str, PatternTable] = ALL
    deny: PatternTable = field(default_factory=dict)
    allow_spec: Any = ALL
    deny_spec: Any = field(default_factory=dict)
    unknown: Tuple[str, ...] = ()

    @property
    def allows_all(self) -> bool:
        return self.allow == ALL

    def as_options(self) -> Dict[str, Any]:
        """Return the raw specs, suitable for recompiling."""

        return {"allow": self.allow_spec, "deny": self.deny_spec}


def compile_filters(
    allow: FilterSpec = ALL,
    deny: FilterSpec = None,
    *,
    known_providers: Optional[Collection[str]] = None,
) -> CompiledFilters:
    """Compile ``allow`` and ``deny`` specs into matchers.

    Args:
        allow: :data:`ALL` (or ``None``), a list of provider ids, or a
            mapping of provider id to patterns.
        deny: ``None``, a list of provider ids, or a mapping of provider id to
            patterns.
        known_providers: When given, filter keys naming other providers are
            reported in :attr:`CompiledFilters.unknown` and logged.

    Raises:
        InvalidArgumentError: A spec or pattern has an unsupported type.
        BadProviderError: A provider key cannot be canonicalized.
    """
    if allow is None or allow == ALL:
        allow_table: Union[str, PatternTable] = ALL
    else:
        allow_table = _compile_table(allow, "allow")
        if not allow_table:
            allow_table = ALL
    deny_table = _compile_table(deny, "deny") if deny is not None else {}

    unknown: Tuple[str, ...] = ()
    if known_providers is not None:
        keys = list(deny_table)
        if isinstance(allow_table, dict):
            keys = list(allow_table) + keys
        unknown = tuple(sorted({key for key in keys if key not in known_providers}))
        if unknown:
            logger.warning("Filters reference unknown providers: %s", ", ".join(unknown))

    return CompiledFilters(
        allow=allow_table,
        deny=deny_table,
        allow_spec=ALL if allow is None else allow,
        deny_spec={} if deny is None else deny,
        unknown=unknown,
    )


def allowed(filters: CompiledFilters, provider: str, model_id: str) -> bool:
    """Decide whether a single canonical model passes ``filters``."""

    deny_patterns = filters.deny.get(provider)
    if deny_patterns and matches_any(model_id, deny_patterns):
        return False
    if filters.allow == ALL:
        return True
    allow_patterns = filters.allow.get(provider)
    if not allow_patterns:
        return False
    return matches_any(model_id, allow_patterns)


def apply_filters(models: Iterable[Any], filters: CompiledFilters) -> List[Any]:
    """Keep the models that pass ``filters``.

    Accepts both plain dictionaries and schema records.
    """
    kept = []
    for model in models:
        provider, model_id = _key_of(model)
        if allowed(filters, provider, model_id):
            kept.append(model)
    return kept


def _compile_table(spec: Any, label: str) -> PatternTable:
    if isinstance(spec, str):
        raise InvalidArgumentError(
            f"{label} must be a mapping or a list of provider ids",
            context={"value": spec},
        )
    if isinstance(spec, Mapping):
        items = spec.items()
    elif isinstance(spec, Iterable):
        items = ((provider, ALL) for provider in spec)
    else:
        raise InvalidArgumentError(
            f"{label} must be a mapping or a list of provider ids",
            context={"value_type": type(spec).__name__},
        )

    table: PatternTable = {}
    for raw_provider, patterns in items:
        provider = normalize_provider_id(raw_provider)
        if patterns == ALL:
            compiled: Tuple[re.Pattern[str], ...] = (compile_pattern("*"),)
        elif isinstance(patterns, (str, re.Pattern)):
            compiled = (compile_pattern(patterns),)
        elif patterns is None:
            compiled = ()
        else:
            compiled = tuple(compile_pattern(p) for p in patterns)
        table[provider] = table.get(provider, ()) + compiled
    return table


def _key_of(model: Any) -> Tuple[str, str]:
    if isinstance(model, Mapping):
        return model["provider"], model["id"]
    return model.provider, model.id


__all__ = ["ALL", "CompiledFilters", "allowed", "apply_filters", "compile_filters"]
