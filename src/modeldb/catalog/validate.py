"""Per-layer structural validation.

Each record of a layer is checked against its pydantic schema. Valid records
come back as plain dictionaries holding only the fields the source supplied
(coerced to the schema types), so defaults never leak into the merge and a
sparse override cannot clobber base values. Invalid records are dropped and
counted; validation never raises.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Tuple, Type

from pydantic import BaseModel, ValidationError

from modeldb._internal.exceptions import ValidationFailure
from modeldb.catalog.schemas import Model, Provider, dump_record

logger = logging.getLogger(__name__)


def validate_record(record: Mapping[str, Any], schema: Type[BaseModel]) -> Dict[str, Any]:
    """Validate one record and return its supplied fields.

    Raises:
        ValidationFailure: The record does not match ``schema``.
    """
    try:
        instance = schema.model_validate(record)
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in exc.errors()
        ]
        raise ValidationFailure(
            f"{schema.__name__} record failed validation",
            context={"key": _record_key(record), "errors": errors},
        ) from exc
    return dump_record(instance, exclude_unset=True, exclude_none=False)


def validate(
    records: Iterable[Mapping[str, Any]], schema: Type[BaseModel]
) -> Tuple[List[Dict[str, Any]], int]:
    """Partition ``records`` into valid dictionaries and a drop count."""

    valid: List[Dict[str, Any]] = []
    dropped = 0
    for record in records:
        try:
            valid.append(validate_record(record, schema))
        except ValidationFailure as exc:
            dropped += 1
            logger.warning("Dropping invalid record: %s", exc)
    return valid, dropped


def validate_providers(records: Iterable[Mapping[str, Any]]) -> Tuple[List[Dict[str, Any]], int]:
    return validate(records, Provider)


def validate_models(records: Iterable[Mapping[str, Any]]) -> Tuple[List[Dict[str, Any]], int]:
    return validate(records, Model)


def _record_key(record: Any) -> str:
    if not isinstance(record, Mapping):
        return repr(record)[:64]
    if "provider" in record:
        return f"{record.get('provider')}:{record.get('id')}"
    return str(record.get("id"))


__all__ = ["validate", "validate_models", "validate_providers", "validate_record"]
