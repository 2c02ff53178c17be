"""Re-applying policy to an existing snapshot.

A snapshot keeps its unfiltered ``base_models``, so allow/deny filters and
the preference order can be changed (widened as well as narrowed) without
re-running sources.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from modeldb._internal.exceptions import EmptyCatalogError, InvalidArgumentError
from modeldb.catalog.engine import recompile
from modeldb.catalog.filters import apply_filters
from modeldb.catalog.snapshot import Snapshot

logger = logging.getLogger(__name__)


def apply_overrides(
    snapshot: Snapshot,
    filters: Optional[Mapping[str, Any]] = None,
    prefer: Optional[Sequence[str]] = None,
) -> Snapshot:
    """Return a new, unpublished snapshot with updated policy.

    Args:
        snapshot: Snapshot to derive from.
        filters: ``{"allow": ..., "deny": ...}``; keeps the current filters
            when omitted.
        prefer: New provider preference order; keeps the current one when
            omitted.

    Raises:
        InvalidArgumentError: ``prefer`` is not a list of provider ids.
        EmptyCatalogError: The new filters exclude every model.
    """
    if prefer is not None and (
        isinstance(prefer, str) or not all(isinstance(p, str) for p in prefer)
    ):
        raise InvalidArgumentError(
            "prefer must be a list of provider ids", context={"value": prefer}
        )

    compiled = snapshot.filters if filters is None else recompile(snapshot, filters)
    visible = apply_filters(snapshot.base_models, compiled)
    if not visible:
        raise EmptyCatalogError(
            "Filters eliminated every model",
            context={"base_models": len(snapshot.base_models)},
        )
    logger.debug(
        "Runtime overrides: %d of %d models visible", len(visible), len(snapshot.base_models)
    )
    return Snapshot.build(
        list(snapshot.providers_by_id.values()),
        visible,
        base_models=snapshot.base_models,
        filters=compiled,
        prefer=snapshot.prefer if prefer is None else list(prefer),
        generated_at=snapshot.generated_at,
    )


__all__ = ["apply_overrides"]
