"""Source for overrides declared in configuration.

The ``catalog.custom`` section of the configuration file holds a
provider-keyed mapping with the same shape as any raw layer, for example::

    catalog:
      custom:
        openai:
          base_url: https://proxy.internal/v1
          models:
            gpt-4o:
              cost: {input: 2.0}

It is typically the last (highest precedence) source.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Mapping, Optional

from modeldb._internal.exceptions import SourceError


class ConfigSource:
    def __init__(self, overrides: Optional[Mapping[str, Any]] = None, *, name: str = "config") -> None:
        self.overrides = overrides or {}
        self.name = name

    def load(self) -> Dict[str, Any]:
        if not isinstance(self.overrides, Mapping):
            raise SourceError(
                "Catalog overrides must be a mapping of provider id to data",
                context={"value_type": type(self.overrides).__name__},
            )
        return copy.deepcopy(dict(self.overrides))

    def __repr__(self) -> str:
        return f"ConfigSource(providers={sorted(self.overrides)!r})"


__all__ = ["ConfigSource"]
