"""In-memory source for records supplied by the caller."""

from __future__ import annotations

import copy
from typing import Any, Dict, Iterable, Optional

from modeldb.sources.base import group_by_provider


class RuntimeSource:
    """Serve flat provider and model lists as a layer.

    Examples:
        >>> RuntimeSource(models=[{"provider": "openai", "id": "gpt-4o"}]).load()
        {'openai': {'models': [{'provider': 'openai', 'id': 'gpt-4o'}]}}
    """

    def __init__(
        self,
        providers: Optional[Iterable[Dict[str, Any]]] = None,
        models: Optional[Iterable[Dict[str, Any]]] = None,
        *,
        name: str = "runtime",
    ) -> None:
        self.providers = list(providers or [])
        self.models = list(models or [])
        self.name = name

    def load(self) -> Dict[str, Any]:
        return group_by_provider(copy.deepcopy(self.providers), copy.deepcopy(self.models))

    def __repr__(self) -> str:
        return f"RuntimeSource(providers={len(self.providers)}, models={len(self.models)})"


__all__ = ["RuntimeSource"]
