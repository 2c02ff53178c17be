"""Shared value types for the catalog pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

ModelKeyTuple = Tuple[str, str]


@dataclass
class Layer:
    """One source's contribution, ordered by precedence in the pipeline.

    Records are plain dictionaries; the pipeline canonicalizes and validates
    them stage by stage.
    """

    name: str
    providers: List[Dict[str, Any]] = field(default_factory=list)
    models: List[Dict[str, Any]] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.providers and not self.models


@dataclass
class MergeResult:
    providers: List[Dict[str, Any]]
    models: List[Dict[str, Any]]
    excluded: int = 0


__all__ = ["Layer", "MergeResult", "ModelKeyTuple"]
