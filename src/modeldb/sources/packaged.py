"""Source backed by a persisted snapshot document."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Union

from modeldb.catalog.snapshot import read_document

logger = logging.getLogger(__name__)

DEFAULT_SNAPSHOT = Path(__file__).resolve().parent.parent / "data" / "snapshot.json"


class PackagedSource:
    """Read the ``providers`` section of a snapshot document.

    Usually the lowest-precedence source: the curated build-time catalog that
    other sources override.
    """

    def __init__(self, path: Union[str, Path, None] = None, *, name: str = "packaged") -> None:
        self.path = Path(path) if path is not None else DEFAULT_SNAPSHOT
        self.name = name

    def load(self) -> Dict[str, Any]:
        document = read_document(self.path)
        logger.debug("Loaded %d providers from %s", len(document["providers"]), self.path)
        return document["providers"]

    def __repr__(self) -> str:
        return f"PackagedSource({str(self.path)!r})"


__all__ = ["DEFAULT_SNAPSHOT", "PackagedSource"]
