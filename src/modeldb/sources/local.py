"""Source reading hand-maintained TOML/YAML files from a directory tree.

Layout::

    catalog/
    ├── openai/
    │   ├── openai.toml        # provider definition
    │   ├── gpt-4o.toml        # one model per file
    │   └── gpt-4o-mini.yaml
    └── anthropic/
        └── claude-3-5-sonnet.toml

A file named after its directory defines the provider; every other file is a
model whose ``provider`` defaults to the directory name. Files that fail to
parse are logged and skipped.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from modeldb._internal.exceptions import SourceError

logger = logging.getLogger(__name__)

_SUFFIXES = (".toml", ".yaml", ".yml")


def read_record(path: Path) -> Dict[str, Any]:
    """Parse one TOML or YAML file into a mapping."""

    if path.suffix == ".toml":
        with open(path, "rb") as f:
            return tomllib.load(f)
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"expected a mapping, got {type(data).__name__}")
    return data


class LocalSource:
    """Scan ``directory`` for per-provider subdirectories."""

    def __init__(self, directory: Union[str, Path], *, name: str = "local") -> None:
        self.directory = Path(directory)
        self.name = name

    def load(self) -> Dict[str, Any]:
        if not self.directory.is_dir():
            raise SourceError("Catalog directory not found", context={"path": str(self.directory)})

        layer: Dict[str, Any] = {}
        for provider_dir in sorted(p for p in self.directory.iterdir() if p.is_dir()):
            layer[provider_dir.name] = self._load_provider(provider_dir)
        logger.debug("Loaded %d provider directories from %s", len(layer), self.directory)
        return layer

    def _load_provider(self, provider_dir: Path) -> Dict[str, Any]:
        provider_id = provider_dir.name
        entry: Dict[str, Any] = {"id": provider_id, "models": []}
        for path in sorted(provider_dir.iterdir()):
            if not path.is_file() or path.suffix not in _SUFFIXES:
                continue
            try:
                record = read_record(path)
            except (OSError, ValueError, tomllib.TOMLDecodeError, yaml.YAMLError) as exc:
                logger.warning("Skipping unreadable catalog file %s: %s", path, exc)
                continue
            if path.stem == provider_id:
                entry.update({k: v for k, v in record.items() if k != "models"})
            else:
                record.setdefault("provider", provider_id)
                entry["models"].append(record)
        return entry

    def __repr__(self) -> str:
        return f"LocalSource({str(self.directory)!r})"


__all__ = ["LocalSource", "read_record"]
