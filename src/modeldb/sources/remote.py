"""Remote source for models.dev-style metadata.

Network access and loading are split: :meth:`RemoteSource.pull` downloads the
document into a local cache (using ETag / Last-Modified revalidation), and
:meth:`RemoteSource.load` only ever reads that cache. A catalog build is
therefore reproducible and never blocks on the network.

Examples:
    >>> source = RemoteSource(cache_dir="/tmp/modeldb-cache")
    >>> source.cache_path.name.startswith("models-dev-")
    True
"""

from __future__ import annotations

import hashlib
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from modeldb._internal.exceptions import SourceError

logger = logging.getLogger(__name__)

DEFAULT_URL = "https://models.dev/api.json"
DEFAULT_CACHE_DIR = Path(".modeldb") / "remote"

# Fields consumed by the transform; everything else lands in ``extra``.
_MAPPED_FIELDS = frozenset(
    {
        "id",
        "name",
        "knowledge",
        "release_date",
        "last_updated",
        "limit",
        "cost",
        "modalities",
        "reasoning",
        "tool_call",
        "aliases",
        "deprecated",
    }
)
_PROVIDER_FIELDS = ("name", "doc", "env")
_COST_FIELDS = ("input", "output", "cache_read", "cache_write", "training", "reasoning", "image", "audio")


class RemoteSource:
    """Cached models.dev document exposed as a catalog layer."""

    def __init__(
        self,
        url: str = DEFAULT_URL,
        cache_dir: Union[str, Path, None] = None,
        *,
        session: Optional[Any] = None,
        timeout: float = 30.0,
        name: str = "models.dev",
    ) -> None:
        self.url = url
        self.cache_dir = Path(cache_dir) if cache_dir is not None else DEFAULT_CACHE_DIR
        self.timeout = timeout
        self.name = name
        self._http = session or requests

    # ------------------------------------------------------------------
    # Cache locations
    # ------------------------------------------------------------------
    @property
    def _url_hash(self) -> str:
        return hashlib.sha256(self.url.encode("utf-8")).hexdigest()[:8]

    @property
    def cache_path(self) -> Path:
        return self.cache_dir / f"models-dev-{self._url_hash}.json"

    @property
    def manifest_path(self) -> Path:
        return self.cache_dir / f"models-dev-{self._url_hash}.manifest.json"

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def pull(self) -> Optional[Path]:
        """Refresh the cache.

        Returns:
            The cache path when new content was written, ``None`` when the
            server reported it unchanged.

        Raises:
            SourceError: The request failed or returned an error status.
        """
        try:
            response = self._fetch(self._conditional_headers())
        except requests.RequestException as exc:
            raise SourceError(f"Failed to fetch {self.url}: {exc}", context={"url": self.url}) from exc

        if response.status_code == 304:
            logger.info("%s: not modified", self.url)
            return None
        if response.status_code != 200:
            raise SourceError(
                "Unexpected HTTP status", context={"url": self.url, "status": response.status_code}
            )

        content = response.content
        try:
            json.loads(content)
        except ValueError as exc:
            raise SourceError("Remote document is not valid JSON", context={"url": self.url}) from exc

        self._write_cache(content, response.headers)
        logger.info("%s: cached %d bytes to %s", self.url, len(content), self.cache_path)
        return self.cache_path

    def load(self) -> Dict[str, Any]:
        """Read and transform the cached document; never touches the network."""

        try:
            with open(self.cache_path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except FileNotFoundError as exc:
            raise SourceError(
                "No cached remote document; run pull first", context={"path": str(self.cache_path)}
            ) from exc
        except (OSError, ValueError) as exc:
            raise SourceError(
                f"Cannot read remote cache: {exc}", context={"path": str(self.cache_path)}
            ) from exc
        if not isinstance(document, Mapping):
            raise SourceError("Remote document must be a mapping", context={"path": str(self.cache_path)})
        return transform(document)

    def __repr__(self) -> str:
        return f"RemoteSource({self.url!r})"

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
        reraise=True,
    )
    def _fetch(self, headers: Dict[str, str]) -> Any:
        return self._http.get(self.url, headers=headers, timeout=self.timeout)

    def _conditional_headers(self) -> Dict[str, str]:
        try:
            with open(self.manifest_path, "r", encoding="utf-8") as f:
                manifest = json.load(f)
        except (OSError, ValueError):
            return {}
        headers: Dict[str, str] = {}
        if isinstance(manifest.get("etag"), str):
            headers["If-None-Match"] = manifest["etag"]
        if isinstance(manifest.get("last_modified"), str):
            headers["If-Modified-Since"] = manifest["last_modified"]
        return headers

    def _write_cache(self, content: bytes, headers: Mapping[str, str]) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.cache_path.write_bytes(content)
        manifest = {
            "source_url": self.url,
            "etag": headers.get("ETag"),
            "last_modified": headers.get("Last-Modified"),
            "sha256": hashlib.sha256(content).hexdigest(),
            "size_bytes": len(content),
            "downloaded_at": datetime.now(timezone.utc).isoformat(),
        }
        with open(self.manifest_path, "w", encoding="utf-8") as f:
            json.dump(manifest, f, indent=2)


def transform(document: Mapping[str, Any]) -> Dict[str, Any]:
    """Convert a models.dev document into the raw layer shape."""

    layer: Dict[str, Any] = {}
    for provider_key, provider in document.items():
        if not isinstance(provider, Mapping):
            continue
        provider_id = provider.get("id", provider_key)
        entry: Dict[str, Any] = {"id": provider_id, "models": []}
        for field in _PROVIDER_FIELDS:
            if provider.get(field) is not None:
                entry[field] = provider[field]
        if provider.get("api") is not None:
            entry["base_url"] = provider["api"]
        models = provider.get("models") or {}
        if isinstance(models, Mapping):
            models = [dict(m, id=m.get("id", k)) for k, m in models.items() if isinstance(m, Mapping)]
        for model in models:
            if isinstance(model, Mapping):
                entry["models"].append(transform_model(model, provider_id))
        layer[provider_key] = entry
    return layer


def transform_model(model: Mapping[str, Any], provider_id: str) -> Dict[str, Any]:
    record: Dict[str, Any] = {"id": model.get("id"), "provider": provider_id}
    for field in ("name", "knowledge", "release_date", "last_updated", "aliases", "deprecated"):
        if model.get(field) is not None:
            record[field] = model[field]

    limit = model.get("limit")
    if isinstance(limit, Mapping):
        limits = {
            key: limit[key]
            for key in ("context", "output")
            if isinstance(limit.get(key), int) and limit[key] > 0
        }
        if limits:
            record["limits"] = limits

    cost = model.get("cost")
    if isinstance(cost, Mapping):
        mapped = {key: cost[key] for key in _COST_FIELDS if cost.get(key) is not None}
        if mapped:
            record["cost"] = mapped

    if isinstance(model.get("modalities"), Mapping):
        record["modalities"] = dict(model["modalities"])

    capabilities: Dict[str, Any] = {}
    if model.get("reasoning") is True:
        capabilities["reasoning"] = {"enabled": True}
    if model.get("tool_call") is True:
        capabilities["tools"] = {"enabled": True}
    if capabilities:
        record["capabilities"] = capabilities

    extra = {key: value for key, value in model.items() if key not in _MAPPED_FIELDS}
    if extra:
        record["extra"] = extra
    return record


__all__ = ["DEFAULT_URL", "RemoteSource", "transform", "transform_model"]
