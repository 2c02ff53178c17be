"""Process-wide holder of the current snapshot.

The store keeps a single reference to an immutable ``_State`` (epoch,
snapshot, load options). Publishing builds a new state and rebinds that one
attribute, which is atomic under the interpreter, so readers never take a lock
and always see a complete snapshot together with its epoch. Writers serialize
on a lock so epochs strictly increase.

Examples:
    >>> store = SnapshotStore()
    >>> store.epoch()
    0
    >>> store.current() is None
    True
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Optional

from modeldb._internal.exceptions import StaleEpochError
from modeldb.catalog.snapshot import Snapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _State:
    epoch: int = 0
    snapshot: Optional[Snapshot] = None
    options: Any = None


class SnapshotStore:
    """Single-writer, lock-free-reader snapshot slot."""

    def __init__(self) -> None:
        self._state = _State()
        self._write_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def publish(
        self,
        snapshot: Snapshot,
        *,
        options: Any = None,
        expected_epoch: Optional[int] = None,
    ) -> int:
        """Install ``snapshot`` as current and return its epoch."""

        return self.install(snapshot, options=options, expected_epoch=expected_epoch).epoch

    def install(
        self,
        snapshot: Snapshot,
        *,
        options: Any = None,
        expected_epoch: Optional[int] = None,
    ) -> Snapshot:
        """Install ``snapshot`` as current and return the installed copy.

        The returned snapshot carries the new epoch; it is the object readers
        see until the next publish.

        Args:
            snapshot: Fully built snapshot.
            options: Load options to remember for a later reload.
            expected_epoch: When given, publish only if the current epoch still
                equals it.

        Raises:
            StaleEpochError: ``expected_epoch`` no longer matches.
        """
        with self._write_lock:
            state = self._state
            if expected_epoch is not None and state.epoch != expected_epoch:
                raise StaleEpochError(
                    "Snapshot store advanced concurrently",
                    context={"expected": expected_epoch, "current": state.epoch},
                )
            epoch = state.epoch + 1
            installed = snapshot.with_epoch(epoch)
            self._state = _State(
                epoch=epoch,
                snapshot=installed,
                options=options if options is not None else state.options,
            )
        logger.info(
            "Published catalog epoch %d (%d providers, %d models)",
            epoch,
            len(snapshot.providers_by_id),
            len(snapshot.models_by_key),
        )
        return installed

    def current(self) -> Optional[Snapshot]:
        return self._state.snapshot

    def epoch(self) -> int:
        return self._state.epoch

    def last_options(self) -> Any:
        return self._state.options

    def clear(self) -> None:
        """Drop the current snapshot; the epoch keeps counting from where it was."""

        with self._write_lock:
            self._state = _State(epoch=self._state.epoch)


_default_store = SnapshotStore()


def get_store() -> SnapshotStore:
    """Return the process-wide default store."""

    return _default_store


__all__ = ["SnapshotStore", "get_store"]
