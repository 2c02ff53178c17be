"""Tests for snapshots, persisted documents and the snapshot store."""

import json
import threading

import pytest

from modeldb._internal.exceptions import SourceError, StaleEpochError
from modeldb.catalog.engine import build_document, run
from modeldb.catalog.schemas import Model, Provider
from modeldb.catalog.snapshot import (
    DOCUMENT_VERSION,
    Snapshot,
    document_digest,
    read_document,
    to_document,
    write_document,
)
from modeldb.sources import PackagedSource


@pytest.fixture
def snap() -> Snapshot:
    return Snapshot.build(
        [Provider(id="openai", name="OpenAI")],
        [
            Model(provider="openai", id="gpt-4o", aliases=["gpt-4o-latest"]),
            Model(provider="openai", id="gpt-4o-mini"),
        ],
        generated_at="2025-01-01T00:00:00Z",
    )


class TestSnapshot:
    def test_lookup_by_id_and_alias(self, snap):
        assert snap.model("openai", "gpt-4o").id == "gpt-4o"
        assert snap.model("openai", "gpt-4o-latest").id == "gpt-4o"
        assert snap.resolve("openai", "gpt-4o-latest") == ("openai", "gpt-4o")
        assert snap.model("openai", "missing") is None

    def test_models_ordering(self, snap):
        assert [m.id for m in snap.models()] == ["gpt-4o", "gpt-4o-mini"]
        assert snap.models("nobody") == []
        assert len(snap) == 2

    def test_digest_is_structural(self, snap):
        again = Snapshot.build(
            list(snap.providers_by_id.values()),
            list(snap.models_by_key.values()),
            generated_at="2030-01-01T00:00:00Z",
        )
        assert again.digest == snap.digest
        assert again.generated_at != snap.generated_at

    def test_snapshot_is_frozen(self, snap):
        with pytest.raises(Exception):
            snap.epoch = 5


class TestDocuments:
    def test_to_document_shape(self, snap):
        document = to_document(snap)

        assert document["version"] == DOCUMENT_VERSION
        assert document["generated_at"] == "2025-01-01T00:00:00Z"
        models = document["providers"]["openai"]["models"]
        assert list(models) == ["gpt-4o", "gpt-4o-mini"]
        assert models["gpt-4o"]["aliases"] == ["gpt-4o-latest"]

    def test_write_and_read(self, snap, tmp_path):
        path = write_document(to_document(snap), tmp_path / "nested" / "snapshot.json")

        assert path.exists()
        assert not (tmp_path / "nested" / "snapshot.json.tmp").exists()
        assert read_document(path) == to_document(snap)

    def test_read_missing_file(self, tmp_path):
        with pytest.raises(SourceError, match="not found"):
            read_document(tmp_path / "absent.json")

    @pytest.mark.parametrize(
        "content",
        [
            pytest.param("{not json", id="invalid-json"),
            pytest.param(json.dumps({"version": 2}), id="no-providers"),
            pytest.param(json.dumps({"version": 1, "providers": {}}), id="old-version"),
            pytest.param(json.dumps([1, 2]), id="not-a-mapping"),
        ],
    )
    def test_read_rejects_bad_documents(self, tmp_path, content):
        path = tmp_path / "bad.json"
        path.write_text(content)

        with pytest.raises(SourceError):
            read_document(path)

    def test_round_trip_through_pipeline(self, base_source, tmp_path):
        document = build_document([base_source])
        path = write_document(document, tmp_path / "snapshot.json")

        rebuilt = run([PackagedSource(path)])

        assert to_document(rebuilt)["providers"] == document["providers"]
        assert rebuilt.digest == document_digest(document)


def _snapshot_of(*ids):
    return Snapshot.build([], [Model(provider="p", id=i) for i in ids])


class TestSnapshotStore:
    def test_initially_empty(self, store):
        assert store.current() is None
        assert store.epoch() == 0

    def test_publish_increments_epoch(self, store):
        assert store.publish(_snapshot_of("a")) == 1
        assert store.publish(_snapshot_of("b")) == 2

        current = store.current()
        assert current.epoch == 2
        assert current.model("p", "b") is not None

    def test_install_returns_published_snapshot(self, store):
        installed = store.install(_snapshot_of("a"))

        assert installed.epoch == 1
        assert store.current() is installed

    def test_publish_remembers_options(self, store):
        store.publish(_snapshot_of("a"), options={"x": 1})
        store.publish(_snapshot_of("b"))

        assert store.last_options() == {"x": 1}

    def test_compare_and_swap(self, store):
        store.publish(_snapshot_of("a"))
        store.publish(_snapshot_of("b"), expected_epoch=1)

        with pytest.raises(StaleEpochError):
            store.publish(_snapshot_of("c"), expected_epoch=1)
        assert store.current().model("p", "b") is not None

    def test_clear_keeps_epoch_counting(self, store):
        store.publish(_snapshot_of("a"))
        store.clear()

        assert store.current() is None
        assert store.publish(_snapshot_of("b")) == 2

    def test_concurrent_publishers_get_unique_epochs(self, store):
        epochs = []
        lock = threading.Lock()
        snapshot = _snapshot_of("a")

        def publisher():
            for _ in range(25):
                epoch = store.publish(snapshot)
                with lock:
                    epochs.append(epoch)

        threads = [threading.Thread(target=publisher) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(epochs) == list(range(1, 101))
        assert store.epoch() == 100

    def test_readers_see_consistent_epoch(self, store):
        store.publish(_snapshot_of("a"))
        stop = threading.Event()
        mismatches = []

        def reader():
            while not stop.is_set():
                current = store.current()
                if current is not None and current.epoch < 1:
                    mismatches.append(current.epoch)

        thread = threading.Thread(target=reader)
        thread.start()
        for _ in range(50):
            store.publish(_snapshot_of("a", "b"))
        stop.set()
        thread.join()

        assert mismatches == []
