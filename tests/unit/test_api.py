"""Tests for the package-level catalog API."""

import threading

import pytest

import modeldb
from modeldb import (
    CatalogNotLoadedError,
    EmptyCatalogError,
    InvalidArgumentError,
    ModelNotFoundError,
    StaleEpochError,
)
from modeldb.core.config.schema import ModelDBConfig
from modeldb.sources import RuntimeSource


class TestBeforeLoad:
    def test_queries_raise(self, store):
        with pytest.raises(CatalogNotLoadedError):
            modeldb.models(store=store)
        with pytest.raises(CatalogNotLoadedError):
            modeldb.select(require=["chat"], store=store)

    def test_snapshot_and_epoch(self, store):
        assert modeldb.snapshot(store=store) is None
        assert modeldb.epoch(store=store) == 0


class TestLoad:
    def test_load_publishes_epoch(self, store, base_source):
        snap = modeldb.load([base_source], store=store)

        assert snap.epoch == 1
        assert modeldb.epoch(store=store) == 1
        assert modeldb.snapshot(store=store) is snap

    def test_default_sources_use_packaged_snapshot(self, default_store):
        modeldb.load()

        assert modeldb.model("openai:gpt-4o").limits.context == 128000
        assert modeldb.epoch() == 1

    def test_load_from_config_object(self, store, base_source, tmp_path):
        local = tmp_path / "catalog" / "openai"
        local.mkdir(parents=True)
        (local / "gpt-4o.toml").write_text('id = "gpt-4o"\n[cost]\ninput = 1.0\n')
        config = ModelDBConfig.model_validate(
            {
                "catalog": {
                    "sources": [{"type": "local", "directory": str(tmp_path / "catalog")}],
                    "custom": {"openai": {"models": {"gpt-4o": {"cost": {"output": 4.0}}}}},
                    "prefer": ["openai"],
                }
            }
        )

        snap = modeldb.load(config=config, store=store)

        cost = snap.model("openai", "gpt-4o").cost
        assert (cost.input, cost.output) == (1.0, 4.0)
        assert snap.prefer == ("openai",)

    def test_load_from_config_path(self, store, tmp_path, snapshot_file):
        path = tmp_path / "modeldb.yaml"
        path.write_text(f"catalog:\n  sources:\n    - type: packaged\n      path: '{snapshot_file}'\n")

        snap = modeldb.load(config=path, store=store)
        assert snap.model("google_vertex", "gemini-pro") is not None

    def test_empty_catalog_keeps_previous_snapshot(self, store, base_source):
        first = modeldb.load([base_source], store=store)

        with pytest.raises(EmptyCatalogError):
            modeldb.load([base_source], allow={"nobody": ["*"]}, store=store)

        assert modeldb.snapshot(store=store) is first
        assert modeldb.epoch(store=store) == 1
        assert modeldb.model("openai:gpt-4o", store=store).id == "gpt-4o"

    def test_reload_reuses_options(self, store, base_source):
        first = modeldb.load([base_source], deny={"openai": ["gpt-3.5*"]}, store=store)
        modeldb.reload(store=store)
        second = modeldb.snapshot(store=store)

        assert second.epoch == 2
        assert second.digest == first.digest
        assert not modeldb.allowed("openai:gpt-3.5-turbo", store=store)

    def test_reload_picks_up_source_changes(self, store):
        source = RuntimeSource(models=[{"provider": "openai", "id": "gpt-4o"}])
        modeldb.load([source], store=store)
        source.models.append({"provider": "openai", "id": "o1"})

        modeldb.reload(store=store)

        assert modeldb.model("openai", "o1", store=store).id == "o1"


class TestLookups:
    @pytest.fixture(autouse=True)
    def loaded(self, store, base_source):
        modeldb.load([base_source], deny={"openai": ["gpt-3.5*"]}, prefer=["anthropic"], store=store)

    def test_providers(self, store):
        assert [p.id for p in modeldb.providers(store=store)] == ["anthropic", "openai"]
        assert modeldb.provider("openai", store=store).name == "OpenAI"
        assert modeldb.provider("nobody", store=store) is None
        assert modeldb.provider("bad id", store=store) is None

    def test_models(self, store):
        assert [m.id for m in modeldb.models("openai", store=store)] == ["gpt-4o", "gpt-4o-mini"]
        assert len(modeldb.models(store=store)) == 3
        assert modeldb.models("nobody", store=store) == []

    @pytest.mark.parametrize(
        "args",
        [
            pytest.param(("openai:gpt-4o",), id="colon"),
            pytest.param(("gpt-4o@openai",), id="at"),
            pytest.param((("openai", "gpt-4o"),), id="tuple"),
            pytest.param(("openai", "gpt-4o"), id="two-args"),
            pytest.param(("openai:gpt-4o-latest",), id="alias"),
        ],
    )
    def test_model_lookup_forms(self, store, args):
        assert modeldb.model(*args, store=store).key == ("openai", "gpt-4o")

    def test_model_not_found(self, store):
        with pytest.raises(ModelNotFoundError):
            modeldb.model("openai:gpt-3.5-turbo", store=store)
        with pytest.raises(ModelNotFoundError):
            modeldb.model("not a spec", store=store)

    def test_allowed(self, store):
        assert modeldb.allowed("openai:gpt-4o", store=store)
        assert not modeldb.allowed("gpt-3.5-turbo@openai", store=store)
        assert not modeldb.allowed("mystery:model", store=store)

    def test_capabilities(self, store):
        caps = modeldb.capabilities("anthropic:claude-sonnet", store=store)

        assert caps.reasoning.enabled is True
        assert caps.chat is True
        assert modeldb.capabilities("openai:nope", store=store) is None

    def test_select_uses_loaded_preference(self, store):
        assert modeldb.select(require=["chat", "tools"], store=store) == ("anthropic", "claude-3-5-sonnet")
        assert modeldb.select(require=["tools"], prefer=["openai"], store=store) == ("openai", "gpt-4o")

    def test_candidates(self, store):
        assert list(modeldb.candidates(require=["tools"], store=store)) == [
            ("anthropic", "claude-3-5-sonnet"),
            ("openai", "gpt-4o"),
            ("openai", "gpt-4o-mini"),
        ]

    def test_unknown_capability(self, store):
        with pytest.raises(InvalidArgumentError):
            modeldb.select(require=["telepathy"], store=store)


class TestApply:
    @pytest.fixture(autouse=True)
    def loaded(self, store, base_source):
        modeldb.load([base_source], deny={"openai": ["gpt-3.5*"]}, store=store)

    def test_widen_without_reloading(self, store):
        snap = modeldb.apply(deny={}, store=store)

        assert snap.epoch == 2
        assert modeldb.allowed("openai:gpt-3.5-turbo", store=store)
        assert modeldb.snapshot(store=store) is snap

    def test_apply_survives_reload(self, store):
        modeldb.apply(allow=["anthropic"], prefer=["anthropic"], store=store)
        modeldb.reload(store=store)

        assert [m.provider for m in modeldb.models(store=store)] == ["anthropic"]
        assert modeldb.snapshot(store=store).prefer == ("anthropic",)

    def test_apply_to_nothing_keeps_current(self, store):
        with pytest.raises(EmptyCatalogError):
            modeldb.apply(allow={"nobody": ["*"]}, store=store)
        assert modeldb.epoch(store=store) == 1

    def test_concurrent_publish_detected(self, store, monkeypatch, base_source):
        from modeldb import api

        original = api.apply_overrides

        def racing(*args, **kwargs):
            result = original(*args, **kwargs)
            modeldb.load([base_source], store=store)
            return result

        monkeypatch.setattr(api, "apply_overrides", racing)

        with pytest.raises(StaleEpochError):
            modeldb.apply(prefer=["openai"], store=store)


def test_concurrent_readers_during_reload(store, base_source):
    modeldb.load([base_source], store=store)
    errors = []
    stop = threading.Event()

    def reader():
        while not stop.is_set():
            try:
                snap = modeldb.snapshot(store=store)
                assert snap.model("openai", "gpt-4o") is not None
                assert snap.epoch >= 1
            except AssertionError as exc:
                errors.append(exc)

    threads = [threading.Thread(target=reader) for _ in range(4)]
    for t in threads:
        t.start()
    for _ in range(10):
        modeldb.reload(store=store)
    stop.set()
    for t in threads:
        t.join()

    assert errors == []
    assert modeldb.epoch(store=store) == 11
