"""Tests for the catalog build pipeline."""

import logging

import pytest

from modeldb._internal.exceptions import EmptyCatalogError, SourceError
from modeldb.catalog.engine import (
    BuildStats,
    LoadOptions,
    build_catalog,
    ingest,
    layer_from_raw,
    prepare_layer,
    run,
    run_options,
)
from modeldb.catalog.types import Layer
from modeldb.sources import RuntimeSource


class FailingSource:
    name = "broken"

    def load(self):
        raise SourceError("upstream unavailable")


class StaticSource:
    def __init__(self, raw, name="static"):
        self.raw = raw
        self.name = name

    def load(self):
        return self.raw


class TestLayerFromRaw:
    def test_models_as_mapping(self):
        layer = layer_from_raw(
            {"openai": {"name": "OpenAI", "models": {"gpt-4o": {"name": "GPT-4o"}}}}, "test"
        )

        assert layer.providers == [{"name": "OpenAI", "id": "openai"}]
        assert layer.models == [{"name": "GPT-4o", "id": "gpt-4o", "provider": "openai"}]

    def test_models_as_list_keep_own_provider(self):
        layer = layer_from_raw({"openai": {"models": [{"id": "x", "provider": "azure"}]}}, "test")
        assert layer.models == [{"id": "x", "provider": "azure"}]

    def test_none_is_empty(self):
        assert layer_from_raw(None, "test").is_empty()

    @pytest.mark.parametrize(
        "raw",
        [
            pytest.param(["openai"], id="not-a-mapping"),
            pytest.param({"openai": "x"}, id="entry-not-a-mapping"),
            pytest.param({"openai": {"models": "gpt-4o"}}, id="models-bad-shape"),
        ],
    )
    def test_bad_shapes_raise(self, raw):
        with pytest.raises(SourceError):
            layer_from_raw(raw, "test")


def test_failing_source_yields_empty_layer(caplog):
    stats = BuildStats()
    with caplog.at_level(logging.WARNING, logger="modeldb.catalog.engine"):
        layer = ingest(FailingSource(), stats)

    assert layer == Layer(name="broken")
    assert stats.failed_sources == 1
    assert "Source 'broken' failed" in caplog.text


def test_malformed_source_yields_empty_layer():
    assert ingest(StaticSource(["not", "a", "layer"])).is_empty()


def test_prepare_layer_drops_and_counts():
    stats = BuildStats()
    layer = Layer(
        "mixed",
        providers=[{"id": "openai"}, {"id": "bad id"}],
        models=[
            {"provider": "openai", "id": "gpt-4o"},
            {"provider": "openai"},
            {"provider": "openai", "id": "tiny", "limits": {"context": 0}},
        ],
    )

    prepared = prepare_layer(layer, stats)

    assert [m["id"] for m in prepared.models] == ["gpt-4o"]
    assert stats.dropped == {"canonicalize": 2, "validate": 1}


def test_run_merges_enriches_and_filters(base_source):
    override = RuntimeSource(models=[{"provider": "openai", "id": "gpt-4o", "cost": {"input": 2.0}}])

    snap = run([base_source, override], {"deny": {"openai": ["gpt-3.5*"]}}, ["anthropic"])

    gpt4o = snap.model("openai", "gpt-4o")
    assert gpt4o.cost.input == 2.0
    assert gpt4o.cost.output == 10.0
    assert gpt4o.family == "gpt"
    assert snap.model("openai", "gpt-4o-mini").family == "gpt-4o"
    assert snap.model("openai", "gpt-3.5-turbo") is None
    assert snap.prefer == ("anthropic",)
    assert {m.id for m in snap.base_models} >= {"gpt-3.5-turbo"}


def test_run_derives_pricing(base_source):
    snap = run([base_source])
    components = {c.id: c for c in snap.model("openai", "gpt-4o").pricing.components}

    assert components["token.input"].rate == 2.5
    assert components["token.output"].per == 1_000_000


def test_run_survives_failing_source(base_source):
    snap = run([FailingSource(), base_source])
    assert snap.model("anthropic", "claude-sonnet").id == "claude-3-5-sonnet"


def test_run_with_nothing_raises_empty_catalog():
    with pytest.raises(EmptyCatalogError):
        run([FailingSource()])


def test_filtering_everything_raises(base_source):
    with pytest.raises(EmptyCatalogError):
        run([base_source], {"allow": {"nobody": ["*"]}})


def test_build_catalog_keeps_filtered_models(base_source):
    providers, models = build_catalog([base_source])

    assert {p.id for p in providers} == {"openai", "anthropic"}
    assert len(models) == 4


def test_run_options(base_source):
    snap = run_options(LoadOptions(sources=(base_source,), allow=["anthropic"]))
    assert [m.id for m in snap.models()] == ["claude-3-5-sonnet"]
