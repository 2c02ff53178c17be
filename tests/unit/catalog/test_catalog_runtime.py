"""Tests for re-applying policy to a built snapshot."""

import pytest

from modeldb._internal.exceptions import EmptyCatalogError, InvalidArgumentError
from modeldb.catalog.engine import run
from modeldb.catalog.runtime import apply_overrides


@pytest.fixture
def snap(base_source):
    return run([base_source], {"deny": {"openai": ["gpt-3.5*"]}}, ["openai"])


def test_filters_can_widen(snap):
    assert snap.model("openai", "gpt-3.5-turbo") is None

    widened = apply_overrides(snap, {"allow": "all"})

    assert widened.model("openai", "gpt-3.5-turbo") is not None
    assert widened.base_models == snap.base_models


def test_filters_can_narrow(snap):
    narrowed = apply_overrides(snap, {"allow": ["anthropic"]})

    assert [m.key for m in narrowed.models()] == [("anthropic", "claude-3-5-sonnet")]
    assert "openai" in narrowed.providers_by_id


def test_prefer_only_keeps_filters(snap):
    updated = apply_overrides(snap, prefer=["anthropic"])

    assert updated.prefer == ("anthropic",)
    assert updated.filters is snap.filters
    assert updated.digest == snap.digest
    assert updated.generated_at == snap.generated_at


def test_original_snapshot_untouched(snap):
    apply_overrides(snap, {"allow": ["anthropic"]})
    assert snap.model("openai", "gpt-4o") is not None


def test_empty_result_raises(snap):
    with pytest.raises(EmptyCatalogError):
        apply_overrides(snap, {"deny": ["openai", "anthropic"]})


@pytest.mark.parametrize("prefer", ["openai", ["openai", 3]])
def test_prefer_must_be_list_of_ids(snap, prefer):
    with pytest.raises(InvalidArgumentError):
        apply_overrides(snap, prefer=prefer)
