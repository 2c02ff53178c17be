"""Tests for pattern compilation and allow/deny filters."""

import logging
import re

import pytest

from modeldb._internal.exceptions import BadProviderError, InvalidArgumentError
from modeldb.catalog.filters import ALL, allowed, apply_filters, compile_filters
from modeldb.catalog.patterns import compile_pattern, matches_any


class TestPatterns:
    @pytest.mark.parametrize(
        "pattern, model_id, expected",
        [
            pytest.param("gpt-4o", "gpt-4o", True, id="exact"),
            pytest.param("gpt-4o", "gpt-4o-mini", False, id="exact-is-anchored"),
            pytest.param("gpt-3.5*", "gpt-3.5-turbo", True, id="prefix-glob"),
            pytest.param("gpt-3.5*", "gpt-305", False, id="dot-is-literal"),
            pytest.param("*-preview", "gpt-4o-audio-preview", True, id="suffix-glob"),
            pytest.param("*", "anything", True, id="star"),
            pytest.param("claude-*-sonnet", "claude-3-5-sonnet", True, id="infix-glob"),
        ],
    )
    def test_glob_matching(self, pattern, model_id, expected):
        assert matches_any(model_id, [compile_pattern(pattern)]) is expected

    def test_compiled_regex_uses_search(self):
        pattern = compile_pattern(re.compile("turbo"))
        assert matches_any("gpt-3.5-turbo-0125", [pattern])

    @pytest.mark.parametrize("pattern", ["", None, 3, ["gpt"]])
    def test_invalid_pattern(self, pattern):
        with pytest.raises(InvalidArgumentError):
            compile_pattern(pattern)


class TestCompileFilters:
    def test_default_allows_everything(self):
        filters = compile_filters()

        assert filters.allows_all
        assert filters.deny == {}
        assert allowed(filters, "anyone", "anything")

    def test_deny_wins_over_allow(self):
        filters = compile_filters(allow={"openai": ["gpt-*"]}, deny={"openai": ["gpt-3.5*"]})

        assert allowed(filters, "openai", "gpt-4o")
        assert not allowed(filters, "openai", "gpt-3.5-turbo")

    def test_allow_map_excludes_unnamed_providers(self):
        filters = compile_filters(allow={"openai": ["gpt-4o"]})

        assert allowed(filters, "openai", "gpt-4o")
        assert not allowed(filters, "openai", "gpt-4o-mini")
        assert not allowed(filters, "anthropic", "claude-3-5-sonnet")

    def test_allow_map_with_empty_list_excludes_provider(self):
        filters = compile_filters(allow={"openai": [], "anthropic": "all"})

        assert not allowed(filters, "openai", "gpt-4o")
        assert allowed(filters, "anthropic", "claude-3-5-sonnet")

    def test_empty_allow_map_means_all(self):
        assert compile_filters(allow={}).allows_all

    def test_list_shorthand(self):
        filters = compile_filters(allow=["anthropic"], deny=["google"])

        assert allowed(filters, "anthropic", "claude")
        assert not allowed(filters, "openai", "gpt-4o")
        assert not allowed(compile_filters(deny=["google"]), "google", "gemini-pro")

    def test_single_pattern_string(self):
        filters = compile_filters(deny={"openai": "gpt-3.5*"})
        assert not allowed(filters, "openai", "gpt-3.5-turbo")

    def test_provider_keys_are_canonicalized(self):
        filters = compile_filters(deny={"google-vertex": ["*"]})
        assert not allowed(filters, "google_vertex", "gemini-pro")

    def test_string_spec_rejected(self):
        with pytest.raises(InvalidArgumentError):
            compile_filters(allow="openai")

    def test_bad_provider_key_rejected(self):
        with pytest.raises(BadProviderError):
            compile_filters(deny={"not valid": ["*"]})

    def test_unknown_providers_reported(self, caplog):
        with caplog.at_level(logging.WARNING, logger="modeldb.catalog.filters"):
            filters = compile_filters(
                allow={"openai": "all", "mystery": "all"},
                deny={"ghost": ["*"]},
                known_providers={"openai"},
            )

        assert filters.unknown == ("ghost", "mystery")
        assert "unknown providers" in caplog.text

    def test_as_options_round_trips(self):
        filters = compile_filters(allow=["openai"], deny={"openai": ["gpt-3.5*"]})
        again = compile_filters(**filters.as_options())

        assert again.allow_spec == ["openai"]
        assert again.deny_spec == {"openai": ["gpt-3.5*"]}
        assert compile_filters(allow=None).allow_spec == ALL


def test_apply_filters_accepts_dicts():
    models = [
        {"provider": "openai", "id": "gpt-4o"},
        {"provider": "openai", "id": "gpt-3.5-turbo"},
        {"provider": "anthropic", "id": "claude-3-5-sonnet"},
    ]
    kept = apply_filters(models, compile_filters(deny={"openai": ["gpt-3.5*"]}))

    assert [m["id"] for m in kept] == ["gpt-4o", "claude-3-5-sonnet"]
