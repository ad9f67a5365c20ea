"""Tests for weight profiles and trained-profile loading."""

import json

import pytest

from filler.ai import heuristic_weights
from filler.ai.heuristic_weights import (
    BALANCED_WEIGHTS,
    HEURISTIC_WEIGHT_PROFILES,
    TRAINED_PROFILES_ENV,
    WEIGHT_KEYS,
    get_weights,
    load_trained_profiles_if_available,
    weighted_score,
)
from filler.errors import ConfigurationError
from filler.models import ScoreBreakdown, StrategyProfile


@pytest.fixture
def restore_profiles():
    """Undo registry changes made by trained-profile loading."""
    saved = {profile: dict(weights) for profile, weights in HEURISTIC_WEIGHT_PROFILES.items()}
    yield
    HEURISTIC_WEIGHT_PROFILES.clear()
    HEURISTIC_WEIGHT_PROFILES.update(saved)


@pytest.fixture
def weights_file(tmp_path):
    def _write(payload) -> str:
        path = tmp_path / "weights.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        return str(path)

    return _write


class TestProfiles:
    def test_every_profile_has_every_key(self) -> None:
        assert set(HEURISTIC_WEIGHT_PROFILES) == set(StrategyProfile)
        for weights in HEURISTIC_WEIGHT_PROFILES.values():
            assert list(weights) == WEIGHT_KEYS

    def test_balanced_values(self) -> None:
        assert BALANCED_WEIGHTS == {
            "cells_added": 10.0,
            "flood_fill_estimate": 1.5,
            "weak_position_bonus": 2.0,
            "density_bonus": 1.2,
            "edge_control_bonus": 0.5,
        }

    def test_profiles_differ_only_in_weights(self) -> None:
        defensive = get_weights(StrategyProfile.DEFENSIVE)
        assert defensive["cells_added"] == 0.0
        assert defensive["density_bonus"] == 2.0
        assert defensive["edge_control_bonus"] == 1.5
        aggressive = get_weights("aggressive-expansion")
        assert aggressive["flood_fill_estimate"] == 2.0

    def test_get_weights_returns_a_copy(self) -> None:
        weights = get_weights(StrategyProfile.BALANCED)
        weights["cells_added"] = -1.0
        assert HEURISTIC_WEIGHT_PROFILES[StrategyProfile.BALANCED]["cells_added"] == 10.0

    def test_get_weights_accepts_underscores(self) -> None:
        assert get_weights("strategic_blocking") == get_weights(
            StrategyProfile.STRATEGIC_BLOCKING
        )

    def test_unknown_profile_raises(self) -> None:
        with pytest.raises(ConfigurationError):
            get_weights("kamikaze")

    def test_unknown_weight_key_is_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            heuristic_weights._profile(cells_added=1.0, luck=5.0)


class TestWeightedScore:
    def test_from_breakdown(self) -> None:
        breakdown = ScoreBreakdown(
            cells_added=2.0,
            flood_fill_estimate=10.0,
            weak_position_bonus=1.5,
            density_bonus=4.0,
            edge_control_bonus=2.0,
        )
        expected = 2.0 * 10.0 + 10.0 * 1.5 + 1.5 * 2.0 + 4.0 * 1.2 + 2.0 * 0.5
        assert weighted_score(breakdown, BALANCED_WEIGHTS) == pytest.approx(expected)

    def test_from_mapping_with_missing_signals(self) -> None:
        assert weighted_score({"cells_added": 3.0}, BALANCED_WEIGHTS) == 30.0

    def test_zero_weights_ignore_signal(self) -> None:
        signals = {"density_bonus": 7.0, "edge_control_bonus": 2.0}
        opportunistic = get_weights(StrategyProfile.OPPORTUNISTIC)
        assert weighted_score(signals, opportunistic) == 0.0


class TestTrainedProfiles:
    def test_no_path_and_no_env_returns_empty(self, monkeypatch) -> None:
        monkeypatch.delenv(TRAINED_PROFILES_ENV, raising=False)
        assert load_trained_profiles_if_available() == {}

    def test_missing_file_returns_empty(self, tmp_path) -> None:
        assert load_trained_profiles_if_available(str(tmp_path / "nope.json")) == {}

    def test_merges_partial_profile(self, weights_file, restore_profiles) -> None:
        path = weights_file({"profiles": {"defensive": {"cells_added": 0.5}}})
        updated = load_trained_profiles_if_available(path)

        assert set(updated) == {StrategyProfile.DEFENSIVE}
        weights = get_weights(StrategyProfile.DEFENSIVE)
        assert weights["cells_added"] == 0.5
        assert weights["density_bonus"] == 2.0

    def test_reads_path_from_environment(
        self, weights_file, monkeypatch, restore_profiles
    ) -> None:
        path = weights_file({"profiles": {"balanced": {"edge_control_bonus": 3.0}}})
        monkeypatch.setenv(TRAINED_PROFILES_ENV, path)
        load_trained_profiles_if_available()
        assert get_weights(StrategyProfile.BALANCED)["edge_control_bonus"] == 3.0

    def test_unknown_key_leaves_registry_untouched(
        self, weights_file, restore_profiles
    ) -> None:
        path = weights_file(
            {
                "profiles": {
                    "balanced": {"cells_added": 1.0},
                    "defensive": {"luck": 1.0},
                }
            }
        )
        with pytest.raises(ConfigurationError):
            load_trained_profiles_if_available(path)
        assert get_weights(StrategyProfile.BALANCED)["cells_added"] == 10.0

    @pytest.mark.parametrize("value", [None, "abc", [1.0], {"x": 1.0}, True])
    def test_non_numeric_weight_is_rejected(
        self, weights_file, restore_profiles, value
    ) -> None:
        """Only plain numbers are accepted as weights."""
        path = weights_file({"profiles": {"balanced": {"cells_added": value}}})
        with pytest.raises(ConfigurationError) as exc_info:
            load_trained_profiles_if_available(path)
        assert exc_info.value.context == {"profile": "balanced", "key": "cells_added"}
        assert get_weights(StrategyProfile.BALANCED)["cells_added"] == 10.0

    @pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_weight_is_rejected(self, tmp_path, restore_profiles, literal) -> None:
        path = tmp_path / "weights.json"
        path.write_text(
            '{"profiles": {"defensive": {"density_bonus": %s}}}' % literal,
            encoding="utf-8",
        )
        with pytest.raises(ConfigurationError):
            load_trained_profiles_if_available(str(path))
        assert get_weights(StrategyProfile.DEFENSIVE)["density_bonus"] == 2.0

    def test_integer_weight_is_accepted(self, weights_file, restore_profiles) -> None:
        path = weights_file({"profiles": {"territorial": {"edge_control_bonus": 2}}})
        load_trained_profiles_if_available(path)
        weights = get_weights(StrategyProfile.TERRITORIAL)
        assert weights["edge_control_bonus"] == 2.0
        assert isinstance(weights["edge_control_bonus"], float)

    def test_unknown_profile_raises(self, weights_file, restore_profiles) -> None:
        path = weights_file({"profiles": {"kamikaze": {"cells_added": 1.0}}})
        with pytest.raises(ConfigurationError):
            load_trained_profiles_if_available(path)

    def test_malformed_json_raises(self, tmp_path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_trained_profiles_if_available(str(path))

    def test_profiles_must_be_an_object(self, weights_file) -> None:
        with pytest.raises(ConfigurationError):
            load_trained_profiles_if_available(weights_file({"profiles": [1, 2]}))
