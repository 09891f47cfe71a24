#!/usr/bin/env python3
"""
Tests for game configuration.

Tests:
- Default constants and per-kind tables
- Reward and priority ordering
- TargetKind parsing
- Building a config from game data, the bundled file and $AIRDEFENSE_DATA
- Validation of invalid values
"""

import dataclasses
import json

import pytest

from airdefense.config import (
    AUTO_MISSILE_BASE_SPEED,
    AUTO_MISSILE_SPEED_PER_LEVEL,
    DEFAULT_TARGET_PROFILES,
    ENV_DATA_PATH,
    BatteryProfile,
    GameConfig,
    TargetKind,
    TargetProfile,
    load_game_config,
    load_game_data,
)


class TestTargetKind:
    """Tests for TargetKind parsing."""

    @pytest.mark.parametrize("name,expected", [
        ("plane", TargetKind.PLANE),
        ("Drone", TargetKind.DRONE),
        ("CRUISE", TargetKind.CRUISE),
        (TargetKind.PLANE, TargetKind.PLANE),
    ])
    def test_parse_valid(self, name, expected):
        """Names parse case-insensitively; enums pass through."""
        assert TargetKind.parse(name) == expected

    def test_parse_unknown_raises(self):
        """Unknown kinds raise ValueError naming the valid kinds."""
        with pytest.raises(ValueError, match="helicopter"):
            TargetKind.parse("helicopter")


class TestDefaultProfiles:
    """Tests for the stock per-kind tables."""

    @pytest.mark.parametrize("kind,hit_points", [
        (TargetKind.PLANE, 3),
        (TargetKind.DRONE, 1),
        (TargetKind.CRUISE, 1),
    ])
    def test_hit_points(self, kind, hit_points):
        """Planes take three hits, everything else one."""
        assert DEFAULT_TARGET_PROFILES[kind].hit_points == hit_points

    def test_score_reward_order(self):
        """cruise > plane > drone for score."""
        p = DEFAULT_TARGET_PROFILES
        assert (p[TargetKind.CRUISE].score_reward
                > p[TargetKind.PLANE].score_reward
                > p[TargetKind.DRONE].score_reward)

    def test_funds_reward_order(self):
        """cruise > plane > drone for funds."""
        p = DEFAULT_TARGET_PROFILES
        assert (p[TargetKind.CRUISE].funds_reward
                > p[TargetKind.PLANE].funds_reward
                > p[TargetKind.DRONE].funds_reward)

    def test_priority_order(self):
        """cruise > plane > drone for engagement priority."""
        p = DEFAULT_TARGET_PROFILES
        assert p[TargetKind.CRUISE].priority == 3
        assert p[TargetKind.PLANE].priority == 2
        assert p[TargetKind.DRONE].priority == 1

    def test_cruise_never_jinks(self):
        """Cruise missiles fly straight."""
        assert DEFAULT_TARGET_PROFILES[TargetKind.CRUISE].jitter_chance == 0.0


class TestGameConfig:
    """Tests for GameConfig construction and validation."""

    def test_defaults(self):
        """Stock config reproduces the stock game."""
        config = GameConfig()
        assert config.starting_funds == 300
        assert config.starting_score == 0
        assert config.battery_cost == 100
        assert config.upgrade_cost == 200
        assert config.hit_threshold_m == 250.0
        assert config.area_of_interest_m == 120_000.0
        assert config.manual_acquisition_radius_m == 80_000.0
        assert config.battery.range_m == 20_000.0
        assert config.battery.reload_s == 4.0

    def test_auto_missile_speed_scales_with_level(self):
        """Speed is 800 + 80 per level."""
        config = GameConfig()
        assert config.auto_missile_speed(1) == AUTO_MISSILE_BASE_SPEED + AUTO_MISSILE_SPEED_PER_LEVEL
        assert config.auto_missile_speed(3) == 1040.0

    def test_empty_game_data_gives_defaults(self):
        """Missing sections fall back to defaults."""
        assert GameConfig.from_game_data({}) == GameConfig()

    def test_game_data_overrides(self):
        """Present keys override, the rest keep defaults."""
        config = GameConfig.from_game_data({
            "economy": {"starting_funds": 1000},
            "battery": {"range_m": 30_000},
            "targets": {"drone": {"score_reward": 9}},
        })
        assert config.starting_funds == 1000
        assert config.battery.range_m == 30_000.0
        assert config.profile(TargetKind.DRONE).score_reward == 9
        assert config.profile(TargetKind.DRONE).funds_reward == 3
        assert config.profile(TargetKind.PLANE) == DEFAULT_TARGET_PROFILES[TargetKind.PLANE]

    def test_unknown_target_in_game_data_raises(self):
        """Unknown kinds in game data are rejected."""
        with pytest.raises(ValueError):
            GameConfig.from_game_data({"targets": {"balloon": {}}})

    def test_non_positive_missile_speed_rejected(self):
        """Missile speed must be positive."""
        with pytest.raises(ValueError):
            GameConfig(manual_missile_speed=0.0)

    @pytest.mark.parametrize("name", ["area_of_interest_m", "explosion_duration_s"])
    @pytest.mark.parametrize("value", [0.0, -1.0])
    def test_non_positive_area_and_explosion_rejected(self, name, value):
        with pytest.raises(ValueError, match=name):
            GameConfig(**{name: value})

    def test_duplicate_priorities_rejected(self):
        """Two kinds sharing a priority would make auto targeting ambiguous."""
        with pytest.raises(ValueError, match="distinct"):
            GameConfig.from_game_data({"targets": {"drone": {"priority": 3}}})

    def test_reordered_priorities_allowed(self):
        """Distinct priorities in any order are accepted."""
        config = GameConfig.from_game_data({
            "targets": {"drone": {"priority": 3}, "cruise": {"priority": 1}},
        })
        assert config.profile(TargetKind.DRONE).priority == 3

    def test_missing_profile_rejected(self):
        """Every kind needs a profile."""
        with pytest.raises(ValueError, match="cruise"):
            GameConfig(targets={
                TargetKind.PLANE: DEFAULT_TARGET_PROFILES[TargetKind.PLANE],
                TargetKind.DRONE: DEFAULT_TARGET_PROFILES[TargetKind.DRONE],
            })


class TestProfileValidation:
    """Tests for profile invariants."""

    def test_upgrade_may_not_shrink_range(self):
        """range_multiplier < 1 would degrade a battery."""
        with pytest.raises(ValueError):
            BatteryProfile(range_multiplier=0.9)

    def test_upgrade_may_not_lengthen_reload(self):
        """reload_multiplier > 1 would degrade a battery."""
        with pytest.raises(ValueError):
            BatteryProfile(reload_multiplier=1.1)

    def test_target_profile_rejects_zero_hit_points(self):
        """Targets need at least one hit point."""
        with pytest.raises(ValueError):
            TargetProfile(
                hit_points=0, jitter_chance=0.0, jitter_deg=0.0, priority=1,
                score_reward=1, funds_reward=1, spawn_radius_m=1.0,
                min_speed=1.0, max_speed=2.0,
            )

    def test_target_profile_rejects_inverted_speed_range(self):
        """max_speed must be >= min_speed."""
        with pytest.raises(ValueError):
            DEFAULT_TARGET_PROFILES[TargetKind.DRONE].updated({"min_speed": 100, "max_speed": 50})


class TestProfileImmutability:
    """Tests that configs never share mutable profile state."""

    def test_target_profile_is_frozen(self):
        config = GameConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.profile(TargetKind.DRONE).score_reward = 999
        assert DEFAULT_TARGET_PROFILES[TargetKind.DRONE].score_reward == 5

    def test_battery_profile_is_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            GameConfig().battery.range_m = 1.0

    def test_override_leaves_defaults_untouched(self):
        """Overrides build new profiles instead of editing the shared ones."""
        GameConfig.from_game_data({"targets": {"plane": {"hit_points": 9}}})
        assert DEFAULT_TARGET_PROFILES[TargetKind.PLANE].hit_points == 3
        assert GameConfig().profile(TargetKind.PLANE).hit_points == 3


class TestLoadGameData:
    """Tests for loading the game-data file."""

    def test_bundled_file_matches_defaults(self, monkeypatch):
        """The shipped JSON encodes exactly the stock game."""
        monkeypatch.delenv(ENV_DATA_PATH, raising=False)
        assert load_game_config() == GameConfig()

    def test_explicit_path(self, tmp_path):
        """An explicit path is loaded."""
        path = tmp_path / "game.json"
        path.write_text(json.dumps({"economy": {"battery_cost": 50}}))
        assert load_game_config(path).battery_cost == 50

    def test_environment_variable(self, tmp_path, monkeypatch):
        """$AIRDEFENSE_DATA is used when no path is given."""
        path = tmp_path / "env_game.json"
        path.write_text(json.dumps({"economy": {"upgrade_cost": 75}}))
        monkeypatch.setenv(ENV_DATA_PATH, str(path))
        assert load_game_data() == {"economy": {"upgrade_cost": 75}}
        assert load_game_config().upgrade_cost == 75

    def test_missing_file_raises(self, tmp_path):
        """A missing file surfaces as an OSError."""
        with pytest.raises(OSError):
            load_game_data(tmp_path / "nope.json")
