#!/usr/bin/env python3
"""
Game Configuration for the Air Defense Simulator.

Holds every tuning constant of the engine and the per-kind tables that drive
target behavior, fire-control priority and rewards. Defaults live as module
constants; a JSON game-data document can override any of them.

Data file lookup order for load_game_data():
1. Explicit path argument
2. AIRDEFENSE_DATA environment variable
3. Bundled airdefense/data/air_defense.json
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


# =============================================================================
# ECONOMY CONSTANTS
# =============================================================================

STARTING_FUNDS = 300
STARTING_SCORE = 0
BATTERY_COST = 100
UPGRADE_COST = 200


# =============================================================================
# ENGAGEMENT CONSTANTS
# =============================================================================

HIT_THRESHOLD_M = 250.0           # Strictly-less-than distance counted as a hit
EXPLOSION_RADIUS_M = 300.0
EXPLOSION_DURATION_S = 2.0
AREA_OF_INTEREST_M = 120_000.0    # Targets farther than this from center are pruned

MANUAL_ACQUISITION_RADIUS_M = 80_000.0
MANUAL_MISSILE_SPEED = 900.0      # m/s
MANUAL_MISSILE_TTL_S = 35.0

AUTO_MISSILE_BASE_SPEED = 800.0   # m/s at level 0; +AUTO_MISSILE_SPEED_PER_LEVEL per level
AUTO_MISSILE_SPEED_PER_LEVEL = 80.0
AUTO_MISSILE_TTL_S = 30.0

# Driver-side clamp on a single frame's elapsed time
MAX_FRAME_STEP_S = 0.05


# =============================================================================
# BATTERY CONSTANTS
# =============================================================================

BATTERY_RANGE_M = 20_000.0
BATTERY_RELOAD_S = 4.0
BATTERY_RELOAD_FLOOR_S = 1.2
BATTERY_RANGE_MULTIPLIER = 1.25
BATTERY_RELOAD_MULTIPLIER = 0.85


ENV_DATA_PATH = "AIRDEFENSE_DATA"
DEFAULT_DATA_PATH = Path(__file__).parent / "data" / "air_defense.json"


# =============================================================================
# TARGET KINDS
# =============================================================================

class TargetKind(Enum):
    """Hostile target sub-kinds."""
    PLANE = "plane"
    DRONE = "drone"
    CRUISE = "cruise"

    @classmethod
    def parse(cls, value: TargetKind | str) -> TargetKind:
        """
        Accept a TargetKind or its string name.

        Raises:
            ValueError: If the string does not name a known kind.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            valid = ", ".join(k.value for k in cls)
            raise ValueError(f"Unknown target kind '{value}' (expected one of: {valid})") from None


@dataclass(frozen=True)
class TargetProfile:
    """
    Per-kind behavior and reward table entry.

    Attributes:
        hit_points: Hits needed to destroy the target.
        jitter_chance: Probability per tick of a random heading change.
        jitter_deg: Heading change is uniform in [-jitter_deg, +jitter_deg].
        priority: Automatic fire-control priority (higher engages first).
        score_reward: Score added per hit.
        funds_reward: Funds added per hit.
        spawn_radius_m: Random spawns land within this distance of center.
        min_speed: Lower bound of random spawn speed (m/s).
        max_speed: Upper bound of random spawn speed (m/s).
    """
    hit_points: int
    jitter_chance: float
    jitter_deg: float
    priority: int
    score_reward: int
    funds_reward: int
    spawn_radius_m: float
    min_speed: float
    max_speed: float

    def __post_init__(self) -> None:
        if self.hit_points < 1:
            raise ValueError(f"hit_points must be >= 1, got {self.hit_points}")
        if not 0.0 <= self.jitter_chance <= 1.0:
            raise ValueError(f"jitter_chance must be within [0, 1], got {self.jitter_chance}")
        if self.min_speed < 0 or self.max_speed < self.min_speed:
            raise ValueError(
                f"Invalid spawn speed range [{self.min_speed}, {self.max_speed}]"
            )

    def updated(self, overrides: dict) -> TargetProfile:
        """Return a copy with any matching keys from overrides applied."""
        return TargetProfile(
            hit_points=int(overrides.get("hit_points", self.hit_points)),
            jitter_chance=float(overrides.get("jitter_chance", self.jitter_chance)),
            jitter_deg=float(overrides.get("jitter_deg", self.jitter_deg)),
            priority=int(overrides.get("priority", self.priority)),
            score_reward=int(overrides.get("score_reward", self.score_reward)),
            funds_reward=int(overrides.get("funds_reward", self.funds_reward)),
            spawn_radius_m=float(overrides.get("spawn_radius_m", self.spawn_radius_m)),
            min_speed=float(overrides.get("min_speed", self.min_speed)),
            max_speed=float(overrides.get("max_speed", self.max_speed)),
        )


# Cruise missiles fly straight: no jitter.
DEFAULT_TARGET_PROFILES: dict[TargetKind, TargetProfile] = {
    TargetKind.DRONE: TargetProfile(
        hit_points=1, jitter_chance=0.02, jitter_deg=60.0, priority=1,
        score_reward=5, funds_reward=3,
        spawn_radius_m=20_000.0, min_speed=20.0, max_speed=80.0,
    ),
    TargetKind.PLANE: TargetProfile(
        hit_points=3, jitter_chance=0.004, jitter_deg=20.0, priority=2,
        score_reward=20, funds_reward=12,
        spawn_radius_m=35_000.0, min_speed=140.0, max_speed=220.0,
    ),
    TargetKind.CRUISE: TargetProfile(
        hit_points=1, jitter_chance=0.0, jitter_deg=0.0, priority=3,
        score_reward=40, funds_reward=25,
        spawn_radius_m=45_000.0, min_speed=300.0, max_speed=700.0,
    ),
}


# =============================================================================
# BATTERY PROFILE
# =============================================================================

@dataclass(frozen=True)
class BatteryProfile:
    """
    Base stats of a newly built battery and how upgrades scale them.

    Attributes:
        range_m: Engagement range at level 1 (meters).
        reload_s: Cooldown between shots at level 1 (seconds).
        reload_floor_s: Upgrades never push reload below this.
        range_multiplier: Range factor per upgrade (>= 1).
        reload_multiplier: Reload factor per upgrade (0 < x <= 1).
    """
    range_m: float = BATTERY_RANGE_M
    reload_s: float = BATTERY_RELOAD_S
    reload_floor_s: float = BATTERY_RELOAD_FLOOR_S
    range_multiplier: float = BATTERY_RANGE_MULTIPLIER
    reload_multiplier: float = BATTERY_RELOAD_MULTIPLIER

    def __post_init__(self) -> None:
        if self.range_m <= 0:
            raise ValueError(f"range_m must be positive, got {self.range_m}")
        if self.reload_floor_s <= 0:
            raise ValueError(f"reload_floor_s must be positive, got {self.reload_floor_s}")
        # Upgrades must never degrade a battery
        if self.range_multiplier < 1.0:
            raise ValueError(f"range_multiplier must be >= 1, got {self.range_multiplier}")
        if not 0.0 < self.reload_multiplier <= 1.0:
            raise ValueError(f"reload_multiplier must be in (0, 1], got {self.reload_multiplier}")


# =============================================================================
# GAME CONFIG
# =============================================================================

@dataclass
class GameConfig:
    """
    Complete tuning set for one simulation.

    Every field defaults to the module constant of the same name, so
    GameConfig() reproduces the stock game.
    """
    starting_funds: int = STARTING_FUNDS
    starting_score: int = STARTING_SCORE
    battery_cost: int = BATTERY_COST
    upgrade_cost: int = UPGRADE_COST

    hit_threshold_m: float = HIT_THRESHOLD_M
    explosion_radius_m: float = EXPLOSION_RADIUS_M
    explosion_duration_s: float = EXPLOSION_DURATION_S
    area_of_interest_m: float = AREA_OF_INTEREST_M

    manual_acquisition_radius_m: float = MANUAL_ACQUISITION_RADIUS_M
    manual_missile_speed: float = MANUAL_MISSILE_SPEED
    manual_missile_ttl_s: float = MANUAL_MISSILE_TTL_S

    auto_missile_base_speed: float = AUTO_MISSILE_BASE_SPEED
    auto_missile_speed_per_level: float = AUTO_MISSILE_SPEED_PER_LEVEL
    auto_missile_ttl_s: float = AUTO_MISSILE_TTL_S

    max_frame_step_s: float = MAX_FRAME_STEP_S

    battery: BatteryProfile = field(default_factory=BatteryProfile)
    targets: dict[TargetKind, TargetProfile] = field(
        default_factory=lambda: dict(DEFAULT_TARGET_PROFILES)
    )

    def __post_init__(self) -> None:
        for name in ("manual_missile_speed", "auto_missile_base_speed",
                     "manual_missile_ttl_s", "auto_missile_ttl_s",
                     "hit_threshold_m", "max_frame_step_s",
                     "area_of_interest_m", "explosion_duration_s"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        missing = [k.value for k in TargetKind if k not in self.targets]
        if missing:
            raise ValueError(f"Missing target profiles for: {', '.join(missing)}")
        # Automatic fire control needs a strict total order over kinds
        priorities = [p.priority for p in self.targets.values()]
        if len(set(priorities)) != len(priorities):
            by_kind = ", ".join(f"{k.value}={p.priority}" for k, p in self.targets.items())
            raise ValueError(f"Target priorities must be distinct, got {by_kind}")

    def profile(self, kind: TargetKind) -> TargetProfile:
        """Get the behavior/reward profile for a target kind."""
        return self.targets[kind]

    def auto_missile_speed(self, level: int) -> float:
        """Speed of an automatically launched missile from a battery of this level."""
        return self.auto_missile_base_speed + level * self.auto_missile_speed_per_level

    @classmethod
    def from_game_data(cls, data: dict) -> GameConfig:
        """
        Create a GameConfig from a game-data document.

        Missing sections and keys fall back to the defaults.

        Args:
            data: Parsed JSON with optional "economy", "engagement",
                  "battery" and "targets" sections.

        Returns:
            A configured GameConfig instance.
        """
        economy = data.get("economy", {})
        engagement = data.get("engagement", {})
        battery_data = data.get("battery", {})
        target_data = data.get("targets", {})

        targets = dict(DEFAULT_TARGET_PROFILES)
        for kind_name, overrides in target_data.items():
            kind = TargetKind.parse(kind_name)
            targets[kind] = targets[kind].updated(overrides)

        return cls(
            starting_funds=int(economy.get("starting_funds", STARTING_FUNDS)),
            starting_score=int(economy.get("starting_score", STARTING_SCORE)),
            battery_cost=int(economy.get("battery_cost", BATTERY_COST)),
            upgrade_cost=int(economy.get("upgrade_cost", UPGRADE_COST)),
            hit_threshold_m=float(engagement.get("hit_threshold_m", HIT_THRESHOLD_M)),
            explosion_radius_m=float(engagement.get("explosion_radius_m", EXPLOSION_RADIUS_M)),
            explosion_duration_s=float(engagement.get("explosion_duration_s", EXPLOSION_DURATION_S)),
            area_of_interest_m=float(engagement.get("area_of_interest_m", AREA_OF_INTEREST_M)),
            manual_acquisition_radius_m=float(
                engagement.get("manual_acquisition_radius_m", MANUAL_ACQUISITION_RADIUS_M)
            ),
            manual_missile_speed=float(engagement.get("manual_missile_speed", MANUAL_MISSILE_SPEED)),
            manual_missile_ttl_s=float(engagement.get("manual_missile_ttl_s", MANUAL_MISSILE_TTL_S)),
            auto_missile_base_speed=float(
                engagement.get("auto_missile_base_speed", AUTO_MISSILE_BASE_SPEED)
            ),
            auto_missile_speed_per_level=float(
                engagement.get("auto_missile_speed_per_level", AUTO_MISSILE_SPEED_PER_LEVEL)
            ),
            auto_missile_ttl_s=float(engagement.get("auto_missile_ttl_s", AUTO_MISSILE_TTL_S)),
            max_frame_step_s=float(engagement.get("max_frame_step_s", MAX_FRAME_STEP_S)),
            battery=BatteryProfile(
                range_m=float(battery_data.get("range_m", BATTERY_RANGE_M)),
                reload_s=float(battery_data.get("reload_s", BATTERY_RELOAD_S)),
                reload_floor_s=float(battery_data.get("reload_floor_s", BATTERY_RELOAD_FLOOR_S)),
                range_multiplier=float(
                    battery_data.get("range_multiplier", BATTERY_RANGE_MULTIPLIER)
                ),
                reload_multiplier=float(
                    battery_data.get("reload_multiplier", BATTERY_RELOAD_MULTIPLIER)
                ),
            ),
            targets=targets,
        )


# =============================================================================
# LOADING
# =============================================================================

def load_game_data(path: Optional[str | Path] = None) -> dict:
    """
    Load the game-data JSON document.

    Args:
        path: Explicit file path. Falls back to $AIRDEFENSE_DATA, then to
              the bundled data file.

    Returns:
        The parsed document.
    """
    if path is None:
        path = os.getenv(ENV_DATA_PATH) or DEFAULT_DATA_PATH
    with open(Path(path), "r") as f:
        return json.load(f)


def load_game_config(path: Optional[str | Path] = None) -> GameConfig:
    """Load game data and build a GameConfig from it."""
    return GameConfig.from_game_data(load_game_data(path))
