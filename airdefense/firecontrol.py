#!/usr/bin/env python3
"""
Fire Control System for the Air Defense Simulator.

This module implements:
- The single missile-creation primitive (launch)
- Manual acquisition: nearest target to a clicked point within a radius
- Automatic engagement: per-battery, cooldown-gated, highest-priority target

Expected failures (nothing to shoot, battery reloading) come back as
FireOutcome values, never exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

import numpy as np

from .config import GameConfig
from .entities import Battery, Missile, Target, target_priority
from .geomath import LatLng, haversine_many
from .world import World


# =============================================================================
# OUTCOMES
# =============================================================================

class FireOutcome(Enum):
    """Result of a fire-control attempt."""
    LAUNCHED = auto()
    NO_TARGETS = auto()       # Manual: world has no targets
    OUT_OF_RANGE = auto()     # Manual: nearest target beyond acquisition radius
    NO_CANDIDATES = auto()    # Auto: nothing within battery range
    RELOADING = auto()        # Auto: cooldown not elapsed


@dataclass
class FireResult:
    """
    Outcome of one fire-control decision.

    Attributes:
        outcome: What happened.
        missile_id: Id of the launched missile (LAUNCHED only).
        target_id: Chosen or nearest target, when one was considered.
        battery_id: Firing battery (None for the fallback launcher).
        distance_m: Distance from the aim point (manual) or battery (auto)
                    to the chosen target.
    """
    outcome: FireOutcome
    missile_id: Optional[str] = None
    target_id: Optional[str] = None
    battery_id: Optional[str] = None
    distance_m: Optional[float] = None

    @property
    def launched(self) -> bool:
        return self.outcome == FireOutcome.LAUNCHED


# =============================================================================
# LAUNCH PRIMITIVE
# =============================================================================

def launch(
    world: World,
    source_position: LatLng,
    target_id: str,
    speed: float,
    ttl_s: float,
    now: float = 0.0,
    source_id: Optional[str] = None
) -> Missile:
    """
    Create a missile at source_position homing on target_id and add it to the world.

    Args:
        world: World to insert into.
        source_position: Launch point.
        target_id: Target to pursue.
        speed: Missile speed (m/s).
        ttl_s: Time to live (seconds).
        now: Creation timestamp.
        source_id: Launching battery id, if any.

    Returns:
        The new missile.
    """
    missile = Missile.create(
        position=source_position,
        target_id=target_id,
        speed=speed,
        ttl_s=ttl_s,
        created_at=now,
        source_id=source_id,
    )
    return world.add_missile(missile)


# =============================================================================
# MANUAL FIRE
# =============================================================================

def acquire_nearest(world: World, point: LatLng) -> tuple[Optional[Target], float]:
    """
    Find the live target closest to a point.

    Returns:
        (target, distance_m), or (None, inf) if there are no targets.
    """
    targets = list(world.targets.values())
    if not targets:
        return None, float('inf')
    distances = haversine_many([t.position for t in targets], point)
    idx = int(np.argmin(distances))
    return targets[idx], float(distances[idx])


def fire_manual(
    world: World,
    point: LatLng,
    config: GameConfig,
    fallback_position: LatLng,
    now: float = 0.0
) -> FireResult:
    """
    Fire at the target nearest to a clicked point.

    The missile leaves from the first-built battery, or from
    fallback_position when no battery exists.

    Args:
        world: World state.
        point: Clicked world point.
        config: Game configuration (acquisition radius, speed, ttl).
        fallback_position: Launch point when there are no batteries.
        now: Current clock time.

    Returns:
        FireResult with LAUNCHED, NO_TARGETS or OUT_OF_RANGE.
    """
    target, distance = acquire_nearest(world, point)
    if target is None:
        return FireResult(outcome=FireOutcome.NO_TARGETS)

    if distance >= config.manual_acquisition_radius_m:
        return FireResult(
            outcome=FireOutcome.OUT_OF_RANGE,
            target_id=target.entity_id,
            distance_m=distance,
        )

    battery = world.first_battery()
    source_position = battery.position if battery else fallback_position
    missile = launch(
        world,
        source_position,
        target.entity_id,
        speed=config.manual_missile_speed,
        ttl_s=config.manual_missile_ttl_s,
        now=now,
        source_id=battery.entity_id if battery else None,
    )
    return FireResult(
        outcome=FireOutcome.LAUNCHED,
        missile_id=missile.entity_id,
        target_id=target.entity_id,
        battery_id=battery.entity_id if battery else None,
        distance_m=distance,
    )


# =============================================================================
# AUTOMATIC FIRE
# =============================================================================

def candidates_in_range(world: World, battery: Battery) -> list[tuple[Target, float]]:
    """All live targets within a battery's range, with their distances."""
    targets = list(world.targets.values())
    if not targets:
        return []
    distances = haversine_many([t.position for t in targets], battery.position)
    return [
        (target, float(d))
        for target, d in zip(targets, distances)
        if d <= battery.range_m
    ]


def select_priority_target(
    candidates: list[tuple[Target, float]],
    config: GameConfig
) -> tuple[Target, float]:
    """
    Pick the highest-priority candidate.

    Uses a stable sort on priority descending, so among equal priorities the
    earliest-spawned target wins.

    Args:
        candidates: Non-empty list of (target, distance) pairs.
        config: Supplies the per-kind priority table.

    Returns:
        The chosen (target, distance) pair.
    """
    ranked = sorted(
        candidates,
        key=lambda c: target_priority(c[0].target_kind, config.targets),
        reverse=True,
    )
    return ranked[0]


def engage_battery(world: World, battery: Battery, config: GameConfig, now: float) -> FireResult:
    """
    Run automatic fire control for one battery.

    At most one missile per call. The battery's last-fire time is stamped
    only when it launches.
    """
    candidates = candidates_in_range(world, battery)
    if not candidates:
        return FireResult(outcome=FireOutcome.NO_CANDIDATES, battery_id=battery.entity_id)

    if not battery.can_fire(now):
        return FireResult(outcome=FireOutcome.RELOADING, battery_id=battery.entity_id)

    target, distance = select_priority_target(candidates, config)
    missile = launch(
        world,
        battery.position,
        target.entity_id,
        speed=config.auto_missile_speed(battery.level),
        ttl_s=config.auto_missile_ttl_s,
        now=now,
        source_id=battery.entity_id,
    )
    battery.fire(now)
    return FireResult(
        outcome=FireOutcome.LAUNCHED,
        missile_id=missile.entity_id,
        target_id=target.entity_id,
        battery_id=battery.entity_id,
        distance_m=distance,
    )


def auto_engage(world: World, config: GameConfig, now: float) -> list[FireResult]:
    """
    Run automatic fire control for every battery with auto_engage set.

    Batteries decide independently; two may pick the same target.

    Returns:
        One FireResult per participating battery.
    """
    return [
        engage_battery(world, battery, config, now)
        for battery in list(world.batteries.values())
        if battery.auto_engage
    ]
