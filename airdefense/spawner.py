#!/usr/bin/env python3
"""
Random target spawning.

Spawns land at a uniformly random bearing and distance from the center,
within a kind-specific radius, with a random heading and a speed drawn from
the kind's range. Scheduling (how often waves arrive) belongs to the host.
"""

from __future__ import annotations

import random
from typing import Optional

from .config import TargetKind
from .entities import Target
from .geomath import LatLng, random_point_around
from .simulation import AirDefenseSimulation


# Wave composition
DRONE_CHANCE = 0.40
PLANE_CHANCE = 0.45          # cruise takes the remaining 0.15
SWARM_CHANCE = 0.12          # chance of an extra drone group
SWARM_MIN_SIZE = 2
SWARM_MAX_SIZE = 4


def spawn_random_target(
    sim: AirDefenseSimulation,
    kind: TargetKind | str,
    center: Optional[LatLng] = None,
    rng: Optional[random.Random] = None
) -> Target:
    """
    Spawn one target of the given kind near the center.

    Args:
        sim: Simulation to spawn into.
        kind: Target kind.
        center: Spawn center (defaults to the simulation's center).
        rng: Random source (defaults to the simulation's RNG).

    Returns:
        The spawned target.
    """
    rng = rng or sim.rng
    center = center or sim.center
    target_kind = TargetKind.parse(kind)
    profile = sim.config.profile(target_kind)

    position = random_point_around(center, profile.spawn_radius_m, rng)
    return sim.spawn_target(
        target_kind,
        position,
        heading_deg=rng.uniform(0.0, 360.0),
        speed=rng.uniform(profile.min_speed, profile.max_speed),
    )


def pick_wave_kind(rng: random.Random) -> TargetKind:
    """Roll the kind of the lead target in a wave."""
    roll = rng.random()
    if roll < DRONE_CHANCE:
        return TargetKind.DRONE
    if roll < DRONE_CHANCE + PLANE_CHANCE:
        return TargetKind.PLANE
    return TargetKind.CRUISE


def spawn_random_wave(
    sim: AirDefenseSimulation,
    center: Optional[LatLng] = None,
    rng: Optional[random.Random] = None
) -> list[Target]:
    """
    Spawn one random wave: a single target, sometimes followed by a drone swarm.

    Returns:
        All targets spawned by this wave.
    """
    rng = rng or sim.rng
    spawned = [spawn_random_target(sim, pick_wave_kind(rng), center, rng)]
    if rng.random() < SWARM_CHANCE:
        count = rng.randint(SWARM_MIN_SIZE, SWARM_MAX_SIZE)
        spawned.extend(
            spawn_random_target(sim, TargetKind.DRONE, center, rng)
            for _ in range(count)
        )
    return spawned
