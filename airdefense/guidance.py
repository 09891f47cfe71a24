#!/usr/bin/env python3
"""
Motion rules for targets and interceptors.

Targets:
- Fly straight along their heading at constant speed
- Drones and planes occasionally jink: with a small independent chance per
  tick the heading takes a uniform random perturbation
- Cruise missiles never jink

Interceptors use zero-lag pure pursuit: every tick the missile turns to face
the target's current position and flies straight at it, with the step capped
at the remaining distance so it never overshoots within a tick. No heading
is carried between ticks, and there is no lead.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional

from .config import TargetProfile
from .entities import Missile, MissileState, Target
from .geomath import LatLng, displace, haversine_distance, planar_bearing


# =============================================================================
# TARGET MOTION
# =============================================================================

def wander_heading(heading_deg: float, profile: TargetProfile, rng: random.Random) -> float:
    """
    Apply the per-tick random heading change for a target kind.

    Args:
        heading_deg: Current heading.
        profile: Kind profile with jitter_chance and jitter_deg.
        rng: Random source.

    Returns:
        The new heading (unchanged most ticks).
    """
    if profile.jitter_chance <= 0.0:
        return heading_deg
    if rng.random() < profile.jitter_chance:
        return heading_deg + rng.uniform(-profile.jitter_deg, profile.jitter_deg)
    return heading_deg


def advance_target(target: Target, dt: float, profile: TargetProfile, rng: random.Random) -> None:
    """Jink (maybe), then move the target speed*dt along its heading."""
    target.heading_deg = wander_heading(target.heading_deg, profile, rng)
    target.position = displace(target.position, target.speed * dt, target.heading_deg)


# =============================================================================
# PURSUIT GUIDANCE
# =============================================================================

@dataclass
class GuidanceCommand:
    """
    One tick of pursuit guidance.

    Attributes:
        bearing_deg: Direction to fly this tick.
        step_m: Distance to fly, min(speed*dt, range_m).
        range_m: Distance to the target before moving.
    """
    bearing_deg: float
    step_m: float
    range_m: float

    @property
    def closes_fully(self) -> bool:
        """True if this step reaches the target's position."""
        return self.step_m >= self.range_m


def pursuit_command(position: LatLng, target_position: LatLng, speed: float, dt: float) -> GuidanceCommand:
    """
    Compute the pure-pursuit step toward a target position.

    Args:
        position: Missile position.
        target_position: Target's current position.
        speed: Missile speed (m/s).
        dt: Time step (seconds).

    Returns:
        GuidanceCommand for this tick.
    """
    range_m = haversine_distance(position, target_position)
    return GuidanceCommand(
        bearing_deg=planar_bearing(position, target_position),
        step_m=min(speed * dt, range_m),
        range_m=range_m,
    )


def pursuit_step(missile: Missile, target_position: Optional[LatLng], dt: float) -> Optional[GuidanceCommand]:
    """
    Advance a missile one tick.

    If the target is gone (target_position is None) the missile is marked
    LOST_TARGET and left where it is. Otherwise it flies along the pursuit
    command and burns dt of its ttl; reaching ttl <= 0 marks it EXPIRED.

    Args:
        missile: Missile to move.
        target_position: Current position of its target, or None.
        dt: Time step (seconds).

    Returns:
        The command that was flown, or None if the target was lost.
    """
    if target_position is None:
        missile.terminate(MissileState.LOST_TARGET)
        return None

    command = pursuit_command(missile.position, target_position, missile.speed, dt)
    if command.closes_fully:
        # Land exactly on the target rather than accumulating planar error
        missile.position = target_position
    elif command.step_m > 0:
        missile.position = displace(missile.position, command.step_m, command.bearing_deg)

    missile.ttl_s -= dt
    if missile.ttl_s <= 0:
        missile.terminate(MissileState.EXPIRED)
    return command
