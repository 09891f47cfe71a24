#!/usr/bin/env python3
"""
Entity Models for the Air Defense Simulator.

Every simulated object shares a small common core (id, kind tag, position,
creation time) plus a kind-specific payload:
- Target: hostile plane, drone or cruise missile
- Missile: homing interceptor bound to one target id
- Explosion: short-lived hit marker
- Battery: player-owned launcher with range, reload and upgrade level

Per-kind behavior (hit points, priority, reward) is a plain table lookup
keyed by TargetKind; motion rules live in the guidance module.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import ClassVar, Optional

from .config import (
    BATTERY_RANGE_MULTIPLIER,
    BATTERY_RELOAD_FLOOR_S,
    BATTERY_RELOAD_MULTIPLIER,
    BATTERY_RANGE_M,
    BATTERY_RELOAD_S,
    DEFAULT_TARGET_PROFILES,
    EXPLOSION_DURATION_S,
    EXPLOSION_RADIUS_M,
    TargetKind,
    TargetProfile,
)
from .geomath import LatLng


# =============================================================================
# KINDS AND IDENTIFIERS
# =============================================================================

class EntityKind(Enum):
    """Tag for the four entity collections."""
    TARGET = auto()
    MISSILE = auto()
    EXPLOSION = auto()
    BATTERY = auto()


ID_PREFIXES: dict[EntityKind, str] = {
    EntityKind.TARGET: "tgt",
    EntityKind.MISSILE: "msl",
    EntityKind.EXPLOSION: "exp",
    EntityKind.BATTERY: "bat",
}


def new_entity_id(kind: EntityKind) -> str:
    """Generate a unique id such as 'msl_3f2a9c1b7d4e'."""
    return f"{ID_PREFIXES[kind]}_{uuid.uuid4().hex[:12]}"


# =============================================================================
# PER-KIND TABLES
# =============================================================================

def initial_hit_points(
    kind: TargetKind,
    profiles: dict[TargetKind, TargetProfile] = DEFAULT_TARGET_PROFILES
) -> int:
    """Hit points a freshly spawned target of this kind starts with."""
    return profiles[kind].hit_points


def target_priority(
    kind: TargetKind,
    profiles: dict[TargetKind, TargetProfile] = DEFAULT_TARGET_PROFILES
) -> int:
    """Automatic engagement priority; cruise > plane > drone with stock profiles."""
    return profiles[kind].priority


def target_reward(
    kind: TargetKind,
    profiles: dict[TargetKind, TargetProfile] = DEFAULT_TARGET_PROFILES
) -> tuple[int, int]:
    """(score, funds) awarded for one hit on a target of this kind."""
    profile = profiles[kind]
    return profile.score_reward, profile.funds_reward


# =============================================================================
# BASE ENTITY
# =============================================================================

@dataclass
class Entity:
    """
    Fields shared by every entity.

    Attributes:
        entity_id: Unique, immutable identifier.
        position: Current position.
        created_at: Simulation time of creation (seconds).
    """
    entity_id: str
    position: LatLng
    created_at: float

    kind: ClassVar[EntityKind]

    def distance_to(self, other: Entity | LatLng) -> float:
        """Great-circle distance in meters to another entity or point."""
        point = other.position if isinstance(other, Entity) else other
        return self.position.distance_to(point)


# =============================================================================
# TARGET
# =============================================================================

@dataclass
class Target(Entity):
    """
    A hostile aircraft or missile.

    Attributes:
        target_kind: Plane, drone or cruise missile.
        heading_deg: Direction of travel, degrees clockwise from north.
        speed: Ground speed in m/s.
        hit_points: Remaining hits; the target dies at 0.
        alive: False once destroyed or pruned.
    """
    target_kind: TargetKind = TargetKind.DRONE
    heading_deg: float = 0.0
    speed: float = 0.0
    hit_points: int = 1
    alive: bool = True

    kind = EntityKind.TARGET

    def __post_init__(self) -> None:
        if self.speed < 0 or not math.isfinite(self.speed):
            raise ValueError(f"Target speed must be a finite value >= 0, got {self.speed}")
        if not math.isfinite(self.heading_deg):
            raise ValueError(f"Target heading must be finite, got {self.heading_deg}")
        if self.hit_points < 0:
            raise ValueError(f"hit_points must be >= 0, got {self.hit_points}")

    @classmethod
    def create(
        cls,
        target_kind: TargetKind,
        position: LatLng,
        heading_deg: float,
        speed: float,
        created_at: float = 0.0,
        profiles: dict[TargetKind, TargetProfile] = DEFAULT_TARGET_PROFILES
    ) -> Target:
        """Create a target with a fresh id and kind-appropriate hit points."""
        return cls(
            entity_id=new_entity_id(EntityKind.TARGET),
            position=position,
            created_at=created_at,
            target_kind=target_kind,
            heading_deg=heading_deg,
            speed=speed,
            hit_points=initial_hit_points(target_kind, profiles),
        )

    def take_hit(self) -> bool:
        """
        Apply one point of damage.

        Returns:
            True if this hit destroyed the target.
        """
        self.hit_points = max(0, self.hit_points - 1)
        if self.hit_points == 0:
            self.alive = False
        return not self.alive


# =============================================================================
# MISSILE
# =============================================================================

class MissileState(Enum):
    """Lifecycle of an interceptor."""
    IN_FLIGHT = auto()
    HIT = auto()
    EXPIRED = auto()        # ttl ran out: a miss
    LOST_TARGET = auto()    # referenced target vanished: a miss


@dataclass
class Missile(Entity):
    """
    A homing interceptor.

    The missile refers to its target by id only; the target may disappear
    at any tick boundary, after which the missile self-terminates.

    Attributes:
        target_id: Id of the target being pursued.
        speed: Flight speed in m/s.
        ttl_s: Remaining time to live; <= 0 marks the missile for removal.
        source_id: Launching battery id (None for the fallback launcher).
        state: Lifecycle state.
    """
    target_id: str = ""
    speed: float = 600.0
    ttl_s: float = 30.0
    source_id: Optional[str] = None
    state: MissileState = MissileState.IN_FLIGHT

    kind = EntityKind.MISSILE

    @classmethod
    def create(
        cls,
        position: LatLng,
        target_id: str,
        speed: float,
        ttl_s: float,
        created_at: float = 0.0,
        source_id: Optional[str] = None
    ) -> Missile:
        """Create a missile with a fresh id."""
        if speed <= 0:
            raise ValueError(f"Missile speed must be positive, got {speed}")
        if ttl_s <= 0:
            raise ValueError(f"Missile ttl must be positive, got {ttl_s}")
        return cls(
            entity_id=new_entity_id(EntityKind.MISSILE),
            position=position,
            created_at=created_at,
            target_id=target_id,
            speed=speed,
            ttl_s=ttl_s,
            source_id=source_id,
        )

    @property
    def is_live(self) -> bool:
        """True while the missile is still flying."""
        return self.ttl_s > 0 and self.state == MissileState.IN_FLIGHT

    def terminate(self, state: MissileState) -> None:
        """Mark for removal with the given final state."""
        self.state = state
        self.ttl_s = -1.0


# =============================================================================
# EXPLOSION
# =============================================================================

@dataclass
class Explosion(Entity):
    """
    Cosmetic hit marker.

    Attributes:
        age_s: Time since the hit.
        duration_s: Lifetime; removed once age_s >= duration_s.
        radius_m: Display radius.
    """
    age_s: float = 0.0
    duration_s: float = EXPLOSION_DURATION_S
    radius_m: float = EXPLOSION_RADIUS_M

    kind = EntityKind.EXPLOSION

    @classmethod
    def create(
        cls,
        position: LatLng,
        created_at: float = 0.0,
        radius_m: float = EXPLOSION_RADIUS_M,
        duration_s: float = EXPLOSION_DURATION_S
    ) -> Explosion:
        return cls(
            entity_id=new_entity_id(EntityKind.EXPLOSION),
            position=position,
            created_at=created_at,
            radius_m=radius_m,
            duration_s=duration_s,
        )

    def step(self, dt: float) -> None:
        self.age_s += dt

    @property
    def is_alive(self) -> bool:
        return self.age_s < self.duration_s


# =============================================================================
# BATTERY
# =============================================================================

@dataclass
class Battery(Entity):
    """
    A player-owned interceptor launcher.

    Attributes:
        range_m: Automatic engagement range in meters.
        reload_s: Cooldown between shots in seconds.
        last_fire_time: Clock time of the last shot (-inf = never fired).
        level: Upgrade level, starting at 1.
        auto_engage: Whether this battery takes part in automatic fire.
    """
    range_m: float = BATTERY_RANGE_M
    reload_s: float = BATTERY_RELOAD_S
    last_fire_time: float = field(default=-math.inf)
    level: int = 1
    auto_engage: bool = True

    kind = EntityKind.BATTERY

    @classmethod
    def create(
        cls,
        position: LatLng,
        created_at: float = 0.0,
        range_m: float = BATTERY_RANGE_M,
        reload_s: float = BATTERY_RELOAD_S
    ) -> Battery:
        return cls(
            entity_id=new_entity_id(EntityKind.BATTERY),
            position=position,
            created_at=created_at,
            range_m=range_m,
            reload_s=reload_s,
        )

    def can_fire(self, now: float) -> bool:
        """Check if the reload cooldown has elapsed."""
        return (now - self.last_fire_time) >= self.reload_s

    def cooldown_remaining(self, now: float) -> float:
        """Seconds until the battery may fire again (0 when ready)."""
        return max(0.0, self.reload_s - (now - self.last_fire_time))

    def fire(self, now: float) -> None:
        """Stamp the last-fire time."""
        self.last_fire_time = now

    def in_range(self, point: LatLng) -> bool:
        return self.position.distance_to(point) <= self.range_m

    def upgrade(
        self,
        range_multiplier: float = BATTERY_RANGE_MULTIPLIER,
        reload_multiplier: float = BATTERY_RELOAD_MULTIPLIER,
        reload_floor_s: float = BATTERY_RELOAD_FLOOR_S
    ) -> None:
        """
        Raise the battery one level.

        Range grows by range_multiplier and reload shrinks by
        reload_multiplier, never below reload_floor_s. Level has no cap.
        """
        self.level += 1
        self.range_m *= range_multiplier
        # A reload already below the floor is left alone rather than raised
        self.reload_s = min(self.reload_s, max(reload_floor_s, self.reload_s * reload_multiplier))
