#!/usr/bin/env python3
"""
Air Defense Simulation Engine.

This module implements the core loop that:
- Advances all entities by one fixed step per tick(dt)
- Resolves missile-target hits and applies damage and rewards
- Prunes expired missiles, dead targets, faded explosions and targets that
  left the area of interest
- Runs automatic fire control once per tick when enabled
- Accepts host commands (spawn, build, upgrade, manual fire, toggle auto)
  as ordinary synchronous calls between ticks

Every state change is recorded as a SimulationEvent and pushed to any
registered event callbacks.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Optional

from .config import GameConfig, TargetKind
from .entities import Battery, Explosion, MissileState, Target, target_reward
from .firecontrol import FireOutcome, FireResult, auto_engage, fire_manual
from .geomath import LatLng, as_latlng
from .guidance import advance_target, pursuit_step
from .world import World, WorldSnapshot


# =============================================================================
# CONSTANTS
# =============================================================================

# Kyiv city center
DEFAULT_CENTER = LatLng(50.45, 30.52)


# =============================================================================
# EVENT TYPES
# =============================================================================

class SimulationEventType(Enum):
    """Types of events that can occur during simulation."""
    # Target events
    TARGET_SPAWNED = auto()
    TARGET_HIT = auto()
    TARGET_DESTROYED = auto()
    TARGET_LEFT_AREA = auto()

    # Missile events
    MISSILE_LAUNCHED = auto()
    MISSILE_EXPIRED = auto()
    MISSILE_LOST_TARGET = auto()

    # Explosion events
    EXPLOSION_FADED = auto()

    # Player command events
    BATTERY_BUILT = auto()
    BATTERY_UPGRADED = auto()
    AUTO_ENGAGE_TOGGLED = auto()
    MANUAL_FIRE_FAILED = auto()
    INSUFFICIENT_FUNDS = auto()

    # Flow events
    SIMULATION_RESET = auto()


@dataclass
class SimulationEvent:
    """
    An event that occurs during simulation.

    Attributes:
        event_type: The type of event.
        timestamp: Simulation time when the event occurred (seconds).
        entity_id: Entity the event is about (if applicable).
        target_id: Target involved (if applicable).
        data: Additional event-specific data.
    """
    event_type: SimulationEventType
    timestamp: float
    entity_id: Optional[str] = None
    target_id: Optional[str] = None
    data: dict = field(default_factory=dict)

    def __str__(self) -> str:
        entity_str = f"[{self.entity_id}]" if self.entity_id else ""
        target_str = f" -> {self.target_id}" if self.target_id else ""
        return f"T+{self.timestamp:.2f}s {entity_str} {self.event_type.name}{target_str}"


# =============================================================================
# COMMAND RESULTS
# =============================================================================

class CommandOutcome(Enum):
    """Result of a build/upgrade command."""
    OK = auto()
    INSUFFICIENT_FUNDS = auto()
    UNKNOWN_BATTERY = auto()


@dataclass
class CommandResult:
    """
    Outcome of a player command. State is unchanged unless outcome is OK.

    Attributes:
        outcome: What happened.
        battery_ids: Batteries built or upgraded.
        funds_remaining: Funds after the command.
    """
    outcome: CommandOutcome
    battery_ids: list[str] = field(default_factory=list)
    funds_remaining: int = 0

    @property
    def ok(self) -> bool:
        return self.outcome == CommandOutcome.OK


# =============================================================================
# ENGAGEMENT METRICS
# =============================================================================

@dataclass
class EngagementMetrics:
    """
    Running engagement statistics.

    Attributes:
        missiles_launched: Total missiles launched (manual and automatic).
        hits: Missiles that struck their target.
        misses: Missiles that expired or lost their target.
        kills: Destroyed targets by kind.
        escaped: Targets pruned for leaving the area of interest.
        elapsed_s: Total simulated time.
    """
    missiles_launched: int = 0
    hits: int = 0
    misses: int = 0
    kills: dict[TargetKind, int] = field(default_factory=lambda: {k: 0 for k in TargetKind})
    escaped: int = 0
    elapsed_s: float = 0.0

    @property
    def hit_rate(self) -> float:
        """Fraction of resolved missiles that hit."""
        resolved = self.hits + self.misses
        if resolved == 0:
            return 0.0
        return self.hits / resolved

    @property
    def total_kills(self) -> int:
        return sum(self.kills.values())


# =============================================================================
# FRAME CLAMPING
# =============================================================================

def clamp_frame_dt(elapsed: float, max_step: float) -> float:
    """
    Clamp a wall-clock frame gap to a safe simulation step.

    Negative gaps (clock skew) become 0; long gaps such as a backgrounded
    window are cut to max_step.
    """
    if not math.isfinite(elapsed):
        return max_step if elapsed > 0 else 0.0
    return max(0.0, min(elapsed, max_step))


# =============================================================================
# AIR DEFENSE SIMULATION
# =============================================================================

class AirDefenseSimulation:
    """
    Main air defense simulation engine.

    Usage:
        sim = AirDefenseSimulation(center=LatLng(50.45, 30.52), seed=7)
        sim.build_battery(sim.center)
        sim.spawn_target(TargetKind.DRONE, LatLng(50.5, 30.6), heading_deg=200, speed=40)
        sim.set_auto_engage(True)
        for _ in range(200):
            sim.tick(0.05)
        state = sim.get_state()

    Attributes:
        config: Game tuning.
        world: Owned entity state and counters.
        center: Center of the area of interest.
        auto_engage_enabled: World-level automatic fire toggle.
        current_time: Accumulated simulated time (seconds).
        events: Event log.
        metrics: Engagement statistics.
    """

    def __init__(
        self,
        center: LatLng | tuple[float, float] = DEFAULT_CENTER,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        clock: Optional[Callable[[], float]] = None
    ) -> None:
        """
        Initialize the simulation.

        Args:
            center: Initial center of interest.
            config: Game tuning (stock game if None).
            seed: Random seed for target jinking and spawning.
            clock: Monotonic time source for cooldowns. Defaults to the
                   simulation's own accumulated time.
        """
        self.config = config or GameConfig()
        self.world = World(
            starting_score=self.config.starting_score,
            starting_funds=self.config.starting_funds,
        )
        self.center = as_latlng(center)
        self.auto_engage_enabled = False
        self.current_time: float = 0.0
        self.rng = random.Random(seed)
        self._clock = clock

        self.events: list[SimulationEvent] = []
        self.metrics = EngagementMetrics()
        self._event_callbacks: list[Callable[[SimulationEvent], None]] = []

    @classmethod
    def create_default(
        cls,
        center: LatLng | tuple[float, float] = DEFAULT_CENTER,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        clock: Optional[Callable[[], float]] = None
    ) -> AirDefenseSimulation:
        """Create a simulation with one free starting battery at the center."""
        sim = cls(center=center, config=config, seed=seed, clock=clock)
        sim._place_battery(sim.center)
        return sim

    def now(self) -> float:
        """Current clock time used for cooldown bookkeeping."""
        if self._clock is not None:
            return self._clock()
        return self.current_time

    # -------------------------------------------------------------------------
    # Tick
    # -------------------------------------------------------------------------

    def tick(self, dt: float, center: Optional[LatLng | tuple[float, float]] = None) -> list[SimulationEvent]:
        """
        Advance the simulation by dt seconds.

        Order: target motion, missile motion, hit resolution, missile and
        target purge, explosion aging, boundary prune, then automatic fire.
        The caller is responsible for clamping dt.

        Args:
            dt: Time step in seconds (must be >= 0).
            center: Center of interest for this tick; keeps the previous
                    center if None.

        Returns:
            Events that occurred during this tick.

        Raises:
            ValueError: If dt is negative or not finite.
        """
        if not math.isfinite(dt) or dt < 0:
            raise ValueError(f"dt must be a finite value >= 0, got {dt}")
        if center is not None:
            self.center = as_latlng(center)

        first_event = len(self.events)

        self._move_targets(dt)
        self._move_missiles(dt)
        self._resolve_hits()
        self._purge_missiles()
        self._purge_dead_targets()
        self._age_explosions(dt)
        self._prune_out_of_area()

        self.current_time += dt
        self.metrics.elapsed_s = self.current_time

        if self.auto_engage_enabled:
            self._run_auto_engage()

        return self.events[first_event:]

    def _move_targets(self, dt: float) -> None:
        for target in self.world.targets.values():
            advance_target(target, dt, self.config.profile(target.target_kind), self.rng)

    def _move_missiles(self, dt: float) -> None:
        for missile in self.world.missiles.values():
            if not missile.is_live:
                continue
            target = self.world.get_target(missile.target_id)
            pursuit_step(missile, target.position if target else None, dt)

    def _resolve_hits(self) -> None:
        """Check every live missile against its target, in launch order."""
        threshold = self.config.hit_threshold_m
        for missile in self.world.missiles.values():
            if not missile.is_live:
                continue
            target = self.world.get_target(missile.target_id)
            if target is None:
                continue
            distance = missile.distance_to(target)
            if distance < threshold:
                self._apply_hit(missile.entity_id, target, distance)
                missile.terminate(MissileState.HIT)

    def _apply_hit(self, missile_id: str, target: Target, distance: float) -> None:
        """Spawn an explosion, pay out the reward and damage the target."""
        self.world.add_explosion(Explosion.create(
            target.position,
            created_at=self.current_time,
            radius_m=self.config.explosion_radius_m,
            duration_s=self.config.explosion_duration_s,
        ))

        score, funds = target_reward(target.target_kind, self.config.targets)
        self.world.award(score, funds)
        self.metrics.hits += 1

        destroyed = target.take_hit()
        self._log_event(SimulationEventType.TARGET_HIT, missile_id, target.entity_id, {
            'kind': target.target_kind.value,
            'distance_m': distance,
            'hit_points': target.hit_points,
            'score': score,
            'funds': funds,
        })

        if destroyed:
            self.world.remove_target(target.entity_id)
            self.metrics.kills[target.target_kind] += 1
            self._log_event(SimulationEventType.TARGET_DESTROYED, target.entity_id, data={
                'kind': target.target_kind.value,
            })

    def _purge_missiles(self) -> None:
        removed = self.world.retain_missiles(lambda m: m.ttl_s > 0)
        for missile in removed:
            if missile.state == MissileState.HIT:
                continue
            self.metrics.misses += 1
            if missile.state == MissileState.LOST_TARGET:
                event_type = SimulationEventType.MISSILE_LOST_TARGET
            else:
                event_type = SimulationEventType.MISSILE_EXPIRED
            self._log_event(event_type, missile.entity_id, missile.target_id)

    def _purge_dead_targets(self) -> None:
        self.world.retain_targets(lambda t: t.hit_points > 0)

    def _age_explosions(self, dt: float) -> None:
        for explosion in self.world.explosions.values():
            explosion.step(dt)
        for explosion in self.world.retain_explosions(lambda e: e.is_alive):
            self._log_event(SimulationEventType.EXPLOSION_FADED, explosion.entity_id)

    def _prune_out_of_area(self) -> None:
        limit = self.config.area_of_interest_m
        removed = self.world.retain_targets(lambda t: t.distance_to(self.center) <= limit)
        for target in removed:
            self.metrics.escaped += 1
            self._log_event(SimulationEventType.TARGET_LEFT_AREA, target.entity_id, data={
                'kind': target.target_kind.value,
            })

    def _run_auto_engage(self) -> None:
        for result in auto_engage(self.world, self.config, self.now()):
            if result.launched:
                self._record_launch(result, mode='auto')

    def _record_launch(self, result: FireResult, mode: str) -> None:
        self.metrics.missiles_launched += 1
        self._log_event(SimulationEventType.MISSILE_LAUNCHED, result.missile_id, result.target_id, {
            'mode': mode,
            'battery_id': result.battery_id,
            'distance_m': result.distance_m,
        })

    # -------------------------------------------------------------------------
    # Host commands
    # -------------------------------------------------------------------------

    def spawn_target(
        self,
        kind: TargetKind | str,
        position: LatLng | tuple[float, float],
        heading_deg: float,
        speed: float
    ) -> Target:
        """
        Add a hostile target.

        Raises:
            ValueError: For an unknown kind, bad coordinates or negative speed.
        """
        target_kind = TargetKind.parse(kind)
        target = Target.create(
            target_kind,
            as_latlng(position),
            heading_deg=heading_deg,
            speed=speed,
            created_at=self.current_time,
            profiles=self.config.targets,
        )
        self.world.add_target(target)
        self._log_event(SimulationEventType.TARGET_SPAWNED, target.entity_id, data={
            'kind': target_kind.value,
            'speed': speed,
            'heading_deg': heading_deg,
        })
        return target

    def build_battery(self, position: LatLng | tuple[float, float]) -> CommandResult:
        """Buy a battery at position for config.battery_cost."""
        position = as_latlng(position)
        if not self.world.spend(self.config.battery_cost):
            return self._insufficient_funds('build_battery', self.config.battery_cost)
        battery = self._place_battery(position)
        return CommandResult(
            outcome=CommandOutcome.OK,
            battery_ids=[battery.entity_id],
            funds_remaining=self.world.funds,
        )

    def _place_battery(self, position: LatLng) -> Battery:
        profile = self.config.battery
        battery = self.world.add_battery(Battery.create(
            position,
            created_at=self.current_time,
            range_m=profile.range_m,
            reload_s=profile.reload_s,
        ))
        self._log_event(SimulationEventType.BATTERY_BUILT, battery.entity_id, data={
            'lat': position.lat,
            'lng': position.lng,
        })
        return battery

    def upgrade_battery(self, battery_id: str) -> CommandResult:
        """Upgrade one battery for config.upgrade_cost."""
        battery = self.world.get_battery(battery_id)
        if battery is None:
            return CommandResult(
                outcome=CommandOutcome.UNKNOWN_BATTERY,
                funds_remaining=self.world.funds,
            )
        if not self.world.spend(self.config.upgrade_cost):
            return self._insufficient_funds('upgrade_battery', self.config.upgrade_cost)
        self._upgrade(battery)
        return CommandResult(
            outcome=CommandOutcome.OK,
            battery_ids=[battery_id],
            funds_remaining=self.world.funds,
        )

    def upgrade_all_batteries(self) -> CommandResult:
        """Upgrade every battery for a single config.upgrade_cost charge."""
        if not self.world.batteries:
            return CommandResult(
                outcome=CommandOutcome.UNKNOWN_BATTERY,
                funds_remaining=self.world.funds,
            )
        if not self.world.spend(self.config.upgrade_cost):
            return self._insufficient_funds('upgrade_all_batteries', self.config.upgrade_cost)
        for battery in self.world.batteries.values():
            self._upgrade(battery)
        return CommandResult(
            outcome=CommandOutcome.OK,
            battery_ids=list(self.world.batteries),
            funds_remaining=self.world.funds,
        )

    def _upgrade(self, battery: Battery) -> None:
        profile = self.config.battery
        battery.upgrade(
            range_multiplier=profile.range_multiplier,
            reload_multiplier=profile.reload_multiplier,
            reload_floor_s=profile.reload_floor_s,
        )
        self._log_event(SimulationEventType.BATTERY_UPGRADED, battery.entity_id, data={
            'level': battery.level,
            'range_m': battery.range_m,
            'reload_s': battery.reload_s,
        })

    def _insufficient_funds(self, command: str, cost: int) -> CommandResult:
        self._log_event(SimulationEventType.INSUFFICIENT_FUNDS, data={
            'command': command,
            'cost': cost,
            'funds': self.world.funds,
        })
        return CommandResult(
            outcome=CommandOutcome.INSUFFICIENT_FUNDS,
            funds_remaining=self.world.funds,
        )

    def fire_manual(self, point: LatLng | tuple[float, float]) -> FireResult:
        """
        Fire at the target nearest to a clicked point.

        Launches from the first battery, or from the center when there is
        none.
        """
        result = fire_manual(
            self.world,
            as_latlng(point),
            self.config,
            fallback_position=self.center,
            now=self.now(),
        )
        if result.launched:
            self._record_launch(result, mode='manual')
        else:
            self._log_event(SimulationEventType.MANUAL_FIRE_FAILED, target_id=result.target_id, data={
                'outcome': result.outcome.name,
                'distance_m': result.distance_m,
            })
        return result

    def set_auto_engage(self, enabled: bool) -> None:
        """Turn automatic fire control on or off for the whole world."""
        self.auto_engage_enabled = bool(enabled)
        self._log_event(SimulationEventType.AUTO_ENGAGE_TOGGLED, data={'enabled': self.auto_engage_enabled})

    def set_battery_auto(self, battery_id: str, enabled: bool) -> CommandResult:
        """Include or exclude a single battery from automatic fire."""
        battery = self.world.get_battery(battery_id)
        if battery is None:
            return CommandResult(
                outcome=CommandOutcome.UNKNOWN_BATTERY,
                funds_remaining=self.world.funds,
            )
        battery.auto_engage = bool(enabled)
        self._log_event(SimulationEventType.AUTO_ENGAGE_TOGGLED, battery_id, data={
            'enabled': battery.auto_engage,
        })
        return CommandResult(
            outcome=CommandOutcome.OK,
            battery_ids=[battery_id],
            funds_remaining=self.world.funds,
        )

    def get_state(self) -> WorldSnapshot:
        """Read-only snapshot of all entities plus score and funds."""
        return self.world.snapshot(time=self.current_time)

    def reset(self) -> None:
        """
        Clear all entities and restore starting score and funds.

        The event log restarts with a single SIMULATION_RESET event.
        """
        self.world.clear()
        self.current_time = 0.0
        self.metrics = EngagementMetrics()
        self.events = []
        self._log_event(SimulationEventType.SIMULATION_RESET)

    # -------------------------------------------------------------------------
    # Batch running
    # -------------------------------------------------------------------------

    def run(self, duration: float, dt: Optional[float] = None) -> None:
        """
        Tick repeatedly until duration seconds have been simulated.

        Args:
            duration: Total simulated time to advance.
            dt: Step size; defaults to config.max_frame_step_s.
        """
        step = dt if dt is not None else self.config.max_frame_step_s
        if step <= 0:
            raise ValueError(f"Step must be positive, got {step}")
        end_time = self.current_time + duration
        # Small epsilon so float accumulation does not add a stray extra tick
        while self.current_time < end_time - 1e-9:
            self.tick(min(step, end_time - self.current_time))

    # -------------------------------------------------------------------------
    # Event Logging
    # -------------------------------------------------------------------------

    def add_event_callback(self, callback: Callable[[SimulationEvent], None]) -> None:
        """
        Register a callback to be called for each simulation event.

        Args:
            callback: Function that takes a SimulationEvent.
        """
        self._event_callbacks.append(callback)

    def remove_event_callback(self, callback: Callable[[SimulationEvent], None]) -> None:
        """Remove an event callback."""
        if callback in self._event_callbacks:
            self._event_callbacks.remove(callback)

    def _log_event(
        self,
        event_type: SimulationEventType,
        entity_id: Optional[str] = None,
        target_id: Optional[str] = None,
        data: Optional[dict[str, Any]] = None
    ) -> SimulationEvent:
        """Log a simulation event and notify callbacks."""
        event = SimulationEvent(
            event_type=event_type,
            timestamp=self.current_time,
            entity_id=entity_id,
            target_id=target_id,
            data=data or {},
        )
        self.events.append(event)

        for callback in self._event_callbacks:
            try:
                callback(event)
            except Exception as e:
                print(f"[SIM] Event callback error: {e}")

        return event

    def get_events_since(self, since_time: float) -> list[SimulationEvent]:
        """Get all events at or after a given time."""
        return [e for e in self.events if e.timestamp >= since_time]

    def get_events_for_entity(self, entity_id: str) -> list[SimulationEvent]:
        """Get all events that involve an entity, as subject or target."""
        return [
            e for e in self.events
            if e.entity_id == entity_id or e.target_id == entity_id
        ]

    def get_events_by_type(self, event_type: SimulationEventType) -> list[SimulationEvent]:
        """Get all events of a specific type."""
        return [e for e in self.events if e.event_type == event_type]

    # -------------------------------------------------------------------------
    # Reporting
    # -------------------------------------------------------------------------

    def format_summary(self) -> str:
        """Short text summary of score, funds and engagement metrics."""
        m = self.metrics
        kills = ", ".join(f"{kind.value}={count}" for kind, count in m.kills.items())
        lines = [
            f"Time: {m.elapsed_s:.1f}s",
            f"Score: {self.world.score}  Funds: {self.world.funds}",
            f"Missiles launched: {m.missiles_launched}  Hits: {m.hits}  Misses: {m.misses}"
            f"  Hit rate: {m.hit_rate * 100:.0f}%",
            f"Kills: {kills}  Escaped: {m.escaped}",
            f"Live: {len(self.world.targets)} targets, {len(self.world.missiles)} missiles, "
            f"{len(self.world.batteries)} batteries",
        ]
        return "\n".join(lines)


# =============================================================================
# FRAME DRIVER
# =============================================================================

class FrameDriver:
    """
    Host-side loop helper: turns wall-clock frames into clamped ticks.

    Usage:
        driver = FrameDriver(sim)
        driver.start(time.monotonic())
        while running:
            driver.frame(time.monotonic())

    Attributes:
        sim: Simulation to drive.
        max_step: Largest dt passed to a single tick.
        running: Ticks are issued only while running.
        paused: Frames are consumed but not simulated while paused.
    """

    def __init__(self, sim: AirDefenseSimulation, max_step: Optional[float] = None) -> None:
        self.sim = sim
        self.max_step = max_step if max_step is not None else sim.config.max_frame_step_s
        self.running = False
        self.paused = False
        self._last_wall_time: Optional[float] = None

    def start(self, wall_time: float) -> None:
        self.running = True
        self.paused = False
        self._last_wall_time = wall_time

    def stop(self) -> None:
        self.running = False

    def toggle_pause(self) -> bool:
        """Flip the pause state and return the new value."""
        self.paused = not self.paused
        return self.paused

    def frame(self, wall_time: float, center: Optional[LatLng] = None) -> float:
        """
        Process one rendered frame.

        Returns:
            The dt that was simulated (0 when stopped or paused).
        """
        last = self._last_wall_time if self._last_wall_time is not None else wall_time
        self._last_wall_time = wall_time
        if not self.running or self.paused:
            return 0.0
        dt = clamp_frame_dt(wall_time - last, self.max_step)
        self.sim.tick(dt, center)
        return dt
