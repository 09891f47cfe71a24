#!/usr/bin/env python3
"""
World State for the Air Defense Simulator.

The World is the single owner of every live entity and of the score and
funds counters. Other components look entities up by id during a tick and
never keep references across ticks, since anything may be removed at a
tick boundary. All mutation goes through the methods here.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Callable, Optional

from .config import STARTING_FUNDS, STARTING_SCORE
from .entities import Battery, Explosion, Missile, Target


@dataclass(frozen=True)
class WorldSnapshot:
    """
    Read-only copy of the world after a tick.

    Entities are shallow copies; mutating them does not affect the world.
    """
    targets: tuple[Target, ...]
    missiles: tuple[Missile, ...]
    explosions: tuple[Explosion, ...]
    batteries: tuple[Battery, ...]
    score: int
    funds: int
    time: float = 0.0

    def target(self, target_id: str) -> Optional[Target]:
        return next((t for t in self.targets if t.entity_id == target_id), None)

    def battery(self, battery_id: str) -> Optional[Battery]:
        return next((b for b in self.batteries if b.entity_id == battery_id), None)


@dataclass
class World:
    """
    Authoritative entity collections plus score and funds.

    Attributes:
        targets: Live targets by id.
        missiles: Missiles by id (including ones marked for removal this tick).
        explosions: Explosions by id.
        batteries: Batteries by id, in build order.
        score: Player score.
        funds: Player funds.
    """
    starting_score: int = STARTING_SCORE
    starting_funds: int = STARTING_FUNDS
    targets: dict[str, Target] = field(default_factory=dict)
    missiles: dict[str, Missile] = field(default_factory=dict)
    explosions: dict[str, Explosion] = field(default_factory=dict)
    batteries: dict[str, Battery] = field(default_factory=dict)
    score: int = field(init=False)
    funds: int = field(init=False)

    def __post_init__(self) -> None:
        self.score = self.starting_score
        self.funds = self.starting_funds

    # -------------------------------------------------------------------------
    # Insertion and lookup
    # -------------------------------------------------------------------------

    def add_target(self, target: Target) -> Target:
        self.targets[target.entity_id] = target
        return target

    def add_missile(self, missile: Missile) -> Missile:
        self.missiles[missile.entity_id] = missile
        return missile

    def add_explosion(self, explosion: Explosion) -> Explosion:
        self.explosions[explosion.entity_id] = explosion
        return explosion

    def add_battery(self, battery: Battery) -> Battery:
        self.batteries[battery.entity_id] = battery
        return battery

    def get_target(self, target_id: str) -> Optional[Target]:
        """Get a live target by id."""
        return self.targets.get(target_id)

    def get_battery(self, battery_id: str) -> Optional[Battery]:
        return self.batteries.get(battery_id)

    def first_battery(self) -> Optional[Battery]:
        """The earliest-built battery, if any."""
        return next(iter(self.batteries.values()), None)

    def remove_target(self, target_id: str) -> Optional[Target]:
        """Remove a target immediately and mark it dead."""
        target = self.targets.pop(target_id, None)
        if target is not None:
            target.alive = False
        return target

    # -------------------------------------------------------------------------
    # Compaction
    # -------------------------------------------------------------------------

    def retain_targets(self, keep: Callable[[Target], bool]) -> list[Target]:
        """
        Drop every target for which keep() is False.

        Returns:
            The removed targets.
        """
        removed = [t for t in self.targets.values() if not keep(t)]
        for target in removed:
            self.remove_target(target.entity_id)
        return removed

    def retain_missiles(self, keep: Callable[[Missile], bool]) -> list[Missile]:
        removed = [m for m in self.missiles.values() if not keep(m)]
        for missile in removed:
            del self.missiles[missile.entity_id]
        return removed

    def retain_explosions(self, keep: Callable[[Explosion], bool]) -> list[Explosion]:
        removed = [e for e in self.explosions.values() if not keep(e)]
        for explosion in removed:
            del self.explosions[explosion.entity_id]
        return removed

    # -------------------------------------------------------------------------
    # Counters
    # -------------------------------------------------------------------------

    def award(self, score: int, funds: int) -> None:
        self.score += score
        self.funds += funds

    def can_afford(self, cost: int) -> bool:
        return self.funds >= cost

    def spend(self, cost: int) -> bool:
        """
        Deduct cost from funds if affordable.

        Returns:
            False (and funds unchanged) if there is not enough money.
        """
        if cost < 0:
            raise ValueError(f"Cost must be >= 0, got {cost}")
        if not self.can_afford(cost):
            return False
        self.funds -= cost
        return True

    # -------------------------------------------------------------------------
    # Whole-world operations
    # -------------------------------------------------------------------------

    def clear(self) -> None:
        """Remove every entity and restore the starting counters."""
        self.targets.clear()
        self.missiles.clear()
        self.explosions.clear()
        self.batteries.clear()
        self.score = self.starting_score
        self.funds = self.starting_funds

    def snapshot(self, time: float = 0.0) -> WorldSnapshot:
        """Take a read-only copy of all four collections and the counters."""
        return WorldSnapshot(
            targets=tuple(copy.copy(t) for t in self.targets.values()),
            missiles=tuple(copy.copy(m) for m in self.missiles.values()),
            explosions=tuple(copy.copy(e) for e in self.explosions.values()),
            batteries=tuple(copy.copy(b) for b in self.batteries.values()),
            score=self.score,
            funds=self.funds,
            time=time,
        )

    @property
    def entity_count(self) -> int:
        return len(self.targets) + len(self.missiles) + len(self.explosions) + len(self.batteries)
