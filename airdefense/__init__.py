"""Air defense simulation engine package."""

from .config import (
    GameConfig,
    TargetKind,
    TargetProfile,
    BatteryProfile,
    load_game_config,
    load_game_data,
)

from .geomath import (
    LatLng,
    haversine_distance,
    haversine_many,
    displace,
    planar_bearing,
    random_point_around,
)

from .entities import (
    # Enums
    EntityKind,
    MissileState,
    # Entities
    Entity,
    Target,
    Missile,
    Explosion,
    Battery,
    # Per-kind tables
    initial_hit_points,
    target_priority,
    target_reward,
)

from .world import World, WorldSnapshot

from .firecontrol import (
    FireOutcome,
    FireResult,
    launch,
    fire_manual,
    auto_engage,
    select_priority_target,
)

from .simulation import (
    AirDefenseSimulation,
    CommandOutcome,
    CommandResult,
    EngagementMetrics,
    FrameDriver,
    SimulationEvent,
    SimulationEventType,
    clamp_frame_dt,
)

from .spawner import spawn_random_target, spawn_random_wave

__all__ = [
    # Config
    "GameConfig",
    "TargetKind",
    "TargetProfile",
    "BatteryProfile",
    "load_game_config",
    "load_game_data",
    # Geometry
    "LatLng",
    "haversine_distance",
    "haversine_many",
    "displace",
    "planar_bearing",
    "random_point_around",
    # Entities
    "EntityKind",
    "MissileState",
    "Entity",
    "Target",
    "Missile",
    "Explosion",
    "Battery",
    "initial_hit_points",
    "target_priority",
    "target_reward",
    # World
    "World",
    "WorldSnapshot",
    # Fire control
    "FireOutcome",
    "FireResult",
    "launch",
    "fire_manual",
    "auto_engage",
    "select_priority_target",
    # Simulation
    "AirDefenseSimulation",
    "CommandOutcome",
    "CommandResult",
    "EngagementMetrics",
    "FrameDriver",
    "SimulationEvent",
    "SimulationEventType",
    "clamp_frame_dt",
    # Spawning
    "spawn_random_target",
    "spawn_random_wave",
]
