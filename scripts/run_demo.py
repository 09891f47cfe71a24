#!/usr/bin/env python3
"""
Run a headless air defense scenario and print the event log.

Usage:
    python scripts/run_demo.py --duration 120 --waves 8 --verbose
    python scripts/run_demo.py --seed 7 --manual-fire --upgrade

Environment (also read from a .env file):
    AIRDEFENSE_DATA   Path to an alternative game-data JSON file
    AIRDEFENSE_SEED   Default random seed
"""

import argparse
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

# Add repository root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from airdefense import (
    AirDefenseSimulation,
    FrameDriver,
    LatLng,
    SimulationEventType,
    load_game_config,
    spawn_random_wave,
)


# Events printed without --verbose
KEY_EVENTS = {
    SimulationEventType.TARGET_DESTROYED,
    SimulationEventType.TARGET_LEFT_AREA,
    SimulationEventType.BATTERY_BUILT,
    SimulationEventType.BATTERY_UPGRADED,
    SimulationEventType.INSUFFICIENT_FUNDS,
}


def main():
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Run a headless air defense scenario",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python scripts/run_demo.py --duration 120 --waves 8
    python scripts/run_demo.py --seed 3 --extra-batteries 1 --upgrade --verbose
        """,
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=90.0,
        help="Simulated seconds to run (default: 90)",
    )
    parser.add_argument(
        "--waves",
        type=int,
        default=6,
        help="Number of random waves, spread evenly over the run (default: 6)",
    )
    parser.add_argument(
        "--step",
        type=float,
        default=None,
        help="Frame interval in seconds before clamping (default: config max step)",
    )
    parser.add_argument(
        "--center",
        type=float,
        nargs=2,
        metavar=("LAT", "LNG"),
        default=(50.45, 30.52),
        help="Center of interest (default: 50.45 30.52)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=int(os.getenv("AIRDEFENSE_SEED", "42")),
        help="Random seed (default: $AIRDEFENSE_SEED or 42)",
    )
    parser.add_argument(
        "--data",
        default=None,
        help="Game-data JSON file (default: $AIRDEFENSE_DATA or bundled data)",
    )
    parser.add_argument(
        "--extra-batteries",
        type=int,
        default=0,
        help="Batteries to buy near the center at start",
    )
    parser.add_argument(
        "--upgrade",
        action="store_true",
        help="Spend funds on a battery-wide upgrade whenever affordable",
    )
    parser.add_argument(
        "--manual-fire",
        action="store_true",
        help="Also fire manually at the center once per wave",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Print every event",
    )

    args = parser.parse_args()

    try:
        config = load_game_config(args.data)
    except (OSError, ValueError) as e:
        print(f"Error loading game data: {e}")
        sys.exit(1)

    center = LatLng(*args.center)
    sim = AirDefenseSimulation.create_default(center=center, config=config, seed=args.seed)

    def print_event(event):
        if args.verbose or event.event_type in KEY_EVENTS:
            print(f"  {event}")

    sim.add_event_callback(print_event)

    for i in range(args.extra_batteries):
        offset = center.moved(5_000.0, 360.0 * i / max(1, args.extra_batteries))
        result = sim.build_battery(offset)
        if not result.ok:
            print(f"Could not build battery {i + 1}: {result.outcome.name}")

    sim.set_auto_engage(True)

    print("=" * 60)
    print(f"AIR DEFENSE DEMO | center {center} | seed {args.seed}")
    print("=" * 60)

    frame_dt = args.step if args.step is not None else config.max_frame_step_s
    if frame_dt <= 0:
        print("Error: --step must be positive")
        sys.exit(1)
    driver = FrameDriver(sim)
    wall_time = 0.0
    driver.start(wall_time)

    wave_interval = args.duration / max(1, args.waves)
    next_wave = 0.0
    waves_sent = 0

    while sim.current_time < args.duration:
        if waves_sent < args.waves and sim.current_time >= next_wave:
            spawned = spawn_random_wave(sim)
            waves_sent += 1
            next_wave += wave_interval
            kinds = ", ".join(t.target_kind.value for t in spawned)
            print(f"T+{sim.current_time:.1f}s wave {waves_sent}: {kinds}")
            if args.manual_fire:
                result = sim.fire_manual(center)
                print(f"  manual fire: {result.outcome.name}")

        if args.upgrade and sim.world.funds >= config.upgrade_cost:
            sim.upgrade_all_batteries()

        wall_time += frame_dt
        driver.frame(wall_time)

    print()
    print("=" * 60)
    print(sim.format_summary())
    print("=" * 60)


if __name__ == "__main__":
    main()
