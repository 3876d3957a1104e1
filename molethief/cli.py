"""
Command-line entry point: play an ASCII maze with the simulated oracle.

Run:
    python -m molethief solve maps/m01.txt --algorithm astar
    python -m molethief reveal maps/m03.txt --snapshot-dir maps/saves
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from .config import Config
from .controller import ExplorationController
from .logging_utils import log_error, log_info
from .oracle import RetryingOracle
from .pathfinding import ALGORITHMS, DISTANCE_METRICS, get_strategy
from .profiles import ProfileError, load_profiles, profile_for
from .runner import ExplorationRunner
from .session import GameSession
from .simulator import SimulatedOracle, SimulatedWorld, render_ascii
from .snapshots import JsonSnapshotStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="molethief", description="Explore a fog-of-war maze and collect coins.")
    commands = parser.add_subparsers(dest="command", required=True)

    def add_common(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("mapfile", type=Path, help="ASCII maze file")
        sub.add_argument("--world-id", default=Config.WORLD_ID, help="Profile/snapshot key (default: map file stem)")
        sub.add_argument("--algorithm", choices=ALGORITHMS, default=Config.ALGORITHM.lower())
        sub.add_argument("--metric", choices=sorted(DISTANCE_METRICS), default=Config.DISTANCE_METRIC)
        sub.add_argument("--snapshot-dir", type=Path, default=Config.SNAPSHOT_DIR)
        sub.add_argument("--profiles", type=Path, default=Config.PROFILES_PATH, help="Extra profiles (JSON)")

    add_common(commands.add_parser("solve", help="Collect every coin, then finish"))
    add_common(commands.add_parser("reveal", help="Walk the whole reachable map and save it"))
    return parser


async def run(args: argparse.Namespace) -> int:
    world = SimulatedWorld.load(args.mapfile)
    world_id = args.world_id or args.mapfile.stem

    profiles = load_profiles(args.profiles) if args.profiles else None
    session = GameSession(
        world_id,
        profile=profile_for(world_id, profiles),
        look_radius=Config.LOOK_RADIUS,
        move_radius=Config.MOVE_RADIUS,
        initial_bound=Config.INITIAL_BOUND,
    )
    controller = ExplorationController(
        session,
        get_strategy(args.algorithm, metric=args.metric),
        max_consecutive_rejections=Config.MAX_REJECTIONS,
    )
    oracle = RetryingOracle(
        SimulatedOracle(world, look_radius=Config.LOOK_RADIUS, move_radius=Config.MOVE_RADIUS),
        max_attempts=Config.ORACLE_RETRIES,
    )

    store = JsonSnapshotStore(args.snapshot_dir) if args.snapshot_dir else None
    if store is not None:
        await store.initialize()
    runner = ExplorationRunner(controller, oracle, snapshot_store=store)
    try:
        if args.command == "reveal":
            summary = await runner.reveal()
            print(render_ascii(session.world_map, session.position))
        else:
            summary = await runner.run()
    finally:
        if store is not None:
            await store.close()

    log_info(f"Server-side actions: {oracle.inner.actions}")
    if args.command == "solve" and not summary.finished:
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        Config.validate()
        return asyncio.run(run(args))
    except (ValueError, ProfileError, OSError) as exc:
        log_error(str(exc))
        return 2


if __name__ == "__main__":
    sys.exit(main())
