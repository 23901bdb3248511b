"""
Command-line entry point for the workout log server.

Usage:
    workout-log-server --port 3000 --data data/exercises.json
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from aiohttp import web

from ..config import WorkoutLogConfig
from .app import create_app
from .repository import ExerciseRepository

logger = logging.getLogger(__name__)


def build_parser(config: WorkoutLogConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Workout Log - remote authority server",
        epilog="Accepts entries and sync batches from offline workout log clients.",
    )
    parser.add_argument(
        "--host",
        default=config.server_host,
        help=f"Bind address (default: {config.server_host})",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=config.server_port,
        help=f"Port to listen on (default: {config.server_port})",
    )
    parser.add_argument(
        "--data",
        type=Path,
        default=Path(config.server_data_path),
        help=f"JSON file holding accepted entries (default: {config.server_data_path})",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML settings file (default: ~/.workout-log/settings.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    # Settings file path has to be known before the other defaults
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", type=Path, default=None)
    known, _ = pre.parse_known_args(argv)

    config = WorkoutLogConfig.load(known.config)
    args = build_parser(config).parse_args(argv)

    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s  %(message)s")

    repository = ExerciseRepository(args.data)
    logger.info(f"Workout log server running at http://{args.host}:{args.port} (data: {args.data})")
    web.run_app(create_app(repository), host=args.host, port=args.port, print=None)


if __name__ == "__main__":
    main()
