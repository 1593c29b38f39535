#!/usr/bin/env python3
"""
autoheal - Main Entrypoint

USAGE:
    python main.py run --config config/config.yaml
    python main.py run --config config/config.yaml --run-once
    python main.py snapshot --config config/config.yaml
"""

from __future__ import annotations

import sys
import argparse
from pathlib import Path

from autoheal.runtime.app import RunOptions, run_app


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="autoheal - Autonomous monitoring and self-healing agent",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    subparsers = parser.add_subparsers(dest='mode', help='Command')
    subparsers.required = True

    run_parser = subparsers.add_parser('run', help='Run the monitoring loop')
    run_parser.add_argument(
        '--config',
        type=str,
        default='config/config.yaml',
        help='Path to config file (default: config/config.yaml)'
    )
    run_parser.add_argument(
        '--run-once',
        action='store_true',
        help='Run one tick and exit'
    )

    snapshot_parser = subparsers.add_parser(
        'snapshot',
        help='Run one tick and print the dashboard snapshot as JSON'
    )
    snapshot_parser.add_argument(
        '--config',
        type=str,
        default='config/config.yaml',
        help='Path to config file (default: config/config.yaml)'
    )

    return parser


def main(argv=None) -> int:
    """Main CLI entrypoint."""
    args = build_parser().parse_args(argv)

    config_path = Path(args.config)
    if not config_path.exists():
        print(f"ERROR: Config file not found: {config_path}")
        print("Create config file or specify --config path")
        return 1

    opts = RunOptions(
        config_path=config_path,
        run_once=getattr(args, 'run_once', False),
        snapshot=args.mode == 'snapshot'
    )

    if args.mode == 'run' and not opts.run_once:
        print("Starting autoheal monitoring loop...")
        print(f"Config: {config_path}")
        print("Press Ctrl+C to stop")
        print("-" * 60)

    return run_app(opts)


if __name__ == '__main__':
    sys.exit(main())
