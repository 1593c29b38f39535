"""
Process entrypoint logic behind the CLI.

MODES:
- run:      start the loop and block until SIGINT/SIGTERM
- run-once: execute exactly one tick and exit
- snapshot: execute one tick and print the dashboard snapshot as JSON
"""

import json
import signal
import sys
from dataclasses import dataclass
from pathlib import Path
from threading import Event
from typing import TextIO

from autoheal.config import ConfigLoader, load_config
from autoheal.errors import ConfigurationError
from autoheal.logging import get_logger, setup_logging, LogStream
from autoheal.runtime.bootstrap import build_loop


logger = get_logger(LogStream.SYSTEM)


@dataclass
class RunOptions:
    config_path: Path
    run_once: bool = False
    snapshot: bool = False


def run(opts: RunOptions, out: TextIO = sys.stdout) -> int:
    config = load_config(opts.config_path.parent, opts.config_path.name)

    setup_logging(
        log_dir=config.logging.log_dir,
        log_level=config.logging.log_level.value,
        console_level=config.logging.console_level.value,
        json_logs=config.logging.json_logs,
        max_bytes=config.logging.max_bytes,
        backup_count=config.logging.backup_count
    )
    logger.info("Configuration loaded", extra={
        "config": ConfigLoader.scrub_secrets(config.model_dump(mode="json"))
    })

    loop = build_loop(config)

    if opts.snapshot or opts.run_once:
        ok = loop.tick()
        loop.dispatcher.stop()
        if opts.snapshot:
            json.dump(loop.snapshot().to_dict(), out, indent=2, default=str)
            out.write("\n")
        return 0 if ok else 1

    stop_requested = Event()

    def _stop(_sig, _frame):
        stop_requested.set()

    signal.signal(signal.SIGINT, _stop)
    signal.signal(signal.SIGTERM, _stop)

    loop.start()
    try:
        stop_requested.wait()
    finally:
        loop.stop()

    return 0


def run_app(opts: RunOptions, out: TextIO = sys.stdout) -> int:
    """
    Public entrypoint used by the CLI and tests. Returns an exit code.
    0 = success / completed
    1 = configuration error, failed tick or runtime failure
    """
    try:
        return run(opts, out)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.exception("Fatal error in run_app: %s", e)
        return 1
