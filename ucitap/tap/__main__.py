"""
Main entry point for running the UCI tap proxy.

Usage:
    python -m ucitap.tap [--config config.json]

Register this command as the engine in your GUI. The GUI talks to the real
engine (named in the config) exactly as before, and every line is appended
to the configured log file.
"""

import argparse
import logging
import sys
from pathlib import Path

from ucitap.errors import ConfigError, IoFailure, SpawnError
from ucitap.tap.config import DEFAULT_CONFIG_PATH, load_config
from ucitap.tap.logfile import TapLog
from ucitap.tap.proxy import UciTap


def setup_logger(debug=False):
    """
    Setup file-based logger for proxy diagnostics.

    stdout belongs to the GUI, so diagnostics go to ~/.ucitap/ucitap.log.

    Args:
        debug: If True, log at DEBUG level; otherwise INFO level

    Returns:
        Configured logger instance
    """
    log_dir = Path.home() / ".ucitap"
    log_dir.mkdir(exist_ok=True)
    log_file = log_dir / "ucitap.log"

    logger = logging.getLogger("ucitap")
    logger.setLevel(logging.DEBUG if debug else logging.INFO)

    logger.handlers.clear()

    handler = logging.FileHandler(log_file, mode='a')
    formatter = logging.Formatter(
        '%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%H:%M:%S'
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


def main(argv=None) -> int:
    """Run the proxy and return the process exit status."""
    parser = argparse.ArgumentParser(
        description="Transparent UCI proxy that logs GUI/engine traffic",
    )
    parser.add_argument(
        "--config",
        default=str(DEFAULT_CONFIG_PATH),
        help="Path to the JSON config file (default: config.json)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Verbose diagnostics in ~/.ucitap/ucitap.log",
    )
    args = parser.parse_args(argv)

    try:
        logger = setup_logger(debug=args.debug)
    except OSError as e:
        print(f"Warning: diagnostics log unavailable: {e}", file=sys.stderr)
        logger = logging.getLogger("ucitap")

    logger.info("=== ucitap started ===")

    try:
        config = load_config(args.config)
    except ConfigError as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        tap_log = TapLog.open(config.logfile)
    except IoFailure as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 2

    with tap_log:
        proxy = UciTap([config.engine], tap_log)
        try:
            exit_code = proxy.run()
        except SpawnError as e:
            logger.error(str(e))
            print(f"Error: {e}", file=sys.stderr)
            return 2
        except IoFailure as e:
            logger.error(f"Session aborted: {e}")
            return 1

    logger.info(f"=== ucitap stopped ({tap_log.lines_written} lines logged) ===")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
