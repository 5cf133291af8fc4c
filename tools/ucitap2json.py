#!/usr/bin/env python3
"""
CLI tool for converting a UCI tap log into JSON analysis records.

Usage:
    python tools/ucitap2json.py --log uci-session.log

    python tools/ucitap2json.py \\
        --log uci-session.log \\
        --output analysis.json \\
        --emit bestmove \\
        --short-fen

    python tools/ucitap2json.py --log uci-session.log -c   # uci-session.zst

The JSON goes to the output file; progress, the summary and the count of
skipped/desynced lines go to stderr.
"""

import argparse
import logging
import sys
from pathlib import Path

from tqdm import tqdm

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from ucitap.replay import (
    EmitPolicy,
    LogReplayer,
    ReplayConfig,
    default_output_path,
    write_records,
)
from ucitap.tap.logfile import read_log


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def convert_log(args) -> int:
    """Replay the log and write the records."""
    log_path = Path(args.log)
    if not log_path.exists():
        print(f"Error: Log file not found: {log_path}", file=sys.stderr)
        return 1

    output_path = Path(args.output) if args.output else default_output_path(log_path, args.compress)

    config = ReplayConfig(emit=EmitPolicy(args.emit), short_fen=args.short_fen)
    replayer = LogReplayer(config)

    print(f"Parsing UCI log: {log_path}", file=sys.stderr)

    lines = tqdm(
        read_log(log_path),
        desc="Replaying",
        unit=" lines",
        disable=args.no_progress,
        file=sys.stderr,
    )
    records = list(replayer.replay(lines))

    stats = replayer.stats
    print(f"Parsing complete: {stats.lines:,} lines, {len(records):,} positions captured", file=sys.stderr)

    write_records(records, output_path, compress=args.compress)

    print(f"Wrote {len(records):,} positions to {output_path}", file=sys.stderr)
    print(
        f"Skipped: {stats.unrecognized} unrecognized line(s), {stats.desyncs} desync(s)",
        file=sys.stderr,
    )
    return 0


def main(argv=None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Convert a UCI tap log into JSON analysis records",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "-l",
        "--log",
        required=True,
        help="Input UCI tap log file",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output path (default: <log name>.json, or .zst with -c)",
    )
    parser.add_argument(
        "-c",
        "--compress",
        action="store_true",
        help="Compress output with zstandard",
    )
    parser.add_argument(
        "--emit",
        choices=[policy.value for policy in EmitPolicy],
        default=EmitPolicy.EVERY_PV.value,
        help="Emit a record for every info line with a pv, or one per search at bestmove",
    )
    parser.add_argument(
        "--short-fen",
        action="store_true",
        help="Emit only the first four FEN fields",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable the progress bar",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    return convert_log(args)


if __name__ == "__main__":
    sys.exit(main())
