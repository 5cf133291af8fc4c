"""
JSON writer for replay output.

Writes the records as one pretty-printed JSON array, optionally compressed
with zstandard at the maximum level.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Union

import zstandard

from ucitap.replay.replayer import OutputRecord

logger = logging.getLogger(__name__)

ZSTD_LEVEL = 22


def default_output_path(log_path: Union[str, Path], compress: bool = False) -> Path:
    """
    Output file name derived from the log name, in the working directory.

    uci-session.log → uci-session.json (or uci-session.zst)
    """
    stem = Path(log_path).stem
    return Path(f"{stem}.zst" if compress else f"{stem}.json")


def records_to_json(records: Iterable[OutputRecord]) -> bytes:
    """Serialize records as a pretty-printed UTF-8 JSON array."""
    payload = [record.to_dict() for record in records]
    return json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")


def write_records(
    records: Iterable[OutputRecord],
    output_path: Union[str, Path],
    compress: bool = False,
) -> int:
    """
    Write records to a JSON (or .zst) file.

    Args:
        records: Records to write
        output_path: Destination file
        compress: Compress with zstandard

    Returns:
        Number of bytes written
    """
    output_path = Path(output_path)
    data = records_to_json(records)
    logger.info(f"Serialized {len(data):,} bytes of JSON")

    if compress:
        logger.info(f"Compressing JSON (level {ZSTD_LEVEL})")
        data = zstandard.ZstdCompressor(level=ZSTD_LEVEL).compress(data)

    if output_path.parent != Path("."):
        output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(data)

    logger.info(f"Wrote {output_path} ({len(data):,} bytes)")
    return len(data)


def load_records(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """
    Read a converter output file back (.zst files are decompressed).

    Returns:
        The JSON array as a list of dicts
    """
    path = Path(path)
    data = path.read_bytes()
    if path.suffix == ".zst":
        data = zstandard.ZstdDecompressor().decompress(data)
    return json.loads(data.decode("utf-8"))
