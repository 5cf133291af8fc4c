"""
Log replay and record output.

Key Components:
    - LogReplayer: single forward pass over a tap log
    - OutputRecord: one analysed position (engine, fen, ply, score, mate, ...)
    - write_records / load_records: JSON array on disk, optionally zstd

Data Flow:
    tap log → read_log() → LogReplayer.replay() → OutputRecords → write_records()
"""

from ucitap.replay.replayer import (
    EmitPolicy,
    LogReplayer,
    OutputRecord,
    ReplayConfig,
    ReplayState,
    ReplayStats,
)
from ucitap.replay.output import (
    default_output_path,
    load_records,
    records_to_json,
    write_records,
)

__all__ = [
    'EmitPolicy',
    'LogReplayer',
    'OutputRecord',
    'ReplayConfig',
    'ReplayState',
    'ReplayStats',
    'default_output_path',
    'load_records',
    'records_to_json',
    'write_records',
]
