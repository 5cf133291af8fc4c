"""
Live UCI proxy ("tap").

Key Components:
    - TapConfig / load_config: engine path and log path from a JSON file
    - TapLog: append-locked, timestamped log sink
    - UciTap: engine subprocess plus the two relay threads

Data Flow:
    GUI stdin  → UciTap → engine stdin     (logged as >>)
    engine stdout → UciTap → GUI stdout    (logged as <<)
"""

from ucitap.tap.config import TapConfig, load_config
from ucitap.tap.logfile import Direction, LogLine, TapLog, parse_log_line, read_log
from ucitap.tap.proxy import UciTap

__all__ = [
    'Direction',
    'LogLine',
    'TapConfig',
    'TapLog',
    'UciTap',
    'load_config',
    'parse_log_line',
    'read_log',
]
