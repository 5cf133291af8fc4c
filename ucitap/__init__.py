"""
ucitap - UCI Traffic Tap

A transparent proxy that sits between a chess GUI and a UCI engine, logging
every protocol line in both directions, plus an offline converter that replays
those logs into structured analysis records.

## Architecture

The package is organized into several key modules:

1. **board**: Immutable position model
   - FEN parsing and formatting
   - Legal move generation and move application (python-chess underneath)

2. **notation**: Move notation conversion
   - Coordinate moves (e2e4) to SAN (e4, Nf3, exd5, O-O)
   - Principal variation conversion with fail-soft desync handling

3. **uci**: UCI protocol line parser
   - Tagged event model with an explicit Unrecognized arm

4. **replay**: Log replay
   - Single forward pass over a tap log producing OutputRecords
   - JSON / zstd output

5. **tap**: The live proxy
   - Engine subprocess, two relay threads, append-locked log

## Quick Start

### As a Proxy

Point the GUI at `python -m ucitap.tap --config config.json`, where
`config.json` contains:

```json
{"engine": "/usr/bin/stockfish", "logfile": "uci.log"}
```

### Converting a Log

```bash
python tools/ucitap2json.py --log uci.log
```

### As a Python Library

```python
from ucitap.board import Position
from ucitap.notation import convert_pv

position = Position.initial()
print(convert_pv(position, ["e2e4", "e7e5", "g1f3"]))  # ['e4', 'e5', 'Nf3']
```

## Version

0.1.0
"""

__version__ = "0.1.0"
__license__ = "MIT"

from ucitap.board import Position, Move
from ucitap.notation import to_algebraic, convert_pv
from ucitap.uci import parse
from ucitap.replay import LogReplayer, OutputRecord

__all__ = [
    'Position',
    'Move',
    'to_algebraic',
    'convert_pv',
    'parse',
    'LogReplayer',
    'OutputRecord',
]
