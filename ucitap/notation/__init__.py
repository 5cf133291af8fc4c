"""
Notation Converter

Coordinate moves (the engine's wire format) to SAN (what people read).

Key Components:
    - to_algebraic: one legal Move → SAN
    - convert_pv: a whole principal variation → list of SAN, or PositionDesync
    - resolve_algebraic: SAN → the unique legal Move it names
"""

from ucitap.notation.san import (
    convert_pv,
    find_legal_move,
    parse_coordinate_move,
    resolve_algebraic,
    to_algebraic,
)

__all__ = [
    'convert_pv',
    'find_legal_move',
    'parse_coordinate_move',
    'resolve_algebraic',
    'to_algebraic',
]
