"""Static material values used by every heuristic stage."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

import chess

# python-chess has no "no piece" constant; 0 is never a valid piece type.
NONE = 0

PIECE_VALUES: Mapping[int, int] = MappingProxyType(
    {
        NONE: 0,
        chess.PAWN: 100,
        chess.KNIGHT: 300,
        chess.BISHOP: 300,
        chess.ROOK: 500,
        chess.QUEEN: 900,
        chess.KING: 10000,
    }
)

# Added to a capture that gives check and cannot be recaptured.
CHECK_BONUS = 50


def piece_value(piece_type: int) -> int:
    return PIECE_VALUES.get(piece_type, 0)


def capture_value(move) -> int:
    """Raw material gained by ``move`` (0 for quiet moves)."""
    return piece_value(move.captured_piece)
