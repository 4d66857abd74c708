"""Rules oracle backed by python-chess.

The decision pipeline never touches ``chess.Board`` directly. Everything it
needs from the rules of chess goes through :class:`RulesOracle`: legal move
generation, make/undo, check/mate/draw queries, attack queries and the
null-move "pass turn" check. Make/undo pairs are exposed as context managers
so a simulation is always unwound, including on early returns.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, List

import chess

from .values import NONE


def parse_square(name: str) -> chess.Square:
    return chess.parse_square(name)


@dataclass(slots=True, frozen=True)
class MoveInfo:
    start: chess.Square
    target: chess.Square
    moving_piece: int
    captured_piece: int = NONE
    promotion: int = NONE
    is_castle: bool = False
    is_en_passant: bool = False
    move: chess.Move = field(default=chess.Move.null(), compare=False, repr=False)

    @property
    def is_capture(self) -> bool:
        return self.captured_piece != NONE

    def uci(self) -> str:
        return self.move.uci()


class RulesOracle:
    def __init__(self, board: chess.Board) -> None:
        self.board = board

    def describe(self, move: chess.Move) -> MoveInfo:
        board = self.board
        moving = board.piece_type_at(move.from_square)
        assert moving is not None, f"no piece on {chess.square_name(move.from_square)}"
        en_passant = board.is_en_passant(move)
        if en_passant:
            captured = chess.PAWN
        else:
            captured = board.piece_type_at(move.to_square) or NONE
        return MoveInfo(
            start=move.from_square,
            target=move.to_square,
            moving_piece=moving,
            captured_piece=captured,
            promotion=move.promotion or NONE,
            is_castle=board.is_castling(move),
            is_en_passant=en_passant,
            move=move,
        )

    def legal_moves(self) -> List[MoveInfo]:
        return [self.describe(move) for move in self.board.legal_moves]

    # ---------- make / undo ----------

    def apply(self, move: MoveInfo) -> None:
        self.board.push(move.move)

    def undo(self, move: MoveInfo) -> None:
        popped = self.board.pop()
        assert popped == move.move, f"undo mismatch: expected {move.uci()}, popped {popped.uci()}"

    @contextmanager
    def applied(self, move: MoveInfo) -> Iterator["RulesOracle"]:
        self.apply(move)
        try:
            yield self
        finally:
            self.undo(move)

    def try_skip_turn(self) -> bool:
        if self.board.is_check():
            return False
        self.board.push(chess.Move.null())
        return True

    def undo_skip_turn(self) -> None:
        popped = self.board.pop()
        assert not popped, f"undo mismatch: expected null move, popped {popped.uci()}"

    @contextmanager
    def skipped_turn(self) -> Iterator[bool]:
        skipped = self.try_skip_turn()
        try:
            yield skipped
        finally:
            if skipped:
                self.undo_skip_turn()

    # ---------- queries ----------

    def is_check(self) -> bool:
        return self.board.is_check()

    def is_checkmate(self) -> bool:
        return self.board.is_checkmate()

    def is_draw(self) -> bool:
        board = self.board
        return (
            board.is_stalemate()
            or board.is_insufficient_material()
            or board.halfmove_clock >= 100
            or board.is_repetition(2)
        )

    def square_attacked_by_opponent(self, square: chess.Square) -> bool:
        return self.board.is_attacked_by(not self.board.turn, square)

    def ply_count(self) -> int:
        return self.board.ply()

    def white_to_move(self) -> bool:
        return self.board.turn == chess.WHITE
