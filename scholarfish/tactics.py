"""One-ply tactical lookahead.

Every query plays a move on the oracle's board, looks at the result and takes
the move back before returning. Queries nest at most one level deep: a reply
scan runs inside the simulation of our own candidate move.
"""

from __future__ import annotations

from typing import Tuple

import chess

from .oracle import MoveInfo, RulesOracle
from .values import CHECK_BONUS, capture_value, piece_value


class TacticalSimulator:
    def __init__(self, oracle: RulesOracle, *, check_bonus: int = CHECK_BONUS) -> None:
        self.oracle = oracle
        self.check_bonus = check_bonus

    def is_checkmate_after(self, move: MoveInfo) -> bool:
        with self.oracle.applied(move) as oracle:
            return oracle.is_checkmate()

    def is_check_after(self, move: MoveInfo) -> bool:
        with self.oracle.applied(move) as oracle:
            return oracle.is_check()

    def is_draw_after(self, move: MoveInfo) -> bool:
        with self.oracle.applied(move) as oracle:
            return oracle.is_draw()

    def allows_mate_in_one_after(self, move: MoveInfo) -> bool:
        with self.oracle.applied(move) as oracle:
            return any(self.is_checkmate_after(reply) for reply in oracle.legal_moves())

    def capture_score(self, move: MoveInfo) -> int:
        """Signed material score of ``move`` for the side to move.

        A capture on a square the opponent attacks is assumed to be recaptured,
        so the mover's own value is subtracted. Otherwise a capture that also
        gives check earns ``check_bonus``.
        """
        score = capture_value(move)
        if self.oracle.square_attacked_by_opponent(move.target):
            score -= piece_value(move.moving_piece)
        elif move.is_capture and self.is_check_after(move):
            score += self.check_bonus
        return score

    def good_capture(self, move: MoveInfo, best: int) -> Tuple[bool, int]:
        """Fold step over a capture scan.

        Returns ``(improved, new_best)``; ``new_best`` is the running maximum to
        hand to the next call.
        """
        score = self.capture_score(move)
        if score > best:
            return True, score
        return False, best

    def is_sacrifice(self, move: MoveInfo) -> bool:
        taken = capture_value(move)
        with self.oracle.applied(move) as oracle:
            for reply in oracle.legal_moves():
                improved, best = self.good_capture(reply, 0)
                if improved and best > taken:
                    return True
        return False

    def is_protected(self, square: chess.Square) -> bool:
        """True when our piece on ``square`` is defended.

        The adversary is handed the tempo with a null move; from its point of
        view the square is then "attacked by the opponent" exactly when we
        defend it. If the null move is refused (we are in check) the square is
        treated as protected.
        """
        with self.oracle.skipped_turn() as skipped:
            if not skipped:
                return True
            return self.oracle.square_attacked_by_opponent(square)
