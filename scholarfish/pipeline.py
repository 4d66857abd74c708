"""Heuristic stages and the pipeline that threads them.

Stages run in a fixed order. Each one looks at the legal moves (and any
sub-pool an earlier stage computed) and may propose a move; a proposal
overwrites the currently selected move, so later stages win. A definitive
proposal ends the turn immediately.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import chess

from .config import PipelineConfig, StageToggle
from .oracle import MoveInfo, RulesOracle, parse_square
from .tactics import TacticalSimulator
from .values import NONE, capture_value, piece_value


# ---------------------------------------------------------------------------
# Context and result models
# ---------------------------------------------------------------------------


@dataclass
class StageContext:
    oracle: RulesOracle
    simulator: TacticalSimulator
    config: PipelineConfig
    moves: Tuple[MoveInfo, ...]
    preferred: Optional[Tuple[MoveInfo, ...]] = None

    @property
    def ply(self) -> int:
        return self.oracle.ply_count()

    def preferred_pool(self) -> Tuple[MoveInfo, ...]:
        assert self.preferred is not None, "preferred pool requested before the safety stage ran"
        return self.preferred

    def attacked(self, square: chess.Square) -> bool:
        return self.oracle.square_attacked_by_opponent(square)


@dataclass
class StageResult:
    move: MoveInfo
    stage_name: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    definitive: bool = False


@dataclass
class Decision:
    move: MoveInfo
    stage_name: str
    trace: Tuple[StageResult, ...] = ()


class HeuristicStage(ABC):
    toggle: StageToggle

    def __init__(self, *, name: Optional[str] = None) -> None:
        self.name = name or self.__class__.__name__

    def is_applicable(self, context: StageContext) -> bool:
        return True

    @abstractmethod
    def propose(self, context: StageContext) -> Optional[StageResult]:
        ...

    def _result(self, move: Optional[MoveInfo], *, definitive: bool = False, **metadata: Any) -> Optional[StageResult]:
        if move is None:
            return None
        return StageResult(move=move, stage_name=self.name, metadata=metadata, definitive=definitive)


def _first(moves: Iterable[MoveInfo]) -> Optional[MoveInfo]:
    return next(iter(moves), None)


# ---------------------------------------------------------------------------
# Stages, in pipeline order
# ---------------------------------------------------------------------------


class EnPassantStage(HeuristicStage):
    toggle = StageToggle.EN_PASSANT

    def propose(self, context: StageContext) -> Optional[StageResult]:
        move = _first(m for m in context.moves if m.is_en_passant)
        return self._result(move, definitive=True, pattern="en_passant")


class SafetyFilterStage(HeuristicStage):
    """Builds the preferred pool every later quiet-move stage draws from."""

    toggle = StageToggle.SAFETY

    def propose(self, context: StageContext) -> Optional[StageResult]:
        pivot = context.config.development_pivot
        sound = [move for move in context.moves if self._is_sound(context, move)]
        sound.sort(key=lambda move: abs(piece_value(move.moving_piece) - pivot))
        context.preferred = tuple(sound)
        return self._result(_first(context.preferred), pool=len(sound))

    @staticmethod
    def _is_sound(context: StageContext, move: MoveInfo) -> bool:
        simulator = context.simulator
        return (
            (move.moving_piece != chess.KING or move.is_castle)
            and not context.attacked(move.target)
            and move.promotion in (NONE, chess.QUEEN)
            and not simulator.is_draw_after(move)
            and not simulator.allows_mate_in_one_after(move)
            and not simulator.is_sacrifice(move)
        )


class DevelopmentStage(HeuristicStage):
    toggle = StageToggle.DEVELOPMENT

    def propose(self, context: StageContext) -> Optional[StageResult]:
        white = context.oracle.white_to_move()

        def on_start_rows(square: chess.Square) -> bool:
            rank = chess.square_rank(square)
            return rank <= 1 if white else rank >= 6

        move = _first(
            m for m in context.preferred_pool() if on_start_rows(m.start) and not on_start_rows(m.target)
        )
        return self._result(move)


class CastlingStage(HeuristicStage):
    toggle = StageToggle.CASTLING

    def propose(self, context: StageContext) -> Optional[StageResult]:
        return self._result(_first(m for m in context.moves if m.is_castle))


class OpeningBookStage(HeuristicStage):
    toggle = StageToggle.OPENING_BOOK

    def is_applicable(self, context: StageContext) -> bool:
        return context.ply in context.config.opening_book

    def propose(self, context: StageContext) -> Optional[StageResult]:
        piece_type, square_name = context.config.opening_book[context.ply]
        target = parse_square(square_name)
        move = _first(
            m for m in context.preferred_pool() if m.moving_piece == piece_type and m.target == target
        )
        return self._result(move, ply=context.ply)


class ProtectionStage(HeuristicStage):
    """Moves a threatened, undefended piece somewhere it survives or trades evenly."""

    toggle = StageToggle.PROTECTION

    def propose(self, context: StageContext) -> Optional[StageResult]:
        protected: Dict[chess.Square, bool] = {}

        def needs_rescue(square: chess.Square) -> bool:
            if not context.attacked(square):
                return False
            if square not in protected:
                protected[square] = context.simulator.is_protected(square)
            return not protected[square]

        rescues = [
            m
            for m in context.moves
            if needs_rescue(m.start)
            and (not context.attacked(m.target) or capture_value(m) >= piece_value(m.moving_piece))
        ]
        if not rescues:
            return None
        preferred = set(context.preferred_pool())
        move = _first(m for m in rescues if m in preferred) or rescues[0]
        return self._result(move, candidates=len(rescues))


class SafeCheckStage(HeuristicStage):
    toggle = StageToggle.SAFE_CHECK

    def propose(self, context: StageContext) -> Optional[StageResult]:
        return self._result(_first(m for m in context.preferred_pool() if context.simulator.is_check_after(m)))


class EndgamePawnStage(HeuristicStage):
    toggle = StageToggle.ENDGAME_PAWN

    def is_applicable(self, context: StageContext) -> bool:
        return context.ply > context.config.endgame_ply

    def propose(self, context: StageContext) -> Optional[StageResult]:
        move = _first(
            m for m in context.preferred_pool() if m.moving_piece == chess.PAWN and not context.attacked(m.target)
        )
        return self._result(move)


class PromotionStage(HeuristicStage):
    toggle = StageToggle.PROMOTION

    def propose(self, context: StageContext) -> Optional[StageResult]:
        return self._result(_first(m for m in context.preferred_pool() if m.promotion == chess.QUEEN))


class CaptureScanStage(HeuristicStage):
    """Last word: an immediate mate, else the best capture that is not a sacrifice."""

    toggle = StageToggle.CAPTURE_SCAN

    def propose(self, context: StageContext) -> Optional[StageResult]:
        simulator = context.simulator
        best = 0
        chosen: Optional[MoveInfo] = None
        for move in context.moves:
            if simulator.is_checkmate_after(move):
                return self._result(move, definitive=True, pattern="mate_in_one")
            improved, best = simulator.good_capture(move, best)
            if improved and not simulator.is_sacrifice(move):
                chosen = move
        return self._result(chosen, score=best)


STAGE_ORDER: Tuple[type, ...] = (
    EnPassantStage,
    SafetyFilterStage,
    DevelopmentStage,
    CastlingStage,
    OpeningBookStage,
    ProtectionStage,
    SafeCheckStage,
    EndgamePawnStage,
    PromotionStage,
    CaptureScanStage,
)


def build_default_stages(config: PipelineConfig) -> List[HeuristicStage]:
    return [stage_cls() for stage_cls in STAGE_ORDER if config.enabled(stage_cls.toggle)]


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class HeuristicPipeline:
    def __init__(
        self,
        stages: Optional[Iterable[HeuristicStage]] = None,
        *,
        logger: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._stages: List[HeuristicStage] = []
        self._logger = logger or (lambda *_: None)
        for stage in stages or ():
            self.register(stage)

    def register(self, stage: HeuristicStage) -> None:
        self._stages.append(stage)
        self._logger(f"stage registered: {stage.name}")

    def stages(self) -> Tuple[HeuristicStage, ...]:
        return tuple(self._stages)

    def run(self, context: StageContext) -> Decision:
        assert context.moves, "pipeline needs at least one legal move"
        selected = context.moves[0]
        selected_by = "default"
        trace: List[StageResult] = []

        for stage in self._stages:
            if not stage.is_applicable(context):
                continue
            result = stage.propose(context)
            if result is None:
                continue
            trace.append(result)
            if result.move != selected:
                self._logger(f"stage {stage.name} selected {result.move.uci()}")
            selected = result.move
            selected_by = stage.name
            if result.definitive:
                break

        return Decision(move=selected, stage_name=selected_by, trace=tuple(trace))
