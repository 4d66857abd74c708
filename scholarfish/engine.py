"""Turn-level orchestration: one position in, one legal move out."""

from __future__ import annotations

from typing import Callable, Optional

import chess

from .config import ConfigRegistry, PipelineConfig
from .oracle import RulesOracle
from .pipeline import Decision, HeuristicPipeline, StageContext, build_default_stages
from .tactics import TacticalSimulator


class DecisionEngine:
    def __init__(
        self,
        *,
        config: Optional[PipelineConfig] = None,
        preset: str = "scholar",
        logger: Optional[Callable[[str], None]] = None,
    ) -> None:
        if config is None:
            config = ConfigRegistry.resolve(preset)
        elif not isinstance(config, PipelineConfig):
            raise TypeError("DecisionEngine expects a PipelineConfig")
        self.config = config.clamp()
        self._logger = logger or (lambda *_: None)
        self.pipeline = HeuristicPipeline(build_default_stages(self.config), logger=self._logger)

    def think(self, board: chess.Board, time_allowance: Optional[float] = None) -> chess.Move:
        """Pick the move to play from ``board``; ``board`` itself is left untouched."""
        return self.decide(board, time_allowance).move.move

    def decide(self, board: chess.Board, time_allowance: Optional[float] = None) -> Decision:
        if time_allowance is not None:
            self._logger(f"time allowance {time_allowance:.2f}s (not enforced)")
        return self.choose(RulesOracle(board.copy(stack=True)))

    def choose(self, oracle: RulesOracle) -> Decision:
        moves = tuple(oracle.legal_moves())
        assert moves, "no legal moves: game-over positions must be handled by the caller"
        context = StageContext(
            oracle=oracle,
            simulator=TacticalSimulator(oracle, check_bonus=self.config.check_bonus),
            config=self.config,
            moves=moves,
        )
        decision = self.pipeline.run(context)
        self._logger(f"decision {decision.move.uci()} by {decision.stage_name}")
        return decision
