"""Public package interface for the ScholarFish engine."""

from .config import ConfigRegistry, PipelineConfig, StageToggle
from .engine import DecisionEngine
from .oracle import MoveInfo, RulesOracle, parse_square
from .pipeline import Decision, HeuristicPipeline, HeuristicStage, StageContext, StageResult
from .tactics import TacticalSimulator
from .values import CHECK_BONUS, PIECE_VALUES, piece_value

__all__ = [
    "CHECK_BONUS",
    "ConfigRegistry",
    "Decision",
    "DecisionEngine",
    "HeuristicPipeline",
    "HeuristicStage",
    "MoveInfo",
    "PIECE_VALUES",
    "PipelineConfig",
    "RulesOracle",
    "StageContext",
    "StageResult",
    "StageToggle",
    "TacticalSimulator",
    "parse_square",
    "piece_value",
]
