"""Pipeline configuration presets."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, Mapping, Tuple

import chess

from .values import CHECK_BONUS


class StageToggle(Enum):
    EN_PASSANT = "en_passant"
    SAFETY = "safety"
    DEVELOPMENT = "development"
    CASTLING = "castling"
    OPENING_BOOK = "opening_book"
    PROTECTION = "protection"
    SAFE_CHECK = "safe_check"
    ENDGAME_PAWN = "endgame_pawn"
    PROMOTION = "promotion"
    CAPTURE_SCAN = "capture_scan"


ALL_STAGES: FrozenSet[StageToggle] = frozenset(StageToggle)

PREFERRED_POOL_STAGES: FrozenSet[StageToggle] = frozenset(
    {
        StageToggle.DEVELOPMENT,
        StageToggle.OPENING_BOOK,
        StageToggle.PROTECTION,
        StageToggle.SAFE_CHECK,
        StageToggle.ENDGAME_PAWN,
        StageToggle.PROMOTION,
    }
)

# Scholar's Mate, both colours: ply -> (piece type, target square name).
SCHOLARS_MATE_BOOK: Mapping[int, Tuple[int, str]] = MappingProxyType(
    {
        0: (chess.PAWN, "e4"),
        1: (chess.PAWN, "e5"),
        2: (chess.BISHOP, "c4"),
        3: (chess.BISHOP, "c5"),
        4: (chess.QUEEN, "f3"),
        5: (chess.QUEEN, "f6"),
    }
)


@dataclass(slots=True, frozen=True)
class PipelineConfig:
    opening_book: Mapping[int, Tuple[int, str]] = field(default_factory=lambda: SCHOLARS_MATE_BOOK)
    endgame_ply: int = 40
    development_pivot: int = 300
    check_bonus: int = CHECK_BONUS
    stages: FrozenSet[StageToggle] = field(default=ALL_STAGES)

    def clamp(self) -> "PipelineConfig":
        for ply, (piece_type, square) in self.opening_book.items():
            if ply < 0 or piece_type not in chess.PIECE_TYPES:
                raise ValueError(f"Invalid opening book entry {ply}: {piece_type}, {square}")
            chess.parse_square(square)
        stages = frozenset(self.stages)
        if StageToggle.SAFETY not in stages and stages & PREFERRED_POOL_STAGES:
            raise ValueError("Stages drawing on the preferred pool need the safety stage enabled")
        return replace(
            self,
            endgame_ply=max(0, int(self.endgame_ply)),
            check_bonus=max(0, int(self.check_bonus)),
            stages=stages,
        )

    def enabled(self, toggle: StageToggle) -> bool:
        return toggle in self.stages


class ConfigRegistry:
    PRESETS: Dict[str, PipelineConfig] = {
        "scholar": PipelineConfig(),
        "no_book": PipelineConfig(stages=ALL_STAGES - {StageToggle.OPENING_BOOK}),
        "cautious": PipelineConfig(
            stages=ALL_STAGES - {StageToggle.OPENING_BOOK, StageToggle.ENDGAME_PAWN},
        ),
    }

    @classmethod
    def resolve(cls, preset: str) -> PipelineConfig:
        if preset not in cls.PRESETS:
            raise ValueError(f"Unknown pipeline preset '{preset}'")
        return cls.PRESETS[preset].clamp()
