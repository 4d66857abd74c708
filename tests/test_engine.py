import chess
import pytest

from scholarfish.config import ALL_STAGES, ConfigRegistry, PipelineConfig, StageToggle
from scholarfish.engine import DecisionEngine
from scholarfish.oracle import RulesOracle
from scholarfish.pipeline import OpeningBookStage
from scholarfish.tactics import TacticalSimulator

EN_PASSANT_FEN = "rnbqkbnr/ppp1pppp/8/3pP3/8/8/PPPP1PPP/RNBQKBNR w KQkq d6 0 3"
TWO_CAPTURES_FEN = "4r2k/8/8/2R5/8/B7/5PPP/2r3K1 w - - 0 30"


@pytest.mark.parametrize(
    "fen",
    [
        chess.STARTING_FEN,
        EN_PASSANT_FEN,
        TWO_CAPTURES_FEN,
        "r3k2r/pppppppp/8/8/8/8/PPPPPPPP/R3K2R w KQkq - 0 10",
        "4k3/8/8/5p2/4N3/8/8/4K3 w - - 0 30",
        "r1bqkb1r/pppp1ppp/2n2n2/4p2Q/2B1P3/8/PPPP1PPP/RNB1K1NR w KQkq - 4 4",
    ],
)
def test_think_returns_legal_move_and_leaves_board_untouched(fen: str) -> None:
    board = chess.Board(fen)
    before = board.fen()
    move = DecisionEngine().think(board, 1.0)
    assert move in board.legal_moves
    assert board.fen() == before
    assert not board.move_stack


def test_think_takes_mate_in_one() -> None:
    board = chess.Board("r1bqkb1r/pppp1ppp/2n2n2/4p2Q/2B1P3/8/PPPP1PPP/RNB1K1NR w KQkq - 4 4")
    move = DecisionEngine().think(board)
    board.push(move)
    assert board.is_checkmate()


def test_back_rank_mate_found() -> None:
    decision = DecisionEngine().decide(chess.Board("6k1/5ppp/8/8/8/5Q2/5PPP/6K1 w - - 0 1"))
    assert decision.move.uci() == "f3a8"
    assert decision.stage_name == "CaptureScanStage"


@pytest.mark.parametrize("preset", sorted(ConfigRegistry.PRESETS))
def test_en_passant_is_mandatory(preset: str) -> None:
    decision = DecisionEngine(preset=preset).decide(chess.Board(EN_PASSANT_FEN))
    assert decision.move.uci() == "e5d6"
    assert decision.stage_name == "EnPassantStage"


@pytest.mark.parametrize(
    "moves,expected",
    [
        ([], "e2e4"),
        (["e2e4"], "e7e5"),
        (["e2e4", "e7e5"], "f1c4"),
    ],
)
def test_opening_book_follows_scholars_mate(moves: list, expected: str) -> None:
    board = chess.Board()
    for uci in moves:
        board.push_uci(uci)
    decision = DecisionEngine().decide(board)
    assert decision.move.uci() == expected
    assert decision.stage_name == "OpeningBookStage"


def test_no_book_preset_skips_opening_stage() -> None:
    engine = DecisionEngine(preset="no_book")
    assert not any(isinstance(stage, OpeningBookStage) for stage in engine.pipeline.stages())
    decision = engine.decide(chess.Board())
    assert decision.stage_name != "OpeningBookStage"


def test_endgame_pawn_push_after_ply_forty() -> None:
    late = DecisionEngine().decide(chess.Board("7k/8/8/1p6/3n4/8/8/7K b - - 0 23"))
    assert late.move.uci() == "b5b4"
    assert late.stage_name == "EndgamePawnStage"

    early = DecisionEngine().decide(chess.Board("7k/8/8/1p6/3n4/8/8/7K b - - 0 20"))
    assert early.move.moving_piece == chess.KNIGHT

    cautious = DecisionEngine(preset="cautious").decide(chess.Board("7k/8/8/1p6/3n4/8/8/7K b - - 0 23"))
    assert cautious.move.moving_piece == chess.KNIGHT


def test_never_plays_capture_that_allows_mate() -> None:
    board = chess.Board(TWO_CAPTURES_FEN)
    assert {move.uci() for move in board.legal_moves} == {"c5c1", "a3c1"}

    oracle = RulesOracle(board.copy())
    simulator = TacticalSimulator(oracle)
    hanging = next(m for m in oracle.legal_moves() if m.uci() == "a3c1")
    assert simulator.allows_mate_in_one_after(hanging)

    assert DecisionEngine().think(board).uci() == "c5c1"


def test_castles_when_available() -> None:
    decision = DecisionEngine().decide(chess.Board("r3k2r/pppppppp/8/8/8/8/PPPPPPPP/R3K2R w KQkq - 0 10"))
    assert decision.move.is_castle
    assert decision.stage_name == "CastlingStage"


def test_promotes_to_queen() -> None:
    decision = DecisionEngine().decide(chess.Board("8/P7/8/8/8/2k5/8/7K w - - 0 10"))
    assert decision.move.uci() == "a7a8q"
    assert decision.stage_name == "PromotionStage"


def test_promotion_not_overridden_by_quiet_check() -> None:
    decision = DecisionEngine().decide(chess.Board("8/P7/8/7k/8/8/8/K2R4 w - - 0 10"))
    assert decision.move.uci() == "a7a8q"
    assert decision.stage_name == "PromotionStage"


def test_decisions_are_deterministic() -> None:
    board = chess.Board("r3k2r/pppq1ppp/2n2n2/3pp3/3PP3/2N2N2/PPPQ1PPP/R3K2R w KQkq - 0 8")
    engine = DecisionEngine()
    assert engine.think(board) == engine.think(board)
    assert DecisionEngine().think(board) == engine.think(board)


def test_game_over_position_fails_loudly() -> None:
    with pytest.raises(AssertionError):
        DecisionEngine().think(chess.Board("7k/5Q2/6K1/8/8/8/8/8 b - - 0 1"))


def test_engine_logs_decision() -> None:
    messages = []
    DecisionEngine(logger=messages.append).think(chess.Board(), 2.5)
    assert any("time allowance 2.50s" in message for message in messages)
    assert any(message.startswith("decision e2e4") for message in messages)


def test_config_validation() -> None:
    with pytest.raises(ValueError):
        ConfigRegistry.resolve("missing")
    with pytest.raises(TypeError):
        DecisionEngine(config="scholar")  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        PipelineConfig(stages=ALL_STAGES - {StageToggle.SAFETY}).clamp()
    with pytest.raises(ValueError):
        PipelineConfig(opening_book={0: (chess.PAWN, "z9")}).clamp()


def test_custom_config_limits_stages() -> None:
    config = PipelineConfig(stages=frozenset({StageToggle.EN_PASSANT, StageToggle.CAPTURE_SCAN}))
    engine = DecisionEngine(config=config)
    assert [stage.name for stage in engine.pipeline.stages()] == ["EnPassantStage", "CaptureScanStage"]
    board = chess.Board()
    assert engine.think(board) == next(iter(board.legal_moves))


@pytest.mark.slow
def test_self_play_stays_legal() -> None:
    board = chess.Board()
    engine = DecisionEngine()
    for _ in range(40):
        if board.is_game_over():
            break
        move = engine.think(board)
        assert move in board.legal_moves
        board.push(move)
