"""UCI front end for the ScholarFish decision engine."""

from __future__ import annotations

import argparse
import sys
from typing import Callable, Dict, Optional, Sequence

import chess

from .config import ConfigRegistry
from .engine import DecisionEngine


class UciSession:
    def __init__(self, *, preset: str = "scholar") -> None:
        self.engine_name = "ScholarFish"
        self.engine_author = "ScholarFish Project"
        self.board = chess.Board()
        self.running = True
        self.debug = False
        self.engine = DecisionEngine(preset=preset, logger=self._log)

        self._handlers: Dict[str, Callable[[str], None]] = {
            "uci": self.handle_uci,
            "isready": self.handle_isready,
            "ucinewgame": self.handle_ucinewgame,
            "position": self.handle_position,
            "go": self.handle_go,
            "debug": self.handle_debug,
            "quit": self.handle_quit,
            "stop": lambda _: None,
        }

    def start(self) -> None:
        _ensure_line_buffered_stdout()
        while self.running:
            command = sys.stdin.readline()
            if not command:
                break
            command = command.strip()
            if not command:
                continue
            self.dispatch(command)
            sys.stdout.flush()

    def dispatch(self, command: str) -> None:
        parts = command.split(" ", 1)
        name = parts[0].lower()
        args = parts[1] if len(parts) > 1 else ""
        handler = self._handlers.get(name, self.handle_unknown)
        handler(args)

    def handle_uci(self, _: str = "") -> None:
        print(f"id name {self.engine_name}")
        print(f"id author {self.engine_author}")
        print("uciok")

    def handle_isready(self, _: str) -> None:
        print("readyok")

    def handle_ucinewgame(self, _: str) -> None:
        self.board.reset()

    def handle_position(self, args: str) -> None:
        setup, _, played = args.partition(" moves")
        source = setup.split()
        if not source:
            return

        if source[0] == "startpos":
            board = chess.Board()
        elif source[0] == "fen":
            fen = " ".join(source[1:7])
            try:
                board = chess.Board(fen)
            except ValueError:
                print(f"info string Invalid FEN received: {fen}")
                return
        else:
            print(f"info string Unsupported position command: {args}")
            return

        for text in played.split():
            try:
                board.push_uci(text)
            except ValueError:
                print(f"info string Illegal move in position command: {text}")
                break
        self.board = board

    def handle_go(self, args: str) -> None:
        if self.board.is_game_over():
            print("bestmove (none)")
            return
        time_controls = self._parse_go_args(args)
        move = self.engine.think(self.board, self._time_allowance(time_controls))
        print(f"bestmove {move.uci()}")

    def handle_debug(self, args: str) -> None:
        setting = args.strip().lower()
        if setting == "on":
            self.debug = True
        elif setting == "off":
            self.debug = False
        else:
            print("info string debug expects 'on' or 'off'")
            return
        self._log(f"Debug set to {self.debug}")

    def handle_quit(self, _: str) -> None:
        self.running = False
        print("info string ScholarFish shutting down")

    def handle_unknown(self, args: str) -> None:
        print(f"info string Unknown command: {args}")

    def _parse_go_args(self, args: str) -> Dict[str, int]:
        parsed: Dict[str, int] = {}
        iterator = iter(args.split())
        for token in iterator:
            key = token.lower()
            if key in {"wtime", "btime", "winc", "binc", "movestogo", "movetime"}:
                try:
                    parsed[key] = int(next(iterator))
                except (StopIteration, ValueError):
                    continue
        return parsed

    def _time_allowance(self, time_controls: Dict[str, int]) -> Optional[float]:
        clock = "wtime" if self.board.turn == chess.WHITE else "btime"
        millis = time_controls.get("movetime", time_controls.get(clock))
        return None if millis is None else millis / 1000.0

    def _log(self, message: str) -> None:
        if not self.debug:
            return
        for line in message.splitlines():
            print(f"info string {line}")


def _ensure_line_buffered_stdout() -> None:
    # Replies must reach the host one line at a time.
    reconfigure = getattr(sys.stdout, "reconfigure", None)
    if reconfigure is not None and not sys.stdout.line_buffering:
        reconfigure(line_buffering=True)


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="ScholarFish UCI engine")
    parser.add_argument(
        "--preset",
        default="scholar",
        choices=sorted(ConfigRegistry.PRESETS),
        help="Pipeline preset to load",
    )
    args = parser.parse_args(list(argv) if argv is not None else None)
    UciSession(preset=args.preset).start()


if __name__ == "__main__":
    main(sys.argv[1:])
