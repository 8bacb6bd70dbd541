"""
Main entry point and game loop for the shogi viewer.

This module provides:
- Command-line parsing
- Game setup (position, CPU opponent)
- Event handling that forwards board clicks to the GameState
"""

import argparse
import logging
import random
import sys
from typing import List, Optional

import pygame

from .board import STARTING_SFEN, Position
from .game import BoardState, Event, GameOver, GameState, PieceMoved, RandomOpponent
from .piece import BLACK, WHITE
from .render import draw_game, load_piece_images, square_from_pixel
from .utils import FPS, HEIGHT, WIDTH, JAPANESE_TURN_NAME, configure_logging

logger = logging.getLogger(__name__)

CPU_SIDES = {'black': BLACK, 'white': WHITE, 'none': None}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="shogiman", description="将棋盤ビューア")
    parser.add_argument("--sfen", default=STARTING_SFEN, help="開始局面 (SFEN)")
    parser.add_argument("--cpu", choices=sorted(CPU_SIDES), default="white",
                        help="CPU が持つ手番 (none で二人対局)")
    parser.add_argument("--seed", type=int, default=None, help="CPU の乱数シード")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def setup_game(sfen: str, cpu_color: Optional[int],
               seed: Optional[int] = None) -> GameState:
    """局面と CPU を用意する。SFEN が不正なら ValueError"""
    state = GameState(BoardState(Position.from_sfen(sfen)))
    if cpu_color is not None:
        opponent = RandomOpponent(state, cpu_color, random.Random(seed))
        # CPU の手番から始まる局面ではすぐに指させる
        if state.turn == cpu_color:
            opponent.take_turn()
    return state


def _log_event(event: Event) -> None:
    if isinstance(event, PieceMoved):
        logger.info("%s: %s -> %s", event.piece, event.from_square.kifu(), event.to_square.kifu())
    elif isinstance(event, GameOver):
        logger.info("%sの勝ち (%s)", JAPANESE_TURN_NAME[event.winner], event.reason)


def main(argv: Optional[List[str]] = None) -> int:
    """メイン関数"""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        state = setup_game(args.sfen, CPU_SIDES[args.cpu], args.seed)
    except ValueError as e:
        logger.error("開始局面を読み込めません: %s", e)
        return 2
    state.subscribe(_log_event)

    pygame.init()
    screen = pygame.display.set_mode((WIDTH, HEIGHT))
    pygame.display.set_caption("将棋")
    images = load_piece_images()
    clock = pygame.time.Clock()

    running = True
    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                square = square_from_pixel(*event.pos)
                if square is None:
                    state.cancel_selection()
                else:
                    state.click(square)
        draw_game(screen, state, images)
        clock.tick(FPS)

    pygame.quit()
    return 0


if __name__ == "__main__":
    sys.exit(main())
