"""
Board and piece drawing for the shogi viewer.

This module provides:
- Screen geometry (pixel <-> square picking)
- Sprite naming and piece image loading
- Board, highlight, piece and status drawing
"""

import logging
import os
from typing import Dict, Optional, Tuple

import pygame

from .board import Square
from .game import GameState
from .piece import BLACK, Piece, JAPANESE_PIECE_NAMES
from .utils import (
    BOARD_SIZE, SQUARE, BOARD_PIXEL_WIDTH, BOARD_PIXEL_HEIGHT, BOARD_START_X,
    BOARD_START_Y, COORD_MARGIN, WINDOW_PADDING_X, PIECE_SIZE, PIECE_OFFSET,
    BLACK as BLACK_RGB, WHITE as WHITE_RGB, BLUE, GREEN, RED, TATAMI_GREEN,
    DARK_BROWN, BOARD_COLOR, JAPANESE_Y_COORDS, JAPANESE_TURN_NAME, sprite_path
)

logger = logging.getLogger(__name__)

# スプライト名 (先頭の数字は手番)
SPRITE_CODES = {
    'K': 'OU', 'R': 'HI', 'B': 'KA', 'G': 'KI', 'S': 'GI', 'N': 'KE', 'L': 'KY', 'P': 'FU',
    'R+': 'RY', 'B+': 'UM', 'S+': 'NG', 'N+': 'NK', 'L+': 'NY', 'P+': 'TO',
}

RESULT_NAMES = {'checkmate': '詰み', 'stalemate': '手詰まり'}

PieceImages = Dict[Tuple[str, int], pygame.Surface]

_fonts: Dict[int, pygame.font.Font] = {}


def _font(size: int) -> pygame.font.Font:
    """フォントを取得する（pygame.init()後に呼び出す）"""
    if size not in _fonts:
        _fonts[size] = pygame.font.SysFont("MS Mincho", size)
    return _fonts[size]


def piece_sprite_name(piece: Piece) -> str:
    """駒に対応するスプライトのファイル名 (例: 先手の歩 -> '0FU.svg')"""
    return f"{piece.owner}{SPRITE_CODES[piece.kind]}.svg"


def square_to_screen(square: Square) -> Tuple[int, int]:
    """マスの左上のピクセル座標。先手を手前に表示するので九筋が左端"""
    col = BOARD_SIZE - 1 - square.file
    return BOARD_START_X + col * SQUARE, BOARD_START_Y + square.rank * SQUARE


def square_rect(square: Square) -> pygame.Rect:
    x, y = square_to_screen(square)
    return pygame.Rect(x, y, SQUARE, SQUARE)


def square_from_pixel(mx: int, my: int) -> Optional[Square]:
    """クリック位置のマス。盤外なら None"""
    if mx < BOARD_START_X or my < BOARD_START_Y:
        return None
    col, rank = (mx - BOARD_START_X) // SQUARE, (my - BOARD_START_Y) // SQUARE
    if col >= BOARD_SIZE or rank >= BOARD_SIZE:
        return None
    return Square(BOARD_SIZE - 1 - col, rank)


def load_piece_images() -> PieceImages:
    """駒画像を読み込む。読み込めない駒は文字で描画する"""
    images: PieceImages = {}
    for kind in SPRITE_CODES:
        for owner in (0, 1):
            path = os.path.join(sprite_path, piece_sprite_name(Piece(kind, owner)))
            try:
                img = pygame.image.load(path)
            except (pygame.error, FileNotFoundError) as e:
                logger.debug("駒画像の読み込みに失敗しました: %s - %s", path, e)
                continue
            images[(kind, owner)] = pygame.transform.smoothscale(img, (PIECE_SIZE, PIECE_SIZE))
    if not images:
        logger.info("駒画像が見つからないため文字で表示します (%s)", sprite_path)
    return images


def draw_board(screen) -> None:
    """盤面をプログラムで描画"""
    margin_rect = pygame.Rect(WINDOW_PADDING_X, BOARD_START_Y - COORD_MARGIN,
                              BOARD_PIXEL_WIDTH + COORD_MARGIN * 2,
                              BOARD_PIXEL_HEIGHT + COORD_MARGIN * 2)
    pygame.draw.rect(screen, BOARD_COLOR, margin_rect)

    for i in range(BOARD_SIZE + 1):
        line_width = 2 if i in [0, BOARD_SIZE] else 1
        pygame.draw.line(screen, BLACK_RGB,
                         (BOARD_START_X + i * SQUARE, BOARD_START_Y),
                         (BOARD_START_X + i * SQUARE, BOARD_START_Y + BOARD_PIXEL_HEIGHT),
                         line_width)
        pygame.draw.line(screen, BLACK_RGB,
                         (BOARD_START_X, BOARD_START_Y + i * SQUARE),
                         (BOARD_START_X + BOARD_PIXEL_WIDTH, BOARD_START_Y + i * SQUARE),
                         line_width)

    # 座標表示 (上に筋、右に段)
    font = _font(24)
    for i in range(BOARD_SIZE):
        num_text = font.render(str(BOARD_SIZE - i), True, BLACK_RGB)
        screen.blit(num_text,
                    (BOARD_START_X + i * SQUARE + (SQUARE - num_text.get_width()) // 2,
                     BOARD_START_Y - COORD_MARGIN))
        kanji_text = font.render(JAPANESE_Y_COORDS[i], True, BLACK_RGB)
        screen.blit(kanji_text,
                    (BOARD_START_X + BOARD_PIXEL_WIDTH + 5,
                     BOARD_START_Y + i * SQUARE + (SQUARE - kanji_text.get_height()) // 2))


def draw_piece(screen, piece: Piece, square: Square, images: PieceImages) -> None:
    x, y = square_to_screen(square)
    img = images.get((piece.kind, piece.owner))
    if img:
        screen.blit(img, (x + PIECE_OFFSET, y + PIECE_OFFSET))
        return
    # 画像がない場合は駒名を描く (後手は逆さま)
    name = JAPANESE_PIECE_NAMES[piece.kind]
    surf = _font(28 if len(name) == 1 else 18).render(name, True, RED if piece.promoted else BLACK_RGB)
    if piece.owner != BLACK:
        surf = pygame.transform.rotate(surf, 180)
    screen.blit(surf, surf.get_rect(center=(x + SQUARE // 2, y + SQUARE // 2)))


def draw_status(screen, state: GameState) -> None:
    if state.game_over and state.winner is not None:
        text = f"{RESULT_NAMES.get(state.result or '', '')} {JAPANESE_TURN_NAME[state.winner]}の勝利"
    else:
        text = f"手数: {len(state.kifu)}  手番: {JAPANESE_TURN_NAME[state.turn]}"
        if state.kifu:
            text += f"  直前: {state.kifu[-1]}"
    surf = _font(20).render(text, True, WHITE_RGB)
    screen.blit(surf, (WINDOW_PADDING_X, BOARD_START_Y + BOARD_PIXEL_HEIGHT + COORD_MARGIN + 10))


def draw_game(screen, state: GameState, images: PieceImages) -> None:
    """ゲーム要素を描画"""
    screen.fill(TATAMI_GREEN)
    draw_board(screen)

    # 直前の指し手・選択マス・合法手のハイライト
    if state.last_move_target is not None:
        pygame.draw.rect(screen, DARK_BROWN, square_rect(state.last_move_target), 2)
    if state.selected is not None:
        pygame.draw.rect(screen, BLUE, square_rect(state.selected[1]), 3)
    board_state = state.board_state
    for target in state.move_targets:
        color = RED if board_state.piece_at(target) else GREEN
        pygame.draw.rect(screen, color, square_rect(target), 3)

    for sq in Square.iter():
        p = board_state.piece_at(sq)
        if p:
            draw_piece(screen, p, sq, images)

    draw_status(screen, state)
    pygame.display.flip()
