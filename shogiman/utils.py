"""
Constants, coordinate helpers and logging setup for the shogi viewer.

This module provides:
- Board geometry and display constants
- Colour definitions
- Asset path setup
- Coordinate conversion utilities
- Logging configuration
"""

import logging
import os
import sys
from typing import Tuple

# --- パス設定 ---
if hasattr(sys, "_MEIPASS"):
    # PyInstaller 展開ディレクトリ
    from typing import cast
    base_path = cast(str, getattr(sys, "_MEIPASS"))
else:
    base_path = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

assets_path = os.path.join(base_path, "assets")
sprite_path = os.path.join(assets_path, "sprites")

# 盤面の基本設定
BOARD_SIZE = 9
DEFAULT_SCALE = 32.0

# 画面レイアウト
SQUARE = 64
BOARD_PIXEL_WIDTH = SQUARE * BOARD_SIZE
BOARD_PIXEL_HEIGHT = SQUARE * BOARD_SIZE
COORD_MARGIN = 30
WINDOW_PADDING_X = 50
WINDOW_PADDING_Y = 50
STATUS_HEIGHT = 40

WIDTH = BOARD_PIXEL_WIDTH + WINDOW_PADDING_X * 2 + COORD_MARGIN * 2
HEIGHT = BOARD_PIXEL_HEIGHT + WINDOW_PADDING_Y * 2 + COORD_MARGIN * 2 + STATUS_HEIGHT

BOARD_START_X = WINDOW_PADDING_X + COORD_MARGIN
BOARD_START_Y = WINDOW_PADDING_Y + COORD_MARGIN

PIECE_SIZE = 60
PIECE_OFFSET = (SQUARE - PIECE_SIZE) // 2
FPS = 60

# 色の定義
WHITE = (223, 235, 234)
BLACK = (20, 20, 20)
GREEN = (120, 255, 120)
RED = (255, 80, 80)
BLUE = (120, 160, 255)
TATAMI_GREEN = (140, 164, 138)
DARK_BROWN = (50, 44, 40)
BOARD_COLOR = (187, 155, 82)

# 座標系と表示関連
JAPANESE_Y_COORDS = ['一', '二', '三', '四', '五', '六', '七', '八', '九']
USI_RANKS = 'abcdefghi'
JAPANESE_TURN_SYMBOL = {0: '▲', 1: '△'}
JAPANESE_TURN_NAME = {0: '先手', 1: '後手'}

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


def in_bounds(file: int, rank: int) -> bool:
    """座標が盤面内かチェック"""
    return 0 <= file < BOARD_SIZE and 0 <= rank < BOARD_SIZE


def coords_to_kifu(file: int, rank: int) -> str:
    """盤上座標を棋譜記法に変換 (file=6, rank=5 -> '7六')"""
    return f"{file + 1}{JAPANESE_Y_COORDS[rank]}"


def coords_to_usi(file: int, rank: int) -> str:
    return f"{file + 1}{USI_RANKS[rank]}"


def cell_to_world(file: int, rank: int, scale: float = DEFAULT_SCALE) -> Tuple[float, float]:
    """マスの中心をワールド座標へ変換。盤の中心が原点、y軸は上向き。

    file=8, rank=8 の角のマスは (-4 * scale, -4 * scale) になる。
    """
    cell_size = scale / 2
    x = (8 - file) * scale - scale * BOARD_SIZE / 2 + cell_size
    y = (8 - rank) * scale - scale * BOARD_SIZE / 2 + cell_size
    return x, y


def configure_logging(level: str = "WARNING") -> None:
    """ルートロガーを設定する（起動時に一度だけ呼び出す）"""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.WARNING),
                        format=LOG_FORMAT)
