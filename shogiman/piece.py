"""
Piece values, movement patterns, and piece-related constants for Shogi.

This module defines:
- Colour constants for the two sides
- Piece value type (kind + owner)
- Movement patterns for all 14 piece kinds
- Promotion maps and SFEN letter conversion
"""

from typing import Dict, List, NamedTuple, Tuple

BLACK = 0  # 先手
WHITE = 1  # 後手
COLORS = (BLACK, WHITE)


def opponent(color: int) -> int:
    """相手の手番を返す"""
    return 1 - color


class Piece(NamedTuple):
    """駒 (不変値)。kind は 'P' や 'R+' のような駒種、owner は手番。"""
    kind: str
    owner: int

    @property
    def promoted(self) -> bool:
        return self.kind.endswith('+')

    def promote(self) -> 'Piece':
        return Piece(PROMOTE_MAP[self.kind], self.owner)

    def demote(self) -> 'Piece':
        return Piece(demote_kind(self.kind), self.owner)

    def __repr__(self) -> str:
        return f"{self.kind}{'S' if self.owner == BLACK else 'G'}"


ALL_KINDS = ['K', 'R', 'B', 'G', 'S', 'N', 'L', 'P', 'R+', 'B+', 'S+', 'N+', 'L+', 'P+']

# 駒の移動パターン定義 (先手から見た向き。dy=-1 が前)
STEP_MOVES: Dict[str, List[Tuple[int, int]]] = {
    'K': [(-1, -1), (0, -1), (1, -1), (-1, 0), (1, 0), (-1, 1), (0, 1), (1, 1)],
    'G': [(-1, -1), (0, -1), (1, -1), (-1, 0), (1, 0), (0, 1)],
    'S': [(-1, -1), (0, -1), (1, -1), (-1, 1), (1, 1)],
    'N': [(-1, -2), (1, -2)],
    'P': [(0, -1)],
    'P+': [(-1, -1), (0, -1), (1, -1), (-1, 0), (1, 0), (0, 1)],
    'L+': [(-1, -1), (0, -1), (1, -1), (-1, 0), (1, 0), (0, 1)],
    'N+': [(-1, -1), (0, -1), (1, -1), (-1, 0), (1, 0), (0, 1)],
    'S+': [(-1, -1), (0, -1), (1, -1), (-1, 0), (1, 0), (0, 1)],
    'B+': [(-1, 0), (1, 0), (0, -1), (0, 1)],
    'R+': [(-1, -1), (1, -1), (-1, 1), (1, 1)],
}

# スライド移動の方向 (龍・馬は一歩の動きと合わせて使う)
SLIDER_DIRS: Dict[str, List[Tuple[int, int]]] = {
    'R': [(0, -1), (0, 1), (-1, 0), (1, 0)],
    'B': [(-1, -1), (-1, 1), (1, -1), (1, 1)],
    'L': [(0, -1)],
    'R+': [(0, -1), (0, 1), (-1, 0), (1, 0)],
    'B+': [(-1, -1), (-1, 1), (1, -1), (1, 1)],
}

# 成りと戻しのマッピング
PROMOTE_MAP = {'P': 'P+', 'L': 'L+', 'N': 'N+', 'S': 'S+', 'B': 'B+', 'R': 'R+'}
DEMOTE_MAP = {v: k for k, v in PROMOTE_MAP.items()}

# 駒の日本語名
JAPANESE_PIECE_NAMES = {
    'K': '玉', 'R': '飛', 'B': '角', 'G': '金', 'S': '銀', 'N': '桂', 'L': '香', 'P': '歩',
    'R+': '龍', 'B+': '馬', 'S+': '成銀', 'N+': '成桂', 'L+': '成香', 'P+': 'と',
}


def demote_kind(kind: str) -> str:
    """駒種を元の形に戻す（成り駒→成る前の駒）"""
    return DEMOTE_MAP.get(kind, kind)


def piece_to_sfen(piece: Piece) -> str:
    """駒を SFEN の文字に変換 (先手は大文字、成り駒は '+' 前置)"""
    base = demote_kind(piece.kind)
    letter = base if piece.owner == BLACK else base.lower()
    return f"+{letter}" if piece.promoted else letter


def piece_from_sfen(letter: str, promoted: bool = False) -> Piece:
    """SFEN の文字から駒を生成"""
    kind = letter.upper()
    if kind not in STEP_MOVES and kind not in SLIDER_DIRS:
        raise ValueError(f"unknown piece letter: {letter!r}")
    if promoted:
        if kind not in PROMOTE_MAP:
            raise ValueError(f"piece cannot be promoted: {letter!r}")
        kind = PROMOTE_MAP[kind]
    return Piece(kind, BLACK if letter.isupper() else WHITE)
