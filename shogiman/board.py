"""
Board representation and position records for Shogi.

This module provides:
- Square value type and board iteration
- Board type definitions and utilities
- Position class (board, side to move, hands, move number)
- SFEN parsing and serialisation
"""

from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple

from .piece import (
    BLACK, WHITE, COLORS, Piece, demote_kind, piece_from_sfen, piece_to_sfen
)
from .utils import BOARD_SIZE, coords_to_kifu, coords_to_usi, in_bounds

STARTING_SFEN = "lnsgkgsnl/1r5b1/ppppppppp/9/9/9/PPPPPPPPP/1B5R1/LNSGKGSNL b - 1"

# 持ち駒の SFEN 表記順
HAND_ORDER = ['R', 'B', 'G', 'S', 'N', 'L', 'P']


class Square(NamedTuple):
    """盤上のマス。file 0 が一筋、rank 0 が一段目。"""
    file: int
    rank: int

    @staticmethod
    def iter() -> Iterator['Square']:
        for rank in range(BOARD_SIZE):
            for file in range(BOARD_SIZE):
                yield Square(file, rank)

    def offset(self, dfile: int, drank: int) -> Optional['Square']:
        """指定方向にずらしたマス。盤外なら None"""
        f, r = self.file + dfile, self.rank + drank
        return Square(f, r) if in_bounds(f, r) else None

    def kifu(self) -> str:
        return coords_to_kifu(self.file, self.rank)

    def usi(self) -> str:
        return coords_to_usi(self.file, self.rank)

    def __repr__(self) -> str:
        return self.usi()


# 型エイリアス: board[file][rank]
Board = List[List[Optional[Piece]]]


def empty_board() -> Board:
    return [[None for _ in range(BOARD_SIZE)] for __ in range(BOARD_SIZE)]


def clone_board(board: Board) -> Board:
    """Board の軽量クローン (Piece は不変なので共有してよい)"""
    return [col[:] for col in board]


class Position:
    """局面: 盤面・手番・持ち駒・手数"""

    def __init__(self, board: Optional[Board] = None, turn: int = BLACK,
                 hands: Optional[Dict[int, List[str]]] = None, move_number: int = 1):
        self.board = board if board is not None else empty_board()
        self.turn = turn
        # hands: 各手番の持ち駒種類(kind)文字列
        self.hands = hands if hands is not None else {BLACK: [], WHITE: []}
        self.move_number = move_number

    @classmethod
    def initial(cls) -> 'Position':
        return cls.from_sfen(STARTING_SFEN)

    def piece_at(self, square: Square) -> Optional[Piece]:
        return self.board[square.file][square.rank]

    def set_piece(self, square: Square, piece: Optional[Piece]) -> None:
        self.board[square.file][square.rank] = piece

    def pieces(self, color: int) -> List[Tuple[Square, Piece]]:
        """指定手番の駒とそのマスを列挙"""
        found = []
        for sq in Square.iter():
            p = self.piece_at(sq)
            if p is not None and p.owner == color:
                found.append((sq, p))
        return found

    def clone(self) -> 'Position':
        return Position(clone_board(self.board), self.turn,
                        {c: self.hands[c][:] for c in COLORS}, self.move_number)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Position):
            return NotImplemented
        return self.sfen() == other.sfen()

    def __repr__(self) -> str:
        return f"Position({self.sfen()!r})"

    # ----------------------
    # SFEN
    # ----------------------
    @classmethod
    def from_sfen(cls, sfen: str) -> 'Position':
        """SFEN 文字列から局面を生成する。不正な文字列は ValueError"""
        parts = sfen.split()
        if len(parts) != 4:
            raise ValueError(f"SFEN must have 4 fields: {sfen!r}")
        rows_text, turn_text, hands_text, number_text = parts

        rows = rows_text.split('/')
        if len(rows) != BOARD_SIZE:
            raise ValueError(f"SFEN board must have {BOARD_SIZE} ranks: {rows_text!r}")
        board = empty_board()
        for rank, row in enumerate(rows):
            _parse_sfen_row(board, rank, row)

        if turn_text not in ('b', 'w'):
            raise ValueError(f"invalid side to move: {turn_text!r}")
        turn = BLACK if turn_text == 'b' else WHITE

        hands = _parse_sfen_hands(hands_text)

        try:
            move_number = int(number_text)
        except ValueError:
            raise ValueError(f"invalid move number: {number_text!r}") from None
        if move_number < 1:
            raise ValueError(f"invalid move number: {number_text!r}")
        return cls(board, turn, hands, move_number)

    def sfen(self) -> str:
        rows = []
        for rank in range(BOARD_SIZE):
            row, empty = '', 0
            for file in range(BOARD_SIZE - 1, -1, -1):
                p = self.board[file][rank]
                if p is None:
                    empty += 1
                    continue
                if empty:
                    row += str(empty)
                    empty = 0
                row += piece_to_sfen(p)
            if empty:
                row += str(empty)
            rows.append(row)
        turn = 'b' if self.turn == BLACK else 'w'
        return f"{'/'.join(rows)} {turn} {_sfen_hands(self.hands)} {self.move_number}"


def _parse_sfen_row(board: Board, rank: int, row: str) -> None:
    """SFEN の一段分を盤面へ書き込む (九筋から一筋へ)"""
    file = BOARD_SIZE - 1
    promoted = False
    for ch in row:
        if ch == '+':
            promoted = True
            continue
        if ch.isdigit():
            if promoted:
                raise ValueError(f"'+' must precede a piece letter: {row!r}")
            file -= int(ch)
            continue
        if file < 0:
            raise ValueError(f"too many squares in rank {rank + 1}: {row!r}")
        board[file][rank] = piece_from_sfen(ch, promoted)
        promoted = False
        file -= 1
    if file != -1 or promoted:
        raise ValueError(f"rank {rank + 1} does not cover {BOARD_SIZE} files: {row!r}")


def _parse_sfen_hands(text: str) -> Dict[int, List[str]]:
    hands: Dict[int, List[str]] = {BLACK: [], WHITE: []}
    if text == '-':
        return hands
    count = ''
    for ch in text:
        if ch.isdigit():
            count += ch
            continue
        piece = piece_from_sfen(ch)
        if piece.kind == 'K':
            raise ValueError(f"king cannot be in hand: {text!r}")
        hands[piece.owner].extend([piece.kind] * (int(count) if count else 1))
        count = ''
    if count:
        raise ValueError(f"dangling count in hands: {text!r}")
    return hands


def _sfen_hands(hands: Dict[int, List[str]]) -> str:
    out = ''
    for color in COLORS:
        for kind in HAND_ORDER:
            n = sum(1 for k in hands[color] if demote_kind(k) == kind)
            if n == 0:
                continue
            letter = kind if color == BLACK else kind.lower()
            out += f"{n if n > 1 else ''}{letter}"
    return out or '-'


def count_kings(position: Position) -> Dict[int, int]:
    """各手番の玉の枚数 (局面の妥当性チェック用)"""
    counts = {BLACK: 0, WHITE: 0}
    for sq in Square.iter():
        p = position.piece_at(sq)
        if p is not None and p.kind == 'K':
            counts[p.owner] += 1
    return counts

