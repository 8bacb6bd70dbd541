"""
Game rules, move validation, and move generation for Shogi.

This module provides:
- Move value type and the IllegalMove error
- Legal destination generation for all piece types
- Check detection
- Promotion rules (promotion zones, mandatory promotion)
- The RulesOracle interface and its default StandardRules implementation

Drops are not generated; captured pieces only accumulate in hand.
"""

import logging
from typing import List, NamedTuple, Optional, Protocol, Set

from .board import Board, Position, Square
from .piece import (
    BLACK, Piece, STEP_MOVES, SLIDER_DIRS, PROMOTE_MAP, JAPANESE_PIECE_NAMES,
    demote_kind, opponent
)
from .utils import BOARD_SIZE, in_bounds

logger = logging.getLogger(__name__)

# 成り域の定義 (rank)
PROMOTION_ZONE = {0: range(0, 3), 1: range(6, 9)}


class Move(NamedTuple):
    """盤上の指し手 (打ち駒は扱わない)"""
    from_square: Square
    to_square: Square
    promote: bool = False

    def usi(self) -> str:
        return f"{self.from_square.usi()}{self.to_square.usi()}{'+' if self.promote else ''}"

    def __repr__(self) -> str:
        return f"Move({self.usi()})"


class IllegalMove(ValueError):
    """ルール上指せない手"""

    def __init__(self, move: Move, reason: str):
        super().__init__(f"illegal move {move.usi()}: {reason}")
        self.move = move
        self.reason = reason


def _sign_for_owner(owner: int) -> int:
    """プレイヤーの向きに応じた符号を返す"""
    return 1 if owner == BLACK else -1


def _add_step_moves(board: Board, x: int, y: int, owner: int,
                    kind: str, moves: List[Square]) -> None:
    """ステップ移動の手を追加"""
    for dx, dy in STEP_MOVES.get(kind, []):
        nx, ny = x + dx, y + dy * _sign_for_owner(owner)
        if not in_bounds(nx, ny):
            continue
        target = board[nx][ny]
        if target is None or target.owner != owner:
            moves.append(Square(nx, ny))


def _add_slider_moves(board: Board, x: int, y: int, owner: int,
                      kind: str, moves: List[Square]) -> None:
    """スライド移動の手を追加"""
    for dx, dy in SLIDER_DIRS.get(kind, []):
        actual_dy = dy * _sign_for_owner(owner)
        nx, ny = x + dx, y + actual_dy
        while in_bounds(nx, ny):
            target = board[nx][ny]
            if target is None:
                moves.append(Square(nx, ny))
            else:
                if target.owner != owner:
                    moves.append(Square(nx, ny))
                break
            nx, ny = nx + dx, ny + actual_dy


def find_king(board: Board, owner: int) -> Optional[Square]:
    """王の位置を探す"""
    for x in range(BOARD_SIZE):
        for y in range(BOARD_SIZE):
            p = board[x][y]
            if p and p.kind == 'K' and p.owner == owner:
                return Square(x, y)
    return None


def generate_moves_no_check(board: Board, square: Square) -> List[Square]:
    """王手チェックなしの移動可能先を生成"""
    p = board[square.file][square.rank]
    if p is None:
        return []
    moves: List[Square] = []
    _add_step_moves(board, square.file, square.rank, p.owner, p.kind, moves)
    _add_slider_moves(board, square.file, square.rank, p.owner, p.kind, moves)
    return moves


def is_in_check(board: Board, owner: int) -> bool:
    """王手状態かチェック"""
    king_pos = find_king(board, owner)
    if king_pos is None:
        return False
    enemy = opponent(owner)
    for x in range(BOARD_SIZE):
        for y in range(BOARD_SIZE):
            p = board[x][y]
            if p and p.owner == enemy:
                if king_pos in generate_moves_no_check(board, Square(x, y)):
                    return True
    return False


def must_promote(kind: str, owner: int, to_rank: int) -> bool:
    """必須成りの判定 (行き所のない駒)"""
    if kind in ['P', 'L']:
        return (owner == BLACK and to_rank == 0) or (owner != BLACK and to_rank == 8)
    if kind == 'N':
        return (owner == BLACK and to_rank <= 1) or (owner != BLACK and to_rank >= 7)
    return False


def can_promote(kind: str, owner: int, from_rank: int, to_rank: int) -> bool:
    """任意成りの判定"""
    return (kind in PROMOTE_MAP and
            (to_rank in PROMOTION_ZONE[owner] or from_rank in PROMOTION_ZONE[owner]))


def generate_moves(board: Board, square: Square) -> List[Square]:
    """合法な移動先を生成（王手放置チェック付き）"""
    piece = board[square.file][square.rank]
    if piece is None:
        return []
    valid: List[Square] = []
    for to in generate_moves_no_check(board, square):
        # 仮移動して自玉に王手がかからないか確認し、差し戻す
        captured = board[to.file][to.rank]
        board[to.file][to.rank] = piece
        board[square.file][square.rank] = None
        illegal = is_in_check(board, piece.owner)
        board[square.file][square.rank] = piece
        board[to.file][to.rank] = captured
        if not illegal:
            valid.append(to)
    return valid


def legal_moves(position: Position, color: int) -> List[Move]:
    """指定手番の全ての合法手を取得 (成れる手は成・不成の両方)"""
    moves: List[Move] = []
    for sq, p in position.pieces(color):
        for to in generate_moves(position.board, sq):
            if not must_promote(p.kind, p.owner, to.rank):
                moves.append(Move(sq, to, False))
            if can_promote(p.kind, p.owner, sq.rank, to.rank):
                moves.append(Move(sq, to, True))
    return moves


def default_promotion(piece: Piece, to_square: Square) -> bool:
    """成り選択を扱わない場合の既定値: 必須のときだけ成る"""
    return must_promote(piece.kind, piece.owner, to_square.rank)


class RulesOracle(Protocol):
    """合法手の判定と適用を担うルールエンジンのインターフェース"""

    def legal_destinations(self, position: Position, square: Square,
                           piece: Piece) -> Set[Square]:
        ...

    def apply_move(self, position: Position, move: Move) -> Optional[Piece]:
        ...


class StandardRules:
    """本将棋ルールによる RulesOracle の既定実装"""

    def legal_destinations(self, position: Position, square: Square,
                           piece: Piece) -> Set[Square]:
        if position.piece_at(square) != piece:
            return set()
        return set(generate_moves(position.board, square))

    def validate(self, position: Position, move: Move) -> Piece:
        """手を検証し、動かす駒を返す。指せない手は IllegalMove"""
        piece = position.piece_at(move.from_square)
        if piece is None:
            raise IllegalMove(move, "no piece on origin square")
        if move.to_square not in generate_moves(position.board, move.from_square):
            raise IllegalMove(move, f"{JAPANESE_PIECE_NAMES[piece.kind]} cannot reach destination")
        if move.promote and not can_promote(piece.kind, piece.owner,
                                            move.from_square.rank, move.to_square.rank):
            raise IllegalMove(move, "promotion not allowed")
        if not move.promote and must_promote(piece.kind, piece.owner, move.to_square.rank):
            raise IllegalMove(move, "promotion is mandatory")
        return piece

    def apply_move(self, position: Position, move: Move) -> Optional[Piece]:
        """手を適用し、取った駒を返す。検証に失敗した場合局面は変更しない"""
        piece = self.validate(position, move)
        captured = position.piece_at(move.to_square)
        if captured is not None:
            position.hands[piece.owner].append(demote_kind(captured.kind))
        position.set_piece(move.to_square, piece.promote() if move.promote else piece)
        position.set_piece(move.from_square, None)
        position.turn = opponent(position.turn)
        position.move_number += 1
        logger.debug("applied %s -> %s", move.usi(), position.sfen())
        return captured
