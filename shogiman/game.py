"""
Game state management, selection handling and the CPU player for Shogi.

This module provides:
- BoardState adapter wrapping a Position and a rules oracle
- Events delivered to the presentation layer (PieceMoved, TurnChanged, GameOver)
- GameState class: piece selection, move targets, turn changes and game end
- RandomOpponent: a CPU player choosing uniformly random legal moves
"""

import logging
import random
from collections import deque
from typing import Callable, Deque, List, NamedTuple, Optional, Set, Tuple, Union

from .board import Position, Square, count_kings
from .piece import WHITE, Piece, JAPANESE_PIECE_NAMES, opponent
from .rules import (
    IllegalMove, Move, RulesOracle, StandardRules, can_promote, default_promotion,
    is_in_check
)
from .utils import DEFAULT_SCALE, JAPANESE_TURN_NAME, JAPANESE_TURN_SYMBOL, cell_to_world

logger = logging.getLogger(__name__)


class NoLegalMoves(RuntimeError):
    """指定手番に動かせる駒が一つもない"""

    def __init__(self, color: int):
        super().__init__(f"no legal moves for {JAPANESE_TURN_NAME[color]}")
        self.color = color


# ========================================
# 盤面アダプタ
# ========================================

class BoardState:
    """局面とルールエンジンをまとめ、表示側に必要な問い合わせを提供する"""

    def __init__(self, position: Optional[Position] = None,
                 rules: Optional[RulesOracle] = None, scale: float = DEFAULT_SCALE):
        self.position = position if position is not None else Position.initial()
        self.rules: RulesOracle = rules if rules is not None else StandardRules()
        self.scale = scale

    def piece_at(self, square: Square) -> Optional[Piece]:
        return self.position.piece_at(square)

    def legal_destinations(self, square: Square, piece: Piece) -> Set[Square]:
        return self.rules.legal_destinations(self.position, square, piece)

    def apply_move(self, move: Move) -> Optional[Piece]:
        """手番は確認しない (GameState の責務)"""
        return self.rules.apply_move(self.position, move)

    def side_to_move(self) -> int:
        return self.position.turn

    def square_to_world(self, square: Square) -> Tuple[float, float]:
        return cell_to_world(square.file, square.rank, self.scale)

    def movable_squares(self, color: int) -> List[Square]:
        """合法な移動先を持つ駒のマス"""
        return [sq for sq, p in self.position.pieces(color)
                if self.legal_destinations(sq, p)]

    def sfen(self) -> str:
        return self.position.sfen()


# ========================================
# イベント
# ========================================

class PieceMoved(NamedTuple):
    piece: Piece
    from_square: Square
    to_square: Square
    captured: Optional[Piece] = None


class TurnChanged(NamedTuple):
    color: int


class GameOver(NamedTuple):
    winner: int
    reason: str  # 'checkmate' または 'stalemate'


Event = Union[PieceMoved, TurnChanged, GameOver]
Listener = Callable[[Event], None]


# ========================================
# 選択と手番の管理
# ========================================

class GameState:
    """ゲーム状態を管理するクラス

    選択中の駒 (selected) は高々一つ。選択中に合法な移動先をクリックすると
    手を適用し、PieceMoved と TurnChanged をこの順に一度ずつ通知する。
    """

    def __init__(self, board_state: Optional[BoardState] = None):
        self.board_state = board_state if board_state is not None else BoardState()
        self.selected: Optional[Tuple[Piece, Square]] = None
        self.move_targets: Set[Square] = set()
        self.kifu: List[str] = []
        self.last_move_target: Optional[Square] = None
        self.game_over = False
        self.winner: Optional[int] = None
        self.result: Optional[str] = None

        self._listeners: List[Listener] = []
        self._pending: Deque[Event] = deque()
        self._dispatching = False

        kings = count_kings(self.board_state.position)
        if any(n != 1 for n in kings.values()):
            logger.warning("玉の枚数が不正です: %s", kings)
        # 開始局面で既に指す手がない場合も終局として扱う
        self._check_game_end()

    @property
    def turn(self) -> int:
        return self.board_state.side_to_move()

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    def _emit(self, *events: Event) -> None:
        """イベントを通知する。通知中に発生したイベントは後ろに積んで順番に配送する"""
        self._pending.extend(events)
        if self._dispatching:
            return
        self._dispatching = True
        try:
            while self._pending:
                current = self._pending.popleft()
                for listener in list(self._listeners):
                    listener(current)
        except Exception:
            self._pending.clear()
            raise
        finally:
            self._dispatching = False

    # ----------------------
    # クリック処理
    # ----------------------
    def click(self, square: Square) -> List[Event]:
        """盤上のマスがクリックされたときの処理。発生したイベントを返す"""
        if self.game_over:
            return []
        if self.selected is not None:
            piece, origin = self.selected
            if square in self.move_targets:
                move = Move(origin, square, default_promotion(piece, square))
                try:
                    events = self._commit(move)
                except IllegalMove as e:
                    logger.warning("指し手が拒否されました: %s", e)
                    return []
                self._emit(*events)
                return events
            self.cancel_selection()
        self._select(square)
        return []

    def _select(self, square: Square) -> None:
        piece = self.board_state.piece_at(square)
        if piece is None or piece.owner != self.turn:
            return
        self.selected = (piece, square)
        self.move_targets = self.board_state.legal_destinations(square, piece)
        logger.debug("選択: %s %s 移動先 %d", square.kifu(),
                     JAPANESE_PIECE_NAMES[piece.kind], len(self.move_targets))

    def cancel_selection(self) -> None:
        self.selected, self.move_targets = None, set()

    # ----------------------
    # 手の適用
    # ----------------------
    def play(self, move: Move) -> List[Event]:
        """手を適用する (CPU 用)。指せない手は IllegalMove をそのまま送出する"""
        if self.game_over:
            raise IllegalMove(move, "game is over")
        events = self._commit(move)
        self._emit(*events)
        return events

    def _commit(self, move: Move) -> List[Event]:
        """手を適用して棋譜を記録し、通知すべきイベントを返す"""
        piece = self.board_state.piece_at(move.from_square)
        mover = self.turn
        captured = self.board_state.apply_move(move)
        assert piece is not None

        self._record_kifu(mover, piece, move)
        self.cancel_selection()

        events: List[Event] = [PieceMoved(piece, move.from_square, move.to_square, captured),
                               TurnChanged(self.turn)]
        ended = self._check_game_end()
        if ended is not None:
            events.append(ended)
        return events

    def _record_kifu(self, mover: int, piece: Piece, move: Move) -> None:
        to = move.to_square
        dest = "同" if self.last_move_target == to else to.kifu()
        kifu_text = f"{JAPANESE_TURN_SYMBOL[mover]}{dest}{JAPANESE_PIECE_NAMES[piece.kind]}"
        if move.promote:
            kifu_text += "成"
        elif can_promote(piece.kind, piece.owner, move.from_square.rank, to.rank):
            kifu_text += "不成"
        self.kifu.append(kifu_text)
        self.last_move_target = to
        logger.debug("%d. %s", len(self.kifu), kifu_text)

    def _check_game_end(self) -> Optional[GameOver]:
        """手番側に合法手がなければ終局 (王手なら詰み、そうでなければ手詰まり)"""
        position = self.board_state.position
        side = position.turn
        if self.board_state.movable_squares(side):
            return None
        self.game_over = True
        self.winner = opponent(side)
        self.result = 'checkmate' if is_in_check(position.board, side) else 'stalemate'
        logger.info("終局: %s (%sの勝ち)", self.result, JAPANESE_TURN_NAME[self.winner])
        return GameOver(self.winner, self.result)


# ========================================
# CPU
# ========================================

class RandomOpponent:
    """自分の手番になったらランダムな合法手を指す CPU"""

    def __init__(self, game: GameState, color: int = WHITE,
                 rng: Optional[random.Random] = None):
        self.game = game
        self.color = color
        self.rng = rng if rng is not None else random.Random()
        game.subscribe(self.on_event)

    def on_event(self, event: Event) -> None:
        if not isinstance(event, TurnChanged) or event.color != self.color:
            return
        self.take_turn()

    def take_turn(self) -> None:
        """自分の手番なら一手指す"""
        if self.game.game_over or self.game.turn != self.color:
            return
        self.game.play(self.choose_move(self.game.board_state))

    def choose_move(self, board_state: BoardState) -> Move:
        """駒をランダムな順に調べ、最初に動ける駒の移動先からランダムに選ぶ"""
        squares = [sq for sq, _ in board_state.position.pieces(self.color)]
        self.rng.shuffle(squares)
        for sq in squares:
            piece = board_state.piece_at(sq)
            assert piece is not None
            targets = sorted(board_state.legal_destinations(sq, piece))
            if not targets:
                continue
            self.rng.shuffle(targets)
            to = targets[0]
            return Move(sq, to, default_promotion(piece, to))
        raise NoLegalMoves(self.color)
