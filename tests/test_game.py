"""
Unit tests for the board state adapter, the selection/turn controller and
the random CPU player.
"""

import random
import unittest
import sys
import os

# Add the parent directory to sys.path to import shogiman modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from shogiman.piece import BLACK, WHITE, Piece
from shogiman.board import STARTING_SFEN, Position, Square
from shogiman.rules import IllegalMove, Move, StandardRules, legal_moves
from shogiman.game import (
    BoardState, GameState, RandomOpponent, NoLegalMoves, PieceMoved, TurnChanged, GameOver
)


def make_position(pieces, turn=BLACK):
    position = Position(turn=turn)
    for sq, p in pieces.items():
        position.set_piece(sq, p)
    return position


def stalemate_position():
    """後手玉が王手されずに動けない局面 (後手番)"""
    return make_position({
        Square(0, 0): Piece('K', WHITE),
        Square(1, 2): Piece('G', BLACK),
        Square(2, 1): Piece('G', BLACK),
        Square(4, 8): Piece('K', BLACK),
    }, turn=WHITE)


class RejectingRules(StandardRules):
    """移動先は通常通り返すが、手の適用は常に拒否する"""

    def apply_move(self, position, move):
        raise IllegalMove(move, "rejected")


class EventRecorder:
    def __init__(self, game):
        self.events = []
        game.subscribe(self.events.append)

    def of_type(self, kind):
        return [e for e in self.events if isinstance(e, kind)]


class TestBoardState(unittest.TestCase):
    """Test the board state adapter"""

    def setUp(self):
        self.board_state = BoardState()

    def test_default_is_starting_position(self):
        self.assertEqual(self.board_state.sfen(), STARTING_SFEN)
        self.assertEqual(self.board_state.side_to_move(), BLACK)

    def test_piece_at_has_no_side_effects(self):
        self.assertEqual(self.board_state.piece_at(Square(4, 8)), Piece('K', BLACK))
        self.assertIsNone(self.board_state.piece_at(Square(4, 4)))
        self.assertEqual(self.board_state.sfen(), STARTING_SFEN)

    def test_legal_destinations(self):
        self.assertEqual(self.board_state.legal_destinations(Square(4, 6), Piece('P', BLACK)),
                         {Square(4, 5)})
        self.assertEqual(self.board_state.legal_destinations(Square(7, 7), Piece('B', BLACK)),
                         set())

    def test_apply_move_toggles_side(self):
        self.board_state.apply_move(Move(Square(4, 6), Square(4, 5)))
        self.assertEqual(self.board_state.side_to_move(), WHITE)
        with self.assertRaises(IllegalMove):
            self.board_state.apply_move(Move(Square(4, 5), Square(4, 3)))
        self.assertEqual(self.board_state.side_to_move(), WHITE)

    def test_square_to_world(self):
        """The board centre is the origin and the 9九 corner is at (-4s, -4s)"""
        self.assertEqual(self.board_state.square_to_world(Square(4, 4)), (0.0, 0.0))
        self.assertEqual(self.board_state.square_to_world(Square(8, 8)), (-128.0, -128.0))
        self.assertEqual(self.board_state.square_to_world(Square(0, 0)), (128.0, 128.0))
        scaled = BoardState(scale=10.0)
        self.assertEqual(scaled.square_to_world(Square(8, 0)), (-40.0, 40.0))

    def test_movable_squares(self):
        movable = self.board_state.movable_squares(BLACK)
        self.assertEqual(len(movable), 17)
        self.assertNotIn(Square(7, 7), movable)  # bishop
        self.assertNotIn(Square(7, 8), movable)  # knights
        self.assertNotIn(Square(1, 8), movable)
        self.assertIn(Square(4, 6), movable)


class TestSelection(unittest.TestCase):
    """Test piece selection and move targets"""

    def setUp(self):
        self.game = GameState()
        self.recorder = EventRecorder(self.game)

    def test_click_empty_square_stays_idle(self):
        self.assertEqual(self.game.click(Square(4, 4)), [])
        self.assertIsNone(self.game.selected)
        self.assertEqual(self.game.move_targets, set())
        self.assertEqual(self.game.board_state.sfen(), STARTING_SFEN)

    def test_select_own_piece(self):
        self.game.click(Square(4, 6))
        self.assertEqual(self.game.selected, (Piece('P', BLACK), Square(4, 6)))
        self.assertEqual(self.game.move_targets, {Square(4, 5)})
        self.assertEqual(self.recorder.events, [])

    def test_selecting_opponent_piece_is_refused(self):
        """Selecting a White piece while Black is to move leaves the hand empty"""
        self.game.click(Square(4, 2))
        self.assertIsNone(self.game.selected)
        self.assertEqual(self.game.move_targets, set())
        self.assertEqual(self.recorder.events, [])

    def test_click_other_own_piece_reselects(self):
        self.game.click(Square(4, 6))
        self.game.click(Square(1, 7))
        self.assertEqual(self.game.selected, (Piece('R', BLACK), Square(1, 7)))
        self.assertIn(Square(0, 7), self.game.move_targets)
        self.assertNotIn(Square(4, 5), self.game.move_targets)

    def test_click_non_target_clears_selection(self):
        self.game.click(Square(4, 6))
        self.game.click(Square(4, 4))
        self.assertIsNone(self.game.selected)
        self.assertEqual(self.game.move_targets, set())
        self.assertEqual(self.game.board_state.sfen(), STARTING_SFEN)

    def test_click_opponent_piece_while_selected(self):
        self.game.click(Square(4, 6))
        self.game.click(Square(4, 2))
        self.assertIsNone(self.game.selected)
        self.assertEqual(self.game.move_targets, set())

    def test_cancel_selection(self):
        self.game.click(Square(4, 6))
        self.game.cancel_selection()
        self.assertIsNone(self.game.selected)
        self.assertEqual(self.game.move_targets, set())


class TestMoves(unittest.TestCase):
    """Test committing moves through the controller"""

    def test_pawn_push_from_starting_position(self):
        """Black pawn in front of the king moves one square forward"""
        game = GameState(BoardState(Position.from_sfen(STARTING_SFEN)))
        recorder = EventRecorder(game)

        game.click(Square(4, 6))
        events = game.click(Square(4, 5))

        pawn = Piece('P', BLACK)
        self.assertEqual(events, [PieceMoved(pawn, Square(4, 6), Square(4, 5)),
                                  TurnChanged(WHITE)])
        self.assertEqual(recorder.events, events)
        self.assertEqual(len(recorder.of_type(PieceMoved)), 1)
        self.assertEqual(len(recorder.of_type(TurnChanged)), 1)
        self.assertIsNone(game.board_state.piece_at(Square(4, 6)))
        self.assertEqual(game.board_state.piece_at(Square(4, 5)), pawn)
        self.assertEqual(game.turn, WHITE)
        self.assertIsNone(game.selected)
        self.assertEqual(game.move_targets, set())
        self.assertEqual(game.kifu, ['▲5六歩'])
        self.assertFalse(game.game_over)

    def test_alternating_moves_and_kifu(self):
        game = GameState()
        game.click(Square(6, 6))
        game.click(Square(6, 5))
        game.click(Square(2, 2))
        game.click(Square(2, 3))
        game.click(Square(7, 7))
        game.click(Square(1, 1))     # bishop takes bishop, no promotion offered
        self.assertEqual(game.turn, WHITE)
        self.assertEqual(game.board_state.position.hands[BLACK], ['B'])
        self.assertEqual(game.kifu, ['▲7六歩', '△3四歩', '▲2二角不成'])
        # recapture is recorded as 同
        game.click(Square(2, 0))
        game.click(Square(1, 1))
        self.assertEqual(game.kifu[-1], '△同銀')
        self.assertEqual(game.board_state.position.hands[WHITE], ['B'])

    def test_mandatory_promotion(self):
        game = GameState(BoardState(make_position({
            Square(4, 8): Piece('K', BLACK),
            Square(0, 1): Piece('P', BLACK),
            Square(4, 0): Piece('K', WHITE),
        })))
        game.click(Square(0, 1))
        self.assertEqual(game.move_targets, {Square(0, 0)})
        events = game.click(Square(0, 0))
        self.assertEqual(events[0].piece, Piece('P', BLACK))
        self.assertEqual(game.board_state.piece_at(Square(0, 0)), Piece('P+', BLACK))
        self.assertEqual(game.kifu, ['▲1一歩成'])

    def test_rejected_move_keeps_selection(self):
        """An illegal move leaves position and selection unchanged"""
        game = GameState(BoardState(rules=RejectingRules()))
        recorder = EventRecorder(game)
        game.click(Square(4, 6))
        selected, targets = game.selected, set(game.move_targets)

        with self.assertLogs('shogiman.game', level='WARNING'):
            events = game.click(Square(4, 5))

        self.assertEqual(events, [])
        self.assertEqual(recorder.events, [])
        self.assertEqual(game.selected, selected)
        self.assertEqual(game.move_targets, targets)
        self.assertEqual(game.board_state.sfen(), STARTING_SFEN)
        self.assertEqual(game.kifu, [])

    def test_play_raises_for_illegal_move(self):
        game = GameState()
        with self.assertRaises(IllegalMove):
            game.play(Move(Square(4, 6), Square(4, 4)))
        self.assertEqual(game.board_state.sfen(), STARTING_SFEN)

    def test_checkmate_ends_game(self):
        game = GameState(BoardState(make_position({
            Square(0, 0): Piece('K', WHITE),
            Square(0, 2): Piece('P', BLACK),
            Square(1, 2): Piece('G', BLACK),
            Square(4, 8): Piece('K', BLACK),
        })))
        recorder = EventRecorder(game)
        game.click(Square(1, 2))
        events = game.click(Square(0, 1))

        self.assertEqual(events[1:], [TurnChanged(WHITE), GameOver(BLACK, 'checkmate')])
        self.assertEqual(recorder.events, events)
        self.assertTrue(game.game_over)
        self.assertEqual(game.winner, BLACK)
        self.assertEqual(game.result, 'checkmate')

        # clicks are ignored once the game is over
        self.assertEqual(game.click(Square(0, 0)), [])
        self.assertIsNone(game.selected)
        with self.assertRaises(IllegalMove):
            game.play(Move(Square(0, 0), Square(1, 0)))

    def test_stalemate_detected_at_start(self):
        game = GameState(BoardState(stalemate_position()))
        self.assertTrue(game.game_over)
        self.assertEqual(game.winner, BLACK)
        self.assertEqual(game.result, 'stalemate')

    def test_listener_order_and_nested_events(self):
        """Events raised by a listener are delivered after the current one"""
        game = GameState()
        seen = []

        def reply(event):
            seen.append(event)
            if event == TurnChanged(WHITE) and len(seen) == 2:
                game.play(Move(Square(4, 2), Square(4, 3)))

        game.subscribe(reply)
        second = []
        game.subscribe(second.append)
        game.click(Square(4, 6))
        game.click(Square(4, 5))

        expected = [
            PieceMoved(Piece('P', BLACK), Square(4, 6), Square(4, 5)),
            TurnChanged(WHITE),
            PieceMoved(Piece('P', WHITE), Square(4, 2), Square(4, 3)),
            TurnChanged(BLACK),
        ]
        self.assertEqual(seen, expected)
        self.assertEqual(second, expected)

        game.unsubscribe(second.append)
        game.click(Square(0, 6))
        game.click(Square(0, 5))
        self.assertEqual(len(second), 4)


class TestRandomOpponent(unittest.TestCase):
    """Test the random CPU player"""

    def test_chosen_moves_are_legal(self):
        for seed in range(20):
            with self.subTest(seed=seed):
                board_state = BoardState()
                game = GameState(board_state)
                cpu = RandomOpponent(game, WHITE, random.Random(seed))
                game.unsubscribe(cpu.on_event)
                move = cpu.choose_move(board_state)
                self.assertIn(move, legal_moves(board_state.position, WHITE))
                board_state.apply_move(move)

    def test_same_seed_same_move(self):
        first = RandomOpponent(GameState(), WHITE, random.Random(7))
        second = RandomOpponent(GameState(), WHITE, random.Random(7))
        self.assertEqual(first.choose_move(first.game.board_state),
                         second.choose_move(second.game.board_state))

    def test_replies_after_human_move(self):
        game = GameState()
        RandomOpponent(game, WHITE, random.Random(1))
        recorder = EventRecorder(game)

        events = game.click(Square(4, 6))
        self.assertEqual(events, [])
        game.click(Square(4, 5))

        self.assertEqual(game.turn, BLACK)
        self.assertEqual(len(game.kifu), 2)
        self.assertTrue(game.kifu[1].startswith('△'))
        kinds = [type(e) for e in recorder.events]
        self.assertEqual(kinds, [PieceMoved, TurnChanged, PieceMoved, TurnChanged])
        self.assertEqual(recorder.events[1], TurnChanged(WHITE))
        self.assertEqual(recorder.events[2].piece.owner, WHITE)
        self.assertEqual(recorder.events[3], TurnChanged(BLACK))

    def test_ignores_other_side_turns(self):
        game = GameState()
        cpu = RandomOpponent(game, BLACK, random.Random(3))
        cpu.on_event(TurnChanged(WHITE))
        self.assertEqual(game.board_state.sfen(), STARTING_SFEN)
        cpu.take_turn()
        self.assertEqual(game.turn, WHITE)
        self.assertEqual(len(game.kifu), 1)

    def test_random_game_stays_legal(self):
        """Play random moves for both sides and check every move is legal"""
        game = GameState()
        rng = random.Random(2024)
        players = {BLACK: RandomOpponent(game, BLACK, rng), WHITE: RandomOpponent(game, WHITE, rng)}
        for cpu in players.values():
            game.unsubscribe(cpu.on_event)
        for _ in range(60):
            if game.game_over:
                break
            side = game.turn
            move = players[side].choose_move(game.board_state)
            self.assertIn(move, legal_moves(game.board_state.position, side))
            game.play(move)
            self.assertEqual(game.turn, 1 - side)

    def test_no_legal_moves(self):
        board_state = BoardState(stalemate_position())
        game = GameState(board_state)
        cpu = RandomOpponent(game, WHITE, random.Random(0))
        with self.assertRaises(NoLegalMoves) as cm:
            cpu.choose_move(board_state)
        self.assertEqual(cm.exception.color, WHITE)
        # the game is already over, so taking a turn does nothing
        cpu.take_turn()
        self.assertEqual(board_state.side_to_move(), WHITE)


if __name__ == '__main__':
    unittest.main(verbosity=2)
