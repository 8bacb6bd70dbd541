"""
Shogi Board Package

A shogi (Japanese chess) board viewer and player with a pygame GUI and a
random-move CPU opponent.

Modules:
- piece: Piece values, colours and movement patterns
- board: Squares, positions and SFEN records
- rules: Move generation, check detection and the rules oracle
- game: Board state adapter, selection/turn controller and CPU player
- render: Board and piece drawing
- utils: Constants, coordinate helpers and logging setup
- main: Entry point for the application
"""

from .piece import BLACK, WHITE, Piece
from .board import Square, Position, STARTING_SFEN
from .rules import Move, IllegalMove, RulesOracle, StandardRules
from .game import (
    BoardState, GameState, RandomOpponent, NoLegalMoves,
    PieceMoved, TurnChanged, GameOver
)

__version__ = "1.0.0"
__all__ = [
    'BLACK', 'WHITE', 'Piece', 'Square', 'Position', 'STARTING_SFEN',
    'Move', 'IllegalMove', 'RulesOracle', 'StandardRules',
    'BoardState', 'GameState', 'RandomOpponent', 'NoLegalMoves',
    'PieceMoved', 'TurnChanged', 'GameOver',
]
