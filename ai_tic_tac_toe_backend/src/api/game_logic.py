"""
Game logic functions for Tic Tac Toe (board model, move application, win/draw detection).
"""

from typing import List, Sequence, Tuple
from .models import Board, GameOutcome, Player

BOARD_SIZE = 9

# Rows, columns, diagonals. Order decides which line is reported first.
WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),
    (0, 3, 6), (1, 4, 7), (2, 5, 8),
    (0, 4, 8), (2, 4, 6),
)


class IllegalMove(ValueError):
    """A move that the current game cannot accept."""


# PUBLIC_INTERFACE
def new_board() -> Board:
    """Return an empty board."""
    return [None] * BOARD_SIZE


# PUBLIC_INTERFACE
def other(player: Player) -> Player:
    return Player.O if player is Player.X else Player.X


# PUBLIC_INTERFACE
def empty_cells(board: Sequence) -> List[int]:
    """Indices of the cells nobody has played yet."""
    return [i for i, cell in enumerate(board) if cell is None]


# PUBLIC_INTERFACE
def apply_move(board: Sequence, index: int, player: Player) -> Board:
    """
    Place player's mark at index.
    Returns a new board, or raises IllegalMove if the index is out of range or the cell is taken.
    """
    if isinstance(index, bool) or not isinstance(index, int):
        raise IllegalMove("Cell index must be an integer.")
    if not 0 <= index < BOARD_SIZE:
        raise IllegalMove(f"Invalid board position {index}.")
    if board[index] is not None:
        raise IllegalMove(f"Cell {index} already occupied.")

    new = list(board)
    new[index] = player
    return new


# PUBLIC_INTERFACE
def evaluate(board: Sequence) -> GameOutcome:
    """
    Examines board. Returns a win for the first completed line, a draw for a full board,
    otherwise in progress.
    """
    for line in WINNING_LINES:
        a, b, c = line
        if board[a] is not None and board[a] == board[b] == board[c]:
            return GameOutcome.win(Player(board[a]), line)

    if all(cell is not None for cell in board):
        return GameOutcome.draw()

    return GameOutcome.in_progress()


# PUBLIC_INTERFACE
def describe_board(board: Sequence) -> str:
    """Board as prompt text: marks kept, empty cells replaced by their index."""
    return ", ".join(str(i) if cell is None else Player(cell).value for i, cell in enumerate(board))
