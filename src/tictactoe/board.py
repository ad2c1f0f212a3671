"""Board representation and rules for tic-tac-toe.

A board is a tuple of 9 cells in row-major order, each ``None``, ``"X"`` or
``"O"``. All functions here are pure: they never mutate their arguments and
never touch the network. Session handling lives in session.py.

"""
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .errors import IllegalMove

X = "X"
O = "O"
SYMBOLS = (X, O)
DRAW = "draw"

Cell = Optional[str]
Board = Tuple[Cell, ...]

BOARD_SIZE = 9

WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)

# Index permutations for the 8 symmetries of the square. Entry ``p`` maps a
# board ``b`` to ``tuple(b[i] for i in p)``.
SYMMETRIES: Tuple[Tuple[int, ...], ...] = (
    (0, 1, 2, 3, 4, 5, 6, 7, 8),  # identity
    (6, 3, 0, 7, 4, 1, 8, 5, 2),  # rotate 90
    (8, 7, 6, 5, 4, 3, 2, 1, 0),  # rotate 180
    (2, 5, 8, 1, 4, 7, 0, 3, 6),  # rotate 270
    (2, 1, 0, 5, 4, 3, 8, 7, 6),  # mirror left/right
    (6, 7, 8, 3, 4, 5, 0, 1, 2),  # mirror top/bottom
    (0, 3, 6, 1, 4, 7, 2, 5, 8),  # main diagonal
    (8, 5, 2, 7, 4, 1, 6, 3, 0),  # anti diagonal
)


@dataclass(frozen=True)
class Outcome(object):
    """Result of evaluating a board.

    Attributes
    ----------
    winner : str or None
        ``"X"`` or ``"O"`` for a win, ``"draw"`` for a full board without a
        line, ``None`` while the game is still in progress
    line : tuple of int or None
        The completed line for a win, ``None`` otherwise
    """
    winner: Optional[str] = None
    line: Optional[Tuple[int, int, int]] = None

    @property
    def is_terminal(self) -> bool:
        return self.winner is not None

    @property
    def is_draw(self) -> bool:
        return self.winner == DRAW

    @property
    def is_win(self) -> bool:
        return self.winner in SYMBOLS


IN_PROGRESS = Outcome()


def empty_board() -> Board:
    """Returns a board with all 9 cells empty."""
    return (None,) * BOARD_SIZE


def other(symbol: str) -> str:
    """Returns the opponent's symbol."""
    if symbol == X:
        return O
    if symbol == O:
        return X
    raise ValueError(f"Unknown symbol {symbol!r}")


def evaluate(board: Sequence[Cell]) -> Outcome:
    """Evaluate a board and report whether somebody won.

    Parameters
    ----------
    board : sequence of 9 cells

    Returns
    -------
    Outcome
        ``IN_PROGRESS``, a win for the symbol owning a full line, or a draw
        when all cells are occupied without a line

    """
    if len(board) != BOARD_SIZE:
        raise ValueError(f"Board must have {BOARD_SIZE} cells, got {len(board)}")

    for a, b, c in WINNING_LINES:
        v = board[a]
        if v is not None and v == board[b] == board[c]:
            return Outcome(winner=v, line=(a, b, c))

    if all(cell is not None for cell in board):
        return Outcome(winner=DRAW)
    return IN_PROGRESS


def apply_move(board: Sequence[Cell], index, symbol: str) -> Board:
    """Place ``symbol`` at ``index`` and return the resulting board.

    Raises IllegalMove if the index is not an integer in [0, 8], the cell is
    already occupied, the board is already decided, or the symbol is unknown.

    """
    if symbol not in SYMBOLS:
        raise IllegalMove(f"Unknown symbol {symbol!r}")
    # bool is an int subclass; True must not mean cell 1
    if isinstance(index, bool) or not isinstance(index, int):
        raise IllegalMove(f"Cell index must be an integer, got {index!r}")
    if not 0 <= index < BOARD_SIZE:
        raise IllegalMove(f"Cell index {index} is out of range 0-8")
    if evaluate(board).is_terminal:
        raise IllegalMove("Game is already over")
    if board[index] is not None:
        raise IllegalMove(f"Cell {index} is already taken")

    cells = list(board)
    cells[index] = symbol
    return tuple(cells)


def available_moves(board: Sequence[Cell]) -> List[int]:
    """Lists the empty cells of an undecided board."""
    if evaluate(board).is_terminal:
        return []
    return [i for i, cell in enumerate(board) if cell is None]


def symmetries(board: Sequence[Cell]) -> List[Board]:
    """Returns the 8 rotations and reflections of ``board``."""
    return [tuple(board[i] for i in perm) for perm in SYMMETRIES]


def to_wire(board: Sequence[Cell]) -> List[Cell]:
    """JSON-friendly copy of the board: a list of 9 ``None``/"X"/"O"."""
    return list(board)


def render(board: Sequence[Cell]) -> str:
    """Text drawing of the board, empty cells shown by their index."""
    rows = []
    for r in range(3):
        cells = []
        for c in range(3):
            i = r * 3 + c
            cells.append(board[i] if board[i] is not None else str(i))
        rows.append(" " + " | ".join(cells))
    return "\n---+---+---\n".join(rows)
