"""
Models for the AI Tic Tac Toe backend (FastAPI).
"""

from enum import Enum
from typing import List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field


class Player(str, Enum):
    X = "X"
    O = "O"


class GameMode(str, Enum):
    PVP = "PVP"
    PVE = "PVE"  # Player vs automated O


class GamePhase(str, Enum):
    AWAITING_MOVE = "awaiting_move"
    AWAITING_AUTOMATED_MOVE = "awaiting_automated_move"
    FINISHED = "finished"


class OutcomeStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    WIN = "win"
    DRAW = "draw"


Board = List[Optional[Player]]


# PUBLIC_INTERFACE
class GameOutcome(BaseModel):
    """Result of evaluating a board."""
    model_config = ConfigDict(frozen=True)

    status: OutcomeStatus = Field(..., description="in_progress, win or draw.")
    winner: Optional[Player] = Field(None, description="Winning player, if any.")
    winning_line: Optional[Tuple[int, int, int]] = Field(None, description="Board indices of the winning line.")

    @classmethod
    def in_progress(cls) -> "GameOutcome":
        return cls(status=OutcomeStatus.IN_PROGRESS)

    @classmethod
    def draw(cls) -> "GameOutcome":
        return cls(status=OutcomeStatus.DRAW)

    @classmethod
    def win(cls, player: Player, line: Tuple[int, int, int]) -> "GameOutcome":
        return cls(status=OutcomeStatus.WIN, winner=player, winning_line=line)

    @property
    def finished(self) -> bool:
        return self.status is not OutcomeStatus.IN_PROGRESS


# PUBLIC_INTERFACE
class ScoreTally(BaseModel):
    """Cumulative win/draw counters, independent of the board."""
    x: int = Field(0, ge=0, description="Games won by X.")
    o: int = Field(0, ge=0, description="Games won by O.")
    draws: int = Field(0, ge=0, description="Drawn games.")

    def record(self, outcome: GameOutcome):
        """Count a finished outcome once."""
        if outcome.status is OutcomeStatus.DRAW:
            self.draws += 1
        elif outcome.winner is Player.X:
            self.x += 1
        elif outcome.winner is Player.O:
            self.o += 1


# PUBLIC_INTERFACE
class GameCreateRequest(BaseModel):
    """To create a new game."""
    mode: Optional[GameMode] = Field(None, description="Initial mode; server default when omitted.")


# PUBLIC_INTERFACE
class MoveRequest(BaseModel):
    """Select a cell. Out-of-range indices are rejected by the game, not the schema."""
    index: int = Field(..., description="Cell index (0-8, row-major).")


# PUBLIC_INTERFACE
class ModeRequest(BaseModel):
    """Switch to a specific mode."""
    mode: GameMode


# PUBLIC_INTERFACE
class GameState(BaseModel):
    """Representation of the current board, turn and scores."""
    game_id: str
    board: List[Optional[Player]] = Field(..., min_length=9, max_length=9, description="9 cells, 'X', 'O' or null.")
    mode: GameMode
    phase: GamePhase
    next_turn: Optional[Player] = Field(None, description="Player to move; null once finished.")
    outcome: GameOutcome
    scores: ScoreTally
    ai_thinking: bool = False
    status_message: str


# PUBLIC_INTERFACE
class MoveResult(BaseModel):
    """Outcome of a cell selection. Illegal input leaves the state untouched."""
    accepted: bool
    state: GameState


# PUBLIC_INTERFACE
class GameSummary(BaseModel):
    """High-level summary for listing games."""
    game_id: str
    mode: GameMode
    phase: GamePhase
    scores: ScoreTally


# PUBLIC_INTERFACE
class MoveSuggestion(BaseModel):
    """Structured reply expected from the language model."""
    model_config = ConfigDict(populate_by_name=True)

    move_index: int = Field(..., alias="moveIndex", description="The 0-based index of the board where 'O' should move.")
    reasoning: Optional[str] = Field(None, description="A short explanation of why this move was chosen.")
