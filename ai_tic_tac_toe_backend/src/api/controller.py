"""
Turn and score controller: the single owner of one game's board, turn, mode and scores.
"""

import logging
import threading
from typing import Optional

from .game_logic import IllegalMove, apply_move, evaluate, new_board, other
from .models import (
    GameMode, GameOutcome, GamePhase, GameState, GameSummary, OutcomeStatus, Player, ScoreTally
)
from .suggester import MoveSuggester

logger = logging.getLogger(__name__)


class GameController:
    """
    State machine for one game.

    Every mutation goes through self._lock. Illegal input never raises to the
    caller: the operation returns False and the state is left as it was.
    A reset bumps the generation so a suggestion requested for an earlier game
    is dropped when it arrives. At most one suggestion request is outstanding
    per game, across resets.
    """

    def __init__(self, game_id: str, mode: GameMode = GameMode.PVE, automated_player: Player = Player.O):
        self.game_id = game_id
        self.mode = mode
        self.automated_player = automated_player
        self.scores = ScoreTally()
        self.generation = 0
        self.suggestion_in_flight = False
        self.thinker = "Computer"
        self._lock = threading.Lock()
        self._reset_locked()

    def _reset_locked(self):
        self.board = new_board()
        self.turn = Player.X
        self.outcome = GameOutcome.in_progress()
        self.phase = GamePhase.AWAITING_MOVE
        self.generation += 1

    def _apply_locked(self, index: int) -> bool:
        try:
            self.board = apply_move(self.board, index, self.turn)
        except IllegalMove as e:
            logger.debug("Game %s: rejected move %r by %s: %s", self.game_id, index, self.turn.value, e)
            return False

        self.outcome = evaluate(self.board)
        if self.outcome.finished:
            self.phase = GamePhase.FINISHED
            self.scores.record(self.outcome)
            logger.info("Game %s finished: %s", self.game_id, self._describe_outcome())
            return True

        self.turn = other(self.turn)
        if self.mode is GameMode.PVE and self.turn is self.automated_player:
            self.phase = GamePhase.AWAITING_AUTOMATED_MOVE
        else:
            self.phase = GamePhase.AWAITING_MOVE
        return True

    def _describe_outcome(self) -> str:
        if self.outcome.status is OutcomeStatus.DRAW:
            return "draw"
        return f"{self.outcome.winner.value} wins on {list(self.outcome.winning_line)}"

    # PUBLIC_INTERFACE
    def select_cell(self, index: int) -> bool:
        """Human move for the player whose turn it is. Returns False if rejected."""
        with self._lock:
            if self.phase is not GamePhase.AWAITING_MOVE:
                logger.debug("Game %s: move %r ignored in phase %s", self.game_id, index, self.phase.value)
                return False
            return self._apply_locked(index)

    # PUBLIC_INTERFACE
    def apply_suggestion(self, index: int, generation: int) -> bool:
        """Automated move, accepted only for the game generation it was requested for."""
        with self._lock:
            if generation != self.generation:
                logger.debug("Game %s: dropping suggestion %r from a previous game", self.game_id, index)
                return False
            if self.phase is not GamePhase.AWAITING_AUTOMATED_MOVE:
                return False
            return self._apply_locked(index)

    # PUBLIC_INTERFACE
    async def play_automated_turn(self, suggester: MoveSuggester) -> bool:
        """
        Ask the suggester for the automated player's move and apply it.
        Returns False when no automated move was due or one is already in flight.

        A request outlives resets: if its answer belongs to a previous game and
        the current game is waiting for an automated move, the same call asks
        again for the current board.
        """
        with self._lock:
            if self.phase is not GamePhase.AWAITING_AUTOMATED_MOVE or self.suggestion_in_flight:
                return False
            self.suggestion_in_flight = True
            self.thinker = suggester.display_name

        try:
            while True:
                with self._lock:
                    if self.phase is not GamePhase.AWAITING_AUTOMATED_MOVE:
                        return False
                    generation = self.generation
                    snapshot = list(self.board)
                index = await suggester.suggest(snapshot)
                if self.apply_suggestion(index, generation):
                    return True
        finally:
            with self._lock:
                self.suggestion_in_flight = False

    # PUBLIC_INTERFACE
    def reset(self):
        """Clear the board, X to move. Scores are kept."""
        with self._lock:
            self._reset_locked()
        logger.info("Game %s reset", self.game_id)

    # PUBLIC_INTERFACE
    def clear_score(self):
        """Zero the scores and start a fresh board."""
        with self._lock:
            self.scores = ScoreTally()
            self._reset_locked()
        logger.info("Game %s scores cleared", self.game_id)

    def _set_mode_locked(self, mode: GameMode) -> bool:
        if mode is self.mode:
            return False
        self.mode = mode
        self._reset_locked()
        logger.info("Game %s switched to %s", self.game_id, mode.value)
        return True

    # PUBLIC_INTERFACE
    def set_mode(self, mode: GameMode) -> bool:
        """Switch mode and reset the board. No-op if the mode is unchanged."""
        with self._lock:
            return self._set_mode_locked(mode)

    # PUBLIC_INTERFACE
    def toggle_mode(self) -> GameMode:
        with self._lock:
            target = GameMode.PVP if self.mode is GameMode.PVE else GameMode.PVE
            self._set_mode_locked(target)
        return target

    @property
    def thinking(self) -> bool:
        """True while the automated player of the current game is being asked."""
        return self.suggestion_in_flight and self.phase is GamePhase.AWAITING_AUTOMATED_MOVE

    def status_message(self) -> str:
        if self.outcome.status is OutcomeStatus.DRAW:
            return "It's a Tie!"
        if self.outcome.status is OutcomeStatus.WIN:
            return f"Player {self.outcome.winner.value} Wins!"
        if self.thinking:
            return f"{self.thinker} is thinking..."
        return f"Player {self.turn.value}'s Turn"

    @property
    def next_turn(self) -> Optional[Player]:
        return None if self.phase is GamePhase.FINISHED else self.turn

    # PUBLIC_INTERFACE
    def snapshot(self) -> GameState:
        """Consistent copy of the game for API responses."""
        with self._lock:
            return GameState(
                game_id=self.game_id,
                board=list(self.board),
                mode=self.mode,
                phase=self.phase,
                next_turn=self.next_turn,
                outcome=self.outcome,
                scores=self.scores.model_copy(),
                ai_thinking=self.thinking,
                status_message=self.status_message(),
            )

    # PUBLIC_INTERFACE
    def summary(self) -> GameSummary:
        with self._lock:
            return GameSummary(game_id=self.game_id, mode=self.mode, phase=self.phase, scores=self.scores.model_copy())
