"""
In-memory registry of running games. Nothing is persisted.
"""

import logging
import secrets
import threading
from typing import Dict, List, Optional

from . import config
from .controller import GameController
from .models import GameMode

logger = logging.getLogger(__name__)


class InMemoryStore:
    """Singleton-like in-memory game storage."""

    def __init__(self, default_mode: GameMode = GameMode.PVE):
        self.games: Dict[str, GameController] = {}  # game_id : GameController
        self.default_mode = default_mode
        self._lock = threading.Lock()

    # PUBLIC_INTERFACE
    def create_game(self, mode: Optional[GameMode] = None) -> GameController:
        """Create a new game with an empty board and zero scores."""
        with self._lock:
            game_id = secrets.token_hex(4)
            while game_id in self.games:
                game_id = secrets.token_hex(4)
            game = GameController(game_id, mode=mode or self.default_mode)
            self.games[game_id] = game
        logger.info("Created game %s in %s mode", game_id, game.mode.value)
        return game

    # PUBLIC_INTERFACE
    def get_game(self, game_id: str) -> Optional[GameController]:
        with self._lock:
            return self.games.get(game_id)

    # PUBLIC_INTERFACE
    def list_games(self) -> List[GameController]:
        """List all games."""
        with self._lock:
            return list(self.games.values())

    # PUBLIC_INTERFACE
    def clear(self):
        with self._lock:
            self.games.clear()


def _default_mode() -> GameMode:
    try:
        return GameMode(config.DEFAULT_GAME_MODE)
    except ValueError:
        logger.warning("Unknown DEFAULT_GAME_MODE %r, using PVE", config.DEFAULT_GAME_MODE)
        return GameMode.PVE


STORE = InMemoryStore(default_mode=_default_mode())
