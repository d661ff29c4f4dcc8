"""
Move suggesters for the automated player.

A suggester receives a board snapshot and returns the index of an empty cell.
Whatever goes wrong while proposing a move (service error, unparseable reply,
out-of-range or occupied index), the caller still receives a legal move picked
uniformly at random among the empty cells.
"""

import asyncio
import logging
import random
from typing import Optional, Sequence

from google import genai
from google.genai import types

from . import config
from .game_logic import describe_board, empty_cells
from .models import MoveSuggestion, Player

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = """You are an unbeatable Tic-Tac-Toe grandmaster.
The current board state is: [{board}].
Indices are 0-8 (top-left to bottom-right).
You are playing as '{player}'. '{opponent}' is your opponent.
Analyze the board and choose the absolute best move to win or force a draw.
Return only the index of your chosen move."""

RESPONSE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "moveIndex": types.Schema(
            type=types.Type.INTEGER,
            description="The 0-based index of the board where your mark should go.",
        ),
        "reasoning": types.Schema(
            type=types.Type.STRING,
            description="A short explanation of why this move was chosen.",
        ),
    },
    required=["moveIndex"],
)


class MoveSuggester:
    """
    Base suggester. Subclasses implement propose(); suggest() wraps it with
    the optional delay, validation and the random fallback.
    """

    display_name = "Computer"

    def __init__(self, player: Player = Player.O, delay: float = 0.0, rng: Optional[random.Random] = None):
        self.player = player
        self.delay = delay
        self._rng = rng or random.Random()

    async def propose(self, board: Sequence) -> Optional[int]:
        raise NotImplementedError

    # PUBLIC_INTERFACE
    async def suggest(self, board: Sequence) -> int:
        """Return the index of an empty cell of board. The board must have one."""
        snapshot = list(board)
        candidates = empty_cells(snapshot)
        if not candidates:
            raise ValueError("No empty cell left to suggest.")

        if self.delay > 0:
            await asyncio.sleep(self.delay)

        try:
            index = await self.propose(snapshot)
        except Exception as exc:
            logger.warning("%s failed to propose a move: %s", type(self).__name__, exc)
            index = None

        if isinstance(index, bool) or not isinstance(index, int) or index not in candidates:
            fallback = self._rng.choice(candidates)
            if index is not None:
                logger.warning("%s proposed unusable index %r, playing %d instead",
                               type(self).__name__, index, fallback)
            return fallback
        return index


class RandomMoveSuggester(MoveSuggester):
    """Plays a random empty cell. Used when no model is configured."""

    async def propose(self, board: Sequence) -> Optional[int]:
        return None


class GeminiMoveSuggester(MoveSuggester):
    """Asks a Gemini model for the move, expecting JSON {"moveIndex": int, "reasoning": str}."""

    display_name = "Gemini"

    def __init__(self, client=None, model: str = config.GEMINI_MODEL, api_key: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.model = model
        self._client = client if client is not None else genai.Client(api_key=api_key)

    def build_prompt(self, board: Sequence) -> str:
        opponent = Player.X if self.player is Player.O else Player.O
        return PROMPT_TEMPLATE.format(board=describe_board(board), player=self.player.value, opponent=opponent.value)

    async def propose(self, board: Sequence) -> Optional[int]:
        response = await self._client.aio.models.generate_content(
            model=self.model,
            contents=self.build_prompt(board),
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=RESPONSE_SCHEMA,
                thinking_config=types.ThinkingConfig(thinking_budget=0),
            ),
        )
        suggestion = MoveSuggestion.model_validate_json((response.text or "").strip())
        if suggestion.reasoning:
            logger.debug("Model reasoning for move %d: %s", suggestion.move_index, suggestion.reasoning)
        return suggestion.move_index


# PUBLIC_INTERFACE
def build_suggester() -> MoveSuggester:
    """Gemini suggester when an API key is configured, random play otherwise."""
    if not config.GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY not set; the automated player will move at random.")
        return RandomMoveSuggester(delay=config.AI_MOVE_DELAY_SECONDS)
    return GeminiMoveSuggester(api_key=config.GEMINI_API_KEY, delay=config.AI_MOVE_DELAY_SECONDS)
