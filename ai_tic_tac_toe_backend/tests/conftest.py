import random

import pytest
from fastapi.testclient import TestClient

from src.api.main import app, get_suggester
from src.api.store import STORE
from src.api.suggester import MoveSuggester


class ScriptedSuggester(MoveSuggester):
    """Proposes queued indices in order, then nothing; records every board it sees."""

    def __init__(self, moves=(), **kwargs):
        kwargs.setdefault("rng", random.Random(7))
        super().__init__(**kwargs)
        self.moves = list(moves)
        self.boards = []

    async def propose(self, board):
        self.boards.append(list(board))
        if self.moves:
            return self.moves.pop(0)
        return None


class FailingSuggester(MoveSuggester):
    def __init__(self, **kwargs):
        kwargs.setdefault("rng", random.Random(7))
        super().__init__(**kwargs)

    async def propose(self, board):
        raise ConnectionError("service unavailable")


@pytest.fixture
def suggester():
    return ScriptedSuggester()


@pytest.fixture
def client(suggester):
    app.dependency_overrides[get_suggester] = lambda: suggester
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    STORE.clear()
