import asyncio
import logging
from typing import Dict, List, Set

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from . import config
from .controller import GameController
from .models import (
    GameCreateRequest, GamePhase, GameState, GameSummary, ModeRequest, MoveRequest, MoveResult
)
from .store import STORE
from .suggester import MoveSuggester, build_suggester

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "game", "description": "Start a game, select cells, reset, switch mode and clear scores"},
    {"name": "ws", "description": "Websocket for live game experience"},
]

app = FastAPI(
    title="AI Tic Tac Toe Backend",
    description="REST and WebSocket API for Tic Tac Toe against another player or a Gemini-driven opponent.",
    version="1.0.0",
    openapi_tags=openapi_tags
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_suggester = None


# PUBLIC_INTERFACE
def get_suggester() -> MoveSuggester:
    """Shared move suggester, built on first use."""
    global _suggester
    if _suggester is None:
        _suggester = build_suggester()
    return _suggester


def get_game_or_404(game_id: str) -> GameController:
    game = STORE.get_game(game_id)
    if not game:
        raise HTTPException(status_code=404, detail="Game not found.")
    return game


@app.get("/")
def health_check():
    """Health check endpoint."""
    return {"message": "Healthy"}


# --------------- WebSocket connections --------------- #

class ConnectionManager:
    """Manages active websocket connections per game."""
    def __init__(self):
        self.active_connections: Dict[str, List[WebSocket]] = {}

    async def connect(self, game_id: str, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.setdefault(game_id, []).append(websocket)

    def disconnect(self, game_id: str, websocket: WebSocket):
        if game_id in self.active_connections:
            self.active_connections[game_id] = [
                ws for ws in self.active_connections[game_id]
                if ws != websocket
            ]

    async def broadcast_state(self, game: GameController):
        """Send the current game state to all clients of this game."""
        message = {"type": "game_state", "state": game.snapshot().model_dump(mode="json")}
        disconnected = []
        for ws in self.active_connections.get(game.game_id, []):
            try:
                await ws.send_json(message)
            except Exception:
                disconnected.append(ws)
        for ws in disconnected:
            self.disconnect(game.game_id, ws)


manager = ConnectionManager()
_automated_turns: Set[asyncio.Task] = set()


# PUBLIC_INTERFACE
async def run_automated_turn(game: GameController, suggester: MoveSuggester):
    """Play the automated player's move, if one is due, and push the new state to listeners."""
    if game.phase is not GamePhase.AWAITING_AUTOMATED_MOVE:
        return
    task = asyncio.ensure_future(game.play_automated_turn(suggester))
    await asyncio.sleep(0)  # let the request start so listeners see ai_thinking
    await manager.broadcast_state(game)
    await task
    await manager.broadcast_state(game)


def schedule_automated_turn(game: GameController, suggester: MoveSuggester):
    task = asyncio.create_task(run_automated_turn(game, suggester))
    _automated_turns.add(task)
    task.add_done_callback(_automated_turns.discard)


# ---------------- Game API ---------------- #

# PUBLIC_INTERFACE
@app.post("/game/create", response_model=GameState, tags=["game"], summary="Create a new game")
async def create_game(req: GameCreateRequest):
    """Start a new game with an empty board, X to move."""
    game = STORE.create_game(req.mode)
    return game.snapshot()


# PUBLIC_INTERFACE
@app.get("/game/list", response_model=List[GameSummary], tags=["game"], summary="List all games")
async def list_games():
    return [g.summary() for g in STORE.list_games()]


# PUBLIC_INTERFACE
@app.get("/game/{game_id}", response_model=GameState, tags=["game"], summary="Get game state")
async def get_game(game_id: str):
    """Board, turn, outcome and scores (for polling or refresh)."""
    return get_game_or_404(game_id).snapshot()


# PUBLIC_INTERFACE
@app.post("/game/{game_id}/move", response_model=MoveResult, tags=["game"], summary="Select a cell")
async def select_cell(
    game_id: str,
    req: MoveRequest,
    background_tasks: BackgroundTasks,
    suggester: MoveSuggester = Depends(get_suggester),
):
    """
    Play the current human player's mark at req.index.
    Illegal moves leave the game unchanged and come back with accepted=false.
    When the automated player is next, its move is made after the response is sent.
    """
    game = get_game_or_404(game_id)
    accepted = game.select_cell(req.index)
    if accepted:
        await manager.broadcast_state(game)
        if game.phase is GamePhase.AWAITING_AUTOMATED_MOVE:
            background_tasks.add_task(run_automated_turn, game, suggester)
    return MoveResult(accepted=accepted, state=game.snapshot())


# PUBLIC_INTERFACE
@app.post("/game/{game_id}/reset", response_model=GameState, tags=["game"], summary="Reset the board")
async def reset_board(game_id: str):
    """Empty board, X to move; scores are kept."""
    game = get_game_or_404(game_id)
    game.reset()
    await manager.broadcast_state(game)
    return game.snapshot()


# PUBLIC_INTERFACE
@app.post("/game/{game_id}/mode/toggle", response_model=GameState, tags=["game"], summary="Toggle game mode")
async def toggle_mode(game_id: str):
    """Switch between PvP and PvE; the board is reset."""
    game = get_game_or_404(game_id)
    game.toggle_mode()
    await manager.broadcast_state(game)
    return game.snapshot()


# PUBLIC_INTERFACE
@app.put("/game/{game_id}/mode", response_model=GameState, tags=["game"], summary="Set game mode")
async def set_mode(game_id: str, req: ModeRequest):
    """Switch to req.mode; resets the board unless the mode is already active."""
    game = get_game_or_404(game_id)
    if game.set_mode(req.mode):
        await manager.broadcast_state(game)
    return game.snapshot()


# PUBLIC_INTERFACE
@app.post("/game/{game_id}/score/clear", response_model=GameState, tags=["game"], summary="Clear the scores")
async def clear_score(game_id: str):
    """Zero all scores and reset the board."""
    game = get_game_or_404(game_id)
    game.clear_score()
    await manager.broadcast_state(game)
    return game.snapshot()


# --------------- WebSocket Real-time Game Updates --------------- #

# PUBLIC_INTERFACE
@app.websocket("/ws/game/{game_id}")
async def websocket_endpoint(websocket: WebSocket, game_id: str, suggester: MoveSuggester = Depends(get_suggester)):
    """
    Real-time play for a given game.

    Connect, send actions, receive the new game state after every change,
    including the automated player's move.
    See /ws/docs for the message format.
    """
    game = STORE.get_game(game_id)
    if not game:
        await websocket.close(code=4404)
        return
    await manager.connect(game_id, websocket)
    try:
        await websocket.send_json({"type": "game_state", "state": game.snapshot().model_dump(mode="json")})
        while True:
            try:
                data = await websocket.receive_json()
            except ValueError:
                await websocket.send_json({"error": "Invalid command"})
                continue
            action = data.get("action") if isinstance(data, dict) else None
            if action == "move":
                if not game.select_cell(data.get("index")):
                    await websocket.send_json({"error": "Illegal move", "state": game.snapshot().model_dump(mode="json")})
                    continue
            elif action == "reset":
                game.reset()
            elif action == "toggle_mode":
                game.toggle_mode()
            elif action == "clear_score":
                game.clear_score()
            else:
                await websocket.send_json({"error": "Invalid command"})
                continue
            await manager.broadcast_state(game)
            if game.phase is GamePhase.AWAITING_AUTOMATED_MOVE:
                schedule_automated_turn(game, suggester)
    except WebSocketDisconnect:
        logger.debug("Websocket left game %s", game_id)
    finally:
        manager.disconnect(game_id, websocket)


# PUBLIC_INTERFACE
@app.get("/ws/docs", tags=["ws"], summary="Websocket API usage help")
def websocket_usage():
    """
    API docs for websocket:
    - Endpoint: /ws/game/{game_id}
    - Protocol: JSON messages from client must have one of:
        - { "action": "move", "index": 4 }
        - { "action": "reset" }
        - { "action": "toggle_mode" }
        - { "action": "clear_score" }
    - Responses are { "type": "game_state", "state": {...GameState...}}
    - Errors { "error": "<string>" }
    """
    return {
        "endpoint": "/ws/game/{game_id}",
        "messages": [
            {"action": "move", "index": 4},
            {"action": "reset"},
            {"action": "toggle_mode"},
            {"action": "clear_score"},
        ],
        "response": {
            "type": "game_state",
            "state": "GameState schema"
        }
    }
