import asyncio
import threading

from conftest import FailingSuggester, ScriptedSuggester
from src.api.controller import GameController
from src.api.models import GameMode, GamePhase, OutcomeStatus, Player

X, O = Player.X, Player.O


def play(game, *indices):
    for i in indices:
        assert game.select_cell(i), f"move {i} rejected"


def test_fresh_game_x_opens():
    game = GameController("g1", mode=GameMode.PVP)
    assert game.phase is GamePhase.AWAITING_MOVE
    assert game.turn is X
    assert game.board == [None] * 9


def test_turns_alternate_until_finished():
    game = GameController("g1", mode=GameMode.PVP)
    seen = []
    for i in (4, 0, 8, 2, 1, 7, 6, 3, 5):
        seen.append(game.turn)
        assert game.select_cell(i)
    assert seen == [X, O, X, O, X, O, X, O, X]
    assert game.phase is GamePhase.FINISHED
    assert game.next_turn is None


def test_x_completes_row_and_scores_once():
    game = GameController("g1", mode=GameMode.PVP)
    play(game, 0, 4, 1, 8)
    assert game.board == [X, X, None, None, O, None, None, None, O]
    assert game.select_cell(2)
    assert game.outcome.status is OutcomeStatus.WIN
    assert game.outcome.winner is X
    assert game.outcome.winning_line == (0, 1, 2)
    assert game.scores.x == 1
    assert game.scores.o == 0
    assert game.status_message() == "Player X Wins!"

    assert not game.select_cell(3)
    assert game.scores.x == 1


def test_draw_is_counted():
    game = GameController("g1", mode=GameMode.PVP)
    play(game, 0, 1, 2, 4, 3, 5, 7, 6, 8)
    assert game.board == [X, O, X, X, O, O, O, X, X]
    assert game.outcome.status is OutcomeStatus.DRAW
    assert game.scores.draws == 1
    assert game.status_message() == "It's a Tie!"


def test_illegal_moves_change_nothing():
    game = GameController("g1", mode=GameMode.PVP)
    play(game, 4)
    board, turn = list(game.board), game.turn
    for index in (4, -1, 9, None):
        assert not game.select_cell(index)
        assert game.board == board
        assert game.turn is turn


def test_reset_keeps_scores():
    game = GameController("g1", mode=GameMode.PVP)
    play(game, 0, 3, 1, 4, 2)
    game.reset()
    assert game.board == [None] * 9
    assert game.turn is X
    assert game.phase is GamePhase.AWAITING_MOVE
    assert game.scores.x == 1


def test_clear_score_resets_everything():
    game = GameController("g1", mode=GameMode.PVP)
    play(game, 0, 3, 1, 4, 2)
    game.clear_score()
    assert (game.scores.x, game.scores.o, game.scores.draws) == (0, 0, 0)
    assert game.board == [None] * 9
    assert game.turn is X


def test_mode_change_resets_board():
    game = GameController("g1", mode=GameMode.PVP)
    play(game, 0)
    assert game.toggle_mode() is GameMode.PVE
    assert game.board == [None] * 9
    assert game.turn is X
    assert not game.set_mode(GameMode.PVE)


def test_pve_enters_automated_phase_and_rejects_humans():
    game = GameController("g1", mode=GameMode.PVE)
    play(game, 0)
    assert game.phase is GamePhase.AWAITING_AUTOMATED_MOVE
    assert game.turn is O
    assert not game.select_cell(4)
    assert game.board[4] is None


def test_automated_turn_uses_board_snapshot():
    game = GameController("g1", mode=GameMode.PVE)
    play(game, 0)
    suggester = ScriptedSuggester(moves=[4])
    assert asyncio.run(game.play_automated_turn(suggester))
    assert suggester.boards == [[X, None, None, None, None, None, None, None, None]]
    assert game.board[4] is O
    assert game.phase is GamePhase.AWAITING_MOVE
    assert game.turn is X


def test_automated_turn_falls_back_when_suggester_fails():
    game = GameController("g1", mode=GameMode.PVE)
    play(game, 0)
    assert asyncio.run(game.play_automated_turn(FailingSuggester()))
    assert game.board.count(O) == 1
    assert game.board[0] is X
    assert game.turn is X


def test_automated_turn_not_due_is_noop():
    game = GameController("g1", mode=GameMode.PVE)
    suggester = ScriptedSuggester(moves=[4])
    assert not asyncio.run(game.play_automated_turn(suggester))
    assert suggester.boards == []


def test_automated_win_scores_for_o():
    game = GameController("g1", mode=GameMode.PVE)
    suggester = ScriptedSuggester(moves=[4, 2, 6])

    async def scenario():
        for human in (0, 1, 8):
            assert game.select_cell(human)
            assert await game.play_automated_turn(suggester)

    asyncio.run(scenario())
    assert game.outcome.winner is O
    assert game.outcome.winning_line == (2, 4, 6)
    assert game.scores.o == 1


def test_reset_during_suggestion_discards_it():
    game = GameController("g1", mode=GameMode.PVE)
    play(game, 0)

    class SlowSuggester(ScriptedSuggester):
        async def propose(self, board):
            game.reset()
            return 4

    assert not asyncio.run(game.play_automated_turn(SlowSuggester()))
    assert game.board == [None] * 9
    assert game.phase is GamePhase.AWAITING_MOVE
    assert not game.suggestion_in_flight


def test_only_one_suggestion_in_flight():
    game = GameController("g1", mode=GameMode.PVE)
    play(game, 0)

    async def scenario():
        started = asyncio.Event()
        release = asyncio.Event()

        class GatedSuggester(ScriptedSuggester):
            async def propose(self, board):
                started.set()
                await release.wait()
                return 4

        first = asyncio.ensure_future(game.play_automated_turn(GatedSuggester()))
        await started.wait()
        assert game.snapshot().ai_thinking
        assert game.status_message() == "Computer is thinking..."
        second = await game.play_automated_turn(ScriptedSuggester(moves=[5]))
        release.set()
        return await first, second

    first, second = asyncio.run(scenario())
    assert first is True
    assert second is False
    assert game.board[4] is O
    assert game.board[5] is None


def test_snapshot_is_a_copy():
    game = GameController("g1", mode=GameMode.PVP)
    state = game.snapshot()
    play(game, 4)
    assert state.board[4] is None
    assert state.status_message == "Player X's Turn"
    assert game.snapshot().status_message == "Player O's Turn"


def test_reset_keeps_single_request_and_serves_next_game():
    game = GameController("g1", mode=GameMode.PVE)
    play(game, 0)

    async def scenario():
        started = asyncio.Event()
        release = asyncio.Event()
        active = []
        peak = []

        class GatedSuggester(ScriptedSuggester):
            async def propose(self, board):
                active.append(1)
                peak.append(len(active))
                started.set()
                await release.wait()
                active.pop()
                return 4

        gated = GatedSuggester()
        first = asyncio.ensure_future(game.play_automated_turn(gated))
        await started.wait()
        game.reset()
        assert not game.snapshot().ai_thinking
        assert game.select_cell(0)
        second = await game.play_automated_turn(ScriptedSuggester(moves=[5]))
        release.set()
        return await first, second, max(peak), gated.boards

    first, second, peak, boards = asyncio.run(scenario())
    assert peak == 1
    assert second is False
    assert first is True
    # The stale answer is dropped and the current board is asked for again.
    assert len(boards) == 2
    assert game.board[0] is X
    assert game.board[4] is O
    assert game.board.count(O) == 1
    assert game.phase is GamePhase.AWAITING_MOVE
    assert not game.suggestion_in_flight


def test_mode_change_during_suggestion_ends_request():
    game = GameController("g1", mode=GameMode.PVE)
    play(game, 0)

    class SwitchingSuggester(ScriptedSuggester):
        async def propose(self, board):
            game.set_mode(GameMode.PVP)
            return 4

    assert not asyncio.run(game.play_automated_turn(SwitchingSuggester()))
    assert game.board == [None] * 9
    assert not game.suggestion_in_flight


def test_concurrent_toggles_alternate():
    game = GameController("g1", mode=GameMode.PVP)
    results = []
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        for _ in range(25):
            results.append(game.toggle_mode())

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(GameMode.PVE) == results.count(GameMode.PVP) == 100
    assert game.mode is GameMode.PVP
