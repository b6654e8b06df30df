from __future__ import annotations

from typing import List

import pytest

from tris.game.board import DRAWN, PENDING, Outcome, Symbol
from tris.game.roles import RoleNegotiator
from tris.game.session import GameSession, Phase, ReplayState, UpdateKind


class FixedNegotiator(RoleNegotiator):
    def __init__(self, token: int) -> None:
        super().__init__()
        self.token = token

    def generate_token(self) -> int:
        return self.token


class Pair:
    """Two sessions wired back to back through in-order mailboxes."""

    def __init__(self, token_a: int = 42, token_b: int = 7) -> None:
        self.to_a: List[str] = []
        self.to_b: List[str] = []
        self.a = GameSession(self.to_b.append, FixedNegotiator(token_a))
        self.b = GameSession(self.to_a.append, FixedNegotiator(token_b))

    def pump(self) -> None:
        while self.to_a or self.to_b:
            if self.to_a:
                self.a.ingest(self.to_a.pop(0))
            if self.to_b:
                self.b.ingest(self.to_b.pop(0))

    def start(self) -> "Pair":
        self.a.start()
        self.b.start()
        self.pump()
        return self

    def play(self, *moves) -> None:
        """Alternate moves, starting with whoever holds the turn."""
        for row, col in moves:
            mover = self.a if self.a.snapshot().my_turn else self.b
            assert mover.attempt_local_move(row, col)
            self.pump()


def play_x_win(pair: Pair) -> None:
    pair.play((0, 0), (1, 1), (0, 1), (1, 0), (0, 2))


# --------------------------- Handshake ---------------------------

def test_new_session_waits_for_handshake() -> None:
    sent: List[str] = []
    session = GameSession(sent.append, FixedNegotiator(42))
    assert session.phase is Phase.AWAITING_HANDSHAKE
    assert session.start()
    assert sent == ["HANDSHAKE:42"]
    assert not session.start()
    assert sent == ["HANDSHAKE:42"]
    assert session.phase is Phase.AWAITING_HANDSHAKE


def test_handshake_assigns_complementary_roles() -> None:
    pair = Pair(42, 7).start()
    a, b = pair.a.snapshot(), pair.b.snapshot()
    assert a.local_symbol is Symbol.FIRST and a.remote_symbol is Symbol.SECOND
    assert b.local_symbol is Symbol.SECOND and b.remote_symbol is Symbol.FIRST
    assert a.phase is b.phase is Phase.IN_PROGRESS
    assert a.turn is b.turn is Symbol.FIRST
    assert a.my_turn and not b.my_turn


def test_own_token_echo_is_ignored() -> None:
    session = GameSession(lambda text: None, FixedNegotiator(42))
    session.start()
    update = session.ingest("HANDSHAKE:42")
    assert update.kind is UpdateKind.IGNORED
    assert session.phase is Phase.AWAITING_HANDSHAKE
    assert session.ingest("HANDSHAKE:41").kind is UpdateKind.ROLES_ASSIGNED
    assert session.local_symbol is Symbol.FIRST


def test_handshake_before_start_is_resolved_on_start() -> None:
    session = GameSession(lambda text: None, FixedNegotiator(3))
    assert session.ingest("HANDSHAKE:9000").kind is UpdateKind.IGNORED
    assert session.phase is Phase.AWAITING_HANDSHAKE
    session.start()
    assert session.local_symbol is Symbol.SECOND
    assert session.phase is Phase.IN_PROGRESS


def test_early_handshake_colliding_with_our_token_keeps_waiting() -> None:
    session = GameSession(lambda text: None, FixedNegotiator(5))
    session.ingest("HANDSHAKE:5")
    session.start()
    assert session.phase is Phase.AWAITING_HANDSHAKE


def test_stray_handshake_mid_game_is_ignored() -> None:
    pair = Pair().start()
    pair.play((0, 0))
    before = pair.b.snapshot()
    assert pair.b.ingest("HANDSHAKE:9999").kind is UpdateKind.IGNORED
    assert pair.b.snapshot() == before


def test_moves_before_handshake_are_ignored() -> None:
    session = GameSession(lambda text: None, FixedNegotiator(1))
    session.start()
    assert not session.attempt_local_move(0, 0)
    assert session.ingest("0,0").kind is UpdateKind.IGNORED
    assert session.board.is_empty(0, 0)


# --------------------------- Moves ---------------------------

def test_local_move_sends_and_flips_turn() -> None:
    pair = Pair().start()
    assert pair.a.attempt_local_move(1, 2)
    assert pair.to_b == ["1,2"]
    assert pair.a.turn is Symbol.SECOND
    update = pair.b.ingest(pair.to_b.pop(0))
    assert update.kind is UpdateKind.REMOTE_MOVE
    assert update.sent == []
    assert pair.b.board.grid[1][2] is Symbol.FIRST
    assert pair.b.snapshot().my_turn


def test_move_out_of_turn_is_rejected() -> None:
    pair = Pair().start()
    before = pair.b.snapshot()
    assert not pair.b.attempt_local_move(0, 0)
    assert pair.b.snapshot() == before
    assert pair.to_a == []


def test_move_on_occupied_cell_is_rejected() -> None:
    pair = Pair().start()
    pair.play((0, 0))
    before = pair.b.snapshot()
    assert not pair.b.attempt_local_move(0, 0)
    assert pair.b.snapshot() == before
    assert pair.to_a == []


def test_remote_move_on_occupied_cell_is_dropped() -> None:
    pair = Pair().start()
    pair.play((0, 0), (1, 1))
    before = pair.a.snapshot()
    assert pair.a.ingest("0,0").kind is UpdateKind.IGNORED
    assert pair.a.snapshot() == before


def test_remote_move_out_of_turn_is_dropped() -> None:
    pair = Pair().start()
    # it is A's turn, so a move "from" B is a duplicate or corruption
    assert pair.a.ingest("2,2").kind is UpdateKind.IGNORED
    assert pair.a.board.is_empty(2, 2)
    assert pair.a.snapshot().my_turn


@pytest.mark.parametrize("text", ["3,0", "0,3", "-1,1", "7,7"])
def test_remote_move_out_of_range_is_dropped(text) -> None:
    pair = Pair().start()
    pair.play((0, 0))
    before = pair.a.snapshot()
    assert pair.a.ingest(text).kind is UpdateKind.IGNORED
    assert pair.a.snapshot() == before


@pytest.mark.parametrize("text", ["", "garbage", "1;1", "HANDSHAKE:x", "1,2,3"])
def test_noise_is_ignored(text) -> None:
    pair = Pair().start()
    before = pair.b.snapshot()
    assert pair.b.ingest(text).kind is UpdateKind.IGNORED
    assert pair.b.snapshot() == before


# --------------------------- Outcome and scores ---------------------------

def test_end_to_end_first_player_wins() -> None:
    pair = Pair(42, 7).start()
    pair.play((0, 0), (1, 1), (0, 1), (1, 0))
    assert pair.a.outcome == PENDING
    pair.play((0, 2))
    for session in (pair.a, pair.b):
        snap = session.snapshot()
        assert snap.outcome == Outcome.won(Symbol.FIRST)
        assert snap.phase is Phase.FINISHED
        assert snap.turn is Symbol.FIRST
        assert not snap.my_turn
        assert snap.scores == {Symbol.FIRST: 1, Symbol.SECOND: 0}
    assert (pair.a.snapshot().local_score, pair.a.snapshot().remote_score) == (1, 0)
    assert (pair.b.snapshot().local_score, pair.b.snapshot().remote_score) == (0, 1)


def test_no_moves_after_game_over() -> None:
    pair = Pair().start()
    play_x_win(pair)
    assert not pair.b.attempt_local_move(2, 2)
    assert pair.a.ingest("2,2").kind is UpdateKind.IGNORED


def test_recomputing_outcome_does_not_score_twice() -> None:
    pair = Pair().start()
    play_x_win(pair)
    pair.a._update_outcome()
    pair.a._update_outcome()
    assert pair.a.scores == {Symbol.FIRST: 1, Symbol.SECOND: 0}


def test_draw_scores_nobody() -> None:
    pair = Pair().start()
    # X O X / X O O / O X X
    pair.play((0, 0), (0, 1), (0, 2), (1, 1), (1, 0), (1, 2), (2, 1), (2, 0), (2, 2))
    for session in (pair.a, pair.b):
        assert session.outcome == DRAWN
        assert session.scores == {Symbol.FIRST: 0, Symbol.SECOND: 0}


# --------------------------- Rematch ---------------------------

def test_rematch_needs_finished_game() -> None:
    pair = Pair().start()
    assert not pair.a.request_rematch()
    assert pair.a.replay_state is ReplayState.NOT_REQUESTED
    assert pair.b.ingest("REPLAY_REQUEST").kind is UpdateKind.IGNORED
    assert pair.b.replay_state is ReplayState.NOT_REQUESTED


def test_accept_and_decline_need_a_request() -> None:
    pair = Pair().start()
    play_x_win(pair)
    assert not pair.a.accept_rematch()
    assert not pair.a.decline_rematch()
    assert pair.to_b == []


def test_request_then_accept_resets_and_flips_starter() -> None:
    pair = Pair().start()
    play_x_win(pair)
    assert pair.a.request_rematch()
    assert pair.a.replay_state is ReplayState.LOCAL_REQUEST_SENT
    assert not pair.a.request_rematch()
    update = pair.b.ingest(pair.to_b.pop(0))
    assert update.kind is UpdateKind.REPLAY_REQUESTED
    assert pair.b.replay_state is ReplayState.REMOTE_REQUEST_RECEIVED

    assert pair.b.accept_rematch()
    assert pair.to_a == ["REPLAY_ACCEPTED"]
    assert pair.a.ingest(pair.to_a.pop(0)).kind is UpdateKind.REMATCH_STARTED

    for session in (pair.a, pair.b):
        snap = session.snapshot()
        assert all(cell is None for row in snap.board for cell in row)
        assert snap.outcome == PENDING
        assert snap.replay_state is ReplayState.NOT_REQUESTED
        assert snap.starting_symbol is Symbol.SECOND
        assert snap.turn is Symbol.SECOND
        assert snap.scores == {Symbol.FIRST: 1, Symbol.SECOND: 0}
    # roles survive the rematch
    assert pair.a.local_symbol is Symbol.FIRST
    assert not pair.a.attempt_local_move(0, 0)
    assert pair.b.attempt_local_move(0, 0)


def test_starter_alternates_over_a_series() -> None:
    pair = Pair().start()
    starters = []
    for _ in range(3):
        starters.append(pair.a.starting_symbol)
        if pair.a.turn is Symbol.FIRST:
            play_x_win(pair)
        else:
            pair.play((0, 0), (2, 2), (0, 1), (2, 1), (0, 2))
        pair.a.request_rematch()
        pair.pump()
        pair.b.accept_rematch()
        pair.pump()
    assert starters == [Symbol.FIRST, Symbol.SECOND, Symbol.FIRST]
    assert pair.a.scores == pair.b.scores == {Symbol.FIRST: 2, Symbol.SECOND: 1}


def test_request_then_decline_leaves_board() -> None:
    pair = Pair().start()
    play_x_win(pair)
    board = pair.a.board.rows()
    pair.a.request_rematch()
    pair.pump()
    assert pair.b.decline_rematch()
    assert pair.b.replay_state is ReplayState.NOT_REQUESTED
    assert pair.to_a == ["REPLAY_DECLINED"]
    assert pair.a.ingest(pair.to_a.pop(0)).kind is UpdateKind.REPLAY_DECLINED
    assert pair.a.replay_state is ReplayState.NOT_REQUESTED
    assert pair.a.board.rows() == pair.b.board.rows() == board
    assert pair.a.outcome == Outcome.won(Symbol.FIRST)
    # may ask again
    assert pair.a.request_rematch()


def test_simultaneous_requests_start_the_rematch() -> None:
    pair = Pair().start()
    play_x_win(pair)
    assert pair.a.request_rematch()
    assert pair.b.request_rematch()
    kinds = [pair.a.ingest(pair.to_a.pop(0)).kind, pair.b.ingest(pair.to_b.pop(0)).kind]
    assert kinds == [UpdateKind.REMATCH_STARTED, UpdateKind.REMATCH_STARTED]
    assert pair.to_a == [] and pair.to_b == []
    assert pair.a.snapshot().turn is pair.b.snapshot().turn is Symbol.SECOND
    assert pair.a.phase is pair.b.phase is Phase.IN_PROGRESS


def test_unsolicited_accept_or_decline_is_ignored() -> None:
    pair = Pair().start()
    play_x_win(pair)
    before = pair.a.snapshot()
    assert pair.a.ingest("REPLAY_ACCEPTED").kind is UpdateKind.IGNORED
    assert pair.a.ingest("REPLAY_DECLINED").kind is UpdateKind.IGNORED
    assert pair.a.snapshot() == before


def test_consume_processes_messages_in_order() -> None:
    session = GameSession(lambda text: None, FixedNegotiator(1))
    session.start()
    kinds = [u.kind for u in session.consume(["noise", "HANDSHAKE:50", "1,1", "1,1"])]
    assert kinds == [UpdateKind.IGNORED, UpdateKind.ROLES_ASSIGNED, UpdateKind.REMOTE_MOVE, UpdateKind.IGNORED]
    assert session.board.grid[1][1] is Symbol.FIRST
    assert session.local_symbol is Symbol.SECOND
