from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from ..net import protocol
from ..net.protocol import Handshake, Move, Replay
from .board import PENDING, Board, Outcome, Status, Symbol, check_outcome, in_bounds
from .roles import RoleNegotiator

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    AWAITING_HANDSHAKE = "awaiting_handshake"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class ReplayState(str, Enum):
    NOT_REQUESTED = "not_requested"
    LOCAL_REQUEST_SENT = "local_request_sent"
    REMOTE_REQUEST_RECEIVED = "remote_request_received"


class UpdateKind(str, Enum):
    IGNORED = "ignored"
    ROLES_ASSIGNED = "roles_assigned"
    REMOTE_MOVE = "remote_move"
    REPLAY_REQUESTED = "replay_requested"
    REMATCH_STARTED = "rematch_started"
    REPLAY_DECLINED = "replay_declined"


@dataclass
class SessionUpdate:
    """What one inbound message changed, and what we sent in response."""

    kind: UpdateKind
    sent: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.kind is not UpdateKind.IGNORED


@dataclass(frozen=True)
class SessionSnapshot:
    phase: Phase
    local_symbol: Optional[Symbol]
    remote_symbol: Optional[Symbol]
    board: Tuple[Tuple[Optional[Symbol], ...], ...]
    turn: Optional[Symbol]
    outcome: Outcome
    replay_state: ReplayState
    scores: Dict[Symbol, int]
    starting_symbol: Symbol

    @property
    def my_turn(self) -> bool:
        return self.phase is Phase.IN_PROGRESS and self.turn is not None and self.turn == self.local_symbol

    @property
    def local_score(self) -> int:
        return self.scores[self.local_symbol] if self.local_symbol else 0

    @property
    def remote_score(self) -> int:
        return self.scores[self.remote_symbol] if self.remote_symbol else 0


class GameSession:
    """Board, turns and the rematch sub-protocol for one connection.

    Not thread-safe: every call (inbound messages and user actions alike) must
    come from the one loop that owns the session.

    Simultaneous rematch requests: a REPLAY_REQUEST that arrives while our own
    request is still pending counts as acceptance. Both peers hit this branch,
    both reset, and no further message is sent.
    """

    def __init__(self, send: Callable[[str], None], negotiator: Optional[RoleNegotiator] = None) -> None:
        self._send = send
        self.negotiator = negotiator or RoleNegotiator()
        self.local_token: Optional[int] = None
        self.remote_token: Optional[int] = None
        self.local_symbol: Optional[Symbol] = None
        self.remote_symbol: Optional[Symbol] = None
        self.board = Board()
        # the first game is always opened by FIRST
        self.starting_symbol = Symbol.FIRST
        self.turn: Optional[Symbol] = None
        self.outcome: Outcome = PENDING
        self.replay_state = ReplayState.NOT_REQUESTED
        self.scores: Dict[Symbol, int] = {Symbol.FIRST: 0, Symbol.SECOND: 0}
        self._scored = False
        self._outbox: List[str] = []

    # --------------------------- State ---------------------------
    @property
    def phase(self) -> Phase:
        if self.local_symbol is None:
            return Phase.AWAITING_HANDSHAKE
        if self.outcome.is_over:
            return Phase.FINISHED
        return Phase.IN_PROGRESS

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            phase=self.phase,
            local_symbol=self.local_symbol,
            remote_symbol=self.remote_symbol,
            board=self.board.rows(),
            turn=self.turn,
            outcome=self.outcome,
            replay_state=self.replay_state,
            scores=dict(self.scores),
            starting_symbol=self.starting_symbol,
        )

    def _dispatch(self, text: str) -> None:
        logger.debug("send %r", text)
        self._send(text)
        self._outbox.append(text)

    # --------------------------- Handshake ---------------------------
    def start(self) -> bool:
        """Draw our token and announce it. Only the first call does anything."""
        if self.local_token is not None:
            return False
        self.local_token = self.negotiator.generate_token()
        self._dispatch(protocol.encode_handshake(self.local_token))
        if self.remote_token == self.local_token:
            logger.warning("early handshake token %d equals ours, still waiting", self.local_token)
            self.remote_token = None
        if self.remote_token is not None:
            self._assign_roles()
        return True

    def _on_handshake(self, msg: Handshake) -> UpdateKind:
        if self.local_symbol is not None or self.remote_token is not None:
            logger.debug("duplicate handshake %d ignored", msg.token)
            return UpdateKind.IGNORED
        if msg.token == self.local_token:
            logger.warning("handshake token %d equals ours (echo or collision), still waiting", msg.token)
            return UpdateKind.IGNORED
        self.remote_token = msg.token
        if self.local_token is None:
            # peer was faster than our start(); resolved there
            return UpdateKind.IGNORED
        self._assign_roles()
        return UpdateKind.ROLES_ASSIGNED

    def _assign_roles(self) -> None:
        assert self.local_token is not None and self.remote_token is not None
        self.local_symbol = self.negotiator.resolve_role(self.local_token, self.remote_token)
        self.remote_symbol = self.local_symbol.other
        self.turn = self.starting_symbol
        logger.info(
            "roles assigned: local=%s remote=%s (tokens %d vs %d)",
            self.local_symbol.value, self.remote_symbol.value, self.local_token, self.remote_token,
        )

    # --------------------------- Moves ---------------------------
    def _apply_move(self, symbol: Symbol, row: int, col: int) -> bool:
        if self.phase is not Phase.IN_PROGRESS or self.turn != symbol:
            return False
        if not self.board.place(symbol, row, col):
            return False
        self._update_outcome()
        if not self.outcome.is_over:
            self.turn = symbol.other
        return True

    def _update_outcome(self) -> None:
        self.outcome = check_outcome(self.board)
        if self.outcome.status is Status.WON and not self._scored:
            self.scores[self.outcome.winner] += 1
            self._scored = True
            logger.info("game won by %s, score %s", self.outcome.winner.value, self._score_text())
        elif self.outcome.status is Status.DRAWN:
            logger.info("game drawn, score %s", self._score_text())

    def _score_text(self) -> str:
        return f"{Symbol.FIRST.value}={self.scores[Symbol.FIRST]} {Symbol.SECOND.value}={self.scores[Symbol.SECOND]}"

    def attempt_local_move(self, row: int, col: int) -> bool:
        if self.local_symbol is None or not self._apply_move(self.local_symbol, row, col):
            return False
        self._dispatch(protocol.encode_move(row, col))
        return True

    def _on_move(self, msg: Move) -> UpdateKind:
        if self.remote_symbol is None or not in_bounds(msg.row, msg.col):
            logger.info("dropping move %d,%d", msg.row, msg.col)
            return UpdateKind.IGNORED
        if not self._apply_move(self.remote_symbol, msg.row, msg.col):
            logger.info("dropping move %d,%d (occupied, out of turn or game over)", msg.row, msg.col)
            return UpdateKind.IGNORED
        return UpdateKind.REMOTE_MOVE

    # --------------------------- Rematch ---------------------------
    def _reset(self) -> None:
        self.board.clear()
        self.outcome = PENDING
        self.replay_state = ReplayState.NOT_REQUESTED
        self.starting_symbol = self.starting_symbol.other
        self.turn = self.starting_symbol
        self._scored = False
        logger.info("rematch started, %s opens", self.starting_symbol.value)

    def request_rematch(self) -> bool:
        if self.phase is not Phase.FINISHED or self.replay_state is not ReplayState.NOT_REQUESTED:
            return False
        self._dispatch(protocol.REPLAY_REQUEST)
        self.replay_state = ReplayState.LOCAL_REQUEST_SENT
        return True

    def accept_rematch(self) -> bool:
        if self.replay_state is not ReplayState.REMOTE_REQUEST_RECEIVED:
            return False
        self._dispatch(protocol.REPLAY_ACCEPTED)
        self._reset()
        return True

    def decline_rematch(self) -> bool:
        if self.replay_state is not ReplayState.REMOTE_REQUEST_RECEIVED:
            return False
        self._dispatch(protocol.REPLAY_DECLINED)
        self.replay_state = ReplayState.NOT_REQUESTED
        return True

    def _on_replay(self, msg: Replay) -> UpdateKind:
        if self.phase is not Phase.FINISHED:
            logger.info("%s outside a finished game ignored", msg.kind)
            return UpdateKind.IGNORED
        state = self.replay_state
        if msg.kind == protocol.REPLAY_REQUEST:
            if state is ReplayState.NOT_REQUESTED:
                self.replay_state = ReplayState.REMOTE_REQUEST_RECEIVED
                return UpdateKind.REPLAY_REQUESTED
            if state is ReplayState.LOCAL_REQUEST_SENT:
                # both asked at once
                self._reset()
                return UpdateKind.REMATCH_STARTED
        elif msg.kind == protocol.REPLAY_ACCEPTED:
            if state is ReplayState.LOCAL_REQUEST_SENT:
                self._reset()
                return UpdateKind.REMATCH_STARTED
        elif msg.kind == protocol.REPLAY_DECLINED:
            if state is ReplayState.LOCAL_REQUEST_SENT:
                self.replay_state = ReplayState.NOT_REQUESTED
                return UpdateKind.REPLAY_DECLINED
        logger.info("%s ignored in replay state %s", msg.kind, state.value)
        return UpdateKind.IGNORED

    # --------------------------- Inbound ---------------------------
    def ingest(self, text: str) -> SessionUpdate:
        """Handle exactly one inbound message. Never raises on bad input."""
        self._outbox = []
        msg = protocol.decode(text)
        if msg is None:
            logger.debug("ignoring unrecognised message %r", text)
            kind = UpdateKind.IGNORED
        elif isinstance(msg, Handshake):
            kind = self._on_handshake(msg)
        elif isinstance(msg, Replay):
            kind = self._on_replay(msg)
        else:
            kind = self._on_move(msg)
        update = SessionUpdate(kind, self._outbox)
        self._outbox = []
        return update

    def consume(self, messages: Iterable[str]) -> Iterator[SessionUpdate]:
        for text in messages:
            yield self.ingest(text)
