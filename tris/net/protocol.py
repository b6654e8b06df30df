from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

# Message kinds exchanged over the wire
# All messages are plain UTF-8 text; framing belongs to the transport (see net.py)
# - handshake:        HANDSHAKE:<token>        token in [0, 10000)
# - replay request:   REPLAY_REQUEST
# - replay accepted:  REPLAY_ACCEPTED
# - replay declined:  REPLAY_DECLINED
# - move:             <row>,<col>              each in [0, 2]
# Decoding checks them in that order; anything else is noise.

HANDSHAKE_PREFIX = "HANDSHAKE:"
REPLAY_REQUEST = "REPLAY_REQUEST"
REPLAY_ACCEPTED = "REPLAY_ACCEPTED"
REPLAY_DECLINED = "REPLAY_DECLINED"


@dataclass(frozen=True)
class Handshake:
    token: int


@dataclass(frozen=True)
class Replay:
    kind: str  # one of REPLAY_REQUEST, REPLAY_ACCEPTED, REPLAY_DECLINED


@dataclass(frozen=True)
class Move:
    row: int
    col: int


Message = Union[Handshake, Replay, Move]


def encode_handshake(token: int) -> str:
    return f"{HANDSHAKE_PREFIX}{token}"


def encode_move(row: int, col: int) -> str:
    return f"{row},{col}"


def _parse_int(text: str) -> Optional[int]:
    try:
        return int(text.strip())
    except ValueError:
        return None


def decode(text: str) -> Optional[Message]:
    """Classify one inbound message, or return None if it is not ours.

    A move is only decoded as a shape here; bounds are the session's concern.
    """
    t = text.strip()
    if t.startswith(HANDSHAKE_PREFIX):
        token = _parse_int(t[len(HANDSHAKE_PREFIX):])
        return Handshake(token) if token is not None else None
    if t in (REPLAY_REQUEST, REPLAY_ACCEPTED, REPLAY_DECLINED):
        return Replay(t)
    parts = t.split(",")
    if len(parts) != 2:
        return None
    row = _parse_int(parts[0])
    col = _parse_int(parts[1])
    if row is None or col is None:
        return None
    return Move(row, col)
