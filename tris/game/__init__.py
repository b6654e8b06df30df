from .board import BOARD_SIZE, DRAWN, PENDING, Board, Outcome, Status, Symbol, check_outcome
from .roles import RoleNegotiator
from .session import GameSession, Phase, ReplayState, SessionSnapshot, SessionUpdate, UpdateKind
