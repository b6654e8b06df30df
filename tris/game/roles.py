from __future__ import annotations

import random
from typing import Optional

from .board import Symbol

TOKEN_LIMIT = 10000


class RoleNegotiator:
    """Decide which of two identical peers plays FIRST without a coordinator.

    Each peer draws a token and sends it to the other. Both then compare
    (local, remote) in the same direction, so for distinct tokens exactly one
    side ends up FIRST.

    Ties: ``resolve_role`` gives FIRST on ``local >= remote``, so equal tokens
    make *both* sides FIRST. GameSession never lets that happen, because a
    handshake carrying our own token is indistinguishable from an echo and is
    ignored (the session keeps waiting).
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()

    def generate_token(self) -> int:
        return self.rng.randrange(TOKEN_LIMIT)

    @staticmethod
    def resolve_role(local_token: int, remote_token: int) -> Symbol:
        return Symbol.FIRST if local_token >= remote_token else Symbol.SECOND
