from __future__ import annotations

import logging
import time
from typing import List, Optional, Tuple

import pygame

from .config import DEFAULT_BIND
from .game.board import BOARD_SIZE, Status, Symbol
from .game.session import GameSession, Phase, ReplayState, SessionSnapshot, UpdateKind
from .net.peer import NetworkPeer

logger = logging.getLogger(__name__)


# --------------------------- Pygame rendering ---------------------------

WINDOW_BG = (15, 18, 25)
GRID_BG = (23, 28, 38)
GRID_LINE = (50, 58, 72)
TEXT = (230, 235, 245)
SUBTEXT = (155, 165, 185)
ACCENT = (58, 123, 213)
HOVER = (90, 160, 245)
MARK_FIRST = (232, 93, 117)
MARK_SECOND = (240, 190, 90)
VICTORY = (90, 200, 120)
DEFEAT = (220, 60, 80)

CELL_SIZE = 110
PANEL_PADDING = 40
TOP_BAR = 120
BOTTOM_BAR = 110
BUTTON_W = 150
BUTTON_H = 44


class GuiGame:
    def __init__(self, mode: str, host: Optional[str], port: int, bind: str = DEFAULT_BIND) -> None:
        pygame.init()
        pygame.display.set_caption("Tris")
        total_width = CELL_SIZE * BOARD_SIZE + PANEL_PADDING * 2
        total_height = TOP_BAR + CELL_SIZE * BOARD_SIZE + BOTTOM_BAR
        self.screen = pygame.display.set_mode((total_width, total_height))
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("Arial", 22)
        self.font_small = pygame.font.SysFont("Arial", 18)
        self.font_big = pygame.font.SysFont("Arial", 40, bold=True)

        self.peer = NetworkPeer(mode, host, port, bind)
        self.mode = mode
        self.session = GameSession(self.peer.send)
        self.started = False

        self.running = True
        self.info_message = "Waiting for player to connect..." if mode == "host" else "Connecting..."
        self.message_timer: float = 0.0
        self._buttons: List[Tuple[pygame.Rect, str]] = []

    # --------------------------- Utility ---------------------------
    def show_message(self, text: str, seconds: float = 2.0) -> None:
        self.info_message = text
        self.message_timer = time.time() + seconds

    def get_board_rect(self) -> pygame.Rect:
        return pygame.Rect(PANEL_PADDING, TOP_BAR, CELL_SIZE * BOARD_SIZE, CELL_SIZE * BOARD_SIZE)

    def mouse_to_cell(self, rect: pygame.Rect, pos: Tuple[int, int]) -> Optional[Tuple[int, int]]:
        if not rect.collidepoint(pos):
            return None
        x, y = pos
        col = (x - rect.x) // CELL_SIZE
        row = (y - rect.y) // CELL_SIZE
        if 0 <= row < BOARD_SIZE and 0 <= col < BOARD_SIZE:
            return int(row), int(col)
        return None

    def headline(self, snap: SessionSnapshot) -> Tuple[str, Tuple[int, int, int]]:
        if snap.outcome.status is Status.DRAWN:
            return "Draw!", TEXT
        if snap.outcome.status is Status.WON:
            won = snap.outcome.winner == snap.local_symbol
            return f"Winner: {snap.outcome.winner.value}", VICTORY if won else DEFEAT
        if snap.my_turn:
            return f"Your turn ({snap.local_symbol.value})", TEXT
        return f"Opponent's turn ({snap.remote_symbol.value})", SUBTEXT

    # --------------------------- Draw ---------------------------
    def draw(self) -> None:
        self.screen.fill(WINDOW_BG)
        snap = self.session.snapshot()
        w = self.screen.get_width()

        if snap.phase is Phase.AWAITING_HANDSHAKE:
            title = self.font_big.render("Tris", True, TEXT)
            self.screen.blit(title, (w // 2 - title.get_width() // 2, 60))
            status = self.font.render(self.info_message, True, SUBTEXT)
            self.screen.blit(status, (w // 2 - status.get_width() // 2, 160))
            pygame.display.flip()
            return

        score = self.font.render(f"You: {snap.local_score}    Opponent: {snap.remote_score}", True, SUBTEXT)
        self.screen.blit(score, (w // 2 - score.get_width() // 2, 16))
        text, color = self.headline(snap)
        surf = self.font_big.render(text, True, color)
        self.screen.blit(surf, (w // 2 - surf.get_width() // 2, 52))

        rect = self.get_board_rect()
        self.draw_board(rect, snap)

        if snap.my_turn:
            cell = self.mouse_to_cell(rect, pygame.mouse.get_pos())
            if cell and snap.board[cell[0]][cell[1]] is None:
                r, c = cell
                pygame.draw.rect(self.screen, HOVER, (rect.x + c * CELL_SIZE + 4, rect.y + r * CELL_SIZE + 4, CELL_SIZE - 8, CELL_SIZE - 8), 2)

        self.draw_replay_bar(snap)

        status_text = self.info_message
        if self.message_timer and time.time() > self.message_timer:
            self.message_timer = 0
            self.info_message = ""
            status_text = ""
        if status_text:
            surf = self.font_small.render(status_text, True, SUBTEXT)
            self.screen.blit(surf, (PANEL_PADDING, self.screen.get_height() - 30))

        pygame.display.flip()

    def draw_board(self, rect: pygame.Rect, snap: SessionSnapshot) -> None:
        pygame.draw.rect(self.screen, GRID_BG, rect, border_radius=8)
        for i in range(1, BOARD_SIZE):
            x = rect.x + i * CELL_SIZE
            y = rect.y + i * CELL_SIZE
            pygame.draw.line(self.screen, GRID_LINE, (rect.x, y), (rect.right, y), 3)
            pygame.draw.line(self.screen, GRID_LINE, (x, rect.y), (x, rect.bottom), 3)
        pad = CELL_SIZE // 4
        for r in range(BOARD_SIZE):
            for c in range(BOARD_SIZE):
                mark = snap.board[r][c]
                cx = rect.x + c * CELL_SIZE
                cy = rect.y + r * CELL_SIZE
                if mark is Symbol.FIRST:
                    pygame.draw.line(self.screen, MARK_FIRST, (cx + pad, cy + pad), (cx + CELL_SIZE - pad, cy + CELL_SIZE - pad), 8)
                    pygame.draw.line(self.screen, MARK_FIRST, (cx + CELL_SIZE - pad, cy + pad), (cx + pad, cy + CELL_SIZE - pad), 8)
                elif mark is Symbol.SECOND:
                    pygame.draw.circle(self.screen, MARK_SECOND, (cx + CELL_SIZE // 2, cy + CELL_SIZE // 2), CELL_SIZE // 2 - pad, 7)

    def draw_replay_bar(self, snap: SessionSnapshot) -> None:
        self._buttons = []
        if snap.phase is not Phase.FINISHED:
            return
        w = self.screen.get_width()
        y = TOP_BAR + CELL_SIZE * BOARD_SIZE + 20
        if snap.replay_state is ReplayState.NOT_REQUESTED:
            self._buttons.append((pygame.Rect(w // 2 - BUTTON_W // 2, y, BUTTON_W, BUTTON_H), "Play again"))
        elif snap.replay_state is ReplayState.LOCAL_REQUEST_SENT:
            txt = self.font_small.render("Waiting for the opponent to answer...", True, SUBTEXT)
            self.screen.blit(txt, (w // 2 - txt.get_width() // 2, y + 12))
        else:
            txt = self.font_small.render("Opponent wants a rematch", True, TEXT)
            self.screen.blit(txt, (w // 2 - txt.get_width() // 2, y - 2))
            self._buttons.append((pygame.Rect(w // 2 - BUTTON_W - 8, y + 22, BUTTON_W, BUTTON_H), "Accept"))
            self._buttons.append((pygame.Rect(w // 2 + 8, y + 22, BUTTON_W, BUTTON_H), "Decline"))
        for rect, label in self._buttons:
            pygame.draw.rect(self.screen, ACCENT, rect, border_radius=8)
            surf = self.font.render(label, True, TEXT)
            self.screen.blit(surf, (rect.x + rect.width // 2 - surf.get_width() // 2, rect.y + rect.height // 2 - surf.get_height() // 2))

    # --------------------------- Interaction ---------------------------
    def handle_click(self, pos: Tuple[int, int]) -> None:
        for rect, label in self._buttons:
            if rect.collidepoint(pos):
                if label == "Play again":
                    self.session.request_rematch()
                elif label == "Accept":
                    self.session.accept_rematch()
                elif label == "Decline":
                    self.session.decline_rematch()
                return
        cell = self.mouse_to_cell(self.get_board_rect(), pos)
        if cell is None:
            return
        if not self.session.attempt_local_move(*cell):
            snap = self.session.snapshot()
            if snap.phase is Phase.IN_PROGRESS and not snap.my_turn:
                self.show_message("Not your turn.")

    def handle_update(self, kind: UpdateKind) -> None:
        if kind is UpdateKind.ROLES_ASSIGNED:
            snap = self.session.snapshot()
            self.show_message(f"You play {snap.local_symbol.value}.", 3.0)
        elif kind is UpdateKind.REMATCH_STARTED:
            self.show_message("New game!")
        elif kind is UpdateKind.REPLAY_DECLINED:
            self.show_message("The opponent declined the rematch.", 3.0)

    # --------------------------- Loop ---------------------------
    def run(self) -> None:
        while self.running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    self.running = False
                elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                    self.running = False
                elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                    self.handle_click(event.pos)

            if not self.started and self.peer.connected:
                self.started = self.session.start()
                self.info_message = "Waiting for the opponent's handshake..."

            # Poll incoming; same thread as user input so the session sees one ordered stream
            msg = self.peer.try_get(0.0)
            while msg is not None:
                self.handle_update(self.session.ingest(msg).kind)
                msg = self.peer.try_get(0.0)

            if self.peer.disconnected and self.info_message != "Connection closed.":
                logger.info("peer gone, session left in phase %s", self.session.phase.value)
                self.info_message = "Connection closed."
                self.message_timer = 0

            self.draw()
            self.clock.tick(60)

        self.peer.close()
        pygame.quit()


# --------------------------- Entrypoints ---------------------------

def run_host_gui(port: int, bind: str = DEFAULT_BIND) -> None:
    game = GuiGame("host", host=None, port=port, bind=bind)
    game.run()


def run_client_gui(host: str, port: int) -> None:
    game = GuiGame("client", host=host, port=port)
    game.run()
