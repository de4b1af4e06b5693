from __future__ import annotations

import logging
import time
from typing import List, Optional, Tuple

import pygame

from .battleship.board import project
from .battleship.model import (
    Adding,
    GameState,
    Guessing,
    Location,
    Ship,
    ShipDirection,
    Waiting,
    Won,
    next_ship_length,
)
from .config import Config
from .errors import ChannelClosed, InvariantViolation, SendFailed
from .net.channel import ServerChannel
from .session import GameSession

logger = logging.getLogger(__name__)

# --------------------------- Pygame rendering ---------------------------

WINDOW_BG = (15, 18, 25)
GRID_BG = (23, 28, 38)
GRID_LINE = (50, 58, 72)
TEXT = (230, 235, 245)
SUBTEXT = (155, 165, 185)
SHIP = (60, 130, 200)
SHIP_OUTLINE = (40, 95, 160)
HOVER = (90, 160, 245)
INVALID = (210, 75, 90)
VICTORY = (90, 200, 120)
DEFEAT = (220, 60, 80)

PANEL_PADDING = 28
TOP_BAR = 84
BOTTOM_BAR = 60
MIN_WIDTH = 520

# Used until the first Adding snapshot tells us the real size.
FALLBACK_BOARD_SIZE = 10


def mouse_to_cell(origin: Tuple[int, int], size: int, pos: Tuple[int, int],
                  cell_size: int) -> Optional[Location]:
    """Board cell under a pixel position, or None when outside the board."""
    ox, oy = origin
    px, py = pos
    if px < ox or py < oy:
        return None
    x = (px - ox) // cell_size
    y = (py - oy) // cell_size
    if 0 <= x < size and 0 <= y < size:
        return Location(int(x), int(y))
    return None


def window_size(board_size: int, cell_size: int) -> Tuple[int, int]:
    width = max(MIN_WIDTH, cell_size * board_size + PANEL_PADDING * 2)
    height = TOP_BAR + cell_size * board_size + BOTTOM_BAR
    return width, height


class GuiGame:
    def __init__(self, config: Config, session: Optional[GameSession] = None) -> None:
        self.config = config
        self.cell_size = config.cell_size
        self.session = session or GameSession(
            ServerChannel(config.server_url, connect_timeout=config.connect_timeout)
        )
        self.store = self.session.store
        self.encoder = self.session.encoder

        self.board_size = FALLBACK_BOARD_SIZE
        self.occupancy: Optional[List[List[bool]]] = None
        self.board_error: Optional[str] = None

        self.running = True
        self.info_message = "Connecting..."
        self.message_timer: float = 0.0

        self._unsubscribe = self.store.subscribe(self.on_state)

        pygame.init()
        pygame.display.set_caption("Broadside")
        self.screen = pygame.display.set_mode(window_size(self.board_size, self.cell_size))
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("Arial", 22)
        self.font_small = pygame.font.SysFont("Arial", 18)
        self.font_big = pygame.font.SysFont("Arial", 48, bold=True)

    # --------------------------- State ---------------------------
    def on_state(self, state: GameState) -> None:
        self.occupancy = None
        self.board_error = None
        if isinstance(state, Adding):
            if state.size != self.board_size:
                try:
                    self.screen = pygame.display.set_mode(window_size(state.size, self.cell_size))
                except pygame.error as exc:
                    logger.error("cannot open a window for a %dx%d board: %s", state.size, state.size, exc)
                    self.board_error = "Board too large to display"
                    return
                self.board_size = state.size
            try:
                self.occupancy = project(state.ships, state.size)
            except InvariantViolation as exc:
                logger.error("not drawing board for this snapshot: %s", exc)
                self.board_error = "Server sent an inconsistent board"
        elif isinstance(state, (Waiting, Guessing, Won)):
            pass
        else:
            raise TypeError(f"unhandled game state {state!r}")

    # --------------------------- Utility ---------------------------
    def show_message(self, text: str, seconds: float = 2.0) -> None:
        self.info_message = text
        self.message_timer = time.time() + seconds

    def board_rect(self) -> pygame.Rect:
        side = self.cell_size * self.board_size
        x = self.screen.get_width() // 2 - side // 2
        return pygame.Rect(x, TOP_BAR, side, side)

    def cell_at(self, pos: Tuple[int, int]) -> Optional[Location]:
        rect = self.board_rect()
        return mouse_to_cell((rect.x, rect.y), self.board_size, pos, self.cell_size)

    # --------------------------- Draw ---------------------------
    def draw(self) -> None:
        self.screen.fill(WINDOW_BG)
        state = self.store.get()
        if isinstance(state, Waiting):
            self.draw_centered("Broadside", self.font_big, TEXT, 40)
            status = "Waiting for second player..." if self.session.connected else self.info_message
            self.draw_centered(status, self.font, SUBTEXT, 140)
        elif isinstance(state, Adding):
            self.draw_title(f"Place your ships ({self.encoder.direction.name.lower()})")
            if self.occupancy is not None:
                self.draw_board(self.occupancy)
                self.draw_placement_preview(state)
            else:
                self.draw_centered(self.board_error or "", self.font, INVALID, TOP_BAR + 40)
        elif isinstance(state, Guessing):
            self.draw_title("Pick a cell to fire at")
            self.draw_board(None)
            self.draw_hover()
        elif isinstance(state, Won):
            self.draw_centered(f"Player {state.who.number} wins!", self.font_big, VICTORY, 40)
        else:
            raise TypeError(f"unhandled game state {state!r}")

        status_text = self.info_message
        if self.session.closed:
            status_text = "Disconnected from server"
        elif self.message_timer and time.time() > self.message_timer:
            self.message_timer = 0
            self.info_message = ""
            status_text = ""
        self.draw_status_bar(status_text)
        pygame.display.flip()

    def draw_centered(self, text: str, font: "pygame.font.Font", color, y: int) -> None:
        surf = font.render(text, True, color)
        self.screen.blit(surf, (self.screen.get_width() // 2 - surf.get_width() // 2, y))

    def draw_title(self, text: str) -> None:
        txt = self.font.render(text, True, TEXT)
        self.screen.blit(txt, (self.board_rect().x, 24))

    def draw_status_bar(self, text: str) -> None:
        if not text:
            return
        color = DEFEAT if self.session.closed else SUBTEXT
        surf = self.font.render(text, True, color)
        self.screen.blit(surf, (PANEL_PADDING, self.screen.get_height() - BOTTOM_BAR + 16))

    def draw_board(self, occupancy: Optional[List[List[bool]]]) -> None:
        rect = self.board_rect()
        cs = self.cell_size
        pygame.draw.rect(self.screen, GRID_BG, rect, border_radius=8)
        for i in range(self.board_size + 1):
            x = rect.x + i * cs
            y = rect.y + i * cs
            pygame.draw.line(self.screen, GRID_LINE, (rect.x, y), (rect.right, y))
            pygame.draw.line(self.screen, GRID_LINE, (x, rect.y), (x, rect.bottom))
        for i in range(self.board_size):
            row = self.font_small.render(str(i), True, SUBTEXT)
            col = self.font_small.render(str(i), True, SUBTEXT)
            self.screen.blit(row, (rect.x - 18, rect.y + i * cs + cs // 2 - row.get_height() // 2))
            self.screen.blit(col, (rect.x + i * cs + cs // 2 - col.get_width() // 2, rect.y - 22))
        if occupancy is None:
            return
        for y, cells in enumerate(occupancy):
            for x, occupied in enumerate(cells):
                if occupied:
                    cell = (rect.x + x * cs + 2, rect.y + y * cs + 2, cs - 4, cs - 4)
                    pygame.draw.rect(self.screen, SHIP, cell)
                    pygame.draw.rect(self.screen, SHIP_OUTLINE, cell, 2)

    def draw_placement_preview(self, state: Adding) -> None:
        length = next_ship_length(state.ships)
        anchor = self.cell_at(pygame.mouse.get_pos())
        if length is None or anchor is None or self.occupancy is None:
            return
        # Only a hint for the player; the server decides what is legal.
        ghost = Ship.from_anchor(anchor, self.encoder.direction, length)
        fits = all(c.in_bounds(state.size) and not self.occupancy[c.y][c.x] for c in ghost)
        rect = self.board_rect()
        cs = self.cell_size
        for c in ghost:
            if c.in_bounds(state.size):
                pygame.draw.rect(
                    self.screen, HOVER if fits else INVALID,
                    (rect.x + c.x * cs + 2, rect.y + c.y * cs + 2, cs - 4, cs - 4),
                    0 if fits else 2,
                )

    def draw_hover(self) -> None:
        cell = self.cell_at(pygame.mouse.get_pos())
        if cell is None:
            return
        rect = self.board_rect()
        cs = self.cell_size
        pygame.draw.rect(self.screen, HOVER, (rect.x + cell.x * cs + 2, rect.y + cell.y * cs + 2, cs - 4, cs - 4), 2)

    # --------------------------- Interaction ---------------------------
    def handle_click(self, pos: Tuple[int, int]) -> None:
        state = self.store.get()
        cell = self.cell_at(pos)
        if cell is None:
            return
        try:
            if isinstance(state, Adding):
                self.encoder.add_ship(cell)
            elif isinstance(state, Guessing):
                self.encoder.guess(cell)
        except ChannelClosed as exc:
            logger.error("%s", exc)
            self.show_message("Disconnected from server", 4.0)
        except SendFailed as exc:
            logger.error("%s", exc)
            self.show_message("Could not reach the server", 4.0)

    def handle_key(self, key: int) -> None:
        if key == pygame.K_ESCAPE:
            self.running = False
        elif not isinstance(self.store.get(), Adding):
            return
        elif key == pygame.K_r:
            self.encoder.toggle_direction()
        elif key == pygame.K_h:
            self.encoder.select_direction(ShipDirection.HORIZONTAL)
        elif key == pygame.K_v:
            self.encoder.select_direction(ShipDirection.VERTICAL)

    # --------------------------- Loop ---------------------------
    def run(self) -> None:
        self.session.start()
        try:
            while self.running:
                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        self.running = False
                    elif event.type == pygame.MOUSEBUTTONDOWN:
                        if event.button == 1:
                            self.handle_click(event.pos)
                        elif event.button == 3 and isinstance(self.store.get(), Adding):
                            self.encoder.toggle_direction()
                    elif event.type == pygame.KEYDOWN:
                        self.handle_key(event.key)

                self.session.pump()
                self.draw()
                self.clock.tick(self.config.fps)
        finally:
            self._unsubscribe()
            self.session.close()
            pygame.quit()


# --------------------------- Entrypoints ---------------------------

def run_client_gui(config: Config) -> None:
    game = GuiGame(config)
    game.run()
