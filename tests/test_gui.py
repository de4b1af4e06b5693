"""
Tests for the pygame view: pixel/board mapping, and how snapshots and send
failures are handled. Runs headless on SDL's dummy drivers.
"""

import logging

import pygame
import pytest

from broadside.battleship.model import AddShip, Adding, Location, Ship, ShipDirection, Waiting
from broadside.config import Config
from broadside.errors import ChannelClosed
from broadside.gui import MIN_WIDTH, TOP_BAR, GuiGame, mouse_to_cell, window_size
from broadside.session import GameSession


@pytest.fixture
def gui(monkeypatch, stub_channel, test_url):
    monkeypatch.setenv("SDL_VIDEODRIVER", "dummy")
    monkeypatch.setenv("SDL_AUDIODRIVER", "dummy")
    channel = stub_channel()
    game = GuiGame(Config(server_url=test_url), session=GameSession(channel))
    yield game
    game._unsubscribe()
    pygame.quit()


class TestMouseToCell:

    @pytest.mark.parametrize("pos, expected", [
        ((100, 50), Location(0, 0)),
        ((139, 89), Location(0, 0)),
        ((140, 50), Location(1, 0)),
        ((100, 90), Location(0, 1)),
        ((219, 169), Location(2, 2)),
    ])
    def test_inside(self, pos, expected):
        assert mouse_to_cell((100, 50), 3, pos, 40) == expected

    @pytest.mark.parametrize("pos", [(99, 60), (110, 49), (220, 60), (110, 170)])
    def test_outside(self, pos):
        assert mouse_to_cell((100, 50), 3, pos, 40) is None


class TestWindowSize:

    def test_grows_with_board(self):
        small_w, small_h = window_size(3, 40)
        big_w, big_h = window_size(15, 40)
        assert small_w == MIN_WIDTH
        assert big_w > small_w and big_h > small_h


class TestSnapshots:

    def test_valid_board_is_projected(self, gui, two_cell_ship):
        gui.store.replace(Adding((two_cell_ship,), 3))
        assert gui.board_error is None
        assert gui.occupancy == [
            [True, True, False],
            [False, False, False],
            [False, False, False],
        ]
        assert gui.board_size == 3
        assert gui.screen.get_size() == window_size(3, gui.cell_size)

    def test_out_of_bounds_board_is_not_drawn(self, gui, caplog):
        with caplog.at_level(logging.ERROR, logger="broadside.gui"):
            gui.store.replace(Adding((Ship((Location(3, 0),)),), 3))
        assert gui.occupancy is None
        assert gui.board_error
        assert any(r.levelno == logging.ERROR and "(3, 0)" in r.getMessage() for r in caplog.records)
        # still renders, with the warning in place of the board
        gui.draw()

    def test_next_valid_board_clears_the_error(self, gui, two_cell_ship):
        gui.store.replace(Adding((Ship((Location(3, 0),)),), 3))
        gui.store.replace(Adding((two_cell_ship,), 3))
        assert gui.board_error is None
        assert gui.occupancy[0][:2] == [True, True]

    def test_leaving_adding_drops_the_board(self, gui, two_cell_ship):
        gui.store.replace(Adding((two_cell_ship,), 3))
        gui.store.replace(Waiting())
        assert gui.occupancy is None
        gui.draw()

    def test_window_failure_is_logged(self, gui, monkeypatch, caplog):
        def refuse(size):
            raise pygame.error("Invalid window size")

        monkeypatch.setattr(pygame.display, "set_mode", refuse)
        with caplog.at_level(logging.ERROR, logger="broadside.gui"):
            gui.store.replace(Adding((), 30))
        assert gui.occupancy is None
        assert gui.board_error
        assert gui.board_size != 30
        assert "30x30" in caplog.text


class TestClicks:

    def test_click_places_ship(self, gui):
        gui.store.replace(Adding((), 3))
        gui.encoder.select_direction(ShipDirection.VERTICAL)
        rect = gui.board_rect()
        gui.handle_click((rect.x + 5, TOP_BAR + 5))
        assert gui.session.channel.sent == [AddShip(Location(0, 0), ShipDirection.VERTICAL)]

    def test_click_outside_board_sends_nothing(self, gui):
        gui.store.replace(Adding((), 3))
        gui.handle_click((0, 0))
        assert gui.session.channel.sent == []

    def test_send_failure_is_reported(self, gui, monkeypatch, caplog):
        def closed(command):
            raise ChannelClosed("connection is closed")

        monkeypatch.setattr(gui.encoder, "_send", closed)
        gui.store.replace(Adding((), 3))
        rect = gui.board_rect()
        with caplog.at_level(logging.ERROR, logger="broadside.gui"):
            gui.handle_click((rect.x + 5, TOP_BAR + 5))
        assert gui.info_message == "Disconnected from server"
        assert "connection is closed" in caplog.text
