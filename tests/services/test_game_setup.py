import sqlite3
from datetime import date

import pytest

from sandlot_scoring.domain.errors import NotFoundError, ValidationError
from sandlot_scoring.domain.game import GameStatus
from sandlot_scoring.services.game_setup import GameSetup
from tests.helpers import seed_game, unwrap, unwrap_err


@pytest.fixture
def setup(conn: sqlite3.Connection) -> GameSetup:
    return GameSetup(conn)


class TestCreateGame:
    def test_creates_scheduled_game(self, setup: GameSetup) -> None:
        game = unwrap(
            setup.create_game("Sandlot", "Beasts", bat_first=False, max_innings=6, game_date=date(2026, 7, 4))
        )

        assert game.id is not None
        assert game.status is GameStatus.SCHEDULED
        assert (game.max_innings, game.bat_first, game.game_date) == (6, False, "2026-07-04")
        assert (game.team_score, game.opponent_score) == (0, 0)

    def test_rejects_blank_names(self, setup: GameSetup) -> None:
        assert isinstance(unwrap_err(setup.create_game(" ", "Beasts", bat_first=True, max_innings=7)), ValidationError)

    def test_rejects_zero_innings(self, setup: GameSetup) -> None:
        assert isinstance(
            unwrap_err(setup.create_game("Sandlot", "Beasts", bat_first=True, max_innings=0)), ValidationError
        )


class TestLineup:
    def test_add_players(self, conn: sqlite3.Connection, setup: GameSetup) -> None:
        game_id = seed_game(conn)

        unwrap(setup.add_to_lineup(game_id, 101, "Smalls", batting_order=1, position="3B"))
        unwrap(setup.add_to_lineup(game_id, 102, "Benny", batting_order=2, position="C"))
        bench = unwrap(setup.add_to_lineup(game_id, 103, "Timmy"))

        assert not bench.is_starter
        assert [s.player_name for s in setup.lineup(game_id)] == ["Smalls", "Benny", "Timmy"]

    def test_batting_order_slot_is_taken(self, conn: sqlite3.Connection, setup: GameSetup) -> None:
        game_id = seed_game(conn)
        setup.add_to_lineup(game_id, 101, "Smalls", batting_order=1)

        error = unwrap_err(setup.add_to_lineup(game_id, 102, "Benny", batting_order=1))

        assert isinstance(error, ValidationError)
        assert "Smalls" in error.message

    def test_rejects_non_positive_order(self, conn: sqlite3.Connection, setup: GameSetup) -> None:
        game_id = seed_game(conn)

        assert isinstance(unwrap_err(setup.add_to_lineup(game_id, 101, "Smalls", batting_order=0)), ValidationError)

    def test_started_game_needs_a_substitution(self, conn: sqlite3.Connection, setup: GameSetup) -> None:
        game_id = seed_game(conn, status=GameStatus.IN_PROGRESS)

        assert isinstance(unwrap_err(setup.add_to_lineup(game_id, 101, "Smalls", batting_order=1)), ValidationError)

    def test_unknown_game(self, setup: GameSetup) -> None:
        assert isinstance(unwrap_err(setup.add_to_lineup(77, 101, "Smalls")), NotFoundError)
