import sqlite3
from collections.abc import Generator

import pytest

from sandlot_scoring.services.scoring_session import GameScoringSession
from tests.helpers import seed_game, seed_lineup


@pytest.fixture
def game_id(conn: sqlite3.Connection) -> int:
    game_id = seed_game(conn, bat_first=True)
    seed_lineup(conn, game_id)
    return game_id


@pytest.fixture
def session(conn: sqlite3.Connection, game_id: int) -> Generator[GameScoringSession]:
    with GameScoringSession(conn, game_id) as scoring:
        yield scoring
