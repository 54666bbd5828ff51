import sqlite3

from sandlot_scoring.domain.at_bat import AtBatEvent, PlateResult
from sandlot_scoring.domain.errors import ScoringError
from sandlot_scoring.domain.game import Game, GameStatus, Half
from sandlot_scoring.domain.lineup import LineupSlot
from sandlot_scoring.domain.result import Err, Ok, ScoringResult
from sandlot_scoring.domain.runner import Runner
from sandlot_scoring.repos.at_bat_repo import SqliteAtBatRepo
from sandlot_scoring.repos.game_repo import SqliteGameRepo
from sandlot_scoring.repos.lineup_repo import SqliteLineupRepo
from sandlot_scoring.repos.runner_repo import SqliteRunnerRepo

FIRST_PLAYER_ID = 101


def seed_game(
    conn: sqlite3.Connection,
    *,
    name: str = "Sandlot Sluggers",
    opponent_name: str = "Creek Road Rockets",
    bat_first: bool = True,
    max_innings: int = 7,
    status: GameStatus = GameStatus.SCHEDULED,
) -> int:
    """Seed a game row; pass ``status=IN_PROGRESS`` to skip starting it."""
    game_id = SqliteGameRepo(conn).insert(
        Game(name=name, opponent_name=opponent_name, bat_first=bat_first, max_innings=max_innings, status=status)
    )
    conn.commit()
    return game_id


def seed_lineup(conn: sqlite3.Connection, game_id: int, *, size: int = 9) -> list[int]:
    """Seed ``size`` starters batting 1..size; returns their player ids in batting order."""
    repo = SqliteLineupRepo(conn)
    player_ids = []
    for order in range(1, size + 1):
        player_id = FIRST_PLAYER_ID + order - 1
        repo.upsert(
            LineupSlot(game_id=game_id, player_id=player_id, player_name=f"Player {order}", batting_order=order)
        )
        player_ids.append(player_id)
    conn.commit()
    return player_ids


def seed_at_bat(
    conn: sqlite3.Connection,
    game_id: int,
    *,
    batter_id: int = FIRST_PLAYER_ID,
    result: PlateResult = PlateResult.SINGLE,
    inning: int = 1,
    half: Half = Half.TOP,
    base_reached: int = 1,
) -> int:
    event_id = SqliteAtBatRepo(conn).insert(
        AtBatEvent(
            game_id=game_id,
            inning=inning,
            half=half,
            batter_id=batter_id,
            result=result,
            base_reached=base_reached,
        )
    )
    conn.commit()
    return event_id


def seed_runner(
    conn: sqlite3.Connection,
    game_id: int,
    *,
    player_id: int,
    base: int,
    inning: int = 1,
    half: Half = Half.TOP,
    at_bat_id: int | None = None,
) -> int:
    runner_id = SqliteRunnerRepo(conn).insert(
        Runner(
            game_id=game_id,
            inning=inning,
            half=half,
            player_id=player_id,
            current_base=base,
            at_bat_id=at_bat_id,
        )
    )
    conn.commit()
    return runner_id


def unwrap[T](result: ScoringResult[T]) -> T:
    match result:
        case Ok(value):
            return value
        case Err(error):
            raise AssertionError(f"expected Ok, got {type(error).__name__}: {error.message}")


def unwrap_err[T](result: ScoringResult[T]) -> ScoringError:
    match result:
        case Err(error):
            return error
        case Ok(value):
            raise AssertionError(f"expected Err, got Ok({value!r})")
