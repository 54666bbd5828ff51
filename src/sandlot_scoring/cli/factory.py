import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from sandlot_scoring.config import ScoringSettings, create_config, load_scoring_settings
from sandlot_scoring.db.connection import create_connection
from sandlot_scoring.domain.result import Err
from sandlot_scoring.services.game_setup import GameSetup
from sandlot_scoring.services.scoring_session import GameScoringSession
from sandlot_scoring.services.stats import StatsService


def load_settings(config_path: str, db_path: str | None = None) -> ScoringSettings:
    overrides: dict[str, object] = {"db": {"path": db_path}} if db_path else {}
    return load_scoring_settings(create_config(yaml_path=config_path, overrides=overrides))


def _connect(settings: ScoringSettings) -> sqlite3.Connection:
    path = settings.db_path
    return create_connection(path if path == ":memory:" else Path(path).expanduser())


@dataclass(frozen=True)
class SetupContext:
    conn: sqlite3.Connection
    setup: GameSetup
    stats: StatsService
    settings: ScoringSettings


@contextmanager
def build_setup_context(settings: ScoringSettings) -> Iterator[SetupContext]:
    """Composition-root context manager for game/lineup/stats subcommands."""
    conn = _connect(settings)
    try:
        yield SetupContext(conn=conn, setup=GameSetup(conn), stats=StatsService(conn), settings=settings)
    finally:
        conn.close()


@contextmanager
def build_session(
    settings: ScoringSettings,
    game_id: int,
    *,
    write: bool = True,
    force: bool = False,
) -> Iterator[GameScoringSession]:
    """Composition-root context manager for scoring subcommands.

    Write commands hold the game's writer lock for their duration; a
    ``ScoringError`` from taking the lock propagates to the caller.
    """
    conn = _connect(settings)
    session = GameScoringSession(conn, game_id, settings=settings)
    try:
        if write:
            match session.open(force=force):
                case Err(e):
                    raise e
        yield session
    finally:
        session.close()
        conn.close()
