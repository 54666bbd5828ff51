import logging
import sqlite3
from datetime import date

from sandlot_scoring.db.connection import transaction
from sandlot_scoring.domain.errors import NotFoundError, ScoringError, ValidationError
from sandlot_scoring.domain.game import Game, GameStatus
from sandlot_scoring.domain.lineup import LineupSlot
from sandlot_scoring.domain.result import Err, Ok, ScoringResult
from sandlot_scoring.repos.game_repo import SqliteGameRepo
from sandlot_scoring.repos.lineup_repo import SqliteLineupRepo

logger = logging.getLogger(__name__)


class GameSetup:
    """Minimal game and roster writes, enough to drive scoring end to end."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._games = SqliteGameRepo(conn)
        self._lineup = SqliteLineupRepo(conn)

    def create_game(
        self,
        name: str,
        opponent_name: str,
        *,
        bat_first: bool,
        max_innings: int,
        game_date: date | None = None,
    ) -> ScoringResult[Game]:
        try:
            if not name.strip() or not opponent_name.strip():
                raise ValidationError("a game needs both a name and an opponent")
            if max_innings < 1:
                raise ValidationError(f"max innings must be >= 1, got {max_innings}")
            with transaction(self._conn):
                game_id = self._games.insert(
                    Game(
                        name=name.strip(),
                        opponent_name=opponent_name.strip(),
                        bat_first=bat_first,
                        max_innings=max_innings,
                        game_date=game_date.isoformat() if game_date is not None else None,
                    )
                )
        except ScoringError as e:
            return Err(e)
        logger.info("Created game %d: %s vs %s", game_id, name, opponent_name)
        game = self._games.get_by_id(game_id)
        assert game is not None
        return Ok(game)

    def add_to_lineup(
        self,
        game_id: int,
        player_id: int,
        player_name: str,
        *,
        batting_order: int | None = None,
        position: str | None = None,
    ) -> ScoringResult[LineupSlot]:
        try:
            game = self._games.get_by_id(game_id)
            if game is None:
                raise NotFoundError("game", game_id)
            if game.status is not GameStatus.SCHEDULED:
                raise ValidationError(f"game {game_id} is {game.status}; use a substitution to change the lineup")
            if batting_order is not None and batting_order < 1:
                raise ValidationError(f"batting order must be >= 1, got {batting_order}")
            if batting_order is not None:
                taken = next(
                    (
                        s
                        for s in self._lineup.get_by_game(game_id)
                        if s.batting_order == batting_order and s.player_id != player_id
                    ),
                    None,
                )
                if taken is not None:
                    raise ValidationError(f"batting order {batting_order} already belongs to {taken.player_name}")
            with transaction(self._conn):
                self._lineup.upsert(
                    LineupSlot(
                        game_id=game_id,
                        player_id=player_id,
                        player_name=player_name,
                        batting_order=batting_order,
                        position=position,
                    )
                )
        except ScoringError as e:
            return Err(e)
        slot = self._lineup.get_slot(game_id, player_id)
        assert slot is not None
        return Ok(slot)

    def lineup(self, game_id: int) -> list[LineupSlot]:
        return self._lineup.get_by_game(game_id)
