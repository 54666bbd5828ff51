import logging
import sqlite3
from dataclasses import dataclass, replace

from sandlot_scoring.db.connection import transaction
from sandlot_scoring.domain.errors import NotFoundError, ScoringError, ValidationError
from sandlot_scoring.domain.pitching import PitchingLine
from sandlot_scoring.domain.rate_stats import (
    BattingTotals,
    PitchingTotals,
    batting_totals,
    format_batting_rate,
    format_innings,
    format_pitching_rate,
    normalize_innings,
    pitching_totals,
)
from sandlot_scoring.domain.result import Err, Ok, ScoringResult
from sandlot_scoring.repos.at_bat_repo import SqliteAtBatRepo
from sandlot_scoring.repos.game_repo import SqliteGameRepo
from sandlot_scoring.repos.lineup_repo import SqliteLineupRepo
from sandlot_scoring.repos.pitching_line_repo import SqlitePitchingLineRepo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BattingLine:
    player_id: int
    totals: BattingTotals
    avg: str
    obp: str
    slg: str
    ops: str
    player_name: str | None = None


@dataclass(frozen=True)
class PitchingSummary:
    player_id: int
    totals: PitchingTotals
    innings_pitched: str
    era: str
    whip: str
    strikeouts_per_7: str
    walks_per_7: str


def batting_line(player_id: int, totals: BattingTotals, player_name: str | None = None) -> BattingLine:
    return BattingLine(
        player_id=player_id,
        player_name=player_name,
        totals=totals,
        avg=format_batting_rate(totals.batting_average),
        obp=format_batting_rate(totals.on_base_percentage),
        slg=format_batting_rate(totals.slugging_percentage),
        ops=format_batting_rate(totals.ops),
    )


def pitching_summary(player_id: int, totals: PitchingTotals) -> PitchingSummary:
    return PitchingSummary(
        player_id=player_id,
        totals=totals,
        innings_pitched=format_innings(totals.innings_pitched),
        era=format_pitching_rate(totals.era),
        whip=format_pitching_rate(totals.whip),
        strikeouts_per_7=format_pitching_rate(totals.strikeouts_per_7),
        walks_per_7=format_pitching_rate(totals.walks_per_7),
    )


class StatsService:
    """Per-player batting and pitching lines, always recomputed from stored rows."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._at_bats = SqliteAtBatRepo(conn)
        self._games = SqliteGameRepo(conn)
        self._lineup = SqliteLineupRepo(conn)
        self._pitching = SqlitePitchingLineRepo(conn)

    def batting_line(self, player_id: int) -> BattingLine:
        return batting_line(player_id, batting_totals(self._at_bats.get_by_batter(player_id)))

    def game_batting_lines(self, game_id: int) -> list[BattingLine]:
        """One line per lineup player in batting order, bench players included."""
        if self._games.get_by_id(game_id) is None:
            raise NotFoundError("game", game_id)
        events = self._at_bats.get_by_game(game_id)
        lines: list[BattingLine] = []
        for slot in self._lineup.get_by_game(game_id):
            own = [e for e in events if e.batter_id == slot.player_id]
            lines.append(batting_line(slot.player_id, batting_totals(own), slot.player_name))
        return lines

    def pitching_line(self, player_id: int) -> PitchingSummary:
        return pitching_summary(player_id, pitching_totals(self._pitching.get_by_player(player_id)))

    def game_pitching_lines(self, game_id: int) -> list[PitchingSummary]:
        return [
            pitching_summary(line.player_id, pitching_totals([line])) for line in self._pitching.get_by_game(game_id)
        ]

    def record_pitching_line(self, line: PitchingLine) -> ScoringResult[PitchingLine]:
        """Store one pitcher's line for one game, replacing any earlier entry."""
        try:
            if self._games.get_by_id(line.game_id) is None:
                raise NotFoundError("game", line.game_id)
            counts = (
                line.hits_allowed,
                line.runs_allowed,
                line.earned_runs,
                line.strikeouts,
                line.walks,
                line.home_runs_allowed,
            )
            if any(c < 0 for c in counts):
                raise ValidationError("pitching counts cannot be negative")
            if line.earned_runs > line.runs_allowed:
                raise ValidationError(
                    f"earned runs ({line.earned_runs}) cannot exceed runs allowed ({line.runs_allowed})"
                )
            if line.win and line.loss:
                raise ValidationError("a pitcher cannot be credited with both the win and the loss")
            try:
                innings = normalize_innings(line.innings_pitched)
            except ValueError as e:
                raise ValidationError(str(e)) from e
            with transaction(self._conn):
                self._pitching.upsert(replace(line, innings_pitched=innings))
        except ScoringError as e:
            return Err(e)
        logger.info("Recorded pitching line for player %d in game %d", line.player_id, line.game_id)
        stored = next(p for p in self._pitching.get_by_game(line.game_id) if p.player_id == line.player_id)
        return Ok(stored)
