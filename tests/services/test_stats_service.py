import sqlite3
from dataclasses import replace

import pytest

from sandlot_scoring.domain.at_bat import PlateResult
from sandlot_scoring.domain.errors import NotFoundError, ValidationError
from sandlot_scoring.domain.lineup import LineupSlot
from sandlot_scoring.domain.pitching import PitchingLine
from sandlot_scoring.repos.lineup_repo import SqliteLineupRepo
from sandlot_scoring.services.stats import StatsService
from tests.helpers import seed_at_bat, seed_game, seed_lineup, unwrap, unwrap_err


@pytest.fixture
def stats(conn: sqlite3.Connection) -> StatsService:
    return StatsService(conn)


class TestBattingLines:
    def test_player_without_at_bats_shows_zeros(self, stats: StatsService) -> None:
        line = stats.batting_line(101)

        assert (line.avg, line.obp, line.slg, line.ops) == ("0.000", "0.000", "0.000", "0.000")

    def test_rates_are_formatted_to_three_places(self, conn: sqlite3.Connection, stats: StatsService) -> None:
        game_id = seed_game(conn)
        seed_at_bat(conn, game_id, result=PlateResult.SINGLE)
        seed_at_bat(conn, game_id, result=PlateResult.DOUBLE, base_reached=2)
        seed_at_bat(conn, game_id, result=PlateResult.STRIKEOUT, base_reached=0)
        seed_at_bat(conn, game_id, result=PlateResult.WALK)

        line = stats.batting_line(101)

        assert line.totals.at_bats == 3
        assert line.avg == "0.667"
        assert line.obp == "0.750"
        assert line.slg == "1.000"
        assert line.ops == "1.750"

    def test_career_line_spans_games(self, conn: sqlite3.Connection, stats: StatsService) -> None:
        first = seed_game(conn)
        second = seed_game(conn)
        seed_at_bat(conn, first, result=PlateResult.HOME_RUN, base_reached=4)
        seed_at_bat(conn, second, result=PlateResult.FLY_OUT, base_reached=0)

        line = stats.batting_line(101)

        assert (line.totals.hits, line.totals.home_runs, line.totals.at_bats) == (1, 1, 2)
        assert line.avg == "0.500"

    def test_game_lines_cover_the_whole_roster(self, conn: sqlite3.Connection, stats: StatsService) -> None:
        game_id = seed_game(conn)
        seed_lineup(conn, game_id, size=3)
        SqliteLineupRepo(conn).upsert(LineupSlot(game_id=game_id, player_id=301, player_name="Bench Kid"))
        conn.commit()
        seed_at_bat(conn, game_id, batter_id=102, result=PlateResult.TRIPLE, base_reached=3)

        lines = stats.game_batting_lines(game_id)

        assert [line.player_id for line in lines] == [101, 102, 103, 301]
        by_player = {line.player_id: line for line in lines}
        assert by_player[102].totals.triples == 1
        assert by_player[102].player_name == "Player 2"
        assert by_player[301].totals.plate_appearances == 0

    def test_game_lines_for_unknown_game(self, stats: StatsService) -> None:
        with pytest.raises(NotFoundError):
            stats.game_batting_lines(42)


class TestPitchingLines:
    def test_innings_are_normalized_on_save(self, conn: sqlite3.Connection, stats: StatsService) -> None:
        game_id = seed_game(conn)

        stored = unwrap(stats.record_pitching_line(PitchingLine(game_id=game_id, player_id=7, innings_pitched=0.3)))

        assert stored.innings_pitched == 1.0
        assert stats.pitching_line(7).innings_pitched == "1.0"

    def test_rates_scale_to_seven_innings(self, conn: sqlite3.Connection, stats: StatsService) -> None:
        game_id = seed_game(conn)
        stats.record_pitching_line(
            PitchingLine(
                game_id=game_id,
                player_id=7,
                innings_pitched=3.1,
                hits_allowed=4,
                runs_allowed=3,
                earned_runs=2,
                strikeouts=5,
                walks=1,
                win=True,
            )
        )

        summary = stats.pitching_line(7)

        assert summary.innings_pitched == "3.1"
        assert summary.era == "4.20"
        assert summary.whip == "1.50"
        assert summary.strikeouts_per_7 == "10.50"
        assert summary.totals.wins == 1

    def test_no_outs_recorded_gives_zero_rates(self, stats: StatsService) -> None:
        summary = stats.pitching_line(7)

        assert (summary.innings_pitched, summary.era, summary.whip) == ("0.0", "0.00", "0.00")

    def test_rerecording_replaces_the_line(self, conn: sqlite3.Connection, stats: StatsService) -> None:
        game_id = seed_game(conn)
        stats.record_pitching_line(PitchingLine(game_id=game_id, player_id=7, innings_pitched=2.0, strikeouts=1))
        stats.record_pitching_line(PitchingLine(game_id=game_id, player_id=7, innings_pitched=3.0, strikeouts=4))

        lines = stats.game_pitching_lines(game_id)

        assert len(lines) == 1
        assert lines[0].totals.strikeouts == 4

    @pytest.mark.parametrize(
        "line",
        [
            PitchingLine(game_id=0, player_id=7, innings_pitched=-1.0),
            PitchingLine(game_id=0, player_id=7, hits_allowed=-1),
            PitchingLine(game_id=0, player_id=7, runs_allowed=1, earned_runs=2),
            PitchingLine(game_id=0, player_id=7, win=True, loss=True),
        ],
    )
    def test_rejects_invalid_lines(self, conn: sqlite3.Connection, stats: StatsService, line: PitchingLine) -> None:
        game_id = seed_game(conn)
        bad = replace(line, game_id=game_id)

        error = unwrap_err(stats.record_pitching_line(bad))

        assert isinstance(error, ValidationError)
        assert stats.game_pitching_lines(game_id) == []

    def test_rejects_unknown_game(self, stats: StatsService) -> None:
        assert isinstance(unwrap_err(stats.record_pitching_line(PitchingLine(game_id=5, player_id=7))), NotFoundError)
