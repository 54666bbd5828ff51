import sqlite3

import pytest

from sandlot_scoring.config import ScoringSettings
from sandlot_scoring.domain.at_bat import AtBatPatch, PlateAppearance, PlateResult, PlayKind
from sandlot_scoring.domain.errors import ConflictError, NotFoundError, ValidationError
from sandlot_scoring.domain.game import GameStatus, Half
from sandlot_scoring.domain.game_flow import GameComplete, HalfInningActive
from sandlot_scoring.domain.result import Err, Ok
from sandlot_scoring.repos.at_bat_repo import SqliteAtBatRepo
from sandlot_scoring.repos.runner_repo import SqliteRunnerRepo
from sandlot_scoring.services.plate_appearance import DisambiguationRequired, PlayCommitted
from sandlot_scoring.services.scoring_session import (
    GameScoringSession,
    decode_plate_appearance,
    encode_plate_appearance,
)
from tests.helpers import seed_game, seed_lineup, unwrap, unwrap_err


def _pa(
    game_id: int,
    batter_id: int,
    result: PlateResult,
    base: int | None = None,
    *,
    inning: int = 1,
    half: Half = Half.TOP,
    **kwargs: object,
) -> PlateAppearance:
    return PlateAppearance(
        game_id=game_id,
        inning=inning,
        half=half,
        batter_id=batter_id,
        result=result,
        base_reached=base,
        **kwargs,  # type: ignore[arg-type]
    )


def _commit(session: GameScoringSession, pa: PlateAppearance) -> PlayCommitted:
    outcome = unwrap(session.record_plate_appearance(pa))
    assert isinstance(outcome, PlayCommitted)
    return outcome


def _single(session: GameScoringSession, batter_id: int, *, inning: int = 1) -> PlayCommitted:
    return _commit(session, _pa(session.game_id, batter_id, PlateResult.SINGLE, 1, inning=inning))


def _strike_out_side(session: GameScoringSession, inning: int) -> PlayCommitted:
    committed = None
    for _ in range(3):
        batter = unwrap(session.next_batter())
        assert batter is not None
        committed = _commit(session, _pa(session.game_id, batter.player_id, PlateResult.STRIKEOUT, inning=inning))
    assert committed is not None
    return committed


def _bases(committed: PlayCommitted) -> dict[int, int]:
    return {r.current_base: r.player_id for r in committed.runners}


class TestRecordPlateAppearance:
    def test_first_play_starts_the_game(self, session: GameScoringSession) -> None:
        committed = _single(session, 101)

        state = unwrap(session.state())
        assert state.game.status is GameStatus.IN_PROGRESS
        assert committed.phase == HalfInningActive(1, Half.TOP)
        assert _bases(committed) == {1: 101}

    def test_single_only_forces_runners_behind_the_batter(self, session: GameScoringSession) -> None:
        _single(session, 101)
        _commit(session, _pa(session.game_id, 102, PlateResult.TRIPLE, 3))
        _single(session, 103)

        committed = _single(session, 104)

        assert _bases(committed) == {3: 102, 2: 103, 1: 104}
        assert committed.runs_on_play == 0

    def test_double_scores_runner_from_second_and_sends_first_to_third(self, session: GameScoringSession) -> None:
        _single(session, 101)
        _single(session, 102)

        committed = _commit(session, _pa(session.game_id, 103, PlateResult.DOUBLE, 2))

        assert _bases(committed) == {3: 102, 2: 103}
        assert committed.runs_on_play == 1
        assert committed.event.rbi == 1
        assert unwrap(session.state()).game.team_score == 1

    def test_grand_slam_clears_the_bases(self, session: GameScoringSession) -> None:
        for batter in (101, 102, 103):
            _single(session, batter)

        committed = _commit(session, _pa(session.game_id, 104, PlateResult.HOME_RUN, 4))

        assert committed.runners == ()
        assert committed.runs_on_play == 4
        assert committed.event.rbi == 4
        assert committed.event.run_scored
        assert committed.summary.runs == 4
        state = unwrap(session.state())
        assert state.game.team_score == 4
        assert state.line_score.innings[0].top == 4

    def test_explicit_rbi_overrides_derivation(self, session: GameScoringSession) -> None:
        _single(session, 101)
        _single(session, 102)

        committed = _commit(session, _pa(session.game_id, 103, PlateResult.DOUBLE, 2, rbi=0))

        assert committed.event.rbi == 0

    def test_reached_on_error_is_not_an_out(self, session: GameScoringSession) -> None:
        _single(session, 101)

        committed = _commit(session, _pa(session.game_id, 102, PlateResult.GROUND_OUT, 1, reached_on_error=True))

        assert committed.summary.outs == 0
        assert committed.summary.errors == 1
        assert _bases(committed) == {2: 101, 1: 102}

    def test_plain_out_moves_nobody(self, session: GameScoringSession) -> None:
        _single(session, 101)

        committed = _commit(session, _pa(session.game_id, 102, PlateResult.FLY_OUT))

        assert committed.summary.outs == 1
        assert _bases(committed) == {1: 101}

    @pytest.mark.parametrize(
        ("result", "base"),
        [
            (PlateResult.SINGLE, None),
            (PlateResult.HOME_RUN, 2),
            (PlateResult.DOUBLE, 1),
            (PlateResult.STRIKEOUT, 1),
            (PlateResult.WALK, 5),
        ],
    )
    def test_rejects_base_inconsistent_with_result(
        self, session: GameScoringSession, result: PlateResult, base: int | None
    ) -> None:
        error = unwrap_err(session.record_plate_appearance(_pa(session.game_id, 101, result, base)))

        assert isinstance(error, ValidationError)

    def test_rejects_rbi_above_four(self, session: GameScoringSession) -> None:
        error = unwrap_err(session.record_plate_appearance(_pa(session.game_id, 101, PlateResult.SINGLE, 1, rbi=5)))

        assert isinstance(error, ValidationError)

    def test_rejects_batter_not_in_lineup(self, session: GameScoringSession) -> None:
        error = unwrap_err(session.record_plate_appearance(_pa(session.game_id, 999, PlateResult.SINGLE, 1)))

        assert isinstance(error, ValidationError)
        assert "999" in error.message

    def test_rejects_the_opponents_half(self, session: GameScoringSession) -> None:
        error = unwrap_err(
            session.record_plate_appearance(_pa(session.game_id, 101, PlateResult.SINGLE, 1, half=Half.BOTTOM))
        )

        assert isinstance(error, ValidationError)

    def test_rejects_inning_past_the_game_length(self, session: GameScoringSession) -> None:
        error = unwrap_err(session.record_plate_appearance(_pa(session.game_id, 101, PlateResult.SINGLE, 1, inning=8)))

        assert isinstance(error, ValidationError)

    def test_rejects_a_half_inning_not_yet_reached(self, session: GameScoringSession) -> None:
        for batter in (101, 102, 103):
            error = unwrap_err(
                session.record_plate_appearance(_pa(session.game_id, batter, PlateResult.STRIKEOUT, inning=7))
            )
            assert isinstance(error, ValidationError)
            assert "not been reached" in error.message

        state = unwrap(session.state())
        assert state.game.status is GameStatus.SCHEDULED
        assert unwrap(session.review(7, Half.TOP)).events == ()

    def test_rejects_other_games(self, session: GameScoringSession) -> None:
        error = unwrap_err(session.record_plate_appearance(_pa(session.game_id + 1, 101, PlateResult.SINGLE, 1)))

        assert isinstance(error, ValidationError)

    def test_rejected_play_writes_nothing(self, session: GameScoringSession, conn: sqlite3.Connection) -> None:
        session.record_plate_appearance(_pa(session.game_id, 101, PlateResult.HOME_RUN, 2))

        assert SqliteAtBatRepo(conn).get_by_game(session.game_id) == []
        assert unwrap(session.state()).game.status is GameStatus.SCHEDULED


class TestDisambiguation:
    def test_ground_out_with_runner_aboard_waits_for_the_operator(
        self, session: GameScoringSession, conn: sqlite3.Connection
    ) -> None:
        runner = _single(session, 101).runners[0]

        outcome = unwrap(session.record_plate_appearance(_pa(session.game_id, 102, PlateResult.GROUND_OUT)))

        assert isinstance(outcome, DisambiguationRequired)
        assert [r.id for r in outcome.candidates] == [runner.id]
        assert len(SqliteAtBatRepo(conn).get_by_game(session.game_id)) == 1
        assert unwrap(session.get_half_inning_summary(1, Half.TOP)).outs == 0

    def test_ground_out_with_empty_bases_commits_immediately(self, session: GameScoringSession) -> None:
        committed = _commit(session, _pa(session.game_id, 101, PlateResult.GROUND_OUT))

        assert committed.event.play is PlayKind.STANDARD
        assert committed.summary.outs == 1

    def test_resolving_with_a_runner_records_a_double_play(self, session: GameScoringSession) -> None:
        runner = _single(session, 101).runners[0]
        assert runner.id is not None
        session.record_plate_appearance(_pa(session.game_id, 102, PlateResult.GROUND_OUT))

        committed = unwrap(session.resolve_disambiguation([runner.id]))

        assert committed.event.play is PlayKind.DOUBLE_PLAY
        assert committed.event.extra_out_runner_ids == (runner.id,)
        assert committed.summary.outs == 2
        assert committed.runners == ()
        assert unwrap(session.pending_disambiguation()) is None

    def test_resolving_with_no_runners_keeps_them_on_base(self, session: GameScoringSession) -> None:
        _single(session, 101)
        session.record_plate_appearance(_pa(session.game_id, 102, PlateResult.GROUND_OUT))

        committed = unwrap(session.resolve_disambiguation([]))

        assert committed.event.play is PlayKind.STANDARD
        assert committed.summary.outs == 1
        assert _bases(committed) == {1: 101}

    def test_triple_play_locks_the_half_and_moves_on(self, session: GameScoringSession) -> None:
        _single(session, 101)
        runners = _single(session, 102).runners
        session.record_plate_appearance(_pa(session.game_id, 103, PlateResult.GROUND_OUT))

        committed = unwrap(session.resolve_disambiguation([r.id for r in runners if r.id is not None]))

        assert committed.event.play is PlayKind.TRIPLE_PLAY
        assert committed.summary.outs == 3
        assert committed.summary.is_locked
        assert committed.runners == ()
        assert committed.phase == HalfInningActive(1, Half.BOTTOM)

    def test_outs_never_exceed_three(self, session: GameScoringSession) -> None:
        _commit(session, _pa(session.game_id, 101, PlateResult.STRIKEOUT))
        _single(session, 102)
        runners = _single(session, 103).runners
        session.record_plate_appearance(_pa(session.game_id, 104, PlateResult.GROUND_OUT))

        committed = unwrap(session.resolve_disambiguation([r.id for r in runners if r.id is not None]))

        assert committed.summary.outs == 3

    def test_rejects_runner_that_was_not_a_candidate(self, session: GameScoringSession) -> None:
        _single(session, 101)
        session.record_plate_appearance(_pa(session.game_id, 102, PlateResult.GROUND_OUT))

        error = unwrap_err(session.resolve_disambiguation([9999]))

        assert isinstance(error, ValidationError)
        assert unwrap(session.pending_disambiguation()) is not None

    def test_cancel_discards_the_pending_play(self, session: GameScoringSession, conn: sqlite3.Connection) -> None:
        _single(session, 101)
        session.record_plate_appearance(_pa(session.game_id, 102, PlateResult.GROUND_OUT))

        assert isinstance(session.cancel_disambiguation(), Ok)

        assert unwrap(session.pending_disambiguation()) is None
        assert len(SqliteAtBatRepo(conn).get_by_game(session.game_id)) == 1
        _single(session, 102)

    def test_cancel_without_pending_play_is_rejected(self, session: GameScoringSession) -> None:
        assert isinstance(unwrap_err(session.cancel_disambiguation()), ValidationError)

    def test_new_play_is_blocked_while_one_is_pending(self, session: GameScoringSession) -> None:
        _single(session, 101)
        session.record_plate_appearance(_pa(session.game_id, 102, PlateResult.GROUND_OUT))

        error = unwrap_err(session.record_plate_appearance(_pa(session.game_id, 102, PlateResult.SINGLE, 1)))

        assert isinstance(error, ValidationError)

    def test_pending_play_survives_a_new_session(self, conn: sqlite3.Connection, game_id: int) -> None:
        with GameScoringSession(conn, game_id) as first:
            runner = _single(first, 101).runners[0]
            first.record_plate_appearance(_pa(game_id, 102, PlateResult.GROUND_OUT))

        with GameScoringSession(conn, game_id) as second:
            pending = unwrap(second.pending_disambiguation())
            assert pending is not None
            assert pending.plate_appearance.batter_id == 102
            assert [r.id for r in pending.candidates] == [runner.id]
            assert runner.id is not None
            committed = unwrap(second.resolve_disambiguation([runner.id]))

        assert committed.summary.outs == 2

    def test_pending_play_encoding(self) -> None:
        pa = _pa(3, 101, PlateResult.GROUND_OUT, inning=2, half=Half.BOTTOM, notes="6-4-3")

        assert decode_plate_appearance(encode_plate_appearance(pa)) == pa


class TestAtomicity:
    def test_failed_edit_leaves_no_partial_writes(self, session: GameScoringSession, conn: sqlite3.Connection) -> None:
        _single(session, 101)
        committed = _single(session, 102)

        error = unwrap_err(session.edit_plate_appearance(committed.event.id or 0, AtBatPatch(base_reached=2)))

        assert isinstance(error, ConflictError)
        runners = SqliteRunnerRepo(conn).get_active(session.game_id, 1, Half.TOP)
        assert {r.current_base: r.player_id for r in runners} == {2: 101, 1: 102}
        event = SqliteAtBatRepo(conn).get_by_id(committed.event.id or 0)
        assert event is not None
        assert event.base_reached == 1

    def test_recompute_is_idempotent(self, session: GameScoringSession) -> None:
        _single(session, 101)
        _commit(session, _pa(session.game_id, 102, PlateResult.HOME_RUN, 4))

        first = unwrap(session.state())
        second = unwrap(session.state())

        assert first == second
        assert first.game.team_score == 2


class TestWriterLock:
    def test_second_session_is_refused(self, session: GameScoringSession, conn: sqlite3.Connection) -> None:
        other = GameScoringSession(conn, session.game_id, writer="bench")

        error = unwrap_err(other.open())

        assert isinstance(error, ConflictError)
        assert not other.is_open

    def test_forced_takeover_locks_out_the_old_session(
        self, session: GameScoringSession, conn: sqlite3.Connection
    ) -> None:
        other = GameScoringSession(conn, session.game_id, writer="bench")
        assert isinstance(other.open(force=True), Ok)

        error = unwrap_err(session.record_plate_appearance(_pa(session.game_id, 101, PlateResult.SINGLE, 1)))

        assert isinstance(error, ConflictError)
        _single(other, 101)
        other.close()

    def test_unopened_session_cannot_write_but_can_read(self, conn: sqlite3.Connection, game_id: int) -> None:
        reader = GameScoringSession(conn, game_id)

        assert isinstance(unwrap_err(reader.start_game()), ConflictError)
        assert unwrap(reader.state()).game.id == game_id

    def test_lock_is_released_on_close(self, conn: sqlite3.Connection, game_id: int) -> None:
        with GameScoringSession(conn, game_id):
            pass

        other = GameScoringSession(conn, game_id)
        assert isinstance(other.open(), Ok)
        other.close()

    def test_unknown_game(self, conn: sqlite3.Connection) -> None:
        error = unwrap_err(GameScoringSession(conn, 404).open())

        assert isinstance(error, NotFoundError)


class TestBattingOrderThroughSession:
    def test_next_batter_follows_the_order(self, session: GameScoringSession) -> None:
        _single(session, 101)

        batter = unwrap(session.next_batter())

        assert batter is not None
        assert batter.player_id == 102

    def test_order_carries_into_the_next_inning(self, session: GameScoringSession) -> None:
        _strike_out_side(session, 1)

        assert unwrap(session.batting_scope()).inning == 2
        batter = unwrap(session.next_batter())
        assert batter is not None
        assert batter.player_id == 104

    def test_order_wraps_after_the_last_batter(self, conn: sqlite3.Connection) -> None:
        game_id = seed_game(conn, bat_first=True)
        seed_lineup(conn, game_id, size=3)

        with GameScoringSession(conn, game_id) as scoring:
            _strike_out_side(scoring, 1)
            batter = unwrap(scoring.next_batter())

        assert batter is not None
        assert batter.player_id == 101

    def test_substitute_bats_in_the_replaced_slot(self, session: GameScoringSession) -> None:
        slot = unwrap(session.substitute(101, 201, in_player_name="Pinch Hitter"))

        assert slot.batting_order == 1
        batter = unwrap(session.next_batter())
        assert batter is not None
        assert batter.player_id == 201
        error = unwrap_err(session.record_plate_appearance(_pa(session.game_id, 101, PlateResult.SINGLE, 1)))
        assert isinstance(error, ValidationError)


class TestEditAndDelete:
    def test_edit_moves_the_batters_runner(self, session: GameScoringSession) -> None:
        committed = _single(session, 101)

        state = unwrap(
            session.edit_plate_appearance(
                committed.event.id or 0, AtBatPatch(result=PlateResult.DOUBLE, base_reached=2)
            )
        )

        assert {r.current_base: r.player_id for r in state.runners} == {2: 101}
        assert state.summary.hits == 1

    def test_edit_to_out_removes_the_runner(self, session: GameScoringSession) -> None:
        committed = _single(session, 101)

        state = unwrap(session.edit_plate_appearance(committed.event.id or 0, AtBatPatch(result=PlateResult.FLY_OUT)))

        assert state.runners == ()
        assert state.summary.outs == 1

    def test_notes_edit_keeps_a_run_scored_as_a_runner(self, session: GameScoringSession) -> None:
        first = _single(session, 101)
        _commit(session, _pa(session.game_id, 102, PlateResult.HOME_RUN, 4))

        state = unwrap(session.edit_plate_appearance(first.event.id or 0, AtBatPatch(notes="line drive to left")))

        assert state.game.team_score == 2
        assert unwrap(session.review(1, Half.TOP)).events[0].run_scored

    def test_rbi_edit_keeps_a_run_scored_as_a_runner(self, session: GameScoringSession) -> None:
        first = _single(session, 101)
        _commit(session, _pa(session.game_id, 102, PlateResult.HOME_RUN, 4))

        state = unwrap(session.edit_plate_appearance(first.event.id or 0, AtBatPatch(rbi=0)))

        assert state.game.team_score == 2

    def test_base_edit_keeps_a_run_already_scored(self, session: GameScoringSession) -> None:
        first = _single(session, 101)
        _commit(session, _pa(session.game_id, 102, PlateResult.HOME_RUN, 4))

        state = unwrap(
            session.edit_plate_appearance(first.event.id or 0, AtBatPatch(result=PlateResult.DOUBLE, base_reached=2))
        )

        assert state.game.team_score == 2
        assert state.runners == ()

    def test_edit_to_an_out_takes_back_the_run(self, session: GameScoringSession) -> None:
        first = _single(session, 101)
        _commit(session, _pa(session.game_id, 102, PlateResult.HOME_RUN, 4))

        state = unwrap(session.edit_plate_appearance(first.event.id or 0, AtBatPatch(result=PlateResult.STRIKEOUT)))

        assert state.game.team_score == 1
        assert state.summary.outs == 1

    def test_derived_rbi_follows_a_result_edit(self, session: GameScoringSession) -> None:
        _single(session, 101)
        homer = _commit(session, _pa(session.game_id, 102, PlateResult.HOME_RUN, 4))
        assert homer.event.rbi == 2

        state = unwrap(
            session.edit_plate_appearance(homer.event.id or 0, AtBatPatch(result=PlateResult.DOUBLE, base_reached=2))
        )

        event = unwrap(session.review(1, Half.TOP)).events[1]
        assert event.rbi == 1
        assert not event.run_scored
        assert {r.current_base: r.player_id for r in state.runners} == {2: 102}
        assert state.game.team_score == 1

    def test_declared_rbi_survives_a_result_edit(self, session: GameScoringSession) -> None:
        _single(session, 101)
        homer = _commit(session, _pa(session.game_id, 102, PlateResult.HOME_RUN, 4, rbi=0))

        session.edit_plate_appearance(homer.event.id or 0, AtBatPatch(result=PlateResult.TRIPLE, base_reached=3))

        assert unwrap(session.review(1, Half.TOP)).events[1].rbi == 0

    def test_edited_rbi_is_kept_on_later_edits(self, session: GameScoringSession) -> None:
        _single(session, 101)
        homer = _commit(session, _pa(session.game_id, 102, PlateResult.HOME_RUN, 4))

        session.edit_plate_appearance(homer.event.id or 0, AtBatPatch(rbi=0))
        session.edit_plate_appearance(homer.event.id or 0, AtBatPatch(result=PlateResult.TRIPLE, base_reached=3))

        assert unwrap(session.review(1, Half.TOP)).events[1].rbi == 0

    def test_edit_that_makes_the_third_out_locks_the_half(self, session: GameScoringSession) -> None:
        _commit(session, _pa(session.game_id, 101, PlateResult.STRIKEOUT))
        _commit(session, _pa(session.game_id, 102, PlateResult.STRIKEOUT))
        committed = _single(session, 103)

        state = unwrap(session.edit_plate_appearance(committed.event.id or 0, AtBatPatch(result=PlateResult.LINE_OUT)))

        assert state.phase == HalfInningActive(1, Half.BOTTOM)
        assert unwrap(session.get_half_inning_summary(1, Half.TOP)).is_locked

    def test_locked_half_cannot_be_edited(self, session: GameScoringSession) -> None:
        committed = _strike_out_side(session, 1)

        error = unwrap_err(session.edit_plate_appearance(committed.event.id or 0, AtBatPatch(notes="K looking")))

        assert isinstance(error, ValidationError)

    def test_double_play_result_cannot_be_changed(self, session: GameScoringSession) -> None:
        runner = _single(session, 101).runners[0]
        session.record_plate_appearance(_pa(session.game_id, 102, PlateResult.GROUND_OUT))
        committed = unwrap(session.resolve_disambiguation([runner.id or 0]))

        error = unwrap_err(
            session.edit_plate_appearance(committed.event.id or 0, AtBatPatch(result=PlateResult.FLY_OUT))
        )

        assert isinstance(error, ValidationError)

    def test_deleting_the_latest_play_gives_the_batter_another_turn(self, session: GameScoringSession) -> None:
        _single(session, 101)
        committed = _commit(session, _pa(session.game_id, 102, PlateResult.STRIKEOUT))

        state = unwrap(session.delete_plate_appearance(committed.event.id or 0))

        assert state.summary.outs == 0
        assert state.due_up is not None
        assert state.due_up.player_id == 102

    def test_deleting_an_older_play_keeps_the_order(self, session: GameScoringSession) -> None:
        first = _single(session, 101)
        _commit(session, _pa(session.game_id, 102, PlateResult.STRIKEOUT))

        state = unwrap(session.delete_plate_appearance(first.event.id or 0))

        assert state.runners == ()
        assert state.summary.plate_appearances == 1
        assert state.due_up is not None
        assert state.due_up.player_id == 103

    def test_delete_unknown_play(self, session: GameScoringSession) -> None:
        assert isinstance(unwrap_err(session.delete_plate_appearance(12345)), NotFoundError)


class TestRunners:
    def test_steal_moves_the_runner_and_credits_the_steal(
        self, session: GameScoringSession, conn: sqlite3.Connection
    ) -> None:
        committed = _single(session, 101)
        runner = committed.runners[0]

        runners = unwrap(session.steal_base(runner.id or 0, 2))

        assert [(r.player_id, r.current_base) for r in runners] == [(101, 2)]
        event = SqliteAtBatRepo(conn).get_by_id(committed.event.id or 0)
        assert event is not None
        assert event.stolen_base

    def test_manual_advance_home_scores(self, session: GameScoringSession) -> None:
        runner = _commit(session, _pa(session.game_id, 101, PlateResult.TRIPLE, 3)).runners[0]

        runners = unwrap(session.advance_manual_runner(runner.id or 0, 4))

        assert runners == []
        assert unwrap(session.state()).game.team_score == 1

    def test_manual_advance_onto_occupied_base_conflicts(self, session: GameScoringSession) -> None:
        _single(session, 101)
        lead, trail = _single(session, 102).runners

        error = unwrap_err(session.advance_manual_runner(trail.id or 0, lead.current_base))

        assert isinstance(error, ConflictError)

    def test_put_out_runners_adds_no_out(self, session: GameScoringSession) -> None:
        runner = _single(session, 101).runners[0]

        runners = unwrap(session.put_out_runners([runner.id or 0]))

        assert runners == []
        assert unwrap(session.get_half_inning_summary(1, Half.TOP)).outs == 0

    def test_put_out_requires_a_runner(self, session: GameScoringSession) -> None:
        assert isinstance(unwrap_err(session.put_out_runners([])), ValidationError)


class TestGameFlow:
    def test_start_requires_a_lineup(self, conn: sqlite3.Connection) -> None:
        game_id = seed_game(conn)
        with GameScoringSession(conn, game_id) as scoring:
            assert isinstance(unwrap_err(scoring.start_game()), ValidationError)

    def test_start_game(self, session: GameScoringSession) -> None:
        state = unwrap(session.start_game())

        assert state.game.status is GameStatus.IN_PROGRESS
        assert state.phase == HalfInningActive(1, Half.TOP)
        assert state.due_up is not None
        assert state.due_up.player_id == 101
        assert isinstance(unwrap_err(session.start_game()), ValidationError)

    def test_opponent_half_updates_the_score(self, session: GameScoringSession) -> None:
        state = unwrap(session.record_opponent_half(1, 2))

        assert state.game.opponent_score == 2
        assert state.line_score.innings[0].bottom == 2
        assert state.phase == HalfInningActive(1, Half.TOP)

    def test_opponent_half_rejects_bad_input(self, session: GameScoringSession) -> None:
        assert isinstance(unwrap_err(session.record_opponent_half(0, 1)), ValidationError)
        assert isinstance(unwrap_err(session.record_opponent_half(1, -1)), ValidationError)

    def test_both_halves_locked_moves_to_next_inning(self, session: GameScoringSession) -> None:
        _strike_out_side(session, 1)

        state = unwrap(session.record_opponent_half(1, 0))

        assert state.phase == HalfInningActive(2, Half.TOP)

    def test_next_inning_waits_for_the_opponents_half(self, session: GameScoringSession) -> None:
        _strike_out_side(session, 1)

        error = unwrap_err(session.record_plate_appearance(_pa(session.game_id, 104, PlateResult.SINGLE, 1, inning=2)))
        assert isinstance(error, ValidationError)

        session.record_opponent_half(1, 0)
        committed = _single(session, 104, inning=2)

        assert committed.phase == HalfInningActive(2, Half.TOP)

    def test_opponent_half_rejects_an_inning_not_yet_reached(self, session: GameScoringSession) -> None:
        error = unwrap_err(session.record_opponent_half(3, 1))

        assert isinstance(error, ValidationError)
        state = unwrap(session.state())
        assert state.game.opponent_score == 0
        assert state.line_score.innings[2].bottom is None

    def test_batting_second_waits_for_the_opponents_top_half(self, conn: sqlite3.Connection) -> None:
        game_id = seed_game(conn, bat_first=False)
        seed_lineup(conn, game_id)

        with GameScoringSession(conn, game_id) as scoring:
            error = unwrap_err(
                scoring.record_plate_appearance(_pa(game_id, 101, PlateResult.SINGLE, 1, half=Half.BOTTOM))
            )
            assert isinstance(error, ValidationError)

            state = unwrap(scoring.record_opponent_half(1, 2))
            assert state.phase == HalfInningActive(1, Half.BOTTOM)

            committed = _commit(scoring, _pa(game_id, 101, PlateResult.SINGLE, 1, half=Half.BOTTOM))

        assert committed.phase == HalfInningActive(1, Half.BOTTOM)

    def test_game_ends_after_the_last_inning(self, session: GameScoringSession) -> None:
        for inning in range(1, 7):
            _strike_out_side(session, inning)
            session.record_opponent_half(inning, 1)
        session.record_opponent_half(7, 0)

        assert unwrap(session.state()).phase == HalfInningActive(7, Half.TOP)
        committed = _strike_out_side(session, 7)

        assert committed.phase == GameComplete()
        state = unwrap(session.state())
        assert state.game.status is GameStatus.COMPLETED
        assert state.game.opponent_score == 6
        assert state.due_up is None
        error = unwrap_err(session.record_plate_appearance(_pa(session.game_id, 101, PlateResult.SINGLE, 1)))
        assert isinstance(error, ValidationError)

    def test_extra_innings_stop_at_the_ceiling(self, conn: sqlite3.Connection, game_id: int) -> None:
        settings = ScoringSettings(max_innings_ceiling=9)
        with GameScoringSession(conn, game_id, settings=settings) as scoring:
            assert unwrap(scoring.add_extra_inning()).max_innings == 8
            assert unwrap(scoring.add_extra_inning()).max_innings == 9
            error = unwrap_err(scoring.add_extra_inning())

        assert isinstance(error, ValidationError)

    def test_extra_inning_extends_the_line_score(self, session: GameScoringSession) -> None:
        session.add_extra_inning()

        state = unwrap(session.state())

        assert len(state.line_score.innings) == 8


class TestReads:
    def test_review_lists_the_half_inning(self, session: GameScoringSession) -> None:
        _single(session, 101)
        _commit(session, _pa(session.game_id, 102, PlateResult.FLY_OUT, notes="deep to left"))

        review = unwrap(session.review(1, Half.TOP))

        assert [e.batter_id for e in review.events] == [101, 102]
        assert review.events[1].notes == "deep to left"
        assert [r.player_id for r in review.runners] == [101]
        assert review.summary.outs == 1

    def test_review_rejects_unknown_inning(self, session: GameScoringSession) -> None:
        match session.review(9, Half.TOP):
            case Err(error):
                assert isinstance(error, ValidationError)
            case Ok(_):
                pytest.fail("expected an error")

    def test_state_shows_pending_play(self, session: GameScoringSession) -> None:
        _single(session, 101)
        session.record_plate_appearance(_pa(session.game_id, 102, PlateResult.GROUND_OUT))

        state = unwrap(session.state())

        assert state.pending is not None
        assert state.pending.plate_appearance.batter_id == 102
