import logging
from collections.abc import Sequence
from dataclasses import dataclass, replace

from sandlot_scoring.domain.advancement import derive_rbi
from sandlot_scoring.domain.at_bat import (
    MIN_BASE_REACHED,
    AtBatEvent,
    AtBatPatch,
    PlateAppearance,
    PlateResult,
    PlayKind,
    is_on_base,
    is_out,
)
from sandlot_scoring.domain.errors import NotFoundError, ValidationError
from sandlot_scoring.domain.game import Game, GameStatus, InningScope, play_order
from sandlot_scoring.domain.game_flow import GamePhase
from sandlot_scoring.domain.inning_state import HalfInningSummary
from sandlot_scoring.domain.lineup import LineupSlot
from sandlot_scoring.domain.runner import HOME, Runner
from sandlot_scoring.repos.protocols import AtBatRepo, RunnerRepo
from sandlot_scoring.services.batting_order import BattingOrder
from sandlot_scoring.services.game_flow_controller import GameFlowController
from sandlot_scoring.services.runner_tracker import RunnerTracker
from sandlot_scoring.services.scorekeeper import Scorekeeper

logger = logging.getLogger(__name__)

MAX_RBI = 4
MAX_EXTRA_OUTS = 2


@dataclass(frozen=True)
class DisambiguationRequired:
    """A ground out with runners aboard: the operator must say which runners were also put out."""

    plate_appearance: PlateAppearance
    candidates: tuple[Runner, ...]


@dataclass(frozen=True)
class PlayCommitted:
    event: AtBatEvent
    runners: tuple[Runner, ...]
    summary: HalfInningSummary
    phase: GamePhase
    runs_on_play: int


def check_base_reached(result: PlateResult, base_reached: int | None, *, reached_on_error: bool = False) -> int:
    """Validate ``base_reached`` against the result category and return the effective value."""
    if base_reached is not None and not 0 <= base_reached <= HOME:
        raise ValidationError(f"base reached must be between 0 and {HOME}, got {base_reached}")
    if is_out(result) and not reached_on_error:
        if base_reached:
            raise ValidationError(f"{result} puts the batter out; base reached must be 0")
        return 0
    if base_reached is None or base_reached == 0:
        raise ValidationError(f"{result} puts the batter on base; base reached (1-4) is required")
    minimum = MIN_BASE_REACHED.get(result, 1)
    if base_reached < minimum:
        raise ValidationError(f"{result} requires the batter to reach at least base {minimum}, got {base_reached}")
    return base_reached


def _check_rbi(rbi: int | None) -> None:
    if rbi is not None and not 0 <= rbi <= MAX_RBI:
        raise ValidationError(f"rbi must be between 0 and {MAX_RBI}, got {rbi}")


class PlateAppearanceResolver:
    """Turns an operator's plate appearance into a committed event plus its runner side effects.

    The resolver never commits or rolls back; the caller wraps each command in
    one transaction so the event, runner and score writes land together.
    """

    def __init__(
        self,
        at_bat_repo: AtBatRepo,
        runner_repo: RunnerRepo,
        tracker: RunnerTracker,
        batting_order: BattingOrder,
        scorekeeper: Scorekeeper,
        flow: GameFlowController,
    ) -> None:
        self._at_bats = at_bat_repo
        self._runners = runner_repo
        self._tracker = tracker
        self._batting_order = batting_order
        self._scorekeeper = scorekeeper
        self._flow = flow

    def validate(self, pa: PlateAppearance) -> tuple[Game, LineupSlot, int]:
        game = self._scorekeeper.game(pa.game_id)
        if game.is_closed:
            raise ValidationError(f"game {pa.game_id} is {game.status}; no more plate appearances can be recorded")
        if not 1 <= pa.inning <= game.max_innings:
            raise ValidationError(f"inning {pa.inning} is outside this game's {game.max_innings} innings")
        if pa.half is not game.batting_half:
            raise ValidationError(f"the tracked team bats in the {game.batting_half} half, not the {pa.half}")
        if play_order(pa.inning, pa.half) > play_order(game.current_inning, game.current_half):
            raise ValidationError(
                f"{pa.half} {pa.inning} has not been reached; play is in the {game.current_half} {game.current_inning}"
            )
        if self._scorekeeper.half_inning_summary(game, pa.inning, pa.half).is_locked:
            raise ValidationError(f"{pa.half} {pa.inning} already has three outs and is locked")
        slot = self._batting_order.require_batter(pa.game_id, pa.batter_id)
        base_reached = check_base_reached(pa.result, pa.base_reached, reached_on_error=pa.reached_on_error)
        _check_rbi(pa.rbi)
        return game, slot, base_reached

    def propose(self, pa: PlateAppearance) -> PlayCommitted | DisambiguationRequired:
        """Phase one: commit straight away unless a double/triple play is possible."""
        self.validate(pa)
        scope = InningScope(pa.game_id, pa.inning, pa.half)
        if pa.result is PlateResult.GROUND_OUT and not pa.reached_on_error:
            candidates = self._tracker.active_runners(scope)
            if candidates:
                logger.debug("Ground out with %d runners aboard in %s; awaiting disambiguation", len(candidates), scope)
                return DisambiguationRequired(plate_appearance=pa, candidates=tuple(candidates))
        return self.commit(pa)

    def commit(self, pa: PlateAppearance, out_runner_ids: Sequence[int] = ()) -> PlayCommitted:
        """Phase two: write the event and apply every runner consequence of it."""
        game, slot, base_reached = self.validate(pa)
        scope = InningScope(pa.game_id, pa.inning, pa.half)
        extra_outs = self._check_extra_outs(pa, scope, out_runner_ids)
        play = PlayKind.for_extra_outs(len(extra_outs))

        if game.status is GameStatus.SCHEDULED:
            self._flow.start(game)

        self._tracker.remove_runners(list(extra_outs))
        plan = self._tracker.advance_all(scope, base_reached)
        rbi = pa.rbi
        if rbi is None:
            rbi = derive_rbi(pa.result, play, plan.runs, base_reached, reached_on_error=pa.reached_on_error)

        event = AtBatEvent(
            game_id=pa.game_id,
            inning=pa.inning,
            half=pa.half,
            batter_id=pa.batter_id,
            batting_order=slot.batting_order,
            result=pa.result,
            rbi=rbi,
            run_scored=base_reached == HOME,
            stolen_base=pa.stolen_base,
            base_reached=base_reached,
            notes=pa.notes,
            play=play,
            extra_out_runner_ids=extra_outs,
            fielding_position=pa.fielding_position,
            reached_on_error=pa.reached_on_error,
            runs_on_play=plan.runs,
            rbi_derived=pa.rbi is None,
        )
        event_id = self._at_bats.insert(event)
        if 0 < base_reached < HOME:
            self._tracker.place_batter(scope, pa.batter_id, base_reached, event_id)
        self._batting_order.advance_past(scope, slot.batting_order)

        logger.info(
            "Recorded %s for player %d in %s (%s, %d run(s) on the play)",
            pa.result,
            pa.batter_id,
            scope,
            play,
            plan.runs,
        )
        return self._committed(scope, event_id, plan.runs + int(base_reached == HOME))

    def edit(self, event_id: int, patch: AtBatPatch) -> AtBatEvent:
        event = self._event(event_id)
        game = self._scorekeeper.game(event.game_id)
        if game.is_closed:
            raise ValidationError(f"game {event.game_id} is {game.status}; its plays can no longer be edited")
        scope = InningScope(event.game_id, event.inning, event.half)
        if self._scorekeeper.half_inning_summary(game, event.inning, event.half).is_locked:
            raise ValidationError(f"{scope} is locked; plate appearance {event_id} can no longer be edited")

        result = patch.result or event.result
        if result is not event.result and event.play is not PlayKind.STANDARD:
            raise ValidationError(f"plate appearance {event_id} is a {event.play}; delete and re-record it instead")
        reached_on_error = event.reached_on_error if patch.reached_on_error is None else patch.reached_on_error
        if patch.base_reached is not None:
            requested_base: int | None = patch.base_reached
        elif is_on_base(result) or reached_on_error:
            requested_base = event.base_reached or None
        else:
            requested_base = None
        base_reached = check_base_reached(result, requested_base, reached_on_error=reached_on_error)
        _check_rbi(patch.rbi)

        batter_id = patch.batter_id if patch.batter_id is not None else event.batter_id
        slot = self._batting_order.require_batter(event.game_id, batter_id)

        rbi, rbi_derived = event.rbi, event.rbi_derived
        if patch.rbi is not None:
            rbi, rbi_derived = patch.rbi, False
        elif rbi_derived:
            rbi = derive_rbi(result, event.play, event.runs_on_play, base_reached, reached_on_error=reached_on_error)

        run_scored = event.run_scored
        if (base_reached, batter_id) != (event.base_reached, event.batter_id):
            run_scored = self._replace_batter_runner(scope, event, batter_id, base_reached)
        if patch.run_scored is not None:
            run_scored = patch.run_scored

        updated = replace(
            event,
            batter_id=batter_id,
            batting_order=slot.batting_order,
            result=result,
            base_reached=base_reached,
            rbi=rbi,
            rbi_derived=rbi_derived,
            run_scored=run_scored,
            stolen_base=event.stolen_base if patch.stolen_base is None else patch.stolen_base,
            notes=event.notes if patch.notes is None else (patch.notes or None),
            fielding_position=event.fielding_position if patch.fielding_position is None else patch.fielding_position,
            reached_on_error=reached_on_error,
        )
        self._at_bats.update(updated)
        logger.info("Edited plate appearance %d in %s", event_id, scope)
        return self._event(event_id)

    def delete(self, event_id: int) -> AtBatEvent:
        event = self._event(event_id)
        game = self._scorekeeper.game(event.game_id)
        if game.is_closed:
            raise ValidationError(f"game {event.game_id} is {game.status}; its plays can no longer be deleted")
        scope = InningScope(event.game_id, event.inning, event.half)
        if self._scorekeeper.half_inning_summary(game, event.inning, event.half).is_locked:
            raise ValidationError(f"{scope} is locked; plate appearance {event_id} can no longer be deleted")

        scope_events = self._at_bats.get_by_scope(event.game_id, event.inning, event.half)
        was_latest = bool(scope_events) and scope_events[-1].id == event_id
        self._runners.delete_for_at_bat(event_id)
        self._at_bats.delete(event_id)
        if was_latest:
            self._batting_order.step_back(scope, event.batting_order)
        logger.info("Deleted plate appearance %d from %s", event_id, scope)
        return event

    def _check_extra_outs(self, pa: PlateAppearance, scope: InningScope, out_runner_ids: Sequence[int]) -> tuple[int, ...]:
        if not out_runner_ids:
            return ()
        if pa.result is not PlateResult.GROUND_OUT or pa.reached_on_error:
            raise ValidationError(f"only a ground out can put additional runners out, not {pa.result}")
        selected = tuple(dict.fromkeys(out_runner_ids))
        if len(selected) > MAX_EXTRA_OUTS:
            raise ValidationError(f"at most {MAX_EXTRA_OUTS} runners can be put out besides the batter")
        on_base = {r.id for r in self._tracker.active_runners(scope)}
        unknown = [rid for rid in selected if rid not in on_base]
        if unknown:
            raise ValidationError(f"runner(s) {unknown} are not on base in {scope}")
        return selected

    def _replace_batter_runner(self, scope: InningScope, event: AtBatEvent, batter_id: int, base_reached: int) -> bool:
        """Re-place the batter's own runner after an edit and return the event's run-scored flag.

        Other runners keep their bases. A batter who already came around to score
        keeps the run unless the edit puts them out.
        """
        assert event.id is not None
        scored = any(r.current_base == HOME for r in self._runners.get_by_at_bat(event.id))
        self._runners.delete_for_at_bat(event.id)
        if base_reached == 0 or base_reached == HOME:
            return base_reached == HOME
        if scored:
            return True
        self._tracker.place_batter(scope, batter_id, base_reached, event.id)
        return False

    def _committed(self, scope: InningScope, event_id: int, runs_on_play: int) -> PlayCommitted:
        self._scorekeeper.recompute(scope.game_id)
        phase = self._flow.after_change(scope)
        game = self._scorekeeper.game(scope.game_id)
        return PlayCommitted(
            event=self._event(event_id),
            runners=tuple(self._tracker.active_runners(scope)),
            summary=self._scorekeeper.half_inning_summary(game, scope.inning, scope.half),
            phase=phase,
            runs_on_play=runs_on_play,
        )

    def _event(self, event_id: int) -> AtBatEvent:
        event = self._at_bats.get_by_id(event_id)
        if event is None:
            raise NotFoundError("plate appearance", event_id)
        return event
