import logging

from sandlot_scoring.domain.advancement import AdvancementPlan, plan_advancement
from sandlot_scoring.domain.errors import ConflictError, NotFoundError, ValidationError
from sandlot_scoring.domain.game import InningScope
from sandlot_scoring.domain.runner import BASES, HOME, Runner
from sandlot_scoring.repos.protocols import AtBatRepo, RunnerRepo

logger = logging.getLogger(__name__)


class RunnerTracker:
    """Keeps the active baserunners of one half-inning consistent with the plays recorded in it."""

    def __init__(self, runner_repo: RunnerRepo, at_bat_repo: AtBatRepo) -> None:
        self._runners = runner_repo
        self._at_bats = at_bat_repo

    def active_runners(self, scope: InningScope) -> list[Runner]:
        """Active runners on base, lead runner first.

        When retries left several active rows for one player, only the most
        recently updated row survives; the others are deleted.
        """
        rows = self._runners.get_active(scope.game_id, scope.inning, scope.half)
        latest: dict[int, Runner] = {}
        for runner in rows:
            kept = latest.get(runner.player_id)
            if kept is None or _recency(runner) > _recency(kept):
                latest[runner.player_id] = runner
        keep_ids = {r.id for r in latest.values()}
        stale = [r.id for r in rows if r.id not in keep_ids and r.id is not None]
        if stale:
            logger.info("Removing %d duplicate runner rows in %s", len(stale), scope)
            self._runners.delete(stale)
        return [r for r in rows if r.id in keep_ids]

    def runner(self, runner_id: int) -> Runner:
        runner = self._runners.get_by_id(runner_id)
        if runner is None:
            raise NotFoundError("runner", runner_id)
        return runner

    def advance_all(self, scope: InningScope, base_reached: int) -> AdvancementPlan:
        plan = plan_advancement(self.active_runners(scope), base_reached)
        for move in plan.moves:
            self._runners.move(move.runner_id, move.to_base)
            if move.scored:
                self._credit_run(move.runner_id)
        if plan.moves:
            logger.debug("Advanced %d runners in %s, %d scored", len(plan.moves), scope, plan.runs)
        return plan

    def place_batter(self, scope: InningScope, player_id: int, base: int, at_bat_id: int) -> Runner | None:
        """Put the batter on ``base``; a batter reaching home only scores and gets no runner row."""
        if base == HOME:
            self._at_bats.mark_run_scored(at_bat_id)
            return None
        if base not in BASES:
            raise ValidationError(f"batter cannot be placed on base {base}")
        self._ensure_vacant(scope, base)
        runner = Runner(
            game_id=scope.game_id,
            inning=scope.inning,
            half=scope.half,
            player_id=player_id,
            at_bat_id=at_bat_id,
            current_base=base,
        )
        runner_id = self._runners.insert(runner)
        return self._runners.get_by_id(runner_id)

    def remove_runners(self, runner_ids: list[int]) -> None:
        self._runners.deactivate(runner_ids)

    def clear_half_inning(self, scope: InningScope) -> int:
        cleared = self._runners.deactivate_scope(scope.game_id, scope.inning, scope.half)
        if cleared:
            logger.debug("Cleared %d runners at the end of %s", cleared, scope)
        return cleared

    def advance_manual(self, runner_id: int, to_base: int) -> Runner:
        """Move one runner forward outside of a batted ball (wild pitch, passed ball, hustle)."""
        runner = self.runner(runner_id)
        if not runner.is_active:
            raise ValidationError(f"runner {runner_id} is no longer on base")
        if to_base <= runner.current_base or to_base > HOME:
            raise ValidationError(f"runner on base {runner.current_base} cannot move to base {to_base}")
        scope = InningScope(runner.game_id, runner.inning, runner.half)
        if to_base != HOME:
            self._ensure_vacant(scope, to_base)
        self._runners.move(runner_id, to_base)
        if to_base == HOME:
            self._credit_run(runner_id)
        return self.runner(runner_id)

    def steal_base(self, runner_id: int, to_base: int) -> Runner:
        moved = self.advance_manual(runner_id, to_base)
        if moved.at_bat_id is not None:
            self._at_bats.record_stolen_base(moved.at_bat_id, to_base)
        return moved

    def _ensure_vacant(self, scope: InningScope, base: int) -> None:
        occupant = next((r for r in self.active_runners(scope) if r.current_base == base), None)
        if occupant is not None:
            raise ConflictError(f"base {base} is already occupied by player {occupant.player_id}")

    def _credit_run(self, runner_id: int) -> None:
        runner = self.runner(runner_id)
        if runner.at_bat_id is not None:
            self._at_bats.mark_run_scored(runner.at_bat_id)


def _recency(runner: Runner) -> tuple[str, int]:
    return (runner.updated_at or runner.created_at or "", runner.id or 0)
