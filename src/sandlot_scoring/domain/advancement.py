"""Batted-ball runner advancement rules.

These functions only decide where runners go; applying the moves to stored
runner rows is the runner tracker's job.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from sandlot_scoring.domain.at_bat import PlateResult, PlayKind
from sandlot_scoring.domain.runner import HOME, Runner, RunnerMove


@dataclass(frozen=True)
class AdvancementPlan:
    moves: tuple[RunnerMove, ...] = ()

    @property
    def scored_runner_ids(self) -> tuple[int, ...]:
        return tuple(m.runner_id for m in self.moves if m.scored)

    @property
    def runs(self) -> int:
        return len(self.scored_runner_ids)


def forced_target(current_base: int, occupied: frozenset[int]) -> int:
    """Where a runner ends up when the batter reaches first and unforced runners hold."""
    if current_base == 1:
        return 2
    if current_base == 2 and 1 in occupied:
        return 3
    if current_base == 3 and 1 in occupied and 2 in occupied:
        return HOME
    return current_base


def target_base(current_base: int, base_reached: int, occupied: frozenset[int]) -> int:
    if base_reached <= 0:
        return current_base
    if base_reached == 1:
        return forced_target(current_base, occupied)
    if base_reached == 2:
        return min(current_base + 2, HOME)
    return HOME


def plan_advancement(runners: Sequence[Runner], base_reached: int) -> AdvancementPlan:
    """Compute the moves every active runner makes when the batter reaches ``base_reached``.

    Runners are visited lead runner first. Occupancy is read from the state
    before the play, so a runner vacating a base never changes whether a
    trailing runner was forced.
    """
    if base_reached <= 0 or not runners:
        return AdvancementPlan()
    occupied = frozenset(r.current_base for r in runners)
    moves: list[RunnerMove] = []
    for runner in sorted(runners, key=lambda r: r.current_base, reverse=True):
        assert runner.id is not None
        new_base = target_base(runner.current_base, base_reached, occupied)
        if new_base != runner.current_base:
            moves.append(RunnerMove(runner_id=runner.id, from_base=runner.current_base, to_base=new_base))
    return AdvancementPlan(moves=tuple(moves))


def derive_rbi(
    result: PlateResult,
    play: PlayKind,
    runs_on_play: int,
    base_reached: int,
    *,
    reached_on_error: bool = False,
) -> int:
    """Runs batted in credited to the batter when the operator does not declare them."""
    if result is PlateResult.ERROR or reached_on_error or play is not PlayKind.STANDARD:
        return 0
    batter_run = 1 if base_reached == HOME else 0
    return min(runs_on_play + batter_run, 4)
