"""Batting and pitching rate statistics scaled to a seven-inning game.

Innings pitched use the scorebook notation where the tenths digit counts
outs: ``6.2`` is six innings and two outs, never 6.2 real innings.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from sandlot_scoring.domain.at_bat import (
    TOTAL_BASES,
    WALK_RESULTS,
    AtBatEvent,
    PlateResult,
    counts_as_at_bat,
    is_hit,
)
from sandlot_scoring.domain.pitching import PitchingLine

REGULATION_INNINGS = 7


def innings_to_outs(innings: float) -> int:
    whole = int(innings)
    partial = round((innings - whole) * 10)
    return whole * 3 + partial


def outs_to_innings(outs: int) -> float:
    return outs // 3 + (outs % 3) / 10


def normalize_innings(innings: float) -> float:
    """Carry surplus outs into whole innings, so ``0.3`` becomes ``1.0``."""
    if innings < 0:
        raise ValueError(f"innings pitched cannot be negative, got {innings}")
    return outs_to_innings(innings_to_outs(innings))


def format_innings(innings: float) -> str:
    whole = int(innings)
    partial = round((innings - whole) * 10)
    return f"{whole}.{partial}"


def format_batting_rate(value: float) -> str:
    return f"{value:.3f}"


def format_pitching_rate(value: float) -> str:
    return f"{value:.2f}"


@dataclass(frozen=True)
class BattingTotals:
    plate_appearances: int = 0
    at_bats: int = 0
    hits: int = 0
    doubles: int = 0
    triples: int = 0
    home_runs: int = 0
    walks: int = 0
    rbi: int = 0
    runs: int = 0
    strikeouts: int = 0
    stolen_bases: int = 0

    @property
    def singles(self) -> int:
        return self.hits - self.doubles - self.triples - self.home_runs

    @property
    def total_bases(self) -> int:
        return self.singles + 2 * self.doubles + 3 * self.triples + 4 * self.home_runs

    @property
    def batting_average(self) -> float:
        return self.hits / self.at_bats if self.at_bats else 0.0

    @property
    def on_base_percentage(self) -> float:
        denominator = self.at_bats + self.walks
        return (self.hits + self.walks) / denominator if denominator else 0.0

    @property
    def slugging_percentage(self) -> float:
        return self.total_bases / self.at_bats if self.at_bats else 0.0

    @property
    def ops(self) -> float:
        return self.on_base_percentage + self.slugging_percentage


def batting_totals(events: Iterable[AtBatEvent]) -> BattingTotals:
    pa = ab = h = doubles = triples = hr = bb = rbi = r = so = sb = 0
    for event in events:
        pa += 1
        if counts_as_at_bat(event.result):
            ab += 1
        if is_hit(event.result):
            h += 1
            bases = TOTAL_BASES[event.result]
            doubles += bases == 2
            triples += bases == 3
            hr += bases == 4
        if event.result in WALK_RESULTS:
            bb += 1
        if event.result is PlateResult.STRIKEOUT:
            so += 1
        if event.run_scored:
            r += 1
        sb += len(event.stolen_bases) or int(event.stolen_base)
        rbi += event.rbi
    return BattingTotals(
        plate_appearances=pa,
        at_bats=ab,
        hits=h,
        doubles=doubles,
        triples=triples,
        home_runs=hr,
        walks=bb,
        rbi=rbi,
        runs=r,
        strikeouts=so,
        stolen_bases=sb,
    )


@dataclass(frozen=True)
class PitchingTotals:
    outs_recorded: int = 0
    hits_allowed: int = 0
    runs_allowed: int = 0
    earned_runs: int = 0
    strikeouts: int = 0
    walks: int = 0
    home_runs_allowed: int = 0
    wins: int = 0
    losses: int = 0
    saves: int = 0

    @property
    def innings_pitched(self) -> float:
        return outs_to_innings(self.outs_recorded)

    @property
    def _real_innings(self) -> float:
        return self.outs_recorded / 3

    def _per_regulation_game(self, count: int) -> float:
        return count * REGULATION_INNINGS / self._real_innings if self.outs_recorded else 0.0

    @property
    def era(self) -> float:
        return self._per_regulation_game(self.earned_runs)

    @property
    def whip(self) -> float:
        return (self.walks + self.hits_allowed) / self._real_innings if self.outs_recorded else 0.0

    @property
    def strikeouts_per_7(self) -> float:
        return self._per_regulation_game(self.strikeouts)

    @property
    def walks_per_7(self) -> float:
        return self._per_regulation_game(self.walks)


def pitching_totals(lines: Iterable[PitchingLine]) -> PitchingTotals:
    lines = list(lines)
    return PitchingTotals(
        outs_recorded=sum(innings_to_outs(line.innings_pitched) for line in lines),
        hits_allowed=sum(line.hits_allowed for line in lines),
        runs_allowed=sum(line.runs_allowed for line in lines),
        earned_runs=sum(line.earned_runs for line in lines),
        strikeouts=sum(line.strikeouts for line in lines),
        walks=sum(line.walks for line in lines),
        home_runs_allowed=sum(line.home_runs_allowed for line in lines),
        wins=sum(1 for line in lines if line.win),
        losses=sum(1 for line in lines if line.loss),
        saves=sum(1 for line in lines if line.save),
    )
