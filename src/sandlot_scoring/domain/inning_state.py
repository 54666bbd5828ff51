from collections.abc import Iterable
from dataclasses import dataclass

from sandlot_scoring.domain.at_bat import AtBatEvent, PlateResult, PlayKind, is_hit, is_out
from sandlot_scoring.domain.game import Half

OUTS_PER_HALF = 3

_PLAY_OUTS = {
    PlayKind.STANDARD: 1,
    PlayKind.DOUBLE_PLAY: 2,
    PlayKind.TRIPLE_PLAY: 3,
}


@dataclass(frozen=True)
class HalfInningSummary:
    inning: int
    half: Half
    outs: int
    runs: int
    hits: int
    errors: int
    plate_appearances: int

    @property
    def is_locked(self) -> bool:
        return self.outs >= OUTS_PER_HALF

    @property
    def is_completed(self) -> bool:
        return self.is_locked


def out_contribution(event: AtBatEvent) -> int:
    if not is_out(event.result) or event.reached_on_error:
        return 0
    return _PLAY_OUTS[event.play]


def total_outs(events: Iterable[AtBatEvent]) -> int:
    """Raw out count, uncapped, so callers can tell a triple play from a routine third out."""
    return sum(out_contribution(e) for e in events)


def summarize_half_inning(inning: int, half: Half, events: Iterable[AtBatEvent]) -> HalfInningSummary:
    events = list(events)
    return HalfInningSummary(
        inning=inning,
        half=half,
        outs=min(total_outs(events), OUTS_PER_HALF),
        runs=sum(1 for e in events if e.run_scored),
        hits=sum(1 for e in events if is_hit(e.result)),
        errors=sum(1 for e in events if e.result is PlateResult.ERROR or e.reached_on_error),
        plate_appearances=len(events),
    )


def summarize_opponent_half(inning: int, half: Half, runs: int | None) -> HalfInningSummary:
    """The opponent's half only records a run total; entering it closes the half."""
    return HalfInningSummary(
        inning=inning,
        half=half,
        outs=OUTS_PER_HALF if runs is not None else 0,
        runs=runs or 0,
        hits=0,
        errors=0,
        plate_appearances=0,
    )
