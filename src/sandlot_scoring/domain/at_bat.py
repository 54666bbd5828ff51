from dataclasses import dataclass
from enum import StrEnum

from sandlot_scoring.domain.game import Half


class PlateResult(StrEnum):
    SINGLE = "single"
    DOUBLE = "double"
    TRIPLE = "triple"
    HOME_RUN = "home_run"
    WALK = "walk"
    HIT_BY_PITCH = "hit_by_pitch"
    STRIKEOUT = "strikeout"
    GROUND_OUT = "ground_out"
    FLY_OUT = "fly_out"
    LINE_OUT = "line_out"
    SACRIFICE_BUNT = "sacrifice_bunt"
    SACRIFICE_FLY = "sacrifice_fly"
    FIELDERS_CHOICE_OUT = "fielders_choice_out"
    ERROR = "error"
    FIELDERS_CHOICE_SAFE = "fielders_choice_safe"


HIT_RESULTS = frozenset({PlateResult.SINGLE, PlateResult.DOUBLE, PlateResult.TRIPLE, PlateResult.HOME_RUN})

OUT_RESULTS = frozenset(
    {
        PlateResult.STRIKEOUT,
        PlateResult.GROUND_OUT,
        PlateResult.FLY_OUT,
        PlateResult.LINE_OUT,
        PlateResult.SACRIFICE_BUNT,
        PlateResult.SACRIFICE_FLY,
        PlateResult.FIELDERS_CHOICE_OUT,
    }
)

ON_BASE_RESULTS = frozenset(
    HIT_RESULTS
    | {PlateResult.WALK, PlateResult.HIT_BY_PITCH, PlateResult.ERROR, PlateResult.FIELDERS_CHOICE_SAFE}
)

WALK_RESULTS = frozenset({PlateResult.WALK, PlateResult.HIT_BY_PITCH})
SACRIFICE_RESULTS = frozenset({PlateResult.SACRIFICE_BUNT, PlateResult.SACRIFICE_FLY})

# Lowest base the batter can legally stand on for each extra-base hit.
MIN_BASE_REACHED = {
    PlateResult.DOUBLE: 2,
    PlateResult.TRIPLE: 3,
    PlateResult.HOME_RUN: 4,
}

TOTAL_BASES = {
    PlateResult.SINGLE: 1,
    PlateResult.DOUBLE: 2,
    PlateResult.TRIPLE: 3,
    PlateResult.HOME_RUN: 4,
}


def is_out(result: PlateResult) -> bool:
    return result in OUT_RESULTS


def is_on_base(result: PlateResult) -> bool:
    return result in ON_BASE_RESULTS


def is_hit(result: PlateResult) -> bool:
    return result in HIT_RESULTS


def counts_as_at_bat(result: PlateResult) -> bool:
    return result not in WALK_RESULTS and result not in SACRIFICE_RESULTS


class PlayKind(StrEnum):
    STANDARD = "standard"
    DOUBLE_PLAY = "double_play"
    TRIPLE_PLAY = "triple_play"

    @classmethod
    def for_extra_outs(cls, extra_outs: int) -> "PlayKind":
        if extra_outs == 0:
            return cls.STANDARD
        if extra_outs == 1:
            return cls.DOUBLE_PLAY
        if extra_outs == 2:
            return cls.TRIPLE_PLAY
        raise ValueError(f"a play can put out at most two runners besides the batter, got {extra_outs}")


@dataclass(frozen=True)
class PlayOutcome:
    """Structured description of what happened on a plate appearance."""

    result: PlateResult
    play: PlayKind = PlayKind.STANDARD
    extra_out_runner_ids: tuple[int, ...] = ()
    fielding_position: str | None = None
    reached_on_error: bool = False


@dataclass(frozen=True)
class AtBatEvent:
    game_id: int
    inning: int
    half: Half
    batter_id: int
    result: PlateResult
    id: int | None = None
    batting_order: int | None = None
    rbi: int = 0
    run_scored: bool = False
    stolen_base: bool = False
    stolen_bases: tuple[int, ...] = ()
    base_reached: int = 0
    notes: str | None = None
    play: PlayKind = PlayKind.STANDARD
    extra_out_runner_ids: tuple[int, ...] = ()
    fielding_position: str | None = None
    reached_on_error: bool = False
    runs_on_play: int = 0
    rbi_derived: bool = False
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def outcome(self) -> PlayOutcome:
        return PlayOutcome(
            result=self.result,
            play=self.play,
            extra_out_runner_ids=self.extra_out_runner_ids,
            fielding_position=self.fielding_position,
            reached_on_error=self.reached_on_error,
        )


@dataclass(frozen=True)
class PlateAppearance:
    """A plate appearance as captured by the operator, before resolution."""

    game_id: int
    inning: int
    half: Half
    batter_id: int
    result: PlateResult
    base_reached: int | None = None
    rbi: int | None = None
    notes: str | None = None
    fielding_position: str | None = None
    stolen_base: bool = False
    reached_on_error: bool = False


@dataclass(frozen=True)
class AtBatPatch:
    """Fields an operator may change on an already recorded plate appearance."""

    result: PlateResult | None = None
    base_reached: int | None = None
    rbi: int | None = None
    run_scored: bool | None = None
    stolen_base: bool | None = None
    notes: str | None = None
    fielding_position: str | None = None
    reached_on_error: bool | None = None
    batter_id: int | None = None
