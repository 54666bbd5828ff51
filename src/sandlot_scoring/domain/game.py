from dataclasses import dataclass
from enum import StrEnum


class Half(StrEnum):
    TOP = "top"
    BOTTOM = "bottom"

    @property
    def other(self) -> "Half":
        return Half.BOTTOM if self is Half.TOP else Half.TOP


def play_order(inning: int, half: Half) -> tuple[int, int]:
    """Sort key that puts the top of an inning before its bottom."""
    return inning, 0 if half is Half.TOP else 1


class GameStatus(StrEnum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


DEFAULT_MAX_INNINGS = 7


@dataclass(frozen=True)
class Game:
    name: str
    opponent_name: str
    bat_first: bool
    id: int | None = None
    status: GameStatus = GameStatus.SCHEDULED
    max_innings: int = DEFAULT_MAX_INNINGS
    team_score: int = 0
    opponent_score: int = 0
    current_inning: int = 1
    current_half: Half = Half.TOP
    game_date: str | None = None

    @property
    def batting_half(self) -> Half:
        """The half in which the tracked team bats."""
        return Half.TOP if self.bat_first else Half.BOTTOM

    @property
    def fielding_half(self) -> Half:
        return self.batting_half.other

    @property
    def is_closed(self) -> bool:
        return self.status in (GameStatus.COMPLETED, GameStatus.CANCELLED)


@dataclass(frozen=True)
class InningScope:
    game_id: int
    inning: int
    half: Half

    def __str__(self) -> str:
        return f"{self.half} {self.inning}"


@dataclass(frozen=True)
class LineScoreInning:
    inning: int
    top: int | None
    bottom: int | None


@dataclass(frozen=True)
class LineScore:
    innings: tuple[LineScoreInning, ...]
    top_total: int
    bottom_total: int
