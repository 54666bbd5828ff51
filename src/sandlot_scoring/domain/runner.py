from dataclasses import dataclass

from sandlot_scoring.domain.game import Half

HOME = 4
BASES = (1, 2, 3)


@dataclass(frozen=True)
class Runner:
    game_id: int
    inning: int
    half: Half
    player_id: int
    current_base: int
    id: int | None = None
    at_bat_id: int | None = None
    is_active: bool = True
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class RunnerMove:
    runner_id: int
    from_base: int
    to_base: int

    @property
    def scored(self) -> bool:
        return self.to_base == HOME
