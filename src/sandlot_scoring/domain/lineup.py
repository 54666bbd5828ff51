from dataclasses import dataclass

from sandlot_scoring.domain.game import Half


@dataclass(frozen=True)
class LineupSlot:
    game_id: int
    player_id: int
    player_name: str
    id: int | None = None
    batting_order: int | None = None
    position: str | None = None
    is_active: bool = True

    @property
    def is_starter(self) -> bool:
        return self.batting_order is not None and self.is_active


@dataclass(frozen=True)
class BattingCursor:
    game_id: int
    inning: int
    half: Half
    lead_off: int
    next_up: int
