from dataclasses import dataclass


@dataclass(frozen=True)
class PitchingLine:
    game_id: int
    player_id: int
    id: int | None = None
    innings_pitched: float = 0.0
    hits_allowed: int = 0
    runs_allowed: int = 0
    earned_runs: int = 0
    strikeouts: int = 0
    walks: int = 0
    home_runs_allowed: int = 0
    win: bool = False
    loss: bool = False
    save: bool = False
