from typing import Protocol, runtime_checkable

from sandlot_scoring.domain.at_bat import AtBatEvent
from sandlot_scoring.domain.game import Game, GameStatus, Half
from sandlot_scoring.domain.lineup import BattingCursor, LineupSlot
from sandlot_scoring.domain.pitching import PitchingLine
from sandlot_scoring.domain.runner import Runner


@runtime_checkable
class GameRepo(Protocol):
    def insert(self, game: Game) -> int: ...

    def get_by_id(self, game_id: int) -> Game | None: ...

    def set_status(self, game_id: int, status: GameStatus) -> None: ...

    def set_cursor(self, game_id: int, inning: int, half: Half) -> None: ...

    def set_scores(self, game_id: int, team_score: int, opponent_score: int) -> None: ...

    def set_max_innings(self, game_id: int, max_innings: int) -> None: ...


@runtime_checkable
class AtBatRepo(Protocol):
    def insert(self, event: AtBatEvent) -> int: ...

    def update(self, event: AtBatEvent) -> None: ...

    def delete(self, event_id: int) -> None: ...

    def get_by_id(self, event_id: int) -> AtBatEvent | None: ...

    def get_by_scope(self, game_id: int, inning: int, half: Half) -> list[AtBatEvent]: ...

    def get_by_game(self, game_id: int) -> list[AtBatEvent]: ...

    def get_by_batter(self, batter_id: int) -> list[AtBatEvent]: ...

    def mark_run_scored(self, event_id: int) -> None: ...

    def record_stolen_base(self, event_id: int, to_base: int) -> None: ...


@runtime_checkable
class RunnerRepo(Protocol):
    def insert(self, runner: Runner) -> int: ...

    def get_by_id(self, runner_id: int) -> Runner | None: ...

    def get_active(self, game_id: int, inning: int, half: Half) -> list[Runner]: ...

    def get_by_at_bat(self, at_bat_id: int) -> list[Runner]: ...

    def move(self, runner_id: int, to_base: int) -> None: ...

    def deactivate(self, runner_ids: list[int]) -> None: ...

    def deactivate_scope(self, game_id: int, inning: int, half: Half) -> int: ...

    def delete(self, runner_ids: list[int]) -> None: ...

    def delete_for_at_bat(self, at_bat_id: int) -> None: ...


@runtime_checkable
class LineupRepo(Protocol):
    def upsert(self, slot: LineupSlot) -> int: ...

    def get_by_game(self, game_id: int) -> list[LineupSlot]: ...

    def get_slot(self, game_id: int, player_id: int) -> LineupSlot | None: ...


@runtime_checkable
class BattingCursorRepo(Protocol):
    def get(self, game_id: int, inning: int, half: Half) -> BattingCursor | None: ...

    def latest_before(self, game_id: int, inning: int, half: Half) -> BattingCursor | None: ...

    def upsert(self, cursor: BattingCursor) -> None: ...


@runtime_checkable
class LineScoreRepo(Protocol):
    def upsert(self, game_id: int, inning: int, runs: int) -> None: ...

    def get(self, game_id: int, inning: int) -> int | None: ...

    def get_by_game(self, game_id: int) -> dict[int, int]: ...


@runtime_checkable
class PitchingLineRepo(Protocol):
    def upsert(self, line: PitchingLine) -> int: ...

    def get_by_game(self, game_id: int) -> list[PitchingLine]: ...

    def get_by_player(self, player_id: int) -> list[PitchingLine]: ...


@runtime_checkable
class PendingPlayRepo(Protocol):
    def put(self, game_id: int, payload: str, candidate_runner_ids: list[int]) -> None: ...

    def get(self, game_id: int) -> tuple[str, list[int]] | None: ...

    def clear(self, game_id: int) -> None: ...


@runtime_checkable
class WriterLockRepo(Protocol):
    def holder_token(self, game_id: int) -> str | None: ...

    def acquire(self, game_id: int, token: str, holder: str, *, force: bool = False) -> bool: ...

    def release(self, game_id: int, token: str) -> None: ...
