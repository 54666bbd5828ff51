"""The write boundary for live scoring of one game.

``GameScoringSession`` wires the repos and services for a single game, holds
that game's writer lock, and runs every command inside one SQLite
transaction. Services raise ``ScoringError``; the session rolls back and hands
the error to its caller as ``Err``.
"""

import json
import logging
import sqlite3
import uuid
from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass
from types import TracebackType
from typing import Self

from sandlot_scoring.config import ScoringSettings
from sandlot_scoring.db.connection import transaction
from sandlot_scoring.domain.at_bat import AtBatEvent, AtBatPatch, PlateAppearance, PlateResult
from sandlot_scoring.domain.errors import ConflictError, ScoringError, ValidationError
from sandlot_scoring.domain.game import Game, GameStatus, Half, InningScope, LineScore
from sandlot_scoring.domain.game_flow import GamePhase
from sandlot_scoring.domain.inning_state import HalfInningSummary
from sandlot_scoring.domain.lineup import LineupSlot
from sandlot_scoring.domain.result import Err, Ok, ScoringResult
from sandlot_scoring.domain.runner import Runner
from sandlot_scoring.repos.at_bat_repo import SqliteAtBatRepo
from sandlot_scoring.repos.game_repo import SqliteGameRepo
from sandlot_scoring.repos.line_score_repo import SqliteLineScoreRepo
from sandlot_scoring.repos.lineup_repo import SqliteBattingCursorRepo, SqliteLineupRepo
from sandlot_scoring.repos.runner_repo import SqliteRunnerRepo
from sandlot_scoring.repos.session_repo import SqlitePendingPlayRepo, SqliteWriterLockRepo
from sandlot_scoring.services.batting_order import BattingOrder
from sandlot_scoring.services.game_flow_controller import GameFlowController
from sandlot_scoring.services.plate_appearance import (
    DisambiguationRequired,
    PlateAppearanceResolver,
    PlayCommitted,
)
from sandlot_scoring.services.runner_tracker import RunnerTracker
from sandlot_scoring.services.scorekeeper import Scorekeeper

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GameState:
    game: Game
    phase: GamePhase
    summary: HalfInningSummary
    runners: tuple[Runner, ...]
    due_up: LineupSlot | None
    line_score: LineScore
    pending: DisambiguationRequired | None = None


@dataclass(frozen=True)
class HalfInningReview:
    summary: HalfInningSummary
    events: tuple[AtBatEvent, ...]
    runners: tuple[Runner, ...]


def encode_plate_appearance(pa: PlateAppearance) -> str:
    return json.dumps(asdict(pa))


def decode_plate_appearance(payload: str) -> PlateAppearance:
    data = json.loads(payload)
    data["half"] = Half(data["half"])
    data["result"] = PlateResult(data["result"])
    return PlateAppearance(**data)


class GameScoringSession:
    """Scoring handle for one game; use as a context manager to hold its writer lock."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        game_id: int,
        *,
        settings: ScoringSettings | None = None,
        writer: str | None = None,
    ) -> None:
        self._conn = conn
        self._game_id = game_id
        self._settings = settings or ScoringSettings()
        self._writer = writer or self._settings.writer_id
        self._token: str | None = None

        self._games = SqliteGameRepo(conn)
        self._at_bats = SqliteAtBatRepo(conn)
        self._runners = SqliteRunnerRepo(conn)
        self._line_scores = SqliteLineScoreRepo(conn)
        self._pending = SqlitePendingPlayRepo(conn)
        self._locks = SqliteWriterLockRepo(conn)

        self._tracker = RunnerTracker(self._runners, self._at_bats)
        self._batting_order = BattingOrder(SqliteLineupRepo(conn), SqliteBattingCursorRepo(conn))
        self._scorekeeper = Scorekeeper(self._games, self._at_bats, self._line_scores)
        self._flow = GameFlowController(self._games, self._scorekeeper, self._tracker)
        self._resolver = PlateAppearanceResolver(
            self._at_bats,
            self._runners,
            self._tracker,
            self._batting_order,
            self._scorekeeper,
            self._flow,
        )

    @property
    def game_id(self) -> int:
        return self._game_id

    @property
    def is_open(self) -> bool:
        return self._token is not None

    # -- Lifecycle -------------------------------------------------------------

    def open(self, *, force: bool = False) -> ScoringResult[Game]:
        """Take the game's writer lock; ``force`` takes it over from another session."""
        token = uuid.uuid4().hex
        try:
            with transaction(self._conn):
                game = self._scorekeeper.game(self._game_id)
                if not self._locks.acquire(self._game_id, token, self._writer, force=force):
                    raise ConflictError(f"game {self._game_id} is already being scored by another session")
        except ScoringError as e:
            return Err(e)
        self._token = token
        logger.info("Writer '%s' opened game %d%s", self._writer, self._game_id, " (forced)" if force else "")
        return Ok(game)

    def close(self) -> None:
        if self._token is None:
            return
        with transaction(self._conn):
            self._locks.release(self._game_id, self._token)
        logger.debug("Writer '%s' released game %d", self._writer, self._game_id)
        self._token = None

    def __enter__(self) -> Self:
        match self.open():
            case Err(e):
                raise e
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # -- Plate appearances -----------------------------------------------------

    def record_plate_appearance(self, pa: PlateAppearance) -> ScoringResult[PlayCommitted | DisambiguationRequired]:
        def run() -> PlayCommitted | DisambiguationRequired:
            if pa.game_id != self._game_id:
                raise ValidationError(f"this session scores game {self._game_id}, not game {pa.game_id}")
            self._ensure_nothing_pending()
            outcome = self._resolver.propose(pa)
            if isinstance(outcome, DisambiguationRequired):
                self._pending.put(
                    self._game_id,
                    encode_plate_appearance(pa),
                    [r.id for r in outcome.candidates if r.id is not None],
                )
            return outcome

        return self._write("record", run)

    def resolve_disambiguation(self, runner_ids: Sequence[int]) -> ScoringResult[PlayCommitted]:
        def run() -> PlayCommitted:
            pa, candidate_ids = self._pending_play()
            outside = [rid for rid in runner_ids if rid not in candidate_ids]
            if outside:
                raise ValidationError(f"runner(s) {outside} were not on base when the ground out was entered")
            committed = self._resolver.commit(pa, runner_ids)
            self._pending.clear(self._game_id)
            return committed

        return self._write("resolve", run)

    def cancel_disambiguation(self) -> ScoringResult[None]:
        def run() -> None:
            self._pending_play()
            self._pending.clear(self._game_id)
            logger.info("Pending ground out for game %d cancelled", self._game_id)

        return self._write("cancel", run)

    def pending_disambiguation(self) -> ScoringResult[DisambiguationRequired | None]:
        return self._read(self._pending_proposal)

    def edit_plate_appearance(self, event_id: int, patch: AtBatPatch) -> ScoringResult[GameState]:
        def run() -> GameState:
            event = self._resolver.edit(event_id, patch)
            self._check_game(event.game_id)
            return self._settle(InningScope(event.game_id, event.inning, event.half))

        return self._write("edit", run)

    def delete_plate_appearance(self, event_id: int) -> ScoringResult[GameState]:
        def run() -> GameState:
            event = self._resolver.delete(event_id)
            self._check_game(event.game_id)
            return self._settle(InningScope(event.game_id, event.inning, event.half))

        return self._write("delete", run)

    # -- Runners ---------------------------------------------------------------

    def advance_manual_runner(self, runner_id: int, to_base: int) -> ScoringResult[list[Runner]]:
        def run() -> list[Runner]:
            scope = self._runner_scope(runner_id)
            self._tracker.advance_manual(runner_id, to_base)
            self._scorekeeper.recompute(self._game_id)
            return self._tracker.active_runners(scope)

        return self._write("advance", run)

    def steal_base(self, runner_id: int, to_base: int) -> ScoringResult[list[Runner]]:
        def run() -> list[Runner]:
            scope = self._runner_scope(runner_id)
            self._tracker.steal_base(runner_id, to_base)
            self._scorekeeper.recompute(self._game_id)
            return self._tracker.active_runners(scope)

        return self._write("steal", run)

    def put_out_runners(self, runner_ids: Sequence[int]) -> ScoringResult[list[Runner]]:
        """Take runners off the bases (caught stealing, pick-off); outs still come from plate appearances."""

        def run() -> list[Runner]:
            if not runner_ids:
                raise ValidationError("select at least one runner to put out")
            scopes = {self._runner_scope(rid) for rid in runner_ids}
            if len(scopes) != 1:
                raise ValidationError("runners put out together must be on base in the same half-inning")
            self._tracker.remove_runners(list(runner_ids))
            logger.info("Put out %d runner(s) in game %d", len(runner_ids), self._game_id)
            return self._tracker.active_runners(scopes.pop())

        return self._write("put out", run)

    # -- Game flow -------------------------------------------------------------

    def start_game(self) -> ScoringResult[GameState]:
        def run() -> GameState:
            game = self._open_game()
            if not self._batting_order.lineup(self._game_id):
                raise ValidationError(f"game {self._game_id} has no batting lineup yet")
            return self._game_state(self._flow.start(game))

        return self._write("start", run)

    def record_opponent_half(self, inning: int, runs: int) -> ScoringResult[GameState]:
        def run() -> GameState:
            game = self._open_game()
            if not 1 <= inning <= game.max_innings:
                raise ValidationError(f"inning {inning} is outside this game's {game.max_innings} innings")
            if runs < 0:
                raise ValidationError(f"runs must be >= 0, got {runs}")
            if inning > game.current_inning:
                raise ValidationError(f"inning {inning} has not been reached; play is in inning {game.current_inning}")
            if game.status is GameStatus.SCHEDULED:
                self._flow.start(game)
            self._line_scores.upsert(self._game_id, inning, runs)
            logger.info("Game %d: %s scored %d in inning %d", self._game_id, game.opponent_name, runs, inning)
            return self._settle(InningScope(self._game_id, inning, game.fielding_half))

        return self._write("opponent", run)

    def add_extra_inning(self) -> ScoringResult[Game]:
        def run() -> Game:
            return self._flow.add_extra_inning(self._open_game(), self._settings.max_innings_ceiling)

        return self._write("extra inning", run)

    def substitute(
        self,
        out_player_id: int,
        in_player_id: int,
        *,
        in_player_name: str | None = None,
        position: str | None = None,
    ) -> ScoringResult[LineupSlot]:
        def run() -> LineupSlot:
            self._open_game()
            return self._batting_order.substitute(
                self._game_id,
                out_player_id,
                in_player_id,
                in_player_name=in_player_name,
                position=position,
            )

        return self._write("substitute", run)

    # -- Reads -----------------------------------------------------------------

    def get_half_inning_summary(self, inning: int, half: Half) -> ScoringResult[HalfInningSummary]:
        def run() -> HalfInningSummary:
            game = self._scorekeeper.game(self._game_id)
            _check_inning(game, inning)
            return self._scorekeeper.half_inning_summary(game, inning, half)

        return self._read(run)

    def batting_scope(self) -> ScoringResult[InningScope]:
        """The half-inning the tracked team bats in next."""
        return self._read(lambda: self._upcoming_batting_scope(self._scorekeeper.game(self._game_id)))

    def next_batter(self) -> ScoringResult[LineupSlot | None]:
        def run() -> LineupSlot | None:
            game = self._scorekeeper.game(self._game_id)
            return self._batting_order.due_up(self._upcoming_batting_scope(game))

        return self._read(run)

    def state(self) -> ScoringResult[GameState]:
        return self._read(lambda: self._game_state(self._scorekeeper.game(self._game_id)))

    def review(self, inning: int, half: Half) -> ScoringResult[HalfInningReview]:
        """Read-only look at any half-inning; the game's cursor does not move."""

        def run() -> HalfInningReview:
            game = self._scorekeeper.game(self._game_id)
            _check_inning(game, inning)
            return HalfInningReview(
                summary=self._scorekeeper.half_inning_summary(game, inning, half),
                events=tuple(self._at_bats.get_by_scope(self._game_id, inning, half)),
                runners=tuple(self._tracker.active_runners(InningScope(self._game_id, inning, half))),
            )

        return self._read(run)

    # -- Internals -------------------------------------------------------------

    def _write[T](self, command: str, action: Callable[[], T]) -> ScoringResult[T]:
        try:
            with transaction(self._conn):
                self._check_writer()
                value = action()
        except ScoringError as e:
            logger.warning("%s rejected for game %d: %s", command.capitalize(), self._game_id, e.message)
            return Err(e)
        return Ok(value)

    def _read[T](self, action: Callable[[], T]) -> ScoringResult[T]:
        try:
            # Reads may self-heal duplicate runner rows, which is a write.
            with transaction(self._conn):
                value = action()
        except ScoringError as e:
            return Err(e)
        return Ok(value)

    def _check_writer(self) -> None:
        if self._token is None:
            raise ConflictError(f"session for game {self._game_id} is not open for writing")
        if self._locks.holder_token(self._game_id) != self._token:
            raise ConflictError(f"writer lock for game {self._game_id} was taken over by another session")

    def _check_game(self, game_id: int) -> None:
        if game_id != self._game_id:
            raise ValidationError(f"this session scores game {self._game_id}, not game {game_id}")

    def _open_game(self) -> Game:
        game = self._scorekeeper.game(self._game_id)
        if game.is_closed:
            raise ValidationError(f"game {self._game_id} is {game.status}")
        return game

    def _runner_scope(self, runner_id: int) -> InningScope:
        self._open_game()
        runner = self._tracker.runner(runner_id)
        self._check_game(runner.game_id)
        if not runner.is_active:
            raise ValidationError(f"runner {runner_id} is no longer on base")
        return InningScope(runner.game_id, runner.inning, runner.half)

    def _settle(self, scope: InningScope) -> GameState:
        self._scorekeeper.recompute(self._game_id)
        self._flow.after_change(scope)
        return self._game_state(self._scorekeeper.game(self._game_id))

    def _ensure_nothing_pending(self) -> None:
        if self._pending.get(self._game_id) is not None:
            raise ValidationError("a ground out is awaiting disambiguation; resolve or cancel it first")

    def _pending_play(self) -> tuple[PlateAppearance, list[int]]:
        stored = self._pending.get(self._game_id)
        if stored is None:
            raise ValidationError(f"no ground out is awaiting disambiguation in game {self._game_id}")
        payload, candidate_ids = stored
        return decode_plate_appearance(payload), candidate_ids

    def _pending_proposal(self) -> DisambiguationRequired | None:
        stored = self._pending.get(self._game_id)
        if stored is None:
            return None
        payload, candidate_ids = stored
        pa = decode_plate_appearance(payload)
        scope = InningScope(pa.game_id, pa.inning, pa.half)
        candidates = tuple(r for r in self._tracker.active_runners(scope) if r.id in candidate_ids)
        return DisambiguationRequired(plate_appearance=pa, candidates=candidates)

    def _upcoming_batting_scope(self, game: Game) -> InningScope:
        half = game.batting_half
        summary = self._scorekeeper.half_inning_summary(game, game.current_inning, half)
        inning = game.current_inning + 1 if summary.is_locked else game.current_inning
        return InningScope(self._game_id, inning, half)

    def _game_state(self, game: Game) -> GameState:
        scope = InningScope(self._game_id, game.current_inning, game.current_half)
        runners = self._tracker.active_runners(scope) if scope.half is game.batting_half else []
        return GameState(
            game=game,
            phase=self._flow.phase(game),
            summary=self._scorekeeper.half_inning_summary(game, scope.inning, scope.half),
            runners=tuple(runners),
            due_up=None if game.is_closed else self._batting_order.due_up(self._upcoming_batting_scope(game)),
            line_score=self._scorekeeper.line_score(game),
            pending=self._pending_proposal(),
        )


def _check_inning(game: Game, inning: int) -> None:
    if not 1 <= inning <= game.max_innings:
        raise ValidationError(f"inning {inning} is outside this game's {game.max_innings} innings")
