import logging

from sandlot_scoring.domain.errors import ValidationError
from sandlot_scoring.domain.game import Game, GameStatus, Half, InningScope, play_order
from sandlot_scoring.domain.game_flow import (
    GameComplete,
    GamePhase,
    HalfInningLocked,
    current_phase,
    next_phase,
)
from sandlot_scoring.repos.protocols import GameRepo
from sandlot_scoring.services.runner_tracker import RunnerTracker
from sandlot_scoring.services.scorekeeper import Scorekeeper

logger = logging.getLogger(__name__)


class GameFlowController:
    """Moves a game from one half-inning to the next once the current one is locked."""

    def __init__(self, game_repo: GameRepo, scorekeeper: Scorekeeper, tracker: RunnerTracker) -> None:
        self._games = game_repo
        self._scorekeeper = scorekeeper
        self._tracker = tracker

    def phase(self, game: Game) -> GamePhase:
        summary = self._scorekeeper.half_inning_summary(game, game.current_inning, game.current_half)
        return current_phase(game, current_half_locked=summary.is_locked)

    def start(self, game: Game) -> Game:
        assert game.id is not None
        if game.status is not GameStatus.SCHEDULED:
            raise ValidationError(f"game {game.id} is already {game.status}")
        self._games.set_status(game.id, GameStatus.IN_PROGRESS)
        self._games.set_cursor(game.id, 1, Half.TOP)
        logger.info("Game %d started", game.id)
        return self._scorekeeper.game(game.id)

    def after_change(self, scope: InningScope) -> GamePhase:
        """Re-evaluate ``scope`` after one of its plays changed and apply any transition it triggers."""
        game = self._scorekeeper.game(scope.game_id)
        summary = self._scorekeeper.half_inning_summary(game, scope.inning, scope.half)
        if not summary.is_locked or game.is_closed:
            return self.phase(game)

        self._tracker.clear_half_inning(scope)
        if play_order(scope.inning, scope.half) != play_order(game.current_inning, game.current_half):
            # Only locking the half-inning in play moves the game on.
            return self.phase(game)

        other = self._scorekeeper.half_inning_summary(game, scope.inning, scope.half.other)
        locked = HalfInningLocked(scope.inning, scope.half)
        following = next_phase(game, locked, other_half_locked=other.is_locked)
        if isinstance(following, GameComplete):
            self._games.set_status(scope.game_id, GameStatus.COMPLETED)
            logger.info("Game %d complete after %s", scope.game_id, scope)
            return following
        self._games.set_cursor(scope.game_id, following.inning, following.half)
        logger.info("Game %d: %s locked, now %s %d", scope.game_id, scope, following.half, following.inning)
        return following

    def add_extra_inning(self, game: Game, ceiling: int) -> Game:
        assert game.id is not None
        if game.is_closed:
            raise ValidationError(f"game {game.id} is {game.status}; innings can only be added before it ends")
        if game.max_innings >= ceiling:
            raise ValidationError(f"game {game.id} already allows the maximum of {ceiling} innings")
        self._games.set_max_innings(game.id, game.max_innings + 1)
        logger.info("Game %d extended to %d innings", game.id, game.max_innings + 1)
        return self._scorekeeper.game(game.id)
