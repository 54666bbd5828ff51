import logging

from sandlot_scoring.domain.errors import NotFoundError, ValidationError
from sandlot_scoring.domain.game import InningScope
from sandlot_scoring.domain.lineup import BattingCursor, LineupSlot
from sandlot_scoring.repos.protocols import BattingCursorRepo, LineupRepo

logger = logging.getLogger(__name__)


class BattingOrder:
    """Who is due up, tracked with an explicit cursor per half-inning.

    The cursor moves in the same transaction as the plate appearance that
    consumes it, so editing or deleting older events never changes who bats
    next.
    """

    def __init__(self, lineup_repo: LineupRepo, cursor_repo: BattingCursorRepo) -> None:
        self._lineup = lineup_repo
        self._cursors = cursor_repo

    def lineup(self, game_id: int) -> list[LineupSlot]:
        starters = [s for s in self._lineup.get_by_game(game_id) if s.is_starter]
        return sorted(starters, key=lambda s: s.batting_order or 0)

    def require_batter(self, game_id: int, player_id: int) -> LineupSlot:
        slot = self._lineup.get_slot(game_id, player_id)
        if slot is None or not slot.is_starter:
            raise ValidationError(f"player {player_id} is not in the active batting lineup")
        return slot

    def due_up(self, scope: InningScope) -> LineupSlot | None:
        lineup = self.lineup(scope.game_id)
        if not lineup:
            return None
        cursor = self._cursor(scope, lineup)
        return next((s for s in lineup if s.batting_order == cursor.next_up), lineup[0])

    def advance_past(self, scope: InningScope, batting_order: int | None) -> None:
        lineup = self.lineup(scope.game_id)
        if not lineup or batting_order is None:
            return
        cursor = self._cursor(scope, lineup)
        following = _following([s.batting_order or 0 for s in lineup], batting_order)
        self._cursors.upsert(
            BattingCursor(
                game_id=scope.game_id,
                inning=scope.inning,
                half=scope.half,
                lead_off=cursor.lead_off,
                next_up=following,
            )
        )

    def step_back(self, scope: InningScope, batting_order: int | None) -> None:
        """Hand the turn back to ``batting_order`` after its plate appearance was deleted."""
        cursor = self._cursors.get(scope.game_id, scope.inning, scope.half)
        if cursor is None or batting_order is None:
            return
        self._cursors.upsert(
            BattingCursor(
                game_id=cursor.game_id,
                inning=cursor.inning,
                half=cursor.half,
                lead_off=cursor.lead_off,
                next_up=batting_order,
            )
        )

    def substitute(
        self,
        game_id: int,
        out_player_id: int,
        in_player_id: int,
        *,
        in_player_name: str | None = None,
        position: str | None = None,
    ) -> LineupSlot:
        """Replace a starter; the substitute inherits the batting order slot and, by default, the position."""
        outgoing = self._lineup.get_slot(game_id, out_player_id)
        if outgoing is None:
            raise NotFoundError("lineup player", out_player_id)
        if not outgoing.is_starter:
            raise ValidationError(f"player {out_player_id} is not in the active batting lineup")
        incoming = self._lineup.get_slot(game_id, in_player_id)
        if incoming is not None and incoming.is_starter:
            raise ValidationError(f"player {in_player_id} is already in the batting lineup")
        name = in_player_name or (incoming.player_name if incoming is not None else None)
        if name is None:
            raise ValidationError(f"player {in_player_id} is not on the game roster; a name is required")

        self._lineup.upsert(
            LineupSlot(
                game_id=game_id,
                player_id=outgoing.player_id,
                player_name=outgoing.player_name,
                batting_order=None,
                position=None,
                is_active=False,
            )
        )
        replacement = LineupSlot(
            game_id=game_id,
            player_id=in_player_id,
            player_name=name,
            batting_order=outgoing.batting_order,
            position=position or outgoing.position,
            is_active=True,
        )
        self._lineup.upsert(replacement)
        logger.info(
            "Substitution: player %d replaces player %d in batting order %s",
            in_player_id,
            out_player_id,
            outgoing.batting_order,
        )
        slot = self._lineup.get_slot(game_id, in_player_id)
        assert slot is not None
        return slot

    def _cursor(self, scope: InningScope, lineup: list[LineupSlot]) -> BattingCursor:
        cursor = self._cursors.get(scope.game_id, scope.inning, scope.half)
        if cursor is not None:
            return cursor
        previous = self._cursors.latest_before(scope.game_id, scope.inning, scope.half)
        orders = [s.batting_order or 0 for s in lineup]
        lead_off = previous.next_up if previous is not None and previous.next_up in orders else orders[0]
        return BattingCursor(
            game_id=scope.game_id,
            inning=scope.inning,
            half=scope.half,
            lead_off=lead_off,
            next_up=lead_off,
        )


def _following(orders: list[int], current: int) -> int:
    later = [o for o in orders if o > current]
    return min(later) if later else min(orders)
