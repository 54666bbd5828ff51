"""Half-inning and game phase state machine.

A game moves through ``AwaitingFirstPitch`` → ``HalfInningActive`` ⇄
``HalfInningLocked`` → ``GameComplete``. The functions here are pure; the
game flow controller persists whatever they decide.
"""

from dataclasses import dataclass

from sandlot_scoring.domain.game import Game, GameStatus, Half


@dataclass(frozen=True)
class AwaitingFirstPitch:
    pass


@dataclass(frozen=True)
class HalfInningActive:
    inning: int
    half: Half


@dataclass(frozen=True)
class HalfInningLocked:
    inning: int
    half: Half


@dataclass(frozen=True)
class GameComplete:
    pass


type GamePhase = AwaitingFirstPitch | HalfInningActive | HalfInningLocked | GameComplete


def current_phase(game: Game, *, current_half_locked: bool) -> GamePhase:
    if game.status is GameStatus.SCHEDULED:
        return AwaitingFirstPitch()
    if game.is_closed:
        return GameComplete()
    if current_half_locked:
        return HalfInningLocked(game.current_inning, game.current_half)
    return HalfInningActive(game.current_inning, game.current_half)


def next_phase(
    game: Game,
    locked: HalfInningLocked,
    *,
    other_half_locked: bool,
) -> HalfInningActive | GameComplete:
    """Decide where play goes once ``locked`` has recorded its third out."""
    if locked.half is game.batting_half and locked.inning >= game.max_innings:
        return GameComplete()
    if not other_half_locked:
        return HalfInningActive(locked.inning, locked.half.other)
    if locked.inning < game.max_innings:
        return HalfInningActive(locked.inning + 1, Half.TOP)
    return GameComplete()
