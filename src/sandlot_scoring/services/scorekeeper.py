import logging

from sandlot_scoring.domain.errors import NotFoundError
from sandlot_scoring.domain.game import Game, Half, LineScore, LineScoreInning
from sandlot_scoring.domain.inning_state import HalfInningSummary, summarize_half_inning, summarize_opponent_half
from sandlot_scoring.repos.protocols import AtBatRepo, GameRepo, LineScoreRepo

logger = logging.getLogger(__name__)


class Scorekeeper:
    """Recomputes every score figure from the full event history; nothing is updated incrementally."""

    def __init__(self, game_repo: GameRepo, at_bat_repo: AtBatRepo, line_score_repo: LineScoreRepo) -> None:
        self._games = game_repo
        self._at_bats = at_bat_repo
        self._line_scores = line_score_repo

    def game(self, game_id: int) -> Game:
        game = self._games.get_by_id(game_id)
        if game is None:
            raise NotFoundError("game", game_id)
        return game

    def half_inning_summary(self, game: Game, inning: int, half: Half) -> HalfInningSummary:
        assert game.id is not None
        if half is game.batting_half:
            return summarize_half_inning(inning, half, self._at_bats.get_by_scope(game.id, inning, half))
        return summarize_opponent_half(inning, half, self._line_scores.get(game.id, inning))

    def recompute(self, game_id: int) -> Game:
        game = self.game(game_id)
        team_score = sum(1 for e in self._at_bats.get_by_game(game_id) if e.run_scored)
        opponent_score = sum(self._line_scores.get_by_game(game_id).values())
        if (team_score, opponent_score) != (game.team_score, game.opponent_score):
            logger.debug("Game %d score now %d-%d", game_id, team_score, opponent_score)
            self._games.set_scores(game_id, team_score, opponent_score)
        return self.game(game_id)

    def line_score(self, game: Game) -> LineScore:
        assert game.id is not None
        team_runs: dict[int, int] = {}
        for event in self._at_bats.get_by_game(game.id):
            if event.half is game.batting_half:
                team_runs.setdefault(event.inning, 0)
                team_runs[event.inning] += int(event.run_scored)
        opponent_runs = self._line_scores.get_by_game(game.id)

        last_inning = max([game.max_innings, *team_runs, *opponent_runs])
        innings: list[LineScoreInning] = []
        for inning in range(1, last_inning + 1):
            ours = team_runs.get(inning)
            theirs = opponent_runs.get(inning)
            top, bottom = (ours, theirs) if game.bat_first else (theirs, ours)
            innings.append(LineScoreInning(inning=inning, top=top, bottom=bottom))
        return LineScore(
            innings=tuple(innings),
            top_total=sum(i.top or 0 for i in innings),
            bottom_total=sum(i.bottom or 0 for i in innings),
        )
