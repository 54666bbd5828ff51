import sqlite3

from sandlot_scoring.domain.pitching import PitchingLine


class SqlitePitchingLineRepo:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def upsert(self, line: PitchingLine) -> int:
        cursor = self._conn.execute(
            """INSERT INTO pitching_line
                   (game_id, player_id, innings_pitched, hits_allowed, runs_allowed, earned_runs,
                    strikeouts, walks, home_runs_allowed, win, loss, save)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(game_id, player_id) DO UPDATE SET
                   innings_pitched=excluded.innings_pitched,
                   hits_allowed=excluded.hits_allowed,
                   runs_allowed=excluded.runs_allowed,
                   earned_runs=excluded.earned_runs,
                   strikeouts=excluded.strikeouts,
                   walks=excluded.walks,
                   home_runs_allowed=excluded.home_runs_allowed,
                   win=excluded.win, loss=excluded.loss, save=excluded.save""",
            (
                line.game_id,
                line.player_id,
                line.innings_pitched,
                line.hits_allowed,
                line.runs_allowed,
                line.earned_runs,
                line.strikeouts,
                line.walks,
                line.home_runs_allowed,
                int(line.win),
                int(line.loss),
                int(line.save),
            ),
        )
        return cursor.lastrowid  # type: ignore[return-value]

    def get_by_game(self, game_id: int) -> list[PitchingLine]:
        rows = self._conn.execute("SELECT * FROM pitching_line WHERE game_id = ? ORDER BY id", (game_id,)).fetchall()
        return [self._row_to_line(row) for row in rows]

    def get_by_player(self, player_id: int) -> list[PitchingLine]:
        rows = self._conn.execute(
            "SELECT * FROM pitching_line WHERE player_id = ? ORDER BY game_id", (player_id,)
        ).fetchall()
        return [self._row_to_line(row) for row in rows]

    @staticmethod
    def _row_to_line(row: sqlite3.Row) -> PitchingLine:
        return PitchingLine(
            id=row["id"],
            game_id=row["game_id"],
            player_id=row["player_id"],
            innings_pitched=row["innings_pitched"],
            hits_allowed=row["hits_allowed"],
            runs_allowed=row["runs_allowed"],
            earned_runs=row["earned_runs"],
            strikeouts=row["strikeouts"],
            walks=row["walks"],
            home_runs_allowed=row["home_runs_allowed"],
            win=bool(row["win"]),
            loss=bool(row["loss"]),
            save=bool(row["save"]),
        )
