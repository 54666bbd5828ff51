import sqlite3


class SqliteLineScoreRepo:
    """Opponent runs per inning, entered by the operator as a plain total."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def upsert(self, game_id: int, inning: int, runs: int) -> None:
        self._conn.execute(
            """INSERT INTO line_score (game_id, inning, runs) VALUES (?, ?, ?)
               ON CONFLICT(game_id, inning) DO UPDATE SET runs=excluded.runs""",
            (game_id, inning, runs),
        )

    def get(self, game_id: int, inning: int) -> int | None:
        row = self._conn.execute(
            "SELECT runs FROM line_score WHERE game_id = ? AND inning = ?",
            (game_id, inning),
        ).fetchone()
        return None if row is None else row["runs"]

    def get_by_game(self, game_id: int) -> dict[int, int]:
        rows = self._conn.execute(
            "SELECT inning, runs FROM line_score WHERE game_id = ? ORDER BY inning",
            (game_id,),
        ).fetchall()
        return {row["inning"]: row["runs"] for row in rows}
