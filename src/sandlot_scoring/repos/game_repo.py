import sqlite3

from sandlot_scoring.domain.game import Game, GameStatus, Half

_TOUCH = "updated_at = strftime('%Y-%m-%d %H:%M:%f', 'now')"


class SqliteGameRepo:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def insert(self, game: Game) -> int:
        cursor = self._conn.execute(
            """INSERT INTO game
                   (name, opponent_name, game_date, bat_first, status, max_innings,
                    team_score, opponent_score, current_inning, current_half)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                game.name,
                game.opponent_name,
                game.game_date,
                int(game.bat_first),
                game.status.value,
                game.max_innings,
                game.team_score,
                game.opponent_score,
                game.current_inning,
                game.current_half.value,
            ),
        )
        return cursor.lastrowid  # type: ignore[return-value]

    def get_by_id(self, game_id: int) -> Game | None:
        row = self._conn.execute("SELECT * FROM game WHERE id = ?", (game_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_game(row)

    def set_status(self, game_id: int, status: GameStatus) -> None:
        self._conn.execute(f"UPDATE game SET status = ?, {_TOUCH} WHERE id = ?", (status.value, game_id))

    def set_cursor(self, game_id: int, inning: int, half: Half) -> None:
        self._conn.execute(
            f"UPDATE game SET current_inning = ?, current_half = ?, {_TOUCH} WHERE id = ?",
            (inning, half.value, game_id),
        )

    def set_scores(self, game_id: int, team_score: int, opponent_score: int) -> None:
        self._conn.execute(
            f"UPDATE game SET team_score = ?, opponent_score = ?, {_TOUCH} WHERE id = ?",
            (team_score, opponent_score, game_id),
        )

    def set_max_innings(self, game_id: int, max_innings: int) -> None:
        self._conn.execute(f"UPDATE game SET max_innings = ?, {_TOUCH} WHERE id = ?", (max_innings, game_id))

    @staticmethod
    def _row_to_game(row: sqlite3.Row) -> Game:
        return Game(
            id=row["id"],
            name=row["name"],
            opponent_name=row["opponent_name"],
            game_date=row["game_date"],
            bat_first=bool(row["bat_first"]),
            status=GameStatus(row["status"]),
            max_innings=row["max_innings"],
            team_score=row["team_score"],
            opponent_score=row["opponent_score"],
            current_inning=row["current_inning"],
            current_half=Half(row["current_half"]),
        )
