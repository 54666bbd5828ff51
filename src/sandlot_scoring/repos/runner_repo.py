import sqlite3

from sandlot_scoring.domain.game import Half
from sandlot_scoring.domain.runner import HOME, Runner

_TOUCH = "updated_at = strftime('%Y-%m-%d %H:%M:%f', 'now')"


class SqliteRunnerRepo:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def insert(self, runner: Runner) -> int:
        cursor = self._conn.execute(
            """INSERT INTO runner (game_id, inning, half, player_id, at_bat_id, current_base, is_active)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                runner.game_id,
                runner.inning,
                runner.half.value,
                runner.player_id,
                runner.at_bat_id,
                runner.current_base,
                int(runner.is_active),
            ),
        )
        return cursor.lastrowid  # type: ignore[return-value]

    def get_by_id(self, runner_id: int) -> Runner | None:
        row = self._conn.execute("SELECT * FROM runner WHERE id = ?", (runner_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_runner(row)

    def get_active(self, game_id: int, inning: int, half: Half) -> list[Runner]:
        rows = self._conn.execute(
            """SELECT * FROM runner
               WHERE game_id = ? AND inning = ? AND half = ? AND is_active = 1
                 AND current_base IN (1, 2, 3)
               ORDER BY current_base DESC, id""",
            (game_id, inning, half.value),
        ).fetchall()
        return [self._row_to_runner(row) for row in rows]

    def get_by_at_bat(self, at_bat_id: int) -> list[Runner]:
        rows = self._conn.execute("SELECT * FROM runner WHERE at_bat_id = ? ORDER BY id", (at_bat_id,)).fetchall()
        return [self._row_to_runner(row) for row in rows]

    def move(self, runner_id: int, to_base: int) -> None:
        """Put a runner on ``to_base``; reaching home also takes them off the bases."""
        if to_base >= HOME:
            self._conn.execute(
                f"UPDATE runner SET current_base = ?, is_active = 0, {_TOUCH} WHERE id = ?",
                (HOME, runner_id),
            )
        else:
            self._conn.execute(
                f"UPDATE runner SET current_base = ?, {_TOUCH} WHERE id = ?",
                (to_base, runner_id),
            )

    def deactivate(self, runner_ids: list[int]) -> None:
        if not runner_ids:
            return
        placeholders = ", ".join("?" for _ in runner_ids)
        self._conn.execute(f"UPDATE runner SET is_active = 0, {_TOUCH} WHERE id IN ({placeholders})", runner_ids)

    def deactivate_scope(self, game_id: int, inning: int, half: Half) -> int:
        cursor = self._conn.execute(
            f"""UPDATE runner SET is_active = 0, {_TOUCH}
                WHERE game_id = ? AND inning = ? AND half = ? AND is_active = 1""",
            (game_id, inning, half.value),
        )
        return cursor.rowcount

    def delete(self, runner_ids: list[int]) -> None:
        if not runner_ids:
            return
        placeholders = ", ".join("?" for _ in runner_ids)
        self._conn.execute(f"DELETE FROM runner WHERE id IN ({placeholders})", runner_ids)

    def delete_for_at_bat(self, at_bat_id: int) -> None:
        self._conn.execute("DELETE FROM runner WHERE at_bat_id = ?", (at_bat_id,))

    @staticmethod
    def _row_to_runner(row: sqlite3.Row) -> Runner:
        return Runner(
            id=row["id"],
            game_id=row["game_id"],
            inning=row["inning"],
            half=Half(row["half"]),
            player_id=row["player_id"],
            at_bat_id=row["at_bat_id"],
            current_base=row["current_base"],
            is_active=bool(row["is_active"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
