"""Per-game coordination rows: the pending two-phase play and the writer lock."""

import json
import sqlite3


class SqlitePendingPlayRepo:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def put(self, game_id: int, payload: str, candidate_runner_ids: list[int]) -> None:
        self._conn.execute(
            """INSERT INTO pending_play (game_id, payload, candidate_runner_ids) VALUES (?, ?, ?)
               ON CONFLICT(game_id) DO UPDATE SET
                   payload=excluded.payload,
                   candidate_runner_ids=excluded.candidate_runner_ids,
                   created_at=strftime('%Y-%m-%d %H:%M:%f', 'now')""",
            (game_id, payload, json.dumps(candidate_runner_ids)),
        )

    def get(self, game_id: int) -> tuple[str, list[int]] | None:
        row = self._conn.execute(
            "SELECT payload, candidate_runner_ids FROM pending_play WHERE game_id = ?", (game_id,)
        ).fetchone()
        if row is None:
            return None
        return row["payload"], json.loads(row["candidate_runner_ids"])

    def clear(self, game_id: int) -> None:
        self._conn.execute("DELETE FROM pending_play WHERE game_id = ?", (game_id,))


class SqliteWriterLockRepo:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def holder_token(self, game_id: int) -> str | None:
        row = self._conn.execute("SELECT token FROM writer_lock WHERE game_id = ?", (game_id,)).fetchone()
        return None if row is None else row["token"]

    def acquire(self, game_id: int, token: str, holder: str, *, force: bool = False) -> bool:
        """Take the lock for ``token``; returns False when another token holds it."""
        if force:
            self._conn.execute(
                "INSERT OR REPLACE INTO writer_lock (game_id, token, holder) VALUES (?, ?, ?)",
                (game_id, token, holder),
            )
            return True
        cursor = self._conn.execute(
            "INSERT OR IGNORE INTO writer_lock (game_id, token, holder) VALUES (?, ?, ?)",
            (game_id, token, holder),
        )
        if cursor.rowcount == 1:
            return True
        return self.holder_token(game_id) == token

    def release(self, game_id: int, token: str) -> None:
        self._conn.execute("DELETE FROM writer_lock WHERE game_id = ? AND token = ?", (game_id, token))
