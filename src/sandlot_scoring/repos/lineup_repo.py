import sqlite3

from sandlot_scoring.domain.game import Half
from sandlot_scoring.domain.lineup import BattingCursor, LineupSlot


class SqliteLineupRepo:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def upsert(self, slot: LineupSlot) -> int:
        cursor = self._conn.execute(
            """INSERT INTO lineup_slot (game_id, player_id, player_name, batting_order, position, is_active)
               VALUES (?, ?, ?, ?, ?, ?)
               ON CONFLICT(game_id, player_id) DO UPDATE SET
                   player_name=excluded.player_name,
                   batting_order=excluded.batting_order,
                   position=excluded.position,
                   is_active=excluded.is_active""",
            (slot.game_id, slot.player_id, slot.player_name, slot.batting_order, slot.position, int(slot.is_active)),
        )
        return cursor.lastrowid  # type: ignore[return-value]

    def get_by_game(self, game_id: int) -> list[LineupSlot]:
        rows = self._conn.execute(
            "SELECT * FROM lineup_slot WHERE game_id = ? ORDER BY batting_order IS NULL, batting_order, id",
            (game_id,),
        ).fetchall()
        return [self._row_to_slot(row) for row in rows]

    def get_slot(self, game_id: int, player_id: int) -> LineupSlot | None:
        row = self._conn.execute(
            "SELECT * FROM lineup_slot WHERE game_id = ? AND player_id = ?",
            (game_id, player_id),
        ).fetchone()
        if row is None:
            return None
        return self._row_to_slot(row)

    @staticmethod
    def _row_to_slot(row: sqlite3.Row) -> LineupSlot:
        return LineupSlot(
            id=row["id"],
            game_id=row["game_id"],
            player_id=row["player_id"],
            player_name=row["player_name"],
            batting_order=row["batting_order"],
            position=row["position"],
            is_active=bool(row["is_active"]),
        )


class SqliteBattingCursorRepo:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def get(self, game_id: int, inning: int, half: Half) -> BattingCursor | None:
        row = self._conn.execute(
            "SELECT * FROM batting_cursor WHERE game_id = ? AND inning = ? AND half = ?",
            (game_id, inning, half.value),
        ).fetchone()
        if row is None:
            return None
        return self._row_to_cursor(row)

    def latest_before(self, game_id: int, inning: int, half: Half) -> BattingCursor | None:
        """The cursor of the same side's most recent earlier half-inning."""
        row = self._conn.execute(
            """SELECT * FROM batting_cursor
               WHERE game_id = ? AND half = ? AND inning < ?
               ORDER BY inning DESC LIMIT 1""",
            (game_id, half.value, inning),
        ).fetchone()
        if row is None:
            return None
        return self._row_to_cursor(row)

    def upsert(self, cursor: BattingCursor) -> None:
        self._conn.execute(
            """INSERT INTO batting_cursor (game_id, inning, half, lead_off, next_up)
               VALUES (?, ?, ?, ?, ?)
               ON CONFLICT(game_id, inning, half) DO UPDATE SET
                   lead_off=excluded.lead_off,
                   next_up=excluded.next_up""",
            (cursor.game_id, cursor.inning, cursor.half.value, cursor.lead_off, cursor.next_up),
        )

    @staticmethod
    def _row_to_cursor(row: sqlite3.Row) -> BattingCursor:
        return BattingCursor(
            game_id=row["game_id"],
            inning=row["inning"],
            half=Half(row["half"]),
            lead_off=row["lead_off"],
            next_up=row["next_up"],
        )
