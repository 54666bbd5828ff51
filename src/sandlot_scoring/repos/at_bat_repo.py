import json
import sqlite3

from sandlot_scoring.domain.at_bat import AtBatEvent, PlateResult, PlayKind
from sandlot_scoring.domain.game import Half

_TOUCH = "updated_at = strftime('%Y-%m-%d %H:%M:%f', 'now')"


class SqliteAtBatRepo:
    """Event store: one row per completed plate appearance, kept in creation order."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def insert(self, event: AtBatEvent) -> int:
        cursor = self._conn.execute(
            """INSERT INTO at_bat
                   (game_id, inning, half, batter_id, batting_order, result, rbi,
                    run_scored, stolen_base, stolen_bases, base_reached, notes, play,
                    extra_out_runner_ids, fielding_position, reached_on_error, runs_on_play, rbi_derived)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                event.game_id,
                event.inning,
                event.half.value,
                event.batter_id,
                event.batting_order,
                event.result.value,
                event.rbi,
                int(event.run_scored),
                int(event.stolen_base),
                json.dumps(list(event.stolen_bases)),
                event.base_reached,
                event.notes,
                event.play.value,
                json.dumps(list(event.extra_out_runner_ids)),
                event.fielding_position,
                int(event.reached_on_error),
                event.runs_on_play,
                int(event.rbi_derived),
            ),
        )
        return cursor.lastrowid  # type: ignore[return-value]

    def update(self, event: AtBatEvent) -> None:
        self._conn.execute(
            f"""UPDATE at_bat SET
                   batter_id = ?, batting_order = ?, result = ?, rbi = ?, run_scored = ?,
                   stolen_base = ?, stolen_bases = ?, base_reached = ?, notes = ?, play = ?,
                   extra_out_runner_ids = ?, fielding_position = ?, reached_on_error = ?,
                   runs_on_play = ?, rbi_derived = ?, {_TOUCH}
               WHERE id = ?""",
            (
                event.batter_id,
                event.batting_order,
                event.result.value,
                event.rbi,
                int(event.run_scored),
                int(event.stolen_base),
                json.dumps(list(event.stolen_bases)),
                event.base_reached,
                event.notes,
                event.play.value,
                json.dumps(list(event.extra_out_runner_ids)),
                event.fielding_position,
                int(event.reached_on_error),
                event.runs_on_play,
                int(event.rbi_derived),
                event.id,
            ),
        )

    def delete(self, event_id: int) -> None:
        self._conn.execute("DELETE FROM at_bat WHERE id = ?", (event_id,))

    def get_by_id(self, event_id: int) -> AtBatEvent | None:
        row = self._conn.execute("SELECT * FROM at_bat WHERE id = ?", (event_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_event(row)

    def get_by_scope(self, game_id: int, inning: int, half: Half) -> list[AtBatEvent]:
        rows = self._conn.execute(
            "SELECT * FROM at_bat WHERE game_id = ? AND inning = ? AND half = ? ORDER BY created_at, id",
            (game_id, inning, half.value),
        ).fetchall()
        return [self._row_to_event(row) for row in rows]

    def get_by_game(self, game_id: int) -> list[AtBatEvent]:
        rows = self._conn.execute(
            "SELECT * FROM at_bat WHERE game_id = ? ORDER BY inning, created_at, id",
            (game_id,),
        ).fetchall()
        return [self._row_to_event(row) for row in rows]

    def get_by_batter(self, batter_id: int) -> list[AtBatEvent]:
        rows = self._conn.execute(
            "SELECT * FROM at_bat WHERE batter_id = ? ORDER BY game_id, inning, created_at, id",
            (batter_id,),
        ).fetchall()
        return [self._row_to_event(row) for row in rows]

    def mark_run_scored(self, event_id: int) -> None:
        self._conn.execute(f"UPDATE at_bat SET run_scored = 1, {_TOUCH} WHERE id = ?", (event_id,))

    def record_stolen_base(self, event_id: int, to_base: int) -> None:
        row = self._conn.execute("SELECT stolen_bases FROM at_bat WHERE id = ?", (event_id,)).fetchone()
        if row is None:
            return
        stolen = json.loads(row["stolen_bases"])
        stolen.append(to_base)
        self._conn.execute(
            f"UPDATE at_bat SET stolen_base = 1, stolen_bases = ?, {_TOUCH} WHERE id = ?",
            (json.dumps(stolen), event_id),
        )

    @staticmethod
    def _row_to_event(row: sqlite3.Row) -> AtBatEvent:
        return AtBatEvent(
            id=row["id"],
            game_id=row["game_id"],
            inning=row["inning"],
            half=Half(row["half"]),
            batter_id=row["batter_id"],
            batting_order=row["batting_order"],
            result=PlateResult(row["result"]),
            rbi=row["rbi"],
            run_scored=bool(row["run_scored"]),
            stolen_base=bool(row["stolen_base"]),
            stolen_bases=tuple(json.loads(row["stolen_bases"])),
            base_reached=row["base_reached"],
            notes=row["notes"],
            play=PlayKind(row["play"]),
            extra_out_runner_ids=tuple(json.loads(row["extra_out_runner_ids"])),
            fielding_position=row["fielding_position"],
            reached_on_error=bool(row["reached_on_error"]),
            runs_on_play=row["runs_on_play"],
            rbi_derived=bool(row["rbi_derived"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
