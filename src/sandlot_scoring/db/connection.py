import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from sandlot_scoring.domain.errors import TransientStoreError

logger = logging.getLogger(__name__)

_MIGRATIONS_DIR = Path(__file__).parent / "migrations"


def create_connection(
    path: str | Path,
    *,
    migrations_dir: Path | None = None,
) -> sqlite3.Connection:
    """Open a SQLite connection with WAL mode, foreign keys, and pending migrations applied."""
    if str(path) != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    if str(path) != ":memory:":
        conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    _run_migrations(conn, migrations_dir=migrations_dir)
    return conn


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Return the current schema version, or 0 if no migrations have run."""
    try:
        row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    except sqlite3.OperationalError:
        return 0
    return row[0] if row and row[0] is not None else 0


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run a block of repo writes as one unit: commit on success, roll back on any error.

    ``sqlite3.Error`` escaping the block is re-raised as ``TransientStoreError``.
    """
    try:
        yield conn
    except sqlite3.Error as e:
        conn.rollback()
        logger.warning("Store write failed, rolled back: %s", e)
        raise TransientStoreError(f"store unavailable: {e}") from e
    except BaseException:
        conn.rollback()
        raise
    else:
        conn.commit()


def _run_migrations(conn: sqlite3.Connection, *, migrations_dir: Path | None = None) -> None:
    """Apply any pending numbered .sql migration files."""
    conn.execute(
        "CREATE TABLE IF NOT EXISTS schema_version ("
        "    version INTEGER PRIMARY KEY,"
        "    applied_at TEXT NOT NULL DEFAULT (datetime('now'))"
        ")"
    )

    current_version = get_schema_version(conn)

    effective_dir = migrations_dir if migrations_dir is not None else _MIGRATIONS_DIR
    migration_files = sorted(effective_dir.glob("*.sql"))
    for migration_file in migration_files:
        version = int(migration_file.stem.split("_")[0])
        if version <= current_version:
            continue
        logger.debug("Applying migration %s", migration_file.name)
        sql = migration_file.read_text()
        statements = [s.strip() for s in sql.split(";") if s.strip()]
        # Manual transaction control so DDL is wrapped in the transaction
        old_isolation = conn.isolation_level
        conn.isolation_level = None
        try:
            conn.execute("BEGIN")
            for statement in statements:
                conn.execute(statement)
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (version,))
            conn.execute("COMMIT")
        except Exception:
            conn.execute("ROLLBACK")
            raise
        finally:
            conn.isolation_level = old_isolation

    conn.execute("PRAGMA foreign_keys=ON")
