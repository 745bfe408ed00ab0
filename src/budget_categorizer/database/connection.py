import logging
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent / "schema.sql"

# DATE columns round-trip as datetime.date; sqlite3's implicit adapters are deprecated
sqlite3.register_adapter(date, date.isoformat)
sqlite3.register_converter("DATE", lambda raw: date.fromisoformat(raw.decode()))
sqlite3.register_converter("TIMESTAMP", lambda raw: datetime.fromisoformat(raw.decode()))


class DatabaseConfig:
    """Location of the budget database. The parent directory is created on demand."""

    def __init__(self, db_path: Path | str = "data/budget.db"):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)


class DatabaseManager:
    """
    Owns one lazily opened SQLite connection shared by the repositories.

    Repositories read through `get_connection()` and write inside
    `transaction()`, which commits when the block finishes and rolls back if
    it raises.

    Usage:
        with DatabaseManager(DatabaseConfig("data/budget.db")) as db:
            with db.transaction() as conn:
                conn.execute("UPDATE transactions SET category_id = ? WHERE id = ?", (3, 7))
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self._connection: sqlite3.Connection | None = None

    def get_connection(self) -> sqlite3.Connection:
        if self._connection is None:
            self._connection = self._connect()
        return self._connection

    def _connect(self) -> sqlite3.Connection:
        path = self.config.db_path.absolute()
        logger.debug("Opening database %s", path)
        conn = sqlite3.connect(str(path), detect_types=sqlite3.PARSE_DECLTYPES)
        # Rule and transaction rows cascade from categories
        conn.execute("PRAGMA foreign_keys = ON")
        conn.row_factory = sqlite3.Row
        return conn

    def close(self) -> None:
        if self._connection:
            self._connection.close()
            self._connection = None

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        conn = self.get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def __enter__(self) -> "DatabaseManager":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def execute_schema(conn: sqlite3.Connection, schema_path: Path = SCHEMA_PATH) -> None:
    """Create tables and indexes from a .sql file, the bundled schema by default."""
    conn.executescript(schema_path.read_text())
    conn.commit()
