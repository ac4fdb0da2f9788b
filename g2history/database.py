# g2history/database.py

import logging
import os
import sqlite3
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

from .errors import StoreQueryError, StoreUnavailable

logger = logging.getLogger(__name__)

REMOTE_SCHEMES = ("libsql://", "http://", "https://", "ws://", "wss://")

# libsql reports driver failures as ValueError
DRIVER_ERRORS = (sqlite3.Error, ValueError)

_UNAVAILABLE_MARKERS = ("unable to open", "locked", "disk i/o", "connect", "timed out", "hrana", "unauthorized")

MATCH_COLUMNS = (
    "id",
    "team1",
    "team1Logo",
    "team2",
    "team2Logo",
    "bo",
    "date",
    "streams_twitch",
    "streams_youtube",
    "tournament_name",
    "tournament_url",
    "tournament_logo",
)

_INSERT_MATCH_SQL = (
    f"INSERT INTO matches_upcoming ({', '.join(MATCH_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in MATCH_COLUMNS)})"
)


class Database:
    """
    Thin gateway over the relational store: bound parameters in, rows out.

    Local `file:`/`sqlite:///` URLs, plain paths and `:memory:` open with
    sqlite3. `libsql://` and HTTP(S) URLs open a remote libSQL (Turso)
    connection authenticated with `auth_token`.
    """

    def __init__(self, db_url: str = 'file:data/g2history.db', auth_token: Optional[str] = None):
        self.db_url = db_url
        self.auth_token = auth_token
        self.db_path = self._resolve_db_path(db_url)
        self.conn: Optional[Any] = None
        self._lock = threading.RLock()
        self._in_transaction = False
        try:
            self.init_database()
        except StoreUnavailable as e:
            # Startup stays non-fatal; every call retries the connection.
            logger.warning("Store unavailable at startup (%s); will retry on first use", e)

    @property
    def is_remote(self) -> bool:
        return self.db_path is None

    @staticmethod
    def _resolve_db_path(db_url: str) -> Optional[str]:
        """
        Map a store URL to a sqlite path.

        Accepts `file:` URLs, `sqlite:///` URLs, `:memory:` and plain paths.
        Remote libsql/HTTP URLs resolve to None.
        """
        url = (db_url or "").strip()
        if not url:
            raise ValueError("Store URL is empty")
        if url == ":memory:":
            return url
        if url.lower().startswith(REMOTE_SCHEMES):
            return None

        if url.startswith("sqlite:///"):
            url = url[len("sqlite:///"):]
        elif url.startswith("file://"):
            url = url[len("file://"):]
        elif url.startswith("file:"):
            url = url[len("file:"):]

        path = Path(url)
        if path.is_absolute():
            return str(path)

        project_root = Path(__file__).resolve().parents[1]
        return str(project_root / path)

    def _connect_local(self):
        try:
            if self.db_path != ":memory:":
                db_dir = os.path.dirname(self.db_path)
                if db_dir:
                    os.makedirs(db_dir, exist_ok=True)

            conn = sqlite3.connect(
                self.db_path,
                timeout=30.0,
                isolation_level=None,
                check_same_thread=False,
            )
            conn.execute("PRAGMA busy_timeout = 30000")
        except (OSError, sqlite3.Error) as e:
            raise StoreUnavailable(f"Failed to open store at {self.db_path}: {e}") from e
        return conn

    def _connect_remote(self):
        try:
            import libsql
        except ImportError as e:
            raise StoreUnavailable(f"libsql client is required for remote store {self.db_url}") from e

        if not self.auth_token:
            logger.warning("No auth token configured for remote store %s", self.db_url)
        try:
            return libsql.connect(
                self.db_url,
                auth_token=self.auth_token or "",
                isolation_level=None,
                check_same_thread=False,
            )
        except DRIVER_ERRORS as e:
            raise StoreUnavailable(f"Failed to connect to remote store {self.db_url}: {e}") from e

    def init_database(self) -> None:
        """Connect and create tables if they don't exist."""
        self.conn = self._connect_remote() if self.is_remote else self._connect_local()
        try:
            self._set_wal_mode_best_effort()
            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS years (
                    year_identifier TEXT PRIMARY KEY,
                    label TEXT
                )
            """)
            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS players (
                    id INTEGER PRIMARY KEY,
                    nickname TEXT NOT NULL,
                    name TEXT,
                    country TEXT,
                    role TEXT,
                    image TEXT,
                    years TEXT
                )
            """)
            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS matches_upcoming (
                    id TEXT PRIMARY KEY,
                    team1 TEXT NOT NULL,
                    team1Logo TEXT,
                    team2 TEXT NOT NULL,
                    team2Logo TEXT,
                    bo TEXT,
                    date TEXT,
                    streams_twitch TEXT,
                    streams_youtube TEXT,
                    tournament_name TEXT,
                    tournament_url TEXT,
                    tournament_logo TEXT
                )
            """)
        except DRIVER_ERRORS as e:
            self.conn.close()
            self.conn = None
            raise StoreUnavailable(f"Failed to initialize store schema: {e}") from e

    def _set_wal_mode_best_effort(self, retries: int = 5, delay_seconds: float = 0.2) -> None:
        """Try to enable WAL without failing startup if the DB is temporarily locked."""
        if self.is_remote or self.db_path == ":memory:":
            return
        for attempt in range(retries):
            try:
                self.conn.execute("PRAGMA journal_mode = WAL")
                return
            except sqlite3.OperationalError as e:
                msg = str(e).lower()
                if "locked" not in msg and "busy" not in msg:
                    raise
                if attempt == retries - 1:
                    logger.warning("Could not enable WAL mode (database locked); continuing. (%s)", e)
                    return
                time.sleep(delay_seconds)

    def _connection(self):
        if self.conn is None:
            self.init_database()
        return self.conn

    @staticmethod
    def _translate(e: Exception, statement: str) -> Exception:
        msg = str(e).lower()
        if isinstance(e, (sqlite3.OperationalError, ValueError)) and any(
            marker in msg for marker in _UNAVAILABLE_MARKERS
        ):
            return StoreUnavailable(f"Store unavailable: {e}")
        verb = (statement.split() or ["?"])[0].upper()
        return StoreQueryError(f"{verb} statement failed: {e}")

    # --- Generic gateway ---

    def query(self, statement: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        """Run a read statement and return rows as dicts."""
        with self._lock:
            conn = self._connection()
            try:
                cursor = conn.execute(statement, tuple(params))
                columns = [column[0] for column in cursor.description or ()]
                return [dict(zip(columns, row)) for row in cursor.fetchall()]
            except DRIVER_ERRORS as e:
                raise self._translate(e, statement) from e

    def execute(self, statement: str, params: Sequence[Any] = ()) -> int:
        """Run a write statement and return the affected row count."""
        with self._lock:
            conn = self._connection()
            try:
                cursor = conn.execute(statement, tuple(params))
                return cursor.rowcount
            except DRIVER_ERRORS as e:
                raise self._translate(e, statement) from e

    @contextmanager
    def transaction(self) -> Iterator["Database"]:
        """Group `execute` calls: commit on success, roll back on any error."""
        with self._lock:
            if self._in_transaction:
                yield self
                return
            conn = self._connection()
            try:
                conn.execute("BEGIN")
            except DRIVER_ERRORS as e:
                raise self._translate(e, "BEGIN") from e
            self._in_transaction = True
            try:
                yield self
            except BaseException:
                try:
                    conn.execute("ROLLBACK")
                except DRIVER_ERRORS as rollback_error:
                    logger.error("Rollback failed: %s", rollback_error)
                raise
            else:
                try:
                    conn.execute("COMMIT")
                except DRIVER_ERRORS as e:
                    raise self._translate(e, "COMMIT") from e
            finally:
                self._in_transaction = False

    def ping(self) -> bool:
        """Return True when the store answers a trivial query."""
        self.query("SELECT 1 AS ok")
        return True

    # --- Reference data ---

    def get_years(self) -> List[Dict[str, Any]]:
        return self.query("SELECT * FROM years")

    def get_players(self) -> List[Dict[str, Any]]:
        return self.query("SELECT * FROM players")

    def get_players_by_year(self, year: str) -> List[Dict[str, Any]]:
        """Players whose comma-joined `years` column mentions `year`."""
        return self.query("SELECT * FROM players WHERE years LIKE ?", (f"%{year}%",))

    def get_player(self, identifier: str) -> Optional[Dict[str, Any]]:
        """Get a single player by numeric id or nickname."""
        rows = self.query(
            "SELECT * FROM players WHERE id = ? OR nickname = ?",
            (identifier, identifier),
        )
        return rows[0] if rows else None

    # --- Upcoming matches ---

    def get_upcoming_matches(self) -> List[Dict[str, Any]]:
        return self.query("SELECT * FROM matches_upcoming ORDER BY date ASC")

    def replace_upcoming_matches(self, rows: Iterable[Mapping[str, Any]]) -> int:
        """Delete every upcoming match, then insert `rows`. Returns the inserted count."""
        inserted = 0
        with self.transaction():
            self.execute("DELETE FROM matches_upcoming")
            for row in rows:
                self.execute(_INSERT_MATCH_SQL, [row.get(column) for column in MATCH_COLUMNS])
                inserted += 1
        return inserted

    def close(self) -> None:
        """Close database connection."""
        with self._lock:
            if self.conn:
                self.conn.close()
                self.conn = None
