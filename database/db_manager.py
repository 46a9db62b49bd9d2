import sqlite3
import threading
from contextlib import contextmanager

import structlog

from utils.constants import DB_FILE, DB_BUSY_TIMEOUT_SECONDS, DEFAULT_CURRENCY_SYMBOL
from utils.errors import StorageFailure

log = structlog.get_logger(__name__)


class DatabaseManager:
    """Owns the sqlite connection and the unit-of-work boundary.

    Construct it explicitly, call open() at startup and close() at shutdown,
    and pass it to every DAO that needs storage.
    """

    def __init__(self, db_path: str | None = None, timeout: float = DB_BUSY_TIMEOUT_SECONDS):
        self.db_path = db_path or DB_FILE
        self._timeout = timeout
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        self._depth = 0

    def __enter__(self) -> "DatabaseManager":
        self.open()
        self.initialize()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self) -> "DatabaseManager":
        if self._conn is not None:
            return self
        try:
            # isolation_level=None: transactions are begun explicitly in transaction()
            conn = sqlite3.connect(
                self.db_path,
                timeout=self._timeout,
                check_same_thread=False,
                isolation_level=None,
            )
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            conn.execute("PRAGMA journal_mode = WAL")
        except sqlite3.Error as e:
            log.error("database_open_failed", db_path=self.db_path, error=str(e))
            raise StorageFailure(f"Could not open database '{self.db_path}': {e}") from e
        self._conn = conn
        log.info("database_opened", db_path=self.db_path)
        return self

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageFailure("Database is not open. Call open() first.")
        return self._conn

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    @contextmanager
    def transaction(self):
        """Unit of work: commit on success, roll back on any exception.

        BEGIN IMMEDIATE takes the write lock before the first read, so rows read
        inside the block cannot be changed by another writer until commit. Nested
        calls join the enclosing unit of work.
        """
        with self._lock:
            conn = self.get_connection()
            if self._depth:
                self._depth += 1
                try:
                    yield conn
                finally:
                    self._depth -= 1
                return

            try:
                conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as e:
                log.error("unit_of_work_begin_failed", error=str(e))
                raise StorageFailure(f"Could not start transaction: {e}") from e

            self._depth = 1
            try:
                yield conn
                conn.commit()
            except sqlite3.Error as e:
                self._rollback(conn)
                log.error("unit_of_work_rolled_back", error=str(e))
                raise StorageFailure(str(e)) from e
            except BaseException:
                self._rollback(conn)
                raise
            finally:
                self._depth = 0

    @staticmethod
    def _rollback(conn: sqlite3.Connection):
        if conn.in_transaction:
            conn.rollback()

    def initialize(self):
        """Create schema and seed defaults."""
        with self.transaction() as conn:
            self._create_schema(conn)
            self._seed_defaults(conn)

    def _create_schema(self, conn: sqlite3.Connection):
        # Money columns hold integer minor units (cents).
        statements = [
            """CREATE TABLE IF NOT EXISTS accounts (
                id              INTEGER PRIMARY KEY AUTOINCREMENT,
                owner_id        TEXT    NOT NULL,
                name            TEXT    NOT NULL,
                account_type    TEXT    NOT NULL DEFAULT 'cash'
                                CHECK(account_type IN ('cash','bank','digital_wallet')),
                opening_balance INTEGER NOT NULL DEFAULT 0 CHECK(opening_balance >= 0),
                current_balance INTEGER NOT NULL DEFAULT 0,
                currency        TEXT    NOT NULL DEFAULT 'INR',
                is_active       INTEGER NOT NULL DEFAULT 1,
                is_default      INTEGER NOT NULL DEFAULT 0,
                created_at      TEXT    NOT NULL DEFAULT (datetime('now')),
                updated_at      TEXT    NOT NULL DEFAULT (datetime('now'))
            )""",
            """CREATE TABLE IF NOT EXISTS categories (
                id         INTEGER PRIMARY KEY AUTOINCREMENT,
                owner_id   TEXT,
                name       TEXT    NOT NULL,
                type       TEXT    NOT NULL CHECK(type IN ('income','expense')),
                icon       TEXT    NOT NULL DEFAULT 'category',
                color_hex  TEXT    NOT NULL DEFAULT '#007bff',
                is_system  INTEGER NOT NULL DEFAULT 0,
                created_at TEXT    NOT NULL DEFAULT (datetime('now'))
            )""",
            """CREATE TABLE IF NOT EXISTS transactions (
                id                     INTEGER PRIMARY KEY AUTOINCREMENT,
                owner_id               TEXT    NOT NULL,
                account_id             INTEGER NOT NULL REFERENCES accounts(id),
                type                   TEXT    NOT NULL CHECK(type IN (
                                           'income','expense','transfer_in',
                                           'transfer_out','opening_balance')),
                category               TEXT    NOT NULL,
                amount                 INTEGER NOT NULL CHECK(amount > 0),
                balance_after          INTEGER NOT NULL,
                description            TEXT    NOT NULL DEFAULT '',
                reference_number       TEXT,
                payment_method         TEXT,
                related_transaction_id INTEGER REFERENCES transactions(id) ON DELETE SET NULL,
                bill_id                INTEGER,
                transaction_date       TEXT    NOT NULL,
                created_at             TEXT    NOT NULL DEFAULT (datetime('now')),
                updated_at             TEXT    NOT NULL DEFAULT (datetime('now'))
            )""",
            """CREATE TABLE IF NOT EXISTS app_settings (
                key   TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )""",
            # At most one active default account per owner.
            """CREATE UNIQUE INDEX IF NOT EXISTS uq_accounts_owner_default
               ON accounts(owner_id) WHERE is_default = 1 AND is_active = 1""",
            "CREATE INDEX IF NOT EXISTS idx_accounts_owner ON accounts(owner_id)",
            """CREATE UNIQUE INDEX IF NOT EXISTS uq_categories_owner_name
               ON categories(owner_id, name)""",
            """CREATE INDEX IF NOT EXISTS idx_transactions_owner_date
               ON transactions(owner_id, transaction_date)""",
            "CREATE INDEX IF NOT EXISTS idx_transactions_account_id ON transactions(account_id)",
            """CREATE INDEX IF NOT EXISTS idx_transactions_related
               ON transactions(related_transaction_id)""",
            """CREATE TRIGGER IF NOT EXISTS trg_transactions_posted_immutable
               BEFORE UPDATE OF amount, balance_after, account_id, type ON transactions
               BEGIN
                   SELECT RAISE(ABORT, 'posted transaction amounts and snapshots are immutable');
               END""",
        ]
        for sql in statements:
            conn.execute(sql)

    def _seed_defaults(self, conn: sqlite3.Connection):
        defaults = [
            ("appearance_mode", "system"),
            ("currency_symbol", DEFAULT_CURRENCY_SYMBOL),
            ("last_account_id", ""),
            ("date_format", "DD/MM/YYYY"),
        ]
        for key, value in defaults:
            conn.execute(
                "INSERT OR IGNORE INTO app_settings(key, value) VALUES (?, ?)",
                (key, value),
            )

    def get_setting(self, key: str, default: str = "") -> str:
        conn = self.get_connection()
        row = conn.execute(
            "SELECT value FROM app_settings WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else default

    def set_setting(self, key: str, value: str):
        with self.transaction() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO app_settings(key, value) VALUES (?, ?)",
                (key, value),
            )

    def close(self):
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None
                log.info("database_closed", db_path=self.db_path)
