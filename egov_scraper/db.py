"""SQLite database for run completion markers, filings and uploaded files."""

import sqlite3
import threading
from typing import List, Optional, Tuple


class Database:
    def __init__(self, db_path: str = "egov.db"):
        self.db_path = db_path
        self._local = threading.local()
        self._init_db()

    @property
    def _conn(self) -> sqlite3.Connection:
        if not hasattr(self._local, "conn") or self._local.conn is None:
            self._local.conn = sqlite3.connect(self.db_path)
            self._local.conn.row_factory = sqlite3.Row
            self._local.conn.execute("PRAGMA journal_mode=WAL")
        return self._local.conn

    def close(self):
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            conn.close()
            self._local.conn = None

    def _init_db(self):
        conn = self._conn
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS client_runs (
                run_key TEXT NOT NULL,
                client TEXT NOT NULL,
                status TEXT DEFAULT 'pending',
                error TEXT,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (run_key, client)
            );

            CREATE TABLE IF NOT EXISTS filings (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                run_key TEXT NOT NULL,
                client TEXT NOT NULL,
                detail_link TEXT NOT NULL,
                reference_number TEXT,
                status TEXT DEFAULT 'pending',
                error TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );

            CREATE INDEX IF NOT EXISTS idx_filings_client ON filings(client);
            CREATE INDEX IF NOT EXISTS idx_filings_reference ON filings(reference_number);

            CREATE TABLE IF NOT EXISTS uploads (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                filing_id INTEGER NOT NULL,
                name TEXT NOT NULL,
                content_type TEXT,
                file_size INTEGER DEFAULT 0,
                storage_id TEXT,
                status TEXT DEFAULT 'uploaded',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (filing_id) REFERENCES filings(id)
            );
        """)
        conn.commit()

    def is_client_done(self, run_key: str, client: str) -> bool:
        row = self._conn.execute(
            "SELECT 1 FROM client_runs WHERE run_key = ? AND client = ? AND status = 'done'",
            (run_key, client),
        ).fetchone()
        return row is not None

    def mark_client(self, run_key: str, client: str, status: str, error: str = None):
        self._conn.execute(
            """INSERT INTO client_runs (run_key, client, status, error, updated_at)
               VALUES (?, ?, ?, ?, CURRENT_TIMESTAMP)
               ON CONFLICT(run_key, client) DO UPDATE SET
                   status = excluded.status, error = excluded.error,
                   updated_at = CURRENT_TIMESTAMP""",
            (run_key, client, status, error),
        )
        self._conn.commit()

    def insert_filing(self, run_key: str, client: str, detail_link: str) -> int:
        cur = self._conn.execute(
            "INSERT INTO filings (run_key, client, detail_link) VALUES (?, ?, ?)",
            (run_key, client, detail_link),
        )
        self._conn.commit()
        return cur.lastrowid

    def update_filing(self, filing_id: int, status: str, reference_number: str = None,
                      error: str = None):
        self._conn.execute(
            """UPDATE filings SET status = ?, reference_number = ?, error = ?,
               updated_at = CURRENT_TIMESTAMP WHERE id = ?""",
            (status, reference_number, error, filing_id),
        )
        self._conn.commit()

    def insert_upload(self, filing_id: int, name: str, content_type: str = None,
                      file_size: int = 0, storage_id: str = None, status: str = "uploaded"):
        self._conn.execute(
            """INSERT INTO uploads (filing_id, name, content_type, file_size, storage_id, status)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (filing_id, name, content_type, file_size, storage_id, status),
        )
        self._conn.commit()

    def get_client_runs(self, run_key: str) -> List[dict]:
        rows = self._conn.execute(
            "SELECT * FROM client_runs WHERE run_key = ? ORDER BY client", (run_key,)
        ).fetchall()
        return [dict(r) for r in rows]

    def get_filings(self, client: Optional[str] = None) -> List[dict]:
        if client:
            rows = self._conn.execute(
                "SELECT * FROM filings WHERE client = ? ORDER BY id", (client,)
            ).fetchall()
        else:
            rows = self._conn.execute("SELECT * FROM filings ORDER BY id").fetchall()
        return [dict(r) for r in rows]

    def get_stats(self) -> List[Tuple]:
        rows = self._conn.execute(
            """SELECT f.client, f.status, COUNT(DISTINCT f.id) AS cnt,
                      COUNT(u.id) AS files,
                      COALESCE(SUM(u.file_size), 0) AS total_bytes
               FROM filings f
               LEFT JOIN uploads u ON u.filing_id = f.id AND u.status = 'uploaded'
               GROUP BY f.client, f.status ORDER BY f.client, f.status"""
        ).fetchall()
        return [tuple(r) for r in rows]
