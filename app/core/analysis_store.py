from __future__ import annotations

import json
import os
import sqlite3
import threading
from typing import Protocol

from app.schemas.analysis import CachedAnalysis


class AnalysisHistory(Protocol):
    def save(self, analysis: CachedAnalysis) -> None: ...

    def get(self, analysis_id: int) -> CachedAnalysis | None: ...

    def recent(self, limit: int) -> list[CachedAnalysis]: ...


class SQLiteAnalysisHistory:
    def __init__(self, db_path: str):
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._conn_lock = threading.Lock()

    def _get_connection(self) -> sqlite3.Connection:
        with self._conn_lock:
            if self._conn is not None:
                return self._conn

            directory = os.path.dirname(self._db_path)
            if directory:
                os.makedirs(directory, exist_ok=True)

            conn = sqlite3.connect(
                self._db_path,
                check_same_thread=False,
                timeout=5,
                isolation_level=None,
            )
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")
            conn.execute("PRAGMA busy_timeout=5000;")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS resume_analyses (
                    id INTEGER PRIMARY KEY,
                    filename TEXT NOT NULL,
                    file_type TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    result_payload_json TEXT NOT NULL
                );
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_resume_analyses_created_at
                ON resume_analyses (created_at);
                """
            )
            self._conn = conn
            return conn

    def init(self) -> None:
        self._get_connection()

    def save(self, analysis: CachedAnalysis) -> None:
        conn = self._get_connection()
        payload_json = analysis.model_dump_json(by_alias=True)
        with self._conn_lock:
            conn.execute(
                """
                INSERT OR REPLACE INTO resume_analyses (
                    id, filename, file_type, created_at, result_payload_json
                ) VALUES (?, ?, ?, ?, ?)
                """,
                (
                    analysis.id,
                    analysis.filename,
                    analysis.file_type,
                    analysis.created_at.isoformat(),
                    payload_json,
                ),
            )

    def get(self, analysis_id: int) -> CachedAnalysis | None:
        conn = self._get_connection()
        with self._conn_lock:
            row = conn.execute(
                "SELECT result_payload_json FROM resume_analyses WHERE id = ?",
                (analysis_id,),
            ).fetchone()
        if not row:
            return None
        return CachedAnalysis.model_validate(json.loads(row[0]))

    def recent(self, limit: int) -> list[CachedAnalysis]:
        conn = self._get_connection()
        with self._conn_lock:
            rows = conn.execute(
                """
                SELECT result_payload_json
                FROM resume_analyses
                ORDER BY created_at DESC, id DESC
                LIMIT ?
                """,
                (max(0, int(limit)),),
            ).fetchall()
        return [CachedAnalysis.model_validate(json.loads(row[0])) for row in rows]

    def clear(self) -> None:
        conn = self._get_connection()
        with self._conn_lock:
            conn.execute("DELETE FROM resume_analyses")

    def close(self) -> None:
        with self._conn_lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
