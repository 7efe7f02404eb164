from __future__ import annotations

import json
import sqlite3
import threading
from pathlib import Path
from typing import Any

from common.utils import now_utc_iso

from resumeai.errors import NotFoundError, PersistenceError
from resumeai.models import STATUS_PENDING, PromptLogEntry, ResumeDocument, SavedResume

PROMPT_LOG_COLUMNS = """
    resumeai_prompt_log_id AS log_id,
    user_id,
    jobseeker_id,
    prompt_text,
    prompt_type,
    model_used,
    status,
    gpt_response,
    error_message,
    created_at,
    updated_at
"""


class ResumeRepository:
    def __init__(self, database_path: str) -> None:
        self.database_path = Path(database_path)
        self._connection: sqlite3.Connection | None = None
        self._lock = threading.RLock()

    @property
    def connection(self) -> sqlite3.Connection:
        if self._connection is None:
            raise PersistenceError("Database connection is not initialized")
        return self._connection

    def connect(self) -> None:
        with self._lock:
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = sqlite3.connect(self.database_path, check_same_thread=False)
            self._connection.row_factory = sqlite3.Row
            self._connection.executescript(
                """
                CREATE TABLE IF NOT EXISTS resumeai_prompt_log (
                    resumeai_prompt_log_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    jobseeker_id INTEGER,
                    prompt_text TEXT NOT NULL,
                    prompt_type TEXT,
                    model_used TEXT,
                    status TEXT NOT NULL,
                    gpt_response TEXT,
                    error_message TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_prompt_log_user
                    ON resumeai_prompt_log (user_id, resumeai_prompt_log_id);

                CREATE TABLE IF NOT EXISTS saved_resumes (
                    resume_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    jobseeker_id INTEGER,
                    name TEXT NOT NULL,
                    prompt TEXT,
                    score REAL,
                    resume_json TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );
                """
            )
            self._connection.commit()

    def close(self) -> None:
        with self._lock:
            if self._connection is None:
                return
            self._connection.close()
            self._connection = None

    def create_prompt_log(
        self,
        *,
        user_id: int,
        prompt_text: str,
        jobseeker_id: int | None = None,
        prompt_type: str | None = None,
        model_used: str | None = None,
    ) -> PromptLogEntry:
        with self._lock:
            now = now_utc_iso()
            try:
                cursor = self.connection.execute(
                    """
                    INSERT INTO resumeai_prompt_log (
                        user_id,
                        jobseeker_id,
                        prompt_text,
                        prompt_type,
                        model_used,
                        status,
                        created_at,
                        updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        user_id,
                        jobseeker_id,
                        prompt_text,
                        prompt_type,
                        model_used,
                        STATUS_PENDING,
                        now,
                        now,
                    ),
                )
                self.connection.commit()
            except sqlite3.Error as exc:
                raise PersistenceError(f"Could not create prompt log: {exc}") from exc
            return self._get_prompt_log_or_raise(int(cursor.lastrowid))

    def update_prompt_log(
        self,
        log_id: int,
        *,
        status: str,
        gpt_response: str | None = None,
        error_message: str | None = None,
        model_used: str | None = None,
    ) -> PromptLogEntry:
        with self._lock:
            try:
                cursor = self.connection.execute(
                    """
                    UPDATE resumeai_prompt_log
                    SET
                        status = ?,
                        gpt_response = COALESCE(?, gpt_response),
                        error_message = COALESCE(?, error_message),
                        model_used = COALESCE(?, model_used),
                        updated_at = ?
                    WHERE resumeai_prompt_log_id = ?
                    """,
                    (status, gpt_response, error_message, model_used, now_utc_iso(), log_id),
                )
                self.connection.commit()
            except sqlite3.Error as exc:
                raise PersistenceError(f"Could not update prompt log {log_id}: {exc}") from exc
            if cursor.rowcount == 0:
                raise PersistenceError(f"Unknown prompt log id: {log_id}")
            return self._get_prompt_log_or_raise(log_id)

    def get_prompt_log(self, log_id: int, *, user_id: int | None = None) -> PromptLogEntry | None:
        query = f"SELECT {PROMPT_LOG_COLUMNS} FROM resumeai_prompt_log WHERE resumeai_prompt_log_id = ?"
        params: list[Any] = [log_id]
        if user_id is not None:
            query += " AND user_id = ?"
            params.append(user_id)
        with self._lock:
            try:
                row = self.connection.execute(query, tuple(params)).fetchone()
            except sqlite3.Error as exc:
                raise PersistenceError(f"Could not read prompt log {log_id}: {exc}") from exc
            if row is None:
                return None
            return PromptLogEntry(**dict(row))

    def _get_prompt_log_or_raise(self, log_id: int) -> PromptLogEntry:
        entry = self.get_prompt_log(log_id)
        if entry is None:
            raise NotFoundError(f"Unknown prompt log id: {log_id}")
        return entry

    def list_prompt_logs(
        self,
        *,
        user_id: int,
        limit: int,
        status: str | None = None,
    ) -> list[PromptLogEntry]:
        query = f"SELECT {PROMPT_LOG_COLUMNS} FROM resumeai_prompt_log WHERE user_id = ?"
        params: list[Any] = [user_id]
        if status:
            query += " AND status = ?"
            params.append(status)
        query += " ORDER BY resumeai_prompt_log_id DESC LIMIT ?"
        params.append(limit)
        with self._lock:
            try:
                cursor = self.connection.execute(query, tuple(params))
            except sqlite3.Error as exc:
                raise PersistenceError(f"Could not list prompt logs: {exc}") from exc
            return [PromptLogEntry(**dict(row)) for row in cursor.fetchall()]

    def save_resume(
        self,
        *,
        user_id: int,
        name: str,
        document: ResumeDocument,
        jobseeker_id: int | None = None,
        prompt: str | None = None,
        score: float | None = None,
    ) -> SavedResume:
        with self._lock:
            created_at = now_utc_iso()
            try:
                cursor = self.connection.execute(
                    """
                    INSERT INTO saved_resumes (
                        user_id,
                        jobseeker_id,
                        name,
                        prompt,
                        score,
                        resume_json,
                        created_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        user_id,
                        jobseeker_id,
                        name,
                        prompt,
                        score,
                        document.model_dump_json(),
                        created_at,
                    ),
                )
                self.connection.commit()
            except sqlite3.Error as exc:
                raise PersistenceError(f"Could not save resume: {exc}") from exc
            return SavedResume(
                resume_id=int(cursor.lastrowid),
                user_id=user_id,
                jobseeker_id=jobseeker_id,
                name=name,
                prompt=prompt,
                score=score,
                document=document.model_dump(),
                created_at=created_at,
            )

    def list_saved_resumes(self, *, user_id: int, limit: int) -> list[SavedResume]:
        with self._lock:
            try:
                cursor = self.connection.execute(
                    """
                    SELECT
                        resume_id,
                        user_id,
                        jobseeker_id,
                        name,
                        prompt,
                        score,
                        resume_json,
                        created_at
                    FROM saved_resumes
                    WHERE user_id = ?
                    ORDER BY resume_id DESC
                    LIMIT ?
                    """,
                    (user_id, limit),
                )
            except sqlite3.Error as exc:
                raise PersistenceError(f"Could not list saved resumes: {exc}") from exc
            return [self._to_saved_resume(row) for row in cursor.fetchall()]

    def _to_saved_resume(self, row: sqlite3.Row) -> SavedResume:
        payload = dict(row)
        resume_json = payload.pop("resume_json")
        return SavedResume(document=json.loads(resume_json), **payload)
