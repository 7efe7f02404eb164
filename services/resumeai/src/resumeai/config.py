from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass

DEFAULT_DATA_DIR = os.path.join(tempfile.gettempdir(), "jobboard")
DEFAULT_DB_PATH = os.path.join(DEFAULT_DATA_DIR, "resumeai.sqlite3")
DEFAULT_ARTIFACT_DIR = os.path.join(DEFAULT_DATA_DIR, "artifacts")
DEFAULT_MODEL = "gpt-4o-mini"


@dataclass(frozen=True)
class Settings:
    database_path: str = DEFAULT_DB_PATH
    artifact_dir: str = DEFAULT_ARTIFACT_DIR
    public_base_path: str = "/files"
    model: str = DEFAULT_MODEL
    temperature: float = 0.7
    llm_timeout_seconds: float = 60.0
    openai_api_key: str | None = None
    openai_base_url: str | None = None
    api_version: str = "v1"

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            database_path=os.getenv("RESUMEAI_DB_PATH", DEFAULT_DB_PATH),
            artifact_dir=os.getenv("RESUMEAI_ARTIFACT_DIR", DEFAULT_ARTIFACT_DIR),
            public_base_path=os.getenv("RESUMEAI_PUBLIC_BASE_PATH", "/files"),
            model=os.getenv("RESUMEAI_MODEL", DEFAULT_MODEL),
            temperature=float(os.getenv("RESUMEAI_TEMPERATURE", "0.7")),
            llm_timeout_seconds=float(os.getenv("RESUMEAI_LLM_TIMEOUT_SECONDS", "60")),
            openai_api_key=os.getenv("OPENAI_API_KEY", "").strip() or None,
            openai_base_url=os.getenv("OPENAI_BASE_URL", "").strip() or None,
            api_version=os.getenv("RESUMEAI_API_VERSION", "v1"),
        )
