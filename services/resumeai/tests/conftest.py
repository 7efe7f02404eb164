from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from resumeai.config import Settings
from resumeai.llm import LLMClient
from resumeai.metrics import MetricsStore
from resumeai.models import ResumeDocument
from resumeai.pipeline import ResumePipeline
from resumeai.render import ResumeRenderer
from resumeai.repository import ResumeRepository
from resumeai.storage import ArtifactStore


class FakeLLMClient(LLMClient):
    def __init__(self, responses: list[str] | None = None, error: Exception | None = None) -> None:
        self.responses = list(responses or [])
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def complete(
        self,
        system_prompt: str,
        messages: list[dict[str, str]],
        *,
        model: str,
        temperature: float,
    ) -> str:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "messages": messages,
                "model": model,
                "temperature": temperature,
            }
        )
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)


@pytest.fixture
def sample_resume() -> ResumeDocument:
    return ResumeDocument(
        full_name="Jane Roe",
        job_title="Backend Engineer",
        email="jane@example.com",
        phone="+1 555 0100",
        location="Berlin",
        summary="Backend engineer building Python APIs.",
        experience=[
            {"company": "Acme", "duration": "2020-2023", "description": "Built billing APIs"}
        ],
        projects=[{"name": "jobkit", "description": "Job board toolkit", "link": ""}],
        education=[{"institution": "TU Berlin", "duration": "2016-2020", "course": "CS"}],
        skills=["Python", "SQL"],
        certifications=[],
    )


@pytest.fixture
def contract_response() -> str:
    return json.dumps(
        {
            "full_name": "John Doe",
            "job_title": "Python Developer",
            "email": "",
            "phone": "",
            "location": "",
            "summary": "Python developer with 3 years of experience.",
            "experience": [
                {"company": "Acme", "duration": "3 years", "description": "Python development"}
            ],
            "projects": [],
            "education": [],
            "skills": ["Python"],
            "certifications": [],
        }
    )


@pytest.fixture
def repository(tmp_path: Path):
    repo = ResumeRepository(str(tmp_path / "resumeai.sqlite3"))
    repo.connect()
    yield repo
    repo.close()


@pytest.fixture
def artifact_store(tmp_path: Path) -> ArtifactStore:
    return ArtifactStore(str(tmp_path / "artifacts"), "/files")


@pytest.fixture
def make_pipeline(repository: ResumeRepository, artifact_store: ArtifactStore):
    def factory(llm_client: LLMClient, **overrides: Any) -> ResumePipeline:
        options: dict[str, Any] = {
            "prompt_log": repository,
            "llm_client": llm_client,
            "renderer": ResumeRenderer(),
            "artifact_store": artifact_store,
            "metrics": MetricsStore(),
            "model": "test-model",
        }
        options.update(overrides)
        return ResumePipeline(**options)

    return factory


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        database_path=str(tmp_path / "resumeai.sqlite3"),
        artifact_dir=str(tmp_path / "artifacts"),
        model="test-model",
    )


@pytest.fixture
def fake_llm() -> type[FakeLLMClient]:
    return FakeLLMClient
