from __future__ import annotations

import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from pytest_bdd import given, parsers, scenario, then, when
from resumeai.config import Settings
from resumeai.errors import UpstreamError
from resumeai.llm import LLMClient
from resumeai.main import create_app

pytestmark = pytest.mark.bdd

HEADERS = {"x-user-id": "42"}
CURRENT_RESUME = {
    "full_name": "Jane Roe",
    "job_title": "Backend Engineer",
    "email": "jane@example.com",
    "phone": "",
    "location": "Berlin",
    "summary": "Backend engineer.",
    "experience": [{"company": "Acme", "duration": "2020-2023", "description": "APIs"}],
    "projects": [],
    "education": [],
    "skills": ["Python"],
    "certifications": [],
}


class ScriptedLLMClient(LLMClient):
    def __init__(self, response: str | None = None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error

    def complete(self, system_prompt, messages, *, model, temperature) -> str:
        if self.error is not None:
            raise self.error
        return self.response or ""


@scenario("features/resumeai.feature", "Generate a resume from a free-text prompt")
def test_generate_resume_from_prompt() -> None:
    pass


@scenario("features/resumeai.feature", "Edit one section of an existing resume")
def test_edit_resume_section() -> None:
    pass


@scenario("features/resumeai.feature", "Report a failed model call")
def test_report_failed_model_call() -> None:
    pass


@pytest.fixture
def context(tmp_path: Path) -> dict[str, object]:
    return {
        "settings": Settings(
            database_path=str(tmp_path / "resumeai.sqlite3"),
            artifact_dir=str(tmp_path / "artifacts"),
        )
    }


@given("a language model that follows the extraction contract")
def given_contract_model(context: dict[str, object]) -> None:
    context["llm"] = ScriptedLLMClient(
        json.dumps(
            {
                "full_name": "John Doe",
                "job_title": "Python Developer",
                "experience": [{"company": "Acme", "duration": "3 years", "description": ""}],
                "skills": ["Python"],
            }
        )
    )


@given(parsers.parse('a language model that wraps the "{section}" section in a "{wrapper}" key'))
def given_wrapping_model(context: dict[str, object], section: str, wrapper: str) -> None:
    context["llm"] = ScriptedLLMClient(json.dumps({wrapper: {section: ["Go", "Rust"]}}))


@given("a language model that is unreachable")
def given_unreachable_model(context: dict[str, object]) -> None:
    context["llm"] = ScriptedLLMClient(error=UpstreamError("LLM request failed: connection refused"))


def run_request(context: dict[str, object], path: str, payload: dict[str, object]):
    app = create_app(settings=context["settings"], llm_client=context["llm"])
    with TestClient(app) as client:
        response = client.post(path, headers=HEADERS, json=payload)
        logs = client.get("/prompt-logs", headers=HEADERS).json()
    context["logs"] = logs
    return response


@when(parsers.parse('a resume is generated for "{prompt}"'), target_fixture="response")
def when_resume_is_generated(context: dict[str, object], prompt: str):
    return run_request(context, "/resumes/generate", {"prompt": prompt})


@when(parsers.parse('the "{section}" section is updated with "{prompt}"'), target_fixture="response")
def when_section_is_updated(context: dict[str, object], section: str, prompt: str):
    return run_request(
        context,
        "/resumes/update-section",
        {"section": section, "prompt": prompt, "current_resume": CURRENT_RESUME},
    )


@then("the resume response is successful")
def then_response_is_successful(response) -> None:
    assert response.status_code == 200
    assert response.json()["status"] is True


@then(parsers.parse('the resume name is "{name}"'))
def then_resume_name_matches(response, name: str) -> None:
    assert response.json()["data"]["document"]["full_name"] == name


@then(parsers.parse('the skills are "{skills}"'))
def then_skills_match(response, skills: str) -> None:
    assert response.json()["data"]["document"]["skills"] == skills.split(", ")


@then("every other section is unchanged")
def then_other_sections_unchanged(response) -> None:
    document = response.json()["data"]["document"]
    for key, value in CURRENT_RESUME.items():
        if key != "skills":
            assert document[key] == value


@then(parsers.parse('the resume response fails with kind "{kind}"'))
def then_response_fails(response, kind: str) -> None:
    assert response.status_code >= 400
    assert response.json()["status"] is False
    assert response.json()["data"]["kind"] == kind


@then(parsers.parse('the prompt log status is "{status}"'))
def then_prompt_log_status(context: dict[str, object], status: str) -> None:
    assert [log["status"] for log in context["logs"]] == [status]
