from __future__ import annotations

import pytest
from resumeai.errors import PersistenceError
from resumeai.models import ResumeDocument
from resumeai.repository import ResumeRepository

pytestmark = pytest.mark.unit


def test_prompt_log_starts_pending_and_is_patched_once(repository: ResumeRepository) -> None:
    entry = repository.create_prompt_log(
        user_id=1,
        jobseeker_id=2,
        prompt_text="Backend engineer",
        prompt_type="full_resume",
        model_used="gpt-4o-mini",
    )
    assert entry.log_id >= 1
    assert entry.status == "pending"
    assert entry.gpt_response is None

    updated = repository.update_prompt_log(entry.log_id, status="completed", gpt_response="{}")

    assert updated.status == "completed"
    assert updated.gpt_response == "{}"
    assert updated.model_used == "gpt-4o-mini"
    assert updated.created_at == entry.created_at


def test_update_unknown_log_raises_persistence_error(repository: ResumeRepository) -> None:
    with pytest.raises(PersistenceError, match="Unknown prompt log id"):
        repository.update_prompt_log(999, status="error", error_message="boom")


def test_closed_repository_raises_persistence_error(repository: ResumeRepository) -> None:
    repository.close()
    with pytest.raises(PersistenceError):
        repository.create_prompt_log(user_id=1, prompt_text="x")


def test_prompt_logs_are_scoped_to_user_and_filterable(repository: ResumeRepository) -> None:
    first = repository.create_prompt_log(user_id=1, prompt_text="one")
    repository.create_prompt_log(user_id=1, prompt_text="two")
    repository.create_prompt_log(user_id=2, prompt_text="other user")
    repository.update_prompt_log(first.log_id, status="error", error_message="timeout")

    logs = repository.list_prompt_logs(user_id=1, limit=10)
    errors = repository.list_prompt_logs(user_id=1, limit=10, status="error")

    assert [log.prompt_text for log in logs] == ["two", "one"]
    assert [log.log_id for log in errors] == [first.log_id]
    assert repository.get_prompt_log(first.log_id, user_id=2) is None


def test_saved_resumes_round_trip(repository: ResumeRepository, sample_resume: ResumeDocument) -> None:
    saved = repository.save_resume(
        user_id=1,
        jobseeker_id=3,
        name="Backend CV",
        document=sample_resume,
        prompt="Backend engineer",
        score=72.5,
    )

    listed = repository.list_saved_resumes(user_id=1, limit=10)

    assert saved.resume_id >= 1
    assert listed == [saved]
    assert ResumeDocument.model_validate(listed[0].document) == sample_resume
    assert repository.list_saved_resumes(user_id=2, limit=10) == []
