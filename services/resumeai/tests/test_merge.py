from __future__ import annotations

import pytest
from resumeai.errors import SectionNotFoundError
from resumeai.merge import merge_section
from resumeai.models import ResumeDocument

pytestmark = pytest.mark.unit


def test_direct_key_replaces_only_that_section(sample_resume: ResumeDocument) -> None:
    current = sample_resume.model_dump()
    merged = merge_section("skills", {"skills": ["Go"]}, current)

    assert merged["skills"] == ["Go"]
    for key, value in current.items():
        if key != "skills":
            assert merged[key] is value
    assert current["skills"] == ["Python", "SQL"]


@pytest.mark.parametrize("wrapper", ["div", "section"])
def test_wrapper_keys_are_unwrapped(sample_resume: ResumeDocument, wrapper: str) -> None:
    current = sample_resume.model_dump()
    direct = merge_section("skills", {"skills": ["Go"]}, current)
    wrapped = merge_section("skills", {wrapper: {"skills": ["Go"]}}, current)
    assert wrapped == direct


def test_direct_key_wins_over_wrappers(sample_resume: ResumeDocument) -> None:
    merged = merge_section(
        "skills",
        {"skills": ["Go"], "div": {"skills": ["Rust"]}},
        sample_resume.model_dump(),
    )
    assert merged["skills"] == ["Go"]


def test_missing_section_names_the_section(sample_resume: ResumeDocument) -> None:
    with pytest.raises(SectionNotFoundError) as excinfo:
        merge_section("education", {"other": []}, sample_resume.model_dump())
    assert excinfo.value.section == "education"
    assert "education" in excinfo.value.message


def test_non_dict_wrapper_is_ignored(sample_resume: ResumeDocument) -> None:
    with pytest.raises(SectionNotFoundError):
        merge_section("skills", {"div": "skills"}, sample_resume.model_dump())
