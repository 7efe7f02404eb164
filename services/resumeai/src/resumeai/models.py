from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

PROMPT_TYPE_FULL_RESUME = "full_resume"
PROMPT_TYPE_FULL_RESUME_ARRAY = "full_resume_array"
SECTION_PROMPT_PREFIX = "section_"

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"
STATUS_ERROR = "error"

PromptStatus = Literal["pending", "completed", "error"]


def section_prompt_type(section: str) -> str:
    return f"{SECTION_PROMPT_PREFIX}{section}"


def _empty_if_none(value: Any, empty: Any) -> Any:
    return empty if value is None else value


class ResumeItem(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    @field_validator("*", mode="before")
    @classmethod
    def coerce_null_strings(cls, value: Any) -> Any:
        return _empty_if_none(value, "")


class ExperienceItem(ResumeItem):
    company: str = ""
    duration: str = ""
    description: str = ""


class ProjectItem(ResumeItem):
    name: str = ""
    description: str = ""
    link: str = ""


class EducationItem(ResumeItem):
    institution: str = ""
    duration: str = ""
    course: str = ""


class ResumeDocument(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    full_name: str = ""
    job_title: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    summary: str = ""
    experience: list[ExperienceItem] = Field(default_factory=list)
    projects: list[ProjectItem] = Field(default_factory=list)
    education: list[EducationItem] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)

    @field_validator("full_name", "job_title", "email", "phone", "location", "summary", mode="before")
    @classmethod
    def coerce_null_text(cls, value: Any) -> Any:
        return _empty_if_none(value, "")

    @field_validator(
        "experience",
        "projects",
        "education",
        "skills",
        "certifications",
        mode="before",
    )
    @classmethod
    def coerce_null_sequences(cls, value: Any) -> Any:
        return _empty_if_none(value, [])

    def plain_text(self) -> str:
        parts = [self.full_name, self.job_title, self.location, self.summary]
        for experience in self.experience:
            parts.extend([experience.company, experience.description])
        for project in self.projects:
            parts.extend([project.name, project.description])
        for education in self.education:
            parts.extend([education.institution, education.course])
        parts.extend(self.skills)
        parts.extend(self.certifications)
        return " ".join(part for part in parts if part)


RESUME_SECTIONS: tuple[str, ...] = tuple(ResumeDocument.model_fields)


class Actor(BaseModel):
    user_id: int
    jobseeker_id: int | None = None


class PromptLogEntry(BaseModel):
    log_id: int
    user_id: int
    jobseeker_id: int | None = None
    prompt_text: str
    prompt_type: str | None = None
    model_used: str | None = None
    status: PromptStatus
    gpt_response: str | None = None
    error_message: str | None = None
    created_at: str
    updated_at: str


class RenderedOutput(BaseModel):
    html: str | None = None
    pdf_url: str | None = None
    warning: str | None = None


class StoredArtifact(BaseModel):
    filename: str
    url: str
    size: int


class GenerationResult(BaseModel):
    document: ResumeDocument
    rendered: RenderedOutput
    log_id: int


class ArrayGenerationResult(BaseModel):
    document: ResumeDocument
    log_id: int


class SectionUpdateResult(BaseModel):
    document: ResumeDocument
    section: str
    rendered: RenderedOutput
    log_id: int


class ResumeScore(BaseModel):
    score: float
    keyword_overlap: float
    completeness: float
    matched_terms: list[str] = Field(default_factory=list)
    missing_terms: list[str] = Field(default_factory=list)


class SavedResume(BaseModel):
    resume_id: int
    user_id: int
    jobseeker_id: int | None = None
    name: str
    prompt: str | None = None
    score: float | None = None
    document: dict[str, Any]
    created_at: str


class GenerateResumeRequest(BaseModel):
    prompt: str = Field(..., min_length=1)


class UpdateSectionRequest(BaseModel):
    section: str | None = None
    prompt: str | None = None
    current_resume: ResumeDocument | None = None


class DownloadResumeRequest(BaseModel):
    document: ResumeDocument


class ScoreResumeRequest(BaseModel):
    document: ResumeDocument
    job_description: str = Field(..., min_length=1)


class SaveResumeRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    document: ResumeDocument
    prompt: str | None = None
    score: float | None = Field(default=None, ge=0, le=100)


class ApiEnvelope(BaseModel):
    status: bool
    data: Any = None
    message: str
    api_version: str
