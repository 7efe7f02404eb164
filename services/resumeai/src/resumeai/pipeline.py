from __future__ import annotations

import json
import logging
from typing import Any, Protocol

from pydantic import ValidationError

from resumeai.config import DEFAULT_MODEL
from resumeai.errors import (
    ExtractionFailure,
    InputValidationError,
    PipelineError,
    RenderError,
    UpstreamError,
)
from resumeai.extraction import extract_array, extract_object, parse_json_object
from resumeai.llm import ChatMessage, LLMClient
from resumeai.merge import merge_section
from resumeai.metrics import MetricsStore
from resumeai.models import (
    PROMPT_TYPE_FULL_RESUME,
    PROMPT_TYPE_FULL_RESUME_ARRAY,
    RESUME_SECTIONS,
    STATUS_COMPLETED,
    STATUS_ERROR,
    Actor,
    ArrayGenerationResult,
    GenerationResult,
    PromptLogEntry,
    RenderedOutput,
    ResumeDocument,
    SectionUpdateResult,
    StoredArtifact,
    section_prompt_type,
)
from resumeai.prompts import (
    FULL_RESUME_ARRAY_SYSTEM_PROMPT,
    FULL_RESUME_SYSTEM_PROMPT,
    section_update_system_prompt,
)
from resumeai.render import ResumeRenderer
from resumeai.storage import ArtifactStore

LOGGER = logging.getLogger("jobboard.resumeai.pipeline")


class PromptLogStore(Protocol):
    def create_prompt_log(
        self,
        *,
        user_id: int,
        prompt_text: str,
        jobseeker_id: int | None = None,
        prompt_type: str | None = None,
        model_used: str | None = None,
    ) -> PromptLogEntry: ...

    def update_prompt_log(
        self,
        log_id: int,
        *,
        status: str,
        gpt_response: str | None = None,
        error_message: str | None = None,
        model_used: str | None = None,
    ) -> PromptLogEntry: ...


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class ResumePipeline:
    """Runs resume generation and section edits against an external language model.

    Every call writes a pending prompt log row, issues exactly one model request,
    then patches the row with the response or the error. Model output is only
    trusted after it passes extraction (and merging, for section edits).
    Failures are terminal; nothing is retried.
    """

    def __init__(
        self,
        *,
        prompt_log: PromptLogStore,
        llm_client: LLMClient,
        renderer: ResumeRenderer,
        artifact_store: ArtifactStore | None = None,
        metrics: MetricsStore | None = None,
        model: str = DEFAULT_MODEL,
        temperature: float = 0.7,
    ) -> None:
        self.prompt_log = prompt_log
        self.llm_client = llm_client
        self.renderer = renderer
        self.artifact_store = artifact_store
        self.metrics = metrics
        self.model = model
        self.temperature = temperature

    def generate(self, prompt: str, actor: Actor) -> GenerationResult:
        if _is_blank(prompt):
            raise InputValidationError("prompt is required", missing=["prompt"])
        raw, log_id = self._call_model(
            actor,
            prompt_text=prompt,
            prompt_type=PROMPT_TYPE_FULL_RESUME,
            system_prompt=FULL_RESUME_SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )
        document = extract_object(raw)
        rendered = self._render(document, prefix=f"resume-{actor.user_id}")
        return GenerationResult(document=document, rendered=rendered, log_id=log_id)

    def generate_array(self, prompt: str, actor: Actor) -> ArrayGenerationResult:
        if _is_blank(prompt):
            raise InputValidationError("prompt is required", missing=["prompt"])
        raw, log_id = self._call_model(
            actor,
            prompt_text=prompt,
            prompt_type=PROMPT_TYPE_FULL_RESUME_ARRAY,
            system_prompt=FULL_RESUME_ARRAY_SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )
        documents = extract_array(raw)
        if not documents:
            raise ExtractionFailure("Model returned an empty resume array", raw_text=raw)
        # The array is an output convention of the prompt; only the first resume is used.
        return ArrayGenerationResult(document=documents[0], log_id=log_id)

    def update_section(
        self,
        section: str | None,
        prompt: str | None,
        current_resume: ResumeDocument | None,
        actor: Actor,
    ) -> SectionUpdateResult:
        missing = [
            name
            for name, value in (
                ("section", section),
                ("prompt", prompt),
                ("current_resume", current_resume),
            )
            if _is_blank(value)
        ]
        if missing:
            raise InputValidationError(
                f"Missing required fields: {', '.join(missing)}",
                missing=missing,
            )
        if section not in RESUME_SECTIONS:
            raise InputValidationError(
                f"Unknown resume section '{section}'. Expected one of: {', '.join(RESUME_SECTIONS)}"
            )

        raw, log_id = self._call_model(
            actor,
            prompt_text=prompt,
            prompt_type=section_prompt_type(section),
            system_prompt=section_update_system_prompt(section),
            messages=[
                {"role": "user", "content": current_resume.model_dump_json()},
                {"role": "user", "content": prompt},
            ],
        )
        model_output = parse_json_object(raw)
        merged = merge_section(section, model_output, current_resume.model_dump())
        try:
            document = ResumeDocument.model_validate(merged)
        except ValidationError as exc:
            raise ExtractionFailure(
                f"Updated '{section}' section does not match the resume shape",
                raw_text=raw,
            ) from exc
        rendered = self._render(document, prefix=f"resume-{actor.user_id}-{section}")
        return SectionUpdateResult(
            document=document,
            section=section,
            rendered=rendered,
            log_id=log_id,
        )

    def export_pdf(self, document: ResumeDocument, actor: Actor) -> StoredArtifact:
        if self.artifact_store is None:
            raise RenderError("No artifact store configured for PDF export")
        content = self.renderer.render_pdf(document)
        try:
            return self.artifact_store.save_pdf(content, prefix=f"resume-{actor.user_id}")
        except OSError as exc:
            raise RenderError(f"Could not store rendered PDF: {exc}") from exc

    def _call_model(
        self,
        actor: Actor,
        *,
        prompt_text: str,
        prompt_type: str,
        system_prompt: str,
        messages: list[ChatMessage],
    ) -> tuple[str, int]:
        entry = self.prompt_log.create_prompt_log(
            user_id=actor.user_id,
            jobseeker_id=actor.jobseeker_id,
            prompt_text=prompt_text,
            prompt_type=prompt_type,
            model_used=self.model,
        )
        try:
            raw = self.llm_client.complete(
                system_prompt,
                messages,
                model=self.model,
                temperature=self.temperature,
            )
        except PipelineError as exc:
            self._on_model_failure(entry.log_id, prompt_type, exc.message)
            if isinstance(exc, UpstreamError):
                raise
            raise UpstreamError(exc.message) from exc
        except Exception as exc:
            message = f"LLM request failed: {exc}"
            self._on_model_failure(entry.log_id, prompt_type, message)
            raise UpstreamError(message) from exc

        self._finish_log(entry.log_id, status=STATUS_COMPLETED, gpt_response=raw)
        return raw, entry.log_id

    def _on_model_failure(self, log_id: int, prompt_type: str, message: str) -> None:
        self._count("llm_failures")
        LOGGER.warning(
            json.dumps(
                {
                    "event": "llm_call_failed",
                    "log_id": log_id,
                    "prompt_type": prompt_type,
                    "model": self.model,
                    "error": message,
                }
            )
        )
        self._finish_log(log_id, status=STATUS_ERROR, error_message=message)

    def _finish_log(
        self,
        log_id: int,
        *,
        status: str,
        gpt_response: str | None = None,
        error_message: str | None = None,
    ) -> None:
        try:
            self.prompt_log.update_prompt_log(
                log_id,
                status=status,
                gpt_response=gpt_response,
                error_message=error_message,
                model_used=self.model,
            )
        except Exception as exc:
            # Secondary write: never replaces the model outcome.
            self._count("prompt_log_update_failures")
            LOGGER.warning(
                json.dumps(
                    {
                        "event": "prompt_log_update_failed",
                        "log_id": log_id,
                        "status": status,
                        "error": str(exc),
                    }
                )
            )

    def _render(self, document: ResumeDocument, *, prefix: str) -> RenderedOutput:
        rendered = RenderedOutput()
        try:
            rendered.html = self.renderer.render_html(document)
            if self.artifact_store is not None:
                artifact = self.artifact_store.save_pdf(
                    self.renderer.render_pdf(document),
                    prefix=prefix,
                )
                rendered.pdf_url = artifact.url
        except (RenderError, OSError) as exc:
            rendered.warning = str(exc)
            self._count("render_failures")
            LOGGER.warning(json.dumps({"event": "resume_render_failed", "error": str(exc)}))
        return rendered

    def _count(self, event: str) -> None:
        if self.metrics is not None:
            self.metrics.increment(event)
