from __future__ import annotations

from typing import Any


class PipelineError(Exception):
    kind = "pipeline_error"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def details(self) -> dict[str, Any]:
        return {}

    def to_payload(self) -> dict[str, Any]:
        return {"kind": self.kind, **self.details()}


class InputValidationError(PipelineError):
    kind = "validation_error"
    status_code = 422

    def __init__(self, message: str, *, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing = missing or []

    def details(self) -> dict[str, Any]:
        return {"missing": self.missing} if self.missing else {}


class PersistenceError(PipelineError):
    kind = "persistence_error"
    status_code = 503


class UpstreamError(PipelineError):
    kind = "upstream_error"
    status_code = 502


class ExtractionFailure(PipelineError):
    kind = "extraction_failure"
    status_code = 502

    def __init__(self, message: str, *, raw_text: str) -> None:
        super().__init__(message)
        self.raw_text = raw_text

    def details(self) -> dict[str, Any]:
        return {"raw_text": self.raw_text}


class SectionNotFoundError(PipelineError):
    kind = "section_not_found"
    status_code = 502

    def __init__(self, section: str) -> None:
        super().__init__(f"Section '{section}' not found in model response")
        self.section = section

    def details(self) -> dict[str, Any]:
        return {"section": self.section}


class RenderError(PipelineError):
    kind = "render_error"
    status_code = 500


class NotFoundError(PipelineError):
    kind = "not_found"
    status_code = 404


class UnauthorizedError(PipelineError):
    kind = "unauthorized"
    status_code = 401


class RouteError(PipelineError):
    kind = "http_error"

    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code
        if status_code == 404:
            self.kind = "not_found"
