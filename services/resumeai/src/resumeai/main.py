from __future__ import annotations

import json
import logging
import os
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from resumeai.config import Settings
from resumeai.errors import (
    InputValidationError,
    NotFoundError,
    PipelineError,
    RouteError,
    UnauthorizedError,
)
from resumeai.llm import LLMClient, OpenAIChatClient
from resumeai.metrics import MetricsSnapshot, MetricsStore
from resumeai.models import (
    Actor,
    ApiEnvelope,
    DownloadResumeRequest,
    GenerateResumeRequest,
    PromptLogEntry,
    SaveResumeRequest,
    ScoreResumeRequest,
    UpdateSectionRequest,
)
from resumeai.pipeline import ResumePipeline
from resumeai.render import ResumeRenderer
from resumeai.repository import ResumeRepository
from resumeai.scoring import score_resume
from resumeai.storage import ArtifactStore

LOGGER = logging.getLogger("jobboard.resumeai")


def resolve_actor(x_user_id: str | None, x_jobseeker_id: str | None = None) -> Actor:
    try:
        user_id = int(x_user_id or "")
        jobseeker_id = int(x_jobseeker_id) if x_jobseeker_id else None
    except ValueError as exc:
        raise UnauthorizedError("Unauthorized") from exc
    if user_id <= 0:
        raise UnauthorizedError("Unauthorized")
    return Actor(user_id=user_id, jobseeker_id=jobseeker_id)


def create_app(
    *,
    settings: Settings | None = None,
    llm_client: LLMClient | None = None,
    renderer: ResumeRenderer | None = None,
) -> FastAPI:
    resolved = settings or Settings.from_env()
    repository = ResumeRepository(database_path=resolved.database_path)
    artifact_store = ArtifactStore(resolved.artifact_dir, resolved.public_base_path)
    artifact_store.ensure_root()
    metrics_store = MetricsStore()
    pipeline = ResumePipeline(
        prompt_log=repository,
        llm_client=llm_client
        or OpenAIChatClient(
            api_key=resolved.openai_api_key,
            base_url=resolved.openai_base_url,
            timeout_seconds=resolved.llm_timeout_seconds,
        ),
        renderer=renderer or ResumeRenderer(),
        artifact_store=artifact_store,
        metrics=metrics_store,
        model=resolved.model,
        temperature=resolved.temperature,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await run_in_threadpool(repository.connect)
        app.state.repository = repository
        app.state.pipeline = pipeline
        app.state.metrics = metrics_store
        try:
            yield
        finally:
            await run_in_threadpool(repository.close)

    app = FastAPI(title="JobBoard Resume AI", version="0.3.0", lifespan=lifespan)
    app.mount(
        resolved.public_base_path,
        StaticFiles(directory=resolved.artifact_dir),
        name="files",
    )

    def envelope(data: Any, message: str) -> dict[str, Any]:
        return ApiEnvelope(
            status=True,
            data=data,
            message=message,
            api_version=resolved.api_version,
        ).model_dump(mode="json")

    def failure_response(request: Request, exc: PipelineError) -> JSONResponse:
        LOGGER.warning(
            json.dumps(
                {
                    "event": "pipeline_error",
                    "request_id": getattr(request.state, "request_id", None),
                    "path": request.url.path,
                    "kind": exc.kind,
                    "error": exc.message,
                }
            )
        )
        body = ApiEnvelope(
            status=False,
            data=exc.to_payload(),
            message=exc.message,
            api_version=resolved.api_version,
        )
        return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))

    @app.exception_handler(PipelineError)
    async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
        return failure_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        missing: list[str] = []
        for error in exc.errors():
            field = str(error["loc"][-1]) if error.get("loc") else "body"
            if field not in missing:
                missing.append(field)
        return failure_response(
            request,
            InputValidationError(f"Invalid request: {', '.join(missing)}", missing=missing),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return failure_response(
            request,
            RouteError(str(exc.detail), status_code=exc.status_code),
        )

    @app.middleware("http")
    async def observability_middleware(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id
        started = time.perf_counter()

        def record(status_code: int, **extra: Any) -> dict[str, Any]:
            duration_ms = (time.perf_counter() - started) * 1000
            # Route templates keep /prompt-logs/{log_id} in one bucket.
            route = request.scope.get("route")
            path = getattr(route, "path", request.url.path)
            metrics_store.observe(
                method=request.method,
                path=path,
                status_code=status_code,
                duration_ms=duration_ms,
            )
            return {
                "event": "request_complete",
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": status_code,
                "duration_ms": round(duration_ms, 3),
                **extra,
            }

        try:
            response = await call_next(request)
        except Exception as exc:
            LOGGER.exception(json.dumps(record(500, error=str(exc))))
            failure = ApiEnvelope(
                status=False,
                data={"kind": "internal_error", "request_id": request_id},
                message="Internal Server Error",
                api_version=resolved.api_version,
            )
            return JSONResponse(
                status_code=500,
                content=failure.model_dump(mode="json"),
                headers={"x-request-id": request_id},
            )

        response.headers["x-request-id"] = request_id
        source_ip = request.client.host if request.client else None
        LOGGER.info(json.dumps(record(response.status_code, source_ip=source_ip)))
        return response

    def current_actor(request: Request) -> Actor:
        return resolve_actor(
            request.headers.get("x-user-id"),
            request.headers.get("x-jobseeker-id"),
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "service": "resumeai"}

    @app.get("/metrics", response_model=MetricsSnapshot)
    async def metrics(request: Request) -> MetricsSnapshot:
        return request.app.state.metrics.snapshot()

    @app.post("/resumes/generate")
    async def generate_resume(payload: GenerateResumeRequest, request: Request) -> dict[str, Any]:
        actor = current_actor(request)
        result = await run_in_threadpool(
            request.app.state.pipeline.generate,
            payload.prompt,
            actor,
        )
        return envelope(result, "Resume generated successfully")

    @app.post("/resumes/generate-array")
    async def generate_resume_array(
        payload: GenerateResumeRequest,
        request: Request,
    ) -> dict[str, Any]:
        actor = current_actor(request)
        result = await run_in_threadpool(
            request.app.state.pipeline.generate_array,
            payload.prompt,
            actor,
        )
        return envelope(result, "Resume generated successfully")

    @app.post("/resumes/update-section")
    async def update_resume_section(
        payload: UpdateSectionRequest,
        request: Request,
    ) -> dict[str, Any]:
        actor = current_actor(request)
        result = await run_in_threadpool(
            request.app.state.pipeline.update_section,
            payload.section,
            payload.prompt,
            payload.current_resume,
            actor,
        )
        return envelope(result, f"Section '{result.section}' updated successfully")

    @app.post("/resumes/download")
    async def download_resume(payload: DownloadResumeRequest, request: Request) -> dict[str, Any]:
        actor = current_actor(request)
        artifact = await run_in_threadpool(
            request.app.state.pipeline.export_pdf,
            payload.document,
            actor,
        )
        return envelope(artifact, "Resume PDF generated successfully")

    @app.post("/resumes/score")
    async def score(payload: ScoreResumeRequest, request: Request) -> dict[str, Any]:
        current_actor(request)
        result = score_resume(payload.document, payload.job_description)
        return envelope(result, "Resume scored successfully")

    @app.post("/resumes/save")
    async def save_resume(payload: SaveResumeRequest, request: Request) -> dict[str, Any]:
        actor = current_actor(request)
        saved = await run_in_threadpool(
            request.app.state.repository.save_resume,
            user_id=actor.user_id,
            jobseeker_id=actor.jobseeker_id,
            name=payload.name,
            document=payload.document,
            prompt=payload.prompt,
            score=payload.score,
        )
        return envelope(saved, "Resume saved successfully")

    @app.get("/resumes/saved")
    async def list_saved_resumes(
        request: Request,
        limit: int = Query(default=50, ge=1, le=200),
    ) -> dict[str, Any]:
        actor = current_actor(request)
        saved = await run_in_threadpool(
            request.app.state.repository.list_saved_resumes,
            user_id=actor.user_id,
            limit=limit,
        )
        return envelope(saved, "Saved resumes fetched successfully")

    @app.get("/prompt-logs", response_model=list[PromptLogEntry])
    async def list_prompt_logs(
        request: Request,
        limit: int = Query(default=50, ge=1, le=500),
        status: str | None = Query(default=None, pattern="^(pending|completed|error)$"),
    ) -> list[PromptLogEntry]:
        actor = current_actor(request)
        return await run_in_threadpool(
            request.app.state.repository.list_prompt_logs,
            user_id=actor.user_id,
            limit=limit,
            status=status,
        )

    @app.get("/prompt-logs/{log_id}", response_model=PromptLogEntry)
    async def get_prompt_log(log_id: int, request: Request) -> PromptLogEntry:
        actor = current_actor(request)
        entry = await run_in_threadpool(
            request.app.state.repository.get_prompt_log,
            log_id,
            user_id=actor.user_id,
        )
        if entry is None:
            raise NotFoundError(f"Unknown prompt log id: {log_id}")
        return entry

    return app


app = create_app()


def run() -> None:
    logging.basicConfig(
        level=os.getenv("RESUMEAI_LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    uvicorn.run(
        "resumeai.main:app",
        host=os.getenv("RESUMEAI_HOST", "0.0.0.0"),
        port=int(os.getenv("RESUMEAI_PORT", "8003")),
    )
