"""FastAPI application entrypoint for projectcfg service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import ConfigError
from ..errors import ProjectCfgError
from ..orchestrator import TreeOutcome, apply_project

ApplyRunner = Callable[..., TreeOutcome]


class ApplyRequest(BaseModel):
    path: str
    dry_run: bool = False


class FileChange(BaseModel):
    path: str
    created: bool
    diff: str


class ProjectResult(BaseModel):
    project: str
    applied: List[str]
    skipped: List[str]
    changed_files: List[FileChange]


class ApplyResponse(BaseModel):
    status: str
    dry_run: bool
    projects: List[ProjectResult]


class HealthResponse(BaseModel):
    status: str


def _to_response(outcome: TreeOutcome) -> ApplyResponse:
    projects = [
        ProjectResult(
            project=report.project,
            applied=report.applied,
            skipped=report.skipped,
            changed_files=[
                FileChange(path=str(item.path), created=item.created, diff=item.diff)
                for item in report.files
                if item.changed
            ],
        )
        for report in outcome.reports
    ]
    status = "changed" if outcome.changed_files else "unchanged"
    return ApplyResponse(status=status, dry_run=outcome.dry_run, projects=projects)


def create_app(runner_factory: Callable[[], ApplyRunner] = lambda: apply_project) -> FastAPI:
    """Create the FastAPI application exposing convention runs."""

    app = FastAPI(title="projectcfg service", version="1.0.0")

    async def get_runner() -> ApplyRunner:
        return runner_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/apply", response_model=ApplyResponse)
    async def apply(
        payload: ApplyRequest,
        runner: ApplyRunner = Depends(get_runner),
    ) -> ApplyResponse:
        def _run() -> TreeOutcome:
            return runner(payload.path, dry_run=payload.dry_run)

        # runs are synchronous and touch the filesystem; keep them off the event loop
        loop = asyncio.get_running_loop()
        outcome = await loop.run_in_executor(None, _run)
        return _to_response(outcome)

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(_: Any, exc: FileNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ProjectCfgError)
    async def convention_error_handler(_: Any, exc: ProjectCfgError) -> JSONResponse:
        content: Dict[str, Any] = {
            "detail": str(exc),
            "module": exc.module,
            "operation": exc.operation,
        }
        return JSONResponse(status_code=400, content=content)

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(ValueError)
    async def invalid_request_handler(_: Any, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(host: str = "0.0.0.0", port: int = 8000) -> None:  # pragma: no cover - integration path
    import uvicorn

    uvicorn.run(create_app(), host=host, port=port)
