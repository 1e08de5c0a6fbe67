"""Routes of the isolated process execution service."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from voicerules.api.schemas.errors import ExecutorErrorResponse
from voicerules.api.schemas.execution import (
    ExecuteRequest,
    ExecuteResponse,
    ServiceHealthResponse,
)
from voicerules.core.domain.errors import UnsupportedLanguageError, VoiceRulesError
from voicerules.core.utils.time import utc_now
from voicerules.infrastructure.sandbox.process_runner import run_source

router = APIRouter()
logger = structlog.get_logger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ExecutorErrorResponse(error=message).model_dump(),
    )


@router.post(
    "/execute",
    response_model=ExecuteResponse,
    responses={400: {"model": ExecutorErrorResponse}, 500: {"model": ExecutorErrorResponse}},
)
async def execute(request: ExecuteRequest):
    """Run code in a throwaway directory and return its captured output."""
    if not request.language or not request.code:
        return _error(
            status.HTTP_400_BAD_REQUEST, "Missing required parameters: language and code"
        )

    try:
        result = await run_source(request.language, request.code, request.timeout)
    except UnsupportedLanguageError as e:
        return _error(status.HTTP_400_BAD_REQUEST, e.message)
    except VoiceRulesError as e:
        logger.error("execute.failed", language=request.language, error=e.message)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, e.message)

    logger.info("execute.completed", language=request.language, exit_code=result.exit_code)
    return ExecuteResponse(
        success=True,
        output=result.stdout,
        error=result.stderr,
        exit_code=result.exit_code,
    )


@router.get("/health", response_model=ServiceHealthResponse)
async def health() -> ServiceHealthResponse:
    """Liveness probe."""
    return ServiceHealthResponse(status="ok", timestamp=utc_now().isoformat())
