"""Wire schemas of the isolated process execution service."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ExecuteRequest(BaseModel):
    """Body of ``POST /execute``.

    ``language`` and ``code`` are optional here so that a missing value is
    reported as a 400 with an ``error`` message rather than a 422.
    """

    language: str | None = None
    code: str | None = None
    timeout: float = Field(30, gt=0)


class ExecuteResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    output: str
    error: str
    exit_code: int = Field(serialization_alias="exitCode")


class ServiceHealthResponse(BaseModel):
    status: str
    timestamp: str
