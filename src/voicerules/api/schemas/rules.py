"""Schemas for the admin rule and settings endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class RuleWriteResponse(BaseModel):
    success: bool = True
    rule: dict[str, Any]


class SuccessResponse(BaseModel):
    success: bool = True
    message: str | None = None


class ToggleRequest(BaseModel):
    enabled: bool
