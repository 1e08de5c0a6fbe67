"""Shared error-handling utilities for admin API routes.

Provides a single ``http_exception`` helper so that every route module
produces the same standardized ``ErrorResponse`` payload with the
``X-Voicerules-Error: 1`` header.
"""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status

from voicerules.api.schemas.errors import ErrorResponse
from voicerules.core.domain.errors import NotFoundError, ValidationError, VoiceRulesError

ERROR_HEADER = "X-Voicerules-Error"


def http_exception(
    *,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> HTTPException:
    """Build a standardized HTTPException with ErrorResponse payload.

    Args:
        status_code: HTTP status code.
        code: Machine-readable error code (e.g. ``"not_found"``).
        message: Human-readable error description.
        details: Optional structured error details.

    Returns:
        HTTPException ready to be raised from a route handler.
    """
    return HTTPException(
        status_code=status_code,
        detail=ErrorResponse(
            code=code, message=message, details=details, detail=message
        ).model_dump(exclude_none=True),
        headers={ERROR_HEADER: "1"},
    )


def from_domain_error(error: VoiceRulesError) -> HTTPException:
    """Map a domain error to the matching HTTP status."""
    if isinstance(error, NotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, ValidationError):
        status_code = status.HTTP_400_BAD_REQUEST
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return http_exception(
        status_code=status_code,
        code=error.code,
        message=error.message,
        details=error.details or None,
    )
