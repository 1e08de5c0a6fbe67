"""Domain-specific exception types for voicerules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class VoiceRulesError(Exception):
    """Base exception for voicerules domain errors."""

    message: str
    code: str = "voicerules_error"
    details: Dict[str, Any] | None = None
    status_code: int | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)
        if self.details is None:
            self.details = {}


class ConfigurationError(VoiceRulesError):
    """A rule is missing a field it needs (URL, code, command, credentials)."""

    def __init__(self, message: str, *, details: Dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code="configuration_error", details=details)


class ExecutionError(VoiceRulesError):
    """Non-zero exit, spawn failure, shell or SSH failure.

    ``stdout`` and ``stderr`` carry whatever the failed process produced so
    the terminal executor can show them to the operator.
    """

    def __init__(
        self,
        message: str,
        *,
        stdout: str = "",
        stderr: str = "",
        details: Dict[str, Any] | None = None,
        code: str = "execution_error",
    ) -> None:
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(message=message, code=code, details=details)


class RuleTimeoutError(ExecutionError):
    """A deadline was exceeded and the invocation was aborted."""

    def __init__(
        self,
        message: str,
        *,
        timeout: float | None = None,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        details: Dict[str, Any] = {}
        if timeout is not None:
            details["timeout"] = timeout
        self.timeout = timeout
        super().__init__(
            message, stdout=stdout, stderr=stderr, details=details, code="timeout"
        )


class ParseError(VoiceRulesError):
    """Malformed JSON or a missing extraction path."""

    def __init__(self, message: str, *, details: Dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code="parse_error", details=details)


class NetworkError(VoiceRulesError):
    """Transport failure or non-2xx status from an outbound call."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        body: str | None = None,
    ) -> None:
        details: Dict[str, Any] = {}
        if status is not None:
            details["status"] = status
        if body is not None:
            details["body"] = body
        self.status = status
        self.body = body
        super().__init__(message=message, code="network_error", details=details)


class UnknownKindError(VoiceRulesError):
    """A rule carries a response kind the dispatcher does not recognize."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(
            message=f"Unknown response kind: {kind}",
            code="unknown_kind",
            details={"kind": kind},
        )


class UnsupportedLanguageError(VoiceRulesError):
    """The isolated process runner has no interpreter for a language."""

    def __init__(self, language: str) -> None:
        self.language = language
        super().__init__(
            message=f"Unsupported language: {language}",
            code="unsupported_language",
            details={"language": language},
        )


class ValidationError(VoiceRulesError):
    """Error raised for invalid rule or settings payloads."""

    def __init__(self, message: str, *, details: Dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code="validation_error", details=details)


class DuplicateTriggerError(ValidationError):
    """Another rule already uses the same ``(trigger.type, trigger.keyword)``."""

    def __init__(self, trigger_type: str, keyword: str) -> None:
        super().__init__(
            "A rule with this trigger already exists",
            details={"type": trigger_type, "keyword": keyword},
        )
        self.code = "duplicate_trigger"


class NotFoundError(VoiceRulesError):
    """Error raised when a rule is not found."""

    def __init__(self, message: str, *, details: Dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code="not_found", details=details)
