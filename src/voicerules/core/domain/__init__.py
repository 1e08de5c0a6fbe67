"""
Domain Models

This package contains the core domain models for voicerules:
- Rules, triggers and the closed set of response kinds
- The dispatch outcome type
- Application settings
- The error taxonomy
"""

from voicerules.core.domain.outcome import Handled, Outcome, Reply
from voicerules.core.domain.rule import (
    ApiCallResponse,
    AudioResponse,
    BuiltInCommandResponse,
    LocalCodeResponse,
    RemoteCodeResponse,
    Rule,
    SandboxCodeResponse,
    SshConfig,
    TerminalCommandResponse,
    TextResponse,
    Trigger,
    TriggerType,
    UnknownResponse,
)
from voicerules.core.domain.settings import AppSettings, OpenAISettings

__all__ = [
    "ApiCallResponse",
    "AppSettings",
    "AudioResponse",
    "BuiltInCommandResponse",
    "Handled",
    "LocalCodeResponse",
    "OpenAISettings",
    "Outcome",
    "RemoteCodeResponse",
    "Reply",
    "Rule",
    "SandboxCodeResponse",
    "SshConfig",
    "TerminalCommandResponse",
    "TextResponse",
    "Trigger",
    "TriggerType",
    "UnknownResponse",
]
