"""
Executors Package

One executor per response kind. Each exposes
``async execute(response, device) -> Outcome``.
"""

from voicerules.infrastructure.executors.api_call import ApiCallExecutor
from voicerules.infrastructure.executors.code import LocalCodeExecutor, SandboxCodeExecutor
from voicerules.infrastructure.executors.remote_code import RemoteCodeExecutor
from voicerules.infrastructure.executors.speech import (
    AudioExecutor,
    DeviceCommandExecutor,
    ReplyExecutor,
)
from voicerules.infrastructure.executors.terminal import TerminalCommandExecutor

__all__ = [
    "ApiCallExecutor",
    "AudioExecutor",
    "DeviceCommandExecutor",
    "LocalCodeExecutor",
    "RemoteCodeExecutor",
    "ReplyExecutor",
    "SandboxCodeExecutor",
    "TerminalCommandExecutor",
]
