"""Isolated process execution."""

from voicerules.infrastructure.sandbox.process_runner import (
    ProcessResult,
    resolve_interpreter,
    run_source,
)

__all__ = ["ProcessResult", "resolve_interpreter", "run_source"]
