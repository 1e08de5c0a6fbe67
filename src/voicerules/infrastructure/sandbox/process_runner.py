"""
Isolated Process Runner

Runs a piece of source code in a throwaway directory with a fresh
interpreter process. Every invocation gets its own ``remote-exec-*``
temporary directory, which is removed on every exit path.
"""

from __future__ import annotations

import asyncio
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

import structlog

from voicerules.core.domain.errors import (
    ExecutionError,
    RuleTimeoutError,
    UnsupportedLanguageError,
)

logger = structlog.get_logger(__name__)

TEMP_PREFIX = "remote-exec-"


@dataclass(frozen=True)
class Interpreter:
    command: str
    filename: str


INTERPRETERS: dict[str, Interpreter] = {
    "python": Interpreter(command="python3", filename="script.py"),
    "node": Interpreter(command="node", filename="script.js"),
}

LANGUAGE_ALIASES = {
    "python": "python",
    "node": "node",
    "nodejs": "node",
    "javascript": "node",
}


@dataclass(frozen=True)
class ProcessResult:
    """Captured result of one child process."""

    stdout: str
    stderr: str
    exit_code: int


def resolve_interpreter(language: str) -> Interpreter:
    """Map a language name to its interpreter.

    Raises:
        UnsupportedLanguageError: If the language is not supported.
    """
    key = LANGUAGE_ALIASES.get(language.lower())
    if key is None:
        raise UnsupportedLanguageError(language)
    return INTERPRETERS[key]


async def run_source(language: str, code: str, timeout: float = 30) -> ProcessResult:
    """Write ``code`` to a temp file and run it with the matching interpreter.

    Args:
        language: ``python``, ``node``, ``nodejs`` or ``javascript``.
        code: Source to run.
        timeout: Wall-clock limit in seconds.

    Returns:
        Trimmed stdout/stderr and the exit code.

    Raises:
        UnsupportedLanguageError: Unknown language; nothing is written.
        RuleTimeoutError: The process outlived ``timeout`` and was killed.
        ExecutionError: The interpreter could not be started.
    """
    interpreter = resolve_interpreter(language)
    temp_dir = Path(tempfile.mkdtemp(prefix=TEMP_PREFIX))
    try:
        script = temp_dir / interpreter.filename
        script.write_text(code, encoding="utf-8")

        try:
            process = await asyncio.create_subprocess_exec(
                interpreter.command,
                str(script),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(temp_dir),
            )
        except OSError as e:
            raise ExecutionError(
                f"failed to start {interpreter.command}: {e}"
            ) from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=timeout
            )
        except TimeoutError as e:
            process.kill()
            await process.wait()
            raise RuleTimeoutError(
                f"execution timed out after {timeout:g}s", timeout=timeout
            ) from e
        except asyncio.CancelledError:
            process.kill()
            raise

        return ProcessResult(
            stdout=stdout.decode("utf-8", errors="replace").strip(),
            stderr=stderr.decode("utf-8", errors="replace").strip(),
            exit_code=process.returncode or 0,
        )
    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)
        logger.debug("process_runner.cleaned_up", temp_dir=str(temp_dir))
