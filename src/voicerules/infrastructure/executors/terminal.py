"""
Terminal Command Executor

Runs a rule's shell command locally or on a remote host over SSH.
POSIX shells only.

SSH password authentication pipes the password through ``sshpass``. The
password is part of the spawned command line, so every log line and every
error message is built from a redacted copy.
"""

from __future__ import annotations

import asyncio
import os
import shlex
import shutil
import signal
import sys
from dataclasses import dataclass

import structlog

from voicerules.core.domain.errors import (
    ConfigurationError,
    ExecutionError,
    RuleTimeoutError,
    VoiceRulesError,
)
from voicerules.core.domain.outcome import Outcome, Reply
from voicerules.core.domain.rule import SshConfig, TerminalCommandResponse
from voicerules.core.interfaces.device import DeviceProtocol

logger = structlog.get_logger(__name__)

MAX_OUTPUT_BYTES = 1024 * 1024
REDACTED = "***"
NO_OUTPUT = "Command completed with no output"
SSH_CONNECT_TIMEOUT = 10


def redact(text: str, secret: str | None) -> str:
    """Replace every occurrence of ``secret`` (raw or shell-quoted) in ``text``."""
    if not secret:
        return text
    quoted = shlex.quote(secret)
    if quoted != secret:
        text = text.replace(quoted, REDACTED)
    return text.replace(secret, REDACTED)


def _sshpass_install_hint() -> str:
    if sys.platform == "darwin":
        return "brew install sshpass"
    return "sudo apt-get install sshpass"


class _OutputLimitExceeded(Exception):
    pass


async def _drain(stream: asyncio.StreamReader | None, limit: int) -> bytes:
    if stream is None:
        return b""
    buf = bytearray()
    while True:
        chunk = await stream.read(65536)
        if not chunk:
            return bytes(buf)
        buf.extend(chunk)
        if len(buf) > limit:
            raise _OutputLimitExceeded


def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is not None:
        return
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except (ProcessLookupError, PermissionError):
        try:
            process.kill()
        except ProcessLookupError:
            pass


async def run_shell(
    command: str,
    *,
    timeout: float,
    cwd: str | None = None,
    env: dict[str, str] | None = None,
    secret: str | None = None,
    max_output: int = MAX_OUTPUT_BYTES,
) -> tuple[str, str]:
    """Run a shell command with a wall-clock timeout and bounded output.

    The command runs in its own process group so a timeout kills the
    whole pipeline, not only the shell.

    Returns:
        ``(stdout, stderr)`` decoded as UTF-8.

    Raises:
        RuleTimeoutError: The command did not finish within ``timeout``.
        ExecutionError: Spawn failure, output over ``max_output`` bytes, or
            a non-zero exit status.
    """
    try:
        process = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
            env=env,
            start_new_session=True,
        )
    except OSError as e:
        raise ExecutionError(redact(f"failed to start command: {e}", secret)) from e

    async def _collect() -> tuple[bytes, bytes]:
        readers = [
            asyncio.create_task(_drain(process.stdout, max_output)),
            asyncio.create_task(_drain(process.stderr, max_output)),
        ]
        try:
            out, err = await asyncio.gather(*readers)
        except BaseException:
            # A failed or cancelled gather leaves the other reader running.
            for reader in readers:
                reader.cancel()
            await asyncio.gather(*readers, return_exceptions=True)
            raise
        await process.wait()
        return out, err

    try:
        stdout_raw, stderr_raw = await asyncio.wait_for(_collect(), timeout=timeout)
    except TimeoutError as e:
        _kill(process)
        await process.wait()
        raise RuleTimeoutError(
            f"command timed out after {timeout:g}s", timeout=timeout
        ) from e
    except _OutputLimitExceeded as e:
        _kill(process)
        await process.wait()
        raise ExecutionError(f"output exceeded {max_output} bytes") from e
    except asyncio.CancelledError:
        _kill(process)
        raise

    stdout = redact(stdout_raw.decode("utf-8", errors="replace"), secret)
    stderr = redact(stderr_raw.decode("utf-8", errors="replace"), secret)

    if process.returncode != 0:
        raise ExecutionError(
            f"command exited with code {process.returncode}",
            stdout=stdout,
            stderr=stderr,
            details={"returncode": process.returncode},
        )
    return stdout, stderr


@dataclass(frozen=True)
class SshInvocation:
    """A ready-to-run ssh command line plus what it needs from the environment."""

    command: str
    secret: str | None = None
    env: dict[str, str] | None = None

    @property
    def redacted(self) -> str:
        return redact(self.command, self.secret)


def _remote_command(command: str, working_dir: str | None) -> str:
    if working_dir and working_dir != os.getcwd():
        return f"cd {shlex.quote(working_dir)} && {command}"
    return command


def build_ssh_invocation(
    command: str, ssh: SshConfig, working_dir: str | None = None
) -> SshInvocation:
    """Build the ssh (or sshpass + ssh) command line for a remote command.

    Raises:
        ConfigurationError: Missing host, username or credentials, or
            ``sshpass`` not installed for password authentication.
    """
    if not ssh.host or not ssh.username:
        raise ConfigurationError("SSH host and username are required")

    target = f"{ssh.username}@{ssh.host}"
    options = (
        f"-p {int(ssh.port or 22)} -o StrictHostKeyChecking=no "
        f"-o ConnectTimeout={SSH_CONNECT_TIMEOUT}"
    )
    remote = shlex.quote(_remote_command(command, working_dir))

    if ssh.auth_method == "key":
        if not ssh.private_key_path:
            raise ConfigurationError(
                "SSH key authentication requires a private key path"
            )
        key_path = os.path.abspath(os.path.expanduser(ssh.private_key_path))
        env = None
        if ssh.passphrase:
            env = {
                **os.environ,
                "SSH_ASKPASS": "",
                "DISPLAY": "",
                "SSH_ASKPASS_REQUIRE": "never",
            }
        return SshInvocation(
            command=f"ssh -i {shlex.quote(key_path)} {options} {target} {remote}",
            env=env,
        )

    if not ssh.password:
        raise ConfigurationError("SSH password authentication requires a password")
    if shutil.which("sshpass") is None:
        raise ConfigurationError(
            "SSH password authentication requires the sshpass tool: "
            f"{_sshpass_install_hint()}"
        )
    return SshInvocation(
        command=(
            f"sshpass -p {shlex.quote(ssh.password)} ssh {options} {target} {remote}"
        ),
        secret=ssh.password,
    )


def format_failure(error: VoiceRulesError, secret: str | None = None) -> str:
    """Compose the operator-facing failure text with captured output blocks."""
    text = f"Command failed: {redact(error.message, secret)}"
    stderr = redact(getattr(error, "stderr", "") or "", secret).strip()
    stdout = redact(getattr(error, "stdout", "") or "", secret).strip()
    if stderr:
        text += f"\n\nStderr:\n```\n{stderr}\n```"
    if stdout:
        text += f"\n\nStdout:\n```\n{stdout}\n```"
    return text


def _success_block(header: str, stdout: str, stderr: str, return_output: bool) -> str:
    if not return_output:
        return header
    output = (stdout or stderr or NO_OUTPUT).strip()
    return f"{header}:\n```\n{output}\n```"


class TerminalCommandExecutor:
    """Run a rule's terminal command locally or over SSH."""

    def __init__(self, max_output: int = MAX_OUTPUT_BYTES) -> None:
        self._max_output = max_output

    async def _run_local(self, response: TerminalCommandResponse) -> str:
        command = response.terminal_command or ""
        working_dir = response.terminal_working_dir or os.getcwd()
        timeout = float(response.terminal_timeout or 30)

        logger.info("terminal.local_started", command=command, cwd=working_dir)
        stdout, stderr = await run_shell(
            command, timeout=timeout, cwd=working_dir, max_output=self._max_output
        )
        return _success_block(
            "Command succeeded", stdout, stderr, response.terminal_return_output
        )

    async def _run_ssh(self, response: TerminalCommandResponse, ssh: SshConfig) -> str:
        command = response.terminal_command or ""
        timeout = float(response.terminal_timeout or 30)
        invocation = build_ssh_invocation(command, ssh, response.terminal_working_dir)

        logger.info(
            "terminal.ssh_started",
            target=f"{ssh.username}@{ssh.host}:{ssh.port}",
            command=redact(command, ssh.password),
            invocation=invocation.redacted,
        )
        stdout, stderr = await run_shell(
            invocation.command,
            timeout=timeout,
            env=invocation.env,
            secret=invocation.secret,
            max_output=self._max_output,
        )
        return _success_block(
            f"SSH command succeeded ({ssh.username}@{ssh.host})",
            stdout,
            stderr,
            response.terminal_return_output,
        )

    async def execute(
        self, response: TerminalCommandResponse, device: DeviceProtocol
    ) -> Outcome:
        secret = response.ssh.password if response.ssh else None
        try:
            if not response.terminal_command:
                raise ConfigurationError("Terminal command is not configured")
            if response.ssh:
                text = await self._run_ssh(response, response.ssh)
            else:
                text = await self._run_local(response)
        except VoiceRulesError as e:
            logger.error(
                "terminal.failed",
                error=redact(e.message, secret),
                code=e.code,
            )
            return Reply(format_failure(e, secret))

        return Reply(text)
