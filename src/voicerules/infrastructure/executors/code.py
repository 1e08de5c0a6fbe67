"""
Code Executors

Runs operator-authored Python attached to a rule. The source becomes the
body of an ``async def`` so it may ``await`` (``await sleep(500)``) and
``return`` a value.

Two trust tiers, enforced by what the compiled function's globals contain:

- Local code is trusted extension code: full builtins, the device handle
  as ``engine`` and a ``sleep(ms)`` helper.
- Sandbox code gets an allow-listed builtins table and only ``log``,
  ``sleep``, ``datetime``, ``timedelta``, ``math`` and a ``json`` holding
  ``dumps``/``loads``. There is no ``engine``, no ``__import__`` and no
  ``open``. The source is checked before compiling: names starting with
  ``_`` and frame or code attributes (``gi_frame``, ``f_globals``, ...)
  are refused.
"""

from __future__ import annotations

import ast
import asyncio
import builtins
import json
import math
import textwrap
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from types import SimpleNamespace
from typing import Any

import structlog

from voicerules.core.domain.errors import ExecutionError
from voicerules.core.domain.outcome import Handled, Outcome, Reply
from voicerules.core.domain.rule import LocalCodeResponse, SandboxCodeResponse
from voicerules.core.interfaces.device import DeviceProtocol

logger = structlog.get_logger(__name__)

_ENTRYPOINT = "__rule_main__"

# Dunders plus the frame and code handles of generators, coroutines and
# tracebacks, which lead back to unrestricted globals.
_BLOCKED_ATTRIBUTE_PREFIXES = ("_", "gi_", "cr_", "ag_", "f_", "tb_", "co_")

_SANDBOX_BUILTINS = {
    name: getattr(builtins, name)
    for name in (
        "abs", "all", "any", "bool", "dict", "divmod", "enumerate", "filter",
        "float", "format", "frozenset", "int", "isinstance", "len", "list",
        "map", "max", "min", "next", "range", "repr", "reversed", "round",
        "set", "sorted", "str", "sum", "tuple", "zip",
        "Exception", "ValueError", "TypeError", "KeyError", "IndexError",
        "ZeroDivisionError", "RuntimeError", "StopIteration",
    )
    if hasattr(builtins, name)
}


async def _sleep_ms(ms: float) -> None:
    await asyncio.sleep(ms / 1000)


def _check_restricted_names(tree: ast.AST) -> None:
    for node in ast.walk(tree):
        if isinstance(node, ast.Attribute):
            name = node.attr
            blocked = name.startswith(_BLOCKED_ATTRIBUTE_PREFIXES)
        elif isinstance(node, ast.Name):
            name = node.id
            blocked = name.startswith("_")
        else:
            continue
        if blocked:
            raise ExecutionError(
                f"access to '{name}' is not allowed",
                details={"lineno": getattr(node, "lineno", None)},
            )


def compile_async_unit(
    source: str, namespace: dict[str, Any], *, restricted: bool = False
) -> Callable[[], Awaitable[Any]]:
    """Compile ``source`` as the body of a coroutine function.

    The statements are parsed on their own and grafted into the function
    node, so multi-line string literals keep their exact contents.

    Args:
        source: Statements to run. ``return`` and ``await`` are allowed.
        namespace: Globals the code sees, including ``__builtins__``.
        restricted: Reject private names and introspection attributes.

    Returns:
        A zero-argument coroutine function.

    Raises:
        SyntaxError: If the source does not compile.
        ExecutionError: If ``restricted`` and the source touches a blocked
            name or attribute.
    """
    statements = ast.parse(textwrap.dedent(source), "<rule>").body
    if restricted:
        for statement in statements:
            _check_restricted_names(statement)

    module = ast.parse(f"async def {_ENTRYPOINT}():\n    pass\n", "<rule>")
    if statements:
        module.body[0].body = statements
    code = compile(ast.fix_missing_locations(module), "<rule>", "exec")
    exec(code, namespace)
    return namespace.pop(_ENTRYPOINT)


def to_outcome(result: Any) -> Outcome:
    """Normalize whatever rule code returned into an outcome."""
    if isinstance(result, (Reply, Handled)):
        return result
    if isinstance(result, str):
        return Reply(result)
    if isinstance(result, dict):
        if isinstance(result.get("text"), str):
            return Reply(result["text"])
        if result.get("handled"):
            return Handled()
    return Handled()


def _preview(code: str) -> str:
    return code[:100] + "..." if len(code) > 100 else code


class LocalCodeExecutor:
    """Run trusted rule code with full access to the device handle."""

    async def execute(self, response: LocalCodeResponse, device: DeviceProtocol) -> Outcome:
        code = response.local_code
        if not code:
            return Handled()

        logger.info("local_code.started", code_preview=_preview(code))
        namespace: dict[str, Any] = {
            "__builtins__": builtins,
            "__name__": "rule_local_code",
            "engine": device,
            "sleep": _sleep_ms,
        }
        try:
            unit = compile_async_unit(code, namespace)
            result = await unit()
        except Exception as e:
            logger.error(
                "local_code.failed",
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            return Reply(f"Local code execution failed: {e}")

        logger.info("local_code.completed", result=repr(result)[:200])
        return to_outcome(result)


class SandboxCodeExecutor:
    """Run rule code with a reduced capability set and no device access.

    Faults are raised as ``ExecutionError`` rather than converted here; the
    dispatcher turns them into the generic failure reply.
    """

    def _namespace(self) -> dict[str, Any]:
        return {
            "__builtins__": dict(_SANDBOX_BUILTINS),
            "__name__": "rule_sandbox_code",
            "log": logger.bind(sandbox=True),
            "sleep": _sleep_ms,
            "datetime": datetime,
            "timedelta": timedelta,
            "math": math,
            "json": SimpleNamespace(dumps=json.dumps, loads=json.loads),
        }

    async def execute(
        self, response: SandboxCodeResponse, device: DeviceProtocol
    ) -> Outcome:
        code = response.sandbox_code
        if not code:
            return Handled()

        try:
            unit = compile_async_unit(code, self._namespace(), restricted=True)
            result = await unit()
        except Exception as e:
            logger.error("sandbox_code.failed", error=str(e), error_type=type(e).__name__)
            raise ExecutionError(f"Sandbox code execution failed: {e}") from e

        return to_outcome(result)
