"""Isolated process execution service.

A small FastAPI app that receives ``{language, code, timeout}``, runs the
code in a disposable directory and reports stdout, stderr and exit code.
"""

from __future__ import annotations

import os

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from voicerules.api.routes import execute

logger = structlog.get_logger()

DEFAULT_PORT = 3001
PORT_ENV = "REMOTE_EXECUTOR_PORT"


def get_port() -> int:
    """Listen port from ``REMOTE_EXECUTOR_PORT``, defaulting to 3001."""
    raw = os.getenv(PORT_ENV)
    try:
        return int(raw) if raw else DEFAULT_PORT
    except ValueError:
        logger.warning("executor_server.invalid_port", value=raw, default=DEFAULT_PORT)
        return DEFAULT_PORT


def create_app() -> FastAPI:
    """Create the execution service application."""
    app = FastAPI(
        title="voicerules execution service",
        description="Runs python/node code in disposable directories",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.include_router(execute.router, tags=["execution"])
    return app


def run(host: str = "0.0.0.0", port: int | None = None) -> None:
    """Serve the execution service with uvicorn."""
    import uvicorn

    port = port or get_port()
    logger.info(
        "executor_server.starting",
        url=f"http://localhost:{port}",
        execute=f"http://localhost:{port}/execute",
        health=f"http://localhost:{port}/health",
    )
    uvicorn.run(create_app(), host=host, port=port)
