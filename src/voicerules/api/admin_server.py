"""Admin API for rule and settings records.

Thin CRUD surface over the rule store. Matching and execution never go
through here; this app only writes records and asks the engine to reload.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse

from voicerules.api.errors import ERROR_HEADER
from voicerules.api.routes import rules, settings
from voicerules.application.engine import RuleDispatchEngine
from voicerules.core.interfaces.rule_store import RuleStoreProtocol

logger = structlog.get_logger()


async def voicerules_http_exception_handler(
    request: Request,
    exc: HTTPException,
) -> JSONResponse:
    """Return standardized error responses for voicerules exceptions."""
    if exc.headers and exc.headers.get(ERROR_HEADER) == "1" and isinstance(exc.detail, dict):
        return JSONResponse(
            status_code=exc.status_code, content=exc.detail, headers=exc.headers
        )
    return await http_exception_handler(request, exc)


def create_app(store: RuleStoreProtocol, engine: RuleDispatchEngine | None = None) -> FastAPI:
    """Create the admin application.

    Args:
        store: Rule store the routes read and write.
        engine: Engine to reload after writes; one is created over ``store``
            if not given.
    """
    app = FastAPI(
        title="voicerules admin API",
        description="Create, update and delete utterance rules",
        version="1.0.0",
    )
    app.state.store = store
    app.state.engine = engine or RuleDispatchEngine(store)

    app.add_exception_handler(HTTPException, voicerules_http_exception_handler)
    app.include_router(rules.router, prefix="/api", tags=["rules"])
    app.include_router(settings.router, prefix="/api", tags=["settings"])
    return app


def run(store: RuleStoreProtocol, host: str = "127.0.0.1", port: int = 3000) -> None:
    """Serve the admin API with uvicorn."""
    import uvicorn

    logger.info("admin_server.starting", url=f"http://{host}:{port}/api/rules")
    uvicorn.run(create_app(store), host=host, port=port)
