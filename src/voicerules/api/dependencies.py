"""FastAPI dependencies for the admin API."""

from __future__ import annotations

from fastapi import Request

from voicerules.application.engine import RuleDispatchEngine
from voicerules.core.interfaces.rule_store import RuleStoreProtocol


def get_store(request: Request) -> RuleStoreProtocol:
    return request.app.state.store


def get_engine(request: Request) -> RuleDispatchEngine:
    return request.app.state.engine
