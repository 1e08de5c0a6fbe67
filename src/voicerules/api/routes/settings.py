"""Admin routes for the settings record and explicit reloads."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from voicerules.api.dependencies import get_engine, get_store
from voicerules.api.errors import from_domain_error
from voicerules.api.schemas.rules import SuccessResponse
from voicerules.application.engine import RuleDispatchEngine
from voicerules.core.domain.errors import ValidationError, VoiceRulesError
from voicerules.core.domain.settings import AppSettings
from voicerules.core.interfaces.rule_store import RuleStoreProtocol

router = APIRouter()


@router.get("/settings")
async def get_settings(store: RuleStoreProtocol = Depends(get_store)) -> dict[str, Any]:
    return (await store.load_settings()).to_dict()


@router.post("/settings", response_model=SuccessResponse)
async def save_settings(
    payload: dict[str, Any] = Body(...),
    store: RuleStoreProtocol = Depends(get_store),
    engine: RuleDispatchEngine = Depends(get_engine),
) -> SuccessResponse:
    try:
        try:
            settings = AppSettings.from_dict(payload)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid settings: {e}") from e
        await store.save_settings(settings)
    except VoiceRulesError as e:
        raise from_domain_error(e) from e
    await engine.reload()
    return SuccessResponse()


@router.post("/reload", response_model=SuccessResponse)
async def reload(engine: RuleDispatchEngine = Depends(get_engine)) -> SuccessResponse:
    """Refresh the engine snapshot from the store."""
    context = await engine.reload()
    return SuccessResponse(message=f"Configuration reloaded ({len(context.rules)} enabled rules)")
