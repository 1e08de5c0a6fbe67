"""Admin routes for rule records.

Every successful write refreshes the engine's snapshot so the next
utterance sees the change.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from voicerules.api.dependencies import get_engine, get_store
from voicerules.api.errors import from_domain_error
from voicerules.api.schemas.rules import RuleWriteResponse, SuccessResponse, ToggleRequest
from voicerules.application.engine import RuleDispatchEngine
from voicerules.core.domain.errors import VoiceRulesError
from voicerules.core.interfaces.rule_store import RuleStoreProtocol

router = APIRouter()


@router.get("/rules")
async def list_rules(store: RuleStoreProtocol = Depends(get_store)) -> list[dict[str, Any]]:
    """List all rules, enabled or not, in store order."""
    return [rule.to_dict() for rule in await store.list_rules()]


@router.post("/rules", response_model=RuleWriteResponse)
async def create_rule(
    payload: dict[str, Any] = Body(...),
    store: RuleStoreProtocol = Depends(get_store),
    engine: RuleDispatchEngine = Depends(get_engine),
) -> RuleWriteResponse:
    try:
        rule = await store.create_rule(payload)
    except VoiceRulesError as e:
        raise from_domain_error(e) from e
    await engine.reload()
    return RuleWriteResponse(rule=rule.to_dict())


@router.get("/rules/{rule_id}")
async def get_rule(
    rule_id: str, store: RuleStoreProtocol = Depends(get_store)
) -> dict[str, Any]:
    try:
        rule = await store.get_rule(rule_id)
    except VoiceRulesError as e:
        raise from_domain_error(e) from e
    return rule.to_dict()


@router.put("/rules/{rule_id}", response_model=RuleWriteResponse)
async def update_rule(
    rule_id: str,
    payload: dict[str, Any] = Body(...),
    store: RuleStoreProtocol = Depends(get_store),
    engine: RuleDispatchEngine = Depends(get_engine),
) -> RuleWriteResponse:
    try:
        rule = await store.update_rule(rule_id, payload)
    except VoiceRulesError as e:
        raise from_domain_error(e) from e
    await engine.reload()
    return RuleWriteResponse(rule=rule.to_dict())


@router.post("/rules/{rule_id}/enabled", response_model=RuleWriteResponse)
async def set_enabled(
    rule_id: str,
    request: ToggleRequest,
    store: RuleStoreProtocol = Depends(get_store),
    engine: RuleDispatchEngine = Depends(get_engine),
) -> RuleWriteResponse:
    try:
        rule = await store.set_enabled(rule_id, request.enabled)
    except VoiceRulesError as e:
        raise from_domain_error(e) from e
    await engine.reload()
    return RuleWriteResponse(rule=rule.to_dict())


@router.delete("/rules/{rule_id}", response_model=SuccessResponse)
async def delete_rule(
    rule_id: str,
    store: RuleStoreProtocol = Depends(get_store),
    engine: RuleDispatchEngine = Depends(get_engine),
) -> SuccessResponse:
    try:
        await store.delete_rule(rule_id)
    except VoiceRulesError as e:
        raise from_domain_error(e) from e
    await engine.reload()
    return SuccessResponse()
