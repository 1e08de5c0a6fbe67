"""
Rule Store Protocol

Durable, ordered collection of rule records plus the settings record.
The dispatch engine only reads from it; writes come from the admin surface.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from voicerules.core.domain.rule import Rule
    from voicerules.core.domain.settings import AppSettings


class RuleStoreProtocol(Protocol):
    """Protocol for rule and settings persistence."""

    async def list_rules(self) -> list[Rule]:
        """Return all rules in store order."""
        ...

    async def enabled_rules(self) -> list[Rule]:
        """Return the enabled rules in store order."""
        ...

    async def get_rule(self, rule_id: str) -> Rule:
        """Return one rule.

        Raises:
            NotFoundError: If no rule has this id.
        """
        ...

    async def create_rule(self, payload: dict[str, Any]) -> Rule:
        """Create a rule, assigning ``id`` and ``createdAt``.

        Raises:
            ValidationError: If the payload lacks a keyword or response type.
            DuplicateTriggerError: If the trigger collides with another rule.
        """
        ...

    async def update_rule(self, rule_id: str, payload: dict[str, Any]) -> Rule:
        """Replace a rule, keeping its ``id`` and ``createdAt``."""
        ...

    async def set_enabled(self, rule_id: str, enabled: bool) -> Rule:
        """Flip the enabled flag in place."""
        ...

    async def delete_rule(self, rule_id: str) -> None:
        """Delete a rule by id."""
        ...

    async def load_settings(self) -> AppSettings:
        """Return the current settings record."""
        ...

    async def save_settings(self, settings: AppSettings) -> None:
        """Replace the settings record."""
        ...
