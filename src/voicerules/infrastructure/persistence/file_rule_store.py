"""File-based rule and settings store.

Directory layout::

    <data_dir>/
        custom-rules.json      – JSON array of rule records, order-significant
        custom-settings.json   – single settings object

Both files are always written whole: the new content goes to a temp file
which then replaces the original, so a concurrent reader sees either the
old or the new file, never a partial one.
"""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path
from typing import Any
from uuid import uuid4

import aiofiles
import structlog

from voicerules.core.domain.errors import (
    DuplicateTriggerError,
    NotFoundError,
    ValidationError,
)
from voicerules.core.domain.rule import Rule
from voicerules.core.domain.settings import AppSettings
from voicerules.core.utils.time import epoch_ms

logger = structlog.get_logger(__name__)

RULES_FILENAME = "custom-rules.json"
SETTINGS_FILENAME = "custom-settings.json"

# A parsed rule, or a record kept verbatim because it did not parse.
Entry = Rule | Any


def _rules_of(entries: list[Entry]) -> list[Rule]:
    return [e for e in entries if isinstance(e, Rule)]


def _validate_payload(payload: dict[str, Any]) -> None:
    trigger = payload.get("trigger") or {}
    response = payload.get("response") or {}
    if not trigger.get("keyword") or not response.get("type"):
        raise ValidationError("Trigger keyword and response type are required")


class FileRuleStore:
    """File-backed implementation of RuleStoreProtocol."""

    def __init__(self, data_dir: str | Path = ".voicerules") -> None:
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._rules_path = self._data_dir / RULES_FILENAME
        self._settings_path = self._data_dir / SETTINGS_FILENAME
        self._write_lock = asyncio.Lock()
        self._ensure_files()

    @property
    def rules_path(self) -> Path:
        return self._rules_path

    @property
    def settings_path(self) -> Path:
        return self._settings_path

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _ensure_files(self) -> None:
        if not self._rules_path.exists():
            self._rules_path.write_text("[]", encoding="utf-8")
        if not self._settings_path.exists():
            self._settings_path.write_text(
                json.dumps(AppSettings().to_dict(), indent=2, ensure_ascii=False),
                encoding="utf-8",
            )

    async def _read_json(self, path: Path) -> Any:
        try:
            async with aiofiles.open(path, encoding="utf-8") as f:
                raw = await f.read()
            return json.loads(raw)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("rule_store.read_failed", path=str(path), error=str(exc))
            return None

    async def _write_json(self, path: Path, data: Any) -> None:
        raw = json.dumps(data, indent=2, ensure_ascii=False)
        tmp = path.with_suffix(path.suffix + ".tmp")
        async with aiofiles.open(tmp, "w", encoding="utf-8") as f:
            await f.write(raw)
        os.replace(tmp, path)

    async def _load_entries(self) -> list[Entry]:
        """Read the rules file, keeping records that do not parse as raw data.

        Raw entries are never matched or listed but are written back in
        their original position, so a rewrite never drops them.
        """
        data = await self._read_json(self._rules_path)
        if not isinstance(data, list):
            return []
        entries: list[Entry] = []
        for item in data:
            try:
                entries.append(Rule.from_dict(item))
            except (ValidationError, TypeError, ValueError, AttributeError) as exc:
                logger.warning("rule_store.invalid_record", error=str(exc))
                entries.append(item)
        return entries

    async def _load(self) -> list[Rule]:
        return _rules_of(await self._load_entries())

    async def _save(self, entries: list[Entry]) -> None:
        await self._write_json(
            self._rules_path,
            [e.to_dict() if isinstance(e, Rule) else e for e in entries],
        )

    @staticmethod
    def _check_unique(entries: list[Entry], candidate: Rule) -> None:
        for rule in _rules_of(entries):
            if rule.id == candidate.id:
                continue
            if (
                rule.trigger.type == candidate.trigger.type
                and rule.trigger.keyword == candidate.trigger.keyword
            ):
                raise DuplicateTriggerError(
                    candidate.trigger.type.value, candidate.trigger.keyword
                )

    @staticmethod
    def _index_of(entries: list[Entry], rule_id: str) -> int:
        for index, entry in enumerate(entries):
            if isinstance(entry, Rule) and entry.id == rule_id:
                return index
        raise NotFoundError("Rule not found", details={"rule_id": rule_id})

    # ------------------------------------------------------------------
    # Protocol methods
    # ------------------------------------------------------------------

    async def list_rules(self) -> list[Rule]:
        """Return all rules in store order."""
        return await self._load()

    async def enabled_rules(self) -> list[Rule]:
        """Return the enabled rules in store order."""
        return [rule for rule in await self._load() if rule.enabled]

    async def get_rule(self, rule_id: str) -> Rule:
        rules = await self._load()
        return rules[self._index_of(rules, rule_id)]

    async def create_rule(self, payload: dict[str, Any]) -> Rule:
        """Create a rule from an admin payload, assigning id and createdAt."""
        _validate_payload(payload)
        rule = Rule.from_dict(
            {
                **payload,
                "id": str(uuid4()),
                "createdAt": epoch_ms(),
                "updatedAt": None,
            }
        )
        async with self._write_lock:
            entries = await self._load_entries()
            self._check_unique(entries, rule)
            entries.append(rule)
            await self._save(entries)

        logger.info(
            "rule_store.rule_created",
            rule_id=rule.id,
            trigger_type=rule.trigger.type.value,
            keyword=rule.trigger.keyword,
        )
        return rule

    async def update_rule(self, rule_id: str, payload: dict[str, Any]) -> Rule:
        """Replace a rule, keeping its id and createdAt."""
        _validate_payload(payload)
        async with self._write_lock:
            entries = await self._load_entries()
            index = self._index_of(entries, rule_id)
            existing = entries[index]
            rule = Rule.from_dict(
                {
                    **payload,
                    "id": existing.id,
                    "createdAt": existing.created_at,
                    "updatedAt": epoch_ms(),
                }
            )
            self._check_unique(entries, rule)
            entries[index] = rule
            await self._save(entries)

        logger.info("rule_store.rule_updated", rule_id=rule_id)
        return rule

    async def set_enabled(self, rule_id: str, enabled: bool) -> Rule:
        async with self._write_lock:
            entries = await self._load_entries()
            rule = entries[self._index_of(entries, rule_id)]
            rule.enabled = enabled
            await self._save(entries)

        logger.info("rule_store.rule_toggled", rule_id=rule_id, enabled=enabled)
        return rule

    async def delete_rule(self, rule_id: str) -> None:
        async with self._write_lock:
            entries = await self._load_entries()
            del entries[self._index_of(entries, rule_id)]
            await self._save(entries)

        logger.info("rule_store.rule_deleted", rule_id=rule_id)

    async def load_settings(self) -> AppSettings:
        data = await self._read_json(self._settings_path)
        if not isinstance(data, dict):
            return AppSettings()
        return AppSettings.from_dict(data)

    async def save_settings(self, settings: AppSettings) -> None:
        async with self._write_lock:
            await self._write_json(self._settings_path, settings.to_dict())
        logger.info("rule_store.settings_saved")
