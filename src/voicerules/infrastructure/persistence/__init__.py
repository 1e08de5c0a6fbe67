"""Persistence adapters."""

from voicerules.infrastructure.persistence.file_rule_store import FileRuleStore

__all__ = ["FileRuleStore"]
