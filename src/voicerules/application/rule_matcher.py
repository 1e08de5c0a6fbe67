"""Utterance-to-rule matching.

Matching is case-sensitive and does no trimming: the keyword is compared
against the utterance exactly as the speech recognizer produced it.
"""

from __future__ import annotations

from collections.abc import Iterable

from voicerules.core.domain.rule import Rule, Trigger, TriggerType


def matches(text: str, trigger: Trigger) -> bool:
    """Check whether an utterance satisfies a trigger predicate."""
    keyword = trigger.keyword
    if trigger.type is TriggerType.EXACT:
        return text == keyword
    if trigger.type is TriggerType.STARTS_WITH:
        return text.startswith(keyword)
    if trigger.type is TriggerType.CONTAINS:
        return keyword in text
    if trigger.type is TriggerType.ENDS_WITH:
        return text.endswith(keyword)
    return False


def match_rule(text: str, rules: Iterable[Rule]) -> Rule | None:
    """Return the first enabled rule, in store order, whose trigger holds."""
    for rule in rules:
        if rule.enabled and matches(text, rule.trigger):
            return rule
    return None
