"""Application layer: matching, dispatch, the engine and its configuration."""

from voicerules.application.dispatcher import ActionDispatcher, ExecutorSet
from voicerules.application.engine import EngineContext, RuleDispatchEngine
from voicerules.application.rule_matcher import match_rule, matches

__all__ = [
    "ActionDispatcher",
    "EngineContext",
    "ExecutorSet",
    "RuleDispatchEngine",
    "match_rule",
    "matches",
]
