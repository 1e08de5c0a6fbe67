"""Protocols the core depends on; implemented by infrastructure or collaborators."""

from voicerules.core.interfaces.device import DeviceProtocol, SpeechEventSourceProtocol
from voicerules.core.interfaces.executor import ExecutorProtocol
from voicerules.core.interfaces.rule_store import RuleStoreProtocol

__all__ = ["DeviceProtocol", "ExecutorProtocol", "RuleStoreProtocol", "SpeechEventSourceProtocol"]
