"""Application settings consumed (never mutated) by the dispatch engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_CALL_AI_KEYWORDS = ["请", "你"]
DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant. Answer the user's question."
DEFAULT_HISTORY_MAX_LENGTH = 10


@dataclass(frozen=True)
class OpenAISettings:
    """Credentials for the language-model pipeline."""

    api_key: str | None = None
    base_url: str | None = None
    model: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.api_key is not None:
            data["apiKey"] = self.api_key
        if self.base_url is not None:
            data["baseUrl"] = self.base_url
        if self.model is not None:
            data["model"] = self.model
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OpenAISettings:
        return cls(
            api_key=data.get("apiKey"),
            base_url=data.get("baseUrl"),
            model=data.get("model"),
        )


@dataclass(frozen=True)
class AppSettings:
    """Persisted settings record.

    Attributes:
        call_ai_keywords: Prefixes that gate the default language-model path.
        system_prompt: System prompt for the language-model pipeline.
        history_max_length: Number of history messages carried per turn.
        openai: Optional model credentials.
    """

    call_ai_keywords: list[str] = field(
        default_factory=lambda: list(DEFAULT_CALL_AI_KEYWORDS)
    )
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    history_max_length: int = DEFAULT_HISTORY_MAX_LENGTH
    openai: OpenAISettings | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "callAIKeywords": list(self.call_ai_keywords),
            "systemPrompt": self.system_prompt,
            "historyMaxLength": self.history_max_length,
        }
        if self.openai is not None:
            data["openai"] = self.openai.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppSettings:
        openai_raw = data.get("openai")
        return cls(
            call_ai_keywords=[str(k) for k in data.get("callAIKeywords", DEFAULT_CALL_AI_KEYWORDS)],
            system_prompt=str(data.get("systemPrompt", DEFAULT_SYSTEM_PROMPT)),
            history_max_length=int(data.get("historyMaxLength", DEFAULT_HISTORY_MAX_LENGTH)),
            openai=OpenAISettings.from_dict(openai_raw) if isinstance(openai_raw, dict) else None,
        )
