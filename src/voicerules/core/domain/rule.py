"""Rule domain models for the utterance dispatch engine.

A rule pairs a trigger (how an utterance is matched) with a response (what
happens when it matches). Responses are a closed set of frozen dataclasses,
one per response kind, so the dispatcher can match on them exhaustively.

Records are persisted in camelCase JSON. Each response field carries its
on-disk key in ``metadata["json"]``; fields without one are derived from
the ``type`` selector and never written.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, ClassVar, Union
from uuid import uuid4

from voicerules.core.domain.errors import ValidationError
from voicerules.core.utils.time import epoch_ms

DEFAULT_TIMEOUT_SECONDS = 30.0


def _json(key: str) -> dict[str, str]:
    return {"json": key}


class TriggerType(str, Enum):
    """How a trigger keyword is compared against an utterance."""

    EXACT = "exact"
    STARTS_WITH = "startsWith"
    CONTAINS = "contains"
    ENDS_WITH = "endsWith"


@dataclass(frozen=True)
class Trigger:
    """Predicate deciding whether a rule applies to an utterance."""

    type: TriggerType
    keyword: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "keyword": self.keyword}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Trigger:
        raw_type = data.get("type")
        try:
            trigger_type = TriggerType(raw_type)
        except ValueError as exc:
            raise ValidationError(
                f"Unknown trigger type: {raw_type}", details={"type": raw_type}
            ) from exc
        return cls(type=trigger_type, keyword=str(data.get("keyword", "")))


@dataclass(frozen=True)
class SshConfig:
    """Connection settings for running a terminal command over SSH."""

    host: str = ""
    port: int = 22
    username: str = ""
    auth_method: str = "key"
    private_key_path: str | None = None
    passphrase: str | None = None
    password: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "username": self.username,
            "authMethod": self.auth_method,
        }
        if self.private_key_path is not None:
            data["privateKeyPath"] = self.private_key_path
        if self.passphrase is not None:
            data["passphrase"] = self.passphrase
        if self.password is not None:
            data["password"] = self.password
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SshConfig:
        return cls(
            host=str(data.get("host", "")),
            port=int(data.get("port") or 22),
            username=str(data.get("username", "")),
            auth_method=str(data.get("authMethod", "key")),
            private_key_path=data.get("privateKeyPath"),
            passphrase=data.get("passphrase"),
            password=data.get("password"),
        )


@dataclass(frozen=True)
class Response:
    """Base class for every response kind."""

    kind: ClassVar[str] = ""

    @property
    def type(self) -> str:
        return self.kind

    def to_dict(self) -> dict[str, Any]:
        """Serialize for storage, omitting unset optional fields."""
        data: dict[str, Any] = {"type": self.type}
        for f in fields(self):
            key = f.metadata.get("json")
            if key is None:
                continue
            value = getattr(self, f.name)
            if value is None:
                continue
            if isinstance(value, SshConfig):
                value = value.to_dict()
            elif isinstance(value, dict):
                value = dict(value)
            data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Response:
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            key = f.metadata.get("json")
            if key is not None and data.get(key) is not None:
                kwargs[f.name] = data[key]
        return cls(**kwargs)


@dataclass(frozen=True)
class TextResponse(Response):
    kind: ClassVar[str] = "text"

    text: str = field(default="", metadata=_json("text"))
    abort_xiaoai: bool = field(default=False, metadata=_json("abortXiaoAI"))
    play_blocking: bool = field(default=True, metadata=_json("playBlocking"))


@dataclass(frozen=True)
class AudioResponse(Response):
    kind: ClassVar[str] = "audio"

    audio_text: str | None = field(default=None, metadata=_json("audioText"))
    audio_url: str | None = field(default=None, metadata=_json("audioUrl"))


@dataclass(frozen=True)
class BuiltInCommandResponse(Response):
    kind: ClassVar[str] = "builtInCommand"

    built_in_command: str | None = field(default=None, metadata=_json("builtInCommand"))
    abort_xiaoai: bool = field(default=False, metadata=_json("abortXiaoAI"))


@dataclass(frozen=True)
class LocalCodeResponse(Response):
    kind: ClassVar[str] = "localCode"

    local_code: str | None = field(default=None, metadata=_json("localCode"))


@dataclass(frozen=True)
class SandboxCodeResponse(Response):
    kind: ClassVar[str] = "sandboxCode"

    sandbox_code: str | None = field(default=None, metadata=_json("sandboxCode"))


@dataclass(frozen=True)
class ApiCallResponse(Response):
    kind: ClassVar[str] = "apiCall"

    api_url: str | None = field(default=None, metadata=_json("apiUrl"))
    api_method: str = field(default="GET", metadata=_json("apiMethod"))
    api_headers: dict[str, str] = field(default_factory=dict, metadata=_json("apiHeaders"))
    api_body: str | None = field(default=None, metadata=_json("apiBody"))
    api_response_type: str = field(default="auto", metadata=_json("apiResponseType"))
    api_response_path: str | None = field(default=None, metadata=_json("apiResponsePath"))
    api_response_fallback: str | None = field(
        default=None, metadata=_json("apiResponseFallback")
    )


@dataclass(frozen=True)
class RemoteCodeResponse(Response):
    """Code shipped to the isolated process execution service.

    ``language`` is not stored as a field; it is implied by the
    ``pythonRemote`` / ``nodeRemote`` selector.
    """

    language: str = "python"
    remote_url: str | None = field(default=None, metadata=_json("remoteUrl"))
    remote_code: str | None = field(default=None, metadata=_json("remoteCode"))
    remote_timeout: float = field(
        default=DEFAULT_TIMEOUT_SECONDS, metadata=_json("remoteTimeout")
    )

    @property
    def type(self) -> str:
        return "nodeRemote" if self.language == "node" else "pythonRemote"


@dataclass(frozen=True)
class TerminalCommandResponse(Response):
    kind: ClassVar[str] = "terminalCommand"

    terminal_command: str | None = field(default=None, metadata=_json("terminalCommand"))
    terminal_working_dir: str | None = field(
        default=None, metadata=_json("terminalWorkingDir")
    )
    terminal_timeout: float = field(
        default=DEFAULT_TIMEOUT_SECONDS, metadata=_json("terminalTimeout")
    )
    terminal_return_output: bool = field(
        default=True, metadata=_json("terminalReturnOutput")
    )
    ssh: SshConfig | None = field(default=None, metadata=_json("ssh"))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TerminalCommandResponse:
        ssh_raw = data.get("ssh")
        base = dict(data)
        base.pop("ssh", None)
        response = super().from_dict(base)
        assert isinstance(response, TerminalCommandResponse)
        if isinstance(ssh_raw, dict):
            return replace(response, ssh=SshConfig.from_dict(ssh_raw))
        return response


@dataclass(frozen=True)
class UnknownResponse(Response):
    """A stored response whose ``type`` this version does not understand.

    Kept verbatim so it survives a load/save cycle untouched.
    """

    raw_type: str = ""
    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def type(self) -> str:
        return self.raw_type

    def to_dict(self) -> dict[str, Any]:
        return dict(self.raw)


ResponseVariant = Union[
    TextResponse,
    AudioResponse,
    BuiltInCommandResponse,
    LocalCodeResponse,
    SandboxCodeResponse,
    ApiCallResponse,
    RemoteCodeResponse,
    TerminalCommandResponse,
    UnknownResponse,
]

_RESPONSE_TYPES: dict[str, type[Response]] = {
    cls.kind: cls
    for cls in (
        TextResponse,
        AudioResponse,
        BuiltInCommandResponse,
        LocalCodeResponse,
        SandboxCodeResponse,
        ApiCallResponse,
        TerminalCommandResponse,
    )
}

_REMOTE_LANGUAGES = {"pythonRemote": "python", "nodeRemote": "node"}


def response_from_dict(data: dict[str, Any]) -> ResponseVariant:
    """Deserialize a stored response, selecting the variant by ``type``."""
    kind = str(data.get("type", ""))
    if kind in _REMOTE_LANGUAGES:
        base = RemoteCodeResponse.from_dict(data)
        assert isinstance(base, RemoteCodeResponse)
        return RemoteCodeResponse(
            language=_REMOTE_LANGUAGES[kind],
            remote_url=base.remote_url,
            remote_code=base.remote_code,
            remote_timeout=base.remote_timeout,
        )
    cls = _RESPONSE_TYPES.get(kind)
    if cls is None:
        return UnknownResponse(raw_type=kind, raw=dict(data))
    return cls.from_dict(data)  # type: ignore[return-value]


@dataclass
class Rule:
    """A persisted rule connecting an utterance trigger to a response.

    Attributes:
        id: Unique identifier, assigned by the store on create.
        trigger: Predicate deciding whether the rule applies.
        response: What to do when the rule matches.
        enabled: Disabled rules are never matched.
        description: Optional operator note.
        created_at: Creation time in epoch milliseconds.
        updated_at: Last update time in epoch milliseconds, if ever updated.
    """

    trigger: Trigger
    response: ResponseVariant
    id: str = field(default_factory=lambda: str(uuid4()))
    enabled: bool = True
    description: str | None = None
    created_at: int = field(default_factory=epoch_ms)
    updated_at: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize for storage."""
        data: dict[str, Any] = {
            "id": self.id,
            "trigger": self.trigger.to_dict(),
            "response": self.response.to_dict(),
            "enabled": self.enabled,
        }
        if self.description is not None:
            data["description"] = self.description
        data["createdAt"] = self.created_at
        if self.updated_at is not None:
            data["updatedAt"] = self.updated_at
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Rule:
        """Deserialize from a stored dict."""
        created_raw = data.get("createdAt")
        updated_raw = data.get("updatedAt")
        return cls(
            id=str(data.get("id") or uuid4()),
            trigger=Trigger.from_dict(data.get("trigger") or {}),
            response=response_from_dict(data.get("response") or {}),
            enabled=bool(data.get("enabled", True)),
            description=data.get("description"),
            created_at=int(created_raw) if created_raw is not None else epoch_ms(),
            updated_at=int(updated_raw) if updated_raw is not None else None,
        )
