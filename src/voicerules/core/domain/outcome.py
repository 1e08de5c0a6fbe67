"""The dispatch engine's only output type.

An outcome is exactly one of:

- ``Reply(text)``: a reply for the caller to speak or display.
- ``Handled()``: the side effect already happened, suppress the default reply.
- ``None``: no rule matched, the caller continues its own default handling.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union


@dataclass(frozen=True)
class Reply:
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text}


@dataclass(frozen=True)
class Handled:
    def to_dict(self) -> dict[str, Any]:
        return {"handled": True}


Outcome = Optional[Union[Reply, Handled]]
