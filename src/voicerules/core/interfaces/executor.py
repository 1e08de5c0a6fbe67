"""Executor Protocol: one implementation per response kind."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, TypeVar

if TYPE_CHECKING:
    from voicerules.core.domain.outcome import Outcome
    from voicerules.core.interfaces.device import DeviceProtocol

R_contra = TypeVar("R_contra", contravariant=True)


class ExecutorProtocol(Protocol[R_contra]):
    """Runs one response kind and returns an outcome."""

    async def execute(self, response: R_contra, device: DeviceProtocol) -> Outcome:
        """Run the response against the device.

        Args:
            response: The matched rule's response.
            device: Capability handle for the voice device.

        Returns:
            ``Reply``, ``Handled`` or ``None``.
        """
        ...
