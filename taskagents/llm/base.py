"""Model client contract consumed by the agents."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ChatModel(Protocol):
    """Anything that turns a prompt into a reply.

    Failures raised by ``chat`` are not handled by the agents and abort the
    current run.
    """

    async def chat(self, prompt: str) -> str:
        ...
