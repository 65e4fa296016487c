"""Bounded in-process conversation memory used as the default memory backend."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterator


@dataclass
class MemoryEntry:
    """A single prompt/response exchange."""

    prompt: str
    response: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        """Serialize entry to dictionary."""
        return {
            "prompt": self.prompt,
            "response": self.response,
            "timestamp": self.timestamp.isoformat(),
        }


class ConversationMemory:
    """Keeps the last ``max_size`` exchanges, oldest evicted first."""

    def __init__(self, max_size: int = 10) -> None:
        self.max_size = max_size
        self._entries: deque[MemoryEntry] = deque(maxlen=max_size)

    def store(self, prompt: str, response: str) -> None:
        self._entries.append(MemoryEntry(prompt=prompt, response=response))

    def recall(self, query: str | None = None) -> list[dict[str, Any]]:
        """Return stored exchanges, oldest first.

        With ``query`` only exchanges whose prompt or response contains it
        (case-insensitive) are returned.
        """
        entries = list(self._entries)
        if query:
            needle = query.lower()
            entries = [
                entry for entry in entries
                if needle in entry.prompt.lower() or needle in entry.response.lower()
            ]
        return [entry.to_dict() for entry in entries]

    def clear(self) -> None:
        """Clear all memory entries."""
        self._entries.clear()

    @property
    def size(self) -> int:
        """Get number of entries in memory."""
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[MemoryEntry]:
        return iter(self._entries)
