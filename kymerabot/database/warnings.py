"""Moderation warning ledger repository."""

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .store import JsonStore


@dataclass(frozen=True)
class WarningRecord:
    """One warning issued to a user."""

    reason: str
    moderator: str
    timestamp: datetime

    def to_dict(self) -> dict[str, str]:
        return {
            "reason": self.reason,
            "moderator": self.moderator,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WarningRecord":
        return cls(
            reason=str(data.get("reason", "")),
            moderator=str(data.get("moderator", "")),
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )


class WarningRepository:
    """Per-user warning lists keyed by user id (``warnings.json``)."""

    FILENAME = "warnings.json"

    def __init__(self, store: JsonStore):
        self.store = store

    @classmethod
    def in_dir(cls, data_dir: Path) -> "WarningRepository":
        return cls(JsonStore(Path(data_dir) / cls.FILENAME, dict))

    async def add(self, user_id: int, reason: str, moderator: str) -> int:
        """Append a warning and return the user's new total."""
        record = WarningRecord(reason=reason, moderator=moderator, timestamp=datetime.now(timezone.utc))

        def _append(data: dict[str, Any]) -> int:
            entries = data.setdefault(str(user_id), [])
            entries.append(record.to_dict())
            return len(entries)

        return await self.store.update(_append)

    async def get(self, user_id: int) -> list[WarningRecord]:
        """Warnings for a user, oldest first."""
        data = await self.store.read()
        return [WarningRecord.from_dict(entry) for entry in data.get(str(user_id), [])]

    async def clear(self, user_id: int) -> int:
        """Drop the user's entry and return how many warnings were removed."""

        def _remove(data: dict[str, Any]) -> int:
            return len(data.pop(str(user_id), []))

        return await self.store.update(_remove)
