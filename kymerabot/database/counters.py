"""Usage counters repository."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .store import JsonStore

COUNTER_NAMES = ("messages", "commands", "joins", "streams", "kicks", "bans", "warns", "songs")

COUNTER_LABELS = {
    "messages": "Messages",
    "commands": "Commands",
    "joins": "Joins",
    "streams": "Streams Announced",
    "kicks": "Kicks",
    "bans": "Bans",
    "warns": "Warnings",
    "songs": "Songs Queued",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _default_stats() -> dict[str, Any]:
    data: dict[str, Any] = {name: 0 for name in COUNTER_NAMES}
    data["startTime"] = _utcnow().isoformat()
    return data


@dataclass
class Counters:
    """Snapshot of the usage counters."""

    messages: int = 0
    commands: int = 0
    joins: int = 0
    streams: int = 0
    kicks: int = 0
    bans: int = 0
    warns: int = 0
    songs: int = 0
    start_time: datetime = field(default_factory=_utcnow)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Counters":
        values = {name: int(data.get(name, 0) or 0) for name in COUNTER_NAMES}
        raw_start = data.get("startTime")
        start_time = datetime.fromisoformat(raw_start) if raw_start else _utcnow()
        return cls(**values, start_time=start_time)

    def as_items(self) -> list[tuple[str, int]]:
        return [(COUNTER_LABELS[name], getattr(self, name)) for name in COUNTER_NAMES]


class CountersRepository:
    """Repository for the aggregate usage counters (``stats.json``)."""

    FILENAME = "stats.json"

    def __init__(self, store: JsonStore):
        self.store = store

    @classmethod
    def in_dir(cls, data_dir: Path) -> "CountersRepository":
        return cls(JsonStore(Path(data_dir) / cls.FILENAME, _default_stats))

    async def get(self) -> Counters:
        return Counters.from_dict(await self.store.read())

    async def increment(self, name: str, amount: int = 1) -> int:
        """Add *amount* to a counter, persist, and return the new value."""
        if name not in COUNTER_NAMES:
            raise ValueError(f"Unknown counter: {name}")
        if amount < 0:
            raise ValueError("Counters never decrease")

        def _bump(data: dict[str, Any]) -> int:
            data.setdefault("startTime", _utcnow().isoformat())
            data[name] = int(data.get(name, 0) or 0) + amount
            return int(data[name])

        return await self.store.update(_bump)
