"""Flat-file persistence for the Discord bot."""

from .counters import COUNTER_NAMES, Counters, CountersRepository
from .store import JsonStore
from .warnings import WarningRecord, WarningRepository

__all__ = [
    "COUNTER_NAMES",
    "Counters",
    "CountersRepository",
    "JsonStore",
    "WarningRecord",
    "WarningRepository",
]
