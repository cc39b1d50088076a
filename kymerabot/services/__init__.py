"""Domain services used by the cogs."""

from .moderation import AuditLog, AuditRecord, ModAction, ModerationService
from .music import MusicError, MusicManager, Song
from .reaction_roles import ReactionRoleManager
from .stream_watcher import Announcement, StreamState, StreamWatcher
from .twitch_api import StreamInfo, TwitchAPIClient, TwitchAPIError

__all__ = [
    "Announcement",
    "AuditLog",
    "AuditRecord",
    "ModAction",
    "ModerationService",
    "MusicError",
    "MusicManager",
    "ReactionRoleManager",
    "Song",
    "StreamInfo",
    "StreamState",
    "StreamWatcher",
    "TwitchAPIClient",
    "TwitchAPIError",
]
