"""Live stream detection with one announcement per stream session."""

import logging
from dataclasses import dataclass
from typing import Protocol

from ..database import CountersRepository
from .twitch_api import StreamInfo

logger = logging.getLogger(__name__)

DEFAULT_GAME = "Just Chatting"
THUMBNAIL_WIDTH = 1280
THUMBNAIL_HEIGHT = 720


class StreamSource(Protocol):
    async def get_stream(self, user_login: str) -> StreamInfo | None: ...


@dataclass
class StreamState:
    """Last observed live status; lives in memory only."""

    last_stream_id: str | None = None

    @property
    def is_live(self) -> bool:
        return self.last_stream_id is not None


@dataclass(frozen=True)
class Announcement:
    """Everything needed to post a go-live message."""

    stream_id: str
    channel: str
    title: str
    game: str
    viewers: int
    thumbnail_url: str

    @property
    def url(self) -> str:
        return f"https://twitch.tv/{self.channel}"

    @classmethod
    def from_stream(cls, channel: str, stream: StreamInfo) -> "Announcement":
        thumbnail = stream.thumbnail_url.replace("{width}", str(THUMBNAIL_WIDTH)).replace(
            "{height}", str(THUMBNAIL_HEIGHT)
        )
        return cls(
            stream_id=stream.id,
            channel=channel,
            title=stream.title,
            game=stream.game_name or DEFAULT_GAME,
            viewers=stream.viewer_count,
            thumbnail_url=thumbnail,
        )


class StreamWatcher:
    """Turns periodic stream status polls into go-live announcements.

    ``poll`` returns an Announcement only when a stream id appears that differs
    from the last one seen. An offline poll clears the id, so the same id
    going live again afterwards counts as a new session.
    """

    def __init__(
        self,
        source: StreamSource,
        channel: str,
        counters: CountersRepository | None = None,
    ):
        self.source = source
        self.channel = channel
        self.counters = counters
        self.state = StreamState()

    async def poll(self) -> Announcement | None:
        try:
            stream = await self.source.get_stream(self.channel)
        except Exception as e:
            logger.warning(f"Twitch check failed for {self.channel}: {e}")
            return None

        if stream is None:
            if self.state.is_live:
                logger.info(f"Stream ended: {self.channel}")
            self.state.last_stream_id = None
            return None

        if stream.id == self.state.last_stream_id:
            return None

        self.state.last_stream_id = stream.id
        logger.info(f"Stream went live: {self.channel} - {stream.title}")

        if self.counters is not None:
            try:
                await self.counters.increment("streams")
            except OSError as e:
                logger.error(f"Failed to record stream counter: {e}")

        return Announcement.from_stream(self.channel, stream)
