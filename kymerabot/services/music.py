"""Per-guild music queues.

A guild has a session exactly while the bot holds a voice connection there.
The head of ``songs`` is the track currently playing; when playback of the
head ends it is popped and the next one starts, and an empty queue tears the
connection down and forgets the session.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse

import discord
import yt_dlp

logger = logging.getLogger(__name__)

YDL_OPTIONS = {
    "format": "bestaudio/best",
    "noplaylist": True,
    "quiet": True,
    "no_warnings": True,
    "source_address": "0.0.0.0",
}

FFMPEG_OPTIONS = {
    "before_options": "-reconnect 1 -reconnect_streamed 1 -reconnect_delay_max 5",
    "options": "-vn",
}


class MusicError(Exception):
    """Lookup or voice failure the user should hear about."""


@dataclass(frozen=True)
class Song:
    title: str
    url: str
    stream_url: str
    requested_by: str
    duration: int | None = None

    @property
    def duration_text(self) -> str:
        if not self.duration:
            return "live"
        minutes, seconds = divmod(int(self.duration), 60)
        hours, minutes = divmod(minutes, 60)
        if hours:
            return f"{hours}:{minutes:02d}:{seconds:02d}"
        return f"{minutes}:{seconds:02d}"


def is_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def _extract_info(query: str) -> dict[str, Any]:
    target = query if is_url(query) else f"ytsearch1:{query}"
    with yt_dlp.YoutubeDL(YDL_OPTIONS) as ydl:
        info = ydl.extract_info(target, download=False)
    if info and "entries" in info:
        entries = [entry for entry in info["entries"] if entry]
        info = entries[0] if entries else None
    if not info:
        raise MusicError(f"No results for `{query}`")
    return info


async def search_song(query: str, requested_by: str) -> Song:
    """Resolve a search query or URL into a playable song."""
    loop = asyncio.get_running_loop()
    try:
        info = await loop.run_in_executor(None, _extract_info, query)
    except yt_dlp.utils.DownloadError as e:
        raise MusicError(f"Couldn't load `{query}`") from e

    stream_url = info.get("url")
    if not stream_url:
        raise MusicError(f"No playable audio for `{query}`")
    return Song(
        title=info.get("title") or query,
        url=info.get("webpage_url") or query,
        stream_url=stream_url,
        requested_by=requested_by,
        duration=info.get("duration"),
    )


def ffmpeg_source(song: Song) -> discord.AudioSource:
    return discord.FFmpegPCMAudio(song.stream_url, **FFMPEG_OPTIONS)


@dataclass
class MusicSession:
    guild_id: int
    voice_client: Any
    text_channel: Any
    voice_channel: Any
    songs: list[Song] = field(default_factory=list)

    @property
    def now_playing(self) -> Song | None:
        return self.songs[0] if self.songs else None

    @property
    def upcoming(self) -> list[Song]:
        return self.songs[1:]


class MusicManager:
    """Owns every guild's MusicSession, keyed by guild id."""

    def __init__(self, source_factory: Callable[[Song], Any] = ffmpeg_source):
        self.sessions: dict[int, MusicSession] = {}
        self._source_factory = source_factory
        self._lock = asyncio.Lock()

    def get(self, guild_id: int) -> MusicSession | None:
        return self.sessions.get(guild_id)

    async def enqueue(
        self, guild_id: int, song: Song, *, voice_channel: Any, text_channel: Any
    ) -> int:
        """Queue *song*, connecting first if needed.

        Returns the song's queue position, 0 meaning it started playing.
        """
        async with self._lock:
            session = self.sessions.get(guild_id)
            if session is not None:
                session.songs.append(song)
                return len(session.songs) - 1

            try:
                voice_client = await voice_channel.connect()
            except (discord.ClientException, asyncio.TimeoutError) as e:
                raise MusicError("I couldn't join your voice channel.") from e

            session = MusicSession(
                guild_id=guild_id,
                voice_client=voice_client,
                text_channel=text_channel,
                voice_channel=voice_channel,
                songs=[song],
            )
            self.sessions[guild_id] = session
            try:
                self._play_head(session)
            except discord.ClientException as e:
                await self._teardown(guild_id)
                raise MusicError("Playback failed to start.") from e
            return 0

    def _play_head(self, session: MusicSession) -> None:
        song = session.songs[0]
        loop = asyncio.get_running_loop()

        def _after(error: Exception | None) -> None:
            if error:
                logger.error(f"Playback error in guild {session.guild_id}: {error}")
            asyncio.run_coroutine_threadsafe(self._finished(session), loop)

        session.voice_client.play(self._source_factory(song), after=_after)
        logger.info(f"Now playing in guild {session.guild_id}: {song.title}")

    async def _finished(self, session: MusicSession) -> Song | None:
        # A callback from a player that was stopped must not touch a newer session
        if self.sessions.get(session.guild_id) is not session:
            return None
        return await self.advance(session.guild_id)

    async def advance(self, guild_id: int) -> Song | None:
        """Drop the finished head and start the next song, if any."""
        session = self.sessions.get(guild_id)
        if session is None:
            return None
        if session.songs:
            session.songs.pop(0)

        while session.songs:
            try:
                self._play_head(session)
            except discord.ClientException as e:
                logger.error(f"Skipping unplayable song {session.songs[0].title}: {e}")
                session.songs.pop(0)
                continue
            song = session.songs[0]
            try:
                await session.text_channel.send(f"🎶 Now playing: **{song.title}** [{song.duration_text}]")
            except discord.HTTPException as e:
                logger.debug(f"Now playing message failed: {e}")
            return song

        await self._teardown(guild_id)
        return None

    def skip(self, guild_id: int) -> Song | None:
        """Stop the current song; the playback callback moves the queue on."""
        session = self.sessions.get(guild_id)
        if session is None or session.now_playing is None:
            return None
        skipped = session.now_playing
        session.voice_client.stop()
        return skipped

    async def stop(self, guild_id: int) -> bool:
        session = self.sessions.pop(guild_id, None)
        if session is None:
            return False
        session.songs.clear()
        session.voice_client.stop()
        await session.voice_client.disconnect()
        logger.info(f"Music stopped in guild {guild_id}")
        return True

    def forget(self, guild_id: int) -> None:
        """Drop the session after the voice connection went away on its own."""
        if self.sessions.pop(guild_id, None) is not None:
            logger.info(f"Voice connection lost in guild {guild_id}, queue cleared")

    async def _teardown(self, guild_id: int) -> None:
        session = self.sessions.pop(guild_id, None)
        if session is None:
            return
        try:
            await session.voice_client.disconnect()
        except discord.ClientException as e:
            logger.debug(f"Disconnect failed in guild {guild_id}: {e}")
        logger.info(f"Queue finished in guild {guild_id}, left voice")
