"""
Stream alerts Cog
Polls Twitch every two minutes and announces new streams
"""

import logging
from datetime import datetime, timezone

import discord
from discord.ext import commands, tasks

from ..services.stream_watcher import Announcement, StreamWatcher

logger = logging.getLogger(__name__)

POLL_SECONDS = 120
TWITCH_PURPLE = discord.Color(0x9146FF)


def build_announcement_embed(announcement: Announcement) -> discord.Embed:
    embed = discord.Embed(
        title=f"🔴 {announcement.channel} is LIVE!",
        url=announcement.url,
        description=f"**{announcement.title}**",
        color=TWITCH_PURPLE,
        timestamp=datetime.now(timezone.utc),
    )
    embed.add_field(name="Game", value=announcement.game, inline=True)
    embed.add_field(name="Viewers", value=str(announcement.viewers), inline=True)
    if announcement.thumbnail_url:
        embed.set_image(url=announcement.thumbnail_url)
    return embed


class StreamAlerts(commands.Cog):
    """Twitch go-live announcements"""

    def __init__(self, bot: commands.Bot, watcher: StreamWatcher):
        self.bot = bot
        self.watcher = watcher
        self.settings = bot.settings  # type: ignore[attr-defined]

    async def cog_load(self) -> None:
        self.check_stream.start()
        logger.info(f"Twitch alerts enabled for {self.watcher.channel}")

    async def cog_unload(self) -> None:
        self.check_stream.cancel()

    async def announce(self, announcement: Announcement) -> None:
        channel_id = self.settings.announcement_channel_id
        channel = self.bot.get_channel(channel_id) if channel_id else None
        if not isinstance(channel, discord.abc.Messageable):
            logger.warning("Announcement channel not found, live alert not delivered")
            return
        try:
            await channel.send(content="@here", embed=build_announcement_embed(announcement))
            logger.info(f"Announced stream: {announcement.title}")
        except discord.HTTPException as e:
            logger.error(f"Live announcement failed: {e}")

    @tasks.loop(seconds=POLL_SECONDS)
    async def check_stream(self) -> None:
        try:
            announcement = await self.watcher.poll()
            if announcement is not None:
                await self.announce(announcement)
        except Exception as e:
            # A failed tick must not stop the loop
            logger.exception(f"Stream check failed: {e}")

    @check_stream.before_loop
    async def _wait_ready(self) -> None:
        await self.bot.wait_until_ready()


async def setup(bot: commands.Bot) -> None:
    watcher = getattr(bot, "stream_watcher", None)
    if watcher is None:
        logger.warning("Twitch alerts disabled (no valid client ID)")
        return
    await bot.add_cog(StreamAlerts(bot, watcher))
