"""
Community Cog
Welcomes new members and keeps the usage counters
"""

import logging
import time
from datetime import datetime, timezone

import discord
from discord.ext import commands

from ..database import CountersRepository

logger = logging.getLogger(__name__)

WELCOME_COLOR = discord.Color(0xDC143C)
STREAM_SCHEDULE = "Mon/Wed/Fri 2PM EST"


def format_uptime(seconds: float) -> str:
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    days, hours = divmod(hours, 24)
    parts = [f"{days}d"] if days else []
    parts.append(f"{hours}h {minutes}m {secs}s")
    return " ".join(parts)


class Community(commands.Cog):
    """Welcome messages and usage statistics"""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.counters: CountersRepository = bot.counters  # type: ignore[attr-defined]
        self.settings = bot.settings  # type: ignore[attr-defined]
        self._booted_at = time.monotonic()

    def build_welcome_embed(self, member: discord.Member) -> discord.Embed:
        embed = discord.Embed(
            title=f"Welcome to {self.settings.twitch_channel}! 🎮",
            description=f"Hey {member.mention}, welcome!",
            color=WELCOME_COLOR,
            timestamp=datetime.now(timezone.utc),
        )
        embed.add_field(name="Schedule", value=STREAM_SCHEDULE, inline=True)
        embed.add_field(
            name="Twitch", value=f"twitch.tv/{self.settings.twitch_channel}", inline=True
        )
        return embed

    @commands.Cog.listener()
    async def on_member_join(self, member: discord.Member) -> None:
        await self.counters.increment("joins")

        channel_id = self.settings.welcome_channel_id
        channel = member.guild.get_channel(channel_id) if channel_id else None
        if not isinstance(channel, discord.TextChannel):
            return

        try:
            await channel.send(embed=self.build_welcome_embed(member))
        except discord.HTTPException as e:
            logger.warning(f"Welcome message for {member} failed: {e}")

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot or message.guild is None:
            return
        await self.counters.increment("messages")

    @commands.Cog.listener()
    async def on_command(self, ctx: commands.Context) -> None:
        await self.counters.increment("commands")

    @commands.command(name="stats")
    async def stats(self, ctx: commands.Context) -> None:
        counters = await self.counters.get()

        embed = discord.Embed(title="📊 Bot Statistics", color=discord.Color.blurple())
        for label, value in counters.as_items():
            embed.add_field(name=label, value=f"`{value:,}`", inline=True)
        embed.add_field(
            name="Tracking Since",
            value=discord.utils.format_dt(counters.start_time, style="D"),
            inline=True,
        )
        embed.add_field(
            name="Uptime", value=format_uptime(time.monotonic() - self._booted_at), inline=True
        )
        embed.add_field(name="Servers", value=str(len(self.bot.guilds)), inline=True)
        await ctx.reply(embed=embed)


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(Community(bot))
