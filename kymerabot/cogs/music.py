"""Music commands"""

import logging

import discord
from discord.ext import commands

from ..database import CountersRepository
from ..services.music import MusicError, MusicManager, search_song

logger = logging.getLogger(__name__)

QUEUE_PREVIEW = 10


class Music(commands.Cog):
    """Voice channel music queue"""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.manager: MusicManager = bot.music  # type: ignore[attr-defined]
        self.counters: CountersRepository = bot.counters  # type: ignore[attr-defined]

    async def cog_check(self, ctx: commands.Context) -> bool:
        if ctx.guild is None:
            raise commands.NoPrivateMessage()
        return True

    async def cog_unload(self) -> None:
        for guild_id in list(self.manager.sessions):
            await self.manager.stop(guild_id)

    @commands.command(name="play", aliases=["p"])
    async def play(self, ctx: commands.Context, *args: str) -> None:
        if not args:
            await ctx.reply("Usage: `!play <song name or url>`")
            return

        voice_state = getattr(ctx.author, "voice", None)
        if voice_state is None or voice_state.channel is None:
            await ctx.reply("❌ Join a voice channel first.")
            return

        session = self.manager.get(ctx.guild.id)
        if session is not None and session.voice_channel != voice_state.channel:
            await ctx.reply(f"❌ I'm already playing in {session.voice_channel.mention}.")
            return

        query = " ".join(args)
        async with ctx.typing():
            try:
                song = await search_song(query, str(ctx.author))
                position = await self.manager.enqueue(
                    ctx.guild.id,
                    song,
                    voice_channel=voice_state.channel,
                    text_channel=ctx.channel,
                )
            except MusicError as e:
                await ctx.reply(f"❌ {e}")
                return

        await self.counters.increment("songs")
        if position == 0:
            await ctx.reply(f"🎶 Now playing: **{song.title}** [{song.duration_text}]")
        else:
            await ctx.reply(f"➕ Added to queue (#{position}): **{song.title}** [{song.duration_text}]")

    @commands.command(name="skip")
    async def skip(self, ctx: commands.Context) -> None:
        skipped = self.manager.skip(ctx.guild.id)
        if skipped is None:
            await ctx.reply("Nothing is playing.")
            return
        await ctx.reply(f"⏭️ Skipped **{skipped.title}**")

    @commands.command(name="stop")
    async def stop(self, ctx: commands.Context) -> None:
        if not await self.manager.stop(ctx.guild.id):
            await ctx.reply("Nothing is playing.")
            return
        await ctx.reply("⏹️ Stopped the music and cleared the queue.")

    @commands.command(name="queue")
    async def queue(self, ctx: commands.Context) -> None:
        session = self.manager.get(ctx.guild.id)
        if session is None or session.now_playing is None:
            await ctx.reply("The queue is empty.")
            return

        current = session.now_playing
        embed = discord.Embed(title="🎵 Music Queue", color=discord.Color.blurple())
        embed.add_field(
            name="Now Playing",
            value=f"**{current.title}** [{current.duration_text}] - {current.requested_by}",
            inline=False,
        )
        upcoming = session.upcoming
        if upcoming:
            lines = [
                f"{index}. {song.title} [{song.duration_text}]"
                for index, song in enumerate(upcoming[:QUEUE_PREVIEW], start=1)
            ]
            if len(upcoming) > QUEUE_PREVIEW:
                lines.append(f"...and {len(upcoming) - QUEUE_PREVIEW} more")
            embed.add_field(name="Up Next", value="\n".join(lines), inline=False)
        await ctx.reply(embed=embed)

    @commands.command(name="np")
    async def now_playing(self, ctx: commands.Context) -> None:
        session = self.manager.get(ctx.guild.id)
        if session is None or session.now_playing is None:
            await ctx.reply("Nothing is playing.")
            return
        song = session.now_playing
        await ctx.reply(f"🎶 Now playing: **{song.title}** [{song.duration_text}] <{song.url}>")

    @commands.Cog.listener()
    async def on_voice_state_update(
        self, member: discord.Member, before: discord.VoiceState, after: discord.VoiceState
    ) -> None:
        if self.bot.user is None or member.id != self.bot.user.id:
            return
        if before.channel is not None and after.channel is None:
            self.manager.forget(member.guild.id)


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(Music(bot))
