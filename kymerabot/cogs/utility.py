"""Utility commands"""

from urllib.parse import quote

import discord
from discord.ext import commands

WIKI_SEARCH_URL = "https://warframe.fandom.com/wiki/Special:Search?search={query}"


def wiki_search_url(query: str) -> str:
    return WIKI_SEARCH_URL.format(query=quote(query, safe=""))


class Utility(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.settings = bot.settings  # type: ignore[attr-defined]

    @commands.command(name="help")
    async def help(self, ctx: commands.Context) -> None:
        embed = discord.Embed(
            title="Kymera Bot Commands",
            description="All commands start with `!`",
            color=discord.Color.blue(),
        )
        embed.add_field(
            name="General",
            value=(
                "`!ping` - Check bot latency\n"
                "`!drop <item>` - Find where an item drops\n"
                "`!wiki <search>` - Search the Warframe wiki\n"
                "`!live` - Twitch channel link\n"
                "`!roles` - Self-assignable roles\n"
                "`!stats` - Bot statistics\n"
                "`!serverinfo` - Server information"
            ),
            inline=False,
        )
        embed.add_field(
            name="Music",
            value=(
                "`!play <song or url>` - Play or queue a song (`!p`)\n"
                "`!skip` - Skip the current song\n"
                "`!stop` - Stop and clear the queue\n"
                "`!queue` - Show the queue\n"
                "`!np` - Now playing"
            ),
            inline=False,
        )

        perms = getattr(ctx.author, "guild_permissions", None)
        if perms and perms.kick_members:
            embed.add_field(
                name="Moderation",
                value=(
                    "`!kick @user [reason]`\n"
                    "`!ban @user [reason]` / `!unban <id>`\n"
                    "`!warn @user [reason]` / `!warnings [@user]` / `!clearwarnings @user`\n"
                    "`!mute @user <minutes> [reason]` / `!unmute @user`\n"
                    "`!clear <1-100>`"
                ),
                inline=False,
            )

        await ctx.reply(embed=embed)

    @commands.command(name="ping")
    async def ping(self, ctx: commands.Context) -> None:
        round_trip = (discord.utils.utcnow() - ctx.message.created_at).total_seconds() * 1000
        await ctx.reply(
            f"🏓 Pong! {round(round_trip)}ms (websocket {round(self.bot.latency * 1000)}ms)"
        )

    @commands.command(name="drop")
    async def drop(self, ctx: commands.Context, *args: str) -> None:
        if not args:
            await ctx.reply("Usage: `!drop [item]`")
            return
        await ctx.reply(f"🔍 {wiki_search_url(' '.join(args))}")

    @commands.command(name="wiki")
    async def wiki(self, ctx: commands.Context, *args: str) -> None:
        if not args:
            await ctx.reply("Usage: `!wiki [search]`")
            return
        await ctx.reply(f"📚 {wiki_search_url(' '.join(args))}")

    @commands.command(name="live")
    async def live(self, ctx: commands.Context) -> None:
        watcher = getattr(self.bot, "stream_watcher", None)
        if watcher is not None and watcher.state.is_live:
            await ctx.reply(f"🔴 {self.settings.twitch_channel} is LIVE right now: {self.settings.twitch_url}")
            return
        await ctx.reply(f"🔴 Check if {self.settings.twitch_channel} is live: {self.settings.twitch_url}")

    @commands.command(name="serverinfo")
    @commands.guild_only()
    async def server_info(self, ctx: commands.Context) -> None:
        guild = ctx.guild
        embed = discord.Embed(
            title=guild.name, description=f"Server ID: {guild.id}", color=discord.Color.blue()
        )
        embed.add_field(name="Owner", value=guild.owner.mention if guild.owner else "Unknown", inline=True)
        embed.add_field(name="Members", value=str(guild.member_count), inline=True)
        embed.add_field(name="Channels", value=str(len(guild.channels)), inline=True)
        embed.add_field(name="Roles", value=str(len(guild.roles)), inline=True)
        embed.add_field(name="Created", value=guild.created_at.strftime("%Y-%m-%d"), inline=True)

        if guild.icon:
            embed.set_thumbnail(url=guild.icon.url)

        await ctx.reply(embed=embed)


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(Utility(bot))
