"""
Reaction roles Cog
Keeps one role message per guild and toggles roles from its reactions
"""

import logging

import discord
from discord.ext import commands

from ..services.reaction_roles import ROLE_EMOJIS, ReactionRoleManager

logger = logging.getLogger(__name__)


class Roles(commands.Cog):
    """Self-assignable roles"""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.manager: ReactionRoleManager = bot.reaction_roles  # type: ignore[attr-defined]
        self.settings = bot.settings  # type: ignore[attr-defined]

    @commands.Cog.listener()
    async def on_ready(self) -> None:
        channel_id = self.settings.welcome_channel_id
        if not channel_id:
            logger.info("WELCOME_CHANNEL_ID not set, reaction roles disabled")
            return

        channel = self.bot.get_channel(channel_id)
        if not isinstance(channel, discord.TextChannel):
            logger.warning(f"Welcome channel {channel_id} not found, reaction roles disabled")
            return
        if self.manager.message_ids.get(channel.guild.id):
            # on_ready fires again after a resume-less reconnect
            return

        try:
            await self.manager.ensure_message(channel, self.bot.user)
        except discord.HTTPException as e:
            logger.error(f"Could not set up the role message: {e}")

    async def _member(self, guild: discord.Guild, user_id: int) -> discord.Member | None:
        if member := guild.get_member(user_id):
            return member
        try:
            return await guild.fetch_member(user_id)
        except discord.HTTPException:
            return None

    @commands.Cog.listener()
    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent) -> None:
        if payload.guild_id is None or not self.manager.is_role_message(payload.guild_id, payload.message_id):
            return
        guild = self.bot.get_guild(payload.guild_id)
        if guild is None:
            return

        member = payload.member or await self._member(guild, payload.user_id)
        try:
            await self.manager.grant(guild, member, payload.emoji, payload.message_id)
        except discord.HTTPException as e:
            logger.warning(f"Could not grant reaction role to {payload.user_id}: {e}")

    @commands.Cog.listener()
    async def on_raw_reaction_remove(self, payload: discord.RawReactionActionEvent) -> None:
        if payload.guild_id is None or not self.manager.is_role_message(payload.guild_id, payload.message_id):
            return
        guild = self.bot.get_guild(payload.guild_id)
        if guild is None:
            return

        member = await self._member(guild, payload.user_id)
        try:
            await self.manager.revoke(guild, member, payload.emoji, payload.message_id)
        except discord.HTTPException as e:
            logger.warning(f"Could not remove reaction role from {payload.user_id}: {e}")

    @commands.command(name="roles")
    async def roles(self, ctx: commands.Context) -> None:
        lines = [f"{emoji} → **{role}**" for emoji, role in ROLE_EMOJIS.items()]
        message_id = self.manager.message_ids.get(ctx.guild.id) if ctx.guild else None
        channel_id = self.settings.welcome_channel_id
        if message_id and channel_id and ctx.guild:
            link = f"https://discord.com/channels/{ctx.guild.id}/{channel_id}/{message_id}"
            lines.append(f"\nReact here to pick your roles: {link}")
        else:
            lines.append("\nThe role message isn't set up yet.")
        await ctx.reply("🎭 **Available roles**\n" + "\n".join(lines))


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(Roles(bot))
