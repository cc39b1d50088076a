"""Server moderation commands"""

import logging
from datetime import timedelta

import discord
from discord.ext import commands

from ..services.moderation import (
    AuditRecord,
    ModAction,
    format_warnings,
    is_moderator,
    parse_clear_amount,
    parse_minutes,
    reason_from,
    refusal_reason,
    strip_mentions,
)

logger = logging.getLogger(__name__)


class Moderation(commands.Cog):
    """Kick, ban, warn, mute and purge; every command needs Kick Members."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.service = bot.moderation  # type: ignore[attr-defined]
        self.audit_log = bot.audit_log  # type: ignore[attr-defined]

    async def cog_check(self, ctx: commands.Context) -> bool:
        if ctx.guild is None:
            raise commands.NoPrivateMessage()
        return is_moderator(ctx.author)

    # ==================== Helpers ====================

    @staticmethod
    def _target(ctx: commands.Context) -> discord.Member | None:
        """First mentioned user, as a member of this guild"""
        for user in ctx.message.mentions:
            member = ctx.guild.get_member(user.id)
            if member is not None:
                return member
        return None

    async def _refused(self, ctx: commands.Context, target: discord.Member, action: ModAction) -> bool:
        reason = refusal_reason(ctx.guild.me, target, action, invoker=ctx.author)
        if reason is None:
            return False
        await ctx.reply(f"❌ {reason}")
        return True

    def _audit(
        self,
        ctx: commands.Context,
        action: ModAction,
        target: discord.abc.User,
        reason: str,
        **details: str,
    ) -> AuditRecord:
        return AuditRecord(
            action=action,
            target=str(target),
            target_id=target.id,
            moderator=str(ctx.author),
            moderator_id=ctx.author.id,
            reason=reason,
            details=details,
        )

    # ==================== Removal ====================

    @commands.command(name="kick")
    async def kick(self, ctx: commands.Context, *args: str) -> None:
        target = self._target(ctx)
        if target is None:
            await ctx.reply("Usage: `!kick @user [reason]`")
            return
        if await self._refused(ctx, target, ModAction.KICK):
            return

        reason = reason_from(strip_mentions(args))
        try:
            await target.kick(reason=f"{reason} (by {ctx.author})")
        except discord.HTTPException as e:
            logger.warning(f"Kick of {target} failed: {e}")
            await ctx.reply(f"❌ Failed to kick {target.display_name}.")
            return

        await self.service.record_success(ModAction.KICK)
        await self.audit_log.emit(self._audit(ctx, ModAction.KICK, target, reason))
        await ctx.reply(f"👢 Kicked **{target}** | Reason: {reason}")

    @commands.command(name="ban")
    async def ban(self, ctx: commands.Context, *args: str) -> None:
        target = self._target(ctx)
        if target is None:
            await ctx.reply("Usage: `!ban @user [reason]`")
            return
        if await self._refused(ctx, target, ModAction.BAN):
            return

        reason = reason_from(strip_mentions(args))
        try:
            await target.ban(reason=f"{reason} (by {ctx.author})")
        except discord.HTTPException as e:
            logger.warning(f"Ban of {target} failed: {e}")
            await ctx.reply(f"❌ Failed to ban {target.display_name}.")
            return

        await self.service.record_success(ModAction.BAN)
        await self.audit_log.emit(self._audit(ctx, ModAction.BAN, target, reason))
        await ctx.reply(f"🔨 Banned **{target}** | Reason: {reason}")

    @commands.command(name="unban")
    async def unban(self, ctx: commands.Context, *args: str) -> None:
        if not args or not args[0].isdigit():
            await ctx.reply("Usage: `!unban <user id>`")
            return

        user_id = int(args[0])
        try:
            await ctx.guild.unban(discord.Object(id=user_id), reason=f"Unbanned by {ctx.author}")
        except discord.NotFound:
            await ctx.reply(f"❌ User `{user_id}` is not banned.")
            return
        except discord.HTTPException as e:
            logger.warning(f"Unban of {user_id} failed: {e}")
            await ctx.reply(f"❌ Failed to unban `{user_id}`.")
            return

        await ctx.reply(f"✅ Unbanned `{user_id}`.")

    # ==================== Warnings ====================

    @commands.command(name="warn")
    async def warn(self, ctx: commands.Context, *args: str) -> None:
        target = self._target(ctx)
        if target is None:
            await ctx.reply("Usage: `!warn @user [reason]`")
            return

        reason = reason_from(strip_mentions(args))
        total = await self.service.warn(target.id, reason, str(ctx.author))
        await ctx.reply(
            f"⚠️ {target.mention} has been warned. They now have {total} warning(s).\n"
            f"Reason: {reason}"
        )

    @commands.command(name="warnings")
    async def warnings(self, ctx: commands.Context, *args: str) -> None:
        target = self._target(ctx) or ctx.author
        records = await self.service.list_warnings(target.id)
        await ctx.reply(format_warnings(target.display_name, records))

    @commands.command(name="clearwarnings")
    async def clearwarnings(self, ctx: commands.Context, *args: str) -> None:
        target = self._target(ctx)
        if target is None:
            await ctx.reply("Usage: `!clearwarnings @user`")
            return

        removed = await self.service.clear_warnings(target.id)
        await ctx.reply(f"🧽 Cleared {removed} warning(s) for {target.mention}.")

    # ==================== Timeouts ====================

    @commands.command(name="mute")
    async def mute(self, ctx: commands.Context, *args: str) -> None:
        target = self._target(ctx)
        rest = strip_mentions(args)
        minutes = parse_minutes(rest[0] if rest else None)
        if target is None or minutes is None:
            await ctx.reply("Usage: `!mute @user <minutes 1-40320> [reason]`")
            return
        if await self._refused(ctx, target, ModAction.MUTE):
            return

        reason = reason_from(rest[1:])
        try:
            await target.timeout(timedelta(minutes=minutes), reason=f"{reason} (by {ctx.author})")
        except discord.HTTPException as e:
            logger.warning(f"Timeout of {target} failed: {e}")
            await ctx.reply(f"❌ Failed to mute {target.display_name}.")
            return

        await self.audit_log.emit(
            self._audit(ctx, ModAction.MUTE, target, reason, Duration=f"{minutes} min")
        )
        await ctx.reply(f"🔇 Muted **{target}** for {minutes} minute(s) | Reason: {reason}")

    @commands.command(name="unmute")
    async def unmute(self, ctx: commands.Context, *args: str) -> None:
        target = self._target(ctx)
        if target is None:
            await ctx.reply("Usage: `!unmute @user`")
            return

        try:
            await target.timeout(None, reason=f"Unmuted by {ctx.author}")
        except discord.HTTPException as e:
            logger.warning(f"Removing timeout of {target} failed: {e}")
            await ctx.reply(f"❌ Failed to unmute {target.display_name}.")
            return

        await ctx.reply(f"🔊 Unmuted **{target}**.")

    # ==================== Messages ====================

    @commands.command(name="clear")
    async def clear(self, ctx: commands.Context, *args: str) -> None:
        amount = parse_clear_amount(args[0] if args else None)
        if amount is None:
            await ctx.reply("Please provide a number between 1 and 100.")
            return

        try:
            # +1 removes the command message as well
            deleted = await ctx.channel.purge(limit=amount + 1)
        except discord.HTTPException as e:
            logger.warning(f"Purge in #{ctx.channel} failed: {e}")
            await ctx.send(
                "❌ Failed to delete messages. Messages older than 14 days can't be bulk deleted."
            )
            return

        removed = max(len(deleted) - 1, 0)
        await ctx.send(f"🧹 Deleted {removed} message(s).", delete_after=5)


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(Moderation(bot))
