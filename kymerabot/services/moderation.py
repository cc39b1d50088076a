"""Moderation rules: who may act, on whom, and what gets recorded."""

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import discord

from ..database import CountersRepository, WarningRecord, WarningRepository

logger = logging.getLogger(__name__)

DEFAULT_REASON = "No reason provided"

# Discord caps timeouts at 28 days
MAX_MUTE_MINUTES = 40320
CLEAR_MIN = 1
CLEAR_MAX = 100

MENTION_PATTERN = re.compile(r"<@!?\d+>")


class ModAction(str, Enum):
    KICK = "kick"
    BAN = "ban"
    MUTE = "mute"

    @property
    def bot_permission(self) -> str:
        return {
            ModAction.KICK: "kick_members",
            ModAction.BAN: "ban_members",
            ModAction.MUTE: "moderate_members",
        }[self]

    @property
    def counter(self) -> str | None:
        return {ModAction.KICK: "kicks", ModAction.BAN: "bans"}.get(self)

    @property
    def color(self) -> discord.Color:
        return {
            ModAction.KICK: discord.Color.orange(),
            ModAction.BAN: discord.Color.red(),
            ModAction.MUTE: discord.Color.gold(),
        }[self]


def is_moderator(member: Any) -> bool:
    """Moderation commands require the kick-members capability"""
    perms = getattr(member, "guild_permissions", None)
    return bool(perms and perms.kick_members)


def refusal_reason(me: Any, target: Any, action: ModAction, invoker: Any = None) -> str | None:
    """Why *action* on *target* must be refused, or None if it may go ahead.

    Both the bot and the invoking moderator (unless they own the guild) must
    rank strictly above the target.
    """
    verb = action.value
    if target.id == me.id:
        return f"I can't {verb} myself."
    if (
        invoker is not None
        and invoker.id != target.guild.owner_id
        and target.top_role.position >= invoker.top_role.position
    ):
        return f"You can't {verb} {target.display_name}: their highest role is not below yours."
    if not getattr(me.guild_permissions, action.bot_permission, False):
        return f"I don't have permission to {verb} members."
    if target.id == target.guild.owner_id:
        return f"I can't {verb} the server owner."
    if target.top_role.position >= me.top_role.position:
        return f"I can't {verb} {target.display_name}: their highest role is not below mine."
    return None


def strip_mentions(args: Sequence[str]) -> list[str]:
    """Drop user mention tokens so the reason and duration can sit anywhere."""
    return [arg for arg in args if not MENTION_PATTERN.fullmatch(arg)]


def reason_from(args: Sequence[str]) -> str:
    text = " ".join(args).strip()
    return text or DEFAULT_REASON


def parse_clear_amount(raw: str | None) -> int | None:
    """Message count for ``clear``; None unless an integer within 1-100."""
    try:
        amount = int(raw) if raw is not None else None
    except ValueError:
        return None
    if amount is None or not CLEAR_MIN <= amount <= CLEAR_MAX:
        return None
    return amount


def parse_minutes(raw: str | None) -> int | None:
    try:
        minutes = int(raw) if raw is not None else None
    except ValueError:
        return None
    if minutes is None or not 1 <= minutes <= MAX_MUTE_MINUTES:
        return None
    return minutes


def format_warnings(name: str, records: Sequence[WarningRecord]) -> str:
    if not records:
        return f"✅ {name} has no warnings."
    lines = [f"⚠️ **{name}** has {len(records)} warning(s):"]
    for index, record in enumerate(records, start=1):
        lines.append(
            f"{index}. {record.reason} (by {record.moderator}, "
            f"{record.timestamp.strftime('%Y-%m-%d %H:%M')} UTC)"
        )
    return "\n".join(lines)


@dataclass(frozen=True)
class AuditRecord:
    """One administrative action, as written to the mod log."""

    action: ModAction
    target: str
    target_id: int
    moderator: str
    moderator_id: int
    reason: str = DEFAULT_REASON
    details: dict[str, str] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_embed(self) -> discord.Embed:
        embed = discord.Embed(
            title=f"Member {self.action.value.capitalize()}",
            color=self.action.color,
            timestamp=self.timestamp,
        )
        embed.add_field(name="User", value=f"{self.target} ({self.target_id})", inline=True)
        embed.add_field(
            name="Moderator", value=f"{self.moderator} ({self.moderator_id})", inline=True
        )
        embed.add_field(name="Reason", value=self.reason, inline=False)
        for name, value in self.details.items():
            embed.add_field(name=name, value=value, inline=True)
        return embed


class AuditLog:
    """Posts audit records to the mod log channel, best effort."""

    def __init__(self, resolve_channel: Callable[[], Any]):
        self._resolve_channel = resolve_channel

    async def emit(self, record: AuditRecord) -> None:
        logger.info(
            f"{record.action.value} | target: {record.target} ({record.target_id}) | "
            f"moderator: {record.moderator} | reason: {record.reason}"
        )
        channel = self._resolve_channel()
        if channel is None:
            return
        try:
            await channel.send(embed=record.to_embed())
        except discord.HTTPException as e:
            logger.debug(f"Mod log delivery failed: {e}")


class ModerationService:
    """Warning ledger and counter bookkeeping for moderation commands."""

    def __init__(self, warnings: WarningRepository, counters: CountersRepository):
        self.warnings = warnings
        self.counters = counters

    async def warn(self, user_id: int, reason: str, moderator: str) -> int:
        total = await self.warnings.add(user_id, reason, moderator)
        await self.counters.increment("warns")
        return total

    async def list_warnings(self, user_id: int) -> list[WarningRecord]:
        return await self.warnings.get(user_id)

    async def clear_warnings(self, user_id: int) -> int:
        return await self.warnings.clear(user_id)

    async def record_success(self, action: ModAction) -> None:
        if action.counter:
            await self.counters.increment(action.counter)
