"""Self-assignable roles via reactions on a single message per guild."""

import logging
from typing import Any

import discord

logger = logging.getLogger(__name__)

ROLE_MESSAGE_TITLE = "🎭 Pick Your Roles"
HISTORY_LIMIT = 10

ROLE_EMOJIS: dict[str, str] = {
    "🎮": "Gamer",
    "🔔": "Stream Alerts",
    "⚔️": "Warframe",
}


def _normalize(emoji: object) -> str:
    # Clients send some emoji with and some without the variation selector
    return str(emoji).replace("\ufe0f", "")


_ROLE_BY_EMOJI = {_normalize(emoji): role for emoji, role in ROLE_EMOJIS.items()}


def role_name_for(emoji: object) -> str | None:
    return _ROLE_BY_EMOJI.get(_normalize(emoji))


def build_role_embed() -> discord.Embed:
    embed = discord.Embed(
        title=ROLE_MESSAGE_TITLE,
        description="React below to give yourself a role. Remove the reaction to drop it.",
        color=discord.Color.from_rgb(220, 20, 60),
    )
    embed.add_field(
        name="Roles",
        value="\n".join(f"{emoji} → **{role}**" for emoji, role in ROLE_EMOJIS.items()),
        inline=False,
    )
    return embed


class ReactionRoleManager:
    """Tracks the role message of each guild and toggles roles from reactions."""

    def __init__(self) -> None:
        self.message_ids: dict[int, int] = {}

    def is_role_message(self, guild_id: int, message_id: int) -> bool:
        return self.message_ids.get(guild_id) == message_id

    async def ensure_message(self, channel: Any, bot_user: Any) -> int:
        """Reuse the bot's role message among recent history or post a new one."""
        guild_id = channel.guild.id
        async for message in channel.history(limit=HISTORY_LIMIT):
            if message.author.id != bot_user.id:
                continue
            if any(embed.title == ROLE_MESSAGE_TITLE for embed in message.embeds):
                self.message_ids[guild_id] = message.id
                logger.info(f"Reusing role message {message.id} in #{channel.name}")
                return message.id

        message = await channel.send(embed=build_role_embed())
        for emoji in ROLE_EMOJIS:
            await message.add_reaction(emoji)
        self.message_ids[guild_id] = message.id
        logger.info(f"Created role message {message.id} in #{channel.name}")
        return message.id

    def _resolve_role(self, guild: Any, emoji: object) -> Any:
        name = role_name_for(emoji)
        if name is None:
            return None
        return discord.utils.get(guild.roles, name=name)

    async def grant(self, guild: Any, member: Any, emoji: object, message_id: int) -> Any:
        """Give the mapped role; returns the role granted or None."""
        if member is None or member.bot or not self.is_role_message(guild.id, message_id):
            return None
        role = self._resolve_role(guild, emoji)
        if role is None or role in member.roles:
            return None
        await member.add_roles(role, reason="Reaction role")
        logger.info(f"Granted {role.name} to {member}")
        return role

    async def revoke(self, guild: Any, member: Any, emoji: object, message_id: int) -> Any:
        """Take the mapped role away; returns the role revoked or None."""
        if member is None or member.bot or not self.is_role_message(guild.id, message_id):
            return None
        role = self._resolve_role(guild, emoji)
        if role is None or role not in member.roles:
            return None
        await member.remove_roles(role, reason="Reaction role removed")
        logger.info(f"Removed {role.name} from {member}")
        return role
