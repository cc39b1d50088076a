from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from urllib.parse import unquote

import discord
import pytest

from kymerabot.cogs.community import Community, format_uptime
from kymerabot.cogs.utility import Utility, wiki_search_url


@pytest.fixture
def settings():
    return SimpleNamespace(
        twitch_channel="Kymera_Gaming",
        twitch_url="https://twitch.tv/Kymera_Gaming",
        welcome_channel_id=555,
    )


@pytest.fixture
def community(fake_bot, settings) -> Community:
    fake_bot.settings = settings
    return Community(fake_bot)


async def test_member_join_is_counted_and_welcomed(community, counters, member, guild):
    channel = MagicMock(spec=discord.TextChannel)
    guild.get_channel = MagicMock(return_value=channel)

    await community.on_member_join(member)

    assert (await counters.get()).joins == 1
    guild.get_channel.assert_called_once_with(555)
    embed = channel.send.call_args.kwargs["embed"]
    assert embed.title == "Welcome to Kymera_Gaming! 🎮"
    assert member.mention in embed.description


async def test_member_join_without_welcome_channel(community, counters, member, guild):
    guild.get_channel = MagicMock(return_value=None)

    await community.on_member_join(member)

    assert (await counters.get()).joins == 1


async def test_only_human_guild_messages_are_counted(community, counters, member, guild):
    await community.on_message(SimpleNamespace(author=member, guild=guild))
    await community.on_message(SimpleNamespace(author=SimpleNamespace(bot=True), guild=guild))
    await community.on_message(SimpleNamespace(author=member, guild=None))

    assert (await counters.get()).messages == 1


async def test_commands_are_counted(community, counters):
    await community.on_command(SimpleNamespace())
    await community.on_command(SimpleNamespace())

    assert (await counters.get()).commands == 2


@pytest.mark.parametrize(
    "seconds, expected",
    [(0, "0h 0m 0s"), (3725, "1h 2m 5s"), (90061, "1d 1h 1m 1s")],
)
def test_format_uptime(seconds, expected):
    assert format_uptime(seconds) == expected


def test_wiki_search_url_quotes_query():
    url = wiki_search_url("Prime Parts & Relics")

    assert url.startswith("https://warframe.fandom.com/wiki/Special:Search?search=")
    assert " " not in url
    assert unquote(url.split("search=", 1)[1]) == "Prime Parts & Relics"


@pytest.fixture
def utility(fake_bot, settings) -> Utility:
    fake_bot.settings = settings
    return Utility(fake_bot)


async def test_wiki_without_query_shows_usage(utility):
    ctx = SimpleNamespace(reply=AsyncMock())
    await utility.wiki.callback(utility, ctx)

    assert "Usage" in ctx.reply.call_args.args[0]


async def test_drop_links_search(utility):
    ctx = SimpleNamespace(reply=AsyncMock())
    await utility.drop.callback(utility, ctx, "Loki", "Prime")

    assert "search=Loki%20Prime" in ctx.reply.call_args.args[0]


async def test_live_reports_watcher_state(utility, fake_bot):
    ctx = SimpleNamespace(reply=AsyncMock())
    fake_bot.stream_watcher = SimpleNamespace(state=SimpleNamespace(is_live=True))
    await utility.live.callback(utility, ctx)
    assert "LIVE right now" in ctx.reply.call_args.args[0]

    fake_bot.stream_watcher.state.is_live = False
    await utility.live.callback(utility, ctx)
    assert "Check if Kymera_Gaming is live" in ctx.reply.call_args.args[0]


async def test_help_hides_moderation_from_members(utility, member, moderator):
    ctx = SimpleNamespace(author=member, reply=AsyncMock())
    await utility.help.callback(utility, ctx)
    assert "Moderation" not in [f.name for f in ctx.reply.call_args.kwargs["embed"].fields]

    ctx.author = moderator
    await utility.help.callback(utility, ctx)
    assert "Moderation" in [f.name for f in ctx.reply.call_args.kwargs["embed"].fields]
