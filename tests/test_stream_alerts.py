from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from kymerabot.cogs import stream_alerts
from kymerabot.cogs.stream_alerts import StreamAlerts, build_announcement_embed
from kymerabot.services.stream_watcher import Announcement, StreamWatcher

from .test_stream_watcher import OFFLINE, ScriptedSource, live

ANNOUNCEMENT_CHANNEL_ID = 321


@pytest.fixture
def channel():
    return MagicMock(spec=discord.TextChannel)


def make_cog(results, channel):
    bot = SimpleNamespace(
        settings=SimpleNamespace(announcement_channel_id=ANNOUNCEMENT_CHANNEL_ID),
        get_channel=MagicMock(return_value=channel),
    )
    watcher = StreamWatcher(ScriptedSource(results), "Kymera_Gaming")
    return StreamAlerts(bot, watcher), bot, watcher


async def test_go_live_posts_here_with_embed(channel):
    cog, bot, _ = make_cog([live("s1")], channel)

    await cog.check_stream()

    bot.get_channel.assert_called_once_with(ANNOUNCEMENT_CHANNEL_ID)
    kwargs = channel.send.call_args.kwargs
    assert kwargs["content"] == "@here"
    assert kwargs["embed"].title == "🔴 Kymera_Gaming is LIVE!"
    assert kwargs["embed"].url == "https://twitch.tv/Kymera_Gaming"


async def test_failed_post_keeps_stream_announced(channel):
    channel.send.side_effect = discord.HTTPException(
        SimpleNamespace(status=500, reason="Server Error"), "upstream"
    )
    cog, _, watcher = make_cog([live("s1"), live("s1")], channel)

    await cog.check_stream()
    await cog.check_stream()

    assert watcher.state.last_stream_id == "s1"
    channel.send.assert_awaited_once()


async def test_missing_channel_is_skipped(channel):
    cog, bot, watcher = make_cog([live("s1"), OFFLINE, live("s2")], None)

    await cog.check_stream()
    await cog.check_stream()
    await cog.check_stream()

    assert bot.get_channel.call_count == 2
    assert watcher.state.last_stream_id == "s2"


async def test_offline_poll_posts_nothing(channel):
    cog, _, _ = make_cog([OFFLINE], channel)

    await cog.check_stream()

    channel.send.assert_not_awaited()


def test_announcement_embed_fields():
    announcement = Announcement.from_stream("Kymera_Gaming", live("s9", game=""))
    embed = build_announcement_embed(announcement)

    fields = {field.name: field.value for field in embed.fields}
    assert fields == {"Game": "Just Chatting", "Viewers": "12"}
    assert embed.description == "**Stream s9**"
    assert embed.image.url.endswith("thumb-1280x720.jpg")
    assert embed.color == stream_alerts.TWITCH_PURPLE


async def test_cog_not_added_without_watcher():
    bot = SimpleNamespace(stream_watcher=None, add_cog=AsyncMock())

    await stream_alerts.setup(bot)

    bot.add_cog.assert_not_awaited()
