from kymerabot.services.stream_watcher import StreamWatcher
from kymerabot.services.twitch_api import StreamInfo, TwitchAPIError


def live(stream_id: str, game: str = "Warframe") -> StreamInfo:
    return StreamInfo(
        id=stream_id,
        title=f"Stream {stream_id}",
        game_name=game,
        viewer_count=12,
        thumbnail_url="https://example.test/thumb-{width}x{height}.jpg",
        user_login="kymera_gaming",
    )


OFFLINE = None


class ScriptedSource:
    """Returns the scripted poll results in order; exceptions are raised."""

    def __init__(self, results):
        self.results = list(results)
        self.logins = []

    async def get_stream(self, user_login):
        self.logins.append(user_login)
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


async def run_polls(results, counters=None):
    watcher = StreamWatcher(ScriptedSource(results), "Kymera_Gaming", counters)
    announcements = []
    for _ in range(len(results)):
        announcement = await watcher.poll()
        if announcement is not None:
            announcements.append(announcement)
    return watcher, announcements


async def test_same_stream_is_announced_once():
    watcher, announcements = await run_polls([live("A")] * 5)

    assert [a.stream_id for a in announcements] == ["A"]
    assert watcher.state.is_live
    assert watcher.state.last_stream_id == "A"


async def test_offline_between_polls_reannounces_same_id():
    _, announcements = await run_polls([live("A"), OFFLINE, live("A")])

    assert [a.stream_id for a in announcements] == ["A", "A"]


async def test_new_id_while_live_is_announced():
    _, announcements = await run_polls([live("A"), live("A"), live("B")])

    assert [a.stream_id for a in announcements] == ["A", "B"]


async def test_offline_resets_state_idempotently():
    watcher, announcements = await run_polls([OFFLINE, live("A"), OFFLINE, OFFLINE])

    assert len(announcements) == 1
    assert not watcher.state.is_live
    assert watcher.state.last_stream_id is None


async def test_errors_leave_state_untouched():
    watcher, announcements = await run_polls(
        [live("A"), TwitchAPIError("502"), RuntimeError("boom"), live("A")]
    )

    assert len(announcements) == 1
    assert watcher.state.last_stream_id == "A"


async def test_error_while_offline_does_not_announce():
    watcher, announcements = await run_polls([TwitchAPIError("timeout"), OFFLINE])

    assert announcements == []
    assert not watcher.state.is_live


async def test_announcement_payload():
    _, announcements = await run_polls([live("A", game="")])
    announcement = announcements[0]

    assert announcement.game == "Just Chatting"
    assert announcement.thumbnail_url == "https://example.test/thumb-1280x720.jpg"
    assert announcement.url == "https://twitch.tv/Kymera_Gaming"
    assert announcement.viewers == 12


async def test_streams_counter_counts_announcements(counters):
    await run_polls([live("A"), live("A"), OFFLINE, live("B")], counters)

    assert (await counters.get()).streams == 2


async def test_polls_configured_channel():
    source = ScriptedSource([OFFLINE])
    await StreamWatcher(source, "Kymera_Gaming").poll()

    assert source.logins == ["Kymera_Gaming"]
