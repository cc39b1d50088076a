import httpx
import pytest

from kymerabot.services.twitch_api import TwitchAPIClient, TwitchAPIError

LIVE_STREAM = {
    "id": "40952121085",
    "user_login": "kymera_gaming",
    "title": "Steel Path grind",
    "game_name": "Warframe",
    "viewer_count": 42,
    "thumbnail_url": "https://static-cdn.jtvnw.net/previews-ttv/live_user_kymera-{width}x{height}.jpg",
}


def make_client(handler) -> TwitchAPIClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return TwitchAPIClient("real-client-id", "secret", http=http)


def token_response() -> httpx.Response:
    return httpx.Response(200, json={"access_token": "abc", "expires_in": 5000000, "token_type": "bearer"})


async def test_get_stream_returns_live_stream():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.host == "id.twitch.tv":
            assert request.url.params["grant_type"] == "client_credentials"
            return token_response()
        assert request.headers["Client-Id"] == "real-client-id"
        assert request.headers["Authorization"] == "Bearer abc"
        assert request.url.params["user_login"] == "Kymera_Gaming"
        return httpx.Response(200, json={"data": [LIVE_STREAM]})

    client = make_client(handler)
    stream = await client.get_stream("Kymera_Gaming")

    assert stream is not None
    assert stream.id == "40952121085"
    assert stream.viewer_count == 42
    assert len(seen) == 2


async def test_get_stream_offline_returns_none():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "id.twitch.tv":
            return token_response()
        return httpx.Response(200, json={"data": []})

    assert await make_client(handler).get_stream("Kymera_Gaming") is None


async def test_app_token_is_cached_between_polls():
    token_calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal token_calls
        if request.url.host == "id.twitch.tv":
            token_calls += 1
            return token_response()
        return httpx.Response(200, json={"data": []})

    client = make_client(handler)
    await client.get_stream("Kymera_Gaming")
    await client.get_stream("Kymera_Gaming")

    assert token_calls == 1


async def test_token_failure_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"message": "invalid client"})

    with pytest.raises(TwitchAPIError):
        await make_client(handler).get_stream("Kymera_Gaming")


async def test_unauthorized_drops_cached_token():
    token_calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal token_calls
        if request.url.host == "id.twitch.tv":
            token_calls += 1
            return token_response()
        if token_calls == 1:
            return httpx.Response(401, json={"message": "invalid token"})
        return httpx.Response(200, json={"data": []})

    client = make_client(handler)
    with pytest.raises(TwitchAPIError):
        await client.get_stream("Kymera_Gaming")
    assert await client.get_stream("Kymera_Gaming") is None
    assert token_calls == 2


@pytest.mark.parametrize("body", [{"data": "nope"}, {"unexpected": []}, {"data": [{"title": "no id"}]}])
async def test_malformed_payload_raises(body):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "id.twitch.tv":
            return token_response()
        return httpx.Response(200, json=body)

    with pytest.raises(TwitchAPIError):
        await make_client(handler).get_stream("Kymera_Gaming")


async def test_network_error_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TwitchAPIError):
        await make_client(handler).get_stream("Kymera_Gaming")


def test_credentials_are_required():
    with pytest.raises(ValueError):
        TwitchAPIClient("", "secret")
