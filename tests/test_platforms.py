from __future__ import annotations

import httpx
import pytest

from chat_overlay.platforms import PlatformLookupError, TwitchClient, YouTubeClient

LIVE_SEARCH_RESPONSE = {
    "items": [
        {
            "id": {"videoId": "live123"},
            "snippet": {
                "title": "Friday stream",
                "channelTitle": "Some Channel",
                "thumbnails": {"medium": {"url": "https://i.ytimg.com/vi/live123/mq.jpg"}},
            },
        }
    ]
}


@pytest.mark.asyncio
async def test_youtube_find_live_stream_builds_search_request():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=LIVE_SEARCH_RESPONSE)

    client = YouTubeClient("api-key", transport=httpx.MockTransport(handler))
    stream = await client.find_live_stream("UC123")

    assert stream.to_dict() == {
        "videoId": "live123",
        "title": "Friday stream",
        "channelTitle": "Some Channel",
        "thumbnail": "https://i.ytimg.com/vi/live123/mq.jpg",
    }
    params = seen[0].url.params
    assert seen[0].url.path == "/youtube/v3/search"
    assert params["channelId"] == "UC123"
    assert params["eventType"] == "live"
    assert params["key"] == "api-key"


@pytest.mark.asyncio
async def test_youtube_no_live_stream_returns_none():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"items": []}))
    client = YouTubeClient("api-key", transport=transport)
    assert await client.find_live_stream("UC123") is None


@pytest.mark.asyncio
async def test_youtube_api_error_raises_lookup_error():
    body = {"error": {"code": 403, "message": "quotaExceeded"}}
    transport = httpx.MockTransport(lambda request: httpx.Response(403, json=body))
    client = YouTubeClient("api-key", transport=transport)

    with pytest.raises(PlatformLookupError) as excinfo:
        await client.find_live_stream("UC123")

    assert excinfo.value.code == 403
    assert excinfo.value.message == "quotaExceeded"


@pytest.mark.asyncio
async def test_twitch_get_user_sends_helix_headers():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"data": [{"login": "foo"}]})

    client = TwitchClient("cid", "token", transport=httpx.MockTransport(handler))
    data = await client.get_user("foo")

    assert data == {"data": [{"login": "foo"}]}
    assert seen[0].headers["Client-ID"] == "cid"
    assert seen[0].headers["Authorization"] == "Bearer token"
    assert seen[0].url.params["login"] == "foo"


@pytest.mark.asyncio
async def test_twitch_global_emotes_failure_returns_empty_list():
    transport = httpx.MockTransport(lambda request: httpx.Response(401, json={"message": "nope"}))
    client = TwitchClient("cid", transport=transport)
    assert await client.get_global_emotes() == []


@pytest.mark.asyncio
async def test_twitch_global_emotes_network_error_returns_empty_list():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    client = TwitchClient("cid", transport=httpx.MockTransport(handler))
    assert await client.get_global_emotes() == []
