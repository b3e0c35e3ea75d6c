from __future__ import annotations

import json

import pytest

from chat_overlay.overlay.state import default_document


def _chat_payload(**overrides):
    payload = {
        "id": "msg-1",
        "username": "TestUser",
        "text": "This is a test message! 👋",
        "avatar": None,
        "platform": "youtube",
        "usernameColor": "#3498db",
        "isModerator": False,
        "isSuperchat": False,
        "amount": None,
        "badges": [],
        "timestamp": 1700000000000,
    }
    payload.update(overrides)
    return payload


def _single_broadcast(delivery):
    assert delivery.reply == []
    assert len(delivery.broadcast) == 1
    return delivery.broadcast[0]


def _single_error(delivery):
    assert delivery.broadcast == []
    assert len(delivery.reply) == 1
    error = delivery.reply[0]
    assert error["type"] == "error"
    return error["data"]


def test_on_register_returns_default_snapshot(router):
    assert router.on_register() == {"type": "config", "data": default_document()}


def test_config_update_broadcasts_full_document(router, store):
    delivery = router.route(json.dumps({"type": "config", "data": {"theme": "minimal", "volume": 2}}))
    message = _single_broadcast(delivery)
    assert message["type"] == "config"
    assert message["data"] == store.get()
    assert message["data"]["theme"] == "minimal"
    assert message["data"]["volume"] == 1.0
    assert "platforms" in message["data"]


def test_config_platforms_replacement(router, store):
    platforms = {
        "youtube": {"enabled": True, "videoId": "abc"},
        "twitch": {"enabled": False, "channelId": ""},
    }
    router.route({"type": "config", "data": {"platforms": platforms}})
    assert store.get()["platforms"] == platforms


@pytest.mark.parametrize("data", [
    {"unknownSetting": 1},
    {"youtubeApiConfigured": True},
    {"maxMessages": 0},
    {"avatarShape": "hexagon"},
    {"platforms": {"youtube": {"enabled": True, "videoId": "x"}}},
])
def test_invalid_config_is_rejected_without_state_change(router, store, data):
    before = store.get()
    error = _single_error(router.route({"type": "config", "data": data}))
    assert error["inResponseTo"] == "config"
    assert error["reason"]
    assert store.get() == before


def test_empty_config_update_is_rejected(router):
    error = _single_error(router.route({"type": "config", "data": {}}))
    assert error["inResponseTo"] == "config"


def test_chat_message_broadcast_verbatim(router, store):
    before = store.get()
    payload = _chat_payload(raw={"snippet": {"displayMessage": "hi"}})
    message = _single_broadcast(router.route({"type": "chat-message", "data": payload}))
    assert message == {"type": "chat-message", "data": payload}
    assert store.get() == before


def test_test_message_without_id_is_accepted(router):
    payload = _chat_payload()
    del payload["id"]
    message = _single_broadcast(router.route({"type": "chat-message", "data": payload}))
    assert message["data"] == payload


def test_superchat_without_comment_is_relayed(router):
    payload = _chat_payload(text="", isSuperchat=True, amount="$5.00")
    message = _single_broadcast(router.route({"type": "chat-message", "data": payload}))
    assert message == {"type": "chat-message", "data": payload}


@pytest.mark.parametrize("overrides", [
    {"platform": "kick"},
    {"username": ""},
    {"username": "   "},
    {"text": None},
    {"badges": "moderator"},
])
def test_invalid_chat_message_is_rejected(router, overrides):
    error = _single_error(router.route({"type": "chat-message", "data": _chat_payload(**overrides)}))
    assert error["inResponseTo"] == "chat-message"


def test_connect_twitch_scenario(router, store):
    message = _single_broadcast(router.route(
        '{"type": "connect", "data": {"platform": "twitch", "channelId": "foo"}}'
    ))
    assert message["type"] == "config"
    assert message["data"]["platforms"]["twitch"] == {"enabled": True, "channelId": "foo"}
    assert store.active_platforms() == ["Twitch"]


def test_connect_both_platforms_is_multistream(router, store):
    router.route({"type": "connect", "data": {"platform": "twitch", "channelId": "foo"}})
    message = _single_broadcast(router.route(
        {"type": "connect", "data": {"platform": "youtube", "videoId": "abc123"}}
    ))
    platforms = message["data"]["platforms"]
    assert platforms["youtube"]["enabled"] is True
    assert platforms["twitch"]["enabled"] is True
    assert store.is_multistream_active() is True


@pytest.mark.parametrize("data", [
    {"platform": "youtube"},
    {"platform": "twitch", "videoId": "wrong-field"},
    {"platform": "kick", "channelId": "foo"},
    {"videoId": "abc"},
    None,
])
def test_invalid_connect_replies_error_and_keeps_state(router, store, data):
    before = store.get()
    error = _single_error(router.route({"type": "connect", "data": data}))
    assert error["inResponseTo"] == "connect"
    assert store.get() == before


def test_disconnect_without_platform_clears_both(router, store):
    router.route({"type": "connect", "data": {"platform": "twitch", "channelId": "foo"}})
    router.route({"type": "connect", "data": {"platform": "youtube", "videoId": "abc"}})

    message = _single_broadcast(router.route({"type": "disconnect", "data": {}}))

    assert message["data"]["platforms"] == {
        "youtube": {"enabled": False, "videoId": ""},
        "twitch": {"enabled": False, "channelId": ""},
    }


def test_disconnect_missing_data_clears_both(router, store):
    router.route({"type": "connect", "data": {"platform": "twitch", "channelId": "foo"}})
    _single_broadcast(router.route({"type": "disconnect"}))
    assert store.active_platforms() == []


def test_disconnect_single_platform(router, store):
    router.route({"type": "connect", "data": {"platform": "twitch", "channelId": "foo"}})
    router.route({"type": "connect", "data": {"platform": "youtube", "videoId": "abc"}})
    router.route({"type": "disconnect", "data": {"platform": "youtube"}})
    assert store.active_platforms() == ["Twitch"]


def test_disconnect_unknown_platform_is_noop(router, store):
    router.route({"type": "connect", "data": {"platform": "twitch", "channelId": "foo"}})
    before = store.get()
    message = _single_broadcast(router.route({"type": "disconnect", "data": {"platform": "kick"}}))
    assert message["data"] == before


def test_test_sound(router, store):
    before = store.get()
    message = _single_broadcast(router.route({"type": "test-sound", "data": {}}))
    assert message == {"type": "test-sound", "data": {}}
    assert store.get() == before


def test_unknown_type_is_not_broadcast(router, store):
    before = store.get()
    error = _single_error(router.route({"type": "bogus"}))
    assert error["inResponseTo"] == "bogus"
    assert store.get() == before


def test_error_type_from_client_is_not_accepted(router):
    error = _single_error(router.route({"type": "error", "data": {}}))
    assert error["inResponseTo"] == "error"


@pytest.mark.parametrize("raw", [
    "not json",
    b"\xff\xfe",
    "[1, 2, 3]",
    '{"data": {}}',
    '{"type": 5}',
])
def test_malformed_envelope_is_dropped(router, store, raw):
    before = store.get()
    error = _single_error(router.route(raw))
    assert error["inResponseTo"] is None
    assert store.get() == before


def test_deeply_nested_frame_is_rejected(router, store):
    before = store.get()
    raw = '{"type": "config", "data": ' + "[" * 100000 + "]" * 100000 + "}"
    error = _single_error(router.route(raw))
    assert error["inResponseTo"] is None
    assert store.get() == before


def test_handler_failure_becomes_error_reply(router, store, monkeypatch):
    def boom(partial):
        raise RuntimeError("disk full")

    monkeypatch.setattr(store, "merge", boom)
    error = _single_error(router.route({"type": "config", "data": {"theme": "minimal"}}))
    assert error == {"inResponseTo": "config", "reason": "internal error"}
