"""
오버레이 WebSocket 메시지 규격.

모든 프레임은 JSON {"type": ..., "data": ...}.
- 수신: config / chat-message / connect / disconnect / test-sound
- 송신: config(항상 전체 문서) / chat-message / test-sound / error(보낸 세션에만)
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel


class MessageType(str, Enum):
    CONFIG = "config"
    CHAT_MESSAGE = "chat-message"
    CONNECT = "connect"
    DISCONNECT = "disconnect"
    TEST_SOUND = "test-sound"
    ERROR = "error"


class ProtocolError(ValueError):
    """envelope 파싱 실패. in_response_to 는 알 수 있으면 원래 type."""

    def __init__(self, reason: str, in_response_to: Optional[str] = None):
        super().__init__(reason)
        self.reason = reason
        self.in_response_to = in_response_to


class Envelope(BaseModel):
    type: str
    data: Any = None


def parse_envelope(raw: Union[str, bytes, dict]) -> Envelope:
    """
    원시 프레임을 Envelope 로 파싱

    Raises:
        ProtocolError: JSON 아님, 객체 아님, type 누락, 중첩 과다
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ProtocolError(f"UTF-8 디코딩 실패: {e}") from e
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ProtocolError(f"JSON 파싱 실패: {e.msg}") from e
        except RecursionError as e:
            raise ProtocolError("JSON 중첩이 너무 깊습니다") from e
    if not isinstance(raw, dict):
        raise ProtocolError("메시지는 JSON 객체여야 합니다")
    msg_type = raw.get("type")
    if not isinstance(msg_type, str) or not msg_type:
        raise ProtocolError("type 필드가 없습니다")
    return Envelope(type=msg_type, data=raw.get("data"))


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class YouTubePlatformState(_CamelModel):
    enabled: bool
    video_id: str


class TwitchPlatformState(_CamelModel):
    enabled: bool
    channel_id: str


class PlatformsState(_CamelModel):
    youtube: YouTubePlatformState
    twitch: TwitchPlatformState


class ConfigUpdate(_CamelModel):
    """
    config 메시지의 부분 업데이트.

    알 수 없는 키, 읽기 전용 키(youtubeApiConfigured 등)는 거부한다.
    platforms 가 있으면 두 플랫폼 전체를 교체한다.
    """

    platforms: Optional[PlatformsState] = None
    theme: Optional[str] = None
    max_messages: Optional[int] = Field(default=None, ge=1)
    animation_speed: Optional[float] = Field(default=None, gt=0)
    sound_enabled: Optional[bool] = None
    volume: Optional[float] = None
    show_username: Optional[bool] = None
    show_avatar: Optional[bool] = None
    show_platform_icon: Optional[bool] = None
    avatar_shape: Optional[Literal["circle", "square"]] = None
    bg_color: Optional[str] = None
    bg_opacity: Optional[int] = Field(default=None, ge=0, le=100)
    border_radius: Optional[int] = Field(default=None, ge=0)
    blur_effect: Optional[bool] = None
    custom_css: Optional[str] = Field(default=None, alias="customCSS")

    @field_validator("volume")
    @classmethod
    def _clamp_volume(cls, value: Optional[float]) -> Optional[float]:
        if value is None:
            return None
        return min(1.0, max(0.0, value))

    def to_partial(self) -> dict[str, Any]:
        """보낸 키만 camelCase 로. None 을 명시적으로 보낸 키는 제외."""
        return self.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)


class ConnectRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    platform: str
    video_id: Optional[str] = None
    channel_id: Optional[str] = None


def describe_validation_error(error: ValidationError) -> str:
    """ValidationError 를 한 줄 사유로."""
    parts = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item.get("loc", ())) or "data"
        parts.append(f"{loc}: {item.get('msg', 'invalid')}")
    return "; ".join(parts)


def make_message(msg_type: MessageType, data: Any) -> dict[str, Any]:
    return {"type": msg_type.value, "data": data}


def config_message(document: dict[str, Any]) -> dict[str, Any]:
    return make_message(MessageType.CONFIG, document)


def chat_message(payload: dict[str, Any]) -> dict[str, Any]:
    return make_message(MessageType.CHAT_MESSAGE, payload)


def sound_message() -> dict[str, Any]:
    return make_message(MessageType.TEST_SOUND, {})


def error_message(in_response_to: Optional[str], reason: str) -> dict[str, Any]:
    return make_message(MessageType.ERROR, {"inResponseTo": in_response_to, "reason": reason})
