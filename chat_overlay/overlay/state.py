"""
오버레이 설정 문서(ConfigurationDocument) 저장소.

프로세스당 하나, 시작 시 기본값으로 만들고 저장하지 않는다.
읽기는 항상 복사본, 쓰기는 merge / connect_platform / disconnect_platform 만 거친다.
모든 메서드는 동기 (await 없음) 라 이벤트 루프 안에서 원자적으로 실행된다.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Mapping, Optional

from chat_overlay.chat.models import PLATFORM_DISPLAY_NAMES, PLATFORM_KEYS
from chat_overlay.config import OverlaySettings

logger = logging.getLogger(__name__)

# 플랫폼별 식별자 키: youtube 는 영상 ID, twitch 는 채널 이름
PLATFORM_ID_FIELDS = {"youtube": "videoId", "twitch": "channelId"}

# 자격 증명 "존재 여부"만 보여주는 필드. config 업데이트로 바꿀 수 없음
READ_ONLY_FIELDS = frozenset({
    "youtubeApiConfigured",
    "youtubeChannelId",
    "youtubeDefaultVideoId",
    "youtubeSimulationMode",
    "twitchDefaultChannel",
    "twitchConfig",
})


def default_document(settings: Optional[OverlaySettings] = None) -> dict[str, Any]:
    """설정 기본값으로 초기 문서 생성. 플랫폼은 모두 끊긴 상태로 시작."""
    s = settings or OverlaySettings()
    return {
        "platforms": {
            "youtube": {"enabled": False, "videoId": ""},
            "twitch": {"enabled": False, "channelId": ""},
        },
        "theme": "neon",
        "maxMessages": s.max_messages,
        "animationSpeed": 1.0,
        "soundEnabled": s.sound_enabled,
        "volume": _clamp_volume(s.sound_volume),
        "showUsername": s.show_username,
        "showAvatar": s.show_avatar,
        "showPlatformIcon": s.show_platform_icon,
        "avatarShape": s.avatar_shape,
        "bgColor": s.bg_color,
        "bgOpacity": s.bg_opacity,
        "borderRadius": s.border_radius,
        "blurEffect": s.blur_effect,
        "customCSS": "",
        "youtubeApiConfigured": bool(s.youtube_api_key),
        "youtubeChannelId": s.youtube_channel_id,
        "youtubeDefaultVideoId": s.youtube_default_video_id,
        "youtubeSimulationMode": s.youtube_simulation_mode,
        "twitchDefaultChannel": s.twitch_default_channel,
        "twitchConfig": {"botUsername": s.twitch_bot_username},
    }


def _clamp_volume(value: Any) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        return 0.5
    return min(1.0, max(0.0, v))


def _is_valid_platforms(value: Any) -> bool:
    """platforms 는 정확히 youtube/twitch 두 키, 각각 enabled + 식별자."""
    if not isinstance(value, Mapping) or set(value.keys()) != set(PLATFORM_KEYS):
        return False
    for key, id_field in PLATFORM_ID_FIELDS.items():
        entry = value[key]
        if not isinstance(entry, Mapping):
            return False
        if not isinstance(entry.get("enabled"), bool) or not isinstance(entry.get(id_field), str):
            return False
    return True


class StateStore:
    """설정 문서 소유자. 외부에는 복사본만 준다."""

    def __init__(self, settings: Optional[OverlaySettings] = None):
        self._doc = default_document(settings)

    def get(self) -> dict[str, Any]:
        """전체 문서의 깊은 복사본."""
        return copy.deepcopy(self._doc)

    def merge(self, partial: Mapping[str, Any]) -> dict[str, Any]:
        """
        최상위 키 단위로 덮어쓰기 (마지막 쓰기 우선, 깊은 병합 없음).

        platforms 가 있으면 통째로 교체한다. 문서 모양을 깨는 값
        (읽기 전용 키, 형식이 틀린 platforms)은 건너뛰고 volume 은 0~1 로 자른다.

        Returns:
            병합 후 문서 복사본
        """
        applied = []
        for key, value in partial.items():
            if key in READ_ONLY_FIELDS:
                logger.warning("읽기 전용 설정 무시: %s", key)
                continue
            if key == "platforms":
                if not _is_valid_platforms(value):
                    logger.warning("잘못된 platforms 값 무시: %r", value)
                    continue
                value = {k: dict(value[k]) for k in PLATFORM_KEYS}
            elif key == "volume":
                value = _clamp_volume(value)
            self._doc[key] = copy.deepcopy(value)
            applied.append(key)
        if applied:
            logger.info("설정 업데이트: %s", ", ".join(applied))
        return self.get()

    def connect_platform(self, platform: str, data: Mapping[str, Any]) -> list[str]:
        """
        플랫폼 연결 (다른 플랫폼은 유지 → 멀티스트림 가능)

        Args:
            platform: "youtube" | "twitch"
            data: youtube 면 videoId, twitch 면 channelId 필요

        Returns:
            현재 활성 플랫폼 표시 이름 목록. 식별자 누락/모르는 플랫폼이면 아무것도 안 바꿈.
        """
        id_field = PLATFORM_ID_FIELDS.get(platform)
        identifier = data.get(id_field) if id_field else None
        if id_field and isinstance(identifier, str) and identifier:
            self._doc["platforms"][platform] = {"enabled": True, id_field: identifier}
            logger.info("%s 연결: %s", PLATFORM_DISPLAY_NAMES[platform], identifier)

        active = self.active_platforms()
        if len(active) > 1:
            logger.info("멀티스트림 활성: %s", " + ".join(active))
        return active

    def disconnect_platform(self, platform: Optional[str] = None) -> None:
        """platform 이 None 이면 전부, 아니면 해당 플랫폼만 해제. 여러 번 불러도 결과 같음."""
        if platform is None:
            targets = PLATFORM_KEYS
        elif platform in PLATFORM_ID_FIELDS:
            targets = (platform,)
        else:
            logger.debug("알 수 없는 플랫폼 해제 요청 무시: %s", platform)
            return
        for key in targets:
            self._doc["platforms"][key] = {"enabled": False, PLATFORM_ID_FIELDS[key]: ""}
        if platform is None:
            logger.info("모든 플랫폼 연결 해제")
        else:
            logger.info("%s 연결 해제", PLATFORM_DISPLAY_NAMES[platform])

    def active_platforms(self) -> list[str]:
        """enabled 인 플랫폼 표시 이름. 항상 YouTube → Twitch 순."""
        platforms = self._doc["platforms"]
        return [
            PLATFORM_DISPLAY_NAMES[key]
            for key in PLATFORM_KEYS
            if platforms[key].get("enabled")
        ]

    def is_platform_connected(self, platform: str) -> bool:
        entry = self._doc["platforms"].get(platform)
        return bool(entry and entry.get("enabled"))

    def is_multistream_active(self) -> bool:
        return len(self.active_platforms()) > 1
