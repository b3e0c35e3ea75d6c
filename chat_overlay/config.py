"""
런타임 설정. 환경 변수(.env)에서 읽어 OverlaySettings 로 묶는다.

.env 예시:
    OVERLAY_PORT=3000
    YOUTUBE_API_KEY=...
    TWITCH_DEFAULT_CHANNEL=...
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

ANONYMOUS_TWITCH_BOT = "justinfan12345"


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = (env.get(name) or "").strip()
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = (env.get(name) or "").strip()
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


@dataclass
class OverlaySettings:
    """서버/플랫폼/오버레이 기본값. 비밀 값(API 키 등)은 여기만 두고 설정 문서엔 넣지 않음."""
    host: str = "127.0.0.1"
    port: int = 3000

    youtube_api_key: str = ""
    youtube_channel_id: str = ""
    youtube_default_video_id: str = ""
    youtube_simulation_mode: bool = False

    twitch_default_channel: str = ""
    twitch_bot_username: str = ANONYMOUS_TWITCH_BOT
    twitch_client_id: str = ""
    twitch_client_secret: str = ""
    twitch_access_token: str = ""

    max_messages: int = 6
    sound_enabled: bool = True
    sound_volume: float = 0.5
    show_username: bool = True
    show_avatar: bool = True
    show_platform_icon: bool = True
    avatar_shape: str = "circle"  # circle | square
    bg_color: str = "#000000"
    bg_opacity: int = 55  # 0-100
    border_radius: int = 18
    blur_effect: bool = True

    cache_ttl_minutes: float = 5.0
    shutdown_grace_sec: float = 10.0

    @property
    def twitch_irc_mode(self) -> bool:
        """익명(justinfan) 계정이면 IRC 전용 모드 (아바타 없음)."""
        return self.twitch_bot_username.startswith("justinfan")

    @classmethod
    def from_env(
        cls,
        env: Optional[Mapping[str, str]] = None,
        dotenv_path: Optional[Path] = None,
    ) -> "OverlaySettings":
        """
        환경 변수에서 설정 생성

        Args:
            env: 읽을 매핑 (None이면 .env 로드 후 os.environ)
            dotenv_path: .env 경로 (None이면 python-dotenv 기본 탐색)
        """
        if env is None:
            load_dotenv(dotenv_path)
            env = os.environ
        avatar_shape = (env.get("OVERLAY_AVATAR_SHAPE") or "circle").strip().lower()
        if avatar_shape not in ("circle", "square"):
            avatar_shape = "circle"
        return cls(
            host=(env.get("OVERLAY_HOST") or "127.0.0.1").strip(),
            port=_env_int(env, "OVERLAY_PORT", 3000),
            youtube_api_key=(env.get("YOUTUBE_API_KEY") or "").strip(),
            youtube_channel_id=(env.get("YOUTUBE_CHANNEL_ID") or "").strip(),
            youtube_default_video_id=(env.get("YOUTUBE_DEFAULT_VIDEO_ID") or "").strip(),
            youtube_simulation_mode=_env_bool(env, "YOUTUBE_SIMULATION_MODE", False),
            twitch_default_channel=(env.get("TWITCH_DEFAULT_CHANNEL") or "").strip(),
            twitch_bot_username=(env.get("TWITCH_BOT_USERNAME") or ANONYMOUS_TWITCH_BOT).strip(),
            twitch_client_id=(env.get("TWITCH_CLIENT_ID") or "").strip(),
            twitch_client_secret=(env.get("TWITCH_CLIENT_SECRET") or "").strip(),
            twitch_access_token=(env.get("TWITCH_ACCESS_TOKEN") or "").strip(),
            max_messages=max(1, _env_int(env, "OVERLAY_MAX_MESSAGES", 6)),
            sound_enabled=_env_bool(env, "OVERLAY_SOUND_ENABLED", True),
            sound_volume=min(1.0, max(0.0, _env_float(env, "OVERLAY_SOUND_VOLUME", 0.5))),
            show_username=_env_bool(env, "OVERLAY_SHOW_USERNAME", True),
            show_avatar=_env_bool(env, "OVERLAY_SHOW_AVATAR", True),
            show_platform_icon=_env_bool(env, "OVERLAY_SHOW_PLATFORM_ICON", True),
            avatar_shape=avatar_shape,
            bg_color=(env.get("OVERLAY_BG_COLOR") or "#000000").strip(),
            bg_opacity=min(100, max(0, _env_int(env, "OVERLAY_BG_OPACITY", 55))),
            border_radius=max(0, _env_int(env, "OVERLAY_BORDER_RADIUS", 18)),
            blur_effect=_env_bool(env, "OVERLAY_BLUR_EFFECT", True),
            cache_ttl_minutes=_env_float(env, "CACHE_TTL_MINUTES", 5.0),
            shutdown_grace_sec=_env_float(env, "SHUTDOWN_GRACE_SEC", 10.0),
        )
