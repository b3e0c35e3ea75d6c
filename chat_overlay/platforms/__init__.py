"""
플랫폼 API 조회 모듈
라이브 자동 탐지(YouTube), 사용자/이모트 조회(Twitch)
"""

from .errors import PlatformLookupError
from .twitch import TwitchClient
from .youtube import LiveStream, YouTubeClient

__all__ = [
    "LiveStream",
    "PlatformLookupError",
    "TwitchClient",
    "YouTubeClient",
]
