"""
채팅 메시지 모듈
YouTube / Twitch 수집 측이 보내는 정규화된 채팅 메시지 규격
"""

from .models import ChatMessage, PLATFORM_DISPLAY_NAMES, PLATFORM_KEYS

__all__ = [
    "ChatMessage",
    "PLATFORM_DISPLAY_NAMES",
    "PLATFORM_KEYS",
]
