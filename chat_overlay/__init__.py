"""YouTube / Twitch 채팅을 방송 오버레이로 중계하는 서버"""

__version__ = "1.0.0"
