"""
YouTube Data API 클라이언트 (라이브 방송 자동 탐지)

채널 ID로 현재 진행 중인 라이브 영상을 찾는다. search.list 는 호출당 100 쿼터라
반드시 QuotaCache 를 거쳐 호출할 것.

참고: https://developers.google.com/youtube/v3/docs/search/list
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Optional

import httpx

from .errors import PlatformLookupError

logger = logging.getLogger(__name__)


@dataclass
class LiveStream:
    """탐지된 라이브 방송 정보 (응답/캐시 형식은 camelCase dict)"""
    video_id: str
    title: str
    channel_title: str
    thumbnail: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        return {
            "videoId": data["video_id"],
            "title": data["title"],
            "channelTitle": data["channel_title"],
            "thumbnail": data["thumbnail"],
        }


class YouTubeClient:
    """YouTube Data API v3 최소 클라이언트"""

    API_BASE_URL = "https://www.googleapis.com/youtube/v3"

    def __init__(
        self,
        api_key: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            api_key: Google Cloud 콘솔에서 발급한 API 키
            timeout: 요청 타임아웃 (초)
            transport: httpx 전송 계층 (테스트에서 MockTransport 주입)
        """
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def find_live_stream(self, channel_id: str) -> Optional[LiveStream]:
        """
        채널의 현재 라이브 영상 조회

        Returns:
            LiveStream 또는 None (진행 중인 라이브 없음)

        Raises:
            PlatformLookupError: API 오류 응답 (쿼터 초과 등)
            httpx.HTTPError: 네트워크 오류
        """
        params = {
            "part": "snippet",
            "channelId": channel_id,
            "eventType": "live",
            "type": "video",
            "key": self.api_key,
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.get(f"{self.API_BASE_URL}/search", params=params)
            data = response.json()

        # API 오류는 HTTP 상태와 함께 {"error": {"code", "message"}} 로 옴
        error = data.get("error") if isinstance(data, dict) else None
        if error:
            message = error.get("message") or "YouTube API error"
            logger.error(f"YouTube API 오류: {message}")
            raise PlatformLookupError(message, code=error.get("code"))
        response.raise_for_status()

        items = data.get("items") or []
        if not items:
            logger.info(f"라이브 방송 없음: {channel_id}")
            return None

        live = items[0]
        snippet = live.get("snippet") or {}
        thumbnail = ((snippet.get("thumbnails") or {}).get("medium") or {}).get("url")
        stream = LiveStream(
            video_id=(live.get("id") or {}).get("videoId", ""),
            title=snippet.get("title", ""),
            channel_title=snippet.get("channelTitle", ""),
            thumbnail=thumbnail,
        )
        logger.info(f"라이브 방송 탐지: {channel_id} → {stream.video_id}")
        return stream
