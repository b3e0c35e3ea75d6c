"""
Twitch Helix API 클라이언트 (사용자 정보 / 글로벌 이모트)

채팅 자체는 브라우저에서 IRC(익명 justinfan)로 받으므로 여기서는 부가 정보만 조회한다.
Client ID 가 없으면 IRC 전용 모드.

참고: https://dev.twitch.tv/docs/api/reference
"""

import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


class TwitchClient:
    """Twitch Helix 최소 클라이언트"""

    API_BASE_URL = "https://api.twitch.tv/helix"

    def __init__(
        self,
        client_id: str,
        access_token: str = "",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            client_id: dev.twitch.tv 콘솔의 Client ID
            access_token: App Access Token (없으면 빈 Bearer)
            timeout: 요청 타임아웃 (초)
            transport: httpx 전송 계층 (테스트에서 MockTransport 주입)
        """
        self.client_id = client_id
        self.access_token = access_token
        self.timeout = timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id)

    def _headers(self) -> dict[str, str]:
        return {
            "Client-ID": self.client_id,
            "Authorization": f"Bearer {self.access_token}",
        }

    async def get_user(self, login: str) -> dict[str, Any]:
        """
        채널(로그인 이름)의 사용자 정보 조회. Helix 응답 본문을 그대로 반환.

        Raises:
            httpx.HTTPError: 네트워크 오류
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.get(
                f"{self.API_BASE_URL}/users",
                params={"login": login},
                headers=self._headers(),
            )
            return response.json()

    async def get_global_emotes(self) -> list[dict[str, Any]]:
        """
        글로벌 이모트 목록. 실패해도 예외 대신 빈 목록 (오버레이는 이모트 없이 동작).
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(
                    f"{self.API_BASE_URL}/chat/emotes/global",
                    headers=self._headers(),
                )
            if response.status_code != 200:
                logger.warning(f"Twitch API 오류 응답: {response.status_code}")
                return []
            emotes = response.json().get("data") or []
            logger.info(f"Twitch 글로벌 이모트 {len(emotes)}개 조회")
            return emotes
        except httpx.HTTPError as e:
            logger.warning(f"Twitch 글로벌 이모트 조회 실패: {e}")
            return []
