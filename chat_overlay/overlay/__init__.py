"""
방송 오버레이: 채팅·설정을 WebSocket 으로 OBS 브라우저 소스와 컨트롤 패널에 실시간 전달.

- StateStore: 설정 문서 (플랫폼 연결 + 표시 설정)
- ConnectionRegistry: 접속 세션 집합, broadcast
- EventRouter: 수신 메시지 분기
- OBS에서 브라우저 소스 URL을 http://127.0.0.1:3000/ 로 설정.
"""

from chat_overlay.overlay.registry import ConnectionRegistry, Session
from chat_overlay.overlay.router import Delivery, EventRouter
from chat_overlay.overlay.state import StateStore, default_document

__all__ = [
    "ConnectionRegistry",
    "Delivery",
    "EventRouter",
    "Session",
    "StateStore",
    "default_document",
]
