"""
접속 중인 오버레이/컨트롤 패널 세션 관리.

전송 핸들(WebSocket)을 직접 만지는 곳은 여기뿐이다.
세션마다 송신 큐 + writer 태스크를 두어 broadcast 는 동기(큐 적재)로 끝나고,
세션별 전송 순서는 broadcast 호출 순서와 같다.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from typing import TYPE_CHECKING, Any, Optional, Protocol

from starlette.websockets import WebSocket, WebSocketState

if TYPE_CHECKING:
    from .router import Delivery

logger = logging.getLogger(__name__)

# 세션별 송신 대기 메시지 상한. 넘치면 오래된 것부터 버림
MAX_PENDING_MESSAGES = 256


class SessionLike(Protocol):
    id: str

    @property
    def is_open(self) -> bool: ...

    def send(self, payload: str) -> bool: ...

    async def close(self, code: int = 1000, reason: str = "") -> None: ...


class Session:
    """WebSocket 하나를 감싼 세션. send 는 큐에 넣기만 하고 실제 전송은 writer 태스크가 한다."""

    def __init__(
        self,
        websocket: WebSocket,
        session_id: Optional[str] = None,
        max_pending: int = MAX_PENDING_MESSAGES,
    ):
        self.websocket = websocket
        self.id = session_id or uuid.uuid4().hex[:8]
        self._outbox: asyncio.Queue[str] = asyncio.Queue(maxsize=max_pending)
        self._dropped = 0
        self._writer: Optional[asyncio.Task] = None
        self._closed = False

    def __repr__(self) -> str:
        return f"<Session {self.id}>"

    @property
    def is_open(self) -> bool:
        if self._closed:
            return False
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    def start(self) -> None:
        """writer 태스크 시작. 실행 중인 이벤트 루프 안에서 호출."""
        if self._writer is None:
            self._writer = asyncio.create_task(self._drain(), name=f"session-writer-{self.id}")

    def send(self, payload: str) -> bool:
        if not self.is_open:
            return False
        if self._outbox.full():
            self._outbox.get_nowait()
            self._outbox.task_done()
            self._dropped += 1
            if self._dropped == 1 or self._dropped % 100 == 0:
                logger.warning("[%s] 송신 큐 가득 참, 오래된 메시지 버림 (누적 %d개)", self.id, self._dropped)
        self._outbox.put_nowait(payload)
        return True

    @property
    def pending(self) -> int:
        return self._outbox.qsize()

    @property
    def dropped(self) -> int:
        return self._dropped

    async def _drain(self) -> None:
        while True:
            payload = await self._outbox.get()
            try:
                await self.websocket.send_text(payload)
            except Exception as e:
                logger.warning("[%s] 전송 실패, 이후 메시지 버림: %s", self.id, e)
                self._closed = True
                self._discard_pending()
                return
            finally:
                self._outbox.task_done()

    def _discard_pending(self) -> None:
        while not self._outbox.empty():
            self._outbox.get_nowait()
            self._outbox.task_done()

    async def flush(self, timeout: float = 1.0) -> None:
        """큐에 쌓인 메시지를 모두 보낼 때까지 대기 (종료 직전용)."""
        if self._writer is None or self._writer.done():
            return
        try:
            await asyncio.wait_for(self._outbox.join(), timeout)
        except asyncio.TimeoutError:
            logger.warning("[%s] 송신 큐 비우기 시간 초과 (%d개 남음)", self.id, self._outbox.qsize())

    async def stop(self) -> None:
        """writer 태스크 정리. 전송 핸들은 닫지 않음."""
        self._closed = True
        if self._writer is not None:
            self._writer.cancel()
            try:
                await self._writer
            except asyncio.CancelledError:
                pass
            self._writer = None

    async def close(self, code: int = 1000, reason: str = "") -> None:
        was_open = self.is_open
        await self.flush()
        await self.stop()
        if was_open:
            await self.websocket.close(code=code, reason=reason)


class ConnectionRegistry:
    """열린 세션 집합. 전송 실패는 세션 단위로 격리한다."""

    def __init__(self) -> None:
        self._sessions: set[SessionLike] = set()

    def register(self, session: SessionLike) -> None:
        self._sessions.add(session)
        logger.info("클라이언트 접속 (%s). 현재 %d명", session.id, len(self._sessions))

    def unregister(self, session: SessionLike) -> None:
        """없는 세션이면 아무것도 안 함 (close 후 unregister 경쟁 안전)."""
        if session not in self._sessions:
            return
        self._sessions.discard(session)
        logger.info("클라이언트 종료 (%s). 현재 %d명", session.id, len(self._sessions))

    def count(self) -> int:
        return len(self._sessions)

    def broadcast(self, message: dict[str, Any]) -> int:
        """
        한 번 직렬화해서 지금 열린 모든 세션에 전송

        닫힌 세션은 조용히 건너뛴다 (제거는 unregister 로만).

        Returns:
            보낸 세션 수
        """
        payload = json.dumps(message, ensure_ascii=False)
        sent = 0
        for session in list(self._sessions):
            try:
                if not session.is_open:
                    continue
                if session.send(payload):
                    sent += 1
            except Exception as e:
                logger.error("[%s] broadcast 전송 오류: %s", session.id, e)

        # config 는 자주 오가므로 로그 생략
        if message.get("type") != "config":
            logger.info("broadcast %s → %d명", message.get("type"), sent)
        return sent

    def send_to(self, session: SessionLike, message: dict[str, Any]) -> bool:
        """단일 세션 전송. 열려 있어서 보냈으면 True."""
        try:
            if not session.is_open:
                return False
            return session.send(json.dumps(message, ensure_ascii=False))
        except Exception as e:
            logger.error("[%s] 전송 오류: %s", session.id, e)
            return False

    def deliver(self, delivery: "Delivery", sender: Optional[SessionLike] = None) -> None:
        """EventRouter 결과 적용: broadcast 목록은 전체에, reply 목록은 보낸 세션에만."""
        for message in delivery.broadcast:
            self.broadcast(message)
        if sender is not None:
            for message in delivery.reply:
                self.send_to(sender, message)

    async def close_all(self, code: int = 1000, reason: str = "Server shutting down") -> None:
        """종료 시 모든 세션 닫기. 개별 오류는 로그만 남기고 계속."""
        logger.info("클라이언트 연결 %d개 종료 중...", len(self._sessions))
        for session in list(self._sessions):
            try:
                await session.close(code, reason)
            except Exception as e:
                logger.error("[%s] 연결 종료 오류: %s", session.id, e)
        self._sessions.clear()
