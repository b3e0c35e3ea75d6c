"""
세션에서 들어오는 모든 메시지의 단일 진입점.

route() 는 동기 함수로, 상태 변경을 StateStore 에 적용하고
"무엇을 누구에게 보낼지"(Delivery)만 돌려준다. 실제 전송은 ConnectionRegistry 가 한다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from pydantic import ValidationError

from chat_overlay.chat.models import ChatMessage, PLATFORM_DISPLAY_NAMES
from chat_overlay.overlay.protocol import (
    ConfigUpdate,
    ConnectRequest,
    MessageType,
    ProtocolError,
    chat_message,
    config_message,
    describe_validation_error,
    error_message,
    parse_envelope,
    sound_message,
)
from chat_overlay.overlay.state import PLATFORM_ID_FIELDS, StateStore

logger = logging.getLogger(__name__)


@dataclass
class Delivery:
    """route 결과: broadcast 는 전체 세션에, reply 는 보낸 세션에만."""
    broadcast: list[dict[str, Any]] = field(default_factory=list)
    reply: list[dict[str, Any]] = field(default_factory=list)


class EventRouter:
    """type 태그로 분기해서 StateStore 를 갱신하고 Delivery 반환."""

    def __init__(self, store: StateStore):
        self.store = store
        self._handlers = {
            MessageType.CONFIG: self._handle_config,
            MessageType.CHAT_MESSAGE: self._handle_chat_message,
            MessageType.CONNECT: self._handle_connect,
            MessageType.DISCONNECT: self._handle_disconnect,
            MessageType.TEST_SOUND: self._handle_test_sound,
        }

    def on_register(self) -> dict[str, Any]:
        """새 세션에 보낼 현재 설정 스냅샷."""
        return config_message(self.store.get())

    def route(self, raw: Union[str, bytes, dict]) -> Delivery:
        """
        원시 프레임 처리

        예외를 밖으로 던지지 않는다. 잘못된 입력은 broadcast 없이 error 답장만.
        """
        try:
            envelope = parse_envelope(raw)
        except ProtocolError as e:
            logger.warning(f"메시지 파싱 실패, 무시: {e.reason}")
            return self._reject(e.in_response_to, e.reason)
        except Exception as e:
            logger.error(f"메시지 파싱 중 예상치 못한 오류: {e}", exc_info=True)
            return self._reject(None, "malformed message")

        try:
            msg_type = MessageType(envelope.type)
        except ValueError:
            msg_type = None
        handler = self._handlers.get(msg_type) if msg_type else None
        if handler is None:
            logger.warning(f"알 수 없는 메시지 타입: {envelope.type}")
            return self._reject(envelope.type, f"unknown message type: {envelope.type}")

        try:
            return handler(envelope.data)
        except ValidationError as e:
            reason = describe_validation_error(e)
            logger.warning(f"[{envelope.type}] 잘못된 데이터: {reason}")
            return self._reject(envelope.type, reason)
        except Exception as e:
            logger.error(f"[{envelope.type}] 처리 중 오류: {e}", exc_info=True)
            return self._reject(envelope.type, "internal error")

    def _reject(self, in_response_to: Optional[str], reason: str) -> Delivery:
        return Delivery(reply=[error_message(in_response_to, reason)])

    def _broadcast_config(self) -> Delivery:
        return Delivery(broadcast=[config_message(self.store.get())])

    def _handle_config(self, data: Any) -> Delivery:
        """컨트롤 패널 설정 변경 → 병합 후 전체 문서 broadcast."""
        update = ConfigUpdate.model_validate(data if data is not None else {})
        partial = update.to_partial()
        if not partial:
            return self._reject(MessageType.CONFIG.value, "empty config update")
        self.store.merge(partial)
        return self._broadcast_config()

    def _handle_chat_message(self, data: Any) -> Delivery:
        """채팅 메시지는 상태 변경 없이 그대로 broadcast."""
        message = ChatMessage.model_validate(data)
        logger.info(f"💬 [{message.platform}] {message.username}: {message.text}")
        return Delivery(broadcast=[chat_message(data)])

    def _handle_connect(self, data: Any) -> Delivery:
        """플랫폼 연결. 식별자 누락/모르는 플랫폼이면 error 답장만 (상태 변화 없음)."""
        request = ConnectRequest.model_validate(data if data is not None else {})
        platform = request.platform
        id_field = PLATFORM_ID_FIELDS.get(platform)
        if id_field is None:
            return self._reject(MessageType.CONNECT.value, f"unknown platform: {platform}")
        identifier = request.video_id if platform == "youtube" else request.channel_id
        if not identifier:
            return self._reject(MessageType.CONNECT.value, f"{id_field} is required for {platform}")

        self.store.connect_platform(platform, {id_field: identifier})
        return self._broadcast_config()

    def _handle_disconnect(self, data: Any) -> Delivery:
        """platform 없으면 전부 해제. 모르는 플랫폼은 상태 변화 없이 현재 설정만 다시 보냄."""
        platform = None
        if isinstance(data, dict):
            platform = data.get("platform") or None
        elif data is not None:
            return self._reject(MessageType.DISCONNECT.value, "data must be an object")
        if platform is not None and not isinstance(platform, str):
            return self._reject(MessageType.DISCONNECT.value, "platform must be a string")
        if platform is not None and platform not in PLATFORM_DISPLAY_NAMES:
            logger.info(f"알 수 없는 플랫폼 해제 요청: {platform}")
        self.store.disconnect_platform(platform)
        return self._broadcast_config()

    def _handle_test_sound(self, data: Any) -> Delivery:
        logger.info("🔊 테스트 사운드")
        return Delivery(broadcast=[sound_message()])
