"""
채팅 메시지 데이터 모델 (플랫폼 공통)

수집 측(브라우저의 YouTube 폴러 / Twitch IRC 리스너, 컨트롤 패널 테스트 메시지)이
이미 정규화한 형태로 보내는 chat-message 페이로드를 검증한다.
서버는 검증만 하고 원본 dict 를 그대로 브로드캐스트한다.
"""

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

PLATFORM_KEYS = ("youtube", "twitch")
PLATFORM_DISPLAY_NAMES = {"youtube": "YouTube", "twitch": "Twitch"}


class ChatMessage(BaseModel):
    """chat-message 페이로드. 알 수 없는 키(raw 등)는 그대로 통과."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    username: str = Field(min_length=1)
    text: str  # 내용 없는 슈퍼챗은 빈 문자열
    platform: Literal["youtube", "twitch"]
    id: Optional[Union[str, int]] = None  # 테스트 메시지는 id 없음
    avatar: Optional[str] = None
    username_color: Optional[str] = None
    is_moderator: bool = False
    is_superchat: bool = False
    amount: Optional[str] = None  # 슈퍼챗 표시 금액 ("$5.00")
    badges: list[str] = Field(default_factory=list)
    timestamp: Optional[float] = None  # ms epoch

    @field_validator("username")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("빈 문자열은 허용되지 않습니다")
        return value
