from typing import Optional


class PlatformLookupError(Exception):
    """플랫폼 API 가 오류 본문을 돌려준 경우 (쿼터 초과, 잘못된 키 등)"""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.code = code
