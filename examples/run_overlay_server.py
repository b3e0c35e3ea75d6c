"""
채팅 오버레이 서버 실행

.env에 OVERLAY_PORT, YOUTUBE_API_KEY, TWITCH_DEFAULT_CHANNEL 등 설정 후 실행.
실행: python examples/run_overlay_server.py  (프로젝트 루트에서)

- 오버레이: OBS 브라우저 소스에 http://127.0.0.1:3000/ 추가 (public/ 폴더 필요)
- 컨트롤 패널: http://127.0.0.1:3000/control
- WebSocket: ws://127.0.0.1:3000/ws
- 종료: Ctrl+C → 모든 클라이언트 연결을 닫고 SHUTDOWN_GRACE_SEC(기본 10초) 안에 종료.
"""

import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import uvicorn

from chat_overlay.config import OverlaySettings
from chat_overlay.overlay.server import create_app
from chat_overlay.utils import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    settings = OverlaySettings.from_env(dotenv_path=Path(__file__).resolve().parent.parent / ".env")
    log_dir = setup_logging()
    app = create_app(settings)

    youtube_state = "✓ 설정됨" if settings.youtube_api_key else "✗ 미설정 (시뮬레이션 모드)"
    twitch_state = "✗ 익명 모드" if settings.twitch_irc_mode else "✓ 인증됨"
    print(f"📺 오버레이:     http://{settings.host}:{settings.port}")
    print(f"⚙️  컨트롤 패널: http://{settings.host}:{settings.port}/control")
    print(f"  • 최대 메시지: {settings.max_messages}")
    print(f"  • YouTube API: {youtube_state}")
    print(f"  • Twitch 인증: {twitch_state}")
    print(f"  • 캐시 TTL:    {settings.cache_ttl_minutes:g}분")
    print(f"  • 로그:        {log_dir}")
    logger.info("Overlay 서버 실행: %s:%d", settings.host, settings.port)

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level="warning",
        timeout_graceful_shutdown=int(settings.shutdown_grace_sec),
    )


if __name__ == "__main__":
    main()
