"""
방송 오버레이 서버. WebSocket /ws (및 /) 로 오버레이·컨트롤 패널을 연결하고,
상태 확인 / 캐시 / 플랫폼 조회용 HTTP API 를 제공한다.

create_app() 이 StateStore, ConnectionRegistry, QuotaCache 를 하나씩 만들어 app.state 에 둔다.
public/ 폴더가 있으면 정적 파일로 서빙 (OBS 브라우저 소스: http://127.0.0.1:3000/).
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import httpx
from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from chat_overlay.cache import QuotaCache
from chat_overlay.config import OverlaySettings
from chat_overlay.overlay.registry import ConnectionRegistry, Session
from chat_overlay.overlay.router import EventRouter
from chat_overlay.overlay.state import StateStore
from chat_overlay.platforms import PlatformLookupError, TwitchClient, YouTubeClient

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_PUBLIC_DIR = _PROJECT_ROOT / "public"

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[OverlaySettings] = None,
    *,
    cache: Optional[QuotaCache] = None,
    youtube: Optional[YouTubeClient] = None,
    twitch: Optional[TwitchClient] = None,
    public_dir: Optional[Path] = None,
) -> FastAPI:
    """
    오버레이 앱 생성

    Args:
        settings: 런타임 설정 (None이면 기본값)
        cache: 라이브 탐지 캐시 (None이면 settings TTL 로 생성)
        youtube / twitch: 플랫폼 클라이언트 (테스트에서 가짜 전송 계층 주입용)
        public_dir: 정적 파일 폴더 (None이면 프로젝트 루트의 public/)
    """
    settings = settings or OverlaySettings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Overlay 서버 시작 (클라이언트 0명)")
        yield
        await app.state.registry.close_all(1001, "Server shutting down")
        logger.info("Overlay 서버 종료")

    app = FastAPI(title="Live Chat Overlay", docs_url=None, redoc_url=None, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST"],
    )

    store = StateStore(settings)
    app.state.settings = settings
    app.state.store = store
    app.state.registry = ConnectionRegistry()
    app.state.router = EventRouter(store)
    app.state.cache = cache or QuotaCache(settings.cache_ttl_minutes)
    app.state.youtube = youtube or YouTubeClient(settings.youtube_api_key)
    app.state.twitch = twitch or TwitchClient(settings.twitch_client_id, settings.twitch_access_token)
    app.state.started_at = time.monotonic()

    app.add_api_websocket_route("/ws", overlay_socket)
    app.add_api_websocket_route("/", overlay_socket)

    app.add_api_route("/health", health, methods=["GET"])
    app.add_api_route("/api/health", health, methods=["GET"])
    app.add_api_route("/api/config", public_config, methods=["GET"])
    app.add_api_route("/api/debug/config", debug_config, methods=["GET"])
    app.add_api_route("/api/cache/stats", cache_stats, methods=["GET"])
    app.add_api_route("/api/cache/clear", cache_clear, methods=["POST"])
    app.add_api_route("/api/youtube/channel/{channel_id}/live", youtube_live, methods=["GET"])
    # /{channel} 보다 먼저 등록해야 함
    app.add_api_route("/api/twitch/emotes/global", twitch_global_emotes, methods=["GET"])
    app.add_api_route("/api/twitch/{channel}", twitch_channel, methods=["GET"])

    static_dir = public_dir if public_dir is not None else _PUBLIC_DIR
    if static_dir.is_dir():
        control_page = static_dir / "control.html"
        if control_page.is_file():
            app.add_api_route("/control", lambda: FileResponse(control_page), methods=["GET"])
        app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="public")

    return app


async def overlay_socket(websocket: WebSocket):
    """오버레이/컨트롤 패널 공용 WebSocket. 접속 즉시 현재 설정을 한 번 보낸다."""
    app = websocket.app
    registry: ConnectionRegistry = app.state.registry
    router: EventRouter = app.state.router

    await websocket.accept()
    session = Session(websocket)
    session.start()
    # 스냅샷 적재와 등록 사이에 await 없음 → 이후 broadcast 는 항상 스냅샷 뒤에 도착
    registry.send_to(session, router.on_register())
    registry.register(session)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            registry.deliver(router.route(raw), sender=session)
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error(f"[{session.id}] WebSocket 오류: {e}", exc_info=True)
    finally:
        registry.unregister(session)
        await session.stop()


def health(request: Request):
    """서버 상태 + 현재 플랫폼 연결 요약."""
    state = request.app.state
    settings: OverlaySettings = state.settings
    store: StateStore = state.store
    doc = store.get()
    return JSONResponse({
        "status": "ok",
        "uptime": round(time.monotonic() - state.started_at, 3),
        "clients": state.registry.count(),
        "config": {
            "platforms": doc["platforms"],
            "activeConnections": store.active_platforms(),
            "multistream": store.is_multistream_active(),
            "maxMessages": doc["maxMessages"],
        },
        "features": {
            "youtubeApiConfigured": bool(settings.youtube_api_key),
            "twitchApiConfigured": bool(settings.twitch_client_id),
            "youtubeSimulationMode": settings.youtube_simulation_mode,
        },
    })


def public_config(request: Request):
    """클라이언트용 공개 설정 (API 키 등 비밀 값 제외)."""
    s: OverlaySettings = request.app.state.settings
    return JSONResponse({
        "overlay": {
            "maxMessages": s.max_messages,
            "showUsername": s.show_username,
            "showAvatar": s.show_avatar,
            "showPlatformIcon": s.show_platform_icon,
            "avatarShape": s.avatar_shape,
            "backgroundColor": s.bg_color,
            "backgroundOpacity": s.bg_opacity,
            "borderRadius": s.border_radius,
            "blurEffect": s.blur_effect,
            "soundEnabled": s.sound_enabled,
            "soundVolume": s.sound_volume,
        },
        "platforms": {
            "youtube": {
                "simulationMode": s.youtube_simulation_mode,
                "apiConfigured": bool(s.youtube_api_key),
            },
            "twitch": {
                "ircMode": s.twitch_irc_mode,
                "apiConfigured": bool(s.twitch_client_id),
            },
        },
    })


def debug_config(request: Request):
    """현재 런타임 설정 문서 전체 (디버깅용)."""
    return JSONResponse(request.app.state.store.get())


def cache_stats(request: Request):
    return JSONResponse({"status": "ok", "cache": request.app.state.cache.stats()})


def cache_clear(request: Request):
    request.app.state.cache.clear()
    logger.info("Overlay API: cache clear")
    return JSONResponse({"status": "ok", "message": "Cache cleared successfully"})


async def youtube_live(channel_id: str, request: Request):
    """채널의 현재 라이브 영상 조회. 캐시 먼저 확인해 쿼터 절약."""
    state = request.app.state
    youtube: YouTubeClient = state.youtube
    cache: QuotaCache = state.cache

    if not youtube.is_configured:
        return JSONResponse({"status": "error", "message": "YouTube API key not configured"})

    cached = cache.get(channel_id)
    if cached is not None:
        return JSONResponse({"status": "success", **cached, "fromCache": True})

    try:
        stream = await youtube.find_live_stream(channel_id)
    except PlatformLookupError as e:
        return JSONResponse({"status": "error", "message": e.message, "code": e.code})
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"YouTube 조회 실패: {e}")
        return JSONResponse({"status": "error", "message": str(e)}, status_code=500)

    if stream is None:
        return JSONResponse({
            "status": "no_live_stream",
            "message": "No active live stream found for this channel",
        })

    result = stream.to_dict()
    cache.set(channel_id, result)
    return JSONResponse({"status": "success", **result, "fromCache": False})


async def twitch_global_emotes(request: Request):
    twitch: TwitchClient = request.app.state.twitch
    if not twitch.is_configured:
        logger.warning("Twitch Client ID 미설정, 이모트 조회 불가")
        return JSONResponse({"twitch": []})
    return JSONResponse({"twitch": await twitch.get_global_emotes()})


async def twitch_channel(channel: str, request: Request):
    """Twitch 채널(사용자) 정보. Client ID 없으면 IRC 전용 모드 안내."""
    twitch: TwitchClient = request.app.state.twitch
    if not twitch.is_configured:
        return JSONResponse({
            "status": "error",
            "message": "Twitch Client ID not configured",
            "ircMode": True,
        })
    try:
        data = await twitch.get_user(channel)
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Twitch 조회 실패: {e}")
        return JSONResponse({"status": "error", "message": str(e)}, status_code=500)
    return JSONResponse({"status": "success", "data": data})
