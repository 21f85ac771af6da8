from fastapi import FastAPI, HTTPException, Query, Response, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from netmon import __version__
from netmon.config import Settings
from netmon.exporter import (
    CONTENT_TYPES,
    ExportError,
    alerts_to_csv,
    alerts_to_json,
    generate_filename,
    packets_to_csv,
    packets_to_json,
)
from netmon.models import MonitorSnapshot
from netmon.monitor import NetworkMonitor
from typing import List, Literal, Optional
import asyncio
import logging

logger = logging.getLogger(__name__)

VERSION = __version__

EXPORTERS = {
    ("packets", "csv"): packets_to_csv,
    ("packets", "json"): packets_to_json,
    ("alerts", "csv"): alerts_to_csv,
    ("alerts", "json"): alerts_to_json,
}


def create_app(settings: Optional[Settings] = None, monitor: Optional[NetworkMonitor] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    monitor = monitor or NetworkMonitor(settings)

    app = FastAPI(title="NetGuard Traffic Monitor API", version=VERSION)
    app.state.settings = settings
    app.state.monitor = monitor

    # CORS 설정 - 대시보드 개발 서버
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # WebSocket 연결 관리
    active_connections: List[WebSocket] = []

    def monitor_status() -> dict:
        return {
            "is_monitoring": monitor.is_monitoring,
            "total_packets": monitor.total_packets,
            "total_alerts": monitor.total_alerts,
        }

    @app.on_event("startup")
    async def startup_event():
        """서버 시작 시 (autostart 설정이면) 모니터링 시작"""
        logger.info("🚀 NetGuard Traffic Monitor v%s 서버 시작", VERSION)
        logger.info("🌐 WebSocket 엔드포인트: ws://%s:%s/ws", settings.host, settings.port)
        if settings.autostart:
            monitor.start()

    @app.on_event("shutdown")
    async def shutdown_event():
        """서버 종료 시 모니터링 중지"""
        logger.info("🛑 NetGuard Traffic Monitor 서버 종료")
        monitor.stop()

    @app.get("/")
    async def root():
        """루트 엔드포인트"""
        return {
            "message": f"NetGuard Traffic Monitor API v{VERSION}",
            "status": "running" if monitor.is_monitoring else "stopped",
            "endpoints": {
                "stats": "/api/stats",
                "packets": "/api/packets",
                "alerts": "/api/alerts",
                "protocols": "/api/protocols",
                "traffic": "/api/traffic",
                "export": "/api/export/{packets|alerts}?format=csv|json",
                "websocket": "/ws",
            },
        }

    @app.get("/api/health")
    async def health_check():
        """서버 상태 확인"""
        return {
            "status": "healthy",
            **monitor_status(),
            "active_connections": len(active_connections),
        }

    @app.post("/api/monitor/start")
    async def start_monitoring():
        monitor.start()
        return monitor_status()

    @app.post("/api/monitor/stop")
    async def stop_monitoring():
        monitor.stop()
        return monitor_status()

    @app.post("/api/monitor/clear")
    async def clear_data():
        monitor.clear()
        return monitor_status()

    @app.get("/api/stats", response_model=MonitorSnapshot, response_model_by_alias=True)
    async def get_stats(limit: int = Query(100, ge=0, le=1000)):
        """현재 통계 조회 (REST API)"""
        return monitor.snapshot(limit=limit)

    @app.get("/api/packets")
    async def get_packets(limit: int = Query(100, ge=0, le=1000)):
        return [p.model_dump(mode="json", by_alias=True) for p in monitor.packets(limit)]

    @app.get("/api/alerts")
    async def get_alerts(limit: int = Query(100, ge=0, le=1000)):
        return [a.model_dump(mode="json", by_alias=True) for a in monitor.alerts(limit)]

    @app.get("/api/alerts/recent")
    async def get_recent_alerts():
        """최근 24시간 경고"""
        return [a.model_dump(mode="json", by_alias=True) for a in monitor.recent_alerts()]

    @app.get("/api/protocols")
    async def get_protocol_stats():
        return [s.model_dump(by_alias=True) for s in monitor.protocol_stats()]

    @app.get("/api/traffic")
    async def get_traffic_data():
        return [t.model_dump(by_alias=True) for t in monitor.traffic_data()]

    @app.get("/api/export/{kind}")
    async def export_data(kind: str, format: Literal["csv", "json"] = "csv"):
        """버퍼 내용을 파일로 내보내기"""
        if kind == "packets":
            items = monitor.packets()
        elif kind == "alerts":
            items = monitor.alerts()
        else:
            raise HTTPException(status_code=404, detail=f"unknown export kind: {kind}")

        try:
            content = EXPORTERS[(kind, format)](items)
        except ExportError as e:
            # 내보내기 실패는 버퍼에 영향 없음
            logger.error("❌ 내보내기 오류 (%s/%s): %s", kind, format, e)
            raise HTTPException(status_code=500, detail=f"Export failed: {e}") from e

        filename = generate_filename(kind, format)
        return Response(
            content=content,
            media_type=CONTENT_TYPES[format],
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """실시간 데이터 전송을 위한 WebSocket"""
        await websocket.accept()
        active_connections.append(websocket)
        client_id = id(websocket)

        logger.info("✅ 클라이언트 연결: %s (총 %d개)", client_id, len(active_connections))

        try:
            while True:
                snapshot = monitor.snapshot()
                await websocket.send_json(snapshot.model_dump(mode="json", by_alias=True))
                # broadcast_interval마다 전송, 그 사이 연결 종료만 확인
                try:
                    message = await asyncio.wait_for(websocket.receive(), timeout=settings.broadcast_interval)
                except asyncio.TimeoutError:
                    continue
                if message["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(message.get("code", 1000))

        except WebSocketDisconnect:
            logger.info("❌ 클라이언트 연결 종료: %s", client_id)
        except Exception as e:
            logger.warning("⚠️ WebSocket 오류: %s", e)
        finally:
            if websocket in active_connections:
                active_connections.remove(websocket)
            logger.info("남은 연결: %d개", len(active_connections))

    return app


app = create_app()
