"""
HTTP endpoints for PA Alerts.

This module implements health, readiness, metrics and info endpoints,
plus the rendered alert layer and a manual refresh trigger.
"""

from typing import Optional
from fastapi import FastAPI, HTTPException
from fastapi.responses import Response, JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
import time
from pa_alerts.settings import Settings
from pa_alerts.features.alert_layer import AlertLayer
from pa_alerts.orchestrators.run_controller import RunController
from pa_alerts.observability.logging_setup import get_logger

log = get_logger("pa_alerts.http")

def create_app(settings: Settings,
               layer: Optional[AlertLayer] = None,
               controller: Optional[RunController] = None) -> FastAPI:
    """FastAPI 애플리케이션을 생성합니다."""
    app = FastAPI(
        title=settings.observability.service_name,
        version=settings.observability.build_version,
        description="PA Alerts map backend"
    )

    start_time = time.time()

    @app.get("/health")
    async def health():
        """헬스 체크 엔드포인트"""
        return JSONResponse({
            "status": "ok",
            "service": settings.observability.service_name,
            "timestamp": time.time()
        })

    @app.get("/ready")
    async def ready():
        """레디니스 체크: 한 번이라도 경보를 반영했는지 확인"""
        loaded = layer is not None and layer.snapshot.last_updated is not None
        return JSONResponse({
            "status": "ready" if loaded else "starting",
            "service": settings.observability.service_name,
            "timestamp": time.time()
        }, status_code=200 if loaded else 503)

    @app.get("/metrics")
    async def metrics():
        """Prometheus 메트릭 엔드포인트"""
        if not settings.observability.metrics_enabled:
            raise HTTPException(status_code=503, detail="Metrics disabled")

        return Response(
            generate_latest(),
            media_type=CONTENT_TYPE_LATEST
        )

    @app.get("/info")
    async def info():
        """서비스 정보 엔드포인트"""
        uptime = time.time() - start_time
        window = settings.view_window
        return JSONResponse({
            "service": settings.observability.service_name,
            "version": settings.observability.build_version,
            "build_date": settings.observability.build_date,
            "uptime_seconds": int(uptime),
            "metrics_enabled": settings.observability.metrics_enabled,
            "log_level": settings.observability.log_level,
            "view_window": window.model_dump(),
            "budget": settings.budget.model_dump(),
        })

    @app.get("/alerts")
    async def alerts():
        """현재 렌더링된 경보 레이어 (GeoJSON FeatureCollection)"""
        if layer is None:
            raise HTTPException(status_code=503, detail="Alert layer not configured")
        return JSONResponse(layer.to_feature_collection())

    @app.post("/refresh", status_code=202)
    async def refresh():
        """수집 실행을 수동으로 시작합니다 (진행 중인 실행은 취소)."""
        if controller is None:
            raise HTTPException(status_code=503, detail="Run controller not configured")
        controller.trigger()
        log.info("수동 갱신 요청 처리")
        return {"ok": True, "message": "refresh started"}

    @app.get("/")
    async def root():
        """루트 엔드포인트"""
        return JSONResponse({
            "service": settings.observability.service_name,
            "version": settings.observability.build_version,
            "endpoints": {
                "health": "/health",
                "ready": "/ready",
                "metrics": "/metrics",
                "info": "/info",
                "alerts": "/alerts",
                "refresh": "/refresh"
            }
        })

    return app
