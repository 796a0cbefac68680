# pa_alerts/main.py
import os, asyncio, signal
from typing import Optional
import uvicorn
from pa_alerts.settings import Settings
from pa_alerts.core.models import ViewWindow
from pa_alerts.observability.health import create_app
from pa_alerts.observability.logging_setup import setup_logging, get_logger
from pa_alerts.observability import metrics
from pa_alerts.adapters.nws.fetcher import BoundedFetcher
from pa_alerts.adapters.storage.geometry_cache import GeometryCache
from pa_alerts.features.alert_layer import AlertLayer
from pa_alerts.orchestrators.zone_resolver import ZoneGeometryResolver
from pa_alerts.orchestrators.ingestion import AlertIngestionPipeline
from pa_alerts.orchestrators.run_controller import RunController

def _b(name, default=False): return os.getenv(name, str(default)).lower() in ("1","true","yes","on")

def build_settings() -> Settings:
    s = Settings()

    # 소스
    s.source.alerts_url = os.getenv("ALERTS_URL", s.source.alerts_url)
    s.source.user_agent = os.getenv("NWS_USER_AGENT", s.source.user_agent)

    # 제한 시간
    s.fetch.main_timeout_sec = float(os.getenv("MAIN_TIMEOUT_SEC", s.fetch.main_timeout_sec))
    s.fetch.zone_timeout_sec = float(os.getenv("ZONE_TIMEOUT_SEC", s.fetch.zone_timeout_sec))

    # 예산
    s.budget.time_budget_sec = float(os.getenv("TIME_BUDGET_SEC", s.budget.time_budget_sec))
    s.budget.zone_fetch_cap = int(os.getenv("ZONE_FETCH_CAP", s.budget.zone_fetch_cap))
    s.budget.zone_concurrency = int(os.getenv("ZONE_CONCURRENCY", s.budget.zone_concurrency))
    s.budget.max_zones_per_alert = int(os.getenv("MAX_ZONES_PER_ALERT", s.budget.max_zones_per_alert))

    # 표시 영역 (불변 모델이므로 새로 생성)
    w = s.view_window
    s.view_window = ViewWindow(
        min_lat=float(os.getenv("VIEW_MIN_LAT", w.min_lat)),
        min_lng=float(os.getenv("VIEW_MIN_LNG", w.min_lng)),
        max_lat=float(os.getenv("VIEW_MAX_LAT", w.max_lat)),
        max_lng=float(os.getenv("VIEW_MAX_LNG", w.max_lng)),
    )

    # 갱신 주기
    s.refresh.interval_sec = float(os.getenv("REFRESH_INTERVAL_SEC", s.refresh.interval_sec))
    s.refresh.run_on_start = _b("REFRESH_ON_START", s.refresh.run_on_start)

    # 관측성
    s.observability.http_enabled = _b("HTTP_ENABLED", s.observability.http_enabled)
    s.observability.metrics_enabled = _b("METRICS_ENABLED", s.observability.metrics_enabled)
    s.observability.http_port = int(os.getenv("HTTP_PORT", s.observability.http_port))
    s.observability.log_level = os.getenv("LOG_LEVEL", s.observability.log_level)
    s.observability.json_logs = _b("JSON_LOGS", s.observability.json_logs)

    return s

def build_controller(s: Settings, fetcher: BoundedFetcher, cache: GeometryCache, layer: AlertLayer) -> RunController:
    resolver = ZoneGeometryResolver(
        fetcher, cache, s.view_window,
        zone_timeout_sec=s.fetch.zone_timeout_sec,
        concurrency=s.budget.zone_concurrency,
        max_zones_per_alert=s.budget.max_zones_per_alert,
    )
    pipeline = AlertIngestionPipeline(
        fetcher, resolver, s.view_window,
        alerts_url=s.source.alerts_url,
        main_timeout_sec=s.fetch.main_timeout_sec,
        time_budget_sec=s.budget.time_budget_sec,
        zone_fetch_cap=s.budget.zone_fetch_cap,
    )
    return RunController(pipeline, layer)

async def refresh_loop(controller: RunController, interval_sec: float, run_on_start: bool = True) -> None:
    """주기적으로 수집 실행을 트리거합니다."""
    log = get_logger("pa_alerts.refresh")
    loop = asyncio.get_running_loop()
    started = loop.time()
    if run_on_start:
        controller.trigger()
    while True:
        await asyncio.sleep(interval_sec)
        metrics.uptime_seconds.set(loop.time() - started)
        log.debug("자동 갱신 트리거")
        controller.trigger()

async def start_http(settings: Settings, layer: AlertLayer, controller: RunController) -> Optional[asyncio.Task]:
    if not settings.observability.http_enabled: return None
    app = create_app(settings, layer=layer, controller=controller)
    return asyncio.create_task(uvicorn.Server(
        uvicorn.Config(app, host="0.0.0.0", port=settings.observability.http_port, log_level="info")
    ).serve())

async def main():
    s = build_settings()
    setup_logging(s.observability.log_level, json_logs=s.observability.json_logs)
    log = get_logger()
    log.info("설정 로드 완료")

    cache = GeometryCache()
    layer = AlertLayer()

    async with BoundedFetcher(user_agent=s.source.user_agent) as fetcher:
        controller = build_controller(s, fetcher, cache, layer)
        log.info("수집 컨트롤러 생성 완료")

        http_task = await start_http(s, layer, controller)
        if http_task:
            log.info(f"HTTP 서버 시작됨 port:{s.observability.http_port}")

        loop = asyncio.get_running_loop()
        stop = loop.create_future()
        for sig in (signal.SIGTERM, signal.SIGINT):
            try: loop.add_signal_handler(sig, lambda: (not stop.done()) and stop.set_result(True))
            except NotImplementedError: pass

        log.info("자동 갱신 시작")
        refresh_task = asyncio.create_task(refresh_loop(controller, s.refresh.interval_sec, s.refresh.run_on_start))
        await stop

        refresh_task.cancel()
        controller.cancel("shutdown")
        await controller.wait()
        if http_task: http_task.cancel()
        log.info("종료")

def run() -> None:
    asyncio.run(main())

if __name__ == "__main__":
    run()
