"""
설정 및 진입점 테스트

이 모듈은 환경 변수 기반 설정 구성과 자동 갱신 루프를 테스트합니다.
"""

import pytest
import asyncio
from unittest.mock import Mock

from pa_alerts.adapters.storage.geometry_cache import GeometryCache
from pa_alerts.features.alert_layer import AlertLayer
from pa_alerts.main import build_controller, build_settings, refresh_loop
from pa_alerts.settings import Settings


class TestBuildSettings:
    """환경 변수 설정 테스트"""

    def test_defaults(self, monkeypatch):
        for name in ("ALERTS_URL", "TIME_BUDGET_SEC", "ZONE_FETCH_CAP", "VIEW_MIN_LAT", "HTTP_ENABLED"):
            monkeypatch.delenv(name, raising=False)

        s = build_settings()

        assert s.source.alerts_url == "https://api.weather.gov/alerts/active"
        assert s.fetch.main_timeout_sec == 25.0
        assert s.fetch.zone_timeout_sec == 8.0
        assert s.budget.time_budget_sec == 45.0
        assert s.budget.zone_fetch_cap == 150
        assert s.budget.zone_concurrency == 6
        assert s.budget.max_zones_per_alert == 12
        assert (s.view_window.min_lat, s.view_window.max_lng) == (38.6, -73.7)
        assert s.observability.http_enabled is True

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("ALERTS_URL", "http://localhost:9000/alerts")
        monkeypatch.setenv("TIME_BUDGET_SEC", "10")
        monkeypatch.setenv("ZONE_FETCH_CAP", "20")
        monkeypatch.setenv("VIEW_MIN_LAT", "39.5")
        monkeypatch.setenv("REFRESH_ON_START", "no")
        monkeypatch.setenv("JSON_LOGS", "true")

        s = build_settings()

        assert s.source.alerts_url == "http://localhost:9000/alerts"
        assert s.budget.time_budget_sec == 10.0
        assert s.budget.zone_fetch_cap == 20
        assert s.view_window.min_lat == 39.5
        assert s.view_window.max_lat == 42.9
        assert s.refresh.run_on_start is False
        assert s.observability.json_logs is True

    def test_build_controller_wiring(self, make_fetcher):
        s = Settings()
        s.budget.zone_fetch_cap = 3
        controller = build_controller(s, make_fetcher(), GeometryCache(), AlertLayer())

        assert controller.pipeline.zone_fetch_cap == 3
        assert controller.pipeline.resolver.max_zones_per_alert == 12
        assert controller.pipeline.window == s.view_window


class TestRefreshLoop:
    """자동 갱신 루프 테스트"""

    @pytest.mark.asyncio
    async def test_triggers_on_start_and_interval(self):
        controller = Mock()
        task = asyncio.create_task(refresh_loop(controller, 0.01, run_on_start=True))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert controller.trigger.call_count >= 2

    @pytest.mark.asyncio
    async def test_no_trigger_on_start(self):
        controller = Mock()
        task = asyncio.create_task(refresh_loop(controller, 10.0, run_on_start=False))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        controller.trigger.assert_not_called()
