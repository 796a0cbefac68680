"""
테스트 설정 및 픽스처

이 모듈은 pytest 설정과 공통 픽스처를 제공합니다.
"""

import asyncio
import copy
import pytest
from typing import Any, Dict, List, Optional

from pa_alerts.common.cancellation import CancellationToken
from pa_alerts.core.errors import FetchCancelledError, FetchTimeoutError, HttpStatusError
from pa_alerts.core.models import ViewWindow
from pa_alerts.settings import Settings

ALERTS_URL = "https://api.weather.gov/alerts/active"


class FakeFetcher:
    """URL별 응답/지연/실패를 지정할 수 있는 JSON 조회 포트 대역"""

    def __init__(self,
                 responses: Optional[Dict[str, Any]] = None,
                 delays: Optional[Dict[str, Any]] = None,
                 failures: Optional[Dict[str, Exception]] = None):
        self.responses = dict(responses or {})
        self.delays = dict(delays or {})
        self.failures = dict(failures or {})
        self.calls: List[str] = []
        self.cancelled: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def _delay_for(self, url: str) -> float:
        delay = self.delays.get(url, 0.0)
        if isinstance(delay, list):
            return delay.pop(0) if delay else 0.0
        return delay

    async def fetch_json(self, url: str, timeout_sec: float,
                         token: Optional[CancellationToken] = None) -> Any:
        self.calls.append(url)
        if token is not None and token.cancelled:
            self.cancelled.append(url)
            raise FetchCancelledError("cancelled", url)

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            delay = self._delay_for(url)
            wait = min(delay, timeout_sec)
            if token is not None:
                if await token.wait(wait):
                    self.cancelled.append(url)
                    raise FetchCancelledError("cancelled", url)
            else:
                await asyncio.sleep(wait)
            if delay > timeout_sec:
                raise FetchTimeoutError("timed out", url)

            if url in self.failures:
                raise self.failures[url]
            if url in self.responses:
                return copy.deepcopy(self.responses[url])
            raise HttpStatusError(404, url)
        finally:
            self.in_flight -= 1

    def zone_calls(self) -> List[str]:
        return [c for c in self.calls if c != ALERTS_URL]


def square(min_lng: float, min_lat: float, max_lng: float, max_lat: float) -> Dict[str, Any]:
    """사각형 GeoJSON Polygon"""
    return {
        "type": "Polygon",
        "coordinates": [[
            [min_lng, min_lat],
            [max_lng, min_lat],
            [max_lng, max_lat],
            [min_lng, max_lat],
            [min_lng, min_lat],
        ]],
    }


def feature(event: str, geometry: Optional[Dict[str, Any]] = None,
            zones: Optional[List[str]] = None, **props) -> Dict[str, Any]:
    """NWS 경보 feature"""
    properties = {"event": event, "affectedZones": list(zones or [])}
    properties.update(props)
    return {"type": "Feature", "geometry": geometry, "properties": properties}


@pytest.fixture
def view_window():
    """기본 표시 영역 (펜실베이니아 일대)"""
    return ViewWindow()


@pytest.fixture
def inside_square():
    """표시 영역 안쪽 사각형"""
    return square(-78.0, 40.0, -77.0, 41.0)


@pytest.fixture
def outside_square():
    """표시 영역 바깥 사각형"""
    return square(-100.0, 30.0, -99.0, 31.0)


@pytest.fixture
def make_square():
    return square


@pytest.fixture
def make_feature():
    return feature


@pytest.fixture
def make_fetcher():
    return FakeFetcher


@pytest.fixture
def alerts_url():
    return ALERTS_URL


@pytest.fixture
def token():
    """새 취소 토큰"""
    return CancellationToken()


@pytest.fixture
def sample_settings():
    """테스트용 설정"""
    settings = Settings()
    settings.observability.service_name = "test-service"
    settings.observability.build_version = "1.0.0"
    settings.observability.log_level = "INFO"
    settings.observability.http_port = 8080
    return settings


# pytest 설정
def pytest_collection_modifyitems(config, items):
    """테스트 아이템 수정"""
    for item in items:
        # 느린 테스트 마커 추가
        if "performance" in item.name or "stress" in item.name:
            item.add_marker(pytest.mark.slow)

        # 통합 테스트 마커 추가
        if "integration" in item.name:
            item.add_marker(pytest.mark.integration)
