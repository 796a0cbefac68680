"""
AlertIngestionPipeline 단위 테스트

이 모듈은 수집 실행 전체 흐름과 시간/존 조회 예산을 테스트합니다.
"""

import pytest
import asyncio
from itertools import chain, repeat

from pa_alerts.adapters.storage.geometry_cache import GeometryCache
from pa_alerts.core.errors import (
    FetchCancelledError,
    FetchTimeoutError,
    HttpStatusError,
    MalformedResponseError,
    NetworkError,
)
from pa_alerts.orchestrators.ingestion import AlertIngestionPipeline
from pa_alerts.orchestrators.zone_resolver import ZoneGeometryResolver


def zone(n):
    return f"https://api.weather.gov/zones/forecast/PAZ{n:03d}"


def collection(*features):
    return {"type": "FeatureCollection", "features": list(features)}


@pytest.fixture
def make_pipeline(view_window, alerts_url):
    def _make(fetcher, *, concurrency=6, max_zones_per_alert=12, **kwargs):
        resolver = ZoneGeometryResolver(
            fetcher, GeometryCache(), view_window,
            zone_timeout_sec=1.0,
            concurrency=concurrency,
            max_zones_per_alert=max_zones_per_alert,
        )
        kwargs.setdefault("main_timeout_sec", 1.0)
        return AlertIngestionPipeline(fetcher, resolver, view_window, alerts_url=alerts_url, **kwargs)
    return _make


class TestPipelineScenario:
    """대표 실행 시나리오 테스트"""

    @pytest.mark.asyncio
    async def test_filter_resolve_and_cull(self, make_pipeline, make_fetcher, make_feature,
                                           inside_square, outside_square, alerts_url, token):
        """위험 경보만 남기고 존 보완 후 표시 영역 밖은 제외"""
        fetcher = make_fetcher(responses={
            alerts_url: collection(
                make_feature("Flood Warning", inside_square),
                make_feature("Winter Storm Watch", zones=[zone(1)]),
                make_feature("Dense Fog Advisory", outside_square),
                make_feature("Special Weather Statement", inside_square),
            ),
            zone(1): {"geometry": inside_square},
        })

        result = await make_pipeline(fetcher).run(token)

        assert [a.event for a in result.alerts] == ["Flood Warning", "Winter Storm Watch"]
        assert result.alerts[1].geometry.type == "MultiPolygon"
        assert result.partial is False
        assert result.total_hazards == 3
        assert result.zone_fetches_used == 1
        assert fetcher.zone_calls() == [zone(1)]

    @pytest.mark.asyncio
    async def test_no_hazards(self, make_pipeline, make_fetcher, make_feature,
                              inside_square, alerts_url, token):
        fetcher = make_fetcher(responses={
            alerts_url: collection(make_feature("Special Weather Statement", inside_square)),
        })

        result = await make_pipeline(fetcher).run(token)

        assert result.alerts == []
        assert result.total_hazards == 0

    @pytest.mark.asyncio
    async def test_alert_without_geometry_or_zones_dropped(self, make_pipeline, make_fetcher,
                                                           make_feature, alerts_url, token):
        fetcher = make_fetcher(responses={alerts_url: collection(make_feature("Flood Warning"))})

        result = await make_pipeline(fetcher).run(token)

        assert result.alerts == []

    @pytest.mark.asyncio
    async def test_precise_miss_excluded(self, make_pipeline, make_fetcher, make_feature,
                                         alerts_url, token):
        """경계 상자만 겹치는 삼각형은 제외"""
        triangle = {
            "type": "Polygon",
            "coordinates": [[[-82.0, 38.0], [-80.5, 38.0], [-82.0, 39.0], [-82.0, 38.0]]],
        }
        fetcher = make_fetcher(responses={alerts_url: collection(make_feature("Flood Warning", triangle))})

        result = await make_pipeline(fetcher).run(token)

        assert result.alerts == []


class TestPipelineBudgets:
    """시간/존 조회 예산 테스트"""

    @pytest.mark.asyncio
    async def test_time_budget_partial(self, make_pipeline, make_fetcher, make_feature,
                                       inside_square, alerts_url, token):
        """예산을 넘기면 처리한 경보까지만 부분 결과로 반환"""
        fetcher = make_fetcher(responses={alerts_url: collection(
            make_feature("Flood Warning", inside_square),
            make_feature("Flood Watch", inside_square),
            make_feature("Wind Advisory", inside_square),
        )})
        # 시작 시각, 첫 경보 확인까지는 0초, 이후로는 100초
        clock = chain([0.0, 0.0], repeat(100.0)).__next__

        result = await make_pipeline(fetcher, time_budget_sec=45.0, clock=clock).run(token)

        assert [a.event for a in result.alerts] == ["Flood Warning"]
        assert result.partial is True
        assert result.total_hazards == 3

    @pytest.mark.asyncio
    async def test_zone_cap_across_alerts(self, make_pipeline, make_fetcher, make_feature,
                                          alerts_url, token):
        features = [
            make_feature("Flood Watch", zones=[zone(i * 3 + j) for j in range(3)])
            for i in range(5)
        ]
        fetcher = make_fetcher(responses={alerts_url: collection(*features)})

        result = await make_pipeline(fetcher, zone_fetch_cap=7).run(token)

        assert len(fetcher.zone_calls()) == 7
        assert result.zone_fetches_used == 7
        assert result.zone_fetch_cap == 7
        assert result.partial is False

    @pytest.mark.asyncio
    async def test_budget_is_per_run(self, make_pipeline, make_fetcher, make_feature,
                                     alerts_url, token):
        """두 번째 실행은 새 예산으로 시작"""
        fetcher = make_fetcher(responses={alerts_url: collection(
            make_feature("Flood Watch", zones=[zone(1), zone(2)]),
        )})
        pipeline = make_pipeline(fetcher, zone_fetch_cap=2)

        await pipeline.run(token)
        second = await pipeline.run(token)

        # 실패한 존은 캐시되지 않으므로 다시 조회
        assert second.zone_fetches_used == 2
        assert len(fetcher.zone_calls()) == 4


class TestPipelineFailures:
    """경보 컬렉션 조회 실패 테스트"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        HttpStatusError(503),
        NetworkError("connection refused"),
    ])
    async def test_main_fetch_error_propagates(self, make_pipeline, make_fetcher,
                                               alerts_url, token, error):
        fetcher = make_fetcher(failures={alerts_url: error})
        with pytest.raises(type(error)):
            await make_pipeline(fetcher).run(token)

    @pytest.mark.asyncio
    async def test_main_fetch_timeout(self, make_pipeline, make_fetcher, alerts_url, token):
        fetcher = make_fetcher(responses={alerts_url: collection()}, delays={alerts_url: 1.0})
        with pytest.raises(FetchTimeoutError):
            await make_pipeline(fetcher, main_timeout_sec=0.01).run(token)

    @pytest.mark.asyncio
    async def test_malformed_collection(self, make_pipeline, make_fetcher, alerts_url, token):
        fetcher = make_fetcher(responses={alerts_url: {"title": "not a collection"}})
        with pytest.raises(MalformedResponseError):
            await make_pipeline(fetcher).run(token)


class TestPipelineCancellation:
    """취소 테스트"""

    @pytest.mark.asyncio
    async def test_cancelled_before_start(self, make_pipeline, make_fetcher, alerts_url, token):
        fetcher = make_fetcher(responses={alerts_url: collection()})
        token.cancel("superseded")
        with pytest.raises(FetchCancelledError):
            await make_pipeline(fetcher).run(token)

    @pytest.mark.asyncio
    async def test_cancelled_during_zone_fetch(self, make_pipeline, make_fetcher, make_feature,
                                               inside_square, alerts_url, token):
        """존 조회 중 취소되면 결과 없이 취소 오류"""
        fetcher = make_fetcher(
            responses={
                alerts_url: collection(make_feature("Flood Watch", zones=[zone(1)])),
                zone(1): {"geometry": inside_square},
            },
            delays={zone(1): 1.0},
        )
        asyncio.get_running_loop().call_later(0.02, token.cancel, "superseded")

        with pytest.raises(FetchCancelledError):
            await make_pipeline(fetcher).run(token)
        assert fetcher.cancelled == [zone(1)]


class TestPipelineProgress:
    """진행 상황 문구 테스트"""

    @pytest.mark.asyncio
    async def test_progress_text(self, make_pipeline, make_fetcher, make_feature,
                                 inside_square, alerts_url, token):
        fetcher = make_fetcher(responses={
            alerts_url: collection(
                make_feature("Flood Warning", inside_square),
                make_feature("Flood Watch", zones=[zone(1)]),
            ),
            zone(1): {"geometry": inside_square},
        })
        texts = []

        await make_pipeline(fetcher).run(token, on_progress=texts.append)

        assert texts[0] == "processing 1/2, zone fetches used 0/150"
        assert texts[1] == "processing 2/2, zone fetches used 0/150"
        assert texts[-1] == "processing 2/2, zone fetches used 1/150 (zones 1/1)"
