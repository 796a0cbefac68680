"""
Zone geometry resolver for PA Alerts.

This module resolves alerts that arrive without a polygon by fetching
a bounded subset of their affected zones, merging the zone polygons
and culling them to the view window.
"""

import time
from typing import List, Optional

from pa_alerts.adapters.storage.geometry_cache import NOT_RESOLVED
from pa_alerts.common.cancellation import CancellationToken
from pa_alerts.common.concurrency import ProgressCallback, map_with_concurrency
from pa_alerts.core.budget import RunBudget
from pa_alerts.core.errors import (
    AlertFetchError,
    FetchCancelledError,
    FetchTimeoutError,
    MalformedResponseError,
)
from pa_alerts.core.geometry import bbox_intersects_window, merge_geometries
from pa_alerts.core.models import Alert, Geometry, ViewWindow
from pa_alerts.core.normalize import zone_geometry_from_record
from pa_alerts.observability import metrics
from pa_alerts.observability.logging_setup import get_logger
from pa_alerts.ports.cache import GeometryCachePort
from pa_alerts.ports.fetch import JsonFetchPort

log = get_logger("pa_alerts.zones")


class ZoneGeometryResolver:
    """존 참조로 경보 지오메트리를 보완하는 리졸버"""

    def __init__(self,
                 fetcher: JsonFetchPort,
                 cache: GeometryCachePort,
                 window: ViewWindow,
                 *,
                 zone_timeout_sec: float = 8.0,
                 concurrency: int = 6,
                 max_zones_per_alert: int = 12):
        """
        초기화합니다.

        Args:
            fetcher: JSON 조회 포트
            cache: 존 지오메트리 캐시
            window: 고정 표시 영역
            zone_timeout_sec: 존 하나당 제한 시간 (초)
            concurrency: 존 조회 동시 실행 수
            max_zones_per_alert: 경보 하나에서 고려할 최대 존 수
        """
        self.fetcher = fetcher
        self.cache = cache
        self.window = window
        self.zone_timeout_sec = zone_timeout_sec
        self.concurrency = concurrency
        self.max_zones_per_alert = max_zones_per_alert

    async def resolve(self,
                      alert: Alert,
                      token: CancellationToken,
                      budget: RunBudget,
                      on_progress: Optional[ProgressCallback] = None) -> Alert:
        """
        경보의 지오메트리를 확보합니다.

        Args:
            alert: 대상 경보 (변경하지 않음)
            token: 실행 취소 토큰
            budget: 실행 단위 예산 (전역 존 조회 상한 공유)
            on_progress: 존 단위 진행 콜백

        Returns:
            지오메트리가 채워진 복사본, 보완하지 못하면 원본 경보
        """
        # 지오메트리가 이미 있으면 네트워크 없이 그대로 반환
        if alert.geometry is not None:
            return alert

        # 중복 참조는 순서를 유지한 채 한 번만 고려
        refs = list(dict.fromkeys(alert.affected_zones))[:self.max_zones_per_alert]
        if not refs:
            return alert

        # 캐시된 존은 예산을 쓰지 않으므로 항상 포함, 미조회 존만 전역 잔여 예산으로 제한
        uncached = [ref for ref in refs if self.cache.lookup(ref) is NOT_RESOLVED]
        allowed = set(uncached[:budget.zone_fetches_remaining])
        if len(allowed) < len(uncached):
            metrics.zone_fetch_cap_exhausted.inc()
            log.debug(f"존 조회 예산 부족 event:{alert.event} skipped:{len(uncached) - len(allowed)}")
        refs = [ref for ref in refs if ref in allowed or self.cache.lookup(ref) is not NOT_RESOLVED]
        if not refs:
            return alert

        async def resolve_zone(ref: str) -> Optional[Geometry]:
            geometry = await self._zone_geometry(ref, token, budget)
            if geometry is None or not bbox_intersects_window(geometry, self.window):
                return None
            return geometry

        results: List[Optional[Geometry]] = await map_with_concurrency(
            refs, self.concurrency, resolve_zone, on_progress
        )

        merged = merge_geometries(results)
        if merged is None:
            log.debug(f"존 지오메트리 없음 event:{alert.event} zones:{len(refs)}")
            return alert

        return alert.model_copy(update={"geometry": merged})

    async def _zone_geometry(self,
                             ref: str,
                             token: CancellationToken,
                             budget: RunBudget) -> Optional[Geometry]:
        """캐시 → 예산 확인 → 조회 순으로 존 지오메트리를 가져옵니다."""
        cached = self.cache.lookup(ref)
        if cached is not NOT_RESOLVED:
            metrics.zone_cache_hits.inc()
            return cached

        # 슬롯 소모 직전에 다시 확인 (다른 워커가 그 사이 소진했을 수 있음)
        if not budget.try_consume_zone_fetch():
            metrics.zone_fetch_cap_exhausted.inc()
            return None

        t0 = time.perf_counter()
        try:
            body = await self.fetcher.fetch_json(ref, self.zone_timeout_sec, token)
            geometry = zone_geometry_from_record(body)
        except FetchCancelledError:
            metrics.zone_fetches.labels(result="cancelled").inc()
            return None
        except FetchTimeoutError:
            metrics.zone_fetches.labels(result="timeout").inc()
            log.warning(f"존 조회 시간 초과 zone:{ref}")
            return None
        except MalformedResponseError as e:
            # 응답은 왔으나 형태가 잘못됨: 재시도해도 같으므로 "없음"으로 캐시
            metrics.zone_fetches.labels(result="malformed").inc()
            log.warning(f"존 응답 형식 오류 zone:{ref} error:{e}")
            self.cache.store(ref, None)
            return None
        except AlertFetchError as e:
            metrics.zone_fetches.labels(result="error").inc()
            log.warning(f"존 조회 실패 zone:{ref} error:{e}")
            return None
        finally:
            metrics.zone_fetch_seconds.observe(time.perf_counter() - t0)

        metrics.zone_fetches.labels(result="ok").inc()
        self.cache.store(ref, geometry)
        return geometry
