"""
Alert ingestion pipeline for PA Alerts.

This module implements one ingestion run: fetch the active alerts,
keep warnings/watches/advisories, resolve geometry, cull to the view
window and enforce the per-run time and zone-fetch budgets.
"""

import time
from typing import Callable, List, Optional

from pa_alerts.common.cancellation import CancellationToken
from pa_alerts.core.budget import Clock, RunBudget
from pa_alerts.core.geometry import intersects_window
from pa_alerts.core.models import Alert, RunResult, ViewWindow
from pa_alerts.core.normalize import is_hazard_alert, parse_alert_collection
from pa_alerts.observability import metrics
from pa_alerts.observability.logging_setup import get_logger
from pa_alerts.orchestrators.zone_resolver import ZoneGeometryResolver
from pa_alerts.ports.fetch import JsonFetchPort

log = get_logger("pa_alerts.ingestion")

ProgressText = Callable[[str], None]

DEFAULT_ALERTS_URL = "https://api.weather.gov/alerts/active"


class AlertIngestionPipeline:
    """활성 경보 수집 파이프라인"""

    def __init__(self,
                 fetcher: JsonFetchPort,
                 resolver: ZoneGeometryResolver,
                 window: ViewWindow,
                 *,
                 alerts_url: str = DEFAULT_ALERTS_URL,
                 main_timeout_sec: float = 25.0,
                 time_budget_sec: float = 45.0,
                 zone_fetch_cap: int = 150,
                 clock: Clock = time.monotonic):
        """
        초기화합니다.

        Args:
            fetcher: JSON 조회 포트
            resolver: 존 지오메트리 리졸버
            window: 고정 표시 영역
            alerts_url: 활성 경보 컬렉션 URL
            main_timeout_sec: 경보 컬렉션 조회 제한 시간 (초)
            time_budget_sec: 실행 전체 시간 예산 (초, 경보 경계에서만 확인)
            zone_fetch_cap: 실행당 존 조회 최대 횟수
            clock: 단조 시계 (테스트 주입용)
        """
        self.fetcher = fetcher
        self.resolver = resolver
        self.window = window
        self.alerts_url = alerts_url
        self.main_timeout_sec = main_timeout_sec
        self.time_budget_sec = time_budget_sec
        self.zone_fetch_cap = zone_fetch_cap
        self.clock = clock

    async def run(self,
                  token: CancellationToken,
                  on_progress: Optional[ProgressText] = None) -> RunResult:
        """
        수집 파이프라인을 한 번 실행합니다.

        수집 -> 위험 경보 필터 -> 지오메트리 보완 -> 표시 영역 판정 순서로 진행합니다.

        Args:
            token: 실행 취소 토큰
            on_progress: 진행 상황 문구 콜백

        Returns:
            표시할 경보 목록과 부분 완료 여부

        Raises:
            AlertFetchError: 경보 컬렉션 조회 자체가 실패한 경우 (타입 그대로 전달)
            FetchCancelledError: 실행이 취소된 경우
        """
        budget = RunBudget(
            zone_fetch_cap=self.zone_fetch_cap,
            time_budget_sec=self.time_budget_sec,
            clock=self.clock,
        )

        body = await self.fetcher.fetch_json(self.alerts_url, self.main_timeout_sec, token)
        alerts = parse_alert_collection(body)
        metrics.alerts_fetched.inc(len(alerts))

        # 한 번만 적용하는 영구 필터
        hazards = [a for a in alerts if is_hazard_alert(a)]
        metrics.alerts_hazard.inc(len(hazards))
        total = len(hazards)
        log.info(f"활성 경보 수신 total:{len(alerts)} hazards:{total}")

        rendered: List[Alert] = []
        partial = False

        for index, alert in enumerate(hazards, start=1):
            token.raise_if_cancelled(self.alerts_url)
            if budget.time_exceeded():
                partial = True
                log.warning(f"시간 예산 초과, 부분 결과 반환 processed:{index - 1}/{total}")
                break

            self._report(on_progress, budget.progress_text(index, total))

            def zone_progress(done: int, count: int, index=index) -> None:
                self._report(on_progress, f"{budget.progress_text(index, total)} (zones {done}/{count})")

            resolved = await self.resolver.resolve(alert, token, budget, zone_progress)

            if resolved.geometry is not None and intersects_window(resolved.geometry, self.window):
                rendered.append(resolved)

        # 취소된 실행은 결과를 내지 않음
        token.raise_if_cancelled(self.alerts_url)

        elapsed = budget.elapsed()
        metrics.run_seconds.observe(elapsed)
        log.info(
            f"수집 완료 rendered:{len(rendered)} partial:{partial} "
            f"zone_fetches:{budget.zone_fetches_used}/{budget.zone_fetch_cap} elapsed:{elapsed:.2f}s"
        )

        return RunResult(
            alerts=rendered,
            partial=partial,
            total_hazards=total,
            zone_fetches_used=budget.zone_fetches_used,
            zone_fetch_cap=budget.zone_fetch_cap,
            elapsed_sec=elapsed,
        )

    @staticmethod
    def _report(on_progress: Optional[ProgressText], text: str) -> None:
        if on_progress is not None:
            on_progress(text)
