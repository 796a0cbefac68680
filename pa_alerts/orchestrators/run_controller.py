"""
Run controller for PA Alerts.

This module makes sure at most one ingestion run is current: starting a new
run cancels the previous run's token, and only the current run is allowed to
publish into the alert layer.
"""

import asyncio
from typing import Optional

from pa_alerts.common.cancellation import CancellationToken
from pa_alerts.core.errors import AlertFetchError, FetchCancelledError
from pa_alerts.features.alert_layer import AlertLayer
from pa_alerts.observability import metrics
from pa_alerts.observability.logging_setup import get_logger, with_context
from pa_alerts.orchestrators.ingestion import AlertIngestionPipeline

log = get_logger("pa_alerts.controller")


class RunController:
    """수집 실행 단일화 컨트롤러"""

    def __init__(self, pipeline: AlertIngestionPipeline, layer: AlertLayer):
        """
        초기화합니다.

        Args:
            pipeline: 수집 파이프라인
            layer: 결과를 반영할 경보 레이어
        """
        self.pipeline = pipeline
        self.layer = layer
        self._token: Optional[CancellationToken] = None
        self._task: Optional[asyncio.Task] = None
        self._generation = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def trigger(self) -> asyncio.Task:
        """
        새 수집 실행을 시작합니다. 진행 중인 이전 실행은 먼저 취소합니다.

        Returns:
            새 실행 태스크
        """
        if self._token is not None:
            self._token.cancel("superseded")

        self._generation += 1
        token = CancellationToken()
        self._token = token
        self._task = asyncio.create_task(self._execute(token, self._generation))
        return self._task

    def cancel(self, reason: str = "cancelled") -> None:
        """진행 중인 실행을 명시적으로 취소합니다."""
        if self._token is not None:
            self._token.cancel(reason)

    async def wait(self) -> None:
        """현재 실행이 끝날 때까지 대기합니다."""
        if self._task is not None:
            await asyncio.shield(self._task)

    def _is_current(self, token: CancellationToken) -> bool:
        return token is self._token and not token.cancelled

    async def _execute(self, token: CancellationToken, generation: int) -> None:
        with with_context(generation=generation):
            await self._run(token, generation)

    async def _run(self, token: CancellationToken, generation: int) -> None:
        self.layer.set_loading()

        def on_progress(text: str) -> None:
            if self._is_current(token):
                self.layer.set_progress(text)

        try:
            result = await self.pipeline.run(token, on_progress=on_progress)
        except FetchCancelledError:
            # 새 실행이 이어받은 경우: 오류가 아님
            metrics.alert_runs.labels(outcome="cancelled").inc()
            log.debug(f"이전 실행 취소됨 generation:{generation} reason:{token.reason}")
            if token is self._token:
                # 현재 실행이 명시적으로 취소된 경우: 이전 경보는 그대로 두고 상태만 정리
                self.layer.set_idle("Refresh cancelled.")
            return
        except AlertFetchError as e:
            metrics.alert_runs.labels(outcome="error").inc()
            if self._is_current(token):
                self.layer.show_error(e)
            return
        except Exception as e:
            metrics.alert_runs.labels(outcome="error").inc()
            log.exception(f"수집 실행 중 예기치 않은 오류 generation:{generation}")
            if self._is_current(token):
                self.layer.show_error(e)
            return

        if not self._is_current(token):
            metrics.alert_runs.labels(outcome="cancelled").inc()
            return

        metrics.alert_runs.labels(outcome="partial" if result.partial else "ok").inc()
        self.layer.replace(result)
        log.info(f"경보 레이어 갱신 rendered:{len(result.alerts)} partial:{result.partial}")
