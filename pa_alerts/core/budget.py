"""
Run-scoped budget counters for PA Alerts.

A fresh RunBudget is created for every pipeline invocation and passed
explicitly through resolution; it is never shared between runs.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional

Clock = Callable[[], float]


@dataclass
class RunBudget:
    """실행 단위 시간/존 조회 예산"""
    zone_fetch_cap: int
    time_budget_sec: float
    clock: Clock = time.monotonic
    started_at: Optional[float] = None
    zone_fetches_used: int = 0

    def __post_init__(self) -> None:
        if self.started_at is None:
            self.started_at = self.clock()

    def elapsed(self) -> float:
        return self.clock() - self.started_at

    def time_exceeded(self) -> bool:
        """전체 시간 예산 초과 여부 (루프 경계에서만 확인)"""
        return self.elapsed() > self.time_budget_sec

    @property
    def zone_fetches_remaining(self) -> int:
        return max(0, self.zone_fetch_cap - self.zone_fetches_used)

    def try_consume_zone_fetch(self) -> bool:
        """
        존 조회 슬롯 하나를 확인 후 즉시 소모합니다.

        확인과 증가 사이에 await가 없으므로 asyncio 단일 스레드에서는 경합이 없습니다.
        OS 스레드에서 호출한다면 락이 필요합니다.

        Returns:
            슬롯을 얻었으면 True, 상한에 도달했으면 False
        """
        if self.zone_fetches_used >= self.zone_fetch_cap:
            return False
        self.zone_fetches_used += 1
        return True

    def progress_text(self, index: int, total: int) -> str:
        return (
            f"processing {index}/{total}, "
            f"zone fetches used {self.zone_fetches_used}/{self.zone_fetch_cap}"
        )
