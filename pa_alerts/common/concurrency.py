"""
Concurrency utilities for PA Alerts.

This module provides a bounded worker-pool map over a collection
of items for cooperative asyncio workloads.
"""

import asyncio
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

from pa_alerts.observability.logging_setup import get_logger

log = get_logger("pa_alerts.concurrency")

T = TypeVar('T')
R = TypeVar('R')

ProgressCallback = Callable[[int, int], None]


async def map_with_concurrency(
    items: Sequence[T],
    limit: int,
    func: Callable[[T], Awaitable[R]],
    on_progress: Optional[ProgressCallback] = None
) -> List[Optional[R]]:
    """
    고정 크기 워커 풀로 비동기 함수를 적용합니다.

    Args:
        items: 처리할 항목들
        limit: 동시에 실행할 최대 개수
        func: 항목 하나를 처리할 비동기 함수
        on_progress: (완료 수, 전체 수) 진행 콜백, 항목마다 한 번 호출

    Returns:
        입력 순서와 같은 결과 목록 (실패한 항목은 None)
    """
    if limit < 1:
        raise ValueError(f"concurrency limit must be >= 1, got {limit}")

    items = list(items)
    total = len(items)
    results: List[Optional[R]] = [None] * total
    if total == 0:
        return results

    next_index = 0
    completed = 0

    async def worker() -> None:
        nonlocal next_index, completed
        while next_index < total:
            index = next_index
            next_index += 1
            try:
                results[index] = await func(items[index])
            except Exception as e:
                # 한 항목의 실패가 다른 항목을 중단시키지 않음
                log.debug(f"항목 처리 실패 index:{index} error:{e!r}")
                results[index] = None
            completed += 1
            if on_progress is not None:
                on_progress(completed, total)

    workers = [asyncio.create_task(worker()) for _ in range(min(limit, total))]
    try:
        await asyncio.gather(*workers)
    finally:
        for task in workers:
            if not task.done():
                task.cancel()
    return results
