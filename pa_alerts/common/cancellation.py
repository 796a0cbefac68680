"""
Cooperative cancellation tokens for PA Alerts.

A token is threaded through the whole ingestion call chain. Tokens can be
linked so that a derived token fires when any of its sources fires, which is
how a per-request timer is combined with the run-level token.
"""

import asyncio
from typing import Callable, List, Optional

from pa_alerts.core.errors import FetchCancelledError

Callback = Callable[[str], None]


class CancellationToken:
    """협력적 취소 토큰"""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: Optional[str] = None
        self._callbacks: List[Callback] = []
        self._unlinks: List[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> bool:
        """
        토큰을 취소합니다. 두 번째 호출부터는 아무 일도 하지 않습니다.

        Returns:
            이번 호출로 취소되었으면 True
        """
        if self._event.is_set():
            return False
        self._reason = reason
        self._event.set()
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback(reason)
        return True

    def add_callback(self, callback: Callback) -> Callable[[], None]:
        """
        취소 시 호출될 콜백을 등록합니다.

        이미 취소된 토큰이면 즉시 호출합니다.

        Returns:
            등록을 해제하는 함수
        """
        if self.cancelled:
            callback(self._reason or "cancelled")
            return lambda: None

        self._callbacks.append(callback)

        def remove() -> None:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass

        return remove

    async def wait(self, timeout: Optional[float] = None) -> bool:
        """
        취소될 때까지 대기합니다.

        Args:
            timeout: 최대 대기 시간 (초), None이면 무기한

        Returns:
            취소되었으면 True, 시간이 먼저 지나면 False
        """
        if timeout is None:
            await self._event.wait()
            return True
        try:
            await asyncio.wait_for(self._event.wait(), timeout)
            return True
        except asyncio.TimeoutError:
            return False

    def raise_if_cancelled(self, url: Optional[str] = None) -> None:
        if self.cancelled:
            raise FetchCancelledError(f"cancelled: {self._reason}", url)

    @classmethod
    def linked(cls, *sources: Optional["CancellationToken"]) -> "CancellationToken":
        """
        소스 중 하나라도 취소되면 취소되는 파생 토큰을 만듭니다.

        파생 토큰은 최대 한 번만 취소되며, 사용 후 dispose()로 소스에서 분리해야 합니다.
        """
        token = cls()
        for source in sources:
            if source is None:
                continue
            if source.cancelled:
                token.cancel(source.reason or "cancelled")
                continue
            token._unlinks.append(source.add_callback(token.cancel))
        return token

    def dispose(self) -> None:
        """연결된 소스 토큰에서 콜백 등록을 해제합니다."""
        unlinks, self._unlinks = self._unlinks, []
        for unlink in unlinks:
            unlink()
