"""
Bounded HTTP fetcher for PA Alerts.

This module provides an aiohttp-based JSON fetcher that enforces a
per-request timeout and honours an external cancellation token.
"""

import asyncio
import aiohttp
from typing import Any, Dict, Optional

from pa_alerts.common.cancellation import CancellationToken
from pa_alerts.core.errors import (
    FetchCancelledError,
    FetchTimeoutError,
    HttpStatusError,
    MalformedResponseError,
    NetworkError,
)
from pa_alerts.observability.logging_setup import get_logger

log = get_logger("pa_alerts.fetcher")

DEFAULT_USER_AGENT = "PA Alerts Backup Map"


class BoundedFetcher:
    """제한 시간과 외부 취소를 지원하는 JSON 조회 클라이언트"""
    
    def __init__(self,
                 user_agent: str = DEFAULT_USER_AGENT,
                 session: Optional[aiohttp.ClientSession] = None):
        """
        초기화합니다.
        
        Args:
            user_agent: NWS API 요청에 사용할 User-Agent
            session: 외부에서 관리하는 세션 (None이면 직접 생성)
        """
        self.user_agent = user_agent
        self._session = session
        self._owns_session = session is None
    
    async def __aenter__(self):
        """비동기 컨텍스트 매니저 진입"""
        await self._ensure_session()
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """비동기 컨텍스트 매니저 종료"""
        await self.close()
    
    def _headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/geo+json, application/json",
            "User-Agent": self.user_agent,
        }
    
    async def _ensure_session(self) -> None:
        if not self._session or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
    
    async def close(self) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
    
    async def fetch_json(self, url: str, timeout_sec: float,
                         token: Optional[CancellationToken] = None) -> Any:
        """
        JSON 본문을 조회합니다.
        
        내부 타이머 토큰을 외부 토큰과 연결하여, 둘 중 먼저 발생한 쪽이 요청을
        한 번만 중단시킵니다. 외부 취소가 타임아웃보다 우선합니다.
        
        Args:
            url: 조회할 URL
            timeout_sec: 제한 시간 (초)
            token: 외부 취소 토큰
            
        Returns:
            파싱된 JSON 본문
            
        Raises:
            FetchCancelledError: 외부 토큰이 먼저 취소된 경우
            FetchTimeoutError: 제한 시간이 먼저 지난 경우
            HttpStatusError: 2xx 이외의 응답
            MalformedResponseError: JSON이 아닌 본문
            NetworkError: 그 밖의 전송 오류
        """
        if token is not None:
            token.raise_if_cancelled(url)
        await self._ensure_session()
        
        loop = asyncio.get_running_loop()
        timer = CancellationToken()
        timer_handle = loop.call_later(timeout_sec, timer.cancel, "timeout")
        abort = CancellationToken.linked(token, timer)
        
        request = asyncio.ensure_future(self._get_json(url))
        aborted = asyncio.ensure_future(abort.wait())
        try:
            await asyncio.wait({request, aborted}, return_when=asyncio.FIRST_COMPLETED)
            if request.done():
                return request.result()
            
            if token is not None and token.cancelled:
                log.debug(f"요청 취소됨 url:{url} reason:{token.reason}")
                raise FetchCancelledError(f"cancelled: {token.reason}", url)
            log.debug(f"요청 시간 초과 url:{url} timeout:{timeout_sec}")
            raise FetchTimeoutError(f"timed out after {timeout_sec}s", url)
        finally:
            # 모든 종료 경로에서 타이머와 연결을 해제
            timer_handle.cancel()
            abort.dispose()
            for fut in (request, aborted):
                if not fut.done():
                    fut.cancel()
    
    async def _get_json(self, url: str) -> Any:
        try:
            async with self._session.get(url, headers=self._headers()) as resp:
                if not 200 <= resp.status < 300:
                    raise HttpStatusError(resp.status, url)
                try:
                    return await resp.json(content_type=None)
                except ValueError as e:
                    raise MalformedResponseError(f"response is not JSON: {e}", url) from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"request failed: {e}", url) from e
        except asyncio.TimeoutError as e:
            raise FetchTimeoutError("transport timeout", url) from e
