"""
JSON fetch port interface.

This module defines the protocol for bounded network retrieval.
"""

from typing import Any, Optional, Protocol
from pa_alerts.common.cancellation import CancellationToken

class JsonFetchPort(Protocol):
    """제한 시간/취소를 지원하는 JSON 조회 포트 인터페이스"""
    
    async def fetch_json(self, url: str, timeout_sec: float,
                         token: Optional[CancellationToken] = None) -> Any:
        """
        URL에서 JSON 본문을 조회합니다.
        
        Args:
            url: 조회할 URL
            timeout_sec: 제한 시간 (초)
            token: 외부 취소 토큰
            
        Returns:
            파싱된 JSON 본문
            
        Raises:
            FetchTimeoutError, FetchCancelledError, HttpStatusError,
            MalformedResponseError, NetworkError
        """
        ...
