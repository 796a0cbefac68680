"""
Error taxonomy for PA Alerts.

This module defines the typed failures raised by network retrieval
and payload parsing so callers can react to each kind separately.
"""

from typing import Optional


class AlertFetchError(Exception):
    """경보 수집 계층 공통 예외"""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class FetchTimeoutError(AlertFetchError):
    """요청이 제한 시간 안에 끝나지 않음"""


class FetchCancelledError(AlertFetchError):
    """더 새로운 실행 또는 명시적 취소로 중단됨"""


class HttpStatusError(AlertFetchError):
    """업스트림이 2xx 이외의 상태 코드를 반환함"""

    def __init__(self, status: int, url: Optional[str] = None):
        super().__init__(f"HTTP {status}", url)
        self.status = status


class MalformedResponseError(AlertFetchError):
    """응답 본문이 기대한 JSON/지오메트리 형태가 아님"""


class NetworkError(AlertFetchError):
    """연결 실패 등 그 밖의 전송 계층 오류"""
