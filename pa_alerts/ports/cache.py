"""
Geometry cache port interface.

This module defines the protocol for zone geometry memoization.
"""

from typing import Optional, Protocol, Union
from pa_alerts.core.models import Geometry

class GeometryCachePort(Protocol):
    """존 지오메트리 캐시 포트 인터페이스"""
    
    def lookup(self, key: str) -> Union[Geometry, None, object]:
        """
        캐시된 지오메트리를 조회합니다.
        
        Args:
            key: 존 참조 URL
            
        Returns:
            지오메트리, None(지오메트리 없음) 또는 NOT_RESOLVED
        """
        ...
    
    def store(self, key: str, geometry: Optional[Geometry]) -> None:
        """
        조회 결과를 저장합니다.
        
        Args:
            key: 존 참조 URL
            geometry: 지오메트리 또는 None
        """
        ...
