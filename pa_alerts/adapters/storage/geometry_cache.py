"""
In-memory zone geometry cache for PA Alerts.

Entries live for the process lifetime and are never invalidated; the
number of distinct zone references in the feed keeps the cache small.
"""

from typing import Dict, Optional, Union
from pa_alerts.core.models import Geometry
from pa_alerts.observability import metrics

# 아직 조회되지 않은 키를 나타내는 표식 (None은 "지오메트리 없음" 결과)
NOT_RESOLVED = object()


class GeometryCache:
    """존 참조 URL → 지오메트리 메모이제이션"""

    def __init__(self):
        self._entries: Dict[str, Optional[Geometry]] = {}

    def lookup(self, key: str) -> Union[Geometry, None, object]:
        return self._entries.get(key, NOT_RESOLVED)

    def store(self, key: str, geometry: Optional[Geometry]) -> None:
        self._entries[key] = geometry
        metrics.geometry_cache_size.set(len(self._entries))

    def clear(self) -> None:
        self._entries.clear()
        metrics.geometry_cache_size.set(0)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries
