"""
Core domain models for PA Alerts.

This module defines the alert, geometry and view-window models
using Pydantic v2 for type safety and validation.
"""

from typing import Annotated, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

# [lon, lat] (고도 값이 붙어 있어도 허용)
Position = List[float]
Ring = List[Position]


class BoundingBox(BaseModel):
    """지오메트리 경계 상자"""
    model_config = ConfigDict(frozen=True)

    min_lat: float
    min_lng: float
    max_lat: float
    max_lng: float

    def intersects(self, other: "BoundingBox") -> bool:
        """경계를 포함하여 두 상자가 겹치는지 확인합니다."""
        return (
            self.min_lat <= other.max_lat
            and self.max_lat >= other.min_lat
            and self.min_lng <= other.max_lng
            and self.max_lng >= other.min_lng
        )


class ViewWindow(BoundingBox):
    """고정 지도 표시 영역 (프로세스 수명 동안 불변)"""

    min_lat: float = 38.6
    min_lng: float = -81.0
    max_lat: float = 42.9
    max_lng: float = -73.7


class PolygonGeometry(BaseModel):
    """단일 폴리곤 (링 목록)"""
    type: Literal["Polygon"] = "Polygon"
    coordinates: List[Ring]

    def polygons(self) -> List[List[Ring]]:
        return [self.coordinates]


class MultiPolygonGeometry(BaseModel):
    """멀티 폴리곤 (폴리곤 목록)"""
    type: Literal["MultiPolygon"] = "MultiPolygon"
    coordinates: List[List[Ring]]

    def polygons(self) -> List[List[Ring]]:
        return list(self.coordinates)


Geometry = Annotated[
    Union[PolygonGeometry, MultiPolygonGeometry],
    Field(discriminator="type"),
]


class Alert(BaseModel):
    """NWS 경보 모델"""
    id: Optional[str] = None
    event: str = ""
    geometry: Optional[Geometry] = None
    affected_zones: List[str] = Field(default_factory=list)
    area_desc: Optional[str] = None
    severity: Optional[str] = None
    urgency: Optional[str] = None
    certainty: Optional[str] = None
    effective: Optional[str] = None
    expires: Optional[str] = None
    web: Optional[str] = None


class RunResult(BaseModel):
    """수집 파이프라인 1회 실행 결과"""
    alerts: List[Alert] = Field(default_factory=list)
    partial: bool = False
    total_hazards: int = 0
    zone_fetches_used: int = 0
    zone_fetch_cap: int = 0
    elapsed_sec: float = 0.0
