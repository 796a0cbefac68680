"""
Geometry utilities for PA Alerts.

This module provides bounding-box scanning, lossless polygon merging,
GeoJSON geometry parsing and the precise view-window intersection test.
"""

from typing import Any, Iterable, Optional
from pydantic import TypeAdapter, ValidationError
from shapely.errors import GEOSException
from shapely.geometry import box, shape
from shapely.validation import make_valid

from pa_alerts.core.errors import MalformedResponseError
from pa_alerts.core.models import (
    BoundingBox,
    Geometry,
    MultiPolygonGeometry,
    ViewWindow,
)
from pa_alerts.observability.logging_setup import get_logger

log = get_logger("pa_alerts.geometry")

_GEOMETRY_ADAPTER = TypeAdapter(Geometry)
SUPPORTED_TYPES = ("Polygon", "MultiPolygon")


def parse_geometry(raw: Any) -> Optional[Geometry]:
    """
    GeoJSON 지오메트리 딕셔너리를 태그된 모델로 변환합니다.

    Args:
        raw: GeoJSON geometry 객체 또는 None

    Returns:
        Polygon/MultiPolygon 모델, 지원하지 않는 타입이면 None

    Raises:
        MalformedResponseError: 지원 타입인데 좌표 구조가 잘못된 경우
    """
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise MalformedResponseError(f"geometry is not an object: {type(raw).__name__}")

    geom_type = raw.get("type")
    if geom_type not in SUPPORTED_TYPES:
        # Point, GeometryCollection 등은 렌더링 대상이 아님
        log.debug(f"지원하지 않는 지오메트리 타입 무시: {geom_type}")
        return None

    try:
        return _GEOMETRY_ADAPTER.validate_python(raw)
    except ValidationError as e:
        raise MalformedResponseError(f"invalid {geom_type} coordinates: {e.error_count()} error(s)") from e


def bounding_box(geometry: Geometry) -> Optional[BoundingBox]:
    """
    모든 링을 훑어 경계 상자를 계산합니다.

    Returns:
        경계 상자, 좌표가 하나도 없으면 None
    """
    min_lat = min_lng = float("inf")
    max_lat = max_lng = float("-inf")
    found = False

    for polygon in geometry.polygons():
        for ring in polygon:
            for position in ring:
                if len(position) < 2:
                    continue
                lng, lat = position[0], position[1]
                min_lat = min(min_lat, lat)
                max_lat = max(max_lat, lat)
                min_lng = min(min_lng, lng)
                max_lng = max(max_lng, lng)
                found = True

    if not found:
        return None
    return BoundingBox(min_lat=min_lat, min_lng=min_lng, max_lat=max_lat, max_lng=max_lng)


def bbox_intersects_window(geometry: Geometry, window: ViewWindow) -> bool:
    """경계 상자 기준의 저비용 사전 검사"""
    bbox = bounding_box(geometry)
    return bbox is not None and bbox.intersects(window)


def merge_geometries(geometries: Iterable[Optional[Geometry]]) -> Optional[MultiPolygonGeometry]:
    """
    여러 지오메트리를 하나의 MultiPolygon으로 합칩니다.

    Polygon은 링 그룹 하나, MultiPolygon은 모든 링 그룹을 그대로 기여합니다.
    재투영이나 위상 연산은 하지 않습니다.

    Returns:
        합쳐진 MultiPolygon, 기여한 지오메트리가 없으면 None
    """
    polygons = []
    for geometry in geometries:
        if geometry is None:
            continue
        polygons.extend(geometry.polygons())

    if not polygons:
        return None
    return MultiPolygonGeometry(coordinates=polygons)


def intersects_window(geometry: Optional[Geometry], window: ViewWindow) -> bool:
    """
    지오메트리가 표시 영역과 실제로 겹치는지 확인합니다.

    경계 상자 검사를 먼저 수행하고, 통과한 경우에만 shapely로 정밀 검사합니다.
    """
    if geometry is None or not bbox_intersects_window(geometry, window):
        return False

    window_shape = box(window.min_lng, window.min_lat, window.max_lng, window.max_lat)
    try:
        geom_shape = shape(geometry.model_dump())
        if not geom_shape.is_valid:
            geom_shape = make_valid(geom_shape)
        return bool(geom_shape.intersects(window_shape))
    except (ValueError, TypeError, GEOSException) as e:
        # 링 구조가 깨져 정밀 검사가 불가능하면 렌더링하지 않음
        log.warning(f"정밀 교차 검사 실패, 제외 처리: {e}")
        return False
