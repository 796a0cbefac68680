"""
Normalization functions for PA Alerts.

This module contains pure functions for converting raw NWS GeoJSON
payloads into internal domain models.
"""

from typing import Any, Dict, List, Optional
from pa_alerts.core.errors import MalformedResponseError
from pa_alerts.core.geometry import parse_geometry
from pa_alerts.core.models import Alert, Geometry
from pa_alerts.observability.logging_setup import get_logger

log = get_logger("pa_alerts.normalize")

# 위험 등급 경보(Warning/Watch/Advisory) 판별 키워드
HAZARD_KEYWORDS = ("warning", "watch", "advisory")


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def to_alert(feature: Dict[str, Any]) -> Alert:
    """
    NWS GeoJSON Feature를 Alert 모델로 변환합니다.

    Args:
        feature: /alerts/active 응답의 feature 하나

    Returns:
        Alert 모델

    Raises:
        MalformedResponseError: feature 구조가 잘못된 경우
    """
    if not isinstance(feature, dict):
        raise MalformedResponseError(f"feature is not an object: {type(feature).__name__}")

    props = feature.get("properties") or {}
    if not isinstance(props, dict):
        raise MalformedResponseError("feature properties is not an object")

    zones = props.get("affectedZones") or []
    if not isinstance(zones, list):
        zones = []

    return Alert(
        id=_opt_str(feature.get("id") or props.get("id")),
        event=str(props.get("event") or ""),
        geometry=parse_geometry(feature.get("geometry")),
        affected_zones=[str(z) for z in zones if z],
        area_desc=_opt_str(props.get("areaDesc")),
        severity=_opt_str(props.get("severity")),
        urgency=_opt_str(props.get("urgency")),
        certainty=_opt_str(props.get("certainty")),
        effective=_opt_str(props.get("effective")),
        expires=_opt_str(props.get("expires")),
        web=_opt_str(props.get("web")),
    )


def parse_alert_collection(body: Any) -> List[Alert]:
    """
    활성 경보 FeatureCollection 전체를 변환합니다.

    컬렉션 구조 자체가 잘못되면 예외를 올리고, 개별 feature 오류는
    경고 로그 후 건너뜁니다.

    Raises:
        MalformedResponseError: features 배열이 없는 경우
    """
    if not isinstance(body, dict):
        raise MalformedResponseError("alert collection is not an object")

    features = body.get("features")
    if not isinstance(features, list):
        raise MalformedResponseError("alert collection has no features array")

    alerts = []
    for index, feature in enumerate(features):
        try:
            alerts.append(to_alert(feature))
        except MalformedResponseError as e:
            log.warning(f"잘못된 경보 feature 건너뜀 index:{index} error:{e}")
    return alerts


def zone_geometry_from_record(body: Any) -> Optional[Geometry]:
    """
    존(zone) 레코드에서 지오메트리를 꺼냅니다.

    Returns:
        지오메트리 또는 None (지오메트리가 없는 존)

    Raises:
        MalformedResponseError: 레코드 또는 지오메트리 구조가 잘못된 경우
    """
    if not isinstance(body, dict):
        raise MalformedResponseError("zone record is not an object")
    return parse_geometry(body.get("geometry"))


def is_hazard_alert(alert: Alert) -> bool:
    """이벤트명에 warning/watch/advisory가 포함되어 있는지 확인합니다."""
    event = alert.event.lower()
    return any(keyword in event for keyword in HAZARD_KEYWORDS)
