"""
Hazard styling for PA Alerts.

This module maps hazard event names to deterministic map styles
and builds the legend rows for the alerts currently in view.
"""

from typing import Dict, Iterable, List, NamedTuple


class HazardColor(NamedTuple):
    match: str
    color: str
    label: str


# 이벤트명 기준 색상 (NWS 지도처럼 심각도가 아닌 위험 종류로 색칠)
HAZARD_COLORS: List[HazardColor] = [
    HazardColor("winter weather advisory", "#7c3aed", "Winter Weather Advisory"),
    HazardColor("dense fog advisory", "#64748b", "Dense Fog Advisory"),
    HazardColor("marine dense fog advisory", "#475569", "Marine Dense Fog Advisory"),
]

# 종류별 대체 색상
TYPE_COLORS: Dict[str, str] = {
    "warning": "#ef4444",
    "watch": "#f59e0b",
    "advisory": "#64748b",
}

DEFAULT_COLOR = "#60a5fa"


def hazard_color(event: str) -> str:
    """
    이벤트명에 해당하는 색상을 반환합니다.

    명시 테이블을 먼저 확인하고, 없으면 warning/watch/advisory 순으로 대체합니다.
    """
    event_lower = (event or "").lower()
    for hazard in HAZARD_COLORS:
        if hazard.match in event_lower:
            return hazard.color

    for kind, color in TYPE_COLORS.items():
        if kind in event_lower:
            return color

    return DEFAULT_COLOR


def feature_style(event: str) -> Dict[str, object]:
    color = hazard_color(event)
    return {
        "color": color,
        "weight": 2,
        "fillColor": color,
        "fillOpacity": 0.35,
    }


def legend_entries(events: Iterable[str]) -> List[Dict[str, str]]:
    """
    현재 표시 중인 이벤트로 범례 항목을 만듭니다.

    명시 테이블에 해당하는 이벤트가 없으면 일반 Warning/Watch/Advisory 견본을 반환합니다.
    """
    active_events = {(e or "").lower() for e in events}
    active = [
        h for h in HAZARD_COLORS
        if any(h.match in event for event in active_events)
    ]

    if active:
        return [{"label": h.label, "color": h.color} for h in active]

    return [
        {"label": kind.capitalize(), "color": color}
        for kind, color in TYPE_COLORS.items()
    ]
