"""
Rendered alert layer for PA Alerts.

This module keeps the state the map UI draws from: the current alert set,
the status indicator, the legend and the last-updated stamp. A successful
run replaces the whole snapshot at once; a failed run only touches the
status so previously rendered alerts stay on the map.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Tuple
from pydantic import BaseModel, ConfigDict

from pa_alerts.core.models import Alert, RunResult
from pa_alerts.core.styling import feature_style, legend_entries
from pa_alerts.observability import metrics
from pa_alerts.observability.logging_setup import get_logger

log = get_logger("pa_alerts.layer")

StatusMode = Literal["idle", "loading", "ok", "error"]


class Status(BaseModel):
    """상태 표시기"""
    model_config = ConfigDict(frozen=True)

    text: str = "Idle"
    mode: StatusMode = "idle"


class LayerSnapshot(BaseModel):
    """렌더링 상태 스냅샷 (통째로 교체)"""
    model_config = ConfigDict(frozen=True)

    alerts: Tuple[Alert, ...] = ()
    partial: bool = False
    legend: Tuple[Dict[str, str], ...] = ()
    last_updated: Optional[str] = None


def format_timestamp(moment: datetime) -> str:
    """MM/DD/YY HH:MM:SS 형식 문자열"""
    return moment.strftime("%m/%d/%y %H:%M:%S")


def alert_to_feature(alert: Alert) -> Dict[str, Any]:
    """Alert를 스타일이 포함된 GeoJSON Feature로 변환합니다."""
    return {
        "type": "Feature",
        "id": alert.id,
        "geometry": alert.geometry.model_dump() if alert.geometry is not None else None,
        "properties": {
            "event": alert.event,
            "areaDesc": alert.area_desc,
            "severity": alert.severity or "Unknown",
            "urgency": alert.urgency or "Unknown",
            "certainty": alert.certainty or "Unknown",
            "effective": alert.effective,
            "expires": alert.expires,
            "web": alert.web,
            "style": feature_style(alert.event),
        },
    }


class AlertLayer:
    """지도 UI가 참조하는 경보 레이어 상태"""

    def __init__(self):
        self._snapshot = LayerSnapshot(legend=tuple(legend_entries([])))
        self._status = Status()

    @property
    def snapshot(self) -> LayerSnapshot:
        return self._snapshot

    @property
    def status(self) -> Status:
        return self._status

    def set_loading(self) -> None:
        self._status = Status(text="Loading alerts…", mode="loading")

    def set_progress(self, text: str) -> None:
        self._status = Status(text=text, mode="loading")

    def set_idle(self, text: str = "Idle") -> None:
        self._status = Status(text=text, mode="idle")

    def replace(self, result: RunResult, now: Optional[datetime] = None) -> None:
        """
        실행 결과로 레이어 전체를 원자적으로 교체합니다.

        Args:
            result: 수집 파이프라인 결과
            now: 갱신 시각 (테스트 주입용)
        """
        now = now or datetime.now()
        events = [a.event for a in result.alerts]
        self._snapshot = LayerSnapshot(
            alerts=tuple(result.alerts),
            partial=result.partial,
            legend=tuple(legend_entries(events)),
            last_updated=format_timestamp(now),
        )

        text = f"Loaded {len(result.alerts)} alert(s)."
        if result.partial:
            text += f" Partial: {len(result.alerts)} rendered before time budget ran out."
        self._status = Status(text=text, mode="ok")
        metrics.alerts_rendered.set(len(result.alerts))

    def show_error(self, error: BaseException) -> None:
        """이전 경보는 유지하고 상태만 오류로 바꿉니다."""
        self._status = Status(text=f"Error loading alerts: {error}", mode="error")
        log.error(f"경보 갱신 실패, 이전 레이어 유지 rendered:{len(self._snapshot.alerts)} error:{error}")

    def to_feature_collection(self) -> Dict[str, Any]:
        snapshot = self._snapshot
        features: List[Dict[str, Any]] = [alert_to_feature(a) for a in snapshot.alerts]
        return {
            "type": "FeatureCollection",
            "features": features,
            "legend": list(snapshot.legend),
            "partial": snapshot.partial,
            "lastUpdated": snapshot.last_updated,
            "status": self._status.model_dump(),
        }
