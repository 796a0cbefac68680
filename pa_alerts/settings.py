# pa_alerts/settings.py
from __future__ import annotations
from pydantic import BaseModel, Field
from pa_alerts.core.models import ViewWindow

class Source(BaseModel):
    alerts_url: str = "https://api.weather.gov/alerts/active"
    user_agent: str = "PA Alerts Backup Map"

class Fetch(BaseModel):
    main_timeout_sec: float = 25.0            # 활성 경보 컬렉션
    zone_timeout_sec: float = 8.0             # 존 하나

class Budget(BaseModel):
    time_budget_sec: float = 45.0             # 경보 경계에서만 확인하는 소프트 예산
    zone_fetch_cap: int = 150                 # 실행당 존 조회 상한
    zone_concurrency: int = 6
    max_zones_per_alert: int = 12

class Refresh(BaseModel):
    interval_sec: float = 300.0               # 5분마다 자동 갱신
    run_on_start: bool = True

class Observability(BaseModel):
    http_enabled: bool = True
    http_port: int = 8099
    metrics_enabled: bool = True
    service_name: str = "PA-Alerts"
    build_version: str = "0.1.0"
    build_date: str = "2025-01-01"
    log_level: str = "INFO"
    json_logs: bool = False

class Settings(BaseModel):
    # 하위 섹션 (기본값/팩토리로 누락 방지)
    source: Source = Field(default_factory=Source)
    fetch: Fetch = Field(default_factory=Fetch)
    budget: Budget = Field(default_factory=Budget)
    refresh: Refresh = Field(default_factory=Refresh)
    view_window: ViewWindow = Field(default_factory=ViewWindow)
    observability: Observability = Field(default_factory=Observability)
