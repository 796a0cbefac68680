"""
Orchestrators for PA Alerts.

This module contains the orchestrators that coordinate
the flow between ports and adapters.
"""
from .zone_resolver import ZoneGeometryResolver
from .ingestion import AlertIngestionPipeline
from .run_controller import RunController

__all__ = ["ZoneGeometryResolver", "AlertIngestionPipeline", "RunController"]
