"""
Adapters for PA Alerts hexagonal architecture.

This module contains the concrete implementations of port interfaces
that handle external I/O and infrastructure concerns.
"""

from .storage import GeometryCache
from .nws.fetcher import BoundedFetcher

__all__ = ["GeometryCache", "BoundedFetcher"]
