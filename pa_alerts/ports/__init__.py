"""
Port interfaces for PA Alerts hexagonal architecture.

This module defines the port interfaces (Protocols) that define
the contracts between the core pipeline and external adapters.
"""

from .fetch import JsonFetchPort
from .cache import GeometryCachePort

__all__ = ["JsonFetchPort", "GeometryCachePort"]
