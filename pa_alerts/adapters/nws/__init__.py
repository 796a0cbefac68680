"""
NWS API adapters for PA Alerts.
"""

from .fetcher import BoundedFetcher

__all__ = ["BoundedFetcher"]
