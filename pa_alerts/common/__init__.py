"""
Shared asyncio utilities for PA Alerts.
"""
