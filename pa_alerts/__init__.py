"""
PA Alerts: live NWS watch/warning/advisory layer for a fixed regional map.
"""

__version__ = "0.1.0"
