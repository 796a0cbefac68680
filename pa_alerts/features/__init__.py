"""
User-facing features for PA Alerts.
"""
