"""
Background scripts run alongside the API (monthly credit scheduler).
"""
