"""
Utilities package for logging and UTC timestamp helpers.
"""
