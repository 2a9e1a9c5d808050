"""
Subscription credit API application package.
"""
