"""
Services package for billing store, coin ledger and the monthly credit run.
"""
