"""
Models package for billing records and API responses.

This package contains Pydantic models used throughout the application
for validating store rows and shaping API responses.
"""

from .schemas import (
    Subscriber,
    PlanDefinition,
    CreditOutcome,
    CreditReport,
    ErrorResponse,
)

__all__ = [
    "Subscriber",
    "PlanDefinition",
    "CreditOutcome",
    "CreditReport",
    "ErrorResponse",
]
