"""
Shared response schemas.
"""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Body of every authorization failure."""
    error: str


class HealthResponse(BaseModel):
    status: str
    version: str
    environment: str
