# backend/app/schemas/main_responses.py
"""Responses for the service-level endpoints."""

from .base import StandardizedModel, UtcDateTime


class HealthResponse(StandardizedModel):
    status: str
    service: str
    version: str
    environment: str
    timestamp: UtcDateTime
    database: str
