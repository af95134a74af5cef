"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, Field, RootModel


class PowerUsage(BaseModel):
    """Daily usage of one address; the address is implied by list position."""

    prev_kwh: float = Field(..., description="Counter reading 24 hours before the requested time.")
    curr_kwh: float = Field(..., description="Counter reading at the requested time.")
    daily_kwh: float = Field(..., description="Energy consumed over the 24 hours.")
    avg_power_watt: float = Field(..., description="Average power over the 24 hours.")


class PowerUsageReport(RootModel[Dict[str, List[PowerUsage]]]):
    """Usage records keyed by Prometheus instance, ordered by address."""


class ErrorResponse(BaseModel):
    detail: str
