"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

WIB = timezone(timedelta(hours=7), "WIB")
DAY = timedelta(hours=24)


@dataclass(frozen=True, slots=True)
class QueryWindow:
    """A wall-clock moment in WIB and the instant one day before it."""

    date: date
    time: time
    timezone_offset: timezone = WIB

    @property
    def current_instant(self) -> datetime:
        return datetime.combine(self.date, self.time, tzinfo=self.timezone_offset)

    @property
    def previous_instant(self) -> datetime:
        return self.current_instant - DAY


@dataclass(frozen=True, slots=True)
class LabeledSample:
    """One entry of a Prometheus instant vector."""

    labels: Mapping[str, str] = field(default_factory=dict)
    value: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "labels", MappingProxyType(dict(self.labels)))

    @property
    def instance(self) -> Optional[str]:
        return self.labels.get("instance")

    @property
    def address(self) -> Optional[str]:
        return self.labels.get("address")


@dataclass(frozen=True, slots=True)
class UsageRecord:
    """Energy delta for one address between the two query instants."""

    instance: str
    address: str
    prev_kwh: float
    curr_kwh: float
    daily_kwh: float
    avg_power_watt: float


UsageReport = Dict[str, List[UsageRecord]]
