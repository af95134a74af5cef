"""Request orchestration: validate, fetch both snapshots, compute, format."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from functools import lru_cache
from time import perf_counter
from typing import List, Optional, Tuple

from models.records import LabeledSample, QueryWindow
from services.calculator import UsageCalculator
from services.errors import InternalComputationError, InvalidParameter
from services.formatter import format_report
from services.prometheus import PrometheusClient, build_selector
from services.time_window import resolve
from settings import get_settings

logger = logging.getLogger(__name__)

_TRUTHY = {"true", "1", "yes"}


@dataclass(frozen=True)
class UsageRequest:
    target: str
    date: str
    time: str
    as_csv: bool = False


def parse_request(
    target: Optional[str],
    date: Optional[str],
    time: Optional[str],
    csv: Optional[str] = None,
) -> UsageRequest:
    """Validate raw query parameters; any missing required one is an error."""
    values = {"target": target, "date": date, "time": time}
    cleaned = {name: (value or "").strip() for name, value in values.items()}
    missing = [name for name, value in cleaned.items() if not value]
    if missing:
        raise InvalidParameter(f"Missing required parameter(s): {', '.join(missing)}.")
    as_csv = (csv or "").strip().lower() in _TRUTHY
    return UsageRequest(as_csv=as_csv, **cleaned)


class PowerUsageService:
    """Coordinates the Prometheus client, the calculator and the formatter."""

    def __init__(
        self,
        client: PrometheusClient,
        calculator: UsageCalculator,
        metric: str = "energy",
        lookback: str = "10m",
    ) -> None:
        self.client = client
        self.calculator = calculator
        self.metric = metric
        self.lookback = lookback

    async def handle(self, request: UsageRequest) -> Tuple[bytes, str]:
        start_time = perf_counter()
        window = resolve(request.date, request.time)
        expression = build_selector(request.target, metric=self.metric, lookback=self.lookback)

        previous, current = await self._fetch(expression, window)

        try:
            report = self.calculator.compute(previous, current)
            body, content_type = format_report(report, request.as_csv)
        except Exception as exc:
            logger.exception("Usage computation failed", extra={"target": request.target})
            raise InternalComputationError("Failed to compute power usage.") from exc

        logger.info(
            "Power usage computed",
            extra={
                "target": request.target,
                "at": window.current_instant.isoformat(),
                "record_count": sum(len(records) for records in report.values()),
                "elapsed_ms": int((perf_counter() - start_time) * 1000),
            },
        )
        return body, content_type

    async def _fetch(
        self, expression: str, window: QueryWindow
    ) -> Tuple[List[LabeledSample], List[LabeledSample]]:
        previous, current = await asyncio.gather(
            self.client.query(expression, window.previous_instant),
            self.client.query(expression, window.current_instant),
        )
        return previous, current

    async def aclose(self) -> None:
        """Release the upstream HTTP connection pool during shutdown."""
        await self.client.aclose()


@lru_cache
def build_default_service() -> PowerUsageService:
    """Factory that wires the service from environment settings."""
    settings = get_settings()
    client = PrometheusClient(settings.prometheus_url, timeout=settings.prometheus_timeout)
    return PowerUsageService(
        client=client,
        calculator=UsageCalculator(),
        metric=settings.metric_name,
        lookback=settings.lookback,
    )
