"""Instant-query client for a Prometheus-compatible HTTP API."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from models.records import LabeledSample
from services.errors import InvalidParameter, UpstreamDataError, UpstreamUnavailable

logger = logging.getLogger(__name__)

QUERY_PATH = "/api/v1/query"

# Characters that may appear inside the double-quoted instance matcher.
_TARGET_PATTERN = re.compile(r"[A-Za-z0-9.\-_:|^$*+?()\[\]]+")
# Possessive quantifiers compile in Python but are rejected by RE2.
_POSSESSIVE_PATTERN = re.compile(r"[*+?]\+")


def build_selector(target: str, metric: str = "energy", lookback: str = "10m") -> str:
    """Embed ``target`` as the instance regex of a ``last_over_time`` selector."""
    if not target:
        raise InvalidParameter("Parameter 'target' must not be empty.")
    if not _TARGET_PATTERN.fullmatch(target):
        raise InvalidParameter(
            f"Parameter 'target' contains unsupported characters: {target!r}."
        )
    if _POSSESSIVE_PATTERN.search(target):
        raise InvalidParameter(
            f"Parameter 'target' uses possessive quantifiers, which are not supported: {target!r}."
        )
    try:
        re.compile(target)
    except re.error as exc:
        raise InvalidParameter(f"Parameter 'target' is not a valid regex: {exc}.") from exc
    return f'last_over_time({metric}{{instance=~"{target}"}}[{lookback}])'


class PrometheusClient:
    """Thin async wrapper around the Prometheus instant-query endpoint."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)
        self._owns_client = client is None

    async def query(self, expression: str, at: datetime) -> List[LabeledSample]:
        params = {"query": expression, "time": str(int(at.timestamp()))}
        logger.debug("Prometheus instant query", extra={"query": expression, "at": at.isoformat()})
        try:
            response = await self._client.get(QUERY_PATH, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Prometheus returned an error status",
                extra={"query": expression, "status_code": exc.response.status_code},
            )
            raise UpstreamUnavailable(
                f"Prometheus responded with status {exc.response.status_code}."
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning(
                "Prometheus request failed",
                extra={"query": expression, "reason": type(exc).__name__},
            )
            raise UpstreamUnavailable(f"Prometheus request failed: {exc!r}.") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamUnavailable("Prometheus returned a malformed JSON body.") from exc
        if not isinstance(payload, dict):
            raise UpstreamUnavailable("Prometheus returned an unexpected JSON envelope.")

        samples = parse_vector(payload)
        logger.debug(
            "Prometheus query returned samples",
            extra={"query": expression, "sample_count": len(samples)},
        )
        return samples

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def parse_vector(payload: Dict[str, Any]) -> List[LabeledSample]:
    """Convert a decoded instant-query envelope into labeled samples."""
    status = payload.get("status")
    if status != "success":
        error_type = payload.get("errorType") or "unknown"
        error = payload.get("error") or "no error message"
        raise UpstreamDataError(f"Prometheus query failed ({status}, {error_type}): {error}")

    data = payload.get("data")
    if not isinstance(data, dict):
        raise UpstreamDataError("Prometheus response is missing 'data'.")
    result = data.get("result")
    if not isinstance(result, list):
        raise UpstreamDataError("Prometheus response is missing 'data.result'.")

    samples: List[LabeledSample] = []
    for entry in result:
        if not isinstance(entry, dict):
            raise UpstreamDataError("Prometheus result entry is not an object.")
        metric = entry.get("metric")
        value = entry.get("value")
        if not isinstance(metric, dict):
            raise UpstreamDataError("Prometheus result entry has no label set.")
        if not isinstance(value, list) or len(value) != 2:
            raise UpstreamDataError("Prometheus result entry has no [timestamp, value] pair.")
        try:
            reading = float(value[1])
        except (TypeError, ValueError) as exc:
            raise UpstreamDataError(f"Non-numeric sample value {value[1]!r}.") from exc
        labels = {str(key): str(label) for key, label in metric.items()}
        samples.append(LabeledSample(labels=labels, value=reading))
    return samples
