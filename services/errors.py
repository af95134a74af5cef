"""Error taxonomy for the power usage pipeline."""

from __future__ import annotations


class PowerUsageError(Exception):
    """Base class for failures surfaced to API callers."""

    status_code = 500


class InvalidParameter(PowerUsageError):
    """Caller-supplied input is missing or malformed."""

    status_code = 400


class UpstreamUnavailable(PowerUsageError):
    """Prometheus could not be reached or answered with a non-2xx status."""

    status_code = 502


class UpstreamDataError(PowerUsageError):
    """Prometheus answered, but with an error status or an unusable payload."""

    status_code = 502


class InternalComputationError(PowerUsageError):
    """Calculation or serialization failed after both readings were fetched."""

    status_code = 500
