"""Serialization of usage reports to JSON or CSV."""

from __future__ import annotations

import csv
import io
import json
from typing import Tuple

from models.records import UsageReport

JSON_CONTENT_TYPE = "application/json"
CSV_CONTENT_TYPE = "text/csv"

CSV_HEADER = (
    "Target",
    "Address",
    "Prev_kWh",
    "Current_KWh",
    "Daily_KWh",
    "Avg_Power_Watt",
)


def format_report(report: UsageReport, as_csv: bool) -> Tuple[bytes, str]:
    if as_csv:
        return render_csv(report).encode("utf-8"), CSV_CONTENT_TYPE
    return render_json(report).encode("utf-8"), JSON_CONTENT_TYPE


def render_json(report: UsageReport) -> str:
    payload = {
        instance: [
            {
                "prev_kwh": record.prev_kwh,
                "curr_kwh": record.curr_kwh,
                "daily_kwh": record.daily_kwh,
                "avg_power_watt": record.avg_power_watt,
            }
            for record in records
        ]
        for instance, records in report.items()
    }
    return json.dumps(payload)


def render_csv(report: UsageReport) -> str:
    """Flat table; ``Address`` is the 1-based position inside each instance group."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for instance, records in report.items():
        for position, record in enumerate(records, start=1):
            writer.writerow(
                (
                    instance,
                    position,
                    record.prev_kwh,
                    record.curr_kwh,
                    record.daily_kwh,
                    record.avg_power_watt,
                )
            )
    return buffer.getvalue()
