"""Daily usage computation from two energy counter snapshots."""

from __future__ import annotations

import logging
import math
from typing import Dict, Iterable, List, Optional, Tuple

from models.records import LabeledSample, UsageRecord, UsageReport

logger = logging.getLogger(__name__)

HOURS_PER_DAY = 24


class UsageCalculator:
    """Pure calculation component that can be unit tested in isolation."""

    def compute(
        self,
        previous: Iterable[LabeledSample],
        current: Iterable[LabeledSample],
    ) -> UsageReport:
        lookup: Dict[Tuple[str, str], LabeledSample] = {}
        for sample in previous:
            key = self._join_key(sample, "previous")
            if key is not None:
                lookup[key] = sample

        grouped: Dict[str, List[UsageRecord]] = {}
        for sample in current:
            key = self._join_key(sample, "current")
            if key is None:
                continue
            prior = lookup.get(key)
            if prior is None:
                continue
            instance, address = key
            grouped.setdefault(instance, []).append(
                build_record(instance, address, prior.value, sample.value)
            )

        report: UsageReport = {}
        for instance in sorted(grouped):
            report[instance] = sorted(grouped[instance], key=lambda record: record.address)
        return report

    @staticmethod
    def _join_key(sample: LabeledSample, side: str) -> Optional[Tuple[str, str]]:
        instance = sample.instance
        address = sample.address
        if not instance or address is None or address == "":
            logger.warning(
                "Skipping %s sample without instance/address label",
                side,
                extra={"instance": instance, "address": address, "reason": "missing label"},
            )
            return None
        if not math.isfinite(sample.value):
            logger.warning(
                "Skipping %s sample with non-finite value",
                side,
                extra={"instance": instance, "address": address, "reason": repr(sample.value)},
            )
            return None
        return instance, address


def build_record(instance: str, address: str, prev_kwh: float, curr_kwh: float) -> UsageRecord:
    daily_kwh = curr_kwh - prev_kwh
    return UsageRecord(
        instance=instance,
        address=address,
        prev_kwh=prev_kwh,
        curr_kwh=curr_kwh,
        daily_kwh=daily_kwh,
        avg_power_watt=daily_kwh / HOURS_PER_DAY * 1000,
    )
