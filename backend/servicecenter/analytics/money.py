"""Per-record money arithmetic shared by every analytics view."""

from __future__ import annotations

import math
from typing import Iterable

from servicecenter.common.models import ServiceRecord


def parts_total(record: ServiceRecord) -> float:
    return sum(part.cost for part in record.parts)


def net_value(record: ServiceRecord) -> float:
    """Labor plus parts minus discount. Negative values are kept as-is."""
    return record.labor_cost + parts_total(record) - record.discount


def total_net_value(records: Iterable[ServiceRecord]) -> float:
    return sum(net_value(record) for record in records)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves towards positive infinity, the way the dashboards always have."""
    factor = 10 ** digits
    rounded = math.floor(value * factor + 0.5) / factor
    return int(rounded) if digits == 0 else rounded


def format_money(value: float, symbol: str = "") -> str:
    return f"{symbol}{value:.2f}"
