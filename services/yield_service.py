"""
Yield ratio calculations.

Yield ratio = boxes harvested / trays sown, per variety, over a date window.
Trays come from the sowing log; boxes come from the actual harvest recorded
on orders created inside the same window.
"""

from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable, Optional

import structlog

from config import settings
from models.order import Order, HARVEST_RECORDED_STATUSES
from models.sowing import HarvestLogEntry
from models.reports import YieldRatioData
from utils.dates import created_within

logger = structlog.get_logger(__name__)


def calculate_yield_ratios(
    orders: list[Order],
    harvesting_log: dict[str, HarvestLogEntry],
    start_date: date,
    end_date: date,
) -> list[YieldRatioData]:
    """
    Boxes harvested per tray sown for every variety seen in the window.

    A sowing log entry counts when its date lies in [start_date, end_date].
    An order counts when it was created inside the same window, has its
    harvest recorded and carries an actual harvest.

    Args:
        orders: All orders
        harvesting_log: Sowing log keyed by date
        start_date: First day of the window
        end_date: Last day of the window (inclusive, whole day)

    Returns:
        One row per variety (union of both sides), sorted by variety.
        yield_ratio is None when no trays were sown.
    """
    trays_sown: dict[str, int] = defaultdict(int)
    for entry in harvesting_log.values():
        if start_date <= entry.sow_date <= end_date:
            for variety, count in entry.trays.items():
                trays_sown[variety] += count or 0

    boxes_harvested: dict[str, int] = defaultdict(int)
    for order in orders:
        if order.status not in HARVEST_RECORDED_STATUSES or order.actual_harvest is None:
            continue
        if not created_within(order.created_at, start_date, end_date):
            continue
        for item in order.actual_harvest:
            boxes_harvested[item.variety] += item.quantity

    rows = []
    for variety in sorted(set(trays_sown) | set(boxes_harvested)):
        sown = trays_sown.get(variety, 0)
        harvested = boxes_harvested.get(variety, 0)
        rows.append(YieldRatioData(
            variety=variety,
            trays_sown=sown,
            boxes_harvested=harvested,
            yield_ratio=harvested / sown if sown > 0 else None,
        ))

    logger.debug(
        "yield_ratios_calculated",
        start_date=start_date.isoformat(),
        end_date=end_date.isoformat(),
        varieties=len(rows)
    )
    return rows


def yield_ratio_map(
    orders: list[Order],
    harvesting_log: dict[str, HarvestLogEntry],
    start_date: date,
    end_date: date,
    varieties: Iterable[str] = (),
    default_ratio: Optional[float] = None,
) -> dict[str, float]:
    """
    Usable yield ratio per variety.

    Varieties with no ratio (or a zero ratio) fall back to the default.

    Args:
        varieties: Extra variety names that must appear in the result
        default_ratio: Fallback boxes per tray (settings.default_yield_ratio)

    Returns:
        Dict of variety -> boxes per tray, always positive
    """
    fallback = default_ratio if default_ratio is not None else settings.default_yield_ratio

    ratios = {name: fallback for name in varieties}
    for row in calculate_yield_ratios(orders, harvesting_log, start_date, end_date):
        ratios[row.variety] = row.yield_ratio if row.yield_ratio else fallback

    return ratios


def trailing_yield_ratios(
    orders: list[Order],
    harvesting_log: dict[str, HarvestLogEntry],
    end_date: date,
    varieties: Iterable[str] = (),
    lookback_days: Optional[int] = None,
    default_ratio: Optional[float] = None,
) -> dict[str, float]:
    """Yield ratio map over the lookback window ending at end_date."""
    days = lookback_days if lookback_days is not None else settings.yield_lookback_days
    return yield_ratio_map(
        orders,
        harvesting_log,
        end_date - timedelta(days=days),
        end_date,
        varieties=varieties,
        default_ratio=default_ratio,
    )
