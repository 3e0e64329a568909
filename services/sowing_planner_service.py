"""
Order-driven sowing plan.

Works backwards from pending orders: an order due on D for a variety with a
growth cycle of N days must be sown on D - N. Only tasks that fall exactly on
the target sowing date are returned; missed sowing windows are not carried
forward.
"""

import math
from collections import defaultdict
from datetime import date, timedelta
from typing import Optional

import structlog

from models.order import Order, OrderStatus
from models.variety import MicrogreenVariety
from models.sowing import HarvestLogEntry, SowingPlanItem
from services.yield_service import trailing_yield_ratios

logger = structlog.get_logger(__name__)


def generate_sowing_plan(
    orders: list[Order],
    varieties: list[MicrogreenVariety],
    harvesting_log: dict[str, HarvestLogEntry],
    target_sowing_date: date,
    lookback_days: Optional[int] = None,
    default_ratio: Optional[float] = None,
) -> list[SowingPlanItem]:
    """
    Trays to sow on the target date to cover pending dated orders.

    Steps:
    1. Yield ratios over the trailing lookback window (default ratio fallback)
    2. Demand per (delivery date, variety) from Pending orders with a date
    3. Sow date = delivery date - growth cycle; trays = ceil(boxes / ratio)
    4. Keep tasks whose sow date is the target date, summed per variety

    Returns:
        Plan items sorted by variety, reasons joined with "; "
    """
    variety_map = {v.name: v for v in varieties}
    ratios = trailing_yield_ratios(
        orders,
        harvesting_log,
        target_sowing_date,
        varieties=variety_map.keys(),
        lookback_days=lookback_days,
        default_ratio=default_ratio,
    )

    # (delivery_date, variety) -> boxes, in first-seen order
    demand: dict[tuple[date, str], int] = defaultdict(int)
    for order in orders:
        if order.status != OrderStatus.PENDING or order.delivery_date is None:
            continue
        for item in order.items:
            demand[(order.delivery_date, item.variety)] += item.quantity

    trays_by_variety: dict[str, int] = defaultdict(int)
    reasons_by_variety: dict[str, list[str]] = defaultdict(list)

    for (delivery_date, variety_name), quantity in demand.items():
        variety = variety_map.get(variety_name)
        if variety is None:
            continue

        sow_date = delivery_date - timedelta(days=variety.growth_cycle_days)
        if sow_date != target_sowing_date:
            continue

        trays_by_variety[variety_name] += math.ceil(quantity / ratios[variety_name])
        reasons_by_variety[variety_name].append(
            f"For {quantity} boxes due {delivery_date.isoformat()}"
        )

    plan = [
        SowingPlanItem(
            variety=name,
            trays=trays_by_variety[name],
            reason="; ".join(reasons_by_variety[name]),
        )
        for name in sorted(trays_by_variety)
    ]

    logger.info(
        "sowing_plan_generated",
        target_date=target_sowing_date.isoformat(),
        demand_buckets=len(demand),
        tasks=len(plan)
    )
    return plan
