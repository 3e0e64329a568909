"""
Harvest allocation.

Distributes today's harvested boxes across the pending orders that are due,
oldest order first. Each order draws from one shared pool per variety, item
by item, so an earlier order is always served in full before a later order
gets anything.
"""

from collections import defaultdict
from datetime import date
from typing import Optional

import structlog

from models.order import Order, OrderItem, OrderStatus, ShortfallItem, HarvestResult
from models.reports import VarietyBoxes

logger = structlog.get_logger(__name__)


def is_due(order: Order, today: date) -> bool:
    """Pending and either undated or due by the end of today."""
    if order.status != OrderStatus.PENDING:
        return False
    return order.delivery_date is None or order.delivery_date <= today


def select_harvestable_orders(orders: list[Order], today: date) -> list[Order]:
    """
    Orders the harvest will be allocated to, in allocation order.

    Sort is stable: orders created at the same instant keep their list order.
    """
    due = [o for o in orders if is_due(o, today)]
    return sorted(due, key=lambda o: o.created_at)


def allocate_harvest(
    orders: list[Order],
    harvested_quantities: dict[str, Optional[int]],
    today: date,
) -> tuple[list[Order], HarvestResult]:
    """
    Allocate harvested boxes to due pending orders.

    For every selected order, each item takes min(requested, available) from
    the pool for its variety. The order becomes Shortfall if any item got
    less than requested, Harvested otherwise. Orders not selected are
    returned unchanged.

    Args:
        orders: All orders (not modified)
        harvested_quantities: Boxes harvested per variety; missing or None is 0
        today: Current calendar date

    Returns:
        Tuple of (new order list in the original order, harvest result with
        the shortfall report)
    """
    available: dict[str, int] = defaultdict(int)
    for variety, quantity in harvested_quantities.items():
        available[variety] = quantity or 0

    to_process = select_harvestable_orders(orders, today)
    updated: dict[str, Order] = {}
    shortfall_report: list[ShortfallItem] = []
    harvested_count = 0
    shortfall_count = 0

    for order in to_process:
        has_shortfall = False
        actual_harvest: list[OrderItem] = []

        for item in order.items:
            requested = item.quantity
            allocated = min(requested, available[item.variety])
            available[item.variety] -= allocated
            actual_harvest.append(OrderItem(variety=item.variety, quantity=allocated))

            if allocated < requested:
                has_shortfall = True
                shortfall_report.append(ShortfallItem(
                    order_id=order.id,
                    client_name=order.client_name,
                    variety=item.variety,
                    requested=requested,
                    allocated=allocated,
                    shortfall=requested - allocated,
                ))

        if has_shortfall:
            shortfall_count += 1
        else:
            harvested_count += 1

        updated[order.id] = order.model_copy(update={
            "actual_harvest": actual_harvest,
            "status": OrderStatus.SHORTFALL if has_shortfall else OrderStatus.HARVESTED,
        })

    new_orders = [updated.get(o.id, o) for o in orders]

    result = HarvestResult(
        processed_orders=len(to_process),
        harvested_orders=harvested_count,
        shortfall_orders=shortfall_count,
        shortfall_report=shortfall_report,
    )

    logger.info(
        "harvest_allocated",
        processed=result.processed_orders,
        harvested=harvested_count,
        shortfall=shortfall_count,
        shortfall_lines=len(shortfall_report)
    )

    return new_orders, result


def aggregated_harvest_list(
    orders: list[Order],
    variety_names: list[str],
    today: date,
) -> list[VarietyBoxes]:
    """
    Pick list: total boxes requested by due pending orders, per variety.

    Every registered variety appears (zero when nothing is due). Items for
    unregistered varieties are ignored.
    """
    totals = {name: 0 for name in variety_names}
    for order in orders:
        if not is_due(order, today):
            continue
        for item in order.items:
            if item.variety in totals:
                totals[item.variety] += item.quantity

    return [VarietyBoxes(variety=name, boxes=boxes) for name, boxes in totals.items()]
