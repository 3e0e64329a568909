"""
Report calculations.

Every report is a pure read over application state. Nothing here is stored;
reports are recomputed on each request.
"""

from collections import defaultdict
from datetime import date, timedelta
from typing import Optional

import structlog

from config import settings
from models.order import Order, OrderStatus, SOLD_STATUSES
from models.variety import MicrogreenVariety, SeedInventoryItem
from models.sowing import HarvestLogEntry, UpcomingHarvestDay, UpcomingHarvestItem
from models.purchase_order import PurchaseOrder, PurchaseOrderStatus
from models.reports import (
    SeedToSaleRow,
    ReportPeriod,
    ClientBoxes,
    PeriodReport,
    VarietyBoxes,
    LocationSalesRow,
    ClientEngagementRow,
    ClientEngagementReport,
    ManifestOrder,
    ManifestGroup,
)
from services.yield_service import yield_ratio_map
from utils.dates import (
    created_within,
    start_of_day,
    end_of_day,
    week_bounds,
    month_bounds,
    year_bounds,
    previous_month_bounds,
)

logger = structlog.get_logger(__name__)

# Start of the all-time yield window used by the seed-to-sale funnel
ALL_TIME_START = date(2000, 1, 1)

TOP_CLIENTS = 5
TOP_LOCATION_VARIETIES = 3
UNSPECIFIED_LOCATION = "Unspecified Location"
UNASSIGNED_DELIVERY_MODE = "Unassigned"

# A client whose monthly boxes drop by more than this fraction is "reduced"
REDUCTION_THRESHOLD = 0.25


def _box_total(items) -> int:
    return sum(item.quantity for item in items)


# ===================
# SEED-TO-SALE FUNNEL
# ===================

def seed_to_sale_report(
    start_date: date,
    end_date: date,
    purchase_orders: list[PurchaseOrder],
    seed_inventory: dict[str, SeedInventoryItem],
    orders: list[Order],
    harvesting_log: dict[str, HarvestLogEntry],
    today: Optional[date] = None,
    default_ratio: Optional[float] = None,
) -> list[SeedToSaleRow]:
    """
    Seed purchased -> potential trays -> potential boxes -> boxes sold.

    seed_purchased: grams on Received POs with received_at in range.
    potential_trays: seed_purchased / grams_per_tray (0 without grams_per_tray).
    potential_boxes: potential_trays x all-time yield ratio (default fallback).
    boxes_sold: Completed/Dispatched/Shortfall orders created in range,
    counting actual harvest where recorded, requested items otherwise.
    conversion_rate: boxes_sold / potential_boxes x 100, 0 when nothing
    could have been grown.

    Returns:
        Rows for every variety purchased or sold, seed_purchased descending
    """
    today = today or date.today()
    range_start = start_of_day(start_date)
    range_end = end_of_day(end_date)

    seed_purchased: dict[str, float] = defaultdict(float)
    for po in purchase_orders:
        if po.status != PurchaseOrderStatus.RECEIVED or po.received_at is None:
            continue
        if not range_start <= po.received_at <= range_end:
            continue
        for item in po.items:
            seed_purchased[item.variety] += item.quantity

    boxes_sold: dict[str, int] = defaultdict(int)
    for order in orders:
        if order.status not in SOLD_STATUSES:
            continue
        if not created_within(order.created_at, start_date, end_date):
            continue
        for item in order.fulfilled_items():
            boxes_sold[item.variety] += item.quantity

    ratios = yield_ratio_map(
        orders, harvesting_log, ALL_TIME_START, today, default_ratio=default_ratio
    )
    fallback = default_ratio if default_ratio is not None else settings.default_yield_ratio

    rows = []
    for variety in set(seed_purchased) | set(boxes_sold):
        purchased = seed_purchased.get(variety, 0)
        sold = boxes_sold.get(variety, 0)
        seed_row = seed_inventory.get(variety)
        grams_per_tray = seed_row.grams_per_tray if seed_row else 0

        potential_trays = purchased / grams_per_tray if grams_per_tray > 0 else 0
        potential_boxes = potential_trays * ratios.get(variety, fallback)
        conversion_rate = sold / potential_boxes * 100 if potential_boxes > 0 else 0

        rows.append(SeedToSaleRow(
            variety=variety,
            seed_purchased=purchased,
            potential_trays=potential_trays,
            potential_boxes=potential_boxes,
            boxes_sold=sold,
            conversion_rate=conversion_rate,
        ))

    rows.sort(key=lambda r: (-r.seed_purchased, r.variety))

    logger.info(
        "seed_to_sale_report_generated",
        start_date=start_date.isoformat(),
        end_date=end_date.isoformat(),
        varieties=len(rows)
    )
    return rows


# ===================
# PERIOD SALES REPORT
# ===================

def period_bounds(period: ReportPeriod, anchor: date) -> tuple[date, date]:
    """First and last day of the period containing the anchor."""
    if period == ReportPeriod.DAILY:
        return anchor, anchor
    if period == ReportPeriod.WEEKLY:
        return week_bounds(anchor)
    if period == ReportPeriod.MONTHLY:
        return month_bounds(anchor)
    return year_bounds(anchor)


def orders_in_period(orders: list[Order], period: ReportPeriod, anchor: date) -> list[Order]:
    start, end = period_bounds(period, anchor)
    return [o for o in orders if created_within(o.created_at, start, end)]


def period_report(orders: list[Order], period: ReportPeriod, anchor: date) -> PeriodReport:
    """
    Sales summary over orders created in a day, ISO week, month or year.

    Boxes count the actual harvest where recorded, requested items otherwise.
    Shortfall boxes are requested minus harvested for each harvested variety.
    Delivery modes count Dispatched and Completed orders; cash counts
    Completed orders only.
    """
    start, end = period_bounds(period, anchor)
    selected = [o for o in orders if created_within(o.created_at, start, end)]

    status_count = {status.value: 0 for status in OrderStatus}
    variety_count: dict[str, int] = defaultdict(int)
    client_boxes: dict[str, int] = defaultdict(int)
    mode_count: dict[str, int] = defaultdict(int)
    total_boxes = 0
    total_shortfall = 0
    total_cash = 0.0

    for order in selected:
        status_count[order.status.value] += 1

        if order.delivery_mode and order.status in (OrderStatus.DISPATCHED, OrderStatus.COMPLETED):
            mode_count[order.delivery_mode] += 1

        if order.status == OrderStatus.COMPLETED and order.cash_received is not None:
            total_cash += order.cash_received

        items = order.fulfilled_items()
        order_boxes = _box_total(items)
        total_boxes += order_boxes
        client_boxes[order.client_name] += order_boxes
        for item in items:
            variety_count[item.variety] += item.quantity

        if order.actual_harvest is not None:
            requested: dict[str, int] = defaultdict(int)
            for item in order.items:
                requested[item.variety] += item.quantity
            harvested: dict[str, int] = defaultdict(int)
            for item in order.actual_harvest:
                harvested[item.variety] += item.quantity
            for variety, quantity in harvested.items():
                if requested[variety] > quantity:
                    total_shortfall += requested[variety] - quantity

    top_clients = sorted(client_boxes.items(), key=lambda kv: kv[1], reverse=True)[:TOP_CLIENTS]

    return PeriodReport(
        period=period,
        period_start=start,
        period_end=end,
        total_orders=len(selected),
        total_boxes=total_boxes,
        completed_orders=status_count[OrderStatus.COMPLETED.value],
        shortfall_orders=status_count[OrderStatus.SHORTFALL.value],
        total_shortfall_boxes=total_shortfall,
        total_cash_received=total_cash,
        order_status_count=status_count,
        variety_count=dict(variety_count),
        delivery_mode_count=dict(mode_count),
        top_clients=[ClientBoxes(name=name, boxes=boxes) for name, boxes in top_clients],
    )


# ===================
# LOCATION SALES
# ===================

def location_sales_report(orders: list[Order]) -> list[LocationSalesRow]:
    """
    Completed-order sales per delivery location.

    Blank locations are grouped as "Unspecified Location", which always
    sorts last; other locations sort by boxes descending.
    """
    order_counts: dict[str, int] = defaultdict(int)
    box_totals: dict[str, int] = defaultdict(int)
    cash_totals: dict[str, float] = defaultdict(float)
    variety_sales: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))

    for order in orders:
        if order.status != OrderStatus.COMPLETED:
            continue
        location = (order.location or "").strip() or UNSPECIFIED_LOCATION
        order_counts[location] += 1
        cash_totals[location] += order.cash_received or 0
        for item in order.fulfilled_items():
            box_totals[location] += item.quantity
            variety_sales[location][item.variety] += item.quantity

    rows = []
    for location, count in order_counts.items():
        top = sorted(variety_sales[location].items(), key=lambda kv: kv[1], reverse=True)
        rows.append(LocationSalesRow(
            location=location,
            total_orders=count,
            total_boxes=box_totals[location],
            total_cash=cash_totals[location],
            top_varieties=[
                VarietyBoxes(variety=v, boxes=b) for v, b in top[:TOP_LOCATION_VARIETIES]
            ],
        ))

    rows.sort(key=lambda r: (r.location == UNSPECIFIED_LOCATION, -r.total_boxes))
    return rows


# ===================
# CLIENT ENGAGEMENT
# ===================

def client_engagement_report(orders: list[Order], today: Optional[date] = None) -> ClientEngagementReport:
    """
    Clients who ordered last month and stopped or cut back this month.

    Compares requested boxes on Completed orders created last calendar
    month against those created since the start of this month.
    percent_change is a fraction: -1.0 means no orders this month.
    """
    today = today or date.today()
    this_month_start, _ = month_bounds(today)
    last_month_start, last_month_end = previous_month_bounds(today)

    last_month: dict[str, int] = defaultdict(int)
    this_month: dict[str, int] = defaultdict(int)
    for order in orders:
        if order.status != OrderStatus.COMPLETED:
            continue
        if order.created_at >= start_of_day(this_month_start):
            this_month[order.client_name] += _box_total(order.items)
        elif created_within(order.created_at, last_month_start, last_month_end):
            last_month[order.client_name] += _box_total(order.items)

    report = ClientEngagementReport()
    for client_name, last_boxes in last_month.items():
        this_boxes = this_month.get(client_name, 0)
        if this_boxes == 0:
            report.no_orders_this_month.append(ClientEngagementRow(
                client_name=client_name,
                last_month_boxes=last_boxes,
                this_month_boxes=0,
                percent_change=-1.0,
            ))
        elif last_boxes > 0:
            change = (this_boxes - last_boxes) / last_boxes
            if change < -REDUCTION_THRESHOLD:
                report.reduced_orders.append(ClientEngagementRow(
                    client_name=client_name,
                    last_month_boxes=last_boxes,
                    this_month_boxes=this_boxes,
                    percent_change=change,
                ))

    return report


# ===================
# DELIVERY MANIFEST
# ===================

def delivery_manifest(orders: list[Order]) -> list[ManifestGroup]:
    """Dispatched orders grouped by delivery mode ("Unassigned" when missing)."""
    groups: dict[str, ManifestGroup] = {}
    for order in orders:
        if order.status != OrderStatus.DISPATCHED:
            continue
        mode = order.delivery_mode or UNASSIGNED_DELIVERY_MODE
        group = groups.setdefault(mode, ManifestGroup(delivery_mode=mode))
        boxes = _box_total(order.actual_harvest or [])
        group.orders.append(ManifestOrder(
            order_id=order.id,
            client_name=order.client_name,
            location=order.location,
            total_boxes=boxes,
        ))
        group.total_boxes += boxes

    return list(groups.values())


# ===================
# UPCOMING HARVESTS
# ===================

def upcoming_harvests(
    harvesting_log: dict[str, HarvestLogEntry],
    varieties: list[MicrogreenVariety],
    today: Optional[date] = None,
    days: Optional[int] = None,
) -> list[UpcomingHarvestDay]:
    """
    Trays ready for harvest on each of the next N days (today included).

    Harvest date = sow date + growth cycle. Days with nothing to harvest are
    returned with an empty list.
    """
    today = today or date.today()
    days = days if days is not None else settings.upcoming_harvest_days
    variety_map = {v.name: v for v in varieties}

    by_day: dict[date, dict[str, int]] = defaultdict(lambda: defaultdict(int))
    for entry in harvesting_log.values():
        for variety_name, trays in entry.trays.items():
            variety = variety_map.get(variety_name)
            if variety is None or not trays or trays <= 0:
                continue
            harvest_date = entry.sow_date + timedelta(days=variety.growth_cycle_days)
            by_day[harvest_date][variety_name] += trays

    calendar = []
    for offset in range(days):
        day = today + timedelta(days=offset)
        harvests = by_day.get(day, {})
        calendar.append(UpcomingHarvestDay(
            harvest_date=day,
            harvests=[
                UpcomingHarvestItem(variety=name, trays=trays)
                for name, trays in sorted(harvests.items())
            ],
        ))
    return calendar
