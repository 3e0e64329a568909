"""
Intelligent sowing planner.

Nets three demand sources against the harvests already growing:

    forecast demand + pending order demand - projected harvest = net demand

then tops up net demand wherever a simulated finished-goods inventory drops
below a variety's safety stock. Net demand due on a date D is turned into a
sowing task for today only when D - growth cycle == today.

The planner never changes state. Seed sufficiency is checked against the
seed inventory and a purchase list is produced alongside the plan.
"""

import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

import structlog

from config import settings
from exceptions import ForecastServiceError
from models.order import Order, OrderStatus
from models.variety import MicrogreenVariety, SeedInventoryItem
from models.sowing import (
    HarvestLogEntry,
    SeedStatus,
    IntelligentSowingPlanItem,
    SeedPurchaseItem,
    IntelligentSowingPlan,
)
from models.forecast import WeeklyForecast
from services.forecast_service import DemandForecastProvider, build_forecast_history
from services.yield_service import trailing_yield_ratios

logger = structlog.get_logger(__name__)

SAFETY_STOCK_REASON = "Safety Stock"
MAX_REASONS_SHOWN = 2

# Purchase multipliers
LOW_AFTER_SOWING_FACTOR = 1.2
BELOW_REORDER_FACTOR = 1.5

LOW_AFTER_SOWING_REASON = "Stock will be low after sowing."
BELOW_REORDER_REASON = "Stock is below reorder level."


@dataclass
class DemandLine:
    """Boxes needed for one (date, variety) and why."""
    quantity: float = 0
    reasons: list[str] = field(default_factory=list)


# (date, variety) -> demand
DemandMap = dict[tuple[date, str], DemandLine]


def _add_demand(demand: DemandMap, key: tuple[date, str], quantity: float, reason: str) -> None:
    line = demand.setdefault(key, DemandLine())
    line.quantity += quantity
    line.reasons.append(reason)


def forecast_demand(weeks: Optional[list[WeeklyForecast]], today: date) -> DemandMap:
    """Week w (0-based) is due on today + 7w."""
    demand: DemandMap = {}
    for week_index, week in enumerate(weeks or []):
        due = today + timedelta(days=7 * week_index)
        for prediction in week.predictions:
            _add_demand(
                demand,
                (due, prediction.variety),
                prediction.quantity,
                f"AI forecast for Week {week_index + 1}",
            )
    return demand


def pending_order_demand(orders: list[Order], today: date) -> DemandMap:
    """Pending orders with a delivery date of today or later."""
    demand: DemandMap = {}
    for order in orders:
        if order.status != OrderStatus.PENDING or order.delivery_date is None:
            continue
        if order.delivery_date < today:
            continue
        for item in order.items:
            _add_demand(demand, (order.delivery_date, item.variety), item.quantity, f"Order {order.id}")
    return demand


def projected_harvests(
    harvesting_log: dict[str, HarvestLogEntry],
    variety_map: dict[str, MicrogreenVariety],
    ratios: dict[str, float],
    today: date,
) -> dict[date, dict[str, float]]:
    """
    Boxes expected per harvest date from trays already sown.

    harvest date = sow date + growth cycle; boxes = trays x yield ratio.
    Harvests before today are ignored.
    """
    harvests: dict[date, dict[str, float]] = defaultdict(lambda: defaultdict(float))
    for entry in harvesting_log.values():
        for variety_name, trays in entry.trays.items():
            variety = variety_map.get(variety_name)
            if variety is None or not trays or trays <= 0:
                continue
            harvest_date = entry.sow_date + timedelta(days=variety.growth_cycle_days)
            if harvest_date < today:
                continue
            harvests[harvest_date][variety_name] += trays * ratios[variety_name]
    return harvests


def net_demand(
    demand_sources: list[DemandMap],
    harvests: dict[date, dict[str, float]],
) -> DemandMap:
    """Combined demand minus projected harvest on the same day; positive remainders only."""
    combined: DemandMap = {}
    for source in demand_sources:
        for key, line in source.items():
            target = combined.setdefault(key, DemandLine())
            target.quantity += line.quantity
            target.reasons.extend(line.reasons)

    net: DemandMap = {}
    for (due, variety), line in combined.items():
        needed = line.quantity - harvests.get(due, {}).get(variety, 0)
        if needed > 0:
            net[(due, variety)] = DemandLine(quantity=needed, reasons=list(line.reasons))
    return net


def apply_safety_stock(
    net: DemandMap,
    harvests: dict[date, dict[str, float]],
    varieties: list[MicrogreenVariety],
    seed_inventory: dict[str, SeedInventoryItem],
    today: date,
    horizon_days: int,
) -> DemandMap:
    """
    Add safety stock top-ups to net demand.

    Simulates finished-goods boxes day by day from zero: each day adds that
    day's projected harvest and subtracts that day's net demand. When a
    variety ends the day below its safety stock, the deficit is added to that
    day's net demand. The simulated inventory itself is not topped up, so a
    variety that stays short is topped up again on every following day.
    """
    result: DemandMap = {key: DemandLine(line.quantity, list(line.reasons)) for key, line in net.items()}
    inventory: dict[str, float] = defaultdict(float)

    for offset in range(horizon_days):
        day = today + timedelta(days=offset)

        for variety, boxes in harvests.get(day, {}).items():
            inventory[variety] += boxes

        for (due, variety), line in list(result.items()):
            if due == day:
                inventory[variety] -= line.quantity

        for variety in varieties:
            seed_row = seed_inventory.get(variety.name)
            safety_stock = (seed_row.safety_stock_boxes if seed_row else None) or 0
            if safety_stock <= 0:
                continue

            on_hand = inventory[variety.name]
            if on_hand < safety_stock:
                line = result.setdefault((day, variety.name), DemandLine())
                line.quantity += safety_stock - on_hand
                if SAFETY_STOCK_REASON not in line.reasons:
                    line.reasons.append(SAFETY_STOCK_REASON)

    return result


def todays_tasks(
    net: DemandMap,
    variety_map: dict[str, MicrogreenVariety],
    ratios: dict[str, float],
    today: date,
) -> dict[str, tuple[int, list[str]]]:
    """
    Net demand that must be sown today.

    Returns:
        variety -> (trays, unique reasons in first-seen order)
    """
    tasks: dict[str, tuple[int, list[str]]] = {}
    for (due, variety_name), line in net.items():
        variety = variety_map.get(variety_name)
        if variety is None:
            continue
        if due - timedelta(days=variety.growth_cycle_days) != today:
            continue

        trays = math.ceil(line.quantity / ratios[variety_name])
        current_trays, reasons = tasks.get(variety_name, (0, []))
        for reason in line.reasons:
            if reason not in reasons:
                reasons.append(reason)
        tasks[variety_name] = (current_trays + trays, reasons)
    return tasks


def classify_seed_status(grams_needed: float, item: SeedInventoryItem) -> SeedStatus:
    """Insufficient if stock cannot cover the sowing, Low Stock if it ends at/below reorder level."""
    if grams_needed > item.stock_on_hand:
        return SeedStatus.INSUFFICIENT
    if item.stock_on_hand - grams_needed <= item.reorder_level:
        return SeedStatus.LOW_STOCK
    return SeedStatus.OK


def generate_intelligent_sowing_plan(
    orders: list[Order],
    varieties: list[MicrogreenVariety],
    harvesting_log: dict[str, HarvestLogEntry],
    seed_inventory: dict[str, SeedInventoryItem],
    forecast_provider: Optional[DemandForecastProvider] = None,
    today: Optional[date] = None,
    horizon_days: Optional[int] = None,
    lookback_days: Optional[int] = None,
    default_ratio: Optional[float] = None,
) -> IntelligentSowingPlan:
    """
    Today's sowing tasks and the seed purchase list.

    A missing provider, a None/empty forecast or a ForecastServiceError all
    mean zero forecast demand; the plan is still produced.

    Args:
        orders: All orders
        varieties: Registered varieties
        harvesting_log: Sowing log keyed by date
        seed_inventory: Seed stock keyed by variety
        forecast_provider: Demand forecast source (optional)
        today: Planning date (defaults to the current date)
        horizon_days: Safety stock simulation length
        lookback_days: Yield ratio window
        default_ratio: Boxes per tray fallback

    Returns:
        IntelligentSowingPlan with plan and purchase list sorted by variety
    """
    today = today or date.today()
    horizon = horizon_days if horizon_days is not None else settings.safety_stock_horizon_days
    variety_map = {v.name: v for v in varieties}

    ratios = trailing_yield_ratios(
        orders,
        harvesting_log,
        today,
        varieties=variety_map.keys(),
        lookback_days=lookback_days,
        default_ratio=default_ratio,
    )
    fallback = default_ratio if default_ratio is not None else settings.default_yield_ratio
    ratios = defaultdict(lambda: fallback, ratios)

    weeks = _fetch_forecast(forecast_provider, orders)

    harvests = projected_harvests(harvesting_log, variety_map, ratios, today)
    net = net_demand([forecast_demand(weeks, today), pending_order_demand(orders, today)], harvests)
    net = apply_safety_stock(net, harvests, varieties, seed_inventory, today, horizon)
    tasks = todays_tasks(net, variety_map, ratios, today)

    plan: list[IntelligentSowingPlanItem] = []
    purchase_list: list[SeedPurchaseItem] = []
    purchased: set[str] = set()

    for variety_name, (trays, reasons) in tasks.items():
        item = seed_inventory.get(variety_name)
        if item is None:
            logger.warning("sowing_task_skipped_no_seed_row", variety=variety_name, trays=trays)
            continue

        grams_needed = trays * item.grams_per_tray
        plan.append(IntelligentSowingPlanItem(
            variety=variety_name,
            trays_to_sow=trays,
            reason="; ".join(reasons[:MAX_REASONS_SHOWN]),
            seed_status=classify_seed_status(grams_needed, item),
            grams_needed=grams_needed,
        ))

        if item.stock_on_hand - grams_needed <= item.reorder_level:
            grams_to_buy = max(grams_needed, item.reorder_level) * LOW_AFTER_SOWING_FACTOR - item.stock_on_hand
            if grams_to_buy > 0:
                purchase_list.append(SeedPurchaseItem(
                    variety=variety_name,
                    grams_to_buy=grams_to_buy,
                    reason=LOW_AFTER_SOWING_REASON,
                ))
                purchased.add(variety_name)

    for variety_name, item in seed_inventory.items():
        if variety_name in purchased:
            continue
        if item.stock_on_hand <= item.reorder_level:
            grams_to_buy = item.reorder_level * BELOW_REORDER_FACTOR - item.stock_on_hand
            if grams_to_buy > 0:
                purchase_list.append(SeedPurchaseItem(
                    variety=variety_name,
                    grams_to_buy=grams_to_buy,
                    reason=BELOW_REORDER_REASON,
                ))
                purchased.add(variety_name)

    plan.sort(key=lambda p: p.variety)
    purchase_list.sort(key=lambda p: p.variety)

    logger.info(
        "intelligent_plan_generated",
        today=today.isoformat(),
        forecast_used=bool(weeks),
        net_demand_lines=len(net),
        tasks=len(plan),
        purchases=len(purchase_list)
    )

    return IntelligentSowingPlan(
        plan=plan,
        purchase_list=purchase_list,
        forecast_used=bool(weeks),
    )


def _fetch_forecast(
    provider: Optional[DemandForecastProvider],
    orders: list[Order],
) -> Optional[list[WeeklyForecast]]:
    """Forecast weeks, or None when unavailable or failed."""
    if provider is None:
        return None

    try:
        return provider.forecast(build_forecast_history(orders))
    except ForecastServiceError as e:
        logger.warning("forecast_unavailable_planning_without", error=e.message)
        return None
