"""
Pure state transitions.

Every function takes the current AppData and returns a new AppData (plus the
created object where there is one). The input state is never modified, so a
failed transition leaves the caller's state untouched and the store only has
to swap references.

Business rules enforced here:
- Variety names must be registered wherever an order, sowing log, waste
  entry or purchase order references them
- Completed orders cannot be edited or deleted
- Orders move Pending -> Harvested|Shortfall -> Dispatched -> Completed
- Purchase orders move Draft -> Ordered -> Received, or to Cancelled
"""

from datetime import date, datetime
from typing import Iterable, Optional
from uuid import uuid4

import structlog

from exceptions import (
    ValidationError,
    ConflictError,
    OrderNotFoundError,
    OrderCompletedError,
    InvalidStatusTransitionError,
    VarietyNotFoundError,
    UnknownVarietyError,
    VarietyExistsError,
    VarietyInUseError,
    PurchaseOrderNotFoundError,
    WasteEntryNotFoundError,
    DeliveryExpenseNotFoundError,
)
from models.app_state import AppData, initial_app_data
from models.order import (
    Order,
    OrderItem,
    OrderStatus,
    OrderCreate,
    OrderUpdate,
    CompletionRequest,
    HarvestResult,
    DISPATCHABLE_STATUSES,
)
from models.variety import MicrogreenVariety, SeedInventoryItem, SeedInventoryUpdate
from models.sowing import HarvestLogEntry
from models.logs import WasteLogEntry, WasteLogEntryCreate, DeliveryExpense, DeliveryExpenseCreate
from models.purchase_order import (
    PurchaseOrder,
    PurchaseOrderStatus,
    PurchaseOrderCreate,
    PurchaseOrderUpdate,
    PO_TRANSITIONS,
    EDITABLE_PO_STATUSES,
    is_valid_po_transition,
)
from services.harvest_service import allocate_harvest
from utils.dates import date_key
from utils.text_utils import clean_text, name_key

logger = structlog.get_logger(__name__)


def new_id(prefix: str) -> str:
    """Short unique id, e.g. ORD-3F9A1C2B7D4E."""
    return f"{prefix}-{uuid4().hex[:12].upper()}"


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now()


def _require_varieties(state: AppData, names: Iterable[str]) -> None:
    registered = set(state.variety_names())
    for name in names:
        if name not in registered:
            raise UnknownVarietyError(name)


def _get_order(state: AppData, order_id: str) -> Order:
    order = state.find_order(order_id)
    if order is None:
        raise OrderNotFoundError(order_id)
    return order


def _replace_order(state: AppData, updated: Order) -> AppData:
    new_state = state.model_copy(deep=True)
    new_state.orders = [updated if o.id == updated.id else o for o in new_state.orders]
    return new_state


# ===================
# ORDERS
# ===================

def _build_order(prefix: str, data: OrderCreate, created_at: datetime) -> Order:
    return Order(
        id=new_id(prefix),
        client_name=data.client_name,
        items=[OrderItem(variety=i.variety, quantity=i.quantity) for i in data.items],
        status=OrderStatus.PENDING,
        created_at=created_at,
        delivery_date=data.delivery_date,
        location=clean_text(data.location),
    )


def add_order(state: AppData, data: OrderCreate, now: Optional[datetime] = None) -> tuple[AppData, Order]:
    """New Pending order, listed first."""
    _require_varieties(state, (i.variety for i in data.items))

    order = _build_order("ORD", data, _now(now))
    new_state = state.model_copy(deep=True)
    new_state.orders = [order, *new_state.orders]

    logger.info("order_added", order_id=order.id, client=order.client_name, items=len(order.items))
    return new_state, order


def update_order(state: AppData, order_id: str, data: OrderUpdate) -> AppData:
    """
    Replace an order's client, items, delivery date and location.

    The order goes back to Pending and any recorded harvest is cleared.
    """
    order = _get_order(state, order_id)
    if order.is_completed:
        raise OrderCompletedError(order_id, "edit")
    _require_varieties(state, (i.variety for i in data.items))

    updated = order.model_copy(update={
        "client_name": data.client_name,
        "items": [OrderItem(variety=i.variety, quantity=i.quantity) for i in data.items],
        "delivery_date": data.delivery_date,
        "location": clean_text(data.location),
        "status": OrderStatus.PENDING,
        "actual_harvest": None,
    })

    logger.info("order_updated", order_id=order_id, previous_status=order.status.value)
    return _replace_order(state, updated)


def delete_order(state: AppData, order_id: str) -> AppData:
    order = _get_order(state, order_id)
    if order.is_completed:
        raise OrderCompletedError(order_id, "delete")

    new_state = state.model_copy(deep=True)
    new_state.orders = [o for o in new_state.orders if o.id != order_id]

    logger.info("order_deleted", order_id=order_id)
    return new_state


def delete_all_orders(state: AppData) -> AppData:
    """Clear order history. Varieties, logs and inventory are kept."""
    new_state = state.model_copy(deep=True)
    count = len(new_state.orders)
    new_state.orders = []

    logger.warning("all_orders_deleted", count=count)
    return new_state


def import_orders(
    state: AppData,
    orders_data: list[OrderCreate],
    now: Optional[datetime] = None,
) -> tuple[AppData, list[Order]]:
    """Add a batch of Pending orders, listed first in file order. All or nothing."""
    for data in orders_data:
        _require_varieties(state, (i.variety for i in data.items))

    created_at = _now(now)
    imported = [_build_order("IMP", data, created_at) for data in orders_data]

    new_state = state.model_copy(deep=True)
    new_state.orders = [*imported, *new_state.orders]

    logger.info("orders_imported", count=len(imported))
    return new_state, imported


def dispatch_order(state: AppData, order_id: str, delivery_mode: str) -> AppData:
    """Harvested or Shortfall -> Dispatched with a registered delivery mode."""
    order = _get_order(state, order_id)
    if order.status not in DISPATCHABLE_STATUSES:
        raise InvalidStatusTransitionError(
            order.status.value,
            OrderStatus.DISPATCHED.value,
            sorted(s.value for s in DISPATCHABLE_STATUSES),
        )

    mode = delivery_mode.strip()
    if mode not in state.delivery_modes:
        raise ValidationError(
            f'"{mode}" is not a registered delivery mode',
            code="UNKNOWN_DELIVERY_MODE",
            details={"delivery_mode": mode}
        )

    updated = order.model_copy(update={"status": OrderStatus.DISPATCHED, "delivery_mode": mode})

    logger.info("order_dispatched", order_id=order_id, delivery_mode=mode)
    return _replace_order(state, updated)


def complete_delivery(state: AppData, order_id: str, data: CompletionRequest) -> AppData:
    """Dispatched -> Completed, recording cash received and remarks."""
    order = _get_order(state, order_id)
    if order.status != OrderStatus.DISPATCHED:
        raise InvalidStatusTransitionError(
            order.status.value,
            OrderStatus.COMPLETED.value,
            [OrderStatus.DISPATCHED.value],
        )

    updated = order.model_copy(update={
        "status": OrderStatus.COMPLETED,
        "cash_received": data.cash_received,
        "remarks": clean_text(data.remarks, max_length=1000),
    })

    logger.info("order_completed", order_id=order_id, cash_received=data.cash_received)
    return _replace_order(state, updated)


def apply_harvest(
    state: AppData,
    harvested_quantities: dict[str, Optional[int]],
    today: Optional[date] = None,
) -> tuple[AppData, HarvestResult]:
    """Allocate today's harvest to due pending orders."""
    new_orders, result = allocate_harvest(state.orders, harvested_quantities, today or date.today())

    new_state = state.model_copy(deep=True)
    new_state.orders = new_orders
    return new_state, result


# ===================
# VARIETIES
# ===================

def _empty_seed_row() -> SeedInventoryItem:
    return SeedInventoryItem(stock_on_hand=0, reorder_level=0, grams_per_tray=0, safety_stock_boxes=0)


def add_variety(state: AppData, name: str, growth_cycle_days: int) -> tuple[AppData, MicrogreenVariety]:
    """Register a variety and give it an empty seed inventory row."""
    clean_name = (name or "").strip()
    if not clean_name:
        raise ValidationError("Variety name is required", details={"field": "name"})
    if growth_cycle_days <= 0:
        raise ValidationError(
            "Growth cycle must be a positive number of days",
            details={"field": "growth_cycle_days", "value": growth_cycle_days}
        )

    existing = {name_key(n) for n in state.variety_names()}
    if name_key(clean_name) in existing:
        raise VarietyExistsError(clean_name)

    variety = MicrogreenVariety(name=clean_name, growth_cycle_days=growth_cycle_days)
    new_state = state.model_copy(deep=True)
    new_state.microgreen_varieties = [*new_state.microgreen_varieties, variety]
    new_state.seed_inventory = {**new_state.seed_inventory, clean_name: _empty_seed_row()}

    logger.info("variety_added", variety=clean_name, growth_cycle_days=growth_cycle_days)
    return new_state, variety


def delete_variety(state: AppData, name: str) -> AppData:
    """Remove a variety and its seed row. Blocked while any order uses it."""
    if name not in state.variety_names():
        raise VarietyNotFoundError(name)

    order_count = sum(
        1 for o in state.orders if any(item.variety == name for item in o.items)
    )
    if order_count:
        raise VarietyInUseError(name, order_count)

    new_state = state.model_copy(deep=True)
    new_state.microgreen_varieties = [v for v in new_state.microgreen_varieties if v.name != name]
    new_state.seed_inventory = {k: v for k, v in new_state.seed_inventory.items() if k != name}

    logger.info("variety_deleted", variety=name)
    return new_state


def import_varieties(
    state: AppData,
    varieties: list[MicrogreenVariety],
) -> tuple[AppData, list[MicrogreenVariety]]:
    """
    Register a batch of varieties. All or nothing.

    Names are unique case-insensitively against the registry and within the
    batch. The registry is re-sorted by name.
    """
    seen = {name_key(n) for n in state.variety_names()}
    added: list[MicrogreenVariety] = []
    for variety in varieties:
        clean_name = variety.name.strip()
        key = name_key(clean_name)
        if key in seen:
            raise VarietyExistsError(clean_name)
        seen.add(key)
        added.append(MicrogreenVariety(name=clean_name, growth_cycle_days=variety.growth_cycle_days))

    new_state = state.model_copy(deep=True)
    new_state.microgreen_varieties = sorted(
        [*new_state.microgreen_varieties, *added], key=lambda v: v.name
    )
    new_state.seed_inventory = {
        **new_state.seed_inventory,
        **{v.name: _empty_seed_row() for v in added},
    }

    logger.info("varieties_imported", count=len(added))
    return new_state, added


# ===================
# SOWING AND SEEDS
# ===================

def save_sowing_log(state: AppData, sow_date: date, trays: dict[str, Optional[int]]) -> AppData:
    """
    Record trays sown on a date and deduct the seed used.

    Counts are merged into any entry already saved for that date (blank
    counts become 0). Seed stock drops by the change in trays x grams per
    tray, so saving the same counts twice deducts nothing the second time.
    Stock may go negative.
    """
    _require_varieties(state, trays.keys())
    counts: dict[str, int] = {}
    for variety, count in trays.items():
        value = count or 0
        if value < 0:
            raise ValidationError(
                f"Tray count for {variety} cannot be negative",
                details={"variety": variety, "trays": value}
            )
        counts[variety] = value

    key = date_key(sow_date)
    previous = state.harvesting_log.get(key)
    previous_trays = previous.trays if previous else {}

    new_state = state.model_copy(deep=True)
    new_state.harvesting_log = {
        **new_state.harvesting_log,
        key: HarvestLogEntry(sow_date=sow_date, trays={**previous_trays, **counts}),
    }

    deductions = {}
    for variety, count in counts.items():
        delta = count - previous_trays.get(variety, 0)
        seed_row = new_state.seed_inventory.get(variety)
        if seed_row is None or delta == 0:
            continue
        grams = delta * seed_row.grams_per_tray
        seed_row.stock_on_hand = seed_row.stock_on_hand - grams
        deductions[variety] = grams

    logger.info("sowing_log_saved", date=key, varieties=len(counts), seed_deducted=deductions)
    return new_state


def update_seed_inventory_item(state: AppData, variety: str, update: SeedInventoryUpdate) -> AppData:
    """Change only the provided fields of a registered variety's seed row."""
    if variety not in state.variety_names():
        raise VarietyNotFoundError(variety)

    changes = update.model_dump(exclude_unset=True)
    new_state = state.model_copy(deep=True)
    current = new_state.seed_inventory.get(variety) or _empty_seed_row()
    new_state.seed_inventory = {
        **new_state.seed_inventory,
        variety: current.model_copy(update=changes),
    }

    logger.info("seed_inventory_updated", variety=variety, fields=sorted(changes))
    return new_state


# ===================
# DELIVERY MODES
# ===================

def add_delivery_mode(state: AppData, mode: str) -> AppData:
    """Register a delivery mode. Adding an existing mode changes nothing."""
    clean_mode = (mode or "").strip()
    if not clean_mode:
        raise ValidationError("Delivery mode is required", details={"field": "mode"})

    new_state = state.model_copy(deep=True)
    if clean_mode not in new_state.delivery_modes:
        new_state.delivery_modes = [*new_state.delivery_modes, clean_mode]
        logger.info("delivery_mode_added", mode=clean_mode)
    return new_state


# ===================
# WASTE AND EXPENSE LOGS
# ===================

def add_waste_entry(state: AppData, data: WasteLogEntryCreate) -> tuple[AppData, WasteLogEntry]:
    _require_varieties(state, [data.variety])

    entry = WasteLogEntry(id=new_id("WST"), **data.model_dump())
    new_state = state.model_copy(deep=True)
    new_state.waste_log = [entry, *new_state.waste_log]

    logger.info("waste_logged", entry_id=entry.id, variety=entry.variety, trays=entry.trays_wasted)
    return new_state, entry


def delete_waste_entry(state: AppData, entry_id: str) -> AppData:
    if not any(e.id == entry_id for e in state.waste_log):
        raise WasteEntryNotFoundError(entry_id)

    new_state = state.model_copy(deep=True)
    new_state.waste_log = [e for e in new_state.waste_log if e.id != entry_id]
    return new_state


def add_delivery_expense(state: AppData, data: DeliveryExpenseCreate) -> tuple[AppData, DeliveryExpense]:
    expense = DeliveryExpense(id=new_id("EXP"), **data.model_dump())
    new_state = state.model_copy(deep=True)
    new_state.delivery_expenses = [expense, *new_state.delivery_expenses]

    logger.info("delivery_expense_logged", expense_id=expense.id, amount=expense.amount)
    return new_state, expense


def delete_delivery_expense(state: AppData, expense_id: str) -> AppData:
    if not any(e.id == expense_id for e in state.delivery_expenses):
        raise DeliveryExpenseNotFoundError(expense_id)

    new_state = state.model_copy(deep=True)
    new_state.delivery_expenses = [e for e in new_state.delivery_expenses if e.id != expense_id]
    return new_state


# ===================
# PURCHASE ORDERS
# ===================

def _get_purchase_order(state: AppData, po_id: str) -> PurchaseOrder:
    po = state.find_purchase_order(po_id)
    if po is None:
        raise PurchaseOrderNotFoundError(po_id)
    return po


def _replace_purchase_order(state: AppData, updated: PurchaseOrder) -> AppData:
    new_state = state.model_copy(deep=True)
    new_state.purchase_orders = [
        updated if po.id == updated.id else po for po in new_state.purchase_orders
    ]
    return new_state


def add_purchase_order(
    state: AppData,
    data: PurchaseOrderCreate,
    now: Optional[datetime] = None,
) -> tuple[AppData, PurchaseOrder]:
    """New Draft purchase order, listed first."""
    _require_varieties(state, (i.variety for i in data.items))

    po = PurchaseOrder(
        id=new_id("PO"),
        supplier_name=data.supplier_name,
        items=data.items,
        status=PurchaseOrderStatus.DRAFT,
        created_at=_now(now),
        total_cost=data.total_cost,
        notes=clean_text(data.notes, max_length=1000),
    )
    new_state = state.model_copy(deep=True)
    new_state.purchase_orders = [po, *new_state.purchase_orders]

    logger.info("purchase_order_added", po_id=po.id, supplier=po.supplier_name, items=len(po.items))
    return new_state, po


def update_purchase_order(state: AppData, po_id: str, data: PurchaseOrderUpdate) -> AppData:
    """Replace supplier, items, cost and notes while Draft or Ordered."""
    po = _get_purchase_order(state, po_id)
    if po.status not in EDITABLE_PO_STATUSES:
        raise ConflictError(
            f"Cannot edit a {po.status.value} purchase order",
            code="PURCHASE_ORDER_NOT_EDITABLE",
            details={"po_id": po_id, "status": po.status.value}
        )
    _require_varieties(state, (i.variety for i in data.items))

    updated = po.model_copy(update={
        "supplier_name": data.supplier_name,
        "items": data.items,
        "total_cost": data.total_cost,
        "notes": clean_text(data.notes, max_length=1000),
    })

    logger.info("purchase_order_updated", po_id=po_id)
    return _replace_purchase_order(state, updated)


def delete_purchase_order(state: AppData, po_id: str) -> AppData:
    """Delete a purchase order that has not been received."""
    po = _get_purchase_order(state, po_id)
    if po.status == PurchaseOrderStatus.RECEIVED:
        raise ConflictError(
            "Cannot delete a received purchase order",
            code="PURCHASE_ORDER_RECEIVED",
            details={"po_id": po_id}
        )

    new_state = state.model_copy(deep=True)
    new_state.purchase_orders = [p for p in new_state.purchase_orders if p.id != po_id]

    logger.info("purchase_order_deleted", po_id=po_id)
    return new_state


def _transition_purchase_order(
    state: AppData,
    po_id: str,
    new_status: PurchaseOrderStatus,
    timestamp_field: str,
    now: Optional[datetime],
) -> tuple[AppData, PurchaseOrder]:
    po = _get_purchase_order(state, po_id)
    if not is_valid_po_transition(po.status, new_status):
        raise InvalidStatusTransitionError(
            po.status.value,
            new_status.value,
            sorted(s.value for s in PO_TRANSITIONS.get(new_status, set())),
        )

    updated = po.model_copy(update={"status": new_status, timestamp_field: _now(now)})
    logger.info(
        "purchase_order_status_changed",
        po_id=po_id,
        from_status=po.status.value,
        to_status=new_status.value
    )
    return _replace_purchase_order(state, updated), updated


def mark_purchase_order_ordered(state: AppData, po_id: str, now: Optional[datetime] = None) -> AppData:
    new_state, _ = _transition_purchase_order(
        state, po_id, PurchaseOrderStatus.ORDERED, "ordered_at", now
    )
    return new_state


def mark_purchase_order_received(state: AppData, po_id: str, now: Optional[datetime] = None) -> AppData:
    """Ordered -> Received; item grams are added to seed stock."""
    new_state, po = _transition_purchase_order(
        state, po_id, PurchaseOrderStatus.RECEIVED, "received_at", now
    )

    for item in po.items:
        seed_row = new_state.seed_inventory.get(item.variety)
        if seed_row is None:
            new_state.seed_inventory = {
                **new_state.seed_inventory,
                item.variety: SeedInventoryItem(stock_on_hand=item.quantity),
            }
        else:
            seed_row.stock_on_hand = seed_row.stock_on_hand + item.quantity

    logger.info(
        "seed_stock_received",
        po_id=po_id,
        grams=sum(i.quantity for i in po.items)
    )
    return new_state


def cancel_purchase_order(state: AppData, po_id: str, now: Optional[datetime] = None) -> AppData:
    new_state, _ = _transition_purchase_order(
        state, po_id, PurchaseOrderStatus.CANCELLED, "cancelled_at", now
    )
    return new_state


# ===================
# WHOLE STATE
# ===================

def reset() -> AppData:
    """Fresh install state."""
    return initial_app_data()


def replace_state(state: AppData, new_state: AppData) -> AppData:
    """Overwrite everything with an imported snapshot."""
    logger.warning(
        "state_replaced",
        previous_orders=len(state.orders),
        orders=len(new_state.orders),
        varieties=len(new_state.microgreen_varieties)
    )
    return new_state.model_copy(deep=True)
