"""
Farm store.

Owns the current AppData. Each mutating method runs a pure transition from
services.state_transitions, swaps in the new state and then saves it.
Storage failures never undo a change: the error is logged and exposed via
last_error, and the app keeps working in memory.
"""

from datetime import date, datetime
from typing import Callable, Optional

import structlog

from config import JsonFileStorage
from exceptions import StorageError
from models.app_state import AppData, initial_app_data
from models.order import Order, OrderCreate, OrderUpdate, CompletionRequest, HarvestResult
from models.variety import MicrogreenVariety, SeedInventoryUpdate
from models.logs import WasteLogEntry, WasteLogEntryCreate, DeliveryExpense, DeliveryExpenseCreate
from models.purchase_order import PurchaseOrder, PurchaseOrderCreate, PurchaseOrderUpdate
from services import state_transitions as transitions

logger = structlog.get_logger(__name__)


class FarmStore:
    """
    Single-writer holder of application state.

    Usage:
        store = FarmStore(JsonFileStorage(path))
        order = store.add_order(OrderCreate(...))
        state = store.state
    """

    def __init__(self, storage: Optional[JsonFileStorage] = None):
        self.storage = storage or JsonFileStorage()
        self.last_error: Optional[str] = None
        self.last_saved_at: Optional[datetime] = None
        self._state = self._load()

    @property
    def state(self) -> AppData:
        return self._state

    def _load(self) -> AppData:
        try:
            return self.storage.load()
        except StorageError as e:
            self.last_error = "Could not load saved data. Starting fresh."
            logger.error("store_load_failed_using_initial_data", error=e.message)
            return initial_app_data()

    def _persist(self) -> None:
        try:
            self.storage.save(self._state)
        except StorageError as e:
            self.last_error = e.message
            logger.error("store_persist_failed", error=e.message)
            return
        self.last_error = None
        self.last_saved_at = datetime.now()

    def _commit(self, new_state: AppData) -> None:
        self._state = new_state
        self._persist()

    def _apply(self, transition: Callable[..., AppData], *args, **kwargs) -> AppData:
        self._commit(transition(self._state, *args, **kwargs))
        return self._state

    def status(self) -> dict:
        """Storage health for /health and the data status endpoint."""
        return {
            "data_file": str(self.storage.path),
            "file_exists": self.storage.exists(),
            "last_saved_at": self.last_saved_at.isoformat() if self.last_saved_at else None,
            "last_error": self.last_error,
            "orders": len(self._state.orders),
            "varieties": len(self._state.microgreen_varieties),
        }

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def add_order(self, data: OrderCreate, now: Optional[datetime] = None) -> Order:
        new_state, order = transitions.add_order(self._state, data, now)
        self._commit(new_state)
        return order

    def update_order(self, order_id: str, data: OrderUpdate) -> Order:
        self._apply(transitions.update_order, order_id, data)
        return self._state.find_order(order_id)

    def delete_order(self, order_id: str) -> None:
        self._apply(transitions.delete_order, order_id)

    def delete_all_orders(self) -> None:
        self._apply(transitions.delete_all_orders)

    def import_orders(self, orders_data: list[OrderCreate], now: Optional[datetime] = None) -> list[Order]:
        new_state, imported = transitions.import_orders(self._state, orders_data, now)
        self._commit(new_state)
        return imported

    def dispatch_order(self, order_id: str, delivery_mode: str) -> Order:
        self._apply(transitions.dispatch_order, order_id, delivery_mode)
        return self._state.find_order(order_id)

    def complete_delivery(self, order_id: str, data: CompletionRequest) -> Order:
        self._apply(transitions.complete_delivery, order_id, data)
        return self._state.find_order(order_id)

    def apply_harvest(
        self,
        harvested_quantities: dict[str, Optional[int]],
        today: Optional[date] = None,
    ) -> HarvestResult:
        new_state, result = transitions.apply_harvest(self._state, harvested_quantities, today)
        self._commit(new_state)
        return result

    # ------------------------------------------------------------------
    # Varieties and delivery modes
    # ------------------------------------------------------------------

    def add_variety(self, name: str, growth_cycle_days: int) -> MicrogreenVariety:
        new_state, variety = transitions.add_variety(self._state, name, growth_cycle_days)
        self._commit(new_state)
        return variety

    def delete_variety(self, name: str) -> None:
        self._apply(transitions.delete_variety, name)

    def import_varieties(self, varieties: list[MicrogreenVariety]) -> list[MicrogreenVariety]:
        new_state, added = transitions.import_varieties(self._state, varieties)
        self._commit(new_state)
        return added

    def add_delivery_mode(self, mode: str) -> list[str]:
        return self._apply(transitions.add_delivery_mode, mode).delivery_modes

    # ------------------------------------------------------------------
    # Sowing and seed inventory
    # ------------------------------------------------------------------

    def save_sowing_log(self, sow_date: date, trays: dict[str, Optional[int]]) -> AppData:
        return self._apply(transitions.save_sowing_log, sow_date, trays)

    def update_seed_inventory_item(self, variety: str, update: SeedInventoryUpdate) -> AppData:
        return self._apply(transitions.update_seed_inventory_item, variety, update)

    # ------------------------------------------------------------------
    # Logs
    # ------------------------------------------------------------------

    def add_waste_entry(self, data: WasteLogEntryCreate) -> WasteLogEntry:
        new_state, entry = transitions.add_waste_entry(self._state, data)
        self._commit(new_state)
        return entry

    def delete_waste_entry(self, entry_id: str) -> None:
        self._apply(transitions.delete_waste_entry, entry_id)

    def add_delivery_expense(self, data: DeliveryExpenseCreate) -> DeliveryExpense:
        new_state, expense = transitions.add_delivery_expense(self._state, data)
        self._commit(new_state)
        return expense

    def delete_delivery_expense(self, expense_id: str) -> None:
        self._apply(transitions.delete_delivery_expense, expense_id)

    # ------------------------------------------------------------------
    # Purchase orders
    # ------------------------------------------------------------------

    def add_purchase_order(self, data: PurchaseOrderCreate, now: Optional[datetime] = None) -> PurchaseOrder:
        new_state, po = transitions.add_purchase_order(self._state, data, now)
        self._commit(new_state)
        return po

    def update_purchase_order(self, po_id: str, data: PurchaseOrderUpdate) -> PurchaseOrder:
        self._apply(transitions.update_purchase_order, po_id, data)
        return self._state.find_purchase_order(po_id)

    def delete_purchase_order(self, po_id: str) -> None:
        self._apply(transitions.delete_purchase_order, po_id)

    def mark_purchase_order_ordered(self, po_id: str, now: Optional[datetime] = None) -> PurchaseOrder:
        self._apply(transitions.mark_purchase_order_ordered, po_id, now)
        return self._state.find_purchase_order(po_id)

    def mark_purchase_order_received(self, po_id: str, now: Optional[datetime] = None) -> PurchaseOrder:
        self._apply(transitions.mark_purchase_order_received, po_id, now)
        return self._state.find_purchase_order(po_id)

    def cancel_purchase_order(self, po_id: str, now: Optional[datetime] = None) -> PurchaseOrder:
        self._apply(transitions.cancel_purchase_order, po_id, now)
        return self._state.find_purchase_order(po_id)

    # ------------------------------------------------------------------
    # Whole state
    # ------------------------------------------------------------------

    def reset(self) -> AppData:
        """Back to initial data; the saved file is removed."""
        self._state = transitions.reset()
        try:
            self.storage.clear()
            self.last_error = None
        except StorageError as e:
            self.last_error = e.message
        logger.warning("store_reset")
        return self._state

    def replace_state(self, new_state: AppData) -> AppData:
        return self._apply(transitions.replace_state, new_state)


# Singleton instance
_farm_store: Optional[FarmStore] = None


def get_farm_store() -> FarmStore:
    """Get or create FarmStore instance."""
    global _farm_store
    if _farm_store is None:
        _farm_store = FarmStore()
    return _farm_store


def set_farm_store(store: Optional[FarmStore]) -> None:
    """Replace the store (tests use a temporary file)."""
    global _farm_store
    _farm_store = store
