"""
The complete application state.

One AppData instance holds everything the dashboard knows. Services take it
as input and return a new instance; only the store keeps a reference to the
current one.
"""

from pydantic import Field
from typing import Optional

from models.base import BaseSchema
from models.variety import MicrogreenVariety, SeedInventoryItem
from models.order import Order
from models.sowing import HarvestLogEntry
from models.logs import WasteLogEntry, DeliveryExpense
from models.purchase_order import PurchaseOrder


class AppData(BaseSchema):
    """Whole-application snapshot. Serialized as-is for backup and storage."""

    orders: list[Order] = Field(default_factory=list)
    microgreen_varieties: list[MicrogreenVariety] = Field(default_factory=list)
    delivery_modes: list[str] = Field(default_factory=list)
    inventory: dict[str, float] = Field(
        default_factory=dict,
        description="Finished-goods boxes on hand (legacy, not used by planners)"
    )
    harvesting_log: dict[str, HarvestLogEntry] = Field(
        default_factory=dict,
        description="Sowing log keyed by sow date (YYYY-MM-DD)"
    )
    seed_inventory: dict[str, SeedInventoryItem] = Field(default_factory=dict)
    waste_log: list[WasteLogEntry] = Field(default_factory=list)
    delivery_expenses: list[DeliveryExpense] = Field(default_factory=list)
    purchase_orders: list[PurchaseOrder] = Field(default_factory=list)

    def variety_names(self) -> list[str]:
        return [v.name for v in self.microgreen_varieties]

    def variety_map(self) -> dict[str, MicrogreenVariety]:
        return {v.name: v for v in self.microgreen_varieties}

    def find_order(self, order_id: str) -> Optional[Order]:
        return next((o for o in self.orders if o.id == order_id), None)

    def find_purchase_order(self, po_id: str) -> Optional[PurchaseOrder]:
        return next((po for po in self.purchase_orders if po.id == po_id), None)


DEFAULT_VARIETIES = [
    ("Sunflower", 8),
    ("Radish", 7),
    ("Peas", 10),
    ("Broccoli", 9),
    ("Mustard", 6),
]

DEFAULT_DELIVERY_MODES = ["Porter", "Swiggy Genie", "Tiffin"]

# stock_on_hand, reorder_level, grams_per_tray, safety_stock_boxes
DEFAULT_SEED_INVENTORY = {
    "Sunflower": (5000, 1000, 120, 10),
    "Radish": (2500, 500, 80, 5),
    "Peas": (8000, 2000, 200, 8),
    "Broccoli": (1500, 300, 30, 5),
    "Mustard": (1200, 300, 40, 0),
}


def initial_app_data() -> AppData:
    """State for a fresh install: starter varieties, seed stock and delivery modes."""
    return AppData(
        microgreen_varieties=[
            MicrogreenVariety(name=name, growth_cycle_days=days)
            for name, days in DEFAULT_VARIETIES
        ],
        delivery_modes=list(DEFAULT_DELIVERY_MODES),
        seed_inventory={
            name: SeedInventoryItem(
                stock_on_hand=stock,
                reorder_level=reorder,
                grams_per_tray=per_tray,
                safety_stock_boxes=safety,
            )
            for name, (stock, reorder, per_tray, safety) in DEFAULT_SEED_INVENTORY.items()
        },
    )
