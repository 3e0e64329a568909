"""
API route modules.

Each module defines routes for one area of the farm.
"""

from routes.orders import router as orders_router
from routes.varieties import router as varieties_router
from routes.varieties import delivery_modes_router
from routes.harvest import router as harvest_router
from routes.sowing import router as sowing_router
from routes.seed_inventory import router as seed_inventory_router
from routes.purchase_orders import router as purchase_orders_router
from routes.logs import router as logs_router
from routes.reports import router as reports_router
from routes.forecast import router as forecast_router
from routes.data import router as data_router

__all__ = [
    "orders_router",
    "varieties_router",
    "delivery_modes_router",
    "harvest_router",
    "sowing_router",
    "seed_inventory_router",
    "purchase_orders_router",
    "logs_router",
    "reports_router",
    "forecast_router",
    "data_router",
]
