"""
Business logic services.

Calculators (yield, harvest, planners, reports) are pure functions over
application state. FarmStore applies state transitions and persists them.
"""

from services.yield_service import calculate_yield_ratios, yield_ratio_map, trailing_yield_ratios
from services.harvest_service import allocate_harvest, aggregated_harvest_list
from services.sowing_planner_service import generate_sowing_plan
from services.forecast_service import (
    DemandForecastProvider,
    ClaudeForecastProvider,
    StaticForecastProvider,
    build_forecast_history,
    get_forecast_provider,
)
from services.intelligent_sower_service import generate_intelligent_sowing_plan
from services.farm_store import FarmStore, get_farm_store

__all__ = [
    "calculate_yield_ratios",
    "yield_ratio_map",
    "trailing_yield_ratios",
    "allocate_harvest",
    "aggregated_harvest_list",
    "generate_sowing_plan",
    "DemandForecastProvider",
    "ClaudeForecastProvider",
    "StaticForecastProvider",
    "build_forecast_history",
    "get_forecast_provider",
    "generate_intelligent_sowing_plan",
    "FarmStore",
    "get_farm_store",
]
