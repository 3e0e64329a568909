"""
Tests for the order-driven sowing planner.
"""

from datetime import date

from models.order import OrderStatus
from services.sowing_planner_service import generate_sowing_plan
from tests.factories import OrderFactory, VarietyFactory, SowingLogFactory


VARIETIES = [
    VarietyFactory.create("Sunflower", 8),
    VarietyFactory.create("Radish", 7),
]
TARGET = date(2024, 1, 15)


def _plan(orders, log=None, target=TARGET):
    return generate_sowing_plan(
        orders, VARIETIES, log or {}, target, lookback_days=90, default_ratio=5.0
    )


class TestGenerateSowingPlan:

    def test_sow_date_is_delivery_minus_growth_cycle(self):
        orders = [OrderFactory.create(items={"Sunflower": 12}, delivery_date=date(2024, 1, 23))]

        plan = _plan(orders)

        assert len(plan) == 1
        assert plan[0].variety == "Sunflower"
        assert plan[0].trays == 3  # ceil(12 / 5)
        assert plan[0].reason == "For 12 boxes due 2024-01-23"

    def test_only_exact_sow_date_counts(self):
        orders = [
            OrderFactory.create(items={"Sunflower": 5}, delivery_date=date(2024, 1, 22)),
            OrderFactory.create(items={"Sunflower": 5}, delivery_date=date(2024, 1, 24)),
        ]

        assert _plan(orders) == []

    def test_orders_on_same_day_are_summed_before_rounding(self):
        orders = [
            OrderFactory.create(items={"Radish": 3}, delivery_date=date(2024, 1, 22)),
            OrderFactory.create(items={"Radish": 3}, delivery_date=date(2024, 1, 22)),
        ]

        plan = _plan(orders)

        assert plan[0].trays == 2  # ceil(6 / 5), not 1 + 1
        assert plan[0].reason == "For 6 boxes due 2024-01-22"

    def test_undated_and_non_pending_orders_ignored(self):
        orders = [
            OrderFactory.create(items={"Sunflower": 5}),
            OrderFactory.create(
                items={"Sunflower": 5},
                delivery_date=date(2024, 1, 23),
                status=OrderStatus.HARVESTED,
                actual_harvest={"Sunflower": 5},
            ),
        ]

        assert _plan(orders) == []

    def test_unknown_variety_ignored(self):
        orders = [OrderFactory.create(items={"Basil": 5}, delivery_date=date(2024, 1, 23))]

        assert _plan(orders) == []

    def test_uses_measured_yield_ratio(self):
        log = SowingLogFactory.create({date(2024, 1, 2): {"Sunflower": 2}})
        harvested = OrderFactory.create(
            items={"Sunflower": 4},
            status=OrderStatus.COMPLETED,
            actual_harvest={"Sunflower": 4},
        )
        pending = OrderFactory.create(items={"Sunflower": 5}, delivery_date=date(2024, 1, 23))

        plan = _plan([harvested, pending], log)

        assert plan[0].trays == 3  # ratio 2.0 -> ceil(5 / 2)

    def test_sorted_by_variety(self):
        orders = [
            OrderFactory.create(items={"Sunflower": 5}, delivery_date=date(2024, 1, 23)),
            OrderFactory.create(items={"Radish": 5}, delivery_date=date(2024, 1, 22)),
        ]

        assert [p.variety for p in _plan(orders)] == ["Radish", "Sunflower"]
