"""
Tests for yield_service: boxes harvested per tray sown.
"""

from datetime import date, datetime

import pytest

from models.order import OrderStatus
from services.yield_service import calculate_yield_ratios, yield_ratio_map, trailing_yield_ratios
from tests.factories import OrderFactory, SowingLogFactory


START = date(2024, 1, 1)
END = date(2024, 1, 31)


class TestCalculateYieldRatios:
    """Tests for the yield ratio calculation."""

    def test_ratio_is_boxes_over_trays(self):
        log = SowingLogFactory.create({date(2024, 1, 2): {"Sunflower": 4}})
        orders = [
            OrderFactory.create(
                items={"Sunflower": 20},
                status=OrderStatus.HARVESTED,
                actual_harvest={"Sunflower": 18},
            )
        ]

        rows = calculate_yield_ratios(orders, log, START, END)

        assert len(rows) == 1
        assert rows[0].variety == "Sunflower"
        assert rows[0].trays_sown == 4
        assert rows[0].boxes_harvested == 18
        assert rows[0].yield_ratio == pytest.approx(4.5)

    def test_no_trays_gives_none_ratio(self):
        orders = [
            OrderFactory.create(
                items={"Radish": 3},
                status=OrderStatus.COMPLETED,
                actual_harvest={"Radish": 3},
            )
        ]

        rows = calculate_yield_ratios(orders, {}, START, END)

        assert rows[0].variety == "Radish"
        assert rows[0].trays_sown == 0
        assert rows[0].yield_ratio is None

    def test_trays_without_harvest_give_zero_ratio(self):
        log = SowingLogFactory.create({date(2024, 1, 5): {"Peas": 3}})

        rows = calculate_yield_ratios([], log, START, END)

        assert rows[0].yield_ratio == 0

    def test_pending_orders_are_ignored(self):
        log = SowingLogFactory.create({date(2024, 1, 2): {"Sunflower": 2}})
        orders = [OrderFactory.create(items={"Sunflower": 5})]

        rows = calculate_yield_ratios(orders, log, START, END)

        assert rows[0].boxes_harvested == 0

    def test_window_bounds_are_inclusive(self):
        log = SowingLogFactory.create({
            START: {"Sunflower": 1},
            END: {"Sunflower": 2},
            date(2024, 2, 1): {"Sunflower": 100},
        })
        orders = [
            OrderFactory.create(
                status=OrderStatus.DISPATCHED,
                actual_harvest={"Sunflower": 4},
                created_at=datetime(2024, 1, 31, 23, 59),
            ),
            OrderFactory.create(
                status=OrderStatus.DISPATCHED,
                actual_harvest={"Sunflower": 4},
                created_at=datetime(2024, 2, 1, 0, 1),
            ),
        ]

        rows = calculate_yield_ratios(orders, log, START, END)

        assert rows[0].trays_sown == 3
        assert rows[0].boxes_harvested == 4

    def test_rows_sorted_by_variety(self):
        log = SowingLogFactory.create({date(2024, 1, 3): {"Sunflower": 1, "Broccoli": 1, "Mustard": 1}})

        rows = calculate_yield_ratios([], log, START, END)

        assert [r.variety for r in rows] == ["Broccoli", "Mustard", "Sunflower"]


class TestYieldRatioMap:
    """Tests for the ratio map with default fallback."""

    def test_missing_and_zero_ratios_use_default(self):
        log = SowingLogFactory.create({date(2024, 1, 2): {"Peas": 2}})

        ratios = yield_ratio_map([], log, START, END, varieties=["Sunflower"], default_ratio=5.0)

        assert ratios == {"Sunflower": 5.0, "Peas": 5.0}

    def test_measured_ratio_wins(self):
        log = SowingLogFactory.create({date(2024, 1, 2): {"Sunflower": 2}})
        orders = [
            OrderFactory.create(
                items={"Sunflower": 10},
                status=OrderStatus.SHORTFALL,
                actual_harvest={"Sunflower": 6},
            )
        ]

        ratios = yield_ratio_map(orders, log, START, END, default_ratio=5.0)

        assert ratios["Sunflower"] == pytest.approx(3.0)

    def test_trailing_window_ends_at_date(self):
        log = SowingLogFactory.create({
            date(2023, 1, 1): {"Sunflower": 50},
            date(2024, 1, 10): {"Sunflower": 2},
        })
        orders = [
            OrderFactory.create(
                items={"Sunflower": 8},
                status=OrderStatus.HARVESTED,
                actual_harvest={"Sunflower": 8},
            )
        ]

        ratios = trailing_yield_ratios(
            orders, log, date(2024, 1, 15), lookback_days=30, default_ratio=5.0
        )

        assert ratios["Sunflower"] == pytest.approx(4.0)
