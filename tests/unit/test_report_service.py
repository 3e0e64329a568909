"""
Tests for report_service.
"""

from datetime import date, datetime

import pytest

from models.order import OrderStatus
from models.purchase_order import PurchaseOrderStatus
from models.reports import ReportPeriod
from services.report_service import (
    UNSPECIFIED_LOCATION,
    UNASSIGNED_DELIVERY_MODE,
    seed_to_sale_report,
    period_bounds,
    period_report,
    location_sales_report,
    client_engagement_report,
    delivery_manifest,
    upcoming_harvests,
)
from tests.factories import OrderFactory, VarietyFactory, SowingLogFactory, PurchaseOrderFactory


TODAY = date(2024, 1, 15)


# ===================
# SEED-TO-SALE
# ===================

class TestSeedToSaleReport:

    def _report(self, purchase_orders, orders, log=None, seed=None):
        return seed_to_sale_report(
            date(2024, 1, 1),
            date(2024, 1, 31),
            purchase_orders,
            seed if seed is not None else {"Sunflower": VarietyFactory.seed_row(0, 0, 120)},
            orders,
            log or {},
            today=TODAY,
            default_ratio=5.0,
        )

    def test_funnel_from_received_seed(self):
        pos = [PurchaseOrderFactory.create(
            items={"Sunflower": 1200},
            status=PurchaseOrderStatus.RECEIVED,
            received_at=datetime(2024, 1, 5, 10, 0),
        )]
        orders = [OrderFactory.create(
            items={"Sunflower": 25},
            status=OrderStatus.COMPLETED,
            actual_harvest={"Sunflower": 20},
        )]

        rows = self._report(pos, orders)

        assert len(rows) == 1
        row = rows[0]
        assert row.seed_purchased == 1200
        assert row.potential_trays == pytest.approx(10)
        assert row.potential_boxes == pytest.approx(50)
        assert row.boxes_sold == 20
        assert row.conversion_rate == pytest.approx(40)

    def test_unreceived_and_out_of_range_seed_ignored(self):
        pos = [
            PurchaseOrderFactory.create(status=PurchaseOrderStatus.ORDERED),
            PurchaseOrderFactory.create(
                status=PurchaseOrderStatus.RECEIVED, received_at=datetime(2024, 2, 1, 0, 0)
            ),
        ]

        assert self._report(pos, []) == []

    def test_sold_without_seed_has_zero_conversion(self):
        orders = [OrderFactory.create(items={"Radish": 6}, status=OrderStatus.DISPATCHED,
                                      actual_harvest={"Radish": 6})]

        rows = self._report([], orders)

        assert rows[0].variety == "Radish"
        assert rows[0].seed_purchased == 0
        assert rows[0].potential_boxes == 0
        assert rows[0].boxes_sold == 6
        assert rows[0].conversion_rate == 0

    def test_sorted_by_seed_purchased_descending(self):
        received = datetime(2024, 1, 5, 10, 0)
        pos = [
            PurchaseOrderFactory.create(items={"Radish": 100}, status=PurchaseOrderStatus.RECEIVED,
                                        received_at=received),
            PurchaseOrderFactory.create(items={"Sunflower": 900}, status=PurchaseOrderStatus.RECEIVED,
                                        received_at=received),
        ]

        rows = self._report(pos, [])

        assert [r.variety for r in rows] == ["Sunflower", "Radish"]


# ===================
# PERIOD REPORT
# ===================

class TestPeriodBounds:

    def test_weekly_is_iso_week(self):
        # 2024-01-17 is a Wednesday
        assert period_bounds(ReportPeriod.WEEKLY, date(2024, 1, 17)) == (date(2024, 1, 15), date(2024, 1, 21))

    def test_monthly(self):
        assert period_bounds(ReportPeriod.MONTHLY, date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))

    def test_daily(self):
        assert period_bounds(ReportPeriod.DAILY, TODAY) == (TODAY, TODAY)


class TestPeriodReport:

    def test_monthly_summary(self):
        orders = [
            OrderFactory.create(
                client_name="Cafe",
                items={"Sunflower": 5},
                status=OrderStatus.COMPLETED,
                actual_harvest={"Sunflower": 4},
                delivery_mode="Porter",
                cash_received=400,
            ),
            OrderFactory.create(
                client_name="Deli",
                items={"Radish": 2},
                status=OrderStatus.DISPATCHED,
                actual_harvest={"Radish": 2},
                delivery_mode="Tiffin",
            ),
            OrderFactory.create(client_name="Cafe", items={"Radish": 3}),
            OrderFactory.create(client_name="Old", created_at=datetime(2023, 12, 31, 12, 0)),
        ]

        report = period_report(orders, ReportPeriod.MONTHLY, TODAY)

        assert report.period_start == date(2024, 1, 1)
        assert report.period_end == date(2024, 1, 31)
        assert report.total_orders == 3
        assert report.total_boxes == 9
        assert report.completed_orders == 1
        assert report.total_shortfall_boxes == 1
        assert report.total_cash_received == 400
        assert report.order_status_count["Pending"] == 1
        assert report.order_status_count["Harvested"] == 0
        assert report.variety_count == {"Sunflower": 4, "Radish": 5}
        assert report.delivery_mode_count == {"Porter": 1, "Tiffin": 1}
        assert report.top_clients[0].name == "Cafe"
        assert report.top_clients[0].boxes == 7


# ===================
# LOCATIONS, ENGAGEMENT, MANIFEST
# ===================

class TestLocationSalesReport:

    def test_grouped_and_unspecified_last(self):
        orders = [
            OrderFactory.create(items={"Sunflower": 2}, status=OrderStatus.COMPLETED,
                                actual_harvest={"Sunflower": 2}, location="  ", cash_received=50),
            OrderFactory.create(items={"Sunflower": 30}, status=OrderStatus.COMPLETED,
                                actual_harvest={"Sunflower": 30}),
            OrderFactory.create(items={"Radish": 4}, status=OrderStatus.COMPLETED,
                                actual_harvest={"Radish": 4}, location="Indiranagar"),
            OrderFactory.create(items={"Radish": 9}, status=OrderStatus.COMPLETED,
                                actual_harvest={"Radish": 9}, location="Koramangala"),
            OrderFactory.create(items={"Radish": 99}, location="Koramangala"),
        ]

        rows = location_sales_report(orders)

        assert [r.location for r in rows] == ["Koramangala", "Indiranagar", UNSPECIFIED_LOCATION]
        assert rows[0].total_orders == 1
        assert rows[2].total_orders == 2
        assert rows[2].total_boxes == 32
        assert rows[2].total_cash == 50


class TestClientEngagementReport:

    def test_no_orders_and_reduced(self):
        last_month = datetime(2023, 12, 10, 9, 0)
        this_month = datetime(2024, 1, 5, 9, 0)
        orders = [
            OrderFactory.create(client_name="Gone", items={"Sunflower": 10},
                                status=OrderStatus.COMPLETED, created_at=last_month),
            OrderFactory.create(client_name="Less", items={"Sunflower": 10},
                                status=OrderStatus.COMPLETED, created_at=last_month),
            OrderFactory.create(client_name="Less", items={"Sunflower": 5},
                                status=OrderStatus.COMPLETED, created_at=this_month),
            OrderFactory.create(client_name="Steady", items={"Sunflower": 10},
                                status=OrderStatus.COMPLETED, created_at=last_month),
            OrderFactory.create(client_name="Steady", items={"Sunflower": 8},
                                status=OrderStatus.COMPLETED, created_at=this_month),
        ]

        report = client_engagement_report(orders, today=TODAY)

        assert [r.client_name for r in report.no_orders_this_month] == ["Gone"]
        assert report.no_orders_this_month[0].percent_change == -1.0
        assert [r.client_name for r in report.reduced_orders] == ["Less"]
        assert report.reduced_orders[0].percent_change == pytest.approx(-0.5)


class TestDeliveryManifest:

    def test_grouped_by_mode(self):
        orders = [
            OrderFactory.create(id="A", items={"Sunflower": 4}, status=OrderStatus.DISPATCHED,
                                actual_harvest={"Sunflower": 3}, delivery_mode="Porter"),
            OrderFactory.create(id="B", items={"Radish": 2}, status=OrderStatus.DISPATCHED,
                                actual_harvest={"Radish": 2}, delivery_mode="Porter"),
            OrderFactory.create(id="C", items={"Radish": 1}, status=OrderStatus.DISPATCHED,
                                actual_harvest={"Radish": 1}),
            OrderFactory.create(id="D", status=OrderStatus.COMPLETED, actual_harvest={"Sunflower": 4},
                                delivery_mode="Porter"),
        ]

        groups = delivery_manifest(orders)

        assert [g.delivery_mode for g in groups] == ["Porter", UNASSIGNED_DELIVERY_MODE]
        assert [o.order_id for o in groups[0].orders] == ["A", "B"]
        assert groups[0].total_boxes == 5
        assert groups[1].total_boxes == 1


class TestUpcomingHarvests:

    def test_calendar_includes_empty_days(self):
        log = SowingLogFactory.create({
            date(2024, 1, 8): {"Radish": 3},
            date(2024, 1, 9): {"Sunflower": 2, "Radish": 0},
        })
        varieties = [VarietyFactory.create("Sunflower", 8), VarietyFactory.create("Radish", 7)]

        calendar = upcoming_harvests(log, varieties, today=TODAY, days=3)

        assert [d.harvest_date for d in calendar] == [date(2024, 1, 15), date(2024, 1, 16), date(2024, 1, 17)]
        assert [(h.variety, h.trays) for h in calendar[0].harvests] == [("Radish", 3)]
        assert calendar[1].harvests == []
        assert [(h.variety, h.trays) for h in calendar[2].harvests] == [("Sunflower", 2)]
