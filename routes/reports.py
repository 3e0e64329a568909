"""
Report API routes.

Every report is computed on request. Pass format=csv to download it as CSV.
"""

from fastapi import APIRouter, Query
from typing import Optional
from datetime import date, timedelta
from enum import Enum
import structlog

from models.reports import (
    YieldRatioData,
    SeedToSaleRow,
    ReportPeriod,
    PeriodReport,
    LocationSalesRow,
    ClientEngagementReport,
    ManifestGroup,
)
from exceptions import ValidationError
from services import get_farm_store, calculate_yield_ratios
from services.report_service import (
    seed_to_sale_report,
    orders_in_period,
    period_report,
    location_sales_report,
    client_engagement_report,
    delivery_manifest,
)
from services.export_service import records_to_csv, models_to_records, orders_to_records
from routes.errors import handle_error, csv_response
from utils.dates import today

logger = structlog.get_logger(__name__)

router = APIRouter()

DEFAULT_RANGE_DAYS = 30


class ReportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"


def _date_range(start_date: Optional[date], end_date: Optional[date]) -> tuple[date, date]:
    """Default to the last 30 days ending today."""
    end = end_date or today()
    start = start_date or end - timedelta(days=DEFAULT_RANGE_DAYS)
    if start > end:
        raise ValidationError(
            "start_date must be on or before end_date",
            code="INVALID_DATE_RANGE",
            details={"start_date": start.isoformat(), "end_date": end.isoformat()}
        )
    return start, end


@router.get("/yield", response_model=list[YieldRatioData])
async def get_yield_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    format: ReportFormat = Query(ReportFormat.JSON),
):
    """Boxes harvested per tray sown, per variety, over a date range."""
    try:
        start, end = _date_range(start_date, end_date)
        state = get_farm_store().state
        rows = calculate_yield_ratios(state.orders, state.harvesting_log, start, end)

        if format == ReportFormat.CSV:
            return csv_response(
                records_to_csv(models_to_records(rows)),
                f"yield-{start.isoformat()}-to-{end.isoformat()}.csv"
            )
        return rows
    except Exception as e:
        return handle_error(e)


@router.get("/seed-to-sale", response_model=list[SeedToSaleRow])
async def get_seed_to_sale_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    format: ReportFormat = Query(ReportFormat.JSON),
):
    """
    Seed-to-sale funnel per variety.

    Seed received in the range -> potential trays -> potential boxes ->
    boxes sold on orders created in the range.
    """
    try:
        start, end = _date_range(start_date, end_date)
        state = get_farm_store().state
        rows = seed_to_sale_report(
            start,
            end,
            state.purchase_orders,
            state.seed_inventory,
            state.orders,
            state.harvesting_log,
            today=today(),
        )

        if format == ReportFormat.CSV:
            return csv_response(
                records_to_csv(models_to_records(rows)),
                f"seed-to-sale-{start.isoformat()}-to-{end.isoformat()}.csv"
            )
        return rows
    except Exception as e:
        return handle_error(e)


@router.get("/period", response_model=PeriodReport)
async def get_period_report(
    period: ReportPeriod = Query(ReportPeriod.MONTHLY),
    anchor: Optional[date] = Query(None, description="Any date inside the period (default today)"),
    format: ReportFormat = Query(ReportFormat.JSON),
):
    """
    Sales summary for the day, ISO week, month or year containing anchor.

    The CSV download lists the orders created in that period.
    """
    try:
        anchor = anchor or today()
        orders = get_farm_store().state.orders

        if format == ReportFormat.CSV:
            return csv_response(
                records_to_csv(orders_to_records(orders_in_period(orders, period, anchor))),
                f"{period.value}-report-{anchor.isoformat()}.csv"
            )
        return period_report(orders, period, anchor)
    except Exception as e:
        return handle_error(e)


@router.get("/locations", response_model=list[LocationSalesRow])
async def get_location_report(
    format: ReportFormat = Query(ReportFormat.JSON),
):
    """Completed-order sales per delivery location."""
    try:
        rows = location_sales_report(get_farm_store().state.orders)

        if format == ReportFormat.CSV:
            records = [
                {
                    "location": row.location,
                    "totalOrders": row.total_orders,
                    "totalBoxes": row.total_boxes,
                    "totalCash": row.total_cash,
                    "topVarieties": "; ".join(f"{v.variety} ({v.boxes})" for v in row.top_varieties),
                }
                for row in rows
            ]
            return csv_response(records_to_csv(records), "location-sales.csv")
        return rows
    except Exception as e:
        return handle_error(e)


@router.get("/engagement", response_model=ClientEngagementReport)
async def get_engagement_report(
    format: ReportFormat = Query(ReportFormat.JSON),
):
    """Clients with no orders this month, or a drop of more than 25%."""
    try:
        report = client_engagement_report(get_farm_store().state.orders, today=today())

        if format == ReportFormat.CSV:
            records = [
                {"category": "No orders this month", **record}
                for record in models_to_records(report.no_orders_this_month)
            ] + [
                {"category": "Reduced orders", **record}
                for record in models_to_records(report.reduced_orders)
            ]
            return csv_response(records_to_csv(records), "client-engagement.csv")
        return report
    except Exception as e:
        return handle_error(e)


@router.get("/manifest", response_model=list[ManifestGroup])
async def get_delivery_manifest(
    format: ReportFormat = Query(ReportFormat.JSON),
):
    """Dispatched orders grouped by delivery mode."""
    try:
        groups = delivery_manifest(get_farm_store().state.orders)

        if format == ReportFormat.CSV:
            records = [
                {
                    "deliveryMode": group.delivery_mode,
                    "orderId": order.order_id,
                    "clientName": order.client_name,
                    "location": order.location,
                    "totalBoxes": order.total_boxes,
                }
                for group in groups
                for order in group.orders
            ]
            return csv_response(records_to_csv(records), f"delivery-manifest-{today().isoformat()}.csv")
        return groups
    except Exception as e:
        return handle_error(e)
