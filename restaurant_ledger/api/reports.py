"""
Reports API endpoints
"""

from fastapi import APIRouter, Depends, Query, Response
import structlog

from restaurant_ledger.api.orders import order_filter_params
from restaurant_ledger.core.dependencies import get_ledger, require_permission
from restaurant_ledger.core.permissions import Permission
from restaurant_ledger.services.ledger import OrderFilter, OrderLedger
from restaurant_ledger.services.reports import (
    SalesReport, date_range, export_orders_csv, export_report_json, sales_report
)

logger = structlog.get_logger(__name__)
router = APIRouter(dependencies=[Depends(require_permission(Permission.REPORTS_VIEW))])


def _report_for(ledger: OrderLedger, period: str) -> SalesReport:
    start, end = date_range(period, ledger.now())
    orders = ledger.list_orders(OrderFilter(created_from=start, created_to=end))
    return sales_report(orders, start, end)


@router.get("/sales", response_model=SalesReport)
async def get_sales_report(
    period: str = Query(default="7days", alias="range"),
    ledger: OrderLedger = Depends(get_ledger),
):
    """Sales for today, 7days, 30days or 90days"""
    return _report_for(ledger, period)


@router.get("/sales/export")
async def export_sales_report(
    period: str = Query(default="7days", alias="range"),
    ledger: OrderLedger = Depends(get_ledger),
):
    """Sales report as a JSON download"""
    report = _report_for(ledger, period)
    filename = f"relatorio-{period}-{ledger.now():%Y-%m-%d}.json"
    logger.info("sales_report_exported", period=period, total_orders=report.total_orders)
    return Response(
        content=export_report_json(report),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/orders.csv")
async def export_orders(
    order_filter: OrderFilter = Depends(order_filter_params),
    ledger: OrderLedger = Depends(get_ledger),
):
    """Order history as CSV"""
    orders = ledger.list_orders(order_filter)
    table_numbers = {table.id: table.number for table in ledger.list_tables()}
    filename = f"historico-pedidos-{ledger.now():%Y-%m-%d}.csv"
    logger.info("orders_exported", count=len(orders))
    return Response(
        content=export_orders_csv(orders, table_numbers),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
