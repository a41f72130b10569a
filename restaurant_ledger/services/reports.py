"""
Sales reports and exports

Aggregates are computed from order snapshots handed in by the caller, so
reports never hold the ledger lock.
"""

from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Tuple
import csv
import io
import json
import uuid

from sqlmodel import Field, SQLModel

from restaurant_ledger.core.exceptions import ValidationError
from restaurant_ledger.models.order import Order, OrderStatus
from restaurant_ledger.services.pricing import ZERO, to_money

DATE_RANGE_DAYS = {
    "today": 0,
    "7days": 7,
    "30days": 30,
    "90days": 90,
}
TOP_ITEMS_LIMIT = 5
CSV_HEADER = ["ID", "Date", "Table", "Type", "Status", "Items", "Total"]

PERCENT = Decimal("0.1")


class HistoryStats(SQLModel):
    """Order history summary"""
    total_orders: int = 0
    total_revenue: Decimal = ZERO
    average_ticket: Decimal = ZERO
    completed_orders: int = 0
    cancelled_orders: int = 0
    completion_rate: Decimal = Decimal("0.0")
    cancellation_rate: Decimal = Decimal("0.0")


class ItemSales(SQLModel):
    menu_item_id: uuid.UUID
    name: str
    category: str
    quantity: int = 0
    revenue: Decimal = ZERO


class PeriodSales(SQLModel):
    label: str
    sales: Decimal = ZERO
    orders: int = 0


class PaymentMethodSales(SQLModel):
    method: str
    amount: Decimal = ZERO
    count: int = 0
    percentage: Decimal = Decimal("0.0")


class SalesReport(SQLModel):
    """Sales figures for a period; cancelled orders are left out"""
    start: datetime
    end: datetime
    total_sales: Decimal = ZERO
    total_orders: int = 0
    average_ticket: Decimal = ZERO
    total_items: int = 0
    top_items: List[ItemSales] = Field(default_factory=list)
    sales_by_hour: List[PeriodSales] = Field(default_factory=list)
    sales_by_day: List[PeriodSales] = Field(default_factory=list)
    sales_by_category: Dict[str, Decimal] = Field(default_factory=dict)
    payment_methods: List[PaymentMethodSales] = Field(default_factory=list)


def _percentage(part, whole) -> Decimal:
    if not whole:
        return Decimal("0.0")
    return (Decimal(part) * 100 / Decimal(whole)).quantize(PERCENT)


def date_range(preset: str, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """Start of the day N days ago to the end of today"""
    if preset not in DATE_RANGE_DAYS:
        raise ValidationError(
            f"Unknown date range {preset!r}",
            {"preset": preset, "allowed": ", ".join(DATE_RANGE_DAYS)},
        )
    now = now or datetime.utcnow()
    start = datetime.combine((now - timedelta(days=DATE_RANGE_DAYS[preset])).date(), time.min)
    end = datetime.combine(now.date(), time.max)
    return start, end


def history_stats(orders: Iterable[Order]) -> HistoryStats:
    """Totals, average ticket and completion/cancellation rates"""
    orders = list(orders)
    total_orders = len(orders)
    if not total_orders:
        return HistoryStats()

    total_revenue = to_money(sum((order.total for order in orders), ZERO))
    completed = sum(1 for order in orders if order.status == OrderStatus.PAID)
    cancelled = sum(1 for order in orders if order.status == OrderStatus.CANCELLED)
    return HistoryStats(
        total_orders=total_orders,
        total_revenue=total_revenue,
        average_ticket=to_money(total_revenue / total_orders),
        completed_orders=completed,
        cancelled_orders=cancelled,
        completion_rate=_percentage(completed, total_orders),
        cancellation_rate=_percentage(cancelled, total_orders),
    )


def sales_report(orders: Iterable[Order], start: datetime, end: datetime) -> SalesReport:
    """Aggregate sales for orders created in [start, end]"""
    if start > end:
        raise ValidationError("Report start must not be after its end", {"start": start, "end": end})

    selected = [
        order for order in orders
        if start <= order.created_at <= end and order.status != OrderStatus.CANCELLED
    ]
    report = SalesReport(start=start, end=end)
    if not selected:
        return report

    report.total_orders = len(selected)
    report.total_sales = to_money(sum((order.total for order in selected), ZERO))
    report.average_ticket = to_money(report.total_sales / report.total_orders)
    report.total_items = sum(order.item_count() for order in selected)

    item_sales: Dict[uuid.UUID, ItemSales] = {}
    by_category: Dict[str, Decimal] = {}
    by_hour: Dict[int, PeriodSales] = {}
    by_day: Dict[str, PeriodSales] = {}
    by_method: Dict[str, PaymentMethodSales] = {}

    for order in selected:
        for line in order.items:
            entry = item_sales.setdefault(
                line.menu_item_id,
                ItemSales(menu_item_id=line.menu_item_id, name=line.menu_item.name, category=line.menu_item.category),
            )
            entry.quantity += line.quantity
            entry.revenue += line.line_total
            by_category[line.menu_item.category] = by_category.get(line.menu_item.category, ZERO) + line.line_total

        hour = by_hour.setdefault(order.created_at.hour, PeriodSales(label=f"{order.created_at.hour:02d}:00"))
        hour.sales += order.total
        hour.orders += 1

        day_label = order.created_at.date().isoformat()
        day = by_day.setdefault(day_label, PeriodSales(label=day_label))
        day.sales += order.total
        day.orders += 1

        if order.payment is not None:
            method = by_method.setdefault(order.payment.method.value, PaymentMethodSales(method=order.payment.method.value))
            method.amount += order.total
            method.count += 1

    report.top_items = sorted(item_sales.values(), key=lambda item: item.revenue, reverse=True)[:TOP_ITEMS_LIMIT]
    report.sales_by_hour = [by_hour[hour] for hour in sorted(by_hour)]
    report.sales_by_day = [by_day[day] for day in sorted(by_day)]
    report.sales_by_category = {category: to_money(value) for category, value in by_category.items()}

    paid_total = sum((method.amount for method in by_method.values()), ZERO)
    for method in by_method.values():
        method.percentage = _percentage(method.amount, paid_total)
    report.payment_methods = sorted(by_method.values(), key=lambda method: method.amount, reverse=True)
    return report


def export_orders_csv(orders: Iterable[Order], table_numbers: Optional[Mapping[uuid.UUID, int]] = None) -> str:
    """Order history as CSV, one row per order"""
    table_numbers = table_numbers or {}
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for order in orders:
        table = table_numbers.get(order.table_id) if order.table_id else None
        writer.writerow([
            str(order.id),
            order.created_at.strftime("%Y-%m-%d %H:%M"),
            table if table is not None else "-",
            order.order_type.value,
            order.status.value,
            len(order.items),
            f"{order.total:.2f}",
        ])
    return buffer.getvalue()


def export_report_json(report: SalesReport) -> str:
    return json.dumps(report.model_dump(mode="json"), indent=2, ensure_ascii=False)
