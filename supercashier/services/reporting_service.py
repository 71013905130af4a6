# Overview: Service-layer operations for reporting; aggregations over paid sales.

from __future__ import annotations

from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func

from ..errors import FieldErrors
from ..extensions import db
from ..models import Category, Product, Role, Sale, SaleItem, User
from ..money import format_cents
from ..time_utils import end_of_day, parse_iso_date, start_of_day, utcnow
from ..validation import coerce_int
from .lifecycle_service import PAID
from .permission_service import CASHIER

# Products selling fewer units than this in the window count as slow moving
SLOW_MOVING_THRESHOLD = 5


def _parse_dates(errors: FieldErrors, **values) -> dict[str, date | None]:
    parsed = {}
    for name, raw in values.items():
        if not raw:
            errors.add(name, f"The {name} field is required.")
            parsed[name] = None
            continue
        try:
            parsed[name] = parse_iso_date(raw)
        except ValueError:
            errors.add(name, f"The {name} is not a valid date.")
            parsed[name] = None
    return parsed


def _check_order(errors: FieldErrors, start: date | None, end: date | None, end_field: str, start_field: str):
    if start and end and end < start:
        errors.add(end_field, f"The {end_field} must be a date after or equal to {start_field}.")


def _average_cents(total_cents: int, count: int) -> int:
    if count <= 0:
        return 0
    return int((Decimal(total_cents) / count).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _percentage(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return round(part * 100 / whole, 2)


def _paid_sales_between(start: date, end: date) -> list[Sale]:
    return (
        db.session.query(Sale)
        .filter(
            Sale.payment_status == PAID,
            Sale.sale_date >= start_of_day(start),
            Sale.sale_date <= end_of_day(end),
        )
        .order_by(Sale.sale_date.asc(), Sale.id.asc())
        .all()
    )


def _summarize(sales: list[Sale], start: date, end: date, include_sales: bool = True) -> dict:
    revenue = sum(s.total_cents for s in sales)
    items_sold = sum(item.quantity for s in sales for item in s.items)
    report = {
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "total_sales": len(sales),
        "total_revenue": format_cents(revenue),
        "total_items_sold": items_sold,
        "average_sale_value": format_cents(_average_cents(revenue, len(sales))),
    }
    if include_sales:
        report["sales"] = [s.to_dict() for s in sales]
    return report


def sales_by_date_range(start_date: str | None, end_date: str | None) -> dict:
    """Paid sales with sale_date inside [start_date, end_date] (whole days)."""
    errors = FieldErrors()
    dates = _parse_dates(errors, start_date=start_date, end_date=end_date)
    _check_order(errors, dates["start_date"], dates["end_date"], "end_date", "start_date")
    errors.raise_if_any()

    start, end = dates["start_date"], dates["end_date"]
    return _summarize(_paid_sales_between(start, end), start, end)


def daily_sales(day: str | None = None) -> dict:
    """Paid sales for one day (default: today, UTC)."""
    if day:
        errors = FieldErrors()
        target = _parse_dates(errors, date=day)["date"]
        errors.raise_if_any()
    else:
        target = utcnow().date()

    report = _summarize(_paid_sales_between(target, target), target, target)
    report["date"] = target.isoformat()
    return report


def _paid_item_totals():
    return (
        db.session.query(
            SaleItem.product_id.label("product_id"),
            func.count(SaleItem.id).label("times_sold"),
            func.sum(SaleItem.quantity).label("quantity_sold"),
            func.sum(SaleItem.subtotal_cents - SaleItem.discount_cents).label("revenue_cents"),
        )
        .join(Sale, Sale.id == SaleItem.sale_id)
        .filter(Sale.payment_status == PAID)
        .group_by(SaleItem.product_id)
        .subquery()
    )


def product_performance() -> list[dict]:
    totals = _paid_item_totals()
    revenue = func.coalesce(totals.c.revenue_cents, 0)

    rows = (
        db.session.query(
            Product,
            Category.name.label("category_name"),
            func.coalesce(totals.c.times_sold, 0).label("times_sold"),
            func.coalesce(totals.c.quantity_sold, 0).label("quantity_sold"),
            revenue.label("revenue_cents"),
        )
        .outerjoin(Category, Category.id == Product.category_id)
        .outerjoin(totals, totals.c.product_id == Product.id)
        .order_by(revenue.desc(), Product.id.asc())
        .all()
    )

    return [
        {
            "product_id": row.Product.id,
            "name": row.Product.name,
            "category": row.category_name,
            "current_stock": row.Product.stock,
            "is_active": row.Product.is_active,
            "times_sold": int(row.times_sold or 0),
            "total_quantity_sold": int(row.quantity_sold or 0),
            "total_revenue": format_cents(int(row.revenue_cents or 0)),
            "cost_price": format_cents(row.Product.cost_price_cents),
            "selling_price": format_cents(row.Product.selling_price_cents),
        }
        for row in rows
    ]


def cashier_performance() -> list[dict]:
    paid = (
        db.session.query(
            Sale.user_id.label("user_id"),
            func.count(Sale.id).label("total_sales"),
            func.sum(Sale.total_cents).label("revenue_cents"),
        )
        .filter(Sale.payment_status == PAID)
        .group_by(Sale.user_id)
        .subquery()
    )

    rows = (
        db.session.query(
            User,
            func.coalesce(paid.c.total_sales, 0).label("total_sales"),
            func.coalesce(paid.c.revenue_cents, 0).label("revenue_cents"),
        )
        .join(Role, Role.id == User.role_id)
        .outerjoin(paid, paid.c.user_id == User.id)
        .filter(Role.name == CASHIER)
        .order_by(User.name.asc(), User.id.asc())
        .all()
    )

    report = []
    for row in rows:
        count = int(row.total_sales or 0)
        revenue = int(row.revenue_cents or 0)
        report.append({
            "user_id": row.User.id,
            "name": row.User.name,
            "username": row.User.username,
            "total_sales": count,
            "total_revenue": format_cents(revenue),
            "average_sale_value": format_cents(_average_cents(revenue, count)),
        })
    return report


def profit_analysis() -> dict:
    """
    revenue = sum(line subtotal - line discount) over paid sales
    cost    = product cost_price x quantity
    """
    revenue, cost = (
        db.session.query(
            func.coalesce(func.sum(SaleItem.subtotal_cents - SaleItem.discount_cents), 0),
            func.coalesce(func.sum(Product.cost_price_cents * SaleItem.quantity), 0),
        )
        .join(Sale, Sale.id == SaleItem.sale_id)
        .join(Product, Product.id == SaleItem.product_id)
        .filter(Sale.payment_status == PAID)
        .one()
    )
    revenue = int(revenue or 0)
    cost = int(cost or 0)
    profit = revenue - cost

    return {
        "total_revenue": format_cents(revenue),
        "total_cost": format_cents(cost),
        "gross_profit": format_cents(profit),
        "profit_margin_percentage": _percentage(profit, revenue),
    }


def slow_moving_products(days=30) -> dict:
    """Active products that sold fewer than SLOW_MOVING_THRESHOLD units in the last `days` days."""
    days = coerce_int(days, "days") if days is not None else 30
    if days < 1:
        errors = FieldErrors()
        errors.add("days", "The days must be at least 1.")
        errors.raise_if_any()

    since = utcnow() - timedelta(days=days)
    recent = (
        db.session.query(
            SaleItem.product_id.label("product_id"),
            func.sum(SaleItem.quantity).label("quantity_sold"),
        )
        .join(Sale, Sale.id == SaleItem.sale_id)
        .filter(Sale.payment_status == PAID, Sale.sale_date >= since)
        .group_by(SaleItem.product_id)
        .subquery()
    )
    sold = func.coalesce(recent.c.quantity_sold, 0)

    rows = (
        db.session.query(Product, Category.name.label("category_name"), sold.label("quantity_sold"))
        .outerjoin(Category, Category.id == Product.category_id)
        .outerjoin(recent, recent.c.product_id == Product.id)
        .filter(Product.is_active.is_(True), sold < SLOW_MOVING_THRESHOLD)
        .order_by(sold.asc(), Product.name.asc())
        .all()
    )

    return {
        "days": days,
        "products": [
            {
                "product_id": row.Product.id,
                "name": row.Product.name,
                "category": row.category_name,
                "current_stock": row.Product.stock,
                "quantity_sold": int(row.quantity_sold or 0),
                "selling_price": format_cents(row.Product.selling_price_cents),
            }
            for row in rows
        ],
    }


def compare_periods(period1_start, period1_end, period2_start, period2_end) -> dict:
    errors = FieldErrors()
    dates = _parse_dates(
        errors,
        period1_start=period1_start,
        period1_end=period1_end,
        period2_start=period2_start,
        period2_end=period2_end,
    )
    _check_order(errors, dates["period1_start"], dates["period1_end"], "period1_end", "period1_start")
    _check_order(errors, dates["period2_start"], dates["period2_end"], "period2_end", "period2_start")
    errors.raise_if_any()

    first = _paid_sales_between(dates["period1_start"], dates["period1_end"])
    second = _paid_sales_between(dates["period2_start"], dates["period2_end"])
    first_revenue = sum(s.total_cents for s in first)
    second_revenue = sum(s.total_cents for s in second)

    return {
        "period1": _summarize(first, dates["period1_start"], dates["period1_end"], include_sales=False),
        "period2": _summarize(second, dates["period2_start"], dates["period2_end"], include_sales=False),
        "comparison": {
            "revenue_difference": format_cents(second_revenue - first_revenue),
            "revenue_growth_percentage": _percentage(second_revenue - first_revenue, first_revenue),
            "sales_count_difference": len(second) - len(first),
        },
    }
