# Overview: Flask API routes for reports; aggregations over paid sales.

from flask import Blueprint, request

from ..decorators import require_auth, require_permission
from ..responses import success
from ..services import reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/sales/range")
@require_auth
@require_permission("VIEW_REPORTS")
def sales_by_date_range():
    report = reporting_service.sales_by_date_range(
        request.args.get("start_date"),
        request.args.get("end_date"),
    )
    return success(report, "Sales report generated successfully")


@reports_bp.get("/sales/daily")
@require_auth
@require_permission("VIEW_REPORTS")
def daily_sales():
    return success(reporting_service.daily_sales(request.args.get("date")), "Daily sales report generated")


@reports_bp.get("/products/performance")
@require_auth
@require_permission("VIEW_REPORTS")
def product_performance():
    return success(reporting_service.product_performance(), "Product performance report generated")


@reports_bp.get("/cashiers/performance")
@require_auth
@require_permission("VIEW_REPORTS")
def cashier_performance():
    return success(reporting_service.cashier_performance(), "Cashier performance report generated")


@reports_bp.get("/profit/analysis")
@require_auth
@require_permission("VIEW_REPORTS")
def profit_analysis():
    return success(reporting_service.profit_analysis(), "Profit analysis report generated")


@reports_bp.get("/products/slow-moving")
@require_auth
@require_permission("VIEW_REPORTS")
def slow_moving_products():
    report = reporting_service.slow_moving_products(request.args.get("days", 30))
    return success(report, "Slow moving products report generated")


@reports_bp.get("/sales/compare")
@require_auth
@require_permission("VIEW_REPORTS")
def compare_periods():
    args = request.args
    report = reporting_service.compare_periods(
        args.get("period1_start"),
        args.get("period1_end"),
        args.get("period2_start"),
        args.get("period2_end"),
    )
    return success(report, "Period comparison report generated")
