# Overview: Flask API routes for payment records.

from flask import Blueprint, request

from ..decorators import optional_auth
from ..responses import created, success
from ..services import payment_service


payments_bp = Blueprint("payments", __name__, url_prefix="/api/payments")


@payments_bp.post("")
@optional_auth
def create_payment_route():
    """
    Record a payment to attach via /api/sales/<id>/confirm-payment.

    Request:
        {"payment_type": "cash", "gross_amount": "7590000.00",
         "transaction_status": "settlement", "order_id": "...", "metadata": {...}}
    """
    payment = payment_service.create_payment(request.get_json(silent=True))
    return created(payment.to_dict(), "Payment created")


@payments_bp.get("/<int:payment_id>")
@optional_auth
def get_payment_route(payment_id: int):
    return success(payment_service.get_payment(payment_id).to_dict(), "Payment retrieved")
