from __future__ import annotations

from ..extensions import db
from ..money import format_cents
from ..time_utils import to_utc_z, utcnow


class Payment(db.Model):
    """
    Payment record (no gateway integration).

    One payment may be attached to several sales via confirm-payment.
    """
    __tablename__ = "payments"
    __table_args__ = (
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.String(64), nullable=False, unique=True, index=True)

    payment_type = db.Column(db.String(32), nullable=False)  # cash, credit_card, bank_transfer, e-wallet
    gross_amount_cents = db.Column(db.BigInteger, nullable=False, default=0)
    transaction_status = db.Column(db.String(32), nullable=False, default="pending")  # pending, settlement, failed, cancelled

    # Free-form gateway payload
    payment_metadata = db.Column("metadata", db.JSON, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "payment_type": self.payment_type,
            "gross_amount": format_cents(self.gross_amount_cents),
            "transaction_status": self.transaction_status,
            "metadata": self.payment_metadata,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Sale(db.Model):
    """
    Sale aggregate.

    LIFECYCLE: draft -> paid, draft -> cancelled, paid -> cancelled.
    Items may only change while draft (services/lifecycle_service.py).

    Totals are stored in cents and rewritten by services/sale_totals.py on
    every item mutation, so total = subtotal - discount + tax always holds.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_status_date", "payment_status", "sale_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    payment_id = db.Column(db.Integer, db.ForeignKey("payments.id"), nullable=True, index=True)

    subtotal_cents = db.Column(db.BigInteger, nullable=False, default=0)
    discount_cents = db.Column(db.BigInteger, nullable=False, default=0)
    tax_cents = db.Column(db.BigInteger, nullable=False, default=0)
    total_cents = db.Column(db.BigInteger, nullable=False, default=0)

    payment_status = db.Column(db.String(16), nullable=False, default="draft", index=True)

    sale_date = db.Column(db.DateTime, nullable=False, default=utcnow)
    paid_at = db.Column(db.DateTime, nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User")
    payment = db.relationship("Payment", backref=db.backref("sales", lazy=True))
    items = db.relationship(
        "SaleItem",
        back_populates="sale",
        order_by="SaleItem.id",
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "user": self.user.to_summary() if self.user else None,
            "payment_id": self.payment_id,
            "payment": self.payment.to_dict() if self.payment else None,
            "subtotal": format_cents(self.subtotal_cents),
            "discount_amount": format_cents(self.discount_cents),
            "tax_amount": format_cents(self.tax_cents),
            "total_amount": format_cents(self.total_cents),
            "payment_status": self.payment_status,
            "sale_date": to_utc_z(self.sale_date),
            "paid_at": to_utc_z(self.paid_at),
            "cancelled_at": to_utc_z(self.cancelled_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SaleItem(db.Model):
    """
    One product line within a sale.

    product_name is a snapshot taken when the item is added. Items are never
    updated in place; change quantity by removing and re-adding.
    """
    __tablename__ = "sale_items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 1", name="ck_sale_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    product_name = db.Column(db.String(191), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.BigInteger, nullable=False)
    discount_cents = db.Column(db.BigInteger, nullable=False, default=0)
    subtotal_cents = db.Column(db.BigInteger, nullable=False)  # unit_price_cents * quantity

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    sale = db.relationship("Sale", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product": {"id": self.product_id, "name": self.product_name},
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price": format_cents(self.unit_price_cents),
            "discount_amount": format_cents(self.discount_cents),
            "subtotal": format_cents(self.subtotal_cents),
            "created_at": to_utc_z(self.created_at),
        }
