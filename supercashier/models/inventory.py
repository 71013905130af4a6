from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class StockAddition(db.Model):
    """
    Append-only record of stock received into a product.

    Written in the same transaction as the product stock increment.
    """
    __tablename__ = "stock_additions"
    __table_args__ = (
        db.CheckConstraint("quantity >= 1", name="ck_stock_additions_quantity_positive"),
        db.Index("ix_stock_additions_product_added", "product_id", "added_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    notes = db.Column(db.Text, nullable=True)

    added_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    product = db.relationship("Product")
    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product": {"id": self.product.id, "name": self.product.name} if self.product else None,
            "user_id": self.user_id,
            "user": self.user.to_summary() if self.user else None,
            "quantity": self.quantity,
            "notes": self.notes,
            "added_at": to_utc_z(self.added_at),
        }
