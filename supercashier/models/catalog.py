from __future__ import annotations

from ..extensions import db
from ..money import format_cents
from ..time_utils import to_utc_z, utcnow


class Category(db.Model):
    __tablename__ = "categories"
    __table_args__ = (
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(191), nullable=False)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Product(db.Model):
    """
    Sellable product.

    stock is the on-hand count and never goes negative. It changes only
    through services/inventory_service.py (stock additions, sale
    reservations and releases), always under a row lock.

    Deleting a product is a soft delete (is_active=False); inactive products
    are hidden from listings and cannot be reserved by sales. Historical
    sale items keep their own name snapshot.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        db.Index("ix_products_category_active", "category_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=False, index=True)

    name = db.Column(db.String(191), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)

    # Authoritative storage in cents
    cost_price_cents = db.Column(db.BigInteger, nullable=False, default=0)
    selling_price_cents = db.Column(db.BigInteger, nullable=False, default=0)

    stock = db.Column(db.Integer, nullable=False, default=0)
    barcode = db.Column(db.String(191), nullable=True, unique=True)

    # List of image URLs
    product_images = db.Column(db.JSON, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    category = db.relationship("Category", backref=db.backref("products", lazy="dynamic"))

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category_id": self.category_id,
            "category": {"id": self.category.id, "name": self.category.name} if self.category else None,
            "name": self.name,
            "description": self.description,
            "cost_price": format_cents(self.cost_price_cents),
            "selling_price": format_cents(self.selling_price_cents),
            "stock": self.stock,
            "barcode": self.barcode,
            "product_images": self.product_images or [],
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
