# Overview: Category CRUD.

from __future__ import annotations

from ..errors import NotFoundError, StateConflictError
from ..extensions import db
from ..models import Category, Product
from ..validation import ModelValidationPolicy, validate_payload
from .pagination import paginate


CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description"},
    required_on_create={"name"},
)


def list_categories(page: int | None = None, per_page: int | None = None) -> dict:
    query = db.session.query(Category).order_by(Category.name.asc(), Category.id.asc())
    return paginate(query, page, per_page, lambda c: c.to_dict())


def get_category(category_id: int) -> Category:
    category = db.session.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category not found")
    return category


def create_category(payload: dict) -> Category:
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
    category = Category(**patch)
    db.session.add(category)
    db.session.commit()
    return category


def update_category(category_id: int, payload: dict) -> Category:
    category = get_category(category_id)
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)
    for key, value in patch.items():
        setattr(category, key, value)
    db.session.commit()
    return category


def delete_category(category_id: int) -> None:
    """Refuses while any product (active or not) still references the category."""
    category = get_category(category_id)
    in_use = db.session.query(Product.id).filter(Product.category_id == category.id).first()
    if in_use:
        raise StateConflictError("Category still has products")
    db.session.delete(category)
    db.session.commit()


def ensure_categories(entries: list[tuple[str, str | None]]) -> list[Category]:
    """Create (name, description) categories missing by name. Idempotent."""
    created = []
    for name, description in entries:
        if db.session.query(Category).filter_by(name=name).first() is None:
            category = Category(name=name, description=description)
            db.session.add(category)
            created.append(category)
    db.session.commit()
    return created
