# Overview: Pure totals calculation for sales; integer cents in, integer cents out.

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class SaleTotals:
    subtotal_cents: int
    discount_cents: int
    tax_cents: int
    total_cents: int


def compute_totals(lines: Iterable[tuple[int, int]], tax_cents: int) -> SaleTotals:
    """
    lines: (line_subtotal_cents, line_discount_cents) pairs.

    total = subtotal - discount + tax
    """
    subtotal = 0
    discount = 0
    for line_subtotal, line_discount in lines:
        subtotal += line_subtotal
        discount += line_discount
    return SaleTotals(
        subtotal_cents=subtotal,
        discount_cents=discount,
        tax_cents=tax_cents,
        total_cents=subtotal - discount + tax_cents,
    )


def apply_totals(sale) -> SaleTotals:
    """
    Recompute and store totals from the sale's current items.

    A sale with no items settles to all zeros, tax included.
    """
    items = list(sale.items)
    tax_cents = (sale.tax_cents or 0) if items else 0
    totals = compute_totals(
        ((item.subtotal_cents, item.discount_cents) for item in items),
        tax_cents,
    )
    sale.subtotal_cents = totals.subtotal_cents
    sale.discount_cents = totals.discount_cents
    sale.tax_cents = totals.tax_cents
    sale.total_cents = totals.total_cents
    return totals
