# core/cart.py
from typing import Iterable, List, Optional

from .models import CartEntry, CartLineItem, Product


def reconcile(
    entries: Optional[Iterable[CartEntry]], catalog: Iterable[Product]
) -> List[CartLineItem]:
    """
    Join cart entries against the catalog into displayable line items.
    - entries: server-side (product_id, quantity) pairs, or None when there is no cart
    - catalog: products available for lookup
    Entries whose product is missing from the catalog are skipped.
    Output keeps the order of `entries`.
    """
    if not entries:
        return []

    by_id = {}
    for p in catalog:
        # first match wins if the catalog ever repeats an id
        by_id.setdefault(p.product_id, p)

    items: List[CartLineItem] = []
    for entry in entries:
        product = by_id.get(entry.product_id)
        if product is None:
            continue
        items.append(
            CartLineItem(
                product_id=product.product_id,
                name=product.name,
                category=product.category,
                cost=product.cost,
                rating=product.rating,
                image_url=product.image_url,
                quantity=entry.quantity,
            )
        )
    return items


def contains_product(items: Iterable[CartLineItem], product_id: str) -> bool:
    return any(it.product_id == product_id for it in items)


def cart_total(items: Iterable[CartLineItem]) -> float:
    return sum(it.subtotal for it in items)


def cart_quantity(items: Iterable[CartLineItem]) -> int:
    return sum(it.quantity for it in items)
