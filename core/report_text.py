import os
from pathlib import Path
from typing import List, Optional
from jinja2 import Environment, FileSystemLoader
from core.cart import cart_quantity, cart_total
from core.models import CartLineItem, Product
from core.session import Session

# Resolve template directory relative to this file
TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)

CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "$")


def _cost_to_str(cost: float | None) -> str:
    if cost is None or cost < 0:
        return "Unavailable"
    return f"{CURRENCY_SYMBOL}{cost:,.2f}"


def _stars(rating: int) -> str:
    rating = max(0, min(5, rating))
    return "*" * rating + "." * (5 - rating)


def build_header(session: Session) -> str:
    template = env.get_template("header.txt")
    balance_str = _cost_to_str(session.balance) if session.balance is not None else ""
    return template.render(
        username=session.username if session.is_authenticated else None,
        balance_str=balance_str,
    )


def build_products_report(products: List[Product], title: Optional[str] = None) -> str:
    template = env.get_template("products.txt")

    product_data = [
        {
            "product_id": p.product_id,
            "name": p.name,
            "category": p.category,
            "cost_str": _cost_to_str(p.cost),
            "stars": _stars(p.rating),
        }
        for p in products
    ]

    ctx = {
        "title": title,
        "products": product_data,
    }

    return template.render(**ctx)


def build_cart_report(items: List[CartLineItem]) -> str:
    template = env.get_template("cart.txt")

    item_data = [
        {
            "product_id": it.product_id,
            "name": it.name,
            "quantity": it.quantity,
            "cost_str": _cost_to_str(it.cost),
            "subtotal_str": _cost_to_str(it.subtotal),
        }
        for it in items
    ]

    summary_text = f"{cart_quantity(items)} items · Order total {_cost_to_str(cart_total(items))}"

    return template.render(items=item_data, summary_text=summary_text)
