# api/cart.py
from typing import List

from core.logger import get_logger
from core.models import CartEntry, decode_list

from .http import request_json

logger = get_logger(__name__)


def fetch_cart(token: str) -> List[CartEntry]:
    data = request_json("GET", "/cart", token=token)
    entries = decode_list(data, CartEntry.from_json, "cart")
    logger.info("Fetched cart with %d entries.", len(entries))
    return entries


def add_to_cart(token: str, product_id: str, qty: int) -> List[CartEntry]:
    """
    Set the quantity of `product_id` in the cart (0 removes it) and return
    the updated cart as the backend sees it.
    """
    data = request_json(
        "POST", "/cart", token=token, json_body={"productId": product_id, "qty": qty}
    )
    entries = decode_list(data, CartEntry.from_json, "cart")
    logger.info("Set %s quantity to %d; cart now has %d entries.", product_id, qty, len(entries))
    return entries
