# api/catalog.py
from typing import List

from core.logger import get_logger
from core.models import Product, decode_list

from .http import request_json

logger = get_logger(__name__)


def fetch_products() -> List[Product]:
    """
    Full catalog listing: GET /products.
    """
    data = request_json("GET", "/products")
    products = decode_list(data, Product.from_json, "products")
    logger.info("Fetched %d products.", len(products))
    return products


def search_products(text: str) -> List[Product]:
    """
    Free-text search over names and categories: GET /products/search?value=<text>.
    The backend answers 404 when nothing matches.
    """
    data = request_json("GET", "/products/search", params={"value": text})
    products = decode_list(data, Product.from_json, "search results")
    logger.info("Search '%s' matched %d products.", text, len(products))
    return products
