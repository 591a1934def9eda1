# core/models.py
from dataclasses import dataclass
from typing import Any, List, Optional


class DecodeError(ValueError):
    """Raised when a backend record does not have the expected shape."""


def _require(data: Any, key: str, kind, record: str):
    if not isinstance(data, dict):
        raise DecodeError(f"{record}: expected an object, got {type(data).__name__}")
    if key not in data:
        raise DecodeError(f"{record}: missing field '{key}'")
    value = data[key]
    # bool is an int subclass; never accept it for numeric fields
    if isinstance(value, bool) or not isinstance(value, kind):
        raise DecodeError(f"{record}: field '{key}' has invalid value {value!r}")
    return value


@dataclass(frozen=True)
class Product:
    """
    A purchasable catalog product. Identity is the product id.
    """
    product_id: str
    name: str
    category: str
    cost: float
    rating: int
    image_url: str = ""

    @classmethod
    def from_json(cls, data: Any) -> "Product":
        if isinstance(data, dict) and "_id" not in data and "id" in data:
            id_key = "id"
        else:
            id_key = "_id"
        product_id = _require(data, id_key, str, "product")
        rating = _require(data, "rating", int, "product")
        if not 0 <= rating <= 5:
            raise DecodeError(f"product {product_id}: rating {rating} out of range 0-5")
        image = data.get("image", "")
        if image is None:
            image = ""
        if not isinstance(image, str):
            raise DecodeError(f"product {product_id}: field 'image' has invalid value {image!r}")
        return cls(
            product_id=product_id,
            name=_require(data, "name", str, "product"),
            category=_require(data, "category", str, "product"),
            cost=_require(data, "cost", (int, float), "product"),
            rating=rating,
            image_url=image,
        )


@dataclass(frozen=True)
class CartEntry:
    """Server-side cart row: one per distinct product."""
    product_id: str
    quantity: int

    @classmethod
    def from_json(cls, data: Any) -> "CartEntry":
        qty_key = "quantity" if isinstance(data, dict) and "qty" not in data else "qty"
        product_id = _require(data, "productId", str, "cart entry")
        quantity = _require(data, qty_key, int, "cart entry")
        if quantity <= 0:
            raise DecodeError(f"cart entry {product_id}: quantity must be positive, got {quantity}")
        return cls(product_id=product_id, quantity=quantity)


@dataclass(frozen=True)
class CartLineItem:
    """
    A cart entry joined with its catalog product, ready for display.
    Rebuilt on every reconciliation, never stored.
    """
    product_id: str
    name: str
    category: str
    cost: float
    rating: int
    image_url: str
    quantity: int

    @property
    def subtotal(self) -> float:
        return self.cost * self.quantity


@dataclass(frozen=True)
class LoginResult:
    token: str
    username: str
    balance: Optional[float] = None

    @classmethod
    def from_json(cls, data: Any) -> "LoginResult":
        balance = data.get("balance") if isinstance(data, dict) else None
        if balance is not None and (isinstance(balance, bool) or not isinstance(balance, (int, float))):
            raise DecodeError(f"login: field 'balance' has invalid value {balance!r}")
        return cls(
            token=_require(data, "token", str, "login"),
            username=_require(data, "username", str, "login"),
            balance=balance,
        )


def decode_list(data: Any, decoder, record: str) -> List[Any]:
    if not isinstance(data, list):
        raise DecodeError(f"{record}: expected a list, got {type(data).__name__}")
    return [decoder(it) for it in data]
