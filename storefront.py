import argparse
import getpass
import os
import sys
import threading
from typing import Any, Callable, Dict, List, Optional, TextIO

from api import auth, catalog
from api import cart as cart_api
from api.http import ApiError
from core import session as session_store
from core.cart import contains_product, reconcile
from core.debounce import debounce
from core.logger import get_logger
from core.models import CartEntry, CartLineItem, DecodeError, Product
from core.notifier import Notifier
from core.report_text import build_cart_report, build_header, build_products_report
from core.session import Session
from core.validation import validate_login_input, validate_register_input

logger = get_logger(__name__)

SEARCH_DEBOUNCE_MS = float(os.getenv("SEARCH_DEBOUNCE_MS", "500"))

BACKEND_ERROR = (
    "Something went wrong. Check that the backend is running, reachable and returns valid JSON."
)
PRODUCTS_SERVER_ERROR = "Something went wrong. Check the backend console for more details"
CART_FETCH_ERROR = (
    "Could not fetch cart details. Check that the backend is running, reachable and returns valid JSON."
)
LOGIN_TO_ADD_WARNING = "Login to add an item to the cart"
DUPLICATE_ITEM_WARNING = (
    "Item already in cart. Use the cart sidebar to update quantity or remove item"
)
USERNAME_TAKEN_ERROR = "Username is already taken"
CART_UNAVAILABLE_WARNING = (
    "Cart could not be loaded, so it cannot be changed right now. Use /reload to try again"
)


def load_products(notifier: Notifier) -> Optional[List[Product]]:
    """
    Fetch the full catalog. Returns None when it could not be fetched, so an
    outage is never mistaken for an empty catalog.
    """
    try:
        return catalog.fetch_products()
    except ApiError as e:
        logger.error("Product listing failed: %s", e)
        notifier.enqueue(PRODUCTS_SERVER_ERROR if e.status == 500 else BACKEND_ERROR, "error")
    except DecodeError as e:
        logger.error("Product listing had an unexpected shape: %s", e)
        notifier.enqueue(BACKEND_ERROR, "error")
    return None


def perform_search(text: str, notifier: Notifier) -> Optional[List[Product]]:
    """
    Search the catalog. A 404 means nothing matched and gives an empty list;
    any other failure gives None.
    """
    try:
        return catalog.search_products(text)
    except ApiError as e:
        if e.status == 404:
            notifier.enqueue(e.message, "error")
            return []
        logger.error("Search '%s' failed: %s", text, e)
        notifier.enqueue(BACKEND_ERROR, "error")
    except DecodeError as e:
        logger.error("Search '%s' returned an unexpected shape: %s", text, e)
        notifier.enqueue(BACKEND_ERROR, "error")
    return None


def load_cart(session: Session, notifier: Notifier) -> Optional[List[CartEntry]]:
    """
    Fetch the user's cart entries. Returns None when there is no session or
    the cart could not be fetched.
    """
    if not session.is_authenticated:
        return None
    try:
        return cart_api.fetch_cart(session.token)
    except ApiError as e:
        logger.error("Cart fetch failed: %s", e)
        notifier.enqueue(e.message if e.status == 400 else CART_FETCH_ERROR, "error")
    except DecodeError as e:
        logger.error("Cart had an unexpected shape: %s", e)
        notifier.enqueue(CART_FETCH_ERROR, "error")
    return None


def update_cart(
    session: Session,
    items: List[CartLineItem],
    products: List[Product],
    product_id: str,
    qty: int,
    notifier: Notifier,
    prevent_duplicate: bool = False,
) -> Optional[List[CartLineItem]]:
    """
    Add `product_id` to the cart or change its quantity, then rebuild the
    line items from the cart the backend returns.
    Returns the new line items, or None if the cart was left unchanged.
    """
    if not session.is_authenticated:
        notifier.enqueue(LOGIN_TO_ADD_WARNING, "warning")
        return None

    if qty < 0:
        notifier.enqueue("Quantity cannot be negative", "warning")
        return None

    if prevent_duplicate and contains_product(items, product_id):
        notifier.enqueue(DUPLICATE_ITEM_WARNING, "warning")
        return None

    try:
        entries = cart_api.add_to_cart(session.token, product_id, qty)
    except ApiError as e:
        logger.error("Cart update for %s failed: %s", product_id, e)
        notifier.enqueue(e.message if e.status is not None else CART_FETCH_ERROR, "error")
        return None
    except DecodeError as e:
        logger.error("Cart update for %s returned an unexpected shape: %s", product_id, e)
        notifier.enqueue(CART_FETCH_ERROR, "error")
        return None

    return reconcile(entries, products)


def login_user(form: Dict[str, str], notifier: Notifier, db_path: str) -> Optional[Session]:
    errors = validate_login_input(form)
    if errors:
        for msg in errors:
            notifier.enqueue(msg, "error")
        return None

    try:
        result = auth.login(form["username"], form["password"])
    except ApiError as e:
        logger.error("Login for '%s' failed: %s", form["username"], e)
        notifier.enqueue(e.message if e.status == 400 else BACKEND_ERROR, "error")
        return None
    except DecodeError as e:
        logger.error("Login response had an unexpected shape: %s", e)
        notifier.enqueue(BACKEND_ERROR, "error")
        return None

    session = Session(token=result.token, username=result.username, balance=result.balance)
    session_store.save_session(session, db_path)
    notifier.enqueue("Logged in successfully", "success")
    return session


def register_user(form: Dict[str, str], notifier: Notifier) -> bool:
    errors = validate_register_input(form)
    if errors:
        for msg in errors:
            notifier.enqueue(msg, "warning")
        return False

    try:
        auth.register(form["username"], form["password"])
    except ApiError as e:
        logger.error("Registration for '%s' failed: %s", form["username"], e)
        notifier.enqueue(USERNAME_TAKEN_ERROR if e.status == 400 else BACKEND_ERROR, "error")
        return False

    notifier.enqueue("Registered successfully", "success")
    return True


def logout_user(db_path: str) -> Session:
    session_store.clear_session(db_path)
    return Session()


class ProductsPage:
    """
    Interactive product listing with a cart sidebar.

    Plain input lines are search text and go through the debouncer, so a
    burst of edits results in one backend query. View state is shared with
    the timer thread and guarded by a lock.
    """

    def __init__(
        self,
        session: Session,
        notifier: Notifier,
        out: Optional[TextIO] = None,
        delay_ms: float = SEARCH_DEBOUNCE_MS,
        timer_factory: Callable[..., Any] = threading.Timer,
    ):
        self.session = session
        self.notifier = notifier
        self.out = out
        self.products: List[Product] = []
        self.filtered: List[Product] = []
        self.items: List[CartLineItem] = []
        self.cart_ready = False
        self._lock = threading.RLock()
        self.search = debounce(self._run_search, delay_ms, timer_factory=timer_factory)

    def _write(self, text: str) -> None:
        out = self.out or sys.stdout
        out.write(text)
        out.flush()

    def load(self) -> bool:
        """
        Fetch catalog and cart. Returns False if either failed; cart changes
        stay blocked until a later load succeeds.
        """
        products = load_products(self.notifier)
        entries = load_cart(self.session, self.notifier)
        with self._lock:
            self.products = products or []
            self.filtered = self.products
            self.items = reconcile(entries, self.products)
            self.cart_ready = products is not None and (
                entries is not None or not self.session.is_authenticated
            )
            return self.cart_ready

    def on_search_input(self, text: str) -> None:
        self.search(text)

    def _run_search(self, text: str) -> None:
        text = text.strip()
        results = perform_search(text, self.notifier) if text else self.products
        with self._lock:
            self.filtered = results or []
            self.render_products(f"Results for '{text}'" if text else None)

    def _can_change_cart(self) -> bool:
        # a cart view built from failed loads is not the real cart
        if self.session.is_authenticated and not self.cart_ready:
            self.notifier.enqueue(CART_UNAVAILABLE_WARNING, "warning")
            return False
        return True

    def add(self, product_id: str, qty: int = 1) -> bool:
        with self._lock:
            if not self._can_change_cart():
                return False
            items = update_cart(
                self.session, self.items, self.products, product_id, qty,
                self.notifier, prevent_duplicate=True,
            )
            if items is None:
                return False
            self.items = items
            self.render_cart()
            return True

    def set_quantity(self, product_id: str, qty: int) -> bool:
        with self._lock:
            if not self._can_change_cart():
                return False
            items = update_cart(
                self.session, self.items, self.products, product_id, qty, self.notifier
            )
            if items is None:
                return False
            self.items = items
            self.render_cart()
            return True

    def render_products(self, title: Optional[str] = None) -> None:
        with self._lock:
            self._write(build_products_report(self.filtered, title))

    def render_cart(self) -> None:
        with self._lock:
            if self.session.is_authenticated:
                self._write(build_cart_report(self.items))

    def handle_line(self, line: str) -> bool:
        """Process one line of input. Returns False when the user quits."""
        if not line.startswith("/"):
            self.on_search_input(line)
            return True

        parts = line.split()
        cmd, args = parts[0], parts[1:]
        if cmd in ("/quit", "/q"):
            return False
        if cmd == "/cart":
            self.render_cart()
        elif cmd == "/reload":
            self.load()
            self.render_products()
            self.render_cart()
        elif cmd == "/add" and len(args) == 1:
            self.add(args[0])
        elif cmd == "/qty" and len(args) == 2 and args[1].isdigit():
            self.set_quantity(args[0], int(args[1]))
        else:
            self.notifier.enqueue(
                "Commands: /add <id>, /qty <id> <n>, /cart, /reload, /quit; anything else searches",
                "info",
            )
        return True

    def close(self) -> None:
        self.search.cancel()


def _prompt(value: Optional[str], label: str, secret: bool = False) -> str:
    if value is not None:
        return value
    if secret:
        return getpass.getpass(f"{label}: ")
    return input(f"{label}: ").strip()


def cmd_login(args, session: Session, notifier: Notifier) -> int:
    form = {
        "username": _prompt(args.username, "Username"),
        "password": _prompt(args.password, "Password", secret=True),
    }
    new_session = login_user(form, notifier, args.session_db)
    return 0 if new_session else 1


def cmd_register(args, session: Session, notifier: Notifier) -> int:
    form = {
        "username": _prompt(args.username, "Username"),
        "password": _prompt(args.password, "Password", secret=True),
    }
    form["confirmPassword"] = _prompt(args.confirm_password, "Confirm password", secret=True)
    return 0 if register_user(form, notifier) else 1


def cmd_logout(args, session: Session, notifier: Notifier) -> int:
    logout_user(args.session_db)
    notifier.enqueue("Logged out", "info")
    return 0


def cmd_whoami(args, session: Session, notifier: Notifier) -> int:
    sys.stdout.write(build_header(session))
    return 0


def cmd_products(args, session: Session, notifier: Notifier) -> int:
    products = load_products(notifier)
    if products is None:
        return 1
    sys.stdout.write(build_products_report(products))
    return 0


def cmd_search(args, session: Session, notifier: Notifier) -> int:
    text = " ".join(args.text)
    products = perform_search(text, notifier)
    if products is None:
        return 1
    sys.stdout.write(build_products_report(products, f"Results for '{text}'"))
    return 0


def cmd_cart(args, session: Session, notifier: Notifier) -> int:
    if not session.is_authenticated:
        notifier.enqueue("Login to view your cart", "warning")
        return 1
    products = load_products(notifier)
    entries = load_cart(session, notifier)
    if products is None or entries is None:
        return 1
    sys.stdout.write(build_cart_report(reconcile(entries, products)))
    return 0


def _cmd_update(args, session: Session, notifier: Notifier, prevent_duplicate: bool) -> int:
    if not session.is_authenticated:
        notifier.enqueue(LOGIN_TO_ADD_WARNING, "warning")
        return 1
    products = load_products(notifier)
    entries = load_cart(session, notifier)
    # POST /cart sets the quantity, so never write against a cart we could not read
    if products is None or entries is None:
        return 1
    items = reconcile(entries, products)
    new_items = update_cart(
        session, items, products, args.product_id, args.qty, notifier,
        prevent_duplicate=prevent_duplicate,
    )
    if new_items is None:
        return 1
    sys.stdout.write(build_cart_report(new_items))
    return 0


def cmd_add(args, session: Session, notifier: Notifier) -> int:
    return _cmd_update(args, session, notifier, prevent_duplicate=True)


def cmd_set_qty(args, session: Session, notifier: Notifier) -> int:
    return _cmd_update(args, session, notifier, prevent_duplicate=False)


def cmd_browse(args, session: Session, notifier: Notifier) -> int:
    page = ProductsPage(session, notifier, delay_ms=args.debounce_ms)
    sys.stdout.write(build_header(session))
    page.load()
    page.render_products()
    page.render_cart()
    try:
        while True:
            try:
                line = input("search> ")
            except EOFError:
                break
            if not page.handle_line(line):
                break
    except KeyboardInterrupt:
        logger.info("Browse interrupted.")
    finally:
        page.close()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="storefront", description="QKart storefront client")
    parser.add_argument(
        "--session-db",
        default=session_store.SESSION_DB_PATH,
        help="sqlite file holding the login session",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("login", help="log in and remember the session")
    p.add_argument("--username")
    p.add_argument("--password")
    p.set_defaults(func=cmd_login)

    p = sub.add_parser("register", help="create an account")
    p.add_argument("--username")
    p.add_argument("--password")
    p.add_argument("--confirm-password")
    p.set_defaults(func=cmd_register)

    p = sub.add_parser("logout", help="forget the stored session")
    p.set_defaults(func=cmd_logout)

    p = sub.add_parser("whoami", help="show the logged in user")
    p.set_defaults(func=cmd_whoami)

    p = sub.add_parser("products", help="list all products")
    p.set_defaults(func=cmd_products)

    p = sub.add_parser("search", help="search products by name or category")
    p.add_argument("text", nargs="+")
    p.set_defaults(func=cmd_search)

    p = sub.add_parser("cart", help="show the cart")
    p.set_defaults(func=cmd_cart)

    p = sub.add_parser("add", help="add a product to the cart")
    p.add_argument("product_id")
    p.add_argument("--qty", type=int, default=1)
    p.set_defaults(func=cmd_add)

    p = sub.add_parser("set-qty", help="change a product's quantity (0 removes it)")
    p.add_argument("product_id")
    p.add_argument("qty", type=int)
    p.set_defaults(func=cmd_set_qty)

    p = sub.add_parser("browse", help="interactive product search with live cart")
    p.add_argument("--debounce-ms", type=float, default=SEARCH_DEBOUNCE_MS)
    p.set_defaults(func=cmd_browse)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    notifier = Notifier()
    try:
        session = session_store.load_session(args.session_db)
        logger.debug("Running '%s' (authenticated=%s).", args.command, session.is_authenticated)
        return args.func(args, session, notifier)
    except Exception as e:
        logger.exception("Fatal storefront error: %s", e)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
