"""
Unit tests for cart reconciliation

The reconciler joins server-side cart entries with the product catalog.
These tests pin down ordering, dropped references and the presence check.
"""
import pytest

from core.cart import cart_quantity, cart_total, contains_product, reconcile
from core.models import CartEntry, CartLineItem, Product


class TestEmptyCart:

    @pytest.mark.parametrize("entries", [None, []])
    def test_no_entries_gives_no_items(self, catalog, entries):
        assert reconcile(entries, catalog) == []

    def test_empty_catalog_drops_everything(self):
        entries = [CartEntry("A", 1), CartEntry("B", 2)]
        assert reconcile(entries, []) == []

    def test_totals_of_empty_cart_are_zero(self):
        assert cart_total([]) == 0
        assert cart_quantity([]) == 0


class TestJoin:

    def test_every_entry_found_keeps_length_and_catalog_fields(self, catalog):
        """
        Validates:
        - one line item per entry when all products exist
        - display fields are copied from the catalog product
        - quantity comes from the entry
        """
        # Arrange
        entries = [CartEntry("C", 2), CartEntry("A", 1)]
        by_id = {p.product_id: p for p in catalog}

        # Act
        items = reconcile(entries, catalog)

        # Assert
        assert len(items) == len(entries)
        for entry, item in zip(entries, items):
            product = by_id[entry.product_id]
            assert item.product_id == product.product_id
            assert item.name == product.name
            assert item.category == product.category
            assert item.cost == product.cost
            assert item.rating == product.rating
            assert item.image_url == product.image_url
            assert item.quantity == entry.quantity

    def test_order_follows_cart_not_catalog(self, catalog):
        entries = [CartEntry("C", 1), CartEntry("B", 1), CartEntry("A", 1)]

        items = reconcile(entries, catalog)

        assert [it.product_id for it in items] == ["C", "B", "A"]

    def test_unknown_product_is_dropped_without_touching_others(self, catalog):
        entries = [CartEntry("A", 1), CartEntry("ghost", 4), CartEntry("B", 2)]

        items = reconcile(entries, catalog)

        assert len(items) == len(entries) - 1
        assert [(it.product_id, it.quantity) for it in items] == [("A", 1), ("B", 2)]

    def test_reconcile_is_idempotent(self, catalog):
        entries = [CartEntry("B", 3), CartEntry("A", 1)]

        assert reconcile(entries, catalog) == reconcile(entries, catalog)

    def test_accepts_generators(self, catalog):
        entries = (CartEntry(pid, 1) for pid in ("A", "B"))

        items = reconcile(entries, iter(catalog))

        assert [it.product_id for it in items] == ["A", "B"]

    def test_first_catalog_match_wins(self):
        catalog = [
            Product("A", "First", "X", 10, 3),
            Product("A", "Second", "X", 20, 3),
        ]

        items = reconcile([CartEntry("A", 1)], catalog)

        assert items[0].name == "First"

    def test_worked_example(self, catalog):
        """
        catalog A "iPhone XR" and B "Basketball"; cart (A, 3) and (Z, 1)
        gives only A with quantity 3.
        """
        entries = [CartEntry("A", 3), CartEntry("Z", 1)]

        items = reconcile(entries, catalog[:2])

        assert items == [
            CartLineItem(
                product_id="A",
                name="iPhone XR",
                category="Phones",
                cost=100,
                rating=4,
                image_url="https://i.imgur.com/lulqWzW.jpg",
                quantity=3,
            )
        ]


class TestContainsProduct:

    @pytest.mark.parametrize(
        "pid, expected",
        [
            ("A", True),   # in cart and catalog
            ("B", True),
            ("C", False),  # in catalog, not in cart
            ("Z", False),  # in cart, not in catalog
            ("", False),
        ],
    )
    def test_presence_after_reconcile(self, catalog, pid, expected):
        entries = [CartEntry("A", 1), CartEntry("B", 2), CartEntry("Z", 1)]

        items = reconcile(entries, catalog)

        assert contains_product(items, pid) is expected

    def test_empty_cart_contains_nothing(self):
        assert contains_product([], "A") is False


class TestTotals:

    def test_total_and_quantity(self, catalog):
        items = reconcile([CartEntry("A", 3), CartEntry("C", 2)], catalog)

        assert cart_total(items) == 100 * 3 + 150 * 2
        assert cart_quantity(items) == 5
        assert items[1].subtotal == 300
