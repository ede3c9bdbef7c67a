# tests/test_cart_checkout.py
from decimal import Decimal

import pytest

from marketplace.controller import StorefrontController
from marketplace.core import CheckoutDetails, build_draft
from marketplace.database import DurableState, MemoryStorage
from marketplace.errors import InputError, NotFoundError
from marketplace.models import CartItem
from marketplace.notifications import Notifier
from marketplace.stores import CartStore


class FakeTimer:
    def __init__(self, interval, fn, args=()):
        self.interval = interval
        self.fn = fn
        self.args = args
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.fn(*self.args)


def new_store():
    timers = []

    def factory(*args, **kwargs):
        t = FakeTimer(*args, **kwargs)
        timers.append(t)
        return t

    ctl = StorefrontController(DurableState(MemoryStorage()), Notifier(5, timer_factory=factory))
    ctl.login({"username": "alice", "password": "pw"})
    return ctl, timers


def add(ctl, name, price, category="other"):
    return ctl.add_product({"name": name, "price": price, "category": category})


def test_add_same_product_twice_increments():
    ctl, _ = new_store()
    p = add(ctl, "Mug", "9.99")
    ctl.add_to_cart(p)
    ctl.add_to_cart(p.id)
    items = ctl.cart_items()
    assert len(items) == 1
    assert items[0].quantity == 2


def test_new_items_append_and_existing_keep_position():
    ctl, _ = new_store()
    a = add(ctl, "A", "1")
    b = add(ctl, "B", "2")
    ctl.add_to_cart(a)
    ctl.add_to_cart(b)
    ctl.add_to_cart(a)
    assert [(i.name, i.quantity) for i in ctl.cart_items()] == [("A", 2), ("B", 1)]


def test_add_unknown_product_id():
    ctl, _ = new_store()
    with pytest.raises(NotFoundError):
        ctl.add_to_cart("missing")


@pytest.mark.parametrize("qty", [0, -1, -5])
def test_non_positive_quantity_removes(qty):
    ctl, _ = new_store()
    p = add(ctl, "Mug", "9.99")
    ctl.add_to_cart(p)
    assert ctl.set_quantity(p.id, qty) is True
    assert ctl.cart_items() == []


def test_set_quantity_overwrites_and_unknown_is_noop():
    ctl, _ = new_store()
    p = add(ctl, "Mug", "9.99")
    ctl.add_to_cart(p)
    ctl.set_quantity(p.id, 7)
    assert ctl.cart_items()[0].quantity == 7
    assert ctl.set_quantity("other", 3) is False
    assert ctl.remove_from_cart("other") is False
    assert all(i.quantity >= 1 for i in ctl.cart_items())


def test_totals_sum_price_times_quantity():
    cart = CartStore([
        CartItem(id="1", name="A", price=Decimal("10"), quantity=2),
        CartItem(id="2", name="B", price=Decimal("5"), quantity=1),
    ])
    totals = cart.compute_totals()
    assert totals.total_price == Decimal("25.00")
    assert f"{totals.total_price:.2f}" == "25.00"
    assert totals.item_count == 3
    # recomputed, not cached
    cart.set_quantity("2", 3)
    assert cart.compute_totals().total_price == Decimal("35.00")


def test_line_total():
    item = CartItem(id="1", name="A", price=Decimal("9.99"), quantity=3)
    assert item.line_total == Decimal("29.97")


def test_checkout_with_paypal():
    ctl, timers = new_store()
    ctl.cart = CartStore([CartItem(id="1", name="Mug", price=Decimal("9.99"), quantity=1)])
    confirmation = ctl.checkout("paypal")
    assert "PayPal" in confirmation.message
    assert "9.99" in confirmation.message
    assert confirmation.message == "Order placed successfully with PayPal! Total: $9.99"
    assert ctl.cart_items() == []
    assert ctl.notification == confirmation.message
    assert timers[-1].started and timers[-1].interval == 5


def test_checkout_references_prior_total_and_persists_empty_cart():
    ctl, _ = new_store()
    a = add(ctl, "A", "10")
    b = add(ctl, "B", "5")
    ctl.add_to_cart(a)
    ctl.add_to_cart(a)
    ctl.add_to_cart(b)
    before = ctl.compute_totals().total_price
    confirmation = ctl.checkout("credit-card")
    assert confirmation.total_price == before
    assert "Credit Card" in confirmation.message
    assert "$25.00" in confirmation.message
    assert ctl.storage.load_cart() == []


def test_checkout_rejects_unknown_payment_method():
    ctl, _ = new_store()
    p = add(ctl, "Mug", "1")
    ctl.add_to_cart(p)
    with pytest.raises(InputError):
        ctl.checkout("bitcoin")
    assert len(ctl.cart_items()) == 1


def test_notification_auto_dismisses_and_newer_message_wins():
    ctl, timers = new_store()
    ctl.checkout("apple-pay")
    first = timers[-1]
    ctl.checkout("debit-card")
    second = timers[-1]
    assert first.cancelled
    first.fire()
    assert "Debit Card" in ctl.notification
    second.fire()
    assert ctl.notification is None


def test_logout_cancels_notification_timer():
    ctl, timers = new_store()
    ctl.checkout("paypal")
    ctl.logout()
    assert timers[-1].cancelled
    assert ctl.notification is None


def test_half_cent_rounds_up_in_totals_and_message():
    cart = CartStore([CartItem(id="1", name="A", price=Decimal("0.125"), quantity=1)])
    assert f"{cart.compute_totals().total_price:.2f}" == "0.13"
    assert cart.items[0].line_total == Decimal("0.13")

    ctl, _ = new_store()
    p = add(ctl, "Sticker", "0.125")
    ctl.add_to_cart(p)
    assert ctl.checkout("paypal").message.endswith("Total: $0.13")


def test_checkout_details_require_name_email_and_address():
    details = build_draft(CheckoutDetails, payment_method="paypal", full_name="Ann Lee",
                          email="ann@x.io", address=" 1 Main St ")
    assert details.address == "1 Main St"
    with pytest.raises(InputError, match="Please fill in all fields"):
        build_draft(CheckoutDetails, full_name="Ann Lee", email="ann@x.io", address="  ")
    with pytest.raises(InputError, match="Unknown payment method"):
        build_draft(CheckoutDetails, payment_method="cash", full_name="A", email="a@x.io", address="X")
