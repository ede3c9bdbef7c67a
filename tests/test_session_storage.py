# tests/test_session_storage.py
import json

import pytest

from marketplace.controller import StorefrontController
from marketplace.core import LoginCredentials, SignupCredentials, build_draft
from marketplace.database import DurableState, FileStorage, MemoryStorage
from marketplace.errors import InputError


def new_store(backend=None):
    return StorefrontController(DurableState(backend if backend is not None else MemoryStorage()))


class BrokenStorage(MemoryStorage):
    def set_item(self, key, value):
        raise OSError("disk full")


def test_login_requires_both_fields():
    ctl = new_store()
    with pytest.raises(InputError, match="Please fill in all fields"):
        ctl.login({"username": "alice", "password": ""})
    assert not ctl.session.logged_in


def test_signup_password_mismatch_reported_first():
    # mismatch wins even when other fields are empty
    with pytest.raises(InputError, match="Passwords do not match"):
        build_draft(SignupCredentials, username="", email="", password="a", confirm="b")
    with pytest.raises(InputError, match="Please fill in all fields"):
        build_draft(SignupCredentials, username="bob", email="", password="a", confirm="a")


def test_signup_enters_session_and_persists_username():
    backend = MemoryStorage()
    ctl = new_store(backend)
    ctl.signup({"username": "bob", "email": "b@x.io", "password": "pw", "confirm": "pw"})
    assert ctl.username == "bob"
    assert ctl.session.user_initial == "B"
    assert backend.get_item("marketplace_auth") == "bob"


def test_logout_clears_everything_and_next_user_starts_empty():
    backend = MemoryStorage()
    ctl = new_store(backend)
    ctl.login(LoginCredentials(username="alice", password="pw"))
    p = ctl.add_product({"name": "Mug", "price": "9.99"})
    ctl.add_to_cart(p)

    ctl.logout()
    assert ctl.username is None
    assert len(ctl.catalog) == 0
    assert len(ctl.cart) == 0
    assert backend.keys() == []

    ctl.login({"username": "carol", "password": "pw"})
    assert ctl.list_products() == []
    assert ctl.cart_items() == []

    # a fresh process sees the same
    again = new_store(backend)
    again.load()
    assert again.username == "carol"
    assert again.list_products() == []


def test_session_restored_from_storage():
    backend = MemoryStorage()
    ctl = new_store(backend)
    ctl.login({"username": "alice", "password": "pw"})
    p = ctl.add_product({"name": "Mug", "price": "9.99", "category": "other"})
    ctl.add_to_cart(p)
    ctl.add_to_cart(p)

    restored = new_store(backend)
    restored.load()
    assert restored.username == "alice"
    assert [x.name for x in restored.list_products()] == ["Mug"]
    assert restored.cart_items()[0].quantity == 2
    assert str(restored.compute_totals().total_price) == "19.98"


def test_prices_stored_as_decimal_strings():
    backend = MemoryStorage()
    ctl = new_store(backend)
    ctl.login({"username": "alice", "password": "pw"})
    ctl.add_product({"name": "Mug", "price": "9.99"})
    stored = json.loads(backend.get_item("marketplace_products"))
    assert stored[0]["price"] == "9.99"
    assert stored[0]["name"] == "Mug"


def test_numeric_prices_accepted_on_load():
    backend = MemoryStorage({
        "marketplace_auth": "alice",
        "marketplace_products": json.dumps([{"id": "1", "name": "Mug", "price": 9.99, "emoji": "☕",
                                             "category": "other", "description": ""}]),
    })
    ctl = new_store(backend)
    ctl.load()
    assert ctl.list_products()[0].name == "Mug"


@pytest.mark.parametrize("raw", ["{not json", "[{\"id\": 1}]", "{}", "null"])
def test_malformed_storage_loads_as_empty(raw):
    backend = MemoryStorage({"marketplace_auth": "alice", "marketplace_products": raw, "marketplace_cart": raw})
    ctl = new_store(backend)
    ctl.load()
    assert ctl.username == "alice"
    assert ctl.list_products() == []
    assert ctl.cart_items() == []


def test_stored_cart_with_zero_quantity_is_discarded():
    raw = json.dumps([{"id": "1", "name": "x", "price": "1", "quantity": 0}])
    backend = MemoryStorage({"marketplace_auth": "alice", "marketplace_cart": raw})
    ctl = new_store(backend)
    ctl.load()
    assert ctl.cart_items() == []


def test_no_session_means_nothing_loaded_or_saved():
    backend = MemoryStorage({"marketplace_products": "[]"})
    ctl = new_store(backend)
    ctl.load()
    assert not ctl.session.logged_in
    result = ctl.save()
    assert result.ok is False


def test_save_failure_is_reported_not_raised():
    ctl = new_store(MemoryStorage())
    ctl.login({"username": "alice", "password": "pw"})
    ctl.storage.backend = BrokenStorage()
    product = ctl.add_product({"name": "Mug", "price": "1"})
    assert ctl.last_save.ok is False
    assert "disk full" in ctl.last_save.error
    # the in-memory write still happened
    assert ctl.get_product(product.id).name == "Mug"


def test_file_storage_survives_reopen(tmp_path):
    path = tmp_path / "nested" / "storage.json"
    ctl = new_store(FileStorage(str(path)))
    ctl.login({"username": "alice", "password": "pw"})
    ctl.add_product({"name": "Boots", "price": "80", "category": "shoes", "emoji": "👟"})

    reopened = new_store(FileStorage(str(path)))
    reopened.load()
    assert reopened.list_products("shoes")[0].emoji == "👟"

    reopened.logout()
    assert json.loads(path.read_text(encoding="utf-8")) == {}


def test_file_storage_ignores_garbage(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("not json at all", encoding="utf-8")
    storage = FileStorage(str(path))
    assert storage.keys() == []


def test_custom_namespace():
    backend = MemoryStorage()
    ctl = StorefrontController(DurableState(backend, namespace="shop"))
    ctl.login({"username": "alice", "password": "pw"})
    assert backend.get_item("shop_auth") == "alice"


def test_non_ascii_digit_ids_load_and_new_ids_stay_unique():
    raw = json.dumps([{"id": "²", "name": "Mug", "price": "1", "category": "other"}])
    backend = MemoryStorage({"marketplace_auth": "alice", "marketplace_products": raw})
    ctl = new_store(backend)
    ctl.load()
    assert [p.id for p in ctl.list_products()] == ["²"]
    added = ctl.add_product({"name": "Cup", "price": "2"})
    assert added.id != "²"
    assert len(ctl.list_products()) == 2


def test_usernames_are_stripped():
    backend = MemoryStorage()
    ctl = new_store(backend)
    ctl.login({"username": " alice ", "password": "pw"})
    assert ctl.username == "alice"
    assert backend.get_item("marketplace_auth") == "alice"
    creds = build_draft(SignupCredentials, username=" bob", email=" b@x.io ", password="a", confirm="a")
    assert creds.username == "bob"
    assert creds.email == "b@x.io"
