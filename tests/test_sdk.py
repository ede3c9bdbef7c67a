# tests/test_sdk.py
import httpx
import pytest
from fastapi.testclient import TestClient

from marketplace.controller import StorefrontController
from marketplace.database import DurableState, MemoryStorage
from marketplace.main import create_app
from sdk.marketclient import MarketClient

app = create_app(StorefrontController(DurableState(MemoryStorage())))
c = MarketClient(base_url="http://testserver", session=TestClient(app))

def test_sdk_walkthrough():
    c.reset()
    assert c.signup("erin", "erin@example.com", "pw", "pw")["username"] == "erin"

    mug = c.add_product("Mug", "9.99", "☕", "other")["product_id"]
    c.add_to_cart(mug)
    cart = c.view_cart()
    assert cart["total_price"] == "9.99"

    confirmation = c.checkout("paypal")
    assert "PayPal" in confirmation["message"]
    assert "9.99" in confirmation["message"]
    assert c.view_cart()["items"] == []
    assert c.notification() == confirmation["message"]

    c.logout()
    assert c.session_info()["logged_in"] is False

def test_sdk_surfaces_http_errors():
    c.reset()
    with pytest.raises(httpx.HTTPStatusError):
        c.login("", "")
