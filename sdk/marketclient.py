# sdk/marketclient.py
import requests
from typing import Any, Dict, List, Optional


class MarketClient:
    def __init__(self, base_url: str = "http://localhost:8085", timeout: int = 10, session: Optional[Any] = None):
        self.base_url = base_url.rstrip("/")
        # anything with requests' get/post/put/delete signature works here
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout

    def _call(self, method: str, path: str, **kwargs) -> Any:
        r = self.session.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
        r.raise_for_status()
        return r.json()

    def reset(self):
        return self._call("POST", "/reset")

    # Auth
    def login(self, username: str, password: str) -> Dict[str, Any]:
        return self._call("POST", "/auth/login", json={"username": username, "password": password})

    def signup(self, username: str, email: str, password: str, confirm: str) -> Dict[str, Any]:
        return self._call("POST", "/auth/signup", json={
            "username": username, "email": email, "password": password, "confirm": confirm
        })

    def logout(self) -> Dict[str, Any]:
        return self._call("POST", "/auth/logout")

    def session_info(self) -> Dict[str, Any]:
        return self._call("GET", "/auth/session")

    # Products
    def list_products(self, category: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {}
        if category:
            params["category"] = category
        return self._call("GET", "/products", params=params)

    def list_categories(self) -> List[Dict[str, str]]:
        return self._call("GET", "/products/categories")

    def get_product(self, product_id: str) -> Dict[str, Any]:
        return self._call("GET", f"/products/{product_id}")

    def add_product(self, name: str, price: str, emoji: str = "📱",
                    category: str = "electronics", description: str = "") -> Dict[str, Any]:
        return self._call("POST", "/products", json={
            "name": name, "price": str(price), "emoji": emoji,
            "category": category, "description": description,
        })

    def update_product(self, product_id: str, name: str, price: str, emoji: str = "📱",
                       category: str = "electronics", description: str = "") -> Dict[str, Any]:
        return self._call("PUT", f"/products/{product_id}", json={
            "name": name, "price": str(price), "emoji": emoji,
            "category": category, "description": description,
        })

    def delete_product(self, product_id: str) -> Dict[str, Any]:
        return self._call("DELETE", f"/products/{product_id}")

    # Cart
    def view_cart(self) -> Dict[str, Any]:
        return self._call("GET", "/cart")

    def add_to_cart(self, product_id: str) -> Dict[str, Any]:
        return self._call("POST", "/cart/add", json={"product_id": product_id})

    def remove_from_cart(self, product_id: str) -> Dict[str, Any]:
        return self._call("POST", "/cart/remove", json={"product_id": product_id})

    def set_quantity(self, product_id: str, quantity: int) -> Dict[str, Any]:
        return self._call("POST", "/cart/quantity", json={"product_id": product_id, "quantity": quantity})

    def checkout(self, payment_method: str = "credit-card") -> Dict[str, Any]:
        return self._call("POST", "/cart/checkout", json={"payment_method": payment_method})

    # Notification
    def notification(self) -> Optional[str]:
        return self._call("GET", "/notification")["message"]

    def dismiss_notification(self) -> Dict[str, Any]:
        return self._call("POST", "/notification/dismiss")
