# marketplace/controller.py
from typing import Any, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel

from .core import (
    ALL_CATEGORIES, LoginCredentials, ProductDraft, SignupCredentials,
    build_draft, payment_label
)
from .database import DurableState
from .log import get_logger
from .models import CartItem, CartTotals, Confirmation, Product, SaveResult
from .notifications import Notifier
from .session import SessionGate
from .stores import CartStore, CatalogStore

logger = get_logger(__name__)

D = TypeVar("D", bound=BaseModel)

PRODUCTS = "products"
CART = "cart"


def _coerce(model_cls: Type[D], value: Union[D, Mapping[str, Any]]) -> D:
    if isinstance(value, model_cls):
        return value
    return build_draft(model_cls, **dict(value))


class StorefrontController:
    """
    Owns the session, the catalog and the cart. Every UI surface (HTTP
    API, CLI) goes through this object; nothing else mutates the stores.

    Each successful mutation ends with an explicit save of the slot it
    touched, and the outcome is kept in ``last_save``.
    """

    def __init__(self, storage: DurableState, notifier: Optional[Notifier] = None):
        self.storage = storage
        self.notifier = notifier or Notifier()
        self.session = SessionGate()
        self.catalog = CatalogStore()
        self.cart = CartStore()
        self.last_save: Optional[SaveResult] = None

    # ---------------------------
    # Startup / persistence
    # ---------------------------
    def load(self) -> None:
        username = self.storage.load_session()
        if not username:
            logger.info("No stored session")
            return
        self.session.enter(username)
        self.catalog = CatalogStore(self.storage.load_products())
        self.cart = CartStore(self.storage.load_cart())
        logger.info(
            f"Restored session for {username}: "
            f"{len(self.catalog)} products, {len(self.cart)} cart items"
        )

    def save(self, *slots: str) -> SaveResult:
        if not self.session.logged_in:
            result = SaveResult(ok=False, error="no active session")
        else:
            slots = slots or (PRODUCTS, CART)
            keys: List[str] = []
            result = SaveResult(ok=True)
            for slot in slots:
                if slot == PRODUCTS:
                    r = self.storage.save_products(self.catalog.products)
                elif slot == CART:
                    r = self.storage.save_cart(self.cart.items)
                else:
                    raise ValueError(f"unknown storage slot: {slot}")
                keys.extend(r.keys)
                if not r.ok:
                    result = SaveResult(ok=False, error=r.error)
            result.keys = keys
        self.last_save = result
        return result

    # ---------------------------
    # Session
    # ---------------------------
    @property
    def username(self) -> Optional[str]:
        return self.session.username

    def login(self, credentials: Union[LoginCredentials, Mapping[str, Any]]) -> str:
        creds = _coerce(LoginCredentials, credentials)
        return self._enter(creds.username)

    def signup(self, credentials: Union[SignupCredentials, Mapping[str, Any]]) -> str:
        creds = _coerce(SignupCredentials, credentials)
        return self._enter(creds.username)

    def _enter(self, username: str) -> str:
        if self.session.logged_in and self.session.username != username:
            self.logout()
        self.session.enter(username)
        self.last_save = self.storage.save_session(username)
        logger.info(f"Logged in as {username}")
        return username

    def logout(self) -> SaveResult:
        username = self.session.username
        self.notifier.cancel()
        self.session.leave()
        self.catalog.clear()
        self.cart.clear()
        self.last_save = self.storage.clear()
        logger.info(f"Logged out {username or '(nobody)'}; catalog and cart cleared")
        return self.last_save

    def close(self) -> None:
        self.notifier.cancel()

    # ---------------------------
    # Catalog
    # ---------------------------
    def list_products(self, category: str = ALL_CATEGORIES) -> List[Product]:
        self.session.require()
        return self.catalog.filter_by_category(category)

    def get_product(self, product_id: str) -> Product:
        self.session.require()
        return self.catalog.get(product_id)

    def add_product(self, draft: Union[ProductDraft, Mapping[str, Any]]) -> Product:
        self.session.require()
        draft = _coerce(ProductDraft, draft)
        product = self.catalog.add(draft)
        logger.info(f"Added product {product.id} ({product.name})")
        self.save(PRODUCTS)
        return product

    def update_product(self, product_id: str, draft: Union[ProductDraft, Mapping[str, Any]]) -> Product:
        self.session.require()
        draft = _coerce(ProductDraft, draft)
        product = self.catalog.update(product_id, draft)
        logger.info(f"Updated product {product_id}")
        self.save(PRODUCTS)
        return product

    def delete_product(self, product_id: str) -> bool:
        self.session.require()
        removed = self.catalog.delete(product_id)
        if removed:
            logger.info(f"Deleted product {product_id}")
            self.save(PRODUCTS)
        return removed

    # ---------------------------
    # Cart
    # ---------------------------
    def add_to_cart(self, product: Union[Product, str]) -> CartItem:
        self.session.require()
        if isinstance(product, str):
            product = self.catalog.get(product)
        item = self.cart.add(product)
        logger.info(f"Cart: {product.id} x{item.quantity}")
        self.save(CART)
        return item

    def remove_from_cart(self, product_id: str) -> bool:
        self.session.require()
        removed = self.cart.remove(product_id)
        if removed:
            self.save(CART)
        return removed

    def set_quantity(self, product_id: str, quantity: int) -> bool:
        self.session.require()
        changed = self.cart.set_quantity(product_id, quantity)
        if changed:
            self.save(CART)
        return changed

    def cart_items(self) -> List[CartItem]:
        self.session.require()
        return self.cart.items

    def compute_totals(self) -> CartTotals:
        self.session.require()
        return self.cart.compute_totals()

    def checkout(self, payment_method: str = "credit-card") -> Confirmation:
        self.session.require()
        label = payment_label(payment_method)
        total = self.cart.compute_totals().total_price
        message = f"Order placed successfully with {label}! Total: ${total:.2f}"
        self.cart.clear()
        self.save(CART)
        self.notifier.show(message)
        logger.info(f"Checkout by {self.session.username}: {label}, ${total:.2f}")
        return Confirmation(message=message, payment_method=payment_method, total_price=total)

    @property
    def notification(self) -> Optional[str]:
        return self.notifier.message

    def dismiss_notification(self) -> None:
        self.notifier.dismiss()
