# marketplace/stores.py
import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, List, Optional

from .core import ALL_CATEGORIES, ProductDraft, _make_product
from .errors import NotFoundError
from .models import CENTS, CartItem, CartTotals, Product


class CatalogStore:
    """
    Ordered product catalog. Insertion order is display order.
    Ids come from a nanosecond clock and are bumped past the last issued
    id, so they stay unique even when two products land in the same tick.
    """

    def __init__(self, products: Optional[List[Product]] = None, clock: Callable[[], int] = time.time_ns):
        self._products: List[Product] = list(products or [])
        self._clock = clock
        self._last_id = max((int(p.id) for p in self._products if p.id.isascii() and p.id.isdigit()), default=0)

    @property
    def products(self) -> List[Product]:
        return list(self._products)

    def __len__(self) -> int:
        return len(self._products)

    def _next_id(self) -> str:
        self._last_id = max(self._clock(), self._last_id + 1)
        return str(self._last_id)

    def _index(self, product_id: str) -> int:
        for i, p in enumerate(self._products):
            if p.id == product_id:
                return i
        return -1

    def get(self, product_id: str) -> Product:
        i = self._index(product_id)
        if i < 0:
            raise NotFoundError(f"product not found: {product_id}")
        return self._products[i]

    def add(self, draft: ProductDraft) -> Product:
        product = _make_product(self._next_id(), draft)
        self._products.append(product)
        return product

    def update(self, product_id: str, draft: ProductDraft) -> Product:
        i = self._index(product_id)
        if i < 0:
            raise NotFoundError(f"product not found: {product_id}")
        product = _make_product(product_id, draft)
        self._products[i] = product
        return product

    def delete(self, product_id: str) -> bool:
        i = self._index(product_id)
        if i < 0:
            return False
        del self._products[i]
        return True

    def filter_by_category(self, category: str = ALL_CATEGORIES) -> List[Product]:
        if category == ALL_CATEGORIES:
            return list(self._products)
        return [p for p in self._products if p.category == category]

    def clear(self) -> None:
        self._products.clear()


class CartStore:
    """Ordered cart, one entry per product id, quantities always >= 1."""

    def __init__(self, items: Optional[List[CartItem]] = None):
        self._items: List[CartItem] = []
        for item in items or []:
            self._merge(item)

    @property
    def items(self) -> List[CartItem]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def _find(self, product_id: str) -> Optional[CartItem]:
        for item in self._items:
            if item.id == product_id:
                return item
        return None

    def _merge(self, item: CartItem) -> None:
        existing = self._find(item.id)
        if existing:
            existing.quantity += item.quantity
        else:
            self._items.append(item.model_copy())

    def add(self, product: Product) -> CartItem:
        existing = self._find(product.id)
        if existing:
            existing.quantity += 1
            return existing
        item = CartItem(**product.model_dump(), quantity=1)
        self._items.append(item)
        return item

    def remove(self, product_id: str) -> bool:
        before = len(self._items)
        self._items = [i for i in self._items if i.id != product_id]
        return len(self._items) != before

    def set_quantity(self, product_id: str, quantity: int) -> bool:
        if quantity <= 0:
            return self.remove(product_id)
        item = self._find(product_id)
        if not item:
            return False
        item.quantity = quantity
        return True

    def compute_totals(self) -> CartTotals:
        total = sum((i.price * i.quantity for i in self._items), Decimal("0.00"))
        count = sum(i.quantity for i in self._items)
        return CartTotals(total_price=total.quantize(CENTS, rounding=ROUND_HALF_UP), item_count=count)

    def clear(self) -> None:
        self._items.clear()
