# marketplace/database.py
import json
import os
import tempfile
from typing import Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from .log import get_logger
from .models import CartItem, CartItemList, Product, ProductList, SaveResult

logger = get_logger(__name__)

# Device-local key/value backends. Values are always strings, keys are
# written and read wholesale, like a browser's localStorage.


class MemoryStorage:
    def __init__(self, data: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(data or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data)


class FileStorage(MemoryStorage):
    """
    Key/value storage persisted as a single JSON object file.
    The file is rewritten atomically after every change. A missing or
    unreadable file starts out empty.
    """

    def __init__(self, path: str):
        self.path = path
        super().__init__(self._read())

    def _read(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, encoding="utf-8") as fh:
                raw = json.load(fh)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable storage file {self.path}: {e}")
            return {}
        if not isinstance(raw, dict):
            logger.warning(f"Ignoring storage file {self.path}: not a JSON object")
            return {}
        return {k: v for k, v in raw.items() if isinstance(v, str)}

    def _flush(self) -> None:
        folder = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(folder, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=folder, prefix=".storage-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(self._data, fh, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def set_item(self, key: str, value: str) -> None:
        super().set_item(key, value)
        self._flush()

    def remove_item(self, key: str) -> None:
        super().remove_item(key)
        self._flush()


class DurableState:
    """The three namespaced slots: session identity, catalog and cart."""

    def __init__(self, backend: MemoryStorage, namespace: str = "marketplace"):
        self.backend = backend
        self.auth_key = f"{namespace}_auth"
        self.products_key = f"{namespace}_products"
        self.cart_key = f"{namespace}_cart"

    # reads: absent or malformed values mean "no data"
    def load_session(self) -> Optional[str]:
        return self.backend.get_item(self.auth_key) or None

    def load_products(self) -> List[Product]:
        return self._load(self.products_key, ProductList)

    def load_cart(self) -> List[CartItem]:
        return self._load(self.cart_key, CartItemList)

    def _load(self, key: str, adapter: TypeAdapter) -> list:
        raw = self.backend.get_item(key)
        if not raw:
            return []
        try:
            return adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Discarding malformed {key}: {e.error_count()} error(s)")
            return []

    # writes
    def save_session(self, username: str) -> SaveResult:
        return self._write({self.auth_key: username})

    def save_products(self, products: List[Product]) -> SaveResult:
        return self._write({self.products_key: ProductList.dump_json(products).decode()})

    def save_cart(self, items: List[CartItem]) -> SaveResult:
        return self._write({self.cart_key: CartItemList.dump_json(items).decode()})

    def clear(self) -> SaveResult:
        keys = [self.auth_key, self.products_key, self.cart_key]
        try:
            for key in keys:
                self.backend.remove_item(key)
        except OSError as e:
            logger.warning(f"Failed to clear durable storage: {e}")
            return SaveResult(ok=False, keys=keys, error=str(e))
        return SaveResult(ok=True, keys=keys)

    def _write(self, values: Dict[str, str]) -> SaveResult:
        keys = list(values)
        try:
            for key, value in values.items():
                self.backend.set_item(key, value)
        except OSError as e:
            logger.warning(f"Failed to persist {', '.join(keys)}: {e}")
            return SaveResult(ok=False, keys=keys, error=str(e))
        return SaveResult(ok=True, keys=keys)
