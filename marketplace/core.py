# marketplace/core.py
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Type, TypeVar

from pydantic import BaseModel, ValidationError, field_validator, model_validator

from .errors import InputError
from .models import Category, Product

EMOJIS = ("📱", "💻", "👕", "👗", "👟", "🍔", "🍕", "☕", "💎")

CATEGORY_FILTERS = (
    ("all", "All Items"),
    ("electronics", "🔌 Electronics"),
    ("clothing", "👕 Clothing"),
    ("food", "🍔 Food"),
    ("shoes", "👟 Shoes"),
    ("accessories", "💎 Accessories"),
    ("other", "📦 Other"),
)
ALL_CATEGORIES = "all"

PAYMENT_METHODS: Dict[str, str] = {
    "credit-card": "Credit Card",
    "debit-card": "Debit Card",
    "paypal": "PayPal",
    "apple-pay": "Apple Pay",
}

FILL_ALL_FIELDS = "Please fill in all fields"
PASSWORDS_MISMATCH = "Passwords do not match"

D = TypeVar("D", bound=BaseModel)


# ---------------------------
# Form drafts
# ---------------------------
class ProductDraft(BaseModel):
    name: str = ""
    price: str = ""
    emoji: str = EMOJIS[0]
    category: Category = "electronics"
    description: str = ""

    @field_validator("name")
    @classmethod
    def _name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError(FILL_ALL_FIELDS)
        return v

    @field_validator("price", mode="before")
    @classmethod
    def _price_as_text(cls, v: Any) -> Any:
        if isinstance(v, (int, float, Decimal)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("price")
    @classmethod
    def _price_numeric(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError(FILL_ALL_FIELDS)
        try:
            value = Decimal(v)
        except InvalidOperation:
            raise ValueError("Price must be a number")
        if not value.is_finite():
            raise ValueError("Price must be a number")
        if value < 0:
            raise ValueError("Price must not be negative")
        return v

    @field_validator("emoji")
    @classmethod
    def _known_emoji(cls, v: str) -> str:
        if v not in EMOJIS:
            raise ValueError(f"Unsupported emoji: {v}")
        return v

    @property
    def price_value(self) -> Decimal:
        return Decimal(self.price)


class LoginCredentials(BaseModel):
    username: str = ""
    password: str = ""

    @field_validator("username")
    @classmethod
    def _strip_username(cls, v: str) -> str:
        return v.strip()

    @model_validator(mode="after")
    def _all_fields(self):
        if not self.username.strip() or not self.password:
            raise ValueError(FILL_ALL_FIELDS)
        return self


class SignupCredentials(BaseModel):
    username: str = ""
    email: str = ""
    password: str = ""
    confirm: str = ""

    @field_validator("username", "email")
    @classmethod
    def _strip(cls, v: str) -> str:
        return v.strip()

    @model_validator(mode="after")
    def _passwords_then_fields(self):
        # mismatch is reported before the empty-field check
        if self.password != self.confirm:
            raise ValueError(PASSWORDS_MISMATCH)
        if not self.username.strip() or not self.email.strip() or not self.password:
            raise ValueError(FILL_ALL_FIELDS)
        return self


class CheckoutDetails(BaseModel):
    payment_method: str = "credit-card"
    full_name: str = ""
    email: str = ""
    address: str = ""

    @field_validator("full_name", "email", "address")
    @classmethod
    def _required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError(FILL_ALL_FIELDS)
        return v

    @field_validator("payment_method")
    @classmethod
    def _known_method(cls, v: str) -> str:
        if v not in PAYMENT_METHODS:
            raise ValueError(f"Unknown payment method: {v}")
        return v


# ---------------------------
# Helpers
# ---------------------------
def _first_message(exc: ValidationError) -> str:
    err = exc.errors()[0]
    cause = (err.get("ctx") or {}).get("error")
    if cause is not None:
        return str(cause)
    loc = ".".join(str(p) for p in err.get("loc", ()))
    return f"{loc}: {err['msg']}" if loc else err["msg"]


def build_draft(model_cls: Type[D], **fields: Any) -> D:
    """Validate raw form input into a draft, raising InputError on the first problem."""
    try:
        return model_cls(**fields)
    except ValidationError as exc:
        raise InputError(_first_message(exc)) from exc


def draft_from_product(product: Product) -> ProductDraft:
    return ProductDraft(
        name=product.name,
        price=str(product.price),
        emoji=product.emoji,
        category=product.category,
        description=product.description,
    )


def _make_product(product_id: str, draft: ProductDraft) -> Product:
    return Product(
        id=product_id,
        name=draft.name,
        price=draft.price_value,
        emoji=draft.emoji,
        category=draft.category,
        description=draft.description,
    )


def payment_label(method: str) -> str:
    try:
        return PAYMENT_METHODS[method]
    except KeyError:
        raise InputError(f"Unknown payment method: {method}") from None
