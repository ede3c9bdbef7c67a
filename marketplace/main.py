# marketplace/main.py
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Union

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from . import settings
from .controller import StorefrontController
from .core import ALL_CATEGORIES, CATEGORY_FILTERS, EMOJIS
from .database import DurableState, FileStorage
from .errors import InputError, NotFoundError, NotLoggedInError
from .log import setup_logging
from .notifications import Notifier


# ---------------------------
# Request schemas (validated for real by the controller's drafts)
# ---------------------------
class ProductIn(BaseModel):
    name: str = ""
    price: Union[str, float] = ""
    emoji: str = EMOJIS[0]
    category: str = "electronics"
    description: str = ""


class LoginIn(BaseModel):
    username: str = ""
    password: str = ""


class SignupIn(BaseModel):
    username: str = ""
    email: str = ""
    password: str = ""
    confirm: str = ""


class CartProductIn(BaseModel):
    product_id: str


class QuantityIn(BaseModel):
    product_id: str
    quantity: int


class CheckoutIn(BaseModel):
    payment_method: str = "credit-card"


# ---------------------------
# Helpers
# ---------------------------
def _cart_view(ctl: StorefrontController) -> Dict[str, Any]:
    totals = ctl.compute_totals()
    items = []
    for it in ctl.cart_items():
        row = it.model_dump(mode="json")
        row["line_total"] = f"{it.line_total:.2f}"
        items.append(row)
    return {
        "username": ctl.username,
        "items": items,
        "total_price": f"{totals.total_price:.2f}",
        "item_count": totals.item_count,
    }


def _session_view(ctl: StorefrontController) -> Dict[str, Any]:
    return {
        "logged_in": ctl.session.logged_in,
        "username": ctl.username,
        "initial": ctl.session.user_initial,
    }


def default_controller() -> StorefrontController:
    storage = DurableState(FileStorage(settings.STORAGE_PATH), namespace=settings.NAMESPACE)
    ctl = StorefrontController(storage, Notifier(settings.NOTIFICATION_SECONDS))
    ctl.load()
    return ctl


def create_app(controller: Optional[StorefrontController] = None) -> FastAPI:
    setup_logging()
    ctl = controller or default_controller()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        ctl.close()

    app = FastAPI(title="open-marketplace (local storefront)", lifespan=lifespan)
    app.state.controller = ctl

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(InputError)
    async def _input_error(request: Request, exc: InputError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(NotLoggedInError)
    async def _not_logged_in(request: Request, exc: NotLoggedInError):
        return JSONResponse(status_code=401, content={"detail": str(exc)})

    # ---------------------------
    # Auth endpoints
    # ---------------------------
    @app.post("/auth/login")
    async def login(payload: LoginIn):
        ctl.login(payload.model_dump())
        return _session_view(ctl)

    @app.post("/auth/signup")
    async def signup(payload: SignupIn):
        ctl.signup(payload.model_dump())
        return _session_view(ctl)

    @app.post("/auth/logout")
    async def logout():
        result = ctl.logout()
        return {**_session_view(ctl), "saved": result.ok}

    @app.get("/auth/session")
    async def session():
        return _session_view(ctl)

    # ---------------------------
    # Product endpoints
    # ---------------------------
    @app.get("/products")
    async def list_products(category: str = ALL_CATEGORIES):
        return [p.model_dump(mode="json") for p in ctl.list_products(category)]

    @app.get("/products/categories")
    async def list_categories() -> List[Dict[str, str]]:
        return [{"value": v, "label": label} for v, label in CATEGORY_FILTERS]

    @app.get("/products/{product_id}")
    async def get_product(product_id: str):
        return ctl.get_product(product_id).model_dump(mode="json")

    @app.post("/products", status_code=201)
    async def add_product(payload: ProductIn):
        product = ctl.add_product(payload.model_dump())
        return {"product_id": product.id, "product": product.model_dump(mode="json"), "saved": ctl.last_save.ok}

    @app.put("/products/{product_id}")
    async def update_product(product_id: str, payload: ProductIn):
        product = ctl.update_product(product_id, payload.model_dump())
        return {"product_id": product.id, "product": product.model_dump(mode="json"), "saved": ctl.last_save.ok}

    @app.delete("/products/{product_id}")
    async def delete_product(product_id: str):
        return {"product_id": product_id, "deleted": ctl.delete_product(product_id)}

    # ---------------------------
    # Cart endpoints
    # ---------------------------
    @app.get("/cart")
    async def view_cart():
        return _cart_view(ctl)

    @app.post("/cart/add")
    async def cart_add(payload: CartProductIn):
        ctl.add_to_cart(payload.product_id)
        return _cart_view(ctl)

    @app.post("/cart/remove")
    async def cart_remove(payload: CartProductIn):
        ctl.remove_from_cart(payload.product_id)
        return _cart_view(ctl)

    @app.post("/cart/quantity")
    async def cart_quantity(payload: QuantityIn):
        ctl.set_quantity(payload.product_id, payload.quantity)
        return _cart_view(ctl)

    @app.post("/cart/checkout")
    async def cart_checkout(payload: CheckoutIn):
        confirmation = ctl.checkout(payload.payment_method)
        return confirmation.model_dump(mode="json")

    # ---------------------------
    # Notification
    # ---------------------------
    @app.get("/notification")
    async def notification():
        return {"message": ctl.notification}

    @app.post("/notification/dismiss")
    async def dismiss_notification():
        ctl.dismiss_notification()
        return {"message": None}

    # ---------------------------
    # Utility: reset (for tests/demo)
    # ---------------------------
    @app.post("/reset")
    async def reset_all():
        ctl.logout()
        return {"status": "reset"}

    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("marketplace.main:create_app", factory=True, host="127.0.0.1", port=8085)
