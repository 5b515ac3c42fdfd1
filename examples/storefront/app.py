"""Storefront: a cookie shop with services, shared middleware, and nested controllers.

Demonstrates:
- Services wired together by key (items -> pricing -> carts)
- Async and sync middleware shared between controllers
- A compound ``ApiController`` next to a catch-all ``AppController``
- Public files served by ``static_files`` under ``/public``

Run:
    arbor run examples.storefront.app:server
"""

import json
import secrets
from pathlib import Path

from arbor import (
    AsyncMiddleware,
    CompoundController,
    HTTPError,
    MethodDispatcher,
    Middleware,
    Server,
    ServerConfig,
    Service,
    SimpleController,
    static_files,
)

PUBLIC_DIR = Path(__file__).parent / "public"

COLLECTION_SIZES = {"single": 1, "halfDozen": 6, "dozen": 12}


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


class ItemService(Service):
    def initialize(self) -> None:
        self.items = {
            1: {"id": 1, "name": "Chocolate Chip", "price": 2.0},
            2: {"id": 2, "name": "Oatmeal Raisin", "price": 1.5},
        }

    def get(self, item_id: int) -> dict | None:
        return self.items.get(item_id)


class PricingService(Service):
    inject = ("item_service",)

    def total(self, entries: list[dict]) -> float:
        total = 0.0
        for entry in entries:
            item = self.item_service.get(entry["item_id"])
            if item is None:
                raise HTTPError(status=400, detail=f"Unknown item {entry['item_id']}")
            size = COLLECTION_SIZES.get(entry.get("collection", "single"))
            if size is None:
                raise HTTPError(status=400, detail=f"Invalid collection {entry['collection']!r}")
            total += item["price"] * size * entry["quantity"]
        return round(total, 2)


class UserService(Service):
    def initialize(self) -> None:
        self.users = {
            "ada": {"id": "ada", "admin": True},
            "bob": {"id": "bob", "admin": False},
        }

    def get(self, user_id: str) -> dict | None:
        return self.users.get(user_id)


class AuthService(Service):
    def initialize(self) -> None:
        self.tokens: dict[str, str] = {}

    def issue(self, user_id: str) -> str:
        token = secrets.token_urlsafe(16)
        self.tokens[token] = user_id
        return token

    def verify(self, token: str) -> str | None:
        return self.tokens.get(token)


class CartService(Service):
    inject = ("pricing_service",)

    def initialize(self) -> None:
        self.carts: dict[str, dict] = {}
        self.orders: list[dict] = []

    def get(self, user_id: str) -> dict:
        return self.carts.setdefault(user_id, {"items": [], "total": 0.0})

    def update(self, user_id: str, entries: list[dict]) -> dict:
        cart = {"items": entries, "total": self.pricing_service.total(entries)}
        self.carts[user_id] = cart
        return cart

    def purchase(self, user_id: str) -> dict:
        cart = self.get(user_id)
        if not cart["items"]:
            raise HTTPError(status=409, detail="Cart is empty")
        order = {"id": len(self.orders) + 1, "user": user_id, **cart}
        self.orders.append(order)
        self.carts[user_id] = {"items": [], "total": 0.0}
        return order


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------


class Authenticate(AsyncMiddleware):
    """Attach ``request.state.user`` when the token cookie is valid."""

    inject = ("auth_service", "user_service")

    async def run(self, request, response, proceed) -> None:
        request.state.user = None
        token = request.cookies.get("token")
        if token:
            user_id = self.auth_service.verify(token)
            if user_id is None:
                response.clear_cookie("token")
            else:
                request.state.user = self.user_service.get(user_id)
        proceed()


class RequireUser(Middleware):
    def run(self, request, response, proceed) -> None:
        if request.state.user is None:
            response.status(403).text("Authentication required")
            return
        proceed()


class RequireAdmin(Middleware):
    def run(self, request, response, proceed) -> None:
        if not request.state.user["admin"]:
            response.status(403).text("Access denied")
            return
        proceed()


class HideIndex(Middleware):
    """Send ``/public/index.html`` through the app page instead."""

    def run(self, request, response, proceed) -> None:
        if request.relative_path in ("/", "/index.html"):
            response.redirect("/")
            return
        proceed()


# ---------------------------------------------------------------------------
# Controllers
# ---------------------------------------------------------------------------


class CartController(SimpleController):
    inject = ("cart_service",)
    middleware = [Authenticate, RequireUser]

    def get_cart(self, request):
        return self.cart_service.get(request.state.user["id"])

    async def update_cart(self, request, response):
        body = await request.json()
        if not isinstance(body, dict) or not isinstance(body.get("items"), list):
            response.status(400).text("Body must be an object with an items list")
            return
        response.json(self.cart_service.update(request.state.user["id"], body["items"]))

    def purchase(self, request, response):
        order = self.cart_service.purchase(request.state.user["id"])
        response.status(201).json(order)

    routes = {
        "": MethodDispatcher(get=get_cart, put=update_cart),
        "purchase": MethodDispatcher(post=purchase),
    }


class ItemController(SimpleController):
    inject = ("item_service",)

    def list_items(self, request):
        return list(self.item_service.items.values())

    def get_item(self, request):
        item = self.item_service.get(request.path_params["item_id"])
        if item is None:
            raise HTTPError(status=404, detail="Item not found")
        return item

    routes = {
        "": list_items,
        "{item_id:int}": get_item,
    }


class UserController(SimpleController):
    inject = ("auth_service", "user_service")
    middleware = [Authenticate]

    async def login(self, request, response):
        form = await request.form()
        user = self.user_service.get(form.get("user", ""))
        if user is None:
            response.status(401).text("Unknown user")
            return
        response.set_cookie("token", self.auth_service.issue(user["id"]))
        response.json(user)

    def me(self, request):
        return request.state.user or {}

    routes = {
        "login": MethodDispatcher(post=login),
        "me": me,
    }


class AdminController(SimpleController):
    inject = ("cart_service",)
    middleware = [Authenticate, RequireUser, RequireAdmin]

    def orders(self, request):
        return self.cart_service.orders

    routes = {"orders": orders}


class ApiController(CompoundController):
    controllers = {
        "cart": CartController,
        "item": ItemController,
        "user": UserController,
        "admin": AdminController,
    }


class AppController(SimpleController):
    """Serve the single-page app with the initial state preloaded."""

    inject = ("cart_service",)
    middleware = [Authenticate]

    def render(self, request, response):
        user = request.state.user
        state = {
            "user": user,
            "cart": self.cart_service.get(user["id"]) if user else None,
        }
        html = (PUBLIC_DIR / "index.html").read_text()
        script = f"<script>window.__PRELOADED_STATE__ = {json.dumps(state)}</script>"
        response.send(html.replace('<div id="root"></div>', f'<div id="root"></div>{script}'))

    routes = {
        "": render,
        "{path:path}": render,
    }


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------


class Storefront(Server):
    services = {
        "auth_service": AuthService,
        "user_service": UserService,
        "item_service": ItemService,
        "pricing_service": PricingService,
        "cart_service": CartService,
    }
    middleware = {
        "public": [HideIndex, static_files(PUBLIC_DIR)],
    }
    controllers = {
        "api": ApiController,
        "": AppController,
    }


server = Storefront(ServerConfig(debug=True))

if __name__ == "__main__":
    server.run()
