import itertools
from datetime import datetime, timezone

import pytest

from core.config import TestConfig
from core.errors import ConflictError, NotFoundError, ServerError, SessionExpired
from core.session import Session
from models.userModel import User

BUYER = {
    "id": "u-buyer",
    "username": "jane",
    "email": "jane@example.com",
    "password": "secret",
    "bio": "",
    "location": "Austin",
    "phone": "",
    "profileImage": "",
}
SELLER = {
    "id": "u-seller",
    "username": "sam",
    "email": "sam@example.com",
    "password": "hunter2",
    "bio": "",
    "location": "Denver",
    "phone": "",
    "profileImage": "",
}

SHIPPING = {
    "street": "123 Main St",
    "city": "New York",
    "state": "NY",
    "zipCode": "10001",
    "country": "United States",
}


def now():
    return datetime(2025, 3, 2, 14, 5, tzinfo=timezone.utc).isoformat()


def make_product(product_id, title, price, seller=SELLER, quantity=10, available=True,
                 category="Electronics", condition="Good"):
    return {
        "_id": product_id,
        "title": title,
        "description": f"A fine {title.lower()}",
        "category": category,
        "price": price,
        "condition": condition,
        "location": "Denver",
        "quantity": quantity,
        "images": [f"/uploads/{product_id}.jpg"],
        "isAvailable": available,
        "seller": {"_id": seller["id"], "username": seller["username"], "email": seller["email"]},
        "dateCreated": now(),
        "dateUpdated": now(),
    }


class FakeClock:
    def __init__(self, start=100.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeBackend:
    """In-memory marketplace backend speaking the same paths and JSON as the real one."""

    def __init__(self):
        self.users = {u["id"]: dict(u) for u in (BUYER, SELLER)}
        self.tokens = {}
        self.products = {}
        self.carts = {}
        self.purchases = []
        self.calls = []
        self._failures = {}
        self._ids = itertools.count(1)

    # -- test helpers --

    def add_product(self, product):
        self.products[product["_id"]] = product
        return product

    def fail(self, method, path, error):
        """Raise ``error`` on every following ``method path`` call until cleared."""
        self._failures[(method, path)] = error

    def clear_failures(self):
        self._failures.clear()

    def calls_to(self, method, path):
        return [c for c in self.calls if c[0] == method and c[1] == path]

    def client(self, session):
        return FakeClient(self, session)

    def token_for(self, user_id):
        token = f"token-{user_id}"
        self.tokens[token] = user_id
        return token

    # -- request handling --

    def handle(self, method, path, token, json=None, params=None, files=None):
        self.calls.append((method, path, json if files is None else files))
        error = self._failures.get((method, path))
        if error is not None:
            raise error

        if method == "POST" and path == "/auth/login":
            return self._login(json)
        if method == "GET" and path == "/products":
            return self._list_products(params or {})
        if method == "GET" and path.startswith("/products/") and path != "/products/user/me":
            return self._product(path.rsplit("/", 1)[1])

        user_id = self.tokens.get(token)
        if user_id is None:
            raise SessionExpired("Not authorized")

        routes = {
            ("GET", "/auth/me"): lambda: self._public_user(user_id),
            ("PUT", "/auth/profile"): lambda: self._update_profile(user_id, json),
            ("GET", "/products/user/me"): lambda: [
                p for p in self.products.values() if p["seller"]["_id"] == user_id
            ],
            ("POST", "/products"): lambda: self._create_product(user_id, json),
            ("POST", "/upload/multiple"): lambda: {
                "imagePaths": [f"/uploads/{name}" for _, (name, _, _) in files]
            },
            ("GET", "/cart"): lambda: self._cart(user_id),
            ("POST", "/cart/add"): lambda: self._cart_add(user_id, json),
            ("PUT", "/cart/update"): lambda: self._cart_update(user_id, json),
            ("DELETE", "/cart/remove"): lambda: self._cart_remove(user_id, json),
            ("DELETE", "/cart/clear"): lambda: self._cart_clear(user_id),
            ("POST", "/purchases/checkout"): lambda: self._checkout(user_id, json),
            ("POST", "/purchases/single"): lambda: self._buy_single(user_id, json),
            ("GET", "/purchases"): lambda: [p for p in self.purchases if p["buyer"] == user_id],
        }
        handler = routes.get((method, path))
        if handler is not None:
            return handler()
        if path.startswith("/products/"):
            product_id = path.rsplit("/", 1)[1]
            if method == "PUT":
                return self._update_product(user_id, product_id, json)
            if method == "DELETE":
                return self._delete_product(user_id, product_id)
        raise NotFoundError(f"No route for {method} {path}")

    def _public_user(self, user_id):
        return {k: v for k, v in self.users[user_id].items() if k != "password"}

    def _login(self, data):
        for user in self.users.values():
            if user["email"] == data.get("email") and user["password"] == data.get("password"):
                return {"token": self.token_for(user["id"]), "user": self._public_user(user["id"])}
        raise SessionExpired("Invalid credentials")

    def _update_profile(self, user_id, data):
        self.users[user_id].update(data)
        return {"user": self._public_user(user_id)}

    def _list_products(self, params):
        products = list(self.products.values())
        if params.get("category"):
            products = [p for p in products if p["category"] == params["category"]]
        if params.get("search"):
            term = params["search"].lower()
            products = [p for p in products if term in p["title"].lower()]
        return {"products": products}

    def _product(self, product_id):
        if product_id not in self.products:
            raise NotFoundError("Product not found")
        return self.products[product_id]

    def _owned(self, user_id, product_id):
        product = self._product(product_id)
        if product["seller"]["_id"] != user_id:
            raise ServerError("Not authorized to modify this product", status_code=403)
        return product

    def _create_product(self, user_id, data):
        product_id = f"p-new-{next(self._ids)}"
        user = self.users[user_id]
        product = make_product(product_id, data["title"], data["price"], seller=user,
                               quantity=data["quantity"], category=data["category"],
                               condition=data["condition"])
        product.update(description=data["description"], location=data["location"], images=data["images"])
        return self.add_product(product)

    def _update_product(self, user_id, product_id, data):
        product = self._owned(user_id, product_id)
        product.update(data)
        product["dateUpdated"] = now()
        return product

    def _delete_product(self, user_id, product_id):
        self._owned(user_id, product_id)
        del self.products[product_id]
        return {"message": "Product deleted"}

    def _cart(self, user_id):
        entries = self.carts.get(user_id, {})
        items = [
            {"product": self.products[pid], "quantity": e["quantity"], "addedAt": e["addedAt"]}
            for pid, e in entries.items()
        ]
        return {
            "_id": f"cart-{user_id}",
            "user": user_id,
            "products": items,
            "totalAmount": sum(i["product"]["price"] * i["quantity"] for i in items),
            "lastUpdated": now(),
        }

    def _cart_add(self, user_id, data):
        product = self._product(data["productId"])
        if not product["isAvailable"]:
            raise ConflictError("Product is not available")
        entries = self.carts.setdefault(user_id, {})
        entry = entries.setdefault(product["_id"], {"quantity": 0, "addedAt": now()})
        entry["quantity"] += data["quantity"]
        return self._cart(user_id)

    def _cart_update(self, user_id, data):
        entries = self.carts.get(user_id, {})
        if data["productId"] not in entries:
            raise NotFoundError("Product not in cart")
        entries[data["productId"]]["quantity"] = data["quantity"]
        return self._cart(user_id)

    def _cart_remove(self, user_id, data):
        self.carts.get(user_id, {}).pop(data["productId"], None)
        return self._cart(user_id)

    def _cart_clear(self, user_id):
        self.carts[user_id] = {}
        return self._cart(user_id)

    def _record_purchase(self, user_id, product, quantity, data):
        purchase = {
            "_id": f"order-{next(self._ids)}",
            "buyer": user_id,
            "seller": product["seller"],
            "product": {k: product[k] for k in ("_id", "title", "price", "images", "category")},
            "quantity": quantity,
            "totalAmount": product["price"] * quantity,
            "purchaseDate": now(),
            "status": "Pending",
            "shippingAddress": data["shippingAddress"],
            "paymentMethod": data["paymentMethod"],
        }
        self.purchases.append(purchase)
        return purchase

    def _checkout(self, user_id, data):
        entries = self.carts.get(user_id, {})
        if not entries:
            raise ServerError("Cart is empty", status_code=400)
        created = [
            self._record_purchase(user_id, self.products[pid], e["quantity"], data)
            for pid, e in entries.items()
        ]
        self.carts[user_id] = {}
        return {"message": "Purchase completed", "purchases": created}

    def _buy_single(self, user_id, data):
        product = self._product(data["productId"])
        if not product["isAvailable"]:
            raise ConflictError("Product is not available")
        return self._record_purchase(user_id, product, data["quantity"], data)


class FakeClient:
    """Stands in for ``BoundClient``: same methods, answered by the fake backend."""

    def __init__(self, backend, session):
        self.backend = backend
        self.session = session

    def get(self, path, params=None):
        return self.backend.handle("GET", path, self.session.token, params=params)

    def post(self, path, json=None, files=None):
        return self.backend.handle("POST", path, self.session.token, json=json, files=files)

    def put(self, path, json=None):
        return self.backend.handle("PUT", path, self.session.token, json=json)

    def delete(self, path, json=None):
        return self.backend.handle("DELETE", path, self.session.token, json=json)


@pytest.fixture
def backend():
    backend = FakeBackend()
    backend.add_product(make_product("p-widget", "Widget", 10.0))
    backend.add_product(make_product("p-lamp", "Desk Lamp", 25.0, category="Furniture"))
    backend.add_product(make_product("p-book", "Novel", 7.5, category="Books", condition="Like New"))
    backend.add_product(make_product("p-sold", "Old Bike", 80.0, available=False, category="Sports"))
    backend.add_product(make_product("p-mine", "Camera", 120.0, seller=BUYER))
    return backend


@pytest.fixture
def session(backend):
    session = Session()
    session.authenticate(User.model_validate(backend._public_user(BUYER["id"])), backend.token_for(BUYER["id"]))
    return session


@pytest.fixture
def client(backend, session):
    return backend.client(session)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def app(backend, monkeypatch):
    from core.extensions import gateway
    from main import create_app

    app = create_app(TestConfig)
    monkeypatch.setattr(gateway, "bind", backend.client)
    return app


@pytest.fixture
def http(app):
    return app.test_client()


@pytest.fixture
def auth_headers(http):
    response = http.post("/api/auth/login", json={"email": BUYER["email"], "password": BUYER["password"]})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.get_json()['access_token']}"}
