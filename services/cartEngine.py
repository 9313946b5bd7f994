from core.imports import SchemaError, logging, time
from core.errors import ClientError, NotFoundError, ValidationError
from models.cartModels import Cart
from models.productModels import format_money
from services.forms import StatusMessage
from services.singleflight import SingleFlight

logger = logging.getLogger(__name__)

CLEAR_CART_PROMPT = "Are you sure you want to clear your cart?"


class CartEngine:
    """Cart page state: the last cart snapshot fetched from the backend.

    Mutations are never applied locally. Each successful one is followed by a
    full ``GET /cart`` so the displayed total cannot drift from the backend
    (read-after-write through a full reload, at one extra round trip per
    change). When anything fails the previous snapshot stays on screen.
    """

    def __init__(self, client, flights=None, message_ttl_ms=3000, clock=time.monotonic):
        self.client = client
        self.flights = flights or SingleFlight()
        self.message_ttl_ms = message_ttl_ms
        self.snapshot = None
        self.message = StatusMessage(clock=clock)

    @property
    def items(self):
        return self.snapshot.items if self.snapshot else []

    @property
    def total_amount(self):
        return self.snapshot.total_amount if self.snapshot else 0

    @property
    def display_total(self):
        return format_money(self.total_amount)

    @property
    def is_empty(self):
        return self.snapshot is None or self.snapshot.is_empty

    def is_updating(self, product_id):
        return self.flights.pending("cart.item", product_id)

    def take_message(self):
        return self.message.take()

    def invalidate(self):
        self.snapshot = None

    def fetch(self):
        try:
            cart = Cart.model_validate(self.client.get("/cart") or {})
        except ClientError as e:
            logger.warning("Error fetching cart: %s", e.message)
            return self.snapshot
        except SchemaError as e:
            logger.warning("Malformed cart payload: %s", e)
            return self.snapshot
        self.snapshot = cart
        return cart

    def add_to_cart(self, product_id, quantity=1):
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            error = ValidationError("Quantity must be at least 1")
            self.message.error(error.message, error)
            return False

        with self.flights.hold("cart.add", product_id) as acquired:
            if not acquired:
                return False
            try:
                self.client.post("/cart/add", json={"productId": product_id, "quantity": quantity})
            except ClientError as e:
                logger.warning("Error adding %s to cart: %s", product_id, e.message)
                self.message.error(e.describe("Failed to add to cart"), e)
                return False
            self.fetch()

        self.message.success("Product added to cart!", ttl_ms=self.message_ttl_ms)
        return True

    def _item_or_message(self, product_id):
        item = self.snapshot.item(product_id) if self.snapshot else None
        if item is None:
            error = NotFoundError("Item is not in your cart")
            self.message.error(error.message, error)
        return item

    def update_quantity(self, product_id, new_quantity):
        if self._item_or_message(product_id) is None:
            return False
        if new_quantity < 1:
            # the floor is a UI rule; such a request is never sent
            logger.debug("Ignoring quantity %s for %s", new_quantity, product_id)
            return False

        with self.flights.hold("cart.item", product_id) as acquired:
            if not acquired:
                return False
            try:
                self.client.put("/cart/update", json={"productId": product_id, "quantity": new_quantity})
            except ClientError as e:
                logger.warning("Error updating cart: %s", e.message)
                self.message.error("Failed to update cart", e)
                return False
            self.fetch()
        return True

    def increment(self, product_id):
        item = self._item_or_message(product_id)
        if item is None:
            return False
        return self.update_quantity(product_id, item.quantity + 1)

    def decrement(self, product_id):
        item = self._item_or_message(product_id)
        if item is None or item.quantity <= 1:
            return False
        return self.update_quantity(product_id, item.quantity - 1)

    def remove_item(self, product_id):
        with self.flights.hold("cart.item", product_id) as acquired:
            if not acquired:
                return False
            try:
                self.client.delete("/cart/remove", json={"productId": product_id})
            except ClientError as e:
                logger.warning("Error removing item: %s", e.message)
                self.message.error("Failed to remove item", e)
                return False
            self.fetch()

        self.message.success("Item removed from cart")
        return True

    def clear_cart(self, confirm):
        """Empty the cart once ``confirm(prompt)`` answers yes."""
        if not confirm(CLEAR_CART_PROMPT):
            return False

        with self.flights.hold("cart.clear") as acquired:
            if not acquired:
                return False
            try:
                self.client.delete("/cart/clear")
            except ClientError as e:
                logger.warning("Error clearing cart: %s", e.message)
                self.message.error("Failed to clear cart", e)
                return False
            self.fetch()

        self.message.success("Cart cleared")
        return True
