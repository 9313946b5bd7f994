"""Order placement.

Cart checkout and buy-now share one state machine::

    browsing -> form_open -> submitting -> succeeded
                   ^  |           |
                   |  v           v
                 browsing       failed -> form_open

``form_open`` can be cancelled back to ``browsing`` at any point before a
submit. A failed submit lands back in ``form_open`` with every field kept.
The flow only builds the request; the backend creates the purchase.
"""
from enum import Enum

from core.imports import Decimal, logging, time
from core.errors import ClientError, ValidationError
from models.productModels import format_money
from services.forms import CheckoutForm, StatusMessage, parse_quantity
from services.singleflight import SingleFlight

logger = logging.getLogger(__name__)

PURCHASES_PATH = "/purchases"
SUCCESS_MESSAGE = "Purchase completed successfully! Redirecting to purchases..."
OWN_PRODUCT_MESSAGE = "This is your own product. You cannot purchase it."


class FlowState(str, Enum):
    BROWSING = "browsing"
    FORM_OPEN = "form_open"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class CheckoutFlow:
    operation = "checkout"
    failure_message = "Checkout failed"

    def __init__(self, client, flights=None, redirect_delay_ms=2000, clock=time.monotonic):
        self.client = client
        self.flights = flights or SingleFlight()
        self.redirect_delay_ms = redirect_delay_ms
        self.clock = clock
        self.state = FlowState.BROWSING
        self.form = CheckoutForm()
        self.message = StatusMessage(clock=clock)
        self.redirect_at = None

    @property
    def key(self):
        return None

    @property
    def total(self):
        raise NotImplementedError

    @property
    def display_total(self):
        return format_money(self.total)

    @property
    def is_submitting(self):
        return self.state is FlowState.SUBMITTING

    def take_message(self):
        return self.message.take()

    def _transition(self, state):
        logger.info("%s %s: %s -> %s", self.operation, self.key, self.state.value, state.value)
        self.state = state

    def can_open(self):
        return True

    def open(self):
        if self.state is FlowState.FORM_OPEN:
            return True
        if self.state is FlowState.SUBMITTING:
            return False
        if not self.can_open():
            return False
        if self.state is FlowState.SUCCEEDED:
            self._reset()
        self._transition(FlowState.FORM_OPEN)
        return True

    def _reset(self):
        """A new order starts from a blank form."""
        self.form = CheckoutForm()
        self.redirect_at = None

    def cancel(self):
        if self.state is not FlowState.FORM_OPEN:
            return False
        self._transition(FlowState.BROWSING)
        return True

    def update_form(self, values):
        if self.state is not FlowState.FORM_OPEN:
            raise ValidationError("The checkout form is not open")
        self.form.update(values)

    def payload(self):
        return self.form.to_payload()

    def _send(self, payload):
        raise NotImplementedError

    def _on_success(self):
        pass

    def submit(self):
        if self.state is not FlowState.FORM_OPEN:
            return False
        try:
            self.form.validate()
        except ValidationError as e:
            self.message.error(e.message, e)
            return False

        with self.flights.hold(self.operation, self.key) as acquired:
            if not acquired or self.state is not FlowState.FORM_OPEN:
                return False
            self._transition(FlowState.SUBMITTING)
            try:
                self._send(self.payload())
            except ClientError as e:
                logger.warning("%s %s failed: %s", self.operation, self.key, e.message)
                self._transition(FlowState.FAILED)
                self.message.error(e.describe(self.failure_message), e)
                self._transition(FlowState.FORM_OPEN)
                return False

            self._transition(FlowState.SUCCEEDED)
            self.redirect_at = self.clock() + self.redirect_delay_ms / 1000.0
            self.message.success(SUCCESS_MESSAGE)
            self._on_success()
        return True

    def redirect_due(self):
        return self.state is FlowState.SUCCEEDED and self.clock() >= self.redirect_at

    @property
    def redirect_in_ms(self):
        if self.state is not FlowState.SUCCEEDED:
            return None
        return max(0, int(round((self.redirect_at - self.clock()) * 1000)))


class CartCheckoutFlow(CheckoutFlow):
    """Checkout of everything in the cart. Uses the cart total as displayed."""

    def __init__(self, client, cart, **kwargs):
        super().__init__(client, **kwargs)
        self.cart = cart

    @property
    def key(self):
        return "cart"

    @property
    def total(self):
        return self.cart.total_amount

    def can_open(self):
        if self.cart.snapshot is None:
            self.cart.fetch()
        if self.cart.is_empty:
            self.message.info("Your cart is empty")
            return False
        return True

    def _send(self, payload):
        self.client.post("/purchases/checkout", json=payload)

    def _on_success(self):
        # the backend emptied the cart; the old snapshot is stale
        self.cart.invalidate()


class BuyNowFlow(CheckoutFlow):
    """Purchase of a single product, bypassing the cart."""

    operation = "buy_now"
    failure_message = "Purchase failed"

    def __init__(self, client, session, product, max_quantity=5, **kwargs):
        super().__init__(client, **kwargs)
        self.session = session
        self.product = product
        self.max_quantity = max_quantity
        self.quantity = 1

    @property
    def key(self):
        return self.product.id

    @property
    def quantity_choices(self):
        return list(range(1, self.max_quantity + 1))

    @property
    def total(self):
        return self.product.price * Decimal(self.quantity)

    def set_quantity(self, quantity):
        if self.is_submitting:
            raise ValidationError("A purchase is already being submitted")
        quantity = parse_quantity(quantity)
        if quantity > self.max_quantity:
            raise ValidationError(f"Quantity must be between 1 and {self.max_quantity}")
        self.quantity = quantity

    def _reset(self):
        super()._reset()
        self.quantity = 1

    def can_open(self):
        if not self.session.is_authenticated:
            self.message.error("Please log in to buy this product")
            return False
        if self.session.owns(self.product):
            self.message.error(OWN_PRODUCT_MESSAGE)
            return False
        return True

    def payload(self):
        payload = {"productId": self.product.id, "quantity": self.quantity}
        payload.update(self.form.to_payload())
        return payload

    def _send(self, payload):
        self.client.post("/purchases/single", json=payload)
