"""Per-visitor component state.

Each signed-in visitor gets a ``ClientState`` holding the same things a page
would keep in its local variables: the cart snapshot, open checkout forms,
the listing being edited, pending status messages. The store is keyed by the
session id carried as the identity of this app's access token.
"""
from core.imports import get_jwt_identity, logging, threading, time, uuid
from core.errors import SessionExpired
from services.cartEngine import CartEngine
from services.catalogBrowser import CatalogBrowser
from services.checkoutFlow import BuyNowFlow, CartCheckoutFlow
from services.listingManager import ListingManager
from services.profileEditor import ProfileEditor
from services.purchaseHistory import PurchaseHistory
from services.singleflight import SingleFlight

logger = logging.getLogger(__name__)


class ClientState:
    def __init__(self, session, gateway, identity, config):
        self.sid = uuid.uuid4().hex
        self.session = session
        self.client = gateway.bind(session)
        self.flights = SingleFlight()
        self.redirect_delay_ms = config.get("CHECKOUT_REDIRECT_DELAY_MS", 2000)
        self.buy_now_max_quantity = config.get("BUY_NOW_MAX_QUANTITY", 5)

        self.catalog = CatalogBrowser(self.client)
        self.cart = CartEngine(
            self.client,
            flights=self.flights,
            message_ttl_ms=config.get("CART_MESSAGE_TTL_MS", 3000),
        )
        self.checkout = CartCheckoutFlow(
            self.client,
            self.cart,
            flights=self.flights,
            redirect_delay_ms=self.redirect_delay_ms,
        )
        self.listings = ListingManager(self.client, flights=self.flights)
        self.purchases = PurchaseHistory(self.client)
        self.profile = ProfileEditor(identity, session, flights=self.flights)
        self._buy_now = {}

    def buy_now(self, product):
        """The buy-now flow for ``product``, kept across requests so form values survive."""
        flow = self._buy_now.get(product.id)
        if flow is None:
            flow = BuyNowFlow(
                self.client,
                self.session,
                product,
                max_quantity=self.buy_now_max_quantity,
                flights=self.flights,
                redirect_delay_ms=self.redirect_delay_ms,
            )
            self._buy_now[product.id] = flow
        elif not flow.is_submitting:
            flow.product = product
        return flow

    def existing_buy_now(self, product_id):
        return self._buy_now.get(product_id)


class ClientStateStore:
    """Visitor states by session id.

    An entry lives as long as the access token issued with it; expired
    entries are swept on every lookup. A user holds at most one entry, so
    logging in again replaces the previous state.
    """

    def __init__(self, clock=time.monotonic):
        self._states = {}
        self._expires_at = {}
        self._clock = clock
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            ended = self._sweep()
            count = len(self._states)
        self._end(ended)
        return count

    def _pop(self, sid):
        self._expires_at.pop(sid, None)
        return self._states.pop(sid, None)

    def _sweep(self):
        now = self._clock()
        expired = [sid for sid, at in self._expires_at.items() if at is not None and now >= at]
        return [self._pop(sid) for sid in expired]

    def _end(self, states):
        for state in states:
            logger.info("Dropping client state %s", state.sid)
            state.session.end()

    def add(self, state, lifetime=None):
        """Store ``state`` for ``lifetime`` seconds (None keeps it until discarded)."""
        user = state.session.user
        with self._lock:
            ended = self._sweep()
            if user is not None:
                ended += [
                    self._pop(sid) for sid, other in list(self._states.items())
                    if other.session.user is not None and other.session.user.id == user.id
                ]
            self._states[state.sid] = state
            self._expires_at[state.sid] = self._clock() + lifetime if lifetime is not None else None
        self._end(ended)
        return state

    def get(self, sid):
        if sid is None:
            return None
        with self._lock:
            ended = self._sweep()
            state = self._states.get(sid)
        self._end(ended)
        return state

    def discard(self, sid):
        with self._lock:
            state = self._pop(sid)
        if state is not None:
            state.session.end()
        return state

    def current(self, optional=False):
        """State for the token on the current request (inside ``@jwt_required``)."""
        state = self.get(get_jwt_identity())
        if state is None and not optional:
            raise SessionExpired()
        return state
