"""Who the visitor is.

A ``Session`` is created per visitor and handed by reference to every
component that needs the current user or its credential; nothing reads the
user from a global. Lifecycle: anonymous -> authenticated -> anonymous.
"""
from enum import Enum

from core.imports import SchemaError, logging
from core.errors import ServerError, ValidationError
from models.userModel import User

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


class Session:
    def __init__(self):
        self.user = None
        self.token = None

    @property
    def state(self):
        return SessionState.AUTHENTICATED if self.token else SessionState.ANONYMOUS

    @property
    def is_authenticated(self):
        return self.state is SessionState.AUTHENTICATED

    def authenticate(self, user, token):
        self.user = user
        self.token = token
        logger.info("Session authenticated for user %s", user.id)

    def update_user(self, user):
        self.user = user

    def end(self):
        if self.user is not None:
            logger.info("Session ended for user %s", self.user.id)
        self.user = None
        self.token = None

    def owns(self, product):
        return self.user is not None and product.seller.id == self.user.id


def _parse_user(data):
    try:
        return User.model_validate(data or {})
    except SchemaError as e:
        logger.warning("Malformed user payload: %s", e)
        raise ServerError("Invalid response from server", status_code=502) from e


class IdentityProvider:
    """Login and profile calls against the backend's auth endpoints."""

    def __init__(self, gateway):
        self.gateway = gateway

    def login(self, email, password):
        email = (email or "").strip().lower()
        if not email or not password:
            raise ValidationError("Email and password are required")

        session = Session()
        data = self.gateway.bind(session).post("/auth/login", json={"email": email, "password": password}) or {}
        token = data.get("token")
        if not token:
            raise ServerError("Invalid response from server", status_code=502)
        session.authenticate(_parse_user(data.get("user")), token)
        return session

    def refresh(self, session):
        user = _parse_user(self.gateway.bind(session).get("/auth/me"))
        session.update_user(user)
        return user

    def update_profile(self, session, payload):
        data = self.gateway.bind(session).put("/auth/profile", json=payload)
        # some backends wrap the user, some return it bare
        if isinstance(data, dict) and "user" in data:
            data = data["user"]
        user = _parse_user(data)
        session.update_user(user)
        return user
