"""Client error taxonomy.

Every failure a page can run into is one of these. Engines catch them at the
operation boundary and turn them into status messages; the ones that do reach
a route are rendered as ``{"message": ...}`` by the app's error handler.
"""


class ClientError(Exception):
    status_code = 400
    default_message = "Something went wrong"

    def __init__(self, message=None, status_code=None):
        # detail is the text the backend (or a form check) actually gave us
        self.detail = message
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def describe(self, fallback):
        """The backend's message verbatim, or ``fallback`` when there was none."""
        return self.detail or fallback

    def to_dict(self):
        return {"message": self.message, "error": type(self).__name__}


class ValidationError(ClientError):
    """A client-side check failed; nothing was sent."""
    status_code = 422
    default_message = "Invalid input"


class NetworkError(ClientError):
    """The request never completed."""
    status_code = 502
    default_message = "Network error, please try again"


class ServerError(ClientError):
    """Non-2xx response from the backend."""
    status_code = 500
    default_message = "Server error"


class NotFoundError(ClientError):
    status_code = 404
    default_message = "Not found"


class ConflictError(ClientError):
    """The backend refused because of the entity's current state (e.g. unavailable product)."""
    status_code = 409
    default_message = "Conflict"


class SessionExpired(ClientError):
    status_code = 401
    default_message = "Session expired, please log in again"


def error_for_status(status_code, message=None):
    if status_code == 401:
        return SessionExpired(message)
    if status_code == 404:
        return NotFoundError(message)
    if status_code == 409:
        return ConflictError(message)
    return ServerError(message, status_code=status_code)


def status_for_message(message, default=200):
    """HTTP status for a page response carrying ``message`` (a StatusMessage dict)."""
    if not message or message.get("level") != "error":
        return default
    return message.get("status") or 400
