"""HTTP access to the marketplace REST backend.

``ApiGateway`` is registered like any other Flask extension and owns the
``requests`` session. Components never see it directly: they get a
``BoundClient`` that carries one visitor's ``Session`` and attaches its
bearer token to every call.
"""
from core.imports import requests, logging
from core.errors import NetworkError, ServerError, error_for_status

logger = logging.getLogger(__name__)


class ApiGateway:
    def __init__(self, app=None):
        self.base_url = None
        self.timeout = None
        self.http = requests.Session()
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.base_url = app.config["BACKEND_API_URL"].rstrip("/")
        self.timeout = app.config.get("REQUEST_TIMEOUT")
        app.extensions["api_gateway"] = self

    def bind(self, session):
        return BoundClient(self, session)

    def request(self, method, path, token=None, **kwargs):
        if self.base_url is None:
            raise RuntimeError("ApiGateway is not initialised, call init_app() first")

        url = f"{self.base_url}/{path.lstrip('/')}"
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = self.http.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise NetworkError() from e

        if not response.ok:
            message = _error_message(response)
            logger.info("%s %s -> %s %s", method, path, response.status_code, message or "")
            raise error_for_status(response.status_code, message)

        logger.debug("%s %s -> %s", method, path, response.status_code)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ServerError("Invalid response from server", status_code=502) from e


def _error_message(response):
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("message")
    return None


class BoundClient:
    """Gateway calls made on behalf of one session."""

    def __init__(self, gateway, session):
        self.gateway = gateway
        self.session = session

    def _call(self, method, path, **kwargs):
        return self.gateway.request(method, path, token=self.session.token, **kwargs)

    def get(self, path, params=None):
        return self._call("GET", path, params=params)

    def post(self, path, json=None, files=None):
        if files is not None:
            return self._call("POST", path, files=files)
        return self._call("POST", path, json=json)

    def put(self, path, json=None):
        return self._call("PUT", path, json=json)

    def delete(self, path, json=None):
        return self._call("DELETE", path, json=json)
