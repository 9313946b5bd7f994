from unittest import mock

import pytest
import requests

from core.errors import ConflictError, NetworkError, NotFoundError, ServerError, SessionExpired
from core.gateway import ApiGateway
from core.session import Session


class FakeResponse:
    def __init__(self, status_code=200, body=None, content=None):
        self.status_code = status_code
        self._body = body
        if content is None:
            content = b"" if body is None else b"{}"
        self.content = content

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


@pytest.fixture
def gateway():
    gateway = ApiGateway()
    gateway.base_url = "http://backend.test/api"
    return gateway


def test_uninitialised_gateway_refuses(gateway):
    gateway.base_url = None
    with pytest.raises(RuntimeError):
        gateway.request("GET", "/products")


def test_bearer_header_is_attached(gateway):
    session = Session()
    session.token = "abc"
    with mock.patch.object(gateway.http, "request", return_value=FakeResponse(body={"ok": True})) as request:
        assert gateway.bind(session).get("/cart") == {"ok": True}

    args, kwargs = request.call_args
    assert args == ("GET", "http://backend.test/api/cart")
    assert kwargs["headers"]["Authorization"] == "Bearer abc"


def test_anonymous_call_has_no_authorization(gateway):
    with mock.patch.object(gateway.http, "request", return_value=FakeResponse(body=[])) as request:
        gateway.bind(Session()).get("/products", params={"category": "Books"})

    kwargs = request.call_args[1]
    assert "Authorization" not in kwargs["headers"]
    assert kwargs["params"] == {"category": "Books"}


@pytest.mark.parametrize("status, error", [
    (401, SessionExpired),
    (404, NotFoundError),
    (409, ConflictError),
    (400, ServerError),
    (503, ServerError),
])
def test_error_statuses_are_mapped(gateway, status, error):
    response = FakeResponse(status, body={"message": "Product is not available"})
    with mock.patch.object(gateway.http, "request", return_value=response):
        with pytest.raises(error) as exc_info:
            gateway.request("POST", "/cart/add", json={})

    assert exc_info.value.message == "Product is not available"
    assert exc_info.value.status_code == status


def test_error_without_message_keeps_default(gateway):
    response = FakeResponse(500, content=b"<html>oops</html>")
    with mock.patch.object(gateway.http, "request", return_value=response):
        with pytest.raises(ServerError) as exc_info:
            gateway.request("GET", "/products")
    assert exc_info.value.detail is None
    assert exc_info.value.describe("Failed to load") == "Failed to load"


def test_connection_failure_is_network_error(gateway):
    with mock.patch.object(gateway.http, "request", side_effect=requests.ConnectionError("refused")):
        with pytest.raises(NetworkError):
            gateway.request("GET", "/products")


def test_empty_body_returns_none(gateway):
    with mock.patch.object(gateway.http, "request", return_value=FakeResponse(204)):
        assert gateway.request("DELETE", "/products/p-1") is None


def test_invalid_json_is_server_error(gateway):
    response = FakeResponse(200, content=b"not json")
    with mock.patch.object(gateway.http, "request", return_value=response):
        with pytest.raises(ServerError) as exc_info:
            gateway.request("GET", "/products")
    assert exc_info.value.status_code == 502


def test_multipart_upload_sends_files_only(gateway):
    files = [("images", ("a.jpg", b"...", "image/jpeg"))]
    with mock.patch.object(gateway.http, "request", return_value=FakeResponse(body={"imagePaths": []})) as request:
        gateway.bind(Session()).post("/upload/multiple", files=files)

    kwargs = request.call_args[1]
    assert kwargs["files"] == files
    assert "json" not in kwargs


def test_init_app_reads_config(app):
    gateway = app.extensions["api_gateway"]
    assert gateway.base_url == "http://backend.test/api"
