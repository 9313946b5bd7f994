from decimal import Decimal
from types import SimpleNamespace

import pytest

from conftest import BUYER, SHIPPING
from core.errors import NetworkError, SessionExpired, ValidationError
from core.session import IdentityProvider, SessionState
from models.purchaseModels import PurchaseStatus
from services.profileEditor import ProfileEditor
from services.purchaseHistory import PurchaseHistory, status_tone


@pytest.fixture
def identity(backend):
    return IdentityProvider(SimpleNamespace(bind=backend.client))


def buy(client, product_id, quantity):
    client.post("/purchases/single", json={
        "productId": product_id,
        "quantity": quantity,
        "shippingAddress": SHIPPING,
        "paymentMethod": "Cash",
    })


def test_purchase_history(client):
    history = PurchaseHistory(client)
    assert history.fetch() == []

    buy(client, "p-lamp", 2)
    purchases = history.fetch()

    assert len(purchases) == 1
    assert purchases[0].total_amount == Decimal("50")
    assert purchases[0].product.title == "Desk Lamp"
    assert purchases[0].status is PurchaseStatus.PENDING


def test_failed_history_fetch_keeps_list(backend, client):
    buy(client, "p-lamp", 1)
    history = PurchaseHistory(client)
    history.fetch()
    backend.fail("GET", "/purchases", NetworkError())
    assert len(history.fetch()) == 1


@pytest.mark.parametrize("status, tone", [
    (PurchaseStatus.COMPLETED, "success"),
    (PurchaseStatus.PENDING, "warning"),
    (PurchaseStatus.CANCELLED, "danger"),
    ("Refunded", "neutral"),
])
def test_status_tone(status, tone):
    assert status_tone(status) == tone


def test_login(identity):
    session = identity.login("JANE@example.com ", "secret")
    assert session.state is SessionState.AUTHENTICATED
    assert session.user.id == BUYER["id"]


def test_login_requires_both_fields(backend, identity):
    with pytest.raises(ValidationError):
        identity.login("jane@example.com", "")
    assert backend.calls == []


def test_login_bad_credentials(identity):
    with pytest.raises(SessionExpired) as exc_info:
        identity.login("jane@example.com", "wrong")
    assert exc_info.value.message == "Invalid credentials"


def test_session_end(session):
    session.end()
    assert session.state is SessionState.ANONYMOUS
    assert session.user is None


def test_refresh_reads_current_user(backend, identity, session):
    backend.users[BUYER["id"]]["bio"] = "Collector"
    assert identity.refresh(session).bio == "Collector"
    assert session.user.bio == "Collector"


def test_profile_save(backend, identity, session):
    editor = ProfileEditor(identity, session)
    editor.start_edit()
    editor.update({"bio": "Vintage cameras", "profileImage": "/me.png"})

    assert editor.save() is True

    assert session.user.bio == "Vintage cameras"
    assert session.user.profile_image == "/me.png"
    assert backend.users[BUYER["id"]]["bio"] == "Vintage cameras"
    assert editor.is_editing is False
    assert editor.take_message()["text"] == "Profile updated successfully!"


def test_profile_invalid_email_sends_nothing(backend, identity, session):
    editor = ProfileEditor(identity, session)
    editor.start_edit()
    editor.update({"email": "nope"})

    assert editor.save() is False

    assert backend.calls_to("PUT", "/auth/profile") == []
    assert editor.is_editing is True
    assert editor.take_message()["text"] == "Invalid email format."


def test_profile_update_requires_edit_mode(identity, session):
    editor = ProfileEditor(identity, session)
    with pytest.raises(ValidationError):
        editor.update({"bio": "x"})
    assert editor.save() is False


def test_profile_cancel_discards_changes(identity, session):
    editor = ProfileEditor(identity, session)
    editor.start_edit()
    editor.update({"username": "someone-else"})
    editor.cancel()
    assert editor.form.username == "jane"
    assert editor.is_editing is False
