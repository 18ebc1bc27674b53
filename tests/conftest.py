import json

import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from app_config import Settings
from app_errors import PaymentProviderError
from app_logging import configure_logging
from identity_gate import Principal, StaticIdentityGate
from payments.gateway import CheckoutSession, SessionSnapshot, SignatureError, WebhookEvent
from persistence import crud
from persistence.db import init_db, make_engine, make_session_factory

USER_TOKEN = "user-token"
OTHER_TOKEN = "other-token"
ADMIN_TOKEN = "admin-token"

USER = Principal(user_id="user_123")
OTHER_USER = Principal(user_id="user_456")
ADMIN = Principal(user_id="admin_1", role="admin")

configure_logging("WARNING")


def auth(token=USER_TOKEN):
    return {"Authorization": f"Bearer {token}"}


class FakeGateway:
    """In-memory stand-in for the Stripe gateway."""

    VALID_SIGNATURE = "t=1,v1=valid"

    def __init__(self):
        self.created = []
        self.sessions = {}

    def create_session(self, amount_minor_units, product_name, description, metadata, success_url, cancel_url):
        session_id = f"cs_test_{len(self.created) + 1}"
        self.created.append({
            "amount": amount_minor_units,
            "product_name": product_name,
            "description": description,
            "metadata": dict(metadata),
            "success_url": success_url,
            "cancel_url": cancel_url,
        })
        self.sessions[session_id] = SessionSnapshot(
            id=session_id, status="open", payment_status="unpaid", metadata=dict(metadata)
        )
        return CheckoutSession(id=session_id, url=f"https://checkout.stripe.test/{session_id}")

    def pay(self, session_id):
        old = self.sessions[session_id]
        self.sessions[session_id] = SessionSnapshot(
            id=session_id,
            status="complete",
            payment_status="paid",
            metadata=old.metadata,
            customer_email="guest@example.com",
        )

    def verify_webhook_signature(self, payload, signature):
        if signature != self.VALID_SIGNATURE:
            raise SignatureError("No signatures found matching the expected signature for payload")
        data = json.loads(payload)
        return WebhookEvent(type=data["type"], object=data["data"]["object"])

    def retrieve_session(self, session_id):
        if session_id not in self.sessions:
            raise PaymentProviderError("Failed to retrieve checkout session")
        return self.sessions[session_id]


def webhook_payload(event_type, booking_id=None, session_id="cs_test_1"):
    metadata = {"bookingId": booking_id} if booking_id else {}
    return json.dumps({
        "id": "evt_1",
        "type": event_type,
        "data": {"object": {"id": session_id, "object": "checkout.session", "metadata": metadata}},
    })


@pytest.fixture
def settings():
    return Settings(database_url="sqlite://", frontend_url="http://localhost:5173")


@pytest.fixture
def session_factory(settings):
    engine = make_engine(settings.database_url)
    init_db(engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def identity_gate():
    return StaticIdentityGate({USER_TOKEN: USER, OTHER_TOKEN: OTHER_USER, ADMIN_TOKEN: ADMIN})


@pytest.fixture
def search():
    return None


@pytest.fixture
def app(settings, session_factory, gateway, identity_gate, search):
    return create_app(
        settings,
        session_factory=session_factory,
        gateway=gateway,
        identity_gate=identity_gate,
        search=search,
    )


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def add_hotel(session_factory):
    def _add(**overrides):
        fields = {
            "name": "Sea Breeze",
            "location": "Galle, Sri Lanka",
            "rating": 4.5,
            "reviews": 120,
            "image": "https://images.example.com/sea-breeze.jpg",
            "price": 120.0,
            "description": "Beachfront rooms with ocean views",
        }
        fields.update(overrides)
        with session_factory() as session:
            hotel = crud.create_hotel(session, **fields)
            session.commit()
            return hotel.id

    return _add


@pytest.fixture
def booking_body():
    def _body(hotel_id, **overrides):
        body = {
            "hotelId": hotel_id,
            "checkIn": "2024-06-01",
            "checkOut": "2024-06-04",
            "firstName": "Ada",
            "lastName": "Lovelace",
            "email": "ada@example.com",
            "phoneNumber": "+94 77 123 4567",
            "roomNumber": 12,
        }
        body.update(overrides)
        return body

    return _body


@pytest.fixture
def create_booking(client, booking_body):
    """Create a booking over HTTP as USER and return its id."""

    def _create(hotel_id, token=USER_TOKEN, **overrides):
        before = {b["id"] for b in client.get("/api/bookings", headers=auth(token)).json()}
        res = client.post("/api/bookings", json=booking_body(hotel_id, **overrides), headers=auth(token))
        assert res.status_code == 201, res.text
        after = {b["id"] for b in client.get("/api/bookings", headers=auth(token)).json()}
        (booking_id,) = after - before
        return booking_id

    return _create
