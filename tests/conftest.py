import hashlib
import hmac
import json
import os
import tempfile
import time

_TMP = tempfile.mkdtemp(prefix="poster_shop_test_")
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP}/app.db"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP, "uploads")
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["JWT_SECRET"] = "test-secret"
os.environ.pop("SMTP_HOST", None)

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from poster_shop import config
from poster_shop.database import Base, get_db
from poster_shop.main import app as fastapi_app
from poster_shop.models import Upload
from poster_shop.notifier import Notifier, get_notifier

WEBHOOK_SECRET = "whsec_test"


def stripe_signature(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp=None) -> str:
    ts = int(time.time()) if timestamp is None else timestamp
    signed = f"{ts}.".encode() + payload
    digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={digest}"


@pytest.fixture
def db_engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}",
                           connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def TestingSessionLocal(db_engine):
    return sessionmaker(bind=db_engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(TestingSessionLocal):
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    monkeypatch.setattr(config, "UPLOAD_DIR", path)
    return path


@pytest.fixture
def notifier(mocker):
    return mocker.Mock(spec=Notifier)


@pytest.fixture
def client(TestingSessionLocal, notifier, upload_dir):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_notifier] = lambda: notifier
    with TestClient(fastapi_app) as c:
        yield c
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    token = jwt.encode({"sub": "staff"}, "test-secret", algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def stored_upload(db):
    record = Upload(
        filename="abc-family.jpg",
        original_name="family.jpg",
        path="/tmp/abc-family.jpg",
        size=1024,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@pytest.fixture
def checkout_payload(stored_upload):
    return {
        "theme": "elf",
        "tier": "print",
        "quantity": 2,
        "upload_id": stored_upload.id,
        "customer_name": "Buddy Hobbs",
        "customer_email": "buddy@example.com",
        "customer_phone": "555-0100",
        "shipping_address": "55 Central Park West, New York",
        "notes": "Please add snow",
    }


@pytest.fixture
def completed_event():
    """Build a signed ``checkout.session.completed`` delivery."""
    def build(metadata, session_id="cs_test_123", amount_total=37800,
              customer_email="buddy@example.com", event_id="evt_1",
              event_type="checkout.session.completed"):
        event = {
            "id": event_id,
            "object": "event",
            "type": event_type,
            "data": {
                "object": {
                    "id": session_id,
                    "object": "checkout.session",
                    "payment_intent": "pi_test_456",
                    "customer_email": customer_email,
                    "amount_total": amount_total,
                    "metadata": metadata,
                }
            },
        }
        payload = json.dumps(event).encode()
        return payload, stripe_signature(payload)
    return build


@pytest.fixture
def session_metadata(stored_upload):
    return {
        "order_id": "0d9a3c1e-order",
        "theme": "elf",
        "tier": "print",
        "quantity": "2",
        "upload_id": stored_upload.id,
        "customer_name": "Buddy Hobbs",
        "customer_phone": "555-0100",
        "shipping_address": "55 Central Park West, New York",
        "notes": "Please add snow",
    }
