import os
import tempfile
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

# Set test configuration BEFORE importing any app modules
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["TESTING"] = "true"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["API_KEY"] = "test-api-key"
os.environ["BASE_URL"] = "http://testserver"
os.environ["MEDIA_ROOT"] = tempfile.mkdtemp(prefix="ddproperty-media-")

from ddproperty.database import Database
from ddproperty.limits import limiter
from ddproperty.main import create_app
from ddproperty.models import Listing, ListingType, Property, PropertyType, User, UserRole
from ddproperty.services.auth_service import create_access_token, get_password_hash
from ddproperty.services.media_storage import MediaStorage


@pytest.fixture()
def database():
    # Fresh in-memory schema per test to avoid cross-test data (e.g., unique email)
    db = Database("sqlite://")
    db.create_all()
    yield db
    db.drop_all()
    db.dispose()


@pytest.fixture()
def db_session(database):
    session = database.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def media(tmp_path):
    return MediaStorage(tmp_path / "media", "/images")


@pytest.fixture()
def app(database, media):
    application = create_app(database=database, media=media)
    # Disable rate limiter globally for tests
    limiter.enabled = False
    return application


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session):
    counter = {"n": 0}

    def _make_user(role=UserRole.USER, email=None, password=None, name="Test User"):
        counter["n"] += 1
        user = User(
            name=name,
            email=email or f"{role.value.lower()}{counter['n']}@example.com",
            password_hash=get_password_hash(password) if password else "x",
            role=role,
            is_active=True,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def make_property(db_session):
    counter = {"n": 0}

    def _make_property(owner, listings=None, **fields):
        counter["n"] += 1
        fields.setdefault("property_code", f"DP{counter['n']:05d}")
        fields.setdefault("title", f"Property {counter['n']}")
        fields.setdefault("property_type", PropertyType.CONDO)
        prop = Property(user_id=owner.id, **fields)
        if listings is None:
            listings = [{"listing_type": ListingType.SALE, "price": 1_000_000}]
        prop.listings = [Listing(**listing) for listing in listings]
        db_session.add(prop)
        db_session.commit()
        db_session.refresh(prop)
        return prop

    return _make_property


def _headers(user) -> dict:
    token = create_access_token(
        user.email, user.id, user.role.value, timedelta(minutes=30)
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def auth_headers():
    return _headers


@pytest.fixture()
def owner(make_user):
    return make_user(UserRole.AGENT, email="owner@example.com")


@pytest.fixture()
def other_user(make_user):
    return make_user(UserRole.USER, email="other@example.com")


@pytest.fixture()
def admin(make_user):
    return make_user(UserRole.ADMIN, email="admin@example.com")
