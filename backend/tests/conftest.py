import os
import tempfile
from uuid import uuid4

# point settings at a throwaway database before any spacevox module is imported
_TMP = tempfile.mkdtemp(prefix="spacevox-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'test.db')}"
os.environ["LOCK_DIR"] = _TMP
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret"

import pytest
from fastapi.testclient import TestClient

from spacevox.api.deps import join_limiter
from spacevox.auth.auth_handler import create_access_token, hash_password
from spacevox.db import SessionLocal, init_db
from spacevox.main import app
from spacevox.models.product import Product
from spacevox.models.product_image import ProductImage
from spacevox.models.user import User


@pytest.fixture(autouse=True, scope="session")
def setup_db():
    init_db(reset=True)
    yield


@pytest.fixture(autouse=True)
def reset_rate_limit():
    join_limiter.reset()
    yield
    join_limiter.reset()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def make_user():
    def _make(role="user", email=None, password="secret-pass"):
        s = SessionLocal()
        try:
            u = User(
                email=email or f"user-{uuid4().hex[:10]}@example.org",
                password=hash_password(password),
                first_name="Test",
                role=role,
            )
            s.add(u)
            s.commit()
            s.refresh(u)
            return u
        finally:
            s.close()

    return _make


@pytest.fixture
def make_product(make_user):
    def _make(owner=None, title="Oak bookshelf", price=2500, status="active", image_urls=()):
        owner = owner or make_user()
        s = SessionLocal()
        try:
            p = Product(
                user_id=owner.id,
                title=title,
                description="Solid wood, pickup only",
                price=price,
                status=status,
            )
            s.add(p)
            s.flush()
            for idx, url in enumerate(image_urls):
                s.add(ProductImage(product_id=p.id, image_url=url, sort_order=idx))
            s.commit()
            s.refresh(p)
            return p
        finally:
            s.close()

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user)}"}

    return _headers
