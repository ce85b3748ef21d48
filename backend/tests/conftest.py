"""
Pytest fixtures for InvenPro backend tests.

Provides the in-memory application, per-test table cleanup, operators with
login tokens, and small factories for catalog products.
"""

import pytest

from invenpro import create_app
from invenpro.extensions import db
from invenpro.models import Operator, Product
from invenpro.services.auth_service import hash_password

TEST_PASSWORD = "Password123!"

TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'BILLING_PIN': '0000',
    'ADJUSTMENT_PIN': '0000',
    'ANALYTICS_PIN': '2222',
    'STORAGE_NAMESPACE': 'invenpro',
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='session')
def password_hash():
    """bcrypt is slow on purpose; hash the shared test password once."""
    return hash_password(TEST_PASSWORD)


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def owner(db_session, password_hash):
    op = Operator(username="owner", display_name="Asha Rao", role="Owner", password_hash=password_hash)
    db_session.add(op)
    db_session.commit()
    return op


@pytest.fixture(scope='function')
def manager(db_session, password_hash):
    op = Operator(username="manager", display_name="Ravi Kumar", role="Manager", password_hash=password_hash)
    db_session.add(op)
    db_session.commit()
    return op


def get_auth_token(client, username: str, password: str = TEST_PASSWORD) -> str:
    """Helper to get auth token for an operator."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str, pin: str | None = None) -> dict:
    """Helper to create Authorization (and optional PIN gate) headers."""
    headers = {'Authorization': f'Bearer {token}'}
    if pin is not None:
        headers['X-Gate-Pin'] = pin
    return headers


@pytest.fixture(scope='function')
def owner_token(client, owner):
    return get_auth_token(client, owner.username)


@pytest.fixture(scope='function')
def manager_token(client, manager):
    return get_auth_token(client, manager.username)


@pytest.fixture(scope='function')
def owner_headers(owner_token):
    return auth_headers(owner_token)


@pytest.fixture(scope='function')
def manager_headers(manager_token):
    return auth_headers(manager_token)


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: insert a catalog product directly (no audit entry)."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        n = counter["n"]
        fields = dict(
            sku=f"SKU-{n:03d}",
            name=f"Item {n}",
            category="Hardware",
            uom="pcs",
            quantity=10,
            min_stock=2,
            max_stock=100,
            warehouse_id="WH-001",
            purchase_price_cents=700,
            selling_price_cents=1000,
        )
        fields.update(overrides)
        product = Product(**fields)
        db_session.add(product)
        db_session.commit()
        return product

    return _make
