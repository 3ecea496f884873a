"""
Pytest fixtures for toy shop backend tests.

Provides test database setup, staff accounts, a small catalog, and test client.
"""

import bcrypt
import pytest

from toyshop import create_app
from toyshop.config import TestingConfig
from toyshop.extensions import db
from toyshop.models import Category, InventoryRecord, Product, User
from toyshop.services.authorization import Actor, Role
from toyshop.time_utils import utcnow


TEST_PASSWORD = "secret123"

# Low bcrypt cost keeps fixtures fast; verify_password accepts any cost
TEST_PASSWORD_HASH = bcrypt.hashpw(TEST_PASSWORD.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestingConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


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


def _make_user(db_session, username: str, role: str) -> User:
    user = User(
        username=username,
        email=f"{username}@toyshop.local",
        password_hash=TEST_PASSWORD_HASH,
        role=role,
        status="active",
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def admin_user(db_session):
    return _make_user(db_session, "admin", "admin")


@pytest.fixture(scope='function')
def cashier_user(db_session):
    return _make_user(db_session, "cashier1", "cashier")


@pytest.fixture(scope='function')
def other_cashier_user(db_session):
    return _make_user(db_session, "cashier2", "cashier")


@pytest.fixture(scope='function')
def admin(admin_user):
    return Actor(id=admin_user.id, role=Role.ADMIN)


@pytest.fixture(scope='function')
def cashier(cashier_user):
    return Actor(id=cashier_user.id, role=Role.CASHIER)


@pytest.fixture(scope='function')
def other_cashier(other_cashier_user):
    return Actor(id=other_cashier_user.id, role=Role.CASHIER)


@pytest.fixture(scope='function')
def category(db_session):
    category = Category(name="Action Figures", description="Figures and robots")
    db_session.add(category)
    db_session.commit()
    return category


def _make_product(db_session, category, barcode, name, price_cents, purchase_price_cents, quantity, min_stock=10):
    product = Product(
        barcode=barcode,
        name=name,
        category_id=category.id,
        price_cents=price_cents,
        purchase_price_cents=purchase_price_cents,
        min_stock=min_stock,
        status="available",
    )
    product.inventory = InventoryRecord(quantity=quantity, updated_at=utcnow())
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product_a(db_session, category):
    """1000 cents, 10 on hand."""
    return _make_product(db_session, category, "TOY-A", "Robot Hero", 1000, 600, 10)


@pytest.fixture(scope='function')
def product_b(db_session, category):
    """500 cents, 3 on hand."""
    return _make_product(db_session, category, "TOY-B", "Dinosaur Set", 500, 200, 3)


def get_auth_token(client, username: str, password: str = TEST_PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, admin_user.username))


@pytest.fixture(scope='function')
def cashier_headers(client, cashier_user):
    return auth_headers(get_auth_token(client, cashier_user.username))


@pytest.fixture(scope='function')
def other_cashier_headers(client, other_cashier_user):
    return auth_headers(get_auth_token(client, other_cashier_user.username))
