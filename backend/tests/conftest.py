"""
Pytest fixtures for storefront backend tests.

Provides an in-memory database, a test client, accounts for each role with
ready-made bearer headers, a product factory, and a fake object store.
"""

from decimal import Decimal

import pytest

from storefront import create_app
from storefront.config import TestConfig
from storefront.extensions import db
from storefront.models import Category, Customer, Product, User
from storefront.services import storage_service
from storefront.services.auth_service import hash_password
from storefront.services.token_service import issue_token


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function', autouse=True)
def db_session(app):
    """Fresh data for each test."""
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    db.session.rollback()


def make_user(username, role="customer", password="secret123", status="active", with_customer=True):
    user = User(
        username=username,
        email=f"{username}@shop.test",
        password_hash=hash_password(password),
        role=role,
        status=status,
    )
    db.session.add(user)
    db.session.flush()
    if with_customer:
        db.session.add(Customer(user_id=user.id, name=username.title(), phone="020 5555 0101", address="1 Main St"))
    db.session.commit()
    return user


def bearer(user):
    return {"Authorization": f"Bearer {issue_token(user)}"}


@pytest.fixture
def customer(db_session):
    return make_user("alice")


@pytest.fixture
def other_customer(db_session):
    return make_user("bob")


@pytest.fixture
def employee(db_session):
    return make_user("erin", role="employee", with_customer=False)


@pytest.fixture
def staff(db_session):
    return make_user("sam", role="staff", with_customer=False)


@pytest.fixture
def admin(db_session):
    return make_user("root", role="admin", with_customer=False)


@pytest.fixture
def customer_headers(customer):
    return bearer(customer)


@pytest.fixture
def other_headers(other_customer):
    return bearer(other_customer)


@pytest.fixture
def employee_headers(employee):
    return bearer(employee)


@pytest.fixture
def staff_headers(staff):
    return bearer(staff)


@pytest.fixture
def admin_headers(admin):
    return bearer(admin)


@pytest.fixture
def make_product(db_session):
    def _make(name="Widget", price="10000", stock=5, category=None, description=None):
        product = Product(
            name=name,
            description=description,
            price=Decimal(price),
            stock_quantity=stock,
            category_id=category.id if category else None,
        )
        db.session.add(product)
        db.session.commit()
        return product
    return _make


@pytest.fixture
def category(db_session):
    cat = Category(name="Clothing")
    db.session.add(cat)
    db.session.commit()
    return cat


@pytest.fixture
def fake_storage(monkeypatch):
    """
    Replace S3 with an in-memory record of uploads and deletes.

    Set fake_storage.fail = True to make uploads raise StorageError.
    """
    class FakeStorage:
        def __init__(self):
            self.uploads = []
            self.deleted = []
            self.fail = False

        def upload_file(self, file, folder, allowed_types=storage_service.ALLOWED_IMAGE_TYPES):
            extension = storage_service.check_upload(file, allowed_types)
            if self.fail:
                raise storage_service.StorageError("bucket unavailable")
            key = f"{folder}/{len(self.uploads) + 1}{extension}"
            self.uploads.append(key)
            return {"url": f"https://cdn.shop.test/{key}", "key": key}

        def delete_file(self, url):
            self.deleted.append(url)

    fake = FakeStorage()
    monkeypatch.setattr(storage_service, "upload_file", fake.upload_file)
    monkeypatch.setattr(storage_service, "delete_file", fake.delete_file)
    return fake


@pytest.fixture
def make_account(db_session):
    """Factory for extra accounts beyond the fixed role fixtures."""
    return make_user
