"""
CampusMart - Test Fixtures

Shared pytest fixtures: an in-memory store, two users and one listing.
"""

import os
from datetime import datetime, timedelta

# TEST-ONLY settings; must be in place before campusmart.core.config is imported
os.environ.setdefault("MONGO_URL", "mongodb://localhost:27017/?replicaSet=rs0")
os.environ.setdefault("DB_NAME", "campusmart_test")
os.environ.setdefault("JWT_SECRET", "test-secret-key-at-least-32-characters-long")
os.environ.setdefault("TRANSACTION_RETRY_BACKOFF", "0")

import pytest

from campusmart.models.product import Category, Product
from campusmart.models.user import User, UserSummary
from campusmart.services.workflow import WorkflowSession
from fakes import FakeClient


@pytest.fixture
def client():
    return FakeClient()


@pytest.fixture
def db(client):
    return client.db


@pytest.fixture
def buyer(db):
    user = User(id="buyer-b", name="Bella", email="bella@student.usm.my")
    db.users.seed(user.model_dump())
    return user


@pytest.fixture
def seller(db):
    user = User(id="seller-s", name="Sam", email="sam@student.usm.my", qr_code_url="https://img.test/sam-qr.png")
    db.users.seed(user.model_dump())
    return user


def make_product(seller: User, product_id: str, name: str, price: float, added: datetime = None) -> Product:
    return Product(
        id=product_id,
        name=name,
        description=f"Gently used {name.lower()}",
        price=price,
        category=Category(id="hostel", name="Hostel Essentials"),
        seller=UserSummary(id=seller.id, name=seller.name, qr_code_url=seller.qr_code_url),
        image_urls=[f"https://img.test/{product_id}.jpg"],
        date_added=added or datetime.utcnow() - timedelta(days=1),
    )


@pytest.fixture
def product(db, seller):
    listing = make_product(seller, "product-p", "Desk Lamp", 50.00)
    db.products.seed(listing.model_dump())
    return listing


@pytest.fixture
def other_product(db, seller):
    listing = make_product(seller, "product-q", "Rice Cooker", 35.50)
    db.products.seed(listing.model_dump())
    return listing


@pytest.fixture
def workflow_for(db, client):
    def build(user):
        return WorkflowSession(db, client, user)
    return build
