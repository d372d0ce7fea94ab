"""
Pytest configuration and shared fixtures for TechStore admin tests.
"""

import pytest

from app import app as flask_app
from init_data import ADMIN_EMAIL, ADMIN_PASSWORD
from utils.db import SimpleDB
from utils.inventory import ShopState


@pytest.fixture
def db(tmp_path):
    """Empty data directory per test."""
    return SimpleDB(str(tmp_path / 'data'))


@pytest.fixture
def state(db):
    """Two products (P1 stock 20, P2 stock 3) and no orders."""
    products = [
        {'id': 1, 'name': 'P1', 'category': 'Laptop', 'price': 1000, 'quantity': 20},
        {'id': 2, 'name': 'P2', 'category': 'Phụ kiện', 'price': 500, 'quantity': 3},
    ]
    shop = ShopState(products, [], db)
    shop.save()
    return shop


@pytest.fixture
def app(tmp_path):
    flask_app.config.update(
        TESTING=True,
        DATA_DIR=str(tmp_path / 'app-data'),
        BCRYPT_ROUNDS=4,
        PAGE_SIZE=5,
    )
    yield flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(client):
    client.post('/login', data={'email': ADMIN_EMAIL, 'password': ADMIN_PASSWORD})
    return client


@pytest.fixture
def app_db(app):
    return SimpleDB(app.config['DATA_DIR'])
