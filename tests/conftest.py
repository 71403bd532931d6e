from __future__ import annotations

import os
import sys
from datetime import date

import pytest
from werkzeug.security import generate_password_hash

# Ensure the app package and test helpers are importable from any directory
BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, BASE_DIR)

from app import create_admin_user, create_app, db  # noqa: E402
from app.models import Customer, Invoice, User  # noqa: E402


@pytest.fixture
def app(tmp_path):
    os.environ.setdefault("SECRET_KEY", "testsecret")
    os.environ.setdefault("ADMIN_EMAIL", "admin@example.com")
    os.environ.setdefault("ADMIN_PASS", "adminpass")

    db_path = tmp_path / "invoices.db"
    app = create_app(
        ["--demo"],
        {
            "TESTING": True,
            "WTF_CSRF_ENABLED": False,
            "RATELIMIT_ENABLED": False,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
            "ACTIVITY_LOG_BATCH_SIZE": 1,
        },
    )

    with app.app_context():
        db.create_all()
        create_admin_user()

        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def user(app):
    """An active user that can sign in with ``user@nextmail.com``/``123456``."""
    with app.app_context():
        user = User(
            name="User",
            email="user@nextmail.com",
            password=generate_password_hash("123456"),
            active=True,
        )
        db.session.add(user)
        db.session.commit()
        return user.email, "123456"


@pytest.fixture
def customers(app):
    with app.app_context():
        rows = [
            Customer(name="Evil Rabbit", email="evil@rabbit.com"),
            Customer(name="Lee Robinson", email="lee@robinson.com"),
        ]
        db.session.add_all(rows)
        db.session.commit()
        return [c.id for c in rows]


@pytest.fixture
def invoice(app, customers):
    with app.app_context():
        row = Invoice(
            customer_id=customers[0],
            amount=15795,
            status="pending",
            date=date(2022, 12, 6),
        )
        db.session.add(row)
        db.session.commit()
        return row.id
