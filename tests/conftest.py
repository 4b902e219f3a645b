"""Pytest configuration and fixtures."""

import pytest

from mottoparty import create_app
from mottoparty.extensions import db
from mottoparty.models import MottoSubmission, Participant


@pytest.fixture
def app_config(tmp_path):
    # A file database so that threads get their own connections.
    return {
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'mottoparty-test.db'}",
        "SQLALCHEMY_ENGINE_OPTIONS": {"connect_args": {"check_same_thread": False}},
        "WTF_CSRF_ENABLED": False,
        "MOTTO_ORGANIZER_NAME": "Antonia",
    }


@pytest.fixture
def app(app_config):
    app = create_app(app_config)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def add_participant(app):
    """Insert a participant (and optionally their motto) straight into the database."""

    def _add(name, motto=None):
        p = Participant(name=name, passkey_hash="not-a-real-hash")
        db.session.add(p)
        db.session.flush()
        if motto is not None:
            db.session.add(MottoSubmission(participant_id=p.id, text=motto))
        db.session.commit()
        return p

    return _add


def register(client, name, password="hunter2"):
    return client.post("/auth/register", json={"name": name, "password": password})


def login(client, name, password="hunter2"):
    return client.post("/auth/login", json={"name": name, "password": password})
