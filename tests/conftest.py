import pytest

from app import create_app
from config import TestConfig
from models import db
from services import document_store


class FakeClock:
    """Manually advanced replacement for time.monotonic."""

    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    yield document_store
    # every test must leave no standing listener behind
    assert document_store.listener_count() == 0


@pytest.fixture
def clock():
    return FakeClock()
