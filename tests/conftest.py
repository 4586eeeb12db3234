from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

from glossary.models import Tag, Term
from glossary.models import db as _db

BASE_TIME = datetime(2026, 1, 1, 12, 0, 0)


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing (session-scoped)."""
    with patch("glossary.upgrade"):
        from glossary import create_app

        _app = create_app("testing")

    yield _app


@pytest.fixture(autouse=True)
def db(app):
    """Create all tables before each test, drop them after."""
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture()
def client(app):
    """Test client for the JSON API."""
    return app.test_client()


def _at(minutes):
    """A fixed, naive creation timestamp ``minutes`` after BASE_TIME."""
    return BASE_TIME + timedelta(minutes=minutes)


def _make_term(title="Test Term", content="A test definition.", tags=("general",), created_at=None):
    """Create and persist a Term, reusing tags by name. Callable multiple times per test."""
    tag_objs = []
    for name in tags:
        tag = Tag.query.filter_by(name=name).first()
        if tag is None:
            tag = Tag(name=name)
            _db.session.add(tag)
        tag_objs.append(tag)

    term = Term(title=title, content=content, tags=tag_objs)
    if created_at is not None:
        term.created_at = created_at
    _db.session.add(term)
    _db.session.commit()
    return term


def _transient_term(title, minutes=0, content="", tags=()):
    """Build an unsaved Term for the pure query tests."""
    return Term(
        title=title,
        content=content,
        created_at=_at(minutes),
        tags=[Tag(name=name) for name in tags],
    )
