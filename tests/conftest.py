"""
tests/conftest.py — Shared fixtures: temporary stores, repositories and app.
"""

import os
import tempfile

import pytest

from app import create_app
from repositories import build_repositories
from store import LocalRecordStore
from utils.notifications import Notifier


@pytest.fixture
def db_path():
    """Temporary SQLite file, removed with its WAL side files."""
    db_fd, path = tempfile.mkstemp(suffix='.db')
    yield path
    os.close(db_fd)
    for suffix in ('', '-wal', '-shm'):
        try:
            os.unlink(path + suffix)
        except (FileNotFoundError, PermissionError):
            pass  # Windows may hold the file


@pytest.fixture
def empty_store(db_path):
    return LocalRecordStore(db_path, seed=False)


@pytest.fixture
def seeded_store(db_path):
    return LocalRecordStore(db_path, seed=True)


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def repos(seeded_store, notifier):
    """Repositories over the seeded local store, reporting to `notifier`."""
    return build_repositories(seeded_store).bind(notifier)


@pytest.fixture
def app(db_path):
    app = create_app({
        'TESTING': True,
        'FARMLOG_DB_PATH': db_path,
        'WTF_CSRF_ENABLED': False,
        'SECRET_KEY': 'dev-key-for-testing',
    })
    yield app


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client
