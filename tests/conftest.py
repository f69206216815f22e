"""
Shared test setup: a throwaway database, local uploads and a known admin
account, set before any cms module reads its configuration.
"""

import os
import tempfile

import pytest
from unittest.mock import patch

TEST_DB_PATH = tempfile.mkstemp(suffix='.db')[1]
TEST_UPLOAD_DIR = tempfile.mkdtemp()
os.environ['DB_PATH'] = TEST_DB_PATH
os.environ['UPLOAD_PROVIDER'] = 'local'
os.environ['UPLOAD_DIR'] = TEST_UPLOAD_DIR
os.environ['ADMIN_EMAIL'] = 'admin@example.com'
os.environ['ADMIN_PASSWORD'] = 'correct-horse'
os.environ['AUTH_ENABLED'] = 'true'
os.environ['FTP_DOMAIN'] = 'cdn.example.com'

from fastapi.testclient import TestClient

from cms.core import config
from cms.core.db import init_db

ADMIN_EMAIL = 'admin@example.com'
ADMIN_PASSWORD = 'correct-horse'


@pytest.fixture
def fresh_db(tmp_path):
    """Point the store at an empty database for one test."""
    db_path = str(tmp_path / "content.db")
    with patch.object(config, "DB_PATH", db_path):
        init_db()
        yield db_path


@pytest.fixture
def upload_dir(tmp_path):
    directory = tmp_path / "uploads"
    with patch.object(config, "UPLOAD_PROVIDER", "local"), \
         patch.object(config, "UPLOAD_DIR", str(directory)):
        yield directory


@pytest.fixture
def auth_disabled():
    with patch.object(config, "AUTH_ENABLED", False):
        yield


@pytest.fixture
def api_client(fresh_db, upload_dir):
    from cms.api.main import app
    return TestClient(app)


@pytest.fixture
def admin_client(api_client):
    """Test client holding a logged-in session cookie."""
    response = api_client.post("/api/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return api_client
