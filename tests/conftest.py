"""
Shared pytest configuration for the Creative Review test suite.

Configuration is read from the environment when modules are first
imported, so the environment is pointed at a scratch directory here,
before any test module imports the application.
"""

import os
import tempfile

import pytest

_SCRATCH = tempfile.mkdtemp(prefix='creative-review-tests-')
os.environ.setdefault('CR_DATA_DIR', os.path.join(_SCRATCH, 'data'))
os.environ.setdefault('CR_UPLOAD_DIR', os.path.join(_SCRATCH, 'uploads'))
os.environ.setdefault('CR_LOG_DIR', os.path.join(_SCRATCH, 'logs'))
os.environ['CR_LOG_TO_FILE'] = 'false'
os.environ['CR_LOG_TO_CONSOLE'] = 'false'

from config_logging import reset_config  # noqa: E402
from creative_review.store import ProjectStore, reset_project_store  # noqa: E402


@pytest.fixture
def app_env(tmp_path, monkeypatch):
    """Point configuration at a fresh directory for one test."""
    monkeypatch.setenv('CR_DATA_DIR', str(tmp_path / 'data'))
    monkeypatch.setenv('CR_UPLOAD_DIR', str(tmp_path / 'uploads'))
    monkeypatch.setenv('CR_LOG_DIR', str(tmp_path / 'logs'))
    reset_config()
    reset_project_store()
    yield tmp_path
    reset_config()
    reset_project_store()


@pytest.fixture
def store(tmp_path) -> ProjectStore:
    """A project store backed by a temporary JSON file."""
    return ProjectStore(str(tmp_path / 'projects.json'))


@pytest.fixture
def client(app_env):
    """Flask test client wired to a temporary data directory."""
    from app import create_app

    app = create_app()
    app.config['TESTING'] = True
    with app.test_client() as test_client:
        yield test_client
