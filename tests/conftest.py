"""
Shared pytest fixtures for bracket engine tests.

Running tests:
    pytest tests/                  - full suite
    pytest tests/ -m "not slow"   - skip the participant-count sweeps
"""
import pytest
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from brackets.models import Participant


@pytest.fixture
def keep_order():
    """Shuffler that leaves participants in the given order."""
    return list


@pytest.fixture
def make_participants():
    """Factory for participants p1..pN named P1..PN."""
    def _make(count):
        return [Participant(id=f"p{i}", name=f"P{i}") for i in range(1, count + 1)]
    return _make


@pytest.fixture
def lettered_participants():
    """Participants A-E, ids equal to names."""
    return [Participant(id=letter, name=letter) for letter in "ABCDE"]


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Point the Flask app at a temporary data directory."""
    import app as app_module

    data_dir = tmp_path / "data"
    data_dir.mkdir()
    monkeypatch.setattr(app_module, 'DATA_DIR', str(data_dir))
    return str(data_dir)


@pytest.fixture
def client(temp_data_dir):
    """Flask test client backed by the temporary data directory."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client
