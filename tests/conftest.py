"""Pytest configuration and fixtures"""

import pytest
import tempfile
import os
import shutil
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from blocker import config_loader
from blocker import db
from blocker.config_loader import Config
from blocker.denylist import DenyListStore
from blocker.hosts import SystemHostsFile
from blocker.session import BlockSession


ORIGINAL_HOSTS = (
    "127.0.0.1\tlocalhost\n"
    "127.0.1.1\tanders-ThinkPad-X240\n"
    "\n"
    "# The following lines are desirable for IPv6 capable hosts\n"
    "::1     ip6-localhost ip6-loopback\n"
)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files"""
    temp_dir = tempfile.mkdtemp()
    yield Path(temp_dir)
    shutil.rmtree(temp_dir)


@pytest.fixture
def temp_db(temp_dir):
    """Create a temporary state database for testing"""
    db_path = temp_dir / 'state.db'

    # Monkey patch the database path
    original_db_path = db.DB_PATH
    db.DB_PATH = db_path

    db.init_db()

    yield db_path

    db.DB_PATH = original_db_path


@pytest.fixture
def hosts_path(temp_dir):
    """A scratch hosts file with typical content"""
    path = temp_dir / 'hosts'
    path.write_text(ORIGINAL_HOSTS)
    return path


@pytest.fixture
def denylist(temp_dir):
    return DenyListStore(temp_dir / 'config' / 'urls')


@pytest.fixture
def hosts(temp_dir, hosts_path):
    return SystemHostsFile(hosts_path, temp_dir / 'hosts.lock')


@pytest.fixture
def session(temp_db, hosts, denylist):
    """A block session over the scratch hosts file with one listed hostname"""
    denylist.append('example.com')
    session = BlockSession(hosts, denylist)
    yield session
    # Never leave a live timer behind
    if session.timer is not None:
        session.timer.cancel()


@pytest.fixture
def test_config(temp_dir):
    """Load test configuration"""
    test_config_path = os.path.join(os.path.dirname(__file__), 'test_config.yaml')
    return Config(test_config_path, config_dir=temp_dir / 'config')


@pytest.fixture
def cli_env(temp_dir, hosts_path, monkeypatch):
    """Point the command line entry point at scratch files"""
    config_dir = temp_dir / 'config'
    config_dir.mkdir()
    (config_dir / 'config.yaml').write_text(f"hosts_path: {hosts_path}\n")
    monkeypatch.setattr(config_loader, 'user_config_dir', lambda: config_dir)

    original_db_path = db.DB_PATH
    yield config_dir
    db.DB_PATH = original_db_path
