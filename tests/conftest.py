"""
Shared fixtures: a snapshot of a Control Tower ready account and fake
credentials for moto-backed tests.
"""

import copy
import os

import pytest

from readiness.context import build_context
from readiness.snapshot import SnapshotSession
from utils import load_json_file

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")
READY_ACCOUNT_FILE = os.path.join(FIXTURES_DIR, "ready_account.json")

_READY_ACCOUNT = load_json_file(READY_ACCOUNT_FILE)


@pytest.fixture
def ready_snapshot():
    """A fresh, mutable copy of the ready account snapshot."""
    return copy.deepcopy(_READY_ACCOUNT)


@pytest.fixture
def ready_account_file():
    return READY_ACCOUNT_FILE


@pytest.fixture
def snapshot_context():
    """Factory: build an AssessmentContext over a snapshot dict."""
    def _make(data, region="us-east-1", region_source="argument"):
        session = SnapshotSession(data)
        return build_context(session, region, region_source, environ={})
    return _make


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake credentials so moto never touches a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.delenv("AWS_PROFILE", raising=False)
