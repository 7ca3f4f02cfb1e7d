"""Pytest configuration for tests.

No sys.path hacks - tests should import from installed chiastamp package.
Builders shared across modules live in proof_builders.py.
"""

import pytest

from proof_builders import COMMIT_TIME, CoinsetStub, make_artifact, mock_client

from chiastamp._internal.coinset import CoinsetClient


@pytest.fixture
def content() -> bytes:
    return b"hello chiastamp"


@pytest.fixture
def artifact(content):
    """A confirmed, salted proof for `content`."""
    return make_artifact(content)


@pytest.fixture
def coinset_stub() -> CoinsetStub:
    return CoinsetStub()


@pytest.fixture
def coinset_client(coinset_stub) -> CoinsetClient:
    return CoinsetClient("https://coinset.test", client=mock_client(coinset_stub))


@pytest.fixture
def one_hour_later():
    """Clock fixed exactly one hour after the default commitment time."""
    return lambda: float(COMMIT_TIME + 3_600)
