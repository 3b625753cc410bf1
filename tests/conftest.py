"""
Pytest configuration and shared fixtures for tipster tests.
"""

import pytest

from tests.mocks import FakeClock, InMemoryPredictionRepository


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def repository():
    return InMemoryPredictionRepository()
