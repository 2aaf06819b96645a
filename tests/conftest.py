"""Pytest-wide fixtures."""

import pytest

from tests.helpers import SessionRecorder


@pytest.fixture
def sessions():
    return SessionRecorder()
