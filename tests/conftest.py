import pytest

from tests.fakes import RecordingSink


@pytest.fixture
def sink():
    return RecordingSink()
