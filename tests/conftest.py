import pytest

from fakes import FakeInspector


@pytest.fixture
def inspector():
    return FakeInspector()
