import pytest

from wrapping_set import WrappingSet


@pytest.fixture
def foobarbaz():
    ws = WrappingSet()
    ws.insert("foo")
    ws.insert("bar")
    ws.insert("baz")
    return ws
