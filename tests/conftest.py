import pytest

from helpers import FakeReply, FakeRenderer


@pytest.fixture
def fake_reply():
    return FakeReply()


@pytest.fixture
def fake_renderer():
    return FakeRenderer()
