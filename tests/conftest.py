"""Pytest configuration and fixtures."""
import pytest

from tests.helpers import FakeCapability, FakeChatClient


@pytest.fixture
def fake_capability():
    return FakeCapability(reply="classified: urgent")


@pytest.fixture
def fake_chat_client():
    return FakeChatClient("urgent", "An urgent security fix is needed.")
