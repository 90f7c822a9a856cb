"""Shared fixtures."""

import pytest

from fakes import FakeClock, FakeLLM, FakeProvider, FakeStore


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return FakeStore(clock)


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def llm():
    return FakeLLM()
