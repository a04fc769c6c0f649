"""Pytest configuration and shared fixtures."""

import pytest

from tests.fakes import FakeGateway


@pytest.fixture
def chain() -> FakeGateway:
    """Empty in-memory chain with head at 100."""
    return FakeGateway(head=100)


@pytest.fixture
def filled_chain(chain: FakeGateway) -> FakeGateway:
    """Chain with blocks 1..100, block 100 holding three transactions."""
    chain.fill(1, 99)
    chain.add_block(100, [{}, {}, {}])
    return chain
