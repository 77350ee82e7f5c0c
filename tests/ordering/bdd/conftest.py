"""Shared BDD fixtures for checkout scenarios."""

import asyncio

import pytest


@pytest.fixture()
def run():
    """Drive coroutines from synchronous step functions."""
    loop = asyncio.new_event_loop()
    yield loop.run_until_complete
    loop.close()


@pytest.fixture()
def outcome():
    """Container for the results of the checkouts in a scenario."""
    return {"results": []}


@pytest.fixture(autouse=True)
def _record_events(published):
    """Start recording before any step publishes."""
    return published
