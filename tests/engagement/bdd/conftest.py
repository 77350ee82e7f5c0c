"""Shared BDD fixtures for chat scenarios."""

import asyncio

import pytest


@pytest.fixture()
def run():
    """Drive coroutines from synchronous step functions."""
    loop = asyncio.new_event_loop()
    yield loop.run_until_complete
    loop.close()


@pytest.fixture()
def error():
    """Container for captured errors."""
    return {"exc": None}
