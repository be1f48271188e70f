import asyncio

import pytest

from formstate import create_form_store
from formstate.config import get_settings


def run(coro):
    """Drive a coroutine to completion on a fresh event loop."""
    return asyncio.run(coro)


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def store():
    return create_form_store()


@pytest.fixture
def submitted():
    """Collects the values passed to a submit handler."""
    calls = []

    def handler(values):
        calls.append(values)
        return {"success": True}

    handler.calls = calls
    return handler
