"""
Shared pytest fixtures.

Async tests run on the anyio plugin that ships with FastAPI's anyio
dependency; pin it to asyncio so trio is never required.
"""

import pytest


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def example_keys() -> list[str]:
    """The three-object container used throughout the docs."""
    return [
        "d1/op1/before.png",
        "d1/op1/after.png",
        "d1/op2/before.jpg",
    ]
