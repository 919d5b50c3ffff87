import asyncio
import random
from collections.abc import Iterator

import pytest

from pydantic_ai_proposer import TaskSchema
from tests.utils import sentiment_schema


@pytest.fixture(scope='session')
def anyio_backend():
    return 'asyncio'


@pytest.fixture(scope='session', autouse=True)
def event_loop() -> Iterator[None]:
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield
    loop.close()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(7)


@pytest.fixture
def schema() -> TaskSchema:
    return sentiment_schema()
