"""Test configuration."""
import asyncio
import os
import random
from pathlib import Path
from typing import Generator

import pytest
from dotenv import load_dotenv

# Set test environment before any imports
os.environ["ENV"] = "test"

# Load test environment variables
test_env_path = Path(__file__).parent.parent.parent.parent / ".env.test"
load_dotenv(test_env_path)
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_spelldrill.db")
os.environ.setdefault("SETTLE_DELAY", "0.05")


@pytest.fixture
def loop() -> Generator[asyncio.AbstractEventLoop, None, None]:
    """A private event loop for scheduling tasks from synchronous tests."""
    loop = asyncio.new_event_loop()
    try:
        yield loop
    finally:
        loop.close()


@pytest.fixture
def rng() -> random.Random:
    """Deterministic random source."""
    return random.Random(1234)
