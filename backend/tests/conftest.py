"""
Pytest configuration and fixtures
"""
import asyncio
import os
import sys
from pathlib import Path
from typing import List, Optional

import pytest

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

# Tests never touch real files, databases or the text generation CLI
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["LOG_FILE_ENABLED"] = "false"
os.environ["STRUCTURE_AGENT_USE_AI"] = "false"
os.environ.setdefault("LOG_FORMAT", "text")

from bricks_builder.core.cancellation import CancellationToken
from bricks_builder.core.database import (get_session_local, init_db,
                                          reset_engine)
from bricks_builder.core.text_generation import TextGenerator


class FakeTextGenerator(TextGenerator):
    """TextGenerator returning a canned response (or raising) and recording prompts"""

    name = "fake"

    def __init__(
        self,
        response: str = "",
        error: Optional[Exception] = None,
        delay_seconds: float = 0.0
    ):
        self.response = response
        self.error = error
        self.delay_seconds = delay_seconds
        self.prompts: List[str] = []
        self.timeouts: List[int] = []
        self.tokens: List[Optional[CancellationToken]] = []

    async def generate(self, prompt, timeout_ms, cancellation=None):
        self.prompts.append(prompt)
        self.timeouts.append(timeout_ms)
        self.tokens.append(cancellation)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def fake_generator():
    """Factory for FakeTextGenerator instances"""
    return FakeTextGenerator


@pytest.fixture(scope="function")
def db():
    """Database session on a fresh in-memory schema"""
    # Disposing the engine drops the in-memory database
    reset_engine()
    init_db()

    session = get_session_local()()
    try:
        yield session
    finally:
        session.close()
        reset_engine()
