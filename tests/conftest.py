"""
Pytest configuration for Pub/Sub Gateway tests.
"""
import os

import pytest

# Set test environment variables BEFORE importing the app
os.environ["PUBSUB_ADAPTER"] = "memory"
os.environ["DEBUG"] = "true"

from pubsub_gateway.adapters.memory_adapter import MemoryAdapter
from pubsub_gateway.services.gateway import PubSubGateway


@pytest.fixture
async def memory_adapter():
    """Create and connect a memory adapter for testing."""
    adapter = MemoryAdapter()
    await adapter.connect()
    yield adapter
    await adapter.disconnect()


@pytest.fixture
async def service(memory_adapter):
    """A gateway wired to a fresh memory adapter."""
    gateway = PubSubGateway()
    await gateway.initialize(memory_adapter)
    yield gateway
    await gateway.shutdown()
