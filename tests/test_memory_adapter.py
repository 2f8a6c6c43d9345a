"""
Tests for the Memory Adapter.
"""
import pytest

from pubsub_gateway.adapters.base import (
    AcknowledgeError,
    ResourceExistsError,
    ResourceNotFoundError,
    SubscriptionError,
)
from pubsub_gateway.adapters.memory_adapter import MemoryAdapter


@pytest.fixture
async def adapter(memory_adapter):
    """Memory adapter with topic "orders" and subscription "orders-sub"."""
    await memory_adapter.create_topic("orders")
    await memory_adapter.create_subscription("orders-sub", "orders")
    return memory_adapter


class TestLifecycle:
    """Tests for connection and resource lifecycle."""

    async def test_connect_disconnect(self):
        """Test basic connect/disconnect lifecycle."""
        adapter = MemoryAdapter()

        assert not adapter.is_connected

        await adapter.connect()
        assert adapter.is_connected

        await adapter.disconnect()
        assert not adapter.is_connected

    async def test_operations_require_connection(self):
        adapter = MemoryAdapter()

        with pytest.raises(ConnectionError):
            await adapter.create_topic("orders")

    async def test_create_existing_topic_returns_none(self, memory_adapter):
        topic = await memory_adapter.create_topic("orders")
        assert topic is not None
        assert topic.name == "orders"

        assert await memory_adapter.create_topic("orders") is None

    async def test_create_then_delete_topic_leaves_nothing(self, memory_adapter):
        await memory_adapter.create_topic("orders")
        await memory_adapter.delete_topic("orders")

        # Recreating succeeds because nothing was left behind
        assert await memory_adapter.create_topic("orders") is not None

    async def test_delete_missing_resources(self, memory_adapter):
        with pytest.raises(ResourceNotFoundError):
            await memory_adapter.delete_topic("missing")
        with pytest.raises(ResourceNotFoundError):
            await memory_adapter.delete_subscription("missing")

    async def test_subscription_requires_topic(self, memory_adapter):
        with pytest.raises(ResourceNotFoundError):
            await memory_adapter.create_subscription("orders-sub", "missing")

    async def test_duplicate_subscription(self, adapter):
        with pytest.raises(ResourceExistsError):
            await adapter.create_subscription("orders-sub", "orders")


class TestPublishAndPull:
    """Tests for publish, pull and acknowledge."""

    async def test_publish_resolves_future_with_message_id(self, adapter):
        future = adapter.publish("orders", b"hello")
        assert future.result() is not None

    async def test_publish_to_missing_topic_fails_future(self, memory_adapter):
        future = memory_adapter.publish("missing", b"hello")
        assert isinstance(future.exception(), ResourceNotFoundError)

    async def test_pull_respects_max_messages(self, adapter):
        for i in range(5):
            adapter.publish("orders", f"m{i}".encode())

        first = await adapter.pull("orders-sub", 3)
        second = await adapter.pull("orders-sub", 3)

        assert [m.data for m in first] == [b"m0", b"m1", b"m2"]
        assert [m.data for m in second] == [b"m3", b"m4"]
        assert all(m.subscription == "orders-sub" for m in first + second)

    async def test_pull_empty(self, adapter):
        assert await adapter.pull("orders-sub", 10) == []

    async def test_pull_missing_subscription(self, memory_adapter):
        with pytest.raises(ResourceNotFoundError):
            await memory_adapter.pull("missing", 10)

    async def test_fan_out_to_every_subscription(self, adapter):
        await adapter.create_subscription("audit-sub", "orders")
        adapter.publish("orders", b"hello")

        orders = await adapter.pull("orders-sub", 10)
        audit = await adapter.pull("audit-sub", 10)

        assert len(orders) == 1
        assert len(audit) == 1
        assert orders[0].message_id == audit[0].message_id
        # Distinct deliveries of the same message are not equal
        assert orders[0] != audit[0]

    async def test_acknowledge_releases_lease(self, adapter):
        adapter.publish("orders", b"hello")
        pulled = await adapter.pull("orders-sub", 10)

        await adapter.acknowledge(pulled)

        assert adapter._subscriptions["orders-sub"]["leased"] == {}

    async def test_acknowledge_unknown_subscription(self, adapter):
        adapter.publish("orders", b"hello")
        pulled = await adapter.pull("orders-sub", 10)
        await adapter.delete_subscription("orders-sub")

        with pytest.raises(AcknowledgeError):
            await adapter.acknowledge(pulled)

    async def test_deleted_topic_stops_delivery(self, adapter):
        await adapter.delete_topic("orders")
        await adapter.create_topic("orders")
        adapter.publish("orders", b"hello")

        assert await adapter.pull("orders-sub", 10) == []


class TestPushListeners:
    """Tests for push-style listeners."""

    async def test_listener_receives_and_acks(self, adapter):
        received = []

        def callback(message):
            received.append(message.data)
            message.ack()

        await adapter.subscribe("orders-sub", callback)
        adapter.publish("orders", b"hello")

        assert received == [b"hello"]
        assert adapter._subscriptions["orders-sub"]["leased"] == {}
        assert await adapter.pull("orders-sub", 10) == []

    async def test_listener_drains_existing_backlog(self, adapter):
        adapter.publish("orders", b"early")
        received = []

        await adapter.subscribe("orders-sub", lambda m: (received.append(m.data), m.ack()))

        assert received == [b"early"]

    async def test_nack_requeues(self, adapter):
        handle = await adapter.subscribe("orders-sub", lambda m: m.nack())
        adapter.publish("orders", b"hello")
        handle.cancel()

        pulled = await adapter.pull("orders-sub", 10)
        assert [m.data for m in pulled] == [b"hello"]

    async def test_round_robin_between_listeners(self, adapter):
        received_a = []
        received_b = []

        await adapter.subscribe("orders-sub", lambda m: (received_a.append(m.data), m.ack()))
        await adapter.subscribe("orders-sub", lambda m: (received_b.append(m.data), m.ack()))

        for i in range(4):
            adapter.publish("orders", f"m{i}".encode())

        assert len(received_a) == 2
        assert len(received_b) == 2

    async def test_listener_error_isolation(self, adapter):
        """A failing listener does not break publish."""
        def failing(message):
            raise ValueError("Listener error")

        await adapter.subscribe("orders-sub", failing)

        future = adapter.publish("orders", b"hello")
        assert future.result() is not None

    async def test_cancelled_listener_gets_nothing(self, adapter):
        received = []
        handle = await adapter.subscribe("orders-sub", lambda m: received.append(m.data))

        assert handle.cancel() is True
        assert handle.cancelled()
        adapter.publish("orders", b"hello")

        assert received == []

    async def test_subscribe_missing_subscription(self, memory_adapter):
        with pytest.raises(SubscriptionError):
            await memory_adapter.subscribe("missing", lambda m: None)
