"""
Base adapter interface for managed Pub/Sub backends.

All adapters must implement this interface so the gateway behaves the same
against Google Cloud Pub/Sub and the in-memory development broker.
"""
from abc import ABC, abstractmethod
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Protocol


class ReceivedMessage(Protocol):
    """A message handed to a push listener."""

    data: bytes
    message_id: str

    def ack(self) -> None:
        ...

    def nack(self) -> None:
        ...


class SubscriberHandle(Protocol):
    """Handle returned when a push listener is registered."""

    def cancel(self) -> Any:
        ...

    def cancelled(self) -> bool:
        ...


# Type alias for push listener callbacks
MessageCallback = Callable[[ReceivedMessage], None]


@dataclass(frozen=True)
class Topic:
    """A topic as reported by the backend after creation."""
    name: str
    path: str


@dataclass(frozen=True)
class PulledMessage:
    """
    A message leased by a synchronous pull.

    Equality is field-wise. Every delivery carries its own ack_id, so two
    deliveries of the same payload are distinct members of a set.
    """
    subscription: str
    message_id: str
    data: bytes
    ack_id: str

    @property
    def text(self) -> str:
        """Payload decoded as UTF-8 for display."""
        return self.data.decode("utf-8", errors="replace")


class PubSubAdapter(ABC):
    """
    Abstract base class for Pub/Sub adapters.

    This interface covers the administrative calls (topics and
    subscriptions) and the messaging calls (publish, pull, acknowledge,
    push listeners) the gateway delegates to.
    """

    @abstractmethod
    async def connect(self) -> None:
        """
        Create the backend clients.

        Raises:
            ConnectionError: If the backend cannot be reached or configured
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Release the backend clients."""
        pass

    @abstractmethod
    async def create_topic(self, name: str) -> Optional[Topic]:
        """
        Create a topic.

        Returns:
            The created topic, or None if the backend did not create one
        """
        pass

    @abstractmethod
    async def delete_topic(self, name: str) -> None:
        """
        Delete a topic.

        Raises:
            ResourceNotFoundError: If the topic does not exist
        """
        pass

    @abstractmethod
    async def create_subscription(self, name: str, topic_name: str) -> None:
        """
        Create a subscription bound to a topic.

        Raises:
            ResourceNotFoundError: If the topic does not exist
            ResourceExistsError: If the subscription already exists
        """
        pass

    @abstractmethod
    async def delete_subscription(self, name: str) -> None:
        """
        Delete a subscription.

        Raises:
            ResourceNotFoundError: If the subscription does not exist
        """
        pass

    @abstractmethod
    def publish(self, topic_name: str, data: bytes) -> "Future[str]":
        """
        Publish a message without waiting for the broker.

        Args:
            topic_name: Short topic name
            data: Message payload

        Returns:
            A future resolving to the message ID once the broker accepts it
        """
        pass

    @abstractmethod
    async def pull(
        self,
        subscription_name: str,
        max_messages: int,
        return_immediately: bool = True,
    ) -> List[PulledMessage]:
        """
        Lease up to max_messages messages from a subscription.

        Args:
            subscription_name: Short subscription name
            max_messages: Upper bound on the batch size
            return_immediately: Answer at once when no messages are available

        Returns:
            The leased messages, possibly empty
        """
        pass

    @abstractmethod
    async def acknowledge(self, messages: Iterable[PulledMessage]) -> None:
        """
        Acknowledge a batch of pulled messages in one operation.

        The batch may span several subscriptions.

        Raises:
            AcknowledgeError: If the batch could not be acknowledged
        """
        pass

    @abstractmethod
    async def subscribe(
        self,
        subscription_name: str,
        callback: MessageCallback,
    ) -> SubscriberHandle:
        """
        Register a push listener on a subscription.

        The callback runs outside the calling request, on a context owned by
        the backend, for as long as the returned handle is not cancelled.

        Raises:
            SubscriptionError: If the listener could not be registered
        """
        pass

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Check if the adapter has live backend clients."""
        pass

    @property
    def name(self) -> str:
        """Return the adapter name for logging."""
        return self.__class__.__name__


class AdapterError(Exception):
    """Base exception for adapter errors."""
    pass


class PublishError(AdapterError):
    """Raised when a message could not be published."""
    pass


class SubscriptionError(AdapterError):
    """Raised when a push listener could not be registered."""
    pass


class AcknowledgeError(AdapterError):
    """Raised when a batch of messages could not be acknowledged."""
    pass


class ResourceNotFoundError(AdapterError):
    """Raised when a topic or subscription does not exist."""
    pass


class ResourceExistsError(AdapterError):
    """Raised when a topic or subscription already exists."""
    pass
