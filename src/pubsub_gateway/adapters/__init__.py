"""
Pub/Sub Gateway Adapters

This package provides the adapter pattern implementation for the managed
Pub/Sub backend (Google Cloud Pub/Sub) and an in-memory stand-in.
"""
from .base import (
    AcknowledgeError,
    AdapterError,
    PublishError,
    PubSubAdapter,
    PulledMessage,
    ResourceExistsError,
    ResourceNotFoundError,
    SubscriptionError,
    Topic,
)
from .gcp_adapter import GooglePubSubAdapter
from .memory_adapter import MemoryAdapter

__all__ = [
    "PubSubAdapter",
    "GooglePubSubAdapter",
    "MemoryAdapter",
    "PulledMessage",
    "Topic",
    "AdapterError",
    "PublishError",
    "SubscriptionError",
    "AcknowledgeError",
    "ResourceNotFoundError",
    "ResourceExistsError",
]
