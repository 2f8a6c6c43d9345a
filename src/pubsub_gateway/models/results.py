"""
Outcomes of a pull-and-acknowledge request.

Each variant renders its own plain-text body, so a failed acknowledgement
never carries part of a success listing.
"""
from dataclasses import dataclass, field
from typing import List, Union

from ..adapters.base import PulledMessage

NO_MESSAGES = "No messages available for retrieval."
ACK_FAILED = "Acking failed"


@dataclass(frozen=True)
class NoMessages:
    """Nothing was available; no acknowledgement was attempted."""

    def render(self) -> str:
        return NO_MESSAGES


@dataclass(frozen=True)
class PullSucceeded:
    """Every pulled message was acknowledged in one batch."""
    messages: List[PulledMessage] = field(default_factory=list)

    def render(self) -> str:
        lines = [f"Pulled and acked {len(self.messages)} message(s)"]
        lines.extend(
            f" Subscription: {msg.subscription}, message: {msg.text}."
            for msg in self.messages
        )
        return "\n".join(lines)


@dataclass(frozen=True)
class AckFailed:
    """The batched acknowledgement raised or timed out."""
    reason: str = ""

    def render(self) -> str:
        return ACK_FAILED


PullResult = Union[NoMessages, PullSucceeded, AckFailed]
