from typing import List
from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(..., description="Service status")
    adapter: str = Field(..., description="Active adapter type")
    connected: bool = Field(..., description="Whether adapter is connected")
    active_subscribers: int = Field(..., description="Number of registered push listeners")


class SubscriberInfo(BaseModel):
    """A push listener retained by the gateway."""
    subscription: str = Field(..., description="Subscription the listener is attached to")
    cancelled: bool = Field(default=False, description="Whether the listener has stopped")


class SubscriberListResponse(BaseModel):
    """Listing of retained push listeners."""
    count: int = Field(..., description="Number of retained listeners")
    subscribers: List[SubscriberInfo] = Field(default_factory=list)
