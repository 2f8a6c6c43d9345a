"""
Service layer for gateway operations.
"""
from .gateway import PubSubGateway, gateway

__all__ = ["PubSubGateway", "gateway"]
