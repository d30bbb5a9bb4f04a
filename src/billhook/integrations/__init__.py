"""External service integrations."""

from .clients import ClientServiceClient
from .stripe import StripeClient
from .tracking import TrackingClient

__all__ = [
    "ClientServiceClient",
    "StripeClient",
    "TrackingClient",
]
