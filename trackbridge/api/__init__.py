"""API routes"""

from trackbridge.api import sync, webhook

__all__ = ["sync", "webhook"]
