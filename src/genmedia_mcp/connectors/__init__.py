"""Generation connectors — one typed ``generate(request)`` per capability."""

from .image import ImageConnector
from .video import VideoConnector

__all__ = ["ImageConnector", "VideoConnector"]
