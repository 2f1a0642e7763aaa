"""
Audio module - PCM conversion and container encoding.
"""

from .processor import CONTAINER_FORMATS, AudioProcessor

__all__ = ["AudioProcessor", "CONTAINER_FORMATS"]
