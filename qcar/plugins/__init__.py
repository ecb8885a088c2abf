"""Image quality plugins for scene photos."""

from .blur_detector import BlurDetector

__all__ = [
    'BlurDetector'
]
