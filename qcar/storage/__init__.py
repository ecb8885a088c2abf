"""Storage layer for generated reports and uploaded photos."""

from .file_storage import FileStorage

__all__ = ['FileStorage']
