"""Utility modules for dify-client."""

from .file_types import FileKind, is_audio, is_image, mime_type_for, sniff

__all__ = [
    "FileKind",
    "is_audio",
    "is_image",
    "mime_type_for",
    "sniff",
]
