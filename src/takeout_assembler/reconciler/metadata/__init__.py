"""Metadata of media files: JSON sidecars and embedded metadata."""

from .model import Metadata
from .sidecar import GoogleMetadata, parse_google_json, read_google_json
from .reader import MetadataReader, check_exiftool

__all__ = [
    'Metadata',
    'GoogleMetadata',
    'parse_google_json',
    'read_google_json',
    'MetadataReader',
    'check_exiftool',
]
