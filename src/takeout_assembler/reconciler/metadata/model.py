"""Metadata bound to a media file."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Metadata:
    """Metadata of one media file, from its sidecar or from the file itself."""
    file_name: str = ""
    date_taken: Optional[datetime] = None
    latitude: float = 0.0
    longitude: float = 0.0
    altitude: float = 0.0
    description: str = ""
    trashed: bool = False
    archived: bool = False
    favorited: bool = False
    from_partner: bool = False
    rating: int = 0

    def has_location(self) -> bool:
        return self.latitude != 0.0 or self.longitude != 0.0
