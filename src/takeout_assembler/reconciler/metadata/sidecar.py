"""Parser for Google Takeout JSON sidecar files.

Two kinds of JSON documents matter:

- asset sidecars, next to each media file, recognised by their ``url`` key
- album descriptors (``metadata.json``), recognised by their ``date`` key

Anything else (``print-subscriptions.json``, ``shared_album_comments.json``...)
is neither and gets reported as unsupported by the caller.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..errors import SidecarError
from ..filesystem import FileSystem
from .model import Metadata

logger = logging.getLogger(__name__)

E7 = 1e7


@dataclass
class GoogleMetadata:
    """Fields of a sidecar or album JSON document that the reconciler uses."""
    title: str = ""
    description: str = ""
    taken: Optional[datetime] = None
    latitude: float = 0.0
    longitude: float = 0.0
    altitude: float = 0.0
    enrichment_text: str = ""
    enrichment_latitude: float = 0.0
    enrichment_longitude: float = 0.0
    trashed: bool = False
    archived: bool = False
    favorited: bool = False
    from_partner: bool = False
    url_present: bool = False
    date_present: bool = False

    def is_asset(self) -> bool:
        return self.url_present

    def is_album(self) -> bool:
        return self.date_present and not self.url_present

    def to_metadata(self) -> Metadata:
        """Metadata bound to the media file(s) this sidecar describes."""
        latitude, longitude = self.latitude, self.longitude
        if latitude == 0.0 and longitude == 0.0:
            latitude, longitude = self.enrichment_latitude, self.enrichment_longitude
        return Metadata(
            file_name=self.title,
            date_taken=self.taken,
            latitude=latitude,
            longitude=longitude,
            altitude=self.altitude,
            description=self.description or self.enrichment_text,
            trashed=self.trashed,
            archived=self.archived,
            favorited=self.favorited,
            from_partner=self.from_partner,
        )


def parse_google_json(data: Any) -> GoogleMetadata:
    """
    Extract reconciler fields from a decoded JSON document.

    Args:
        data: Decoded JSON value

    Returns:
        GoogleMetadata (possibly neither asset nor album)

    Raises:
        SidecarError: If the document is not a JSON object
    """
    if not isinstance(data, dict):
        raise SidecarError("JSON document is not an object", type=type(data).__name__)

    md = GoogleMetadata(
        title=_as_str(data.get('title')),
        description=_as_str(data.get('description')),
        taken=_parse_timestamp(data.get('photoTakenTime')),
        trashed=data.get('trashed') is True,
        archived=data.get('archived') is True,
        favorited=data.get('favorited') is True,
        url_present='url' in data,
        date_present='date' in data,
    )

    origin = data.get('googlePhotosOrigin')
    md.from_partner = isinstance(origin, dict) and 'fromPartnerSharing' in origin

    geo = _parse_geo_data(data.get('geoDataExif'))
    if geo == (0.0, 0.0, 0.0):
        geo = _parse_geo_data(data.get('geoData'))
    md.latitude, md.longitude, md.altitude = geo

    _parse_enrichments(data.get('enrichments'), md)
    return md


def read_google_json(fsys: FileSystem, path: str) -> GoogleMetadata:
    """
    Read and parse a JSON document from a takeout source.

    Raises:
        SidecarError: If the content is not valid UTF-8 JSON or not an object
        OSError: If the file cannot be read
    """
    with fsys.open(path) as f:
        raw = f.read()
    try:
        data = json.loads(raw.decode('utf-8-sig'))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise SidecarError("Malformed JSON", file=path, error=str(e)) from e
    return parse_google_json(data)


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse ``{"timestamp": "1520000000", ...}`` to an aware UTC datetime."""
    if not isinstance(value, dict) or 'timestamp' not in value:
        return None
    try:
        seconds = int(value['timestamp'])
        if seconds == 0:
            return None
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        logger.debug(f"Ignoring invalid timestamp: {{'value': {value!r}}}")
        return None


def _parse_geo_data(value: Any) -> tuple[float, float, float]:
    if not isinstance(value, dict):
        return 0.0, 0.0, 0.0
    try:
        return (
            float(value.get('latitude', 0.0)),
            float(value.get('longitude', 0.0)),
            float(value.get('altitude', 0.0)),
        )
    except (TypeError, ValueError):
        return 0.0, 0.0, 0.0


def _parse_enrichments(value: Any, md: GoogleMetadata) -> None:
    """Collect narrative text and location from album ``enrichments``."""
    if not isinstance(value, list):
        return
    texts = []
    for item in value:
        if not isinstance(item, dict):
            continue
        narrative = item.get('narrativeEnrichment')
        if isinstance(narrative, dict) and _as_str(narrative.get('text')):
            texts.append(narrative['text'])
        location = item.get('locationEnrichment')
        if not isinstance(location, dict):
            continue
        for place in location.get('location') or []:
            if not isinstance(place, dict):
                continue
            label = _as_str(place.get('name'))
            if _as_str(place.get('description')):
                label = f"{label} - {place['description']}" if label else place['description']
            if label:
                texts.append(label)
            try:
                md.enrichment_latitude = int(place.get('latitudeE7', 0)) / E7
                md.enrichment_longitude = int(place.get('longitudeE7', 0)) / E7
            except (TypeError, ValueError):
                continue
    md.enrichment_text = "\n".join(texts)


def to_album_fields(md: GoogleMetadata) -> Dict[str, Any]:
    """Description and location of an album descriptor."""
    return {
        'description': md.description or md.enrichment_text,
        'latitude': md.latitude or md.enrichment_latitude,
        'longitude': md.longitude or md.enrichment_longitude,
    }
