"""Turns matched files into logical assets.

For each directory, in name order, the emitter links motion-photo pairs,
applies the import policy to every file, reconciles its title, dates,
position and album memberships, and yields:

- motion photos as ready ``AssetGroup``s (video first, then the image)
- every other asset bare, sorted by radical then capture date, for the
  grouping engine
"""

import logging
from typing import Dict, Iterator, List, Optional, Tuple, Union

from .assets import Album, AssetGroup, GroupKind, LogicalAsset, sorted_assets
from .catalog import AssetFile, TakeoutStore, TrackedFile
from .config import TakeoutConfig
from .edge_cases import LinkedPair, link_motion_pairs
from .errors import MetadataReadError, classify_error
from .events import EventCode, EventRecorder
from .filenames import NameClassifier, split_ext
from .media_types import DEFAULT_SUPPORTED_MEDIA, SupportedMedia
from .metadata import Metadata, MetadataReader

logger = logging.getLogger(__name__)


def reconcile_title(title: str, base: str) -> str:
    """
    Give the sidecar title the extension of the file on disk.

    Titles keep the name of the original upload, which can differ from
    the exported file: ``IMG_1.HEIC`` exported as ``IMG_1.JPG``, or a motion
    photo titled ``PXL_1.MP.jpg`` for its ``PXL_1.MP`` video. Up to two
    trailing extensions are replaced.
    """
    if not title:
        return base
    file_ext = split_ext(base)[1]
    stem, title_ext = split_ext(title)
    if title_ext == file_ext:
        return title
    stem2, title_ext = split_ext(stem)
    if title_ext == file_ext:
        return stem
    return stem2 + file_ext


class AssetEmitter:
    """Applies the import policy and builds LogicalAssets."""

    def __init__(
        self,
        store: TakeoutStore,
        config: TakeoutConfig,
        recorder: EventRecorder,
        reader: MetadataReader,
        classifier: NameClassifier,
        supported_media: SupportedMedia = DEFAULT_SUPPORTED_MEDIA,
    ) -> None:
        self.store = store
        self.config = config
        self.recorder = recorder
        self.reader = reader
        self.classifier = classifier
        self.supported_media = supported_media

    def emit_directory(self, directory: str) -> Iterator[Union[AssetGroup, LogicalAsset]]:
        """Motion-photo groups, then the directory's other assets sorted for grouping."""
        pairs = self.directory_pairs(directory)
        singles: List[LogicalAsset] = []
        for key in sorted(pairs):
            group = self.emit_pair(pairs[key])
            if group is None:
                continue
            if group.kind is GroupKind.MOTION_PHOTO:
                yield group
            else:
                singles.extend(group.assets)
        yield from sorted_assets(singles)

    def directory_pairs(self, directory: str) -> Dict[str, LinkedPair]:
        """Link the matched files of a directory, skipping already handled identities."""
        catalog = self.store.catalog(directory)
        files: Dict[str, AssetFile] = {}
        for base in sorted(catalog.matched):
            file = catalog.matched[base]
            tracked = self.store.tracked(file.key)
            if tracked.status is not None:
                self.recorder.record(
                    EventCode.ANALYSIS_LOCAL_DUPLICATE, file.ref,
                    reason="already handled in another directory", status=tracked.status.value,
                )
                continue
            files[base] = file
        return link_motion_pairs(files, self.supported_media)

    def emit_pair(self, pair: LinkedPair) -> Optional[AssetGroup]:
        """
        Build the assets of a linked pair.

        Returns:
            A motion-photo group when both files survive the policy, a
            single-asset group when one does, None otherwise
        """
        built: List[Tuple[AssetFile, LogicalAsset]] = []
        for file in (pair.video, pair.image):
            if file is None:
                continue
            asset = self.make_asset(file)
            if asset is not None:
                built.append((file, asset))

        if not built:
            return None
        if len(built) == 2:
            group = AssetGroup(
                kind=GroupKind.MOTION_PHOTO, assets=[asset for _, asset in built], cover_index=1
            )
        else:
            group = AssetGroup.single(built[0][1])
        group.validate()

        for file, asset in built:
            self.store.tracked(file.key).status = EventCode.EMITTED
            self.recorder.record(EventCode.EMITTED, file.ref, kind=group.kind.value, title=asset.title)
        return group

    def make_asset(self, file: AssetFile) -> Optional[LogicalAsset]:
        """
        Apply the import policy to one file and build its LogicalAsset.

        Filters run in order: archived, partner, trashed (for files with a
        sidecar), capture date range, album restriction.

        Returns:
            The asset, or None if the file is filtered out or unreadable
        """
        tracked = self.store.tracked(file.key)
        md = file.metadata

        if md is not None:
            tracked.metadata = md
            if md.archived and not self.config.keep_archived:
                return self._discard(file, tracked, EventCode.DISCARDED_ARCHIVED, "archived")
            if md.from_partner and not self.config.keep_partner:
                return self._discard(file, tracked, EventCode.DISCARDED_PARTNER, "from partner")
            if md.trashed and not self.config.keep_trashed:
                return self._discard(file, tracked, EventCode.DISCARDED_TRASHED, "trashed")
        else:
            try:
                md = self.reader.read(file.fsys, file.path, file.base)
            except (MetadataReadError, OSError) as e:
                tracked.status = EventCode.ERROR
                self.recorder.record(
                    EventCode.ERROR, file.ref,
                    reason="cannot read metadata", error=str(e), category=classify_error(e),
                )
                return None
            tracked.metadata = md

        name_info = self.classifier.classify(file.base)
        capture_date = md.date_taken
        if capture_date is None and name_info is not None:
            capture_date = name_info.taken
        if capture_date is None:
            capture_date = file.mtime

        if self.config.date_range.is_set() and not self.config.date_range.contains(capture_date):
            return self._discard(file, tracked, EventCode.DISCARDED_DATE_RANGE, "outside date range")

        directory_albums = [album for _, album in self.store.albums_of(file.key) if album is not None]
        if self.config.import_from_album is not None:
            if all(album.title != self.config.import_from_album for album in directory_albums):
                return self._discard(file, tracked, EventCode.DISCARDED_ALBUM, "not in selected album")

        asset = LogicalAsset(
            fsys=file.fsys,
            file_name=file.path,
            file_size=file.size,
            file_date=file.mtime,
            title=reconcile_title(md.file_name, file.base),
            capture_date=capture_date,
            latitude=md.latitude,
            longitude=md.longitude,
            altitude=md.altitude,
            description=md.description,
            trashed=md.trashed,
            archived=md.archived,
            favorite=md.favorited,
            from_partner=md.from_partner,
            stars=md.rating,
            name_info=name_info,
        )

        for album in self._memberships(md, directory_albums):
            asset.add_album(album)

        if not md.has_location():
            for album in directory_albums:
                if album.has_location():
                    asset.latitude, asset.longitude = album.latitude, album.longitude
                    break

        return asset

    def _memberships(self, md: Metadata, directory_albums: List[Album]) -> List[Album]:
        if not self.config.create_albums:
            return []
        if self.config.import_into_album is not None:
            albums = [Album(title=self.config.import_into_album)]
        else:
            albums = list(directory_albums)
        if md.from_partner and self.config.partner_shared_album is not None:
            albums.append(Album(title=self.config.partner_shared_album))
        return albums

    def _discard(self, file: AssetFile, tracked: TrackedFile, code: EventCode, reason: str) -> None:
        tracked.status = code
        self.recorder.record(code, file.ref, reason=reason)
        return None
