"""Discovery of takeout content and sidecar association.

The first pass walks each takeout source and fills the ``TakeoutStore``:
media files go to their directory catalog and to the cross-directory
tracker, asset sidecars and album descriptors are parsed.

The second pass solves the puzzle: it binds every media file to the
sidecar that describes it, trying the rules of ``MATCHERS`` from the most
to the least specific over a whole directory before moving on.
"""

import logging
import posixpath
import threading
from typing import List, Optional

from takeout_assembler.common import split_path
from .assets import Album
from .catalog import AssetFile, DirectoryCatalog, Sidecar, TakeoutStore
from .config import TakeoutConfig
from .errors import CancelledError, SidecarError
from .events import EventCode, EventRecorder, file_ref
from .filenames import split_ext
from .filesystem import FileEntry, FileSystem
from .inclusion import BannedFiles
from .matchers import MATCHERS, Matcher, normalize_sidecar_name
from .media_types import DEFAULT_SUPPORTED_MEDIA, MediaType, SupportedMedia
from .metadata.sidecar import read_google_json, to_album_fields

logger = logging.getLogger(__name__)

# Google keeps videos it failed to process here; they are unusable
FAILED_VIDEOS_DIR = "Failed Videos"


def _check_cancel(cancel: Optional[threading.Event], **context) -> None:
    if cancel is not None and cancel.is_set():
        raise CancelledError(**context)


class PuzzleSolver:
    """Builds the takeout store and binds media files to their sidecars."""

    def __init__(
        self,
        store: TakeoutStore,
        config: TakeoutConfig,
        recorder: EventRecorder,
        supported_media: SupportedMedia = DEFAULT_SUPPORTED_MEDIA,
        matchers: List[Matcher] = MATCHERS,
    ) -> None:
        self.store = store
        self.config = config
        self.recorder = recorder
        self.supported_media = supported_media
        self.matchers = matchers
        self.banned = BannedFiles(config.banned_files)

    def pass_one(self, fsys: FileSystem, cancel: Optional[threading.Event] = None) -> None:
        """
        Walk one takeout source.

        Raises:
            WalkError: If the source cannot be enumerated
            CancelledError: If ``cancel`` fires during the walk
        """
        logger.info(f"Walking takeout source: {{'name': {fsys.name!r}}}")
        entries = 0
        for entry in fsys.walk():
            _check_cancel(cancel, source=fsys.name)
            self._discover(fsys, entry)
            entries += 1
        logger.info(f"Walk complete: {{'name': {fsys.name!r}, 'files': {entries}, 'directories': {len(self.store.catalogs)}}}")

    def _discover(self, fsys: FileSystem, entry: FileEntry) -> None:
        directory, base = split_path(entry.path)
        ref = file_ref(fsys.name, entry.path)
        ext = split_ext(base)[1].lower()

        if self.banned.match(entry.path):
            self.recorder.record(EventCode.DISCOVERED_DISCARDED, ref, reason="banned file")
            return

        if ext == '.json':
            self._discover_json(fsys, entry, directory, base, ref)
            return

        if not self.config.is_extension_included(ext):
            self.recorder.record(EventCode.DISCOVERED_DISCARDED, ref, reason="file extension not selected")
            return
        if self.config.is_extension_excluded(ext):
            self.recorder.record(EventCode.DISCOVERED_DISCARDED, ref, reason="file extension not allowed")
            return

        media_type = self.supported_media.type_from_ext(ext)
        if media_type is MediaType.UNKNOWN:
            self.recorder.record(EventCode.DISCOVERED_UNSUPPORTED, ref, reason="unsupported file type")
            return
        if media_type is MediaType.VIDEO:
            self.recorder.record(EventCode.DISCOVERED_VIDEO, ref)
            if FAILED_VIDEOS_DIR in directory.split('/'):
                self.recorder.record(EventCode.DISCOVERED_DISCARDED, ref, reason="failed video")
                return
        else:
            self.recorder.record(EventCode.DISCOVERED_IMAGE, ref)

        catalog = self.store.catalog(directory)
        if base in catalog.unmatched:
            self.recorder.record(EventCode.ANALYSIS_LOCAL_DUPLICATE, ref, reason="same name in directory")
            return

        file = AssetFile(
            fsys=fsys,
            path=entry.path,
            directory=directory,
            base=base,
            size=entry.size,
            mtime=entry.mtime,
            media_type=media_type,
        )
        catalog.unmatched[base] = file
        self.store.track(file.key, directory)

    def _discover_json(
        self, fsys: FileSystem, entry: FileEntry, directory: str, base: str, ref: str
    ) -> None:
        try:
            md = read_google_json(fsys, entry.path)
        except (SidecarError, OSError) as e:
            self.recorder.record(EventCode.DISCOVERED_UNSUPPORTED, ref, reason="unknown JSON file", error=str(e))
            return

        if md.is_asset():
            catalog = self.store.catalog(directory)
            name = normalize_sidecar_name(base)
            if name in catalog.sidecars:
                self.recorder.record(
                    EventCode.ANALYSIS_LOCAL_DUPLICATE, ref,
                    reason="duplicate sidecar", sidecar=catalog.sidecars[name].ref,
                )
                return
            catalog.sidecars[name] = Sidecar(name=name, metadata=md.to_metadata(), ref=ref)
            self.recorder.record(EventCode.DISCOVERED_SIDECAR, ref, type="asset metadata", title=md.title)
            return

        if md.is_album():
            dir_name = posixpath.basename(directory)
            if not md.title and not self.config.keep_untitled_albums:
                self.recorder.record(EventCode.DISCOVERED_UNSUPPORTED, ref, reason="untitled album")
                return
            album = Album(title=md.title or dir_name, path=dir_name, **to_album_fields(md))
            self.store.albums[directory] = album
            self.recorder.record(EventCode.DISCOVERED_ALBUM, ref, title=album.title)
            return

        self.recorder.record(EventCode.DISCOVERED_UNSUPPORTED, ref, reason="unknown JSON file")

    def solve(self, cancel: Optional[threading.Event] = None) -> None:
        """
        Bind media files to sidecars in every directory.

        Running it again on a solved store changes nothing.

        Raises:
            CancelledError: If ``cancel`` fires between directories
        """
        for directory in self.store.directories():
            _check_cancel(cancel, directory=directory)
            self.solve_directory(self.store.catalog(directory))

    def solve_directory(self, catalog: DirectoryCatalog) -> int:
        """Bind the files of one directory. Returns the number of bindings."""
        bound = 0
        for matcher in self.matchers:
            for json_name in sorted(catalog.sidecars):
                sidecar = catalog.sidecars[json_name]
                for base in sorted(catalog.unmatched):
                    file = catalog.unmatched[base]
                    if not sidecar.can_claim(file):
                        continue
                    if matcher.rule(json_name, base, self.supported_media):
                        catalog.bind(base, sidecar)
                        bound += 1
                        self.recorder.record(
                            EventCode.ANALYSIS_ASSOCIATED_METADATA, file.ref,
                            sidecar=sidecar.ref, matcher=matcher.name,
                        )

        leftovers = sorted(catalog.unmatched)
        for base in leftovers:
            file = catalog.unmatched[base]
            if self.config.keep_json_less:
                catalog.bind(base, None)
                self.recorder.record(
                    EventCode.ANALYSIS_MISSING_ASSOCIATED_METADATA, file.ref, reason="kept without sidecar"
                )
            else:
                self.recorder.record(
                    EventCode.ANALYSIS_MISSING_ASSOCIATED_METADATA, file.ref, reason="no sidecar, file ignored"
                )

        if bound or leftovers:
            logger.debug(
                f"Directory solved: {{'directory': {catalog.directory!r}, 'bound': {bound}, "
                f"'without_sidecar': {len(leftovers)}, 'matched': {len(catalog.matched)}}}"
            )
        return bound
