"""Takeout reconciliation pipeline.

``Takeout.browse`` runs the whole reconciliation:

1. pass one over every source and puzzle solving, in the caller's thread
2. an emitter stage walking directories in name order
3. a grouping stage stacking bursts and RAW/HEIC+JPEG captures
4. the caller iterating the resulting ``AssetGroup``s

Stages are connected by bounded queues and share one cancellation event.
"""

import logging
import threading
from typing import Iterator, List, Optional

from .assets import AssetGroup, LogicalAsset
from .catalog import TakeoutStore
from .config import TakeoutConfig
from .emitter import AssetEmitter
from .errors import CancelledError
from .events import EventRecorder
from .filenames import NameClassifier
from .filesystem import FileSystem
from .grouping import GroupingEngine
from .media_types import DEFAULT_SUPPORTED_MEDIA, SupportedMedia
from .metadata import MetadataReader
from .parallel import StageQueue, StageThread
from .puzzle import PuzzleSolver

logger = logging.getLogger(__name__)


class Takeout:
    """A takeout made of one or more sources (directories or zip parts).

    Args:
        config: Import policy
        recorder: Event recorder receiving every per-file decision
        filesystems: Takeout sources, walked in the given order
        reader: Metadata reader for files without sidecar, built from
            ``config`` when omitted
        supported_media: Extension table
    """

    def __init__(
        self,
        config: TakeoutConfig,
        recorder: EventRecorder,
        filesystems: List[FileSystem],
        reader: Optional[MetadataReader] = None,
        supported_media: SupportedMedia = DEFAULT_SUPPORTED_MEDIA,
    ) -> None:
        self.config = config
        self.recorder = recorder
        self.filesystems = filesystems
        self.store = TakeoutStore()
        self.classifier = NameClassifier(config.filename_tz(), supported_media)
        if reader is None:
            reader = MetadataReader(
                method=config.date_method,
                classifier=self.classifier,
                tz=config.filename_tz(),
                use_exiftool=config.use_exiftool,
            )
        self.solver = PuzzleSolver(self.store, config, recorder, supported_media)
        self.emitter = AssetEmitter(self.store, config, recorder, reader, self.classifier, supported_media)
        self.grouping = GroupingEngine(supported_media=supported_media)
        self._prepared = False

    def prepare(self, cancel: Optional[threading.Event] = None) -> None:
        """
        Walk every source and bind media files to their sidecars.

        Raises:
            WalkError: If a source cannot be enumerated
            CancelledError: If ``cancel`` fires
        """
        if self._prepared:
            return
        for fsys in self.filesystems:
            self.solver.pass_one(fsys, cancel)
        self.solver.solve(cancel)
        self._prepared = True
        logger.info(
            f"Takeout analysed: {{'directories': {len(self.store.catalogs)}, "
            f"'albums': {len(self.store.albums)}, 'identities': {len(self.store.tracker)}}}"
        )

    def browse(self, cancel: Optional[threading.Event] = None) -> Iterator[AssetGroup]:
        """
        Reconcile the takeout and yield asset groups.

        Standalone assets come as groups of kind ``NONE`` holding one asset.
        Closing the generator early cancels the pipeline.

        Raises:
            WalkError: If a source cannot be enumerated
            CancelledError: If ``cancel`` fires
            Exception: The first error raised by a pipeline stage, once the
                stream produced before the failure has been consumed
        """
        cancel = cancel if cancel is not None else threading.Event()
        self.prepare(cancel)

        assets_queue = StageQueue(cancel, self.config.queue_maxsize, name="assets")
        groups_queue = StageQueue(cancel, self.config.queue_maxsize, name="groups")
        stages = [
            StageThread("emitter", self._emit_all, assets_queue, assets_queue),
            StageThread("grouping", self.grouping.run, groups_queue, assets_queue, groups_queue),
        ]
        for stage in stages:
            stage.start()

        completed = False
        try:
            for item in groups_queue:
                yield AssetGroup.single(item) if isinstance(item, LogicalAsset) else item
            completed = True
        finally:
            # a failed stage leaves its producer blocked on a full queue
            if not completed or any(stage.error is not None for stage in stages):
                cancel.set()
            for stage in stages:
                stage.join()

        for stage in stages:
            if stage.error is not None:
                raise stage.error
        if cancel.is_set():
            raise CancelledError()

    def _emit_all(self, sink: StageQueue) -> None:
        for directory in self.store.directories():
            for item in self.emitter.emit_directory(directory):
                sink.put(item)
