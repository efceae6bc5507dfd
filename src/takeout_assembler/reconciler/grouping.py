"""Stacking of assets that belong to the same capture.

The engine consumes assets sorted by radical then capture date. Assets
sharing a radical are buffered; when the radical changes the buffer is
flushed:

- a single asset is emitted bare
- burst if any member follows a burst naming convention, whatever the size
- otherwise only two members can be grouped: JPEG+RAW without HEIC, or
  JPEG+HEIC without RAW; an MP4/MOV beside a JPEG or HEIC is not grouped
- no kind: members are emitted bare
- otherwise the buffer is split wherever two consecutive capture times
  are more than one second apart; each part of two or more assets
  becomes a group of the decided kind, lone assets are emitted bare

Groups formed upstream (motion photos) pass through untouched.
"""

import logging
import threading
from datetime import timedelta
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from .assets import AssetGroup, GroupKind, LogicalAsset
from .filenames import NameKind
from .media_types import DEFAULT_SUPPORTED_MEDIA, JPEG_EXTENSIONS, SupportedMedia
from .parallel import StageQueue

logger = logging.getLogger(__name__)

TIME_THRESHOLD = timedelta(seconds=1)
HEIC_EXTENSIONS = frozenset({'.heic', '.heif'})

Item = Union[LogicalAsset, AssetGroup]


class GroupingEngine:
    """Groups bursts, RAW+JPEG and HEIC+JPEG captures."""

    def __init__(
        self,
        threshold: timedelta = TIME_THRESHOLD,
        supported_media: SupportedMedia = DEFAULT_SUPPORTED_MEDIA,
    ) -> None:
        self.threshold = threshold
        self.supported_media = supported_media

    def group(
        self,
        items: Iterable[Item],
        cancel: Optional[threading.Event] = None,
    ) -> Iterator[Item]:
        """
        Group an ordered stream of assets.

        Args:
            items: Assets sorted by radical then capture date, and ready groups
            cancel: When set at the end of the stream, the last buffer is dropped

        Yields:
            Bare assets and groups
        """
        buffer: List[LogicalAsset] = []
        for item in items:
            if isinstance(item, AssetGroup):
                yield item
                continue
            if buffer and item.radical != buffer[0].radical:
                yield from self.flush(buffer)
                buffer = []
            buffer.append(item)

        if cancel is not None and cancel.is_set():
            logger.debug(f"Grouping cancelled, dropping buffer: {{'assets': {len(buffer)}}}")
            return
        if buffer:
            yield from self.flush(buffer)

    def run(self, source: StageQueue, sink: StageQueue) -> None:
        """Pipeline stage: group everything from ``source`` into ``sink``."""
        for item in self.group(source, source.cancel):
            sink.put(item)

    def flush(self, buffer: List[LogicalAsset]) -> Iterator[Item]:
        """Emit the assets of one radical."""
        if len(buffer) == 1:
            yield buffer[0]
            return

        kind, cover_index = self.classify(buffer)
        if kind is GroupKind.NONE:
            yield from buffer
            return

        part: List[LogicalAsset] = [buffer[0]]
        for asset in buffer[1:]:
            if abs(asset.capture_date - part[-1].capture_date) > self.threshold:
                yield from self._emit(part, kind, cover_index)
                part = []
            part.append(asset)
        yield from self._emit(part, kind, cover_index)

    def classify(self, buffer: List[LogicalAsset]) -> Tuple[GroupKind, int]:
        """Grouping kind and cover index of a buffer of two or more assets."""
        has_jpg = has_raw = has_heic = is_burst = False
        cover_index = 0

        for i, asset in enumerate(buffer):
            ext = asset.ext
            if ext in JPEG_EXTENSIONS:
                has_jpg = True
            elif ext in HEIC_EXTENSIONS:
                has_heic = True
            elif self.supported_media.is_raw(ext):
                has_raw = True
            if asset.kind is NameKind.BURST:
                is_burst = True
            if asset.is_cover:
                cover_index = i

        if is_burst:
            return GroupKind.BURST, cover_index
        if len(buffer) != 2:
            return GroupKind.NONE, 0
        if has_jpg and has_raw and not has_heic:
            return GroupKind.RAW_JPG, cover_index
        if has_jpg and has_heic and not has_raw:
            return GroupKind.HEIC_JPG, cover_index
        return GroupKind.NONE, 0

    @staticmethod
    def _emit(part: List[LogicalAsset], kind: GroupKind, cover_index: int) -> Iterator[Item]:
        if len(part) == 1:
            yield part[0]
            return
        group = AssetGroup(kind=kind, assets=list(part), cover_index=cover_index)
        group.validate()
        logger.debug(f"Grouped assets: {{'kind': {kind.value!r}, 'radical': {part[0].radical!r}, 'assets': {len(part)}}}")
        yield group
