"""Rules pairing JSON sidecar names with media file names.

Google Takeout names a sidecar after its media file, but not reliably:
names are truncated, duplicate counters move around, edited renditions
and motion-photo videos share the sidecar of the original photo. Each rule
below recognises one of these patterns. ``MATCHERS`` lists them from the
most to the least specific; the puzzle solver applies them in that order.

Rules take the sidecar name in its classic form (``IMG_1.jpg(1).json``,
see ``normalize_sidecar_name``) and the media file name.
"""

import logging
import re
from typing import Callable, List, NamedTuple

from .filenames import split_ext
from .media_types import SupportedMedia

logger = logging.getLogger(__name__)

SUPPLEMENTAL_TAIL = "supplemental-metadata"
JSON_EXT_RE = re.compile(r'\.json$', re.I)
COUNTER_RE = re.compile(r'\(\d+\)$')

# How much longer than the sidecar stem a forgotten duplicate may be
FORGOTTEN_DUPLICATE_MAX_EXTRA = 10


def normalize_sidecar_name(name: str) -> str:
    """
    Rewrite a sidecar name to the classic ``<media name>[(n)].json`` form.

    Newer exports insert ``.supplemental-metadata`` (possibly truncated to
    ``.supplemental-me``, ``.supp``, ``.s``...) before the duplicate counter:

        IMG_1.jpg.supplemental-metadata(1).json  ->  IMG_1.jpg(1).json
        IMG_1.jpg.supp.json                      ->  IMG_1.jpg.json

    Names without such a tail are returned unchanged.
    """
    m = JSON_EXT_RE.search(name)
    if m is None:
        return name
    core = name[:m.start()]
    counter = ""
    c = COUNTER_RE.search(core)
    if c is not None:
        counter = c.group(0)
        core = core[:c.start()]

    stem, tail = split_ext(core)
    tail = tail[1:].lower()
    if tail and '.' in stem and SUPPLEMENTAL_TAIL.startswith(tail):
        core = stem
    elif not tail and core.endswith('.') and '.' in core[:-1]:
        # truncated right after the dot
        core = core[:-1]
    return f"{core}{counter}{name[m.start():]}"


def _trim(name: str, ext: str) -> str:
    return name[:-len(ext)] if ext and name.endswith(ext) else name


def _trim_ext(name: str) -> str:
    return split_ext(name)[0]


def _ext(name: str) -> str:
    return split_ext(name)[1]


def normal_match(json_name: str, file_name: str, sm: SupportedMedia) -> bool:
    """``PXL_20230922.jpg.json`` matches ``PXL_20230922.jpg``."""
    return _trim_ext(json_name) == file_name


def live_photo_match(json_name: str, file_name: str, sm: SupportedMedia) -> bool:
    """The video of a live/motion photo shares the sidecar of the photo.

    ``PXL_20231118_035751175.MP.jpg.json`` matches ``PXL_20231118_035751175.MP``
    ``20231227_152817.jpg.json`` matches ``20231227_152817.MP4``
    """
    file_stem = _trim_ext(file_name)
    base = _trim_ext(json_name)
    base = _trim(base, _ext(base))
    if base == file_stem:
        return True
    base = _trim(base, _ext(base))
    return base == file_stem


def match_with_one_char_omitted(json_name: str, file_name: str, sm: SupportedMedia) -> bool:
    """The exporter dropped the last character of a long name.

    ``Backyard_ceremony_wedding_photography_xxxxxxx_.json`` matches
    ``Backyard_ceremony_wedding_photography_xxxxxxx_m.jpg``
    """
    base = _trim_ext(json_name)
    ext = _ext(base)
    if sm.is_extension_prefix(ext):
        base = _trim(base, ext)
    file_stem = _trim_ext(file_name)
    if file_stem == base:
        return True
    return file_stem.startswith(base) and len(file_stem) - len(base) <= 1


def match_very_long_name_with_number(json_name: str, file_name: str, sm: SupportedMedia) -> bool:
    """Truncated name carrying a duplicate counter.

    ``Backyard_ceremony_wedding_photography_xxxxxxx_(1).json`` matches
    ``Backyard_ceremony_wedding_photography_xxxxxxx_m(1).jpg``
    """
    base = _trim_ext(json_name)
    p1_json = base.find('(')
    if p1_json < 0:
        return False
    p2_json = base.find(')')
    if p2_json < 0 or p2_json != len(base) - 1:
        return False
    p1_file = file_name.find('(')
    if p1_file < 0 or p1_file != p1_json + 1:
        return False
    if base[:p1_json] != file_name[:p1_json]:
        return False
    p2_file = file_name.find(')')
    if p2_file < p1_file:
        return False
    return base[p1_json + 1:p2_json] == file_name[p1_file + 1:p2_file]


def match_duplicate_in_year(json_name: str, file_name: str, sm: SupportedMedia) -> bool:
    """Duplicate counter placed after the extension in the sidecar name.

    ``IMG_3479.JPG(2).json`` matches ``IMG_3479(2).JPG``
    """
    base = _trim_ext(json_name)
    p1_json = base.find('(')
    if p1_json < 1:
        return False
    p1_file = file_name.find('(')
    if p1_file < 0:
        return False
    p2_json = base.find(')')
    if p2_json < 0 or p2_json != len(base) - 1:
        return False
    p2_file = file_name.find(')')
    if p2_file < p1_file:
        return False

    json_media_name = base[:p1_json]
    json_media_ext = _ext(json_media_name)
    if _ext(file_name) != json_media_ext:
        return False
    if _trim(json_media_name, json_media_ext) != file_name[:p1_file]:
        return False
    return file_name[p1_file + 1:p2_file] == base[p1_json + 1:p2_json]


def match_edited_name(json_name: str, file_name: str, sm: SupportedMedia) -> bool:
    """Edited renditions share the sidecar of the original.

    ``PXL_20220405_090123740.PORTRAIT.jpg.json`` matches
    ``PXL_20220405_090123740.PORTRAIT-modifié.jpg``
    """
    base = _trim_ext(json_name)
    ext = _ext(base)
    if ext and sm.is_media(ext):
        base = _trim(base, ext)
    return _trim_ext(file_name).startswith(base)


def match_forgotten_duplicates(json_name: str, file_name: str, sm: SupportedMedia) -> bool:
    """Duplicates whose sidecar lost the counter.

    ``original_1d4caa6f-16c6-4c3d-901b-9387de10e528_.json`` matches
    ``original_1d4caa6f-16c6-4c3d-901b-9387de10e528_P(1).jpg``
    """
    base = _trim_ext(json_name)
    file_stem = _trim_ext(file_name)
    return file_stem.startswith(base) and len(file_stem) - len(base) < FORGOTTEN_DUPLICATE_MAX_EXTRA


MatchRule = Callable[[str, str, SupportedMedia], bool]


class Matcher(NamedTuple):
    name: str
    rule: MatchRule


MATCHERS: List[Matcher] = [
    Matcher("normal_match", normal_match),
    Matcher("live_photo_match", live_photo_match),
    Matcher("match_with_one_char_omitted", match_with_one_char_omitted),
    Matcher("match_very_long_name_with_number", match_very_long_name_with_number),
    Matcher("match_duplicate_in_year", match_duplicate_in_year),
    Matcher("match_edited_name", match_edited_name),
    Matcher("match_forgotten_duplicates", match_forgotten_duplicates),
]
