"""Object name parsing.

Uploaded images are named `<shopID>_<unixEpochSeconds>.<extension>`, optionally
below a directory prefix. The shop id is taken verbatim; the epoch seconds
are converted to an aware datetime in the local timezone.
"""

from __future__ import annotations

import posixpath
import re
from datetime import datetime

from line_analyzer.core.errors import ParseError
from line_analyzer.core.types import ParsedMeta

NAME_DELIMITER = "_"

_EPOCH_RE = re.compile(r"[+-]?[0-9]+")


def parse_object_name(object_name: str) -> ParsedMeta:
    """Return the shop id and observation time encoded in `object_name`.

    Raises:
        ParseError: when the name does not follow the naming convention.
    """

    base = posixpath.basename(object_name)
    stem, ext = posixpath.splitext(base)
    if not ext:
        raise ParseError(object_name, "extension", "is missing")

    tokens = stem.split(NAME_DELIMITER)
    if len(tokens) < 2:
        raise ParseError(object_name, "timestamp", "is missing")
    if len(tokens) > 2:
        raise ParseError(object_name, "shop id", f"must not contain {NAME_DELIMITER!r}")

    shop_id, raw_epoch = tokens
    if not shop_id:
        raise ParseError(object_name, "shop id", "is empty")
    if not _EPOCH_RE.fullmatch(raw_epoch):
        raise ParseError(object_name, "timestamp", f"{raw_epoch!r} is not an integer")

    try:
        observed_at = datetime.fromtimestamp(int(raw_epoch)).astimezone()
    except (OverflowError, OSError, ValueError) as exc:
        raise ParseError(object_name, "timestamp", f"{raw_epoch!r} is out of range") from exc

    return ParsedMeta(shop_id=shop_id, observed_at=observed_at)
