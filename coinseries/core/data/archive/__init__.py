"""Historical archive loading."""

from coinseries.core.data.archive.loader import (
    ArchiveCache,
    ArchiveLoader,
    ArchiveParseResult,
    parse_archive,
)
from coinseries.core.data.archive.source import (
    ArchiveSource,
    FileArchiveSource,
    HttpArchiveSource,
    StaticArchiveSource,
)

__all__ = [
    "ArchiveCache",
    "ArchiveLoader",
    "ArchiveParseResult",
    "ArchiveSource",
    "FileArchiveSource",
    "HttpArchiveSource",
    "StaticArchiveSource",
    "parse_archive",
]
