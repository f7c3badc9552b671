"""Content-type detection for uploaded artifacts.

A ``ContentTypeProbe`` asks an ordered list of detectors for the MIME type of
a local file and returns the first answer. Detectors are injected; the
``discover_detectors`` helper builds the default list from the
``wagon.content_type_detectors`` entry-point group.
"""

from __future__ import annotations

import logging
import mimetypes
from importlib.metadata import entry_points
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence, Union, runtime_checkable

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "wagon.content_type_detectors"

PathLike = Union[str, Path]


@runtime_checkable
class ContentTypeDetector(Protocol):
    """Capability interface for content-type detectors.

    Implementations return None when they cannot tell, and may raise OSError
    when the file cannot be inspected.
    """

    def probe_content_type(self, path: Path) -> Optional[str]:
        ...


class MimetypesDetector:
    """Guess the type from the file name using the ``mimetypes`` table."""

    def probe_content_type(self, path: Path) -> Optional[str]:
        content_type, _ = mimetypes.guess_type(path.name)
        return content_type


class SuffixMapDetector:
    """Map file-name suffixes to content types.

    Suffixes are matched case-insensitively against the longest suffix first,
    so ``.tar.gz`` wins over ``.gz``.
    """

    def __init__(self, mapping: Dict[str, str]) -> None:
        self.mapping = {
            (suffix if suffix.startswith(".") else f".{suffix}").lower(): value
            for suffix, value in mapping.items()
        }

    def probe_content_type(self, path: Path) -> Optional[str]:
        name = path.name.lower()
        for suffix in sorted(self.mapping, key=len, reverse=True):
            if name.endswith(suffix):
                return self.mapping[suffix]
        return None


class ContentTypeProbe:
    """Ask each detector in order; first non-None answer wins."""

    def __init__(self, detectors: Optional[Sequence[ContentTypeDetector]] = None):
        self.detectors: List[ContentTypeDetector] = list(detectors or [])

    def probe(self, path: PathLike) -> Optional[str]:
        file_path = Path(path)
        for detector in self.detectors:
            try:
                content_type = detector.probe_content_type(file_path)
            except OSError as exc:
                logger.debug(
                    "Content-type detector %s failed for %s: %s",
                    type(detector).__name__,
                    file_path,
                    exc,
                )
                continue
            if content_type is not None:
                return content_type
        return None


def discover_detectors() -> List[ContentTypeDetector]:
    """Instantiate the detectors registered under the entry-point group.

    Each entry point must name a zero-argument callable (usually a class)
    returning a detector. Entries are ordered by name. Falls back to
    ``[MimetypesDetector()]`` when no entry point is registered.
    """
    detectors: List[ContentTypeDetector] = []
    for entry in sorted(entry_points(group=ENTRY_POINT_GROUP), key=lambda e: e.name):
        factory = entry.load()
        detectors.append(factory())
        logger.debug("Registered content-type detector %s", entry.name)
    if not detectors:
        detectors.append(MimetypesDetector())
    return detectors
