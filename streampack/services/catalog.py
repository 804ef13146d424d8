"""
Catalog Reader

Discovers packaged videos by walking the output root. A format counts as
available when its entry file exists; there is no other status record.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List

from streampack.core.storage import (
    DASH_DIR_NAME,
    DASH_ENTRY_FILE,
    HLS_DIR_NAME,
    HLS_ENTRY_FILE,
    validate_video_id,
)

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Raised when the output root cannot be listed."""

    pass


@dataclass(frozen=True)
class CatalogEntry:
    video_id: str
    hls_available: bool
    dash_available: bool


def list_available(output_root: Path) -> List[CatalogEntry]:
    """
    List every video with at least one packaged format.

    Scans the immediate subdirectories of output_root on every call, sorted
    by name. Directories that are not video identities are skipped.

    Raises:
        CatalogError: If output_root cannot be read
    """
    try:
        children = sorted(Path(output_root).iterdir(), key=lambda p: p.name)
    except OSError as e:
        logger.error(f"Failed to read videos directory {output_root}: {e}")
        raise CatalogError(f"Failed to read videos directory: {e}") from e

    entries: List[CatalogEntry] = []
    for child in children:
        if not child.is_dir() or not validate_video_id(child.name):
            continue

        hls_available = (child / HLS_DIR_NAME / HLS_ENTRY_FILE).is_file()
        dash_available = (child / DASH_DIR_NAME / DASH_ENTRY_FILE).is_file()

        if hls_available or dash_available:
            entries.append(
                CatalogEntry(
                    video_id=child.name,
                    hls_available=hls_available,
                    dash_available=dash_available,
                )
            )

    return entries
