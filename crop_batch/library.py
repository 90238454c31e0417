"""
Asset library: where assets and their original files come from.

The export pipeline only needs ``origin_file``.  ``LocalAssetLibrary`` is the
file-system implementation: asset ids are content fingerprints (see
``image_io.compute_fingerprint``), so an asset keeps its identity and its
stored crop when the file is renamed or moved.
"""

import asyncio
import logging
from pathlib import Path
from typing import Iterable, Protocol

from crop_batch.config import AUDIO_EXTENSIONS, IMAGE_EXTENSIONS, VIDEO_EXTENSIONS
from crop_batch.image_io import compute_fingerprint, get_image_size
from crop_batch.models import Asset, AssetType

logger = logging.getLogger(__name__)


class AssetLibrary(Protocol):
    async def origin_file(self, asset: Asset) -> Path | None:
        """Return the asset's original file, or None if it is unavailable."""
        ...


def asset_type_for(path: Path) -> AssetType:
    ext = path.suffix.lower()
    if ext in IMAGE_EXTENSIONS:
        return AssetType.IMAGE
    if ext in VIDEO_EXTENSIONS:
        return AssetType.VIDEO
    if ext in AUDIO_EXTENSIONS:
        return AssetType.AUDIO
    return AssetType.OTHER


class LocalAssetLibrary:
    """Assets backed by files on the local file system."""

    def __init__(self, root: Path | None = None):
        self.root = Path(root) if root is not None else None

    def asset_for(self, path: Path) -> Asset:
        """Describe *path* as an Asset, reading only the image header."""
        path = self._resolve(path)
        kind = asset_type_for(path)
        width = height = 0
        if kind is AssetType.IMAGE:
            width, height = get_image_size(path)
        return Asset(
            id=compute_fingerprint(path),
            type=kind,
            orientated_width=width,
            orientated_height=height,
            path=path,
        )

    def scan(self, paths: Iterable[Path]) -> list[Asset]:
        """Describe several files, skipping the ones that cannot be read."""
        assets = []
        for p in paths:
            try:
                assets.append(self.asset_for(p))
            except OSError as exc:
                logger.warning("Skipping unreadable file %s: %s", p, exc)
        return assets

    async def origin_file(self, asset: Asset) -> Path | None:
        if asset.path is None:
            return None
        path = self._resolve(asset.path)
        exists = await asyncio.to_thread(path.is_file)
        if not exists:
            logger.warning("Original file for asset %s is missing: %s", asset.id, path)
            return None
        return path

    def _resolve(self, path: Path) -> Path:
        path = Path(path)
        if self.root is not None and not path.is_absolute():
            return self.root / path
        return path
