"""
Streaming export pipeline.

``ExportPipeline.export_crop_files`` is an async generator: it walks the
selection in order, one asset at a time, and yields an ``ExportSnapshot``
after each asset so callers can drive a progress indicator.  Sampling and
cropping are blocking Pillow work and run through ``asyncio.to_thread``.

Snapshot sequence for N assets: progress ``0``, ``1/N`` … ``(N-1)/N``, then
exactly ``1`` with the full record list.  A fatal error ends the stream
without the final snapshot; files already written stay on disk.
"""

import asyncio
import inspect
import logging
import math
from pathlib import Path
from typing import AsyncIterator, Callable, Iterable, Mapping

from crop_batch.config import DEFAULT_PREFERRED_SIZE
from crop_batch.errors import MissingSourceFileError, TransformError
from crop_batch.image_io import crop_image, sample_image
from crop_batch.library import AssetLibrary
from crop_batch.models import Asset, CropArea, CropParameter, ExportRecord, ExportSnapshot

logger = logging.getLogger(__name__)

Sampler = Callable[[Path, int], Path]
Cropper = Callable[[Path, CropArea], Path]


def sample_size(preferred_size: int, scale: float) -> int:
    """Working-copy size so that cropping at *scale* lands near *preferred_size*."""
    return int(math.floor(preferred_size / scale + 0.5))


class ExportPipeline:
    """Turns a selection plus its crop parameters into exported files."""

    def __init__(
        self,
        library: AssetLibrary,
        sampler: Sampler = sample_image,
        cropper: Cropper = crop_image,
        preferred_size: int = DEFAULT_PREFERRED_SIZE,
        transform_retries: int = 0,
    ):
        self.library = library
        self.sampler = sampler
        self.cropper = cropper
        self.preferred_size = preferred_size
        self.transform_retries = max(0, transform_retries)

    async def export_crop_files(
        self,
        selection: Iterable[Asset],
        mapping: Mapping[str, CropParameter],
        *,
        aspect_ratio: float | Callable[[], float],
        skip_crop: bool = False,
    ) -> AsyncIterator[ExportSnapshot]:
        """
        Yield progress snapshots while exporting *selection*.

        *aspect_ratio* may be a getter; it is read for every snapshot.
        """
        selection = tuple(selection)
        current_ratio = aspect_ratio if callable(aspect_ratio) else (lambda: aspect_ratio)
        records: list[ExportRecord] = []

        def make_snapshot(progress: float) -> ExportSnapshot:
            return ExportSnapshot(
                records=tuple(records),
                selection=selection,
                aspect_ratio=current_ratio(),
                progress=progress,
            )

        # Read once: later store changes must not leak into this export
        params = dict(mapping)

        yield make_snapshot(0.0)

        total = len(selection)
        logger.info("Exporting %d asset(s) (skip_crop=%s)", total, skip_crop)

        for i, asset in enumerate(selection):
            parameter = params.get(asset.id)
            if parameter is None:
                parameter = CropParameter.from_state(asset, None)

            if skip_crop or not asset.is_image:
                file = None
            else:
                file = await self._export_asset(asset, parameter)

            records.append(ExportRecord(file=file, parameter=parameter))
            logger.debug("Exported %d/%d: %s -> %s", i + 1, total, asset.id, file)

            # The last asset is reported by the final snapshot only
            if i + 1 < total:
                yield make_snapshot((i + 1) / total)

        logger.info("Export finished: %d record(s)", len(records))
        yield make_snapshot(1.0)

    async def _export_asset(self, asset: Asset, parameter: CropParameter) -> Path:
        """Sample, then crop if an area is set.  Returns the final file."""
        source = await self.library.origin_file(asset)
        if source is None:
            raise MissingSourceFileError(asset.id)

        size = sample_size(self.preferred_size, parameter.scale)
        # Cancelled here, a sample still being written by the worker thread is left behind
        sampled = await self._transform(asset, "Sampling", self.sampler, source, size)
        if parameter.area is None:
            return sampled

        try:
            return await self._transform(asset, "Cropping", self.cropper, sampled, parameter.area)
        finally:
            await self._discard(sampled)

    async def _transform(self, asset: Asset, label: str, func: Callable, *args) -> Path:
        attempt = 0
        while True:
            try:
                if inspect.iscoroutinefunction(func):
                    return await func(*args)
                return await asyncio.to_thread(func, *args)
            except OSError as exc:
                if attempt < self.transform_retries:
                    attempt += 1
                    logger.warning(
                        "%s %s failed (%s), retrying (%d/%d)",
                        label, asset.id, exc, attempt, self.transform_retries,
                    )
                    continue
                raise TransformError(asset.id, f"{label} failed: {exc}") from exc
            except Exception as exc:
                raise TransformError(asset.id, f"{label} failed: {exc}") from exc

    async def _discard(self, path: Path) -> None:
        """Delete an intermediate file; failures are only logged."""
        try:
            await asyncio.to_thread(Path(path).unlink)
        except OSError as exc:
            logger.warning("Could not delete intermediate file %s: %s", path, exc)
