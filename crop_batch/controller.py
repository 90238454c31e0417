"""
Crop controller: the surface the picker UI talks to.

Owns the ratio selector, the preview/readiness observables and a crop
parameter store, and starts exports.  Built without ``shared_store`` the
controller keeps crops for its own lifetime only; given the process-wide
store it reads and writes that instead, so the crops outlive the controller.
"""

import functools
import logging
from pathlib import Path
from typing import AsyncIterator, Sequence

from crop_batch.config import CropDelegate
from crop_batch.export import Cropper, ExportPipeline, Sampler
from crop_batch.image_io import crop_image, sample_image
from crop_batch.library import AssetLibrary, LocalAssetLibrary
from crop_batch.models import Asset, CropParameter, CropState, ExportSnapshot
from crop_batch.observable import ObservableValue
from crop_batch.ratios import CropRatioSelector
from crop_batch.store import CropParameterStore

logger = logging.getLogger(__name__)


class CropController:
    """Keeps crop parameters of the selected assets and exports them."""

    def __init__(
        self,
        delegate: CropDelegate | None = None,
        *,
        shared_store: CropParameterStore | None = None,
        library: AssetLibrary | None = None,
        sampler: Sampler | None = None,
        cropper: Cropper | None = None,
        output_dir: Path | None = None,
    ):
        self.delegate = delegate if delegate is not None else CropDelegate()
        self._selector = CropRatioSelector(self.delegate.crop_ratios)

        self.keep_memory = shared_store is not None
        self.store = shared_store if shared_store is not None else CropParameterStore()

        # Observables for the UI layer
        self.crop_ratio_index: ObservableValue[int] = self._selector.index
        self.is_crop_view_ready: ObservableValue[bool] = ObservableValue(False)
        self.preview_asset: ObservableValue[Asset | None] = ObservableValue(None)

        if sampler is None:
            sampler = functools.partial(sample_image, output_dir=output_dir)
        if cropper is None:
            cropper = functools.partial(crop_image, output_dir=output_dir)
        self._pipeline = ExportPipeline(
            library if library is not None else LocalAssetLibrary(),
            sampler=sampler,
            cropper=cropper,
            preferred_size=self.delegate.preferred_size,
            transform_retries=self.delegate.transform_retries,
        )
        self._disposed = False

    # -------------------------------------------------------------------------
    # Aspect ratio
    # -------------------------------------------------------------------------
    @property
    def aspect_ratio(self) -> float:
        return self._selector.current_ratio()

    @property
    def aspect_ratio_label(self) -> str:
        return self._selector.current_ratio_label()

    def next_crop_ratio(self) -> None:
        self._selector.advance()

    # -------------------------------------------------------------------------
    # Crop parameters
    # -------------------------------------------------------------------------
    def get(self, asset: Asset | str) -> CropParameter | None:
        """Return the stored crop parameter of an asset (or asset id)."""
        asset_id = asset.id if isinstance(asset, Asset) else asset
        return self.store.get(asset_id)

    def on_change(
        self,
        save_asset: Asset | None,
        save_state: CropState | None,
        selected_assets: Sequence[Asset],
    ) -> None:
        """Save the crop state of the asset leaving the preview and resync the store with the selection."""
        changed = CropParameter.from_state(save_asset, save_state) if save_asset is not None else None
        self.store.snapshot_and_merge(save_asset, changed, selected_assets)

    def clear(self) -> None:
        """Forget every saved crop parameter and the preview asset."""
        self.store.clear()
        self.preview_asset.value = None

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------
    def export_crop_files(
        self,
        selected_assets: Sequence[Asset],
        skip_crop: bool = False,
    ) -> AsyncIterator[ExportSnapshot]:
        """
        Apply the stored crop parameters to *selected_assets*.

        Returns an async iterator of progress snapshots.  The store contents
        are captured now; each snapshot reports the ratio active when it is made.
        """
        return self._pipeline.export_crop_files(
            selected_assets,
            self.store.mapping(),
            aspect_ratio=self._selector.current_ratio,
            skip_crop=skip_crop,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------
    def dispose(self) -> None:
        """Release the observables.  The store is left as is."""
        if self._disposed:
            return
        self.is_crop_view_ready.dispose()
        self._selector.dispose()
        self.preview_asset.dispose()
        self._disposed = True
        logger.debug("Crop controller disposed (keep_memory=%s)", self.keep_memory)
