"""
In-memory crop-parameter store.

Maps asset ids to their last-known ``CropParameter``.  A controller either
owns a private store (session lifetime) or is handed one shared store that
outlives it (process lifetime), so crops survive the picker being torn
down and rebuilt.

Every mutation builds a complete new dict and swaps it in with a single
assignment, so readers never observe a half-merged map.  The lock only
protects that swap; callers sharing a store between controllers must still
make sure only one UI interaction mutates it at a time.
"""

import logging
import threading
from types import MappingProxyType
from typing import Iterable, Mapping

from crop_batch.models import Asset, CropParameter

logger = logging.getLogger(__name__)


class CropParameterStore:
    """Asset id → CropParameter mapping with whole-map replacement semantics."""

    def __init__(self):
        self._params: dict[str, CropParameter] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._params)

    def __contains__(self, asset_id: object) -> bool:
        return asset_id in self._params

    def get(self, asset_id: str) -> CropParameter | None:
        """Return the stored parameter, or None if the asset has none."""
        return self._params.get(asset_id)

    def mapping(self) -> Mapping[str, CropParameter]:
        """Read-only copy of the current map, unaffected by later mutation."""
        return MappingProxyType(dict(self._params))

    def snapshot_and_merge(
        self,
        changed_asset: Asset | None,
        changed_parameter: CropParameter | None,
        selection: Iterable[Asset],
    ) -> None:
        """
        Rebuild the map for *selection*.

        The asset sharing *changed_asset*'s id gets *changed_parameter* (or the
        default parameter when None).  Every other selected asset keeps its
        stored entry or receives a default one.  Entries for assets outside
        *selection* are dropped.
        """
        current = self._params
        merged: dict[str, CropParameter] = {}

        for asset in selection:
            if changed_asset is not None and asset.id == changed_asset.id:
                merged[asset.id] = changed_parameter or CropParameter.from_state(asset, None)
            else:
                saved = current.get(asset.id)
                merged[asset.id] = saved if saved is not None else CropParameter.from_state(asset, None)

        self._replace(merged)
        logger.debug(
            "Merged crop parameters for %d asset(s) (changed: %s)",
            len(merged), changed_asset.id if changed_asset is not None else None,
        )

    def clear(self) -> None:
        self._replace({})

    def _replace(self, params: dict[str, CropParameter]) -> None:
        with self._lock:
            self._params = params

    def __repr__(self) -> str:
        return f"CropParameterStore({len(self._params)} entries)"
