"""
Data models and crop-geometry utilities.

Asset, CropParameter and the export records are the core data structures
shared by the store, the controller and the export pipeline.  Crop areas
are stored normalized (0..1) against the *oriented* asset dimensions, so one
parameter stays valid whatever resolution the sampler produces.
"""

import enum
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from crop_batch.config import AREA_TOLERANCE, MIN_SCALE


# =============================================================================
# Assets
# =============================================================================
class AssetType(enum.Enum):
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    OTHER = "other"


@dataclass(frozen=True)
class Asset:
    """One selectable media item, as described by the asset library."""
    id: str
    type: AssetType = AssetType.IMAGE
    orientated_width: int = 0
    orientated_height: int = 0
    path: Path | None = None

    @property
    def is_image(self) -> bool:
        return self.type is AssetType.IMAGE


# =============================================================================
# Crop state
# =============================================================================
@dataclass(frozen=True)
class CropArea:
    """Crop region normalized to the oriented asset size."""
    left: float = 0.0
    top: float = 0.0
    width: float = 1.0
    height: float = 1.0

    def __post_init__(self):
        values = (self.left, self.top, self.width, self.height)
        if any(not math.isfinite(v) or v < 0 or v > 1 + AREA_TOLERANCE for v in values):
            raise ValueError(f"Crop area values must be within [0, 1], got {values}")
        if self.left + self.width > 1 + AREA_TOLERANCE or self.top + self.height > 1 + AREA_TOLERANCE:
            raise ValueError(f"Crop area exceeds the image bounds: {values}")

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    def to_pixels(self, img_w: int, img_h: int) -> tuple[int, int, int, int]:
        """Return the ``(left, top, right, bottom)`` pixel box for an image size."""
        x1 = min(max(0, round(self.left * img_w)), img_w - 1)
        y1 = min(max(0, round(self.top * img_h)), img_h - 1)
        x2 = min(img_w, max(x1 + 1, round(self.right * img_w)))
        y2 = min(img_h, max(y1 + 1, round(self.bottom * img_h)))
        return x1, y1, x2, y2


@dataclass(frozen=True)
class CropState:
    """Live state reported by the crop view for the asset it is leaving."""
    internal_parameters: Any = None
    scale: float = 1.0
    area: CropArea | None = None


@dataclass(frozen=True)
class CropParameter:
    """Resolved crop configuration of one asset, used by the export."""
    asset: Asset
    internal_transform: Any = None
    scale: float = 1.0
    area: CropArea | None = None

    def __post_init__(self):
        if not self.scale >= MIN_SCALE:
            raise ValueError(f"scale must be >= {MIN_SCALE}, got {self.scale!r}")

    @property
    def asset_id(self) -> str:
        return self.asset.id

    @classmethod
    def from_state(cls, asset: Asset, state: CropState | None) -> "CropParameter":
        """Build the parameter for *asset*; ``state=None`` gives the defaults."""
        if state is None:
            return cls(asset=asset)
        return cls(
            asset=asset,
            internal_transform=state.internal_parameters,
            scale=state.scale,
            area=state.area,
        )

    @property
    def ffmpeg_crop(self) -> str | None:
        """Crop filter for ffmpeg in ``out_w:out_h:x:y`` form."""
        area = self.area
        if area is None:
            return None
        w = area.width * self.asset.orientated_width
        h = area.height * self.asset.orientated_height
        x = area.left * self.asset.orientated_width
        y = area.top * self.asset.orientated_height
        return f"{w}:{h}:{x}:{y}"

    @property
    def ffmpeg_scale(self) -> str | None:
        """Scale filter for ffmpeg in ``iw*scale:ih*scale`` form."""
        if self.internal_transform is None:
            return None
        return f"iw*{self.scale}:ih*{self.scale}"


# =============================================================================
# Export results
# =============================================================================
@dataclass(frozen=True)
class ExportRecord:
    """One exported asset.  ``file`` is None when cropping was skipped or the asset is not an image."""
    file: Path | None
    parameter: CropParameter


@dataclass(frozen=True)
class ExportSnapshot:
    """Progress report yielded by the export stream."""
    records: tuple[ExportRecord, ...] = field(default_factory=tuple)
    selection: tuple[Asset, ...] = field(default_factory=tuple)
    aspect_ratio: float = 1.0
    progress: float = 0.0

    @property
    def is_complete(self) -> bool:
        return self.progress >= 1.0

    @property
    def files(self) -> list[Path]:
        """Files produced so far, skipping records without output."""
        return [r.file for r in self.records if r.file is not None]
