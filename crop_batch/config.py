"""
Package constants and configuration.

DEFAULT_CROP_RATIOS provides the built-in aspect ratios offered by the crop
view.  ``CropDelegate`` bundles the per-controller options; everything else
controls ratio labels, export encoding, and file-type detection.

The ``export_dir()`` helper returns the platform-appropriate directory that
sampled and cropped files are written to.
"""

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

# =============================================================================
# APP IDENTITY & EXPORT DIRECTORY
# =============================================================================
APP_NAME = "crop-batch"

# Overrides export_dir() when set
EXPORT_DIR_ENV = "CROP_BATCH_EXPORT_DIR"


def export_dir() -> Path:
    """Return the directory for exported files, creating it if needed."""
    override = os.environ.get(EXPORT_DIR_ENV)
    if override:
        directory = Path(override)
    else:
        if sys.platform == "win32":
            base = Path(os.environ.get("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
        elif sys.platform == "darwin":
            base = Path.home() / "Library" / "Caches"
        else:
            base = Path(os.environ.get("XDG_CACHE_HOME", Path.home() / ".cache"))
        directory = base / APP_NAME / "exports"
    directory.mkdir(parents=True, exist_ok=True)
    return directory

# =============================================================================
# CROP OPTIONS
# =============================================================================
# Square and 4:5 portrait, cycled in this order
DEFAULT_CROP_RATIOS = [1.0, 4 / 5]

# Longest export edge the sampler aims for at scale 1.0
DEFAULT_PREFERRED_SIZE = 1080

# Smallest zoom accepted from the crop view
MIN_SCALE = 1e-3

# Largest denominator used when turning a ratio into an "a:b" label
RATIO_LABEL_MAX_DENOMINATOR = 100

# Float slack allowed on normalized crop-area bounds
AREA_TOLERANCE = 1e-9


@dataclass
class CropDelegate:
    """Options shared by the crop view and the export pipeline."""
    crop_ratios: list = field(default_factory=lambda: list(DEFAULT_CROP_RATIOS))
    preferred_size: int = DEFAULT_PREFERRED_SIZE
    transform_retries: int = 0  # extra attempts for sampler/cropper OSErrors

# =============================================================================
# EXPORT ENCODING
# =============================================================================
# PNG compression level (0-9, 9 = maximum compression)
PNG_COMPRESS_LEVEL = 9

# JPEG export defaults
JPEG_QUALITY_DEFAULT = 95
JPEG_SUBSAMPLING_DEFAULT = "4:4:4"

# Map subsampling labels to Pillow integer values
JPEG_SUBSAMPLING_MAP = {"4:4:4": 0, "4:2:2": 1, "4:2:0": 2}

# Sources written back as PNG; everything else becomes JPEG
LOSSLESS_EXTENSIONS = {".png", ".psd", ".tiff", ".tif", ".bmp"}

# =============================================================================
# FILE TYPES
# =============================================================================
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".tiff", ".tif", ".webp", ".psd", ".gif"}
VIDEO_EXTENSIONS = {".mp4", ".mov", ".m4v", ".avi", ".mkv", ".webm", ".3gp"}
AUDIO_EXTENSIONS = {".mp3", ".m4a", ".aac", ".wav", ".flac", ".ogg"}
