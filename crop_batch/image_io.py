"""
Image I/O utilities and the default sampler/cropper.

Provides helpers to open images (including PSD), read oriented dimensions
without full loading, compute content fingerprints, and generate unique
file paths.  ``sample_image`` and ``crop_image`` are the blocking transforms
the export pipeline runs off the event loop; any callable with the same
signature can replace them.
"""

import hashlib
import logging
from pathlib import Path

from PIL import Image, ImageOps
from psd_tools import PSDImage

from crop_batch.config import (
    JPEG_QUALITY_DEFAULT, JPEG_SUBSAMPLING_DEFAULT, JPEG_SUBSAMPLING_MAP,
    LOSSLESS_EXTENSIONS, PNG_COMPRESS_LEVEL, export_dir,
)
from crop_batch.models import CropArea

logger = logging.getLogger(__name__)

# Allow very large images (Pillow's default limit is ~178MP)
Image.MAX_IMAGE_PIXELS = None

# Number of bytes read for fingerprinting (64 KB)
_FINGERPRINT_READ_SIZE = 65_536

# EXIF orientations that rotate the image by 90° (width and height swap)
_TRANSPOSED_ORIENTATIONS = {5, 6, 7, 8}
_EXIF_ORIENTATION_TAG = 0x0112

_SAMPLED_TAG = "-sampled"
_CROPPED_TAG = "-cropped"


def compute_fingerprint(path: Path) -> str:
    """
    Compute a fast content fingerprint for a file.

    Reads the first 64 KB of the file and combines it with the file size
    to produce a truncated SHA-256 hex string.  Format: ``"{size_hex}_{hash16}"``.
    Renamed or moved files keep their fingerprint.
    """
    size = path.stat().st_size
    sha = hashlib.sha256()
    with open(path, "rb") as f:
        sha.update(f.read(_FINGERPRINT_READ_SIZE))
    return f"{size:x}_{sha.hexdigest()[:16]}"


def open_image(path: Path) -> Image.Image:
    """Open an image with its EXIF orientation applied, using psd-tools for PSD."""
    if path.suffix.lower() == ".psd":
        return PSDImage.open(str(path)).composite()
    with Image.open(path) as img:
        return ImageOps.exif_transpose(img)


def get_image_size(path: Path) -> tuple[int, int]:
    """Get oriented image dimensions without fully loading/compositing."""
    if path.suffix.lower() == ".psd":
        psd = PSDImage.open(str(path))
        return psd.width, psd.height
    with Image.open(path) as img:
        w, h = img.size
        if img.getexif().get(_EXIF_ORIENTATION_TAG) in _TRANSPOSED_ORIENTATIONS:
            return h, w
        return w, h


def unique_path(out_path: Path) -> Path:
    """Return a unique path by appending -01, -02, etc. if file already exists."""
    if not out_path.exists():
        return out_path
    stem = out_path.stem
    suffix = out_path.suffix
    parent = out_path.parent
    counter = 1
    while True:
        candidate = parent / f"{stem}-{counter:02d}{suffix}"
        if not candidate.exists():
            return candidate
        counter += 1


# =============================================================================
# Transforms
# =============================================================================
def sample_factor(img_w: int, img_h: int, preferred_size: int) -> int:
    """
    Largest power-of-two reduction that keeps both sides >= *preferred_size*.

    Returns 1 (no reduction) for images already at or below the target.
    """
    factor = 1
    if preferred_size <= 0:
        return factor
    while img_w // (factor * 2) >= preferred_size and img_h // (factor * 2) >= preferred_size:
        factor *= 2
    return factor


def sample_image(file: Path, preferred_size: int, output_dir: Path | None = None) -> Path:
    """
    Write a reduced working copy of *file* and return its path.

    The copy is never upscaled: small sources are re-encoded at full size.
    """
    file = Path(file)
    img = open_image(file)
    factor = sample_factor(img.width, img.height, preferred_size)
    if factor > 1:
        img = img.reduce(factor)
    logger.debug(
        "Sampled %s by 1/%d to %dx%d (preferred %d)",
        file.name, factor, img.width, img.height, preferred_size,
    )
    return _save_image(img, file, _SAMPLED_TAG, output_dir)


def crop_image(file: Path, area: CropArea, output_dir: Path | None = None) -> Path:
    """Crop the normalized *area* out of *file* and return the new file's path."""
    file = Path(file)
    img = open_image(file)
    box = area.to_pixels(img.width, img.height)
    cropped = img.crop(box)
    logger.debug("Cropped %s to box %s", file.name, box)
    return _save_image(cropped, file, _CROPPED_TAG, output_dir)


def _save_image(img: Image.Image, source: Path, tag: str, output_dir: Path | None) -> Path:
    """Encode *img* next to the other exports, PNG for lossless sources, JPEG otherwise."""
    out_dir = Path(output_dir) if output_dir is not None else export_dir()
    out_dir.mkdir(parents=True, exist_ok=True)

    stem = source.stem
    if stem.endswith(_SAMPLED_TAG):
        stem = stem[: -len(_SAMPLED_TAG)]

    if source.suffix.lower() in LOSSLESS_EXTENSIONS:
        if img.mode not in ("L", "LA", "P", "RGB", "RGBA"):
            img = img.convert("RGBA")
        out_path = unique_path(out_dir / f"{stem}{tag}.png")
        img.save(str(out_path), "PNG", compress_level=PNG_COMPRESS_LEVEL)
    else:
        if img.mode not in ("L", "RGB"):
            img = img.convert("RGB")
        out_path = unique_path(out_dir / f"{stem}{tag}.jpg")
        img.save(
            str(out_path), "JPEG",
            quality=JPEG_QUALITY_DEFAULT,
            optimize=True,
            subsampling=JPEG_SUBSAMPLING_MAP[JPEG_SUBSAMPLING_DEFAULT],
        )
    return out_path
