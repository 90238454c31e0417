"""
Aspect-ratio helpers and the crop-ratio selector.

Ratios are plain floats (width / height) in a fixed, ordered list supplied
by ``CropDelegate.crop_ratios``.  The selector walks that list in order and
wraps around; its index is observable so a UI can follow it.  Labels are
rendered as reduced integer fractions, e.g. ``1.7778`` → ``"16:9"``.
"""

import logging
import math
from fractions import Fraction
from math import gcd

from crop_batch.config import RATIO_LABEL_MAX_DENOMINATOR
from crop_batch.errors import PreconditionError
from crop_batch.observable import ObservableValue

logger = logging.getLogger(__name__)


# =============================================================================
# Aspect-ratio helpers
# =============================================================================
def normalize_ratio(w: int, h: int) -> tuple[int, int]:
    """Reduce ratio to simplest form via GCD. (21, 9) → (7, 3)"""
    g = gcd(w, h)
    return w // g, h // g


def ratio_to_fraction(ratio: float) -> tuple[int, int]:
    """
    Approximate a float ratio by the closest integer fraction.

    The denominator is capped at ``RATIO_LABEL_MAX_DENOMINATOR`` so that
    rounded presets such as ``1.7778`` or ``1.3333`` come back as the
    photographic ratios they stand for.
    """
    frac = Fraction(ratio).limit_denominator(RATIO_LABEL_MAX_DENOMINATOR)
    return normalize_ratio(frac.numerator, frac.denominator)


def ratio_label(ratio: float) -> str:
    """Display label for a ratio. 1.0 → '1:1', 0.8 → '4:5'"""
    if ratio == 1:
        return "1:1"
    w, h = ratio_to_fraction(ratio)
    return f"{w}:{h}"


# =============================================================================
# Validation
# =============================================================================
def validate_ratios(data: object) -> list[str]:
    """
    Validate a list of crop ratios.

    Returns a list of error strings (empty means valid).
    """
    errors: list[str] = []

    if not isinstance(data, (list, tuple)):
        errors.append("Crop ratios must be a list")
        return errors

    if len(data) == 0:
        errors.append("The list of supported crop ratios cannot be empty")
        return errors

    for i, ratio in enumerate(data):
        prefix = f"Ratio #{i + 1}"
        if isinstance(ratio, bool) or not isinstance(ratio, (int, float)):
            errors.append(f"{prefix}: must be a number, got {ratio!r}")
        elif not math.isfinite(ratio) or ratio <= 0:
            errors.append(f"{prefix}: must be a positive finite number, got {ratio!r}")

    return errors


# =============================================================================
# Selector
# =============================================================================
class CropRatioSelector:
    """Tracks which of the configured ratios is active."""

    def __init__(self, ratios, initial_index: int = 0):
        errors = validate_ratios(ratios)
        if errors:
            raise PreconditionError("Invalid crop ratios:\n  " + "\n  ".join(errors))
        if not 0 <= initial_index < len(ratios):
            raise PreconditionError(
                f"Initial ratio index {initial_index} is out of range for {len(ratios)} ratio(s)"
            )
        self._ratios = tuple(float(r) for r in ratios)
        self.index = ObservableValue(initial_index)

    @property
    def ratios(self) -> tuple[float, ...]:
        return self._ratios

    def current_ratio(self) -> float:
        return self._ratios[self.index.value]

    def current_ratio_label(self) -> str:
        return ratio_label(self.current_ratio())

    def advance(self) -> None:
        """Select the next ratio, wrapping to the first after the last."""
        self.index.value = (self.index.value + 1) % len(self._ratios)
        logger.debug("Crop ratio -> %s", self.current_ratio_label())

    def dispose(self) -> None:
        self.index.dispose()
