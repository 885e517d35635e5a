"""Sticker sizing: turn a sizing mode plus pixel dimensions into millimetres.

The effective DPI of a resolved size only feeds the low-resolution warning.
"""

import logging

from errors import InvalidSpecError
from models import (
    ASPECT_TOLERANCE, LOW_DPI_WARNING, MM_PER_INCH,
    AxisSizing, FromImageDpi, PerAssetSizing, PhysicalSizing, ResolvedSize,
    cm_to_mm, px_to_mm,
)

logger = logging.getLogger(__name__)


def _check_pixels(width_px: int, height_px: int) -> None:
    if width_px <= 0 or height_px <= 0:
        raise InvalidSpecError(f"Image size must be > 0 px, got {width_px}x{height_px}.")


def _from_dpi(width_px: int, height_px: int, dpi: float) -> ResolvedSize:
    return ResolvedSize(px_to_mm(width_px, dpi), px_to_mm(height_px, dpi), float(dpi))


def resolve_sizing(sizing, width_px: int, height_px: int, dpi: float) -> ResolvedSize:
    """Resolve a job-level sizing (physical or from image DPI)."""
    _check_pixels(width_px, height_px)
    if isinstance(sizing, PhysicalSizing):
        if sizing.w_cm <= 0 or sizing.h_cm <= 0:
            raise InvalidSpecError("Physical sticker size must be > 0.")
        width_mm = cm_to_mm(sizing.w_cm)
        height_mm = cm_to_mm(sizing.h_cm)
        return ResolvedSize(width_mm, height_mm, width_px * MM_PER_INCH / width_mm)
    if isinstance(sizing, PerAssetSizing):
        raise InvalidSpecError("Per-asset sizing is not supported by the grid engine.")
    if sizing is None or isinstance(sizing, FromImageDpi):
        return _from_dpi(width_px, height_px, dpi)
    raise InvalidSpecError(f"Unknown sticker sizing: {sizing!r}")


def resolve_asset_sizing(sizing, width_px: int, height_px: int, dpi: float) -> ResolvedSize:
    """Resolve a per-asset sizing (one physical axis, or from image DPI)."""
    _check_pixels(width_px, height_px)
    if isinstance(sizing, FromImageDpi):
        return _from_dpi(width_px, height_px, dpi)
    if not isinstance(sizing, AxisSizing):
        raise InvalidSpecError(f"Unknown asset sizing: {sizing!r}")
    if sizing.size_cm <= 0:
        raise InvalidSpecError("Physical sticker size must be > 0.")

    ratio = width_px / height_px
    size_mm = cm_to_mm(sizing.size_cm)
    if sizing.axis == 'w':
        width_mm, height_mm = size_mm, size_mm / ratio
    elif sizing.axis == 'h':
        width_mm, height_mm = size_mm * ratio, size_mm
    else:
        raise InvalidSpecError(f"Sizing axis must be 'w' or 'h', got {sizing.axis!r}.")
    return ResolvedSize(width_mm, height_mm, width_px * MM_PER_INCH / width_mm)


def sizing_warnings(asset_id: str, sizing, width_px: int, height_px: int,
                    resolved: ResolvedSize) -> list[str]:
    """Non-fatal problems with a resolved size. Each one is also logged."""
    warnings = []
    if isinstance(sizing, PhysicalSizing):
        image_ratio = width_px / height_px
        physical_ratio = sizing.w_cm / sizing.h_cm
        diff = abs(image_ratio - physical_ratio) / physical_ratio
        if diff > ASPECT_TOLERANCE:
            warnings.append(
                f"{asset_id}: image ratio {image_ratio:.4f} differs from physical size "
                f"ratio {physical_ratio:.4f} by more than {ASPECT_TOLERANCE:.0%}.")
    if resolved.effective_dpi < LOW_DPI_WARNING:
        warnings.append(f"{asset_id}: low effective DPI ({resolved.effective_dpi:.1f}).")
    for message in warnings:
        logger.warning(message)
    return warnings
