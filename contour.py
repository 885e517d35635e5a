"""Silhouette cut contours.

Pipeline (per asset, target size, cut offset and rotation):

  1. Rasterize the alpha channel at SAMPLE_PX_PER_MM, clamped to
     [MIN_SAMPLE_PX, MAX_SAMPLE_PX] on the longest side
  2. Threshold to a binary mask
  3. Dilate by the cut offset (circular kernel)
  4. Trace boundary loops, keep the one with the largest area
  5. Normalize to 0..1000 on both axes
  6. Douglas-Peucker (coarse) to drop raster staircases
  7. One Chaikin pass to round the remaining right angles
  8. Stride-resample down to MAX_CONTOUR_POINTS
  9. Douglas-Peucker (fine)

Steps 1-4 dominate the cost, so results are kept in a ContourCache keyed by
``(asset_id, width_mm, height_mm, offset_mm, rotated)``.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from PIL import Image

from geometry import Point, chaikin, resample, simplify_loop
from mask import BinaryMask, alpha_mask, dilate, largest_loop

logger = logging.getLogger(__name__)


SAMPLE_PX_PER_MM = 4.0
MIN_SAMPLE_PX = 32
MAX_SAMPLE_PX = 600
NORMALIZED_SIZE = 1000.0
COARSE_EPSILON = 3.0
FINE_EPSILON = 0.75
MAX_CONTOUR_POINTS = 400


@dataclass(frozen=True)
class Contour:
    """Closed cut outline in normalized 0..1000 space.

    ``bounds_mm`` is ``(left, top, width, height)`` relative to the item's
    top-left corner: the physical rectangle the 0..1000 square maps onto.
    It extends past the item by the cut offset.
    """
    points: tuple[Point, ...]
    bounds_mm: tuple[float, float, float, float]

    def __bool__(self):
        return bool(self.points)

    def to_mm(self) -> list[Point]:
        """Points in millimetres relative to the item's top-left corner."""
        left, top, width, height = self.bounds_mm
        return [(left + x / NORMALIZED_SIZE * width, top + y / NORMALIZED_SIZE * height)
                for x, y in self.points]


def sample_size(width_mm: float, height_mm: float) -> tuple[int, int]:
    """Mask resolution for a target physical size, aspect preserved."""
    longest = max(width_mm, height_mm)
    if longest <= 0:
        raise ValueError("Target size must be > 0")
    longest_px = longest * SAMPLE_PX_PER_MM
    longest_px = max(MIN_SAMPLE_PX, min(MAX_SAMPLE_PX, longest_px))
    scale = longest_px / longest
    return max(1, round(width_mm * scale)), max(1, round(height_mm * scale))


def normalize(loop: list[Point], width: int, height: int) -> list[Point]:
    return [(x * NORMALIZED_SIZE / width, y * NORMALIZED_SIZE / height) for x, y in loop]


def trace_contour(mask: BinaryMask, radius_px: int = 0) -> list[Point]:
    """Run stages 3-9 on *mask* and return normalized points.

    The mask is padded by *radius_px* before dilation, so the 0..1000 space
    covers the grown extent. An empty mask gives ``[]``.
    """
    if mask.is_empty():
        return []
    grown = dilate(mask.padded(radius_px), radius_px) if radius_px > 0 else mask
    loop = largest_loop(grown)
    if not loop:
        return []
    points = normalize(loop, grown.width, grown.height)
    points = simplify_loop(points, COARSE_EPSILON)
    points = chaikin(points)
    points = resample(points, MAX_CONTOUR_POINTS)
    return simplify_loop(points, FINE_EPSILON)


def extract_contour(image: Image.Image, width_mm: float, height_mm: float,
                    offset_mm: float = 0.0, rotated: bool = False) -> Contour:
    """Cut contour for *image* placed at ``width_mm`` x ``height_mm``.

    The target size is the placed size, i.e. already swapped when *rotated*.
    """
    sw, sh = sample_size(width_mm, height_mm)
    mask = alpha_mask(image, sw, sh, rotated)
    px_per_mm = sw / width_mm
    radius = max(0, round(offset_mm * px_per_mm))
    points = trace_contour(mask, radius)
    pad_x = radius * width_mm / sw
    pad_y = radius * height_mm / sh
    bounds = (-pad_x, -pad_y, width_mm + 2 * pad_x, height_mm + 2 * pad_y)
    return Contour(tuple(points), bounds)


def cache_key(asset_id: str, width_mm: float, height_mm: float,
              offset_mm: float, rotated: bool) -> tuple:
    """Canonical composite key; sizes rounded so float noise does not split
    entries."""
    return (asset_id, round(width_mm, 4), round(height_mm, 4), round(offset_mm, 4), bool(rotated))


class ContourCache:
    """Read-through contour cache with at most one computation per key.

    *loader* maps an asset id to a Pillow image. Safe to share between
    threads: concurrent requests for the same key wait on a per-key lock
    while the first one computes.
    """

    def __init__(self, loader):
        self._loader = loader
        self._results: dict[tuple, Contour] = {}
        self._locks: dict[tuple, threading.Lock] = {}
        self._guard = threading.Lock()
        self.computations = 0

    def __len__(self):
        return len(self._results)

    def __contains__(self, key):
        return key in self._results

    def _lock_for(self, key) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def get(self, asset_id: str, width_mm: float, height_mm: float,
            offset_mm: float = 0.0, rotated: bool = False) -> Contour:
        key = cache_key(asset_id, width_mm, height_mm, offset_mm, rotated)
        cached = self._results.get(key)
        if cached is not None:
            return cached
        with self._lock_for(key):
            cached = self._results.get(key)
            if cached is not None:
                return cached
            logger.debug("Contour cache miss: %s", key)
            contour = extract_contour(self._loader(asset_id), width_mm, height_mm,
                                      offset_mm, rotated)
            with self._guard:
                self._results[key] = contour
                self.computations += 1
                # Later callers hit _results before asking for a lock
                self._locks.pop(key, None)
            return contour

    def prefetch(self, requests, max_workers: int | None = None) -> list[Contour]:
        """Compute ``(asset_id, width_mm, height_mm, offset_mm, rotated)``
        requests in parallel; returns contours in request order."""
        requests = list(requests)
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            return list(pool.map(lambda r: self.get(*r), requests))


def job_contour_requests(job, offset_mm: float) -> list[tuple]:
    """Distinct contour requests for every (asset, size, rotation) in *job*."""
    seen = set()
    requests = []
    for p in job.placements:
        request = (p.asset_id, p.width_mm, p.height_mm, offset_mm, p.rotated)
        key = cache_key(*request)
        if key not in seen:
            seen.add(key)
            requests.append(request)
    return requests
