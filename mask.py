"""Binary alpha masks: thresholding, dilation, boundary tracing and corner
opacity sampling.

Masks use image coordinates: ``(0, 0)`` is the top-left cell and y grows
downward. Cell ``(x, y)`` covers the unit square from ``(x, y)`` to
``(x + 1, y + 1)``, so traced boundaries run along integer grid lines.
"""

import enum
import logging

import cv2
import numpy as np
from PIL import Image, ImageStat

from geometry import Point, signed_area

logger = logging.getLogger(__name__)


ALPHA_EPSILON = 8              # alpha above this counts as opaque
CORNER_SAMPLE_PX = 64          # corner sampler resolution (square)
CORNER_FRACTION = 0.25         # corner patch side as a fraction of it


class BinaryMask:
    """Opaque (True) / transparent (False) cells as a ``(height, width)``
    numpy bool array."""

    def __init__(self, width: int, height: int, cells=None):
        self.width = width
        self.height = height
        if cells is None:
            cells = np.zeros((height, width), dtype=bool)
        cells = np.asarray(cells, dtype=bool)
        if cells.size != width * height:
            raise ValueError(f"Expected {width * height} cells, got {cells.size}")
        self.cells = cells.reshape((height, width)).copy()

    @classmethod
    def from_rows(cls, rows: list[str]) -> "BinaryMask":
        """Build from strings such as ``"..##.."`` (``#`` is opaque)."""
        height = len(rows)
        width = len(rows[0]) if rows else 0
        cells = np.array([[ch == '#' for ch in row] for row in rows], dtype=bool)
        return cls(width, height, cells)

    @classmethod
    def from_alpha(cls, alpha: Image.Image, threshold: int = ALPHA_EPSILON) -> "BinaryMask":
        """Threshold a single-band ``L`` image (alpha channel)."""
        return cls(alpha.width, alpha.height, np.asarray(alpha) > threshold)

    def __getitem__(self, xy) -> bool:
        x, y = xy
        if 0 <= x < self.width and 0 <= y < self.height:
            return bool(self.cells[y, x])
        return False

    def __eq__(self, other):
        if not isinstance(other, BinaryMask):
            return NotImplemented
        return self.cells.shape == other.cells.shape and np.array_equal(self.cells, other.cells)

    def __repr__(self):
        return f"BinaryMask({self.width}x{self.height}, opaque={self.count()})"

    def count(self) -> int:
        return int(np.count_nonzero(self.cells))

    def is_empty(self) -> bool:
        return not self.cells.any()

    def padded(self, pad: int) -> "BinaryMask":
        """Copy with *pad* transparent cells added on every side."""
        if pad <= 0:
            return BinaryMask(self.width, self.height, self.cells)
        return BinaryMask(self.width + 2 * pad, self.height + 2 * pad, np.pad(self.cells, pad))


def alpha_mask(image: Image.Image, width_px: int, height_px: int,
               rotated: bool = False) -> BinaryMask:
    """Sample *image*'s alpha at ``width_px`` x ``height_px`` and threshold it.

    Images without an alpha channel are treated as fully opaque.
    """
    rgba = image.convert('RGBA')
    if rotated:
        rgba = rgba.transpose(Image.Transpose.ROTATE_90)
    alpha = rgba.getchannel('A').resize((width_px, height_px), Image.Resampling.BILINEAR)
    return BinaryMask.from_alpha(alpha)


def disc_kernel(radius: int) -> np.ndarray:
    """``uint8`` structuring element of cells with ``dx**2 + dy**2 <= radius**2``."""
    yy, xx = np.mgrid[-radius:radius + 1, -radius:radius + 1]
    return (xx * xx + yy * yy <= radius * radius).astype(np.uint8)


def dilate(mask: BinaryMask, radius: int) -> BinaryMask:
    """Grow the opaque region by *radius* cells with a circular kernel.

    A cell becomes opaque if an opaque cell lies within squared distance
    ``radius ** 2``. Cells outside the mask count as transparent.
    """
    if radius <= 0:
        return BinaryMask(mask.width, mask.height, mask.cells)
    grown = cv2.dilate(mask.cells.astype(np.uint8), disc_kernel(radius),
                       borderType=cv2.BORDER_CONSTANT, borderValue=0)
    return BinaryMask(mask.width, mask.height, grown > 0)


# === Boundary tracing ===

Edge = tuple[tuple[int, int], tuple[int, int]]


def boundary_edges(mask: BinaryMask) -> list[Edge]:
    """Directed unit edges between opaque cells and their non-opaque
    neighbours, oriented clockwise around the opaque region."""
    cells = mask.cells
    p = np.pad(cells, 1)
    up, down = p[:-2, 1:-1], p[2:, 1:-1]
    left, right = p[1:-1, :-2], p[1:-1, 2:]

    edges: list[Edge] = []
    for y, x in np.argwhere(cells & ~up).tolist():
        edges.append(((x, y), (x + 1, y)))
    for y, x in np.argwhere(cells & ~right).tolist():
        edges.append(((x + 1, y), (x + 1, y + 1)))
    for y, x in np.argwhere(cells & ~down).tolist():
        edges.append(((x + 1, y + 1), (x, y + 1)))
    for y, x in np.argwhere(cells & ~left).tolist():
        edges.append(((x, y + 1), (x, y)))
    return edges


def _direction(edge: Edge) -> tuple[int, int]:
    (x0, y0), (x1, y1) = edge
    return (x1 - x0, y1 - y0)


def _next_edge_map(edges: list[Edge]) -> dict[Edge, Edge]:
    outgoing: dict[tuple[int, int], list[Edge]] = {}
    for edge in edges:
        outgoing.setdefault(edge[0], []).append(edge)

    nxt: dict[Edge, Edge] = {}
    for edge in edges:
        candidates = outgoing.get(edge[1], [])
        if len(candidates) == 1:
            nxt[edge] = candidates[0]
        elif candidates:
            # Saddle vertex: take the left turn so diagonal cells stay joined
            dx, dy = _direction(edge)
            left = (dy, -dx)
            nxt[edge] = next((c for c in candidates if _direction(c) == left), candidates[0])
    return nxt


def _drop_collinear(loop: list[tuple[int, int]]) -> list[tuple[int, int]]:
    n = len(loop)
    out = []
    for i in range(n):
        px, py = loop[i - 1]
        x, y = loop[i]
        nx, ny = loop[(i + 1) % n]
        if (x - px, y - py) != (nx - x, ny - y):
            out.append(loop[i])
    return out


def trace_loops(mask: BinaryMask) -> list[list[tuple[int, int]]]:
    """Every closed boundary loop of *mask*.

    Returns an empty list if the edge graph is malformed (a walk that does
    not return to its start within the iteration bound).
    """
    edges = sorted(boundary_edges(mask))
    if not edges:
        return []
    nxt = _next_edge_map(edges)
    bound = len(edges)
    visited: set[Edge] = set()
    loops = []
    for start in edges:
        if start in visited:
            continue
        loop = []
        edge = start
        steps = 0
        while True:
            visited.add(edge)
            loop.append(edge[0])
            edge = nxt.get(edge)
            steps += 1
            if edge == start:
                break
            if edge is None or edge in visited or steps > bound:
                logger.debug("Malformed boundary at %s after %d steps", start, steps)
                return []
        loops.append(_drop_collinear(loop))
    return loops


def largest_loop(mask: BinaryMask) -> list[Point]:
    """The boundary loop enclosing the largest absolute area, or ``[]``."""
    best: list[Point] = []
    best_area = 0.0
    for loop in trace_loops(mask):
        area = abs(signed_area(loop))
        if area > best_area:
            best_area = area
            best = [(float(x), float(y)) for x, y in loop]
    return best


# === Corner opacity ===

class Corner(enum.Enum):
    TOP_RIGHT = 'top-right'
    TOP_LEFT = 'top-left'
    BOTTOM_RIGHT = 'bottom-right'
    BOTTOM_LEFT = 'bottom-left'


# Tie-break order
CORNER_PREFERENCE = (Corner.TOP_RIGHT, Corner.TOP_LEFT, Corner.BOTTOM_RIGHT, Corner.BOTTOM_LEFT)


def corner_opacity(image: Image.Image, rotated: bool = False,
                   resolution: int = CORNER_SAMPLE_PX,
                   fraction: float = CORNER_FRACTION) -> dict[Corner, float]:
    """Average alpha (0-255) of the four corner patches."""
    rgba = image.convert('RGBA')
    if rotated:
        rgba = rgba.transpose(Image.Transpose.ROTATE_90)
    alpha = rgba.getchannel('A').resize((resolution, resolution), Image.Resampling.BILINEAR)
    n = max(1, int(resolution * fraction))
    r = resolution
    boxes = {
        Corner.TOP_RIGHT: (r - n, 0, r, n),
        Corner.TOP_LEFT: (0, 0, n, n),
        Corner.BOTTOM_RIGHT: (r - n, r - n, r, r),
        Corner.BOTTOM_LEFT: (0, r - n, n, r),
    }
    return {corner: ImageStat.Stat(alpha.crop(box)).mean[0] for corner, box in boxes.items()}


def most_opaque_corner(image: Image.Image, rotated: bool = False,
                       resolution: int = CORNER_SAMPLE_PX,
                       fraction: float = CORNER_FRACTION) -> Corner:
    """Corner whose patch is the most opaque; ties follow ``CORNER_PREFERENCE``."""
    averages = corner_opacity(image, rotated, resolution, fraction)
    best = CORNER_PREFERENCE[0]
    for corner in CORNER_PREFERENCE[1:]:
        if averages[corner] > averages[best]:
            best = corner
    return best
