"""Polyline primitives for cut contours.

Loops are lists of ``(x, y)`` tuples with an implicit closing edge from the
last point back to the first.
"""

import math

Point = tuple[float, float]


def signed_area(loop: list[Point]) -> float:
    """Shoelace area; positive for clockwise loops in image (y-down) space."""
    n = len(loop)
    if n < 3:
        return 0.0
    total = 0.0
    for i in range(n):
        x1, y1 = loop[i]
        x2, y2 = loop[(i + 1) % n]
        total += x1 * y2 - x2 * y1
    return total / 2.0


def distance(a: Point, b: Point) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def point_to_segment_distance(point: Point, start: Point, end: Point) -> float:
    """Perpendicular distance from *point* to the chord *start*-*end*."""
    if start == end:
        return distance(point, start)
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    length_sq = dx * dx + dy * dy
    t = ((point[0] - start[0]) * dx + (point[1] - start[1]) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    return distance(point, (start[0] + t * dx, start[1] + t * dy))


def _douglas_peucker(path: list[Point], epsilon: float) -> list[Point]:
    """Open-path Douglas-Peucker, iterative so long raster traces cannot
    exhaust the recursion limit."""
    n = len(path)
    if n <= 2:
        return list(path)
    keep = [False] * n
    keep[0] = keep[-1] = True
    stack = [(0, n - 1)]
    while stack:
        first, last = stack.pop()
        max_distance = -1.0
        index = -1
        for idx in range(first + 1, last):
            d = point_to_segment_distance(path[idx], path[first], path[last])
            if d > max_distance:
                max_distance = d
                index = idx
        if index >= 0 and max_distance > epsilon:
            keep[index] = True
            stack.append((index, last))
            stack.append((first, index))
    return [p for p, k in zip(path, keep) if k]


def simplify_loop(loop: list[Point], epsilon: float) -> list[Point]:
    """Douglas-Peucker on a closed loop.

    The loop is simplified as an open path with its first point repeated at
    the end; the repeated point is dropped afterwards. A result of three
    points or fewer is rejected and *loop* is returned unchanged.
    """
    if len(loop) <= 3:
        return list(loop)
    path = list(loop) + [loop[0]]
    simplified = _douglas_peucker(path, epsilon)[:-1]
    if len(simplified) <= 3:
        return list(loop)
    return simplified


def chaikin(loop: list[Point]) -> list[Point]:
    """One iteration of Chaikin corner cutting on a closed loop."""
    n = len(loop)
    if n < 3:
        return list(loop)
    out: list[Point] = []
    for i in range(n):
        x1, y1 = loop[i]
        x2, y2 = loop[(i + 1) % n]
        out.append((0.75 * x1 + 0.25 * x2, 0.75 * y1 + 0.25 * y2))
        out.append((0.25 * x1 + 0.75 * x2, 0.25 * y1 + 0.75 * y2))
    return out


def resample(loop: list[Point], max_points: int) -> list[Point]:
    """Keep every k-th point so at most *max_points* remain."""
    if max_points <= 0 or len(loop) <= max_points:
        return list(loop)
    stride = math.ceil(len(loop) / max_points)
    return loop[::stride]


def bounding_box(points: list[Point]) -> tuple[float, float, float, float]:
    """``(min_x, min_y, max_x, max_y)``; zeros for an empty sequence."""
    if not points:
        return (0.0, 0.0, 0.0, 0.0)
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return (min(xs), min(ys), max(xs), max(ys))


def rects_overlap(a, b) -> bool:
    """True if two ``(x, y, w, h)`` rectangles share interior area."""
    ax, ay, aw, ah = a
    bx, by, bw, bh = b
    return ax < bx + bw and bx < ax + aw and ay < by + bh and by < ay + ah
