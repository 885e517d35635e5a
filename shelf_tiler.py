"""
Shelf tiler for mixed sticker sizes.

Priorities (in order):
  a) Every sticker keeps its physical size (rotation by 90deg allowed)
  b) Fill earlier pages before opening new ones
  c) Reuse open rows before opening new rows
  d) Among row fits, leave the least horizontal and vertical slack

Algorithm: best-fit-row shelf packing across an unbounded list of pages.

Phase 1: Expand quantities into one item per unit, sort by max side then area
Phase 2: For each item, score every (page, row, orientation) fit plus a new
         row on every page; lowest score wins
Phase 3: Open a new page when no existing page admits the item
"""
import logging
from dataclasses import dataclass, field

from errors import DoesNotFitError
from models import PackResult, Placement, SheetSpec

logger = logging.getLogger(__name__)


# Scoring weights. Only the ordering matters: page index dominates, then an
# existing row beats any new row, then slack.
PAGE_WEIGHT = 1_000_000
NEW_ROW_PENALTY = 100_000
ROW_SLACK_WEIGHT = 0.25
PAGE_HEIGHT_WEIGHT = 0.01


@dataclass
class _Row:
    top_y: float
    height: float
    used_width: float = 0.0


@dataclass
class _Page:
    rows: list[_Row] = field(default_factory=list)
    used_height: float = 0.0


@dataclass
class _Item:
    asset_id: str
    w: float
    h: float


@dataclass
class _Candidate:
    page_index: int
    row_index: int
    new_row: bool
    w: float
    h: float
    rotated: bool
    score: float


def _expand(entries) -> list[_Item]:
    """``(asset_id, qty, w_mm, h_mm)`` entries to one item per unit, largest
    first (max side desc, then area desc; stable otherwise)."""
    items = []
    for asset_id, qty, w, h in entries:
        items.extend(_Item(asset_id, w, h) for _ in range(max(0, int(qty))))
    items.sort(key=lambda it: (-max(it.w, it.h), -(it.w * it.h)))
    return items


def _orientations(item: _Item, usable_w: float, usable_h: float):
    """Orientations that fit the usable area on their own."""
    out = []
    for w, h, rotated in ((item.w, item.h, False), (item.h, item.w, True)):
        if w <= usable_w and h <= usable_h:
            out.append((w, h, rotated))
    return out


def _best_on_page(page: _Page, page_index: int, orientations,
                  sheet: SheetSpec) -> _Candidate | None:
    usable_w = sheet.usable_width
    usable_h = sheet.usable_height
    best = None

    for w, h, rotated in orientations:
        for r, row in enumerate(page.rows):
            if h > row.height:
                continue
            remaining = usable_w - row.used_width - (sheet.gap_mm if row.used_width > 0 else 0)
            if w > remaining:
                continue
            score = (page_index * PAGE_WEIGHT + (remaining - w)
                     + (row.height - h) * ROW_SLACK_WEIGHT)
            if best is None or score < best.score:
                best = _Candidate(page_index, r, False, w, h, rotated, score)

        needed = (sheet.gap_mm if page.rows else 0) + h
        if page.used_height + needed <= usable_h:
            score = (page_index * PAGE_WEIGHT + NEW_ROW_PENALTY + (usable_w - w)
                     + (usable_h - (page.used_height + needed)) * PAGE_HEIGHT_WEIGHT)
            if best is None or score < best.score:
                best = _Candidate(page_index, len(page.rows), True, w, h, rotated, score)

    return best


def _commit(pages: list[_Page], c: _Candidate, asset_id: str, sheet: SheetSpec) -> Placement:
    page = pages[c.page_index]
    if c.new_row:
        gap_before = sheet.gap_mm if page.rows else 0
        top_y = sheet.height_mm - sheet.margin_mm - page.used_height - gap_before
        page.rows.append(_Row(top_y=top_y, height=c.h))
        page.used_height += gap_before + c.h

    row = page.rows[c.row_index]
    x_gap = sheet.gap_mm if row.used_width > 0 else 0
    placement = Placement(
        page_index=c.page_index,
        x_mm=sheet.margin_mm + row.used_width + x_gap,
        y_mm=row.top_y - c.h,
        width_mm=c.w,
        height_mm=c.h,
        asset_id=asset_id,
        rotated=c.rotated,
    )
    row.used_width += x_gap + c.w
    return placement


def pack_shelves(sheet: SheetSpec, entries) -> PackResult:
    """Pack ``(asset_id, qty, width_mm, height_mm)`` entries onto as few
    pages as the heuristic finds.

    Raises :class:`DoesNotFitError` if any item exceeds the usable area in
    both orientations; nothing is placed in that case.
    """
    usable_w = sheet.usable_width
    usable_h = sheet.usable_height
    pages: list[_Page] = []
    placements: list[Placement] = []

    for item in _expand(entries):
        orientations = _orientations(item, usable_w, usable_h)
        if not orientations:
            raise DoesNotFitError(
                f"{item.asset_id} ({item.w:.1f}x{item.h:.1f} mm) does not fit the usable "
                f"area ({usable_w:.1f}x{usable_h:.1f} mm) in either orientation.")

        best = None
        for p, page in enumerate(pages):
            candidate = _best_on_page(page, p, orientations, sheet)
            if candidate is not None and (best is None or candidate.score < best.score):
                best = candidate

        if best is None:
            pages.append(_Page())
            best = _best_on_page(pages[-1], len(pages) - 1, orientations, sheet)
            if best is None:
                raise DoesNotFitError()

        placements.append(_commit(pages, best, item.asset_id, sheet))

    logger.debug("Shelf packed %d items on %d page(s)", len(placements), len(pages))
    return PackResult(placements=placements, total_placed=len(placements),
                      total_pages=max(1, len(pages)))
