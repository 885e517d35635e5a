"""Grid tiler: uniform tiling for same-size stickers.

Every sticker in a grid job has the same physical size, so the sheet is cut
into ``cols x rows`` cells once and pages are filled row-major from the top
left. Placement coordinates use a bottom-left origin.
"""

import logging
import math

from errors import DoesNotFitError, InvalidSpecError, MixedSizesError
from models import AssetInfo, GridLayout, PackResult, Placement, SheetSpec

logger = logging.getLogger(__name__)


def plan_grid(sheet: SheetSpec, item_width_mm: float, item_height_mm: float) -> GridLayout:
    """Compute the uniform layout of one item size on *sheet*."""
    usable_w = sheet.usable_width
    usable_h = sheet.usable_height
    if usable_w <= 0 or usable_h <= 0:
        raise InvalidSpecError("Margin leaves no usable area on the sheet.")
    if item_width_mm <= 0 or item_height_mm <= 0:
        raise InvalidSpecError("Sticker size must be > 0.")

    step_x = item_width_mm + sheet.gap_mm
    step_y = item_height_mm + sheet.gap_mm

    # +gap: the last column/row needs no trailing gap
    cols = math.floor((usable_w + sheet.gap_mm) / step_x)
    rows = math.floor((usable_h + sheet.gap_mm) / step_y)
    if cols <= 0 or rows <= 0:
        raise DoesNotFitError()

    layout = GridLayout(
        cols=cols,
        rows=rows,
        capacity_per_page=cols * rows,
        item_width_mm=item_width_mm,
        item_height_mm=item_height_mm,
        step_x_mm=step_x,
        step_y_mm=step_y,
    )
    logger.debug("Grid %dx%d (%d per page) for %.2fx%.2f mm",
                 cols, rows, layout.capacity_per_page, item_width_mm, item_height_mm)
    return layout


def assert_uniform_size(assets: list[AssetInfo]) -> None:
    """Raise :class:`MixedSizesError` naming the first pair that differs."""
    if not assets:
        return
    ref = assets[0]
    for a in assets[1:]:
        if (a.width_px, a.height_px) != (ref.width_px, ref.height_px):
            raise MixedSizesError(
                f"Mixed sticker sizes: {ref.asset_id}={ref.width_px}x{ref.height_px}px "
                f"vs {a.asset_id}={a.width_px}x{a.height_px}px")


def paginate(sheet: SheetSpec, layout: GridLayout, quantities) -> PackResult:
    """One placement per unit of ``(asset_id, qty)``, in order, filling each
    page row-major before starting the next."""
    placements: list[Placement] = []
    capacity = layout.capacity_per_page
    placed = 0

    for asset_id, qty in quantities:
        for _ in range(max(0, int(qty))):
            cell = placed % capacity
            row, col = divmod(cell, layout.cols)
            x = sheet.margin_mm + col * layout.step_x_mm
            # Rows counted from the top edge; y is the bottom edge of the cell
            y_top = sheet.height_mm - sheet.margin_mm - row * layout.step_y_mm
            placements.append(Placement(
                page_index=placed // capacity,
                x_mm=x,
                y_mm=y_top - layout.item_height_mm,
                width_mm=layout.item_width_mm,
                height_mm=layout.item_height_mm,
                asset_id=asset_id,
            ))
            placed += 1

    total_pages = max(1, math.ceil(placed / capacity))
    return PackResult(placements=placements, total_placed=placed, total_pages=total_pages)
