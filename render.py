"""PDF renderer: draws a Job onto sheets with Qt's PDF writer.

Layout coordinates are millimetres with a bottom-left origin; the painter
works in device pixels at ``RenderOptions.resolution`` with a top-left
origin, so every rectangle is flipped on the way in.
"""

import enum
import io
import logging
from dataclasses import dataclass

from PIL import Image
from PySide6.QtCore import QMarginsF, QPointF, QRectF, QSizeF, Qt
from PySide6.QtGui import (
    QColor, QImage, QPageLayout, QPageSize, QPainter, QPdfWriter, QPen, QPolygonF,
)

from contour import ContourCache, job_contour_requests
from mask import Corner, most_opaque_corner
from models import MM_PER_INCH, Job, Placement

logger = logging.getLogger(__name__)


CUT_LINE_STYLES = ["Solid", "Dashed", "Dotted"]
CROSSHAIR_LENGTH_MM = 4.0
CROSSHAIR_INSET_MM = 1.0
WATERMARK_INSET = 0.05     # fraction of the item's shorter side


class CutMode(enum.Enum):
    NONE = 'none'
    SIMPLE = 'simple'   # rectangle around the item
    REAL = 'real'       # traced silhouette


@dataclass
class RenderOptions:
    """What to draw besides the stickers themselves."""
    cut_mode: CutMode = CutMode.NONE
    cut_offset_mm: float = 0.0
    cut_line_style: str = "Solid"
    draw_boxes: bool = False
    crosshair: bool = False
    watermark: Image.Image | None = None
    watermark_opacity: float = 0.35
    watermark_scale: float = 0.2    # fraction of the item's shorter side
    resolution: int = 300


def pil_to_qimage(image: Image.Image) -> QImage:
    buf = io.BytesIO()
    image.save(buf, format='PNG')
    qimg = QImage()
    qimg.loadFromData(buf.getvalue())
    return qimg


class PdfRenderer:
    """Render jobs to PDF. *contours* may be shared across jobs."""

    def __init__(self, options: RenderOptions | None = None,
                 contours: ContourCache | None = None):
        self.options = options or RenderOptions()
        self.contours = contours
        self._qimages: dict[tuple[str, bool], QImage] = {}
        self._corners: dict[tuple[str, bool], Corner] = {}
        self._watermark_qimage: QImage | None = None
        self._images: dict[str, Image.Image] = {}
        self._scale = 1.0
        self._sheet_h = 0.0

    # ------------------------------------------------------------------ #
    #  Public API                                                         #
    # ------------------------------------------------------------------ #

    def prepare(self, job: Job, images: dict[str, Image.Image]):
        """Bind *job*'s sheet and images; compute cut contours up front.

        The geometry methods below (``placement_rect``, ``cut_polygon``,
        ``watermark_rect``) answer for the job last prepared.
        """
        opts = self.options
        self._images = images
        self._scale = opts.resolution / MM_PER_INCH
        self._sheet_h = job.sheet.height_mm

        if opts.cut_mode is CutMode.REAL:
            if self.contours is None:
                self.contours = ContourCache(lambda asset_id: images[asset_id])
            self.contours.prefetch(job_contour_requests(job, opts.cut_offset_mm))

    def render(self, job: Job, images: dict[str, Image.Image], output_path: str) -> int:
        """Write *job* to *output_path*; returns the number of pages."""
        opts = self.options
        self.prepare(job, images)

        writer = QPdfWriter(output_path)
        writer.setResolution(opts.resolution)
        w, h = job.sheet.width_mm, job.sheet.height_mm
        landscape = w > h
        size = QSizeF(h, w) if landscape else QSizeF(w, h)
        writer.setPageSize(QPageSize(size, QPageSize.Unit.Millimeter, "",
                                     QPageSize.SizeMatchPolicy.ExactMatch))
        writer.setPageOrientation(QPageLayout.Orientation.Landscape if landscape
                                  else QPageLayout.Orientation.Portrait)
        writer.setPageMargins(QMarginsF(0, 0, 0, 0))

        painter = QPainter()
        if not painter.begin(writer):
            raise OSError(f"Cannot open {output_path} for writing")
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        try:
            for page in range(job.total_pages):
                if page > 0:
                    writer.newPage()
                for placed in job.page_placements(page):
                    self._paint_placement(painter, placed)
        finally:
            painter.end()

        logger.info("Wrote %d page(s) to %s", job.total_pages, output_path)
        return job.total_pages

    # ------------------------------------------------------------------ #
    #  Geometry (device pixels, top-left origin)                          #
    # ------------------------------------------------------------------ #

    def placement_rect(self, placed: Placement, grow_mm: float = 0.0) -> QRectF:
        """Device rect of a placement, optionally grown on every side."""
        k = self._scale
        top_mm = self._sheet_h - (placed.y_mm + placed.height_mm)
        return QRectF((placed.x_mm - grow_mm) * k, (top_mm - grow_mm) * k,
                      (placed.width_mm + 2 * grow_mm) * k,
                      (placed.height_mm + 2 * grow_mm) * k)

    # ------------------------------------------------------------------ #
    #  Painting                                                           #
    # ------------------------------------------------------------------ #

    def _qimage(self, asset_id: str, rotated: bool) -> QImage:
        key = (asset_id, rotated)
        if key not in self._qimages:
            img = self._images[asset_id].convert('RGBA')
            if rotated:
                img = img.transpose(Image.Transpose.ROTATE_90)
            self._qimages[key] = pil_to_qimage(img)
        return self._qimages[key]

    def _paint_placement(self, painter: QPainter, placed: Placement):
        opts = self.options
        rect = self.placement_rect(placed)
        painter.drawImage(rect, self._qimage(placed.asset_id, placed.rotated))

        if opts.watermark is not None:
            self._paint_watermark(painter, placed)
        if opts.draw_boxes:
            painter.setPen(QPen(QColor(180, 180, 180), 1))
            painter.setBrush(Qt.BrushStyle.NoBrush)
            painter.drawRect(rect)
        if opts.crosshair:
            self._paint_crosshair(painter, rect)
        if opts.cut_mode is not CutMode.NONE:
            self._paint_cut(painter, placed)

    def _cut_pen(self) -> QPen:
        pen_style = {
            "Dashed": Qt.PenStyle.DashLine,
            "Dotted": Qt.PenStyle.DotLine,
            "Solid": Qt.PenStyle.SolidLine,
        }[self.options.cut_line_style]
        return QPen(QColor(255, 0, 255), 1, pen_style)

    def cut_polygon(self, placed: Placement) -> QPolygonF:
        """Device polygon of the cut line around *placed*.

        ``real`` mode follows the traced contour; ``simple`` mode, and any
        item whose contour came out empty, gets the rectangle grown by the
        cut offset.
        """
        opts = self.options
        contour = None
        if opts.cut_mode is CutMode.REAL:
            contour = self.contours.get(placed.asset_id, placed.width_mm, placed.height_mm,
                                        opts.cut_offset_mm, placed.rotated)
        if not contour:
            return QPolygonF(self.placement_rect(placed, opts.cut_offset_mm))

        k = self._scale
        left = placed.x_mm
        top = self._sheet_h - (placed.y_mm + placed.height_mm)
        return QPolygonF([QPointF((left + x) * k, (top + y) * k) for x, y in contour.to_mm()])

    def _paint_cut(self, painter: QPainter, placed: Placement):
        painter.setPen(self._cut_pen())
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawPolygon(self.cut_polygon(placed))

    def _paint_crosshair(self, painter: QPainter, rect: QRectF):
        k = self._scale
        length = CROSSHAIR_LENGTH_MM * k
        inset = CROSSHAIR_INSET_MM * k
        painter.setPen(QPen(QColor(0, 0, 0), 1))
        for cx, sx in ((rect.left(), -1), (rect.right(), 1)):
            for cy, sy in ((rect.top(), -1), (rect.bottom(), 1)):
                painter.drawLine(QPointF(cx + sx * inset, cy), QPointF(cx + sx * length, cy))
                painter.drawLine(QPointF(cx, cy + sy * inset), QPointF(cx, cy + sy * length))

    def watermark_corner(self, placed: Placement) -> Corner:
        key = (placed.asset_id, placed.rotated)
        if key not in self._corners:
            self._corners[key] = most_opaque_corner(self._images[placed.asset_id], placed.rotated)
        return self._corners[key]

    def watermark_rect(self, placed: Placement) -> QRectF:
        """Device rect of the watermark, inset into the most opaque corner."""
        opts = self.options
        rect = self.placement_rect(placed)
        corner = self.watermark_corner(placed)

        mark = self._qimage_watermark()
        short = min(rect.width(), rect.height())
        mw = short * opts.watermark_scale
        mh = mw * mark.height() / mark.width() if mark.width() else mw
        inset = short * WATERMARK_INSET

        x = rect.right() - inset - mw if corner in (Corner.TOP_RIGHT, Corner.BOTTOM_RIGHT) \
            else rect.left() + inset
        y = rect.top() + inset if corner in (Corner.TOP_RIGHT, Corner.TOP_LEFT) \
            else rect.bottom() - inset - mh
        return QRectF(x, y, mw, mh)

    def _paint_watermark(self, painter: QPainter, placed: Placement):
        painter.save()
        painter.setOpacity(self.options.watermark_opacity)
        painter.drawImage(self.watermark_rect(placed), self._qimage_watermark())
        painter.restore()

    def _qimage_watermark(self) -> QImage:
        if self._watermark_qimage is None:
            self._watermark_qimage = pil_to_qimage(self.options.watermark.convert('RGBA'))
        return self._watermark_qimage
