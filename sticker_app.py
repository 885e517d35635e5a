#!/usr/bin/env python3
"""Sticker Imposer command line: pack a folder of PNGs onto print sheets.

Usage:
    python sticker_app.py FOLDER OUTPUT.pdf [--engine shelf-mixed-v1]
        [--qty a.png=10 ...] [--cut real --cut-offset-mm 2] [--debug]
"""
import logging
import os
import sys

from catalog import list_png_assets, load_image
from engines import DEFAULT_ENGINE, Engine, impose
from errors import ImpositionError
from models import (
    DEFAULT_DPI, DEFAULT_GAP_MM, DEFAULT_MARGIN_MM, DEFAULT_SHEET_HEIGHT_CM,
    DEFAULT_SHEET_WIDTH_CM, AxisSizing, ExecutionSpec, FromImageDpi, PerAssetSizing,
    PhysicalSizing, QuantityItem, SheetSettings,
)

logger = logging.getLogger("sticker_app")


def _parse_quantities(pairs: list[str]) -> dict[str, int]:
    out = {}
    for pair in pairs:
        asset_id, sep, qty = pair.rpartition('=')
        if not sep or not asset_id:
            raise ValueError(f"Expected ID=N, got {pair!r}")
        out[asset_id] = max(0, int(qty))
    return out


def build_spec(args, assets) -> ExecutionSpec:
    """ExecutionSpec from parsed command line arguments and the catalog."""
    overrides = _parse_quantities(args.qty)
    engine = Engine(args.engine)

    if engine is Engine.SHELF:
        job_sizing = PerAssetSizing()
        item_sizing = AxisSizing(args.axis, args.axis_cm) if args.axis_cm else FromImageDpi()
    else:
        job_sizing = PhysicalSizing(*args.size_cm) if args.size_cm else FromImageDpi()
        item_sizing = None

    quantities = [QuantityItem(a.asset_id, overrides.get(a.asset_id, args.default_qty), item_sizing)
                  for a in assets]
    # Entries for assets not in the folder are kept so impose() reports them
    known = {a.asset_id for a in assets}
    quantities += [QuantityItem(asset_id, qty, item_sizing)
                   for asset_id, qty in overrides.items() if asset_id not in known]

    return ExecutionSpec(
        quantities=quantities,
        sheet=SheetSettings(args.sheet_w_cm, args.sheet_h_cm, args.gap_mm, args.margin_mm),
        sticker_sizing=job_sizing,
        engine=engine.value,
        dpi=args.dpi,
        folder_path=os.path.abspath(args.folder),
    )


def make_parser():
    import argparse
    from render import CUT_LINE_STYLES, CutMode

    parser = argparse.ArgumentParser(description="Sticker Imposer")
    parser.add_argument("folder", help="Folder containing PNG stickers")
    parser.add_argument("output", help="PDF file to write")
    parser.add_argument("--engine", default=DEFAULT_ENGINE.value, choices=[e.value for e in Engine])
    parser.add_argument("--sheet-w-cm", type=float, default=DEFAULT_SHEET_WIDTH_CM)
    parser.add_argument("--sheet-h-cm", type=float, default=DEFAULT_SHEET_HEIGHT_CM)
    parser.add_argument("--gap-mm", type=float, default=DEFAULT_GAP_MM)
    parser.add_argument("--margin-mm", type=float, default=DEFAULT_MARGIN_MM)
    parser.add_argument("--dpi", type=float, default=DEFAULT_DPI)
    parser.add_argument("--qty", action="append", default=[], metavar="ID=N",
                        help="Quantity for one sticker (repeatable)")
    parser.add_argument("--default-qty", type=int, default=1,
                        help="Quantity for stickers without --qty")
    parser.add_argument("--size-cm", type=float, nargs=2, metavar=("W", "H"),
                        help="Grid engine: fixed physical sticker size")
    parser.add_argument("--axis", choices=["w", "h"], default="w",
                        help="Shelf engine: axis that --axis-cm applies to")
    parser.add_argument("--axis-cm", type=float,
                        help="Shelf engine: sticker size along --axis")
    parser.add_argument("--cut", default=CutMode.NONE.value, choices=[m.value for m in CutMode])
    parser.add_argument("--cut-offset-mm", type=float, default=0.0)
    parser.add_argument("--cut-style", default="Solid", choices=CUT_LINE_STYLES)
    parser.add_argument("--watermark", help="PNG drawn in the most opaque corner")
    parser.add_argument("--watermark-opacity", type=float, default=0.35)
    parser.add_argument("--boxes", action="store_true", help="Draw a box around each sticker")
    parser.add_argument("--crosshair", action="store_true", help="Draw corner crop marks")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def main(argv=None) -> int:
    args = make_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO,
                        format="%(levelname)s %(name)s: %(message)s")

    try:
        assets = list_png_assets(args.folder)
        spec = build_spec(args, assets)
        job = impose(spec, assets)
    except (ImpositionError, ValueError) as e:
        logger.error("%s", e)
        return 1

    for warning in job.warnings:
        print(f"warning: {warning}")
    if job.layout is not None:
        print(f"Per sheet: {job.layout.capacity_per_page}")
    print(f"Stickers placed: {job.total_placed}")
    print(f"Sheets needed: {job.total_pages}")

    os.environ.setdefault('QT_QPA_PLATFORM', 'offscreen')  # must be set before QGuiApplication
    from PIL import Image
    from PySide6.QtGui import QGuiApplication
    from render import CutMode, PdfRenderer, RenderOptions

    app = QGuiApplication.instance() or QGuiApplication(sys.argv[:1])  # noqa: F841

    watermark = None
    if args.watermark:
        with Image.open(args.watermark) as img:
            watermark = img.convert('RGBA')

    used = {p.asset_id for p in job.placements}
    images = {a.asset_id: load_image(a) for a in assets if a.asset_id in used}
    renderer = PdfRenderer(RenderOptions(
        cut_mode=CutMode(args.cut),
        cut_offset_mm=args.cut_offset_mm,
        cut_line_style=args.cut_style,
        draw_boxes=args.boxes,
        crosshair=args.crosshair,
        watermark=watermark,
        watermark_opacity=args.watermark_opacity,
    ))
    renderer.render(job, images, args.output)
    print(f"PDF written: {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
