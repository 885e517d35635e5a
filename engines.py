"""Engine selection and job planning.

``impose()`` is the single entry point: it validates an ExecutionSpec
against the catalog, dispatches to the grid or shelf engine and returns the
Job a renderer consumes.
"""

import enum
import logging

from errors import InvalidSpecError, MissingAssetError, MissingSizingError, UnregisteredEngineError
from grid_tiler import assert_uniform_size, paginate, plan_grid
from models import AssetInfo, ExecutionSpec, Job, PerAssetSizing, SheetSpec, create_sheet_spec
from shelf_tiler import pack_shelves
from sizing import resolve_asset_sizing, resolve_sizing, sizing_warnings

logger = logging.getLogger(__name__)


class Engine(str, enum.Enum):
    GRID = 'grid-v1'
    SHELF = 'shelf-mixed-v1'


DEFAULT_ENGINE = Engine.GRID


def select_engine(identifier) -> Engine:
    try:
        return Engine(identifier)
    except ValueError:
        raise UnregisteredEngineError(f"Engine not registered: {identifier}") from None


def _plan_grid_job(spec: ExecutionSpec, sheet: SheetSpec, by_id: dict[str, AssetInfo],
                   assets: list[AssetInfo]) -> Job:
    active = [by_id[q.asset_id] for q in spec.quantities if q.qty > 0]
    assert_uniform_size(active)

    ref = active[0] if active else assets[0]
    resolved = resolve_sizing(spec.sticker_sizing, ref.width_px, ref.height_px, spec.dpi)
    warnings = sizing_warnings(ref.asset_id, spec.sticker_sizing,
                               ref.width_px, ref.height_px, resolved)

    layout = plan_grid(sheet, resolved.width_mm, resolved.height_mm)
    result = paginate(sheet, layout, [(q.asset_id, q.qty) for q in spec.quantities])

    return Job(
        sheet=sheet,
        engine=Engine.GRID.value,
        placements=result.placements,
        total_placed=result.total_placed,
        total_pages=result.total_pages,
        sizes={a.asset_id: resolved for a in active},
        layout=layout,
        quantities=list(spec.quantities),
        warnings=warnings,
    )


def _plan_shelf_job(spec: ExecutionSpec, sheet: SheetSpec, by_id: dict[str, AssetInfo]) -> Job:
    if not isinstance(spec.sticker_sizing, PerAssetSizing):
        raise InvalidSpecError("The shelf engine requires per-asset sticker sizing.")

    sizes = {}
    warnings = []
    entries = []
    for q in spec.quantities:
        if q.qty <= 0:
            continue
        info = by_id[q.asset_id]
        if q.sizing is None:
            raise MissingSizingError(f"Missing sizing for asset {q.asset_id}.")
        resolved = resolve_asset_sizing(q.sizing, info.width_px, info.height_px, spec.dpi)
        if q.asset_id not in sizes:
            warnings.extend(sizing_warnings(q.asset_id, q.sizing,
                                            info.width_px, info.height_px, resolved))
        sizes[q.asset_id] = resolved
        entries.append((q.asset_id, q.qty, resolved.width_mm, resolved.height_mm))

    result = pack_shelves(sheet, entries)
    return Job(
        sheet=sheet,
        engine=Engine.SHELF.value,
        placements=result.placements,
        total_placed=result.total_placed,
        total_pages=result.total_pages,
        sizes=sizes,
        quantities=list(spec.quantities),
        warnings=warnings,
    )


def impose(spec: ExecutionSpec, assets: list[AssetInfo]) -> Job:
    """Plan *spec* against the catalog *assets*. Any failure aborts the job."""
    sheet = create_sheet_spec(spec.sheet.width_cm, spec.sheet.height_cm,
                              spec.sheet.gap_mm, spec.sheet.margin_mm)

    assets = sorted(assets, key=lambda a: a.asset_id)
    if not assets:
        raise MissingAssetError("No PNG assets found.")

    by_id = {a.asset_id: a for a in assets}
    missing = [q.asset_id for q in spec.quantities if q.qty > 0 and q.asset_id not in by_id]
    if missing:
        raise MissingAssetError(f"Assets missing from catalog: {', '.join(missing)}")

    engine = select_engine(spec.engine)
    if engine is Engine.GRID:
        job = _plan_grid_job(spec, sheet, by_id, assets)
    else:
        job = _plan_shelf_job(spec, sheet, by_id)

    logger.info("%s: %d sticker(s) on %d page(s)", job.engine, job.total_placed, job.total_pages)
    return job
