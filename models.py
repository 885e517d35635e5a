"""Data model classes and constants for the sticker imposer.

All layout math happens in millimetres with a bottom-left origin, matching
the PDF coordinate system the sheets end up in.
"""

from dataclasses import dataclass, field

from errors import InvalidSpecError


# === Constants ===
MM_PER_INCH = 25.4
MM_PER_CM = 10.0

DEFAULT_DPI = 300
DEFAULT_SHEET_WIDTH_CM = 100.0
DEFAULT_SHEET_HEIGHT_CM = 50.0
DEFAULT_GAP_MM = 3.0
DEFAULT_MARGIN_MM = 0.0

LOW_DPI_WARNING = 250      # effective DPI below this is reported
ASPECT_TOLERANCE = 0.01    # 1% physical vs image ratio mismatch

SPEC_VERSION = 1


def cm_to_mm(cm: float) -> float:
    return cm * MM_PER_CM


def px_to_mm(px: float, dpi: float) -> float:
    if not dpi or dpi <= 0:
        raise InvalidSpecError(f"Invalid DPI: {dpi}")
    return px / dpi * MM_PER_INCH


# === Sheet ===

@dataclass(frozen=True)
class SheetSpec:
    """Physical sheet in millimetres."""
    width_mm: float
    height_mm: float
    gap_mm: float
    margin_mm: float

    @property
    def usable_width(self) -> float:
        return self.width_mm - 2 * self.margin_mm

    @property
    def usable_height(self) -> float:
        return self.height_mm - 2 * self.margin_mm


def create_sheet_spec(width_cm: float, height_cm: float,
                      gap_mm: float, margin_mm: float) -> SheetSpec:
    """Validate sheet settings and convert them to a :class:`SheetSpec`."""
    width_mm = cm_to_mm(width_cm)
    height_mm = cm_to_mm(height_cm)
    if width_mm <= 0 or height_mm <= 0:
        raise InvalidSpecError("Sheet dimensions must be > 0.")
    if gap_mm < 0:
        raise InvalidSpecError("gap_mm cannot be negative.")
    if margin_mm < 0:
        raise InvalidSpecError("margin_mm cannot be negative.")
    sheet = SheetSpec(width_mm, height_mm, gap_mm, margin_mm)
    if sheet.usable_width <= 0 or sheet.usable_height <= 0:
        raise InvalidSpecError("Margin leaves no usable area on the sheet.")
    return sheet


# === Assets & sizing ===

@dataclass(frozen=True)
class AssetInfo:
    """One raster in the catalog. ``path`` is only used by collaborators."""
    asset_id: str
    width_px: int
    height_px: int
    path: str | None = None


@dataclass(frozen=True)
class PhysicalSizing:
    """Every sticker printed at a fixed width x height."""
    w_cm: float
    h_cm: float


@dataclass(frozen=True)
class FromImageDpi:
    """Size derived from pixel dimensions at the job DPI."""


@dataclass(frozen=True)
class PerAssetSizing:
    """Job-level marker: each quantity entry carries its own sizing."""


@dataclass(frozen=True)
class AxisSizing:
    """Per-asset size along one axis; the other follows the aspect ratio."""
    axis: str      # "w" or "h"
    size_cm: float


@dataclass(frozen=True)
class ResolvedSize:
    width_mm: float
    height_mm: float
    effective_dpi: float


# === Execution spec ===

@dataclass
class QuantityItem:
    asset_id: str
    qty: int
    sizing: AxisSizing | FromImageDpi | None = None


@dataclass
class SheetSettings:
    """Sheet as entered by the user (cm for the sheet, mm for gap/margin)."""
    width_cm: float = DEFAULT_SHEET_WIDTH_CM
    height_cm: float = DEFAULT_SHEET_HEIGHT_CM
    gap_mm: float = DEFAULT_GAP_MM
    margin_mm: float = DEFAULT_MARGIN_MM


@dataclass
class ExecutionSpec:
    """Versioned description of one packing job."""
    quantities: list[QuantityItem] = field(default_factory=list)
    sheet: SheetSettings = field(default_factory=SheetSettings)
    sticker_sizing: PhysicalSizing | FromImageDpi | PerAssetSizing = field(default_factory=FromImageDpi)
    engine: str = "grid-v1"
    dpi: float = DEFAULT_DPI
    folder_path: str = ""
    timestamp: str = ""
    spec_version: int = SPEC_VERSION


def default_execution_spec(quantities=None, **overrides) -> ExecutionSpec:
    """An :class:`ExecutionSpec` with default sheet, DPI and grid engine."""
    return ExecutionSpec(quantities=list(quantities or []), **overrides)


# === Layout results ===

@dataclass(frozen=True)
class GridLayout:
    """Uniform tiling of one item size on a sheet."""
    cols: int
    rows: int
    capacity_per_page: int
    item_width_mm: float
    item_height_mm: float
    step_x_mm: float
    step_y_mm: float


@dataclass(frozen=True)
class Placement:
    """One item on a sheet; (x_mm, y_mm) is the lower-left corner."""
    page_index: int
    x_mm: float
    y_mm: float
    width_mm: float
    height_mm: float
    asset_id: str
    rotated: bool = False


@dataclass
class PackResult:
    placements: list[Placement] = field(default_factory=list)
    total_placed: int = 0
    total_pages: int = 1


@dataclass
class Job:
    """Everything a renderer needs to produce the sheets."""
    sheet: SheetSpec
    engine: str
    placements: list[Placement] = field(default_factory=list)
    total_placed: int = 0
    total_pages: int = 1
    sizes: dict[str, ResolvedSize] = field(default_factory=dict)
    layout: GridLayout | None = None
    quantities: list[QuantityItem] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def page_placements(self, page_index: int) -> list[Placement]:
        return [p for p in self.placements if p.page_index == page_index]
