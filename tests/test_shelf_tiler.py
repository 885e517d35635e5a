"""Unit tests for the shelf tiler (mixed sizes, rotation, pages)."""
import pytest

from errors import DoesNotFitError
from geometry import rects_overlap
from models import SheetSpec
from shelf_tiler import _expand, pack_shelves


def _assert_valid(sheet, result):
    """All placements inside the usable area, no overlaps on a page."""
    for p in result.placements:
        assert p.x_mm >= sheet.margin_mm
        assert p.y_mm >= sheet.margin_mm
        assert p.x_mm + p.width_mm <= sheet.width_mm - sheet.margin_mm
        assert p.y_mm + p.height_mm <= sheet.height_mm - sheet.margin_mm
    placements = result.placements
    for i, a in enumerate(placements):
        for b in placements[i + 1:]:
            if a.page_index != b.page_index:
                continue
            assert not rects_overlap((a.x_mm, a.y_mm, a.width_mm, a.height_mm),
                                     (b.x_mm, b.y_mm, b.width_mm, b.height_mm)), (a, b)


class TestOrdering:
    """Items are packed largest first."""

    def test_sorted_by_max_side_then_area(self):
        items = _expand([('small', 1, 10, 10), ('tall', 1, 20, 80),
                         ('wide', 1, 80, 40), ('mid', 1, 50, 50)])
        assert [it.asset_id for it in items] == ['wide', 'tall', 'mid', 'small']

    def test_quantities_expand(self):
        items = _expand([('a', 3, 10, 10), ('b', 0, 10, 10), ('c', -2, 10, 10)])
        assert [it.asset_id for it in items] == ['a', 'a', 'a']


class TestBounds:
    """Every placement stays inside the sheet and nothing overlaps."""

    def test_mixed_sizes(self):
        sheet = SheetSpec(300.0, 200.0, 3.0, 5.0)
        entries = [('a', 7, 60, 40), ('b', 5, 30, 90), ('c', 12, 25, 25), ('d', 3, 120, 50)]
        result = pack_shelves(sheet, entries)
        assert result.total_placed == 27
        assert len(result.placements) == 27
        _assert_valid(sheet, result)

    def test_many_pages(self, sheet):
        entries = [('a', 40, 200, 150), ('b', 60, 90, 120), ('c', 100, 40, 30)]
        result = pack_shelves(sheet, entries)
        assert result.total_placed == 200
        assert result.total_pages > 1
        assert {p.page_index for p in result.placements} == set(range(result.total_pages))
        _assert_valid(sheet, result)

    def test_placed_left_to_right_from_top(self, sheet):
        result = pack_shelves(sheet, [('a', 2, 100, 100)])
        first, second = result.placements
        assert (first.x_mm, first.y_mm) == (0.0, 400.0)
        assert (second.x_mm, second.y_mm) == (103.0, 400.0)

    def test_empty_input(self, sheet):
        result = pack_shelves(sheet, [])
        assert result.placements == []
        assert result.total_placed == 0
        assert result.total_pages == 1


class TestRotation:
    """90-degree rotation is used when only the rotated item fits."""

    def test_wide_item_rotated_when_too_wide(self):
        sheet = SheetSpec(100.0, 300.0, 3.0, 0.0)
        result = pack_shelves(sheet, [('a', 1, 150, 60)])
        p = result.placements[0]
        assert p.rotated is True
        assert (p.width_mm, p.height_mm) == (60, 150)

    def test_unrotated_preferred_on_tie(self, sheet):
        result = pack_shelves(sheet, [('a', 1, 50, 50)])
        assert result.placements[0].rotated is False

    def test_rotation_fills_row(self):
        """A 100x100 row leader leaves a 50 mm slot a 100x40 item only fits rotated."""
        sheet = SheetSpec(150.0, 100.0, 0.0, 0.0)
        result = pack_shelves(sheet, [('a', 1, 100, 100), ('b', 1, 100, 40)])
        assert result.total_pages == 1
        b = next(p for p in result.placements if p.asset_id == 'b')
        assert b.rotated is True
        assert b.x_mm == 100.0
        _assert_valid(sheet, result)

    def test_does_not_fit_either_way(self, sheet):
        with pytest.raises(DoesNotFitError):
            pack_shelves(sheet, [('ok', 5, 10, 10), ('huge', 1, 1200, 600)])


class TestPages:
    """Existing rows and pages are reused before opening new ones."""

    def test_open_row_reused(self, sheet):
        result = pack_shelves(sheet, [('a', 1, 200, 200), ('b', 1, 100, 100)])
        a, b = result.placements
        assert result.total_pages == 1
        assert b.page_index == 0
        assert b.y_mm + b.height_mm == a.y_mm + a.height_mm  # same row top
        assert b.x_mm == 203.0

    def test_no_new_page_while_row_fits(self):
        sheet = SheetSpec(100.0, 50.0, 0.0, 0.0)
        # Two 50x50 fill the only row; a third needs a second page
        result = pack_shelves(sheet, [('a', 3, 50, 50)])
        assert [p.page_index for p in result.placements] == [0, 0, 1]
        assert result.total_pages == 2

    def test_small_items_backfill_first_page(self):
        sheet = SheetSpec(100.0, 100.0, 0.0, 0.0)
        result = pack_shelves(sheet, [('big', 2, 100, 60), ('small', 2, 40, 40)])
        pages = {p.asset_id: set() for p in result.placements}
        for p in result.placements:
            pages[p.asset_id].add(p.page_index)
        # Each big item takes a page; smalls go into the leftover 100x40 on page 0
        assert result.total_pages == 2
        assert pages['small'] == {0}
        _assert_valid(sheet, result)

    def test_new_row_below_previous(self):
        sheet = SheetSpec(100.0, 100.0, 5.0, 0.0)
        result = pack_shelves(sheet, [('a', 2, 80, 40)])
        first, second = result.placements
        assert first.page_index == second.page_index == 0
        assert first.y_mm == 60.0
        assert second.y_mm == 100.0 - 40.0 - 5.0 - 40.0
