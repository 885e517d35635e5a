"""End-to-end tests for the command line entry point."""
import os

from catalog import list_png_assets
from engines import Engine
from models import AxisSizing, FromImageDpi, PerAssetSizing, PhysicalSizing
from sticker_app import build_spec, main, make_parser


def _args(*argv):
    return make_parser().parse_args(list(argv))


class TestBuildSpec:

    def test_grid_defaults(self, png_folder):
        assets = list_png_assets(str(png_folder))
        spec = build_spec(_args(str(png_folder), 'out.pdf'), assets)
        assert spec.engine == Engine.GRID.value
        assert spec.sticker_sizing == FromImageDpi()
        assert [(q.asset_id, q.qty) for q in spec.quantities] == [
            ('C.PNG', 1), ('a.png', 1), ('b.png', 1)]
        assert spec.folder_path == os.path.abspath(str(png_folder))

    def test_quantities_and_physical_size(self, png_folder):
        assets = list_png_assets(str(png_folder))
        args = _args(str(png_folder), 'out.pdf', '--qty', 'a.png=5', '--qty', 'b.png=0',
                     '--default-qty', '2', '--size-cm', '4', '3')
        spec = build_spec(args, assets)
        assert spec.sticker_sizing == PhysicalSizing(4, 3)
        assert {q.asset_id: q.qty for q in spec.quantities} == {'C.PNG': 2, 'a.png': 5, 'b.png': 0}

    def test_shelf_axis_sizing(self, png_folder):
        assets = list_png_assets(str(png_folder))
        args = _args(str(png_folder), 'out.pdf', '--engine', 'shelf-mixed-v1',
                     '--axis', 'h', '--axis-cm', '3')
        spec = build_spec(args, assets)
        assert spec.sticker_sizing == PerAssetSizing()
        assert all(q.sizing == AxisSizing('h', 3) for q in spec.quantities)

    def test_unknown_asset_kept(self, png_folder):
        assets = list_png_assets(str(png_folder))
        spec = build_spec(_args(str(png_folder), 'out.pdf', '--qty', 'zzz.png=1'), assets)
        assert spec.quantities[-1].asset_id == 'zzz.png'


class TestMain:

    def test_shelf_job_writes_pdf(self, qapp, png_folder, tmp_path, capsys):
        out = tmp_path / 'sheet.pdf'
        code = main([str(png_folder), str(out), '--engine', 'shelf-mixed-v1',
                     '--axis-cm', '3', '--default-qty', '2', '--cut', 'real',
                     '--cut-offset-mm', '1'])
        assert code == 0
        assert out.exists() and out.stat().st_size > 0
        captured = capsys.readouterr().out
        assert 'Stickers placed: 6' in captured
        assert 'Sheets needed: 1' in captured

    def test_grid_rejects_mixed_sizes(self, qapp, png_folder, tmp_path, caplog):
        out = tmp_path / 'sheet.pdf'
        assert main([str(png_folder), str(out)]) == 1
        assert not out.exists()
        assert 'Mixed sticker sizes' in caplog.text

    def test_grid_single_asset(self, qapp, png_folder, tmp_path, capsys):
        out = tmp_path / 'sheet.pdf'
        code = main([str(png_folder), str(out), '--default-qty', '0', '--qty', 'a.png=7',
                     '--sheet-w-cm', '20', '--sheet-h-cm', '10', '--boxes', '--crosshair'])
        assert code == 0
        captured = capsys.readouterr().out
        assert 'Per sheet: 50' in captured
        assert 'Stickers placed: 7' in captured

    def test_missing_folder(self, tmp_path):
        assert main([str(tmp_path / 'nope'), str(tmp_path / 'out.pdf')]) == 1

    def test_bad_quantity(self, png_folder, tmp_path):
        assert main([str(png_folder), str(tmp_path / 'out.pdf'), '--qty', 'a.png']) == 1

    def test_low_dpi_warning_printed(self, qapp, png_folder, tmp_path, capsys):
        code = main([str(png_folder), str(tmp_path / 'out.pdf'), '--engine', 'shelf-mixed-v1',
                     '--axis-cm', '30'])
        assert code == 0
        assert 'low effective DPI' in capsys.readouterr().out
