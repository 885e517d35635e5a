"""Shared pytest fixtures for Sticker Imposer tests."""
import os

os.environ['QT_QPA_PLATFORM'] = 'offscreen'  # must be set before QApplication import

import pytest
from PIL import Image, ImageDraw

from models import AssetInfo, SheetSpec


@pytest.fixture
def sheet():
    """The default 100 x 50 cm sheet with a 3 mm gap and no margin."""
    return SheetSpec(width_mm=1000.0, height_mm=500.0, gap_mm=3.0, margin_mm=0.0)


@pytest.fixture
def uniform_assets():
    return [
        AssetInfo('a.png', 1000, 500),
        AssetInfo('b.png', 1000, 500),
    ]


@pytest.fixture
def circle_image():
    """A red disc on a transparent 200x200 canvas."""
    img = Image.new('RGBA', (200, 200), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    draw.ellipse([20, 20, 180, 180], fill=(255, 0, 0, 255))
    return img


@pytest.fixture
def make_image():
    """Factory fixture: make_image(width, height, transparent_corner=None).

    *transparent_corner* is one of 'top-left', 'top-right', 'bottom-left',
    'bottom-right'; that quadrant is cleared to alpha 0.
    """
    def _make(width, height, transparent_corner=None, color=(0, 128, 255, 255)):
        img = Image.new('RGBA', (width, height), color)
        if transparent_corner is not None:
            vert, horiz = transparent_corner.split('-')
            x0 = 0 if horiz == 'left' else width // 2
            y0 = 0 if vert == 'top' else height // 2
            ImageDraw.Draw(img).rectangle([x0, y0, x0 + width // 2 - 1, y0 + height // 2 - 1],
                                          fill=(0, 0, 0, 0))
        return img
    return _make


@pytest.fixture
def png_folder(tmp_path):
    """A folder with three PNGs (and one non-PNG) of varied sizes."""
    specs = [
        ('b.png', (300, 150), 'blue'),
        ('a.png', (200, 200), 'red'),
        ('C.PNG', (150, 300), 'green'),
    ]
    for name, size, color in specs:
        Image.new('RGBA', size, color).save(tmp_path / name, format='PNG')
    (tmp_path / 'notes.txt').write_text('not an image')
    return tmp_path
