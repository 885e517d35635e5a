"""Folder catalog: list the PNG stickers in a directory."""

import logging
import os

from PIL import Image

from errors import MissingAssetError
from models import AssetInfo

logger = logging.getLogger(__name__)


def list_png_assets(folder: str) -> list[AssetInfo]:
    """Every ``*.png`` in *folder* (not recursive), sorted by file name.

    Only the header is read to get pixel dimensions.
    """
    if not os.path.isdir(folder):
        raise MissingAssetError(f"Folder not found: {folder}")

    assets = []
    for name in sorted(os.listdir(folder)):
        path = os.path.join(folder, name)
        if not name.lower().endswith('.png') or not os.path.isfile(path):
            continue
        with Image.open(path) as img:
            width, height = img.size
        assets.append(AssetInfo(asset_id=name, width_px=width, height_px=height, path=path))
        logger.debug("Catalog: %s (%dx%dpx)", name, width, height)
    return assets


def load_image(asset: AssetInfo) -> Image.Image:
    """Decode an asset fully (RGBA) so the file handle can be released."""
    with Image.open(asset.path) as img:
        return img.convert('RGBA')
