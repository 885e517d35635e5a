"""setuptools configuration for Sticker Imposer.

Usage:
    pip install -e .[test]

Installs the ``sticker-imposer`` command (see sticker_app.py).
"""
from setuptools import setup

MODULES = [
    'catalog',
    'contour',
    'engines',
    'errors',
    'geometry',
    'grid_tiler',
    'mask',
    'models',
    'render',
    'shelf_tiler',
    'sizing',
    'sticker_app',
]

setup(
    name='sticker-imposer',
    version='1.0.0',
    description='Pack PNG stickers onto print sheets and trace cut contours',
    python_requires='>=3.10',
    py_modules=MODULES,
    install_requires=[
        'Pillow>=10.0',
        'numpy',
        'opencv-python-headless',
        'PySide6>=6.5',
    ],
    extras_require={
        'test': ['pytest', 'pytest-qt'],
    },
    entry_points={
        'console_scripts': ['sticker-imposer = sticker_app:main'],
    },
)
