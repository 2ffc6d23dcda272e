"""Shared pytest fixtures for Collage Maker tests."""
import os

os.environ['QT_QPA_PLATFORM'] = 'offscreen'  # must be set before QApplication import

import io
import pytest
from PIL import Image, ImageDraw

from models import SourceImage


@pytest.fixture(scope='session')
def qapp():
    """Create a single QApplication for all tests."""
    from controller import CollageApp
    app = CollageApp([])
    yield app


@pytest.fixture
def make_png():
    """Factory fixture: make_png(width, height, color) -> PNG bytes."""
    def _make(width, height, color='red'):
        img = Image.new('RGB', (width, height), color)
        buf = io.BytesIO()
        img.save(buf, format='PNG')
        return buf.getvalue()
    return _make


@pytest.fixture
def make_source(make_png):
    """Factory fixture: make_source(id, width, height, color) -> SourceImage."""
    def _make(image_id='photo', width=200, height=200, color='red'):
        return SourceImage(id=image_id, data=make_png(width, height, color), name=f'{image_id}.png')
    return _make


@pytest.fixture
def quadrant_source():
    """A 100x100 source whose four 50x50 quadrants are red, green, blue, white."""
    img = Image.new('RGB', (100, 100), 'white')
    draw = ImageDraw.Draw(img)
    draw.rectangle([0, 0, 49, 49], fill='red')
    draw.rectangle([50, 0, 99, 49], fill='lime')
    draw.rectangle([0, 50, 49, 99], fill='blue')
    buf = io.BytesIO()
    img.save(buf, format='PNG')
    return SourceImage(id='quadrants', data=buf.getvalue(), name='quadrants.png')


@pytest.fixture
def cropped_images(make_source):
    """Three solid-color square crops: red, lime, blue (top to bottom)."""
    from cropper import crop
    from models import CropSpec
    return [
        crop(make_source(name, 120, 120, name), CropSpec(0, 0, 120, 120))
        for name in ('red', 'lime', 'blue')
    ]


@pytest.fixture
def photo_files(tmp_path):
    """Write three photos of varied sizes to disk and return their paths."""
    paths = []
    for name, size in (('red', (300, 200)), ('lime', (200, 300)), ('blue', (250, 250))):
        path = tmp_path / f'{name}.png'
        Image.new('RGB', size, name).save(path)
        paths.append(str(path))
    return paths
