"""Tests for PNG and PDF export."""
import re

import pytest
from PIL import Image

import exporter
from models import DesignConfig, ExportError
from renderer import render_sync


@pytest.fixture
def raster(cropped_images):
    config = DesignConfig(pattern='dots')
    config.text.content = 'Party'
    return render_sync(cropped_images[:2], config, 1)


def _media_box(data: bytes):
    m = re.search(rb'/MediaBox\s*\[\s*0\s+0\s+([\d.]+)\s+([\d.]+)\s*\]', data)
    assert m, 'no MediaBox in PDF'
    return float(m.group(1)), float(m.group(2))


class TestPng:

    def test_pixels_match_raster(self, raster, tmp_path):
        path = tmp_path / 'collage.png'
        exporter.save_png(raster, str(path))
        with Image.open(path) as img:
            assert img.format == 'PNG'
            assert img.size == (raster.width, raster.height)
            assert img.convert('RGB').tobytes() == raster.tobytes()

    def test_overwrites_existing_file(self, raster, tmp_path):
        path = tmp_path / 'collage.png'
        path.write_bytes(b'old')
        exporter.save_png(raster, str(path))
        assert path.read_bytes().startswith(b'\x89PNG')

    def test_missing_directory(self, raster, tmp_path):
        with pytest.raises(ExportError):
            exporter.save_png(raster, str(tmp_path / 'nope' / 'collage.png'))

    def test_failed_write_leaves_no_file(self, raster, tmp_path, monkeypatch):
        def fail(*args, **kwargs):
            raise OSError('disk full')
        monkeypatch.setattr(raster.image, 'save', fail)
        with pytest.raises(ExportError):
            exporter.save_png(raster, str(tmp_path / 'collage.png'))
        assert list(tmp_path.iterdir()) == []


class TestPdf:

    def test_single_page_sized_to_raster(self, raster, tmp_path):
        path = tmp_path / 'collage.pdf'
        exporter.save_pdf(raster, str(path))
        data = path.read_bytes()
        assert data.startswith(b'%PDF')
        assert _media_box(data) == (raster.width, raster.height)

    def test_embeds_jpeg(self, raster, tmp_path):
        path = tmp_path / 'collage.pdf'
        exporter.save_pdf(raster, str(path))
        data = path.read_bytes()
        assert b'/DCTDecode' in data
        assert re.search(rb'/Width\s+%d\b' % raster.width, data)
        assert re.search(rb'/Height\s+%d\b' % raster.height, data)

    def test_missing_directory(self, raster, tmp_path):
        with pytest.raises(ExportError):
            exporter.save_pdf(raster, str(tmp_path / 'nope' / 'collage.pdf'))


class TestOrientation:

    def test_portrait_collage(self, raster):
        assert exporter.page_orientation(raster) == 'portrait'

    def test_landscape_raster(self):
        from models import FinishedRaster
        wide = FinishedRaster(image=Image.new('RGB', (30, 10)), width=30, height=10)
        assert exporter.page_orientation(wide) == 'landscape'


def test_same_raster_feeds_both_formats(raster, tmp_path):
    png_path = tmp_path / 'a.png'
    pdf_path = tmp_path / 'a.pdf'
    before = raster.tobytes()
    exporter.save_png(raster, str(png_path))
    exporter.save_pdf(raster, str(pdf_path))
    assert raster.tobytes() == before
    with Image.open(png_path) as img:
        assert img.convert('RGB').tobytes() == before
    assert _media_box(pdf_path.read_bytes()) == (raster.width, raster.height)
