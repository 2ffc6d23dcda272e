"""Tests for the command-line entry point and headless export."""
import pytest
from PIL import Image

from collage_app import build_parser, design_from_args, export_headless
from models import DesignConfig, ValidationError


def _args(*argv):
    return build_parser().parse_args(list(argv))


class TestDesignFlags:

    def test_defaults_match_design_config(self):
        assert design_from_args(_args()) == DesignConfig()

    def test_flags_fill_config(self):
        config = design_from_args(_args(
            '--border', '10', '--background', '#000000', '--pattern', 'grid',
            '--pattern-scale', '30', '--text', 'Hello', '--font-size', '32',
            '--text-color', '#ffffff', '--text-position', 'top'))
        assert config.border_thickness == 10
        assert config.background_color == '#000000'
        assert config.pattern == 'grid'
        assert config.pattern_scale == 30
        assert config.text.content == 'Hello'
        assert config.text.font_size == 32
        assert config.text.color == '#ffffff'
        assert config.text.position == 'top'

    def test_theme_overrides_colors(self):
        config = design_from_args(_args('--theme', 'modern', '--text', 'Hey'))
        assert config.theme == 'modern'
        assert config.pattern == 'lines'
        assert config.text.content == 'Hey'

    def test_bad_color_rejected(self):
        with pytest.raises(ValidationError):
            design_from_args(_args('--background', 'purple'))

    def test_unknown_pattern_rejected_by_parser(self):
        with pytest.raises(SystemExit):
            _args('--pattern', 'stripes')


class TestHeadlessExport:

    def test_png(self, photo_files, tmp_path, capsys):
        out = tmp_path / 'collage.png'
        args = _args('--export', str(out), '--scale', '1', *photo_files[:2])
        assert export_headless(args) == 0
        with Image.open(out) as img:
            # 2*24 + 2*352 + 24 + 48
            assert img.size == (400, 824)
        assert 'Wrote' in capsys.readouterr().out

    def test_pdf_by_extension(self, photo_files, tmp_path):
        out = tmp_path / 'collage.pdf'
        assert export_headless(_args('--export', str(out), '--scale', '1', *photo_files)) == 0
        assert out.read_bytes().startswith(b'%PDF')

    def test_pdf_flag(self, photo_files, tmp_path):
        out = tmp_path / 'collage.out'
        export_headless(_args('--export', str(out), '--pdf', '--scale', '1', *photo_files))
        assert out.read_bytes().startswith(b'%PDF')

    def test_needs_two_photos(self, photo_files, tmp_path):
        out = tmp_path / 'collage.png'
        with pytest.raises(ValidationError):
            export_headless(_args('--export', str(out), photo_files[0]))
        assert not out.exists()

    def test_photos_are_center_cropped(self, photo_files, tmp_path):
        out = tmp_path / 'collage.png'
        export_headless(_args('--export', str(out), '--scale', '1', '--pattern', 'none',
                              *photo_files[:2]))
        with Image.open(out) as img:
            img = img.convert('RGB')
            assert img.getpixel((200, 24 + 176)) == (255, 0, 0)
            assert img.getpixel((200, 24 + 352 + 24 + 176)) == (0, 255, 0)
