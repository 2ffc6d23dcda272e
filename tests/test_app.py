"""Integration tests for the Collage Maker window via pytest-qt."""
import pytest
from PIL import Image
from PySide6.QtWidgets import QMessageBox

from controller import MainWindow
from models import DesignConfig, CropSpec, MAX_IMAGES
from views import CropEditorDialog, DesignPanel, pattern_brush


@pytest.fixture
def main_window(qapp, qtbot):
    """Create a MainWindow managed by qtbot."""
    win = MainWindow()
    qtbot.addWidget(win)
    win.show()
    return win


@pytest.fixture
def filled_window(main_window, make_source):
    """MainWindow holding red, lime and blue photos, top to bottom."""
    for color in ('red', 'lime', 'blue'):
        assert main_window.add_source(make_source(color, 150, 100, color))
    return main_window


def _ids(window):
    return [img.id for img in window.project.images]


class TestAddPhotos:

    def test_status_starts_empty(self, main_window):
        assert "No photos" in main_window._status.currentMessage()

    def test_add_source_uses_square_crop(self, main_window, make_source):
        assert main_window.add_source(make_source('wide', 300, 200))
        image = main_window.project.images[0]
        assert image.crop == CropSpec(50, 0, 200, 200)
        assert (image.pixel_width, image.pixel_height) == (200, 200)
        assert "1 photo (need at least 2)" in main_window._status.currentMessage()

    def test_add_path(self, main_window, photo_files):
        for path in photo_files:
            assert main_window.add_path(path)
        assert len(main_window.project.images) == 3
        assert "3 photos" in main_window._status.currentMessage()

    def test_add_unreadable_path(self, main_window, tmp_path):
        path = tmp_path / 'broken.png'
        path.write_bytes(b'not a png')
        assert not main_window.add_path(str(path))
        assert main_window.project.images == []

    def test_limit_is_three(self, filled_window, make_source):
        assert len(filled_window.project.images) == MAX_IMAGES
        assert not filled_window.add_source(make_source('extra'))
        assert len(filled_window.project.images) == MAX_IMAGES
        assert not filled_window._add_action.isEnabled()

    def test_undo_add(self, filled_window):
        filled_window._undo_stack.undo()
        assert _ids(filled_window) == ['red', 'lime']


class TestReorder:

    def test_swap_and_undo(self, filled_window):
        filled_window._swap_images(0, 2)
        assert _ids(filled_window) == ['blue', 'lime', 'red']
        filled_window._undo_stack.undo()
        assert _ids(filled_window) == ['red', 'lime', 'blue']

    def test_swap_signal_from_preview(self, filled_window):
        filled_window.preview.swap_requested.emit(0, 1)
        assert _ids(filled_window) == ['lime', 'red', 'blue']

    def test_move_selected(self, filled_window):
        filled_window.preview.selected_index = 0
        filled_window._move_selected(1)
        assert _ids(filled_window) == ['lime', 'red', 'blue']
        assert filled_window.preview.selected_index == 1

    def test_move_past_end_is_ignored(self, filled_window):
        filled_window.preview.selected_index = 2
        filled_window._move_selected(1)
        assert _ids(filled_window) == ['red', 'lime', 'blue']

    def test_remove_selected(self, filled_window):
        filled_window.preview.selected_index = 1
        filled_window._remove_selected()
        assert _ids(filled_window) == ['red', 'blue']
        filled_window._undo_stack.undo()
        assert _ids(filled_window) == ['red', 'lime', 'blue']


class TestDesign:

    def test_design_change_is_undoable(self, main_window):
        config = DesignConfig(border_thickness=40, pattern='grid')
        main_window._on_design_changed(config)
        assert main_window.project.design.border_thickness == 40
        assert main_window.design_panel.result_config().pattern == 'grid'
        main_window._undo_stack.undo()
        assert main_window.project.design == DesignConfig()

    def test_invalid_design_is_rejected(self, main_window):
        config = DesignConfig(background_color='nope')
        main_window._on_design_changed(config)
        assert main_window.project.design == DesignConfig()
        assert main_window._undo_stack.count() == 0

    def test_design_is_copied(self, main_window):
        config = DesignConfig(pattern='lines')
        main_window._on_design_changed(config)
        config.pattern = 'checkers'
        assert main_window.project.design.pattern == 'lines'


class TestDesignPanel:

    def test_round_trips_config(self, qapp, qtbot):
        config = DesignConfig(border_thickness=12, background_color='#112233',
                              pattern='checkers', pattern_scale=35)
        config.text.content = 'Hi there'
        config.text.font_size = 48
        config.text.position = 'top'
        config.text.font_family = "'Pacifico', cursive"
        panel = DesignPanel(config)
        qtbot.addWidget(panel)
        assert panel.result_config() == config

    def test_thick_border_is_not_clamped(self, qapp, qtbot):
        panel = DesignPanel(DesignConfig(border_thickness=120))
        qtbot.addWidget(panel)
        assert panel.result_config().border_thickness == 120

    def test_edit_emits_config(self, qapp, qtbot):
        panel = DesignPanel(DesignConfig())
        qtbot.addWidget(panel)
        with qtbot.waitSignal(panel.design_changed) as blocker:
            panel._text_edit.setText('Cheers')
        assert blocker.args[0].text.content == 'Cheers'

    def test_text_limited_to_twenty_chars(self, qapp, qtbot):
        panel = DesignPanel(DesignConfig())
        qtbot.addWidget(panel)
        panel._text_edit.setText('x' * 30)
        assert len(panel.result_config().text.content) == 20

    def test_theme_applies_preset(self, qapp, qtbot):
        panel = DesignPanel(DesignConfig())
        qtbot.addWidget(panel)
        index = panel._theme_combo.findData('corporate')
        with qtbot.waitSignal(panel.design_changed) as blocker:
            panel._on_theme(index)
        config = blocker.args[0]
        assert config.theme == 'corporate'
        assert config.pattern == 'grid'
        assert config.background_color == '#1f2937'

    def test_manual_edit_leaves_theme(self, qapp, qtbot):
        panel = DesignPanel(DesignConfig(theme='wedding'))
        qtbot.addWidget(panel)
        with qtbot.waitSignal(panel.design_changed) as blocker:
            panel._border_spin.setValue(30)
        assert blocker.args[0].theme is None


class TestPreview:

    def test_no_plan_without_photos(self, main_window):
        assert main_window.preview.current_plan() is None

    def test_plan_matches_export_proportions(self, filled_window):
        from layout import plan
        p = filled_window.preview.current_plan()
        export = plan(3, filled_window.project.design, 4)
        assert p.image_count == 3
        assert p.height / p.width == pytest.approx(export.height / export.width)
        assert p.border / p.width == pytest.approx(export.border / export.width)

    def test_fits_widget(self, filled_window):
        p = filled_window.preview.current_plan()
        assert p.width <= filled_window.preview.width()
        assert p.height <= filled_window.preview.height()

    def test_paints(self, filled_window):
        filled_window._on_design_changed(DesignConfig(pattern='checkers'))
        pixmap = filled_window.preview.grab()
        assert not pixmap.isNull()

    @pytest.mark.parametrize('pattern', ['dots', 'lines', 'grid', 'checkers'])
    def test_pattern_brush(self, qapp, pattern):
        brush = pattern_brush(pattern, 20, 1, '#ffffff')
        assert not brush.texture().isNull()

    def test_no_brush_for_none(self, qapp):
        assert pattern_brush('none', 20, 1, '#ffffff') is None


class TestCropEditor:

    def test_default_crop_is_centered_square(self, qapp, qtbot, make_png):
        dlg = CropEditorDialog(make_png(300, 200), 300, 200)
        qtbot.addWidget(dlg)
        assert dlg.result_crop() == CropSpec(50, 0, 200, 200)

    def test_keeps_current_crop(self, qapp, qtbot, make_png):
        dlg = CropEditorDialog(make_png(300, 200), 300, 200, CropSpec(10, 20, 100, 100))
        qtbot.addWidget(dlg)
        assert dlg.result_crop() == CropSpec(10, 20, 100, 100)

    def test_zoom_shrinks_crop(self, qapp, qtbot, make_png):
        dlg = CropEditorDialog(make_png(400, 400), 400, 400)
        qtbot.addWidget(dlg)
        dlg._zoom_slider.setValue(20)
        assert dlg.result_crop() == CropSpec(100, 100, 200, 200)
        dlg._reset_crop()
        assert dlg.result_crop() == CropSpec(0, 0, 400, 400)


class TestExport:

    def test_export_png(self, filled_window, tmp_path):
        path = tmp_path / 'out.png'
        assert filled_window.export_to(str(path), 'png')
        with Image.open(path) as img:
            assert img.size == (1600, 4800)

    def test_export_pdf(self, filled_window, tmp_path):
        path = tmp_path / 'out.pdf'
        assert filled_window.export_to(str(path), 'pdf')
        assert path.read_bytes().startswith(b'%PDF')

    def test_export_needs_two_photos(self, main_window, make_source, tmp_path, monkeypatch):
        errors = []
        monkeypatch.setattr(QMessageBox, 'critical',
                            lambda *args, **kwargs: errors.append(args))
        main_window.add_source(make_source('only'))
        path = tmp_path / 'out.png'
        assert not main_window.export_to(str(path), 'png')
        assert errors
        assert not path.exists()

    def test_export_actions_follow_photo_count(self, main_window, make_source):
        assert not main_window._export_png_action.isEnabled()
        main_window.add_source(make_source('a'))
        main_window.add_source(make_source('b'))
        assert main_window._export_png_action.isEnabled()
        assert main_window._export_pdf_action.isEnabled()
