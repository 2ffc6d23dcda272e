"""Controller layer: MainWindow, undo commands, and CollageApp.

Orchestrates the model, cropper, renderer and views.
"""

import io
import logging
import os

from PySide6.QtCore import Qt, QEvent, QRectF, Signal
from PySide6.QtGui import QAction, QImage, QKeySequence, QUndoStack, QUndoCommand, QPainter
from PySide6.QtPrintSupport import QPrintDialog, QPrinter
from PySide6.QtWidgets import (
    QApplication, QMainWindow, QStatusBar, QFileDialog, QMessageBox, QDialog,
    QDockWidget,
)

import exporter
from cropper import crop, decode_source, load_source, square_crop
from models import (
    CollageProject, CroppedImage, CropSpec, DesignConfig, SourceImage,
    CollageError, ValidationError,
    MIN_IMAGES, MAX_IMAGES, EXPORT_SCALE, IMAGE_FILTER,
)
from renderer import render_sync
from views import CollagePreviewWidget, DesignPanel, CropEditorDialog


log = logging.getLogger(__name__)


# === Undo Commands ===

class AddImageCommand(QUndoCommand):
    """Undoable command: append one cropped photo."""

    def __init__(self, window: "MainWindow", image: CroppedImage):
        super().__init__("Add Photo")
        self._window = window
        self._image = image

    def redo(self):
        self._window.project.images.append(self._image)
        self._window._refresh()

    def undo(self):
        self._window.project.images.pop()
        self._window.preview.selected_index = None
        self._window._refresh()


class RemoveImageCommand(QUndoCommand):
    """Undoable command: remove one photo by index."""

    def __init__(self, window: "MainWindow", index: int):
        super().__init__("Remove Photo")
        self._window = window
        self._index = index
        self._image = window.project.images[index]

    def redo(self):
        self._window.project.images.pop(self._index)
        self._window.preview.selected_index = None
        self._window._refresh()

    def undo(self):
        self._window.project.images.insert(self._index, self._image)
        self._window._refresh()


class SwapImagesCommand(QUndoCommand):
    """Undoable command: exchange the positions of two photos."""

    def __init__(self, window: "MainWindow", a: int, b: int):
        super().__init__("Reorder Photos")
        self._window = window
        self._a = a
        self._b = b

    def _swap(self):
        images = self._window.project.images
        images[self._a], images[self._b] = images[self._b], images[self._a]
        self._window.preview.selected_index = self._b
        self._window._refresh()

    def redo(self):
        self._swap()

    def undo(self):
        self._a, self._b = self._b, self._a
        self._swap()
        self._a, self._b = self._b, self._a


class RecropImageCommand(QUndoCommand):
    """Undoable command: replace a photo with a new crop of the same source."""

    def __init__(self, window: "MainWindow", index: int, new_image: CroppedImage):
        super().__init__("Recrop Photo")
        self._window = window
        self._index = index
        self._old = window.project.images[index]
        self._new = new_image

    def redo(self):
        self._window.project.images[self._index] = self._new
        self._window._refresh()

    def undo(self):
        self._window.project.images[self._index] = self._old
        self._window._refresh()


class DesignCommand(QUndoCommand):
    """Undoable command: replace the design configuration."""

    def __init__(self, window: "MainWindow", old: DesignConfig, new: DesignConfig):
        super().__init__("Change Design")
        self._window = window
        self._old = old
        self._new = new

    def redo(self):
        self._window._apply_design(self._new)

    def undo(self):
        self._window._apply_design(self._old)


# === MainWindow ===

class MainWindow(QMainWindow):
    """Top-level window: menu bar, collage preview, design panel, status bar."""

    def __init__(self):
        super().__init__()
        self.project = CollageProject()
        self._sources: dict[str, SourceImage] = {}
        self._undo_stack = QUndoStack(self)

        self.setWindowTitle("Collage Maker")
        self.resize(1000, 900)

        self.preview = CollagePreviewWidget(self.project)
        self.setCentralWidget(self.preview)
        self.preview.swap_requested.connect(self._swap_images)
        self.preview.selection_changed.connect(self._on_selection_changed)
        self.preview.crop_edit_requested.connect(self._recrop)

        self.design_panel = DesignPanel(self.project.design)
        self.design_panel.design_changed.connect(self._on_design_changed)
        dock = QDockWidget("Design", self)
        dock.setWidget(self.design_panel)
        dock.setFeatures(QDockWidget.DockWidgetFeature.NoDockWidgetFeatures)
        self.addDockWidget(Qt.DockWidgetArea.RightDockWidgetArea, dock)

        self._build_menus()
        self._status = QStatusBar()
        self.setStatusBar(self._status)
        self._update_status()

    def _build_menus(self):
        mb = self.menuBar()

        # --- File menu ---
        file_menu = mb.addMenu("&File")

        self._add_action = QAction("&Add Photos...", self)
        self._add_action.setShortcut(QKeySequence.StandardKey.Open)
        self._add_action.triggered.connect(self._add_photos)
        file_menu.addAction(self._add_action)

        file_menu.addSeparator()

        self._export_png_action = QAction("Export as &PNG...", self)
        self._export_png_action.setShortcut(QKeySequence("Ctrl+E"))
        self._export_png_action.triggered.connect(lambda: self._export("png"))
        file_menu.addAction(self._export_png_action)

        self._export_pdf_action = QAction("Export as P&DF...", self)
        self._export_pdf_action.setShortcut(QKeySequence("Ctrl+Shift+E"))
        self._export_pdf_action.triggered.connect(lambda: self._export("pdf"))
        file_menu.addAction(self._export_pdf_action)

        self._print_action = QAction("&Print...", self)
        self._print_action.setShortcut(QKeySequence.StandardKey.Print)
        self._print_action.triggered.connect(self._print)
        file_menu.addAction(self._print_action)

        file_menu.addSeparator()

        act = QAction("&Quit", self)
        act.setShortcut(QKeySequence.StandardKey.Quit)
        act.triggered.connect(self.close)
        file_menu.addAction(act)

        # --- Edit menu ---
        edit_menu = mb.addMenu("&Edit")

        undo_action = self._undo_stack.createUndoAction(self, "&Undo")
        undo_action.setShortcut(QKeySequence.StandardKey.Undo)
        edit_menu.addAction(undo_action)

        redo_action = self._undo_stack.createRedoAction(self, "&Redo")
        redo_action.setShortcut(QKeySequence.StandardKey.Redo)
        edit_menu.addAction(redo_action)

        edit_menu.addSeparator()

        self._recrop_action = QAction("Re&crop Selected...", self)
        self._recrop_action.setShortcut(QKeySequence("Ctrl+K"))
        self._recrop_action.triggered.connect(self._recrop_selected)
        edit_menu.addAction(self._recrop_action)

        self._up_action = QAction("Move &Up", self)
        self._up_action.setShortcut(QKeySequence("Ctrl+Up"))
        self._up_action.triggered.connect(lambda: self._move_selected(-1))
        edit_menu.addAction(self._up_action)

        self._down_action = QAction("Move &Down", self)
        self._down_action.setShortcut(QKeySequence("Ctrl+Down"))
        self._down_action.triggered.connect(lambda: self._move_selected(1))
        edit_menu.addAction(self._down_action)

        self._remove_action = QAction("&Remove Selected", self)
        self._remove_action.setShortcuts([
            QKeySequence.StandardKey.Delete,
            QKeySequence(Qt.Key.Key_Backspace),
        ])
        self._remove_action.triggered.connect(self._remove_selected)
        edit_menu.addAction(self._remove_action)

        edit_menu.addSeparator()

        act = QAction("Reset &Design", self)
        act.triggered.connect(lambda: self._on_design_changed(DesignConfig()))
        edit_menu.addAction(act)

        # --- View menu ---
        view_menu = mb.addMenu("&View")

        act = QAction("Zoom &In", self)
        act.setShortcut(QKeySequence.StandardKey.ZoomIn)
        act.triggered.connect(lambda: self.preview.set_zoom(self.preview._zoom * 1.25))
        view_menu.addAction(act)

        act = QAction("Zoom &Out", self)
        act.setShortcut(QKeySequence.StandardKey.ZoomOut)
        act.triggered.connect(lambda: self.preview.set_zoom(self.preview._zoom / 1.25))
        view_menu.addAction(act)

        act = QAction("Zoom to &Fit", self)
        act.setShortcut(QKeySequence("Ctrl+0"))
        act.triggered.connect(lambda: self.preview.set_zoom(1.0))
        view_menu.addAction(act)

        self._update_actions()

    # --- Photos ---

    def _add_photos(self):
        room = MAX_IMAGES - len(self.project.images)
        if room <= 0:
            QMessageBox.information(
                self, "Collage Full", f"A collage holds at most {MAX_IMAGES} photos.")
            return
        paths, _ = QFileDialog.getOpenFileNames(self, "Add Photos", "", IMAGE_FILTER)
        failed = []
        for path in paths[:room]:
            try:
                source = load_source(path)
                img = decode_source(source)
            except CollageError as e:
                log.warning("could not open %s: %s", path, e)
                failed.append(os.path.basename(path))
                continue
            dlg = CropEditorDialog(source.data, img.width, img.height, parent=self)
            if dlg.exec() != QDialog.DialogCode.Accepted:
                continue
            if not self.add_source(source, dlg.result_crop()):
                failed.append(source.name)
        if failed:
            QMessageBox.warning(self, "Some Photos Skipped",
                                "Could not read:\n" + "\n".join(failed))

    def add_path(self, path: str) -> bool:
        """Add the photo at *path* with a centered square crop."""
        try:
            source = load_source(path)
        except CollageError as e:
            log.warning("could not open %s: %s", path, e)
            return False
        return self.add_source(source)

    def add_source(self, source: SourceImage, spec: CropSpec | None = None) -> bool:
        """Crop *source* (centered square by default) and add it to the collage."""
        if len(self.project.images) >= MAX_IMAGES:
            return False
        try:
            if spec is None:
                img = decode_source(source)
                spec = square_crop(img.width, img.height)
            cropped = crop(source, spec)
        except CollageError as e:
            log.warning("crop failed for %s: %s", source.id, e)
            return False
        self._sources[source.id] = source
        self._undo_stack.push(AddImageCommand(self, cropped))
        return True

    def _remove_selected(self):
        idx = self.preview.selected_index
        if idx is not None and 0 <= idx < len(self.project.images):
            self._undo_stack.push(RemoveImageCommand(self, idx))

    def _swap_images(self, a: int, b: int):
        n = len(self.project.images)
        if a != b and 0 <= a < n and 0 <= b < n:
            self._undo_stack.push(SwapImagesCommand(self, a, b))

    def _move_selected(self, delta: int):
        idx = self.preview.selected_index
        if idx is not None:
            self._swap_images(idx, idx + delta)

    def _recrop_selected(self):
        idx = self.preview.selected_index
        if idx is not None:
            self._recrop(idx)

    def _recrop(self, index: int):
        """Open the crop editor on the original source of photo *index*."""
        if index < 0 or index >= len(self.project.images):
            return
        current = self.project.images[index]
        source = self._sources.get(current.id)
        if source is None:
            return
        try:
            img = decode_source(source)
        except CollageError as e:
            QMessageBox.critical(self, "Crop Error", str(e))
            return
        dlg = CropEditorDialog(source.data, img.width, img.height, current.crop, self)
        if dlg.exec() != QDialog.DialogCode.Accepted:
            return
        spec = dlg.result_crop()
        if spec == current.crop:
            return
        try:
            new_image = crop(source, spec)
        except CollageError as e:
            QMessageBox.critical(self, "Crop Error", str(e))
            return
        self._undo_stack.push(RecropImageCommand(self, index, new_image))

    # --- Design ---

    def _on_design_changed(self, config: DesignConfig):
        try:
            config.validate()
        except CollageError as e:
            self._status.showMessage(str(e))
            return
        self._undo_stack.push(DesignCommand(self, self.project.design.copy(), config))

    def _apply_design(self, config: DesignConfig):
        self.project.design = config.copy()
        if self.design_panel.result_config() != self.project.design:
            self.design_panel.set_config(self.project.design)
        self.preview.update()

    # --- Export ---

    def render_export(self):
        """Render the authoritative raster at export scale. Raises CollageError."""
        n = len(self.project.images)
        if n < MIN_IMAGES:
            raise ValidationError(f"Add at least {MIN_IMAGES} photos before exporting")
        return render_sync(list(self.project.images), self.project.design, EXPORT_SCALE)

    def export_to(self, path: str, kind: str) -> bool:
        """Render and write *path* as 'png' or 'pdf'. Reports failures in a dialog."""
        try:
            raster = self.render_export()
            if kind == "pdf":
                exporter.save_pdf(raster, path)
            else:
                exporter.save_png(raster, path)
        except CollageError as e:
            QMessageBox.critical(self, "Export Error", f"Failed to export {kind.upper()}:\n{e}")
            return False
        self._status.showMessage(f"Exported {os.path.basename(path)}", 5000)
        return True

    def _export(self, kind: str):
        if kind == "pdf":
            name, file_filter = exporter.DEFAULT_PDF_NAME, exporter.PDF_FILTER
        else:
            name, file_filter = exporter.DEFAULT_PNG_NAME, exporter.PNG_FILTER
        path, _ = QFileDialog.getSaveFileName(self, "Export Collage", name, file_filter)
        if not path:
            return
        if not path.lower().endswith(f".{kind}"):
            path += f".{kind}"
        self.export_to(path, kind)

    def _print(self):
        try:
            raster = self.render_export()
        except CollageError as e:
            QMessageBox.critical(self, "Print Error", str(e))
            return

        printer = QPrinter(QPrinter.PrinterMode.HighResolution)
        dialog = QPrintDialog(printer, self)
        if dialog.exec() != QPrintDialog.DialogCode.Accepted:
            return

        buf = io.BytesIO()
        raster.image.save(buf, format="PNG")
        qimg = QImage.fromData(buf.getvalue())

        painter = QPainter()
        if not painter.begin(printer):
            return
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        page = QRectF(painter.viewport())
        s = min(page.width() / raster.width, page.height() / raster.height)
        w, h = raster.width * s, raster.height * s
        painter.drawImage(QRectF((page.width() - w) / 2, (page.height() - h) / 2, w, h), qimg)
        painter.end()

    # --- Refresh & status ---

    def _on_selection_changed(self):
        self._update_actions()
        self._update_status()

    def _refresh(self):
        self.preview.update()
        self._update_actions()
        self._update_status()

    def _update_actions(self):
        n = len(self.project.images)
        sel = self.preview.selected_index
        has_sel = sel is not None and sel < n
        self._add_action.setEnabled(n < MAX_IMAGES)
        self._remove_action.setEnabled(has_sel)
        self._recrop_action.setEnabled(has_sel)
        self._up_action.setEnabled(has_sel and sel > 0)
        self._down_action.setEnabled(has_sel and sel < n - 1)
        for act in (self._export_png_action, self._export_pdf_action, self._print_action):
            act.setEnabled(n >= MIN_IMAGES)

    def _update_status(self):
        n = len(self.project.images)
        if n == 0:
            self._status.showMessage(
                f"No photos. Add {MIN_IMAGES} or {MAX_IMAGES} to build a collage")
            return
        sel = self.preview.selected_index
        sel_text = f" | Selected: #{sel + 1}" if sel is not None and sel < n else ""
        need = "" if n >= MIN_IMAGES else f" (need at least {MIN_IMAGES})"
        self._status.showMessage(f"{n} photo{'s' if n != 1 else ''}{need}{sel_text}")


# === CollageApp: custom QApplication for macOS file open events ===

class CollageApp(QApplication):
    """QApplication subclass that forwards macOS QFileOpenEvent paths."""

    file_open_requested = Signal(str)

    def event(self, event):
        if event.type() == QEvent.Type.FileOpen:
            self.file_open_requested.emit(event.file())
            return True
        return super().event(event)
