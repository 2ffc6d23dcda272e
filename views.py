"""View layer: Qt widgets for display and interaction.

Contains CollagePreviewWidget (live collage view), DesignPanel and
CropEditorDialog.
"""

from PySide6.QtCore import Qt, QRectF, QPointF, QRect, Signal
from PySide6.QtGui import QPixmap, QPainter, QPen, QColor, QBrush, QFont
from PySide6.QtWidgets import (
    QWidget, QDialog, QDialogButtonBox, QFormLayout, QComboBox, QDoubleSpinBox,
    QSpinBox, QSlider, QLineEdit, QPushButton, QColorDialog, QVBoxLayout,
    QHBoxLayout, QGroupBox, QLabel,
)

from colors import pattern_ink, parse_hex
from cropper import square_crop, MIN_ZOOM, MAX_ZOOM
from layout import plan, preview_scale
from models import (
    CollageProject, CropSpec, DesignConfig, CollageError, apply_theme,
    PATTERNS, TEXT_POSITIONS, FONT_FAMILIES, THEMES,
    PATTERN_SCALE_RANGE, FONT_SIZE_RANGE, MAX_TEXT_LENGTH, BASE_WIDTH,
)
from patterns import pattern_spacing, DOT_RADIUS, LINE_WIDTH, GRID_WIDTH


def _qcolor(rgba) -> QColor:
    return QColor(*rgba)


def _hex_qcolor(color: str) -> QColor:
    return QColor(*parse_hex(color))


# === Pattern tiles ===

def pattern_brush(pattern: str, spacing_logical: float, scale: float,
                  background: str) -> QBrush | None:
    """Textured brush that tiles one period of *pattern*.

    The preview tiles a small pixmap across the collage instead of painting
    every dot or line, so it only approximates the exported raster.
    """
    if pattern == "none":
        return None
    ink = pattern_ink(background)
    s = max(2, int(round(pattern_spacing(spacing_logical, scale))))
    size = 2 * s if pattern == "checkers" else s
    tile = QPixmap(size, size)
    tile.fill(Qt.GlobalColor.transparent)

    p = QPainter(tile)
    p.setRenderHint(QPainter.RenderHint.Antialiasing)
    if pattern == "dots":
        p.setPen(Qt.PenStyle.NoPen)
        p.setBrush(_qcolor(ink.soft))
        r = DOT_RADIUS * scale
        for cx, cy in ((0, 0), (s, 0), (0, s), (s, s)):
            p.drawEllipse(QPointF(cx, cy), r, r)
    elif pattern == "lines":
        p.setPen(QPen(_qcolor(ink.soft), max(1.0, LINE_WIDTH * scale)))
        p.drawLine(QPointF(0, 0), QPointF(s, s))
    elif pattern == "grid":
        p.setPen(QPen(_qcolor(ink.soft), max(1.0, GRID_WIDTH * scale)))
        p.drawLine(QPointF(0, 0), QPointF(0, s))
        p.drawLine(QPointF(0, 0), QPointF(s, 0))
    elif pattern == "checkers":
        p.fillRect(QRectF(0, 0, s, s), _qcolor(ink.strong))
        p.fillRect(QRectF(s, s, s, s), _qcolor(ink.strong))
    p.end()
    return QBrush(tile)


# === CollagePreviewWidget: live collage view ===

class CollagePreviewWidget(QWidget):
    """Draws the collage with QPainter, using the same plan as the export."""

    swap_requested = Signal(int, int)   # (dragged index, drop index)
    selection_changed = Signal()
    crop_edit_requested = Signal(int)

    def __init__(self, project: CollageProject, parent=None):
        super().__init__(parent)
        self.project = project
        self._pixmap_cache: dict[str, QPixmap] = {}
        self.selected_index: int | None = None
        self._zoom: float = 1.0
        self._drag_index: int | None = None
        self._drop_index: int | None = None
        self.setMinimumSize(300, 450)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setContextMenuPolicy(Qt.ContextMenuPolicy.CustomContextMenu)

    def invalidate_cache(self):
        self._pixmap_cache.clear()

    def _get_pixmap(self, index: int) -> QPixmap:
        img = self.project.images[index]
        key = f"{img.id}:{img.crop}"
        if key not in self._pixmap_cache:
            pix = QPixmap()
            pix.loadFromData(img.png_data)
            self._pixmap_cache[key] = pix
        return self._pixmap_cache[key]

    # --- Geometry ---

    def current_plan(self):
        """RenderPlan at the widget's current scale, or None if nothing to show."""
        n = len(self.project.images)
        if n == 0:
            return None
        padding = 20
        w = max(1, self.width() - 2 * padding)
        h = max(1, self.height() - 2 * padding)
        try:
            scale = preview_scale(w, h, n, self.project.design) * self._zoom
            return plan(n, self.project.design, scale)
        except CollageError:
            return None

    def _origin(self, p) -> tuple[float, float]:
        """Top-left corner of the collage, centered in the widget."""
        return (self.width() - p.width) / 2, (self.height() - p.height) / 2

    def _cell_screen_rect(self, p, index: int) -> QRectF:
        ox, oy = self._origin(p)
        x, y, w, h = p.cell_rect(index)
        return QRectF(ox + x, oy + y, w, h)

    def set_zoom(self, zoom: float):
        self._zoom = max(0.25, min(zoom, 4.0))
        self.update()

    # --- Painting ---

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.fillRect(self.rect(), QColor(200, 200, 200))

        p = self.current_plan()
        if p is None:
            painter.setPen(QColor(90, 90, 90))
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter,
                             "Add two or three photos to start")
            painter.end()
            return

        design = self.project.design
        ox, oy = self._origin(p)
        page = QRectF(ox, oy, p.width, p.height)

        painter.fillRect(page.translated(3, 3), QColor(150, 150, 150))
        painter.fillRect(page, _hex_qcolor(design.background_color))

        brush = pattern_brush(design.pattern, design.pattern_scale, p.scale,
                              design.background_color)
        if brush is not None:
            painter.save()
            painter.setBrushOrigin(page.topLeft())
            painter.fillRect(page, brush)
            painter.restore()

        self._paint_images(painter, p)
        self._paint_text(painter, p, ox, oy)
        self._paint_selection(painter, p)
        painter.end()

    def _paint_images(self, painter, p):
        for i in range(len(self.project.images)):
            pix = self._get_pixmap(i)
            painter.drawPixmap(self._cell_screen_rect(p, i), pix, QRectF(pix.rect()))

    def _paint_text(self, painter, p, ox, oy):
        text = self.project.design.text
        if not text.content:
            return
        font = QFont(text.font_family.split(",")[0].strip().strip("'\""))
        font.setPixelSize(max(1, int(round(p.font_size))))
        font.setWeight(QFont.Weight.DemiBold)
        painter.setFont(font)
        painter.setPen(_hex_qcolor(text.color))
        metrics = painter.fontMetrics()
        tw = metrics.horizontalAdvance(text.content)
        painter.drawText(QPointF(ox + (p.width - tw) / 2, oy + p.text_baseline),
                         text.content)

    def _paint_selection(self, painter, p):
        for index, color in ((self.selected_index, QColor(0, 120, 255)),
                             (self._drop_index, QColor(255, 160, 0))):
            if index is None or index >= p.image_count:
                continue
            painter.setPen(QPen(color, 3))
            painter.setBrush(Qt.BrushStyle.NoBrush)
            painter.drawRect(self._cell_screen_rect(p, index))

    # --- Interaction ---

    def _hit_test(self, pos) -> int | None:
        """Return the image index under *pos* (widget coords), or None."""
        p = self.current_plan()
        if p is None:
            return None
        for i in range(p.image_count):
            if self._cell_screen_rect(p, i).contains(QPointF(pos.x(), pos.y())):
                return i
        return None

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            hit = self._hit_test(event.position())
            old = self.selected_index
            self.selected_index = hit
            self._drag_index = hit
            if old != hit:
                self.selection_changed.emit()
                self.update()
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event):
        if self._drag_index is not None:
            hit = self._hit_test(event.position())
            drop = hit if hit != self._drag_index else None
            if drop != self._drop_index:
                self._drop_index = drop
                self.update()
            self.setCursor(Qt.CursorShape.ClosedHandCursor)
            event.accept()
        else:
            super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):
        if self._drag_index is not None and event.button() == Qt.MouseButton.LeftButton:
            src, dst = self._drag_index, self._drop_index
            self._drag_index = None
            self._drop_index = None
            self.unsetCursor()
            if dst is not None and src != dst:
                self.swap_requested.emit(src, dst)
            self.update()
            event.accept()
        else:
            super().mouseReleaseEvent(event)

    def mouseDoubleClickEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            hit = self._hit_test(event.position())
            if hit is not None:
                self.crop_edit_requested.emit(hit)
                event.accept()
                return
        super().mouseDoubleClickEvent(event)


# === Design Panel ===

class _ColorButton(QPushButton):
    """Push button that shows and picks a hex color."""

    color_changed = Signal(str)

    def __init__(self, color: str, parent=None):
        super().__init__(parent)
        self._color = color
        self.clicked.connect(self._pick)
        self._refresh()

    def color(self) -> str:
        return self._color

    def set_color(self, color: str):
        self._color = color
        self._refresh()

    def _refresh(self):
        self.setText(self._color)
        self.setStyleSheet(f"background-color: {self._color};")

    def _pick(self):
        chosen = QColorDialog.getColor(_hex_qcolor(self._color), self, "Choose Color")
        if chosen.isValid():
            self.set_color(chosen.name())
            self.color_changed.emit(self._color)


class DesignPanel(QWidget):
    """Form for editing a DesignConfig. Emits the full config on every edit."""

    design_changed = Signal(object)  # DesignConfig

    def __init__(self, config: DesignConfig, parent=None):
        super().__init__(parent)
        self._updating = False
        layout = QVBoxLayout(self)

        # --- Background group ---
        bg_group = QGroupBox("Background")
        bg_form = QFormLayout(bg_group)

        self._theme_combo = QComboBox()
        self._theme_combo.addItem("Custom", None)
        for name in THEMES:
            self._theme_combo.addItem(name.capitalize(), name)
        self._theme_combo.activated.connect(self._on_theme)
        bg_form.addRow("Theme:", self._theme_combo)

        self._border_spin = QDoubleSpinBox()
        # plan() needs a positive cell width
        self._border_spin.setRange(0.0, BASE_WIDTH / 2 - 1)
        self._border_spin.setSingleStep(2.0)
        self._border_spin.setDecimals(0)
        self._border_spin.setSuffix(" px")
        bg_form.addRow("Border:", self._border_spin)

        self._bg_button = _ColorButton(config.background_color)
        bg_form.addRow("Color:", self._bg_button)

        self._pattern_combo = QComboBox()
        for name in PATTERNS:
            self._pattern_combo.addItem(name.capitalize(), name)
        bg_form.addRow("Pattern:", self._pattern_combo)

        self._spacing_slider = QSlider(Qt.Orientation.Horizontal)
        self._spacing_slider.setRange(*PATTERN_SCALE_RANGE)
        bg_form.addRow("Pattern spacing:", self._spacing_slider)

        layout.addWidget(bg_group)

        # --- Text group ---
        text_group = QGroupBox("Text")
        text_form = QFormLayout(text_group)

        self._text_edit = QLineEdit()
        self._text_edit.setMaxLength(MAX_TEXT_LENGTH)
        self._text_edit.setPlaceholderText("Message...")
        text_form.addRow("Text:", self._text_edit)

        self._font_combo = QComboBox()
        for label, family in FONT_FAMILIES:
            self._font_combo.addItem(label, family)
        text_form.addRow("Font:", self._font_combo)

        self._size_spin = QSpinBox()
        self._size_spin.setRange(*FONT_SIZE_RANGE)
        self._size_spin.setSuffix(" px")
        text_form.addRow("Size:", self._size_spin)

        self._text_color_button = _ColorButton(config.text.color)
        text_form.addRow("Color:", self._text_color_button)

        self._position_combo = QComboBox()
        for name in TEXT_POSITIONS:
            self._position_combo.addItem(name.capitalize(), name)
        text_form.addRow("Position:", self._position_combo)

        layout.addWidget(text_group)
        layout.addStretch()

        self.set_config(config)

        self._border_spin.valueChanged.connect(self._emit)
        self._bg_button.color_changed.connect(self._emit)
        self._pattern_combo.currentIndexChanged.connect(self._emit)
        self._spacing_slider.valueChanged.connect(self._emit)
        self._text_edit.textChanged.connect(self._emit)
        self._font_combo.currentIndexChanged.connect(self._emit)
        self._size_spin.valueChanged.connect(self._emit)
        self._text_color_button.color_changed.connect(self._emit)
        self._position_combo.currentIndexChanged.connect(self._emit)

    def set_config(self, config: DesignConfig):
        """Load *config* into the controls without emitting design_changed."""
        self._updating = True
        try:
            theme_index = self._theme_combo.findData(config.theme)
            self._theme_combo.setCurrentIndex(max(0, theme_index))
            self._border_spin.setValue(config.border_thickness)
            self._bg_button.set_color(config.background_color)
            self._pattern_combo.setCurrentIndex(self._pattern_combo.findData(config.pattern))
            self._spacing_slider.setValue(int(config.pattern_scale))
            self._spacing_slider.setEnabled(config.pattern != "none")
            self._text_edit.setText(config.text.content)
            font_index = self._font_combo.findData(config.text.font_family)
            if font_index < 0:
                self._font_combo.addItem(config.text.font_family, config.text.font_family)
                font_index = self._font_combo.count() - 1
            self._font_combo.setCurrentIndex(font_index)
            self._size_spin.setValue(int(config.text.font_size))
            self._text_color_button.set_color(config.text.color)
            self._position_combo.setCurrentIndex(
                self._position_combo.findData(config.text.position))
        finally:
            self._updating = False

    def result_config(self) -> DesignConfig:
        """Return a DesignConfig reflecting the panel's current values."""
        config = DesignConfig(
            border_thickness=self._border_spin.value(),
            background_color=self._bg_button.color(),
            pattern=self._pattern_combo.currentData(),
            pattern_scale=self._spacing_slider.value(),
            theme=self._theme_combo.currentData(),
        )
        config.text.content = self._text_edit.text()
        config.text.font_family = self._font_combo.currentData()
        config.text.font_size = self._size_spin.value()
        config.text.color = self._text_color_button.color()
        config.text.position = self._position_combo.currentData()
        return config

    def _on_theme(self, index: int):
        name = self._theme_combo.itemData(index)
        if name is None:
            return
        themed = apply_theme(self.result_config(), name)
        self.set_config(themed)
        self.design_changed.emit(themed)

    def _emit(self, *_):
        if self._updating:
            return
        self._spacing_slider.setEnabled(self._pattern_combo.currentData() != "none")
        config = self.result_config()
        # Any manual edit leaves the preset
        config.theme = None
        self._updating = True
        self._theme_combo.setCurrentIndex(0)
        self._updating = False
        self.design_changed.emit(config)


# === Crop Editor Dialog ===

_HANDLE_SIZE = 8  # pixels, half-width of the resize handle
_MIN_CROP = 10    # minimum crop side in image pixels


class _CropCanvas(QWidget):
    """Interactive canvas for positioning a square crop over an image."""

    crop_changed = Signal()

    def __init__(self, pixmap: QPixmap, crop_rect: QRect, parent=None):
        super().__init__(parent)
        self._pixmap = pixmap
        self._crop = QRect(crop_rect)
        self._drag_mode: str | None = None
        self._drag_start = QPointF()
        self._drag_start_crop = QRect()
        self.setMinimumSize(300, 300)
        self.setMouseTracking(True)

    def crop_rect(self) -> QRect:
        return QRect(self._crop)

    def set_crop(self, r: QRect):
        self._crop = QRect(r)
        self.update()
        self.crop_changed.emit()

    def _transform(self) -> tuple[float, float, float]:
        """Return (scale, offset_x, offset_y) to fit image into widget."""
        padding = 10
        w = max(1, self.width() - 2 * padding)
        h = max(1, self.height() - 2 * padding)
        s = min(w / max(1, self._pixmap.width()), h / max(1, self._pixmap.height()))
        ox = padding + (w - self._pixmap.width() * s) / 2
        oy = padding + (h - self._pixmap.height() * s) / 2
        return s, ox, oy

    def _crop_screen(self) -> QRectF:
        s, ox, oy = self._transform()
        return QRectF(ox + self._crop.x() * s, oy + self._crop.y() * s,
                      self._crop.width() * s, self._crop.height() * s)

    def paintEvent(self, event):
        p = QPainter(self)
        p.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        p.fillRect(self.rect(), QColor(60, 60, 60))

        s, ox, oy = self._transform()
        img_rect = QRectF(ox, oy, self._pixmap.width() * s, self._pixmap.height() * s)
        p.drawPixmap(img_rect.toRect(), self._pixmap)

        # Dim everything outside the crop
        crop = self._crop_screen()
        dim = QColor(0, 0, 0, 120)
        p.fillRect(QRectF(img_rect.x(), img_rect.y(),
                          img_rect.width(), crop.y() - img_rect.y()), dim)
        p.fillRect(QRectF(img_rect.x(), crop.bottom(),
                          img_rect.width(), img_rect.bottom() - crop.bottom()), dim)
        p.fillRect(QRectF(img_rect.x(), crop.y(),
                          crop.x() - img_rect.x(), crop.height()), dim)
        p.fillRect(QRectF(crop.right(), crop.y(),
                          img_rect.right() - crop.right(), crop.height()), dim)

        p.setPen(QPen(QColor(255, 255, 255), 2, Qt.PenStyle.DashLine))
        p.setBrush(Qt.BrushStyle.NoBrush)
        p.drawRect(crop)

        # Single corner handle; the crop stays square
        p.setPen(Qt.PenStyle.NoPen)
        p.setBrush(QColor(255, 255, 255))
        p.drawRect(QRectF(crop.right() - _HANDLE_SIZE / 2, crop.bottom() - _HANDLE_SIZE / 2,
                          _HANDLE_SIZE, _HANDLE_SIZE))
        p.end()

    def _hit(self, pos: QPointF) -> str | None:
        crop = self._crop_screen()
        if (abs(pos.x() - crop.right()) <= _HANDLE_SIZE
                and abs(pos.y() - crop.bottom()) <= _HANDLE_SIZE):
            return "resize"
        if crop.contains(pos):
            return "move"
        return None

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            mode = self._hit(event.position())
            if mode is not None:
                self._drag_mode = mode
                self._drag_start = event.position()
                self._drag_start_crop = QRect(self._crop)
                event.accept()
                return
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event):
        if self._drag_mode is None:
            mode = self._hit(event.position())
            if mode == "resize":
                self.setCursor(Qt.CursorShape.SizeFDiagCursor)
            elif mode == "move":
                self.setCursor(Qt.CursorShape.SizeAllCursor)
            else:
                self.unsetCursor()
            return

        s, _, _ = self._transform()
        if s <= 0:
            return
        dx = (event.position().x() - self._drag_start.x()) / s
        dy = (event.position().y() - self._drag_start.y()) / s
        r = QRect(self._drag_start_crop)
        iw, ih = self._pixmap.width(), self._pixmap.height()

        if self._drag_mode == "move":
            nx = max(0, min(int(r.x() + dx), iw - r.width()))
            ny = max(0, min(int(r.y() + dy), ih - r.height()))
            self._crop = QRect(nx, ny, r.width(), r.height())
        else:
            limit = min(iw - r.x(), ih - r.y())
            side = max(_MIN_CROP, min(int(r.width() + max(dx, dy)), limit))
            self._crop = QRect(r.x(), r.y(), side, side)

        self.update()
        self.crop_changed.emit()
        event.accept()

    def mouseReleaseEvent(self, event):
        if self._drag_mode is not None:
            self._drag_mode = None
            event.accept()
        else:
            super().mouseReleaseEvent(event)


class CropEditorDialog(QDialog):
    """Modal dialog for choosing the square crop of one photo."""

    def __init__(self, image_data: bytes, img_w: int, img_h: int,
                 current_crop: CropSpec | None = None, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Crop Photo")
        self._img_w = img_w
        self._img_h = img_h

        pix = QPixmap()
        pix.loadFromData(image_data)

        spec = current_crop or square_crop(img_w, img_h)
        init_rect = QRect(int(spec.x), int(spec.y), int(spec.width), int(spec.height))

        layout = QVBoxLayout(self)
        layout.addWidget(QLabel("Crop each photo to a square for the best layout."))

        self._canvas = _CropCanvas(pix, init_rect)
        layout.addWidget(self._canvas, 1)

        zoom_row = QHBoxLayout()
        zoom_row.addWidget(QLabel("Zoom"))
        self._zoom_slider = QSlider(Qt.Orientation.Horizontal)
        self._zoom_slider.setRange(int(MIN_ZOOM * 10), int(MAX_ZOOM * 10))
        self._zoom_slider.setValue(int(MIN_ZOOM * 10))
        self._zoom_slider.valueChanged.connect(self._on_zoom)
        zoom_row.addWidget(self._zoom_slider, 1)
        layout.addLayout(zoom_row)

        btn_row = QHBoxLayout()
        reset_btn = QPushButton("Reset")
        reset_btn.clicked.connect(self._reset_crop)
        btn_row.addWidget(reset_btn)
        btn_row.addStretch()
        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel
        )
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        btn_row.addWidget(buttons)
        layout.addLayout(btn_row)

        self.resize(600, 640)

    def _on_zoom(self, value: int):
        """Re-center a square of the new zoom on the current crop center."""
        r = self._canvas.crop_rect()
        center = ((r.x() + r.width() / 2) / self._img_w,
                  (r.y() + r.height() / 2) / self._img_h)
        spec = square_crop(self._img_w, self._img_h, value / 10, center)
        self._canvas.set_crop(QRect(int(spec.x), int(spec.y),
                                    int(spec.width), int(spec.height)))

    def _reset_crop(self):
        self._zoom_slider.blockSignals(True)
        self._zoom_slider.setValue(int(MIN_ZOOM * 10))
        self._zoom_slider.blockSignals(False)
        spec = square_crop(self._img_w, self._img_h)
        self._canvas.set_crop(QRect(int(spec.x), int(spec.y),
                                    int(spec.width), int(spec.height)))

    def result_crop(self) -> CropSpec:
        r = self._canvas.crop_rect()
        return CropSpec(r.x(), r.y(), r.width(), r.height())
