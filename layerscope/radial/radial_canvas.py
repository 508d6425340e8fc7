"""QPainter surface for the radial composition diagram.

Positions come from :class:`RadialLayoutEngine` in widget coordinates; the
canvas only adds a pan/zoom transform on top and forwards interaction to the
composition store.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Set, Tuple

from PySide6.QtCore import QPoint, QPointF, QRectF, Qt, Signal
from PySide6.QtGui import (
    QColor,
    QFont,
    QFontMetrics,
    QMouseEvent,
    QPainter,
    QPen,
    QWheelEvent,
)
from PySide6.QtWidgets import QWidget

from layerscope.model.composition import CompositionNode, CompositionType
from layerscope.model.tree_utils import format_percentage
from layerscope.radial.radial_layout import RadialConfig, RadialLayoutEngine, RadialLayoutNode
from layerscope.state.composition_store import CompositionStore

MIN_ZOOM = 0.1
MAX_ZOOM = 5.0
FIT_PADDING = 100.0


def clamp_zoom(value: float) -> float:
    return min(max(value, MIN_ZOOM), MAX_ZOOM)


def fit_transform(
    points: Iterable[Tuple[float, float]],
    width: float,
    height: float,
    padding: float = FIT_PADDING,
) -> Optional[Tuple[float, float, float]]:
    """Pan and zoom ``(x, y, scale)`` that frames ``points`` in the viewport.

    Never zooms in past 1x. Returns None when there is nothing to frame.
    """

    points = list(points)
    if not points or width <= 0 or height <= 0:
        return None
    min_x = min(x for x, _ in points)
    max_x = max(x for x, _ in points)
    min_y = min(y for _, y in points)
    max_y = max(y for _, y in points)

    content_width = max_x - min_x + padding * 2
    content_height = max_y - min_y + padding * 2
    scale = min(width / content_width, height / content_height, 1.0)

    center_x = (min_x + max_x) / 2
    center_y = (min_y + max_y) / 2
    return width / 2 - center_x * scale, height / 2 - center_y * scale, scale


class RadialCanvas(QWidget):
    """Radial diagram of the canvas-expanded part of the composition.

    Features:
    - Wheel zoom around the cursor, clamped to 0.1x-5x
    - Drag to pan (empty space or middle button)
    - Click selects and reveals in the outline, double-click expands
    - Per-type layer visibility
    """

    node_activated = Signal(object)

    NODE_COLORS = {
        CompositionType.PRODUCT: QColor("#3b9eff"),
        CompositionType.COMPONENT: QColor("#8b5cf6"),
        CompositionType.MATERIAL: QColor("#f59e0b"),
        CompositionType.CHEMICAL: QColor("#10b981"),
        CompositionType.ELEMENT: QColor("#ef4444"),
    }

    NODE_SIZES = {
        CompositionType.PRODUCT: 30,
        CompositionType.COMPONENT: 24,
        CompositionType.MATERIAL: 20,
        CompositionType.CHEMICAL: 16,
        CompositionType.ELEMENT: 12,
    }

    def __init__(
        self,
        store: CompositionStore,
        config: RadialConfig | None = None,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.StrongFocus)
        self.setMinimumSize(320, 240)

        self.store = store
        self._engine = RadialLayoutEngine(config)
        self._visible_layers: Set[CompositionType] = set(CompositionType)

        # View transform state
        self._pan_offset = QPointF(0, 0)
        self._zoom_level = 1.0

        # Interaction state
        self._dragging = False
        self._last_mouse_pos: Optional[QPoint] = None

        store.composition_changed.connect(self._on_composition_changed)
        store.canvas_expansion_changed.connect(self._refresh)
        store.selection_changed.connect(self._refresh)
        store.hover_changed.connect(self._refresh)

    # --- Public API ---

    @property
    def zoom_level(self) -> float:
        return self._zoom_level

    @property
    def pan_offset(self) -> QPointF:
        return QPointF(self._pan_offset)

    @property
    def visible_layers(self) -> frozenset:
        return frozenset(self._visible_layers)

    def layout_nodes(self) -> List[RadialLayoutNode]:
        """Current layout for the widget's size, all layers included."""

        return self._engine.layout(
            self.store.composition,
            self.store.canvas_expanded_paths,
            self.width(),
            self.height(),
        )

    def visible_nodes(self) -> List[RadialLayoutNode]:
        return [entry for entry in self.layout_nodes() if entry.node.type in self._visible_layers]

    def toggle_layer(self, layer: CompositionType) -> None:
        if layer in self._visible_layers:
            self._visible_layers.discard(layer)
        else:
            self._visible_layers.add(layer)
        self.update()

    def set_zoom(self, zoom: float, anchor: QPointF | None = None) -> None:
        """Zoom to ``zoom`` (clamped), keeping ``anchor`` fixed on screen."""

        old_zoom = self._zoom_level
        self._zoom_level = clamp_zoom(zoom)
        if anchor is not None:
            scale_change = self._zoom_level / old_zoom
            self._pan_offset = anchor - (anchor - self._pan_offset) * scale_change
        self.update()

    def pan_by(self, dx: float, dy: float) -> None:
        self._pan_offset += QPointF(dx, dy)
        self.update()

    def reset_view(self) -> None:
        """Reset pan and zoom to identity."""
        self._pan_offset = QPointF(0, 0)
        self._zoom_level = 1.0
        self.update()

    def fit_to_view(self) -> None:
        """Frame every visible node, never zooming in past 1x."""
        fitted = fit_transform(
            ((entry.x, entry.y) for entry in self.visible_nodes()),
            self.width(),
            self.height(),
        )
        if fitted is None:
            return
        x, y, scale = fitted
        self._pan_offset = QPointF(x, y)
        self._zoom_level = clamp_zoom(scale)
        self.update()

    def node_at(self, screen_pos: QPointF) -> Optional[RadialLayoutNode]:
        """Topmost visible node under a widget-space position."""

        scene_pos = self._screen_to_scene(screen_pos)
        for entry in reversed(self.visible_nodes()):
            radius = self.NODE_SIZES.get(entry.node.type, 16)
            dx = scene_pos.x() - entry.x
            dy = scene_pos.y() - entry.y
            if dx * dx + dy * dy <= radius * radius:
                return entry
        return None

    # --- Store reactions ---

    def _on_composition_changed(self, _root: Optional[CompositionNode]) -> None:
        self._engine.invalidate()
        self.reset_view()

    def _refresh(self, *_args) -> None:
        self.update()

    # --- Painting ---

    def paintEvent(self, event) -> None:
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)
        painter.setRenderHint(QPainter.TextAntialiasing)
        painter.fillRect(self.rect(), QColor(18, 20, 26))

        nodes = self.visible_nodes()
        if not nodes:
            self._draw_placeholder(painter)
            painter.end()
            return

        painter.translate(self._pan_offset)
        painter.scale(self._zoom_level, self._zoom_level)

        for entry in nodes:
            self._draw_connection(painter, entry)
        for entry in nodes:
            self._draw_node(painter, entry)
        painter.end()

    def _draw_placeholder(self, painter: QPainter) -> None:
        painter.setPen(QColor(150, 150, 150))
        font = QFont()
        font.setPointSize(11)
        painter.setFont(font)
        message = (
            "No visible layers. Toggle layers in the toolbar."
            if self.store.composition is not None
            else "No composition loaded."
        )
        painter.drawText(self.rect(), Qt.AlignCenter, message)

    def _draw_connection(self, painter: QPainter, entry: RadialLayoutNode) -> None:
        if entry.parent_x is None or entry.parent_y is None:
            return
        color = QColor(self.NODE_COLORS.get(entry.node.type, QColor(136, 136, 136)))
        color.setAlpha(110)
        pen = QPen(color)
        pen.setWidthF(1.0)
        painter.setPen(pen)
        painter.drawLine(QPointF(entry.parent_x, entry.parent_y), QPointF(entry.x, entry.y))

    def _draw_node(self, painter: QPainter, entry: RadialLayoutNode) -> None:
        node = entry.node
        color = self.NODE_COLORS.get(node.type, QColor(136, 136, 136))
        size = self.NODE_SIZES.get(node.type, 16)
        center = QPointF(entry.x, entry.y)
        selected = self.store.selected_node is node
        hovered = self.store.hovered_node is node

        if selected:
            glow = QPen(color)
            glow.setWidthF(2.0)
            painter.setPen(glow)
            painter.setBrush(Qt.NoBrush)
            painter.setOpacity(0.4)
            painter.drawEllipse(center, size + 8, size + 8)
            painter.setOpacity(1.0)

        fill = color.lighter(130) if hovered else color
        painter.setPen(QPen(color.darker(150), 2 if selected else 1))
        painter.setBrush(fill)
        painter.drawEllipse(center, size, size)

        if entry.has_children:
            # Expand affordance
            painter.setPen(QColor(255, 255, 255))
            marker = "−" if entry.is_expanded else "+"
            painter.drawText(QRectF(center.x() - size, center.y() - size, size * 2, size * 2), Qt.AlignCenter, marker)

        font = QFont()
        font.setPointSize(8)
        painter.setFont(font)
        metrics = QFontMetrics(font)
        label = metrics.elidedText(node.name, Qt.ElideMiddle, 140)
        label_rect = QRectF(center.x() - 80, center.y() + size + 4, 160, metrics.height())
        painter.setPen(QColor(220, 224, 230))
        painter.drawText(label_rect, Qt.AlignHCenter | Qt.AlignTop, label)
        percent_rect = label_rect.translated(0, metrics.height())
        painter.setPen(QColor(140, 146, 156))
        painter.drawText(percent_rect, Qt.AlignHCenter | Qt.AlignTop, format_percentage(node.percentage))

    # --- Mouse interaction ---

    def mousePressEvent(self, event: QMouseEvent) -> None:
        position = event.position()
        if event.button() == Qt.MiddleButton:
            self._start_drag(position)
            return
        if event.button() != Qt.LeftButton:
            return
        entry = self.node_at(position)
        if entry is None:
            self._start_drag(position)
            return
        self.store.select_node(entry.node)
        self.store.expand_to_node(entry.id)
        self.node_activated.emit(entry.node)

    def mouseDoubleClickEvent(self, event: QMouseEvent) -> None:
        if event.button() != Qt.LeftButton:
            return
        entry = self.node_at(event.position())
        if entry is not None and entry.has_children:
            self.store.toggle_canvas_path(entry.path)

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        if event.button() in (Qt.LeftButton, Qt.MiddleButton):
            self._dragging = False
            self._last_mouse_pos = None

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        if self._dragging and self._last_mouse_pos is not None:
            delta = event.position().toPoint() - self._last_mouse_pos
            self._last_mouse_pos = event.position().toPoint()
            self.pan_by(delta.x(), delta.y())
            return
        entry = self.node_at(event.position())
        self.store.set_hovered_node(entry.node if entry else None)

    def leaveEvent(self, event) -> None:
        self.store.set_hovered_node(None)
        super().leaveEvent(event)

    def wheelEvent(self, event: QWheelEvent) -> None:
        factor = 1.1 if event.angleDelta().y() > 0 else 0.9
        self.set_zoom(self._zoom_level * factor, event.position())

    def resizeEvent(self, event) -> None:
        super().resizeEvent(event)
        self.update()

    def _start_drag(self, position: QPointF) -> None:
        self._dragging = True
        self._last_mouse_pos = position.toPoint()

    def _screen_to_scene(self, screen_pos: QPointF) -> QPointF:
        return QPointF(
            (screen_pos.x() - self._pan_offset.x()) / self._zoom_level,
            (screen_pos.y() - self._pan_offset.y()) / self._zoom_level,
        )
