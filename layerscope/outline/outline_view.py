"""Virtualized outline widget.

Only the rows inside the current scroll window are painted; the scroll bar is
sized for the whole flattened list so native scrolling behaves as if every
row existed.
"""

from __future__ import annotations

from typing import List, Optional

from PySide6.QtCore import QPointF, QRectF, Qt, Signal
from PySide6.QtGui import QColor, QFont, QFontMetrics, QKeyEvent, QMouseEvent, QPainter
from PySide6.QtWidgets import QAbstractScrollArea, QWidget

from layerscope.model.composition import CompositionNode, CompositionType, ConfidenceLevel
from layerscope.model.tree_utils import format_percentage
from layerscope.outline.flatten import (
    FlattenedNode,
    OutlineConfig,
    VirtualWindow,
    compute_window,
    flatten_tree,
    index_of,
    scroll_to_reveal,
)
from layerscope.outline.navigator import KeyboardNavigator, navigation_key_from_qt
from layerscope.state.composition_store import CompositionStore

TYPE_GLYPHS = {
    CompositionType.PRODUCT: "◆",
    CompositionType.COMPONENT: "◇",
    CompositionType.MATERIAL: "○",
    CompositionType.CHEMICAL: "⬡",
    CompositionType.ELEMENT: "●",
}

TYPE_COLORS = {
    CompositionType.PRODUCT: QColor("#3b9eff"),
    CompositionType.COMPONENT: QColor("#8b5cf6"),
    CompositionType.MATERIAL: QColor("#f59e0b"),
    CompositionType.CHEMICAL: QColor("#10b981"),
    CompositionType.ELEMENT: QColor("#ef4444"),
}

CONFIDENCE_COLORS = {
    ConfidenceLevel.VERIFIED: QColor("#22c55e"),
    ConfidenceLevel.ESTIMATED: QColor("#eab308"),
    ConfidenceLevel.SPECULATIVE: QColor("#ef4444"),
}

CHEVRON_WIDTH = 16


class OutlineView(QAbstractScrollArea):
    """Scrollable outline of the tree-expanded part of the composition.

    Signals:
        node_activated: Emitted with the node on double-click
    """

    node_activated = Signal(object)

    def __init__(
        self,
        store: CompositionStore,
        config: OutlineConfig | None = None,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.store = store
        self.config = config or OutlineConfig()
        self.navigator = KeyboardNavigator(store)
        self._flat: Optional[List[FlattenedNode]] = None
        self._pending_reveal = False

        self.setFocusPolicy(Qt.StrongFocus)
        self.viewport().setMouseTracking(True)
        self.verticalScrollBar().setSingleStep(self.config.item_height)
        self.verticalScrollBar().valueChanged.connect(self._repaint)

        store.composition_changed.connect(self._on_composition_changed)
        store.tree_expansion_changed.connect(self._on_expansion_changed)
        store.selection_changed.connect(self._on_selection_changed)
        store.hover_changed.connect(self._repaint)

    # --- Rows and windowing ---

    def visible_rows(self) -> List[FlattenedNode]:
        if self._flat is None:
            self._flat = flatten_tree(self.store.composition, self.store.tree_expanded_ids)
        return self._flat

    @property
    def scroll_offset(self) -> int:
        return self.verticalScrollBar().value()

    def current_window(self) -> VirtualWindow:
        return compute_window(
            len(self.visible_rows()),
            self.scroll_offset,
            self.viewport().height(),
            self.config.item_height,
            self.config.overscan,
        )

    def row_at(self, y: float) -> Optional[int]:
        """Index of the row under viewport coordinate ``y``."""

        index = int((y + self.scroll_offset) // self.config.item_height)
        if 0 <= index < len(self.visible_rows()):
            return index
        return None

    def reveal_node(self, node_id: str) -> bool:
        """Scroll the least amount needed to bring ``node_id``'s row into view."""

        index = index_of(self.visible_rows(), node_id)
        if index == -1:
            return False
        target = scroll_to_reveal(
            index,
            self.scroll_offset,
            self.viewport().height(),
            self.config.item_height,
        )
        self.verticalScrollBar().setValue(int(target))
        return True

    def _update_scroll_range(self) -> None:
        total = len(self.visible_rows()) * self.config.item_height
        scroll_bar = self.verticalScrollBar()
        scroll_bar.setPageStep(self.viewport().height())
        scroll_bar.setRange(0, max(0, total - self.viewport().height()))

    # --- Store reactions ---

    def _on_composition_changed(self, _root: Optional[CompositionNode]) -> None:
        self._flat = None
        self._pending_reveal = False
        self._update_scroll_range()
        self.verticalScrollBar().setValue(0)
        self.viewport().update()

    def _on_expansion_changed(self, _expanded: frozenset) -> None:
        self._flat = None
        self._update_scroll_range()
        if self._pending_reveal:
            self._on_selection_changed(self.store.selected_node)
        self.viewport().update()

    def _on_selection_changed(self, node: Optional[CompositionNode]) -> None:
        self._pending_reveal = False
        if node is not None and not self.reveal_node(node.id):
            # Revealed once its ancestors are expanded
            self._pending_reveal = True
        self.viewport().update()

    # --- Painting ---

    def _repaint(self, *_args) -> None:
        self.viewport().update()

    def paintEvent(self, event) -> None:
        painter = QPainter(self.viewport())
        painter.setRenderHint(QPainter.Antialiasing)
        painter.setRenderHint(QPainter.TextAntialiasing)
        painter.fillRect(self.viewport().rect(), QColor(22, 24, 30))

        rows = self.visible_rows()
        window = self.current_window()
        font = QFont()
        font.setPointSize(9)
        painter.setFont(font)
        metrics = QFontMetrics(font)
        for index in window.indices():
            top = index * self.config.item_height - self.scroll_offset
            self._draw_row(painter, metrics, rows[index], top)
        painter.end()

    def _draw_row(self, painter: QPainter, metrics: QFontMetrics, row: FlattenedNode, top: float) -> None:
        height = self.config.item_height
        width = self.viewport().width()
        rect = QRectF(0, top, width, height)
        node = row.node

        if self.store.selected_node is node:
            painter.fillRect(rect, QColor(59, 158, 255, 60))
        elif self.store.hovered_node is node:
            painter.fillRect(rect, QColor(255, 255, 255, 18))

        x = 4 + row.depth * self.config.indent
        painter.setPen(QColor(150, 156, 166))
        if row.has_children:
            chevron = "▾" if row.is_expanded else "▸"
            painter.drawText(QRectF(x, top, CHEVRON_WIDTH, height), Qt.AlignCenter, chevron)
        x += CHEVRON_WIDTH

        painter.setPen(TYPE_COLORS.get(node.type, QColor(136, 136, 136)))
        painter.drawText(QRectF(x, top, 16, height), Qt.AlignCenter, TYPE_GLYPHS.get(node.type, "○"))
        x += 20

        percent = format_percentage(node.percentage)
        percent_width = metrics.horizontalAdvance(percent) + 8
        dot_width = 14
        name_width = max(0, int(width - x - percent_width - dot_width - 4))
        painter.setPen(QColor(220, 224, 230))
        painter.drawText(
            QRectF(x, top, name_width, height),
            Qt.AlignVCenter | Qt.AlignLeft,
            metrics.elidedText(node.name, Qt.ElideRight, name_width),
        )

        painter.setPen(QColor(140, 146, 156))
        percent_rect = QRectF(width - percent_width - dot_width, top, percent_width, height)
        painter.drawText(percent_rect, Qt.AlignVCenter | Qt.AlignRight, percent)

        color = CONFIDENCE_COLORS.get(node.confidence)
        if color is not None:
            painter.setPen(Qt.NoPen)
            painter.setBrush(color)
            painter.drawEllipse(QPointF(width - dot_width / 2, top + height / 2), 3, 3)

    # --- Interaction ---

    def _chevron_hit(self, row: FlattenedNode, x: float) -> bool:
        left = 4 + row.depth * self.config.indent
        return row.has_children and left <= x < left + CHEVRON_WIDTH

    def mousePressEvent(self, event: QMouseEvent) -> None:
        if event.button() != Qt.LeftButton:
            super().mousePressEvent(event)
            return
        index = self.row_at(event.position().y())
        if index is None:
            return
        row = self.visible_rows()[index]
        if self._chevron_hit(row, event.position().x()):
            self.store.toggle_tree_node(row.node.id)
            return
        self.store.select_node(row.node)

    def mouseDoubleClickEvent(self, event: QMouseEvent) -> None:
        if event.button() != Qt.LeftButton:
            return
        index = self.row_at(event.position().y())
        if index is None:
            return
        row = self.visible_rows()[index]
        if self._chevron_hit(row, event.position().x()):
            return
        self.store.set_focused_node(row.node.id)
        if row.has_children:
            self.store.toggle_node_explosion(row.node.id)
        self.node_activated.emit(row.node)

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        index = self.row_at(event.position().y())
        self.store.set_hovered_node(self.visible_rows()[index].node if index is not None else None)

    def leaveEvent(self, event) -> None:
        self.store.set_hovered_node(None)
        super().leaveEvent(event)

    def keyPressEvent(self, event: QKeyEvent) -> None:
        key = navigation_key_from_qt(event.key())
        if key is not None and self.navigator.handle_key(key):
            event.accept()
            return
        # Unhandled keys propagate to the window's shortcuts
        event.ignore()

    def resizeEvent(self, event) -> None:
        super().resizeEvent(event)
        self._update_scroll_range()
