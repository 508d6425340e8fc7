"""Main window wiring the outline, radial and exploded views to one store."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PySide6.QtCore import QPointF, Qt
from PySide6.QtGui import QAction, QColor, QKeyEvent, QPainter, QVector3D
from PySide6.QtWidgets import (
    QAbstractSpinBox,
    QApplication,
    QDockWidget,
    QFileDialog,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QPlainTextEdit,
    QSpinBox,
    QTextEdit,
    QToolBar,
    QWidget,
)

from layerscope.core.commands import CommandRegistry, register_viewer_commands, shortcut_from_qt
from layerscope.core.config import ConfigManager
from layerscope.model.composition import CompositionFormatError, CompositionNode, CompositionType, load_composition
from layerscope.model.tree_utils import format_percentage
from layerscope.outline.flatten import OutlineConfig
from layerscope.outline.outline_view import OutlineView
from layerscope.radial.radial_canvas import RadialCanvas
from layerscope.radial.radial_layout import RadialConfig
from layerscope.state.composition_store import CompositionStore, StoreConfig
from layerscope.visual3d.animation import AnimationConfig
from layerscope.visual3d.exploded_layout import ExplodedConfig
from layerscope.visual3d.exploded_scene import ExplodedScene

logger = logging.getLogger(__name__)

TEXT_INPUT_WIDGETS = (QLineEdit, QTextEdit, QPlainTextEdit, QAbstractSpinBox)


def text_input_has_focus() -> bool:
    return isinstance(QApplication.focusWidget(), TEXT_INPUT_WIDGETS)


class ScenePreview(QWidget):
    """Orthographic side view of the exploded scene (x right, y and z up)."""

    PIXELS_PER_UNIT = 60.0

    def __init__(self, scene: ExplodedScene, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.scene = scene
        self.setMinimumSize(240, 200)
        self._center = QVector3D(0, 0, 0)
        scene.frame_advanced.connect(self.update)
        scene.layout_changed.connect(self.update)
        scene.focus_target.connect(self._on_focus_target)

    def _on_focus_target(self, _node_id: str, position: QVector3D) -> None:
        self._center = QVector3D(position)
        self.update()

    def _project(self, position: QVector3D) -> QPointF:
        relative = position - self._center
        return QPointF(
            self.width() / 2 + relative.x() * self.PIXELS_PER_UNIT,
            self.height() / 2 - (relative.y() + relative.z() * 0.5) * self.PIXELS_PER_UNIT,
        )

    def paintEvent(self, event) -> None:
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)
        painter.fillRect(self.rect(), QColor(12, 14, 18))
        positions = self.scene.world_positions()
        for node_id in self.scene.node_ids():
            placement = self.scene.placement(node_id)
            if placement.parent_id is not None and placement.parent_id in positions:
                painter.setPen(QColor(80, 86, 96))
                painter.drawLine(self._project(positions[placement.parent_id]), self._project(positions[node_id]))
        for node_id in self.scene.node_ids():
            placement = self.scene.placement(node_id)
            radius = placement.size * (self.scene.scale(node_id) or 1.0) * self.PIXELS_PER_UNIT
            painter.setPen(Qt.NoPen)
            painter.setBrush(QColor(placement.color))
            painter.drawEllipse(self._project(positions[node_id]), radius, radius)
        painter.end()


class ExplorerWindow(QMainWindow):
    """Three synchronized views of one composition."""

    def __init__(self, config: ConfigManager, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.config = config
        self.setWindowTitle("Layerscope")
        self.resize(1280, 820)

        focus_settings = config.section("focus")
        store_settings = {**config.section("scene"), **focus_settings}
        self.store = CompositionStore(StoreConfig.from_settings(store_settings), self)
        self.scene = ExplodedScene(
            self.store,
            ExplodedConfig.from_settings(config.section("exploded")),
            AnimationConfig.from_settings(config.section("animation")),
            self,
        )
        self.commands = CommandRegistry()
        register_viewer_commands(self.commands, self.store)

        self.canvas = RadialCanvas(self.store, RadialConfig.from_settings(config.section("radial")), self)
        self.setCentralWidget(self.canvas)

        self.outline = OutlineView(self.store, OutlineConfig.from_settings(config.section("outline")), self)
        outline_dock = QDockWidget("Outline", self)
        outline_dock.setObjectName("outlineDock")
        outline_dock.setWidget(self.outline)
        self.addDockWidget(Qt.LeftDockWidgetArea, outline_dock)

        self.preview = ScenePreview(self.scene, self)
        scene_dock = QDockWidget("Exploded view", self)
        scene_dock.setObjectName("sceneDock")
        scene_dock.setWidget(self.preview)
        self.addDockWidget(Qt.RightDockWidgetArea, scene_dock)

        self._build_toolbar()
        self.status_label = QLabel(self)
        self.statusBar().addPermanentWidget(self.status_label)

        self.store.composition_changed.connect(self._update_status)
        self.store.tree_expansion_changed.connect(self._update_status)
        self.store.canvas_expansion_changed.connect(self._update_status)
        self.store.node_explosion_changed.connect(self._update_status)
        self.store.selection_changed.connect(self._on_selection_changed)
        self.store.exploded_changed.connect(self._sync_explode_action)
        self.store.depth_level_changed.connect(self._sync_depth_spin)
        self.scene.focus_target.connect(self._on_focus_target)
        self._update_status()

    # --- Chrome ---

    def _build_toolbar(self) -> None:
        toolbar = QToolBar("View", self)
        toolbar.setObjectName("viewToolbar")
        self.addToolBar(toolbar)

        open_action = QAction("Open…", self)
        open_action.triggered.connect(self._prompt_open)
        toolbar.addAction(open_action)
        toolbar.addSeparator()

        fit_action = QAction("Fit", self)
        fit_action.triggered.connect(self.canvas.fit_to_view)
        toolbar.addAction(fit_action)
        reset_action = QAction("Reset view", self)
        reset_action.triggered.connect(self.canvas.reset_view)
        toolbar.addAction(reset_action)

        self.explode_action = QAction("Explode", self)
        self.explode_action.setCheckable(True)
        self.explode_action.toggled.connect(self.store.set_exploded)
        toolbar.addAction(self.explode_action)

        self.depth_spin = QSpinBox(self)
        self.depth_spin.setPrefix("Depth ")
        self.depth_spin.setRange(1, self.store.max_depth)
        self.depth_spin.setValue(self.store.depth_level)
        self.depth_spin.valueChanged.connect(self.store.set_depth_level)
        toolbar.addWidget(self.depth_spin)
        toolbar.addSeparator()

        for layer in CompositionType:
            action = QAction(layer.value.title(), self)
            action.setCheckable(True)
            action.setChecked(True)
            action.toggled.connect(lambda _checked, layer=layer: self.canvas.toggle_layer(layer))
            toolbar.addAction(action)
        toolbar.addSeparator()

        for command_id in ("outline.expand_all", "outline.collapse_all"):
            command = self.commands.get(command_id)
            action = QAction(command.label, self)
            action.triggered.connect(lambda _checked=False, command=command: self.commands.execute(command))
            toolbar.addAction(action)

        self.search_field = QLineEdit(self)
        self.search_field.setPlaceholderText("Find node by name")
        self.search_field.setClearButtonEnabled(True)
        self.search_field.returnPressed.connect(self._on_search)
        toolbar.addWidget(self.search_field)

    def _sync_explode_action(self, exploded: bool) -> None:
        if self.explode_action.isChecked() != exploded:
            self.explode_action.setChecked(exploded)

    def _sync_depth_spin(self, level: int) -> None:
        if self.depth_spin.value() != level:
            self.depth_spin.setValue(level)

    def _update_status(self, *_args) -> None:
        counts = self.store.summary()
        self.status_label.setText(
            f"{counts['nodes']} nodes · depth {counts['max_depth']} · "
            f"outline {counts['tree_expanded']} · radial {counts['canvas_expanded']} · "
            f"exploded {counts['exploded']}"
        )

    def _on_selection_changed(self, node: Optional[CompositionNode]) -> None:
        if node is None:
            self.statusBar().clearMessage()
            return
        self.statusBar().showMessage(f"{node.name} ({node.type.value}, {format_percentage(node.percentage)})")

    def _on_focus_target(self, node_id: str, position: QVector3D) -> None:
        node = self.store.node_by_id(node_id)
        name = node.name if node else node_id
        self.statusBar().showMessage(
            f"Focus {name} at ({position.x():.2f}, {position.y():.2f}, {position.z():.2f})", 3000
        )

    def _on_search(self) -> None:
        text = self.search_field.text()
        if not text.strip():
            return
        if not self.store.focus_node_by_name(text):
            self.statusBar().showMessage(f"No node named {text.strip()!r}", 3000)

    # --- Loading ---

    def _prompt_open(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Open composition", "", "Composition (*.json)")
        if path:
            self.open_composition(path)

    def open_composition(self, path: str | Path) -> bool:
        """Load ``path`` into the store, reporting unreadable files to the user."""

        try:
            root = load_composition(path)
        except (CompositionFormatError, OSError) as exc:
            logger.warning("Could not load composition %s: %s", path, exc)
            QMessageBox.warning(self, "Cannot open composition", str(exc))
            return False
        self.store.set_composition(root)
        self.setWindowTitle(f"Layerscope - {root.name}")
        return True

    # --- Keyboard shortcuts ---

    def keyPressEvent(self, event: QKeyEvent) -> None:
        if event.modifiers() & (Qt.ControlModifier | Qt.AltModifier | Qt.MetaModifier):
            super().keyPressEvent(event)
            return
        handled = self.commands.handle_shortcut(
            shortcut_from_qt(event.key()),
            text_input_focused=text_input_has_focus(),
        )
        if handled:
            event.accept()
            return
        super().keyPressEvent(event)
