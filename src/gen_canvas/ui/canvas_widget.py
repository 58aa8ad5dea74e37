"""
Canvas Widget - Qt adapter for the canvas interaction engine.

This module provides the widget that displays a CanvasSession and feeds
it input. Qt mouse, touch, wheel and key events are translated into the
engine's PointerEvent model; all gesture decisions are made by the
engine. Painting reads the session's read-only state and the active
StyleContext.
"""

from __future__ import annotations

import logging

from PIL import Image
from PySide6.QtCore import QEvent, QPointF, QRectF, Qt, Signal
from PySide6.QtGui import (
    QBrush,
    QColor,
    QFont,
    QImage,
    QKeyEvent,
    QMouseEvent,
    QPainter,
    QPainterPath,
    QPaintEvent,
    QPen,
    QResizeEvent,
    QTouchEvent,
    QWheelEvent,
)
from PySide6.QtWidgets import QMenu, QWidget

from gen_canvas.core.drag_state import DragMode
from gen_canvas.core.errors import DegenerateGeometry
from gen_canvas.core.geometry import CanvasTransform, Point2D, Rect, Size2D
from gen_canvas.core.graph import Group, Node
from gen_canvas.core.grouping import ToolbarAction, ToolbarPlacement
from gen_canvas.core.interaction import (
    Modifiers,
    PointerButton,
    PointerDevice,
    PointerEvent,
    PointerPhase,
)
from gen_canvas.core.minimap import MinimapLayout
from gen_canvas.core.node_types import NODE_KINDS, kind_spec
from gen_canvas.core.session import CanvasSession
from gen_canvas.ui.style import CATEGORY_COLORS, DARK, StyleContext


logger = logging.getLogger(__name__)


_BUTTONS = {
    Qt.MouseButton.LeftButton: PointerButton.PRIMARY,
    Qt.MouseButton.MiddleButton: PointerButton.MIDDLE,
    Qt.MouseButton.RightButton: PointerButton.SECONDARY,
}

_KEYS = {
    Qt.Key.Key_Escape: "escape",
    Qt.Key.Key_Delete: "delete",
    Qt.Key.Key_Backspace: "backspace",
    Qt.Key.Key_G: "g",
    Qt.Key.Key_F: "f",
    Qt.Key.Key_C: "c",
    Qt.Key.Key_V: "v",
    Qt.Key.Key_Up: "arrowup",
    Qt.Key.Key_Down: "arrowdown",
    Qt.Key.Key_Left: "arrowleft",
    Qt.Key.Key_Right: "arrowright",
}


def pil_to_qimage(image: Image.Image) -> QImage:
    """Convert a PIL image to a QImage that owns its pixel data."""
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    data = image.tobytes("raw", "RGBA")
    qimg = QImage(data, image.width, image.height, QImage.Format.Format_RGBA8888)
    return qimg.copy()


class CanvasWidget(QWidget):
    """
    Widget that renders a CanvasSession and forwards input to it.

    Signals:
        quick_add_shown: Emitted when the quick-add menu opens (screen x, y)
        status_message: Short human-readable feedback for the status bar
    """

    quick_add_shown = Signal(float, float)
    status_message = Signal(str)

    NODE_HEADER_HEIGHT = 28
    ANCHOR_RADIUS = 6
    GRID_SIZE = 20
    MINIMAP_MARGIN = 16
    TOOLBAR_WIDTH = 110
    TOOLBAR_HEIGHT = 32

    def __init__(self, session: CanvasSession, parent: QWidget | None = None):
        super().__init__(parent)

        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setAttribute(Qt.WidgetAttribute.WA_AcceptTouchEvents)

        self._session = session
        self._style: StyleContext = DARK
        self._space_down = False
        self._toolbar_rect: QRectF | None = None

        # Minimap drag state
        self._minimap_drag: tuple[QPointF, CanvasTransform, MinimapLayout] | None = None

        self._title_font = QFont("Inter", 11, QFont.Weight.Bold)
        self._toolbar_font = QFont("Inter", 10)

        session.add_listener(self._on_session_changed)
        self.setMinimumSize(400, 300)

    # --- Public API ---

    @property
    def session(self) -> CanvasSession:
        return self._session

    def set_style(self, style: StyleContext) -> None:
        """Switch the theme used for painting."""
        self._style = style
        self.update()

    def detach(self) -> None:
        """Stop listening to the session (called when the widget goes away)."""
        self._session.remove_listener(self._on_session_changed)

    def _on_session_changed(self, session: CanvasSession) -> None:
        self.update()

    # --- Event translation ---

    def _modifiers(self, event) -> Modifiers:
        qt_mods = event.modifiers()
        mods = Modifiers.NONE
        if qt_mods & Qt.KeyboardModifier.ShiftModifier:
            mods |= Modifiers.SHIFT
        if qt_mods & Qt.KeyboardModifier.ControlModifier:
            mods |= Modifiers.CTRL
        if qt_mods & Qt.KeyboardModifier.AltModifier:
            mods |= Modifiers.ALT
        if self._space_down:
            mods |= Modifiers.SPACE
        return mods

    def _pointer(
        self,
        phase: PointerPhase,
        pos: QPointF,
        event,
        device: PointerDevice = PointerDevice.MOUSE,
        button: PointerButton = PointerButton.PRIMARY,
        buttons_down: bool = True,
    ) -> bool:
        outcome = self._session.handle_pointer(PointerEvent(
            phase=phase,
            position=Point2D(pos.x(), pos.y()),
            device=device,
            button=button,
            buttons_down=buttons_down,
            modifiers=self._modifiers(event),
        ))
        if outcome.prevent_default:
            event.accept()
        return outcome.handled

    # --- Mouse events ---

    def mousePressEvent(self, event: QMouseEvent) -> None:
        """Handle mouse press."""
        pos = event.position()

        if event.button() == Qt.MouseButton.LeftButton:
            if self._toolbar_rect is not None and self._toolbar_rect.contains(pos):
                self._trigger_toolbar()
                return
            if self._minimap_press(pos):
                return

        button = _BUTTONS.get(event.button(), PointerButton.NONE)
        if button is PointerButton.SECONDARY:
            return
        self._pointer(PointerPhase.DOWN, pos, event, button=button)

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        """Handle mouse move."""
        pos = event.position()
        if self._minimap_drag is not None:
            self._minimap_move(pos)
            return

        buttons_down = event.buttons() != Qt.MouseButton.NoButton
        self._pointer(PointerPhase.MOVE, pos, event, buttons_down=buttons_down)
        self._update_cursor()

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        """Handle mouse release."""
        pos = event.position()
        if self._minimap_drag is not None:
            self._minimap_drag = None
            return

        button = _BUTTONS.get(event.button(), PointerButton.NONE)
        self._pointer(PointerPhase.UP, pos, event, button=button, buttons_down=False)
        self._update_cursor()
        self._maybe_show_quick_add()

    def mouseDoubleClickEvent(self, event: QMouseEvent) -> None:
        """Double-clicking a node frames it."""
        target = self._session.interaction.hit_test(
            Point2D(event.position().x(), event.position().y())
        )
        if target.node_id is not None:
            self._session.select_nodes([target.node_id])
            self._session.focus_selection()

    def leaveEvent(self, event: QEvent) -> None:
        self._minimap_drag = None
        self._session.handle_pointer(PointerEvent(PointerPhase.LEAVE, Point2D(), buttons_down=False))
        super().leaveEvent(event)

    def wheelEvent(self, event: QWheelEvent) -> None:
        """Handle mouse wheel for zooming."""
        pos = event.position()
        outcome = self._session.wheel(Point2D(pos.x(), pos.y()), -event.angleDelta().y())
        if outcome.prevent_default:
            event.accept()

    # --- Touch events ---

    def event(self, event: QEvent) -> bool:
        if event.type() in (
            QEvent.Type.TouchBegin,
            QEvent.Type.TouchUpdate,
            QEvent.Type.TouchEnd,
            QEvent.Type.TouchCancel,
        ):
            self._touch_event(event)
            return True
        return super().event(event)

    def _touch_event(self, event: QTouchEvent) -> None:
        points = event.points()
        kind = event.type()
        session = self._session

        if kind == QEvent.Type.TouchCancel:
            session.pinch_end()
            session.handle_pointer(PointerEvent(
                PointerPhase.CANCEL, Point2D(), device=PointerDevice.TOUCH, buttons_down=False,
            ))
            return

        if len(points) >= 2:
            a = points[0].position()
            b = points[1].position()
            center = Point2D((a.x() + b.x()) / 2, (a.y() + b.y()) / 2)
            distance = Point2D(a.x(), a.y()).distance_to(Point2D(b.x(), b.y()))
            if kind == QEvent.Type.TouchEnd:
                session.pinch_end()
            elif not session.interaction.is_pinching:
                session.pinch_begin(center, distance)
            else:
                session.pinch_update(distance)
            event.accept()
            return

        if session.interaction.is_pinching:
            # One finger lifted out of a pinch; wait for a fresh touch
            session.pinch_end()
            return
        if not points:
            return

        pos = points[0].position()
        if kind == QEvent.Type.TouchBegin:
            if self._toolbar_rect is not None and self._toolbar_rect.contains(pos):
                self._trigger_toolbar()
                return
            if self._minimap_press(pos):
                return
            phase = PointerPhase.DOWN
        elif kind == QEvent.Type.TouchEnd:
            if self._minimap_drag is not None:
                self._minimap_drag = None
                return
            phase = PointerPhase.UP
        else:
            if self._minimap_drag is not None:
                self._minimap_move(pos)
                return
            phase = PointerPhase.MOVE

        self._pointer(
            phase, pos, event,
            device=PointerDevice.TOUCH,
            buttons_down=phase is not PointerPhase.UP,
        )
        if phase is PointerPhase.UP:
            self._maybe_show_quick_add()

    # --- Keyboard ---

    def keyPressEvent(self, event: QKeyEvent) -> None:
        """Handle key press."""
        if event.key() == Qt.Key.Key_Space and not event.isAutoRepeat():
            self._space_down = True
            self._update_cursor()
            return
        key = _KEYS.get(event.key())
        if key is not None and self._session.key_press(key, self._modifiers(event)):
            event.accept()
            return
        super().keyPressEvent(event)

    def keyReleaseEvent(self, event: QKeyEvent) -> None:
        if event.key() == Qt.Key.Key_Space and not event.isAutoRepeat():
            self._space_down = False
            self._update_cursor()
            return
        super().keyReleaseEvent(event)

    def resizeEvent(self, event: QResizeEvent) -> None:
        self._session.set_viewport(Size2D(self.width(), self.height()))
        super().resizeEvent(event)

    def _update_cursor(self) -> None:
        mode = self._session.drag_state.mode
        if mode is DragMode.PAN:
            self.setCursor(Qt.CursorShape.ClosedHandCursor)
        elif self._space_down:
            self.setCursor(Qt.CursorShape.OpenHandCursor)
        elif mode is DragMode.CONNECT:
            self.setCursor(Qt.CursorShape.CrossCursor)
        elif mode is DragMode.RESIZE_GROUP:
            self.setCursor(Qt.CursorShape.SizeHorCursor)
        else:
            self.setCursor(Qt.CursorShape.ArrowCursor)

    # --- Overlays: toolbar, quick-add, minimap ---

    def _trigger_toolbar(self) -> None:
        placement = self._session.toolbar()
        if placement is None:
            return
        if placement.action is ToolbarAction.UNGROUP:
            self._session.ungroup(placement.group_id)
            self.status_message.emit("Ungrouped")
        else:
            if self._session.group_selection() is not None:
                self.status_message.emit("Grouped selection")

    def _maybe_show_quick_add(self) -> None:
        request = self._session.quick_add_request
        if request is None:
            return

        menu = QMenu(self)
        for spec in NODE_KINDS.values():
            if not spec.accepts_input:
                continue
            action = menu.addAction(spec.title)
            action.setData(spec.kind)

        self.quick_add_shown.emit(request.screen.x, request.screen.y)
        chosen = menu.exec(self.mapToGlobal(QPointF(request.screen.x, request.screen.y).toPoint()))
        if chosen is not None:
            self._session.quick_add(chosen.data())
        else:
            self._session.key_press("escape")

    def _minimap_rect(self) -> QRectF:
        size = self._session.minimap.size
        return QRectF(
            self.width() - size.width - self.MINIMAP_MARGIN,
            self.height() - size.height - self.MINIMAP_MARGIN,
            size.width,
            size.height,
        )

    def _minimap_press(self, pos: QPointF) -> bool:
        """Click on the minimap: navigate there, or start dragging its frame."""
        rect = self._minimap_rect()
        if not rect.contains(pos):
            return False
        try:
            layout = self._session.minimap_layout()
        except DegenerateGeometry as e:
            logger.warning("Minimap unavailable: %s", e)
            return True

        local = Point2D(pos.x() - rect.x(), pos.y() - rect.y())
        if not layout.viewport_frame.contains(local):
            self._session.navigate(local)
            layout = self._session.minimap_layout()
        self._minimap_drag = (pos, self._session.transform, layout)
        return True

    def _minimap_move(self, pos: QPointF) -> None:
        start, start_transform, layout = self._minimap_drag
        self._session.drag_minimap(
            start_transform, pos.x() - start.x(), pos.y() - start.y(), layout,
        )

    # --- Rendering ---

    def paintEvent(self, event: QPaintEvent) -> None:
        """Render the canvas."""
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        session = self._session
        t = session.transform

        painter.fillRect(self.rect(), self._style.color("background"))
        self._draw_grid(painter, t)

        for group in session.groups:
            self._draw_group(painter, group, t)

        for conn, curve in session.connection_manager.curves():
            self._draw_connection(painter, conn.id, curve, t)
        self._draw_temp_connection(painter, t)

        selected = session.selection.node_ids
        for node in session.visible_nodes():
            self._draw_node(painter, node, node.id in selected, t)

        self._draw_marquee(painter, t)
        self._draw_toolbar(painter, session.toolbar())
        self._draw_minimap(painter)

        painter.end()

    def _draw_grid(self, painter: QPainter, t: CanvasTransform) -> None:
        """Draw the background grid."""
        painter.setPen(QPen(self._style.color("grid"), 1))

        spacing = self.GRID_SIZE * t.k
        if spacing < 10:
            spacing *= 5

        x = t.x % spacing
        while x < self.width():
            painter.drawLine(int(x), 0, int(x), self.height())
            x += spacing
        y = t.y % spacing
        while y < self.height():
            painter.drawLine(0, int(y), self.width(), int(y))
            y += spacing

    def _draw_group(self, painter: QPainter, group: Group, t: CanvasTransform) -> None:
        r = t.world_rect_to_screen(group.bounds)
        rect = QRectF(r.x, r.y, r.width, r.height)
        path = QPainterPath()
        path.addRoundedRect(rect, 12, 12)
        painter.fillPath(path, self._style.group_fill(group.color))
        painter.setPen(QPen(QColor(group.color), 1.5, Qt.PenStyle.DashLine))
        painter.drawPath(path)

        handle = self._session.settings.resize_handle_px / 2
        painter.setBrush(QColor(group.color))
        for hx, hy in ((r.right, r.bottom), (r.right, r.center.y), (r.left, r.center.y)):
            painter.drawEllipse(QPointF(hx, hy), handle / 2, handle / 2)
        painter.setBrush(Qt.BrushStyle.NoBrush)

    def _draw_connection(self, painter: QPainter, conn_id, curve, t: CanvasTransform) -> None:
        start = t.world_to_screen(curve.start)
        c1 = t.world_to_screen(curve.control1)
        c2 = t.world_to_screen(curve.control2)
        end = t.world_to_screen(curve.end)

        path = QPainterPath()
        path.moveTo(start.x, start.y)
        path.cubicTo(c1.x, c1.y, c2.x, c2.y, end.x, end.y)

        manager = self._session.connection_manager
        active = manager.affordance_visible(conn_id)
        color = self._style.color("accent") if active else self._style.color("connection")
        painter.setPen(QPen(color, self._session.settings.visible_stroke_px * t.k))
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawPath(path)

        if active:
            mid = t.world_to_screen(curve.midpoint)
            radius = self._session.settings.disconnect_button_px / 2
            painter.setBrush(self._style.color("node_body"))
            painter.setPen(QPen(color, 1.5))
            painter.drawEllipse(QPointF(mid.x, mid.y), radius, radius)
            arm = radius / 2.5
            painter.drawLine(QPointF(mid.x - arm, mid.y - arm), QPointF(mid.x + arm, mid.y + arm))
            painter.drawLine(QPointF(mid.x - arm, mid.y + arm), QPointF(mid.x + arm, mid.y - arm))
            painter.setBrush(Qt.BrushStyle.NoBrush)

    def _draw_temp_connection(self, painter: QPainter, t: CanvasTransform) -> None:
        """Draw the dashed edge being dragged out of an output anchor."""
        segment = self._session.connection_manager.preview_segment()
        if segment is None:
            return
        start = t.world_to_screen(segment[0])
        end = t.world_to_screen(segment[1])
        painter.setPen(QPen(self._style.color("accent"), 2, Qt.PenStyle.DashLine))
        painter.drawLine(QPointF(start.x, start.y), QPointF(end.x, end.y))

    def _draw_node(self, painter: QPainter, node: Node, is_selected: bool, t: CanvasTransform) -> None:
        """Draw a single node."""
        painter.save()

        r = t.world_rect_to_screen(node.bounds)
        rect = QRectF(r.x, r.y, r.width, r.height)
        header_h = self.NODE_HEADER_HEIGHT * t.k

        path = QPainterPath()
        path.addRoundedRect(rect, 8, 8)
        painter.fillPath(path, self._style.color("node_body"))

        spec = kind_spec(node.kind)
        header = QPainterPath()
        header.addRoundedRect(QRectF(r.x, r.y, r.width, header_h), 8, 8)
        painter.fillPath(header, CATEGORY_COLORS[spec.category])

        if is_selected:
            painter.setPen(QPen(self._style.color("accent"), 2))
        else:
            painter.setPen(QPen(self._style.color("node_border"), 1))
        painter.drawPath(path)

        title_font = QFont(self._title_font)
        title_font.setPointSizeF(max(1.0, title_font.pointSizeF() * t.k))
        painter.setFont(title_font)
        painter.setPen(Qt.GlobalColor.white)
        painter.drawText(
            QRectF(r.x + 10 * t.k, r.y, r.width - 20 * t.k, header_h),
            Qt.AlignmentFlag.AlignVCenter,
            node.title,
        )

        radius = self.ANCHOR_RADIUS * t.k
        painter.setPen(QPen(Qt.GlobalColor.white, 1))
        painter.setBrush(self._style.color("accent"))
        out = t.world_to_screen(node.output_anchor)
        painter.drawEllipse(QPointF(out.x, out.y), radius, radius)
        if node.accepts_input:
            inp = t.world_to_screen(node.input_anchor)
            painter.drawEllipse(QPointF(inp.x, inp.y), radius, radius)

        painter.restore()

    def _draw_marquee(self, painter: QPainter, t: CanvasTransform) -> None:
        """Draw the selection rectangle."""
        rect = self._session.drag_state.marquee_rect
        if rect is None:
            return
        r: Rect = t.world_rect_to_screen(rect)
        qrect = QRectF(r.x, r.y, r.width, r.height)

        fill = self._style.color("accent")
        fill.setAlpha(30)
        painter.fillRect(qrect, fill)
        painter.setPen(QPen(self._style.color("accent"), 1, Qt.PenStyle.DashLine))
        painter.drawRect(qrect)

    def _draw_toolbar(self, painter: QPainter, placement: ToolbarPlacement | None) -> None:
        if placement is None:
            self._toolbar_rect = None
            return

        rect = QRectF(
            placement.x - self.TOOLBAR_WIDTH / 2,
            placement.y - self.TOOLBAR_HEIGHT / 2,
            self.TOOLBAR_WIDTH,
            self.TOOLBAR_HEIGHT,
        )
        self._toolbar_rect = rect

        path = QPainterPath()
        path.addRoundedRect(rect, 8, 8)
        painter.fillPath(path, self._style.color("node_body"))
        painter.setPen(QPen(self._style.color("node_border"), 1))
        painter.drawPath(path)

        painter.setFont(self._toolbar_font)
        painter.setPen(self._style.color("node_text"))
        label = "Ungroup" if placement.action is ToolbarAction.UNGROUP else "Group"
        painter.drawText(rect, Qt.AlignmentFlag.AlignCenter, label)

    def _draw_minimap(self, painter: QPainter) -> None:
        session = self._session
        try:
            layout = session.minimap_layout()
        except DegenerateGeometry as e:
            logger.debug("Skipping minimap: %s", e)
            return

        image = session.minimap.render(
            session.nodes,
            layout,
            background=self._style.minimap_background,
            node_fill=self._style.minimap_node,
            frame_color=self._style.minimap_frame,
        )
        rect = self._minimap_rect()
        painter.drawImage(rect.topLeft(), pil_to_qimage(image))
        painter.setPen(QPen(self._style.color("node_border"), 1))
        painter.setBrush(QBrush(Qt.BrushStyle.NoBrush))
        painter.drawRect(rect)
