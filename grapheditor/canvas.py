"""Canvas widget that feeds pointer input to the controller and draws it."""

import logging
import threading
from typing import Callable, Optional

import gi

gi.require_version("Gtk", "4.0")
gi.require_version("Gdk", "4.0")
from gi.repository import Gtk, Gdk, GLib

from grapheditor.controller import (
    ConnectSelectedPair, DeleteSelected, Deselect, FindPath, InteractionController,
    PrimaryClick, PrimaryDrag, RenderSnapshot, Resize, Scroll, SecondaryDrag,
    SetPathEnd, SetPathStart, ToggleMultiConnect,
)
from grapheditor.painter import draw_snapshot
from grapheditor.pathfinder import PathSearchTask

logger = logging.getLogger(__name__)


class GraphCanvas(Gtk.DrawingArea):
    """Custom canvas widget for editing a graph."""

    KEY_COMMANDS = {
        Gdk.KEY_m: ToggleMultiConnect,
        Gdk.KEY_c: ConnectSelectedPair,
        Gdk.KEY_s: SetPathStart,
        Gdk.KEY_e: SetPathEnd,
    }

    def __init__(self, controller: InteractionController):
        super().__init__()

        self.controller = controller

        # Pointer tracking
        self.last_mouse_x = 0.0
        self.last_mouse_y = 0.0
        self._primary_start = (0.0, 0.0)
        self._secondary_offset = (0.0, 0.0)

        # Canvas settings
        self.show_grid = True
        self.async_path_threshold = 5000

        # Callbacks
        self.on_state_changed: Optional[Callable[[RenderSnapshot], None]] = None

        # Setup widget
        self.set_draw_func(self._on_draw)
        self.set_focusable(True)
        self.set_can_focus(True)
        self.connect("resize", self._on_resize)

        self._setup_event_controllers()
        self.add_tick_callback(self._on_tick)

        self.set_hexpand(True)
        self.set_vexpand(True)

    def _setup_event_controllers(self):
        """Setup mouse and keyboard event controllers."""
        # Left button: press adds/selects, drag moves the selected node
        primary = Gtk.GestureDrag()
        primary.set_button(1)
        primary.connect("drag-begin", self._on_primary_begin)
        primary.connect("drag-update", self._on_primary_update)
        self.add_controller(primary)

        # Right button drag pans the camera
        secondary = Gtk.GestureDrag()
        secondary.set_button(3)
        secondary.connect("drag-begin", self._on_secondary_begin)
        secondary.connect("drag-update", self._on_secondary_update)
        self.add_controller(secondary)

        motion_ctrl = Gtk.EventControllerMotion()
        motion_ctrl.connect("motion", self._on_motion)
        self.add_controller(motion_ctrl)

        scroll_ctrl = Gtk.EventControllerScroll()
        scroll_ctrl.set_flags(Gtk.EventControllerScrollFlags.VERTICAL)
        scroll_ctrl.connect("scroll", self._on_scroll)
        self.add_controller(scroll_ctrl)

        key_ctrl = Gtk.EventControllerKey()
        key_ctrl.connect("key-pressed", self._on_key_pressed)
        self.add_controller(key_ctrl)

    def dispatch(self, command) -> RenderSnapshot:
        """Send a command to the controller and refresh the view."""
        snapshot = self.controller.dispatch(command)
        self.queue_draw()
        if self.on_state_changed:
            self.on_state_changed(snapshot)
        return snapshot

    def refresh(self):
        self.queue_draw()
        if self.on_state_changed:
            self.on_state_changed(self.controller.snapshot())

    # ==================== Drawing ====================

    def _on_draw(self, area, cr, width, height):
        """Main drawing function."""
        draw_snapshot(cr, self.controller.snapshot(), show_grid=self.show_grid)

    def _on_tick(self, widget, frame_clock) -> bool:
        self.controller.tick()
        if not self.controller.camera.is_settled():
            self.queue_draw()
        return GLib.SOURCE_CONTINUE

    def _on_resize(self, area, width, height):
        self.controller.dispatch(Resize(width, height))

    # ==================== Pointer ====================

    def _on_primary_begin(self, gesture, start_x, start_y):
        self.grab_focus()
        self._primary_start = (start_x, start_y)
        self.dispatch(PrimaryClick(start_x, start_y))

    def _on_primary_update(self, gesture, offset_x, offset_y):
        sx, sy = self._primary_start
        self.dispatch(PrimaryDrag(sx + offset_x, sy + offset_y))

    def _on_secondary_begin(self, gesture, start_x, start_y):
        self._secondary_offset = (0.0, 0.0)

    def _on_secondary_update(self, gesture, offset_x, offset_y):
        last_x, last_y = self._secondary_offset
        self._secondary_offset = (offset_x, offset_y)
        self.dispatch(SecondaryDrag(offset_x - last_x, offset_y - last_y))

    def _on_motion(self, controller, x, y):
        self.last_mouse_x = x
        self.last_mouse_y = y

    def _on_scroll(self, controller, dx, dy):
        """Scrolling up zooms in around the pointer."""
        if dy == 0:
            return False
        self.dispatch(Scroll(-dy, self.last_mouse_x, self.last_mouse_y))
        return True

    def _on_key_pressed(self, controller, keyval, keycode, state):
        if state & (Gdk.ModifierType.CONTROL_MASK | Gdk.ModifierType.ALT_MASK):
            return False
        if keyval in (Gdk.KEY_Delete, Gdk.KEY_BackSpace):
            self.dispatch(DeleteSelected())
            return True
        if keyval == Gdk.KEY_Escape:
            self.dispatch(Deselect())
            return True
        if keyval in (Gdk.KEY_p, Gdk.KEY_P):
            self.find_path()
            return True
        command = self.KEY_COMMANDS.get(Gdk.keyval_to_lower(keyval))
        if command is None:
            return False
        self.dispatch(command())
        return True

    # ==================== View ====================

    def zoom_to_fit(self):
        nodes = self.controller.graph.nodes
        if not nodes:
            return
        xs = [n.x for n in nodes]
        ys = [n.y for n in nodes]
        self.controller.camera.fit((min(xs), min(ys), max(xs), max(ys)))
        self.queue_draw()

    def reset_view(self):
        self.controller.camera.reset()
        self.queue_draw()

    # ==================== Path search ====================

    def find_path(self):
        """Search synchronously, or on a worker thread for large graphs."""
        graph = self.controller.graph
        if len(graph) + graph.edge_count < self.async_path_threshold:
            self.dispatch(FindPath())
            return

        task = self.controller.start_path_search()
        if task is None:
            self.refresh()
            return
        thread = threading.Thread(target=self._run_search, args=(task,), daemon=True)
        thread.start()

    def _run_search(self, task: PathSearchTask):
        task.run()
        logger.debug("Path search at revision %d finished (cancelled=%s)",
                     task.revision, task.cancelled)
        GLib.idle_add(self._finish_search, task)

    def _finish_search(self, task: PathSearchTask) -> bool:
        if self.controller.apply_path_result(task):
            self.refresh()
        return GLib.SOURCE_REMOVE
