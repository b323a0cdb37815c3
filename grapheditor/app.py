"""Main Graph Editor application."""

import logging
import sys
from pathlib import Path
from typing import Optional

import gi
gi.require_version("Gtk", "4.0")
gi.require_version("Adw", "1")
gi.require_version("Gdk", "4.0")
from gi.repository import Gtk, Gio, GLib, Adw

from grapheditor import __version__, __app_id__
from grapheditor.canvas import GraphCanvas
from grapheditor.codec import GRAPH_SUFFIX, GraphFileError
from grapheditor.controller import (
    ClearAll, ConnectSelectedPair, InteractionController, Load, RenameSelected,
    RenderSnapshot, Save, SetPathEnd, SetPathStart, ToggleMultiConnect,
)
from grapheditor.database import Database, get_data_dir
from grapheditor.export import GraphExporter, get_export_dir
from grapheditor.widgets import (
    EditorPanel, RecentFilesPopover, ShortcutsDialog, SettingsDialog,
)

logger = logging.getLogger(__name__)


EXPORT_FORMATS = {
    "png": ("PNG Images", "image/png"),
    "svg": ("SVG Images", "image/svg+xml"),
    "pdf": ("PDF Documents", "application/pdf"),
}


class GraphEditorWindow(Adw.ApplicationWindow):
    """Main application window."""

    def __init__(self, app: Adw.Application, db: Database):
        super().__init__(application=app)
        self.db = db
        self.settings = db.get_editor_settings()
        self.controller = InteractionController(hit_radius=self.settings.hit_radius)
        self.controller.on_graph_changed = self._on_graph_changed
        self.exporter = GraphExporter()

        # Revision of the last written backup, to skip unchanged graphs
        self._backup_revision = 0

        self.set_title("Graph Editor")
        self.set_default_size(1200, 800)

        self._build_ui()
        self._setup_shortcuts()

        self._autosave_timeout_id: Optional[int] = None
        self._setup_autosave()

        self.canvas.refresh()

    def _build_ui(self):
        """Build the main UI layout."""
        main_box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL)
        main_box.append(self._build_header())

        paned = Gtk.Paned(orientation=Gtk.Orientation.HORIZONTAL)
        paned.set_vexpand(True)

        # Canvas
        self.canvas = GraphCanvas(self.controller)
        self.canvas.show_grid = self.settings.show_grid
        self.canvas.async_path_threshold = self.settings.async_path_threshold
        self.canvas.on_state_changed = self._on_state_changed

        canvas_frame = Gtk.Frame()
        canvas_frame.set_child(self.canvas)
        paned.set_start_child(canvas_frame)
        paned.set_shrink_start_child(False)

        # Command panel
        self.panel = EditorPanel()
        self.panel.on_clear_all = self._confirm_clear_all
        self.panel.on_toggle_multi_connect = lambda: self.canvas.dispatch(ToggleMultiConnect())
        self.panel.on_set_path_start = lambda: self.canvas.dispatch(SetPathStart())
        self.panel.on_set_path_end = lambda: self.canvas.dispatch(SetPathEnd())
        self.panel.on_connect_pair = lambda: self.canvas.dispatch(ConnectSelectedPair())
        self.panel.on_find_path = self.canvas.find_path
        self.panel.on_save = self._save_as
        self.panel.on_load = self._open
        self.panel.on_rename = self._on_rename

        paned.set_end_child(self.panel)
        paned.set_shrink_end_child(False)
        paned.set_resize_end_child(False)

        # Wrap in toast overlay for in-app notifications
        self.toast_overlay = Adw.ToastOverlay()
        self.toast_overlay.set_child(paned)
        main_box.append(self.toast_overlay)

        self.set_content(main_box)

    def _build_header(self) -> Adw.HeaderBar:
        """Build the header bar."""
        header = Adw.HeaderBar()

        menu_btn = Gtk.MenuButton()
        menu_btn.set_icon_name("open-menu-symbolic")
        menu_btn.set_tooltip_text("Menu")

        menu = Gio.Menu()

        file_section = Gio.Menu()
        file_section.append("Open...", "win.open")
        file_section.append("Save", "win.save")
        file_section.append("Save As...", "win.save-as")
        file_section.append("Clear All", "win.clear-all")
        menu.append_section(None, file_section)

        export_section = Gio.Menu()
        export_menu = Gio.Menu()
        export_menu.append("Export as PNG...", "win.export-png")
        export_menu.append("Export as SVG...", "win.export-svg")
        export_menu.append("Export as PDF...", "win.export-pdf")
        export_section.append_submenu("Export", export_menu)
        menu.append_section(None, export_section)

        view_section = Gio.Menu()
        view_section.append("Toggle Grid", "win.toggle-grid")
        view_section.append("Zoom to Fit", "win.zoom-fit")
        view_section.append("Reset View", "win.reset-view")
        menu.append_section(None, view_section)

        help_section = Gio.Menu()
        help_section.append("Keyboard Shortcuts", "win.show-shortcuts")
        help_section.append("Preferences", "win.show-preferences")
        help_section.append("About Graph Editor", "win.show-about")
        menu.append_section(None, help_section)

        popover = Gtk.PopoverMenu()
        popover.set_menu_model(menu)
        menu_btn.set_popover(popover)
        header.pack_start(menu_btn)

        # Recent files
        recent_btn = Gtk.MenuButton()
        recent_btn.set_icon_name("document-open-recent-symbolic")
        recent_btn.set_tooltip_text("Recent Files")
        self.recent_popover = RecentFilesPopover(self.db)
        self.recent_popover.on_file_selected = self._load_file
        recent_btn.set_popover(self.recent_popover)
        header.pack_start(recent_btn)

        self.title_label = Adw.WindowTitle(title="Graph Editor", subtitle="Unsaved graph")
        header.set_title_widget(self.title_label)

        fit_btn = Gtk.Button()
        fit_btn.set_icon_name("zoom-fit-best-symbolic")
        fit_btn.set_tooltip_text("Zoom to Fit (Ctrl+0)")
        fit_btn.connect("clicked", lambda b: self.canvas.zoom_to_fit())
        header.pack_end(fit_btn)

        return header

    def _setup_shortcuts(self):
        """Setup keyboard shortcuts."""
        actions = [
            ("open", self._open, "<Control>o"),
            ("save", self._save, "<Control>s"),
            ("save-as", self._save_as, "<Control><Shift>s"),
            ("clear-all", self._confirm_clear_all, "<Control><Shift>Delete"),
            ("toggle-grid", self._toggle_grid, "<Control>g"),
            ("zoom-fit", self.canvas.zoom_to_fit, "<Control>0"),
            ("reset-view", self.canvas.reset_view, "<Control>1"),
            ("show-shortcuts", self._show_shortcuts, "<Control>slash"),
            ("show-preferences", self._show_preferences, "<Control>comma"),
            ("show-about", self._show_about, None),
            ("export-png", lambda: self._export("png"), None),
            ("export-svg", lambda: self._export("svg"), None),
            ("export-pdf", lambda: self._export("pdf"), None),
            ("quit", lambda: self.close(), "<Control>q"),
        ]

        for name, callback, accel in actions:
            action = Gio.SimpleAction.new(name, None)
            action.connect("activate", lambda a, p, cb=callback: cb())
            self.add_action(action)

            if accel:
                self.get_application().set_accels_for_action(f"win.{name}", [accel])

        self.get_application().set_accels_for_action("win.show-shortcuts", ["<Control>slash", "F1"])

    # ==================== Auto-save ====================

    def _setup_autosave(self):
        """Setup the backup timer."""
        interval = self.db.get_setting("autosave_interval", 30)

        if self._autosave_timeout_id:
            GLib.source_remove(self._autosave_timeout_id)
            self._autosave_timeout_id = None

        if interval > 0:
            self._autosave_timeout_id = GLib.timeout_add_seconds(
                interval, self._do_autosave
            )

    def _do_autosave(self) -> bool:
        """Write a backup if the graph changed since the last one."""
        if self.controller.revision != self._backup_revision:
            try:
                self.db.create_backup(self.controller.graph)
                self._backup_revision = self.controller.revision
            except (GraphFileError, OSError) as exc:
                logger.warning("Backup failed: %s", exc)
        return True  # Continue timer

    # ==================== Event Handlers ====================

    def _on_state_changed(self, snapshot: RenderSnapshot):
        self.panel.update(snapshot)

    def _on_graph_changed(self):
        self._update_title()

    def _on_rename(self, name: str):
        self.canvas.dispatch(RenameSelected(name))
        self.canvas.grab_focus()

    def _update_title(self):
        path = self.controller.last_saved_path
        subtitle = str(path) if path else "Unsaved graph"
        self.title_label.set_subtitle(subtitle)

    def _confirm_clear_all(self):
        """Clear the graph, asking first when it has nodes."""
        if len(self.controller.graph) == 0:
            self.canvas.dispatch(ClearAll())
            return

        dialog = Adw.MessageDialog(
            transient_for=self,
            heading="Clear Graph?",
            body="All nodes and edges will be removed. Unsaved changes are lost."
        )
        dialog.add_response("cancel", "Cancel")
        dialog.add_response("clear", "Clear")
        dialog.set_response_appearance("clear", Adw.ResponseAppearance.DESTRUCTIVE)
        dialog.set_default_response("cancel")
        dialog.connect("response", self._on_clear_confirmed)
        dialog.present()

    def _on_clear_confirmed(self, dialog, response):
        if response == "clear":
            self.canvas.dispatch(ClearAll())

    # ==================== Files ====================

    def _graph_filters(self) -> Gio.ListStore:
        filter_json = Gtk.FileFilter()
        filter_json.set_name("Graph Files")
        filter_json.add_pattern(f"*{GRAPH_SUFFIX}")

        filters = Gio.ListStore.new(Gtk.FileFilter)
        filters.append(filter_json)
        return filters

    def _open(self):
        dialog = Gtk.FileDialog()
        dialog.set_title("Open Graph")
        dialog.set_filters(self._graph_filters())
        dialog.open(self, None, self._on_open_response)

    def _on_open_response(self, dialog, result):
        try:
            file = dialog.open_finish(result)
        except GLib.Error:
            return  # User cancelled
        if file and file.get_path():
            self._load_file(Path(file.get_path()))

    def _load_file(self, path: Path):
        try:
            self.canvas.dispatch(Load(path))
        except GraphFileError as exc:
            self._show_toast(f"Could not open graph: {exc}")
            return
        self.controller.last_saved_path = path
        self.db.add_recent_file(path)
        self._backup_revision = self.controller.revision
        self._update_title()
        self.canvas.zoom_to_fit()

    def _save(self):
        """Save to the current file, or ask for one."""
        if self.controller.last_saved_path:
            self._save_file(self.controller.last_saved_path)
        else:
            self._save_as()

    def _save_as(self):
        dialog = Gtk.FileDialog()
        dialog.set_title("Save Graph")
        dialog.set_initial_name(f"graph{GRAPH_SUFFIX}")
        dialog.set_filters(self._graph_filters())
        dialog.save(self, None, self._on_save_response)

    def _on_save_response(self, dialog, result):
        try:
            file = dialog.save_finish(result)
        except GLib.Error:
            return  # User cancelled
        if not file or not file.get_path():
            self._show_toast("Save failed: selected location is not a local file")
            return
        self._save_file(Path(file.get_path()))

    def _save_file(self, path: Path):
        try:
            self.canvas.dispatch(Save(path))
        except GraphFileError as exc:
            self._show_toast(f"Save failed: {exc}")
            return
        saved = self.controller.last_saved_path
        self.db.add_recent_file(saved)
        self._update_title()
        self._show_toast(f"Saved to {saved}")

    # ==================== Actions ====================

    def _toggle_grid(self):
        self.canvas.show_grid = not self.canvas.show_grid
        self.db.set_setting("show_grid", self.canvas.show_grid)
        self.canvas.queue_draw()

    def _show_shortcuts(self):
        dialog = ShortcutsDialog(self)
        dialog.present()

    def _show_preferences(self):
        dialog = SettingsDialog(self, self.db)
        dialog.on_settings_changed = self._on_settings_changed
        dialog.present()

    def _on_settings_changed(self, key: str, value):
        """Handle real-time setting changes from preferences dialog."""
        if key == "show_grid":
            self.canvas.show_grid = bool(value)
            self.canvas.queue_draw()
        elif key == "hit_radius":
            self.controller.hit_radius = float(value)
        elif key == "async_path_threshold":
            self.canvas.async_path_threshold = int(value)
        elif key == "autosave_interval":
            self._setup_autosave()

    def _show_about(self):
        about = Adw.AboutWindow(
            transient_for=self,
            application_name="Graph Editor",
            application_icon="applications-graphics",
            developer_name="Graph Editor Project",
            version=__version__,
            license_type=Gtk.License.MIT_X11,
            comments="Draw weighted graphs and find shortest paths",
        )
        about.present()

    # ==================== Export ====================

    def _export(self, fmt: str):
        """Ask for a target file and render the graph into it."""
        if len(self.controller.graph) == 0:
            self._show_toast("Nothing to export: the graph is empty")
            return

        name, mime = EXPORT_FORMATS[fmt]
        dialog = Gtk.FileDialog()
        dialog.set_title(f"Export as {fmt.upper()}")
        stem = self.controller.last_saved_path.stem if self.controller.last_saved_path else "graph"
        dialog.set_initial_name(f"{stem}.{fmt}")
        dialog.set_initial_folder(Gio.File.new_for_path(str(get_export_dir())))

        file_filter = Gtk.FileFilter()
        file_filter.set_name(name)
        file_filter.add_mime_type(mime)
        filters = Gio.ListStore.new(Gtk.FileFilter)
        filters.append(file_filter)
        dialog.set_filters(filters)

        dialog.save(self, None, self._on_export_response)

    def _on_export_response(self, dialog, result):
        try:
            file = dialog.save_finish(result)
        except GLib.Error:
            return  # User cancelled
        filepath = file.get_path() if file else None
        if not filepath:
            self._show_toast("Export failed: selected location is not a local file")
            return

        self.exporter.show_grid = self.canvas.show_grid
        try:
            ok = self.exporter.export(self.controller.graph, filepath,
                                      path=self.controller.last_path)
        except ValueError as exc:
            self._show_toast(str(exc))
            return
        except OSError as exc:
            logger.warning("Export to %s failed: %s", filepath, exc)
            self._show_toast("Export failed")
            return
        self._show_toast(f"Exported to {filepath}" if ok else "Export failed")

    def _show_toast(self, message: str):
        """Show a toast notification."""
        toast = Adw.Toast(title=message)
        toast.set_timeout(3)
        self.toast_overlay.add_toast(toast)


class GraphEditorApp(Adw.Application):
    """Main application class."""

    def __init__(self):
        super().__init__(
            application_id=__app_id__,
            flags=Gio.ApplicationFlags.DEFAULT_FLAGS
        )
        self.db: Optional[Database] = None
        self.window: Optional[GraphEditorWindow] = None

    def do_startup(self):
        """Initialize application."""
        Adw.Application.do_startup(self)
        self.db = Database()
        logger.info("Using data directory %s", get_data_dir())

    def do_activate(self):
        """Activate application."""
        if not self.window:
            self.window = GraphEditorWindow(self, self.db)

        self.window.present()

    def do_shutdown(self):
        """Shutdown application."""
        if self.db:
            self.db.close()

        Adw.Application.do_shutdown(self)


def main(argv=None) -> int:
    """Application entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = GraphEditorApp()
    return app.run(sys.argv if argv is None else argv)


if __name__ == "__main__":
    sys.exit(main())
