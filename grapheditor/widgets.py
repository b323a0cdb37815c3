"""Custom widgets for the graph editor window."""

from pathlib import Path
from typing import Optional, Callable, List
import gi

gi.require_version("Gtk", "4.0")
gi.require_version("Adw", "1")
from gi.repository import Gtk, Gdk, Adw, Pango

from grapheditor.controller import RenderSnapshot
from grapheditor.database import Database


class EditorPanel(Gtk.Box):
    """Side panel with the editing commands and the live status."""

    def __init__(self):
        super().__init__(orientation=Gtk.Orientation.VERTICAL, spacing=8)

        self.set_size_request(260, -1)
        self.set_margin_start(12)
        self.set_margin_end(12)
        self.set_margin_top(12)
        self.set_margin_bottom(12)

        # Callbacks, each takes no arguments except on_rename
        self.on_clear_all: Optional[Callable[[], None]] = None
        self.on_toggle_multi_connect: Optional[Callable[[], None]] = None
        self.on_set_path_start: Optional[Callable[[], None]] = None
        self.on_set_path_end: Optional[Callable[[], None]] = None
        self.on_connect_pair: Optional[Callable[[], None]] = None
        self.on_find_path: Optional[Callable[[], None]] = None
        self.on_save: Optional[Callable[[], None]] = None
        self.on_load: Optional[Callable[[], None]] = None
        self.on_rename: Optional[Callable[[str], None]] = None

        self.append(self._section_title("GRAPH"))
        self.append(self._button("Clear All", "edit-clear-all-symbolic",
                                 lambda: self._emit(self.on_clear_all)))

        self.multi_btn = Gtk.ToggleButton(label="Multi-Connect")
        self.multi_btn.set_tooltip_text("Chain clicked nodes with edges (M)")
        self._multi_handler = self.multi_btn.connect(
            "toggled", lambda b: self._emit(self.on_toggle_multi_connect))
        self.append(self.multi_btn)

        self.append(self._section_title("PATH"))
        self.append(self._button("Set Path Start", "go-first-symbolic",
                                 lambda: self._emit(self.on_set_path_start)))
        self.append(self._button("Set Path End", "go-last-symbolic",
                                 lambda: self._emit(self.on_set_path_end)))
        self.append(self._button("Connect Selected Pair", "insert-link-symbolic",
                                 lambda: self._emit(self.on_connect_pair)))
        self.append(self._button("Find Shortest Path", "find-location-symbolic",
                                 lambda: self._emit(self.on_find_path)))

        self.append(self._section_title("NODE"))
        self.rename_entry = Gtk.Entry()
        self.rename_entry.set_placeholder_text("Rename selected node")
        self.rename_entry.set_sensitive(False)
        self.rename_entry.connect("activate", self._on_rename_activate)
        self.append(self.rename_entry)

        self.append(self._section_title("FILE"))
        self.append(self._button("Save...", "document-save-symbolic",
                                 lambda: self._emit(self.on_save)))
        self.append(self._button("Load...", "document-open-symbolic",
                                 lambda: self._emit(self.on_load)))

        self.append(Gtk.Separator(orientation=Gtk.Orientation.HORIZONTAL))

        # Status lines, mirrored from the canvas overlay
        self.status_box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=2)
        self.status_box.set_vexpand(True)
        self.status_box.set_valign(Gtk.Align.END)
        self.append(self.status_box)
        self._status_labels: List[Gtk.Label] = []

    def _section_title(self, text: str) -> Gtk.Label:
        label = Gtk.Label(label=text)
        label.set_halign(Gtk.Align.START)
        label.set_margin_top(8)
        label.add_css_class("heading")
        return label

    def _button(self, label: str, icon: str, callback: Callable[[], None]) -> Gtk.Button:
        content = Adw.ButtonContent(label=label, icon_name=icon)
        content.set_halign(Gtk.Align.START)
        button = Gtk.Button(child=content)
        button.connect("clicked", lambda b: callback())
        return button

    def _emit(self, callback: Optional[Callable[[], None]]):
        if callback:
            callback()

    def _on_rename_activate(self, entry):
        name = entry.get_text().strip()
        if name and self.on_rename:
            self.on_rename(name)

    def update(self, snapshot: RenderSnapshot):
        """Refresh toggles, the rename entry and status lines."""
        # Keep the toggle in sync without re-emitting
        self.multi_btn.handler_block(self._multi_handler)
        self.multi_btn.set_active(snapshot.multi_connect_active)
        self.multi_btn.handler_unblock(self._multi_handler)

        has_selection = snapshot.selection_name is not None
        self.rename_entry.set_sensitive(has_selection)
        if not self.rename_entry.has_focus():
            self.rename_entry.set_text(snapshot.selection_name or "")

        lines = list(reversed(snapshot.status_lines()))
        while len(self._status_labels) < len(lines):
            label = Gtk.Label()
            label.set_halign(Gtk.Align.START)
            label.set_ellipsize(Pango.EllipsizeMode.END)
            label.add_css_class("dim-label")
            self.status_box.append(label)
            self._status_labels.append(label)
        for i, label in enumerate(self._status_labels):
            if i < len(lines):
                label.set_label(lines[i])
                label.set_visible(True)
            else:
                label.set_visible(False)


class RecentFilesPopover(Gtk.Popover):
    """Popover listing recently opened or saved graph files."""

    def __init__(self, db: Database):
        super().__init__()
        self.db = db

        # Callbacks
        self.on_file_selected: Optional[Callable[[Path], None]] = None

        self.listbox = Gtk.ListBox()
        self.listbox.set_selection_mode(Gtk.SelectionMode.NONE)
        self.listbox.connect("row-activated", self._on_row_activated)
        self.set_child(self.listbox)
        self.connect("show", lambda p: self.refresh())

    def refresh(self):
        """Reload the list from the database."""
        child = self.listbox.get_first_child()
        while child is not None:
            self.listbox.remove(child)
            child = self.listbox.get_first_child()

        files = self.db.get_recent_files()
        if not files:
            empty = Gtk.Label(label="No recent files")
            empty.add_css_class("dim-label")
            empty.set_margin_top(8)
            empty.set_margin_bottom(8)
            self.listbox.append(empty)
            return

        for path in files:
            row = Gtk.ListBoxRow()
            row.path = path
            label = Gtk.Label(label=path.name)
            label.set_tooltip_text(str(path))
            label.set_halign(Gtk.Align.START)
            label.set_ellipsize(Pango.EllipsizeMode.MIDDLE)
            label.set_margin_start(8)
            label.set_margin_end(8)
            label.set_margin_top(4)
            label.set_margin_bottom(4)
            row.set_child(label)
            self.listbox.append(row)

    def _on_row_activated(self, listbox, row):
        path = getattr(row, "path", None)
        if path is None:
            return
        self.popdown()
        if self.on_file_selected:
            self.on_file_selected(path)


class ShortcutsDialog(Gtk.Window):
    """Keyboard shortcuts help dialog."""

    SHORTCUTS = {
        "General": [
            ("Save", "Ctrl+S"),
            ("Load", "Ctrl+O"),
            ("Clear All", "Ctrl+Shift+Delete"),
            ("Preferences", "Ctrl+,"),
            ("Keyboard Shortcuts", "Ctrl+/"),
            ("Quit", "Ctrl+Q"),
        ],
        "Navigation": [
            ("Pan Canvas", "Right-click drag"),
            ("Zoom In / Out", "Scroll"),
            ("Zoom to Fit", "Ctrl+0"),
            ("Reset View", "Ctrl+1"),
            ("Toggle Grid", "Ctrl+G"),
        ],
        "Editing": [
            ("Add or Select Node", "Left-click"),
            ("Move Node", "Left-click drag"),
            ("Deselect", "Escape"),
            ("Delete Node", "Delete / Backspace"),
            ("Toggle Multi-Connect", "M"),
            ("Connect Selected Pair", "C"),
        ],
        "Paths": [
            ("Set Path Start", "S"),
            ("Set Path End", "E"),
            ("Find Shortest Path", "P"),
        ],
    }

    def __init__(self, parent: Gtk.Window):
        super().__init__()

        self.set_transient_for(parent)
        self.set_modal(True)
        self.set_default_size(460, 560)
        self.set_title("Keyboard Shortcuts")

        scrolled = Gtk.ScrolledWindow()
        scrolled.set_policy(Gtk.PolicyType.NEVER, Gtk.PolicyType.AUTOMATIC)

        box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=24)
        box.set_margin_start(24)
        box.set_margin_end(24)
        box.set_margin_top(24)
        box.set_margin_bottom(24)

        for section, shortcuts in self.SHORTCUTS.items():
            section_box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=8)

            title = Gtk.Label(label=section.upper())
            title.set_halign(Gtk.Align.START)
            title.add_css_class("heading")
            section_box.append(title)

            for action, keys in shortcuts:
                row = Gtk.Box(orientation=Gtk.Orientation.HORIZONTAL, spacing=12)

                action_label = Gtk.Label(label=action)
                action_label.set_halign(Gtk.Align.START)
                action_label.set_hexpand(True)
                row.append(action_label)

                keys_label = Gtk.Label(label=keys)
                keys_label.set_halign(Gtk.Align.END)
                keys_label.add_css_class("dim-label")
                row.append(keys_label)

                section_box.append(row)

            box.append(section_box)

        scrolled.set_child(box)
        self.set_child(scrolled)

        # Close on Escape
        key_ctrl = Gtk.EventControllerKey()
        key_ctrl.connect("key-pressed", self._on_key_pressed)
        self.add_controller(key_ctrl)

    def _on_key_pressed(self, controller, keyval, keycode, state):
        if keyval == Gdk.KEY_Escape:
            self.close()
            return True
        return False


class SettingsDialog(Adw.PreferencesWindow):
    """Settings/preferences dialog."""

    INTERVALS = [0, 15, 30, 60, 300]

    def __init__(self, parent: Gtk.Window, db: Database):
        super().__init__()
        self.db = db
        settings = db.get_editor_settings()

        # Live-apply callback: (key: str, value: Any) -> None
        self.on_settings_changed: Optional[Callable] = None

        self.set_transient_for(parent)
        self.set_modal(True)
        self.set_default_size(560, 460)
        self.set_title("Preferences")

        # Canvas page
        canvas_page = Adw.PreferencesPage()
        canvas_page.set_title("Canvas")
        canvas_page.set_icon_name("applications-graphics-symbolic")

        canvas_group = Adw.PreferencesGroup()
        canvas_group.set_title("Canvas")

        grid_row = Adw.SwitchRow()
        grid_row.set_title("Show Grid")
        grid_row.set_subtitle("Display dot grid pattern on canvas")
        grid_row.set_active(settings.show_grid)
        grid_row.connect("notify::active", self._on_grid_changed)
        canvas_group.add(grid_row)

        hit_row = Adw.SpinRow.new_with_range(4, 40, 1)
        hit_row.set_title("Click Radius")
        hit_row.set_subtitle("Screen distance in pixels that counts as a click on a node")
        hit_row.set_value(settings.hit_radius)
        hit_row.connect("notify::value", self._on_hit_radius_changed)
        canvas_group.add(hit_row)

        canvas_page.add(canvas_group)

        search_group = Adw.PreferencesGroup()
        search_group.set_title("Path Search")

        threshold_row = Adw.SpinRow.new_with_range(0, 1_000_000, 500)
        threshold_row.set_title("Background Search Threshold")
        threshold_row.set_subtitle("Graphs with more nodes and edges are searched off the UI thread")
        threshold_row.set_value(settings.async_path_threshold)
        threshold_row.connect("notify::value", self._on_threshold_changed)
        search_group.add(threshold_row)

        canvas_page.add(search_group)
        self.add(canvas_page)

        # Backup page
        backup_page = Adw.PreferencesPage()
        backup_page.set_title("Backup")
        backup_page.set_icon_name("document-save-symbolic")

        backup_group = Adw.PreferencesGroup()
        backup_group.set_title("Automatic Backups")

        interval_row = Adw.ComboRow()
        interval_row.set_title("Backup Interval")
        interval_row.set_subtitle("How often to write a backup copy of the graph")
        interval_row.set_model(Gtk.StringList.new(
            ["Disabled", "15 seconds", "30 seconds", "1 minute", "5 minutes"]))
        if settings.autosave_interval in self.INTERVALS:
            interval_row.set_selected(self.INTERVALS.index(settings.autosave_interval))
        else:
            interval_row.set_selected(2)
        interval_row.connect("notify::selected", self._on_interval_changed)
        backup_group.add(interval_row)

        backup_row = Adw.SpinRow.new_with_range(1, 50, 1)
        backup_row.set_title("Backups to Keep")
        backup_row.set_subtitle("Older backup files are deleted")
        backup_row.set_value(settings.backup_count)
        backup_row.connect("notify::value", self._on_backup_count_changed)
        backup_group.add(backup_row)

        backup_page.add(backup_group)
        self.add(backup_page)

    def _notify(self, key: str, value):
        """Notify listener of a settings change."""
        if self.on_settings_changed:
            self.on_settings_changed(key, value)

    def _on_grid_changed(self, row, param):
        self.db.set_setting("show_grid", row.get_active())
        self._notify("show_grid", row.get_active())

    def _on_hit_radius_changed(self, row, param):
        val = float(row.get_value())
        self.db.set_setting("hit_radius", val)
        self._notify("hit_radius", val)

    def _on_threshold_changed(self, row, param):
        val = int(row.get_value())
        self.db.set_setting("async_path_threshold", val)
        self._notify("async_path_threshold", val)

    def _on_interval_changed(self, row, param):
        val = self.INTERVALS[row.get_selected()]
        self.db.set_setting("autosave_interval", val)
        self._notify("autosave_interval", val)

    def _on_backup_count_changed(self, row, param):
        val = int(row.get_value())
        self.db.set_setting("backup_count", val)
        self._notify("backup_count", val)
