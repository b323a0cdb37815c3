"""Interactive weighted graph editor with shortest-path search."""

__version__ = "1.0.0"
__app_id__ = "io.github.grapheditor.GraphEditor"
