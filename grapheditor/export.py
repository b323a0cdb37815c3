"""Export graphs to image and document formats."""

from pathlib import Path
from typing import Optional, Tuple

import cairo

from grapheditor.camera import Camera
from grapheditor.controller import RenderSnapshot, render_snapshot
from grapheditor.database import get_data_dir
from grapheditor.graph import GraphStore
from grapheditor.painter import draw_snapshot
from grapheditor.pathfinder import NO_PATH, PathResult


EXPORT_SUFFIXES = (".png", ".svg", ".pdf")


class GraphExporter:
    """Renders a whole graph, framed to fit, into a file."""

    PADDING = 50
    MIN_SIZE = 200

    def __init__(self, show_grid: bool = False):
        self.show_grid = show_grid

    def _bounds(self, graph: GraphStore) -> Tuple[float, float, float, float]:
        xs = [n.x for n in graph.nodes]
        ys = [n.y for n in graph.nodes]
        return min(xs), min(ys), max(xs), max(ys)

    def _frame(self, graph: GraphStore, path: PathResult) -> RenderSnapshot:
        """Lay the graph out at 1:1 world scale with padding around it."""
        min_x, min_y, max_x, max_y = self._bounds(graph)
        width = max(max_x - min_x + self.PADDING * 2, self.MIN_SIZE)
        height = max(max_y - min_y + self.PADDING * 2, self.MIN_SIZE)
        camera = Camera(width=width, height=height)
        camera.x = -(min_x + max_x) / 2
        camera.y = -(min_y + max_y) / 2
        return render_snapshot(graph, camera, path=path)

    def export_png(self, graph: GraphStore, filepath: str, scale: float = 2.0,
                   path: PathResult = NO_PATH) -> bool:
        """Export the graph to a PNG image."""
        if len(graph) == 0:
            return False
        snapshot = self._frame(graph, path)

        surface = cairo.ImageSurface(cairo.FORMAT_ARGB32,
                                     int(snapshot.width * scale),
                                     int(snapshot.height * scale))
        cr = cairo.Context(surface)
        cr.scale(scale, scale)
        draw_snapshot(cr, snapshot, show_grid=self.show_grid, show_info=False)

        surface.write_to_png(str(filepath))
        return True

    def export_svg(self, graph: GraphStore, filepath: str,
                   path: PathResult = NO_PATH) -> bool:
        """Export the graph to an SVG document."""
        if len(graph) == 0:
            return False
        snapshot = self._frame(graph, path)

        surface = cairo.SVGSurface(str(filepath), snapshot.width, snapshot.height)
        cr = cairo.Context(surface)
        draw_snapshot(cr, snapshot, show_grid=self.show_grid, show_info=False)
        surface.finish()
        return True

    def export_pdf(self, graph: GraphStore, filepath: str,
                   path: PathResult = NO_PATH, title: Optional[str] = None) -> bool:
        """Export the graph to a single-page PDF sized to the drawing."""
        if len(graph) == 0:
            return False
        snapshot = self._frame(graph, path)

        surface = cairo.PDFSurface(str(filepath), snapshot.width, snapshot.height)
        if title:
            surface.set_metadata(cairo.PDF_METADATA_TITLE, title)
        cr = cairo.Context(surface)
        draw_snapshot(cr, snapshot, show_grid=self.show_grid, show_info=False)
        surface.finish()
        return True

    def export(self, graph: GraphStore, filepath: str, **kwargs) -> bool:
        """Dispatch on the file suffix."""
        suffix = Path(filepath).suffix.lower()
        if suffix == ".png":
            return self.export_png(graph, filepath, **kwargs)
        if suffix == ".svg":
            kwargs.pop("scale", None)
            return self.export_svg(graph, filepath, **kwargs)
        if suffix == ".pdf":
            kwargs.pop("scale", None)
            return self.export_pdf(graph, filepath, **kwargs)
        raise ValueError(f"Unsupported export format: {suffix or filepath}")


def get_export_dir() -> Path:
    """Get the default export directory."""
    export_dir = get_data_dir() / "exports"
    export_dir.mkdir(exist_ok=True)
    return export_dir
