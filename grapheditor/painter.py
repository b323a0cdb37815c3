"""Cairo drawing of render snapshots, shared by the canvas and exporters."""

import math

import cairo

from grapheditor.controller import Highlight, RenderSnapshot


COLORS = {
    'bg_primary': (0.039, 0.039, 0.039),      # #0a0a0a
    'grid_dots': (0.12, 0.12, 0.12),          # Subtle grid
    'edge': (0.45, 0.45, 0.45),               # #737373
    'path': (1.0, 0.176, 0.176),              # #ff2d2d
    'node_border': (0.0, 0.0, 0.0),
    'text_primary': (0.878, 0.878, 0.878),    # #e0e0e0
    'text_secondary': (0.533, 0.533, 0.533),  # #888888
}

HIGHLIGHT_COLORS = {
    Highlight.SELECTED: (1.0, 0.647, 0.0),        # Orange
    Highlight.PATH_START: (0.0, 1.0, 0.255),      # Green
    Highlight.PATH_END: (1.0, 0.176, 0.176),      # Red
    Highlight.MULTI_CONNECT: (0.392, 0.584, 0.929),  # Cornflower blue
    Highlight.PLAIN: (0.0, 0.545, 0.545),         # Dark cyan
}

NODE_RADIUS = 8
GRID_SIZE = 30


def draw_background(cr, width: float, height: float, show_grid: bool = True,
                    zoom: float = 1.0, origin=(0.0, 0.0)):
    """Fill the background and draw a dot grid anchored at `origin`."""
    cr.set_source_rgb(*COLORS['bg_primary'])
    cr.paint()
    if not show_grid:
        return

    effective_grid = GRID_SIZE * zoom
    if effective_grid < 6:
        return
    cr.save()
    cr.set_source_rgb(*COLORS['grid_dots'])
    x = origin[0] % effective_grid
    while x < width:
        y = origin[1] % effective_grid
        while y < height:
            cr.arc(x, y, 1.5, 0, 2 * math.pi)
            cr.fill()
            y += effective_grid
        x += effective_grid
    cr.restore()


def draw_snapshot(cr, snapshot: RenderSnapshot, show_grid: bool = True,
                  show_info: bool = True):
    """Draw edges, the highlighted path, nodes and the status lines."""
    draw_background(cr, snapshot.width, snapshot.height, show_grid,
                    snapshot.zoom, snapshot.origin)

    cr.set_line_cap(cairo.LINE_CAP_ROUND)

    cr.set_source_rgb(*COLORS['edge'])
    cr.set_line_width(2)
    for edge in snapshot.edges:
        cr.move_to(edge.x1, edge.y1)
        cr.line_to(edge.x2, edge.y2)
    cr.stroke()

    if snapshot.path_edges:
        cr.set_source_rgb(*COLORS['path'])
        cr.set_line_width(4)
        for edge in snapshot.path_edges:
            cr.move_to(edge.x1, edge.y1)
            cr.line_to(edge.x2, edge.y2)
        cr.stroke()

    cr.select_font_face("Sans", cairo.FONT_SLANT_NORMAL, cairo.FONT_WEIGHT_NORMAL)
    cr.set_font_size(12)
    for view in snapshot.nodes:
        cr.new_path()
        cr.arc(view.sx, view.sy, NODE_RADIUS, 0, 2 * math.pi)
        cr.set_source_rgb(*HIGHLIGHT_COLORS[view.highlight])
        cr.fill_preserve()
        cr.set_source_rgb(*COLORS['node_border'])
        cr.set_line_width(1)
        cr.stroke()

        cr.set_source_rgb(*COLORS['text_primary'])
        cr.move_to(view.sx + NODE_RADIUS + 2, view.sy - NODE_RADIUS - 2)
        cr.show_text(view.name)

    if show_info:
        _draw_info(cr, snapshot)


def _draw_info(cr, snapshot: RenderSnapshot):
    cr.set_source_rgb(*COLORS['text_secondary'])
    cr.set_font_size(12)
    y = snapshot.height - 10
    for line in snapshot.status_lines():
        cr.move_to(10, y)
        cr.show_text(line)
        y -= 15
