"""Viewport transform with inertial panning."""

from dataclasses import dataclass
from typing import Optional, Tuple


# Pan feel. Both constants shape the overshoot-and-settle motion.
CAMERA_DAMPING = 0.85
CAMERA_ACCEL = 0.8

ZOOM_STEP = 1.1
MIN_ZOOM = 0.2
MAX_ZOOM = 5.0

# Below this speed (world units per tick) the camera counts as resting.
SETTLE_EPSILON = 1e-3


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass
class Camera:
    """Maps between screen pixels and world coordinates.

    The offset (x, y) is added to world coordinates before scaling, and the
    world origin sits at the viewport centre when the offset is zero.
    """
    width: float = 1000.0
    height: float = 700.0
    x: float = 0.0
    y: float = 0.0
    vx: float = 0.0
    vy: float = 0.0
    zoom: float = 1.0

    def screen_to_world(self, sx: float, sy: float) -> Tuple[float, float]:
        return ((sx - self.width / 2) / self.zoom - self.x,
                (sy - self.height / 2) / self.zoom - self.y)

    def world_to_screen(self, wx: float, wy: float) -> Tuple[float, float]:
        return ((wx + self.x) * self.zoom + self.width / 2,
                (wy + self.y) * self.zoom + self.height / 2)

    def resize(self, width: float, height: float):
        self.width = float(width)
        self.height = float(height)

    def pan(self, dx: float, dy: float):
        """Feed a screen-space drag delta into the camera velocity."""
        self.vx += dx / self.zoom * CAMERA_ACCEL
        self.vy += dy / self.zoom * CAMERA_ACCEL

    def integrate(self):
        """Advance one tick: move by the velocity, then damp it."""
        self.x += self.vx
        self.y += self.vy
        self.vx *= CAMERA_DAMPING
        self.vy *= CAMERA_DAMPING

    def is_settled(self) -> bool:
        return abs(self.vx) < SETTLE_EPSILON and abs(self.vy) < SETTLE_EPSILON

    def zoom_by(self, delta_sign: float,
                anchor: Optional[Tuple[float, float]] = None):
        """Zoom one step in (positive) or out (negative).

        With an `anchor` screen point, the world point under it stays put;
        otherwise the zoom is about the viewport centre.
        """
        if delta_sign == 0:
            return
        if anchor is not None:
            wx, wy = self.screen_to_world(*anchor)

        factor = ZOOM_STEP if delta_sign > 0 else 1 / ZOOM_STEP
        self.zoom = clamp(self.zoom * factor, MIN_ZOOM, MAX_ZOOM)

        if anchor is not None:
            sx, sy = anchor
            self.x = (sx - self.width / 2) / self.zoom - wx
            self.y = (sy - self.height / 2) / self.zoom - wy

    def fit(self, bounds: Tuple[float, float, float, float], padding: float = 40.0):
        """Centre on (min_x, min_y, max_x, max_y) and zoom to show all of it."""
        min_x, min_y, max_x, max_y = bounds
        span_x = max(max_x - min_x, 1.0)
        span_y = max(max_y - min_y, 1.0)
        usable_w = max(self.width - 2 * padding, 1.0)
        usable_h = max(self.height - 2 * padding, 1.0)
        self.zoom = clamp(min(usable_w / span_x, usable_h / span_y, 1.0),
                          MIN_ZOOM, MAX_ZOOM)
        self.x = -(min_x + max_x) / 2
        self.y = -(min_y + max_y) / 2
        self.vx = self.vy = 0.0

    def reset(self):
        self.x = self.y = 0.0
        self.vx = self.vy = 0.0
        self.zoom = 1.0
