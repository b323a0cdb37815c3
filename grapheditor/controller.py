"""Interaction state machine for the graph editor.

Input sources (the GTK canvas, the tests) describe what happened as command
objects and hand them to `InteractionController.dispatch`, which mutates the
graph and camera and returns a fresh `RenderSnapshot`.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from grapheditor import codec
from grapheditor.camera import Camera
from grapheditor.graph import GraphStore
from grapheditor.pathfinder import NO_PATH, PathResult, PathSearchTask, find_path

logger = logging.getLogger(__name__)

HIT_RADIUS = 10.0


# ==================== Commands ====================

@dataclass(frozen=True)
class PrimaryClick:
    x: float
    y: float


@dataclass(frozen=True)
class PrimaryDrag:
    x: float
    y: float


@dataclass(frozen=True)
class SecondaryDrag:
    dx: float
    dy: float


@dataclass(frozen=True)
class Scroll:
    delta_sign: float
    x: float
    y: float


@dataclass(frozen=True)
class ToggleMultiConnect:
    pass


@dataclass(frozen=True)
class SetPathStart:
    pass


@dataclass(frozen=True)
class SetPathEnd:
    pass


@dataclass(frozen=True)
class ConnectSelectedPair:
    pass


@dataclass(frozen=True)
class FindPath:
    pass


@dataclass(frozen=True)
class ClearAll:
    pass


@dataclass(frozen=True)
class Save:
    path: str


@dataclass(frozen=True)
class Load:
    path: str


@dataclass(frozen=True)
class Tick:
    pass


@dataclass(frozen=True)
class RenameSelected:
    name: str


@dataclass(frozen=True)
class DeleteSelected:
    pass


@dataclass(frozen=True)
class Deselect:
    pass


@dataclass(frozen=True)
class Resize:
    width: float
    height: float


# ==================== Render snapshot ====================

class Highlight(Enum):
    """How a node should be drawn, in priority order."""
    SELECTED = "selected"
    PATH_START = "path_start"
    PATH_END = "path_end"
    MULTI_CONNECT = "multi_connect"
    PLAIN = "plain"


class InteractionState(Enum):
    IDLE = "idle"
    NODE_SELECTED = "node_selected"


@dataclass(frozen=True)
class NodeView:
    handle: int
    id: str
    name: str
    sx: float
    sy: float
    highlight: Highlight


@dataclass(frozen=True)
class EdgeView:
    x1: float
    y1: float
    x2: float
    y2: float
    weight: float = 0.0


@dataclass(frozen=True)
class RenderSnapshot:
    """Everything the presentation layer needs to draw one frame."""
    width: float
    height: float
    zoom: float
    origin: Tuple[float, float]  # screen position of the world origin
    nodes: Tuple[NodeView, ...]
    edges: Tuple[EdgeView, ...]
    path_edges: Tuple[EdgeView, ...]
    node_count: int
    edge_count: int
    selection_name: Optional[str] = None
    multi_connect_active: bool = False
    multi_connect_count: int = 0
    path_start_name: Optional[str] = None
    path_end_name: Optional[str] = None
    path_cost: Optional[float] = None

    def node(self, handle: int) -> Optional[NodeView]:
        for view in self.nodes:
            if view.handle == handle:
                return view
        return None

    def status_lines(self) -> List[str]:
        """Summary lines for the status overlay, bottom line first."""
        lines = [f"Nodes: {self.node_count} | Edges: {self.edge_count}"]
        if self.selection_name is not None:
            lines.append(f"Selected: {self.selection_name}")
        if self.multi_connect_count:
            lines.append(f"Multi-Connect nodes: {self.multi_connect_count}")
        if self.path_start_name is not None:
            lines.append(f"Path start: {self.path_start_name}")
        if self.path_end_name is not None:
            lines.append(f"Path end: {self.path_end_name}")
        if self.path_cost is not None:
            lines.append(f"Path cost: {self.path_cost:.1f}")
        return lines


def render_snapshot(graph: GraphStore, camera: Camera,
                    selection: Optional[int] = None,
                    chain: Sequence[int] = (),
                    path_start: Optional[int] = None,
                    path_end: Optional[int] = None,
                    path: PathResult = NO_PATH,
                    multi_connect_active: bool = False) -> RenderSnapshot:
    """Project the graph through `camera` into screen space."""
    chain_set = set(chain)
    screen: Dict[int, Tuple[float, float]] = {}
    node_views = []
    for node in graph.nodes:
        sx, sy = camera.world_to_screen(node.x, node.y)
        screen[node.handle] = (sx, sy)
        if node.handle == selection:
            highlight = Highlight.SELECTED
        elif node.handle == path_start:
            highlight = Highlight.PATH_START
        elif node.handle == path_end:
            highlight = Highlight.PATH_END
        elif node.handle in chain_set:
            highlight = Highlight.MULTI_CONNECT
        else:
            highlight = Highlight.PLAIN
        node_views.append(NodeView(node.handle, node.id, node.name, sx, sy, highlight))

    edge_views = tuple(
        EdgeView(*screen[e.a], *screen[e.b], e.weight) for e in graph.edges
    )
    # A path computed before later edits may name removed nodes; skip those hops.
    path_views = tuple(
        EdgeView(*screen[a], *screen[b])
        for a, b in path.segments() if a in screen and b in screen
    )

    def name_of(handle: Optional[int]) -> Optional[str]:
        node = graph.node(handle)
        return node.name if node else None

    return RenderSnapshot(
        width=camera.width,
        height=camera.height,
        zoom=camera.zoom,
        origin=camera.world_to_screen(0.0, 0.0),
        nodes=tuple(node_views),
        edges=edge_views,
        path_edges=path_views,
        node_count=len(graph),
        edge_count=graph.edge_count,
        selection_name=name_of(selection),
        multi_connect_active=multi_connect_active,
        multi_connect_count=len([h for h in chain if graph.is_live(h)]),
        path_start_name=name_of(path_start),
        path_end_name=name_of(path_end),
        path_cost=path.cost if path.found else None,
    )


# ==================== Controller ====================

class InteractionController:
    """Turns input commands into graph and camera mutations."""

    def __init__(self, graph: Optional[GraphStore] = None,
                 camera: Optional[Camera] = None,
                 hit_radius: float = HIT_RADIUS):
        self.graph = graph if graph is not None else GraphStore()
        self.camera = camera if camera is not None else Camera()
        self.hit_radius = hit_radius

        self._selected: Optional[int] = None
        self._chain: List[int] = []
        self.multi_connect_active = False
        self._path_start: Optional[int] = None
        self._path_end: Optional[int] = None
        self.last_path: PathResult = NO_PATH
        self.last_saved_path = None

        # Bumped on every graph mutation; used to discard stale searches.
        self.revision = 0
        self._search: Optional[PathSearchTask] = None

        # Callbacks
        self.on_graph_changed: Optional[Callable[[], None]] = None

        self._handlers: Dict[type, Callable] = {
            PrimaryClick: self._on_primary_click,
            PrimaryDrag: self._on_primary_drag,
            SecondaryDrag: lambda c: self.camera.pan(c.dx, c.dy),
            Scroll: lambda c: self.camera.zoom_by(c.delta_sign, anchor=(c.x, c.y)),
            ToggleMultiConnect: self._on_toggle_multi_connect,
            SetPathStart: self._on_set_path_start,
            SetPathEnd: self._on_set_path_end,
            ConnectSelectedPair: self._on_connect_selected_pair,
            FindPath: lambda c: self.find_path(),
            ClearAll: lambda c: self.clear_all(),
            Save: lambda c: self.save(c.path),
            Load: lambda c: self.load(c.path),
            Tick: lambda c: self.tick(),
            RenameSelected: self._on_rename_selected,
            DeleteSelected: self._on_delete_selected,
            Deselect: lambda c: self._set_selected(None),
            Resize: lambda c: self.camera.resize(c.width, c.height),
        }

    # ==================== Weak references ====================

    @property
    def selected(self) -> Optional[int]:
        return self._selected if self.graph.is_live(self._selected) else None

    @property
    def path_start(self) -> Optional[int]:
        return self._path_start if self.graph.is_live(self._path_start) else None

    @property
    def path_end(self) -> Optional[int]:
        return self._path_end if self.graph.is_live(self._path_end) else None

    @property
    def multi_connect_chain(self) -> List[int]:
        return [h for h in self._chain if self.graph.is_live(h)]

    @property
    def state(self) -> InteractionState:
        if self.selected is None:
            return InteractionState.IDLE
        return InteractionState.NODE_SELECTED

    # ==================== Dispatch ====================

    def dispatch(self, command) -> RenderSnapshot:
        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"Unknown command: {command!r}")
        handler(command)
        return self.snapshot()

    def snapshot(self) -> RenderSnapshot:
        return render_snapshot(
            self.graph, self.camera,
            selection=self.selected,
            chain=self.multi_connect_chain,
            path_start=self.path_start,
            path_end=self.path_end,
            path=self.last_path,
            multi_connect_active=self.multi_connect_active,
        )

    def tick(self):
        """Advance camera motion by one frame."""
        self.camera.integrate()

    def node_at(self, sx: float, sy: float) -> Optional[int]:
        """Return the first node, in insertion order, within the hit radius."""
        for node in self.graph.nodes:
            nx, ny = self.camera.world_to_screen(node.x, node.y)
            if ((nx - sx) ** 2 + (ny - sy) ** 2) ** 0.5 < self.hit_radius:
                return node.handle
        return None

    def _graph_changed(self):
        self.revision += 1
        if self._search is not None:
            self._search.cancel()
            self._search = None
        if self.on_graph_changed:
            self.on_graph_changed()

    # ==================== Pointer ====================

    def _on_primary_click(self, cmd: PrimaryClick):
        handle = self.node_at(cmd.x, cmd.y)
        if handle is None:
            wx, wy = self.camera.screen_to_world(cmd.x, cmd.y)
            handle = self.graph.add_node(wx, wy).handle
            self._graph_changed()
        self._set_selected(handle)

    def _set_selected(self, handle: Optional[int]):
        self._selected = handle
        if handle is None or not self.multi_connect_active:
            return
        chain = self.multi_connect_chain
        if handle in chain:
            return
        self._chain = chain + [handle]
        if chain and self.graph.add_edge(chain[-1], handle):
            self._graph_changed()

    def _on_primary_drag(self, cmd: PrimaryDrag):
        selected = self.selected
        if selected is None or self.multi_connect_active:
            return
        wx, wy = self.camera.screen_to_world(cmd.x, cmd.y)
        self.graph.move_node(selected, wx, wy)
        self._graph_changed()

    # ==================== Commands ====================

    def _on_toggle_multi_connect(self, cmd: ToggleMultiConnect):
        self.multi_connect_active = not self.multi_connect_active
        self._chain = []

    def _on_set_path_start(self, cmd: SetPathStart):
        if self.selected is not None:
            self._path_start = self.selected

    def _on_set_path_end(self, cmd: SetPathEnd):
        if self.selected is not None:
            self._path_end = self.selected

    def _on_connect_selected_pair(self, cmd: ConnectSelectedPair):
        selected, start = self.selected, self.path_start
        if selected is None or start is None or selected == start:
            return
        if self.graph.add_edge(start, selected):
            self._graph_changed()
        self._path_start = None

    def _on_rename_selected(self, cmd: RenameSelected):
        if self.selected is not None:
            self.graph.rename_node(self.selected, cmd.name)
            self._graph_changed()

    def _on_delete_selected(self, cmd: DeleteSelected):
        selected = self.selected
        if selected is None:
            return
        self.graph.remove_node(selected)
        self._selected = None
        self._chain = [h for h in self._chain if h != selected]
        if self._path_start == selected:
            self._path_start = None
        if self._path_end == selected:
            self._path_end = None
        self._graph_changed()

    def _reset_interaction(self):
        self._selected = None
        self._chain = []
        self.multi_connect_active = False
        self._path_start = None
        self._path_end = None
        self.last_path = NO_PATH

    def clear_all(self):
        """Empty the graph and forget every piece of interaction state."""
        self.graph.clear()
        self._reset_interaction()
        self._graph_changed()

    # ==================== Paths ====================

    def find_path(self) -> PathResult:
        start, end = self.path_start, self.path_end
        if start is None or end is None:
            self.last_path = NO_PATH
        else:
            self.last_path = find_path(self.graph.snapshot(), start, end)
        return self.last_path

    def start_path_search(self) -> Optional[PathSearchTask]:
        """Prepare a search that can run on another thread.

        Returns None, and clears the last path, when an anchor is unset.
        Any previous in-flight search is cancelled.
        """
        if self._search is not None:
            self._search.cancel()
            self._search = None
        start, end = self.path_start, self.path_end
        if start is None or end is None:
            self.last_path = NO_PATH
            return None
        self._search = PathSearchTask(self.graph.snapshot(), start, end, self.revision)
        return self._search

    def apply_path_result(self, task: PathSearchTask) -> bool:
        """Install a finished search result unless the graph moved on."""
        if task is not self._search:
            return False
        self._search = None
        if task.result is None or task.revision != self.revision:
            logger.debug("Discarding stale path search (revision %d, now %d)",
                         task.revision, self.revision)
            return False
        self.last_path = task.result
        return True

    # ==================== Persistence ====================

    def save(self, path):
        """Write the graph; raises codec.GraphFileError on failure."""
        self.last_saved_path = codec.save(self.graph, path)
        return self.last_saved_path

    def load(self, path):
        """Replace the graph with a file's contents.

        The file is parsed and validated completely before anything is
        replaced; on codec.GraphFileError the current state is untouched.
        """
        decoded = codec.load(path)
        decoded.apply_to(self.graph)
        self._reset_interaction()
        self._graph_changed()
        logger.info("Loaded %d nodes and %d edges from %s",
                    len(self.graph), self.graph.edge_count, path)
