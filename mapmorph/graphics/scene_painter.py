"""
scene_painter.py
----------------
Draws one SceneSnapshot (or transition overlays) onto a MapCanvas.

The painter draws in scene coordinates; callers push a ScenePose onto the
canvas first when the scene is being animated. Static per-level artwork
is not drawn here: pass a `background` callable to add it.
"""

from typing import Callable, FrozenSet, Iterable, Optional

from mapmorph.core.runtime.map_settings import Labels, Levels, MiniCluster, Palette
from mapmorph.core.runtime.map_state import MapState
from mapmorph.map.layout.room_geometry import door_gap_half, doorway_rect, elevator_rect, route_between
from mapmorph.map.layout.scene_layout import Node, SceneSnapshot, group_mini_positions


class ScenePainter:
    """Renders nodes, edges, room features and labels of a map level."""

    def __init__(self, background: Optional[Callable] = None):
        self.background = background

    # ===========================================================
    # Scenes
    # ===========================================================

    def draw_scene(self, canvas, snapshot: SceneSnapshot, state: Optional[MapState] = None,
                   hidden: FrozenSet[int] = frozenset(), show_sub_locations: Optional[bool] = None) -> None:
        """
        Draw a full level.

        Args:
            canvas: MapCanvas with the scene pose already applied
            snapshot: Level to draw
            state: Game state used to highlight the current location and route
            hidden: Node indices drawn elsewhere (transition overlays)
            show_sub_locations: Draw group mini dots; defaults to the group level only
        """
        if show_sub_locations is None:
            show_sub_locations = snapshot.level == Levels.GROUP

        if self.background is not None:
            self.background(canvas, snapshot)

        self._draw_room(canvas, snapshot)
        self._draw_edges(canvas, snapshot, hidden)

        current = None
        if state is not None and state.current_level == snapshot.level:
            current = state.location_index
            self._draw_route(canvas, snapshot, state)

        for node in snapshot.nodes:
            if node.index in hidden:
                continue
            if not self._is_visible(node, snapshot.level, current):
                continue
            self.draw_node(canvas, node, is_current=node.index == current)
            if show_sub_locations and node.index != snapshot.meta.hub_index:
                self.draw_minis(canvas, node)

    def draw_node(self, canvas, node: Node, is_current: bool = False) -> None:
        if is_current:
            color = Palette.CURRENT
        elif node.discovered:
            color = Palette.NODE
        else:
            color = Palette.NODE_UNDISCOVERED
        canvas.draw_circle(node.position, node.radius, color, width=0 if is_current else 2)

        if node.name_known and node.label:
            canvas.draw_text(node.label, (node.x, node.y - node.radius - Labels.OFFSET_ABOVE),
                             Labels.BASE_FONT_PX, Palette.LABEL)

    def draw_minis(self, canvas, node: Node) -> None:
        for point in group_mini_positions(node):
            canvas.draw_circle(point, MiniCluster.DOT_RADIUS, Palette.NODE, width=1)

    # ===========================================================
    # Overlays
    # ===========================================================

    def draw_overlays(self, canvas, overlays: Iterable) -> None:
        """World-space moving circles and their upright labels."""
        canvas.save()
        canvas.reset_transform()
        for entity in overlays:
            canvas.draw_circle(entity.position, entity.radius, Palette.NODE, width=2)
            label = entity.label
            if label is not None and label.alpha > 0.0:
                canvas.draw_text(label.text, label.position, Labels.BASE_FONT_PX * label.font_scale,
                                 Palette.LABEL, alpha=label.alpha, screen_space=True)
        canvas.restore()

    # ===========================================================
    # Helpers
    # ===========================================================

    @staticmethod
    def _is_visible(node: Node, level: int, current: Optional[int]) -> bool:
        # Undiscovered coarse spots stay hidden unless the player stands there
        return node.discovered or level != Levels.COARSE or node.index == current

    def _draw_room(self, canvas, snapshot: SceneSnapshot) -> None:
        if snapshot.level == Levels.GROUP and snapshot.nodes:
            rect = doorway_rect(snapshot)
            canvas.draw_box(rect.x, rect.y, rect.w, rect.h, Palette.WALL, width=1)

        hall = snapshot.meta.hallway
        if hall is None:
            return

        half = door_gap_half()
        for wall_x, side in ((hall.x_left, True), (hall.x_right, False)):
            gaps = sorted(n.y for n in snapshot.nodes
                          if n.index != snapshot.meta.hub_index and (n.x < hall.center_x) == side)
            y = hall.y_top
            for gap_y in gaps:
                canvas.draw_line((wall_x, y), (wall_x, gap_y - half), Palette.WALL, 2)
                y = gap_y + half
            canvas.draw_line((wall_x, y), (wall_x, hall.y_bottom), Palette.WALL, 2)

        elevator = elevator_rect(snapshot)
        if elevator is not None:
            canvas.draw_box(elevator.x, elevator.y, elevator.w, elevator.h, Palette.WALL, width=1)

    def _draw_edges(self, canvas, snapshot: SceneSnapshot, hidden: FrozenSet[int]) -> None:
        if snapshot.is_hallway:
            return
        for a, b in snapshot.edges:
            if a in hidden or b in hidden:
                continue
            na, nb = snapshot.node(a), snapshot.node(b)
            if na.discovered and nb.discovered:
                canvas.draw_line(na.position, nb.position, Palette.EDGE, 1)

    def _draw_route(self, canvas, snapshot: SceneSnapshot, state: MapState) -> None:
        target = state.next_location_index
        if target is None or target == state.location_index:
            return
        route = route_between(snapshot, state.location_index, target)
        if route:
            canvas.draw_dashed(route, Palette.CURRENT)
