"""
room_geometry.py
----------------
Architectural features that surround the placed nodes: the doorway gap
above the group ring, the elevator at the head of the hallway, the door
gaps cut into the hallway walls, and travel routes between nodes.

Shared by transition anchors, hit testing and the scene painter so all
three agree on where a door is.
"""

import math
from dataclasses import dataclass
from typing import List, Optional

from mapmorph.core.runtime.map_settings import Levels, RoomGeometry
from mapmorph.map.layout.scene_layout import Point, SceneSnapshot


@dataclass(frozen=True)
class Box:
    """Axis-aligned float rectangle."""
    x: float
    y: float
    w: float
    h: float

    @property
    def center(self) -> Point:
        return (self.x + self.w * 0.5, self.y + self.h * 0.5)

    def contains(self, point: Point) -> bool:
        px, py = point
        return self.x <= px <= self.x + self.w and self.y <= py <= self.y + self.h


# ===========================================================
# Doorway (group level)
# ===========================================================

def doorway_rect(snapshot: SceneSnapshot) -> Box:
    """
    Door gap in the top wall of the group room.

    The wall sits just above the highest node (label included); the gap
    is centered horizontally.
    """
    pad = RoomGeometry.DOORWAY_PAD
    min_y = math.inf
    for n in snapshot.nodes:
        min_y = min(min_y, n.y - n.radius - RoomGeometry.LABEL_HEIGHT)
    if min_y == math.inf:
        min_y = snapshot.height * 0.5

    room_top = max(pad, min_y - RoomGeometry.WALL_PAD)
    gap_left = snapshot.width * 0.5 - RoomGeometry.DOOR_GAP_WIDTH * 0.5
    return Box(
        x=gap_left - pad,
        y=room_top - RoomGeometry.DOORWAY_RECT_LIFT,
        w=RoomGeometry.DOOR_GAP_WIDTH + pad * 2,
        h=RoomGeometry.DOORWAY_RECT_HEIGHT,
    )


# ===========================================================
# Hallway
# ===========================================================

def door_gap_half() -> float:
    """Half height of a door gap in a hallway wall."""
    return RoomGeometry.HALLWAY_DOOR_GAP_HALF


def elevator_rect(snapshot: SceneSnapshot) -> Optional[Box]:
    """Elevator box above the hallway hub, or None outside the hallway."""
    hall = snapshot.meta.hallway
    if hall is None:
        return None

    elev_w = min(RoomGeometry.ELEVATOR_MAX_WIDTH, hall.x_right - hall.x_left - 8)
    elev_h = RoomGeometry.ELEVATOR_HEIGHT
    hub = snapshot.node(snapshot.meta.hub_index)
    if hub is not None:
        elev_y = hub.y - (hub.radius + RoomGeometry.ELEVATOR_GAP) - elev_h
    else:
        elev_y = hall.y_top + 2

    p = RoomGeometry.ELEVATOR_PAD
    return Box(hall.center_x - elev_w * 0.5 - p, elev_y - p, elev_w + p * 2, elev_h + p * 2)


def wall_x_for(snapshot: SceneSnapshot, x: float) -> Optional[float]:
    """Wall a hallway door at horizontal position x is cut into."""
    hall = snapshot.meta.hallway
    if hall is None:
        return None
    return hall.x_left if x < hall.center_x else hall.x_right


def door_center(snapshot: SceneSnapshot, index: int) -> Optional[Point]:
    """
    Where the door belonging to a node sits.

    Group level hub: center of the doorway gap. Hallway hub: the elevator.
    Hallway door: the wall crossing at the node's height. Anything else
    resolves to the node itself; unknown index gives None.
    """
    node = snapshot.node(index)
    if node is None:
        return None

    if snapshot.level == Levels.GROUP and index == snapshot.meta.hub_index:
        return doorway_rect(snapshot).center

    if snapshot.is_hallway:
        if index == snapshot.meta.hub_index:
            return elevator_rect(snapshot).center
        return (wall_x_for(snapshot, node.x), node.y)

    return node.position


# ===========================================================
# Routes
# ===========================================================

def route_between(snapshot: SceneSnapshot, from_index: int, to_index: int) -> List[Point]:
    """
    Polyline walked between two nodes.

    In the hallway the route runs along the center spine; elsewhere it is
    a straight segment.
    """
    a_node = snapshot.node(from_index)
    b_node = snapshot.node(to_index)
    if a_node is None or b_node is None:
        return []

    a, b = a_node.position, b_node.position
    hall = snapshot.meta.hallway
    if hall is None:
        return [a, b]

    cx = hall.center_x
    points = [a]
    if abs(a[0] - cx) >= 1e-3:
        points.append((cx, a[1]))
    if abs(b[0] - cx) >= 1e-3:
        points.append((cx, b[1]))
    points.append(b)

    route = [points[0]]
    for p in points[1:]:
        prev = route[-1]
        if abs(prev[0] - p[0]) > 1e-6 or abs(prev[1] - p[1]) > 1e-6:
            route.append(p)
    return route


def distance_to_segment(p: Point, a: Point, b: Point) -> float:
    vx, vy = b[0] - a[0], b[1] - a[1]
    wx, wy = p[0] - a[0], p[1] - a[1]
    c1 = vx * wx + vy * wy
    if c1 <= 0:
        return math.hypot(p[0] - a[0], p[1] - a[1])
    c2 = vx * vx + vy * vy
    if c2 <= c1:
        return math.hypot(p[0] - b[0], p[1] - b[1])
    t = c1 / c2
    return math.hypot(p[0] - (a[0] + t * vx), p[1] - (a[1] + t * vy))


def distance_to_polyline(p: Point, points: List[Point]) -> float:
    if len(points) < 2:
        return math.inf
    return min(distance_to_segment(p, points[i - 1], points[i]) for i in range(1, len(points)))
