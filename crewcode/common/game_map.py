"""Static room layout of the ship.

Rooms sit on a coarse grid; each grid cell is rendered as a square polygon
so clients can hit-test clicks and draw the map. Walking follows
``adjacent_rooms``; imposters may additionally take the one-way ``vents_to``
edges.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

Point = Tuple[float, float]

ROOM_SIZE = 80
GRID_SPACING = 140
GRID_OFFSET = 50


@dataclass(frozen=True)
class Room:
    name: str
    display_name: str
    adjacent_rooms: Tuple[str, ...]
    vents_to: Tuple[str, ...]
    position: Tuple[int, int]
    coordinates: Tuple[Point, ...] = field(default=())
    center: Point = (0.0, 0.0)

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "displayName": self.display_name,
            "adjacentRooms": list(self.adjacent_rooms),
            "ventsTo": list(self.vents_to),
            "position": {"x": self.position[0], "y": self.position[1]},
            "coordinates": [list(point) for point in self.coordinates],
            "center": list(self.center),
        }


def _room(name: str, display_name: str, adjacent: Sequence[str], vents: Sequence[str], x: int, y: int) -> Room:
    left = x * GRID_SPACING + GRID_OFFSET
    top = y * GRID_SPACING + GRID_OFFSET
    coordinates = (
        (left, top),
        (left + ROOM_SIZE, top),
        (left + ROOM_SIZE, top + ROOM_SIZE),
        (left, top + ROOM_SIZE),
    )
    center = (left + ROOM_SIZE / 2, top + ROOM_SIZE / 2)
    return Room(name, display_name, tuple(adjacent), tuple(vents), (x, y), coordinates, center)


SHIP_ROOMS: Tuple[Room, ...] = (
    _room("cafeteria", "Cafeteria", ["weapons", "admin", "medbay", "upper_engine"], [], 2, 0),
    _room("weapons", "Weapons", ["cafeteria", "o2", "navigation"], ["navigation"], 4, 0),
    _room("o2", "O2", ["weapons", "navigation", "shields"], ["shields"], 4, 1),
    _room("navigation", "Navigation", ["weapons", "o2", "shields"], ["weapons"], 5, 1),
    _room("shields", "Shields", ["navigation", "o2", "storage"], ["navigation"], 4, 2),
    _room("communications", "Communications", ["storage", "shields"], [], 4, 3),
    _room(
        "storage",
        "Storage",
        ["communications", "shields", "admin", "electrical", "lower_engine"],
        ["electrical", "admin"],
        3,
        2,
    ),
    _room("admin", "Admin", ["cafeteria", "storage", "electrical"], ["electrical"], 2, 1),
    _room(
        "electrical",
        "Electrical",
        ["storage", "lower_engine", "security"],
        ["security", "medbay"],
        2,
        2,
    ),
    _room(
        "lower_engine",
        "Lower Engine",
        ["storage", "electrical", "security", "reactor"],
        [],
        3,
        3,
    ),
    _room(
        "security",
        "Security",
        ["electrical", "lower_engine", "reactor", "upper_engine"],
        ["electrical", "medbay"],
        2,
        3,
    ),
    _room("reactor", "Reactor", ["security", "lower_engine", "upper_engine"], [], 1, 3),
    _room(
        "upper_engine",
        "Upper Engine",
        ["reactor", "security", "medbay", "cafeteria"],
        [],
        1,
        2,
    ),
    _room("medbay", "Medbay", ["upper_engine", "cafeteria"], ["electrical", "security"], 1, 1),
)

ROOMS_BY_NAME: Dict[str, Room] = {room.name: room for room in SHIP_ROOMS}


def get_room(name: str) -> Optional[Room]:
    return ROOMS_BY_NAME.get(name)


def can_walk(from_room: str, to_room: str) -> bool:
    room = ROOMS_BY_NAME.get(from_room)
    return bool(room) and to_room in room.adjacent_rooms


def can_vent(from_room: str, to_room: str) -> bool:
    room = ROOMS_BY_NAME.get(from_room)
    return bool(room) and to_room in room.vents_to


def map_as_documents() -> List[Dict[str, object]]:
    """Room list as stored on each Game document."""
    return [room.to_dict() for room in SHIP_ROOMS]


def _point_in_polygon(point: Point, polygon: Sequence[Point]) -> bool:
    # ray casting
    x, y = point
    inside = False
    j = len(polygon) - 1
    for i, (xi, yi) in enumerate(polygon):
        xj, yj = polygon[j]
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def room_at(point: Point) -> Optional[Room]:
    """Return the room whose polygon contains ``point`` (click-to-move)."""
    for room in SHIP_ROOMS:
        if _point_in_polygon(point, room.coordinates):
            return room
    return None
