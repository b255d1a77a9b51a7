from crewcode.common.game_map import (
    SHIP_ROOMS,
    can_vent,
    can_walk,
    get_room,
    map_as_documents,
    room_at,
)


def test_ship_has_fourteen_rooms_with_unique_names():
    names = [room.name for room in SHIP_ROOMS]

    assert len(names) == 14
    assert len(set(names)) == 14


def test_adjacency_points_at_known_rooms():
    for room in SHIP_ROOMS:
        for neighbour in room.adjacent_rooms + room.vents_to:
            assert get_room(neighbour) is not None, (room.name, neighbour)


def test_walking_follows_adjacency():
    assert can_walk("cafeteria", "weapons")
    assert not can_walk("cafeteria", "reactor")
    assert not can_walk("nowhere", "cafeteria")


def test_vents_are_separate_from_walking():
    assert can_vent("electrical", "medbay")
    assert not can_walk("electrical", "medbay")
    assert not can_vent("cafeteria", "weapons")


def test_room_documents_carry_polygon_and_center():
    cafeteria = next(doc for doc in map_as_documents() if doc["name"] == "cafeteria")

    assert cafeteria["displayName"] == "Cafeteria"
    assert len(cafeteria["coordinates"]) == 4
    assert cafeteria["center"] == [370.0, 90.0]


def test_room_at_hit_tests_polygons():
    assert room_at((370.0, 90.0)).name == "cafeteria"
    assert room_at((0.0, 0.0)) is None
