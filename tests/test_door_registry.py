from delve.dungeon.door_registry import DoorRegistry, canonical_edge, door_id
from delve.dungeon.models import ConnectionPoint, DoorState, ExitDirection, Position

N, S, E, W = ExitDirection.NORTH, ExitDirection.SOUTH, ExitDirection.EAST, ExitDirection.WEST


def test_both_sides_of_a_wall_share_an_id():
    assert door_id(Position(3, 4), N) == door_id(Position(3, 3), S) == "door-3-3-south"
    assert door_id(Position(3, 4), W) == door_id(Position(2, 4), E) == "door-2-4-east"
    assert canonical_edge(Position(3, 4), S) == (Position(3, 4), S)
    assert door_id(Position(3, 4), N) != door_id(Position(3, 4), S)


def test_register_is_idempotent_and_merges_elements():
    reg = DoorRegistry()
    gid = reg.register(Position(5, 5), E, "room-00", seed="5-5-east-0")
    assert reg.register(Position(5, 5), E, "room-00") == gid
    assert reg.register(Position(6, 5), W, "corridor-a") == gid
    assert len(reg) == 1
    door = reg.get_door(gid)
    assert door.connected_elements == ["room-00", "corridor-a"]
    # first registrant's view is kept
    assert door.location.position == Position(5, 5)
    assert door.location.direction == E
    assert reg.get_door_generation_seed(Position(6, 5), W) == "5-5-east-0"


def test_state_and_generated_flags():
    reg = DoorRegistry()
    gid = reg.register(Position(1, 1), S, "room-00")
    assert reg.get_door_state(Position(1, 2), N) == DoorState.CLOSED
    assert reg.update_state(gid, DoorState.OPEN)
    assert reg.get_door_state(Position(1, 1), S) == DoorState.OPEN
    assert not reg.is_door_generated(Position(1, 1), S)
    assert reg.mark_generated(gid, "room-01")
    assert reg.is_door_generated(Position(1, 2), N)
    assert reg.get_door(gid).connected_element_id == "room-01"
    assert not reg.update_state("door-9-9-east", DoorState.OPEN)
    # unknown edges read as closed
    assert reg.get_door_state(Position(20, 20), E) == DoorState.CLOSED


def test_connect_element_to_existing_returns_copies():
    reg = DoorRegistry()
    reg.register(Position(5, 5), E, "room-00")
    joined = ConnectionPoint(W, Position(6, 5))
    lone = ConnectionPoint(E, Position(9, 5))
    updated = reg.connect_element_to_existing("corridor-b", [joined, lone])
    assert updated[0] is not joined and updated[1] is not lone
    assert updated[0].is_connected and updated[0].connected_element_id == "room-00"
    assert not joined.is_connected
    assert not updated[1].is_connected
    assert reg.get_door_by_location(Position(5, 5), E).connected_elements == ["room-00", "corridor-b"]
    # only pre-existing doors are touched
    assert not reg.has_door(Position(9, 5), E)


def test_remove_element_drops_orphaned_doors():
    reg = DoorRegistry()
    shared = reg.register(Position(5, 5), E, "room-00")
    reg.register(Position(6, 5), W, "corridor-c")
    solo = reg.register(Position(5, 5), N, "room-00")
    reg.remove_element("room-00")
    assert reg.get_door(solo) is None
    assert reg.get_door(shared).connected_elements == ["corridor-c"]
    assert [d.location.global_id for d in reg.doors_for_element("corridor-c")] == [shared]


def test_conflicting_doors_only_count_own_registrations():
    reg = DoorRegistry()
    reg.register(Position(4, 4), E, "corridor-d")
    reg.register(Position(4, 4), W, "corridor-d")
    assert reg.has_conflicting_doors(Position(4, 4))

    other = DoorRegistry()
    other.register(Position(4, 4), E, "corridor-e")
    # registered from the west neighbour, so it is not (4, 4)'s own west wall
    other.register(Position(3, 4), E, "room-00")
    assert not other.has_conflicting_doors(Position(4, 4))

    other.clear()
    assert len(other) == 0
