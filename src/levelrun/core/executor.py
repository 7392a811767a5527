"""Apply extracted actions to the world model."""

from __future__ import annotations

from levelrun.core.types import Action, Direction, Grab, Move, OpenDoor, Position, Scan, Wait
from levelrun.core.world import WorldModel

MOVE_EXECUTED = "Move executed"
MOVE_BLOCKED = "Move blocked"
OBJECT_BLOCKING = "Unknown Object Blocking Function"
DOOR_CLOSED = "Door is closed."
NOTHING_TO_GRAB = "Nothing to grab."
DOOR_OPENED = "Door opened successfully!"
DOOR_ALREADY_OPEN = "Door is already open."
NO_DOOR_NEARBY = "No door nearby."
WAIT_EXECUTED = "Wait executed"
NOOP_EXECUTED = "No-op executed"


def execute(world: WorldModel, action: Action) -> str:
    """Apply one action and return its outcome text.

    Never raises. Every call costs exactly one turn, no-ops included.
    """

    world.turns += 1
    if isinstance(action, Move):
        return _move(world, action.direction)
    if isinstance(action, Scan):
        return _scan(world, action.direction)
    if isinstance(action, Grab):
        return _grab(world)
    if isinstance(action, OpenDoor):
        return _open_door(world)
    if isinstance(action, Wait):
        return WAIT_EXECUTED
    return NOOP_EXECUTED


def _move(world: WorldModel, direction: Direction) -> str:
    target = world.position.offset(direction)
    grid = world.grid
    if not grid.in_bounds(target):
        return MOVE_BLOCKED
    if grid.is_blocked(target):
        grid.reveal(target)
        return OBJECT_BLOCKING
    if grid.is_door(target) and not grid.is_door_open(target):
        grid.reveal(target)
        return DOOR_CLOSED
    world.position = target
    grid.reveal(target)
    return MOVE_EXECUTED


def _scan(world: WorldModel, direction: Direction) -> str:
    target = world.position.offset(direction)
    grid = world.grid
    if not grid.in_bounds(target):
        found = "out of bounds"
    else:
        grid.reveal(target)
        found = _describe(world, target)
    return f"Scan {direction.label}: {found}"


def _describe(world: WorldModel, pos: Position) -> str:
    grid = world.grid
    if grid.is_blocked(pos):
        return "wall"
    if grid.is_door(pos):
        return "open door" if grid.is_door_open(pos) else "door"
    item = grid.items.get(pos)
    if item is not None:
        return item
    return "empty"


def _grab(world: WorldModel) -> str:
    collected: list[str] = []
    for pos in sorted(world.grid.items, key=lambda p: (p.y, p.x)):
        if world.position.distance_to(pos) > world.grabber_range:
            continue
        item = world.grid.take_item(pos)
        if item is None:
            continue
        world.grid.reveal(pos)
        world.inventory.append(item)
        collected.append(item)
    if not collected:
        return NOTHING_TO_GRAB
    return f"Grabbed items: {', '.join(collected)}"


def _open_door(world: WorldModel) -> str:
    grid = world.grid
    nearby = [
        world.position.offset(direction)
        for direction in (Direction.CURRENT, Direction.UP, Direction.RIGHT, Direction.DOWN, Direction.LEFT)
    ]
    doors = [pos for pos in nearby if grid.is_door(pos)]
    if not doors:
        return NO_DOOR_NEARBY
    for pos in doors:
        if grid.open_door(pos):
            return DOOR_OPENED
    return DOOR_ALREADY_OPEN
