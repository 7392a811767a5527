import pytest

from levelrun.core.types import Position
from levelrun.pipeline.host import SandboxHost
from levelrun.pipeline.levels import LEVEL_2, LEVEL_3


def test_insert_char_types_at_the_cursor() -> None:
    host = SandboxHost()
    for ch in "fn main":
        host.insert_char(ch)
    host.cursor_position = 2
    host.insert_char("!")

    assert host.current_code == "fn! main"
    assert host.cursor_position == 3


@pytest.mark.asyncio
async def test_execute_captures_output_and_updates_world() -> None:
    host = SandboxHost()
    host.load_level(LEVEL_3)

    result = await host.execute('eprintln!("door?"); move_bot("right"); open_door(); println!("ok");')

    assert result is host.execution_result
    assert host.stdout_lines == ["ok"]
    assert host.stderr_lines == ["door?"]
    assert host.world.position == Position(1, 1)
    assert host.world.grid.is_door_open(Position(2, 1))
    assert host.executions == 1


@pytest.mark.asyncio
async def test_load_level_resets_code_output_and_world() -> None:
    host = SandboxHost()
    host.load_level(LEVEL_2)
    host.insert_char("x")
    await host.execute('move_bot("right"); move_bot("right"); grab(); println!("got it");')
    assert host.inventory == ["key"]

    host.load_level(LEVEL_2)

    assert host.current_code == ""
    assert host.cursor_position == 0
    assert host.stdout_lines == []
    assert host.execution_result is None
    assert host.inventory == []
    assert host.world.position == Position(0, 0)
