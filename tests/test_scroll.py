import pytest

from genemu.memory.units import InternalError
from genemu.vdp.name_table import PlaneType
from genemu.vdp.registers import RegisterSet
from genemu.vdp.scroll import HscrollTable, vscroll_offset
from genemu.vdp.settings import Settings
from genemu.vdp.vmemory import Vram, Vsram


@pytest.fixture
def env():
    regs = RegisterSet()
    return regs, Settings(regs), Vram(), Vsram()


def test_hscroll_rejects_window_plane(env):
    _, sett, vram, _ = env
    with pytest.raises(ValueError):
        HscrollTable(PlaneType.W, sett, vram)


def test_hscroll_full_screen_same_for_all_lines(env):
    _, sett, vram, _ = env
    vram.write(0, 123, 2)
    vram.write(2, 45, 2)
    a = HscrollTable(PlaneType.A, sett, vram)
    b = HscrollTable(PlaneType.B, sett, vram)
    assert [a.get_offset(line) for line in (0, 50, 223)] == [123, 123, 123]
    assert b.get_offset(100) == 45


def test_hscroll_offset_is_masked(env):
    _, sett, vram, _ = env
    vram.write(0, 0xFFFF, 2)
    assert HscrollTable(PlaneType.A, sett, vram).get_offset(0) == 0b1111111111


def test_hscroll_uses_table_address(env):
    regs, sett, vram, _ = env
    regs.set_register(13, 0x10)
    vram.write(sett.horizontal_scroll_address(), 77, 2)
    assert HscrollTable(PlaneType.A, sett, vram).get_offset(0) == 77


def test_hscroll_line_mode(env):
    regs, sett, vram, _ = env
    regs.set_register(11, 0b11)
    vram.write(5 * 4, 123, 2)
    vram.write(5 * 4 + 2, 321, 2)
    assert HscrollTable(PlaneType.A, sett, vram).get_offset(5) == 123
    assert HscrollTable(PlaneType.B, sett, vram).get_offset(5) == 321
    assert HscrollTable(PlaneType.A, sett, vram).get_offset(4) == 0


def test_hscroll_cell_mode(env):
    regs, sett, vram, _ = env
    regs.set_register(11, 0b10)
    vram.write(0, 11, 2)
    vram.write(32, 22, 2)
    table = HscrollTable(PlaneType.A, sett, vram)
    assert [table.get_offset(line) for line in range(8)] == [11] * 8
    assert table.get_offset(8) == 22


def test_hscroll_line_beyond_display_raises(env):
    _, sett, vram, _ = env
    table = HscrollTable(PlaneType.A, sett, vram)
    with pytest.raises(InternalError):
        table.get_offset(sett.display_height_in_pixels())


def test_vscroll_rejects_window_plane(env):
    _, sett, _, vsram = env
    with pytest.raises(InternalError):
        vscroll_offset(PlaneType.W, 0, sett, vsram)


def test_vscroll_full_screen(env):
    _, sett, _, vsram = env
    vsram.write(0, 100, 2) if False else vsram.write(0, 100)
    vsram.write(2, 200)
    assert vscroll_offset(PlaneType.A, 0, sett, vsram) == 100
    assert vscroll_offset(PlaneType.A, 31, sett, vsram) == 100
    assert vscroll_offset(PlaneType.B, 7, sett, vsram) == 200


def test_vscroll_two_cell(env):
    regs, sett, _, vsram = env
    regs.set_register(11, 0b100)
    vsram.write(0, 10)
    vsram.write(4, 20)
    vsram.write(6, 30)
    assert vscroll_offset(PlaneType.A, 1, sett, vsram) == 10
    assert vscroll_offset(PlaneType.A, 2, sett, vsram) == 20
    assert vscroll_offset(PlaneType.A, 3, sett, vsram) == 20
    assert vscroll_offset(PlaneType.B, 2, sett, vsram) == 30
    # 16 strips in 256-pixel mode: column 32 wraps to strip 0
    assert vscroll_offset(PlaneType.A, 32, sett, vsram) == 10


def test_vscroll_offset_is_masked(env):
    _, sett, _, vsram = env
    vsram.write(0, 0xFFFF)
    assert vscroll_offset(PlaneType.A, 0, sett, vsram) == 0b1111111111