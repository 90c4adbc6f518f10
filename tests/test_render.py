from dataclasses import dataclass

import pytest

from genemu.vdp.name_table import PlaneType
from genemu.vdp.output_color import TRANSPARENT_COLOR
from genemu.vdp.registers import RegisterSet
from genemu.vdp.render import Render
from genemu.vdp.settings import Settings
from genemu.vdp.vmemory import Cram, Vram, Vsram

PLANE_A = 0x2000
WINDOW = 0x800
HSCROLL = 0x4000
SPRITES = 0x8000
PATTERN_1 = 32


@dataclass
class Env:
    regs: RegisterSet
    sett: Settings
    vram: Vram
    vsram: Vsram
    cram: Cram
    render: Render


def _color_value(color, palette):
    return ((color & 7) << 1) | (((color >> 3) & 7) << 5) | ((palette & 7) << 9)


@pytest.fixture
def env():
    regs = RegisterSet()
    sett = Settings(regs)
    vram, vsram, cram = Vram(), Vsram(), Cram()
    render = Render(regs, sett, vram, vsram, cram)

    # keep the tables apart from each other and from the patterns
    regs.set_register(2, 0b001000)  # plane A at 0x2000
    regs.set_register(3, 0b10)  # window at 0x800
    regs.set_register(4, 3)  # plane B at 0x6000
    regs.set_register(5, 0x40)  # sprites at 0x8000
    regs.set_register(13, 0x10)  # hscroll at 0x4000

    for palette in (0, 1):
        for color in range(1, 16):
            cram.write(palette * 32 + color * 2, _color_value(color, palette))

    # pattern 1, line 0: colour ids 1..8
    for i, byte in enumerate((0x12, 0x34, 0x56, 0x78)):
        vram.write(PATTERN_1 + i, byte, 1)

    return Env(regs, sett, vram, vsram, cram, render)


def _colors(env, palette=0):
    return [env.cram.read_color(palette, c) for c in range(1, 9)]


def _write_sprite(vram, number, vpos, hpos, link, attr_hi=0, size=0):
    base = SPRITES + number * 8
    vram.write(base, vpos, 2)
    vram.write(base + 2, size, 1)
    vram.write(base + 3, link, 1)
    vram.write(base + 4, attr_hi, 1)
    vram.write(base + 5, 1, 1)  # pattern 1
    vram.write(base + 6, hpos, 2)


def test_plane_dimensions(env):
    assert env.render.plane_width_in_pixels(PlaneType.A) == 256
    assert env.render.plane_height_in_pixels(PlaneType.A) == 256
    env.regs.set_register(16, 0b01)
    assert env.render.plane_width_in_pixels(PlaneType.A) == 2 * env.render.plane_height_in_pixels(PlaneType.A)


def test_sprite_and_display_dimensions(env):
    assert env.render.sprite_width_in_pixels() == 512
    assert env.render.sprite_height_in_pixels() == 512
    assert env.render.active_display_width() == 256
    assert env.render.active_display_height() == 224
    env.regs.set_register(12, 1)
    assert env.render.active_display_width() == 320


def test_background_color(env):
    env.regs.set_register(7, (1 << 4) | 3)
    assert env.render.background_color() == env.cram.read_color(1, 3)


def test_plane_row_empty_is_transparent(env):
    row = env.render.get_plane_row(PlaneType.A, 0)
    assert row == [TRANSPARENT_COLOR] * env.render.plane_width_in_pixels(PlaneType.A)


def test_plane_row_decodes_pattern(env):
    env.vram.write(PLANE_A, 0x0001, 2)
    row = env.render.get_plane_row(PlaneType.A, 0)
    assert row[:8] == _colors(env)
    assert row[8:] == [TRANSPARENT_COLOR] * (len(row) - 8)


def test_plane_row_horizontal_flip(env):
    env.vram.write(PLANE_A, 0x0801, 2)
    row = env.render.get_plane_row(PlaneType.A, 0)
    assert row[:8] == list(reversed(_colors(env)))


def test_plane_row_vertical_flip(env):
    env.vram.write(PLANE_A, 0x1001, 2)
    assert env.render.get_plane_row(PlaneType.A, 7)[:8] == _colors(env)
    assert env.render.get_plane_row(PlaneType.A, 0)[:8] == [TRANSPARENT_COLOR] * 8


def test_plane_row_palette(env):
    env.vram.write(PLANE_A, 0x2001, 2)
    assert env.render.get_plane_row(PlaneType.A, 0)[:8] == _colors(env, palette=1)


def test_plane_row_out_of_range(env):
    with pytest.raises(ValueError):
        env.render.get_plane_row(PlaneType.A, env.render.plane_height_in_pixels(PlaneType.A))


def test_sprite_row(env):
    _write_sprite(env.vram, 0, vpos=10, hpos=20, link=0)
    row = env.render.get_sprite_row(10)
    assert len(row) == env.render.sprite_width_in_pixels()
    assert row[20:28] == _colors(env)
    assert row[:20] == [TRANSPARENT_COLOR] * 20
    assert env.render.get_sprite_row(9) == [TRANSPARENT_COLOR] * len(row)
    assert env.render.get_sprite_row(18) == [TRANSPARENT_COLOR] * len(row)


def test_active_display_empty_is_background(env):
    env.regs.set_register(7, (1 << 4) | 2)
    row = env.render.get_active_display_row(0)
    assert row == [env.render.background_color()] * env.render.active_display_width()


def test_active_display_row_out_of_range(env):
    with pytest.raises(ValueError):
        env.render.get_active_display_row(env.render.active_display_height())


def test_active_display_horizontal_scroll(env):
    env.vram.write(PLANE_A, 0x0001, 2)
    env.vram.write(HSCROLL, 8, 2)
    row = env.render.get_active_display_row(0)
    bg = env.render.background_color()
    assert row[8:16] == _colors(env)
    assert row[:8] == [bg] * 8


def test_active_display_sprite_and_collision(env):
    _write_sprite(env.vram, 0, vpos=128, hpos=128, link=0)
    row = env.render.get_active_display_row(0)
    assert row[:8] == _colors(env)
    assert env.regs.SR.SC == 0

    _write_sprite(env.vram, 0, vpos=128, hpos=128, link=1)
    _write_sprite(env.vram, 1, vpos=128, hpos=128, link=0)
    env.render.get_active_display_row(0)
    assert env.regs.SR.SC == 1


def test_active_display_sprite_masking(env):
    _write_sprite(env.vram, 0, vpos=128, hpos=128, link=1)
    _write_sprite(env.vram, 1, vpos=128, hpos=0, link=2)
    _write_sprite(env.vram, 2, vpos=128, hpos=136, link=0)
    row = env.render.get_active_display_row(0)
    assert row[:8] == _colors(env)
    assert row[8:16] == [env.render.background_color()] * 8


@pytest.mark.parametrize("count, overflow", [(16, 0), (17, 1)])
def test_active_display_sprite_overflow(env, count, overflow):
    for n in range(count):
        link = n + 1 if n + 1 < count else 0
        _write_sprite(env.vram, n, vpos=128, hpos=128 + n * 8, link=link)
    env.render.get_active_display_row(0)
    assert env.regs.SR.SO == overflow


def test_priority_plane_over_low_priority_sprite(env):
    _write_sprite(env.vram, 0, vpos=128, hpos=128, link=0)
    env.vram.write(PLANE_A, 0xA001, 2)
    assert env.render.get_active_display_row(0)[0] == env.cram.read_color(1, 1)

    env.vram.write(PLANE_A, 0x2001, 2)
    assert env.render.get_active_display_row(0)[0] == env.cram.read_color(0, 1)


def test_window_plane(env):
    env.regs.set_register(18, 1)  # window covers tile row 0
    env.vram.write(WINDOW, 0x0001, 2)
    assert env.render.get_active_display_row(0)[:8] == _colors(env)
    assert env.render.get_active_display_row(8)[:8] == [env.render.background_color()] * 8


def test_reset_limits_keeps_rendering(env):
    env.vram.write(PLANE_A, 0x0001, 2)
    before = env.render.get_active_display_row(0)
    env.render.reset_limits()
    assert env.render.get_active_display_row(0) == before