import itertools

import pytest

from genemu.vdp.output_color import TRANSPARENT_COLOR, Mode, OutputColor


def test_default_is_transparent_black():
    color = OutputColor()
    assert color == TRANSPARENT_COLOR
    assert color.transparent is True
    assert (color.red, color.green, color.blue) == (0, 0, 0)


def test_decoded_color_is_opaque():
    assert OutputColor.from_internal(0).transparent is False
    assert OutputColor.from_internal(0) != TRANSPARENT_COLOR


def test_all_channels_set():
    color = OutputColor.from_internal(0xFFFF)
    assert (color.red, color.green, color.blue) == (7, 7, 7)


def test_round_trip_every_color():
    for r, g, b in itertools.product(range(8), repeat=3):
        color = OutputColor(red=r, green=g, blue=b, transparent=False)
        assert OutputColor.from_internal(color.to_internal()) == color


@pytest.mark.parametrize("value", [0, 0x0001, 0x1234, 0xABCD, 0xF00F, 0xFFFF])
def test_decode_is_stable(value):
    decoded = OutputColor.from_internal(value)
    assert OutputColor.from_internal(decoded.to_internal()) == decoded


def test_channels_are_limited_to_three_bits():
    color = OutputColor(red=9, green=15, blue=8)
    assert color.red == 9 & 0b111
    assert color.green == 15 & 0b111
    assert color.blue == 8 & 0b111


def test_modes_look_up_by_value():
    assert Mode(Mode.PAL.value) is Mode.PAL
    assert Mode(Mode.NTSC.value) is Mode.NTSC
    assert Mode.PAL is not Mode.NTSC