"""Horizontal and vertical scroll tables of planes A and B."""

from __future__ import annotations

from genemu.memory.units import InternalError
from genemu.vdp.name_table import PlaneType
from genemu.vdp.settings import DisplayWidth, HorizontalScrolling, Settings, VerticalScrolling
from genemu.vdp.vmemory import Vram, Vsram

_OFFSET_MASK = 0b1111111111
_SCROLLED_PLANES = (PlaneType.A, PlaneType.B)


class HscrollTable:
    """Horizontal scroll table of plane A or B, kept in VRAM."""

    def __init__(self, plane: PlaneType, sett: Settings, vram: Vram):
        if plane not in _SCROLLED_PLANES:
            raise ValueError(f"plane {plane} has no horizontal scroll table")
        self._plane = plane
        self._sett = sett
        self._vram = vram

    def get_offset(self, line_number: int) -> int:
        """Horizontal scroll offset of the given display line."""
        if not 0 <= line_number < self._sett.display_height_in_pixels():
            raise InternalError(f"line {line_number} is outside the display")
        return self._vram.read(self._entry_address(line_number), 2) & _OFFSET_MASK

    def _entry_address(self, line_number: int) -> int:
        address = self._sett.horizontal_scroll_address()
        mode = self._sett.horizontal_scrolling()

        if mode is HorizontalScrolling.FULL_SCREEN:
            pass
        elif mode is HorizontalScrolling.LINE:
            # two planes per line, two bytes per entry
            address += line_number * 4
        elif mode is HorizontalScrolling.CELL:
            # one entry pair per 8-line strip, 16 words apart
            address += (line_number >> 3) * 32
        elif mode is HorizontalScrolling.INVALID:
            # undocumented: repeats every 8 lines
            address += (line_number & 0b111) * 4
        else:
            raise InternalError(f"unknown horizontal scrolling mode {mode}")

        if self._plane is PlaneType.B:
            address += 2
        return address


def _num_strips(sett: Settings) -> int:
    # 20 two-cell strips in 320-pixel mode, 16 in 256-pixel mode
    return 20 if sett.display_width() is DisplayWidth.C40 else 16


def vscroll_offset(plane: PlaneType, tile_column_number: int, sett: Settings, vsram: Vsram) -> int:
    """Vertical scroll offset of plane A or B at the given tile column."""
    if plane not in _SCROLLED_PLANES:
        raise InternalError(f"plane {plane} has no vertical scroll entry")

    address = 0
    mode = sett.vertical_scrolling()
    if mode is VerticalScrolling.FULL_SCREEN:
        pass
    elif mode is VerticalScrolling.TWO_CELL:
        # every two tiles share one entry pair, four bytes per pair
        strip = (tile_column_number >> 1) % _num_strips(sett)
        address += strip * 4
    else:
        raise InternalError(f"unknown vertical scrolling mode {mode}")

    if plane is PlaneType.B:
        address += 2

    return vsram.read(address) & _OFFSET_MASK