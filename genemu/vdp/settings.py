"""Decoded view of the VDP registers."""

from __future__ import annotations

import enum

from genemu.memory.units import InternalError
from genemu.vdp.registers import RegisterSet


class PlaneDimension(enum.Enum):
    """Plane size in cells."""

    C32 = enum.auto()
    C64 = enum.auto()
    C128 = enum.auto()
    INVALID = enum.auto()


class DisplayHeight(enum.Enum):
    C30 = enum.auto()  # 240 pixels
    C28 = enum.auto()  # 224 pixels


class DisplayWidth(enum.Enum):
    C32 = enum.auto()  # 256 pixels
    C40 = enum.auto()  # 320 pixels


class VerticalScrolling(enum.Enum):
    FULL_SCREEN = enum.auto()
    TWO_CELL = enum.auto()


class HorizontalScrolling(enum.Enum):
    FULL_SCREEN = enum.auto()
    LINE = enum.auto()
    CELL = enum.auto()
    INVALID = enum.auto()


class DrawHorizontalDirection(enum.Enum):
    LEFT = enum.auto()
    RIGHT = enum.auto()


class DrawVerticalDirection(enum.Enum):
    UP = enum.auto()
    DOWN = enum.auto()


class InterlaceMode(enum.Enum):
    DISABLED = enum.auto()
    NORMAL = enum.auto()
    DOUBLED = enum.auto()


class DmaMode(enum.Enum):
    MEM_TO_VRAM = enum.auto()  # 68000 memory -> VRAM
    VRAM_FILL = enum.auto()
    VRAM_COPY = enum.auto()


class DisplayMode(enum.Enum):
    MODE4 = enum.auto()  # Master System
    MODE5 = enum.auto()  # Mega Drive


_PLANE_DIMENSIONS = {
    0b00: PlaneDimension.C32,
    0b01: PlaneDimension.C64,
    0b11: PlaneDimension.C128,
}

_PLANE_TILES = {
    PlaneDimension.C32: 32,
    PlaneDimension.C64: 64,
    PlaneDimension.C128: 128,
}

_INTERLACE_MODES = {
    0b01: InterlaceMode.NORMAL,
    0b11: InterlaceMode.DOUBLED,
}

_HORIZONTAL_SCROLLING = {
    0b00: HorizontalScrolling.FULL_SCREEN,
    0b10: HorizontalScrolling.CELL,
    0b11: HorizontalScrolling.LINE,
}


class Settings:
    """Interprets the raw register set as display, DMA and interrupt settings."""

    def __init__(self, regs: RegisterSet):
        self._regs = regs

    # table addresses

    def plane_a_address(self) -> int:
        return self._regs.R2.PA5_3 << 13

    def plane_b_address(self) -> int:
        return self._regs.R4.PB2_0 << 13

    def plane_w_address(self) -> int:
        addr = self._regs.R3.W5_1
        if self.display_width() is DisplayWidth.C40:
            addr &= ~1
        return addr << 11

    def sprite_address(self) -> int:
        addr = self._regs.R5.ST6_0
        if self.display_width() is DisplayWidth.C40:
            addr &= ~1
        return addr << 9

    def horizontal_scroll_address(self) -> int:
        return self._regs.R13.HS5_0 << 10

    # plane dimensions

    def plane_height(self) -> PlaneDimension:
        """Height of planes A and B."""
        return _PLANE_DIMENSIONS.get(self._regs.R16.H, PlaneDimension.INVALID)

    def plane_width(self) -> PlaneDimension:
        """Width of planes A and B."""
        return _PLANE_DIMENSIONS.get(self._regs.R16.W, PlaneDimension.INVALID)

    def plane_width_in_tiles(self) -> int:
        return self._tiles(self.plane_width())

    def plane_height_in_tiles(self) -> int:
        return self._tiles(self.plane_height())

    @staticmethod
    def _tiles(dimension: PlaneDimension) -> int:
        try:
            return _PLANE_TILES[dimension]
        except KeyError:
            raise InternalError(f"invalid plane dimension {dimension}") from None

    # window plane

    def window_horizontal_pos_in_cells(self) -> int:
        return self._regs.R17.HP

    def window_horizontal_draw_direction(self) -> DrawHorizontalDirection:
        # the window plane only comes out right with the R bit read inverted
        if self._regs.R17.R == 0:
            return DrawHorizontalDirection.RIGHT
        return DrawHorizontalDirection.LEFT

    def window_vertical_pos_in_cells(self) -> int:
        return self._regs.R18.VP

    def window_vertical_draw_direction(self) -> DrawVerticalDirection:
        if self._regs.R18.D == 1:
            return DrawVerticalDirection.DOWN
        return DrawVerticalDirection.UP

    # DMA

    def dma_enabled(self) -> bool:
        return self._regs.R1.M1 == 1

    @property
    def dma_length(self) -> int:
        return (self._regs.R20.H << 8) | self._regs.R19.L

    @dma_length.setter
    def dma_length(self, length: int) -> None:
        length &= 0xFFFF
        self._regs.R20.H = length >> 8
        self._regs.R19.L = length & 0xFF

    @property
    def dma_source(self) -> int:
        regs = self._regs
        source = regs.R21.L | (regs.R22.M << 8)
        if regs.R23.T1 == 0:
            # only 68000 -> VRAM transfers use the high bits; T0 acts as bit 22
            source |= regs.R23.H << 16
            source |= regs.R23.T0 << 22
            # the registers hold a word address
            source <<= 1
        return source

    @dma_source.setter
    def dma_source(self, value: int) -> None:
        regs = self._regs
        value &= 0xFFFFFFFF
        if regs.R23.T1 == 0:
            value >>= 1
        regs.R21.L = value & 0xFF
        value >>= 8
        regs.R22.M = value & 0xFF
        value >>= 8
        if regs.R23.T1 == 0:
            regs.R23.H = value & 0b111111
            regs.R23.T0 = (value >> 6) & 1

    @property
    def dma_mode(self) -> DmaMode:
        if self._regs.R23.T1 == 0:
            return DmaMode.MEM_TO_VRAM
        if self._regs.R23.T0 == 0:
            return DmaMode.VRAM_FILL
        return DmaMode.VRAM_COPY

    @dma_mode.setter
    def dma_mode(self, mode: DmaMode) -> None:
        r23 = self._regs.R23
        if mode is DmaMode.MEM_TO_VRAM:
            r23.T1 = 0
        elif mode is DmaMode.VRAM_FILL:
            r23.T1 = 1
            r23.T0 = 0
        elif mode is DmaMode.VRAM_COPY:
            r23.T1 = 1
            r23.T0 = 1
        else:
            raise InternalError(f"unknown DMA mode {mode}")

    # interrupts

    def vertical_interrupt_enabled(self) -> bool:
        return self._regs.R1.IE0 == 1

    def horizontal_interrupt_enabled(self) -> bool:
        return self._regs.R0.IE1 == 1

    def external_interrupt_enabled(self) -> bool:
        return self._regs.R11.IE2 == 1

    def horizontal_interrupt_counter(self) -> int:
        return self._regs.R10.H

    # display

    def display_mode(self) -> DisplayMode:
        return DisplayMode.MODE5 if self._regs.R1.M5 == 1 else DisplayMode.MODE4

    def display_height(self) -> DisplayHeight:
        return DisplayHeight.C30 if self._regs.R1.M2 == 1 else DisplayHeight.C28

    def display_height_in_pixels(self) -> int:
        return 240 if self.display_height() is DisplayHeight.C30 else 224

    def display_height_in_tiles(self) -> int:
        return 30 if self.display_height() is DisplayHeight.C30 else 28

    def display_width(self) -> DisplayWidth:
        return DisplayWidth.C40 if self._regs.R12.RS0 == 1 else DisplayWidth.C32

    def display_width_in_pixels(self) -> int:
        return 320 if self.display_width() is DisplayWidth.C40 else 256

    def display_width_in_tiles(self) -> int:
        return 40 if self.display_width() is DisplayWidth.C40 else 32

    def interlace_mode(self) -> InterlaceMode:
        return _INTERLACE_MODES.get(self._regs.R12.LS, InterlaceMode.DISABLED)

    # scrolling

    def vertical_scrolling(self) -> VerticalScrolling:
        if self._regs.R11.VS == 1:
            return VerticalScrolling.TWO_CELL
        return VerticalScrolling.FULL_SCREEN

    def horizontal_scrolling(self) -> HorizontalScrolling:
        return _HORIZONTAL_SCROLLING.get(self._regs.R11.HS, HorizontalScrolling.INVALID)

    def freeze_hv_counter(self) -> bool:
        return self._regs.R0.M3 == 1

    def in_128kb_vram_mode(self) -> bool:
        return self._regs.R1.VR == 1

    def auto_increment_value(self) -> int:
        return self._regs.R15.INC