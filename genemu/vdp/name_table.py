"""Plane name tables: which pattern goes in each cell of a plane."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from genemu.memory.units import InternalError
from genemu.vdp.settings import DisplayWidth, Settings
from genemu.vdp.vmemory import Vram

_ENTRY_SIZE = 2


class PlaneType(enum.Enum):
    A = enum.auto()  # foreground
    B = enum.auto()  # background
    W = enum.auto()  # window


@dataclass(frozen=True)
class NameTableEntry:
    """One cell of a plane."""

    pattern_addr: int = 0
    horizontal_flip: bool = False
    vertical_flip: bool = False
    palette: int = 0
    priority: bool = False

    @classmethod
    def from_value(cls, value: int) -> "NameTableEntry":
        return cls(
            pattern_addr=value & 0x07FF,
            horizontal_flip=bool((value >> 11) & 0b1),
            vertical_flip=bool((value >> 12) & 0b1),
            palette=(value >> 13) & 0b11,
            priority=bool((value >> 15) & 0b1),
        )

    def effective_pattern_address(self) -> int:
        """VRAM address of the pattern; each pattern is 32 bytes."""
        return self.pattern_addr << 5


class NameTable:
    """Name table of one plane, laid out as configured when it was created."""

    def __init__(self, plane: PlaneType, sett: Settings, vram: Vram):
        self._vram = vram
        self._plane_address = self._plane_address_of(plane, sett)
        self._entries_per_row = self._entries_per_row_of(plane, sett)
        self._row_count = self._row_count_of(plane, sett)
        self._row_size_in_bytes = self._entries_per_row * _ENTRY_SIZE

    def entries_per_row(self) -> int:
        return self._entries_per_row

    def row_count(self) -> int:
        return self._row_count

    def get(self, row_number: int, entry_number: int) -> NameTableEntry:
        """Entry at zero-based row and column."""
        if not 0 <= row_number < self._row_count:
            raise ValueError(f"row_number {row_number} out of range")
        if not 0 <= entry_number < self._entries_per_row:
            raise ValueError(f"entry_number {entry_number} out of range")

        address = (
            self._plane_address
            + self._row_size_in_bytes * row_number
            + entry_number * _ENTRY_SIZE
        )
        return NameTableEntry.from_value(self._vram.read(address, 2))

    @staticmethod
    def _plane_address_of(plane: PlaneType, sett: Settings) -> int:
        if plane is PlaneType.A:
            return sett.plane_a_address()
        if plane is PlaneType.B:
            return sett.plane_b_address()
        if plane is PlaneType.W:
            return sett.plane_w_address()
        raise InternalError(f"unknown plane {plane}")

    @staticmethod
    def _entries_per_row_of(plane: PlaneType, sett: Settings) -> int:
        if plane in (PlaneType.A, PlaneType.B):
            # one entry per tile
            return sett.plane_width_in_tiles()
        if plane is PlaneType.W:
            return 64 if sett.display_width() is DisplayWidth.C40 else 32
        raise InternalError(f"unknown plane {plane}")

    @staticmethod
    def _row_count_of(plane: PlaneType, sett: Settings) -> int:
        if plane in (PlaneType.A, PlaneType.B):
            return sett.plane_height_in_tiles()
        if plane is PlaneType.W:
            # the window plane always has 32 rows
            return 32
        raise InternalError(f"unknown plane {plane}")