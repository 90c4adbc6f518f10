"""VDP video memories and the interfaces the VDP uses to reach the 68000."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

from genemu.memory.units import ByteOrder, MemoryUnit
from genemu.vdp.output_color import OutputColor

_PALETTES = 4
_COLORS_PER_PALETTE = 16
_VSRAM_SIZE = 80


def _format_addr(addr: int) -> int:
    return addr & 0b0000000001111110


class Vram(MemoryUnit):
    """64 KiB of big-endian video RAM."""

    def __init__(self) -> None:
        super().__init__(0xFFFF, ByteOrder.BIG)


class Cram:
    """128-byte colour RAM with a decoded copy of every palette entry."""

    def __init__(self) -> None:
        self._mem = MemoryUnit(127)
        self._colors = [[OutputColor() for _ in range(_COLORS_PER_PALETTE)] for _ in range(_PALETTES)]

    def read(self, addr: int) -> int:
        return self._mem.read(_format_addr(addr), 2)

    def write(self, addr: int, data: int) -> None:
        addr = _format_addr(addr)
        data &= 0xFFFF
        self._mem.write(addr, data, 2)
        self._colors[addr // 32][(addr % 32) // 2] = OutputColor.from_internal(data)

    def read_color(self, palette: int, color_idx: int) -> OutputColor:
        if not 0 <= palette < _PALETTES:
            raise IndexError(f"no palette {palette}")
        if not 0 <= color_idx < _COLORS_PER_PALETTE:
            raise IndexError(f"no colour {color_idx}")
        return self._colors[palette][color_idx]


class Vsram:
    """80-byte vertical scroll RAM."""

    def __init__(self) -> None:
        self._mem = MemoryUnit(_VSRAM_SIZE - 1)

    def read(self, addr: int) -> int:
        addr = _format_addr(addr)
        if addr >= _VSRAM_SIZE:
            # real hardware returns the latched value; a dummy value is enough here
            return 0
        return self._mem.read(addr, 2)

    def write(self, addr: int, data: int) -> None:
        addr = _format_addr(addr)
        if addr >= _VSRAM_SIZE:
            return
        self._mem.write(addr, data, 2)


class M68kBusAccess(ABC):
    """Access to the 68000 bus that the VDP needs for DMA."""

    @abstractmethod
    def request_bus(self) -> None:
        """Ask the 68000 to give up its bus."""

    @abstractmethod
    def release_bus(self) -> None:
        """Give the bus back to the 68000."""

    @abstractmethod
    def bus_granted(self) -> bool:
        """True once the bus has been handed over."""

    @abstractmethod
    def init_read_word(self, address: int) -> None:
        """Start reading a word from the 68000 address space."""

    @abstractmethod
    def latched_word(self) -> int:
        """Result of the last word read."""

    @abstractmethod
    def is_idle(self) -> bool:
        """True when no bus operation is in progress."""


InterruptCallback = Callable[[int], None]


class M68kInterruptAccess(ABC):
    """Lets the VDP raise 68000 interrupts and hear when they are acknowledged."""

    @property
    @abstractmethod
    def interrupt_priority(self) -> int:
        """Current interrupt priority level on the 68000 bus."""

    @interrupt_priority.setter
    @abstractmethod
    def interrupt_priority(self, ipl: int) -> None:
        """Raise an interrupt with the given priority level (0 clears it)."""

    @abstractmethod
    def set_interrupt_callback(self, callback: InterruptCallback) -> None:
        """Register a callable invoked with the IPL when an interrupt is acknowledged."""