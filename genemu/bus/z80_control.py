"""Z80 bus-request/reset registers and the Z80 I/O port stub."""

from __future__ import annotations

from genemu.memory.units import ByteOrder, MemoryUnit

# only bit 8 matters; any value with it cleared signals a granted bus
_BUS_GRANTED = 0x200
_BUS_REQUESTED = 0x100
_BUS_RELEASED = 0x0
_BUS_TAKEN_BY_Z80 = 0x101

_CPU_RESET_REQUESTED = 0x0
_CPU_RESET_CLEARED = 0x100


class Z80ControlRegisters:
    """Tracks the 68000's requests for the Z80 bus and Z80 resets."""

    def __init__(self) -> None:
        self._request = MemoryUnit(0x1, ByteOrder.BIG)
        self._reset = MemoryUnit(0x1, ByteOrder.BIG)
        self._bus_granted = True
        self._reset_requested = True
        self.reset()

    def cycle(self) -> None:
        """Pick up what the 68000 wrote to the registers."""
        bus_request = self._request.read(0, 2)
        cpu_reset = self._reset.read(0, 2)

        if bus_request == _BUS_REQUESTED:
            self._request.write(0, _BUS_GRANTED, 2)
            self._bus_granted = True
        elif bus_request == _BUS_RELEASED:
            self._bus_granted = False
            self._request.write(0, _BUS_TAKEN_BY_Z80, 2)

        # the CPU is reset only while the bus is granted
        self._reset_requested = cpu_reset == _CPU_RESET_REQUESTED and self._bus_granted

    def reset(self) -> None:
        """Power-on state: bus granted, reset asserted."""
        self._request.write(0, _BUS_GRANTED, 2)
        self._reset.write(0, _CPU_RESET_REQUESTED, 2)
        self._bus_granted = True
        self._reset_requested = True

    def z80_bus_granted(self) -> bool:
        return self._bus_granted

    def z80_reset_requested(self) -> bool:
        return self._reset_requested

    def z80_bus_request_register(self) -> MemoryUnit:
        return self._request

    def z80_reset_register(self) -> MemoryUnit:
        return self._reset


class Z80IoPorts:
    """I/O ports with nothing attached: reads return a counter, writes are dropped."""

    def __init__(self) -> None:
        self._data = 0
        self.last_write: tuple[int, int, int] | None = None

    def read_port(self, dev: int, param: int) -> int:
        value = self._data
        self._data = (self._data + 1) & 0xFF
        return value

    def write_port(self, dev: int, param: int, data: int) -> None:
        """Accept a write; no device consumes it, only the last one is remembered."""
        self.last_write = (dev & 0xFF, param & 0xFF, data & 0xFF)