"""VDP registers, status register, write FIFO and the full register set."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from genemu.memory.units import InternalError
from genemu.vdp.control_register import ControlRegister, ReadBuffer


class _Field:
    """A bit field inside a BitRegister."""

    def __init__(self, shift: int, width: int = 1):
        self.shift = shift
        self.mask = (1 << width) - 1

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, obj: "BitRegister | None", objtype: type | None = None):
        if obj is None:
            return self
        return (obj.raw >> self.shift) & self.mask

    def __set__(self, obj: "BitRegister", value: int) -> None:
        cleared = obj.raw & ~(self.mask << self.shift)
        obj.raw = cleared | ((int(value) & self.mask) << self.shift)


class BitRegister:
    """A register whose named bit fields share one raw integer value."""

    bits = 8

    def __init__(self, raw: int = 0):
        self._raw = 0
        self.raw = raw

    @property
    def raw(self) -> int:
        return self._raw

    @raw.setter
    def raw(self, value: int) -> None:
        self._raw = int(value) & ((1 << self.bits) - 1)

    @classmethod
    def fields(cls) -> Iterator[str]:
        """Names of the register's bit fields."""
        for klass in reversed(cls.__mro__):
            for name, attr in vars(klass).items():
                if isinstance(attr, _Field):
                    yield name

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BitRegister):
            return NotImplemented
        return type(self) is type(other) and self._raw == other._raw

    def __hash__(self) -> int:
        return hash((type(self), self._raw))

    def __repr__(self) -> str:
        parts = ", ".join(f"{name}={getattr(self, name)}" for name in self.fields())
        return f"{type(self).__name__}({parts})"


class R0(BitRegister):
    """Mode register 1."""

    DE = _Field(0)
    M3 = _Field(1)
    M4 = _Field(2)
    IE1 = _Field(4)
    L = _Field(5)


class R1(BitRegister):
    """Mode register 2."""

    M5 = _Field(2)
    M2 = _Field(3)
    M1 = _Field(4)
    IE0 = _Field(5)
    DE = _Field(6)
    VR = _Field(7)


class R2(BitRegister):
    """Plane A name table location."""

    PA5_3 = _Field(3, 3)
    PA6 = _Field(6)


class R3(BitRegister):
    """Window name table location."""

    W5_1 = _Field(1, 5)
    W6 = _Field(6)


class R4(BitRegister):
    """Plane B name table location."""

    PB2_0 = _Field(0, 3)
    PB3 = _Field(3)


class R5(BitRegister):
    """Sprite table location."""

    ST6_0 = _Field(0, 7)
    ST7 = _Field(7)


class R6(BitRegister):
    SP5 = _Field(5)


class R7(BitRegister):
    """Background colour."""

    COL = _Field(0, 4)
    PAL = _Field(4, 2)


class R8(BitRegister):
    unused = _Field(0, 8)


R9 = R8


class R10(BitRegister):
    """Horizontal interrupt counter."""

    H = _Field(0, 8)


class R11(BitRegister):
    """Mode register 3."""

    HS = _Field(0, 2)
    VS = _Field(2)
    IE2 = _Field(3)


class R12(BitRegister):
    """Mode register 4."""

    RS0 = _Field(0)
    LS = _Field(1, 2)
    SH = _Field(3)
    EP = _Field(4)
    HS = _Field(5)
    VS = _Field(6)
    RS1 = _Field(7)


class R13(BitRegister):
    """Horizontal scroll data location."""

    HS5_0 = _Field(0, 6)
    HS6 = _Field(6)


class R14(BitRegister):
    PA0 = _Field(0)
    PB4 = _Field(4)


class R15(BitRegister):
    """Auto-increment value."""

    INC = _Field(0, 8)


class R16(BitRegister):
    """Plane size."""

    W = _Field(0, 2)
    H = _Field(4, 2)


class R17(BitRegister):
    """Window plane horizontal position."""

    HP = _Field(0, 5)
    R = _Field(7)


class R18(BitRegister):
    """Window plane vertical position."""

    VP = _Field(0, 5)
    D = _Field(7)


class R19(BitRegister):
    """DMA length counter low."""

    L = _Field(0, 8)


class R20(BitRegister):
    """DMA length counter high."""

    H = _Field(0, 8)


class R21(BitRegister):
    """DMA source address low."""

    L = _Field(0, 8)


class R22(BitRegister):
    """DMA source address mid."""

    M = _Field(0, 8)


class R23(BitRegister):
    """DMA source address high and DMA type."""

    H = _Field(0, 6)
    T0 = _Field(6)
    T1 = _Field(7)


class StatusRegister(BitRegister):
    """VDP status register."""

    bits = 16

    PAL = _Field(0)
    DMA = _Field(1)
    HB = _Field(2)
    VB = _Field(3)
    OD = _Field(4)
    SC = _Field(5)
    SO = _Field(6)
    VI = _Field(7)
    F = _Field(8)
    E = _Field(9)


@dataclass
class FifoEntry:
    """A pending data port write together with the control state it targets."""

    data: int = 0
    control: ControlRegister = field(default_factory=ControlRegister)

    def _copy(self) -> "FifoEntry":
        return FifoEntry(self.data, self.control.copy())


_FIFO_SIZE = 4


class Fifo:
    """Four-entry ring buffer of pending data port writes."""

    def __init__(self) -> None:
        self._queue = [FifoEntry() for _ in range(_FIFO_SIZE)]
        self._free_slot = 0
        self._first_entry = 0
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def full(self) -> bool:
        return self._size == _FIFO_SIZE

    def empty(self) -> bool:
        return self._size == 0

    def peek(self) -> FifoEntry:
        """The oldest entry, left in place."""
        if self.empty():
            raise InternalError("fifo::peek fifo is empty")
        return self._queue[self._first_entry]

    def pop(self) -> FifoEntry:
        """Remove and return the oldest entry."""
        if self.empty():
            raise InternalError("fifo::pop fifo is empty")
        entry = self._queue[self._first_entry]._copy()
        self._first_entry = (self._first_entry + 1) % _FIFO_SIZE
        self._size -= 1
        return entry

    def push(self, data: int, control: ControlRegister) -> None:
        if self.full():
            raise InternalError("fifo::push: fifo is full")
        self._queue[self._free_slot] = FifoEntry(data & 0xFFFF, control.copy())
        self._free_slot = (self._free_slot + 1) % _FIFO_SIZE
        self._size += 1

    def prev(self) -> FifoEntry:
        """The slot just before the oldest entry: the last one popped."""
        return self._queue[(self._first_entry - 1) % _FIFO_SIZE]._copy()

    def next(self) -> FifoEntry:
        """The slot the next push will overwrite."""
        return self._queue[self._free_slot]._copy()


_REGISTER_COUNT = 24


class RegisterSet:
    """All VDP registers plus counters, control register, read cache and FIFO."""

    def __init__(self) -> None:
        self.R0 = R0()
        self.R1 = R1()
        self.R2 = R2()
        self.R3 = R3()
        self.R4 = R4()
        self.R5 = R5()
        self.R6 = R6()
        self.R7 = R7()
        self.R8 = R8()
        self.R9 = R9()
        self.R10 = R10()
        self.R11 = R11()
        self.R12 = R12()
        self.R13 = R13()
        self.R14 = R14()
        self.R15 = R15()
        self.R16 = R16()
        self.R17 = R17()
        self.R18 = R18()
        self.R19 = R19()
        self.R20 = R20()
        self.R21 = R21()
        self.R22 = R22()
        self.R23 = R23()

        self.SR = StatusRegister()
        self.h_counter = 0
        self.v_counter = 0

        self.control = ControlRegister()
        self.read_cache = ReadBuffer()
        self.fifo = Fifo()

    def _registers(self) -> tuple[BitRegister, ...]:
        return (
            self.R0, self.R1, self.R2, self.R3, self.R4, self.R5,
            self.R6, self.R7, self.R8, self.R9, self.R10, self.R11,
            self.R12, self.R13, self.R14, self.R15, self.R16, self.R17,
            self.R18, self.R19, self.R20, self.R21, self.R22, self.R23,
        )

    def _register(self, reg: int) -> BitRegister:
        if not 0 <= reg < _REGISTER_COUNT:
            raise IndexError(f"no VDP register {reg}")
        return self._registers()[reg]

    def set_register(self, reg: int, value: int) -> None:
        self._register(reg).raw = value & 0xFF

    def get_register(self, reg: int) -> int:
        return self._register(reg).raw

    @property
    def sr_raw(self) -> int:
        return self.SR.raw

    @sr_raw.setter
    def sr_raw(self, value: int) -> None:
        self.SR.raw = value