"""The VDP control register pair and the read pre-fetch buffer."""

from __future__ import annotations

import enum

from genemu.memory.units import InternalError

_CD0 = 1 << 14
_CD1 = 1 << 15
_CD3_2_SHIFT = 4
_CD4 = 1 << 6
_CD5 = 1 << 7


class VmemType(enum.Enum):
    """Video memory selected by the control register."""

    VRAM = enum.auto()
    CRAM = enum.auto()
    VSRAM = enum.auto()
    INVALID = enum.auto()


class ControlType(enum.Enum):
    """Direction of the data port access."""

    READ = enum.auto()
    WRITE = enum.auto()


class ControlRegister:
    """Two control words (C1, C2) holding address, target and flags."""

    __slots__ = ("_c1", "_c2")

    def __init__(self, c1: int = 0, c2: int = 0):
        self._c1 = c1 & 0xFFFF
        self._c2 = c2 & 0xFFFF

    def raw_c1(self) -> int:
        return self._c1

    def raw_c2(self) -> int:
        return self._c2

    def set_c1(self, value: int) -> None:
        self._c1 = value & 0xFFFF

    def set_c2(self, value: int) -> None:
        self._c2 = value & 0xFFFF

    @property
    def address(self) -> int:
        """16-bit address: A13..A0 in C1, A15..A14 in C2."""
        return (self._c1 & 0x3FFF) | ((self._c2 & 0b11) << 14)

    @address.setter
    def address(self, value: int) -> None:
        value &= 0xFFFF
        self._c1 = (self._c1 & ~0x3FFF & 0xFFFF) | (value & 0x3FFF)
        self._c2 = (self._c2 & ~0b11 & 0xFFFF) | (value >> 14)

    @property
    def vmem_type(self) -> VmemType:
        cd = self._cd1() | (self._cd3_2() << 1)
        if cd == 0b000:
            return VmemType.VRAM
        if cd in (0b001, 0b100):
            return VmemType.CRAM
        if cd == 0b010:
            return VmemType.VSRAM
        return VmemType.INVALID

    @vmem_type.setter
    def vmem_type(self, value: VmemType) -> None:
        if value is VmemType.VRAM:
            self._set_cd(0, 0)
        elif value is VmemType.CRAM:
            if self.control_type is ControlType.READ:
                self._set_cd(0, 0b10)
            else:
                self._set_cd(1, 0)
        elif value is VmemType.VSRAM:
            self._set_cd(0, 0b01)
        else:
            raise InternalError(f"cannot select memory type {value}")

    @property
    def control_type(self) -> ControlType:
        return ControlType.WRITE if self._c1 & _CD0 else ControlType.READ

    @control_type.setter
    def control_type(self, value: ControlType) -> None:
        if value is ControlType.WRITE:
            self._c1 |= _CD0
        else:
            self._c1 &= ~_CD0 & 0xFFFF
        # the CRAM code depends on the direction, so re-encode it
        if self.vmem_type is VmemType.CRAM:
            self.vmem_type = VmemType.CRAM

    @property
    def dma_start(self) -> bool:
        return bool(self._c2 & _CD5)

    @dma_start.setter
    def dma_start(self, state: bool) -> None:
        self._c2 = (self._c2 | _CD5) if state else (self._c2 & ~_CD5 & 0xFFFF)

    @property
    def work_completed(self) -> bool:
        return bool(self._c2 & _CD4)

    @work_completed.setter
    def work_completed(self, state: bool) -> None:
        self._c2 = (self._c2 | _CD4) if state else (self._c2 & ~_CD4 & 0xFFFF)

    def copy(self) -> "ControlRegister":
        return ControlRegister(self._c1, self._c2)

    def _cd1(self) -> int:
        return 1 if self._c1 & _CD1 else 0

    def _cd3_2(self) -> int:
        return (self._c2 >> _CD3_2_SHIFT) & 0b11

    def _set_cd(self, cd1: int, cd3_2: int) -> None:
        self._c1 = (self._c1 | _CD1) if cd1 else (self._c1 & ~_CD1 & 0xFFFF)
        self._c2 = (self._c2 & ~(0b11 << _CD3_2_SHIFT) & 0xFFFF) | (cd3_2 << _CD3_2_SHIFT)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ControlRegister):
            return NotImplemented
        return (self._c1, self._c2) == (other._c1, other._c2)

    def __hash__(self) -> int:
        return hash((self._c1, self._c2))

    def __repr__(self) -> str:
        return f"ControlRegister(c1=0x{self._c1:04x}, c2=0x{self._c2:04x})"


class ReadBuffer:
    """Word pre-fetched from video memory for the next data port read."""

    def __init__(self) -> None:
        self._data = 0
        self._has_data = False

    def data(self) -> int:
        if not self._has_data:
            raise InternalError("read buffer holds no data")
        return self._data

    def set(self, value: int) -> None:
        self._data = value & 0xFFFF
        self._has_data = True

    def set_lsb(self, lsb: int) -> None:
        self._data = (self._data & 0xFF00) | (lsb & 0xFF)

    def set_msb(self, msb: int) -> None:
        self._data = (self._data & 0x00FF) | ((msb & 0xFF) << 8)
        # the buffer becomes available only once the MSB arrives
        self._has_data = True

    def has_data(self) -> bool:
        return self._has_data

    def clear_data_flag(self) -> None:
        """Keep the data but mark it unavailable."""
        self._has_data = False

    def reset(self) -> None:
        self._data = 0
        self._has_data = False