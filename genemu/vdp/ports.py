"""The VDP data and control ports as seen from the 68000 bus."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from genemu.memory.units import Addressable, InternalError, NotImplementedFeature
from genemu.vdp.registers import RegisterSet

_DATA_PORT_END = 4
_CONTROL_PORT_END = 8
_REGISTER_WRITE_TAG = 0b10


@dataclass(frozen=True)
class ControlWriteRequest:
    """A control port word waiting for the VDP to apply it."""

    data: int
    first_word: bool


class _Request(enum.Enum):
    NONE = enum.auto()
    READ_CONTROL = enum.auto()
    WRITE_CONTROL = enum.auto()
    READ_DATA = enum.auto()
    WRITE_DATA = enum.auto()


def _expand_byte(data: int) -> int:
    data &= 0xFF
    return (data << 8) | data


class Ports(Addressable):
    """Data port at offsets 0-3 and control port at offsets 4-7."""

    def __init__(self, regs: RegisterSet):
        self._regs = regs
        self._req = _Request.NONE
        self._data_to_write = 0
        self._reading_control_port = False
        self._read_data: Optional[int] = None
        # true while waiting for the second control word
        self._control_pending = False
        self._control_write_request: Optional[ControlWriteRequest] = None

    # addressable interface

    def max_address(self) -> int:
        return 0x1F

    def is_idle(self) -> bool:
        return self._req is _Request.NONE

    def init_write_byte(self, address: int, data: int) -> None:
        self.init_write_word(address, _expand_byte(data))

    def init_write_word(self, address: int, data: int) -> None:
        if address < _DATA_PORT_END:
            self.init_write_data(data)
        elif address < _CONTROL_PORT_END:
            self.init_write_control(data)
        else:
            raise NotImplementedFeature(f"Write is not supported yet: 0x{address:x}")

    def init_read_byte(self, address: int) -> None:
        self.init_read_word(address)

    def init_read_word(self, address: int) -> None:
        if address < _DATA_PORT_END:
            self.init_read_data()
        elif address < _CONTROL_PORT_END:
            self.init_read_control()
        else:
            raise NotImplementedFeature(f"Read is not supported yet: 0x{address:x}")

    def latched_byte(self) -> int:
        return self.read_result() & 0xFF

    def latched_word(self) -> int:
        return self.read_result()

    # port interface

    def init_read_control(self) -> None:
        self._start(_Request.READ_CONTROL)

    def init_write_control(self, data: int) -> None:
        self._start(_Request.WRITE_CONTROL)
        self._data_to_write = data & 0xFFFF

    def init_read_data(self) -> None:
        self._start(_Request.READ_DATA)

    def init_write_data(self, data: int) -> None:
        self._start(_Request.WRITE_DATA)
        self._data_to_write = data & 0xFFFF

    def read_result(self) -> int:
        if self._reading_control_port:
            # the control port always reads the current status register
            return self._regs.sr_raw
        if self._read_data is not None:
            return self._read_data
        raise InternalError("ports::read_result: no data available")

    @property
    def pending_control_write_request(self) -> Optional[ControlWriteRequest]:
        """Control word the VDP has yet to apply; set to None once applied."""
        return self._control_write_request

    @pending_control_write_request.setter
    def pending_control_write_request(self, request: Optional[ControlWriteRequest]) -> None:
        self._control_write_request = request

    def cycle(self) -> None:
        """Advance the current request by one cycle."""
        regs = self._regs
        req = self._req

        if req is _Request.NONE:
            return

        if req is _Request.READ_CONTROL:
            self._req = _Request.NONE
            self._reading_control_port = True
            self._control_pending = False
            return

        if req is _Request.WRITE_CONTROL:
            if self._control_write_request is not None:
                # wait till the VDP picks up the previous request
                return
            data = self._data_to_write
            if not self._control_pending and (data >> 14) == _REGISTER_WRITE_TAG:
                self._control_write_request = ControlWriteRequest(data, True)
            elif not self._control_pending:
                self._control_pending = True
                self._control_write_request = ControlWriteRequest(data, True)
            else:
                self._control_pending = False
                self._control_write_request = ControlWriteRequest(data, False)
            self._req = _Request.NONE
            return

        if req is _Request.READ_DATA:
            if not regs.control.work_completed:
                return
            self._read_data = regs.read_cache.data()
            regs.control.address = regs.control.address + regs.R15.INC
            # let the VDP pre-fetch the next word
            regs.control.work_completed = False
            self._control_pending = False
            self._req = _Request.NONE
            return

        if req is _Request.WRITE_DATA:
            if regs.fifo.full():
                # wait for a free FIFO slot
                return
            regs.fifo.push(self._data_to_write, regs.control)
            regs.control.address = regs.control.address + regs.R15.INC
            self._control_pending = False
            self._req = _Request.NONE
            return

        raise InternalError(f"unknown port request {req}")

    def reset(self) -> None:
        self._start(_Request.NONE)

    def read_control(self) -> int:
        """Read the status register directly, clearing the pending control flag."""
        self._control_pending = False
        return self._regs.sr_raw

    def _start(self, req: _Request) -> None:
        self._req = req
        self._reading_control_port = False
        self._data_to_write = 0
        self._read_data = None