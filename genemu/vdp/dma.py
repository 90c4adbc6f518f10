"""VDP DMA: fill, VRAM copy and 68000 memory to video memory transfers."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from genemu.memory.units import InternalError, NotImplementedFeature
from genemu.vdp.control_register import VmemType
from genemu.vdp.registers import RegisterSet
from genemu.vdp.settings import DmaMode, Settings
from genemu.vdp.vmemory import M68kBusAccess


@dataclass(frozen=True)
class PendingWrite:
    type: VmemType
    address: int
    data: int


@dataclass(frozen=True)
class PendingRead:
    address: int


class MemoryAccess:
    """Holds the one video memory request the DMA unit has in flight."""

    def __init__(self) -> None:
        self._write_req: Optional[PendingWrite] = None
        self._read_req: Optional[PendingRead] = None
        self._read_data: Optional[int] = None

    def init_write(self, mem_type: VmemType, address: int, data: int) -> None:
        if not self.is_idle():
            raise InternalError("memory access is busy")
        self._write_req = PendingWrite(mem_type, address, data & 0xFFFF)

    def init_read_vram(self, address: int) -> None:
        if not self.is_idle():
            raise InternalError("memory access is busy")
        self._read_req = PendingRead(address)

    def latched_byte(self) -> int:
        if self._read_data is None:
            raise InternalError("no byte has been read")
        return self._read_data

    def is_idle(self) -> bool:
        return self._write_req is None and self._read_req is None

    @property
    def pending_write(self) -> Optional[PendingWrite]:
        return self._write_req

    @pending_write.setter
    def pending_write(self, request: Optional[PendingWrite]) -> None:
        self._write_req = request

    @property
    def pending_read(self) -> Optional[PendingRead]:
        return self._read_req

    @pending_read.setter
    def pending_read(self, request: Optional[PendingRead]) -> None:
        self._read_req = request

    def set_read_result(self, data: int) -> None:
        self._read_data = data & 0xFF


class _State(enum.Enum):
    IDLE = enum.auto()
    FILL_PENDING = enum.auto()
    FILL = enum.auto()
    VRAM_COPY = enum.auto()
    M68K_COPY = enum.auto()
    FINISHING = enum.auto()


class Dma:
    """DMA engine driven one cycle at a time."""

    def __init__(
        self,
        regs: RegisterSet,
        sett: Settings,
        memory: MemoryAccess,
        m68k_bus: Optional[M68kBusAccess] = None,
    ):
        self._regs = regs
        self._sett = sett
        self._memory = memory
        self._m68k_bus = m68k_bus
        self._state = _State.IDLE
        self._reading = False
        self._access_requested = False
        self._length = 0
        self._source = 0

    def is_idle(self) -> bool:
        return self._state is _State.IDLE

    def set_m68k_bus_access(self, m68k_bus: Optional[M68kBusAccess]) -> None:
        self._m68k_bus = m68k_bus

    def cycle(self) -> None:
        self._check_work()

        state = self._state
        if state is _State.IDLE:
            return
        if state is _State.FILL_PENDING:
            # wait till the FIFO gets an entry
            if not self._regs.fifo.empty():
                self._state = _State.FILL
        elif state is _State.FILL:
            self._do_fill()
        elif state is _State.VRAM_COPY:
            self._do_vram_copy()
        elif state is _State.M68K_COPY:
            self._do_m68k_copy()
        elif state is _State.FINISHING:
            self._do_finishing()
        else:
            raise InternalError(f"unknown DMA state {state}")

    def _check_work(self) -> None:
        if self._state is not _State.IDLE or not self._regs.control.dma_start:
            return

        mode = self._sett.dma_mode
        if mode is DmaMode.VRAM_FILL:
            self._state = _State.FILL_PENDING
        elif mode is DmaMode.VRAM_COPY:
            self._state = _State.VRAM_COPY
        elif mode is DmaMode.MEM_TO_VRAM:
            self._state = _State.M68K_COPY
        else:
            raise InternalError(f"unknown DMA mode {mode}")

        self._length = self._sett.dma_length
        self._source = self._sett.dma_source
        self._regs.SR.DMA = 1

    def _do_fill(self) -> None:
        regs = self._regs
        if not regs.fifo.empty() or not self._memory.is_idle():
            return

        addr = regs.control.address
        mem_type = regs.control.vmem_type
        if mem_type is VmemType.INVALID:
            raise NotImplementedFeature("DMA fill of an invalid memory type")

        if mem_type is VmemType.VRAM:
            fill_data = (regs.fifo.prev().data >> 8) & 0xFF
        else:
            fill_data = regs.fifo.next().data

        self._memory.init_write(mem_type, addr, fill_data)
        self._advance()

    def _do_vram_copy(self) -> None:
        if not self._regs.fifo.empty() or not self._memory.is_idle():
            return

        if self._reading:
            # the memory is idle, so the byte read is available
            self._reading = False
            self._memory.init_write(VmemType.VRAM, self._regs.control.address, self._memory.latched_byte())
            self._advance()
            return

        source = self._source & 0xFFFF
        self._advance_dma_source(1)
        self._memory.init_read_vram(source)
        self._reading = True

    def _do_m68k_copy(self) -> None:
        regs = self._regs
        if regs.fifo.full():
            return

        bus = self._bus()
        if not bus.is_idle():
            return

        if not self._access_requested:
            bus.request_bus()
            self._access_requested = True
            return

        if not bus.bus_granted():
            return

        if self._reading:
            self._reading = False
            regs.fifo.push(bus.latched_word(), regs.control)
            self._inc_control_address()

            if self._length == 0:
                bus.release_bus()
                self._access_requested = False
                self._state = _State.FINISHING
                return

        src_address = self._source
        self._advance_dma_source(2)
        self._dec_length()
        bus.init_read_word(src_address)
        self._reading = True

    def _do_finishing(self) -> None:
        bus_idle = self._m68k_bus is None or self._m68k_bus.is_idle()
        if self._memory.is_idle() and bus_idle:
            self._state = _State.IDLE
            self._regs.control.dma_start = False
            self._regs.SR.DMA = 0

    def _bus(self) -> M68kBusAccess:
        if self._m68k_bus is None:
            raise InternalError("DMA has no access to the 68000 bus")
        return self._m68k_bus

    def _inc_control_address(self) -> None:
        control = self._regs.control
        control.address = control.address + self._sett.auto_increment_value()

    def _advance(self) -> None:
        self._inc_control_address()
        self._dec_length()
        if self._length == 0:
            self._state = _State.FINISHING

    def _dec_length(self) -> None:
        self._length = (self._length - 1) & 0xFFFF
        self._sett.dma_length = self._sett.dma_length - 1

    def _advance_dma_source(self, offset: int) -> None:
        self._source = (self._source + offset) & 0xFFFFFFFF
        self._sett.dma_source = self._sett.dma_source + offset