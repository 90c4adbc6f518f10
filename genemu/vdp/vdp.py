"""The video display processor: ports, DMA, counters, interrupts and video memories."""

from __future__ import annotations

import enum
from typing import Callable, Optional

from genemu.memory.units import InternalError, NotImplementedFeature
from genemu.vdp.control_register import ControlType, VmemType
from genemu.vdp.dma import Dma, MemoryAccess
from genemu.vdp.interrupts import HvUnit, InterruptUnit
from genemu.vdp.output_color import Mode
from genemu.vdp.ports import Ports
from genemu.vdp.registers import RegisterSet
from genemu.vdp.render import Render
from genemu.vdp.settings import DisplayHeight, DisplayWidth, Settings
from genemu.vdp.vmemory import Cram, M68kBusAccess, M68kInterruptAccess, Vram, Vsram

MODE = Mode.PAL

_CYCLES_PER_LINE = 3420
_REGISTER_WRITE_TAG = 0b10
_REGISTER_COUNT = 24


class _ClockRate(enum.Enum):
    # MCLK = 53203424 at 50 Hz, 53693175 at 60 Hz
    HZ50 = enum.auto()
    HZ60 = enum.auto()


def _cycles_per_pixel(sett: Settings) -> int:
    return 10 if sett.display_width() is DisplayWidth.C32 else 8


def _lines_per_frame(sett: Settings, rate: _ClockRate = _ClockRate.HZ60) -> int:
    if rate is _ClockRate.HZ50:
        return 313
    return 512 if sett.display_height() is DisplayHeight.C30 else 262


def _swap_bytes(value: int) -> int:
    return ((value & 0xFF) << 8) | ((value >> 8) & 0xFF)


class Vdp:
    """Drives every VDP unit one master clock cycle at a time."""

    def __init__(self, m68k_bus: Optional[M68kBusAccess] = None):
        self._regs = RegisterSet()
        self._sett = Settings(self._regs)
        self._ports = Ports(self._regs)

        self._vram = Vram()
        self._cram = Cram()
        self._vsram = Vsram()

        self._hv_unit = HvUnit(self._regs)
        self._int_unit = InterruptUnit(self._regs, self._sett)

        self._mclk = 0
        self._scanline = 0

        self._dma_memory = MemoryAccess()
        self._dma = Dma(self._regs, self._sett, self._dma_memory, m68k_bus)
        self._render = Render(self._regs, self._sett, self._vram, self._vsram, self._cram)

        self._on_frame_end: Optional[Callable[[], None]] = None

    def set_m68k_bus_access(self, m68k_bus: Optional[M68kBusAccess]) -> None:
        self._dma.set_m68k_bus_access(m68k_bus)

    def set_m68k_interrupt_access(self, m68k_int: M68kInterruptAccess) -> None:
        self._int_unit.set_m68k_interrupt_access(m68k_int)

    @property
    def registers(self) -> RegisterSet:
        return self._regs

    @property
    def sett(self) -> Settings:
        return self._sett

    @property
    def io_ports(self) -> Ports:
        return self._ports

    @property
    def vram(self) -> Vram:
        return self._vram

    @property
    def cram(self) -> Cram:
        return self._cram

    @property
    def vsram(self) -> Vsram:
        return self._vsram

    @property
    def render(self) -> Render:
        return self._render

    @property
    def scanline(self) -> int:
        return self._scanline

    def on_frame_end(self, callback: Optional[Callable[[], None]]) -> None:
        """Register a callable run at the end of every frame, before the interrupts."""
        self._on_frame_end = callback

    def cycle(self) -> None:
        self._mclk += 1

        if self._mclk % (_cycles_per_pixel(self._sett) * 2) == 0:
            self._hv_unit.on_pixel(self._sett.display_width(), self._sett.display_height(), MODE)
        self._int_unit.cycle(self._hv_unit.v_counter_raw(), self._hv_unit.h_counter_raw())

        self._on_scanline()

        if self._mclk == _CYCLES_PER_LINE:
            self._on_end_scanline()
            self._scanline = (self._scanline + 1) % _lines_per_frame(self._sett)
            self._mclk = 0

    def _on_scanline(self) -> None:
        self._ports.cycle()

        if self._sett.dma_enabled():
            self._dma.cycle()

        # port requests take priority over DMA
        self._handle_ports_requests()
        self._handle_dma_requests()

        self._update_status_register()

    def _on_end_scanline(self) -> None:
        threshold = 0xE0 if self._sett.display_height() is DisplayHeight.C28 else 0xF0
        if self._regs.v_counter == threshold and self._on_frame_end is not None:
            self._on_frame_end()

    def _handle_ports_requests(self) -> None:
        regs = self._regs
        request = self._ports.pending_control_write_request
        if request is not None:
            data = request.data
            if request.first_word and (data >> 14) == _REGISTER_WRITE_TAG:
                reg_num = (data >> 8) & 0b11111
                if reg_num < _REGISTER_COUNT:
                    regs.set_register(reg_num, data & 0xFF)
            elif request.first_word:
                regs.control.set_c1(data)
            else:
                dma_start = regs.control.dma_start
                regs.control.set_c2(data)
                if not self._sett.dma_enabled():
                    # CD5 cannot change while DMA is disabled
                    regs.control.dma_start = dma_start
            self._ports.pending_control_write_request = None
            return

        if not regs.fifo.empty():
            self._write_fifo_entry()
            return

        if self._pre_cache_read_is_required():
            self._pre_cache_read()

    def _write_fifo_entry(self) -> None:
        entry = self._regs.fifo.pop()
        mem_type = entry.control.vmem_type
        address = entry.control.address
        data = entry.data

        if mem_type is VmemType.VRAM:
            if address % 2 == 1:
                # odd addresses swap bytes and stay within the word
                data = _swap_bytes(data)
                address &= ~1
            self._vram.write(address & 0xFFFF, data, 2)
        elif mem_type is VmemType.CRAM:
            self._cram.write(address, data)
        elif mem_type is VmemType.VSRAM:
            self._vsram.write(address, data)
        elif mem_type is VmemType.INVALID:
            raise NotImplementedFeature("write to an invalid video memory type")
        else:
            raise InternalError(f"unknown memory type {mem_type}")

    def _pre_cache_read(self) -> None:
        regs = self._regs
        address = regs.control.address & ~1
        mem_type = regs.control.vmem_type

        if mem_type is VmemType.VRAM:
            data = self._vram.read(address & 0xFFFF, 2)
            regs.read_cache.set_lsb(data & 0xFF)
            regs.read_cache.set_msb((data >> 8) & 0xFF)
        elif mem_type is VmemType.CRAM:
            regs.read_cache.set(self._cram.read(address))
        elif mem_type is VmemType.VSRAM:
            regs.read_cache.set(self._vsram.read(address))
        else:
            raise InternalError(f"cannot pre-cache from {mem_type}")
        regs.control.work_completed = True

    def _pre_cache_read_is_required(self) -> bool:
        regs = self._regs
        if not regs.fifo.empty():
            return False
        if regs.control.dma_start:
            return False
        if regs.control.work_completed:
            # previous word not picked up yet
            return False
        if regs.control.control_type is not ControlType.READ:
            return False
        return regs.control.vmem_type is not VmemType.INVALID

    def _handle_dma_requests(self) -> None:
        if not self._sett.dma_enabled():
            return

        memory = self._dma_memory
        write = memory.pending_write
        if write is not None:
            if write.type is VmemType.VRAM:
                self._vram.write(write.address & 0xFFFF, write.data & 0xFF, 1)
            elif write.type is VmemType.CRAM:
                self._cram.write(write.address, write.data)
            elif write.type is VmemType.VSRAM:
                self._vsram.write(write.address, write.data)
            else:
                raise InternalError(f"DMA write to {write.type}")
            memory.pending_write = None

        read = memory.pending_read
        if read is not None:
            data = self._vram.read(read.address & 0xFFFF, 1)
            memory.pending_read = None
            memory.set_read_result(data)

    def _update_status_register(self) -> None:
        regs = self._regs
        regs.SR.E = 1 if regs.fifo.empty() else 0
        regs.SR.F = 1 if regs.fifo.full() else 0
        regs.SR.PAL = regs.R1.M2