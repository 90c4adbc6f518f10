"""H/V counter unit and the VDP interrupt unit."""

from __future__ import annotations

from typing import Optional

from genemu.memory.units import InternalError
from genemu.vdp.counters import HblankFlag, HCounter, VblankFlag, VCounter
from genemu.vdp.output_color import Mode
from genemu.vdp.registers import RegisterSet
from genemu.vdp.settings import DisplayHeight, DisplayWidth, Settings
from genemu.vdp.vmemory import M68kInterruptAccess

_HINT_IPL = 4
_VINT_IPL = 6


class HvUnit:
    """Updates the H/V counters and blanking flags once per pixel."""

    def __init__(self, regs: RegisterSet):
        self._regs = regs
        self._h_counter = HCounter()
        self._v_counter = VCounter()
        self._hblank_flag = HblankFlag()
        self._vblank_flag = VblankFlag()

    def reset(self) -> None:
        self._h_counter.reset()
        self._v_counter.reset()
        self._hblank_flag.reset()
        self._vblank_flag.reset()

    def h_counter_raw(self) -> int:
        return self._h_counter.raw_value()

    def v_counter_raw(self) -> int:
        return self._v_counter.raw_value()

    def on_pixel(self, width: DisplayWidth, height: DisplayHeight, mode: Mode) -> None:
        regs = self._regs

        self._h_counter.inc(width)
        regs.h_counter = self._h_counter.value()

        self._hblank_flag.update(self._h_counter.raw_value(), width)
        regs.SR.HB = 1 if self._hblank_flag.value() else 0

        # the V counter advances at a fixed H position
        h_raw = self._h_counter.raw_value()
        if (width is DisplayWidth.C32 and h_raw == 0x85) or (width is DisplayWidth.C40 and h_raw == 0xA5):
            self._v_counter.inc(height, mode)
            regs.v_counter = self._v_counter.value()

            self._vblank_flag.update(self._v_counter.raw_value(), height, mode)
            regs.SR.VB = 1 if self._vblank_flag.value() else 0


class InterruptUnit:
    """Raises horizontal and vertical interrupts on the 68000."""

    def __init__(self, regs: RegisterSet, sett: Settings):
        self._regs = regs
        self._sett = sett
        self._m68k_int: Optional[M68kInterruptAccess] = None
        self.reset()

    def set_m68k_interrupt_access(self, m68k_int: M68kInterruptAccess) -> None:
        self._m68k_int = m68k_int
        m68k_int.set_interrupt_callback(self.on_interrupt)

    def reset(self) -> None:
        self._hint_counter = 0
        self._hint_pending = False
        self._vint_pending = False
        self._prev_h_counter: Optional[int] = None
        self._hint_raised = False
        self._vint_raised = False

    def cycle(self, raw_v_counter: int, raw_h_counter: int) -> None:
        if self._prev_h_counter != raw_h_counter:
            self._prev_h_counter = raw_h_counter

            width = self._sett.display_width()
            height = self._sett.display_height()

            self._check_vint_flag(raw_v_counter, raw_h_counter, height)
            # both positions are taken from the V counter here
            self._check_hint_flag(raw_v_counter, raw_v_counter, height, width)

        self._check_interrupts()

    def on_interrupt(self, ipl: int) -> None:
        """Called when the 68000 acknowledges an interrupt."""
        if ipl == _VINT_IPL:
            self._vint_pending = False
            self._regs.SR.VI = 0

        if ipl == _HINT_IPL:
            self._hint_pending = False

        self._access().interrupt_priority = 0
        self._hint_raised = False
        self._vint_raised = False

        self._check_interrupts()

    def _access(self) -> M68kInterruptAccess:
        if self._m68k_int is None:
            raise InternalError("interrupt unit has no access to the 68000")
        return self._m68k_int

    def _check_vint_flag(self, v_counter: int, h_counter: int, height: DisplayHeight) -> None:
        if self._vint_pending:
            return

        # the flag is set exactly at H counter 0x02
        if h_counter != 0x02:
            return

        threshold = 0xE0 if height is DisplayHeight.C28 else 0xF0
        if v_counter == threshold:
            self._vint_pending = True
            self._regs.SR.VI = 1

    def _check_hint_flag(
        self, v_counter: int, h_counter: int, height: DisplayHeight, width: DisplayWidth
    ) -> None:
        if self._hint_counter > 0:
            max_line = 0xE0 if height is DisplayHeight.C28 else 0xF0
            required_h = 0xA6 if width is DisplayWidth.C40 else 0x86

            if v_counter <= max_line and h_counter == required_h:
                self._hint_counter -= 1
                if self._hint_counter == 0:
                    self._hint_pending = True
                    self._hint_counter = self._sett.horizontal_interrupt_counter()

        if self._regs.SR.VB == 1:
            self._hint_counter = self._sett.horizontal_interrupt_counter()

    def _check_interrupts(self) -> None:
        if not self._hint_raised and self._hint_pending and self._sett.horizontal_interrupt_enabled():
            self._access().interrupt_priority = _HINT_IPL
            self._hint_raised = True

        if not self._vint_raised and self._vint_pending and self._sett.vertical_interrupt_enabled():
            self._access().interrupt_priority = _VINT_IPL
            self._vint_raised = True