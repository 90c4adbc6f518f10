"""H/V counters and the blanking flags derived from them."""

from __future__ import annotations

from genemu.vdp.output_color import Mode
from genemu.vdp.settings import DisplayHeight, DisplayWidth


class VblankFlag:
    """Vertical blanking flag driven by the raw V counter."""

    def __init__(self) -> None:
        self._flag = False

    def reset(self) -> None:
        self._flag = False

    def value(self) -> bool:
        return self._flag

    def update(self, vcounter_raw: int, height: DisplayHeight, mode: Mode) -> None:
        set_at = 0xE0 if height is DisplayHeight.C28 else 0xF0
        if mode is Mode.PAL:
            clear_at = 0x138
        else:
            clear_at = 0x105 if height is DisplayHeight.C28 else 0x1FF

        if vcounter_raw == set_at:
            self._flag = True
        elif vcounter_raw == clear_at:
            self._flag = False


class HblankFlag:
    """Horizontal blanking flag driven by the raw H counter."""

    def __init__(self) -> None:
        self._flag = False

    def reset(self) -> None:
        self._flag = False

    def value(self) -> bool:
        return self._flag

    def update(self, hcounter_raw: int, width: DisplayWidth) -> None:
        if width is DisplayWidth.C32:
            set_at, clear_at = 0x93, 0x05
        else:
            set_at, clear_at = 0xB3, 0x06

        if hcounter_raw == set_at:
            self._flag = True
        elif hcounter_raw == clear_at:
            self._flag = False


class BaseCounter:
    """8-bit counter that jumps back once per period, plus a raw linear count."""

    def __init__(self) -> None:
        self._raw_value = 0
        self._value = 0
        self._overflow = False

    def reset(self) -> None:
        self._raw_value = 0
        self._value = 0
        self._overflow = False

    def raw_value(self) -> int:
        return self._raw_value

    def value(self) -> int:
        return self._value

    def _inc2(self, overflow_value: int, fallback_value: int) -> None:
        """Count up, jump once at overflow_value, reset after 0xFF."""
        if self._overflow and self._value == 0xFF:
            self.reset()
            return
        self._raw_value += 1

        if not self._overflow and self._value == overflow_value:
            self._value = fallback_value
            self._overflow = True
        else:
            self._value = (self._value + 1) & 0xFF

    def _inc3(self, overflow_value: int, fallback_value: int) -> None:
        """Count a full pass, then a second pass that jumps at overflow_value."""
        if self._overflow and self._value == 0xFF:
            self._raw_value = 0
        else:
            self._raw_value += 1

        if self._value == 0xFF:
            self._overflow = not self._overflow

        if self._overflow and self._value == overflow_value:
            self._value = fallback_value
        else:
            self._value = (self._value + 1) & 0xFF


class HCounter(BaseCounter):
    def inc(self, width: DisplayWidth) -> None:
        if width is DisplayWidth.C32:
            self._inc2(0x93, 0xE9)
        else:
            self._inc2(0xB6, 0xE4)


class VCounter(BaseCounter):
    def inc(self, height: DisplayHeight, mode: Mode) -> None:
        if mode is Mode.PAL:
            if height is DisplayHeight.C28:
                self._inc3(0x02, 0xCA)
            else:
                self._inc3(0x0A, 0xD2)
        elif height is DisplayHeight.C28:
            self._inc2(0xEA, 0xE5)
        else:
            self._inc2(0xFF, 0x00)