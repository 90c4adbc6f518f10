"""Video modes and the colour value produced by the VDP."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class Mode(enum.Enum):
    """Television standard the VDP runs in."""

    PAL = enum.auto()
    NTSC = enum.auto()


@dataclass(frozen=True)
class OutputColor:
    """A 3-bit-per-channel colour; the default value is transparent black."""

    red: int = 0
    green: int = 0
    blue: int = 0
    transparent: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "red", self.red & 0b111)
        object.__setattr__(self, "green", self.green & 0b111)
        object.__setattr__(self, "blue", self.blue & 0b111)
        object.__setattr__(self, "transparent", bool(self.transparent))

    @classmethod
    def from_internal(cls, value: int) -> "OutputColor":
        """Decode the CRAM layout ----bbb-ggg-rrr- into an opaque colour."""
        return cls(
            red=(value >> 1) & 0b111,
            green=(value >> 5) & 0b111,
            blue=(value >> 9) & 0b111,
            transparent=False,
        )

    def to_internal(self) -> int:
        """Encode back into the CRAM layout."""
        return (self.red << 1) | (self.green << 5) | (self.blue << 9)


TRANSPARENT_COLOR = OutputColor()