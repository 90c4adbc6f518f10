"""Sprite attribute table and per-line sprite limits."""

from __future__ import annotations

from dataclasses import dataclass

from genemu.vdp.settings import DisplayWidth, Settings
from genemu.vdp.vmemory import Vram

_ENTRY_SIZE = 8


@dataclass(frozen=True)
class SpriteTableEntry:
    """One decoded sprite attribute entry."""

    vertical_position: int = 0
    horizontal_position: int = 0
    vertical_size: int = 0
    horizontal_size: int = 0
    vertical_flip: bool = False
    horizontal_flip: bool = False
    pattern_address: int = 0
    palette: int = 0
    link: int = 0
    priority_flag: bool = False


class SpriteTable:
    """Sprite attribute table located as configured when it was created."""

    def __init__(self, sett: Settings, vram: Vram):
        self._vram = vram
        self._num_entries = 64 if sett.display_width() is DisplayWidth.C32 else 80
        self._sprite_address = sett.sprite_address()

    def num_entries(self) -> int:
        return self._num_entries

    def get(self, entry_number: int) -> SpriteTableEntry:
        """Zero-based entry of the table."""
        if not 0 <= entry_number < self._num_entries:
            raise ValueError(f"entry_number {entry_number} out of range")

        address = self._sprite_address + entry_number * _ENTRY_SIZE
        read = self._vram.read

        size = read(address + 2, 1)
        pattern_hi = read(address + 4, 1)
        pattern_lo = read(address + 5, 1)

        return SpriteTableEntry(
            vertical_position=read(address, 2) & 0x1FF,
            horizontal_position=read(address + 6, 2) & 0x1FF,
            vertical_size=size & 0b11,
            horizontal_size=(size >> 2) & 0b11,
            vertical_flip=bool((pattern_hi >> 4) & 1),
            horizontal_flip=bool((pattern_hi >> 3) & 1),
            pattern_address=(pattern_lo | ((pattern_hi & 0b111) << 8)) << 5,
            palette=(pattern_hi >> 5) & 0b11,
            link=read(address + 3, 1) & 0x7F,
            priority_flag=bool((pattern_hi >> 7) & 1),
        )


class SpritesLimitsTracker:
    """Counts sprites and pixels drawn on a line against the hardware limits."""

    def __init__(self, sett: Settings):
        self._sett = sett
        self._rendered_sprites = 0
        self._rendered_pixels = 0

    def line_limit_exceeded(self) -> bool:
        return (
            self._rendered_sprites >= self._sprites_per_line_limit()
            or self._rendered_pixels >= self._sett.display_width_in_pixels()
        )

    def line_pixels_limit(self) -> int:
        """Pixels that may still be drawn on the line."""
        max_pixels = self._sett.display_width_in_pixels()
        return max(0, max_pixels - self._rendered_pixels)

    def reset_limits(self) -> None:
        self._rendered_sprites = 0
        self._rendered_pixels = 0

    def on_sprite_draw(self, entry: SpriteTableEntry) -> None:
        self._rendered_sprites += 1
        self._rendered_pixels += (entry.horizontal_size + 1) * 8

    def _sprites_per_line_limit(self) -> int:
        return 20 if self._sett.display_width() is DisplayWidth.C40 else 16