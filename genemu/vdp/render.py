"""Renders planes, sprites and the active display out of video memory."""

from __future__ import annotations

from typing import List, NamedTuple

from genemu.memory.units import InternalError
from genemu.vdp.name_table import NameTable, PlaneType
from genemu.vdp.output_color import TRANSPARENT_COLOR, OutputColor
from genemu.vdp.registers import RegisterSet
from genemu.vdp.scroll import HscrollTable, vscroll_offset
from genemu.vdp.settings import Settings
from genemu.vdp.sprites import SpritesLimitsTracker, SpriteTable, SpriteTableEntry
from genemu.vdp.vmemory import Cram, Vram, Vsram

_TILE = 8
_PATTERN_LINE_BYTES = 4
_PATTERN_BYTES = 32
_SPRITE_PLANE_SIZE = 512
_SPRITE_ORIGIN = 128


class _Pixel(NamedTuple):
    """Pixel with the palette, colour and priority needed to compose a frame."""

    palette_id: int
    color_id: int
    priority: bool

    @property
    def transparent(self) -> bool:
        return self.color_id == 0


def _pixel(palette_id: int, color_id: int, priority: bool) -> _Pixel:
    return _Pixel(palette_id & 0b11, color_id & 0xF, bool(priority))


_TRANSPARENT_PIXEL = _Pixel(0, 0, False)


class Render:
    """Builds rows of pixels for the debug views and the active display."""

    def __init__(self, regs: RegisterSet, sett: Settings, vram: Vram, vsram: Vsram, cram: Cram):
        self._regs = regs
        self._sett = sett
        self._vram = vram
        self._vsram = vsram
        self._cram = cram

    def background_color(self) -> OutputColor:
        return self._cram.read_color(self._regs.R7.PAL, self._regs.R7.COL)

    # planes A/B/W

    def plane_width_in_pixels(self, plane: PlaneType) -> int:
        return NameTable(plane, self._sett, self._vram).entries_per_row() * _TILE

    def plane_height_in_pixels(self, plane: PlaneType) -> int:
        return NameTable(plane, self._sett, self._vram).row_count() * _TILE

    def get_plane_row(self, plane: PlaneType, row_number: int) -> List[OutputColor]:
        """One full row of a plane, without scrolling."""
        if not 0 <= row_number < self.plane_height_in_pixels(plane):
            raise ValueError("provided invalid row_number")

        table = NameTable(plane, self._sett, self._vram)
        tile_row = row_number // _TILE
        pattern_row = row_number % _TILE

        row: List[OutputColor] = []
        for column in range(table.entries_per_row()):
            entry = table.get(tile_row, column)
            line = self._pattern_line(
                pattern_row, entry.effective_pattern_address(), entry.horizontal_flip, entry.vertical_flip
            )
            row.extend(self._read_color(entry.palette, color_id) for color_id in line)
        return row

    # sprites

    def sprite_width_in_pixels(self) -> int:
        return _SPRITE_PLANE_SIZE

    def sprite_height_in_pixels(self) -> int:
        return _SPRITE_PLANE_SIZE

    def get_sprite_row(self, row_number: int) -> List[OutputColor]:
        """One row of the whole sprite plane, ignoring the line limits."""
        row = [TRANSPARENT_COLOR] * self.sprite_width_in_pixels()
        table = SpriteTable(self._sett, self._vram)

        for entry in self._linked_sprites(table):
            if self._should_render_sprite(row_number, entry):
                self._draw_sprite(row_number, entry, row)
        return row

    # active display

    def active_display_width(self) -> int:
        return self._sett.display_width_in_pixels()

    def active_display_height(self) -> int:
        return self._sett.display_height_in_pixels()

    def get_active_display_row(self, row_number: int) -> List[OutputColor]:
        """One composed line of the visible picture; updates the sprite flags."""
        if not 0 <= row_number < self.active_display_height():
            raise ValueError("row_number exceeds active display height")

        plane_a = self._active_plane_row(PlaneType.A, row_number)
        plane_b = self._active_plane_row(PlaneType.B, row_number)
        sprites = self._active_sprites_row(row_number)

        self._render_active_window_row(row_number, plane_a)

        background = self.background_color()
        return [
            self._resolve_priority(background, a, b, s)
            for a, b, s in zip(plane_a, plane_b, sprites)
        ]

    def reset_limits(self) -> None:
        """Frame-start hook; sprite limits are tracked per line, so nothing carries over."""
        return None

    # pattern and colour helpers

    def _pattern_line(self, line_number: int, pattern_address: int, hflip: bool, vflip: bool) -> List[int]:
        """Colour ids of one 8-pixel line of a pattern, left to right."""
        if not 0 <= line_number < _TILE:
            raise InternalError(f"pattern line {line_number} out of range")
        if vflip:
            line_number = 7 - line_number

        address = pattern_address + line_number * _PATTERN_LINE_BYTES
        value = (self._vram.read(address, 2) << 16) | self._vram.read(address + 2, 2)
        pixels = [(value >> shift) & 0xF for shift in range(28, -1, -4)]
        if hflip:
            pixels.reverse()
        return pixels

    def _read_color(self, palette_idx: int, color_idx: int) -> OutputColor:
        # colour 0 is always transparent; not for the background colour
        if color_idx == 0:
            return TRANSPARENT_COLOR
        return self._cram.read_color(palette_idx, color_idx)

    # sprite helpers

    @staticmethod
    def _linked_sprites(table: SpriteTable):
        """Sprite entries in link order, starting at entry 0."""
        sprite_number = 0
        for _ in range(table.num_entries()):
            entry = table.get(sprite_number)
            yield entry
            sprite_number = entry.link
            if sprite_number == 0 or sprite_number >= table.num_entries():
                return

    @staticmethod
    def _should_render_sprite(row_number: int, entry: SpriteTableEntry) -> bool:
        last = entry.vertical_position + (entry.vertical_size + 1) * _TILE
        return entry.vertical_position <= row_number < last

    @staticmethod
    def _sprite_pattern_address(row_number: int, column: int, entry: SpriteTableEntry) -> int:
        if entry.horizontal_flip:
            column = entry.horizontal_size - column

        sprite_row = (row_number - entry.vertical_position) // _TILE
        if entry.vertical_flip:
            sprite_row = entry.vertical_size - sprite_row

        pattern_number = sprite_row + column * (entry.vertical_size + 1)
        return entry.pattern_address + pattern_number * _PATTERN_BYTES

    def _sprite_pixels(self, row_number: int, entry: SpriteTableEntry):
        """Colour ids of the sprite's line, left to right across its tiles."""
        pattern_row = (row_number - entry.vertical_position) % _TILE
        for column in range(entry.horizontal_size + 1):
            address = self._sprite_pattern_address(row_number, column, entry)
            yield from self._pattern_line(pattern_row, address, entry.horizontal_flip, entry.vertical_flip)

    def _draw_sprite(self, row_number: int, entry: SpriteTableEntry, dest: List[OutputColor]) -> None:
        if len(dest) < entry.horizontal_position:
            raise ValueError("provided buffer does not have enough space")

        position = entry.horizontal_position
        for color_id in self._sprite_pixels(row_number, entry):
            if position >= len(dest):
                break
            if dest[position] == TRANSPARENT_COLOR:
                dest[position] = self._read_color(entry.palette, color_id)
            position += 1

    def _draw_sprite_pixels(
        self, row_number: int, entry: SpriteTableEntry, dest: List[_Pixel], pixels_limit: int
    ) -> bool:
        """Draw a sprite line into dest; True if it hit an opaque sprite pixel."""
        if len(dest) < entry.horizontal_position:
            raise ValueError("provided buffer does not have enough space")

        collision = False
        position = entry.horizontal_position
        for color_id in self._sprite_pixels(row_number, entry):
            if position >= len(dest) or pixels_limit == 0:
                break
            if dest[position].transparent:
                dest[position] = _pixel(entry.palette, color_id, entry.priority_flag)
            elif color_id != 0:
                collision = True
            pixels_limit -= 1
            position += 1
        return collision

    def _active_sprites_row(self, line_number: int) -> List[_Pixel]:
        regs = self._regs
        prev_line_overflow = regs.SR.SO == 1
        regs.SR.SO = 0
        regs.SR.SC = 0

        line_number += _SPRITE_ORIGIN
        buffer = [_TRANSPARENT_PIXEL] * self.sprite_width_in_pixels()

        limits = SpritesLimitsTracker(self._sett)
        table = SpriteTable(self._sett, self._vram)

        rendered_sprites = 0
        masked = False
        for entry in self._linked_sprites(table):
            if limits.line_limit_exceeded():
                regs.SR.SO = 1
                break

            if not self._should_render_sprite(line_number, entry):
                continue

            # a sprite at X = 0 masks every sprite after it on the line
            if entry.horizontal_position == 0 and (rendered_sprites > 0 or prev_line_overflow):
                masked = True
            if entry.horizontal_position != 0:
                rendered_sprites += 1

            if not masked:
                if self._draw_sprite_pixels(line_number, entry, buffer, limits.line_pixels_limit()):
                    regs.SR.SC = 1

            # keep counting masked sprites so the overflow flag stays right
            limits.on_sprite_draw(entry)

        return buffer[_SPRITE_ORIGIN:_SPRITE_ORIGIN + self.active_display_width()]

    # plane helpers

    def _active_plane_row(self, plane: PlaneType, row_number: int) -> List[_Pixel]:
        width = self.active_display_width()
        buffer_size = width + _TILE  # room for one more tile
        max_height = self.plane_height_in_pixels(plane)

        table = NameTable(plane, self._sett, self._vram)
        entries = table.entries_per_row()

        hoffset = HscrollTable(plane, self._sett, self._vram).get_offset(row_number)
        # ceiling division, counted from the end of the row
        tile_hoffset = entries - (((hoffset + 7) // _TILE) % entries)

        pixels: List[_Pixel] = []
        for tile in range(min(buffer_size // _TILE, entries)):
            column = (tile + tile_hoffset) & (entries - 1)

            voffset = vscroll_offset(plane, column, self._sett, self._vsram)
            shifted_row = (row_number + voffset) & (max_height - 1)

            entry = table.get(shifted_row // _TILE, column)
            line = self._pattern_line(
                shifted_row % _TILE, entry.effective_pattern_address(), entry.horizontal_flip, entry.vertical_flip
            )
            pixels.extend(_pixel(entry.palette, color_id, entry.priority) for color_id in line)

        hpixel_offset = (_TILE - hoffset % _TILE) % _TILE
        end = hpixel_offset + width

        # a plane narrower than the display repeats itself tile by tile
        if len(pixels) < end:
            source = 0 if hpixel_offset == 0 else _TILE
            while len(pixels) < end:
                pixels.append(pixels[source])
                source += 1

        return pixels[hpixel_offset:end]

    def _render_active_window_row(self, line_number: int, plane_a: List[_Pixel]) -> None:
        """Overwrite plane A pixels with the window plane where it is shown."""
        r17 = self._regs.R17
        r18 = self._regs.R18
        width_tiles = self._sett.display_width_in_tiles()

        start_col = 0 if r17.R == 0 else r17.HP * 2
        end_col = r17.HP * 2 if r17.R == 0 else width_tiles

        start_row = 0 if r18.D == 0 else r18.VP
        end_row = r18.VP if r18.D == 0 else self._sett.display_height_in_tiles()

        # R = 0 with HP = 0 gives a full-width window
        if r17.R == 0 and r17.HP == 0:
            end_col = width_tiles

        tile_row = line_number // _TILE
        if not start_row <= tile_row < end_row:
            return

        position = start_col * _TILE
        if position >= len(plane_a):
            return

        table = NameTable(PlaneType.W, self._sett, self._vram)
        for column in range(start_col, end_col):
            if position >= len(plane_a):
                break
            entry = table.get(tile_row, column)
            line = self._pattern_line(
                line_number % _TILE, entry.effective_pattern_address(), entry.horizontal_flip, entry.vertical_flip
            )
            for color_id in line:
                if position >= len(plane_a):
                    break
                plane_a[position] = _pixel(entry.palette, color_id, True)
                position += 1

    def _resolve_priority(
        self, background: OutputColor, plane_a: _Pixel, plane_b: _Pixel, sprite: _Pixel
    ) -> OutputColor:
        if sprite.transparent:
            if plane_a.transparent:
                if plane_b.transparent:
                    return background
                return self._read_color(plane_b.palette_id, plane_b.color_id)
            if plane_a.priority:
                return self._read_color(plane_a.palette_id, plane_a.color_id)
            if plane_b.priority and not plane_b.transparent:
                return self._read_color(plane_b.palette_id, plane_b.color_id)
            return self._read_color(plane_a.palette_id, plane_a.color_id)

        if sprite.priority:
            return self._read_color(sprite.palette_id, sprite.color_id)

        if plane_a.priority and not plane_a.transparent:
            return self._read_color(plane_a.palette_id, plane_a.color_id)
        if plane_b.priority and not plane_b.transparent:
            return self._read_color(plane_b.palette_id, plane_b.color_id)
        return self._read_color(sprite.palette_id, sprite.color_id)