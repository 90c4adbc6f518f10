"""Cartridge ROM images: loading, header, exception vectors and checksum."""

from __future__ import annotations

from dataclasses import dataclass
from os import PathLike
from pathlib import Path
from typing import Optional, Tuple, Union

_SUPPORTED_EXTENSIONS = (".bin", ".md")
_BODY_OFFSET = 0x200
_VECTOR_COUNT = 64


class RomError(Exception):
    """The ROM image cannot be loaded."""


@dataclass(frozen=True)
class HeaderData:
    system_type: str
    copyright: str
    game_name_domestic: str
    game_name_overseas: str
    region_support: str
    rom_checksum: int
    rom_start_addr: int
    rom_end_addr: int
    ram_start_addr: int
    ram_end_addr: int


def _read_string(data: bytes, offset: int, size: int) -> str:
    return data[offset:offset + size].decode("latin-1").strip()


def _read_uint(data: bytes, offset: int, size: int) -> int:
    # the ROM is big-endian
    return int.from_bytes(data[offset:offset + size], "big")


class Rom:
    """A raw (.bin/.md) ROM image read from disk."""

    MAX_SIZE = 0x400000
    MIN_SIZE = 0x201  # header + vectors + at least one body byte

    def __init__(self, path_to_rom: Union[str, PathLike]):
        path = Path(path_to_rom)
        extension = path.suffix
        if extension not in _SUPPORTED_EXTENSIONS:
            raise RomError(f"failed to parse ROM: extension '{extension}' is not supported")

        try:
            with path.open("rb") as stream:
                data = stream.read(self.MAX_SIZE + 1)
        except OSError as exc:
            raise RomError(f"failed to open ROM file '{path}'") from exc

        if len(data) > self.MAX_SIZE:
            raise RomError("ROM is too big")
        if len(data) < self.MIN_SIZE:
            raise RomError("ROM is too small")

        self._data = data
        self._checksum: Optional[int] = None
        self._header = HeaderData(
            system_type=_read_string(data, 0x100, 16),
            copyright=_read_string(data, 0x110, 16),
            game_name_domestic=_read_string(data, 0x120, 48),
            game_name_overseas=_read_string(data, 0x150, 48),
            region_support=_read_string(data, 0x1F0, 3),
            rom_checksum=_read_uint(data, 0x18E, 2),
            rom_start_addr=_read_uint(data, 0x1A0, 4),
            rom_end_addr=_read_uint(data, 0x1A4, 4),
            ram_start_addr=_read_uint(data, 0x1A8, 4),
            ram_end_addr=_read_uint(data, 0x1AC, 4),
        )
        self._vectors = tuple(_read_uint(data, n * 4, 4) for n in range(_VECTOR_COUNT))

    def data(self) -> bytes:
        return self._data

    def header(self) -> HeaderData:
        return self._header

    def vectors(self) -> Tuple[int, ...]:
        """The 64 exception vectors at the start of the image."""
        return self._vectors

    def body(self) -> bytes:
        """Everything after the vectors and header."""
        return self._data[_BODY_OFFSET:]

    def checksum(self) -> int:
        """16-bit sum of the body's big-endian words; a trailing odd byte is ignored."""
        if self._checksum is None:
            body = self.body()
            usable = len(body) - len(body) % 2
            total = sum(int.from_bytes(body[i:i + 2], "big") for i in range(0, usable, 2))
            self._checksum = total & 0xFFFF
        return self._checksum