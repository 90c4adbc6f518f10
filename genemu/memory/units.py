"""Addressable memory units shared by the CPU and video buses."""

from __future__ import annotations

import enum
import sys
from abc import ABC, abstractmethod
from typing import TextIO, Union


class InternalError(Exception):
    """Raised when the emulator reaches a state it should never be in."""


class NotImplementedFeature(Exception):
    """Raised for hardware behaviour that is not emulated."""


class ByteOrder(enum.Enum):
    """Byte order in which a unit stores multi-byte values."""

    LITTLE = "little"
    BIG = "big"
    NATIVE = sys.byteorder


def _hex(value: int) -> str:
    return f"0x{value:x}"


class Addressable(ABC):
    """A device that can be read and written through a bus."""

    @abstractmethod
    def max_address(self) -> int:
        """Highest valid address of the device."""

    @abstractmethod
    def is_idle(self) -> bool:
        """True when the device can accept a new request."""

    @abstractmethod
    def init_write_byte(self, address: int, data: int) -> None:
        """Start writing one byte."""

    @abstractmethod
    def init_write_word(self, address: int, data: int) -> None:
        """Start writing one 16-bit word."""

    @abstractmethod
    def init_read_byte(self, address: int) -> None:
        """Start reading one byte."""

    @abstractmethod
    def init_read_word(self, address: int) -> None:
        """Start reading one 16-bit word."""

    @abstractmethod
    def latched_byte(self) -> int:
        """Result of the last byte read."""

    @abstractmethod
    def latched_word(self) -> int:
        """Result of the last word read."""


class BaseUnit(Addressable):
    """Memory backed by a byte buffer, always idle."""

    def __init__(self, buffer: Union[bytearray, memoryview], byte_order: ByteOrder = ByteOrder.NATIVE):
        if len(buffer) == 0:
            raise InternalError("memory buffer cannot be empty")
        self._buffer = buffer
        self._byte_order = ByteOrder(byte_order)
        self._latched_byte: int | None = None
        self._latched_word: int | None = None

    @property
    def byte_order(self) -> ByteOrder:
        return self._byte_order

    def max_address(self) -> int:
        return len(self._buffer) - 1

    def is_idle(self) -> bool:
        return True

    def init_write_byte(self, address: int, data: int) -> None:
        self._reset()
        self.write(address, data, 1)

    def init_write_word(self, address: int, data: int) -> None:
        self._reset()
        self.write(address, data, 2)

    def init_read_byte(self, address: int) -> None:
        self._reset()
        self._latched_byte = self.read(address, 1)

    def init_read_word(self, address: int) -> None:
        self._reset()
        self._latched_word = self.read(address, 2)

    def latched_byte(self) -> int:
        if self._latched_byte is None:
            raise InternalError("no byte has been read")
        return self._latched_byte

    def latched_word(self) -> int:
        if self._latched_word is None:
            raise InternalError("no word has been read")
        return self._latched_word

    def write(self, address: int, data: int, size: int) -> None:
        """Store a size-byte value in the unit's byte order."""
        self._check_addr(address, size)
        value = data & ((1 << (8 * size)) - 1)
        self._buffer[address:address + size] = value.to_bytes(size, self._byte_order.value)

    def read(self, address: int, size: int) -> int:
        """Load a size-byte value in the unit's byte order."""
        self._check_addr(address, size)
        return int.from_bytes(self._buffer[address:address + size], self._byte_order.value)

    def read_raw(self, address: int, size: int) -> int:
        """Load a size-byte value in host byte order, ignoring the unit's order."""
        self._check_addr(address, size)
        return int.from_bytes(self._buffer[address:address + size], sys.byteorder)

    def _check_addr(self, address: int, size: int) -> None:
        top = self.max_address()
        if address < 0 or address > top or address + size - 1 > top:
            raise InternalError(f"buffer_unit check_addr error ({_hex(address)}) size: {size}")

    def _reset(self) -> None:
        self._latched_byte = None
        self._latched_word = None


class MemoryUnit(BaseUnit):
    """Generic RAM/ROM unit, either freshly allocated or over a shared buffer."""

    def __init__(self, source: Union[int, bytearray, memoryview], byte_order: ByteOrder = ByteOrder.NATIVE):
        buffer = bytearray(source + 1) if isinstance(source, int) else source
        super().__init__(buffer, byte_order)

    @property
    def buffer(self) -> Union[bytearray, memoryview]:
        return self._buffer


class ReadOnlyMemoryUnit(MemoryUnit):
    """Memory unit that rejects bus writes; direct writes still work."""

    def init_write_byte(self, address: int, data: int) -> None:
        self._access_violation(address, data)

    def init_write_word(self, address: int, data: int) -> None:
        self._access_violation(address, data)

    @staticmethod
    def _access_violation(address: int, data: int) -> None:
        raise RuntimeError(
            "Access violation: Attempt to write to read-only memory at address "
            f"{_hex(address)} (data {_hex(data)})"
        )


class DummyMemory(Addressable):
    """Ignores writes; reads return an incrementing counter."""

    def __init__(self, highest_address: int, byte_order: ByteOrder = ByteOrder.NATIVE):
        self._highest_address = highest_address
        self._next_byte = 0
        self._next_word = 0
        self._latched_byte: int | None = None
        self._latched_word: int | None = None

    def max_address(self) -> int:
        return self._highest_address

    def is_idle(self) -> bool:
        return True

    def init_write_byte(self, address: int, data: int) -> None:
        self._reset()

    def init_write_word(self, address: int, data: int) -> None:
        self._reset()

    def init_read_byte(self, address: int) -> None:
        self._reset()
        self._latched_byte = self._next_byte
        self._next_byte = (self._next_byte + 1) & 0xFF

    def init_read_word(self, address: int) -> None:
        self._reset()
        self._latched_word = self._next_word
        self._next_word = (self._next_word + 1) & 0xFFFF

    def latched_byte(self) -> int:
        if self._latched_byte is None:
            raise InternalError("no byte has been read")
        return self._latched_byte

    def latched_word(self) -> int:
        if self._latched_word is None:
            raise InternalError("no word has been read")
        return self._latched_word

    def _reset(self) -> None:
        self._latched_byte = None
        self._latched_word = None


class ConstantMemoryUnit(Addressable):
    """Ignores writes; reads always return fixed values."""

    def __init__(self, highest_address: int, byte_value: int, word_value: int):
        self._highest_address = highest_address
        self._byte_value = byte_value & 0xFF
        self._word_value = word_value & 0xFFFF

    def max_address(self) -> int:
        return self._highest_address

    def is_idle(self) -> bool:
        return True

    def init_write_byte(self, address: int, data: int) -> None:
        pass

    def init_write_word(self, address: int, data: int) -> None:
        pass

    def init_read_byte(self, address: int) -> None:
        pass

    def init_read_word(self, address: int) -> None:
        pass

    def latched_byte(self) -> int:
        return self._byte_value

    def latched_word(self) -> int:
        return self._word_value


class LoggingMemory(Addressable):
    """Forwards every request to a unit and records it on a text stream."""

    def __init__(self, unit: Addressable, stream: TextIO, name: str):
        self._unit = unit
        self._stream = stream
        self._name = name

    def max_address(self) -> int:
        return self._unit.max_address()

    def is_idle(self) -> bool:
        return self._unit.is_idle()

    def init_write_byte(self, address: int, data: int) -> None:
        self._log(f"writing byte at {_hex(address)}, data {_hex(data)}")
        self._unit.init_write_byte(address, data)

    def init_write_word(self, address: int, data: int) -> None:
        self._log(f"writing word at {_hex(address)}, data {_hex(data)}")
        self._unit.init_write_word(address, data)

    def init_read_byte(self, address: int) -> None:
        self._log(f"reading byte at {_hex(address)}")
        self._unit.init_read_byte(address)

    def init_read_word(self, address: int) -> None:
        self._log(f"reading word at {_hex(address)}")
        self._unit.init_read_word(address)

    def latched_byte(self) -> int:
        data = self._unit.latched_byte()
        self._log(f"latching byte: {_hex(data)}")
        return data

    def latched_word(self) -> int:
        data = self._unit.latched_word()
        self._log(f"latching word: {_hex(data)}")
        return data

    def _log(self, message: str) -> None:
        self._stream.write(f"{self._name}: {message}\n")


def make_memory_unit(highest_address: int, byte_order: ByteOrder = ByteOrder.NATIVE) -> MemoryUnit:
    """Allocate a zeroed memory unit covering [0; highest_address]."""
    return MemoryUnit(highest_address, byte_order)


def make_read_only_memory_unit(
    highest_address: int, byte_order: ByteOrder = ByteOrder.NATIVE
) -> ReadOnlyMemoryUnit:
    """Allocate a zeroed read-only unit covering [0; highest_address]."""
    return ReadOnlyMemoryUnit(highest_address, byte_order)


def zero_memory_unit(highest_address: int) -> ConstantMemoryUnit:
    """A unit whose reads always return zero."""
    return ConstantMemoryUnit(highest_address, 0x00, 0x0000)


def ffff_memory_unit(highest_address: int) -> ConstantMemoryUnit:
    """A unit whose reads always return all ones."""
    return ConstantMemoryUnit(highest_address, 0xFF, 0xFFFF)