"""Combine several addressable devices into one address space."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from genemu.memory.units import Addressable, InternalError

_U32 = 0xFFFFFFFF


@dataclass(frozen=True)
class AddressableDevice:
    """A device mapped onto [start_address; end_address]."""

    unit: Addressable
    start_address: int
    end_address: int


def _covers(device: AddressableDevice, address: int) -> bool:
    return device.start_address <= address <= device.end_address


class CompositeMemory(Addressable):
    """Address space that routes each request to the device serving it."""

    def __init__(self, devices: Iterable[AddressableDevice]):
        self._devices = tuple(devices)
        self._last_device: Optional[AddressableDevice] = None

    def max_address(self) -> int:
        return max((dev.end_address for dev in self._devices), default=0)

    def is_idle(self) -> bool:
        if self._last_device is None:
            return True
        return self._last_device.unit.is_idle()

    def init_write_byte(self, address: int, data: int) -> None:
        dev = self._start(address)
        dev.unit.init_write_byte(address - dev.start_address, data)

    def init_write_word(self, address: int, data: int) -> None:
        dev = self._start(address)
        dev.unit.init_write_word(address - dev.start_address, data)

    def init_read_byte(self, address: int) -> None:
        dev = self._start(address)
        dev.unit.init_read_byte(address - dev.start_address)

    def init_read_word(self, address: int) -> None:
        dev = self._start(address)
        dev.unit.init_read_word(address - dev.start_address)

    def latched_byte(self) -> int:
        return self._last().unit.latched_byte()

    def latched_word(self) -> int:
        return self._last().unit.latched_word()

    def _start(self, address: int) -> AddressableDevice:
        if not self.is_idle():
            raise InternalError("composite memory is busy")
        dev = self._find_device(address)
        self._last_device = dev
        return dev

    def _last(self) -> AddressableDevice:
        if self._last_device is None:
            raise InternalError("no request has been made")
        return self._last_device

    def _find_device(self, address: int) -> AddressableDevice:
        for dev in self._devices:
            if _covers(dev, address):
                return dev
        raise LookupError(f"cannot find addressable device serving address 0x{address:x}")


class MemoryBuilder:
    """Collects device mappings and builds a CompositeMemory from them."""

    def __init__(self) -> None:
        self._devices: list[AddressableDevice] = []

    def build(self) -> CompositeMemory:
        """Build the address space and empty the builder."""
        if not self._devices:
            raise InternalError("tried to build without devices")

        # devices with larger capacities come first
        devices = sorted(self._devices, key=lambda d: d.end_address - d.start_address, reverse=True)
        self._devices = []
        return CompositeMemory(devices)

    def add(self, device: Addressable, start_address: int, end_address: Optional[int] = None) -> None:
        """Map device at start_address; the end defaults to its own size."""
        if device is None:
            raise ValueError("addressable device cannot be null")
        if end_address is None:
            end_address = (start_address + device.max_address()) & _U32
        if end_address < start_address:
            raise ValueError("end_address cannot be less than start_address")
        self._check_intersect(start_address, end_address)
        self._devices.append(AddressableDevice(device, start_address, end_address))

    def mirror(
        self,
        start_address: int,
        end_address: int,
        mirrored_start_address: int,
        mirrored_end_address: int,
    ) -> None:
        """Make [mirrored_start; mirrored_end] reach the device at [start; end]."""
        if ((end_address - start_address) & _U32) != ((mirrored_end_address - mirrored_start_address) & _U32):
            raise ValueError("address ranges must have the same size")

        self._check_intersect(mirrored_start_address, mirrored_end_address)

        for dev in self._devices:
            if _covers(dev, start_address) != _covers(dev, end_address):
                raise ValueError("start/end addresses must belong to the same device")

        source = next(
            (dev for dev in self._devices if _covers(dev, start_address) and _covers(dev, end_address)),
            None,
        )
        if source is None:
            raise ValueError("cannot find device serving inital addresses")

        self._devices.append(AddressableDevice(source.unit, mirrored_start_address, mirrored_end_address))

    def _check_intersect(self, start_address: int, end_address: int) -> None:
        if any(_covers(dev, start_address) or _covers(dev, end_address) for dev in self._devices):
            raise ValueError("specified address range intersects with existing device")