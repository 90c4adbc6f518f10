"""Z80 window onto the 68000 address space, selected by a bank register."""

from __future__ import annotations

from genemu.memory.units import Addressable, InternalError, NotImplementedFeature

_BANK_AREA_MASK = 0x7FFF
_MAX_M68K_ROM_ADDRESS = 0x3FFFFF


class BankRegister(Addressable):
    """9-bit bank register filled one bit per byte write, lowest bit first."""

    def __init__(self) -> None:
        self._value = 0

    def max_address(self) -> int:
        return 0x1

    def is_idle(self) -> bool:
        return True

    def init_write_word(self, address: int, data: int) -> None:
        raise RuntimeError("z80 bank register does not support 16-bit write operations")

    def init_read_word(self, address: int) -> None:
        raise RuntimeError("z80 bank register does not support 16-bit read operations")

    def latched_word(self) -> int:
        raise InternalError("z80 bank register has no word to latch")

    def init_read_byte(self, address: int) -> None:
        pass

    def latched_byte(self) -> int:
        # reading always returns 0xFF
        return 0xFF

    def init_write_byte(self, address: int, data: int) -> None:
        # only the lowest bit is used; it enters at the top and shifts down
        self._value = (self._value >> 1) | ((data & 0b1) << 8)

    def bank_value(self) -> int:
        """Currently selected bank number."""
        return self._value


class BankArea(Addressable):
    """32 KiB area that maps Z80 addresses into the selected 68000 bank."""

    def __init__(self, bank_register: BankRegister, m68k_area: Addressable):
        self._bank_register = bank_register
        self._memory = m68k_area

    def max_address(self) -> int:
        return _BANK_AREA_MASK

    def is_idle(self) -> bool:
        return True

    def init_write_byte(self, address: int, data: int) -> None:
        self._memory.init_write_byte(self._fix_address(address), data)

    def init_write_word(self, address: int, data: int) -> None:
        self._memory.init_write_word(self._fix_address(address), data)

    def init_read_byte(self, address: int) -> None:
        self._memory.init_read_byte(self._fix_address(address))

    def init_read_word(self, address: int) -> None:
        self._memory.init_read_word(self._fix_address(address))

    def latched_byte(self) -> int:
        try:
            return self._memory.latched_byte()
        except Exception as exc:
            raise InternalError("bank area has no latched byte") from exc

    def latched_word(self) -> int:
        try:
            return self._memory.latched_word()
        except Exception as exc:
            raise InternalError("bank area has no latched word") from exc

    def _fix_address(self, address: int) -> int:
        mapped = (self._bank_register.bank_value() << 15) | (address & _BANK_AREA_MASK)
        if mapped > _MAX_M68K_ROM_ADDRESS:
            raise NotImplementedFeature(
                f"z80 bank area: only ROM is supported for now (address: 0x{mapped:x})"
            )
        return mapped


class Z80Bank:
    """Pairs a bank register with the bank area it controls."""

    def __init__(self, m68k_memory: Addressable):
        self._bank_register = BankRegister()
        self._bank_area = BankArea(self._bank_register, m68k_memory)

    def bank_register(self) -> BankRegister:
        return self._bank_register

    def bank_area(self) -> BankArea:
        return self._bank_area