"""Core components of a Sega Mega Drive / Genesis emulator: ROM, memory, Z80 bus glue and the VDP."""

__version__ = "0.1.0"