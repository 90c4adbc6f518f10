"""Z80 bank window, Z80 bus/reset control registers and Z80 I/O port stub."""