# genemu

Building blocks of a Sega Mega Drive / Genesis emulator, in plain Python with
no third-party dependencies.

## What is in it

- `genemu.rom`: `Rom` loads a `.bin` or `.md` cartridge image and exposes
  `data()`, the parsed `header()` (a `HeaderData`), the 64 exception
  `vectors()`, the `body()` after offset 0x200 and the 16-bit body
  `checksum()`. Bad extensions, unreadable files and images that are too
  small or too large raise `RomError`.
- `genemu.memory.units`: the `Addressable` interface and the devices that
  implement it. These are `MemoryUnit`, `ReadOnlyMemoryUnit`, `DummyMemory`,
  `ConstantMemoryUnit` (see `zero_memory_unit` and `ffff_memory_unit`) and
  `LoggingMemory`, which writes every access to a text stream. Units store
  data in a chosen `ByteOrder`.
- `genemu.memory.memory_builder`: `MemoryBuilder` maps devices onto address
  ranges, mirrors ranges and builds a `CompositeMemory` that routes each
  access to the device serving it.
- `genemu.bus.z80_bank`: `Z80Bank`, the bank register and 32 KiB window
  through which the Z80 sees the 68000 ROM area.
- `genemu.bus.z80_control`: `Z80ControlRegisters` (bus request and reset
  registers) and `Z80IoPorts`, an I/O port stub.
- `genemu.vdp`: the Video Display Processor.
  - `vdp.Vdp` steps everything one master clock cycle at a time.
  - `registers`, `control_register` and `settings` hold and decode the
    registers.
  - `ports` handles the data and control ports.
  - `dma` covers VRAM fill, VRAM copy and 68000-to-VRAM transfers.
  - `counters` and `interrupts` provide the H/V counters, blanking flags and
    interrupts.
  - `vmemory` holds VRAM, CRAM and VSRAM, plus the `M68kBusAccess` and
    `M68kInterruptAccess` interfaces that you implement to connect a CPU.
  - `render.Render` produces rows of `OutputColor` for planes A/B/W, the
    sprite plane and the composed active display.

## Installation

```
pip install .
```

## Example

```python
from genemu.rom import Rom
from genemu.vdp.vdp import Vdp
from genemu.vdp.name_table import PlaneType

rom = Rom("game.md")
print(rom.header().game_name_overseas, hex(rom.checksum()))

vdp = Vdp()
vdp.on_frame_end(lambda: print("frame done"))
for _ in range(3420):          # one scanline of master clock cycles
    vdp.cycle()

row = vdp.render.get_active_display_row(0)          # list of OutputColor
plane_a = vdp.render.get_plane_row(PlaneType.A, 0)
```

Building a memory map:

```python
from genemu.memory.units import MemoryUnit, ByteOrder
from genemu.memory.memory_builder import MemoryBuilder

builder = MemoryBuilder()
builder.add(MemoryUnit(0x1FFF, ByteOrder.LITTLE), 0x0000, 0x1FFF)
builder.mirror(0x0000, 0x1FFF, 0x2000, 0x3FFF)
memory = builder.build()

memory.init_write_byte(0x2010, 0x42)
memory.init_read_byte(0x0010)
assert memory.latched_byte() == 0x42
```

## What it does not do

The package is a library, not a playable emulator. It has no 68000 or Z80
CPU core, no sound chip, no controller input, no window or screen output and
no command-line program. Rendering returns rows of colours for you to display
yourself. A CPU is attached only through the `M68kBusAccess` and
`M68kInterruptAccess` interfaces. The Z80 bank window reaches only the ROM
area of the 68000 address space.

## Running the tests

```
pip install .[test]
pytest
```