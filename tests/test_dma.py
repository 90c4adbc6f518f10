import pytest

from genemu.memory.units import InternalError
from genemu.vdp.control_register import ControlType, VmemType
from genemu.vdp.dma import Dma, MemoryAccess, PendingRead, PendingWrite
from genemu.vdp.registers import RegisterSet
from genemu.vdp.settings import DmaMode, Settings
from genemu.vdp.vmemory import M68kBusAccess, Vram


class FakeBus(M68kBusAccess):
    def __init__(self, words):
        self.words = words
        self.granted = False
        self.last = None

    def request_bus(self):
        self.granted = True

    def release_bus(self):
        self.granted = False

    def bus_granted(self):
        return self.granted

    def init_read_word(self, address):
        self.last = address

    def latched_word(self):
        return self.words[self.last]

    def is_idle(self):
        return True


def service(memory, vram):
    write = memory.pending_write
    if write is not None:
        vram.write(write.address, write.data & 0xFF, 1)
        memory.pending_write = None
    read = memory.pending_read
    if read is not None:
        memory.pending_read = None
        memory.set_read_result(vram.read(read.address, 1))


def run_until_idle(dma, memory, vram, limit=1000):
    for _ in range(limit):
        dma.cycle()
        service(memory, vram)
        if dma.is_idle():
            return
    raise AssertionError("DMA did not finish")


@pytest.fixture
def setup():
    regs = RegisterSet()
    sett = Settings(regs)
    memory = MemoryAccess()
    regs.R1.M1 = 1
    return regs, sett, memory


def test_memory_access_single_request():
    memory = MemoryAccess()
    assert memory.is_idle() is True
    memory.init_write(VmemType.CRAM, 4, 0x1_2345)
    assert memory.pending_write == PendingWrite(VmemType.CRAM, 4, 0x2345)
    with pytest.raises(InternalError):
        memory.init_read_vram(0)
    memory.pending_write = None
    memory.init_read_vram(7)
    assert memory.pending_read == PendingRead(7)


def test_memory_access_latched_byte():
    memory = MemoryAccess()
    with pytest.raises(InternalError):
        memory.latched_byte()
    memory.set_read_result(0xAB)
    assert memory.latched_byte() == 0xAB


def test_idle_without_dma_start(setup):
    regs, sett, memory = setup
    dma = Dma(regs, sett, memory)
    dma.cycle()
    assert dma.is_idle() is True
    assert regs.SR.DMA == 0


def test_vram_fill(setup):
    regs, sett, memory = setup
    vram = Vram()
    regs.R15.INC = 1
    sett.dma_mode = DmaMode.VRAM_FILL
    sett.dma_length = 4
    regs.control.control_type = ControlType.WRITE
    regs.control.vmem_type = VmemType.VRAM
    regs.control.dma_start = True
    regs.fifo.push(0xDEAD, regs.control)

    dma = Dma(regs, sett, memory)
    dma.cycle()
    assert regs.SR.DMA == 1
    assert dma.is_idle() is False
    regs.fifo.pop()

    run_until_idle(dma, memory, vram)

    assert [vram.read(addr, 1) for addr in range(4)] == [0xDE] * 4
    assert vram.read(4, 1) == 0
    assert regs.control.address == 4
    assert sett.dma_length == 0
    assert regs.SR.DMA == 0
    assert regs.control.dma_start is False


def test_vram_copy(setup):
    regs, sett, memory = setup
    vram = Vram()
    regs.R15.INC = 1
    source, dest = 0x100, 0x200
    payload = [0x11, 0x22, 0x33]
    for offset, byte in enumerate(payload):
        vram.write(source + offset, byte, 1)

    sett.dma_mode = DmaMode.VRAM_COPY
    sett.dma_source = source
    sett.dma_length = len(payload)
    regs.control.address = dest
    regs.control.dma_start = True

    dma = Dma(regs, sett, memory)
    run_until_idle(dma, memory, vram)

    assert [vram.read(dest + i, 1) for i in range(len(payload))] == payload
    assert vram.read(dest + len(payload), 1) == 0
    assert sett.dma_source == source + len(payload)
    assert regs.control.address == dest + len(payload)


def test_m68k_copy(setup):
    regs, sett, memory = setup
    words = {0x1000: 0xCAFE, 0x1002: 0xBEEF}
    bus = FakeBus(words)
    regs.R15.INC = 2
    sett.dma_mode = DmaMode.MEM_TO_VRAM
    sett.dma_source = 0x1000
    sett.dma_length = 2
    regs.control.control_type = ControlType.WRITE
    regs.control.vmem_type = VmemType.VRAM
    regs.control.address = 0x800
    regs.control.dma_start = True

    dma = Dma(regs, sett, memory, bus)
    received = []
    for _ in range(100):
        dma.cycle()
        while not regs.fifo.empty():
            entry = regs.fifo.pop()
            received.append((entry.data, entry.control.address))
        if dma.is_idle():
            break

    assert dma.is_idle() is True
    assert received == [(0xCAFE, 0x800), (0xBEEF, 0x802)]
    assert bus.granted is False
    assert sett.dma_length == 0
    assert sett.dma_source == 0x1004
    assert regs.SR.DMA == 0


def test_m68k_copy_without_bus(setup):
    regs, sett, memory = setup
    sett.dma_mode = DmaMode.MEM_TO_VRAM
    sett.dma_length = 1
    regs.control.dma_start = True
    dma = Dma(regs, sett, memory)
    with pytest.raises(InternalError):
        dma.cycle()