"""The Video Display Processor: registers, ports, DMA, timing, interrupts and rendering."""