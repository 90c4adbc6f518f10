import pytest

from genemu.rom import HeaderData, Rom, RomError


def make_header(**fields):
    header = bytearray(0x200)

    def put_str(offset, size, text):
        raw = text.encode("latin-1").ljust(size, b" ")
        header[offset:offset + size] = raw

    put_str(0x100, 16, fields.get("system_type", "SEGA MEGA DRIVE"))
    put_str(0x110, 16, fields.get("copyright", "(C)TEST 2020"))
    put_str(0x120, 48, fields.get("domestic", "DOMESTIC NAME"))
    put_str(0x150, 48, fields.get("overseas", "OVERSEAS NAME"))
    put_str(0x1F0, 3, fields.get("region", "JUE"))
    header[0x18E:0x190] = fields.get("checksum", 0).to_bytes(2, "big")
    header[0x1A0:0x1A4] = fields.get("rom_start", 0).to_bytes(4, "big")
    header[0x1A4:0x1A8] = fields.get("rom_end", 0).to_bytes(4, "big")
    header[0x1A8:0x1AC] = fields.get("ram_start", 0).to_bytes(4, "big")
    header[0x1AC:0x1B0] = fields.get("ram_end", 0).to_bytes(4, "big")
    return header


def write_rom(tmp_path, body=b"\x00\x00", name="game.bin", vectors=(), **fields):
    header = make_header(**fields)
    for index, value in enumerate(vectors):
        header[index * 4:index * 4 + 4] = value.to_bytes(4, "big")
    path = tmp_path / name
    path.write_bytes(bytes(header) + body)
    return path


def test_header_fields_are_parsed_and_trimmed(tmp_path):
    path = write_rom(
        tmp_path,
        system_type="SEGA MEGA DRIVE",
        copyright="(C)TEST 2020",
        domestic="DOMESTIC NAME",
        overseas="OVERSEAS NAME",
        region="JUE",
        checksum=0xABCD,
        rom_start=0x0,
        rom_end=0x3FFFFF,
        ram_start=0xFF0000,
        ram_end=0xFFFFFF,
    )
    rom = Rom(path)

    assert rom.header() == HeaderData(
        system_type="SEGA MEGA DRIVE",
        copyright="(C)TEST 2020",
        game_name_domestic="DOMESTIC NAME",
        game_name_overseas="OVERSEAS NAME",
        region_support="JUE",
        rom_checksum=0xABCD,
        rom_start_addr=0x0,
        rom_end_addr=0x3FFFFF,
        ram_start_addr=0xFF0000,
        ram_end_addr=0xFFFFFF,
    )


def test_vectors_are_read_big_endian(tmp_path):
    path = write_rom(tmp_path, vectors=(0x00FFFE00, 0x00000200, 0x12345678))
    vectors = Rom(path).vectors()

    assert len(vectors) == 64
    assert vectors[:3] == (0x00FFFE00, 0x00000200, 0x12345678)


def test_data_and_body(tmp_path):
    body = b"\x12\x34\x56"
    path = write_rom(tmp_path, body=body)
    rom = Rom(path)

    assert rom.data() == path.read_bytes()
    assert rom.body() == body
    assert len(rom.data()) == 0x200 + len(body)


def test_checksum_of_single_word(tmp_path):
    rom = Rom(write_rom(tmp_path, body=b"\x12\x34"))
    assert rom.checksum() == 0x1234


def test_checksum_ignores_trailing_odd_byte(tmp_path):
    even = Rom(write_rom(tmp_path, body=b"\x12\x34\x56\x78", name="even.bin"))
    odd = Rom(write_rom(tmp_path, body=b"\x12\x34\x56\x78\x99", name="odd.bin"))
    assert odd.checksum() == even.checksum()


def test_checksum_wraps_to_16_bits(tmp_path):
    rom = Rom(write_rom(tmp_path, body=b"\xff\xff\x00\x01"))
    assert rom.checksum() == 0


def test_checksum_matches_header_written_with_it(tmp_path):
    body = bytes(range(200))
    first = Rom(write_rom(tmp_path, body=body, name="first.bin"))
    second = Rom(write_rom(tmp_path, body=body, name="second.md", checksum=first.checksum()))

    assert second.header().rom_checksum == second.checksum()
    assert second.checksum() == first.checksum()


def test_md_extension_is_supported(tmp_path):
    rom = Rom(write_rom(tmp_path, name="game.md", overseas="MD GAME"))
    assert rom.header().game_name_overseas == "MD GAME"


@pytest.mark.parametrize("name", ["game.smd", "game.BIN", "game"])
def test_unsupported_extension(tmp_path, name):
    path = write_rom(tmp_path, name=name)
    with pytest.raises(RomError, match="not supported"):
        Rom(path)


def test_missing_file(tmp_path):
    with pytest.raises(RomError, match="failed to open"):
        Rom(tmp_path / "absent.bin")


def test_rom_too_small(tmp_path):
    path = tmp_path / "tiny.bin"
    path.write_bytes(bytes(Rom.MIN_SIZE - 1))
    with pytest.raises(RomError, match="too small"):
        Rom(path)


def test_smallest_rom_loads(tmp_path):
    path = tmp_path / "smallest.bin"
    path.write_bytes(bytes(Rom.MIN_SIZE))
    rom = Rom(path)
    assert len(rom.body()) == 1


def test_rom_too_big(tmp_path):
    path = tmp_path / "huge.bin"
    path.write_bytes(bytes(Rom.MAX_SIZE + 1))
    with pytest.raises(RomError, match="too big"):
        Rom(path)


def test_rom_of_max_size_loads(tmp_path):
    path = tmp_path / "max.bin"
    path.write_bytes(bytes(Rom.MAX_SIZE))
    rom = Rom(path)
    assert len(rom.data()) == Rom.MAX_SIZE
    assert rom.checksum() == 0