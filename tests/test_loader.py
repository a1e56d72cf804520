import pytest

from lc3.cpu_core import CPU
from lc3.errors import MalformedImage
from lc3.loader import load, parse_image, read_image
from lc3.memory import Memory


def test_load_sets_origin_and_pc():
    cpu = CPU()
    origin = cpu.load(bytes([0x30, 0x00, 0x12, 0x34]))
    assert origin == 0x3000
    assert cpu.mem.read(0x3000) == 0x1234
    assert cpu.reg.pc == 0x3000


def test_words_are_big_endian_and_sequential():
    mem = Memory()
    origin = load(mem, bytes([0x40, 0x00, 0xAB, 0xCD, 0x00, 0x01, 0xFF, 0xFF]))
    assert origin == 0x4000
    assert mem.mem[0x4000:0x4003] == [0xABCD, 0x0001, 0xFFFF]


def test_origin_only_image():
    assert parse_image(bytes([0x30, 0x00])) == (0x3000, [])


@pytest.mark.parametrize("data", [b"", b"\x30", b"\x30\x00\x12"])
def test_malformed_images(data):
    with pytest.raises(MalformedImage):
        parse_image(data)


def test_image_must_fit_address_space():
    data = bytes([0xFF, 0xFF, 0x00, 0x01, 0x00, 0x02])
    with pytest.raises(MalformedImage):
        parse_image(data)


def test_read_image(tmp_path):
    path = tmp_path / "prog.obj"
    path.write_bytes(b"\x30\x00\xf0\x25")
    assert read_image(path) == b"\x30\x00\xf0\x25"
