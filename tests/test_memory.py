import io
import threading

from lc3.console import Console, Display, Keyboard
from lc3.memory import DDR, DSR, KBDR, KBSR, MEM_SIZE, READY, Memory


def make_memory():
    out = io.BytesIO()
    kb = Keyboard()
    return Memory(Console(kb, Display(out))), kb, out


def test_plain_storage():
    mem, _, _ = make_memory()
    assert len(mem.mem) == MEM_SIZE
    mem.write(0x3000, 0x1_1234)
    assert mem.read(0x3000) == 0x1234
    mem.write(0xFFFF, 7)
    assert mem.read(0xFFFF) == 7
    assert mem.read(0x4000) == 0


def test_keyboard_status_reports_pending_input_without_consuming():
    mem, kb, _ = make_memory()
    assert mem.read(KBSR) == 0
    kb.feed(b"a")
    assert mem.read(KBSR) == READY
    assert mem.read(KBSR) == READY


def test_keyboard_data_read_clears_status():
    mem, kb, _ = make_memory()
    kb.feed(b"ab")
    assert mem.read(KBSR) == READY
    assert mem.read(KBDR) == ord("a")
    assert mem.read(KBSR) == READY       # "b" is next
    assert mem.read(KBDR) == ord("b")
    assert mem.read(KBSR) == 0
    # nothing new: data register repeats the last byte and does not block
    assert mem.read(KBDR) == ord("b")


def test_keyboard_data_without_any_input_is_zero():
    mem, _, _ = make_memory()
    assert mem.read(KBDR) == 0


def test_display_registers():
    mem, _, out = make_memory()
    assert mem.read(DSR) == READY
    mem.write(DDR, 0x0141)
    assert out.getvalue() == b"A"
    assert mem.mem[DDR] == 0


def test_peek_has_no_side_effects():
    mem, kb, _ = make_memory()
    kb.feed(b"z")
    assert mem.peek(KBSR) == READY
    assert mem.peek(KBDR) == 0
    assert mem.read(KBDR) == ord("z")
    assert mem.peek(KBDR) == ord("z")
    assert mem.peek(KBSR) == 0


def test_getc_blocks_until_input():
    kb = Keyboard()
    got = []
    t = threading.Thread(target=lambda: got.append(kb.getc()))
    t.start()
    t.join(0.1)
    assert t.is_alive()
    kb.feed(b"q")
    t.join(2)
    assert got == [ord("q")]


def test_getc_returns_zero_after_end_of_input():
    kb = Keyboard()
    kb.feed(b"x")
    kb.close()
    assert kb.getc() == ord("x")
    assert kb.getc() == 0
    assert not kb.available()


def test_attach_pumps_stream():
    kb = Keyboard()
    kb.attach(io.BytesIO(b"hi"))
    assert kb.getc() == ord("h")
    assert kb.getc() == ord("i")
    assert kb.getc() == 0
