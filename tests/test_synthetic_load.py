import io
import sys

from scanbench import synthetic_load
from scanbench.runner.channel import Channel
from scanbench.runner.constants import DEFAULT_LOAD_PROGRAM
from scanbench.runner.load import configure_load, load_info, start_load, stop_load


def serve(script: str):
    out = io.StringIO()
    assert synthetic_load.serve(io.StringIO(script), out) == 0
    return out.getvalue().splitlines()


def test_sizing_commands_acknowledge_with_done():
    assert serve("set-memory-size 0x100\nfill 7\nfill-random 1\n") == ["Done", "Done", "Done"]


def test_info_and_set_address_send_no_sentinel():
    lines = serve("set-memory-size 16\ninfo\nset-address 0 1\n")
    assert lines[0] == "Done"
    assert lines[1] == "memory size: 0x10"
    assert lines[2].startswith("memory start: 0x")
    assert lines[3].startswith("memory end: 0x")
    assert lines[4] == "address not in range"
    assert len(lines) == 5


def test_invalid_lines_do_not_stop_the_loop():
    lines = serve("bogus\nfill 300\nset-memory-size\nfill-random -1\nset-memory-size 4\nexit\nfill 1\n")
    assert [l for l in lines if l.startswith("error:")] == lines[:4]
    # nothing runs after exit
    assert lines[4:] == ["Done"]


def test_quit_alias():
    assert serve("q\nset-memory-size 4\n") == []


def test_end_of_input_terminates():
    assert serve("set-memory-size 4") == ["Done"]


def test_state_resize_keeps_prefix_and_zero_fills():
    state = synthetic_load.State()
    state.set_memory_size(4)
    state.fill(0xAB)
    state.set_memory_size(8)
    assert bytes(state.memory) == b"\xab" * 4 + b"\x00" * 4
    state.set_memory_size(2)
    assert bytes(state.memory) == b"\xab\xab"


def test_fill_random_is_deterministic():
    a, b = synthetic_load.State(), synthetic_load.State()
    for s in (a, b):
        s.set_memory_size(3 * synthetic_load.FILL_CHUNK + 5)
        s.fill_random(0x1)
    assert a.memory == b.memory
    b.fill_random(0x2)
    assert a.memory != b.memory


def test_set_address_inside_buffer():
    state = synthetic_load.State()
    out = io.StringIO()
    state.set_address(0, 1, out)
    assert out.getvalue() == "memory empty\n"
    state.set_memory_size(16)
    base = state.base_address()
    state.set_address(base + 3, 0x41, out)
    assert state.memory[3] == 0x41
    # the buffer can still be resized after its address was taken
    state.set_memory_size(32)


def test_controller_against_real_generator():
    load = start_load(DEFAULT_LOAD_PROGRAM)
    with load:
        configure_load(load, 4096, 0x1)
        info = load_info(load)
        assert info["size"] == 4096
        assert info["end"] - info["start"] == 4096
        stop_load(load)
    assert load.closed
    assert load.returncode == 0


def test_stop_load_tolerates_dead_peer(tmp_path):
    script = tmp_path / "dies.py"
    script.write_text("")
    ch = Channel.spawn(sys.executable, [str(script)])
    ch._proc.wait()
    stop_load(ch)
    assert ch.closed
