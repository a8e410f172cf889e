from __future__ import annotations
import logging
from typing import Dict, Sequence

from .channel import Channel
from .constants import (
    CMD_EXIT,
    CMD_FILL_RANDOM,
    CMD_INFO,
    CMD_SET_MEMORY_SIZE,
    DONE_SENTINEL,
)
from .errors import BenchmarkError, ChannelIOError

LOGGER = logging.getLogger("scanbench.load")


def start_load(program: Sequence[str], echo: bool = False) -> Channel:
    return Channel.spawn(program[0], program[1:], echo=echo)


def configure_load(channel: Channel, size_bytes: int, seed: int) -> None:
    """Size and fill the load buffer; returns once both steps are acknowledged."""
    channel.write_line(f"{CMD_SET_MEMORY_SIZE} {size_bytes}")
    channel.read_until_line(DONE_SENTINEL)
    channel.write_line(f"{CMD_FILL_RANDOM} {seed}")
    channel.read_until_line(DONE_SENTINEL)


def load_info(channel: Channel) -> Dict[str, int]:
    """Ask the load for its buffer placement: {'size', 'start', 'end'}."""
    channel.write_line(CMD_INFO)
    out: Dict[str, int] = {}
    while len(out) < 3:
        line = channel.read_line("info output")
        key, sep, value = line.partition(":")
        if not sep or not key.startswith("memory "):
            continue
        try:
            out[key[len("memory "):].strip()] = int(value.strip(), 0)
        except ValueError:
            raise ChannelIOError(f"unexpected info line from pid {channel.pid}: {line!r}")
    return out


def stop_load(channel: Channel) -> None:
    """Ask the load to exit and reap it; a peer that already died is only logged."""
    if channel.closed:
        return
    try:
        channel.write_line(CMD_EXIT)
    except ChannelIOError as e:
        LOGGER.warning("Load pid %d did not take exit command: %s", channel.pid, e)
    try:
        rc = channel.close()
    except BenchmarkError as e:
        LOGGER.warning("Load pid %d shutdown failed: %s", channel.pid, e)
        return
    if rc:
        LOGGER.warning("Load pid %d exited with %d", channel.pid, rc)
