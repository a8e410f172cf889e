#!/usr/bin/env python3
"""
Synthetic load for scanbench.

Holds one memory buffer whose size and content are driven line by line on
stdin, so a memory scanner can be pointed at this process's pid. Commands:

    set-memory-size <n>        resize to n bytes (new bytes are zero)   -> Done
    fill <byte>                fill with one byte value                 -> Done
    fill-random <seed>         deterministic fill from seed             -> Done
    set-address <addr> <byte>  poke one byte if addr is inside the buffer
    info                       print size, start and end address
    exit | q                   quit

Numbers accept decimal or 0x-prefixed hex. Bad lines print a diagnostic and
the loop carries on. Only the standard library is used so the load can run
under any interpreter without installing scanbench.
"""
from __future__ import annotations
import argparse
import ctypes
import random
import sys
from typing import Iterator, List, Optional, Sequence, TextIO

PROMPT = "synthetic-load> "
DONE = "Done"
FILL_CHUNK = 1 << 20


class CommandError(Exception):
    pass


class _CommandParser(argparse.ArgumentParser):
    def error(self, message):
        raise CommandError(message)


def maybe_hex(value: str) -> int:
    return int(value, 0)


def _bounded(name: str, lo: int, hi: int):
    def parse(value: str) -> int:
        n = maybe_hex(value)
        if not lo <= n <= hi:
            raise ValueError(f"{name} out of range")
        return n
    parse.__name__ = name
    return parse


u8 = _bounded("u8", 0, 0xFF)
u64 = _bounded("u64", 0, 0xFFFFFFFFFFFFFFFF)
usize = _bounded("usize", 0, sys.maxsize)


class State:
    def __init__(self):
        self.memory = bytearray()

    def base_address(self) -> int:
        if not self.memory:
            return 0
        view = (ctypes.c_char * len(self.memory)).from_buffer(self.memory)
        try:
            return ctypes.addressof(view)
        finally:
            # an exported buffer would pin the bytearray's size
            del view

    def set_memory_size(self, new_size: int) -> None:
        cur = len(self.memory)
        if new_size < cur:
            del self.memory[new_size:]
        elif new_size > cur:
            self.memory.extend(bytes(new_size - cur))

    def fill(self, value: int) -> None:
        self.memory[:] = bytes((value,)) * len(self.memory)

    def fill_random(self, seed: int) -> None:
        rng = random.Random(seed)
        n = len(self.memory)
        for off in range(0, n, FILL_CHUNK):
            k = min(FILL_CHUNK, n - off)
            self.memory[off:off + k] = rng.randbytes(k)

    def set_address(self, address: int, value: int, out: TextIO) -> None:
        if not self.memory:
            print("memory empty", file=out, flush=True)
            return
        base = self.base_address()
        if not base <= address < base + len(self.memory):
            print("address not in range", file=out, flush=True)
            return
        self.memory[address - base] = value

    def info(self, out: TextIO) -> None:
        base = self.base_address()
        print(f"memory size: {len(self.memory):#x}", file=out)
        print(f"memory start: {base:#x}", file=out)
        print(f"memory end: {base + len(self.memory):#x}", file=out, flush=True)


def build_parser() -> _CommandParser:
    p = _CommandParser(prog="synthetic-load", add_help=False)
    sub = p.add_subparsers(dest="command", required=True, parser_class=_CommandParser)
    sub.add_parser("exit", aliases=["q"], add_help=False).set_defaults(command="exit")
    sp = sub.add_parser("set-memory-size", add_help=False)
    sp.add_argument("new_memory_size", type=usize)
    sp = sub.add_parser("fill", add_help=False)
    sp.add_argument("value", type=u8)
    sp = sub.add_parser("fill-random", add_help=False)
    sp.add_argument("seed", type=u64)
    sp = sub.add_parser("set-address", add_help=False)
    sp.add_argument("address", type=usize)
    sp.add_argument("value", type=u8)
    sub.add_parser("info", add_help=False)
    return p


def perform_command(state: State, ns: argparse.Namespace, out: TextIO) -> None:
    if ns.command == "set-memory-size":
        state.set_memory_size(ns.new_memory_size)
    elif ns.command == "fill":
        state.fill(ns.value)
    elif ns.command == "fill-random":
        state.fill_random(ns.seed)
    elif ns.command == "set-address":
        state.set_address(ns.address, ns.value, out)
        return
    elif ns.command == "info":
        state.info(out)
        return
    print(DONE, file=out, flush=True)


def read_lines(inp: TextIO, interactive: bool) -> Iterator[str]:
    while True:
        if interactive:
            try:
                yield input(PROMPT)
            except EOFError:
                return
        else:
            line = inp.readline()
            if not line:
                return
            yield line


def serve(inp: TextIO, out: TextIO, interactive: bool = False) -> int:
    state = State()
    parser = build_parser()
    for line in read_lines(inp, interactive):
        tokens: List[str] = line.split()
        if not tokens:
            continue
        try:
            ns = parser.parse_args(tokens)
        except CommandError as e:
            print(f"error: {e}", file=out, flush=True)
            continue
        if ns.command in ("exit", "q"):
            break
        perform_command(state, ns, out)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    argparse.ArgumentParser(description=__doc__.splitlines()[1]).parse_args(argv)
    try:
        return serve(sys.stdin, sys.stdout, interactive=sys.stdin.isatty())
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
