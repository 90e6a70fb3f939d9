"""Heuristic vulnerability scanner for objdump disassembly of binaries."""

__version__ = "0.1.0"

__all__ = [
    "cli",
    "command_injection",
    "demangler",
    "disassembler",
    "dump_ins",
    "heap_overflow",
    "unsafe",
]