"""Parsing of ``objdump -d`` output into functions and instructions."""

from __future__ import annotations

import re
import subprocess
from dataclasses import dataclass, field

_FUNC_PATTERN = re.compile(r"^([0-9a-f]+) <([^>]+)>:")
_INSN_PATTERN = re.compile(
    r"^\s*([0-9a-fA-F]+):\s*([\da-fA-F]{2}(?:\s+[\da-fA-F]{2})*)\s+(\w+)\s+(.+)$",
    re.ASCII,
)


@dataclass
class Instruction:
    """One disassembled instruction."""

    address: str
    mnemonic: str
    operands: str


@dataclass
class Function:
    """A function symbol with the instructions that belong to it."""

    mangled_name: str
    demangled_name: str = ""
    start_address: str = ""
    insns: list[Instruction] = field(default_factory=list)


def format_address(address: str) -> str:
    """Render a hexadecimal address as ``0x`` followed by twelve hex digits."""
    return f"0x{int(address, 16):012x}"


class Disassembler:
    """Runs ``objdump`` on a binary and collects its functions."""

    def parse(self, binary_path: str) -> list[Function]:
        """Disassemble *binary_path* and return the functions found."""
        try:
            result = subprocess.run(
                ["objdump", "-d", binary_path],
                stdout=subprocess.PIPE,
                text=True,
                errors="replace",
                check=False,
            )
        except OSError:
            return []
        return self.parse_dump(result.stdout or "")

    def parse_dump(self, dump: str) -> list[Function]:
        """Parse the text of an ``objdump -d`` listing."""
        funcs: list[Function] = []
        current: Function | None = None
        for line in dump.split("\n"):
            header = _FUNC_PATTERN.search(line)
            if header:
                current = Function(mangled_name=header[2], start_address=header[1])
                funcs.append(current)
                continue
            if current is None:
                continue
            insn = _INSN_PATTERN.search(line)
            if insn:
                current.insns.append(Instruction(insn[1], insn[3], insn[4]))
        return funcs