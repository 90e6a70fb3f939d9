"""Detection of copies that exceed heap allocations."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, NamedTuple, Sequence

from binscan.demangler import Demangler
from binscan.disassembler import Function, Instruction, format_address

_IMMEDIATE = re.compile(r"0x[0-9A-Fa-f]+|(\d+)", re.ASCII)
_OCTAL_PREFIX = re.compile(r"[0-7]*")
_CALL_MNEMONICS = frozenset({"call", "callq"})
COPY_FUNCTIONS = ("memcpy", "memmove", "strcpy", "strncpy")


@dataclass(frozen=True)
class HeapOverflowFinding:
    """A copy or string operation that may overflow a heap buffer."""

    func_name: str
    instr_addr: str
    detail: str


class _Allocation(NamedTuple):
    size: int
    address: str


def _parse_immediate(text: str) -> int:
    """Parse an integer literal the way C's automatic-base conversion does."""
    if text[:2].lower() == "0x":
        return int(text, 16)
    if len(text) > 1 and text.startswith("0"):
        digits = _OCTAL_PREFIX.match(text).group()
        return int(digits, 8) if digits else 0
    return int(text)


def _last_allocation(insns: Sequence[Instruction]) -> _Allocation | None:
    allocation = None
    for index, (ins, nxt) in enumerate(zip(insns, insns[1:])):
        if nxt.mnemonic not in _CALL_MNEMONICS or ins.mnemonic != "mov":
            continue
        size = 0
        match = _IMMEDIATE.search(ins.operands)
        if "malloc" in nxt.operands and match:
            size = _parse_immediate(match.group())
        elif "calloc" in nxt.operands and index + 2 < len(insns):
            count = _IMMEDIATE.search(ins.operands)
            width = _IMMEDIATE.search(nxt.operands)
            if count and width:
                size = _parse_immediate(count.group()) * _parse_immediate(width.group())
        if size > 0:
            allocation = _Allocation(size, nxt.address)
    return allocation


class HeapOverflowDetector:
    """Compares copy sizes with the most recent heap allocation in a function."""

    def __init__(self, demangler=None):
        self.demangler = demangler if demangler is not None else Demangler()

    def _display_name(self, func: Function) -> str:
        name = self.demangler.demangle(func.mangled_name)
        return "" if name in (func.mangled_name, ".text") else name

    def detect(self, funcs: Iterable[Function]) -> list[HeapOverflowFinding]:
        """Return findings for copies larger than the allocation and rep string ops."""
        findings = []
        for func in funcs:
            name = self._display_name(func)
            allocation = _last_allocation(func.insns)
            for ins in func.insns:
                addr = format_address(ins.address)
                if ins.mnemonic in _CALL_MNEMONICS:
                    target = next((fn for fn in COPY_FUNCTIONS if fn in ins.operands), None)
                    if target is None:
                        continue
                    match = _IMMEDIATE.search(ins.operands)
                    if match is None:
                        continue
                    copy_size = _parse_immediate(match.group())
                    alloc_size = allocation.size if allocation else 0
                    if copy_size > alloc_size:
                        detail = (
                            f"{target} at {addr} copies {copy_size} bytes "
                            f"into buffer of size {alloc_size}"
                        )
                        findings.append(HeapOverflowFinding(name, addr, detail))
                elif ins.mnemonic == "rep" and (
                    "stosb" in ins.operands or "movsb" in ins.operands
                ):
                    where = allocation.address if allocation else "unknown"
                    detail = (
                        f"repeat string operation at {addr} "
                        f"may overflow heap buffer allocated at {where}"
                    )
                    findings.append(HeapOverflowFinding(name, addr, detail))
        return findings