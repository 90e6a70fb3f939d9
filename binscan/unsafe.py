"""Detection of calls to library functions that do not check buffer bounds."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping

from binscan.demangler import Demangler
from binscan.disassembler import Function, Instruction, format_address

_TARGET = re.compile(r"<([^>@]+)(?:@plt)?>")
_DIRECT = re.compile(r"(\w+)@plt", re.ASCII)
_HEX_IMMEDIATE = re.compile(r"\$0x([0-9a-fA-F]+)")
_DEC_IMMEDIATE = re.compile(r"\$(\d+)", re.ASCII)
_CALL_MNEMONICS = frozenset({"call", "callq"})
_SIZE_REGISTERS = ("%rdx", "%rcx")

UNSAFE_FUNCTIONS = (
    "gets",
    "strcpy",
    "strcat",
    "sprintf",
    "scanf",
    "strncpy",
    "strncat",
    "snprintf",
    "memcpy",
    "memmove",
)

SAFE_FUNCTIONS = frozenset({
    "puts", "printf", "fprintf", "fwrite", "write",
    "strlen", "strcmp", "strncmp", "memcmp", "malloc", "free",
    "fopen", "fclose", "exit", "_exit", "abort",
    "getpid", "getuid", "getgid", "time", "clock",
})

HIGH_RISK_FUNCTIONS = frozenset({
    "gets", "strcpy", "strcat", "sprintf", "vsprintf",
    "scanf", "sscanf", "fscanf",
})

MEDIUM_RISK_FUNCTIONS = frozenset({
    "strncpy", "strncat", "snprintf", "vsnprintf",
    "memcpy", "memmove", "fgets", "getchar",
})

_DETAILS = {
    "gets": "gets() doesn't check buffer bounds",
    "strcpy": "strcpy() doesn't check destination size",
    "strcat": "strcat() doesn't check destination size",
    "sprintf": "sprintf() doesn't check buffer size",
    "scanf": "scanf family can overflow buffers",
    "sscanf": "scanf family can overflow buffers",
    "fscanf": "scanf family can overflow buffers",
    "memcpy": "Memory copy without bounds checking",
    "memmove": "Memory copy without bounds checking",
}


class RiskLevel(str, Enum):
    """How dangerous a flagged call is judged to be."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


@dataclass(frozen=True)
class UnsafeFinding:
    """A call to a function that may overflow a buffer."""

    func_name: str
    func_start: str
    instr_addr: str
    mnemonic: str
    target: str
    detail: str
    risk_level: RiskLevel


def extract_called_function(operands: str) -> str:
    """Return the name of the function a call instruction targets, or ``""``."""
    match = _TARGET.search(operands) or _DIRECT.search(operands)
    return match[1] if match else ""


def _uses_size_register(ins: Instruction) -> bool:
    return ins.mnemonic == "mov" and any(reg in ins.operands for reg in _SIZE_REGISTERS)


def analyze_buffer_context(func: Function) -> dict[str, int]:
    """Collect the stack frame size and the last small size argument of *func*."""
    sizes: dict[str, int] = {}
    for ins in func.insns:
        if ins.mnemonic == "sub" and "%rsp" in ins.operands:
            hex_match = _HEX_IMMEDIATE.search(ins.operands)
            if hex_match:
                sizes["stack"] = int(hex_match[1], 16)
            else:
                dec_match = _DEC_IMMEDIATE.search(ins.operands)
                if dec_match:
                    sizes["stack"] = int(dec_match[1])
        if _uses_size_register(ins):
            match = _DEC_IMMEDIATE.search(ins.operands)
            if match and int(match[1]) < 10000:
                sizes["arg"] = int(match[1])
    return sizes


def is_likely_vulnerable(
    func: Function,
    ins: Instruction,
    func_name: str,
    buffer_sizes: Mapping[str, int],
) -> bool:
    """Judge whether a call to *func_name* at *ins* is likely to overflow."""
    if func_name in ("gets", "scanf", "sprintf"):
        return True
    if func_name in ("strncpy", "strncat", "snprintf"):
        insns = func.insns
        position = next(
            (i for i, other in enumerate(insns) if other.address == ins.address),
            len(insns),
        )
        floor = max(0, len(insns) - 5)
        for prev in reversed(insns[floor:position]):
            if not _uses_size_register(prev):
                continue
            match = _DEC_IMMEDIATE.search(prev.operands)
            if match:
                size = int(match[1])
                if size > 1000 or size % 100 == 0:
                    return True
        return False
    return func_name in ("memcpy", "memmove")


def detailed_analysis(func_name: str, risk_level: RiskLevel | str) -> str:
    """Describe why a call to *func_name* was flagged."""
    level = RiskLevel(risk_level).value
    reason = _DETAILS.get(func_name, "Potentially unsafe function call")
    return f"Risk: {level} - {reason}"


class UnsafeDetector:
    """Flags calls to unbounded string, copy and input functions."""

    def __init__(self, demangler=None):
        self.demangler = demangler if demangler is not None else Demangler()

    def _classify(
        self,
        func: Function,
        ins: Instruction,
        called: str,
        buffer_sizes: Mapping[str, int],
    ) -> tuple[str, RiskLevel] | None:
        if called in HIGH_RISK_FUNCTIONS:
            return called, RiskLevel.HIGH
        if called in MEDIUM_RISK_FUNCTIONS:
            if is_likely_vulnerable(func, ins, called, buffer_sizes):
                return called, RiskLevel.MEDIUM
            return None
        unsafe = next((name for name in UNSAFE_FUNCTIONS if name in called), None)
        if unsafe is None:
            return None
        if unsafe in HIGH_RISK_FUNCTIONS:
            return unsafe, RiskLevel.HIGH
        if not is_likely_vulnerable(func, ins, unsafe, buffer_sizes):
            return None
        if unsafe in MEDIUM_RISK_FUNCTIONS:
            return unsafe, RiskLevel.MEDIUM
        return unsafe, RiskLevel.LOW

    def detect(self, funcs: Iterable[Function]) -> list[UnsafeFinding]:
        """Return a finding for every call judged unsafe."""
        findings = []
        for func in funcs:
            name = self.demangler.demangle(func.mangled_name)
            if name in ("", func.mangled_name, ".text"):
                if "@plt" in func.mangled_name:
                    continue
                name = ""
            buffer_sizes = analyze_buffer_context(func)
            for ins in func.insns:
                if ins.mnemonic not in _CALL_MNEMONICS:
                    continue
                called = extract_called_function(ins.operands)
                if not called or called in SAFE_FUNCTIONS:
                    continue
                verdict = self._classify(func, ins, called, buffer_sizes)
                if verdict is None:
                    continue
                target, risk = verdict
                findings.append(
                    UnsafeFinding(
                        func_name=name,
                        func_start=func.start_address,
                        instr_addr=format_address(ins.address),
                        mnemonic=ins.mnemonic,
                        target=target,
                        detail=detailed_analysis(target, risk),
                        risk_level=risk,
                    )
                )
        return findings