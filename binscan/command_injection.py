"""Detection of calls to functions that run shell commands."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from binscan.demangler import Demangler
from binscan.disassembler import Function, format_address

EXEC_FUNCTIONS = (
    "system",
    "popen",
    "execl",
    "execle",
    "execlp",
    "execv",
    "execve",
    "execvp",
    "execvpe",
)

_CALL_MNEMONICS = frozenset({"call", "callq"})


@dataclass(frozen=True)
class CommandInjectionFinding:
    """A call that may lead to command injection."""

    func_name: str
    instr_addr: str
    target: str
    detail: str


class CommandInjectionDetector:
    """Flags calls to ``system``, ``popen`` and the ``exec`` family."""

    def __init__(self, demangler=None):
        self.demangler = demangler if demangler is not None else Demangler()

    def _display_name(self, func: Function) -> str:
        name = self.demangler.demangle(func.mangled_name)
        return "" if name in (func.mangled_name, ".text") else name

    def detect(self, funcs: Iterable[Function]) -> list[CommandInjectionFinding]:
        """Return a finding for every call to a command-running function."""
        findings = []
        for func in funcs:
            name = self._display_name(func)
            for ins in func.insns:
                if ins.mnemonic not in _CALL_MNEMONICS:
                    continue
                target = next((fn for fn in EXEC_FUNCTIONS if fn in ins.operands), None)
                if target is None:
                    continue
                addr = format_address(ins.address)
                detail = f"Call to `{target}` at {addr} can lead to command injection risks."
                findings.append(CommandInjectionFinding(name, addr, target, detail))
        return findings