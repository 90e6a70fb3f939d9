"""Command-line scanner that reports likely vulnerabilities in a binary."""

from __future__ import annotations

import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from binscan.command_injection import CommandInjectionDetector, CommandInjectionFinding
from binscan.demangler import Demangler
from binscan.disassembler import Disassembler, Function
from binscan.heap_overflow import HeapOverflowDetector, HeapOverflowFinding
from binscan.unsafe import RiskLevel, UnsafeDetector, UnsafeFinding

FINDINGS_FILE = "tmp_findings.txt"
PROMPT_FILE = "gemini_prompt.txt"
FALLBACK_PROMPT = "CTF vulnerability findings:\n"


@dataclass
class Report:
    """Findings of all detectors together with their rendered text."""

    binary_path: str
    unsafe_findings: list[UnsafeFinding] = field(default_factory=list)
    heap_findings: list[HeapOverflowFinding] = field(default_factory=list)
    command_findings: list[CommandInjectionFinding] = field(default_factory=list)
    details: str = ""
    text: str = ""

    @property
    def total_issues(self) -> int:
        return len(self.unsafe_findings) + len(self.heap_findings) + len(self.command_findings)


def _separator(title: str) -> list[str]:
    return [f"\n{title}\n", "=" * 60 + "\n"]


def _unsafe_section(findings: list[UnsafeFinding]) -> tuple[list[str], list[str]]:
    text: list[str] = []
    details: list[str] = []
    if not findings:
        return ["✓ No unsafe function calls detected.\n"], details
    for level in RiskLevel:
        group = [f for f in findings if f.risk_level is level]
        if not group:
            continue
        text.append(f"\n[{level.value} RISK] Found {len(group)} issues:\n")
        text.append("-" * 50 + "\n")
        by_call: dict[tuple[str, str], list[str]] = {}
        for finding in group:
            by_call.setdefault((finding.target, finding.detail), []).append(finding.instr_addr)
        for (target, detail), addrs in sorted(by_call.items(), key=lambda item: f"{item[0][0]}|{item[0][1]}"):
            details.append(f"   Calls    : {target}\n")
            details.append(f"   Risk     : {level.value}\n")
            details.append(f"   Analysis : {detail}\n")
            details.append("   Addresses: " + ", ".join(f"0x{a}" for a in addrs) + "\n\n")
    return text, details


def build_report(binary_path: str, funcs: Sequence[Function], demangler=None) -> Report:
    """Run every detector over *funcs* and render the report."""
    demangler = demangler if demangler is not None else Demangler()
    report = Report(binary_path)
    lines = [f"Analyzing binary: {binary_path}\n", f"Found {len(funcs)} functions to analyze.\n"]

    lines += _separator("BUFFER OVERFLOW ANALYSIS")
    report.unsafe_findings = UnsafeDetector(demangler).detect(funcs)
    unsafe_text, details = _unsafe_section(report.unsafe_findings)
    lines += unsafe_text
    report.details = "".join(details)

    lines += _separator("HEAP OVERFLOW ANALYSIS")
    report.heap_findings = HeapOverflowDetector(demangler).detect(funcs)
    if not report.heap_findings:
        lines.append("✓ No heap overflow vulnerabilities detected.\n")
    for finding in report.heap_findings:
        if finding.func_name:
            lines.append(f"   Potential heap overflow in '{finding.func_name}':\n")
        lines.append(f"   Address: 0x{finding.instr_addr}\n")
        lines.append(f"   Detail : {finding.detail}\n\n")

    lines += _separator("COMMAND INJECTION ANALYSIS")
    report.command_findings = CommandInjectionDetector(demangler).detect(funcs)
    if not report.command_findings:
        lines.append("✓ No command injection vulnerabilities detected.\n")
    for finding in report.command_findings:
        if finding.func_name:
            lines.append(f"   Potential command injection in '{finding.func_name}':\n")
        lines.append(f"   Address: 0x{finding.instr_addr}\n")
        lines.append(f"   Calls  : {finding.target}\n")
        lines.append(f"   Detail : {finding.detail}\n\n")

    lines += _separator("SUMMARY")
    lines.append(f"Total issues found: {report.total_issues}\n")
    lines.append(f"├─ Unsafe function calls: {len(report.unsafe_findings)}\n")
    lines.append(f"├─ Heap overflows       : {len(report.heap_findings)}\n")
    lines.append(f"└─ Command injections   : {len(report.command_findings)}\n")
    if report.total_issues == 0:
        lines.append("\nBinary appears to be free of common vulnerability patterns.\n")
    else:
        lines.append("\nReview flagged issues carefully - some may be false positives.\n")
        lines.append("   Focus on HIGH risk findings first.\n")

    report.text = "".join(lines)
    return report


def send_findings(text: str) -> int:
    """Save *text* and hand it to the analysis client; return its exit status."""
    path = Path(FINDINGS_FILE)
    path.write_text(text, encoding="utf-8")
    argument = path.read_text(encoding="utf-8").rstrip("\n")
    try:
        result = subprocess.run(["python3", "gemini_client.py", argument], check=False)
    except OSError:
        return 127
    return result.returncode


def main(argv: Sequence[str] | None = None) -> int:
    """Scan the binary named on the command line; return the exit status."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 1:
        sys.stderr.write("Usage: scanner <binary>\n")
        return 1
    binary = args[0]
    funcs = Disassembler().parse(binary)
    report = build_report(binary, funcs, Demangler())
    sys.stdout.write(report.details)
    sys.stdout.write(report.text)

    sys.stdout.write(
        "\nWould you like to send the findings to Gemini for CTF-style exploit analysis? (y/n): "
    )
    sys.stdout.flush()
    answer = sys.stdin.readline().rstrip("\n")
    if answer in ("y", "Y"):
        try:
            prompt = Path(PROMPT_FILE).read_text(encoding="utf-8")
        except OSError:
            sys.stderr.write(f"Could not read {PROMPT_FILE}. Using fallback prompt.\n")
            prompt = FALLBACK_PROMPT
        prompt += "\n" + report.text
        print("\nSending report to Gemini...")
        sys.stdout.flush()
        send_findings(prompt)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())