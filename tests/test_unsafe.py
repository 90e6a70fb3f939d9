import pytest

from binscan.disassembler import Function, Instruction, format_address
from binscan.unsafe import (
    RiskLevel,
    UnsafeDetector,
    analyze_buffer_context,
    detailed_analysis,
    extract_called_function,
    is_likely_vulnerable,
)


class FakeDemangler:
    def __init__(self, names=None):
        self.names = names or {}

    def demangle(self, name):
        return self.names.get(name, name)


def call(address, target):
    return Instruction(address, "call", f"401030 <{target}>")


def make_func(name, insns, start="0000000000401126"):
    return Function(mangled_name=name, start_address=start, insns=list(insns))


@pytest.mark.parametrize(
    "operands, expected",
    [
        ("401030 <gets@plt>", "gets"),
        ("401126 <main+0x12>", "main+0x12"),
        ("strcpy@plt", "strcpy"),
        ("*%rax", ""),
    ],
)
def test_extract_called_function(operands, expected):
    assert extract_called_function(operands) == expected


def test_analyze_buffer_context_reads_stack_and_arg():
    func = make_func("main", [
        Instruction("401126", "sub", "$0x50,%rsp"),
        Instruction("40112a", "mov", "$100,%rdx"),
    ])
    assert analyze_buffer_context(func) == {"stack": 0x50, "arg": 100}


def test_analyze_buffer_context_ignores_large_arg():
    func = make_func("main", [
        Instruction("401126", "sub", "$32,%rsp"),
        Instruction("40112a", "mov", "$20000,%rcx"),
    ])
    assert analyze_buffer_context(func) == {"stack": 32}


def test_gets_always_vulnerable():
    ins = call("401130", "gets@plt")
    assert is_likely_vulnerable(make_func("main", [ins]), ins, "gets", {}) is True


def test_fgets_not_vulnerable():
    ins = call("401130", "fgets@plt")
    assert is_likely_vulnerable(make_func("main", [ins]), ins, "fgets", {}) is False


def test_strncpy_with_large_size_is_vulnerable():
    ins = call("401134", "strncpy@plt")
    func = make_func("main", [Instruction("401130", "mov", "$1200,%rdx"), ins])
    assert is_likely_vulnerable(func, ins, "strncpy", {}) is True


def test_strncpy_with_small_size_is_not_vulnerable():
    ins = call("401134", "strncpy@plt")
    func = make_func("main", [Instruction("401130", "mov", "$63,%rdx"), ins])
    assert is_likely_vulnerable(func, ins, "strncpy", {}) is False


def test_detailed_analysis_text():
    assert detailed_analysis("gets", RiskLevel.HIGH) == (
        "Risk: HIGH - gets() doesn't check buffer bounds"
    )
    assert detailed_analysis("fgets", "MEDIUM") == (
        "Risk: MEDIUM - Potentially unsafe function call"
    )


def test_detect_gets_is_high_risk():
    func = make_func("_Z4vulnv", [call("401136", "gets@plt")])
    detector = UnsafeDetector(FakeDemangler({"_Z4vulnv": "vuln()"}))
    [finding] = detector.detect([func])
    assert finding.target == "gets"
    assert finding.risk_level is RiskLevel.HIGH
    assert finding.func_name == "vuln()"
    assert finding.instr_addr == format_address("401136")
    assert finding.func_start == "0000000000401126"
    assert finding.detail == detailed_analysis("gets", RiskLevel.HIGH)


def test_detect_unmangled_name_cleared():
    findings = UnsafeDetector(FakeDemangler()).detect([make_func("main", [call("401136", "strcpy@plt")])])
    assert [(f.func_name, f.target) for f in findings] == [("", "strcpy")]


def test_detect_skips_plt_entries():
    func = make_func("gets@plt", [call("401030", "gets@plt")])
    assert UnsafeDetector(FakeDemangler()).detect([func]) == []


def test_detect_matches_wrapped_name():
    func = make_func("main", [call("401140", "__isoc99_scanf@plt")])
    [finding] = UnsafeDetector(FakeDemangler()).detect([func])
    assert finding.target == "scanf"
    assert finding.risk_level is RiskLevel.HIGH


def test_detect_ignores_safe_and_benign_calls():
    func = make_func("main", [
        call("401140", "printf@plt"),
        call("401150", "fgets@plt"),
        Instruction("401160", "mov", "$0x0,%eax"),
    ])
    assert UnsafeDetector(FakeDemangler()).detect([func]) == []


def test_detect_memcpy_is_medium():
    func = make_func("main", [call("401140", "memcpy@plt")])
    [finding] = UnsafeDetector(FakeDemangler()).detect([func])
    assert finding.risk_level is RiskLevel.MEDIUM
    assert finding.mnemonic == "call"