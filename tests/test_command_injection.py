from binscan.command_injection import CommandInjectionDetector, CommandInjectionFinding
from binscan.disassembler import Function, Instruction


class FakeDemangler:
    def __init__(self, names=None):
        self.names = names or {}

    def demangle(self, name):
        return self.names.get(name, name)


def _func(name, *insns):
    return Function(mangled_name=name, start_address="401126", insns=list(insns))


def test_system_call_is_reported():
    func = _func("_Z4mainv", Instruction("401136", "call", "401030 <system@plt>"))
    findings = CommandInjectionDetector(FakeDemangler({"_Z4mainv": "main()"})).detect([func])
    assert findings == [
        CommandInjectionFinding(
            "main()",
            "0x000000401136",
            "system",
            "Call to `system` at 0x000000401136 can lead to command injection risks.",
        )
    ]


def test_unchanged_name_is_blanked():
    func = _func("main", Instruction("401136", "callq", "401030 <popen@plt>"))
    findings = CommandInjectionDetector(FakeDemangler()).detect([func])
    assert [(f.func_name, f.target) for f in findings] == [("", "popen")]


def test_text_section_name_is_blanked():
    func = _func("_Zx", Instruction("401136", "call", "<system@plt>"))
    findings = CommandInjectionDetector(FakeDemangler({"_Zx": ".text"})).detect([func])
    assert findings[0].func_name == ""


def test_non_call_instructions_are_ignored():
    func = _func("main", Instruction("401136", "lea", "system(%rip),%rax"))
    assert CommandInjectionDetector(FakeDemangler()).detect([func]) == []


def test_other_calls_are_ignored():
    func = _func("main", Instruction("401136", "call", "401040 <puts@plt>"))
    assert CommandInjectionDetector(FakeDemangler()).detect([func]) == []


def test_first_listed_name_wins():
    func = _func("main", Instruction("401136", "call", "401050 <execve@plt>"))
    findings = CommandInjectionDetector(FakeDemangler()).detect([func])
    assert [f.target for f in findings] == ["execv"]


def test_one_finding_per_call_across_functions():
    funcs = [
        _func("a", Instruction("401000", "call", "<system@plt>"), Instruction("401005", "call", "<popen@plt>")),
        _func("b", Instruction("401100", "call", "<execlp@plt>")),
    ]
    findings = CommandInjectionDetector(FakeDemangler()).detect(funcs)
    assert [f.target for f in findings] == ["system", "popen", "execl"]