# binscan

binscan reads the disassembly of an executable, as printed by `objdump -d`,
and reports call sites that often point to vulnerabilities:

- **Unsafe function calls**: `gets`, `strcpy`, `strcat`, `sprintf`, the
  `scanf` family, and bounded copies such as `strncpy` or `memcpy` when
  they look risky. Each finding is graded `HIGH`, `MEDIUM` or `LOW`.
- **Heap overflows**: `memcpy`, `memmove`, `strcpy` or `strncpy` calls whose
  immediate size is larger than the last `malloc`/`calloc` size seen in the
  same function, and `rep stosb`/`rep movsb` string operations.
- **Command injection**: calls to `system`, `popen` and the `exec*` family.

These are heuristics over the listing text. Expect false positives.

## Requirements

- Python 3.10 or later
- `objdump` and `c++filt` (GNU binutils) on `PATH`

## Installation

```
pip install .
```

Run the tests with `pip install .[test]` and then `pytest`.

## Scanning a binary

```
binscan ./path/to/binary
```

The output starts with one block per unsafe call target: the called
function, the risk level, the analysis text and the addresses. Then comes
the report, with one section per analysis and a summary of the issue counts.

Last, binscan asks whether to send the findings on for further analysis
and reads one line from standard input. Any answer other than `y` or `Y`
ends the run. On `y`, it reads `gemini_prompt.txt` from the current
directory. If that file cannot be read, it uses a short built-in prompt. It
adds the report to the prompt and saves the result as `tmp_findings.txt`.
Then it runs `python3 gemini_client.py` with the text as its argument.

## Looking at the code around an address

```
binscan-dump ./path/to/binary 0x401136
binscan-dump ./path/to/binary 401136 5 15
binscan-dump ./path/to/binary 0x401136 full
```

The address may have a `0x` prefix and leading zeros. The command prints
the name of the function that contains the address, then the listing lines
around it. It shows 10 lines before and 10 after unless you give two other
counts. With `full`, it prints from the function's header line up to the
first following line that contains `ret`.

The binary name may contain only letters, digits, `.`, `_`, `/` and `-`.
The command exits with status 1 if the address is not in the listing.

## Using it as a library

```python
from binscan.demangler import Demangler
from binscan.disassembler import Disassembler
from binscan.unsafe import UnsafeDetector
from binscan.heap_overflow import HeapOverflowDetector
from binscan.command_injection import CommandInjectionDetector
from binscan.cli import build_report

demangler = Demangler()
funcs = Disassembler().parse("./a.out")

for finding in UnsafeDetector(demangler).detect(funcs):
    print(finding.risk_level.value, finding.target, finding.instr_addr)

for finding in HeapOverflowDetector(demangler).detect(funcs):
    print(finding.detail)

for finding in CommandInjectionDetector(demangler).detect(funcs):
    print(finding.target, finding.instr_addr)

report = build_report("./a.out", funcs, demangler)
print(report.total_issues)
print(report.text)
```

If you already have `objdump -d` output as text, `Disassembler().parse_dump(text)`
parses it without running `objdump`. `Disassembler().parse` returns an empty
list if `objdump` cannot be started. If `c++filt` cannot be run,
`Demangler.demangle` returns the name unchanged.

`binscan.dump_ins` provides `normalize_address`, `run_objdump` and
`find_context`. `find_context` raises `LookupError` if the address is not in
the listing.

## What binscan does not do

binscan does not include `gemini_client.py` or any analysis client. On a
`y` answer, `binscan` only launches `python3 gemini_client.py` in the
current directory. If that script is not there, nothing is analysed.
binscan does no dynamic analysis. It does not run the binary it scans.