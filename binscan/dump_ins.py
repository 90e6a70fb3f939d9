"""Show the disassembly around one address of a binary."""

from __future__ import annotations

import re
import subprocess
import sys
from typing import Sequence

_SAFE_NAME = re.compile(r"[a-zA-Z0-9._/-]+")
_HEADER = re.compile(r"^\s*([0-9a-f]+)\s+<([^>]+)>:")


def normalize_address(addr: str) -> str:
    """Strip ``0x`` prefixes and leading zeros and lower-case the address."""
    while addr[:2] in ("0x", "0X"):
        addr = addr[2:]
    return addr.lstrip("0").lower()


def run_objdump(binary: str) -> list[str]:
    """Disassemble *binary* with ``objdump -d`` and return its output lines."""
    if not _SAFE_NAME.fullmatch(binary):
        raise ValueError("Invalid binary name.")
    try:
        with open(binary, "rb"):
            pass
    except OSError as exc:
        raise OSError(f"Error: Cannot open binary file '{binary}'") from exc
    result = subprocess.run(
        ["objdump", "-d", binary],
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        errors="replace",
        check=False,
    )
    return (result.stdout or "").splitlines(keepends=True)


def find_context(
    lines: Sequence[str],
    address: str,
    lines_before: int = 10,
    lines_after: int = 10,
    full_function: bool = False,
) -> tuple[str, list[str]]:
    """Return the enclosing function's name and the lines shown around *address*.

    Raises LookupError when the address does not appear in the listing.
    """
    target = normalize_address(address)
    address_line = re.compile(r"^\s*" + re.escape(target) + ":")
    current = "UNKNOWN"
    func_start = None
    for index, line in enumerate(lines):
        header = _HEADER.search(line)
        if header:
            func_start = index
            current = header[2]
        if not address_line.search(line):
            continue
        if full_function:
            func_end = next(
                (j + 1 for j in range(index, len(lines)) if "ret" in lines[j]), None
            )
            start = func_start if func_start is not None else max(0, index - 10)
            end = func_end if func_end is not None else min(len(lines), index + 20)
        else:
            start = max(0, index - lines_before)
            end = min(len(lines), index + lines_after + 1)
        return current, list(lines[start:end]) if end > start else []
    raise LookupError(f"Address 0x{target} not found in disassembly.")


def _usage(prog: str) -> str:
    return (
        "Usage:\n"
        f"  {prog} <binary_path> <address> [lines_before] [lines_after]\n"
        f"  {prog} <binary_path> <address> full\n"
    )


def main(argv: Sequence[str] | None = None) -> int:
    """Print the disassembly around an address; return the exit status."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not 2 <= len(args) <= 4:
        sys.stderr.write(_usage("dump_ins"))
        return 1
    binary, address = args[0], args[1]
    full_function = len(args) == 3 and args[2] == "full"
    lines_before = lines_after = 10
    if len(args) == 4:
        try:
            lines_before, lines_after = int(args[2]), int(args[3])
        except ValueError:
            print(f"Invalid line count: {args[2]} {args[3]}", file=sys.stderr)
            return 1

    try:
        lines = run_objdump(binary)
    except (ValueError, OSError) as exc:
        print(exc, file=sys.stderr)
        lines = []
    if not lines:
        print("Disassembly failed or binary invalid.", file=sys.stderr)
        return 1

    try:
        function, context = find_context(
            lines, address, lines_before, lines_after, full_function
        )
    except LookupError as exc:
        print(exc)
        return 1
    print(f"Function: {function}")
    sys.stdout.write("".join(context))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())