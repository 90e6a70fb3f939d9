"""Symbol demangling through the ``c++filt`` tool."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass


@dataclass(frozen=True)
class Demangler:
    """Turns mangled C++ symbol names into readable ones."""

    command: str = "c++filt"

    def demangle(self, name: str) -> str:
        """Return the demangled form of *name*, or *name* itself when that fails."""
        try:
            result = subprocess.run(
                [self.command, name],
                stdout=subprocess.PIPE,
                text=True,
                errors="replace",
                check=False,
            )
        except OSError:
            return name
        output = result.stdout or ""
        if output.endswith("\n"):
            output = output[:-1]
        return output or name